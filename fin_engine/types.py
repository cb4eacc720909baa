"""
fin_engine/types.py
===================
Dataclasses for statements, catalog entries, benchmarks, options and results.
Everything produced by the engine is immutable once built.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Literal, Mapping, Optional, Tuple

from .errors import InputDataError

# ─── Literals ─────────────────────────────────────────────────────────────────

Language = Literal["ar", "en"]
AnalysisType = Literal["basic", "intermediate", "advanced", "comprehensive"]
Direction = Literal["higher", "lower"]
Status = Literal["computed", "degraded", "unavailable"]
EvaluationCode = Literal[
    "good", "below", "no_benchmark",
    "insufficient_data", "not_computable", "timed_out", "cancelled",
]
Category = Literal[
    "basic.structural", "basic.ratios", "basic.flow",
    "intermediate.comparison", "intermediate.valuation", "intermediate.performance",
    "advanced.modeling", "advanced.statistical", "advanced.risk", "advanced.detection",
]
DistributionKind = Literal["normal", "uniform", "triangular"]

CATEGORIES: Tuple[str, ...] = (
    "basic.structural", "basic.ratios", "basic.flow",
    "intermediate.comparison", "intermediate.valuation", "intermediate.performance",
    "advanced.modeling", "advanced.statistical", "advanced.risk", "advanced.detection",
)


def readonly(mapping: Mapping) -> Mapping:
    """Read-only view over a private copy of ``mapping``."""
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class LocalizedText:
    en: str
    ar: str

    def resolve(self, language: str = "en") -> str:
        return self.ar if language == "ar" else self.en


# ─── Statement Model ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BalanceSheet:
    # current assets
    cash: Optional[float] = None
    marketable_securities: Optional[float] = None
    receivables: Optional[float] = None
    inventory: Optional[float] = None
    other_current_assets: Optional[float] = None
    total_current_assets: Optional[float] = None
    # non-current assets
    ppe: Optional[float] = None
    intangibles: Optional[float] = None
    long_term_investments: Optional[float] = None
    other_non_current_assets: Optional[float] = None
    total_non_current_assets: Optional[float] = None
    total_assets: Optional[float] = None
    # liabilities
    payables: Optional[float] = None
    short_term_debt: Optional[float] = None
    current_portion_long_term_debt: Optional[float] = None
    other_current_liabilities: Optional[float] = None
    total_current_liabilities: Optional[float] = None
    long_term_debt: Optional[float] = None
    other_non_current_liabilities: Optional[float] = None
    total_non_current_liabilities: Optional[float] = None
    total_liabilities: Optional[float] = None
    # equity
    share_capital: Optional[float] = None
    retained_earnings: Optional[float] = None
    other_equity: Optional[float] = None
    total_equity: Optional[float] = None

    @property
    def total_debt(self) -> float:
        return sum(v or 0.0 for v in (
            self.short_term_debt, self.current_portion_long_term_debt, self.long_term_debt))

    @property
    def cash_and_equivalents(self) -> float:
        return (self.cash or 0.0) + (self.marketable_securities or 0.0)

    @property
    def working_capital(self) -> Optional[float]:
        if self.total_current_assets is None or self.total_current_liabilities is None:
            return None
        return self.total_current_assets - self.total_current_liabilities


@dataclass(frozen=True)
class IncomeStatement:
    revenue: Optional[float] = None
    cogs: Optional[float] = None
    gross_profit: Optional[float] = None
    operating_expenses: Optional[float] = None
    depreciation: Optional[float] = None
    operating_income: Optional[float] = None
    interest_expense: Optional[float] = None
    other_income: Optional[float] = None
    exceptional_items: Optional[float] = None
    income_before_tax: Optional[float] = None
    tax: Optional[float] = None
    net_income: Optional[float] = None
    dividends: Optional[float] = None
    employee_costs: Optional[float] = None

    @property
    def ebitda(self) -> Optional[float]:
        if self.operating_income is None:
            return None
        return self.operating_income + (self.depreciation or 0.0)


@dataclass(frozen=True)
class CashFlowStatement:
    operating_cash_flow: Optional[float] = None
    capex: Optional[float] = None  # signed negative
    acquisitions: Optional[float] = None
    investing_cash_flow: Optional[float] = None
    debt_issued: Optional[float] = None
    debt_repaid: Optional[float] = None
    dividends_paid: Optional[float] = None
    financing_cash_flow: Optional[float] = None
    net_change_in_cash: Optional[float] = None

    @property
    def free_cash_flow(self) -> Optional[float]:
        if self.operating_cash_flow is None:
            return None
        return self.operating_cash_flow + (self.capex or 0.0)


@dataclass(frozen=True)
class MarketData:
    shares_outstanding: Optional[float] = None
    share_price: Optional[float] = None
    employees: Optional[float] = None


@dataclass(frozen=True)
class FinancialStatement:
    year: int
    balance_sheet: BalanceSheet = field(default_factory=BalanceSheet)
    income_statement: IncomeStatement = field(default_factory=IncomeStatement)
    cash_flow: CashFlowStatement = field(default_factory=CashFlowStatement)
    market: MarketData = field(default_factory=MarketData)

    @property
    def bs(self) -> BalanceSheet:
        return self.balance_sheet

    @property
    def inc(self) -> IncomeStatement:
        return self.income_statement

    @property
    def cf(self) -> CashFlowStatement:
        return self.cash_flow


@dataclass(frozen=True)
class CompanyContext:
    statements: Tuple[FinancialStatement, ...]
    name: str = ""
    sector: str = "general"
    activity: str = ""
    legal_entity: str = ""
    comparison_level: str = "sector"
    analysis_type: AnalysisType = "comprehensive"
    language: Language = "en"

    def __post_init__(self):
        ordered = tuple(sorted(self.statements, key=lambda s: s.year))
        years = [s.year for s in ordered]
        if len(set(years)) != len(years):
            dupes = sorted({y for y in years if years.count(y) > 1})
            raise InputDataError("statements", f"duplicate fiscal years {dupes}")
        object.__setattr__(self, "statements", ordered)

    @property
    def years(self) -> List[int]:
        return [s.year for s in self.statements]

    @property
    def years_count(self) -> int:
        return len(self.statements)


# ─── Catalog ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisDefinition:
    id: str
    category: str
    name: LocalizedText
    description: LocalizedText
    measure_label: LocalizedText
    direction: Direction = "higher"
    benchmark_key: Optional[str] = None
    heavy: bool = False

    @property
    def tier(self) -> str:
        return self.category.split(".", 1)[0]


# ─── Benchmarks ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PeerCompany:
    name: str
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metrics", readonly(self.metrics))


@dataclass(frozen=True)
class BenchmarkSet:
    sector: str = ""
    activity: str = ""
    comparison_level: str = ""
    ratios: Mapping[str, float] = field(default_factory=dict)
    peers: Tuple[PeerCompany, ...] = ()
    historical_index: Mapping[int, float] = field(default_factory=dict)
    available: bool = True

    def __post_init__(self):
        # Shared by every worker thread; expose read-only views only.
        object.__setattr__(self, "ratios", readonly(self.ratios))
        object.__setattr__(self, "historical_index", readonly(self.historical_index))

    @classmethod
    def empty(cls, sector: str = "", activity: str = "", comparison_level: str = "") -> "BenchmarkSet":
        return cls(sector=sector, activity=activity, comparison_level=comparison_level, available=False)

    def get(self, key: Optional[str]) -> Optional[float]:
        if not key or not self.available:
            return None
        return self.ratios.get(key)

    def peer_values(self, key: str) -> List[float]:
        return [p.metrics[key] for p in self.peers if key in p.metrics]


# ─── Options ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProjectInputs:
    initial_investment: float
    cash_flows: Tuple[float, ...]
    name: str = "project"
    discount_rate: Optional[float] = None


@dataclass(frozen=True)
class Scenario:
    name: str
    probability: float
    revenue_growth: float
    margin_change: float


@dataclass(frozen=True)
class DistributionSpec:
    """``params``: normal (mean, sd), uniform (low, high), triangular (left, mode, right)."""
    kind: DistributionKind
    params: Tuple[float, ...]


@dataclass(frozen=True)
class LPProblem:
    objective: Tuple[float, ...]
    a_ub: Tuple[Tuple[float, ...], ...]
    b_ub: Tuple[float, ...]
    maximize: bool = True
    bounds: Optional[Tuple[Tuple[Optional[float], Optional[float]], ...]] = None
    variable_names: Tuple[str, ...] = ()
    constraint_names: Tuple[str, ...] = ()


DEFAULT_SCENARIOS: Tuple[Scenario, ...] = (
    Scenario("optimistic", 0.25, 0.15, 0.02),
    Scenario("realistic", 0.50, 0.08, 0.01),
    Scenario("pessimistic", 0.25, -0.05, -0.02),
)


@dataclass(frozen=True)
class AnalysisOptions:
    discount_rate: float = 0.10
    terminal_growth: float = 0.02
    tax_rate: float = 0.25
    forecast_years: int = 5
    risk_free_rate: float = 0.03
    market_return: float = 0.09
    inflation: float = 0.02
    confidence: float = 0.95
    iterations: int = 10_000
    seed: int = 42
    required_payback_years: float = 3.0
    project: Optional[ProjectInputs] = None
    alternatives: Tuple[ProjectInputs, ...] = ()
    scenarios: Tuple[Scenario, ...] = DEFAULT_SCENARIOS
    distributions: Mapping[str, DistributionSpec] = field(default_factory=dict)
    lp_problem: Optional[LPProblem] = None
    budget: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "distributions", readonly(self.distributions))


# ─── Category Results ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CategoryResult:
    value: Optional[float]
    interpretation: LocalizedText
    metrics: Dict[str, Any] = field(default_factory=dict)
    series: Dict[int, float] = field(default_factory=dict)
    benchmark: Optional[float] = None
    recommendations: Tuple[LocalizedText, ...] = ()
    flags: Tuple[str, ...] = ()
    chart_hint: Optional[str] = None

    kind: ClassVar[str] = "generic"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind
        return d


@dataclass(frozen=True)
class StructuralResult(CategoryResult):
    breakdown: Dict[str, Dict[int, float]] = field(default_factory=dict)
    kind: ClassVar[str] = "structural"


@dataclass(frozen=True)
class RatioResult(CategoryResult):
    unit: str = "ratio"
    numerator: Optional[float] = None
    denominator: Optional[float] = None
    peer_rank: Optional[int] = None
    peer_percentile: Optional[float] = None
    kind: ClassVar[str] = "ratio"


@dataclass(frozen=True)
class CashFlowResult(CategoryResult):
    unit: str = "currency"
    kind: ClassVar[str] = "cash_flow"


@dataclass(frozen=True)
class ComparativeResult(CategoryResult):
    percentile_rank: Optional[float] = None
    gap: Optional[float] = None
    z_score: Optional[float] = None
    peer_count: int = 0
    kind: ClassVar[str] = "comparative"


@dataclass(frozen=True)
class ValuationResult(CategoryResult):
    decision: Optional[Literal["accept", "reject"]] = None
    irr_status: Optional[Literal["unique", "multiple", "none"]] = None
    kind: ClassVar[str] = "valuation"


@dataclass(frozen=True)
class PerformanceResult(CategoryResult):
    components: Dict[str, float] = field(default_factory=dict)
    kind: ClassVar[str] = "performance"


@dataclass(frozen=True)
class SimulationResult(CategoryResult):
    percentiles: Dict[int, float] = field(default_factory=dict)
    var: Optional[float] = None
    cvar: Optional[float] = None
    probability_of_loss: Optional[float] = None
    iterations: int = 0
    seed: Optional[int] = None
    kind: ClassVar[str] = "simulation"


@dataclass(frozen=True)
class OptimizationResult(CategoryResult):
    solution: Dict[str, float] = field(default_factory=dict)
    objective_value: Optional[float] = None
    shadow_prices: Dict[str, float] = field(default_factory=dict)
    status: str = "optimal"
    kind: ClassVar[str] = "optimization"


@dataclass(frozen=True)
class StatisticalResult(CategoryResult):
    coefficients: Dict[str, float] = field(default_factory=dict)
    r_squared: Optional[float] = None
    n_observations: int = 0
    kind: ClassVar[str] = "statistical"


@dataclass(frozen=True)
class RiskResult(CategoryResult):
    level: Optional[Literal["low", "medium", "high"]] = None
    exposure: Optional[float] = None
    kind: ClassVar[str] = "risk"


@dataclass(frozen=True)
class DetectionResult(CategoryResult):
    flagged: bool = False
    score: Optional[float] = None
    threshold: Optional[float] = None
    rating: Optional[str] = None
    default_probability: Optional[float] = None
    kind: ClassVar[str] = "detection"


# ─── Analysis Results & Report ────────────────────────────────────────────────

@dataclass(frozen=True)
class Evaluation:
    code: EvaluationCode
    label: LocalizedText

    @property
    def favorable(self) -> bool:
        return self.code == "good"


@dataclass(frozen=True)
class AnalysisResult:
    id: str
    name: LocalizedText
    category: str
    value: Optional[float]
    benchmark: Optional[float]
    evaluation: Evaluation
    status: Status
    reason: Optional[str] = None
    interpretation: Optional[LocalizedText] = None
    recommendations: Tuple[LocalizedText, ...] = ()
    details: Optional[CategoryResult] = None
    chart_hint: Optional[str] = None

    def metric(self, key: str, default: Any = None) -> Any:
        if self.details is None:
            return default
        return self.details.metrics.get(key, default)


@dataclass(frozen=True)
class SummaryRow:
    index: int
    id: str
    name: LocalizedText
    value: Optional[float]
    benchmark: Optional[float]
    evaluation: LocalizedText


@dataclass(frozen=True)
class Swot:
    strengths: Tuple[LocalizedText, ...] = ()
    weaknesses: Tuple[LocalizedText, ...] = ()
    opportunities: Tuple[LocalizedText, ...] = ()
    threats: Tuple[LocalizedText, ...] = ()


@dataclass(frozen=True)
class ExecutiveSummary:
    results_table: Tuple[SummaryRow, ...]
    favorable: Tuple[str, ...]
    unfavorable: Tuple[str, ...]
    swot: Swot = field(default_factory=Swot)
    risks: Tuple[LocalizedText, ...] = ()
    forecasts: Tuple[LocalizedText, ...] = ()
    recommendations: Tuple[LocalizedText, ...] = ()


@dataclass
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    corrections: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisReport:
    company: str
    language: Language
    analysis_type: AnalysisType
    analyses: Tuple[AnalysisResult, ...]
    benchmarks: BenchmarkSet
    executive_summary: ExecutiveSummary
    validation: ValidationReport
    cancelled: bool = False
    catalog_version: str = ""

    def get(self, analysis_id: str) -> Optional[AnalysisResult]:
        for r in self.analyses:
            if r.id == analysis_id:
                return r
        return None

    def to_dict(self, language: Optional[str] = None) -> Dict[str, Any]:
        """JSON-ready view with strings resolved to ``language`` (defaults to the report's)."""
        lang = language or self.language

        def _t(text: Optional[LocalizedText]) -> Optional[str]:
            return text.resolve(lang) if text is not None else None

        summary = self.executive_summary
        return {
            "company": self.company,
            "language": lang,
            "analysis_type": self.analysis_type,
            "catalog_version": self.catalog_version,
            "cancelled": self.cancelled,
            "validation": asdict(self.validation),
            "analyses": [
                {
                    "id": r.id,
                    "name": _t(r.name),
                    "category": r.category,
                    "value": r.value,
                    "benchmark": r.benchmark,
                    "evaluation": _t(r.evaluation.label),
                    "evaluation_code": r.evaluation.code,
                    "status": r.status,
                    "reason": r.reason,
                    "interpretation": _t(r.interpretation),
                    "recommendations": [_t(x) for x in r.recommendations],
                    "chart_hint": r.chart_hint,
                    "details": r.details.to_dict() if r.details is not None else None,
                }
                for r in self.analyses
            ],
            "executive_summary": {
                "results_table": [
                    {
                        "index": row.index,
                        "name": _t(row.name),
                        "value": row.value,
                        "benchmark": row.benchmark,
                        "evaluation": _t(row.evaluation),
                    }
                    for row in summary.results_table
                ],
                "favorable": list(summary.favorable),
                "unfavorable": list(summary.unfavorable),
                "swot": {
                    "strengths": [_t(x) for x in summary.swot.strengths],
                    "weaknesses": [_t(x) for x in summary.swot.weaknesses],
                    "opportunities": [_t(x) for x in summary.swot.opportunities],
                    "threats": [_t(x) for x in summary.swot.threats],
                },
                "risks": [_t(x) for x in summary.risks],
                "forecasts": [_t(x) for x in summary.forecasts],
                "recommendations": [_t(x) for x in summary.recommendations],
            },
        }
