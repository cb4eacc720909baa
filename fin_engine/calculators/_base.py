"""
fin_engine/calculators/_base.py
===============================
Statement access helpers and shared derivations for the category calculators.

Every calculator has the signature::

    (statements, benchmarks, options) -> CategoryResult

where ``statements`` is the year-ascending tuple from ``CompanyContext``.
Missing required line items raise ``InputDataError``.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import CalculationError, InputDataError
from ..finance import project_cash_flows
from ..mathutils import cagr, clamp, safe_div
from ..quant import beta as quant_beta
from ..types import (
    AnalysisOptions, BenchmarkSet, CategoryResult, FinancialStatement, ProjectInputs,
)

Statements = Tuple[FinancialStatement, ...]
Calculator = Callable[[Statements, BenchmarkSet, AnalysisOptions], CategoryResult]
Getter = Callable[[FinancialStatement], Optional[float]]


# ─── Access ───────────────────────────────────────────────────────────────────

def latest(statements: Statements) -> FinancialStatement:
    if not statements:
        raise InputDataError("statements", "no fiscal years supplied")
    return statements[-1]


def previous(statements: Statements) -> FinancialStatement:
    if len(statements) < 2:
        raise InputDataError("statements", "at least two fiscal years required")
    return statements[-2]


def require_years(statements: Statements, n: int) -> None:
    if len(statements) < n:
        raise InputDataError("statements", f"at least {n} fiscal years required, got {len(statements)}")


def require(value: Optional[float], field: str) -> float:
    if value is None:
        raise InputDataError(field)
    return float(value)


def require_nonzero(value: Optional[float], field: str) -> float:
    v = require(value, field)
    if v == 0:
        raise InputDataError(field, "zero")
    return v


def val(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def series(statements: Statements, getter: Getter) -> Dict[int, float]:
    out: Dict[int, float] = {}
    for s in statements:
        v = getter(s)
        if v is not None:
            out[s.year] = float(v)
    return out


def values(statements: Statements, getter: Getter, field: str, min_points: int = 1) -> List[float]:
    vals = list(series(statements, getter).values())
    if len(vals) < min_points:
        raise InputDataError(field, f"needs {min_points} years of data, got {len(vals)}")
    return vals


# ─── Common getters ───────────────────────────────────────────────────────────

def revenue(s: FinancialStatement) -> Optional[float]:
    return s.inc.revenue


def net_income(s: FinancialStatement) -> Optional[float]:
    return s.inc.net_income


def total_assets(s: FinancialStatement) -> Optional[float]:
    return s.bs.total_assets


def total_equity(s: FinancialStatement) -> Optional[float]:
    return s.bs.total_equity


def operating_cash_flow(s: FinancialStatement) -> Optional[float]:
    return s.cf.operating_cash_flow


def operating_income(s: FinancialStatement) -> Optional[float]:
    return s.inc.operating_income


def total_costs(s: FinancialStatement) -> Optional[float]:
    if s.inc.cogs is None and s.inc.operating_expenses is None:
        return None
    return val(s.inc.cogs) + val(s.inc.operating_expenses)


def net_margin_pct(s: FinancialStatement) -> Optional[float]:
    r = safe_div(s.inc.net_income, s.inc.revenue)
    return r * 100 if r is not None else None


# ─── Derived quantities ───────────────────────────────────────────────────────

def invested_capital(s: FinancialStatement) -> float:
    return val(s.bs.total_equity) + s.bs.total_debt


def nopat(s: FinancialStatement, tax_rate: float) -> float:
    return require(s.inc.operating_income, "income_statement.operating_income") * (1 - tax_rate)


def interest_rate_on_debt(s: FinancialStatement, default: float = 0.06) -> float:
    r = safe_div(s.inc.interest_expense, s.bs.total_debt)
    return r if r is not None and 0 < r < 0.5 else default


def market_cap(s: FinancialStatement) -> Optional[float]:
    m = s.market
    if m.share_price is None or not m.shares_outstanding:
        return None
    return m.share_price * m.shares_outstanding


def revenue_growth(statements: Statements, lo: float = 0.0, hi: float = 0.15) -> float:
    """Revenue CAGR clamped to [lo, hi]; 0 if undefined."""
    rev = series(statements, revenue)
    if len(rev) < 2:
        return lo
    years = sorted(rev)
    g = cagr(rev[years[0]], rev[years[-1]], years[-1] - years[0])
    return clamp(g, lo, hi) if g is not None else lo


def company_returns(statements: Statements) -> Dict[int, float]:
    """
    Annual shareholder returns: price change plus dividend yield where share
    prices exist for consecutive years, otherwise growth in book equity plus
    dividends paid (a book-value total return).
    """
    out: Dict[int, float] = {}
    for prev, cur in zip(statements, statements[1:]):
        p0, p1 = prev.market.share_price, cur.market.share_price
        shares = cur.market.shares_outstanding
        if p0 and p1 is not None:
            dps = safe_div(cur.inc.dividends, shares) or 0.0
            out[cur.year] = (p1 + dps - p0) / p0
            continue
        e0, e1 = prev.bs.total_equity, cur.bs.total_equity
        if e0 and e1 is not None and e0 > 0:
            out[cur.year] = (e1 + val(cur.inc.dividends) - e0) / e0
    return out


def market_returns(benchmarks: BenchmarkSet) -> Dict[int, float]:
    idx = benchmarks.historical_index
    years = sorted(idx)
    return {y: (idx[y] - idx[p]) / idx[p] for p, y in zip(years, years[1:]) if idx[p]}


def aligned_returns(statements: Statements, benchmarks: BenchmarkSet,
                    min_points: int = 2) -> Tuple[List[float], List[float]]:
    comp = company_returns(statements)
    mkt = market_returns(benchmarks)
    years = sorted(set(comp) & set(mkt))
    if len(years) < min_points:
        raise InputDataError("benchmarks.historical_index",
                             f"needs {min_points} overlapping return years, got {len(years)}")
    return [comp[y] for y in years], [mkt[y] for y in years]


def estimated_beta(statements: Statements, benchmarks: BenchmarkSet) -> Tuple[float, bool]:
    """(beta, estimated); falls back to the industry beta (or 1.0) when returns don't overlap."""
    try:
        comp, mkt = aligned_returns(statements, benchmarks, 3)
        b = quant_beta(comp, mkt)
        if b is not None:
            return b, True
    except InputDataError:
        pass
    return benchmarks.get("risk.beta") or 1.0, False


def default_project(statements: Statements, options: AnalysisOptions) -> ProjectInputs:
    """
    The project appraised by valuation / modeling analyses when none is given:
    reinvesting the latest invested capital for ``forecast_years`` of free cash
    flow grown at the (clamped) historical revenue CAGR.
    """
    if options.project is not None:
        return options.project
    s = latest(statements)
    fcf = s.cf.free_cash_flow
    if fcf is None:
        raise InputDataError("cash_flow.operating_cash_flow")
    capital = invested_capital(s)
    if capital <= 0:
        raise InputDataError("balance_sheet.total_equity", "no positive invested capital")
    flows = project_cash_flows(fcf, revenue_growth(statements), options.forecast_years)
    return ProjectInputs(initial_investment=capital, cash_flows=tuple(flows), name="reinvestment")


def project_rate(project: ProjectInputs, options: AnalysisOptions) -> float:
    return project.discount_rate if project.discount_rate is not None else options.discount_rate


def check_finite(analysis_id: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        raise CalculationError(analysis_id, "non-finite result")
    return value


def level(value: float, low: float, high: float, higher_is_riskier: bool = True) -> str:
    """Bucket ``value`` into low / medium / high risk."""
    if not higher_is_riskier:
        value, low, high = -value, -high, -low
    if value < low:
        return "low"
    if value < high:
        return "medium"
    return "high"


def ratio_vector(s: FinancialStatement) -> List[float]:
    """Per-year profile used by the multivariate and clustering analyses."""
    return [
        val(safe_div(s.inc.net_income, s.inc.revenue)),
        val(safe_div(s.inc.revenue, s.bs.total_assets)),
        val(safe_div(s.bs.total_liabilities, s.bs.total_equity)),
        val(safe_div(s.bs.total_current_assets, s.bs.total_current_liabilities)),
        val(safe_div(s.cf.operating_cash_flow, s.bs.total_assets)),
    ]


RATIO_VECTOR_NAMES: Tuple[str, ...] = (
    "net_margin", "asset_turnover", "leverage", "current_ratio", "cash_return_on_assets",
)


# ─── Distress scores ──────────────────────────────────────────────────────────

ALTMAN_DISTRESS = 1.81
ALTMAN_SAFE = 2.99


def altman_components(s: FinancialStatement) -> Dict[str, float]:
    ta = require_nonzero(s.bs.total_assets, "balance_sheet.total_assets")
    tl = require_nonzero(s.bs.total_liabilities, "balance_sheet.total_liabilities")
    wc = s.bs.working_capital
    if wc is None:
        raise InputDataError("balance_sheet.total_current_assets")
    equity_value = market_cap(s) or val(s.bs.total_equity)
    return {
        "working_capital_to_assets": wc / ta,
        "retained_earnings_to_assets": val(s.bs.retained_earnings) / ta,
        "ebit_to_assets": require(s.inc.operating_income, "income_statement.operating_income") / ta,
        "equity_to_liabilities": equity_value / tl,
        "sales_to_assets": val(s.inc.revenue) / ta,
    }


_ALTMAN_WEIGHTS = (1.2, 1.4, 3.3, 0.6, 1.0)


def altman_z(s: FinancialStatement) -> float:
    """Altman Z (1968 manufacturing model); book equity stands in for market value when no price is known."""
    parts = altman_components(s)
    return sum(w * v for w, v in zip(_ALTMAN_WEIGHTS, parts.values()))
