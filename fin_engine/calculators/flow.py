"""
fin_engine/calculators/flow.py
==============================
Cash flow, working capital and cost-behaviour analyses.

Fixed / variable cost split:
  - two or more years: high-low method on total costs vs revenue
    (variable rate = Δcost / Δrevenue, accepted when 0 < rate < 1)
  - otherwise 30% fixed / 70% variable of COGS + operating expenses
"""
from __future__ import annotations
from typing import Dict, Tuple

from ..errors import CalculationError, InputDataError
from ..finance import cash_conversion_cycle
from ..formatting import format_compact, format_percent, txt
from ..mathutils import percentage, ratio, safe_div
from ..types import AnalysisOptions, BenchmarkSet, CashFlowResult
from ._base import Statements, latest, previous, require, require_nonzero, series, total_costs, val

DEFAULT_FIXED_SHARE = 0.30


def cost_split(statements: Statements) -> Dict[str, float]:
    """Fixed costs, variable cost rate (per unit of revenue) and the method used."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    costs = total_costs(s)
    if costs is None:
        raise InputDataError("income_statement.cogs")

    pts = sorted(((st.inc.revenue, total_costs(st)) for st in statements
                  if st.inc.revenue and total_costs(st) is not None), key=lambda p: p[0])
    if len(pts) >= 2 and pts[-1][0] != pts[0][0]:
        rate = (pts[-1][1] - pts[0][1]) / (pts[-1][0] - pts[0][0])
        if 0 < rate < 1:
            fixed = costs - rate * rev
            if fixed >= 0:
                return {"fixed": fixed, "variable_rate": rate, "variable": rate * rev, "method": "high_low"}
    fixed = costs * DEFAULT_FIXED_SHARE
    variable = costs - fixed
    return {"fixed": fixed, "variable_rate": variable / rev, "variable": variable, "method": "default_split"}


def _break_even(statements: Statements) -> Tuple[float, Dict[str, float]]:
    split = cost_split(statements)
    cm_ratio = 1 - split["variable_rate"]
    if cm_ratio <= 0:
        raise CalculationError("flow.break_even", "non-positive contribution margin")
    return split["fixed"] / cm_ratio, split


def _estimated_flags(split: Dict[str, float]) -> Tuple[str, ...]:
    return ("estimated_cost_split",) if split["method"] == "default_split" else ()


# ─── Calculators ──────────────────────────────────────────────────────────────

def cash_basic(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> CashFlowResult:
    """Cash quality: operating cash flow relative to net income."""
    s = latest(statements)
    ocf = require(s.cf.operating_cash_flow, "cash_flow.operating_cash_flow")
    ni = require(s.inc.net_income, "income_statement.net_income")
    value = ratio(ocf, ni)
    return CashFlowResult(
        value=value,
        unit="ratio",
        series=series(statements, lambda st: ratio(st.cf.operating_cash_flow, st.inc.net_income)
                      if st.cf.operating_cash_flow is not None else None),
        metrics={"operating": ocf, "investing": s.cf.investing_cash_flow,
                 "financing": s.cf.financing_cash_flow, "net_change": s.cf.net_change_in_cash},
        interpretation=txt(
            f"Operating cash flow is {value:.2f}x net income"
            + ("; earnings are well backed by cash." if value >= 1 else "; earnings run ahead of cash."),
            f"يبلغ التدفق النقدي التشغيلي {value:.2f} مرة من صافي الربح"
            + ("، والأرباح مدعومة نقدياً." if value >= 1 else "، والأرباح تسبق التدفقات النقدية."),
        ),
        chart_hint="waterfall",
    )


def working_capital(statements: Statements, benchmarks: BenchmarkSet,
                    options: AnalysisOptions) -> CashFlowResult:
    s = latest(statements)
    wc = require(s.bs.working_capital, "balance_sheet.total_current_assets")
    hist = series(statements, lambda st: st.bs.working_capital)
    change = None
    if len(statements) >= 2 and previous(statements).bs.working_capital is not None:
        change = wc - previous(statements).bs.working_capital
    rev = s.inc.revenue
    return CashFlowResult(
        value=round(wc, 2),
        series=hist,
        metrics={"change": change, "working_capital_to_revenue": percentage(wc, rev)},
        interpretation=txt(
            f"Net working capital is {format_compact(wc)} ({format_percent(percentage(wc, rev))} of revenue).",
            f"يبلغ صافي رأس المال العامل {format_compact(wc)} ({format_percent(percentage(wc, rev))} من الإيرادات).",
        ),
        recommendations=(
            txt("Negative working capital: secure short-term funding lines.",
                "رأس المال العامل سالب: يُنصح بتأمين خطوط تمويل قصيرة الأجل."),
        ) if wc < 0 else (),
        chart_hint="bar",
    )


def cash_cycle(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> CashFlowResult:
    """DIO + DSO - DPO, components kept to one decimal."""
    s = latest(statements)
    c = cash_conversion_cycle(
        val(s.bs.inventory), require_nonzero(s.inc.cogs, "income_statement.cogs"),
        val(s.bs.receivables), require_nonzero(s.inc.revenue, "income_statement.revenue"),
        val(s.bs.payables),
    )
    comps = {k: round(v, 1) for k, v in c.items()}
    return CashFlowResult(
        value=comps["ccc"],
        unit="days",
        metrics=comps,
        interpretation=txt(
            f"Cash is tied up for {comps['ccc']:.1f} days (inventory {comps['dio']:.1f} + receivables "
            f"{comps['dso']:.1f} - payables {comps['dpo']:.1f}).",
            f"تبقى النقدية محتجزة لمدة {comps['ccc']:.1f} يوم (المخزون {comps['dio']:.1f} + الذمم المدينة "
            f"{comps['dso']:.1f} - الذمم الدائنة {comps['dpo']:.1f}).",
        ),
        chart_hint="bar",
    )


def break_even(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> CashFlowResult:
    be, split = _break_even(statements)
    rev = latest(statements).inc.revenue
    return CashFlowResult(
        value=round(be, 2),
        benchmark=rev,
        metrics={**split, "break_even_to_revenue": percentage(be, rev)},
        flags=_estimated_flags(split),
        interpretation=txt(
            f"Break-even revenue is {format_compact(be)}, {format_percent(percentage(be, rev))} of current revenue.",
            f"إيراد التعادل {format_compact(be)}، أي {format_percent(percentage(be, rev))} من الإيراد الحالي.",
        ),
        chart_hint="line",
    )


def margin_of_safety(statements: Statements, benchmarks: BenchmarkSet,
                     options: AnalysisOptions) -> CashFlowResult:
    be, split = _break_even(statements)
    rev = latest(statements).inc.revenue
    value = percentage(rev - be, rev)
    return CashFlowResult(
        value=value,
        unit="percent",
        metrics={"break_even": round(be, 2), "revenue": rev},
        flags=_estimated_flags(split),
        interpretation=txt(
            f"Revenue can fall {format_percent(value)} before the company reaches break-even.",
            f"يمكن أن ينخفض الإيراد بنسبة {format_percent(value)} قبل الوصول إلى نقطة التعادل.",
        ),
        chart_hint="gauge",
    )


def cost_structure(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> CashFlowResult:
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    parts = {
        "cogs": val(s.inc.cogs),
        "operating_expenses": val(s.inc.operating_expenses),
        "interest": val(s.inc.interest_expense),
        "tax": val(s.inc.tax),
    }
    total = sum(parts.values())
    if total == 0:
        raise InputDataError("income_statement.cogs")
    shares = {k: percentage(v, total) for k, v in parts.items()}
    value = percentage(total, rev)
    return CashFlowResult(
        value=value,
        unit="percent",
        metrics={"shares": shares, "total_costs": total},
        interpretation=txt(
            f"Total costs absorb {format_percent(value)} of revenue; cost of sales is "
            f"{format_percent(shares['cogs'])} of the cost base.",
            f"تستهلك التكاليف الكلية {format_percent(value)} من الإيرادات، وتمثل تكلفة المبيعات "
            f"{format_percent(shares['cogs'])} من هيكل التكاليف.",
        ),
        chart_hint="pie",
    )


def fixed_variable(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> CashFlowResult:
    split = cost_split(statements)
    total = split["fixed"] + split["variable"]
    value = percentage(split["fixed"], total)
    return CashFlowResult(
        value=value,
        unit="percent",
        metrics=split,
        flags=_estimated_flags(split),
        interpretation=txt(
            f"Fixed costs are {format_percent(value)} of total costs ({split['method'].replace('_', ' ')}).",
            f"تمثل التكاليف الثابتة {format_percent(value)} من إجمالي التكاليف.",
        ),
        chart_hint="pie",
    )


def operating_leverage(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> CashFlowResult:
    """Degree of operating leverage = contribution margin / operating income."""
    s = latest(statements)
    split = cost_split(statements)
    ebit = require_nonzero(s.inc.operating_income, "income_statement.operating_income")
    cm = s.inc.revenue - split["variable"]
    value = ratio(cm, ebit)
    return CashFlowResult(
        value=value,
        unit="times",
        metrics={"contribution_margin": cm, "operating_income": ebit},
        flags=_estimated_flags(split),
        interpretation=txt(
            f"A 1% change in revenue moves operating income by about {value:.2f}%.",
            f"يؤدي تغير الإيراد بنسبة 1% إلى تغير الربح التشغيلي بنحو {value:.2f}%.",
        ),
        chart_hint="gauge",
    )


def contribution_margin(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> CashFlowResult:
    s = latest(statements)
    split = cost_split(statements)
    cm = s.inc.revenue - split["variable"]
    value = percentage(cm, s.inc.revenue)
    return CashFlowResult(
        value=value,
        unit="percent",
        metrics={"contribution_margin": cm, "variable_costs": split["variable"]},
        flags=_estimated_flags(split),
        interpretation=txt(
            f"Each unit of revenue contributes {format_percent(value)} towards fixed costs and profit.",
            f"تساهم كل وحدة إيراد بنسبة {format_percent(value)} في تغطية التكاليف الثابتة وتحقيق الربح.",
        ),
        chart_hint="bar",
    )


def free_cash_flow(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> CashFlowResult:
    """FCF = operating cash flow + capex (capex signed negative)."""
    s = latest(statements)
    require(s.cf.operating_cash_flow, "cash_flow.operating_cash_flow")
    fcf = s.cf.free_cash_flow
    hist = series(statements, lambda st: st.cf.free_cash_flow)
    conversion = safe_div(fcf, s.inc.net_income)
    return CashFlowResult(
        value=round(fcf, 2),
        benchmark=0.0,
        series=hist,
        metrics={"operating_cash_flow": s.cf.operating_cash_flow, "capex": val(s.cf.capex),
                 "fcf_conversion": round(conversion, 2) if conversion is not None else None},
        interpretation=txt(
            f"Free cash flow is {format_compact(fcf)} after capital expenditure of {format_compact(abs(val(s.cf.capex)))}.",
            f"يبلغ التدفق النقدي الحر {format_compact(fcf)} بعد نفقات رأسمالية قدرها {format_compact(abs(val(s.cf.capex)))}.",
        ),
        chart_hint="waterfall",
    )


CALCULATORS = {
    "flow.cash_basic": cash_basic,
    "flow.working_capital": working_capital,
    "flow.cash_cycle": cash_cycle,
    "flow.break_even": break_even,
    "flow.margin_of_safety": margin_of_safety,
    "flow.cost_structure": cost_structure,
    "flow.fixed_variable": fixed_variable,
    "flow.operating_leverage": operating_leverage,
    "flow.contribution_margin": contribution_margin,
    "flow.free_cash_flow": free_cash_flow,
}
