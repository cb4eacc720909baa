"""
fin_engine/calculators/performance.py
=====================================
Performance and efficiency: DuPont, productivity, scorecards, variance
decomposition, flexibility and NPV sensitivity.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

from ..errors import InputDataError
from ..finance import npv
from ..formatting import format_compact, format_percent, txt
from ..mathutils import clamp, mean, pct_changes, percentage, ratio, safe_div
from ..types import AnalysisOptions, BenchmarkSet, PerformanceResult
from ._base import (
    Statements, default_project, latest, previous, project_rate, require, require_nonzero,
    revenue, series, val,
)


def _score(value: float, target: float, higher: bool = True) -> float:
    """0-100 attainment of ``target`` (100 at or beyond target)."""
    if target == 0:
        return 100.0 if (value >= 0 if higher else value <= 0) else 0.0
    attainment = value / target if higher else (target / value if value > 0 else 1.0)
    return round(clamp(attainment, 0.0, 1.0) * 100, 2)


def dupont(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> PerformanceResult:
    """ROE = net margin x asset turnover x equity multiplier, with the 5-factor split."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    ni = require(s.inc.net_income, "income_statement.net_income")
    ta = require_nonzero(s.bs.total_assets, "balance_sheet.total_assets")
    te = require_nonzero(s.bs.total_equity, "balance_sheet.total_equity")
    margin, turnover, multiplier = ni / rev, rev / ta, ta / te
    roe = margin * turnover * multiplier * 100
    components = {"net_margin": round(margin * 100, 2), "asset_turnover": round(turnover, 4),
                  "equity_multiplier": round(multiplier, 4)}
    pbt, ebit = s.inc.income_before_tax, s.inc.operating_income
    if pbt and ebit:
        components.update({
            "tax_burden": round(ni / pbt, 4),
            "interest_burden": round(pbt / ebit, 4),
            "operating_margin": round(ebit / rev * 100, 2),
        })
    driver = max(("net_margin", margin * 100 / max(benchmarks.get("profitability.net_margin") or 8.0, 1e-9)),
                 ("asset_turnover", turnover / (benchmarks.get("activity.total_asset_turnover") or 1.0)),
                 ("equity_multiplier", multiplier / 2.5), key=lambda kv: kv[1])[0]
    return PerformanceResult(
        value=round(roe, 2),
        components=components,
        metrics={"main_driver": driver},
        interpretation=txt(
            f"ROE of {format_percent(roe)} = margin {format_percent(margin * 100)} x turnover {turnover:.2f} "
            f"x leverage {multiplier:.2f}; the strongest driver is {driver.replace('_', ' ')}.",
            f"العائد على حقوق الملكية {format_percent(roe)} = الهامش {format_percent(margin * 100)} × الدوران "
            f"{turnover:.2f} × الرافعة {multiplier:.2f}.",
        ),
        chart_hint="tree",
    )


def productivity(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> PerformanceResult:
    """Revenue per employee, or per unit of employee cost when headcount is unknown."""
    s = latest(statements)
    rev = require(s.inc.revenue, "income_statement.revenue")
    if s.market.employees:
        value = rev / s.market.employees
        basis = "employee"
    elif s.inc.employee_costs:
        value = rev / s.inc.employee_costs
        basis = "employee_cost"
    else:
        raise InputDataError("market.employees")
    hist: Dict[int, float] = {}
    for st in statements:
        denom = st.market.employees if basis == "employee" else st.inc.employee_costs
        if st.inc.revenue is not None and denom:
            hist[st.year] = round(st.inc.revenue / denom, 2)
    growth = pct_changes(list(hist.values()))
    return PerformanceResult(
        value=round(value, 2),
        series=hist,
        components={"value_added_per_basis": round(
            (val(s.inc.operating_income) + val(s.inc.employee_costs)) /
            (s.market.employees or s.inc.employee_costs), 2)},
        metrics={"basis": basis, "latest_growth_pct": round(growth[-1] * 100, 2) if growth else None},
        interpretation=txt(
            f"Revenue per {basis.replace('_', ' ')} is {format_compact(value)}.",
            f"الإيراد لكل {'موظف' if basis == 'employee' else 'وحدة من تكلفة العاملين'} يبلغ {format_compact(value)}.",
        ),
        chart_hint="line",
    )


def operational_efficiency(statements: Statements, benchmarks: BenchmarkSet,
                           options: AnalysisOptions) -> PerformanceResult:
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    opex = require(s.inc.operating_expenses, "income_statement.operating_expenses")
    value = percentage(opex, rev)
    hist = {st.year: percentage(st.inc.operating_expenses, st.inc.revenue)
            for st in statements if st.inc.operating_expenses is not None and st.inc.revenue}
    return PerformanceResult(
        value=value,
        series=hist,
        components={"opex_ratio": value, "asset_turnover": ratio(rev, s.bs.total_assets),
                    "cogs_ratio": percentage(s.inc.cogs, rev)},
        interpretation=txt(
            f"Operating expenses absorb {format_percent(value)} of revenue.",
            f"تستهلك المصروفات التشغيلية {format_percent(value)} من الإيرادات.",
        ),
        chart_hint="line",
    )


def value_chain(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> PerformanceResult:
    """Margin retained at each stage from revenue to net income."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    gp = s.inc.gross_profit if s.inc.gross_profit is not None else rev - val(s.inc.cogs)
    stages = {
        "gross": percentage(gp, rev),
        "operating": percentage(s.inc.operating_income, rev),
        "pre_tax": percentage(s.inc.income_before_tax, rev),
        "net": percentage(s.inc.net_income, rev),
    }
    value = percentage(s.inc.net_income, gp)
    return PerformanceResult(
        value=value,
        components=stages,
        interpretation=txt(
            f"{format_percent(value)} of gross profit survives to net income "
            f"(gross {format_percent(stages['gross'])} → net {format_percent(stages['net'])}).",
            f"يتحول {format_percent(value)} من مجمل الربح إلى صافي ربح.",
        ),
        chart_hint="funnel",
    )


def activity_based_cost(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> PerformanceResult:
    """Pareto (A/B/C) classification of the cost pools by size."""
    s = latest(statements)
    pools = {
        "production": val(s.inc.cogs) - val(s.inc.employee_costs) * 0.5,
        "people": val(s.inc.employee_costs),
        "overheads": val(s.inc.operating_expenses) - val(s.inc.employee_costs) * 0.5 - val(s.inc.depreciation),
        "asset_usage": val(s.inc.depreciation),
        "financing": val(s.inc.interest_expense),
    }
    pools = {k: max(v, 0.0) for k, v in pools.items()}
    total = sum(pools.values())
    if total == 0:
        raise InputDataError("income_statement.cogs")
    classes: Dict[str, str] = {}
    cum = 0.0
    for name, amount in sorted(pools.items(), key=lambda kv: kv[1], reverse=True):
        cls = "A" if cum < 0.8 * total else ("B" if cum < 0.95 * total else "C")
        classes[name] = cls
        cum += amount
    value = percentage(sum(pools[n] for n, c in classes.items() if c == "A"), total)
    return PerformanceResult(
        value=value,
        components={k: percentage(v, total) for k, v in pools.items()},
        metrics={"classes": classes},
        flags=("estimated_cost_pools",),
        interpretation=txt(
            f"Class-A cost pools ({', '.join(n for n, c in classes.items() if c == 'A')}) hold "
            f"{format_percent(value)} of costs.",
            f"تستحوذ مجمعات التكلفة من الفئة (أ) على {format_percent(value)} من التكاليف.",
        ),
        chart_hint="pareto",
    )


def balanced_scorecard(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> PerformanceResult:
    """Four perspectives scored 0-100 against industry or default targets."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    roe = percentage(s.inc.net_income, s.bs.total_equity)
    growth = pct_changes(list(series(statements, revenue).values()))
    g = growth[-1] * 100 if growth else 0.0
    om = percentage(s.inc.operating_income, rev)
    learning = 50.0
    if len(statements) >= 2 and previous(statements).inc.employee_costs and s.inc.employee_costs:
        prev = previous(statements)
        p0 = safe_div(prev.inc.revenue, prev.inc.employee_costs) or 0.0
        p1 = rev / s.inc.employee_costs
        learning = _score(p1, p0) if p0 else 50.0
    perspectives = {
        "financial": _score(roe, benchmarks.get("profitability.roe") or 15.0),
        "customer": _score(g, benchmarks.get("growth.revenue") or 5.0),
        "internal_process": _score(om, benchmarks.get("profitability.operating_margin") or 12.0),
        "learning_growth": learning,
    }
    value = round(mean(list(perspectives.values())), 2)
    weakest = min(perspectives, key=perspectives.get)
    return PerformanceResult(
        value=value,
        benchmark=70.0,
        components=perspectives,
        interpretation=txt(
            f"Balanced scorecard averages {value:.0f}/100; the weakest perspective is {weakest.replace('_', ' ')}.",
            f"متوسط بطاقة الأداء المتوازن {value:.0f} من 100.",
        ),
        chart_hint="radar",
    )


def _kpis(statements: Statements, benchmarks: BenchmarkSet) -> List[Tuple[str, float, float, bool]]:
    s = latest(statements)
    items = [
        ("net_margin", percentage(s.inc.net_income, s.inc.revenue),
         benchmarks.get("profitability.net_margin") or 8.0, True),
        ("roe", percentage(s.inc.net_income, s.bs.total_equity), benchmarks.get("profitability.roe") or 15.0, True),
        ("current_ratio", ratio(s.bs.total_current_assets, s.bs.total_current_liabilities),
         benchmarks.get("liquidity.current_ratio") or 1.5, True),
        ("debt_to_equity", percentage(s.bs.total_liabilities, s.bs.total_equity),
         benchmarks.get("leverage.debt_to_equity") or 100.0, False),
        ("asset_turnover", ratio(s.inc.revenue, s.bs.total_assets),
         benchmarks.get("activity.total_asset_turnover") or 1.0, True),
        ("ocf_margin", percentage(s.cf.operating_cash_flow, s.inc.revenue), 10.0, True),
    ]
    return items


def kpi(statements: Statements, benchmarks: BenchmarkSet,
        options: AnalysisOptions) -> PerformanceResult:
    require(latest(statements).inc.revenue, "income_statement.revenue")
    items = _kpis(statements, benchmarks)
    met = {name: (v >= t if hi else v <= t) for name, v, t, hi in items}
    value = percentage(sum(met.values()), len(met))
    return PerformanceResult(
        value=value,
        benchmark=50.0,
        components={name: v for name, v, _, _ in items},
        metrics={"targets": {name: t for name, _, t, _ in items}, "met": met},
        interpretation=txt(
            f"{sum(met.values())} of {len(met)} KPIs are on target.",
            f"{sum(met.values())} من أصل {len(met)} مؤشرات أداء ضمن المستهدف.",
        ),
        chart_hint="table",
    )


def critical_success_factors(statements: Statements, benchmarks: BenchmarkSet,
                             options: AnalysisOptions) -> PerformanceResult:
    """Weighted pass/fail over liquidity, profitability, growth, solvency and cash generation."""
    s = latest(statements)
    require(s.inc.revenue, "income_statement.revenue")
    growth = pct_changes(list(series(statements, revenue).values()))
    factors = {
        "liquidity": (ratio(s.bs.total_current_assets, s.bs.total_current_liabilities) >= 1.0, 0.20),
        "profitability": (val(s.inc.net_income) > 0, 0.25),
        "growth": ((growth[-1] if growth else 0.0) > 0, 0.20),
        "solvency": (percentage(s.bs.total_liabilities, s.bs.total_equity) <= 200, 0.20),
        "cash_generation": (val(s.cf.operating_cash_flow) > 0, 0.15),
    }
    value = round(sum(w for ok, w in factors.values() if ok) * 100, 2)
    failed = [k for k, (ok, _) in factors.items() if not ok]
    return PerformanceResult(
        value=value,
        benchmark=80.0,
        components={k: (100.0 if ok else 0.0) for k, (ok, _) in factors.items()},
        metrics={"failed": failed},
        interpretation=txt(
            f"Critical success factor score is {value:.0f}/100"
            + (f"; failing: {', '.join(failed)}." if failed else "; all factors met."),
            f"درجة عوامل النجاح الحرجة {value:.0f} من 100.",
        ),
        chart_hint="table",
    )


def advanced_variance(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> PerformanceResult:
    """Gross profit change split into volume (revenue) and margin (rate) effects."""
    cur, prev = latest(statements), previous(statements)
    r1 = require(cur.inc.revenue, "income_statement.revenue")
    r0 = require(prev.inc.revenue, "income_statement.revenue")
    gp1 = cur.inc.gross_profit if cur.inc.gross_profit is not None else r1 - val(cur.inc.cogs)
    gp0 = prev.inc.gross_profit if prev.inc.gross_profit is not None else r0 - val(prev.inc.cogs)
    m0 = gp0 / r0 if r0 else 0.0
    m1 = gp1 / r1 if r1 else 0.0
    volume = (r1 - r0) * m0
    rate = (m1 - m0) * r1
    value = gp1 - gp0
    return PerformanceResult(
        value=round(value, 2),
        components={"volume_effect": round(volume, 2), "margin_effect": round(rate, 2)},
        interpretation=txt(
            f"Gross profit moved {format_compact(value)}: volume {format_compact(volume)}, margin {format_compact(rate)}.",
            f"تغير مجمل الربح بمقدار {format_compact(value)}: أثر الحجم {format_compact(volume)} وأثر الهامش {format_compact(rate)}.",
        ),
        chart_hint="waterfall",
    )


def budget_deviation(statements: Statements, benchmarks: BenchmarkSet,
                     options: AnalysisOptions) -> PerformanceResult:
    """Actual net income against a budget of prior-year income grown at the historical revenue rate."""
    cur, prev = latest(statements), previous(statements)
    ni1 = require(cur.inc.net_income, "income_statement.net_income")
    ni0 = require(prev.inc.net_income, "income_statement.net_income")
    hist = pct_changes(list(series(statements[:-1], revenue).values()))
    g = mean(hist) if hist else options.inflation
    budget = ni0 * (1 + g)
    value = round((ni1 - budget) / abs(budget) * 100, 2) if budget else 0.0
    return PerformanceResult(
        value=value,
        benchmark=0.0,
        components={"actual": ni1, "budget": round(budget, 2), "budget_growth": round(g * 100, 2)},
        interpretation=txt(
            f"Net income deviates {value:+.2f}% from the growth-based budget.",
            f"ينحرف صافي الربح بنسبة {value:+.2f}% عن الموازنة المبنية على النمو.",
        ),
        chart_hint="bar",
    )


def financial_flexibility(statements: Statements, benchmarks: BenchmarkSet,
                          options: AnalysisOptions) -> PerformanceResult:
    """(Cash + operating cash flow) / current liabilities."""
    s = latest(statements)
    cl = require_nonzero(s.bs.total_current_liabilities, "balance_sheet.total_current_liabilities")
    value = ratio(s.bs.cash_and_equivalents + val(s.cf.operating_cash_flow), cl)
    headroom = max(0.0, 3.0 * val(s.inc.ebitda) - s.bs.total_debt)
    return PerformanceResult(
        value=value,
        benchmark=1.0,
        components={"cash": s.bs.cash_and_equivalents, "operating_cash_flow": val(s.cf.operating_cash_flow),
                    "debt_headroom_at_3x_ebitda": round(headroom, 2)},
        interpretation=txt(
            f"Liquid resources cover current obligations {value:.2f}x; unused debt capacity is about "
            f"{format_compact(headroom)}.",
            f"تغطي الموارد السائلة الالتزامات الجارية {value:.2f} مرة، والطاقة الاقتراضية غير المستغلة نحو "
            f"{format_compact(headroom)}.",
        ),
        chart_hint="gauge",
    )


def sensitivity(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> PerformanceResult:
    """NPV swing for ±10% moves in cash flows, investment and discount rate (tornado)."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    base = npv(rate, project.initial_investment, project.cash_flows)
    shocks = {
        "cash_flows": (npv(rate, project.initial_investment, [c * 0.9 for c in project.cash_flows]),
                       npv(rate, project.initial_investment, [c * 1.1 for c in project.cash_flows])),
        "investment": (npv(rate, project.initial_investment * 1.1, project.cash_flows),
                       npv(rate, project.initial_investment * 0.9, project.cash_flows)),
        "discount_rate": (npv(rate * 1.1, project.initial_investment, project.cash_flows),
                          npv(rate * 0.9, project.initial_investment, project.cash_flows)),
    }
    swings = {k: round(hi - lo, 2) for k, (lo, hi) in shocks.items()}
    top = max(swings, key=lambda k: abs(swings[k]))
    scale = abs(base) if base else project.initial_investment or 1.0
    value = round(abs(swings[top]) / scale * 100, 2)
    return PerformanceResult(
        value=value,
        components=swings,
        metrics={"base_npv": round(base, 2), "most_sensitive": top},
        interpretation=txt(
            f"NPV is most sensitive to {top.replace('_', ' ')}: a ±10% move swings it by {format_compact(swings[top])}.",
            f"صافي القيمة الحالية أكثر حساسية لـ {top}: تغير ±10% يحركها بمقدار {format_compact(swings[top])}.",
        ),
        chart_hint="tornado",
    )


CALCULATORS = {
    "perf.dupont": dupont,
    "perf.productivity": productivity,
    "perf.operational_efficiency": operational_efficiency,
    "perf.value_chain": value_chain,
    "perf.abc": activity_based_cost,
    "perf.balanced_scorecard": balanced_scorecard,
    "perf.kpi": kpi,
    "perf.csf": critical_success_factors,
    "perf.advanced_variance": advanced_variance,
    "perf.variance_deviation": budget_deviation,
    "perf.flexibility": financial_flexibility,
    "perf.sensitivity": sensitivity,
}
