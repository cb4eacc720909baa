"""
fin_engine/calculators/valuation.py
===================================
Valuation and investment appraisal.

The appraised project is ``options.project`` or, when none is supplied, the
reinvestment project built by ``_base.default_project``. Analyses with a
natural hurdle carry it as their intrinsic benchmark:
  - NPV >= 0, IRR >= discount rate, payback <= required payback
  - benefit-cost >= 1, EVA / MVA >= 0
  - per-share values against the market price when one is known
"""
from __future__ import annotations
import logging
from typing import Dict, List

from ..errors import CalculationError, InputDataError
from ..finance import (
    annuity_fv, annuity_pv, dcf, discounted_payback, gordon_growth, irr, mirr, npv,
    payback_period, profitability_index, project_cash_flows, two_stage_ddm,
)
from ..formatting import format_compact, format_percent, txt
from ..mathutils import cagr, clamp, mean, percentage, safe_div
from ..types import AnalysisOptions, BenchmarkSet, ProjectInputs, ValuationResult
from ._base import (
    Statements, default_project, invested_capital, latest, market_cap, nopat, project_rate,
    require, require_nonzero, revenue_growth, series, val,
)

logger = logging.getLogger(__name__)

_ACCEPT = txt("Accept: the project clears its hurdle.", "قبول: المشروع يتجاوز معدل العائد المطلوب.")
_REJECT = txt("Reject: the project does not clear its hurdle.", "رفض: المشروع لا يحقق معدل العائد المطلوب.")


def _decision(ok: bool) -> str:
    return "accept" if ok else "reject"


def _project_metrics(project: ProjectInputs, rate: float) -> Dict[str, object]:
    return {"project": project.name, "initial_investment": project.initial_investment,
            "cash_flows": list(project.cash_flows), "discount_rate": rate}


def _dividend_per_share(statements: Statements) -> Dict[int, float]:
    out = {}
    for s in statements:
        shares = s.market.shares_outstanding
        div = s.inc.dividends if s.inc.dividends is not None else (
            abs(s.cf.dividends_paid) if s.cf.dividends_paid is not None else None)
        if div and shares:
            out[s.year] = div / shares
    return out


def _cost_of_equity(options: AnalysisOptions, benchmarks: BenchmarkSet) -> float:
    beta = benchmarks.get("risk.beta") or 1.0
    return options.risk_free_rate + beta * (options.market_return - options.risk_free_rate)


def _company_dcf(statements: Statements, options: AnalysisOptions):
    s = latest(statements)
    fcf = s.cf.free_cash_flow
    if fcf is None:
        raise InputDataError("cash_flow.operating_cash_flow")
    flows = project_cash_flows(fcf, revenue_growth(statements), options.forecast_years)
    result = dcf(flows, options.discount_rate, options.terminal_growth,
                 debt=s.bs.total_debt, cash=s.bs.cash_and_equivalents,
                 shares=s.market.shares_outstanding)
    if not result.valid:
        raise CalculationError("val.dcf", "discount rate must exceed terminal growth")
    return result


# ─── Calculators ──────────────────────────────────────────────────────────────

def time_value(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> ValuationResult:
    """Present and future value of the latest free cash flow held level over the horizon."""
    fcf = latest(statements).cf.free_cash_flow
    if fcf is None:
        raise InputDataError("cash_flow.operating_cash_flow")
    n, r = options.forecast_years, options.discount_rate
    pv = annuity_pv(fcf, r, n)
    fv = annuity_fv(fcf, r, n)
    real_rate = (1 + r) / (1 + options.inflation) - 1
    return ValuationResult(
        value=round(pv, 2),
        metrics={"future_value": round(fv, 2), "annual_cash_flow": fcf, "periods": n, "rate": r,
                 "real_rate": round(real_rate, 4), "pv_real": round(annuity_pv(fcf, real_rate, n), 2)},
        interpretation=txt(
            f"{n} years of free cash flow at {format_compact(fcf)} are worth {format_compact(pv)} today "
            f"and {format_compact(fv)} at the end of the horizon.",
            f"تعادل التدفقات النقدية الحرة لمدة {n} سنوات بقيمة {format_compact(fcf)} مبلغ {format_compact(pv)} اليوم "
            f"و{format_compact(fv)} في نهاية الفترة.",
        ),
        chart_hint="bar",
    )


def net_present_value(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> ValuationResult:
    project = default_project(statements, options)
    rate = project_rate(project, options)
    value = npv(rate, project.initial_investment, project.cash_flows)
    ok = value >= 0
    return ValuationResult(
        value=round(value, 2),
        benchmark=0.0,
        decision=_decision(ok),
        metrics={**_project_metrics(project, rate),
                 "profitability_index": profitability_index(rate, project.initial_investment, project.cash_flows)},
        interpretation=txt(
            f"NPV at {format_percent(rate * 100)} is {format_compact(value)}. " + (_ACCEPT.en if ok else _REJECT.en),
            f"صافي القيمة الحالية بمعدل {format_percent(rate * 100)} يساوي {format_compact(value)}. "
            + (_ACCEPT.ar if ok else _REJECT.ar),
        ),
        chart_hint="bar",
    )


def internal_rate_of_return(statements: Statements, benchmarks: BenchmarkSet,
                            options: AnalysisOptions) -> ValuationResult:
    project = default_project(statements, options)
    rate = project_rate(project, options)
    res = irr(project.initial_investment, project.cash_flows)
    if res.rate is None:
        raise CalculationError("val.irr", "no IRR in [-99%, 1000%]")
    value = round(res.rate * 100, 2)
    ok = res.rate >= rate
    flags = ("multiple_irr",) if res.status == "multiple" else ()
    return ValuationResult(
        value=value,
        benchmark=round(rate * 100, 2),
        decision=_decision(ok),
        irr_status=res.status,
        flags=flags,
        metrics={**_project_metrics(project, rate), "roots": [round(r * 100, 4) for r in res.roots]},
        interpretation=txt(
            f"IRR is {format_percent(value)} against a {format_percent(rate * 100)} hurdle"
            + (" (multiple IRRs: cash flows change sign more than once)." if flags else "."),
            f"معدل العائد الداخلي {format_percent(value)} مقابل معدل مطلوب {format_percent(rate * 100)}"
            + (" (توجد عدة معدلات لتغير إشارة التدفقات أكثر من مرة)." if flags else "."),
        ),
        chart_hint="line",
    )


def payback(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> ValuationResult:
    project = default_project(statements, options)
    rate = project_rate(project, options)
    simple = payback_period(project.initial_investment, project.cash_flows)
    if simple is None:
        raise CalculationError("val.payback", "investment not recovered within the horizon")
    disc = discounted_payback(project.initial_investment, project.cash_flows, rate)
    ok = simple <= options.required_payback_years
    return ValuationResult(
        value=round(simple, 2),
        benchmark=options.required_payback_years,
        decision=_decision(ok),
        metrics={**_project_metrics(project, rate),
                 "discounted_payback": round(disc, 2) if disc is not None else None},
        interpretation=txt(
            f"The outlay is recovered in {simple:.2f} years"
            + (f" ({disc:.2f} years discounted)." if disc is not None else "; not recovered on a discounted basis."),
            f"يُسترد الاستثمار خلال {simple:.2f} سنة"
            + (f" ({disc:.2f} سنة بعد الخصم)." if disc is not None else "، ولا يُسترد على أساس مخصوم."),
        ),
        chart_hint="line",
    )


def discounted_cash_flow(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> ValuationResult:
    result = _company_dcf(statements, options)
    cap = market_cap(latest(statements))
    upside = percentage(result.equity_value - cap, cap) if cap else None
    return ValuationResult(
        value=round(result.equity_value, 2),
        benchmark=cap,
        series={latest(statements).year + i + 1: round(v, 2) for i, v in enumerate(result.projected)},
        metrics={"enterprise_value": round(result.enterprise_value, 2),
                 "terminal_value": round(result.terminal_value, 2),
                 "pv_terminal_share": percentage(result.pv_terminal, result.enterprise_value),
                 "per_share": round(result.per_share, 2) if result.per_share is not None else None,
                 "upside_pct": upside},
        interpretation=txt(
            f"DCF equity value is {format_compact(result.equity_value)} (EV {format_compact(result.enterprise_value)}, "
            f"WACC {format_percent(options.discount_rate * 100)}, g {format_percent(options.terminal_growth * 100)}).",
            f"قيمة حقوق الملكية بالتدفقات المخصومة {format_compact(result.equity_value)} (قيمة المنشأة "
            f"{format_compact(result.enterprise_value)}).",
        ),
        chart_hint="waterfall",
    )


def return_on_investment(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> ValuationResult:
    """Annualised project ROI against the discount rate."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    total = sum(project.cash_flows)
    annual = cagr(project.initial_investment, total, len(project.cash_flows))
    if annual is None:
        raise CalculationError("val.roi", "no positive investment base")
    value = round(annual * 100, 2)
    return ValuationResult(
        value=value,
        benchmark=round(rate * 100, 2),
        decision=_decision(annual >= rate),
        metrics={"total_roi": percentage(total - project.initial_investment, project.initial_investment)},
        interpretation=txt(
            f"The investment returns {format_percent(value)} a year (total {format_percent(percentage(total - project.initial_investment, project.initial_investment))}).",
            f"يحقق الاستثمار عائداً سنوياً قدره {format_percent(value)}.",
        ),
        chart_hint="bar",
    )


def economic_value_added(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> ValuationResult:
    """EVA = NOPAT - WACC x invested capital."""
    s = latest(statements)
    capital = invested_capital(s)
    np_ = nopat(s, options.tax_rate)
    value = np_ - options.discount_rate * capital
    hist = {}
    for st in statements:
        if st.inc.operating_income is not None:
            hist[st.year] = round(nopat(st, options.tax_rate) - options.discount_rate * invested_capital(st), 2)
    return ValuationResult(
        value=round(value, 2),
        benchmark=0.0,
        series=hist,
        metrics={"nopat": round(np_, 2), "invested_capital": capital,
                 "roic": percentage(np_, capital), "wacc": options.discount_rate * 100},
        interpretation=txt(
            f"EVA is {format_compact(value)}: the business "
            + ("earns more than" if value >= 0 else "does not cover") + " its cost of capital.",
            f"القيمة الاقتصادية المضافة {format_compact(value)}: "
            + ("تحقق الشركة عائداً يفوق" if value >= 0 else "لا تغطي الشركة") + " تكلفة رأس المال.",
        ),
        chart_hint="bar",
    )


def market_value_added(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> ValuationResult:
    s = latest(statements)
    cap = market_cap(s)
    if cap is None:
        raise InputDataError("market.share_price")
    equity = require(s.bs.total_equity, "balance_sheet.total_equity")
    value = cap - equity
    return ValuationResult(
        value=round(value, 2),
        benchmark=0.0,
        metrics={"market_cap": cap, "book_equity": equity, "price_to_book": round(cap / equity, 2) if equity else None},
        interpretation=txt(
            f"The market values the equity {format_compact(value)} above book.",
            f"يقيّم السوق حقوق الملكية بأعلى من قيمتها الدفترية بمقدار {format_compact(value)}.",
        ) if value >= 0 else txt(
            f"The market values the equity {format_compact(-value)} below book.",
            f"يقيّم السوق حقوق الملكية بأقل من قيمتها الدفترية بمقدار {format_compact(-value)}.",
        ),
        chart_hint="bar",
    )


def gordon_model(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> ValuationResult:
    dps = _dividend_per_share(statements)
    if not dps:
        raise InputDataError("income_statement.dividends")
    d0 = dps[max(dps)]
    ke = _cost_of_equity(options, benchmarks)
    g = options.terminal_growth
    value = gordon_growth(d0 * (1 + g), ke, g)
    if value is None:
        raise CalculationError("val.gordon", "cost of equity must exceed growth")
    price = latest(statements).market.share_price
    return ValuationResult(
        value=round(value, 2),
        benchmark=price,
        metrics={"dividend_per_share": round(d0, 4), "cost_of_equity": round(ke * 100, 2), "growth": g * 100},
        interpretation=txt(
            f"Gordon value per share is {value:,.2f} (D1 {d0 * (1 + g):.2f}, ke {format_percent(ke * 100)}, g {format_percent(g * 100)}).",
            f"القيمة العادلة للسهم وفق نموذج جوردن {value:,.2f}.",
        ),
        chart_hint="bar",
    )


def dividend_discount(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> ValuationResult:
    """Two-stage DDM: historical dividend growth for the horizon, terminal growth after."""
    dps = _dividend_per_share(statements)
    if not dps:
        raise InputDataError("income_statement.dividends")
    years = sorted(dps)
    growth = options.terminal_growth
    if len(years) >= 2:
        g = cagr(dps[years[0]], dps[years[-1]], years[-1] - years[0])
        if g is not None:
            growth = clamp(g, 0.0, 0.20)
    ke = _cost_of_equity(options, benchmarks)
    value = two_stage_ddm(dps[years[-1]], ke, growth, options.forecast_years, options.terminal_growth)
    if value is None:
        raise CalculationError("val.ddm", "cost of equity must exceed terminal growth")
    return ValuationResult(
        value=round(value, 2),
        benchmark=latest(statements).market.share_price,
        metrics={"high_growth": round(growth * 100, 2), "cost_of_equity": round(ke * 100, 2)},
        interpretation=txt(
            f"Two-stage dividend value is {value:,.2f} per share ({format_percent(growth * 100)} growth for "
            f"{options.forecast_years} years).",
            f"القيمة وفق نموذج خصم التوزيعات على مرحلتين {value:,.2f} للسهم.",
        ),
        chart_hint="bar",
    )


def fair_value(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> ValuationResult:
    """Per-share blend of DCF, industry P/E and industry P/B values."""
    s = latest(statements)
    shares = require_nonzero(s.market.shares_outstanding, "market.shares_outstanding")
    estimates: Dict[str, float] = {}
    try:
        estimates["dcf"] = _company_dcf(statements, options).equity_value / shares
    except (CalculationError, InputDataError) as exc:
        logger.debug("fair value without DCF leg: %s", exc)
    pe, pb = benchmarks.get("market.pe"), benchmarks.get("market.pb")
    if pe and s.inc.net_income is not None:
        estimates["pe"] = pe * s.inc.net_income / shares
    if pb and s.bs.total_equity is not None:
        estimates["pb"] = pb * s.bs.total_equity / shares
    if not estimates:
        raise InputDataError("benchmarks", "no valuation inputs")
    value = mean(list(estimates.values()))
    flags = () if len(estimates) == 3 else ("partial_blend",)
    return ValuationResult(
        value=round(value, 2),
        benchmark=s.market.share_price,
        flags=flags,
        metrics={k: round(v, 2) for k, v in estimates.items()},
        interpretation=txt(
            f"Blended fair value is {value:,.2f} per share from {len(estimates)} methods.",
            f"القيمة العادلة المرجحة {value:,.2f} للسهم من {len(estimates)} طرق.",
        ),
        chart_hint="bar",
    )


def cost_benefit(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> ValuationResult:
    project = default_project(statements, options)
    rate = project_rate(project, options)
    pv_benefits = npv(rate, 0.0, project.cash_flows)
    value = round(pv_benefits / project.initial_investment, 2) if project.initial_investment else 0.0
    return ValuationResult(
        value=value,
        benchmark=1.0,
        decision=_decision(value >= 1),
        metrics={"pv_benefits": round(pv_benefits, 2), "costs": project.initial_investment},
        interpretation=txt(
            f"Each unit invested returns {value:.2f} in present-value benefits.",
            f"تعيد كل وحدة مستثمرة {value:.2f} من المنافع بالقيمة الحالية.",
        ),
        chart_hint="bar",
    )


def feasibility(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> ValuationResult:
    """Score (0-100) over NPV, IRR, payback and profitability-index tests."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    npv_ = npv(rate, project.initial_investment, project.cash_flows)
    irr_ = irr(project.initial_investment, project.cash_flows).rate
    pb = payback_period(project.initial_investment, project.cash_flows)
    pi = profitability_index(rate, project.initial_investment, project.cash_flows)
    tests = {
        "npv_positive": npv_ >= 0,
        "irr_above_hurdle": irr_ is not None and irr_ >= rate,
        "payback_within_target": pb is not None and pb <= options.required_payback_years,
        "profitability_index_above_one": pi is not None and pi >= 1,
    }
    value = percentage(sum(tests.values()), len(tests))
    return ValuationResult(
        value=value,
        benchmark=75.0,
        decision=_decision(value >= 75),
        metrics={"tests": tests, "npv": round(npv_, 2), "irr": irr_, "payback": pb, "pi": pi},
        interpretation=txt(
            f"The project passes {sum(tests.values())} of {len(tests)} feasibility tests.",
            f"يجتاز المشروع {sum(tests.values())} من أصل {len(tests)} اختبارات جدوى.",
        ),
        chart_hint="table",
    )


def project_evaluation(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> ValuationResult:
    """Modified IRR (finance and reinvest at the discount rate)."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    m = mirr(project.initial_investment, project.cash_flows, rate, rate)
    if m is None:
        raise CalculationError("val.project", "MIRR undefined for these cash flows")
    value = round(m * 100, 2)
    return ValuationResult(
        value=value,
        benchmark=round(rate * 100, 2),
        decision=_decision(m >= rate),
        metrics=_project_metrics(project, rate),
        interpretation=txt(
            f"Modified IRR is {format_percent(value)} with reinvestment at {format_percent(rate * 100)}.",
            f"معدل العائد الداخلي المعدل {format_percent(value)} بإعادة استثمار بمعدل {format_percent(rate * 100)}.",
        ),
        chart_hint="bar",
    )


def _alternatives(statements: Statements, options: AnalysisOptions) -> List[ProjectInputs]:
    if options.alternatives:
        return list(options.alternatives)
    base = default_project(statements, options)
    return [
        base,
        ProjectInputs(base.initial_investment * 1.15, tuple(cf * 1.10 for cf in base.cash_flows),
                      name="expansion", discount_rate=base.discount_rate),
        ProjectInputs(base.initial_investment * 0.80, tuple(cf * 0.85 for cf in base.cash_flows),
                      name="conservative", discount_rate=base.discount_rate),
    ]


def alternatives(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> ValuationResult:
    """Rank alternatives by NPV; profitability index breaks ties."""
    ranking = []
    for p in _alternatives(statements, options):
        rate = project_rate(p, options)
        ranking.append({
            "name": p.name,
            "npv": round(npv(rate, p.initial_investment, p.cash_flows), 2),
            "irr": irr(p.initial_investment, p.cash_flows).rate,
            "pi": profitability_index(rate, p.initial_investment, p.cash_flows),
        })
    ranking.sort(key=lambda r: (r["npv"], r["pi"] or 0), reverse=True)
    best = ranking[0]
    return ValuationResult(
        value=best["npv"],
        benchmark=0.0,
        decision=_decision(best["npv"] >= 0),
        metrics={"ranking": ranking, "best": best["name"]},
        interpretation=txt(
            f"'{best['name']}' ranks first with NPV {format_compact(best['npv'])} among {len(ranking)} alternatives.",
            f"يحتل البديل '{best['name']}' المرتبة الأولى بصافي قيمة حالية {format_compact(best['npv'])} من بين {len(ranking)} بدائل.",
        ),
        chart_hint="bar",
    )


def company_valuation(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> ValuationResult:
    """Equity value from the industry EV/EBITDA multiple."""
    s = latest(statements)
    ebitda = s.inc.ebitda
    if ebitda is None:
        raise InputDataError("income_statement.operating_income")
    multiple = benchmarks.get("valuation.ev_ebitda")
    if multiple is None:
        raise InputDataError("benchmarks", "no EV/EBITDA multiple")
    ev = ebitda * multiple
    equity = ev - s.bs.total_debt + s.bs.cash_and_equivalents
    cap = market_cap(s)
    per_share = safe_div(equity, s.market.shares_outstanding)
    return ValuationResult(
        value=round(equity, 2),
        benchmark=cap,
        metrics={"ebitda": ebitda, "multiple": multiple, "enterprise_value": round(ev, 2),
                 "per_share": round(per_share, 2) if per_share is not None else None},
        interpretation=txt(
            f"At {multiple:.1f}x EBITDA the equity is worth {format_compact(equity)}.",
            f"بمضاعف {multiple:.1f} مرة للأرباح قبل الفوائد والضرائب والإهلاك تبلغ قيمة حقوق الملكية {format_compact(equity)}.",
        ),
        chart_hint="bar",
    )


CALCULATORS = {
    "val.tvm": time_value,
    "val.npv": net_present_value,
    "val.irr": internal_rate_of_return,
    "val.payback": payback,
    "val.dcf": discounted_cash_flow,
    "val.roi": return_on_investment,
    "val.eva": economic_value_added,
    "val.mva": market_value_added,
    "val.gordon": gordon_model,
    "val.ddm": dividend_discount,
    "val.fair_value": fair_value,
    "val.cost_benefit": cost_benefit,
    "val.feasibility": feasibility,
    "val.project": project_evaluation,
    "val.alternatives": alternatives,
    "val.company": company_valuation,
}
