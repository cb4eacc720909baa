"""
fin_engine/calculators/structural.py
====================================
Structural analyses: how the statements are composed and how each line moves
year over year (vertical, horizontal, trend / index, CAGR, common size...).
"""
from __future__ import annotations
from typing import Dict, Optional, Tuple

from ..errors import CalculationError, InputDataError
from ..formatting import format_percent, txt
from ..mathutils import (
    cagr, horizontal, index_number, linear_trend, mean, percentage, round_series,
    std_dev, vertical,
)
from ..quant import ewma_forecast, moving_average
from ..types import AnalysisOptions, BenchmarkSet, FinancialStatement, StructuralResult
from ._base import (
    Statements, latest, net_income, previous, require, require_years,
    revenue, series, val,
)

# ─── Line Items ───────────────────────────────────────────────────────────────

_BALANCE_ITEMS: Tuple[Tuple[str, str], ...] = (
    ("cash", "cash"), ("receivables", "receivables"), ("inventory", "inventory"),
    ("total_current_assets", "current_assets"), ("ppe", "ppe"), ("intangibles", "intangibles"),
    ("total_current_liabilities", "current_liabilities"), ("long_term_debt", "long_term_debt"),
    ("total_liabilities", "total_liabilities"), ("total_equity", "total_equity"),
)
_INCOME_ITEMS: Tuple[Tuple[str, str], ...] = (
    ("cogs", "cogs"), ("gross_profit", "gross_profit"), ("operating_expenses", "operating_expenses"),
    ("operating_income", "operating_income"), ("interest_expense", "interest_expense"),
    ("net_income", "net_income"),
)
_KEY_ITEMS: Tuple[Tuple[str, str], ...] = (
    ("revenue", "inc"), ("net_income", "inc"), ("operating_income", "inc"),
    ("total_assets", "bs"), ("total_equity", "bs"), ("total_liabilities", "bs"),
)


def _item(s: FinancialStatement, name: str, part: str) -> Optional[float]:
    return getattr(s.inc if part == "inc" else s.bs, name)


def _vertical_breakdown(s: FinancialStatement) -> Dict[str, float]:
    """A zero statement total gives 0 shares; only a missing total drops that statement."""
    ta, rev = s.bs.total_assets, s.inc.revenue
    if ta is None and rev is None:
        raise InputDataError("balance_sheet.total_assets", "no statement totals")
    out: Dict[str, float] = {}
    for attr, label in _BALANCE_ITEMS:
        v = getattr(s.bs, attr)
        if v is not None and ta is not None:
            out[f"bs.{label}"] = vertical(v, ta)
    for attr, label in _INCOME_ITEMS:
        v = getattr(s.inc, attr)
        if v is not None and rev is not None:
            out[f"is.{label}"] = vertical(v, rev)
    return out


def _horizontal_series(statements: Statements, name: str, part: str) -> Dict[int, float]:
    out: Dict[int, float] = {}
    for prev, cur in zip(statements, statements[1:]):
        a, b = _item(prev, name, part), _item(cur, name, part)
        if a is not None and b is not None:
            out[cur.year] = horizontal(b, a)
    return out


def _index_series(statements: Statements, name: str, part: str) -> Dict[int, float]:
    base = _item(statements[0], name, part)
    return {s.year: index_number(_item(s, name, part), base)
            for s in statements if _item(s, name, part) is not None}


def _direction_text(value: float) -> Tuple[str, str]:
    if value > 0:
        return "increased", "ارتفع"
    if value < 0:
        return "decreased", "انخفض"
    return "was unchanged", "لم يتغير"


# ─── Calculators ──────────────────────────────────────────────────────────────

def vertical_analysis(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> StructuralResult:
    """Each line as a share of total assets (balance sheet) or revenue (income statement)."""
    s = latest(statements)
    breakdown = _vertical_breakdown(s)
    value = breakdown.get("is.net_income", 0.0)
    assets = {k: v for k, v in breakdown.items() if k.startswith("bs.") and k not in (
        "bs.current_assets", "bs.total_liabilities", "bs.total_equity", "bs.current_liabilities",
        "bs.long_term_debt")}
    top = max(assets, key=assets.get) if assets else None
    top_en = top.split(".", 1)[1].replace("_", " ") if top else "n/a"
    return StructuralResult(
        value=value,
        metrics={"breakdown": breakdown, "largest_asset": top},
        breakdown={k: {s.year: v} for k, v in breakdown.items()},
        interpretation=txt(
            f"Net income is {format_percent(value)} of revenue; the largest asset line is {top_en} "
            f"({format_percent(assets.get(top)) if top else '—'} of total assets).",
            f"يمثل صافي الربح {format_percent(value)} من الإيرادات، وأكبر بند في الأصول هو {top_en} "
            f"بنسبة {format_percent(assets.get(top)) if top else '—'} من إجمالي الأصول.",
        ),
        chart_hint="pie",
    )


def horizontal_analysis(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> StructuralResult:
    require_years(statements, 2)
    breakdown = {name: _horizontal_series(statements, name, part) for name, part in _KEY_ITEMS}
    rev = breakdown["revenue"]
    if not rev:
        raise InputDataError("income_statement.revenue")
    value = rev[latest(statements).year] if latest(statements).year in rev else list(rev.values())[-1]
    en, ar = _direction_text(value)
    return StructuralResult(
        value=value,
        series=rev,
        breakdown=breakdown,
        metrics={k: (list(v.values())[-1] if v else None) for k, v in breakdown.items()},
        interpretation=txt(
            f"Revenue {en} by {format_percent(abs(value))} versus the previous year.",
            f"{ar} الإيراد بنسبة {format_percent(abs(value))} مقارنة بالسنة السابقة.",
        ),
        chart_hint="bar",
    )


def combined_analysis(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> StructuralResult:
    """Movement of vertical shares between the last two years (percentage points)."""
    cur = _vertical_breakdown(latest(statements))
    prev = _vertical_breakdown(previous(statements))
    shifts = {k: round(cur[k] - prev[k], 2) for k in cur if k in prev}
    value = shifts.get("is.net_income", 0.0)
    biggest = max(shifts, key=lambda k: abs(shifts[k])) if shifts else None
    return StructuralResult(
        value=value,
        metrics={"shifts_pp": shifts, "largest_shift": biggest,
                 "revenue_change": horizontal(latest(statements).inc.revenue,
                                              previous(statements).inc.revenue)},
        interpretation=txt(
            f"Net margin share moved {value:+.2f} pp; the largest structural shift is in {biggest}.",
            f"تغيرت حصة صافي الربح بمقدار {value:+.2f} نقطة مئوية، وأكبر تحول هيكلي في البند {biggest}.",
        ),
        chart_hint="bar",
    )


def trend_analysis(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> StructuralResult:
    """Revenue index (base year = 100) and a least-squares next-year projection."""
    require_years(statements, 2)
    idx = _index_series(statements, "revenue", "inc")
    if not idx:
        raise InputDataError("income_statement.revenue")
    rev = list(series(statements, revenue).values())
    slope, intercept = linear_trend(rev)
    projection = intercept + slope * len(rev)
    value = idx[max(idx)]
    return StructuralResult(
        value=value,
        series=idx,
        breakdown={name: _index_series(statements, name, part) for name, part in _KEY_ITEMS},
        metrics={"slope": round(slope, 2), "next_year_projection": round(projection, 2),
                 "base_year": statements[0].year},
        interpretation=txt(
            f"Revenue index stands at {value:.2f} against base year {statements[0].year} = 100; "
            f"the linear trend projects {projection:,.0f} next year.",
            f"بلغ الرقم القياسي للإيراد {value:.2f} مقارنة بسنة الأساس {statements[0].year} = 100، "
            f"ويتوقع الاتجاه الخطي {projection:,.0f} للسنة القادمة.",
        ),
        chart_hint="line",
    )


def basic_comparative(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> StructuralResult:
    cur, prev = latest(statements), previous(statements)
    rows: Dict[str, Dict[str, float]] = {}
    for name, part in _KEY_ITEMS:
        a, b = _item(prev, name, part), _item(cur, name, part)
        if a is not None and b is not None:
            rows[name] = {"previous": a, "current": b, "difference": b - a, "change_pct": horizontal(b, a)}
    if not rows:
        raise InputDataError("income_statement.revenue")
    value = round(mean([r["change_pct"] for r in rows.values()]) or 0.0, 2)
    improved = sorted(k for k, r in rows.items() if r["difference"] > 0)
    return StructuralResult(
        value=value,
        metrics={"items": rows, "improved": improved},
        interpretation=txt(
            f"Key items changed by {format_percent(value)} on average; {len(improved)} of {len(rows)} increased.",
            f"تغيرت البنود الرئيسية بمتوسط {format_percent(value)}، وارتفع {len(improved)} من أصل {len(rows)} بنود.",
        ),
        chart_hint="table",
    )


def value_added(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> StructuralResult:
    """Value added (income approach) = operating income + employee costs + depreciation."""
    out: Dict[int, float] = {}
    for s in statements:
        if s.inc.operating_income is None or not s.inc.revenue:
            continue
        va = s.inc.operating_income + val(s.inc.employee_costs) + val(s.inc.depreciation)
        out[s.year] = percentage(va, s.inc.revenue)
    if not out:
        raise InputDataError("income_statement.operating_income")
    s = latest(statements)
    va = require(s.inc.operating_income, "income_statement.operating_income") \
        + val(s.inc.employee_costs) + val(s.inc.depreciation)
    value = out.get(s.year, list(out.values())[-1])
    return StructuralResult(
        value=value,
        series=out,
        metrics={"value_added": va,
                 "employee_share": percentage(s.inc.employee_costs, va),
                 "capital_share": percentage(val(s.inc.operating_income) + val(s.inc.depreciation), va)},
        interpretation=txt(
            f"The company adds {format_percent(value)} of its revenue as value added.",
            f"تضيف الشركة ما نسبته {format_percent(value)} من إيراداتها كقيمة مضافة.",
        ),
        chart_hint="bar",
    )


def common_size(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> StructuralResult:
    """Vertical breakdown for every year, equity share of assets as the headline."""
    breakdown: Dict[str, Dict[int, float]] = {}
    for s in statements:
        if s.bs.total_assets is None and s.inc.revenue is None:
            continue
        for k, v in _vertical_breakdown(s).items():
            breakdown.setdefault(k, {})[s.year] = v
    equity = breakdown.get("bs.total_equity", {})
    if not equity:
        raise InputDataError("balance_sheet.total_equity")
    value = equity[max(equity)]
    return StructuralResult(
        value=value,
        series=equity,
        breakdown=breakdown,
        interpretation=txt(
            f"Equity finances {format_percent(value)} of total assets in the latest year.",
            f"تمول حقوق الملكية {format_percent(value)} من إجمالي الأصول في السنة الأخيرة.",
        ),
        chart_hint="stacked_bar",
    )


def time_series(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> StructuralResult:
    rev_s = series(statements, revenue)
    if len(rev_s) < 3:
        require_years(statements, 3)
        raise InputDataError("income_statement.revenue")
    rev = list(rev_s.values())
    sma = moving_average(rev, 3)
    ema = ewma_forecast(rev, alpha=0.5)
    return StructuralResult(
        value=round(ema, 2),
        series=round_series(rev_s),
        metrics={"sma3": [round(x, 2) for x in sma], "ema_forecast": round(ema, 2),
                 "sma_forecast": round(sma[-1], 2) if sma else None},
        interpretation=txt(
            f"Exponential smoothing puts next-period revenue at {ema:,.0f}.",
            f"يقدّر التمهيد الأسي إيراد الفترة القادمة بنحو {ema:,.0f}.",
        ),
        chart_hint="line",
    )


def relative_change(statements: Statements, benchmarks: BenchmarkSet,
                    options: AnalysisOptions) -> StructuralResult:
    """Change from the first to the last year for each key item."""
    require_years(statements, 2)
    first, last = statements[0], statements[-1]
    changes = {}
    for name, part in _KEY_ITEMS:
        a, b = _item(first, name, part), _item(last, name, part)
        if a is not None and b is not None:
            changes[name] = horizontal(b, a)
    if "revenue" not in changes:
        raise InputDataError("income_statement.revenue")
    value = changes["revenue"]
    return StructuralResult(
        value=value,
        metrics={"changes": changes, "from_year": first.year, "to_year": last.year},
        interpretation=txt(
            f"Revenue changed {format_percent(value)} between {first.year} and {last.year}.",
            f"تغير الإيراد بنسبة {format_percent(value)} بين {first.year} و{last.year}.",
        ),
        chart_hint="bar",
    )


def growth_rate(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> StructuralResult:
    """Compound annual growth of the key items; revenue CAGR as the headline."""
    require_years(statements, 2)
    rates: Dict[str, Optional[float]] = {}
    for name, part in _KEY_ITEMS:
        pts = [(s.year, _item(s, name, part)) for s in statements if _item(s, name, part) is not None]
        if len(pts) < 2:
            rates[name] = None
            continue
        g = cagr(pts[0][1], pts[-1][1], pts[-1][0] - pts[0][0])
        rates[name] = round(g * 100, 2) if g is not None else None
    if rates.get("revenue") is None:
        raise CalculationError("struct.growth_rate", "revenue CAGR undefined (first year <= 0)")
    value = rates["revenue"]
    return StructuralResult(
        value=value,
        metrics={"cagr_pct": rates},
        interpretation=txt(
            f"Revenue compounded at {format_percent(value)} a year.",
            f"نما الإيراد بمعدل سنوي مركب قدره {format_percent(value)}.",
        ),
        chart_hint="bar",
    )


def deviation_analysis(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> StructuralResult:
    """Actual latest revenue against the trend line fitted on prior years."""
    rev = list(series(statements, revenue).values())
    if len(rev) < 3:
        require_years(statements, 3)
        raise InputDataError("income_statement.revenue")
    slope, intercept = linear_trend(rev[:-1])
    expected = intercept + slope * (len(rev) - 1)
    value = horizontal(rev[-1], expected)
    en, ar = ("above", "أعلى من") if value >= 0 else ("below", "أقل من")
    return StructuralResult(
        value=value,
        metrics={"actual": rev[-1], "expected": round(expected, 2), "deviation": round(rev[-1] - expected, 2)},
        interpretation=txt(
            f"Latest revenue is {format_percent(abs(value))} {en} its historical trend.",
            f"جاء الإيراد الأخير {ar} اتجاهه التاريخي بنسبة {format_percent(abs(value))}.",
        ),
        chart_hint="line",
    )


def variance_analysis(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> StructuralResult:
    """Dispersion of revenue: coefficient of variation in percent."""
    rev = list(series(statements, revenue).values())
    if len(rev) < 2:
        require_years(statements, 2)
        raise InputDataError("income_statement.revenue")
    m, sd = mean(rev), std_dev(rev)
    value = percentage(sd, m)
    return StructuralResult(
        value=value,
        metrics={"mean": round(m, 2), "std_dev": round(sd, 2), "variance": round(sd ** 2, 2)},
        interpretation=txt(
            f"Revenue varies by {format_percent(value)} around its mean (coefficient of variation).",
            f"يتفاوت الإيراد بنسبة {format_percent(value)} حول متوسطه (معامل الاختلاف).",
        ),
        chart_hint="box",
    )


def difference_analysis(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> StructuralResult:
    cur, prev = latest(statements), previous(statements)
    diffs = {}
    for name, part in _KEY_ITEMS:
        a, b = _item(prev, name, part), _item(cur, name, part)
        if a is not None and b is not None:
            diffs[name] = round(b - a, 2)
    if "net_income" not in diffs:
        raise InputDataError("income_statement.net_income")
    value = diffs["net_income"]
    en, ar = _direction_text(value)
    return StructuralResult(
        value=value,
        metrics={"differences": diffs},
        interpretation=txt(
            f"Net income {en} by {abs(value):,.0f} year over year.",
            f"{ar} صافي الربح بمقدار {abs(value):,.0f} على أساس سنوي.",
        ),
        chart_hint="waterfall",
    )


def exceptional_items(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> StructuralResult:
    """Weight of exceptional items in pre-tax income."""
    s = latest(statements)
    pbt = require(s.inc.income_before_tax, "income_statement.income_before_tax")
    exc = val(s.inc.exceptional_items)
    value = percentage(abs(exc), abs(pbt))
    hist = {st.year: percentage(abs(val(st.inc.exceptional_items)), abs(st.inc.income_before_tax))
            for st in statements if st.inc.income_before_tax}
    flags = ("material_exceptional_items",) if value >= 10 else ()
    return StructuralResult(
        value=value,
        series=hist,
        metrics={"exceptional_items": exc, "income_before_tax": pbt,
                 "recurring_income_before_tax": pbt - exc},
        flags=flags,
        interpretation=txt(
            f"Exceptional items account for {format_percent(value)} of pre-tax income.",
            f"تمثل البنود الاستثنائية {format_percent(value)} من الربح قبل الضريبة.",
        ),
        recommendations=(
            txt("Assess earnings on a recurring basis; exceptional items are material.",
                "يُنصح بتقييم الأرباح على أساس متكرر لأن البنود الاستثنائية جوهرية."),
        ) if flags else (),
        chart_hint="bar",
    )


def index_numbers(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> StructuralResult:
    """Equal-weight composite index of revenue, net income, assets and equity."""
    require_years(statements, 2)
    parts = [("revenue", "inc"), ("net_income", "inc"), ("total_assets", "bs"), ("total_equity", "bs")]
    indices = {name: _index_series(statements, name, part) for name, part in parts}
    composite: Dict[int, float] = {}
    for s in statements:
        pts = [indices[n][s.year] for n, _ in parts if s.year in indices[n]]
        if pts:
            composite[s.year] = round(sum(pts) / len(pts), 2)
    if not composite:
        raise InputDataError("income_statement.revenue")
    value = composite[max(composite)]
    return StructuralResult(
        value=value,
        series=composite,
        breakdown=indices,
        interpretation=txt(
            f"The composite index is {value:.2f} (base year {statements[0].year} = 100).",
            f"بلغ الرقم القياسي المركب {value:.2f} (سنة الأساس {statements[0].year} = 100).",
        ),
        chart_hint="line",
    )


CALCULATORS = {
    "struct.vertical": vertical_analysis,
    "struct.horizontal": horizontal_analysis,
    "struct.combined": combined_analysis,
    "struct.trend": trend_analysis,
    "struct.basic_comparative": basic_comparative,
    "struct.value_added": value_added,
    "struct.common_size": common_size,
    "struct.time_series": time_series,
    "struct.relative_change": relative_change,
    "struct.growth_rate": growth_rate,
    "struct.deviation": deviation_analysis,
    "struct.variance": variance_analysis,
    "struct.difference": difference_analysis,
    "struct.exceptional_items": exceptional_items,
    "struct.index_number": index_numbers,
}
