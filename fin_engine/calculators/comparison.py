"""
fin_engine/calculators/comparison.py
====================================
Comparisons against the industry reference ratios, the peer group, the
company's own history and the market index.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

from ..errors import InputDataError
from ..formatting import format_percent, txt
from ..mathutils import mean, percentage, percentile, percentile_rank, ratio, z_score
from ..types import AnalysisOptions, BenchmarkSet, ComparativeResult, FinancialStatement
from ._base import (
    Statements, aligned_returns, latest, net_margin_pct, require, require_years, revenue_growth,
    series, val,
)

# (benchmark key, company metric, direction)
_INDUSTRY_METRICS: Tuple[Tuple[str, str, str], ...] = (
    ("liquidity.current_ratio", "current_ratio", "higher"),
    ("liquidity.quick_ratio", "quick_ratio", "higher"),
    ("leverage.debt_to_equity", "debt_to_equity", "lower"),
    ("leverage.interest_coverage", "interest_coverage", "higher"),
    ("activity.total_asset_turnover", "asset_turnover", "higher"),
    ("profitability.gross_margin", "gross_margin", "higher"),
    ("profitability.operating_margin", "operating_margin", "higher"),
    ("profitability.net_margin", "net_margin", "higher"),
    ("profitability.roa", "roa", "higher"),
    ("profitability.roe", "roe", "higher"),
)

_LABELS: Dict[str, Tuple[str, str]] = {
    "current_ratio": ("current ratio", "النسبة الجارية"),
    "quick_ratio": ("quick ratio", "النسبة السريعة"),
    "debt_to_equity": ("debt to equity", "الديون إلى حقوق الملكية"),
    "interest_coverage": ("interest coverage", "تغطية الفوائد"),
    "asset_turnover": ("asset turnover", "دوران الأصول"),
    "gross_margin": ("gross margin", "هامش الربح الإجمالي"),
    "operating_margin": ("operating margin", "هامش الربح التشغيلي"),
    "net_margin": ("net margin", "هامش صافي الربح"),
    "roa": ("return on assets", "العائد على الأصول"),
    "roe": ("return on equity", "العائد على حقوق الملكية"),
    "revenue_growth": ("revenue growth", "نمو الإيرادات"),
}


def company_metrics(s: FinancialStatement) -> Dict[str, float]:
    """Headline ratios in the same units as the benchmark tables and peer metrics."""
    interest = s.inc.interest_expense
    return {
        "revenue": val(s.inc.revenue),
        "current_ratio": ratio(s.bs.total_current_assets, s.bs.total_current_liabilities),
        "quick_ratio": ratio(val(s.bs.total_current_assets) - val(s.bs.inventory), s.bs.total_current_liabilities),
        "debt_to_equity": percentage(s.bs.total_liabilities, s.bs.total_equity),
        "interest_coverage": ratio(s.inc.operating_income, interest) if interest else 999.0,
        "asset_turnover": ratio(s.inc.revenue, s.bs.total_assets),
        "gross_margin": percentage(val(s.inc.revenue) - val(s.inc.cogs), s.inc.revenue)
        if s.inc.gross_profit is None else percentage(s.inc.gross_profit, s.inc.revenue),
        "operating_margin": percentage(s.inc.operating_income, s.inc.revenue),
        "net_margin": percentage(s.inc.net_income, s.inc.revenue),
        "roa": percentage(s.inc.net_income, s.bs.total_assets),
        "roe": percentage(s.inc.net_income, s.bs.total_equity),
    }


def _require_benchmarks(benchmarks: BenchmarkSet) -> None:
    if not benchmarks.available or not benchmarks.ratios:
        raise InputDataError("benchmarks", "no industry benchmark available")


def _require_peers(benchmarks: BenchmarkSet, key: str) -> List[float]:
    peers = benchmarks.peer_values(key)
    if not peers:
        raise InputDataError("benchmarks.peers", f"no peer values for {key}")
    return peers


def _meets(value: float, ref: float, direction: str) -> bool:
    return value >= ref if direction == "higher" else value <= ref


def _industry_table(s: FinancialStatement, benchmarks: BenchmarkSet) -> List[Dict]:
    m = company_metrics(s)
    rows = []
    for key, name, direction in _INDUSTRY_METRICS:
        ref = benchmarks.get(key)
        if ref is None:
            continue
        rows.append({"metric": name, "company": m[name], "industry": ref, "direction": direction,
                     "meets": _meets(m[name], ref, direction),
                     "gap": round(m[name] - ref, 2),
                     "gap_pct": round((m[name] - ref) / abs(ref) * 100, 2) if ref else 0.0})
    return rows


def _names(rows: List[Dict], lang: int) -> str:
    return ", ".join(_LABELS[r["metric"]][lang] for r in rows) or "—"


# ─── Calculators ──────────────────────────────────────────────────────────────

def industry_comparison(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> ComparativeResult:
    """Share of headline ratios at or better than the industry reference (direction-aware)."""
    _require_benchmarks(benchmarks)
    rows = _industry_table(latest(statements), benchmarks)
    met = [r for r in rows if r["meets"]]
    value = percentage(len(met), len(rows))
    return ComparativeResult(
        value=value,
        benchmark=50.0,
        metrics={"rows": rows},
        peer_count=len(benchmarks.peers),
        interpretation=txt(
            f"{len(met)} of {len(rows)} headline ratios meet the {benchmarks.sector or 'industry'} benchmark.",
            f"تحقق {len(met)} من أصل {len(rows)} نسب رئيسية معيار قطاع {benchmarks.sector or 'الصناعة'}.",
        ),
        chart_hint="radar",
    )


def peer_comparison(statements: Statements, benchmarks: BenchmarkSet,
                    options: AnalysisOptions) -> ComparativeResult:
    """Return on equity versus the peer group: percentile rank, z-score, gap to peer mean."""
    roe = company_metrics(latest(statements))["roe"]
    peers = _require_peers(benchmarks, "roe")
    rank = percentile_rank(roe, peers)
    peer_mean = mean(peers)
    return ComparativeResult(
        value=rank,
        benchmark=50.0,
        percentile_rank=rank,
        gap=round(roe - peer_mean, 2),
        z_score=z_score(roe, peers),
        peer_count=len(peers),
        metrics={"company_roe": roe, "peer_mean": round(peer_mean, 2), "peer_median": percentile(peers, 50)},
        interpretation=txt(
            f"ROE of {format_percent(roe)} sits at the {rank:.0f}th percentile of {len(peers)} peers.",
            f"يقع العائد على حقوق الملكية البالغ {format_percent(roe)} عند المئين {rank:.0f} بين {len(peers)} منافسين.",
        ),
        chart_hint="bar",
    )


def historical_comparison(statements: Statements, benchmarks: BenchmarkSet,
                          options: AnalysisOptions) -> ComparativeResult:
    """Latest net margin against the company's own prior-year average."""
    require_years(statements, 2)
    margins = series(statements, net_margin_pct)
    if len(margins) < 2:
        raise InputDataError("income_statement.net_income", "needs two years of margins")
    years = sorted(margins)
    current = margins[years[-1]]
    history = [margins[y] for y in years[:-1]]
    avg = mean(history)
    gap = round(current - avg, 2)
    return ComparativeResult(
        value=gap,
        benchmark=0.0,
        gap=gap,
        z_score=z_score(current, history) if len(history) >= 2 else None,
        series={y: round(v, 2) for y, v in margins.items()},
        metrics={"current_margin": round(current, 2), "historical_average": round(avg, 2)},
        interpretation=txt(
            f"Net margin is {gap:+.2f} pp versus the company's own historical average of {format_percent(avg)}.",
            f"يختلف هامش صافي الربح بمقدار {gap:+.2f} نقطة مئوية عن متوسطه التاريخي البالغ {format_percent(avg)}.",
        ),
        chart_hint="line",
    )


def best_in_class(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> ComparativeResult:
    margin = company_metrics(latest(statements))["net_margin"]
    peers = _require_peers(benchmarks, "net_margin")
    best = max(peers)
    gap = round(margin - best, 2)
    return ComparativeResult(
        value=gap,
        benchmark=0.0,
        gap=gap,
        percentile_rank=percentile_rank(margin, peers),
        peer_count=len(peers),
        metrics={"company": margin, "best_in_class": best},
        interpretation=txt(
            f"Net margin trails the best-in-class peer by {abs(gap):.2f} pp." if gap < 0 else
            f"Net margin leads the best peer by {gap:.2f} pp.",
            f"يتأخر هامش صافي الربح عن أفضل منافس بمقدار {abs(gap):.2f} نقطة مئوية." if gap < 0 else
            f"يتفوق هامش صافي الربح على أفضل منافس بمقدار {gap:.2f} نقطة مئوية.",
        ),
        chart_hint="bar",
    )


def gap_analysis(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> ComparativeResult:
    """Average direction-adjusted gap to industry, in percent of the reference."""
    _require_benchmarks(benchmarks)
    rows = _industry_table(latest(statements), benchmarks)
    adjusted = [r["gap_pct"] if r["direction"] == "higher" else -r["gap_pct"] for r in rows]
    value = round(mean(adjusted) or 0.0, 2)
    worst = sorted(rows, key=lambda r: r["gap_pct"] if r["direction"] == "higher" else -r["gap_pct"])[:3]
    return ComparativeResult(
        value=value,
        benchmark=0.0,
        gap=value,
        metrics={"rows": rows, "largest_gaps": [r["metric"] for r in worst]},
        interpretation=txt(
            f"On average the company is {format_percent(value)} from industry references; "
            f"the widest gaps are in {_names(worst, 0)}.",
            f"تبتعد الشركة في المتوسط بنسبة {format_percent(value)} عن معايير الصناعة، "
            f"وأكبر الفجوات في: {_names(worst, 1)}.",
        ),
        chart_hint="bar",
    )


def competitive_position(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> ComparativeResult:
    """Average peer percentile of growth, margin and ROE (0-100 score)."""
    m = company_metrics(latest(statements))
    m["revenue_growth"] = revenue_growth(statements, -1.0, 10.0) * 100
    scores = {}
    for key in ("revenue_growth", "net_margin", "roe"):
        peers = benchmarks.peer_values(key)
        if peers:
            scores[key] = percentile_rank(m[key], peers)
    if not scores:
        raise InputDataError("benchmarks.peers", "no peer data")
    value = round(mean(list(scores.values())), 2)
    return ComparativeResult(
        value=value,
        benchmark=50.0,
        percentile_rank=value,
        peer_count=len(benchmarks.peers),
        metrics={"percentiles": scores},
        interpretation=txt(
            f"Competitive position score is {value:.0f}/100 across growth, margin and returns.",
            f"درجة الموقع التنافسي {value:.0f} من 100 على أساس النمو والهامش والعائد.",
        ),
        chart_hint="radar",
    )


def market_share(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> ComparativeResult:
    rev = require(latest(statements).inc.revenue, "income_statement.revenue")
    peers = _require_peers(benchmarks, "revenue")
    total = rev + sum(peers)
    value = percentage(rev, total)
    fair_share = percentage(1, len(peers) + 1)
    return ComparativeResult(
        value=value,
        benchmark=fair_share,
        percentile_rank=percentile_rank(rev, peers),
        peer_count=len(peers),
        metrics={"company_revenue": rev, "market_revenue": total,
                 "hhi": round(sum((x / total * 100) ** 2 for x in peers + [rev]), 1)},
        interpretation=txt(
            f"The company holds {format_percent(value)} of the peer-group market (equal share would be "
            f"{format_percent(fair_share)}).",
            f"تستحوذ الشركة على {format_percent(value)} من سوق مجموعة المنافسين (الحصة المتساوية "
            f"{format_percent(fair_share)}).",
        ),
        chart_hint="pie",
    )


def competitive_capability(statements: Statements, benchmarks: BenchmarkSet,
                           options: AnalysisOptions) -> ComparativeResult:
    """Margin x turnover relative to the peer median, as an index (100 = parity)."""
    m = company_metrics(latest(statements))
    margins = _require_peers(benchmarks, "net_margin")
    turns = _require_peers(benchmarks, "asset_turnover")
    peer_power = percentile(margins, 50) * percentile(turns, 50)
    own = m["net_margin"] * m["asset_turnover"]
    value = round(own / peer_power * 100, 2) if peer_power else 100.0
    return ComparativeResult(
        value=value,
        benchmark=100.0,
        peer_count=len(margins),
        metrics={"company_return_on_assets": round(own, 2), "peer_median_return_on_assets": round(peer_power, 2)},
        interpretation=txt(
            f"Earning power (margin x turnover) is {value:.0f}% of the peer median.",
            f"تبلغ القدرة الربحية (الهامش × الدوران) {value:.0f}% من وسيط المنافسين.",
        ),
        chart_hint="gauge",
    )


def strength_weakness(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> ComparativeResult:
    _require_benchmarks(benchmarks)
    rows = _industry_table(latest(statements), benchmarks)
    strengths = [r for r in rows if r["meets"]]
    weaknesses = [r for r in rows if not r["meets"]]
    value = float(len(strengths) - len(weaknesses))
    return ComparativeResult(
        value=value,
        benchmark=0.0,
        metrics={"strengths": [r["metric"] for r in strengths],
                 "weaknesses": [r["metric"] for r in weaknesses]},
        interpretation=txt(
            f"Strengths: {_names(strengths, 0)}. Weaknesses: {_names(weaknesses, 0)}.",
            f"نقاط القوة: {_names(strengths, 1)}. نقاط الضعف: {_names(weaknesses, 1)}.",
        ),
        chart_hint="table",
    )


def relative_performance(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> ComparativeResult:
    """Cumulative company return minus cumulative market index return over overlapping years (pp)."""
    comp, mkt = aligned_returns(statements, benchmarks, 1)
    cum_c, cum_m = 1.0, 1.0
    for c, m in zip(comp, mkt):
        cum_c *= 1 + c
        cum_m *= 1 + m
    value = round((cum_c - cum_m) * 100, 2)
    return ComparativeResult(
        value=value,
        benchmark=0.0,
        gap=value,
        metrics={"company_cumulative": round((cum_c - 1) * 100, 2),
                 "market_cumulative": round((cum_m - 1) * 100, 2), "years": len(comp)},
        interpretation=txt(
            f"The company returned {value:+.2f} pp relative to the market index over {len(comp)} years.",
            f"حققت الشركة عائداً نسبياً قدره {value:+.2f} نقطة مئوية مقارنة بمؤشر السوق خلال {len(comp)} سنوات.",
        ),
        chart_hint="line",
    )


CALCULATORS = {
    "comp.industry": industry_comparison,
    "comp.peer": peer_comparison,
    "comp.historical": historical_comparison,
    "comp.benchmarking": best_in_class,
    "comp.gap": gap_analysis,
    "comp.competitive_position": competitive_position,
    "comp.market_share": market_share,
    "comp.competitive_capability": competitive_capability,
    "comp.strength_weakness": strength_weakness,
    "comp.relative_performance": relative_performance,
}
