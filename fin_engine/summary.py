"""
fin_engine/summary.py
=====================
Executive summary: a pure aggregation over the settled ``AnalysisResult`` set.

favorable   = results evaluated ``good``
unfavorable = everything else (below, no benchmark, unavailable)

SWOT, risk, forecast and recommendation lines come from fixed threshold
rules over specific analyses; every line is bilingual.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence

from .calculators._base import ALTMAN_DISTRESS
from .calculators.detection import SUB_INVESTMENT_GRADE
from .formatting import format_compact, format_days, format_percent, format_ratio, txt
from .types import AnalysisResult, ExecutiveSummary, LocalizedText, SummaryRow, Swot

# Thresholds
DEBT_TO_EQUITY_HIGH = 200.0      # percent
CURRENT_RATIO_LOW = 1.0
INTEREST_COVER_LOW = 1.5
CCC_LONG = 90.0                  # days
NET_MARGIN_STRONG = 15.0         # percent
ROE_STRONG = 15.0                # percent
REVENUE_CAGR_HIGH = 10.0         # percent
LOSS_PROBABILITY_HIGH = 0.5
MAX_CARRIED_RECOMMENDATIONS = 10


def _index(results: Iterable[AnalysisResult]) -> Dict[str, AnalysisResult]:
    return {r.id: r for r in results}


def _value(by_id: Dict[str, AnalysisResult], analysis_id: str) -> Optional[float]:
    r = by_id.get(analysis_id)
    return r.value if r is not None and r.status != "unavailable" else None


def _details(by_id: Dict[str, AnalysisResult], analysis_id: str):
    r = by_id.get(analysis_id)
    return r.details if r is not None and r.status != "unavailable" else None


# ─── Rule Blocks ──────────────────────────────────────────────────────────────

class _Findings:
    def __init__(self):
        self.strengths: List[LocalizedText] = []
        self.weaknesses: List[LocalizedText] = []
        self.opportunities: List[LocalizedText] = []
        self.threats: List[LocalizedText] = []
        self.risks: List[LocalizedText] = []
        self.forecasts: List[LocalizedText] = []
        self.recommendations: List[LocalizedText] = []


def _liquidity_and_leverage(by_id: Dict[str, AnalysisResult], f: _Findings) -> None:
    de = _value(by_id, "ratio.debt_to_equity")
    if de is not None and de > DEBT_TO_EQUITY_HIGH:
        f.risks.append(txt(
            f"High leverage: debt-to-equity of {format_percent(de)} exceeds {DEBT_TO_EQUITY_HIGH:.0f}%.",
            f"مديونية مرتفعة: نسبة الديون إلى حقوق الملكية {format_percent(de)} تتجاوز {DEBT_TO_EQUITY_HIGH:.0f}%.",
        ))
        f.weaknesses.append(txt("Heavy reliance on debt financing.", "اعتماد كبير على التمويل بالديون."))
        f.recommendations.append(txt(
            "Reduce leverage through debt repayment or equity financing.",
            "خفض المديونية عبر سداد الديون أو التمويل بحقوق الملكية.",
        ))

    cr = _value(by_id, "ratio.current")
    if cr is not None and cr < CURRENT_RATIO_LOW:
        f.risks.append(txt(
            f"Liquidity risk: current ratio of {format_ratio(cr)} is below 1.",
            f"مخاطر السيولة: النسبة الجارية {format_ratio(cr)} أقل من 1.",
        ))
        f.weaknesses.append(txt("Current liabilities exceed current assets.", "الخصوم المتداولة تفوق الأصول المتداولة."))
        f.recommendations.append(txt(
            "Strengthen working capital and extend short-term maturities.",
            "تعزيز رأس المال العامل وتمديد آجال الالتزامات قصيرة الأجل.",
        ))
    elif cr is not None and cr >= 2.0:
        f.strengths.append(txt(f"Comfortable liquidity (current ratio {format_ratio(cr)}).",
                               f"سيولة مريحة (النسبة الجارية {format_ratio(cr)})."))

    ic = _value(by_id, "ratio.interest_coverage")
    if ic is not None and ic < INTEREST_COVER_LOW:
        f.risks.append(txt(
            f"Debt-service risk: operating profit covers interest only {format_ratio(ic)}.",
            f"مخاطر خدمة الدين: الربح التشغيلي يغطي الفوائد {format_ratio(ic)} فقط.",
        ))
        f.recommendations.append(txt(
            "Refinance expensive debt or lift operating profit to restore interest cover.",
            "إعادة تمويل الديون مرتفعة التكلفة أو رفع الربح التشغيلي لتحسين تغطية الفوائد.",
        ))

    ccc = _value(by_id, "ratio.ccc")
    if ccc is not None and ccc > CCC_LONG:
        f.weaknesses.append(txt(
            f"Long cash conversion cycle of {format_days(ccc)} days ties up working capital.",
            f"دورة تحويل نقدي طويلة ({format_days(ccc)} يوماً) تحتجز رأس المال العامل.",
        ))
        f.recommendations.append(txt(
            "Shorten collection periods and tighten inventory management.",
            "تقصير فترات التحصيل وإحكام إدارة المخزون.",
        ))


def _profitability(by_id: Dict[str, AnalysisResult], f: _Findings) -> None:
    nm = _value(by_id, "ratio.net_margin")
    if nm is not None and nm >= NET_MARGIN_STRONG:
        f.strengths.append(txt(f"Strong net margin of {format_percent(nm)}.",
                               f"هامش صافي ربح قوي بنسبة {format_percent(nm)}."))
    elif nm is not None and nm < 0:
        f.weaknesses.append(txt(f"Loss-making: net margin of {format_percent(nm)}.",
                                f"الشركة تحقق خسائر: هامش صافي الربح {format_percent(nm)}."))

    roe = _value(by_id, "ratio.roe")
    if roe is not None and roe >= ROE_STRONG:
        f.strengths.append(txt(f"Return on equity of {format_percent(roe)}.",
                               f"عائد على حقوق الملكية بنسبة {format_percent(roe)}."))

    fcf = _value(by_id, "flow.free_cash_flow")
    if fcf is not None and fcf < 0:
        f.weaknesses.append(txt(f"Negative free cash flow ({format_compact(fcf)}).",
                                f"تدفق نقدي حر سالب ({format_compact(fcf)})."))

    cagr = _value(by_id, "struct.growth_rate")
    if cagr is not None and cagr >= REVENUE_CAGR_HIGH:
        f.opportunities.append(txt(
            f"Revenue compounding at {format_percent(cagr)} a year supports expansion.",
            f"نمو الإيراد بمعدل مركب {format_percent(cagr)} سنوياً يدعم التوسع.",
        ))
    elif cagr is not None and cagr < 0:
        f.threats.append(txt(f"Revenue is contracting ({format_percent(cagr)} a year).",
                             f"الإيرادات في تراجع ({format_percent(cagr)} سنوياً)."))


def _detection(by_id: Dict[str, AnalysisResult], f: _Findings) -> None:
    rating = _details(by_id, "detect.credit_rating")
    if rating is not None and rating.rating in SUB_INVESTMENT_GRADE:
        f.threats.append(txt(
            f"Sub-investment-grade credit profile ({rating.rating}) raises funding costs.",
            f"التصنيف الائتماني دون درجة الاستثمار ({rating.rating}) يرفع تكلفة التمويل.",
        ))

    anomaly = _details(by_id, "detect.anomaly")
    if anomaly is not None and anomaly.flagged:
        f.risks.append(txt(
            "Latest net income deviates abnormally from its historical pattern.",
            "صافي الدخل الأخير ينحرف بشكل غير طبيعي عن نمطه التاريخي.",
        ))
        f.recommendations.append(txt(
            "Review the latest year's accounts for one-off items or reporting errors.",
            "مراجعة حسابات السنة الأخيرة بحثاً عن بنود غير متكررة أو أخطاء في الإفصاح.",
        ))

    z = _value(by_id, "detect.bankruptcy")
    if z is not None and z < ALTMAN_DISTRESS:
        f.risks.append(txt(
            f"Distress risk: Altman Z-score of {z:.2f} is below {ALTMAN_DISTRESS}.",
            f"مخاطر التعثر: مؤشر ألتمان {z:.2f} أقل من {ALTMAN_DISTRESS}.",
        ))
        f.recommendations.append(txt(
            "Prepare a liquidity and restructuring plan.",
            "إعداد خطة للسيولة وإعادة الهيكلة.",
        ))

    fraud = _details(by_id, "detect.fraud")
    if fraud is not None and fraud.flagged:
        f.risks.append(txt("Earnings-manipulation indicators exceed the Beneish threshold.",
                           "مؤشرات التلاعب بالأرباح تتجاوز عتبة بنيش."))

    mc = _details(by_id, "model.monte_carlo")
    if mc is not None and mc.probability_of_loss is not None and mc.probability_of_loss > LOSS_PROBABILITY_HIGH:
        f.threats.append(txt(
            f"Simulation shows a {format_percent(mc.probability_of_loss * 100)} chance of negative NPV.",
            f"تظهر المحاكاة احتمال {format_percent(mc.probability_of_loss * 100)} لقيمة حالية صافية سالبة.",
        ))


def _forecasts(by_id: Dict[str, AnalysisResult], f: _Findings) -> None:
    trend = _details(by_id, "struct.trend")
    if trend is not None and "next_year_projection" in trend.metrics:
        p = trend.metrics["next_year_projection"]
        f.forecasts.append(txt(
            f"Linear revenue trend projects {format_compact(p)} next year.",
            f"يتوقع الاتجاه الخطي للإيراد {format_compact(p)} في العام القادم.",
        ))
    fc = _details(by_id, "model.forecasting")
    if fc is not None and fc.series:
        year = min(fc.series)
        low, high = fc.percentiles.get(5), fc.percentiles.get(95)
        band = f" (90% band {format_compact(low)} to {format_compact(high)})" if low is not None else ""
        band_ar = f" (نطاق 90%: {format_compact(low)} إلى {format_compact(high)})" if low is not None else ""
        f.forecasts.append(txt(
            f"Revenue forecast for {year}: {format_compact(fc.series[year])}{band}.",
            f"توقع الإيراد لعام {year}: {format_compact(fc.series[year])}{band_ar}.",
        ))


_RULES = (_liquidity_and_leverage, _profitability, _detection, _forecasts)


# ─── Builder ──────────────────────────────────────────────────────────────────

def _dedupe(items: Sequence[LocalizedText]) -> tuple:
    seen = set()
    out = []
    for item in items:
        if item.en not in seen:
            seen.add(item.en)
            out.append(item)
    return tuple(out)


def build_executive_summary(results: Sequence[AnalysisResult]) -> ExecutiveSummary:
    by_id = _index(results)
    findings = _Findings()
    for rule in _RULES:
        rule(by_id, findings)

    favorable = tuple(r.id for r in results if r.evaluation.favorable)
    unfavorable = tuple(r.id for r in results if not r.evaluation.favorable)

    # Carry calculator recommendations from analyses that fell short.
    carried: List[LocalizedText] = []
    for r in results:
        if r.evaluation.code == "below":
            carried.extend(r.recommendations)
    recommendations = _dedupe(findings.recommendations + carried[:MAX_CARRIED_RECOMMENDATIONS])

    table = tuple(
        SummaryRow(index=i, id=r.id, name=r.name, value=r.value,
                   benchmark=r.benchmark, evaluation=r.evaluation.label)
        for i, r in enumerate(results, start=1)
    )
    return ExecutiveSummary(
        results_table=table,
        favorable=favorable,
        unfavorable=unfavorable,
        swot=Swot(
            strengths=_dedupe(findings.strengths),
            weaknesses=_dedupe(findings.weaknesses),
            opportunities=_dedupe(findings.opportunities),
            threats=_dedupe(findings.threats),
        ),
        risks=_dedupe(findings.risks),
        forecasts=tuple(findings.forecasts),
        recommendations=recommendations,
    )
