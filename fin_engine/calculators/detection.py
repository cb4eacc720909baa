"""
fin_engine/calculators/detection.py
===================================
Early-warning, fraud and distress screens plus the learned-style forecasters.

All models here are deterministic: fixed coefficients, fixed thresholds and,
where randomness is involved (the random-feature network, boosting), a seed
taken from ``options.seed``. The learned models are scikit-learn estimators
(Ridge, GradientBoostingRegressor, KMeans, PCA) fitted on yearly data.

Credit rating
-------------
Points over seven ratio tests map to bands AAA..CCC with a fixed default
probability per band. Ratings of BB and below are flagged.
"""
from __future__ import annotations
import math
from typing import Dict, Optional, Tuple

import numpy as np
from sklearn.cluster import KMeans
from sklearn.decomposition import PCA
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.linear_model import LinearRegression, Ridge
from sklearn.preprocessing import StandardScaler

from ..errors import InputDataError
from ..formatting import format_compact, format_percent, txt
from ..mathutils import linear_trend, mean, safe_div, std_dev
from ..quant import holt_forecast
from ..types import AnalysisOptions, BenchmarkSet, DetectionResult, FinancialStatement
from ._base import (
    ALTMAN_DISTRESS, ALTMAN_SAFE, Statements, altman_components, altman_z, latest, net_income,
    operating_cash_flow, previous, ratio_vector, require, require_nonzero, require_years, revenue,
    val, values,
)

BENEISH_THRESHOLD = -1.78
_BENEISH = {
    "intercept": -4.84, "dsri": 0.92, "gmi": 0.528, "aqi": 0.404, "sgi": 0.892,
    "depi": 0.115, "sgai": -0.172, "tata": 4.679, "lvgi": -0.327,
}

RATING_BANDS: Tuple[Tuple[int, str], ...] = (
    (7, "AAA"), (6, "AA"), (5, "A"), (4, "BBB"), (3, "BB"), (2, "B"),
)
DEFAULT_PROBABILITY: Dict[str, float] = {
    "AAA": 0.01, "AA": 0.02, "A": 0.05, "BBB": 0.10, "BB": 0.20, "B": 0.35, "CCC": 0.50,
}
SUB_INVESTMENT_GRADE = ("BB", "B", "CCC")

# Logistic distress model: intercept and per-feature weights.
_LOGIT_INTERCEPT = -1.0
_LOGIT_WEIGHTS: Dict[str, float] = {
    "net_margin": -8.0, "current_ratio": -0.8, "liabilities_to_assets": 3.0,
    "ocf_to_liabilities": -2.5, "log_interest_coverage": -0.6,
}

ANOMALY_SIGMAS = 2.0


def _index(cur: Optional[float], prev: Optional[float]) -> float:
    r = safe_div(cur, prev)
    return r if r is not None and r > 0 else 1.0


# ─── Fraud / manipulation ─────────────────────────────────────────────────────

def beneish_indices(cur: FinancialStatement, prev: FinancialStatement) -> Dict[str, float]:
    def gm(s):
        rev = s.inc.revenue
        gp = s.inc.gross_profit if s.inc.gross_profit is not None else val(rev) - val(s.inc.cogs)
        return safe_div(gp, rev)

    def soft_assets(s):
        ta = s.bs.total_assets
        return 1 - (val(s.bs.total_current_assets) + val(s.bs.ppe)) / ta if ta else None

    def dep_rate(s):
        d = val(s.inc.depreciation)
        return safe_div(d, d + val(s.bs.ppe))

    ta1 = require_nonzero(cur.bs.total_assets, "balance_sheet.total_assets")
    return {
        "dsri": _index(safe_div(cur.bs.receivables, cur.inc.revenue), safe_div(prev.bs.receivables, prev.inc.revenue)),
        "gmi": _index(gm(prev), gm(cur)),
        "aqi": _index(soft_assets(cur), soft_assets(prev)),
        "sgi": _index(cur.inc.revenue, prev.inc.revenue),
        "depi": _index(dep_rate(prev), dep_rate(cur)),
        "sgai": _index(safe_div(cur.inc.operating_expenses, cur.inc.revenue),
                       safe_div(prev.inc.operating_expenses, prev.inc.revenue)),
        "lvgi": _index(safe_div(cur.bs.total_liabilities, cur.bs.total_assets),
                       safe_div(prev.bs.total_liabilities, prev.bs.total_assets)),
        "tata": (val(cur.inc.net_income) - val(cur.cf.operating_cash_flow)) / ta1,
    }


def fraud(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> DetectionResult:
    """Beneish M-score; above -1.78 suggests earnings manipulation."""
    cur, prev = latest(statements), previous(statements)
    require(cur.inc.revenue, "income_statement.revenue")
    require(prev.inc.revenue, "income_statement.revenue")
    idx = beneish_indices(cur, prev)
    m = _BENEISH["intercept"] + sum(_BENEISH[k] * v for k, v in idx.items())
    flagged = m > BENEISH_THRESHOLD
    return DetectionResult(
        value=round(m, 4),
        benchmark=BENEISH_THRESHOLD,
        flagged=flagged,
        score=round(m, 4),
        threshold=BENEISH_THRESHOLD,
        metrics={k: round(v, 4) for k, v in idx.items()},
        interpretation=txt(
            f"M-score of {m:.2f} is {'above' if flagged else 'below'} the {BENEISH_THRESHOLD} manipulation threshold.",
            f"مؤشر بنيش {m:.2f} {'أعلى' if flagged else 'أدنى'} من عتبة التلاعب {BENEISH_THRESHOLD}.",
        ),
        chart_hint="bar",
    )


def aml(statements: Statements, benchmarks: BenchmarkSet,
        options: AnalysisOptions) -> DetectionResult:
    """Screen (0-100) for unexplained cash: reconciliation gaps, cash build-up and other income."""
    cur, prev = latest(statements), previous(statements)
    ta = require_nonzero(cur.bs.total_assets, "balance_sheet.total_assets")
    rev = require_nonzero(cur.inc.revenue, "income_statement.revenue")
    cash_delta = cur.bs.cash_and_equivalents - prev.bs.cash_and_equivalents
    reported = cur.cf.net_change_in_cash
    gap = abs(cash_delta - reported) / ta if reported is not None else 0.0
    buildup = max(cur.bs.cash_and_equivalents / ta - prev.bs.cash_and_equivalents / (prev.bs.total_assets or ta), 0.0)
    other = abs(val(cur.inc.other_income)) / rev
    components = {
        "reconciliation_gap": min(gap / 0.05, 1.0) * 40,
        "cash_buildup": min(buildup / 0.10, 1.0) * 30,
        "other_income": min(other / 0.10, 1.0) * 30,
    }
    score = sum(components.values())
    return DetectionResult(
        value=round(score, 2),
        benchmark=50.0,
        flagged=score > 50,
        score=round(score, 2),
        threshold=50.0,
        metrics={k: round(v, 2) for k, v in components.items()},
        interpretation=txt(
            f"Cash-movement screen scores {score:.0f}/100.",
            f"درجة فحص حركة النقد {score:.0f} من 100.",
        ),
        chart_hint="bar",
    )


def market_manipulation(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> DetectionResult:
    """Gap (pp) between the share price move and earnings growth."""
    cur, prev = latest(statements), previous(statements)
    p1, p0 = cur.market.share_price, prev.market.share_price
    if not p0 or p1 is None:
        raise InputDataError("market.share_price")
    e1 = require(cur.inc.net_income, "income_statement.net_income")
    e0 = require_nonzero(prev.inc.net_income, "income_statement.net_income")
    price_move = (p1 - p0) / p0 * 100
    earnings_move = (e1 - e0) / abs(e0) * 100
    gap = abs(price_move - earnings_move)
    return DetectionResult(
        value=round(gap, 2),
        benchmark=50.0,
        flagged=gap > 50,
        score=round(gap, 2),
        threshold=50.0,
        metrics={"price_change": round(price_move, 2), "earnings_change": round(earnings_move, 2)},
        interpretation=txt(
            f"The share price moved {price_move:+.1f}% against earnings {earnings_move:+.1f}%.",
            f"تحرك سعر السهم {price_move:+.1f}% مقابل الأرباح {earnings_move:+.1f}%.",
        ),
        chart_hint="bar",
    )


# ─── Distress ─────────────────────────────────────────────────────────────────

def bankruptcy(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> DetectionResult:
    s = latest(statements)
    z = altman_z(s)
    zone = "distress" if z < ALTMAN_DISTRESS else ("grey" if z < ALTMAN_SAFE else "safe")
    zone_ar = {"distress": "الخطر", "grey": "الرمادية", "safe": "الأمان"}[zone]
    hist = {}
    for st in statements:
        try:
            hist[st.year] = round(altman_z(st), 4)
        except InputDataError:
            continue
    return DetectionResult(
        value=round(z, 4),
        benchmark=ALTMAN_SAFE,
        series=hist,
        flagged=z < ALTMAN_DISTRESS,
        score=round(z, 4),
        threshold=ALTMAN_DISTRESS,
        metrics={"zone": zone, **{k: round(v, 4) for k, v in altman_components(s).items()}},
        interpretation=txt(
            f"Altman Z of {z:.2f} places the company in the {zone} zone.",
            f"مؤشر ألتمان Z يبلغ {z:.2f} ويضع الشركة في منطقة {zone_ar}.",
        ),
        chart_hint="gauge",
    )


def _crisis_signals(s: FinancialStatement, prev: Optional[FinancialStatement]) -> Dict[str, bool]:
    coverage = safe_div(s.inc.operating_income, s.inc.interest_expense)
    signals = {
        "negative_operating_cash_flow": val(s.cf.operating_cash_flow) < 0,
        "current_ratio_below_1": (safe_div(s.bs.total_current_assets, s.bs.total_current_liabilities) or 0.0) < 1,
        "interest_coverage_below_1_5": coverage is not None and coverage < 1.5,
        "debt_to_equity_above_200": (safe_div(s.bs.total_liabilities, s.bs.total_equity) or 0.0) > 2
        or val(s.bs.total_equity) <= 0,
        "net_loss": val(s.inc.net_income) < 0,
        "revenue_decline": prev is not None and val(s.inc.revenue) < val(prev.inc.revenue),
    }
    return signals


def crisis(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> DetectionResult:
    s = latest(statements)
    require(s.inc.revenue, "income_statement.revenue")
    prev = statements[-2] if len(statements) >= 2 else None
    signals = _crisis_signals(s, prev)
    score = sum(signals.values()) / len(signals) * 100
    on = [k for k, v in signals.items() if v]
    return DetectionResult(
        value=round(score, 2),
        benchmark=50.0,
        flagged=score >= 50,
        score=round(score, 2),
        threshold=50.0,
        metrics={"signals": signals},
        interpretation=txt(
            f"{len(on)} of {len(signals)} crisis signals are active"
            + (f": {', '.join(on)}." if on else "."),
            f"{len(on)} من أصل {len(signals)} مؤشرات أزمة نشطة.",
        ),
        chart_hint="table",
    )


def anomaly(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> DetectionResult:
    """
    Net income against its linear trend. The latest absolute residual is the
    reconstruction error; it is flagged when it exceeds mean + 2σ of the
    earlier residuals. The score is the error in hundredths of a standard
    deviation above the historical mean.
    """
    ni = values(statements, net_income, "income_statement.net_income", 4)
    slope, intercept = linear_trend(ni)
    errors = [abs(v - (intercept + slope * i)) for i, v in enumerate(ni)]
    hist, current = errors[:-1], errors[-1]
    mu, sd = mean(hist), std_dev(hist) or 0.0
    threshold = mu + ANOMALY_SIGMAS * sd
    tolerance = 1e-9 * max(abs(v) for v in ni)
    flagged = current > threshold + tolerance
    if sd > tolerance:
        score = (current - mu) / sd * 100
    else:
        score = 0.0 if current <= mu + tolerance else 999.0
    return DetectionResult(
        value=round(score, 2),
        benchmark=ANOMALY_SIGMAS * 100,
        flagged=flagged,
        score=round(score, 2),
        threshold=round(threshold, 2),
        metrics={"reconstruction_error": round(current, 2), "historical_mean": round(mu, 2),
                 "historical_std": round(sd, 2)},
        interpretation=txt(
            f"Latest net income deviates {format_compact(current)} from trend; the alert level is "
            f"{format_compact(threshold)}" + (" (anomaly)." if flagged else "."),
            f"ينحرف صافي الربح الأخير {format_compact(current)} عن الاتجاه، وحد التنبيه "
            f"{format_compact(threshold)}" + (" (شذوذ)." if flagged else "."),
        ),
        chart_hint="line",
    )


def volatility(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> DetectionResult:
    """Coefficient of variation of net income, in percent."""
    ni = values(statements, net_income, "income_statement.net_income", 3)
    m, sd = mean(ni), std_dev(ni)
    if not m:
        raise InputDataError("income_statement.net_income", "zero mean")
    cv = sd / abs(m) * 100
    return DetectionResult(
        value=round(cv, 2),
        flagged=cv > 50,
        score=round(cv, 2),
        threshold=50.0,
        interpretation=txt(
            f"Earnings vary by {format_percent(cv)} of their average.",
            f"تتفاوت الأرباح بنسبة {format_percent(cv)} من متوسطها.",
        ),
        chart_hint="line",
    )


def early_warning(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> DetectionResult:
    cur, prev = latest(statements), previous(statements)
    require(cur.inc.revenue, "income_statement.revenue")

    def margin(s):
        return safe_div(s.inc.net_income, s.inc.revenue) or 0.0

    def dso(s):
        return safe_div(s.bs.receivables, s.inc.revenue) or 0.0

    def lev(s):
        return safe_div(s.bs.total_liabilities, s.bs.total_assets) or 0.0

    rev_growth = safe_div(val(cur.inc.revenue) - val(prev.inc.revenue), abs(val(prev.inc.revenue))) or 0.0
    inv_growth = safe_div(val(cur.bs.inventory) - val(prev.bs.inventory), abs(val(prev.bs.inventory))) or 0.0
    signals = {
        "falling_margin": margin(cur) < margin(prev),
        "rising_collection_period": dso(cur) > dso(prev) * 1.1,
        "rising_leverage": lev(cur) > lev(prev) + 0.05,
        "falling_operating_cash_flow": val(cur.cf.operating_cash_flow) < val(prev.cf.operating_cash_flow),
        "inventory_outpacing_sales": inv_growth > rev_growth + 0.10,
        "negative_free_cash_flow": val(cur.cf.free_cash_flow) < 0,
    }
    count = sum(signals.values())
    return DetectionResult(
        value=float(count),
        benchmark=2.0,
        flagged=count > 2,
        score=float(count),
        threshold=2.0,
        metrics={"signals": signals},
        interpretation=txt(
            f"{count} early-warning signals are active.",
            f"{count} إشارات إنذار مبكر نشطة.",
        ),
        chart_hint="table",
    )


def behavioral(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> DetectionResult:
    """Earnings smoothing: σ(Δ net income) / σ(Δ operating cash flow); below 0.5 is suspicious."""
    ni = values(statements, net_income, "income_statement.net_income", 3)
    ocf = values(statements, operating_cash_flow, "cash_flow.operating_cash_flow", 3)
    d_ni, d_ocf = np.diff(ni), np.diff(ocf)
    s_ocf = float(d_ocf.std(ddof=1))
    if s_ocf == 0:
        raise InputDataError("cash_flow.operating_cash_flow", "no variation")
    value = float(d_ni.std(ddof=1)) / s_ocf
    return DetectionResult(
        value=round(value, 4),
        benchmark=0.5,
        flagged=value < 0.5,
        score=round(value, 4),
        threshold=0.5,
        interpretation=txt(
            f"Earnings move {value:.2f}x as much as operating cash flow"
            + ("; a sign of smoothing." if value < 0.5 else "."),
            f"تتحرك الأرباح {value:.2f} مرة مقارنة بالتدفق النقدي التشغيلي.",
        ),
        chart_hint="line",
    )


def distress_features(s: FinancialStatement) -> Dict[str, float]:
    ta = require_nonzero(s.bs.total_assets, "balance_sheet.total_assets")
    tl = val(s.bs.total_liabilities)
    coverage = safe_div(s.inc.operating_income, s.inc.interest_expense)
    coverage = 999.0 if coverage is None else coverage
    return {
        "net_margin": safe_div(s.inc.net_income, s.inc.revenue) or 0.0,
        "current_ratio": min(safe_div(s.bs.total_current_assets, s.bs.total_current_liabilities) or 0.0, 5.0),
        "liabilities_to_assets": tl / ta,
        "ocf_to_liabilities": safe_div(s.cf.operating_cash_flow, tl) or 0.0,
        "log_interest_coverage": math.log1p(max(min(coverage, 999.0), 0.0)),
    }


def explainable(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> DetectionResult:
    """Logistic distress probability with per-feature contributions to the log-odds."""
    features = distress_features(latest(statements))
    contributions = {k: _LOGIT_WEIGHTS[k] * v for k, v in features.items()}
    logit = _LOGIT_INTERCEPT + sum(contributions.values())
    p = 1 / (1 + math.exp(-max(min(logit, 50.0), -50.0))) * 100
    top = max(contributions, key=contributions.get)
    return DetectionResult(
        value=round(p, 2),
        benchmark=50.0,
        flagged=p >= 50,
        score=round(logit, 4),
        threshold=50.0,
        default_probability=round(p / 100, 4),
        metrics={"features": {k: round(v, 4) for k, v in features.items()},
                 "contributions": {k: round(v, 4) for k, v in contributions.items()}},
        interpretation=txt(
            f"Distress probability is {format_percent(p)}; {top.replace('_', ' ')} pushes it up the most.",
            f"احتمال التعثر {format_percent(p)}.",
        ),
        chart_hint="bar",
    )


# ─── Forecasters ──────────────────────────────────────────────────────────────

def neural_forecast(statements: Statements, benchmarks: BenchmarkSet,
                    options: AnalysisOptions) -> DetectionResult:
    """Random-feature network (fixed tanh hidden layer, ridge read-out) on two revenue lags."""
    rev = np.asarray(values(statements, revenue, "income_statement.revenue", 4))
    scale = float(np.abs(rev).max()) or 1.0
    z = rev / scale
    x = np.column_stack([z[:-2], z[1:-1]])
    y = z[2:]
    rng = np.random.default_rng(options.seed)
    w = rng.normal(0, 1, (2, 10))
    b = rng.normal(0, 0.1, 10)
    h = np.tanh(x @ w + b)
    readout = Ridge(alpha=1e-2, fit_intercept=False).fit(h, y)
    nxt = float(readout.predict(np.tanh(np.array([[z[-2], z[-1]]]) @ w + b))[0]) * scale
    fit_err = float(np.sqrt(np.mean((readout.predict(h) - y) ** 2))) * scale
    return DetectionResult(
        value=round(nxt, 2),
        score=round(fit_err, 2),
        metrics={"hidden_units": 10, "seed": options.seed, "training_rmse": round(fit_err, 2)},
        interpretation=txt(
            f"The network forecasts revenue of {format_compact(nxt)} next year.",
            f"تتوقع الشبكة العصبية إيرادات بقيمة {format_compact(nxt)} للعام القادم.",
        ),
        chart_hint="line",
    )


def sequence_forecast(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> DetectionResult:
    """Holt's linear smoothing (level 0.5, trend 0.3) as a lightweight sequence model."""
    rev = values(statements, revenue, "income_statement.revenue", 3)
    nxt = holt_forecast(rev, level=0.5, trend=0.3)
    return DetectionResult(
        value=round(nxt, 2),
        metrics={"smoothing_level": 0.5, "smoothing_trend": 0.3},
        interpretation=txt(
            f"The sequence model carries revenue to {format_compact(nxt)} next year.",
            f"يتوقع نموذج التسلسل إيرادات بقيمة {format_compact(nxt)} للعام القادم.",
        ),
        chart_hint="line",
    )


def credit_points(s: FinancialStatement) -> Dict[str, int]:
    cl = s.bs.total_current_liabilities
    coverage = safe_div(s.inc.operating_income, s.inc.interest_expense)
    if coverage is None and s.inc.operating_income is not None and not s.inc.interest_expense:
        coverage = 999.0
    de = safe_div(s.bs.total_liabilities, s.bs.total_equity)
    wc = s.bs.working_capital
    return {
        "current_ratio": 2 if (safe_div(s.bs.total_current_assets, cl) or 0.0) > 1.5 else 0,
        "debt_to_equity": 2 if de is not None and 0 <= de < 1 else 0,
        "interest_coverage": 2 if (coverage or 0.0) > 2 else 0,
        "net_margin": 1 if (safe_div(s.inc.net_income, s.inc.revenue) or 0.0) > 0.1 else 0,
        "asset_turnover": 1 if (safe_div(s.inc.revenue, s.bs.total_assets) or 0.0) > 0.5 else 0,
        "cash_ratio": 1 if (safe_div(s.bs.cash_and_equivalents, cl) or 0.0) > 0.2 else 0,
        "working_capital": 1 if wc is not None and wc > 0 else 0,
    }


def rating_for(points: int) -> str:
    for floor, band in RATING_BANDS:
        if points >= floor:
            return band
    return "CCC"


def credit_rating(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> DetectionResult:
    s = latest(statements)
    require(s.bs.total_assets, "balance_sheet.total_assets")
    require(s.inc.revenue, "income_statement.revenue")
    points = credit_points(s)
    total = sum(points.values())
    band = rating_for(total)
    pd = DEFAULT_PROBABILITY[band]
    return DetectionResult(
        value=float(total),
        benchmark=4.0,
        flagged=band in SUB_INVESTMENT_GRADE,
        score=float(total),
        threshold=4.0,
        rating=band,
        default_probability=pd,
        metrics={"points": points},
        interpretation=txt(
            f"Scoring {total}/10 earns a {band} rating with a {pd:.0%} default probability.",
            f"بحصولها على {total} من 10 تنال الشركة تصنيف {band} باحتمال تعثر {pd:.0%}.",
        ),
        chart_hint="gauge",
    )


def gradient_boosting(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> DetectionResult:
    """Linear base learner plus ten shrunken decision stumps boosted on its residuals over the time index."""
    rev = np.asarray(values(statements, revenue, "income_statement.revenue", 4))
    t = np.arange(rev.size, dtype=float).reshape(-1, 1)
    nxt_t = np.array([[float(rev.size)]])
    base = LinearRegression().fit(t, rev)
    boost = GradientBoostingRegressor(n_estimators=10, learning_rate=0.3, max_depth=1,
                                      random_state=options.seed)
    boost.fit(t, rev - base.predict(t))
    pred = base.predict(t) + boost.predict(t)
    nxt = float(base.predict(nxt_t)[0] + boost.predict(nxt_t)[0])
    rmse = float(np.sqrt(np.mean((rev - pred) ** 2)))
    return DetectionResult(
        value=round(nxt, 2),
        score=round(rmse, 2),
        metrics={"stumps": boost.n_estimators_, "learning_rate": 0.3, "training_rmse": round(rmse, 2)},
        interpretation=txt(
            f"The boosted model forecasts revenue of {format_compact(nxt)} next year.",
            f"يتوقع نموذج التعزيز التدرجي إيرادات بقيمة {format_compact(nxt)} للعام القادم.",
        ),
        chart_hint="line",
    )


def _standardised_profiles(statements: Statements) -> np.ndarray:
    return StandardScaler().fit_transform(np.asarray([ratio_vector(s) for s in statements], dtype=float))


def clustering(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> DetectionResult:
    """2-means over yearly ratio profiles, seeded with the first and last year; value is the share of years like the latest."""
    require_years(statements, 3)
    z = _standardised_profiles(statements)
    model = KMeans(n_clusters=2, init=np.vstack([z[0], z[-1]]), n_init=1, max_iter=50)
    labels = model.fit_predict(z)
    same = float((labels == labels[-1]).mean() * 100)
    years = [s.year for s in statements]
    return DetectionResult(
        value=round(same, 2),
        metrics={"labels": {y: int(l) for y, l in zip(years, labels)}},
        interpretation=txt(
            f"{format_percent(same)} of years share the latest year's financial profile.",
            f"{format_percent(same)} من السنوات تشترك في الملف المالي للسنة الأخيرة.",
        ),
        chart_hint="scatter",
    )


def autoencoder(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> DetectionResult:
    """One-component linear autoencoder (PCA) over ratio profiles; latest error vs mean + 2σ of earlier errors."""
    require_years(statements, 4)
    z = _standardised_profiles(statements)
    codec = PCA(n_components=1).fit(z)
    recon = codec.inverse_transform(codec.transform(z))
    errors = np.sqrt(((z - recon) ** 2).sum(axis=1))
    hist, current = errors[:-1], float(errors[-1])
    mu, sd = float(hist.mean()), float(hist.std(ddof=1))
    threshold = mu + ANOMALY_SIGMAS * sd
    flagged = current > threshold + 1e-9
    score = (current - mu) / sd * 100 if sd > 1e-12 else 0.0
    return DetectionResult(
        value=round(score, 2),
        benchmark=ANOMALY_SIGMAS * 100,
        flagged=flagged,
        score=round(score, 2),
        threshold=round(threshold, 4),
        metrics={"reconstruction_error": round(current, 4),
                 "errors": {s.year: round(float(e), 4) for s, e in zip(statements, errors)}},
        interpretation=txt(
            f"The latest profile reconstructs with error {current:.3f} against an alert level of {threshold:.3f}.",
            f"خطأ إعادة بناء الملف الأخير {current:.3f} مقابل حد تنبيه {threshold:.3f}.",
        ),
        chart_hint="line",
    )


def sentiment(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> DetectionResult:
    """Fundamental sentiment: share of headline items that improved on last year (0-100)."""
    cur, prev = latest(statements), previous(statements)
    require(cur.inc.revenue, "income_statement.revenue")

    def margin(s):
        return safe_div(s.inc.net_income, s.inc.revenue) or 0.0

    checks = {
        "revenue": val(cur.inc.revenue) > val(prev.inc.revenue),
        "net_income": val(cur.inc.net_income) > val(prev.inc.net_income),
        "operating_cash_flow": val(cur.cf.operating_cash_flow) > val(prev.cf.operating_cash_flow),
        "net_margin": margin(cur) > margin(prev),
        "equity": val(cur.bs.total_equity) > val(prev.bs.total_equity),
    }
    score = sum(checks.values()) / len(checks) * 100
    mood = "positive" if score > 60 else ("negative" if score < 40 else "neutral")
    return DetectionResult(
        value=round(score, 2),
        benchmark=50.0,
        score=round(score, 2),
        metrics={"improved": checks, "tone": mood},
        interpretation=txt(
            f"Fundamental sentiment is {mood} ({score:.0f}/100).",
            f"المعنويات الأساسية {'إيجابية' if mood == 'positive' else ('سلبية' if mood == 'negative' else 'محايدة')} "
            f"({score:.0f} من 100).",
        ),
        chart_hint="gauge",
    )


def blockchain(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> DetectionResult:
    """Traceability readiness (0-100): cash-flow completeness and cash reconciliation."""
    cur = latest(statements)
    cf = cur.cf
    items = [cf.operating_cash_flow, cf.capex, cf.investing_cash_flow, cf.financing_cash_flow,
             cf.net_change_in_cash]
    completeness = sum(v is not None for v in items) / len(items)
    reconciles = 0.5
    if len(statements) >= 2 and cf.net_change_in_cash is not None:
        delta = cur.bs.cash_and_equivalents - previous(statements).bs.cash_and_equivalents
        scale = max(abs(delta), abs(cf.net_change_in_cash), 1.0)
        reconciles = 1.0 if abs(delta - cf.net_change_in_cash) / scale < 0.01 else 0.0
    score = (0.6 * completeness + 0.4 * reconciles) * 100
    return DetectionResult(
        value=round(score, 2),
        benchmark=70.0,
        score=round(score, 2),
        metrics={"completeness": round(completeness * 100, 2), "cash_reconciles": reconciles == 1.0},
        interpretation=txt(
            f"Cash traceability readiness scores {score:.0f}/100.",
            f"جاهزية تتبع النقد {score:.0f} من 100.",
        ),
        chart_hint="gauge",
    )


CALCULATORS = {
    "detect.fraud": fraud,
    "detect.aml": aml,
    "detect.market_manipulation": market_manipulation,
    "detect.bankruptcy": bankruptcy,
    "detect.crisis": crisis,
    "detect.anomaly": anomaly,
    "detect.volatility": volatility,
    "detect.early_warning": early_warning,
    "detect.behavioral": behavioral,
    "detect.explainable": explainable,
    "detect.neural_forecast": neural_forecast,
    "detect.lstm": sequence_forecast,
    "detect.credit_rating": credit_rating,
    "detect.gradient_boosting": gradient_boosting,
    "detect.clustering": clustering,
    "detect.autoencoder": autoencoder,
    "detect.sentiment": sentiment,
    "detect.blockchain": blockchain,
}
