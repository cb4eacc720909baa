"""
fin_engine/calculators/statistical.py
=====================================
Statistical and econometric analyses over the annual statement history.

Each analysis first checks it has the observations it needs and raises
``InputDataError`` otherwise, so short histories report "insufficient data"
rather than a misleading estimate. The estimators themselves live in
``fin_engine.quant``.
"""
from __future__ import annotations
import math
from typing import List

import numpy as np

from ..errors import InputDataError
from ..formatting import format_compact, format_percent, txt
from ..mathutils import clamp, mean, pct_changes, std_dev
from ..quant import (
    anova_oneway, ar1, ar1_forecast, bootstrap_mean_ci, engle_granger, ewma_forecast, garch11,
    gaussian_copula_rho, haar_wavelet, hurst_exponent, lyapunov_proxy, markov_transition,
    mean_excess, moving_average, ols, pca, single_factor, two_regimes, var1,
)
from ..types import AnalysisOptions, BenchmarkSet, StatisticalResult
from ._base import (
    ALTMAN_DISTRESS, RATIO_VECTOR_NAMES, Statements, altman_z, latest, net_income,
    net_margin_pct, operating_cash_flow, ratio_vector, require_years, revenue, series,
    total_costs, values,
)


def _paired(statements: Statements, a, b, field: str, n: int):
    rows = [(a(s), b(s)) for s in statements if a(s) is not None and b(s) is not None]
    if len(rows) < n:
        raise InputDataError(field, f"needs {n} years with both items, got {len(rows)}")
    return [float(x) for x, _ in rows], [float(y) for _, y in rows]


def _growth(statements: Statements, getter, field: str, n: int) -> List[float]:
    g = pct_changes(values(statements, getter, field))
    if len(g) < n:
        raise InputDataError(field, f"needs {n} growth observations, got {len(g)}")
    return g


# ─── Regression / time series ─────────────────────────────────────────────────

def regression(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> StatisticalResult:
    """OLS of net income on revenue: the marginal profit per unit of sales."""
    rev, ni = _paired(statements, revenue, net_income, "income_statement.net_income", 3)
    fit = ols(ni, rev)
    slope = float(fit.coefficients[1])
    return StatisticalResult(
        value=round(slope, 4),
        coefficients={"intercept": round(float(fit.coefficients[0]), 2), "revenue": round(slope, 4)},
        r_squared=round(fit.r_squared, 4),
        n_observations=fit.n,
        interpretation=txt(
            f"Each extra unit of revenue has brought {slope:.3f} of net income (R² {fit.r_squared:.2f}).",
            f"كل وحدة إضافية من الإيرادات حققت {slope:.3f} من صافي الربح (R² {fit.r_squared:.2f}).",
        ),
        chart_hint="scatter",
    )


def time_series(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> StatisticalResult:
    """Smoothed revenue growth (EWMA) with a 3-year moving average of levels."""
    g = _growth(statements, revenue, "income_statement.revenue", 2)
    smoothed = ewma_forecast(g)
    rev = values(statements, revenue, "income_statement.revenue")
    ma = moving_average(rev, 3)
    return StatisticalResult(
        value=round(smoothed * 100, 2),
        series={y: round(v * 100, 2) for y, v in zip(sorted(series(statements, revenue))[1:], g)},
        coefficients={"alpha": 0.5},
        n_observations=len(g),
        metrics={"moving_average_3y": [round(v, 2) for v in ma],
                 "growth_volatility": round((std_dev(g) or 0.0) * 100, 2)},
        interpretation=txt(
            f"Smoothed revenue growth is {format_percent(smoothed * 100)} a year.",
            f"النمو المُمَهَّد للإيرادات {format_percent(smoothed * 100)} سنوياً.",
        ),
        chart_hint="line",
    )


def arima(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> StatisticalResult:
    """AR(1) on revenue levels, forecast one year ahead."""
    rev = values(statements, revenue, "income_statement.revenue", 4)
    c, phi = ar1(rev)
    path = ar1_forecast(rev, options.forecast_years)
    last = latest(statements).year
    return StatisticalResult(
        value=round(path[0], 2),
        series={last + i: round(v, 2) for i, v in enumerate(path, start=1)},
        coefficients={"constant": round(c, 4), "phi": round(phi, 4)},
        n_observations=len(rev) - 1,
        metrics={"stationary": abs(phi) < 1},
        interpretation=txt(
            f"AR(1) (φ = {phi:.2f}) forecasts revenue of {format_compact(path[0])} next year.",
            f"يتوقع نموذج AR(1) (φ = {phi:.2f}) إيرادات بقيمة {format_compact(path[0])} للعام القادم.",
        ),
        chart_hint="line",
    )


def garch(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> StatisticalResult:
    """GARCH(1,1) conditional volatility of revenue growth, next period, in percent."""
    g = _growth(statements, revenue, "income_statement.revenue", 3)
    sigma2 = garch11(g)
    vol = math.sqrt(max(sigma2[-1], 0.0)) * 100
    return StatisticalResult(
        value=round(vol, 2),
        coefficients={"alpha": 0.1, "beta": 0.85},
        n_observations=len(g),
        metrics={"conditional_volatility": [round(math.sqrt(max(v, 0.0)) * 100, 2) for v in sigma2],
                 "unconditional_volatility": round((std_dev(g) or 0.0) * 100, 2)},
        interpretation=txt(
            f"Next-period conditional volatility of revenue growth is {format_percent(vol)}.",
            f"التقلب الشرطي المتوقع لنمو الإيرادات {format_percent(vol)}.",
        ),
        chart_hint="line",
    )


# ─── Multivariate ─────────────────────────────────────────────────────────────

def _ratio_matrix(statements: Statements) -> List[List[float]]:
    require_years(statements, 3)
    return [ratio_vector(s) for s in statements]


def principal_components(statements: Statements, benchmarks: BenchmarkSet,
                         options: AnalysisOptions) -> StatisticalResult:
    explained, vecs = pca(_ratio_matrix(statements))
    first = explained[0] * 100
    loadings = {n: round(float(v), 4) for n, v in zip(RATIO_VECTOR_NAMES, vecs[:, 0])}
    return StatisticalResult(
        value=round(first, 2),
        coefficients=loadings,
        n_observations=len(statements),
        metrics={"explained_variance": [round(float(e) * 100, 2) for e in explained]},
        interpretation=txt(
            f"The first component explains {format_percent(first)} of the variation in the ratio profile.",
            f"يفسر المكون الأول {format_percent(first)} من التباين في مؤشرات الشركة.",
        ),
        chart_hint="bar",
    )


def factor(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> StatisticalResult:
    result = single_factor(_ratio_matrix(statements), RATIO_VECTOR_NAMES)
    dominant = max(result.loadings, key=lambda k: abs(result.loadings[k]))
    return StatisticalResult(
        value=round(result.explained * 100, 2),
        coefficients={k: round(v, 4) for k, v in result.loadings.items()},
        n_observations=len(statements),
        metrics={"dominant_variable": dominant},
        interpretation=txt(
            f"A single common factor, driven mostly by {dominant.replace('_', ' ')}, explains "
            f"{format_percent(result.explained * 100)} of the ratio variation.",
            f"عامل مشترك واحد يفسر {format_percent(result.explained * 100)} من تباين المؤشرات.",
        ),
        chart_hint="bar",
    )


def anova(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> StatisticalResult:
    """One-way ANOVA: do revenue, profit and operating cash flow grow at different rates?"""
    groups = {
        "revenue": pct_changes(list(series(statements, revenue).values())),
        "net_income": pct_changes(list(series(statements, net_income).values())),
        "operating_cash_flow": pct_changes(list(series(statements, operating_cash_flow).values())),
    }
    if sum(1 for g in groups.values() if len(g) >= 2) < 2:
        raise InputDataError("statements", "needs two growth series of at least two observations")
    f_stat, p_value = anova_oneway(list(groups.values()))
    return StatisticalResult(
        value=round(f_stat, 4),
        coefficients={"p_value": round(p_value, 4)},
        n_observations=sum(len(g) for g in groups.values()),
        metrics={"group_means": {k: round((mean(g) or 0.0) * 100, 2) for k, g in groups.items() if g},
                 "significant": p_value < 0.05},
        interpretation=txt(
            f"Growth rates {'differ' if p_value < 0.05 else 'do not differ'} significantly across revenue, "
            f"profit and cash flow (F = {f_stat:.2f}, p = {p_value:.3f}).",
            f"معدلات النمو {'تختلف' if p_value < 0.05 else 'لا تختلف'} معنوياً (F = {f_stat:.2f}).",
        ),
        chart_hint="box",
    )


def cointegration(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> StatisticalResult:
    """Engle-Granger check that costs track revenue; |φ| of the residual below 1 means they do."""
    rev, costs = _paired(statements, revenue, total_costs, "income_statement.cogs", 4)
    eg = engle_granger(costs, rev)
    phi = abs(eg["residual_phi"])
    return StatisticalResult(
        value=round(phi, 4),
        benchmark=1.0,
        coefficients={"beta": round(eg["beta"], 4), "residual_phi": round(eg["residual_phi"], 4)},
        r_squared=round(eg["r_squared"], 4),
        n_observations=len(rev),
        interpretation=txt(
            f"Costs {'revert to' if phi < 1 else 'drift away from'} their long-run relation with revenue "
            f"(residual φ = {eg['residual_phi']:.2f}).",
            f"التكاليف {'تعود إلى' if phi < 1 else 'تبتعد عن'} علاقتها طويلة الأجل بالإيرادات.",
        ),
        chart_hint="line",
    )


def var_model(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> StatisticalResult:
    """VAR(1) on revenue and net income; spectral radius below 1 means the system is stable."""
    rev, ni = _paired(statements, revenue, net_income, "income_statement.net_income", 4)
    scale = max(abs(v) for v in rev) or 1.0
    a = var1([[r / scale, n / scale] for r, n in zip(rev, ni)])
    radius = float(max(abs(np.linalg.eigvals(a))))
    return StatisticalResult(
        value=round(radius, 4),
        benchmark=1.0,
        coefficients={"a_rev_rev": round(float(a[0, 0]), 4), "a_rev_ni": round(float(a[0, 1]), 4),
                      "a_ni_rev": round(float(a[1, 0]), 4), "a_ni_ni": round(float(a[1, 1]), 4)},
        n_observations=len(rev) - 1,
        interpretation=txt(
            f"The revenue-profit system has spectral radius {radius:.2f} "
            f"({'stable' if radius < 1 else 'explosive'}).",
            f"نصف القطر الطيفي لنظام الإيراد والربح {radius:.2f}.",
        ),
        chart_hint="matrix",
    )


def vecm(statements: Statements, benchmarks: BenchmarkSet,
         options: AnalysisOptions) -> StatisticalResult:
    """Error-correction speed: Δcosts regressed on last year's deviation from the cost-revenue relation."""
    rev, costs = _paired(statements, revenue, total_costs, "income_statement.cogs", 5)
    long_run = ols(costs, rev, "stat.vecm")
    resid = long_run.residuals
    dcost = np.diff(np.asarray(costs))
    ecm = ols(dcost, resid[:-1], "stat.vecm")
    alpha = float(ecm.coefficients[1])
    return StatisticalResult(
        value=round(alpha, 4),
        benchmark=0.0,
        coefficients={"alpha": round(alpha, 4), "long_run_beta": round(float(long_run.coefficients[1]), 4)},
        r_squared=round(ecm.r_squared, 4),
        n_observations=ecm.n,
        interpretation=txt(
            f"Deviations from the long-run cost relation are {'corrected' if alpha < 0 else 'not corrected'} "
            f"(α = {alpha:.2f}).",
            f"الانحرافات عن العلاقة طويلة الأجل {'تُصحَّح' if alpha < 0 else 'لا تُصحَّح'} (α = {alpha:.2f}).",
        ),
        chart_hint="line",
    )


def copula(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> StatisticalResult:
    rev, ni = _paired(statements, revenue, net_income, "income_statement.net_income", 3)
    rho = gaussian_copula_rho(rev, ni)
    return StatisticalResult(
        value=round(rho, 4),
        coefficients={"rho": round(rho, 4)},
        n_observations=len(rev),
        interpretation=txt(
            f"Rank dependence between revenue and profit corresponds to a Gaussian copula ρ of {rho:.2f}.",
            f"الاعتماد الرتبي بين الإيراد والربح يعادل معامل كوبولا {rho:.2f}.",
        ),
        chart_hint="scatter",
    )


# ─── Tails / survival / regimes ───────────────────────────────────────────────

def extreme_value(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> StatisticalResult:
    """Peaks over threshold of net income declines, in percent."""
    g = _growth(statements, net_income, "income_statement.net_income", 3)
    losses = [-x * 100 for x in g]
    pot = mean_excess(losses)
    tail = max(pot["threshold"], 0.0) + pot["mean_excess"]
    return StatisticalResult(
        value=round(tail, 2),
        coefficients={k: round(v, 4) for k, v in pot.items()},
        n_observations=len(losses),
        interpretation=txt(
            f"Beyond the 80th-percentile year, profit falls average {format_percent(tail)}.",
            f"بعد عتبة المئين 80 يبلغ متوسط تراجع الربح {format_percent(tail)}.",
        ),
        chart_hint="histogram",
    )


def survival(statements: Statements, benchmarks: BenchmarkSet,
             options: AnalysisOptions) -> StatisticalResult:
    """Survival probability over the horizon from a logistic hazard on the Altman Z-score."""
    z = altman_z(latest(statements))
    hazard = clamp(0.5 / (1 + math.exp(2 * (z - ALTMAN_DISTRESS))), 0.001, 0.5)
    years = options.forecast_years
    curve = {latest(statements).year + t: round((1 - hazard) ** t * 100, 2) for t in range(1, years + 1)}
    value = curve[max(curve)]
    return StatisticalResult(
        value=value,
        series=curve,
        coefficients={"annual_hazard": round(hazard, 4), "z_score": round(z, 4)},
        n_observations=1,
        interpretation=txt(
            f"With Z = {z:.2f} the annual hazard is {format_percent(hazard * 100)}, giving "
            f"{format_percent(value)} survival over {years} years.",
            f"مع Z = {z:.2f} يبلغ احتمال البقاء {format_percent(value)} خلال {years} سنوات.",
        ),
        chart_hint="line",
    )


def markov(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> StatisticalResult:
    """Two-state (decline / growth) chain on revenue; value is P(growth next | growth now)."""
    g = _growth(statements, revenue, "income_statement.revenue", 2)
    states = [1 if x > 0 else 0 for x in g]
    trans = markov_transition(states)
    value = float(trans[1, 1]) * 100
    return StatisticalResult(
        value=round(value, 2),
        coefficients={"p_decline_decline": round(float(trans[0, 0]), 4),
                      "p_decline_growth": round(float(trans[0, 1]), 4),
                      "p_growth_decline": round(float(trans[1, 0]), 4),
                      "p_growth_growth": round(float(trans[1, 1]), 4)},
        n_observations=len(states),
        metrics={"current_state": "growth" if states[-1] else "decline"},
        interpretation=txt(
            f"A growth year has been followed by another growth year {format_percent(value)} of the time.",
            f"تبعت سنة النمو سنة نمو أخرى بنسبة {format_percent(value)}.",
        ),
        chart_hint="matrix",
    )


def threshold(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> StatisticalResult:
    """Mean revenue growth in the regime the company is currently in (split at median growth)."""
    g = _growth(statements, revenue, "income_statement.revenue", 3)
    reg = two_regimes(g)
    current = reg["high_mean"] if reg["current_regime"] else reg["low_mean"]
    return StatisticalResult(
        value=round(current * 100, 2),
        coefficients={"threshold": round(reg["threshold"] * 100, 2),
                      "low_mean": round(reg["low_mean"] * 100, 2),
                      "high_mean": round(reg["high_mean"] * 100, 2)},
        n_observations=len(g),
        metrics={"regime": "high" if reg["current_regime"] else "low"},
        interpretation=txt(
            f"The company is in the {'high' if reg['current_regime'] else 'low'}-growth regime, averaging "
            f"{format_percent(current * 100)}.",
            f"الشركة في نظام النمو {'المرتفع' if reg['current_regime'] else 'المنخفض'} بمتوسط {format_percent(current * 100)}.",
        ),
        chart_hint="line",
    )


def regime_switching(statements: Statements, benchmarks: BenchmarkSet,
                     options: AnalysisOptions) -> StatisticalResult:
    g = _growth(statements, revenue, "income_statement.revenue", 3)
    reg = two_regimes(g)
    value = reg["persistence"] * 100
    return StatisticalResult(
        value=round(value, 2),
        coefficients={"persistence": round(reg["persistence"], 4)},
        n_observations=len(g),
        metrics={"current_regime": "high" if reg["current_regime"] else "low"},
        interpretation=txt(
            f"Growth regimes persist with average probability {format_percent(value)}.",
            f"تستمر أنظمة النمو باحتمال متوسط {format_percent(value)}.",
        ),
        chart_hint="line",
    )


def chaos(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> StatisticalResult:
    rev = values(statements, revenue, "income_statement.revenue", 4)
    lam = lyapunov_proxy(rev)
    return StatisticalResult(
        value=round(lam, 4),
        benchmark=0.0,
        coefficients={"lyapunov": round(lam, 4)},
        n_observations=len(rev),
        interpretation=txt(
            f"Successive revenue changes {'amplify' if lam > 0 else 'damp'} (λ ≈ {lam:.2f}).",
            f"التغيرات المتتالية في الإيرادات {'تتضخم' if lam > 0 else 'تتلاشى'} (λ ≈ {lam:.2f}).",
        ),
        chart_hint="line",
    )


def fractal(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> StatisticalResult:
    rev = values(statements, revenue, "income_statement.revenue", 4)
    h = hurst_exponent(rev)
    kind = "persistent" if h > 0.55 else ("mean-reverting" if h < 0.45 else "random")
    return StatisticalResult(
        value=round(h, 4),
        benchmark=0.5,
        coefficients={"hurst": round(h, 4)},
        n_observations=len(rev),
        metrics={"behaviour": kind},
        interpretation=txt(
            f"Hurst exponent {h:.2f}: revenue behaves as a {kind} series.",
            f"أس هيرست {h:.2f}.",
        ),
        chart_hint="line",
    )


def bootstrap(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> StatisticalResult:
    """Bootstrap confidence interval of the mean net margin."""
    margins = values(statements, net_margin_pct, "income_statement.net_income", 3)
    m, lo, hi = bootstrap_mean_ci(margins, options.seed, confidence=options.confidence)
    return StatisticalResult(
        value=round(m, 2),
        coefficients={"ci_low": round(lo, 2), "ci_high": round(hi, 2)},
        n_observations=len(margins),
        metrics={"seed": options.seed, "confidence": options.confidence},
        interpretation=txt(
            f"Mean net margin is {format_percent(m)} ({options.confidence:.0%} CI {format_percent(lo)} to "
            f"{format_percent(hi)}).",
            f"متوسط هامش صافي الربح {format_percent(m)} (فترة ثقة {format_percent(lo)} إلى {format_percent(hi)}).",
        ),
        chart_hint="histogram",
    )


def wavelet(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> StatisticalResult:
    """Share of revenue-growth energy in the Haar detail band (short-term noise)."""
    g = _growth(statements, revenue, "income_statement.revenue", 2)
    parts = haar_wavelet(g)
    detail = sum(v ** 2 for v in parts["detail"])
    total = detail + sum(v ** 2 for v in parts["approximation"])
    value = detail / total * 100 if total else 0.0
    return StatisticalResult(
        value=round(value, 2),
        coefficients={"detail_energy": round(detail, 6), "total_energy": round(total, 6)},
        n_observations=len(g),
        metrics={"approximation": [round(v, 4) for v in parts["approximation"]],
                 "detail": [round(v, 4) for v in parts["detail"]]},
        interpretation=txt(
            f"{format_percent(value)} of growth variation is short-term noise.",
            f"{format_percent(value)} من تباين النمو ضوضاء قصيرة الأجل.",
        ),
        chart_hint="bar",
    )


CALCULATORS = {
    "stat.regression": regression,
    "stat.time_series": time_series,
    "stat.arima": arima,
    "stat.garch": garch,
    "stat.pca": principal_components,
    "stat.factor": factor,
    "stat.anova": anova,
    "stat.cointegration": cointegration,
    "stat.var_model": var_model,
    "stat.vecm": vecm,
    "stat.copula": copula,
    "stat.evt": extreme_value,
    "stat.survival": survival,
    "stat.markov": markov,
    "stat.threshold": threshold,
    "stat.regime_switching": regime_switching,
    "stat.chaos": chaos,
    "stat.fractal": fractal,
    "stat.bootstrap": bootstrap,
    "stat.wavelet": wavelet,
}
