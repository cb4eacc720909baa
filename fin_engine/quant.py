"""
fin_engine/quant.py
===================
Small-sample statistical estimators for the statistical / risk calculators.

Annual statements give short series (often 3–10 points), so every estimator
here degrades gracefully: too few observations raise ``CalculationError``
rather than returning a misleading number.

Regression, PCA and factor models are scikit-learn estimators; AR and
exponential smoothing come from statsmodels. The remaining recursions are
written out on numpy where no library model fits annual samples.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats
from sklearn.decomposition import PCA, FactorAnalysis
from sklearn.linear_model import LinearRegression
from sklearn.preprocessing import StandardScaler
from statsmodels.tsa.ar_model import AutoReg
from statsmodels.tsa.holtwinters import Holt, SimpleExpSmoothing

from .errors import CalculationError


def _arr(values: Sequence[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def require_points(values: Sequence[float], n: int, analysis_id: str) -> np.ndarray:
    arr = _arr(values)
    if arr.size < n:
        raise CalculationError(analysis_id, f"needs at least {n} observations, got {arr.size}")
    return arr


# ─── Regression ───────────────────────────────────────────────────────────────

@dataclass
class OLSResult:
    coefficients: np.ndarray
    r_squared: float
    residuals: np.ndarray
    fitted: np.ndarray
    n: int


def ols(y: Sequence[float], x: Sequence[Sequence[float]] | Sequence[float],
        analysis_id: str = "stat.regression") -> OLSResult:
    """Least squares with intercept. ``x`` is one regressor or a list of columns."""
    yv = _arr(y)
    xm = np.asarray(x, dtype=float)
    if xm.ndim == 1:
        xm = xm.reshape(-1, 1)
    elif xm.shape[0] != yv.size:
        xm = xm.T
    if yv.size < xm.shape[1] + 2:
        raise CalculationError(analysis_id, "not enough observations for regression")
    model = LinearRegression().fit(xm, yv)
    coef = np.concatenate([[model.intercept_], model.coef_])
    fitted = model.predict(xm)
    resid = yv - fitted
    ss_tot = float(((yv - yv.mean()) ** 2).sum())
    r2 = 1 - float((resid ** 2).sum()) / ss_tot if ss_tot > 0 else 0.0
    return OLSResult(coef, r2, resid, fitted, int(yv.size))


def ar1(values: Sequence[float], analysis_id: str = "stat.arima") -> Tuple[float, float]:
    """Fit x_t = c + φ x_{t-1}; returns (c, φ)."""
    v = require_points(values, 4, analysis_id)
    params = AutoReg(v, lags=1, trend="c").fit().params
    return float(params[0]), float(params[1])


def ar1_forecast(values: Sequence[float], steps: int, analysis_id: str = "stat.arima") -> List[float]:
    c, phi = ar1(values, analysis_id)
    out, last = [], float(values[-1])
    for _ in range(steps):
        last = c + phi * last
        out.append(last)
    return out


def ewma_forecast(values: Sequence[float], alpha: float = 0.5) -> float:
    """Simple exponential smoothing seeded with the first observation."""
    v = _arr(values)
    if v.size < 2:
        return float(v[0])
    model = SimpleExpSmoothing(v, initialization_method="known", initial_level=v[0])
    fit = model.fit(smoothing_level=alpha, optimized=False)
    return float(fit.forecast(1)[0])


def holt_forecast(values: Sequence[float], level: float = 0.5, trend: float = 0.3,
                  analysis_id: str = "detect.lstm") -> float:
    """
    Holt linear-trend smoothing, one step ahead. The state after the first
    observation is (x_0, x_1 - x_0).
    """
    v = require_points(values, 3, analysis_id)
    b0 = v[1] - v[0]
    model = Holt(v, initialization_method="known", initial_level=v[0] - b0, initial_trend=b0)
    fit = model.fit(smoothing_level=level, smoothing_trend=trend, optimized=False)
    return float(fit.forecast(1)[0])


def moving_average(values: Sequence[float], window: int) -> List[float]:
    v = _arr(values)
    if v.size < window:
        return []
    return list(np.convolve(v, np.ones(window) / window, mode="valid"))


# ─── Volatility ───────────────────────────────────────────────────────────────

def garch11(returns: Sequence[float], omega: float = 0.0, alpha: float = 0.1,
            beta: float = 0.85, analysis_id: str = "stat.garch") -> List[float]:
    """
    Conditional variance recursion σ²_t = ω + α r²_{t-1} + β σ²_{t-1} with fixed
    persistence parameters (annual samples are too short to estimate them).
    ω defaults to the value that matches the sample variance in the long run.
    """
    r = require_points(returns, 3, analysis_id)
    var0 = float(r.var(ddof=1)) or 1e-12
    if omega <= 0:
        omega = var0 * (1 - alpha - beta)
    sigma2 = [var0]
    for x in r[:-1]:
        sigma2.append(omega + alpha * x ** 2 + beta * sigma2[-1])
    sigma2.append(omega + alpha * r[-1] ** 2 + beta * sigma2[-1])
    return sigma2


# ─── Multivariate ─────────────────────────────────────────────────────────────

def _standardise(m: np.ndarray, analysis_id: str) -> np.ndarray:
    z = StandardScaler().fit_transform(m)
    if not np.any(z):
        raise CalculationError(analysis_id, "no variation across observations")
    return z


def pca(matrix: Sequence[Sequence[float]], analysis_id: str = "stat.pca") -> Tuple[np.ndarray, np.ndarray]:
    """Rows are observations. Returns (explained variance ratios, loadings)."""
    m = np.asarray(matrix, dtype=float)
    if m.ndim != 2 or m.shape[0] < 3 or m.shape[1] < 2:
        raise CalculationError(analysis_id, "PCA needs >=3 observations of >=2 variables")
    z = _standardise(m, analysis_id)
    model = PCA().fit(z)
    return model.explained_variance_ratio_, model.components_.T


def var1(matrix: Sequence[Sequence[float]], analysis_id: str = "stat.var_model") -> np.ndarray:
    """VAR(1) coefficient matrix A in x_t = c + A x_{t-1}; rows are time."""
    m = np.asarray(matrix, dtype=float)
    if m.shape[0] < m.shape[1] + 2:
        raise CalculationError(analysis_id, "not enough observations for VAR(1)")
    y = m[1:]
    x = np.column_stack([np.ones(m.shape[0] - 1), m[:-1]])
    coef, *_ = np.linalg.lstsq(x, y, rcond=None)
    return coef[1:].T


def anova_oneway(groups: Sequence[Sequence[float]], analysis_id: str = "stat.anova") -> Tuple[float, float]:
    usable = [list(g) for g in groups if len(g) >= 2]
    if len(usable) < 2:
        raise CalculationError(analysis_id, "ANOVA needs two groups of >=2 observations")
    f_stat, p_value = stats.f_oneway(*usable)
    return float(f_stat), float(p_value)


def engle_granger(y: Sequence[float], x: Sequence[float],
                  analysis_id: str = "stat.cointegration") -> Dict[str, float]:
    """Residual AR(1) coefficient from the cointegrating regression; |φ| < 1 suggests mean reversion."""
    fit = ols(y, x, analysis_id)
    if fit.n < 4:
        raise CalculationError(analysis_id, "not enough observations for cointegration")
    _, phi = ar1(fit.residuals, analysis_id)
    return {"beta": float(fit.coefficients[1]), "residual_phi": phi, "r_squared": fit.r_squared}


def gaussian_copula_rho(x: Sequence[float], y: Sequence[float],
                        analysis_id: str = "stat.copula") -> float:
    """Gaussian copula correlation from Kendall's tau: ρ = sin(π τ / 2)."""
    if min(len(x), len(y)) < 3:
        raise CalculationError(analysis_id, "copula needs >=3 paired observations")
    tau, _ = stats.kendalltau(x, y)
    if np.isnan(tau):
        raise CalculationError(analysis_id, "constant series")
    return float(np.sin(np.pi * tau / 2))


# ─── Tails / Regimes / Dynamics ───────────────────────────────────────────────

def mean_excess(values: Sequence[float], threshold_pct: float = 80.0) -> Dict[str, float]:
    """Peaks-over-threshold summary of losses (positive = loss)."""
    v = _arr(values)
    u = float(np.percentile(v, threshold_pct))
    excess = v[v > u] - u
    return {"threshold": u, "exceedances": float(excess.size),
            "mean_excess": float(excess.mean()) if excess.size else 0.0,
            "max": float(v.max())}


def markov_transition(states: Sequence[int], n_states: int = 2) -> np.ndarray:
    mat = np.zeros((n_states, n_states))
    for a, b in zip(states, states[1:]):
        mat[a, b] += 1
    rows = mat.sum(axis=1, keepdims=True)
    rows[rows == 0] = 1
    return mat / rows


def hurst_exponent(values: Sequence[float], analysis_id: str = "stat.fractal") -> float:
    """Rescaled-range estimate over all window sizes >= 2."""
    v = require_points(values, 4, analysis_id)
    sizes, rs = [], []
    for w in range(2, v.size + 1):
        chunks = [v[i:i + w] for i in range(0, v.size - w + 1, w)]
        vals = []
        for c in chunks:
            dev = np.cumsum(c - c.mean())
            s = c.std()
            if s > 0:
                vals.append((dev.max() - dev.min()) / s)
        if vals:
            sizes.append(w)
            rs.append(np.mean(vals))
    if len(sizes) < 2:
        raise CalculationError(analysis_id, "series too flat for rescaled range")
    slope, _ = np.polyfit(np.log(sizes), np.log(rs), 1)
    return float(slope)


def lyapunov_proxy(values: Sequence[float], analysis_id: str = "stat.chaos") -> float:
    """Mean log divergence of successive differences; > 0 suggests sensitive dynamics."""
    v = require_points(values, 4, analysis_id)
    d = np.abs(np.diff(v))
    d = d[d > 0]
    if d.size < 2:
        return 0.0
    return float(np.mean(np.log(d[1:] / d[:-1])))


def bootstrap_mean_ci(values: Sequence[float], seed: int, resamples: int = 2000,
                      confidence: float = 0.95, analysis_id: str = "stat.bootstrap") -> Tuple[float, float, float]:
    v = require_points(values, 3, analysis_id)
    rng = np.random.default_rng(seed)
    means = rng.choice(v, size=(resamples, v.size), replace=True).mean(axis=1)
    lo = float(np.percentile(means, (1 - confidence) / 2 * 100))
    hi = float(np.percentile(means, (1 + confidence) / 2 * 100))
    return float(v.mean()), lo, hi


def haar_wavelet(values: Sequence[float], analysis_id: str = "stat.wavelet") -> Dict[str, List[float]]:
    """Single-level Haar transform (approximation / detail); odd tails are padded by repetition."""
    v = require_points(values, 2, analysis_id)
    if v.size % 2:
        v = np.append(v, v[-1])
    pairs = v.reshape(-1, 2)
    approx = (pairs[:, 0] + pairs[:, 1]) / np.sqrt(2)
    detail = (pairs[:, 0] - pairs[:, 1]) / np.sqrt(2)
    return {"approximation": approx.tolist(), "detail": detail.tolist()}


def two_regimes(values: Sequence[float]) -> Dict[str, float]:
    """Split growth observations around the median into low / high regimes."""
    v = _arr(values)
    median = float(np.median(v))
    high = v[v > median]
    low = v[v <= median]
    states = [1 if x > median else 0 for x in v]
    trans = markov_transition(states)
    return {
        "threshold": median,
        "low_mean": float(low.mean()) if low.size else 0.0,
        "high_mean": float(high.mean()) if high.size else 0.0,
        "current_regime": float(states[-1]) if states else 0.0,
        "persistence": float(np.trace(trans) / 2),
    }


@dataclass
class Factors:
    loadings: Dict[str, float] = field(default_factory=dict)
    explained: float = 0.0


def single_factor(matrix: Sequence[Sequence[float]], names: Sequence[str],
                  analysis_id: str = "stat.factor") -> Factors:
    """One-factor model on standardised columns; ``explained`` is the mean communality."""
    m = np.asarray(matrix, dtype=float)
    if m.ndim != 2 or m.shape[0] < 3 or m.shape[1] < 2:
        raise CalculationError(analysis_id, "factor analysis needs >=3 observations of >=2 variables")
    z = _standardise(m, analysis_id)
    first = FactorAnalysis(n_components=1).fit(z).components_[0]
    if first.sum() < 0:
        first = -first
    explained = min(1.0, float((first ** 2).sum()) / m.shape[1])
    return Factors({n: float(l) for n, l in zip(names, first)}, explained)


def beta(asset: Sequence[float], market: Sequence[float]) -> Optional[float]:
    n = min(len(asset), len(market))
    if n < 2:
        return None
    a, m = _arr(asset[:n]), _arr(market[:n])
    var_m = float(m.var(ddof=1))
    if var_m == 0:
        return None
    return float(np.cov(a, m, ddof=1)[0, 1] / var_m)


def max_drawdown(levels: Sequence[float]) -> float:
    v = _arr(levels)
    if v.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(v)
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peaks > 0, (v - peaks) / peaks, 0.0)
    return float(dd.min())


def historical_var(returns: Sequence[float], confidence: float = 0.95) -> Tuple[float, float]:
    """Historical VaR and expected shortfall as positive loss fractions."""
    r = _arr(returns)
    q = float(np.percentile(r, (1 - confidence) * 100))
    tail = r[r <= q]
    es = float(tail.mean()) if tail.size else q
    return max(0.0, -q), max(0.0, -es)


def parametric_var(mu: float, sigma: float, confidence: float = 0.95) -> float:
    z = stats.norm.ppf(confidence)
    return max(0.0, z * sigma - mu)
