"""
tests/test_quant.py
===================
Small-sample estimators behind the statistical and risk calculators.

Run:  pytest tests/test_quant.py -v
"""

import math
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.errors import CalculationError
from fin_engine.quant import (
    anova_oneway, ar1, ar1_forecast, beta, bootstrap_mean_ci, ewma_forecast,
    haar_wavelet, historical_var, holt_forecast, markov_transition, max_drawdown,
    moving_average, ols, parametric_var, pca, require_points, single_factor,
)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. REGRESSION & TIME SERIES
# ═══════════════════════════════════════════════════════════════════════════════

class TestRegression:
    def test_exact_line(self):
        fit = ols([5.0, 8.0, 11.0, 14.0], [1.0, 2.0, 3.0, 4.0])
        assert fit.coefficients[0] == pytest.approx(2.0)
        assert fit.coefficients[1] == pytest.approx(3.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.n == 4

    def test_too_few_points(self):
        with pytest.raises(CalculationError):
            ols([1.0, 2.0], [1.0, 2.0])

    def test_ar1_on_doubling_series(self):
        c, phi = ar1([1.0, 2.0, 4.0, 8.0])
        assert c == pytest.approx(0.0, abs=1e-9)
        assert phi == pytest.approx(2.0)
        assert ar1_forecast([1.0, 2.0, 4.0, 8.0], 2) == pytest.approx([16.0, 32.0])

    def test_ewma_and_moving_average(self):
        assert ewma_forecast([10.0, 20.0], alpha=0.5) == 15.0
        assert moving_average([1.0, 2.0, 3.0, 4.0], 2) == pytest.approx([1.5, 2.5, 3.5])
        assert moving_average([1.0], 3) == []
        assert ewma_forecast([7.0]) == 7.0

    def test_holt_continues_a_straight_line(self):
        assert holt_forecast([10.0, 20.0, 30.0, 40.0]) == pytest.approx(50.0)

    def test_ar1_needs_four_points(self):
        with pytest.raises(CalculationError):
            ar1([1.0, 2.0, 4.0])

    def test_require_points(self):
        with pytest.raises(CalculationError):
            require_points([1.0, 2.0], 3, "stat.arima")


# ═══════════════════════════════════════════════════════════════════════════════
# 2. MULTIVARIATE & REGIMES
# ═══════════════════════════════════════════════════════════════════════════════

class TestMultivariate:
    def test_pca_perfectly_correlated(self):
        explained, _ = pca([[1.0, 2.0], [2.0, 4.0], [3.0, 6.0], [4.0, 8.0]])
        assert explained[0] == pytest.approx(1.0)
        assert explained[1] == pytest.approx(0.0, abs=1e-9)

    def test_pca_needs_shape(self):
        with pytest.raises(CalculationError):
            pca([[1.0, 2.0], [2.0, 3.0]])

    def test_pca_without_variation(self):
        with pytest.raises(CalculationError):
            pca([[1.0, 2.0], [1.0, 2.0], [1.0, 2.0]])

    def test_single_factor_on_co_moving_columns(self):
        rows = [[1.0, 2.1], [2.0, 3.9], [3.0, 6.2], [4.0, 7.8], [5.0, 10.1]]
        result = single_factor(rows, ["a", "b"])
        assert result.explained > 0.9
        assert result.loadings["a"] > 0 and result.loadings["b"] > 0

    def test_anova_needs_two_groups(self):
        with pytest.raises(CalculationError):
            anova_oneway([[1.0, 2.0], [3.0]])

    def test_markov_rows_sum_to_one(self):
        mat = markov_transition([0, 0, 1, 1, 0])
        assert mat.tolist() == [[0.5, 0.5], [0.5, 0.5]]

    def test_haar_pair(self):
        out = haar_wavelet([1.0, 3.0])
        assert out["approximation"][0] == pytest.approx(4 / math.sqrt(2))
        assert out["detail"][0] == pytest.approx(-2 / math.sqrt(2))

    def test_bootstrap_reproducible(self):
        values = [1.0, 4.0, 2.0, 8.0, 5.0]
        a = bootstrap_mean_ci(values, seed=3)
        b = bootstrap_mean_ci(values, seed=3)
        assert a == b
        assert a[1] <= a[0] <= a[2]


# ═══════════════════════════════════════════════════════════════════════════════
# 3. RISK MEASURES
# ═══════════════════════════════════════════════════════════════════════════════

class TestRiskMeasures:
    def test_beta(self):
        market = [0.05, -0.02, 0.08, 0.01]
        assert beta([2 * m for m in market], market) == pytest.approx(2.0)
        assert beta([0.1, 0.2], [0.05, 0.05]) is None
        assert beta([0.1], [0.05]) is None

    def test_max_drawdown(self):
        assert max_drawdown([100.0, 120.0, 90.0, 130.0]) == pytest.approx(-0.25)
        assert max_drawdown([]) == 0.0

    def test_parametric_var(self):
        assert parametric_var(0.0, 0.1, 0.95) == pytest.approx(0.16449, abs=1e-4)
        assert parametric_var(0.5, 0.1, 0.95) == 0.0

    def test_historical_var_is_a_positive_loss(self):
        var, es = historical_var([-0.2, -0.1, 0.0, 0.05, 0.1, 0.15], 0.8)
        assert var > 0
        assert es >= var
