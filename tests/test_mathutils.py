"""
tests/test_mathutils.py
=======================
Guarded arithmetic, structural primitives and statistics helpers.

Run:  pytest tests/ -v
"""

import math
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.mathutils import (
    cagr,
    days,
    horizontal,
    index_number,
    linear_trend,
    mean,
    pct_changes,
    percentage,
    percentile_rank,
    ratio,
    safe_div,
    std_dev,
    vertical,
    z_score,
)


class TestGuardedDivision:
    def test_ratio_zero_denominator(self):
        assert ratio(123.0, 0) == 0

    def test_ratio_rounds_two_decimals(self):
        assert ratio(2, 3) == 0.67

    def test_ratio_none_input(self):
        assert ratio(None, 5) == 0

    def test_percentage(self):
        assert percentage(50, 200) == 25.00

    def test_percentage_zero_whole(self):
        assert percentage(50, 0) == 0

    def test_safe_div_propagates_none(self):
        assert safe_div(1, 0) is None
        assert safe_div(None, 2) is None
        assert safe_div(3, 2) == 1.5


class TestStructuralPrimitives:
    def test_vertical_share(self):
        assert vertical(250, 1000) == 25.0

    def test_vertical_zero_total(self):
        assert vertical(250, 0) == 0

    def test_horizontal_change(self):
        assert horizontal(110, 100) == 10.0

    def test_horizontal_zero_previous(self):
        assert horizontal(110, 0) == 0

    def test_index_base_zero_is_100(self):
        assert index_number(500, 0) == 100

    def test_index_number(self):
        assert index_number(150, 100) == 150.0


class TestCagr:
    def test_round_trip(self):
        first, years, rate = 1000.0, 4, 0.0725
        last = first * (1 + rate) ** years
        assert cagr(first, last, years) == pytest.approx(rate, abs=1e-9)

    def test_non_positive_first_is_na(self):
        assert cagr(0, 100, 3) is None
        assert cagr(-50, 100, 3) is None

    def test_zero_periods(self):
        assert cagr(100, 120, 0) is None


class TestDays:
    def test_whole_days_half_up(self):
        # 100 / 1000 * 365 = 36.5
        assert days(100, 1000) == 37.0

    def test_decimals_kept(self):
        assert days(100, 1250, decimals=1) == 29.2

    def test_zero_flow(self):
        assert days(100, 0) == 0


class TestStatistics:
    def test_mean_skips_none_and_nan(self):
        assert mean([1.0, None, 3.0, float("nan")]) == 2.0

    def test_mean_empty(self):
        assert mean([]) is None

    def test_std_dev_sample(self):
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.138, abs=1e-3)

    def test_std_dev_needs_two_points(self):
        assert std_dev([5.0]) is None

    def test_percentile_rank(self):
        assert percentile_rank(3, [1, 2, 3, 4]) == 75.0

    def test_z_score(self):
        assert z_score(4, [1, 2, 3, 4, 5]) == pytest.approx(0.6325, abs=1e-4)

    def test_z_score_constant_population(self):
        assert z_score(4, [2, 2, 2]) is None

    def test_linear_trend(self):
        slope, intercept = linear_trend([10, 12, 14, 16])
        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(10.0)

    def test_pct_changes_skip_zero_base(self):
        changes = pct_changes([0, 100, 110])
        assert changes == [pytest.approx(0.1)]
        assert not any(math.isnan(c) for c in changes)
