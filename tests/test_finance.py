"""
tests/test_finance.py
=====================
Time value of money, IRR root finding, payback and DCF contracts.

Run:  pytest tests/ -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.finance import (
    annuity_pv,
    capm,
    cash_conversion_cycle,
    dcf,
    discounted_payback,
    future_value,
    gordon_growth,
    irr,
    npv,
    payback_period,
    present_value,
    profitability_index,
    wacc,
)

FLOWS = [300.0] * 5


class TestNpv:
    def test_reference_project(self):
        assert npv(0.10, 1000, FLOWS) == pytest.approx(137.24, abs=0.01)

    def test_zero_rate_is_simple_sum(self):
        assert npv(0.0, 1000, FLOWS) == pytest.approx(500.0)

    def test_profitability_index(self):
        assert profitability_index(0.10, 1000, FLOWS) == pytest.approx(1.13724, abs=1e-4)

    def test_present_and_future_value_inverse(self):
        fv = future_value(1000, 0.08, 3)
        assert present_value(fv, 0.08, 3) == pytest.approx(1000.0)

    def test_annuity_matches_npv(self):
        assert annuity_pv(300, 0.10, 5) - 1000 == pytest.approx(npv(0.10, 1000, FLOWS))


class TestIrr:
    def test_npv_at_irr_is_zero(self):
        res = irr(1000, FLOWS)
        assert res.status == "unique"
        assert res.rate == pytest.approx(0.1524, abs=1e-4)
        assert npv(res.rate, 1000, FLOWS) == pytest.approx(0.0, abs=1e-6)

    def test_multiple_sign_changes_flagged(self):
        # -100, +230, -132: roots at 10% and 20%
        res = irr(100, [230, -132])
        assert res.status == "multiple"
        assert sorted(round(r, 4) for r in res.roots) == [0.1, 0.2]

    def test_no_root(self):
        res = irr(1000, [-10.0, -10.0])
        assert res.rate is None
        assert res.status == "none"


class TestPayback:
    def test_interpolated(self):
        assert payback_period(1000, [400, 400, 400]) == pytest.approx(2.5)

    def test_never_recovered(self):
        assert payback_period(1000, [100, 100]) is None

    def test_discounted_is_longer(self):
        simple = payback_period(1000, FLOWS)
        disc = discounted_payback(1000, FLOWS, 0.10)
        assert disc > simple


class TestDcfAndRates:
    def test_dcf_invalid_when_wacc_below_growth(self):
        assert dcf([100, 110], 0.02, 0.03).valid is False

    def test_dcf_equity_bridge(self):
        res = dcf([100.0, 100.0], 0.10, 0.0, debt=50.0, cash=20.0)
        assert res.valid
        assert res.terminal_value == pytest.approx(1000.0)
        assert res.equity_value == pytest.approx(res.enterprise_value - 30.0)

    def test_gordon_invalid(self):
        assert gordon_growth(5, 0.05, 0.06) is None
        assert gordon_growth(5, 0.10, 0.05) == pytest.approx(100.0)

    def test_capm(self):
        assert capm(0.03, 1.2, 0.09) == pytest.approx(0.102)

    def test_wacc(self):
        assert wacc(600, 400, 0.12, 0.05, 0.25) == pytest.approx(0.087)


class TestCashConversionCycle:
    def test_reference_scenario(self):
        c = cash_conversion_cycle(inventory=100, cogs=1000, receivables=100, revenue=1250, payables=120)
        assert c["dio"] == pytest.approx(36.5)
        assert c["dso"] == pytest.approx(29.2)
        assert c["dpo"] == pytest.approx(43.8)
        assert c["ccc"] == pytest.approx(21.9)
