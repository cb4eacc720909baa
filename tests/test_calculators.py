"""
tests/test_calculators.py
=========================
Category calculators called directly with statements, benchmarks and options.
Covers the reference figures (CCC, current ratio, gross margin, NPV / IRR),
flat-growth behaviour, credit bands and the anomaly threshold.

Run:  pytest tests/ -v
"""

import dataclasses
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from conftest import build_statement
from fin_engine.calculators import all_calculators
from fin_engine.calculators.detection import (
    ANOMALY_SIGMAS,
    DEFAULT_PROBABILITY,
    RATING_BANDS,
    SUB_INVESTMENT_GRADE,
    rating_for,
)
from fin_engine.errors import InputDataError
from fin_engine.types import (
    AnalysisOptions,
    BalanceSheet,
    BenchmarkSet,
    DetectionResult,
    FinancialStatement,
    IncomeStatement,
    LPProblem,
    OptimizationResult,
    ProjectInputs,
    RatioResult,
    SimulationResult,
    StructuralResult,
    ValuationResult,
)

CALC = all_calculators()
EMPTY = BenchmarkSet.empty()


def run(analysis_id, statements, benchmarks=EMPTY, options=None):
    return CALC[analysis_id](tuple(statements), benchmarks, options or AnalysisOptions())


def ccc_statement(year=2023):
    return FinancialStatement(
        year=year,
        balance_sheet=BalanceSheet(inventory=100.0, receivables=100.0, payables=120.0,
                                   total_current_assets=200.0, total_current_liabilities=100.0),
        income_statement=IncomeStatement(revenue=1250.0, cogs=1000.0),
    )


def with_net_income(values, start=2016):
    base = build_statement(2019)
    return tuple(
        dataclasses.replace(
            base, year=start + i,
            income_statement=dataclasses.replace(base.income_statement, net_income=v),
        )
        for i, v in enumerate(values)
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 1. STRUCTURAL
# ═══════════════════════════════════════════════════════════════════════════════

class TestStructural:
    def test_vertical_net_income_share(self, statements):
        res = run("struct.vertical", statements)
        assert isinstance(res, StructuralResult)
        assert res.value == pytest.approx(14.84)
        assert res.metrics["breakdown"]["is.cogs"] == pytest.approx(60.0)

    def test_vertical_zero_total_assets_gives_zero_shares(self):
        s = FinancialStatement(
            year=2023,
            balance_sheet=BalanceSheet(cash=10.0, total_assets=0.0),
            income_statement=IncomeStatement(revenue=1000.0, net_income=100.0),
        )
        res = run("struct.vertical", [s])
        assert res.metrics["breakdown"]["bs.cash"] == 0.0
        assert res.value == pytest.approx(10.0)

    def test_vertical_zero_revenue_keeps_balance_sheet(self):
        s = FinancialStatement(
            year=2023,
            balance_sheet=BalanceSheet(cash=50.0, total_assets=200.0),
            income_statement=IncomeStatement(revenue=0.0, net_income=-5.0),
        )
        res = run("struct.vertical", [s])
        assert res.value == 0.0
        assert res.metrics["breakdown"]["bs.cash"] == pytest.approx(25.0)

    def test_vertical_without_totals_is_insufficient(self):
        with pytest.raises(InputDataError):
            run("struct.vertical", [FinancialStatement(year=2023)])

    def test_flat_growth(self):
        base = build_statement(2019)
        flat = tuple(dataclasses.replace(base, year=y) for y in (2019, 2020, 2021, 2022))
        horizontal = run("struct.horizontal", flat)
        assert set(horizontal.series.values()) == {0.0}
        trend = run("struct.trend", flat)
        assert set(trend.series.values()) == {100.0}

    def test_growth_rate_is_revenue_cagr(self, statements):
        res = run("struct.growth_rate", statements)
        assert res.value == pytest.approx(10.0, abs=0.01)

    def test_single_year_insufficient(self, statements):
        with pytest.raises(InputDataError):
            run("struct.horizontal", statements[-1:])


# ═══════════════════════════════════════════════════════════════════════════════
# 2. RATIOS & FLOW
# ═══════════════════════════════════════════════════════════════════════════════

class TestRatios:
    def test_current_ratio(self):
        res = run("ratio.current", [ccc_statement()])
        assert isinstance(res, RatioResult)
        assert res.value == 2.00

    def test_gross_margin(self, statements):
        assert run("ratio.gross_margin", statements).value == 40.00

    def test_ccc_whole_days(self):
        # 37 + 29 - 44
        assert run("ratio.ccc", [ccc_statement()]).value == 22.0

    def test_interest_coverage_capped_without_interest(self):
        s = build_statement(2023)
        s = dataclasses.replace(s, income_statement=dataclasses.replace(s.income_statement, interest_expense=0.0))
        assert run("ratio.interest_coverage", [s]).value == 999.0

    def test_missing_item_raises(self):
        s = FinancialStatement(year=2023)
        with pytest.raises(InputDataError):
            run("ratio.current", [s])

    def test_peer_position(self, statements, benchmarks):
        res = run("ratio.current", statements, benchmarks)
        assert res.value == 2.3
        assert res.peer_rank == 1
        assert res.peer_percentile == 100.0

    def test_history_series(self, statements):
        res = run("ratio.current", statements)
        assert sorted(res.series) == [2019, 2020, 2021, 2022, 2023]


class TestFlow:
    def test_cash_cycle_reference(self):
        res = run("flow.cash_cycle", [ccc_statement()])
        assert res.metrics["dio"] == 36.5
        assert res.metrics["dso"] == 29.2
        assert res.metrics["dpo"] == 43.8
        assert res.value == pytest.approx(21.9)

    def test_free_cash_flow(self, statements):
        assert run("flow.free_cash_flow", statements).value == pytest.approx(150.0)


# ═══════════════════════════════════════════════════════════════════════════════
# 3. VALUATION
# ═══════════════════════════════════════════════════════════════════════════════

class TestValuation:
    @pytest.fixture
    def project_options(self):
        return AnalysisOptions(project=ProjectInputs(1000.0, (300.0,) * 5))

    def test_npv_accept(self, statements, project_options):
        res = run("val.npv", statements, options=project_options)
        assert isinstance(res, ValuationResult)
        assert res.value == pytest.approx(137.24, abs=0.01)
        assert res.decision == "accept"
        assert res.benchmark == 0.0

    def test_irr_unique(self, statements, project_options):
        res = run("val.irr", statements, options=project_options)
        assert res.value == pytest.approx(15.24, abs=0.01)
        assert res.irr_status == "unique"
        assert res.decision == "accept"

    def test_npv_reject(self, statements):
        opts = AnalysisOptions(project=ProjectInputs(2000.0, (300.0,) * 5))
        assert run("val.npv", statements, options=opts).decision == "reject"


# ═══════════════════════════════════════════════════════════════════════════════
# 4. MODELING
# ═══════════════════════════════════════════════════════════════════════════════

class TestModeling:
    def test_monte_carlo_reproducible(self, statements, options):
        a = run("model.monte_carlo", statements, options=options)
        b = run("model.monte_carlo", statements, options=options)
        assert isinstance(a, SimulationResult)
        assert a.value == b.value
        assert a.percentiles == b.percentiles
        assert a.seed == options.seed

    def test_linear_programming_with_problem(self, statements):
        problem = LPProblem(
            objective=(3.0, 5.0),
            a_ub=((1.0, 0.0), (0.0, 2.0), (3.0, 2.0)),
            b_ub=(4.0, 12.0, 18.0),
            constraint_names=("plant1", "plant2", "plant3"),
        )
        res = run("model.linear_programming", statements, options=AnalysisOptions(lp_problem=problem))
        assert isinstance(res, OptimizationResult)
        assert res.value == pytest.approx(36.0)
        assert res.shadow_prices["plant2"] == pytest.approx(1.5)
        assert set(res.metrics["binding_constraints"]) == {"plant2", "plant3"}

    def test_default_linear_programming(self, statements):
        res = run("model.linear_programming", statements)
        assert res.status == "optimal"
        assert res.value is not None


# ═══════════════════════════════════════════════════════════════════════════════
# 5. STATISTICAL
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatistical:
    def test_short_history_is_insufficient(self, statements):
        with pytest.raises(InputDataError):
            run("stat.arima", statements[:2])

    def test_regression_runs_on_fixture(self, statements):
        res = run("stat.regression", statements)
        assert res.n_observations >= 4


# ═══════════════════════════════════════════════════════════════════════════════
# 6. DETECTION
# ═══════════════════════════════════════════════════════════════════════════════

class TestCreditRating:
    @pytest.mark.parametrize("points,band", [
        (10, "AAA"), (7, "AAA"), (6, "AA"), (5, "A"), (4, "BBB"),
        (3, "BB"), (2, "B"), (1, "CCC"), (0, "CCC"),
    ])
    def test_band_table(self, points, band):
        assert rating_for(points) == band

    def test_default_probabilities(self):
        assert DEFAULT_PROBABILITY == {
            "AAA": 0.01, "AA": 0.02, "A": 0.05, "BBB": 0.10, "BB": 0.20, "B": 0.35, "CCC": 0.50,
        }
        assert [b for _, b in RATING_BANDS] == ["AAA", "AA", "A", "BBB", "BB", "B"]

    def test_healthy_company(self, statements):
        res = run("detect.credit_rating", statements)
        assert isinstance(res, DetectionResult)
        assert res.value == 10.0
        assert res.rating == "AAA"
        assert res.default_probability == 0.01
        assert res.flagged is False

    def test_sub_investment_grade_flagged(self):
        s = FinancialStatement(
            year=2023,
            balance_sheet=BalanceSheet(total_assets=1000.0, total_current_assets=100.0,
                                       total_current_liabilities=200.0, total_liabilities=900.0,
                                       total_equity=100.0),
            income_statement=IncomeStatement(revenue=300.0, operating_income=10.0,
                                             interest_expense=50.0, net_income=-20.0),
        )
        res = run("detect.credit_rating", [s])
        assert res.rating in SUB_INVESTMENT_GRADE
        assert res.flagged is True


class TestAnomaly:
    def test_spike_flagged(self):
        res = run("detect.anomaly", with_net_income([100, 100, 100, 100, 100, 1000]))
        assert res.flagged is True
        assert res.benchmark == ANOMALY_SIGMAS * 100

    def test_threshold_is_mean_plus_two_sigma(self):
        res = run("detect.anomaly", with_net_income([100, 130, 90, 160, 120, 150]))
        m = res.metrics
        assert res.threshold == pytest.approx(m["historical_mean"] + 2 * m["historical_std"], abs=0.02)
        assert res.flagged == (m["reconstruction_error"] > res.threshold)

    def test_linear_history_not_flagged(self):
        res = run("detect.anomaly", with_net_income([100, 110, 120, 130, 140]))
        assert res.flagged is False
        assert res.value == 0.0

    def test_needs_four_years(self, statements):
        with pytest.raises(InputDataError):
            run("detect.anomaly", statements[:3])


class TestLearnedModels:
    def test_boosted_forecast_follows_the_trend(self, statements):
        res = run("detect.gradient_boosting", statements)
        assert 1464.1 < res.value < 1700.0
        assert res.metrics["stumps"] == 10

    def test_boosting_reproducible_for_a_seed(self, statements, options):
        a = run("detect.gradient_boosting", statements, options=options)
        b = run("detect.gradient_boosting", statements, options=options)
        assert a.value == b.value

    def test_neural_forecast_reproducible_for_a_seed(self, statements, options):
        a = run("detect.neural_forecast", statements, options=options)
        b = run("detect.neural_forecast", statements, options=options)
        assert a.value == b.value
        assert a.metrics["seed"] == options.seed

    def test_clustering_labels_every_year(self, statements):
        res = run("detect.clustering", statements)
        assert sorted(res.metrics["labels"]) == [2019, 2020, 2021, 2022, 2023]
        assert 0 < res.value <= 100

    def test_sequence_model_on_straight_line(self):
        line = with_net_income([100.0] * 4)
        line = tuple(
            dataclasses.replace(s, income_statement=dataclasses.replace(s.income_statement, revenue=r))
            for s, r in zip(line, (1000.0, 1100.0, 1200.0, 1300.0))
        )
        assert run("detect.lstm", line).value == pytest.approx(1400.0)

    def test_autoencoder_threshold(self, statements):
        res = run("detect.autoencoder", statements)
        assert res.benchmark == ANOMALY_SIGMAS * 100
        assert isinstance(res.flagged, bool)
        assert sorted(res.metrics["errors"]) == [2019, 2020, 2021, 2022, 2023]
