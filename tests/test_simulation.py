"""
tests/test_simulation.py
========================
Scenario weighting, seeded Monte Carlo, LP shadow prices and the small
decision models behind the modeling analyses.

Run:  pytest tests/ -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from fin_engine.errors import CalculationError
from fin_engine.simulation import (
    binomial_option,
    decision_tree_value,
    default_distributions,
    gbm_paths,
    knapsack,
    mixed_strategy_2x2,
    monte_carlo_npv,
    scenario_analysis,
    solve_lp,
)
from fin_engine.types import DEFAULT_SCENARIOS, DistributionSpec, LPProblem, Scenario


class TestScenarios:
    def test_default_weights(self):
        assert [s.probability for s in DEFAULT_SCENARIOS] == [0.25, 0.50, 0.25]

    def test_probability_weighted_expectation(self):
        res = scenario_analysis(DEFAULT_SCENARIOS, base_revenue=1000, base_margin=0.10)
        # 0.25 * 138 + 0.5 * 118.8 + 0.25 * 76
        assert res.expected_value == pytest.approx(112.9)
        assert [o.name for o in res.outcomes] == ["optimistic", "realistic", "pessimistic"]

    def test_probabilities_must_sum_to_one(self):
        bad = (Scenario("up", 0.6, 0.1, 0.0), Scenario("down", 0.6, -0.1, 0.0))
        with pytest.raises(CalculationError):
            scenario_analysis(bad, 1000, 0.1)


class TestMonteCarlo:
    def _dists(self):
        return default_distributions(revenue=1000.0, costs=800.0)

    def test_reproducible_for_same_seed(self):
        a = monte_carlo_npv(self._dists(), 500.0, 5, iterations=1500, seed=11)
        b = monte_carlo_npv(self._dists(), 500.0, 5, iterations=1500, seed=11)
        assert a.mean == b.mean
        assert a.percentiles == b.percentiles
        assert np.array_equal(a.samples, b.samples)

    def test_different_seed_differs(self):
        a = monte_carlo_npv(self._dists(), 500.0, 5, iterations=1500, seed=1)
        b = monte_carlo_npv(self._dists(), 500.0, 5, iterations=1500, seed=2)
        assert a.mean != b.mean

    def test_risk_measures_ordered(self):
        res = monte_carlo_npv(self._dists(), 500.0, 5, iterations=3000, seed=5)
        assert res.cvar >= res.var
        assert 0.0 <= res.probability_of_loss <= 1.0
        assert res.percentiles[5] <= res.percentiles[50] <= res.percentiles[95]

    def test_degenerate_distributions(self):
        fixed = {
            "revenue": DistributionSpec("uniform", (100.0, 100.0)),
            "costs": DistributionSpec("uniform", (0.0, 0.0)),
            "growth": DistributionSpec("uniform", (0.0, 0.0)),
            "discount_rate": DistributionSpec("uniform", (0.0, 0.0)),
        }
        res = monte_carlo_npv(fixed, 250.0, 3, iterations=10, seed=0)
        assert res.mean == pytest.approx(50.0)
        assert res.probability_of_loss == 0.0

    def test_missing_distribution(self):
        with pytest.raises(CalculationError):
            monte_carlo_npv({"revenue": DistributionSpec("normal", (1.0, 0.1))}, 1.0, 1)


class TestLinearProgramming:
    def test_optimum_and_shadow_prices(self):
        # max 3x + 5y ; x <= 4 ; 2y <= 12 ; 3x + 2y <= 18
        problem = LPProblem(
            objective=(3.0, 5.0),
            a_ub=((1.0, 0.0), (0.0, 2.0), (3.0, 2.0)),
            b_ub=(4.0, 12.0, 18.0),
            variable_names=("x", "y"),
            constraint_names=("plant1", "plant2", "plant3"),
        )
        sol = solve_lp(problem)
        assert sol.status == "optimal"
        assert sol.objective_value == pytest.approx(36.0)
        assert sol.solution["x"] == pytest.approx(2.0)
        assert sol.solution["y"] == pytest.approx(6.0)
        assert sol.shadow_prices["plant1"] == pytest.approx(0.0, abs=1e-9)
        assert sol.shadow_prices["plant2"] == pytest.approx(1.5)
        assert sol.shadow_prices["plant3"] == pytest.approx(1.0)

    def test_infeasible(self):
        problem = LPProblem(objective=(1.0,), a_ub=((1.0,), (-1.0,)), b_ub=(1.0, -2.0))
        with pytest.raises(CalculationError):
            solve_lp(problem)

    def test_shape_mismatch(self):
        with pytest.raises(CalculationError):
            solve_lp(LPProblem(objective=(1.0, 2.0), a_ub=((1.0,),), b_ub=(1.0,)))


class TestDecisionModels:
    def test_decision_tree_rollback(self):
        best, values = decision_tree_value(
            {"expand": [(0.6, 200.0), (0.4, -50.0)], "hold": [(1.0, 60.0)]},
            costs={"expand": 30.0},
        )
        assert best == "expand"
        assert values["expand"] == pytest.approx(70.0)

    def test_knapsack(self):
        value, chosen = knapsack([5, 4, 6, 3], [10.0, 40.0, 30.0, 50.0], 10)
        assert value == pytest.approx(90.0)
        assert chosen == [1, 3]

    def test_matching_pennies(self):
        eq = mixed_strategy_2x2([[1.0, -1.0], [-1.0, 1.0]])
        assert eq["p_row1"] == pytest.approx(0.5)
        assert eq["value"] == pytest.approx(0.0)
        assert eq["saddle"] == 0.0

    def test_saddle_point(self):
        eq = mixed_strategy_2x2([[3.0, 2.0], [1.0, 0.0]])
        assert eq["saddle"] == 1.0
        assert eq["p_row1"] == 1.0
        assert eq["value"] == pytest.approx(2.0)

    def test_binomial_call_near_black_scholes(self):
        value = binomial_option(100.0, 100.0, 0.05, 0.2, 1.0, steps=200, american=False)
        assert value == pytest.approx(10.45, abs=0.05)

    def test_gbm_shape(self):
        paths = gbm_paths(100.0, 0.05, 0.2, years=2, paths=10, seed=3)
        assert paths.shape == (10, 25)
        assert np.all(paths[:, 0] == 100.0)
