"""
fin_engine/simulation.py
========================
Numerical contracts behind the modeling calculators.

  - probability-weighted scenario aggregation
  - seeded Monte Carlo NPV simulation (VaR / CVaR)
  - linear programming with shadow prices (HiGHS via scipy)
  - decision-tree rollback, binomial real option, 2x2 game equilibrium,
    0/1 knapsack capital budgeting, geometric Brownian motion paths
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import linprog

from .errors import CalculationError
from .finance import npv
from .types import DistributionSpec, LPProblem, Scenario

logger = logging.getLogger(__name__)

PERCENTILES: Tuple[int, ...] = (5, 10, 25, 50, 75, 90, 95)

# Revenue sd 10%, costs sd 8%, growth 8% ± 3%, discount rate triangular 8/10/12%.
DEFAULT_MC_SPREADS: Dict[str, float] = {"revenue": 0.10, "costs": 0.08}


def default_distributions(revenue: float, costs: float) -> Dict[str, DistributionSpec]:
    return {
        "revenue": DistributionSpec("normal", (revenue, abs(revenue) * DEFAULT_MC_SPREADS["revenue"])),
        "costs": DistributionSpec("normal", (costs, abs(costs) * DEFAULT_MC_SPREADS["costs"])),
        "growth": DistributionSpec("normal", (0.08, 0.03)),
        "discount_rate": DistributionSpec("triangular", (0.08, 0.10, 0.12)),
    }


# ─── Scenarios ────────────────────────────────────────────────────────────────

@dataclass
class ScenarioOutcome:
    name: str
    probability: float
    value: float


@dataclass
class ScenarioAnalysis:
    outcomes: List[ScenarioOutcome]
    expected_value: float
    std_dev: float
    percentiles: Dict[int, float] = field(default_factory=dict)


def scenario_analysis(scenarios: Sequence[Scenario], base_revenue: float, base_margin: float,
                      years: int = 1) -> ScenarioAnalysis:
    """Profit under each scenario after ``years`` of growth, weighted by probability."""
    total_p = sum(s.probability for s in scenarios)
    if not scenarios or abs(total_p - 1.0) > 1e-6:
        raise CalculationError("model.scenario", f"scenario probabilities sum to {total_p:.4f}, expected 1")
    outcomes = []
    for s in scenarios:
        revenue = base_revenue * (1 + s.revenue_growth) ** years
        outcomes.append(ScenarioOutcome(s.name, s.probability, revenue * (base_margin + s.margin_change)))
    values = np.array([o.value for o in outcomes])
    probs = np.array([o.probability for o in outcomes])
    expected = float(np.dot(values, probs))
    sd = float(np.sqrt(np.dot(probs, (values - expected) ** 2)))
    order = np.argsort(values)
    cum = np.cumsum(probs[order])
    pct = {p: float(values[order][min(np.searchsorted(cum, p / 100.0), len(values) - 1)])
           for p in PERCENTILES}
    return ScenarioAnalysis(outcomes, expected, sd, pct)


# ─── Monte Carlo ──────────────────────────────────────────────────────────────

def draw(rng: np.random.Generator, spec: DistributionSpec, size: int) -> np.ndarray:
    if spec.kind == "normal":
        mu, sd = spec.params
        return rng.normal(mu, sd, size)
    if spec.kind == "uniform":
        lo, hi = spec.params
        return rng.uniform(lo, hi, size)
    if spec.kind == "triangular":
        left, mode, right = spec.params
        return rng.triangular(left, mode, right, size)
    raise CalculationError("model.monte_carlo", f"unsupported distribution {spec.kind!r}")


@dataclass
class MonteCarloResult:
    samples: np.ndarray
    mean: float
    std_dev: float
    percentiles: Dict[int, float]
    var: float
    cvar: float
    probability_of_loss: float
    iterations: int
    seed: int


def monte_carlo_npv(distributions: Mapping[str, DistributionSpec], initial_investment: float,
                    years: int, iterations: int = 10_000, seed: int = 42,
                    confidence: float = 0.95) -> MonteCarloResult:
    """
    Simulate project NPV. Each draw takes base revenue/costs, grows the margin
    by the sampled growth for ``years`` and discounts at the sampled rate
    through the same ``npv`` formula the deterministic path uses.

    VaR is the loss at ``confidence`` relative to the mean NPV; CVaR the mean
    loss beyond it. Same seed, same inputs → identical output.
    """
    if iterations <= 0:
        raise CalculationError("model.monte_carlo", "iterations must be positive")
    missing = {"revenue", "costs", "growth", "discount_rate"} - set(distributions)
    if missing:
        raise CalculationError("model.monte_carlo", f"missing distributions {sorted(missing)}")

    rng = np.random.default_rng(seed)
    revenue = draw(rng, distributions["revenue"], iterations)
    costs = draw(rng, distributions["costs"], iterations)
    growth = draw(rng, distributions["growth"], iterations)
    rate = draw(rng, distributions["discount_rate"], iterations)

    npvs = np.empty(iterations)
    for i in range(iterations):
        margin = revenue[i] - costs[i]
        flows = [margin * (1 + growth[i]) ** t for t in range(1, years + 1)]
        npvs[i] = npv(rate[i], initial_investment, flows)

    mean = float(npvs.mean())
    pct = {p: float(np.percentile(npvs, p)) for p in PERCENTILES}
    tail_q = float(np.percentile(npvs, (1 - confidence) * 100))
    var = mean - tail_q
    tail = npvs[npvs <= tail_q]
    cvar = mean - float(tail.mean()) if tail.size else var
    return MonteCarloResult(
        samples=npvs, mean=mean, std_dev=float(npvs.std(ddof=1)) if iterations > 1 else 0.0,
        percentiles=pct, var=var, cvar=cvar,
        probability_of_loss=float((npvs < 0).mean()),
        iterations=iterations, seed=seed,
    )


def gbm_paths(start: float, drift: float, volatility: float, years: int,
              paths: int, seed: int, steps_per_year: int = 12) -> np.ndarray:
    """Geometric Brownian motion; returns array (paths, steps+1)."""
    rng = np.random.default_rng(seed)
    dt = 1.0 / steps_per_year
    steps = years * steps_per_year
    shocks = rng.normal((drift - 0.5 * volatility ** 2) * dt, volatility * np.sqrt(dt), (paths, steps))
    log_paths = np.concatenate([np.zeros((paths, 1)), np.cumsum(shocks, axis=1)], axis=1)
    return start * np.exp(log_paths)


# ─── Linear Programming ───────────────────────────────────────────────────────

@dataclass
class LPSolution:
    status: str
    objective_value: float
    solution: Dict[str, float]
    shadow_prices: Dict[str, float]
    slack: Dict[str, float]


def solve_lp(problem: LPProblem) -> LPSolution:
    """
    Solve ``max/min c·x s.t. A_ub x <= b_ub`` with HiGHS.

    Shadow prices are the constraint marginals, sign-adjusted so they read as
    "objective gain per extra unit of resource" for maximisation problems.
    Infeasible or unbounded problems raise ``CalculationError``.
    """
    n = len(problem.objective)
    if not problem.a_ub or any(len(row) != n for row in problem.a_ub):
        raise CalculationError("model.linear_programming", "constraint matrix shape mismatch")
    c = np.asarray(problem.objective, dtype=float)
    if problem.maximize:
        c = -c
    bounds = list(problem.bounds) if problem.bounds else [(0, None)] * n
    res = linprog(c, A_ub=np.asarray(problem.a_ub, dtype=float),
                  b_ub=np.asarray(problem.b_ub, dtype=float), bounds=bounds, method="highs")
    if res.status != 0:
        logger.info("LP not solved: %s", res.message)
        raise CalculationError("model.linear_programming", res.message)

    var_names = list(problem.variable_names) or [f"x{i + 1}" for i in range(n)]
    con_names = list(problem.constraint_names) or [f"c{i + 1}" for i in range(len(problem.b_ub))]
    sign = -1.0 if problem.maximize else 1.0
    objective = float(res.fun) * sign
    marginals = res.ineqlin.marginals
    return LPSolution(
        status="optimal",
        objective_value=objective,
        solution={name: float(v) for name, v in zip(var_names, res.x)},
        shadow_prices={name: float(m) * sign for name, m in zip(con_names, marginals)},
        slack={name: float(s) for name, s in zip(con_names, res.ineqlin.residual)},
    )


# ─── Decision Trees / Real Options / Games ────────────────────────────────────

def decision_tree_value(branches: Mapping[str, Sequence[Tuple[float, float]]],
                        costs: Optional[Mapping[str, float]] = None) -> Tuple[str, Dict[str, float]]:
    """
    One-level rollback. ``branches`` maps decision → [(probability, payoff)].
    Returns (best decision, expected value per decision net of its cost).
    """
    costs = costs or {}
    values = {}
    for decision, outcomes in branches.items():
        values[decision] = sum(p * v for p, v in outcomes) - costs.get(decision, 0.0)
    best = max(values, key=values.get)
    return best, values


def binomial_option(underlying: float, strike: float, rate: float, volatility: float,
                    years: float, steps: int = 50, call: bool = True,
                    american: bool = True) -> float:
    """Cox-Ross-Rubinstein lattice value of an option to expand (call) / abandon (put)."""
    if underlying <= 0 or volatility <= 0 or years <= 0:
        return max(0.0, (underlying - strike) if call else (strike - underlying))
    dt = years / steps
    u = np.exp(volatility * np.sqrt(dt))
    d = 1 / u
    p = (np.exp(rate * dt) - d) / (u - d)
    disc = np.exp(-rate * dt)
    prices = underlying * u ** np.arange(steps, -1, -1) * d ** np.arange(0, steps + 1)
    values = np.maximum(prices - strike, 0.0) if call else np.maximum(strike - prices, 0.0)
    for i in range(steps - 1, -1, -1):
        prices = prices[:-1] / u
        values = disc * (p * values[:-1] + (1 - p) * values[1:])
        if american:
            exercise = prices - strike if call else strike - prices
            values = np.maximum(values, exercise)
    return float(values[0])


def mixed_strategy_2x2(payoffs: Sequence[Sequence[float]]) -> Dict[str, float]:
    """
    Zero-sum 2x2 game for the row player. Returns the row mixing probability
    and game value; a saddle point short-circuits to the pure strategy.
    """
    (a, b), (c, d) = payoffs
    maximin = max(min(a, b), min(c, d))
    minimax = min(max(a, c), max(b, d))
    if maximin == minimax:
        p = 1.0 if min(a, b) >= min(c, d) else 0.0
        return {"p_row1": p, "value": float(maximin), "saddle": 1.0}
    denom = a - b - c + d
    if denom == 0:
        raise CalculationError("model.game_theory", "degenerate payoff matrix")
    p = (d - c) / denom
    value = (a * d - b * c) / denom
    return {"p_row1": float(p), "value": float(value), "saddle": 0.0}


def knapsack(costs: Sequence[int], values: Sequence[float], budget: int) -> Tuple[float, List[int]]:
    """0/1 knapsack by dynamic programming; integer costs, returns (value, chosen indexes)."""
    n = len(costs)
    table = np.zeros((n + 1, budget + 1))
    for i in range(1, n + 1):
        w, v = costs[i - 1], values[i - 1]
        table[i] = table[i - 1]
        if w <= budget:
            table[i, w:] = np.maximum(table[i - 1, w:], table[i - 1, : budget + 1 - w] + v)
    chosen, cap = [], budget
    for i in range(n, 0, -1):
        if table[i, cap] != table[i - 1, cap]:
            chosen.append(i - 1)
            cap -= costs[i - 1]
    return float(table[n, budget]), sorted(chosen)
