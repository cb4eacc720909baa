"""
fin_engine/calculators/modeling.py
==================================
Simulation, forecasting and optimisation models.

Stochastic analyses draw from ``np.random.default_rng(options.seed)`` so a
fixed seed reproduces the same report. Optimisation problems go through
``simulation.solve_lp`` (HiGHS); infeasible problems surface as
``CalculationError`` and the analysis is reported as not computable.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Tuple

import numpy as np
from scipy.optimize import minimize_scalar

from ..errors import CalculationError, InputDataError
from ..finance import capm, npv, wacc
from ..formatting import format_compact, format_percent, txt
from ..mathutils import linear_trend, mean, pct_changes, percentage, safe_div, std_dev
from ..simulation import (
    PERCENTILES, binomial_option, decision_tree_value, default_distributions, gbm_paths,
    knapsack, mixed_strategy_2x2, monte_carlo_npv, scenario_analysis, solve_lp,
)
from ..types import (
    AnalysisOptions, BenchmarkSet, LPProblem, OptimizationResult, SimulationResult,
)
from ._base import (
    Statements, default_project, interest_rate_on_debt, latest, project_rate, require,
    require_nonzero, revenue, revenue_growth, series, val, values,
)

logger = logging.getLogger(__name__)

# Fractions of the budget for the generated capital-budgeting candidates and
# the profitability multiplier applied to each.
_CANDIDATE_SCALES: Tuple[float, ...] = (0.5, 0.4, 0.3, 0.2, 0.1)
_CANDIDATE_QUALITY: Tuple[float, ...] = (1.3, 1.1, 1.0, 0.9, 0.7)


def _budget(statements: Statements, options: AnalysisOptions) -> float:
    if options.budget is not None:
        return options.budget
    s = latest(statements)
    budget = s.bs.cash_and_equivalents + max(val(s.cf.operating_cash_flow), 0.0)
    if budget <= 0:
        raise InputDataError("balance_sheet.cash", "no investable budget")
    return budget


def _candidates(statements: Statements, options: AnalysisOptions,
                budget: float) -> List[Tuple[str, float, float]]:
    """(name, cost, npv) for the capital-budgeting analyses."""
    if options.alternatives:
        return [(p.name, p.initial_investment,
                 npv(project_rate(p, options), p.initial_investment, p.cash_flows))
                for p in options.alternatives]
    project = default_project(statements, options)
    rate = project_rate(project, options)
    base = project.initial_investment or 1.0
    out = []
    for i, (scale, quality) in enumerate(zip(_CANDIDATE_SCALES, _CANDIDATE_QUALITY), start=1):
        cost = budget * scale
        flows = [c * cost / base * quality for c in project.cash_flows]
        out.append((f"project_{i}", cost, npv(rate, cost, flows)))
    return out


def _growth_stats(statements: Statements) -> Tuple[float, float]:
    g = pct_changes(list(series(statements, revenue).values()))
    mu = mean(g) if g else 0.05
    sigma = std_dev(g) if len(g) >= 2 else None
    return mu, (sigma if sigma else 0.15)


# ─── Scenario / Monte Carlo ───────────────────────────────────────────────────

def scenario(statements: Statements, benchmarks: BenchmarkSet,
             options: AnalysisOptions) -> SimulationResult:
    """Probability-weighted next-year net income over the configured scenarios."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    ni = require(s.inc.net_income, "income_statement.net_income")
    result = scenario_analysis(options.scenarios, rev, ni / rev)
    return SimulationResult(
        value=round(result.expected_value, 2),
        benchmark=ni,
        percentiles={p: round(v, 2) for p, v in result.percentiles.items()},
        metrics={"std_dev": round(result.std_dev, 2),
                 "outcomes": {o.name: round(o.value, 2) for o in result.outcomes},
                 "probabilities": {o.name: o.probability for o in result.outcomes}},
        interpretation=txt(
            f"Expected net income across scenarios is {format_compact(result.expected_value)} "
            f"(σ {format_compact(result.std_dev)}) against {format_compact(ni)} today.",
            f"صافي الربح المتوقع عبر السيناريوهات {format_compact(result.expected_value)} "
            f"مقابل {format_compact(ni)} حالياً.",
        ),
        chart_hint="bar",
    )


def monte_carlo(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> SimulationResult:
    s = latest(statements)
    project = default_project(statements, options)
    distributions = options.distributions
    if not distributions:
        rev = require(s.inc.revenue, "income_statement.revenue")
        oi = require(s.inc.operating_income, "income_statement.operating_income")
        distributions = default_distributions(rev, rev - oi)
    result = monte_carlo_npv(distributions, project.initial_investment, options.forecast_years,
                             options.iterations, options.seed, options.confidence)
    logger.debug("monte carlo: %d iterations, seed %d, mean %.2f",
                 result.iterations, result.seed, result.mean)
    return SimulationResult(
        value=round(result.mean, 2),
        benchmark=0.0,
        percentiles={p: round(v, 2) for p, v in result.percentiles.items()},
        var=round(result.var, 2),
        cvar=round(result.cvar, 2),
        probability_of_loss=round(result.probability_of_loss, 4),
        iterations=result.iterations,
        seed=result.seed,
        metrics={"std_dev": round(result.std_dev, 2), "confidence": options.confidence,
                 "distributions": {k: {"kind": d.kind, "params": list(d.params)}
                                   for k, d in distributions.items()}},
        interpretation=txt(
            f"Mean simulated NPV is {format_compact(result.mean)}; the probability of loss is "
            f"{format_percent(result.probability_of_loss * 100)} and VaR at "
            f"{options.confidence:.0%} is {format_compact(result.var)}.",
            f"متوسط صافي القيمة الحالية المحاكاة {format_compact(result.mean)}، واحتمال الخسارة "
            f"{format_percent(result.probability_of_loss * 100)}.",
        ),
        chart_hint="histogram",
    )


def financial_model(statements: Statements, benchmarks: BenchmarkSet,
                    options: AnalysisOptions) -> SimulationResult:
    """Driver-based projection: revenue at historical growth, average net margin, retained earnings."""
    s = latest(statements)
    rev = require(s.inc.revenue, "income_statement.revenue")
    margins = [st.inc.net_income / st.inc.revenue for st in statements
               if st.inc.net_income is not None and st.inc.revenue]
    if not margins:
        raise InputDataError("income_statement.net_income")
    margin = mean(margins)
    g = revenue_growth(statements, lo=-0.10, hi=0.20)
    payout = safe_div(s.inc.dividends, s.inc.net_income)
    payout = payout if payout is not None and 0 <= payout <= 1 else 0.0
    equity = val(s.bs.total_equity)
    income: Dict[int, float] = {}
    revenues: Dict[int, float] = {}
    equities: Dict[int, float] = {}
    for t in range(1, options.forecast_years + 1):
        year = s.year + t
        revenues[year] = round(rev * (1 + g) ** t, 2)
        income[year] = round(revenues[year] * margin, 2)
        equity += income[year] * (1 - payout)
        equities[year] = round(equity, 2)
    final = income[max(income)]
    return SimulationResult(
        value=final,
        series=income,
        metrics={"revenue": revenues, "equity": equities, "growth": round(g, 4),
                 "net_margin": round(margin * 100, 2), "payout_ratio": round(payout, 4)},
        interpretation=txt(
            f"At {format_percent(g * 100)} growth and a {format_percent(margin * 100)} margin, net income reaches "
            f"{format_compact(final)} by {max(income)}.",
            f"بنمو {format_percent(g * 100)} وهامش {format_percent(margin * 100)} يصل صافي الربح إلى "
            f"{format_compact(final)} في {max(income)}.",
        ),
        chart_hint="line",
    )


def multivariate_sensitivity(statements: Statements, benchmarks: BenchmarkSet,
                             options: AnalysisOptions) -> SimulationResult:
    """Share of a joint cash-flow x rate x investment grid on which NPV stays non-negative."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    grid = []
    for cf_factor in (0.8, 0.9, 1.0, 1.1, 1.2):
        for dr in (-0.02, 0.0, 0.02):
            for inv_factor in (0.9, 1.0, 1.1):
                value = npv(max(rate + dr, 0.0), project.initial_investment * inv_factor,
                            [c * cf_factor for c in project.cash_flows])
                grid.append(value)
    arr = np.asarray(grid)
    share = float((arr >= 0).mean() * 100)
    return SimulationResult(
        value=round(share, 2),
        benchmark=50.0,
        percentiles={p: round(float(np.percentile(arr, p)), 2) for p in PERCENTILES},
        iterations=len(grid),
        metrics={"worst_npv": round(float(arr.min()), 2), "best_npv": round(float(arr.max()), 2)},
        interpretation=txt(
            f"NPV stays non-negative in {format_percent(share)} of {len(grid)} joint shocks.",
            f"يبقى صافي القيمة الحالية موجباً في {format_percent(share)} من {len(grid)} صدمة مشتركة.",
        ),
        chart_hint="heatmap",
    )


def decision_tree(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> OptimizationResult:
    """Expand / continue / abandon, each rolled back over the scenario probabilities."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    i0, flows = project.initial_investment, project.cash_flows

    def branch(scale: float) -> List[Tuple[float, float]]:
        return [(sc.probability, npv(rate, i0 * scale, [c * scale * (1 + sc.revenue_growth) for c in flows]))
                for sc in options.scenarios]

    branches = {"expand": branch(1.5), "continue": branch(1.0), "abandon": [(1.0, 0.0)]}
    best, ev = decision_tree_value(branches)
    return OptimizationResult(
        value=round(ev[best], 2),
        benchmark=0.0,
        solution={k: round(v, 2) for k, v in ev.items()},
        objective_value=round(ev[best], 2),
        metrics={"best_decision": best},
        interpretation=txt(
            f"Rolling back the tree, '{best}' has the highest expected NPV at {format_compact(ev[best])}.",
            f"بعد تقييم الشجرة، القرار الأفضل هو '{best}' بقيمة متوقعة {format_compact(ev[best])}.",
        ),
        chart_hint="tree",
    )


def real_options(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> SimulationResult:
    """Value of an option to expand the project by 50%, priced on a binomial lattice."""
    project = default_project(statements, options)
    rate = project_rate(project, options)
    pv = npv(rate, 0.0, project.cash_flows)
    static = pv - project.initial_investment
    _, sigma = _growth_stats(statements)
    option = binomial_option(0.5 * pv, 0.5 * project.initial_investment, options.risk_free_rate,
                             max(sigma, 0.05), float(options.forecast_years))
    expanded = static + option
    return SimulationResult(
        value=round(option, 2),
        metrics={"static_npv": round(static, 2), "expanded_npv": round(expanded, 2),
                 "volatility": round(sigma, 4)},
        interpretation=txt(
            f"The option to expand is worth {format_compact(option)}, lifting NPV from {format_compact(static)} "
            f"to {format_compact(expanded)}.",
            f"قيمة خيار التوسع {format_compact(option)} ترفع صافي القيمة الحالية من {format_compact(static)} "
            f"إلى {format_compact(expanded)}.",
        ),
        chart_hint="tree",
    )


def forecasting(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> SimulationResult:
    hist = series(statements, revenue)
    vals = values(statements, revenue, "income_statement.revenue", 3)
    slope, intercept = linear_trend(vals)
    last_year = max(hist)
    n = len(vals)
    projected = {last_year + t: round(intercept + slope * (n - 1 + t), 2)
                 for t in range(1, options.forecast_years + 1)}
    resid = [v - (intercept + slope * i) for i, v in enumerate(vals)]
    band = std_dev(resid) or 0.0
    nxt = projected[last_year + 1]
    return SimulationResult(
        value=nxt,
        series=projected,
        percentiles={5: round(nxt - 1.645 * band, 2), 50: nxt, 95: round(nxt + 1.645 * band, 2)},
        metrics={"slope": round(slope, 2), "residual_std": round(band, 2), "history": hist},
        interpretation=txt(
            f"The revenue trend projects {format_compact(nxt)} for {last_year + 1} "
            f"({'+' if slope >= 0 else ''}{format_compact(slope)} a year).",
            f"يتوقع اتجاه الإيرادات {format_compact(nxt)} لعام {last_year + 1}.",
        ),
        chart_hint="line",
    )


def what_if(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> SimulationResult:
    """Operating income if revenue falls 10% while costs rise 5%."""
    s = latest(statements)
    rev = require(s.inc.revenue, "income_statement.revenue")
    oi = require(s.inc.operating_income, "income_statement.operating_income")
    costs = rev - oi
    cases = {
        "revenue_minus_10": rev * 0.9 - costs,
        "costs_plus_5": rev - costs * 1.05,
        "combined": rev * 0.9 - costs * 1.05,
    }
    value = round((cases["combined"] - oi) / abs(oi) * 100, 2) if oi else 0.0
    return SimulationResult(
        value=value,
        metrics={"base_operating_income": oi, **{k: round(v, 2) for k, v in cases.items()}},
        interpretation=txt(
            f"A 10% revenue drop with 5% cost inflation moves operating income by {value:+.2f}% "
            f"to {format_compact(cases['combined'])}.",
            f"انخفاض الإيرادات 10% مع زيادة التكاليف 5% يغير الربح التشغيلي بنسبة {value:+.2f}%.",
        ),
        chart_hint="bar",
    )


def stochastic(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> SimulationResult:
    """Geometric Brownian motion of revenue over the forecast horizon."""
    rev = require_nonzero(latest(statements).inc.revenue, "income_statement.revenue")
    mu, sigma = _growth_stats(statements)
    paths = gbm_paths(rev, mu, max(sigma, 0.01), options.forecast_years,
                      min(options.iterations, 5000), options.seed)
    terminal = paths[:, -1]
    median = float(np.median(terminal))
    p_down = float((terminal < rev).mean())
    return SimulationResult(
        value=round(median, 2),
        benchmark=rev,
        percentiles={p: round(float(np.percentile(terminal, p)), 2) for p in PERCENTILES},
        probability_of_loss=round(p_down, 4),
        iterations=int(terminal.size),
        seed=options.seed,
        metrics={"drift": round(mu, 4), "volatility": round(sigma, 4)},
        interpretation=txt(
            f"Median simulated revenue after {options.forecast_years} years is {format_compact(median)}; "
            f"{format_percent(p_down * 100)} of paths end below today's level.",
            f"الإيراد الوسيط المحاكى بعد {options.forecast_years} سنوات {format_compact(median)}.",
        ),
        chart_hint="fan",
    )


# ─── Optimisation ─────────────────────────────────────────────────────────────

def optimization(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> OptimizationResult:
    """Debt ratio minimising WACC with levered beta and leverage-priced debt."""
    s = latest(statements)
    equity = val(s.bs.total_equity)
    debt = s.bs.total_debt
    if equity + debt <= 0:
        raise InputDataError("balance_sheet.total_equity")
    unlevered = (benchmarks.get("risk.beta") or 1.0) / (1 + (1 - options.tax_rate) * (safe_div(debt, equity) or 0.0))
    base_kd = interest_rate_on_debt(s)

    def cost(d: float) -> float:
        de = d / (1 - d)
        ke = capm(options.risk_free_rate, unlevered * (1 + (1 - options.tax_rate) * de), options.market_return)
        kd = base_kd + 0.10 * d ** 2
        return wacc(1 - d, d, ke, kd, options.tax_rate)

    res = minimize_scalar(cost, bounds=(0.0, 0.8), method="bounded")
    if not res.success:
        raise CalculationError("model.optimization", str(res.message))
    current = debt / (equity + debt)
    optimal = float(res.x)
    return OptimizationResult(
        value=round(optimal * 100, 2),
        solution={"debt_ratio": round(optimal, 4), "equity_ratio": round(1 - optimal, 4)},
        objective_value=round(float(res.fun) * 100, 4),
        metrics={"current_debt_ratio": round(current * 100, 2), "current_wacc": round(cost(min(current, 0.8)) * 100, 4)},
        interpretation=txt(
            f"WACC is minimised at {format_percent(optimal * 100)} debt ({format_percent(res.fun * 100)}) "
            f"versus {format_percent(current * 100)} today.",
            f"تبلغ تكلفة رأس المال أدناها عند نسبة دين {format_percent(optimal * 100)} مقابل "
            f"{format_percent(current * 100)} حالياً.",
        ),
        chart_hint="line",
    )


def _default_lp(statements: Statements, options: AnalysisOptions, budget: float) -> LPProblem:
    """Allocate the budget across capex, working capital and debt reduction."""
    s = latest(statements)
    roic = safe_div(s.inc.operating_income, val(s.bs.total_equity) + s.bs.total_debt) or 0.08
    kd = interest_rate_on_debt(s)
    wc_return = max(roic * 0.5, options.risk_free_rate)
    return LPProblem(
        objective=(roic * (1 - options.tax_rate), wc_return, kd * (1 - options.tax_rate)),
        a_ub=((1.0, 1.0, 1.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)),
        b_ub=(budget, 0.5 * budget, 0.3 * budget, max(s.bs.total_debt, 0.0)),
        variable_names=("capex", "working_capital", "debt_reduction"),
        constraint_names=("budget", "capex_cap", "working_capital_cap", "debt_outstanding"),
    )


def linear_programming(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> OptimizationResult:
    problem = options.lp_problem or _default_lp(statements, options, _budget(statements, options))
    sol = solve_lp(problem)
    binding = [k for k, v in sol.slack.items() if abs(v) < 1e-9]
    return OptimizationResult(
        value=round(sol.objective_value, 2),
        solution={k: round(v, 2) for k, v in sol.solution.items()},
        objective_value=round(sol.objective_value, 2),
        shadow_prices={k: round(v, 6) for k, v in sol.shadow_prices.items()},
        status=sol.status,
        metrics={"binding_constraints": binding, "slack": {k: round(v, 2) for k, v in sol.slack.items()}},
        interpretation=txt(
            f"The optimal plan yields {format_compact(sol.objective_value)}; binding constraints: "
            f"{', '.join(binding) or 'none'}.",
            f"تحقق الخطة المثلى {format_compact(sol.objective_value)}.",
        ),
        chart_hint="bar",
    )


def dynamic_programming(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> OptimizationResult:
    """0/1 capital budgeting over candidate projects (costs in 1% units of the budget)."""
    budget = _budget(statements, options)
    cands = _candidates(statements, options, budget)
    unit = budget / 100.0
    costs = [max(1, int(round(c / unit))) for _, c, _ in cands]
    gains = [max(v, 0.0) for _, _, v in cands]
    total, chosen = knapsack(costs, gains, 100)
    picked = [cands[i][0] for i in chosen]
    spent = sum(cands[i][1] for i in chosen)
    return OptimizationResult(
        value=round(total, 2),
        solution={name: (1.0 if name in picked else 0.0) for name, _, _ in cands},
        objective_value=round(total, 2),
        metrics={"budget": round(budget, 2), "spent": round(spent, 2),
                 "candidates": {n: {"cost": round(c, 2), "npv": round(v, 2)} for n, c, v in cands}},
        interpretation=txt(
            f"Funding {', '.join(picked) or 'no project'} maximises NPV at {format_compact(total)} "
            f"within a budget of {format_compact(budget)}.",
            f"تمويل {', '.join(picked) or 'لا مشروع'} يعظم صافي القيمة الحالية إلى {format_compact(total)}.",
        ),
        chart_hint="bar",
    )


def optimal_allocation(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> OptimizationResult:
    """Fractional allocation of the budget across candidates; value is NPV per unit of budget (%)."""
    budget = _budget(statements, options)
    cands = _candidates(statements, options, budget)
    problem = LPProblem(
        objective=tuple(v for _, _, v in cands),
        a_ub=(tuple(c for _, c, _ in cands),),
        b_ub=(budget,),
        bounds=tuple((0.0, 1.0) for _ in cands),
        variable_names=tuple(n for n, _, _ in cands),
        constraint_names=("budget",),
    )
    sol = solve_lp(problem)
    value = percentage(sol.objective_value, budget)
    return OptimizationResult(
        value=value,
        solution={k: round(v, 4) for k, v in sol.solution.items()},
        objective_value=round(sol.objective_value, 2),
        shadow_prices={k: round(v, 6) for k, v in sol.shadow_prices.items()},
        status=sol.status,
        metrics={"budget": round(budget, 2)},
        interpretation=txt(
            f"The optimal mix earns NPV equal to {format_percent(value)} of the budget; each extra unit of "
            f"budget is worth {sol.shadow_prices.get('budget', 0.0):.4f}.",
            f"يحقق المزيج الأمثل صافي قيمة حالية يعادل {format_percent(value)} من الموازنة.",
        ),
        chart_hint="pie",
    )


def game_theory(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> OptimizationResult:
    """Hold / cut price against a competitor as a zero-sum 2x2 game on operating income."""
    oi = require_nonzero(latest(statements).inc.operating_income, "income_statement.operating_income")
    payoffs = ((oi, oi * 0.80), (oi * 1.05, oi * 0.75))
    eq = mixed_strategy_2x2(payoffs)
    return OptimizationResult(
        value=round(eq["value"], 2),
        solution={"hold_price": round(eq["p_row1"], 4), "cut_price": round(1 - eq["p_row1"], 4)},
        objective_value=round(eq["value"], 2),
        metrics={"payoffs": [list(r) for r in payoffs], "saddle_point": bool(eq["saddle"])},
        interpretation=txt(
            f"The equilibrium plays 'hold price' with probability {eq['p_row1']:.2f}, securing "
            f"{format_compact(eq['value'])} of operating income.",
            f"يلعب التوازن استراتيجية 'تثبيت السعر' باحتمال {eq['p_row1']:.2f}.",
        ),
        chart_hint="matrix",
    )


def network(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> SimulationResult:
    """Cash network: share of investing and financing outflows funded by operations."""
    s = latest(statements)
    ocf = require(s.cf.operating_cash_flow, "cash_flow.operating_cash_flow")
    edges = {
        "capex": abs(val(s.cf.capex)),
        "acquisitions": abs(val(s.cf.acquisitions)),
        "dividends": abs(val(s.cf.dividends_paid)),
        "debt_repaid": abs(val(s.cf.debt_repaid)),
    }
    outflows = sum(edges.values())
    if outflows == 0:
        raise InputDataError("cash_flow.capex", "no investing or financing outflows")
    value = percentage(ocf, outflows)
    return SimulationResult(
        value=value,
        benchmark=100.0,
        metrics={"operating_cash_flow": ocf, "outflows": edges,
                 "external_funding": round(max(outflows - ocf, 0.0), 2)},
        interpretation=txt(
            f"Operations fund {format_percent(value)} of investing and financing outflows.",
            f"تمول العمليات {format_percent(value)} من التدفقات الخارجة الاستثمارية والتمويلية.",
        ),
        chart_hint="sankey",
    )


CALCULATORS = {
    "model.scenario": scenario,
    "model.monte_carlo": monte_carlo,
    "model.financial_model": financial_model,
    "model.multivariate_sensitivity": multivariate_sensitivity,
    "model.decision_tree": decision_tree,
    "model.real_options": real_options,
    "model.forecasting": forecasting,
    "model.what_if": what_if,
    "model.stochastic": stochastic,
    "model.optimization": optimization,
    "model.linear_programming": linear_programming,
    "model.dynamic_programming": dynamic_programming,
    "model.optimal_allocation": optimal_allocation,
    "model.game_theory": game_theory,
    "model.network": network,
}
