"""
fin_engine/finance.py
=====================
Time-value-of-money primitives used by the valuation and modeling calculators.

  - NPV / IRR (bounded root finding, multiple-root detection) / MIRR
  - simple and discounted payback with linear interpolation
  - DCF with Gordon terminal value
  - annuity, perpetuity, Gordon growth and dividend discount helpers
  - cash conversion cycle components
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy.optimize import brentq

IRR_LOWER = -0.99
IRR_UPPER = 10.0


# ─── NPV / IRR ────────────────────────────────────────────────────────────────

def present_value(amount: float, rate: float, period: float) -> float:
    return amount / (1 + rate) ** period


def future_value(amount: float, rate: float, periods: float) -> float:
    return amount * (1 + rate) ** periods


def npv(rate: float, initial_investment: float, cash_flows: Sequence[float]) -> float:
    """Σ CF_t / (1+r)^t for t = 1..n, minus the time-0 outlay."""
    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows, start=1)) - initial_investment


def sign_changes(flows: Sequence[float]) -> int:
    signs = [1 if f > 0 else -1 for f in flows if f != 0]
    return sum(1 for a, b in zip(signs, signs[1:]) if a != b)


@dataclass
class IRRResult:
    rate: Optional[float]
    status: str  # unique | multiple | none
    roots: List[float] = field(default_factory=list)


def irr(initial_investment: float, cash_flows: Sequence[float],
        lower: float = IRR_LOWER, upper: float = IRR_UPPER) -> IRRResult:
    """
    Internal rate of return over a bounded range.

    The NPV curve is scanned on a grid; each bracketed sign change is refined
    with Brent's method. More than one sign change in the flows, or more than
    one root found, marks the result ``multiple`` (the root closest to zero is
    reported). No root in range gives ``none``.
    """
    f = lambda r: npv(r, initial_investment, cash_flows)
    grid = np.concatenate([np.linspace(lower, 0.0, 200, endpoint=False),
                           np.linspace(0.0, upper, 801)])
    roots: List[float] = []
    prev_r, prev_v = grid[0], f(grid[0])
    for r in grid[1:]:
        v = f(r)
        if prev_v == 0:
            roots.append(float(prev_r))
        elif prev_v * v < 0:
            roots.append(float(brentq(f, prev_r, r, xtol=1e-10)))
        prev_r, prev_v = r, v
    if prev_v == 0:
        roots.append(float(prev_r))
    roots = sorted({round(r, 10) for r in roots})

    if not roots:
        return IRRResult(None, "none")
    flows = [-initial_investment] + list(cash_flows)
    multiple = len(roots) > 1 or sign_changes(flows) > 1
    best = min(roots, key=abs)
    return IRRResult(best, "multiple" if multiple else "unique", roots)


def mirr(initial_investment: float, cash_flows: Sequence[float],
         finance_rate: float, reinvest_rate: float) -> Optional[float]:
    n = len(cash_flows)
    if n == 0:
        return None
    pv_out = initial_investment + sum(
        -cf / (1 + finance_rate) ** t for t, cf in enumerate(cash_flows, start=1) if cf < 0)
    fv_in = sum(cf * (1 + reinvest_rate) ** (n - t) for t, cf in enumerate(cash_flows, start=1) if cf > 0)
    if pv_out <= 0 or fv_in <= 0:
        return None
    return (fv_in / pv_out) ** (1 / n) - 1


# ─── Payback ──────────────────────────────────────────────────────────────────

def _interpolated_payback(initial_investment: float, flows: Sequence[float]) -> Optional[float]:
    remaining = initial_investment
    for t, cf in enumerate(flows, start=1):
        if cf >= remaining and cf > 0:
            return (t - 1) + remaining / cf
        remaining -= cf
    return None


def payback_period(initial_investment: float, cash_flows: Sequence[float]) -> Optional[float]:
    """Years until cumulative flows recover the outlay; None if never."""
    if initial_investment <= 0:
        return 0.0
    return _interpolated_payback(initial_investment, cash_flows)


def discounted_payback(initial_investment: float, cash_flows: Sequence[float],
                       rate: float) -> Optional[float]:
    if initial_investment <= 0:
        return 0.0
    discounted = [cf / (1 + rate) ** t for t, cf in enumerate(cash_flows, start=1)]
    return _interpolated_payback(initial_investment, discounted)


def profitability_index(rate: float, initial_investment: float,
                        cash_flows: Sequence[float]) -> Optional[float]:
    if initial_investment == 0:
        return None
    return (npv(rate, initial_investment, cash_flows) + initial_investment) / initial_investment


# ─── Annuities / Perpetuities ─────────────────────────────────────────────────

def annuity_pv(payment: float, rate: float, periods: int) -> float:
    if rate == 0:
        return payment * periods
    return payment * (1 - (1 + rate) ** -periods) / rate


def annuity_fv(payment: float, rate: float, periods: int) -> float:
    if rate == 0:
        return payment * periods
    return payment * ((1 + rate) ** periods - 1) / rate


def perpetuity(payment: float, rate: float) -> Optional[float]:
    if rate <= 0:
        return None
    return payment / rate


def gordon_growth(next_cash_flow: float, rate: float, growth: float) -> Optional[float]:
    """P = D1 / (r - g); None when r <= g (model invalid)."""
    if rate <= growth:
        return None
    return next_cash_flow / (rate - growth)


def two_stage_ddm(dividend: float, rate: float, high_growth: float, years: int,
                  terminal_growth: float) -> Optional[float]:
    if rate <= terminal_growth:
        return None
    pv, d = 0.0, dividend
    for t in range(1, years + 1):
        d *= 1 + high_growth
        pv += d / (1 + rate) ** t
    terminal = d * (1 + terminal_growth) / (rate - terminal_growth)
    return pv + terminal / (1 + rate) ** years


# ─── DCF ──────────────────────────────────────────────────────────────────────

@dataclass
class DCFResult:
    valid: bool
    enterprise_value: Optional[float] = None
    equity_value: Optional[float] = None
    terminal_value: Optional[float] = None
    pv_terminal: Optional[float] = None
    pv_forecast: Optional[float] = None
    per_share: Optional[float] = None
    projected: List[float] = field(default_factory=list)


def dcf(fcfs: Sequence[float], wacc: float, terminal_growth: float,
        debt: float = 0.0, cash: float = 0.0,
        shares: Optional[float] = None) -> DCFResult:
    """
    Discount explicit FCFs, add Gordon terminal value on the final year.
    Invalid (no values) when WACC <= terminal growth.
    """
    if wacc <= terminal_growth or not fcfs:
        return DCFResult(valid=False, projected=list(fcfs))
    n = len(fcfs)
    pv_forecast = sum(cf / (1 + wacc) ** t for t, cf in enumerate(fcfs, start=1))
    tv = fcfs[-1] * (1 + terminal_growth) / (wacc - terminal_growth)
    pv_tv = tv / (1 + wacc) ** n
    ev = pv_forecast + pv_tv
    equity = ev - debt + cash
    per_share = equity / shares if shares else None
    return DCFResult(True, ev, equity, tv, pv_tv, pv_forecast, per_share, list(fcfs))


def project_cash_flows(base: float, growth: float, years: int) -> List[float]:
    return [base * (1 + growth) ** t for t in range(1, years + 1)]


def wacc(equity: float, debt: float, cost_of_equity: float, cost_of_debt: float,
         tax_rate: float) -> Optional[float]:
    total = equity + debt
    if total <= 0:
        return None
    return equity / total * cost_of_equity + debt / total * cost_of_debt * (1 - tax_rate)


def capm(risk_free: float, beta: float, market_return: float) -> float:
    return risk_free + beta * (market_return - risk_free)


# ─── Working capital cycle ────────────────────────────────────────────────────

def cash_conversion_cycle(inventory: float, cogs: float, receivables: float,
                          revenue: float, payables: float,
                          basis: int = 365) -> Dict[str, float]:
    """DIO + DSO - DPO, unrounded components."""
    dio = inventory / cogs * basis if cogs else 0.0
    dso = receivables / revenue * basis if revenue else 0.0
    dpo = payables / cogs * basis if cogs else 0.0
    return {"dio": dio, "dso": dso, "dpo": dpo, "ccc": dio + dso - dpo,
            "operating_cycle": dio + dso}
