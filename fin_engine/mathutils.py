"""
fin_engine/mathutils.py
=======================
Guarded arithmetic and small statistics helpers shared by every calculator.

Conventions:
  - ``ratio`` / ``percentage`` return 0 when the denominator is 0 and round
    to 2 decimals (the reported-number contract).
  - ``safe_div`` returns None instead, for intermediate steps where "no value"
    must propagate.
"""
from __future__ import annotations
import math
from typing import Dict, List, Optional, Sequence

import numpy as np


def _is_num(v) -> bool:
    return v is not None and isinstance(v, (int, float)) and not math.isnan(v)


def safe_div(num: Optional[float], den: Optional[float]) -> Optional[float]:
    if num is None or den is None or den == 0:
        return None
    return num / den


def ratio(num: Optional[float], den: Optional[float], decimals: int = 2) -> float:
    if not _is_num(num) or not _is_num(den) or den == 0:
        return 0.0
    return round(num / den, decimals)


def percentage(part: Optional[float], whole: Optional[float], decimals: int = 2) -> float:
    if not _is_num(part) or not _is_num(whole) or whole == 0:
        return 0.0
    return round(part / whole * 100, decimals)


def vertical(item: Optional[float], total: Optional[float]) -> float:
    """Share of ``item`` in its statement total, in percent."""
    return percentage(item, total)


def horizontal(current: Optional[float], previous: Optional[float]) -> float:
    """Year-over-year change in percent; 0 when previous is 0."""
    if not _is_num(current) or not _is_num(previous) or previous == 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def index_number(current: Optional[float], base: Optional[float]) -> float:
    """Index against a base year fixed at 100; 100 when the base value is 0."""
    if not _is_num(base) or base == 0 or not _is_num(current):
        return 100.0
    return round(current / base * 100, 2)


def cagr(first: Optional[float], last: Optional[float], periods: int) -> Optional[float]:
    """Compound growth rate as a fraction. None (N/A) if first <= 0."""
    if not _is_num(first) or not _is_num(last) or first <= 0 or periods <= 0 or last < 0:
        return None
    return (last / first) ** (1.0 / periods) - 1


def days(balance: Optional[float], flow: Optional[float], basis: int = 365,
         decimals: int = 0) -> float:
    """Balance / annual flow x basis days, rounded (whole days by default)."""
    if not _is_num(balance) or not _is_num(flow) or flow == 0:
        return 0.0
    value = balance / flow * basis
    if decimals == 0:
        # half away from zero: 36.5 days reads as 37
        return float(math.copysign(math.floor(abs(value) + 0.5), value))
    return round(value, decimals)


def avg(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None and b is None: return None
    if a is None: return b
    if b is None: return a
    return (a + b) / 2.0


def mean(values: Sequence[float]) -> Optional[float]:
    vals = [v for v in values if _is_num(v)]
    return sum(vals) / len(vals) if vals else None


def std_dev(values: Sequence[float]) -> Optional[float]:
    """Sample standard deviation; None with fewer than 2 points."""
    vals = [v for v in values if _is_num(v)]
    if len(vals) < 2:
        return None
    m = sum(vals) / len(vals)
    return math.sqrt(sum((x - m) ** 2 for x in vals) / (len(vals) - 1))


def percentile(values: Sequence[float], p: float) -> Optional[float]:
    """Percentile with linear interpolation (p in 0..100)."""
    vals = [v for v in values if _is_num(v)]
    if not vals:
        return None
    return float(np.percentile(np.asarray(vals, dtype=float), p))


def percentile_rank(value: float, population: Sequence[float]) -> Optional[float]:
    """Share of ``population`` at or below ``value``, in percent."""
    vals = sorted(v for v in population if _is_num(v))
    if not vals:
        return None
    position = sum(1 for v in vals if v <= value)
    return round(position / len(vals) * 100, 2)


def z_score(value: float, population: Sequence[float]) -> Optional[float]:
    m = mean(population)
    sd = std_dev(population)
    if m is None or not sd:
        return None
    return round((value - m) / sd, 4)


def pearson_r(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    n = min(len(xs), len(ys))
    if n < 3:
        return None
    x = np.asarray(xs[:n], dtype=float)
    y = np.asarray(ys[:n], dtype=float)
    if x.std() < 1e-12 or y.std() < 1e-12:
        return None
    return float(np.corrcoef(x, y)[0, 1])


def pct_changes(values: Sequence[float]) -> List[float]:
    """Fractional period-over-period changes, skipping zero bases."""
    out: List[float] = []
    for prev, cur in zip(values, values[1:]):
        if _is_num(prev) and _is_num(cur) and prev != 0:
            out.append((cur - prev) / abs(prev))
    return out


def linear_trend(values: Sequence[float]) -> tuple:
    """Least-squares slope and intercept over x = 0..n-1."""
    n = len(values)
    if n < 2:
        return 0.0, (values[0] if values else 0.0)
    slope, intercept = np.polyfit(np.arange(n, dtype=float), np.asarray(values, dtype=float), 1)
    return float(slope), float(intercept)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def finite(value: Optional[float]) -> bool:
    return _is_num(value) and not math.isinf(value)


def round_series(series: Dict[int, float], decimals: int = 2) -> Dict[int, float]:
    return {k: round(v, decimals) for k, v in series.items()}
