"""
fin_engine/calculators
======================
Category calculators. Each submodule exposes a ``CALCULATORS`` table mapping
catalog ids to plain functions with the signature
``(statements, benchmarks, options) -> CategoryResult``.
"""
from __future__ import annotations
from typing import Dict

from ._base import Calculator
from . import (
    comparison, detection, flow, modeling, performance,
    ratios, risk, statistical, structural, valuation,
)

_MODULES = (structural, ratios, flow, comparison, valuation,
            performance, modeling, statistical, risk, detection)


def all_calculators() -> Dict[str, Calculator]:
    table: Dict[str, Calculator] = {}
    for module in _MODULES:
        overlap = table.keys() & module.CALCULATORS.keys()
        if overlap:
            raise ValueError(f"duplicate calculator ids in {module.__name__}: {sorted(overlap)}")
        table.update(module.CALCULATORS)
    return table


__all__ = ["Calculator", "all_calculators"]
