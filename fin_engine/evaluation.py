"""
fin_engine/evaluation.py
========================
Direction-aware comparison of a computed value against its benchmark, and the
localised labels for every evaluation outcome.
"""
from __future__ import annotations
from typing import Dict, Optional

from .types import (
    AnalysisDefinition, BenchmarkSet, CategoryResult, Direction, Evaluation,
    EvaluationCode, LocalizedText,
)

LABELS: Dict[str, LocalizedText] = {
    "good": LocalizedText("good", "جيد"),
    "below": LocalizedText("below", "أضعف من المعيار"),
    "no_benchmark": LocalizedText("no benchmark", "لا يوجد معيار"),
    "insufficient_data": LocalizedText("insufficient data", "بيانات غير كافية"),
    "not_computable": LocalizedText("not computable", "تعذر الحساب"),
    "timed_out": LocalizedText("timed out", "انتهت المهلة"),
    "cancelled": LocalizedText("cancelled", "أُلغي التحليل"),
}

UNAVAILABLE_CODES = ("insufficient_data", "not_computable", "timed_out", "cancelled")


def label(code: EvaluationCode) -> Evaluation:
    return Evaluation(code=code, label=LABELS[code])


def evaluate(value: Optional[float], benchmark: Optional[float],
             direction: Direction = "higher") -> Evaluation:
    """
    ``higher``: value >= benchmark is good. ``lower``: value <= benchmark is good.
    A missing value is reported as not computable; a missing benchmark as
    "no benchmark".
    """
    if value is None:
        return label("not_computable")
    if benchmark is None:
        return label("no_benchmark")
    if direction == "lower":
        good = value <= benchmark
    else:
        good = value >= benchmark
    return label("good" if good else "below")


def unavailable(reason: str) -> Evaluation:
    if reason not in UNAVAILABLE_CODES:
        raise ValueError(f"unknown unavailability reason {reason!r}")
    return label(reason)  # type: ignore[arg-type]


def resolve_benchmark(details: Optional[CategoryResult], definition: AnalysisDefinition,
                      benchmarks: BenchmarkSet) -> Optional[float]:
    """Intrinsic hurdle first, then the industry value under ``benchmark_key``."""
    if details is not None and details.benchmark is not None:
        return details.benchmark
    return benchmarks.get(definition.benchmark_key)
