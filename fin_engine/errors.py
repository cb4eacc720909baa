"""
fin_engine/errors.py
====================
Exception taxonomy for the analysis engine.

Calculators raise ``InputDataError`` / ``CalculationError``; the dispatcher
converts them into ``unavailable`` results so a run never aborts. Benchmark
lookups raise ``BenchmarkUnavailableError`` which only degrades evaluation.
``UnknownAnalysisError`` and ``CatalogError`` are fatal at startup.
"""
from __future__ import annotations
from typing import Iterable


class FinEngineError(Exception):
    """Base class for every error raised by fin_engine."""


class InputDataError(FinEngineError):
    """A required statement line item is missing or unusable."""

    def __init__(self, field: str, detail: str = "missing"):
        self.field = field
        self.detail = detail
        super().__init__(f"{field}: {detail}")


class BenchmarkUnavailableError(FinEngineError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"no benchmark data for {key}")


class CalculationError(FinEngineError):
    """A numerical step produced no usable value (no root, infeasible, non-finite...)."""

    def __init__(self, analysis_id: str, detail: str):
        self.analysis_id = analysis_id
        self.detail = detail
        super().__init__(f"{analysis_id}: {detail}")


class UnknownAnalysisError(FinEngineError):
    def __init__(self, ids: Iterable[str], detail: str = "no calculator registered"):
        self.ids = tuple(sorted(ids))
        super().__init__(f"{detail}: {', '.join(self.ids)}")


class CatalogError(FinEngineError):
    """Catalog seed data is malformed (duplicate ids, unknown category...)."""
