"""
fin_engine/dispatcher.py
========================
Runs the selected catalog entries against one company and assembles the report.

Flow:
  1. validate catalog <-> registry (fatal on mismatch)
  2. select definitions for the analysis tier
  3. fetch benchmarks once from the provider
  4. fan calculators out onto a thread pool; heavy ones run under a timeout
  5. convert every failure into an ``unavailable`` result with a reason
  6. order by catalog position, build the executive summary

A run always yields exactly one result per selected definition.
"""
from __future__ import annotations
import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .benchmarks import BenchmarkProvider
from .calculators._base import check_finite
from .catalog import CATALOG_VERSION, get_by_tier, position
from .errors import BenchmarkUnavailableError, CalculationError, InputDataError
from .evaluation import evaluate, resolve_benchmark, unavailable
from .registry import get_calculator, validate_registry
from .settings import EngineSettings, get_settings
from .summary import build_executive_summary
from .types import (
    AnalysisDefinition, AnalysisOptions, AnalysisReport, AnalysisResult,
    BenchmarkSet, CategoryResult, CompanyContext,
)
from .validation import validate_context

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation shared between the caller and worker threads."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ─── Result Construction ──────────────────────────────────────────────────────

def _unavailable(definition: AnalysisDefinition, benchmarks: BenchmarkSet, reason: str) -> AnalysisResult:
    return AnalysisResult(
        id=definition.id,
        name=definition.name,
        category=definition.category,
        value=None,
        benchmark=benchmarks.get(definition.benchmark_key),
        evaluation=unavailable(reason),
        status="unavailable",
        reason=reason,
    )


def _degraded_reason(details: CategoryResult, benchmark: Optional[float]) -> Optional[str]:
    if benchmark is None:
        return "no_benchmark"
    for flag in details.flags:
        if flag.startswith("estimated"):
            return flag
    return None


def build_result(definition: AnalysisDefinition, details: CategoryResult,
                 benchmarks: BenchmarkSet) -> AnalysisResult:
    value = check_finite(definition.id, details.value)
    if value is None:
        raise CalculationError(definition.id, "calculator returned no value")
    benchmark = check_finite(definition.id, resolve_benchmark(details, definition, benchmarks))
    reason = _degraded_reason(details, benchmark)
    return AnalysisResult(
        id=definition.id,
        name=definition.name,
        category=definition.category,
        value=value,
        benchmark=benchmark,
        evaluation=evaluate(value, benchmark, definition.direction),
        status="degraded" if reason else "computed",
        reason=reason,
        interpretation=details.interpretation,
        recommendations=details.recommendations,
        details=details,
        chart_hint=details.chart_hint,
    )


def run_one(definition: AnalysisDefinition, context: CompanyContext, benchmarks: BenchmarkSet,
            options: AnalysisOptions, token: Optional[CancellationToken] = None) -> AnalysisResult:
    """Invoke one calculator; never raises for calculator failures."""
    if token is not None and token.cancelled:
        return _unavailable(definition, benchmarks, "cancelled")
    calculator = get_calculator(definition.id)
    try:
        details = calculator(context.statements, benchmarks, options)
        return build_result(definition, details, benchmarks)
    except InputDataError as e:
        logger.debug("%s: insufficient data (%s)", definition.id, e)
        return _unavailable(definition, benchmarks, "insufficient_data")
    except CalculationError as e:
        logger.debug("%s: not computable (%s)", definition.id, e)
        return _unavailable(definition, benchmarks, "not_computable")
    except Exception:
        logger.error("Calculator %s raised unexpectedly", definition.id, exc_info=True)
        return _unavailable(definition, benchmarks, "not_computable")


# ─── Dispatch ─────────────────────────────────────────────────────────────────

async def _fetch_benchmarks(context: CompanyContext, provider: BenchmarkProvider) -> BenchmarkSet:
    try:
        return await provider.get_benchmarks(context.sector, context.activity, context.comparison_level)
    except BenchmarkUnavailableError as e:
        logger.info("Benchmarks unavailable (%s); evaluating without them", e)
    except Exception:
        logger.warning("Benchmark provider %s failed; evaluating without benchmarks",
                       type(provider).__name__, exc_info=True)
    return BenchmarkSet.empty(context.sector, context.activity, context.comparison_level)


async def _run_task(loop: asyncio.AbstractEventLoop, pool: ThreadPoolExecutor,
                    definition: AnalysisDefinition, context: CompanyContext,
                    benchmarks: BenchmarkSet, options: AnalysisOptions,
                    token: CancellationToken, timeout: float) -> AnalysisResult:
    future = loop.run_in_executor(pool, run_one, definition, context, benchmarks, options, token)
    if not definition.heavy:
        return await future
    try:
        return await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError:
        logger.warning("%s exceeded %.1fs and was abandoned", definition.id, timeout)
        return _unavailable(definition, benchmarks, "timed_out")


async def run_analysis(context: CompanyContext, provider: BenchmarkProvider,
                       options: Optional[AnalysisOptions] = None,
                       settings: Optional[EngineSettings] = None,
                       token: Optional[CancellationToken] = None) -> AnalysisReport:
    options = options or AnalysisOptions()
    settings = settings or get_settings()
    token = token or CancellationToken()

    validate_registry()
    definitions = get_by_tier(context.analysis_type)
    started = time.perf_counter()
    logger.info("Starting %s analysis of %r: %d analyses over %d years",
                context.analysis_type, context.name, len(definitions), context.years_count)

    validation = validate_context(context, settings.balance_tolerance)
    for msg in validation.errors:
        logger.warning("Validation: %s", msg)

    benchmarks = await _fetch_benchmarks(context, provider)

    loop = asyncio.get_running_loop()
    pool = ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="fin-engine")
    try:
        tasks = [
            _run_task(loop, pool, d, context, benchmarks, options, token, settings.heavy_timeout_seconds)
            for d in definitions
        ]
        results: List[AnalysisResult] = list(await asyncio.gather(*tasks))
    finally:
        # Abandoned (timed-out) work must not hold the caller up.
        pool.shutdown(wait=False, cancel_futures=True)

    results.sort(key=lambda r: position(r.id))
    for r in results:
        if r.status == "degraded":
            logger.warning("%s degraded: %s", r.id, r.reason)

    summary = build_executive_summary(results)
    degraded = sum(1 for r in results if r.status == "degraded")
    missing = sum(1 for r in results if r.status == "unavailable")
    logger.info("Finished %s analysis of %r in %.2fs: %d computed, %d degraded, %d unavailable",
                context.analysis_type, context.name, time.perf_counter() - started,
                len(results) - degraded - missing, degraded, missing)

    return AnalysisReport(
        company=context.name,
        language=context.language,
        analysis_type=context.analysis_type,
        analyses=tuple(results),
        benchmarks=benchmarks,
        executive_summary=summary,
        validation=validation,
        cancelled=token.cancelled,
        catalog_version=CATALOG_VERSION,
    )


def run_analysis_sync(context: CompanyContext, provider: BenchmarkProvider,
                      options: Optional[AnalysisOptions] = None,
                      settings: Optional[EngineSettings] = None,
                      token: Optional[CancellationToken] = None) -> AnalysisReport:
    """Blocking wrapper for callers without an event loop."""
    return asyncio.run(run_analysis(context, provider, options, settings, token))


__all__ = ["CancellationToken", "build_result", "run_analysis", "run_analysis_sync", "run_one"]
