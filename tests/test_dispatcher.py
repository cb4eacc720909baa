"""
tests/test_dispatcher.py
========================
End-to-end runs: tier sizes, catalog ordering, failure conversion,
timeouts, cancellation and the report shape.

Run:  pytest tests/ -v
"""

import dataclasses
import json
import math
import time
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine import registry
from fin_engine.benchmarks import StaticBenchmarkProvider
from fin_engine.catalog import get_all, get_by_tier
from fin_engine.dispatcher import CancellationToken, run_analysis, run_analysis_sync
from fin_engine.errors import BenchmarkUnavailableError, CalculationError, InputDataError
from fin_engine.settings import EngineSettings
from fin_engine.types import CategoryResult, LocalizedText


@pytest.fixture
def provider():
    return StaticBenchmarkProvider()


@pytest.fixture
def settings():
    return EngineSettings(max_workers=4, heavy_timeout_seconds=30.0)


def _result(value):
    return CategoryResult(value=value, interpretation=LocalizedText("x", "x"))


class _FailingProvider:
    async def get_benchmarks(self, sector, activity, comparison_level):
        raise BenchmarkUnavailableError(sector)


class _BrokenProvider:
    async def get_benchmarks(self, sector, activity, comparison_level):
        raise ConnectionError("benchmark service down")


# ═══════════════════════════════════════════════════════════════════════════════
# 1. FULL RUNS
# ═══════════════════════════════════════════════════════════════════════════════

class TestComprehensiveRun:
    async def test_one_result_per_definition_in_catalog_order(self, context, provider, options, settings):
        report = await run_analysis(context, provider, options, settings)
        assert len(report.analyses) == 181
        assert [r.id for r in report.analyses] == [d.id for d in get_all()]

    async def test_catalog_order_when_first_entry_finishes_last(self, context, provider, options, monkeypatch):
        def slow_vertical(statements, benchmarks, options):
            time.sleep(0.3)
            return _result(1.0)
        monkeypatch.setitem(registry.REGISTRY, "struct.vertical", slow_vertical)
        ctx = dataclasses.replace(context, analysis_type="basic")
        report = await run_analysis(ctx, provider, options, EngineSettings(max_workers=4))
        assert [r.id for r in report.analyses] == [d.id for d in get_by_tier("basic")]
        assert report.analyses[0].id == "struct.vertical"
        assert report.analyses[0].value == 1.0

    async def test_statuses_and_summary_partition(self, context, provider, options, settings):
        report = await run_analysis(context, provider, options, settings)
        summary = report.executive_summary
        assert len(summary.favorable) + len(summary.unfavorable) == len(report.analyses)
        assert len(summary.results_table) == 181
        for r in report.analyses:
            assert r.status in ("computed", "degraded", "unavailable")
            if r.status == "unavailable":
                assert r.value is None
                assert r.reason in ("insufficient_data", "not_computable", "timed_out", "cancelled")
            else:
                assert r.value is not None and math.isfinite(r.value)

    async def test_reference_values_survive_dispatch(self, context, provider, options, settings):
        report = await run_analysis(context, provider, options, settings)
        current = report.get("ratio.current")
        assert current.status == "computed"
        assert current.value == 2.3
        assert current.benchmark == 1.8  # manufacturing table
        assert current.evaluation.code == "good"
        assert report.get("ratio.gross_margin").value == 40.0

    async def test_report_metadata(self, context, provider, options, settings):
        report = await run_analysis(context, provider, options, settings)
        assert report.company == "Sample Industries"
        assert report.catalog_version
        assert report.cancelled is False
        assert report.validation.valid

    async def test_to_dict_is_json_ready(self, context, provider, options, settings):
        report = await run_analysis(context, provider, options, settings)
        payload = report.to_dict("ar")
        text = json.dumps(payload, ensure_ascii=False, default=str)
        assert "النسبة الجارية" in text
        assert payload["analyses"][0]["id"] == "struct.vertical"


class TestTierRuns:
    @pytest.mark.parametrize("tier,count", [("basic", 55), ("intermediate", 38), ("advanced", 88)])
    async def test_tier_counts(self, context, provider, options, settings, tier, count):
        ctx = dataclasses.replace(context, analysis_type=tier)
        report = await run_analysis(ctx, provider, options, settings)
        assert len(report.analyses) == count
        assert [r.id for r in report.analyses] == [d.id for d in get_by_tier(tier)]

    def test_sync_wrapper(self, context, provider, options, settings):
        ctx = dataclasses.replace(context, analysis_type="basic")
        report = run_analysis_sync(ctx, provider, options, settings)
        assert len(report.analyses) == 55


# ═══════════════════════════════════════════════════════════════════════════════
# 2. FAILURE CONVERSION
# ═══════════════════════════════════════════════════════════════════════════════

class TestFailureConversion:
    @pytest.fixture
    def basic(self, context):
        return dataclasses.replace(context, analysis_type="basic")

    async def test_input_error_is_insufficient_data(self, basic, provider, options, settings, monkeypatch):
        def boom(statements, benchmarks, options):
            raise InputDataError("balance_sheet.cash")
        monkeypatch.setitem(registry.REGISTRY, "ratio.cash", boom)
        r = (await run_analysis(basic, provider, options, settings)).get("ratio.cash")
        assert r.status == "unavailable"
        assert r.reason == "insufficient_data"
        assert r.evaluation.label.en == "insufficient data"

    async def test_calculation_error_is_not_computable(self, basic, provider, options, settings, monkeypatch):
        def boom(statements, benchmarks, options):
            raise CalculationError("ratio.cash", "no root")
        monkeypatch.setitem(registry.REGISTRY, "ratio.cash", boom)
        r = (await run_analysis(basic, provider, options, settings)).get("ratio.cash")
        assert r.reason == "not_computable"

    async def test_unexpected_exception_is_contained(self, basic, provider, options, settings, monkeypatch):
        def boom(statements, benchmarks, options):
            raise ZeroDivisionError("bug")
        monkeypatch.setitem(registry.REGISTRY, "ratio.cash", boom)
        report = await run_analysis(basic, provider, options, settings)
        assert len(report.analyses) == 55
        assert report.get("ratio.cash").reason == "not_computable"

    async def test_non_finite_is_not_computable(self, basic, provider, options, settings, monkeypatch):
        monkeypatch.setitem(registry.REGISTRY, "ratio.cash", lambda s, b, o: _result(float("inf")))
        r = (await run_analysis(basic, provider, options, settings)).get("ratio.cash")
        assert r.status == "unavailable"
        assert r.reason == "not_computable"

    async def test_missing_benchmark_degrades(self, basic, options, settings):
        report = await run_analysis(basic, _FailingProvider(), options, settings)
        r = report.get("ratio.current")
        assert r.status == "degraded"
        assert r.reason == "no_benchmark"
        assert r.evaluation.code == "no_benchmark"
        assert not report.benchmarks.available

    async def test_provider_crash_degrades_instead_of_aborting(self, basic, options, settings):
        report = await run_analysis(basic, _BrokenProvider(), options, settings)
        assert len(report.analyses) == 55
        assert not report.benchmarks.available
        assert report.get("ratio.current").reason == "no_benchmark"
        assert report.get("ratio.current").value == 2.3

    async def test_estimated_inputs_degrade(self, basic, provider, options, settings, monkeypatch):
        def estimated(statements, benchmarks, options):
            return CategoryResult(value=1.0, benchmark=0.5, flags=("estimated_beta",),
                                  interpretation=LocalizedText("x", "x"))
        monkeypatch.setitem(registry.REGISTRY, "ratio.cash", estimated)
        r = (await run_analysis(basic, provider, options, settings)).get("ratio.cash")
        assert r.status == "degraded"
        assert r.reason == "estimated_beta"
        assert r.evaluation.code == "good"


# ═══════════════════════════════════════════════════════════════════════════════
# 3. TIMEOUT & CANCELLATION
# ═══════════════════════════════════════════════════════════════════════════════

class TestTimeoutAndCancellation:
    async def test_heavy_analysis_times_out(self, context, provider, options, monkeypatch):
        def slow(statements, benchmarks, options):
            time.sleep(1.0)
            return _result(1.0)
        monkeypatch.setitem(registry.REGISTRY, "model.monte_carlo", slow)
        ctx = dataclasses.replace(context, analysis_type="advanced")
        settings = EngineSettings(max_workers=4, heavy_timeout_seconds=0.1)
        report = await run_analysis(ctx, provider, options, settings)
        r = report.get("model.monte_carlo")
        assert r.status == "unavailable"
        assert r.reason == "timed_out"
        assert len(report.analyses) == 88

    async def test_cancelled_before_start(self, context, provider, options, settings):
        token = CancellationToken()
        token.cancel()
        report = await run_analysis(context, provider, options, settings, token)
        assert report.cancelled is True
        assert len(report.analyses) == 181
        assert all(r.reason == "cancelled" for r in report.analyses)
        assert report.executive_summary.favorable == ()

    async def test_cancel_mid_run(self, context, provider, options, monkeypatch):
        token = CancellationToken()

        def cancelling(statements, benchmarks, options):
            token.cancel()
            return _result(1.0)
        monkeypatch.setitem(registry.REGISTRY, "struct.vertical", cancelling)
        settings = EngineSettings(max_workers=1)
        report = await run_analysis(context, provider, options, settings, token)
        assert report.cancelled is True
        assert report.get("struct.vertical").status != "unavailable"
        assert report.analyses[-1].reason == "cancelled"
        assert len(report.analyses) == 181
