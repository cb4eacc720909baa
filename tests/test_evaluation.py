"""
tests/test_evaluation.py
========================
Direction-aware evaluation, labels and benchmark resolution order.

Run:  pytest tests/ -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.catalog import get_by_id
from fin_engine.evaluation import LABELS, evaluate, resolve_benchmark, unavailable
from fin_engine.types import BenchmarkSet, CategoryResult, LocalizedText


class TestEvaluate:
    def test_higher_is_better(self):
        assert evaluate(2.0, 1.5, "higher").code == "good"
        assert evaluate(1.0, 1.5, "higher").code == "below"

    def test_lower_is_better(self):
        assert evaluate(40.0, 60.0, "lower").code == "good"
        assert evaluate(80.0, 60.0, "lower").code == "below"

    def test_equal_is_good_both_ways(self):
        assert evaluate(1.5, 1.5, "higher").code == "good"
        assert evaluate(1.5, 1.5, "lower").code == "good"

    def test_missing_benchmark(self):
        ev = evaluate(2.0, None)
        assert ev.code == "no_benchmark"
        assert ev.label.resolve("en") == "no benchmark"
        assert ev.label.resolve("ar") == "لا يوجد معيار"

    def test_missing_value(self):
        assert evaluate(None, 1.0).code == "not_computable"

    def test_labels_bilingual(self):
        assert evaluate(2.0, 1.0).label == LocalizedText("good", "جيد")
        assert evaluate(0.5, 1.0).label.resolve("ar") == "أضعف من المعيار"
        for text in LABELS.values():
            assert text.en and text.ar

    def test_favorable_only_when_good(self):
        assert evaluate(2.0, 1.0).favorable
        assert not evaluate(2.0, None).favorable


class TestUnavailable:
    @pytest.mark.parametrize("reason,en", [
        ("insufficient_data", "insufficient data"),
        ("not_computable", "not computable"),
        ("timed_out", "timed out"),
        ("cancelled", "cancelled"),
    ])
    def test_reasons(self, reason, en):
        ev = unavailable(reason)
        assert ev.code == reason
        assert ev.label.en == en

    def test_unknown_reason(self):
        with pytest.raises(ValueError):
            unavailable("bored")


class TestResolveBenchmark:
    def _details(self, benchmark=None):
        return CategoryResult(value=1.0, interpretation=LocalizedText("x", "x"), benchmark=benchmark)

    def test_intrinsic_hurdle_wins(self):
        bench = BenchmarkSet(ratios={"liquidity.current_ratio": 1.5})
        assert resolve_benchmark(self._details(0.0), get_by_id("ratio.current"), bench) == 0.0

    def test_industry_value(self):
        bench = BenchmarkSet(ratios={"liquidity.current_ratio": 1.5})
        assert resolve_benchmark(self._details(), get_by_id("ratio.current"), bench) == 1.5

    def test_none_when_unavailable(self):
        empty = BenchmarkSet.empty()
        assert resolve_benchmark(self._details(), get_by_id("ratio.current"), empty) is None
