"""
tests/test_summary.py
=====================
Executive summary rules over hand-built result sets.

Run:  pytest tests/test_summary.py -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.evaluation import evaluate, unavailable
from fin_engine.summary import MAX_CARRIED_RECOMMENDATIONS, build_executive_summary
from fin_engine.types import (
    AnalysisResult, CategoryResult, DetectionResult, LocalizedText, SimulationResult,
)


def make(analysis_id, value, benchmark=None, direction="higher", details=None, recommendations=()):
    name = LocalizedText(analysis_id, analysis_id)
    if value is None:
        return AnalysisResult(id=analysis_id, name=name, category="test", value=None,
                              benchmark=benchmark, evaluation=unavailable("insufficient_data"),
                              status="unavailable", reason="insufficient_data")
    ev = evaluate(value, benchmark, direction)
    return AnalysisResult(
        id=analysis_id, name=name, category="test", value=value, benchmark=benchmark,
        evaluation=ev, status="computed" if benchmark is not None else "degraded",
        reason=None if benchmark is not None else "no_benchmark",
        recommendations=tuple(recommendations),
        details=details or CategoryResult(value=value, interpretation=name),
    )


def texts(items):
    return [t.en for t in items]


# ═══════════════════════════════════════════════════════════════════════════════
# 1. PARTITION & TABLE
# ═══════════════════════════════════════════════════════════════════════════════

class TestPartition:
    def test_favorable_unfavorable_cover_everything(self):
        results = [
            make("ratio.current", 2.3, 1.8),
            make("ratio.debt_to_equity", 80.0, 100.0, "lower"),
            make("ratio.net_margin", 3.0, 6.0),
            make("ratio.roe", 12.0),
            make("ratio.cash", None, 0.5),
        ]
        s = build_executive_summary(results)
        assert s.favorable == ("ratio.current", "ratio.debt_to_equity")
        assert s.unfavorable == ("ratio.net_margin", "ratio.roe", "ratio.cash")
        assert len(s.favorable) + len(s.unfavorable) == len(results)

    def test_table_rows_are_numbered(self):
        results = [make("ratio.current", 2.3, 1.8), make("ratio.cash", None)]
        table = build_executive_summary(results).results_table
        assert [row.index for row in table] == [1, 2]
        assert table[0].evaluation.en == "good"
        assert table[1].evaluation.ar == "بيانات غير كافية"

    def test_empty(self):
        s = build_executive_summary([])
        assert s.favorable == () and s.unfavorable == () and s.results_table == ()


# ═══════════════════════════════════════════════════════════════════════════════
# 2. THRESHOLD RULES
# ═══════════════════════════════════════════════════════════════════════════════

class TestRules:
    def test_high_leverage(self):
        s = build_executive_summary([make("ratio.debt_to_equity", 250.0, 100.0, "lower")])
        assert any("High leverage" in t for t in texts(s.risks))
        assert texts(s.swot.weaknesses) == ["Heavy reliance on debt financing."]
        assert any("Reduce leverage" in t for t in texts(s.recommendations))

    def test_leverage_at_threshold_is_quiet(self):
        s = build_executive_summary([make("ratio.debt_to_equity", 200.0, 100.0, "lower")])
        assert s.risks == ()

    def test_weak_liquidity(self):
        s = build_executive_summary([make("ratio.current", 0.8, 1.5)])
        assert any("current ratio of 0.80x" in t for t in texts(s.risks))

    def test_comfortable_liquidity_is_a_strength(self):
        s = build_executive_summary([make("ratio.current", 2.3, 1.8)])
        assert any("Comfortable liquidity" in t for t in texts(s.swot.strengths))
        assert s.risks == ()

    def test_interest_cover_and_cycle(self):
        s = build_executive_summary([
            make("ratio.interest_coverage", 1.2, 3.0),
            make("ratio.ccc", 120.0, 60.0, "lower"),
        ])
        assert any("Debt-service risk" in t for t in texts(s.risks))
        assert any("120 days" in t for t in texts(s.swot.weaknesses))

    @pytest.mark.parametrize("cagr,bucket", [(12.0, "opportunities"), (-3.0, "threats")])
    def test_growth(self, cagr, bucket):
        s = build_executive_summary([make("struct.growth_rate", cagr, 5.0)])
        assert len(getattr(s.swot, bucket)) == 1

    def test_profitability_strengths(self):
        s = build_executive_summary([make("ratio.net_margin", 16.0, 6.0), make("ratio.roe", 20.0, 14.0)])
        assert len(s.swot.strengths) == 2

    def test_negative_fcf(self):
        s = build_executive_summary([make("flow.free_cash_flow", -50.0)])
        assert any("Negative free cash flow" in t for t in texts(s.swot.weaknesses))

    def test_sub_investment_grade_threat(self):
        details = DetectionResult(value=3.0, interpretation=LocalizedText("x", "x"), rating="BB")
        s = build_executive_summary([make("detect.credit_rating", 3.0, 5.0, details=details)])
        assert any("(BB)" in t for t in texts(s.swot.threats))

    def test_anomaly_and_distress(self):
        anomaly = DetectionResult(value=2.5, interpretation=LocalizedText("x", "x"), flagged=True)
        s = build_executive_summary([
            make("detect.anomaly", 2.5, 2.0, "lower", details=anomaly),
            make("detect.bankruptcy", 1.2, 2.99),
        ])
        assert len(s.risks) == 2
        assert len(s.recommendations) == 2

    def test_monte_carlo_loss_probability(self):
        mc = SimulationResult(value=-10.0, interpretation=LocalizedText("x", "x"), probability_of_loss=0.62)
        s = build_executive_summary([make("model.monte_carlo", -10.0, details=mc)])
        assert any("62.00%" in t for t in texts(s.swot.threats))

    def test_unavailable_results_trigger_nothing(self):
        s = build_executive_summary([make("ratio.current", None), make("ratio.debt_to_equity", None)])
        assert s.risks == () and s.swot.strengths == ()

    def test_forecast_lines(self):
        trend = CategoryResult(value=100.0, interpretation=LocalizedText("x", "x"),
                               metrics={"next_year_projection": 1_600.0})
        fc = SimulationResult(value=1_610.0, interpretation=LocalizedText("x", "x"),
                              series={2024: 1_610.0, 2025: 1_770.0}, percentiles={5: 1_500.0, 95: 1_720.0})
        s = build_executive_summary([
            make("struct.trend", 100.0, details=trend),
            make("model.forecasting", 1_610.0, details=fc),
        ])
        assert len(s.forecasts) == 2
        assert "2024" in s.forecasts[1].en


# ═══════════════════════════════════════════════════════════════════════════════
# 3. RECOMMENDATIONS
# ═══════════════════════════════════════════════════════════════════════════════

class TestRecommendations:
    def test_only_below_results_are_carried(self):
        rec = LocalizedText("Improve margins.", "تحسين الهوامش.")
        other = LocalizedText("Keep going.", "الاستمرار.")
        s = build_executive_summary([
            make("ratio.net_margin", 3.0, 6.0, recommendations=[rec]),
            make("ratio.roe", 20.0, 14.0, recommendations=[other]),
        ])
        assert texts(s.recommendations) == ["Improve margins."]

    def test_duplicates_collapse(self):
        rec = LocalizedText("Improve margins.", "تحسين الهوامش.")
        s = build_executive_summary([
            make("ratio.net_margin", 3.0, 6.0, recommendations=[rec]),
            make("ratio.gross_margin", 20.0, 28.0, recommendations=[rec]),
        ])
        assert len(s.recommendations) == 1

    def test_carried_recommendations_are_capped(self):
        results = [
            make(f"ratio.r{i}", 1.0, 2.0, recommendations=[LocalizedText(f"Fix {i}.", f"إصلاح {i}.")])
            for i in range(15)
        ]
        s = build_executive_summary(results)
        assert len(s.recommendations) == MAX_CARRIED_RECOMMENDATIONS
