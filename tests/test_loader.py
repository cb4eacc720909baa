"""
tests/test_loader.py
====================
Statement loading from mappings and DataFrames, header parsing and the
results export.

Run:  pytest tests/test_loader.py -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd
import pytest

from fin_engine.loader import (
    extract_year,
    normalize_metric_name,
    resolve_metric,
    results_frame,
    statements_from_frame,
    statements_from_mapping,
    to_numeric,
)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. HEADER & VALUE PARSING
# ═══════════════════════════════════════════════════════════════════════════════

class TestExtractYear:
    @pytest.mark.parametrize("label,year", [
        (2024, 2024),
        (2024.0, 2024),
        ("2024", 2024),
        (" 2024 ", 2024),
        ("FY2024", 2024),
        ("fy 2023", 2023),
    ])
    def test_formats(self, label, year):
        assert extract_year(label) == year

    @pytest.mark.parametrize("label", [
        "Metric", "", 12, "Notes", 2024.5, float("nan"), True,
        "202403", "Mar 2024", "2023-24",
    ])
    def test_not_a_year(self, label):
        assert extract_year(label) is None


class TestToNumeric:
    @pytest.mark.parametrize("raw,expected", [
        (1234, 1234.0),
        ("1,234.5", 1234.5),
        ("(500)", -500.0),
        ("$1,000", 1000.0),
        ("nil", 0.0),
    ])
    def test_parses(self, raw, expected):
        assert to_numeric(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "-", "N/A", "abc", float("nan")])
    def test_blank_is_none(self, raw):
        assert to_numeric(raw) is None


class TestMetricNames:
    def test_prefix_and_numbering_stripped(self):
        assert normalize_metric_name("BalanceSheet::Total Assets") == "total assets"
        assert normalize_metric_name("1. Revenue") == "revenue"
        assert normalize_metric_name("Property,  Plant & Equipment") == "property plant and equipment"

    def test_resolution(self):
        assert resolve_metric("ProfitLoss::Net Sales") == ("income_statement", "revenue")
        assert resolve_metric("total_current_assets") == ("balance_sheet", "total_current_assets")
        assert resolve_metric("Long-Term Borrowings") == ("balance_sheet", "long_term_debt")
        assert resolve_metric("Goodwill amortisation reserve") is None


# ═══════════════════════════════════════════════════════════════════════════════
# 2. BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatementsFromMapping:
    def test_prefixed_keys_and_yyyymm_headers(self):
        data = {
            "BalanceSheet::Total Assets": {"2021": "1,500", "2020": 1200},
            "ProfitLoss::Revenue": {"2021": 1100, "2020": 1000},
            "ProfitLoss::Net Profit": {"2021": "(20)", "2020": 55},
            "Unknown Line": {"2021": 1},
        }
        out = statements_from_mapping(data)
        assert [s.year for s in out] == [2020, 2021]
        assert out[1].bs.total_assets == 1500.0
        assert out[1].inc.net_income == -20.0
        assert out[0].inc.revenue == 1000.0

    def test_first_value_wins(self):
        data = {
            "Revenue": {"2023": 900},
            "Net Sales": {"2023": 950},
        }
        assert statements_from_mapping(data)[0].inc.revenue == 900.0

    def test_blank_values_skipped(self):
        out = statements_from_mapping({"Revenue": {"2022": "", "2023": 10}})
        assert [s.year for s in out] == [2023]

    def test_empty(self):
        assert statements_from_mapping({}) == ()


class TestStatementsFromFrame:
    def test_years_as_columns(self):
        df = pd.DataFrame(
            {"FY2022": [1000.0, 120.0], "FY2023": [1100.0, 130.0]},
            index=["Revenue", "Net Income"],
        )
        out = statements_from_frame(df)
        assert [s.year for s in out] == [2022, 2023]
        assert out[1].inc.net_income == 130.0

    def test_metric_column(self):
        df = pd.DataFrame({
            "Metric": ["Total Assets", "Total Equity"],
            "2023": [1600.0, 1040.0],
        })
        out = statements_from_frame(df, metric_column="Metric")
        assert out[0].bs.total_equity == 1040.0

    def test_transposed(self):
        df = pd.DataFrame({"Revenue": [1000.0, 1100.0]}, index=[2022, 2023])
        out = statements_from_frame(df)
        assert [s.inc.revenue for s in out] == [1000.0, 1100.0]

    def test_missing_cells_stay_none(self):
        df = pd.DataFrame({"2022": [1000.0, None], "2023": [1100.0, 50.0]}, index=["Revenue", "Cash"])
        out = statements_from_frame(df)
        assert out[0].bs.cash is None
        assert out[1].bs.cash == 50.0

    def test_period_labels_are_not_years(self):
        df = pd.DataFrame({"Mar 2024": [1200.0], "2023": [1100.0]}, index=["Revenue"])
        out = statements_from_frame(df)
        assert [s.year for s in out] == [2023]


# ═══════════════════════════════════════════════════════════════════════════════
# 3. EXPORT
# ═══════════════════════════════════════════════════════════════════════════════

class TestResultsFrame:
    def test_one_row_per_analysis(self, context):
        import dataclasses
        from fin_engine.benchmarks import StaticBenchmarkProvider
        from fin_engine.dispatcher import run_analysis_sync
        from fin_engine.types import AnalysisOptions

        ctx = dataclasses.replace(context, analysis_type="basic")
        report = run_analysis_sync(ctx, StaticBenchmarkProvider(), AnalysisOptions(iterations=500))
        df = results_frame(report, "ar")
        assert len(df) == 55
        assert list(df.columns) == ["id", "name", "category", "value", "benchmark",
                                    "evaluation", "status", "reason"]
        row = df.set_index("id").loc["ratio.current"]
        assert row["name"] == "النسبة الجارية"
        assert row["value"] == 2.3
