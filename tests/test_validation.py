"""
tests/test_validation.py
========================
Balance-sheet reconciliation, missing-item warnings, derivable corrections
and history-length checks.

Run:  pytest tests/test_validation.py -v
"""

import dataclasses
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from conftest import build_statement
from fin_engine.errors import InputDataError
from fin_engine.types import BalanceSheet, CompanyContext, FinancialStatement, IncomeStatement
from fin_engine.validation import _gap_status, validate_context, validate_statement


def with_bs(statement, **changes):
    return dataclasses.replace(statement, balance_sheet=dataclasses.replace(statement.balance_sheet, **changes))


# ═══════════════════════════════════════════════════════════════════════════════
# 1. SINGLE STATEMENT
# ═══════════════════════════════════════════════════════════════════════════════

class TestValidateStatement:
    def test_fixture_is_clean(self):
        r = validate_statement(build_statement(2023))
        assert r.valid
        assert r.errors == [] and r.warnings == []
        assert r.stats["balance_status"] == "ok"
        assert r.stats["liabilities_equity_gap"] == 0.0

    def test_unbalanced_sheet_is_an_error(self):
        s = with_bs(build_statement(2023), total_equity=900.0)
        r = validate_statement(s)
        assert not r.valid
        assert r.stats["balance_status"] == "fail"
        assert "2023: total assets 1,600.00" in r.errors[0]

    def test_small_gap_is_tolerated(self):
        s = with_bs(build_statement(2023), total_equity=1045.0)  # 0.31% of assets
        assert validate_statement(s).valid

    def test_missing_key_items_warn(self):
        s = FinancialStatement(year=2023, balance_sheet=BalanceSheet(total_assets=100.0))
        r = validate_statement(s)
        assert r.valid
        assert r.stats["missing_key_items"] == 9
        assert r.warnings[0].startswith("2023: missing key items balance_sheet.total_current_assets")

    def test_derivable_items_become_corrections(self):
        s = with_bs(build_statement(2023), total_liabilities=None, total_non_current_assets=None)
        r = validate_statement(s)
        assert len(r.corrections) == 2
        assert "1,040.00" not in r.corrections[0]
        assert "560.00" in r.corrections[0]
        assert "1,025.00" in r.corrections[1]

    def test_gross_profit_mismatch_warns(self):
        s = dataclasses.replace(
            build_statement(2023),
            income_statement=IncomeStatement(revenue=1000.0, cogs=600.0, gross_profit=300.0),
        )
        assert any("gross profit" in w for w in validate_statement(s).warnings)

    def test_negative_revenue_is_an_error(self):
        s = FinancialStatement(year=2023, income_statement=IncomeStatement(revenue=-5.0))
        assert not validate_statement(s).valid

    def test_quality_score_counts_filled_fields(self):
        empty = validate_statement(FinancialStatement(year=2023))
        full = validate_statement(build_statement(2023))
        assert empty.stats["quality_score"] == 0.0
        assert 0.0 < full.stats["quality_score"] < 100.0

    @pytest.mark.parametrize("gap,status", [(0.4, "ok"), (3.0, "warn"), (10.0, "fail")])
    def test_gap_tiers(self, gap, status):
        assert _gap_status(gap, 100.0, 0.005) == status


# ═══════════════════════════════════════════════════════════════════════════════
# 2. FULL CONTEXT
# ═══════════════════════════════════════════════════════════════════════════════

class TestValidateContext:
    def test_fixture_context(self, context):
        r = validate_context(context)
        assert r.valid
        assert r.warnings == []
        assert r.stats["years"] == [2019, 2020, 2021, 2022, 2023]
        assert set(r.stats["per_year"]) == {2019, 2020, 2021, 2022, 2023}

    def test_single_year_warns(self):
        r = validate_context(CompanyContext(statements=(build_statement(2023),)))
        assert r.valid
        assert any("only one fiscal year" in w for w in r.warnings)

    def test_short_history_warns(self):
        ctx = CompanyContext(statements=(build_statement(2022), build_statement(2023)))
        assert any("at least 4" in w for w in validate_context(ctx).warnings)

    def test_gap_in_years_warns(self):
        ctx = CompanyContext(statements=tuple(build_statement(y) for y in (2019, 2020, 2022, 2023)))
        assert any("non-consecutive" in w and "2022" in w for w in validate_context(ctx).warnings)

    def test_no_years_is_an_error(self):
        r = validate_context(CompanyContext(statements=()))
        assert not r.valid

    def test_errors_carry_over_from_years(self, statements):
        broken = statements[:-1] + (with_bs(statements[-1], total_equity=500.0),)
        r = validate_context(CompanyContext(statements=broken))
        assert not r.valid
        assert r.errors[0].startswith("2023")

    def test_duplicate_years_rejected_on_construction(self):
        with pytest.raises(InputDataError):
            CompanyContext(statements=(build_statement(2023), build_statement(2023)))
