"""
tests/conftest.py
=================
Shared fixtures: a five-year manufacturing-style company whose statements
balance exactly (assets = liabilities + equity, current + non-current = total).
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.benchmarks import GENERAL_RATIOS, MARKET_INDEX
from fin_engine.types import (
    AnalysisOptions,
    BalanceSheet,
    BenchmarkSet,
    CashFlowStatement,
    CompanyContext,
    FinancialStatement,
    IncomeStatement,
    MarketData,
    PeerCompany,
)


# year: (revenue, opex, interest, net_income, tax)
_INCOME = {
    2019: (1000.0, 200.0, 20.0, 135.0, 45.0),
    2020: (1100.0, 215.0, 22.0, 152.25, 50.75),
    2021: (1210.0, 232.0, 24.0, 171.0, 57.0),
    2022: (1331.0, 250.0, 25.0, 193.05, 64.35),
    2023: (1464.1, 270.0, 26.0, 217.23, 72.41),
}

# year: (cash, receivables, inventory, ppe, intangibles, payables, short_term_debt,
#        other_current_liabilities, long_term_debt, retained_earnings)
_BALANCE = {
    2019: (150.0, 120.0, 100.0, 800.0, 30.0, 90.0, 60.0, 50.0, 300.0, 300.0),
    2020: (170.0, 130.0, 110.0, 860.0, 30.0, 95.0, 60.0, 55.0, 310.0, 380.0),
    2021: (200.0, 145.0, 120.0, 905.0, 30.0, 100.0, 60.0, 60.0, 320.0, 460.0),
    2022: (230.0, 160.0, 130.0, 950.0, 30.0, 110.0, 60.0, 60.0, 320.0, 550.0),
    2023: (260.0, 175.0, 140.0, 995.0, 30.0, 120.0, 60.0, 70.0, 310.0, 640.0),
}

# year: (operating cash flow, capex, dividends paid, share price, employees)
_CASH = {
    2019: (180.0, -90.0, -40.0, 15.0, 50.0),
    2020: (200.0, -100.0, -45.0, 17.0, 52.0),
    2021: (225.0, -110.0, -50.0, 20.0, 55.0),
    2022: (250.0, -120.0, -55.0, 19.0, 57.0),
    2023: (280.0, -130.0, -60.0, 23.0, 60.0),
}

SHARE_CAPITAL = 400.0
SHARES = 100.0


def build_statement(year: int) -> FinancialStatement:
    revenue, opex, interest, ni, tax = _INCOME[year]
    cogs = round(revenue * 0.6, 2)
    operating_income = round(revenue - cogs - opex, 2)
    cash, rec, inv, ppe, intang, pay, std, ocl, ltd, retained = _BALANCE[year]
    tca = cash + rec + inv
    tnca = ppe + intang
    tcl = pay + std + ocl
    te = SHARE_CAPITAL + retained
    ocf, capex, divs, price, employees = _CASH[year]
    return FinancialStatement(
        year=year,
        balance_sheet=BalanceSheet(
            cash=cash, receivables=rec, inventory=inv, total_current_assets=tca,
            ppe=ppe, intangibles=intang, total_non_current_assets=tnca, total_assets=tca + tnca,
            payables=pay, short_term_debt=std, other_current_liabilities=ocl,
            total_current_liabilities=tcl, long_term_debt=ltd, total_non_current_liabilities=ltd,
            total_liabilities=tcl + ltd, share_capital=SHARE_CAPITAL, retained_earnings=retained,
            total_equity=te,
        ),
        income_statement=IncomeStatement(
            revenue=revenue, cogs=cogs, gross_profit=round(revenue - cogs, 2),
            operating_expenses=opex, depreciation=50.0, operating_income=operating_income,
            interest_expense=interest, income_before_tax=round(ni + tax, 2), tax=tax,
            net_income=ni, dividends=-divs, employee_costs=opex * 0.5,
        ),
        cash_flow=CashFlowStatement(
            operating_cash_flow=ocf, capex=capex, investing_cash_flow=capex,
            dividends_paid=divs, financing_cash_flow=divs,
            net_change_in_cash=ocf + capex + divs,
        ),
        market=MarketData(shares_outstanding=SHARES, share_price=price, employees=employees),
    )


@pytest.fixture
def statements():
    return tuple(build_statement(y) for y in sorted(_INCOME))


@pytest.fixture
def context(statements):
    return CompanyContext(
        statements=statements,
        name="Sample Industries",
        sector="manufacturing",
        activity="industrial",
        analysis_type="comprehensive",
        language="en",
    )


@pytest.fixture
def benchmarks():
    return BenchmarkSet(
        sector="general",
        ratios=dict(GENERAL_RATIOS),
        peers=(
            PeerCompany("Peer A", {"current_ratio": 1.6, "roe": 14.0, "net_margin": 8.0}),
            PeerCompany("Peer B", {"current_ratio": 1.3, "roe": 11.0, "net_margin": 6.5}),
            PeerCompany("Peer C", {"current_ratio": 1.9, "roe": 18.0, "net_margin": 10.0}),
        ),
        historical_index=dict(MARKET_INDEX),
    )


@pytest.fixture
def options():
    return AnalysisOptions(iterations=2000, seed=7)
