"""
fin_engine/loader.py
====================
Builds ``FinancialStatement`` tuples from tabular input and exports reports.

Accepted shapes:
  - ``{metric: {year: value}}`` mappings, with optional ``Statement::`` prefixes
    on the metric key (e.g. ``"BalanceSheet::Total Assets"``)
  - a pandas DataFrame with metrics as rows and fiscal years as columns

Metric labels resolve through ``ALIASES`` or match a field name directly
(``total_assets``). Year headers are plain fiscal years, as numbers or as
``"2024"`` / ``"FY2024"`` strings.
"""
from __future__ import annotations
import logging
import math
import re
from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .types import (
    AnalysisReport, BalanceSheet, CashFlowStatement, FinancialStatement,
    IncomeStatement, MarketData,
)

logger = logging.getLogger(__name__)

_PART_TYPES = {
    "balance_sheet": BalanceSheet,
    "income_statement": IncomeStatement,
    "cash_flow": CashFlowStatement,
    "market": MarketData,
}

# Common report labels -> (part, field). Keys are normalised (lower, single spaces).
ALIASES: Dict[str, Tuple[str, str]] = {
    "cash and cash equivalents": ("balance_sheet", "cash"),
    "cash": ("balance_sheet", "cash"),
    "short term investments": ("balance_sheet", "marketable_securities"),
    "marketable securities": ("balance_sheet", "marketable_securities"),
    "trade receivables": ("balance_sheet", "receivables"),
    "accounts receivable": ("balance_sheet", "receivables"),
    "inventory": ("balance_sheet", "inventory"),
    "inventories": ("balance_sheet", "inventory"),
    "current assets": ("balance_sheet", "total_current_assets"),
    "total current assets": ("balance_sheet", "total_current_assets"),
    "property plant and equipment": ("balance_sheet", "ppe"),
    "net block": ("balance_sheet", "ppe"),
    "intangible assets": ("balance_sheet", "intangibles"),
    "non current assets": ("balance_sheet", "total_non_current_assets"),
    "total non current assets": ("balance_sheet", "total_non_current_assets"),
    "total assets": ("balance_sheet", "total_assets"),
    "accounts payable": ("balance_sheet", "payables"),
    "trade payables": ("balance_sheet", "payables"),
    "short term borrowings": ("balance_sheet", "short_term_debt"),
    "short term debt": ("balance_sheet", "short_term_debt"),
    "current liabilities": ("balance_sheet", "total_current_liabilities"),
    "total current liabilities": ("balance_sheet", "total_current_liabilities"),
    "long term borrowings": ("balance_sheet", "long_term_debt"),
    "long term debt": ("balance_sheet", "long_term_debt"),
    "non current liabilities": ("balance_sheet", "total_non_current_liabilities"),
    "total liabilities": ("balance_sheet", "total_liabilities"),
    "share capital": ("balance_sheet", "share_capital"),
    "equity share capital": ("balance_sheet", "share_capital"),
    "retained earnings": ("balance_sheet", "retained_earnings"),
    "reserves and surplus": ("balance_sheet", "retained_earnings"),
    "total equity": ("balance_sheet", "total_equity"),
    "net worth": ("balance_sheet", "total_equity"),
    "revenue": ("income_statement", "revenue"),
    "revenue from operations": ("income_statement", "revenue"),
    "net sales": ("income_statement", "revenue"),
    "sales": ("income_statement", "revenue"),
    "cost of goods sold": ("income_statement", "cogs"),
    "cost of materials consumed": ("income_statement", "cogs"),
    "cogs": ("income_statement", "cogs"),
    "gross profit": ("income_statement", "gross_profit"),
    "operating expenses": ("income_statement", "operating_expenses"),
    "depreciation": ("income_statement", "depreciation"),
    "depreciation and amortisation": ("income_statement", "depreciation"),
    "depreciation and amortization": ("income_statement", "depreciation"),
    "operating income": ("income_statement", "operating_income"),
    "operating profit": ("income_statement", "operating_income"),
    "ebit": ("income_statement", "operating_income"),
    "finance costs": ("income_statement", "interest_expense"),
    "interest expense": ("income_statement", "interest_expense"),
    "other income": ("income_statement", "other_income"),
    "exceptional items": ("income_statement", "exceptional_items"),
    "profit before tax": ("income_statement", "income_before_tax"),
    "income before tax": ("income_statement", "income_before_tax"),
    "tax expense": ("income_statement", "tax"),
    "income tax": ("income_statement", "tax"),
    "net income": ("income_statement", "net_income"),
    "net profit": ("income_statement", "net_income"),
    "profit after tax": ("income_statement", "net_income"),
    "employee benefit expenses": ("income_statement", "employee_costs"),
    "employee costs": ("income_statement", "employee_costs"),
    "dividends": ("income_statement", "dividends"),
    "net cash from operating activities": ("cash_flow", "operating_cash_flow"),
    "operating cash flow": ("cash_flow", "operating_cash_flow"),
    "capital expenditure": ("cash_flow", "capex"),
    "purchase of property plant and equipment": ("cash_flow", "capex"),
    "capex": ("cash_flow", "capex"),
    "purchase of fixed assets": ("cash_flow", "capex"),
    "net cash used in investing activities": ("cash_flow", "investing_cash_flow"),
    "investing cash flow": ("cash_flow", "investing_cash_flow"),
    "net cash used in financing activities": ("cash_flow", "financing_cash_flow"),
    "financing cash flow": ("cash_flow", "financing_cash_flow"),
    "dividends paid": ("cash_flow", "dividends_paid"),
    "net change in cash": ("cash_flow", "net_change_in_cash"),
    "shares outstanding": ("market", "shares_outstanding"),
    "share price": ("market", "share_price"),
    "employees": ("market", "employees"),
}

_FIELDS: Dict[str, Tuple[str, str]] = {
    f.name: (part, f.name) for part, cls in _PART_TYPES.items() for f in fields(cls)
}


# ─── Parsing Helpers ──────────────────────────────────────────────────────────

_YEAR_LABEL = re.compile(r'^(?:FY\s*)?(\d{4})$', re.IGNORECASE)


def extract_year(label: Any) -> Optional[int]:
    """Fiscal year from a column header: ``2024``, ``"2024"`` or ``"FY2024"``."""
    if pd.api.types.is_integer(label) or pd.api.types.is_float(label):
        if not float(label).is_integer():
            return None
        y = int(label)
    else:
        m = _YEAR_LABEL.match(str(label).strip())
        if not m:
            return None
        y = int(m.group(1))
    return y if 1900 <= y <= 2099 else None


def to_numeric(val: Any) -> Optional[float]:
    """Float from numbers or report strings: ``(1,234)`` is negative, ``nil`` is zero."""
    if val is None or val == "":
        return None
    if isinstance(val, (int, float)):
        return None if math.isnan(val) else float(val)
    s = str(val).strip()
    if s.startswith('(') and s.endswith(')'):
        s = '-' + s[1:-1]
    s = s.replace(',', '').replace('$', '').strip()
    if s in ('', '-', '--', 'N/A', 'NA', 'n/a', 'nan', 'None'):
        return None
    if s.lower() == 'nil':
        return 0.0
    try:
        return float(s)
    except ValueError:
        return None


def normalize_metric_name(name: str) -> str:
    """Drop ``Statement::`` prefixes and numbering, lowercase, collapse whitespace."""
    name = str(name).split("::")[-1]
    name = re.sub(r'^[A-Z]\.|^[0-9]+\.?\s*', '', name.strip(), flags=re.IGNORECASE)
    name = name.replace("&", "and").replace(",", " ").replace("-", " ")
    name = re.sub(r'\s+', ' ', name).strip().lower()
    return name


def resolve_metric(name: str) -> Optional[Tuple[str, str]]:
    key = normalize_metric_name(name)
    if key in ALIASES:
        return ALIASES[key]
    return _FIELDS.get(key.replace(" ", "_").replace("-", "_"))


# ─── Builders ─────────────────────────────────────────────────────────────────

def statements_from_mapping(data: Mapping[str, Mapping[Any, Any]]) -> Tuple[FinancialStatement, ...]:
    """
    ``{metric: {year: value}}`` -> statements sorted by year.

    Unrecognised metrics are skipped (logged at DEBUG). When two labels map to
    the same field the first non-null value wins.
    """
    by_year: Dict[int, Dict[str, Dict[str, float]]] = {}
    for metric, per_year in data.items():
        target = resolve_metric(metric)
        if target is None:
            logger.debug("Skipping unrecognised metric %r", metric)
            continue
        part, name = target
        for raw_year, raw_value in per_year.items():
            year = extract_year(raw_year)
            value = to_numeric(raw_value)
            if year is None or value is None:
                continue
            slot = by_year.setdefault(year, {}).setdefault(part, {})
            slot.setdefault(name, value)

    statements: List[FinancialStatement] = []
    for year in sorted(by_year):
        parts = by_year[year]
        statements.append(FinancialStatement(
            year=year,
            **{part: cls(**parts.get(part, {})) for part, cls in _PART_TYPES.items()},
        ))
    logger.info("Loaded %d fiscal years from %d metrics", len(statements), len(data))
    return tuple(statements)


def statements_from_frame(df: pd.DataFrame, metric_column: Optional[str] = None) -> Tuple[FinancialStatement, ...]:
    """
    Metrics as rows, fiscal years as columns. The metric labels come from
    ``metric_column`` when given, otherwise from the index.
    """
    if metric_column is not None:
        df = df.set_index(metric_column)
    year_cols = [c for c in df.columns if extract_year(c) is not None]
    if not year_cols:
        # Transposed input: years down the index, metrics across.
        if any(extract_year(i) is not None for i in df.index):
            df = df.T
            year_cols = [c for c in df.columns if extract_year(c) is not None]
    data: Dict[str, Dict[Any, Any]] = {}
    for label, row in df[year_cols].iterrows():
        data.setdefault(str(label), {}).update(
            {col: row[col] for col in year_cols if not pd.isna(row[col])})
    return statements_from_mapping(data)


def results_frame(report: AnalysisReport, language: Optional[str] = None) -> pd.DataFrame:
    """One row per analysis, in catalog order."""
    lang = language or report.language
    rows = [
        {
            "id": r.id,
            "name": r.name.resolve(lang),
            "category": r.category,
            "value": r.value,
            "benchmark": r.benchmark,
            "evaluation": r.evaluation.label.resolve(lang),
            "status": r.status,
            "reason": r.reason,
        }
        for r in report.analyses
    ]
    return pd.DataFrame(rows, columns=["id", "name", "category", "value", "benchmark",
                                       "evaluation", "status", "reason"])
