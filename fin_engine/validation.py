"""
fin_engine/validation.py
========================
Pre-run integrity checks on the supplied statements.

Validation never blocks a run: the report is attached to ``AnalysisReport``
so callers can judge how far to trust the numbers. Errors mean the
statements contradict themselves (assets != liabilities + equity); warnings
flag gaps that will leave some analyses unavailable.
"""
from __future__ import annotations
from dataclasses import fields
from typing import Dict, List, Optional, Tuple

from .types import CompanyContext, FinancialStatement, ValidationReport

# (part, field) pairs most analyses depend on.
KEY_ITEMS: Tuple[Tuple[str, str], ...] = (
    ("balance_sheet", "total_assets"),
    ("balance_sheet", "total_current_assets"),
    ("balance_sheet", "total_current_liabilities"),
    ("balance_sheet", "total_liabilities"),
    ("balance_sheet", "total_equity"),
    ("income_statement", "revenue"),
    ("income_statement", "cogs"),
    ("income_statement", "operating_income"),
    ("income_statement", "net_income"),
    ("cash_flow", "operating_cash_flow"),
)

_PARTS = ("balance_sheet", "income_statement", "cash_flow", "market")


def _gap_status(gap: float, total: float, tolerance: float) -> str:
    """``ok`` within tolerance, ``warn`` within ten times tolerance, else ``fail``."""
    rel = abs(gap) / abs(total) if total else abs(gap)
    if rel <= tolerance:
        return "ok"
    if rel <= tolerance * 10:
        return "warn"
    return "fail"


def _filled(s: FinancialStatement) -> Tuple[int, int]:
    filled = total = 0
    for part in _PARTS:
        obj = getattr(s, part)
        for f in fields(obj):
            total += 1
            if getattr(obj, f.name) is not None:
                filled += 1
    return filled, total


def validate_statement(s: FinancialStatement, tolerance: float = 0.005) -> ValidationReport:
    errors: List[str] = []
    warnings: List[str] = []
    corrections: List[str] = []
    bs, inc = s.balance_sheet, s.income_statement
    y = s.year

    missing = [f"{part}.{name}" for part, name in KEY_ITEMS if getattr(getattr(s, part), name) is None]
    if missing:
        warnings.append(f"{y}: missing key items {', '.join(missing)}")

    stats: Dict[str, object] = {"year": y, "missing_key_items": len(missing)}

    # Balance sheet integrity
    ta, tl, te = bs.total_assets, bs.total_liabilities, bs.total_equity
    if ta is not None and tl is not None and te is not None:
        gap = (tl + te) - ta
        status = _gap_status(gap, ta, tolerance)
        stats["liabilities_equity_gap"] = gap
        stats["balance_status"] = status
        if status != "ok":
            errors.append(f"{y}: total assets {ta:,.2f} != liabilities + equity {tl + te:,.2f} (gap {gap:,.2f})")
    elif ta is not None and te is not None and tl is None:
        corrections.append(f"{y}: total_liabilities can be derived as total_assets - total_equity = {ta - te:,.2f}")

    ca, nca = bs.total_current_assets, bs.total_non_current_assets
    if ta is not None and ca is not None and nca is not None:
        gap = (ca + nca) - ta
        stats["assets_gap"] = gap
        if _gap_status(gap, ta, tolerance) != "ok":
            warnings.append(f"{y}: current + non-current assets differ from total assets by {gap:,.2f}")
    elif ta is not None and ca is not None and nca is None:
        corrections.append(f"{y}: total_non_current_assets can be derived as {ta - ca:,.2f}")

    # Income statement consistency
    if inc.revenue is not None and inc.cogs is not None and inc.gross_profit is not None:
        expected = inc.revenue - inc.cogs
        if _gap_status(inc.gross_profit - expected, inc.revenue, tolerance) != "ok":
            warnings.append(f"{y}: gross profit {inc.gross_profit:,.2f} != revenue - COGS {expected:,.2f}")
    if inc.revenue is not None and inc.revenue < 0:
        errors.append(f"{y}: negative revenue {inc.revenue:,.2f}")
    if ta is not None and ta <= 0:
        errors.append(f"{y}: total assets must be positive")

    filled, total = _filled(s)
    stats["quality_score"] = round(filled / total * 100, 1) if total else 0.0

    return ValidationReport(valid=not errors, errors=errors, warnings=warnings,
                            corrections=corrections, stats=stats)


def validate_context(context: CompanyContext, tolerance: Optional[float] = None) -> ValidationReport:
    """Merge per-year reports and add history-length checks."""
    if tolerance is None:
        from .settings import get_settings
        tolerance = get_settings().balance_tolerance

    report = ValidationReport(valid=True)
    per_year: Dict[int, Dict[str, object]] = {}
    filled = total = 0
    for s in context.statements:
        r = validate_statement(s, tolerance)
        report.errors.extend(r.errors)
        report.warnings.extend(r.warnings)
        report.corrections.extend(r.corrections)
        per_year[s.year] = r.stats
        f, t = _filled(s)
        filled += f
        total += t

    years = context.years
    if not years:
        report.errors.append("no fiscal years supplied")
    elif len(years) < 2:
        report.warnings.append("only one fiscal year: trend and growth analyses will be unavailable")
    elif len(years) < 4:
        report.warnings.append(f"{len(years)} fiscal years: statistical models need at least 4")
    gaps = [b for a, b in zip(years, years[1:]) if b - a != 1]
    if gaps:
        report.warnings.append(f"non-consecutive fiscal years before {', '.join(str(g) for g in gaps)}")

    report.valid = not report.errors
    report.stats = {
        "years": years,
        "years_count": len(years),
        "quality_score": round(filled / total * 100, 1) if total else 0.0,
        "per_year": per_year,
    }
    return report
