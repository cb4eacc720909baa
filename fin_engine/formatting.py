"""
fin_engine/formatting.py
========================
Number, percent, ratio and day formatting for bilingual (ar / en) output,
and the ``txt`` helper calculators use to build interpretations.
"""
from __future__ import annotations
from typing import Optional

from .types import LocalizedText

_ARABIC_DIGITS = str.maketrans("0123456789.,-", "٠١٢٣٤٥٦٧٨٩٫٬-")

NA = LocalizedText("N/A", "غير متاح")


def txt(en: str, ar: str) -> LocalizedText:
    return LocalizedText(en=en, ar=ar)


def to_arabic_digits(text: str) -> str:
    return text.translate(_ARABIC_DIGITS)


def format_number(value: Optional[float], decimals: int = 2, language: str = "en",
                  arabic_digits: bool = False) -> str:
    if value is None:
        return NA.resolve(language)
    out = f"{value:,.{decimals}f}"
    return to_arabic_digits(out) if language == "ar" and arabic_digits else out


def format_compact(value: Optional[float], decimals: int = 1) -> str:
    """
    Short form for large amounts: K / M / B.
    e.g. 1_500_000 → 1.5M
    """
    if value is None:
        return "—"
    if value == 0:
        return "0"
    abs_val = abs(value)
    sign = "-" if value < 0 else ""
    if abs_val >= 1e9:
        return f"{sign}{abs_val / 1e9:,.{decimals}f}B"
    elif abs_val >= 1e6:
        return f"{sign}{abs_val / 1e6:,.{decimals}f}M"
    elif abs_val >= 1e3:
        return f"{sign}{abs_val / 1e3:,.{decimals}f}K"
    return f"{sign}{abs_val:,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "—"
    return f"{value:.{decimals}f}%" if abs(value) < 1000 else f"{value:,.{decimals}f}%"


def format_ratio(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "—"
    return f"{value:.{decimals}f}x"


def format_days(value: Optional[float]) -> str:
    if value is None:
        return "—"
    return f"{value:,.0f}"


def localized_number(value: Optional[float], unit: str = "ratio") -> LocalizedText:
    """Format ``value`` for both languages according to its unit."""
    if value is None:
        return NA
    if unit == "percent":
        s = format_percent(value)
        return txt(s, s)
    if unit == "days":
        s = format_days(value)
        return txt(f"{s} days", f"{s} يوم")
    if unit == "years":
        return txt(f"{value:.2f} years", f"{value:.2f} سنة")
    if unit == "currency":
        s = format_compact(value)
        return txt(s, s)
    if unit == "times":
        s = format_ratio(value)
        return txt(s, s)
    s = format_number(value)
    return txt(s, s)
