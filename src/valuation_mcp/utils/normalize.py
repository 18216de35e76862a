"""Locale-aware conversion between pt-BR display text and numbers.

Providers hand the engine text exactly as a Brazilian page renders it:
"R$ 1.234,56", "12,5%", "-3,20". The normalization contract:

1. Absent input (None, empty, whitespace-only, a lone dash) is None, never 0
2. A leading currency marker (R$, US$, $) is dropped, the sign is kept
3. "." is a grouping separator and is removed; "," is the decimal separator
4. A trailing percent marker is dropped ("12,5%" -> 12.5, not 0.125)
5. What remains must be plain digits with at most one decimal point;
   anything else (exponents, underscores, "nan") or an overflow to inf is None

normalize_number never raises. format_brl / format_percent go the other
way and are used to render computed values (valuation estimates, numbers
from JSON providers) in the same text form the scraped fields use.
"""

from __future__ import annotations

import math
import re
from typing import Any

ABSENT = "-"

# Dash variants pages use for "no data"
_DASHES = frozenset({"-", "--", "–", "—", "n/a", "N/A"})

# Optional sign, then currency marker. The sign may also come after the marker.
_CURRENCY_RE = re.compile(r"^([+-]?)\s*(?:R\$|US\$|\$)\s*")

# What is left once separators are resolved: digits with at most one point
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")


def _is_nan_or_inf(x: Any) -> bool:
    """Check if value is NaN or inf, handling non-float types safely."""
    try:
        return math.isnan(x) or math.isinf(x)
    except (TypeError, ValueError):
        return False


def is_absent(raw: str | None) -> bool:
    """True for None, empty, whitespace-only or dash-only text."""
    if raw is None or not isinstance(raw, str):
        return True
    text = raw.replace("\xa0", " ").strip()
    return not text or text in _DASHES


def normalize_number(raw: str | None) -> float | None:
    """
    Convert pt-BR formatted text into a float.

    Args:
        raw: Text as rendered by the provider (may be None)

    Returns:
        Parsed value, or None when the text is absent or unparseable
    """
    if is_absent(raw):
        return None

    text = raw.replace("\xa0", " ").strip()

    match = _CURRENCY_RE.match(text)
    if match:
        text = match.group(1) + text[match.end():]

    text = text.strip()
    if text.endswith("%"):
        text = text[:-1]

    text = text.replace(" ", "").replace(".", "").replace(",", ".")
    if not _NUMBER_RE.fullmatch(text):
        return None

    value = float(text)

    if _is_nan_or_inf(value):
        return None
    return value


def format_brl(value: float | None, decimals: int = 2) -> str:
    """Render a number as pt-BR currency text ("R$ 1.234,56"). None -> "-"."""
    if value is None or _is_nan_or_inf(value):
        return ABSENT
    return f"R$ {_pt_br_number(value, decimals)}"


def format_percent(value: float | None, decimals: int = 2) -> str:
    """Render a percentage as pt-BR text ("12,50%"). None -> "-"."""
    if value is None or _is_nan_or_inf(value):
        return ABSENT
    return f"{_pt_br_number(value, decimals)}%"


def format_decimal(value: float | None, decimals: int = 2) -> str:
    """Render a plain number as pt-BR text ("1.234,5"). None -> "-"."""
    if value is None or _is_nan_or_inf(value):
        return ABSENT
    return _pt_br_number(value, decimals)


def _pt_br_number(value: float, decimals: int) -> str:
    # Swap US separators through a placeholder: 1,234.56 -> 1.234,56
    us = f"{value:,.{decimals}f}"
    return us.replace(",", "\0").replace(".", ",").replace("\0", ".")
