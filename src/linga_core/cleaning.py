"""Shared utilities for cleaning raw Linga payload values.

This module provides the field-level cleanup used at the ingestion boundary:
parsing monetary strings, integers and flags, normalizing text, and
preventing formula injection when values are written to spreadsheets.

Key utilities:
- Amount parsing: ``normalize_amount`` / ``to_money`` never raise and never
  return NaN
- Text normalization: strip invisible characters, collapse whitespace
- Flags: ``to_flag`` accepts the inconsistent markers the vendor sends
- Security: ``neutralize`` defuses formula injection in exported cells

Examples:
    >>> normalize_amount("$1,234.50")
    Decimal('1234.50')
    >>> normalize_amount("not-a-number")
    Decimal('0')
    >>> to_flag("Y")
    True
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

import pandas as pd

# Unicode characters that should be stripped from text
NBSP = "\u00a0"  # Non-breaking space
NNBSP = "\u202f"  # Narrow non-breaking space
ZW = "".join(chr(c) for c in (0x200B, 0x200C, 0x200D, 0xFEFF))  # Zero-width characters

# Prefixes that could trigger formula injection in spreadsheets
DANGEROUS_PREFIXES = ("=", "+", "@", "-")

# Everything that is not part of a plain decimal literal or an accounting
# negative: currency symbols, currency codes, thousands separators, whitespace
_NON_NUMERIC_RE = re.compile(r"[^\d.\-()]")
_EXPONENT_RE = re.compile(r"\d\s*[eE]\s*[+\-]?\d")
_DECIMAL_RE = re.compile(r"-?\d*\.?\d+|-?\d+\.")

# Markers the vendor uses for a set flag
TRUTHY_MARKERS = frozenset({"true", "y", "yes", "1"})

ZERO = Decimal("0")

Number = Union[int, float, Decimal]


def strip_invisibles(x: Any) -> Optional[str]:
    """Remove invisible and problematic whitespace characters from text.

    Strips:
    - Carriage returns (\\r)
    - Tabs (converted to spaces)
    - Non-breaking spaces (NBSP, NNBSP)
    - Zero-width characters (ZWSP, ZWNJ, ZWJ, BOM)
    - Collapses multiple spaces to single space

    Args:
        x: Value to clean (string, number, or None).

    Returns:
        Cleaned string or None if input is None/NaN.

    Examples:
        >>> strip_invisibles("  Main\\u00a0Dining  ")
        'Main Dining'
        >>> strip_invisibles(None)
        None
    """
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return None
    s = str(x)
    s = s.replace("\r", "").replace("\t", " ").replace(NBSP, " ").replace(NNBSP, " ")
    s = re.sub(r"[%s]" % re.escape(ZW), "", s)  # zero-width
    s = re.sub(r"\s+", " ", s).strip()
    return s


def clean_text(x: Any) -> str:
    """Like ``strip_invisibles`` but returns an empty string for missing values."""
    return strip_invisibles(x) or ""


def neutralize(text: Any) -> Any:
    """Prevent formula injection by prefixing dangerous characters.

    Spreadsheet applications interpret text starting with =, +, @, or -
    as formulas. This function adds a leading apostrophe to neutralize
    such values, which forces them to be treated as text. Non-string values
    (numbers, Decimals) are returned unchanged.

    Args:
        text: Value to neutralize.

    Returns:
        Text with leading apostrophe if it starts with dangerous prefix,
        otherwise unchanged.

    Examples:
        >>> neutralize("=SUM(A1:A10)")
        "'=SUM(A1:A10)"
        >>> neutralize("Staff Discount")
        'Staff Discount'
    """
    if not isinstance(text, str):
        return text
    return "'" + text if text.startswith(DANGEROUS_PREFIXES) else text


def normalize_amount(value: Any) -> Number:
    """Parse a heterogeneous monetary field into a number.

    - ``None`` -> 0
    - numeric input (int, float, Decimal) -> returned unchanged; NaN and
      infinities become 0
    - strings -> currency symbols, thousands separators and whitespace are
      removed and the remainder is parsed as a Decimal. A parenthesized
      amount (``"AED (12.50)"``) is negative. Exponent notation and anything
      else that does not parse becomes 0

    The function never raises, never returns NaN and is idempotent.

    Args:
        value: Raw field value from the vendor payload.

    Returns:
        The parsed amount.

    Examples:
        >>> normalize_amount("AED 1,250.75")
        Decimal('1250.75')
        >>> normalize_amount(12.5)
        12.5
        >>> normalize_amount(None)
        Decimal('0')
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        # bools are ints in Python but never amounts
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return ZERO
        return value

    s = strip_invisibles(value)
    if not s:
        return ZERO

    literal = _numeric_text(s)
    if literal is None:
        return ZERO
    try:
        return Decimal(literal)
    except InvalidOperation:
        return ZERO


def _numeric_text(s: str) -> Optional[str]:
    """Reduce a currency string to a signed decimal literal.

    ``"AED (12.50)"`` becomes ``"-12.50"``. Exponent notation and anything
    that is not a single plain number give None.
    """
    if _EXPONENT_RE.search(s):
        return None
    s = _NON_NUMERIC_RE.sub("", s)
    neg = s.startswith("(") and s.endswith(")")
    if neg:
        s = s[1:-1]
        if s.startswith("-"):
            return None
    if not _DECIMAL_RE.fullmatch(s):
        return None
    return f"-{s}" if neg else s


def to_money(value: Any) -> Decimal:
    """Normalize an amount and coerce it to ``Decimal``.

    Floats go through ``str`` so that ``12.1`` becomes ``Decimal('12.1')``
    rather than its binary expansion.
    """
    amount = normalize_amount(value)
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def to_int(value: Any, default: int = 0) -> int:
    """Convert a count field to a non-negative integer.

    Args:
        value: Value to convert (string, number, or None).
        default: Returned when the value cannot be parsed.

    Returns:
        Rounded integer, never below zero.

    Examples:
        >>> to_int("3")
        3
        >>> to_int(None)
        0
    """
    if not _looks_numeric(value):
        return default
    try:
        result = int(round(normalize_amount(value)))
    except (TypeError, ValueError, OverflowError, ArithmeticError):
        return default
    return max(result, 0)


def _looks_numeric(value: Any) -> bool:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return True
    s = strip_invisibles(value)
    return bool(s) and _numeric_text(s) is not None


def to_flag(value: Any) -> bool:
    """Interpret a loosely typed boolean marker.

    Accepts ``True`` and the strings ``"true"``, ``"Y"``, ``"yes"``, ``"1"``
    (case-insensitive). Everything else, including ``None``, is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    s = strip_invisibles(value)
    return bool(s) and s.lower() in TRUTHY_MARKERS
