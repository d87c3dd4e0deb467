"""
Classification helpers for raw result cells.

These predicates and matchers are the single source of truth for the
string patterns the formatter recognizes, so the formatter, the decoder
and the tests agree on what counts as a timestamp or an amount.
"""

import math
import re
from datetime import datetime
from typing import Any, Optional, Tuple

ISO_DATETIME_RE = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}')
BARE_DECIMAL_RE = re.compile(r'^\d+\.?\d*$')

# Debug reprs leaked by the upstream Python backend
LEGACY_DATETIME_RE = re.compile(
    r'datetime\.datetime\((\d+),\s*(\d+),\s*(\d+),\s*(\d+),\s*(\d+),\s*(\d+)(?:,\s*(\d+))?\)'
)
LEGACY_DECIMAL_RE = re.compile(r"Decimal\('(.+)'\)")


def is_sequence(value: Any) -> bool:
    """
    Check whether a value can be treated as a result set or a row.

    Strings, bytes and mappings are iterable but are not rows.
    """
    return isinstance(value, (list, tuple))


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are not NaN or infinite (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return True


def looks_like_iso_datetime(text: str) -> bool:
    """True if text starts with YYYY-MM-DDTHH:MM:SS."""
    return ISO_DATETIME_RE.match(text) is not None


def parse_iso_datetime(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp, accepting a trailing 'Z'.

    Aware timestamps are converted to local time.

    Raises:
        ValueError: If the text is not a valid timestamp
    """
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone()
    return value


def match_currency_amount(
    text: str,
    currency_min: float = 10.0,
    currency_max: float = 10000.0,
    integer_currency: bool = True
) -> Optional[float]:
    """
    Decide whether a bare numeral should be shown as money.

    A numeral qualifies when it is positive and either has a decimal
    point or, if integer_currency is on, lies strictly between
    currency_min and currency_max.

    Args:
        text: Cell string
        currency_min: Exclusive lower bound for integers
        currency_max: Exclusive upper bound for integers
        integer_currency: Whether integers may qualify at all

    Returns:
        The parsed amount, or None if the text is not an amount
    """
    if not BARE_DECIMAL_RE.match(text):
        return None

    value = float(text)
    if value <= 0:
        return None

    if '.' in text:
        return value
    if integer_currency and currency_min < value < currency_max:
        return value
    return None


def match_legacy_datetime(text: str) -> Optional[Tuple[int, ...]]:
    """
    Extract components from a 'datetime.datetime(...)' repr.

    Returns:
        (year, month, day, hour, minute, second, microsecond) or None
    """
    if 'datetime.datetime' not in text:
        return None

    match = LEGACY_DATETIME_RE.search(text)
    if not match:
        return None

    parts = [int(g) for g in match.groups()[:6]]
    microsecond = match.group(7)
    parts.append(int(microsecond) if microsecond else 0)
    return tuple(parts)


def match_legacy_decimal(text: str) -> Optional[str]:
    """Extract the inner numeral from a "Decimal('...')" repr, or None."""
    if "Decimal('" not in text or "')" not in text:
        return None

    match = LEGACY_DECIMAL_RE.search(text)
    if not match:
        return None
    return match.group(1)
