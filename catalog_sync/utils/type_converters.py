"""
Type converters: shared value conversion utilities.
"""
import math
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

TWO_PLACES = Decimal("0.01")
# Sort key for ledger entries whose date cannot be parsed; older than any real date
UNDATED = datetime.min.replace(tzinfo=timezone.utc)

_NON_PRICE_CHAR = re.compile(r"[^0-9.\-]")


def to_price(value: Any) -> Optional[Decimal]:
    """Parse a price into a 2dp Decimal, stripping currency symbols. None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = _NON_PRICE_CHAR.sub("", value)
        if not value:
            return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite():
        return None
    return price.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> Optional[float]:
    """
    Convert a ledger quantity to float.

    Missing values (None or blank) count as 0; non-numeric values return None.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_percent(value: Any) -> Optional[float]:
    """Convert a discount cell to float, returning None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        pct = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(pct) or math.isinf(pct):
        return None
    return pct


def to_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime. None if unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
