"""
Price Parsing and Formatting Utilities

Used by the reference dataset loader (price columns exported as display
strings) and by the estimator and CLI when rendering amounts.
"""

import math
import re
from typing import Optional, Union

from pricelens.logging_config import get_logger

logger = get_logger(__name__)

_SHORTHAND_RE = re.compile(r"^\$?\s*(\d+(?:\.\d+)?)\s*([mMkK])\+?$")
_PLAIN_RE = re.compile(r"^\$?\s*([\d,]+(?:\.\d+)?)\+?$")

_MULTIPLIERS = {"m": 1_000_000, "k": 1_000}


def parse_price_value(value: Union[str, int, float, None]) -> Optional[float]:
    """Parse a price cell from the reference dataset.

    Handles:
    - numbers (returned as float, NaN becomes None)
    - "$1,250,000" and "1250000"
    - "$1.5M", "$850K"
    - "$2,000,000+"

    Args:
        value: Raw cell value.

    Returns:
        Price as float, or None when the value is not a price.

    Example:
        >>> parse_price_value("$1,250,000")
        1250000.0
        >>> parse_price_value("$1.5M")
        1500000.0
    """
    if value is None:
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if not text:
        return None

    shorthand = _SHORTHAND_RE.match(text)
    if shorthand:
        return float(shorthand.group(1)) * _MULTIPLIERS[shorthand.group(2).lower()]

    plain = _PLAIN_RE.match(text)
    if plain:
        try:
            return float(plain.group(1).replace(",", ""))
        except ValueError:
            pass

    logger.debug("Could not parse price from: %s", text)
    return None


def format_price(price: Union[int, float, None], compact: bool = False) -> str:
    """Format a price value as a string.

    Args:
        price: Price value to format.
        compact: If True, use compact notation ($1.5M instead of $1,500,000).

    Returns:
        Formatted price string.

    Example:
        >>> format_price(1500000)
        '$1,500,000'
        >>> format_price(1500000, compact=True)
        '$1.5M'
    """
    if price is None:
        return "-"

    price = int(round(price))
    sign = "-" if price < 0 else ""
    price = abs(price)

    if compact:
        if price >= 1_000_000:
            value = price / 1_000_000
            if value == int(value):
                return f"{sign}${int(value)}M"
            return f"{sign}${value:.1f}".rstrip("0").rstrip(".") + "M"
        elif price >= 1_000:
            value = price / 1_000
            if value == int(value):
                return f"{sign}${int(value)}K"
            return f"{sign}${value:.1f}".rstrip("0").rstrip(".") + "K"

    return f"{sign}${price:,}"


def format_signed_price(amount: Union[int, float]) -> str:
    """Format an adjustment with an explicit sign, e.g. '+$12,000'."""
    if amount >= 0:
        return f"+{format_price(amount)}"
    return format_price(amount)


def format_price_range(
    low: Optional[Union[int, float]],
    high: Optional[Union[int, float]],
    compact: bool = False,
    open_ended: bool = False,
) -> str:
    """Format a price range as a string.

    Args:
        low: Low price value.
        high: High price value.
        compact: If True, use compact notation.
        open_ended: Append '+' to the upper bound.

    Returns:
        Formatted price range string.

    Example:
        >>> format_price_range(1398334, 2000000, compact=True, open_ended=True)
        '$1.4M - $2M+'
    """
    if low is None and high is None:
        return "-"

    suffix = "+" if open_ended else ""

    if low is None:
        return format_price(high, compact) + suffix

    if high is None:
        return format_price(low, compact) + "+"

    if low == high:
        return format_price(low, compact) + suffix

    return f"{format_price(low, compact)} - {format_price(high, compact)}{suffix}"
