"""
Property Feature Normalization Utilities

Helpers shared by the estimator, the calibration step and the request
parsers: city name normalization, numeric parsing of raw input values and
the full.half bathroom convention.

The bathroom convention used by the reference data writes half baths in
the first decimal place: 2.1 means 2 full baths and 1 half bath.
"""

import math
import re
from typing import Any, Optional, Tuple

import pandas as pd

from pricelens.exceptions import InvalidFeatureError

_WHITESPACE_RE = re.compile(r"\s+")
_COMMA_RE = re.compile(r"\s*,\s*")


def normalize_city(city: Optional[str]) -> Optional[str]:
    """Normalize a city label for lookups.

    Lowercases, trims, collapses runs of whitespace and normalizes the
    spacing around commas. Missing values (None, NaN) normalize to None.

    Example:
        >>> normalize_city("  Los   Angeles ,CA ")
        'los angeles, ca'
    """
    if city is None or (not isinstance(city, str) and pd.isna(city)):
        return None
    text = _WHITESPACE_RE.sub(" ", str(city)).strip()
    if not text:
        return None
    text = _COMMA_RE.sub(", ", text)
    return text.casefold()


def city_base_name(normalized_city: str) -> str:
    """Return the part of a normalized city label before the state suffix."""
    return normalized_city.split(",", 1)[0].strip()


def parse_number(value: Any, field: str) -> Optional[float]:
    """Parse a raw input value (form string, int, float) into a float.

    Empty values parse to None. Non-numeric or non-finite values raise
    InvalidFeatureError.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidFeatureError(f"{field} must be a number", field=field, value=value)
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if value == "":
            return None
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidFeatureError(f"{field} must be a number, got {value!r}", field=field, value=value) from e
    if not math.isfinite(number):
        raise InvalidFeatureError(f"{field} must be finite, got {value!r}", field=field, value=value)
    return number


def parse_count(value: Any, field: str) -> Optional[int]:
    """Parse a whole-number count such as bedrooms."""
    number = parse_number(value, field)
    if number is None:
        return None
    if not number.is_integer():
        raise InvalidFeatureError(f"{field} must be a whole number, got {value!r}", field=field, value=value)
    return int(number)


def split_bathrooms(value: float) -> Tuple[int, int]:
    """Split a full.half bathroom value into (full, half) counts.

    Example:
        >>> split_bathrooms(2.1)
        (2, 1)
        >>> split_bathrooms(3)
        (3, 0)
    """
    full = math.floor(value)
    half = round((value - full) * 10)
    return int(full), int(half)


def describe_bathrooms(value: float) -> str:
    """Human-readable bathroom description, e.g. '2 full + 1 half bath'."""
    full, half = split_bathrooms(value)
    full_text = f"{full} full bath" if full == 1 else f"{full} full baths"
    if half == 0:
        return full_text
    half_text = f"{half} half bath" if half == 1 else f"{half} half baths"
    return f"{full_text} + {half_text}"
