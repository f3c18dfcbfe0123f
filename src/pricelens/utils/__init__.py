"""
Utility modules for PriceLens.

Provides shared parsing and formatting helpers.
"""

from pricelens.utils.normalization import (
    normalize_city,
    parse_number,
    parse_count,
    split_bathrooms,
    describe_bathrooms,
)
from pricelens.utils.price_parser import (
    parse_price_value,
    format_price,
    format_price_range,
)

__all__ = [
    "normalize_city",
    "parse_number",
    "parse_count",
    "split_bathrooms",
    "describe_bathrooms",
    "parse_price_value",
    "format_price",
    "format_price_range",
]
