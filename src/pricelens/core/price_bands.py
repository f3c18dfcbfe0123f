"""
Price Band Table

Maps each price tier to a contiguous currency interval. The modeled
range [floor, ceiling] is split into thirds; with the default bounds this
gives Low 195,000-796,666, Mid 796,667-1,398,333 and High
1,398,334-2,000,000+. Bands never overlap or leave gaps, and the High
band is open-ended.
"""

from typing import Dict, Tuple

from pricelens.core.constants import DEFAULT_PRICE_CEILING, DEFAULT_PRICE_FLOOR
from pricelens.core.models import PriceBand, PriceTier
from pricelens.exceptions import ConfigurationError

PriceBandTable = Tuple[PriceBand, ...]


def build_price_bands(
    floor: float = DEFAULT_PRICE_FLOOR,
    ceiling: float = DEFAULT_PRICE_CEILING,
) -> PriceBandTable:
    """Build the tier -> band table for the given modeled price range.

    Raises:
        ConfigurationError: If the range is empty or too narrow to split.
    """
    floor = int(floor)
    ceiling = int(ceiling)
    tiers = PriceTier.ordered()
    if ceiling - floor < len(tiers):
        raise ConfigurationError(f"Price range too narrow for bands: {floor}-{ceiling}")

    width = (ceiling - floor) / len(tiers)
    bands = []
    lower = floor
    for index, tier in enumerate(tiers):
        is_last = index == len(tiers) - 1
        upper = ceiling if is_last else int(floor + width * (index + 1))
        bands.append(PriceBand(tier=tier, min=lower, max=upper, open_ended=is_last))
        lower = upper + 1
    return tuple(bands)


DEFAULT_PRICE_BANDS: PriceBandTable = build_price_bands()


def band_for_tier(tier: PriceTier, bands: PriceBandTable = DEFAULT_PRICE_BANDS) -> PriceBand:
    for band in bands:
        if band.tier is tier:
            return band
    raise KeyError(tier)


def tier_for_price(price: float, bands: PriceBandTable = DEFAULT_PRICE_BANDS) -> PriceTier:
    """Tier whose band contains the price.

    Prices below the floor map to the lowest tier; prices above the
    ceiling fall in the open-ended top band. Fractional amounts between
    two integer bounds belong to the upper band.
    """
    for band in bands:
        if price <= band.max:
            return band.tier
    return bands[-1].tier


def bands_as_dict(bands: PriceBandTable = DEFAULT_PRICE_BANDS) -> Dict[str, Dict]:
    return {band.tier.value: band.to_dict() for band in bands}
