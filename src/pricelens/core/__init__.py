"""
Core modules for PriceLens.

Contains data models, the price band table, the reference dataset loader
and the statistics aggregator.
"""

from pricelens.core.models import (
    PriceTier,
    ComponentStatus,
    PropertyFeatures,
    PriceBand,
    TierPrediction,
    FeatureEstimate,
    CombinedResult,
    DatasetStatistics,
)
from pricelens.core.price_bands import (
    DEFAULT_PRICE_BANDS,
    build_price_bands,
    band_for_tier,
    tier_for_price,
)
from pricelens.core.dataset import load_reference_dataset
from pricelens.core.statistics import aggregate, StatisticsCache

__all__ = [
    "PriceTier",
    "ComponentStatus",
    "PropertyFeatures",
    "PriceBand",
    "TierPrediction",
    "FeatureEstimate",
    "CombinedResult",
    "DatasetStatistics",
    "DEFAULT_PRICE_BANDS",
    "build_price_bands",
    "band_for_tier",
    "tier_for_price",
    "load_reference_dataset",
    "aggregate",
    "StatisticsCache",
]
