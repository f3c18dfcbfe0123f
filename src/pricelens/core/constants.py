"""
Shared Constants for PriceLens

Contains all constant values used across the application.
"""

from typing import Dict, List, Tuple

# Price tiers in canonical order (also the classifier's output order)
TIER_NAMES: List[str] = ["Low", "Mid", "High"]

# Image classifier input contract
IMAGE_SIZE: int = 224
IMAGE_CHANNELS: int = 3
INPUT_SHAPE: Tuple[int, int, int, int] = (1, IMAGE_SIZE, IMAGE_SIZE, IMAGE_CHANNELS)
PIXEL_SCALE: float = 255.0

# Allowed drift of the classifier's raw output sum before a warning is logged
PROBABILITY_TOLERANCE: float = 1e-3

# Modeled price range of the reference data (USD)
DEFAULT_PRICE_FLOOR: int = 195_000
DEFAULT_PRICE_CEILING: int = 2_000_000

# City lookup
NEUTRAL_CITY_MULTIPLIER: float = 1.0
CITY_SHRINKAGE_SAMPLES: int = 5

# Calibration
MIN_CALIBRATION_SAMPLES: int = 10
SQFT_TYPICAL_PERCENTILES: Tuple[float, float] = (5.0, 95.0)

# Confidence scoring
CONFIDENCE_UNKNOWN_CITY: float = 0.75
CONFIDENCE_CLAMPED: float = 0.85
CONFIDENCE_MIN_RANGE_FACTOR: float = 0.5
FEATURE_COUNT: int = 4

# Reference dataset columns
DATASET_COLUMN_ALIASES: Dict[str, str] = {
    "citi": "city",
    "n_citi": "city_code",
    "bed": "bedrooms",
    "beds": "bedrooms",
    "bath": "bathrooms",
    "baths": "bathrooms",
    "sqft": "square_footage",
    "price_value": "price",
}
REQUIRED_COLUMNS: List[str] = ["price", "square_footage", "bedrooms", "bathrooms", "city"]

# Histogram bins for dataset statistics
HISTOGRAM_BINS: int = 10
