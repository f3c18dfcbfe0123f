"""
PriceLens: dual house price estimation

Estimates a house's price range from a photo and/or its attributes
(square footage, bedrooms, bathrooms, city).

Main components:
- imaging: photo preprocessing and the Low/Mid/High tier classifier adapter
- ml: calibrated feature-based estimator and the prediction combiner
- core: data models, price bands, reference dataset and statistics
- api: Flask REST API server
- cli: Command-line interfaces

Usage:
    from pricelens import get_config
    from pricelens.service import PredictionService
"""

__version__ = "1.0.0"

from pricelens.config import get_config
from pricelens.logging_config import setup_logging

__all__ = [
    "__version__",
    "get_config",
    "setup_logging",
]
