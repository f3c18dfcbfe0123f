"""
Feature-based price estimation.

Provides the calibration step, the rule-based estimator and the
combiner that reconciles it with the image classifier.
"""

from pricelens.ml.calibration import Calibration, calibrate, load_calibration
from pricelens.ml.price_estimator import FeaturePriceEstimator
from pricelens.ml.combiner import combine

__all__ = [
    "Calibration",
    "calibrate",
    "load_calibration",
    "FeaturePriceEstimator",
    "combine",
]
