"""
Feature-Based Price Estimator

Rule-based regression over calibrated reference statistics:

    price = (intercept + slope * sqft) * city_multiplier
            + bed_increment * (bedrooms - baseline_bed)
            + bath_increment * (bathrooms - baseline_bath)

then clamped to the modeled price floor (values above the ceiling are
kept and flagged). The estimator is pure: identical features and
calibration always produce the identical estimate.
"""

from typing import Dict, Optional, Tuple

from pricelens.config import get_config
from pricelens.core.constants import (
    CONFIDENCE_CLAMPED,
    CONFIDENCE_MIN_RANGE_FACTOR,
    CONFIDENCE_UNKNOWN_CITY,
    CITY_SHRINKAGE_SAMPLES,
    FEATURE_COUNT,
    NEUTRAL_CITY_MULTIPLIER,
)
from pricelens.core.models import FeatureEstimate, PropertyFeatures
from pricelens.core.price_bands import PriceBandTable, build_price_bands, tier_for_price
from pricelens.logging_config import get_logger
from pricelens.ml.calibration import Calibration
from pricelens.utils.normalization import describe_bathrooms
from pricelens.utils.price_parser import format_price, format_signed_price

logger = get_logger(__name__)


def _format_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


class FeaturePriceEstimator:
    """Point price estimate with confidence and explanatory factors."""

    def __init__(
        self,
        calibration: Calibration,
        price_floor: Optional[float] = None,
        price_ceiling: Optional[float] = None,
    ):
        """Initialize the estimator.

        Args:
            calibration: Calibrated constants (see ml.calibration).
            price_floor: Lowest price returned. Uses config default if not provided.
            price_ceiling: Top of the typical price range. Uses config default if not provided.
        """
        config = get_config()
        self.calibration = calibration
        self.price_floor = float(price_floor if price_floor is not None else config.estimator.price_floor)
        self.price_ceiling = float(price_ceiling if price_ceiling is not None else config.estimator.price_ceiling)
        self.bands: PriceBandTable = build_price_bands(self.price_floor, self.price_ceiling)

    def _base_price(self, features: PropertyFeatures, factors: Dict[str, str]) -> float:
        cal = self.calibration
        if features.square_footage is None:
            factors["base_price"] = (
                f"Square footage not provided; using the reference median price "
                f"{format_price(cal.median_price)}"
            )
            factors["missing_square_footage"] = "Estimate falls back to the dataset median; confidence reduced"
            return cal.median_price

        base = cal.sqft_intercept + cal.sqft_slope * features.square_footage
        factors["base_price"] = (
            f"{features.square_footage:,.0f} sqft at ${cal.sqft_slope:,.2f}/sqft "
            f"(calibrated, r={cal.sqft_price_correlation:.2f}): {format_price(base)}"
        )
        return base

    def _city(self, features: PropertyFeatures, factors: Dict[str, str]) -> Tuple[float, Optional[str]]:
        match = self.calibration.lookup_city(features.city)
        if match is None:
            if features.city is None:
                factors["location"] = (
                    f"City not provided; neutral multiplier {NEUTRAL_CITY_MULTIPLIER:.2f} applied"
                )
            else:
                factors["location"] = (
                    f"Unknown city '{features.city}'; neutral multiplier "
                    f"{NEUTRAL_CITY_MULTIPLIER:.2f} applied"
                )
            return NEUTRAL_CITY_MULTIPLIER, None

        key, multiplier = match
        change = (multiplier - 1.0) * 100
        factors["location"] = (
            f"{self.calibration.city_label(key)} multiplier {multiplier:.2f} ({change:+.0f}% vs. average)"
        )
        return multiplier, key

    def _rooms(self, features: PropertyFeatures, factors: Dict[str, str]) -> float:
        cal = self.calibration

        if features.bedrooms is None:
            bed_adjustment = 0.0
            factors["bedrooms"] = f"Not provided; baseline of {_format_count(cal.baseline_bed)} bedrooms assumed (+$0)"
            factors["missing_bedrooms"] = "Bedroom count missing; confidence reduced"
        else:
            bed_adjustment = cal.bed_increment * (features.bedrooms - cal.baseline_bed)
            factors["bedrooms"] = (
                f"{features.bedrooms} bedrooms vs. baseline {_format_count(cal.baseline_bed)} "
                f"at {format_price(cal.bed_increment)} each: {format_signed_price(bed_adjustment)}"
            )

        if features.bathrooms is None:
            bath_adjustment = 0.0
            factors["bathrooms"] = (
                f"Not provided; baseline of {_format_count(cal.baseline_bath)} bathrooms assumed (+$0)"
            )
            factors["missing_bathrooms"] = "Bathroom count missing; confidence reduced"
        else:
            bath_adjustment = cal.bath_increment * (features.bathrooms - cal.baseline_bath)
            factors["bathrooms"] = (
                f"{describe_bathrooms(features.bathrooms)} ({_format_count(features.bathrooms)}) vs. baseline "
                f"{_format_count(cal.baseline_bath)} at {format_price(cal.bath_increment)} each: "
                f"{format_signed_price(bath_adjustment)}"
            )

        return bed_adjustment + bath_adjustment

    def _range_factor(self, square_footage: Optional[float]) -> float:
        """1.0 inside the well-represented sqft range, decaying linearly outside it."""
        cal = self.calibration
        if square_footage is None:
            return 1.0
        if square_footage < cal.sqft_typical_low:
            distance = (cal.sqft_typical_low - square_footage) / cal.sqft_typical_low
        elif square_footage > cal.sqft_typical_high:
            distance = (square_footage - cal.sqft_typical_high) / cal.sqft_typical_high
        else:
            return 1.0
        return max(CONFIDENCE_MIN_RANGE_FACTOR, 1.0 - (1.0 - CONFIDENCE_MIN_RANGE_FACTOR) * min(distance, 1.0))

    def _confidence(
        self,
        features: PropertyFeatures,
        city_key: Optional[str],
        clamped: bool,
    ) -> float:
        cal = self.calibration
        confidence = 0.5 + 0.45 * min(abs(cal.sqft_price_correlation), 1.0)
        confidence *= 0.6 + 0.4 * features.supplied_count / FEATURE_COUNT

        if city_key is None:
            confidence *= CONFIDENCE_UNKNOWN_CITY
        else:
            count = cal.city_counts.get(city_key)
            if count is None:
                confidence *= 0.95
            else:
                confidence *= 0.9 + 0.1 * count / (count + CITY_SHRINKAGE_SAMPLES)

        confidence *= self._range_factor(features.square_footage)
        if clamped:
            confidence *= CONFIDENCE_CLAMPED
        return round(min(max(confidence, 0.0), 1.0), 4)

    def estimate(self, features: PropertyFeatures) -> FeatureEstimate:
        """Estimate a price from property features.

        Args:
            features: Property attributes; any may be missing.

        Returns:
            FeatureEstimate with price, tier label, confidence and factors.

        Raises:
            InvalidFeatureError: If square footage is not positive or a
                room count is negative.
        """
        features.validate()
        cal = self.calibration
        factors: Dict[str, str] = {}

        base = self._base_price(features, factors)
        multiplier, city_key = self._city(features, factors)
        price = base * multiplier + self._rooms(features, factors)

        if features.square_footage is not None and not (
            cal.sqft_typical_low <= features.square_footage <= cal.sqft_typical_high
        ):
            factors["square_footage_range"] = (
                f"{features.square_footage:,.0f} sqft is outside the well-represented range "
                f"({cal.sqft_typical_low:,.0f}-{cal.sqft_typical_high:,.0f} sqft); confidence reduced"
            )

        clamped = False
        if price < self.price_floor:
            factors["price_floor"] = (
                f"Raw estimate {format_price(price)} raised to the minimum of {format_price(self.price_floor)}"
            )
            price = self.price_floor
            clamped = True
        elif price > self.price_ceiling:
            factors["above_typical_range"] = (
                f"Estimate is above the typical range (over {format_price(self.price_ceiling)})"
            )
            clamped = True

        predicted_price = float(round(price))
        result = FeatureEstimate(
            predicted_price=predicted_price,
            price_range_label=tier_for_price(predicted_price, self.bands).value,
            confidence=self._confidence(features, city_key, clamped),
            factors=factors,
        )
        logger.debug(
            "Estimated %s for %s (confidence %.3f)",
            format_price(predicted_price),
            features,
            result.confidence,
        )
        return result
