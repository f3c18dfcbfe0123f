"""
Prediction Combiner

Puts the image tier prediction and the feature-based estimate side by
side. It never re-estimates; it only annotates how the two relate.
"""

from typing import List, Optional

from pricelens.core.models import (
    CombinedResult,
    ComponentError,
    ComponentStatus,
    FeatureEstimate,
    TierPrediction,
)
from pricelens.logging_config import get_logger
from pricelens.utils.price_parser import format_price, format_price_range

logger = get_logger(__name__)


def _status(result, error: Optional[Exception]) -> ComponentStatus:
    if result is not None:
        return ComponentStatus.OK
    if error is not None:
        return ComponentStatus.FAILED
    return ComponentStatus.NOT_RUN


def _reconcile(image_result: TierPrediction, feature_result: FeatureEstimate) -> List[str]:
    image_tier = image_result.tier.value
    feature_tier = feature_result.price_range_label
    band = image_result.price_band

    if image_tier == feature_tier:
        notes = [
            f"Image and feature models agree on the {image_tier} tier; "
            "visual and quantitative signals are consistent"
        ]
    else:
        notes = [
            f"Image suggests {image_tier}, feature model suggests {feature_tier}; "
            "visual and quantitative signals diverge"
        ]

    band_text = format_price_range(band.min, band.max, open_ended=band.open_ended)
    price_text = format_price(feature_result.predicted_price)
    if band.contains(feature_result.predicted_price):
        notes.append(f"Feature estimate {price_text} falls inside the image tier's band ({band_text})")
    elif feature_result.predicted_price < band.min:
        gap = band.min - feature_result.predicted_price
        notes.append(
            f"Feature estimate {price_text} is {format_price(gap)} below the image tier's band ({band_text})"
        )
    else:
        gap = feature_result.predicted_price - band.max
        notes.append(
            f"Feature estimate {price_text} is {format_price(gap)} above the image tier's band ({band_text})"
        )
    return notes


def combine(
    image_result: Optional[TierPrediction],
    feature_result: Optional[FeatureEstimate],
    image_error: Optional[Exception] = None,
    feature_error: Optional[Exception] = None,
) -> CombinedResult:
    """Merge the two estimator outputs into one report.

    Args:
        image_result: Image tier prediction, or None if not computed.
        feature_result: Feature estimate, or None if not computed.
        image_error: Why the image side failed, if it did.
        feature_error: Why the feature side failed, if it did.

    Returns:
        CombinedResult; a missing side is marked not_run or failed.
    """
    image_status = _status(image_result, image_error)
    feature_status = _status(feature_result, feature_error)

    notes: List[str] = []
    tiers_agree = None

    if image_result is not None and feature_result is not None:
        tiers_agree = image_result.tier.value == feature_result.price_range_label
        notes.extend(_reconcile(image_result, feature_result))
    else:
        for name, status, error in (
            ("Image classification", image_status, image_error),
            ("Feature-based estimate", feature_status, feature_error),
        ):
            if status is ComponentStatus.FAILED:
                notes.append(f"{name} failed: {error}")
            elif status is ComponentStatus.NOT_RUN:
                notes.append(f"{name} was not run")

    if image_status is ComponentStatus.FAILED or feature_status is ComponentStatus.FAILED:
        logger.info("Combined prediction with partial results (image=%s, data=%s)",
                    image_status.value, feature_status.value)

    return CombinedResult(
        image_result=image_result,
        feature_result=feature_result,
        image_status=image_status,
        feature_status=feature_status,
        image_error=ComponentError.from_exception(image_error) if image_result is None and image_error else None,
        feature_error=(
            ComponentError.from_exception(feature_error) if feature_result is None and feature_error else None
        ),
        tiers_agree=tiers_agree,
        reconciliation_notes=notes,
    )
