"""
Data Models for PriceLens

Dataclass definitions for property features, image and feature-based
predictions, combined results and dataset statistics.
"""

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional

from pricelens.exceptions import InvalidFeatureError
from pricelens.utils.normalization import parse_count, parse_number


class PriceTier(str, Enum):
    """Price category predicted by the image classifier.

    Declaration order is the canonical order (Low, Mid, High) used for
    the classifier output vector and for tie-breaking.
    """

    LOW = "Low"
    MID = "Mid"
    HIGH = "High"

    @classmethod
    def ordered(cls) -> List["PriceTier"]:
        return list(cls)

    @classmethod
    def from_label(cls, label: str) -> "PriceTier":
        for tier in cls:
            if tier.value.lower() == str(label).strip().lower():
                return tier
        raise ValueError(f"Unknown price tier: {label!r}")


class ComponentStatus(str, Enum):
    """Outcome of one estimator inside a combined prediction."""

    OK = "ok"
    NOT_RUN = "not_run"
    FAILED = "failed"


# Keys accepted when parsing raw request data
_FEATURE_KEYS = {
    "square_footage": ("square_footage", "sqft"),
    "bedrooms": ("bedrooms", "bed", "beds"),
    "bathrooms": ("bathrooms", "bath", "baths"),
    "city": ("city", "citi"),
}


def _first_present(data: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class PropertyFeatures:
    """Structured property attributes supplied by the user.

    Any attribute may be None (not supplied). Bathrooms use the full.half
    convention: 2.1 is 2 full baths and 1 half bath.
    """

    square_footage: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    city: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PropertyFeatures":
        """Build features from raw JSON or form values.

        Raises:
            InvalidFeatureError: If a value is present but not numeric.
        """
        city = _first_present(data, _FEATURE_KEYS["city"])
        if city is not None:
            city = str(city).strip() or None
        return cls(
            square_footage=parse_number(_first_present(data, _FEATURE_KEYS["square_footage"]), "square_footage"),
            bedrooms=parse_count(_first_present(data, _FEATURE_KEYS["bedrooms"]), "bedrooms"),
            bathrooms=parse_number(_first_present(data, _FEATURE_KEYS["bathrooms"]), "bathrooms"),
            city=city,
        )

    @property
    def supplied_count(self) -> int:
        """Number of the four features that were supplied."""
        values = (self.square_footage, self.bedrooms, self.bathrooms, self.city)
        return sum(1 for value in values if value is not None)

    def validate(self) -> None:
        """Check numeric ranges.

        Raises:
            InvalidFeatureError: If a number is not finite, square footage is
                not positive, bedrooms is fractional or a room count is
                negative.
        """
        for name in ("square_footage", "bedrooms", "bathrooms"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise InvalidFeatureError(f"{name} must be a finite number, got {value!r}", field=name, value=value)
        if self.bedrooms is not None and not float(self.bedrooms).is_integer():
            raise InvalidFeatureError(
                f"bedrooms must be a whole number, got {self.bedrooms}",
                field="bedrooms",
                value=self.bedrooms,
            )
        if self.square_footage is not None and self.square_footage <= 0:
            raise InvalidFeatureError(
                f"square_footage must be positive, got {self.square_footage}",
                field="square_footage",
                value=self.square_footage,
            )
        if self.bedrooms is not None and self.bedrooms < 0:
            raise InvalidFeatureError(
                f"bedrooms must not be negative, got {self.bedrooms}",
                field="bedrooms",
                value=self.bedrooms,
            )
        if self.bathrooms is not None and self.bathrooms < 0:
            raise InvalidFeatureError(
                f"bathrooms must not be negative, got {self.bathrooms}",
                field="bathrooms",
                value=self.bathrooms,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class PriceBand:
    """Currency interval associated with a price tier."""

    tier: PriceTier
    min: int
    max: int
    open_ended: bool = False

    def contains(self, price: float) -> bool:
        if price < self.min:
            return False
        return self.open_ended or price <= self.max

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "tier": self.tier.value,
            "min": self.min,
            "max": self.max,
            "open_ended": self.open_ended,
        }


@dataclass(frozen=True)
class TierPrediction:
    """Image classifier result, together with the tier's price band."""

    tier: PriceTier
    confidence: float
    per_tier_confidences: Dict[str, float]
    price_band: PriceBand

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "tier": self.tier.value,
            "confidence": self.confidence,
            "per_tier_confidences": dict(self.per_tier_confidences),
            "price_band": self.price_band.to_dict(),
        }


@dataclass(frozen=True)
class FeatureEstimate:
    """Feature-based point estimate with explanatory factors."""

    predicted_price: float
    price_range_label: str
    confidence: float
    factors: Dict[str, str] = field(default_factory=dict)

    @property
    def tier(self) -> PriceTier:
        return PriceTier.from_label(self.price_range_label)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "predicted_price": self.predicted_price,
            "price_range": self.price_range_label,
            "confidence": self.confidence,
            "factors": dict(self.factors),
        }


@dataclass(frozen=True)
class ComponentError:
    """Error recorded for an estimator that failed inside a combined request."""

    error_type: str
    message: str

    @classmethod
    def from_exception(cls, error: Exception) -> "ComponentError":
        return cls(error_type=type(error).__name__, message=str(error))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class CombinedResult:
    """Both estimator outputs side by side, plus reconciliation notes.

    A side that was not computed is None and its status says why
    (not_run or failed), so "absent" is never confused with a zero result.
    """

    image_result: Optional[TierPrediction]
    feature_result: Optional[FeatureEstimate]
    image_status: ComponentStatus
    feature_status: ComponentStatus
    image_error: Optional[ComponentError] = None
    feature_error: Optional[ComponentError] = None
    tiers_agree: Optional[bool] = None
    reconciliation_notes: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return (self.image_status is ComponentStatus.OK) != (self.feature_status is ComponentStatus.OK)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "image_prediction": self.image_result.to_dict() if self.image_result else None,
            "data_prediction": self.feature_result.to_dict() if self.feature_result else None,
            "image_status": self.image_status.value,
            "data_status": self.feature_status.value,
            "image_error": self.image_error.to_dict() if self.image_error else None,
            "data_error": self.feature_error.to_dict() if self.feature_error else None,
            "tiers_agree": self.tiers_agree,
            "reconciliation_notes": list(self.reconciliation_notes),
        }


@dataclass(frozen=True)
class PriceBucket:
    """Count of reference records inside one price band."""

    min: int
    max: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class HistogramBin:
    """One bin of a numeric histogram."""

    start: float
    end: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class DatasetStatistics:
    """Aggregate statistics of the reference dataset, for display only."""

    total_count: int = 0
    average_price: float = 0.0
    average_sqft: float = 0.0
    average_bed: float = 0.0
    average_bath: float = 0.0
    price_range_buckets: Dict[str, PriceBucket] = field(default_factory=dict)
    bed_distribution: Dict[str, int] = field(default_factory=dict)
    bath_distribution: Dict[str, int] = field(default_factory=dict)
    price_histogram: List[HistogramBin] = field(default_factory=list)
    sqft_histogram: List[HistogramBin] = field(default_factory=list)

    def percentage(self, count: int) -> float:
        """Share of the dataset, in percent, rounded to one decimal."""
        return round(count * 100.0 / (self.total_count or 1), 1)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_count": self.total_count,
            "average_price": self.average_price,
            "average_sqft": self.average_sqft,
            "average_bed": self.average_bed,
            "average_bath": self.average_bath,
            "price_range_buckets": {k: v.to_dict() for k, v in self.price_range_buckets.items()},
            "bed_distribution": dict(self.bed_distribution),
            "bath_distribution": dict(self.bath_distribution),
            "price_histogram": [b.to_dict() for b in self.price_histogram],
            "sqft_histogram": [b.to_dict() for b in self.sqft_histogram],
        }

    def to_api_dict(self) -> Dict[str, Any]:
        """Payload shape read by the statistics dashboard."""
        return {
            "total_houses": self.total_count,
            "avg_price": self.average_price,
            "avg_sqft": self.average_sqft,
            "avg_bed": self.average_bed,
            "avg_bath": self.average_bath,
            "price_ranges": {
                name: dict(bucket.to_dict(), percentage=self.percentage(bucket.count))
                for name, bucket in self.price_range_buckets.items()
            },
            "bed_distribution": dict(self.bed_distribution),
            "bath_distribution": dict(self.bath_distribution),
            "price_histogram": [b.to_dict() for b in self.price_histogram],
            "sqft_histogram": [b.to_dict() for b in self.sqft_histogram],
        }
