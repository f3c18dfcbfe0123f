"""
Feature Estimator Calibration

Derives the constants of the rule-based price estimator from the
reference dataset:

1. Square footage: ordinary least squares fit of price on sqft
   (slope, intercept). Square footage is the dominant signal.
2. Rooms: the residuals of the sqft fit are regressed on
   (bedrooms - baseline_bed, bathrooms - baseline_bath) with a
   non-negativity constraint, so adding a room never lowers a price.
   Baselines are the dataset medians.
3. Cities: mean city price over the overall mean price, shrunk toward
   the neutral multiplier for cities with few records:
   m = (n * raw + k) / (n + k), with k = CITY_SHRINKAGE_SAMPLES.
4. The 5th-95th percentile sqft range marks the well-represented sizes
   used by confidence scoring.

The result is an immutable Calibration, saved and loaded as JSON.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_absolute_error, mean_absolute_percentage_error, r2_score

from pricelens.config import Config, get_config
from pricelens.core.constants import (
    CITY_SHRINKAGE_SAMPLES,
    MIN_CALIBRATION_SAMPLES,
    SQFT_TYPICAL_PERCENTILES,
)
from pricelens.core.dataset import load_reference_dataset
from pricelens.exceptions import (
    CalibrationError,
    ConfigurationError,
    DatasetNotFoundError,
    InsufficientDataError,
)
from pricelens.logging_config import get_logger
from pricelens.utils.normalization import city_base_name, normalize_city

logger = get_logger(__name__)

_MAPPING_FIELDS = ("city_multipliers", "city_counts", "city_labels", "metrics")


@dataclass(frozen=True)
class Calibration:
    """Calibration constants of the feature-based estimator.

    Mapping fields are exposed read-only; a Calibration is shared by all
    requests and never mutated after construction.
    """

    sqft_slope: float
    sqft_intercept: float
    baseline_bed: float
    baseline_bath: float
    bed_increment: float = 0.0
    bath_increment: float = 0.0
    sqft_typical_low: float = 0.0
    sqft_typical_high: float = float("inf")
    sqft_median: float = 0.0
    median_price: float = 0.0
    sqft_price_correlation: float = 0.0
    sample_count: int = 0
    city_multipliers: Mapping[str, float] = field(default_factory=dict)
    city_counts: Mapping[str, int] = field(default_factory=dict)
    city_labels: Mapping[str, str] = field(default_factory=dict)
    metrics: Mapping[str, float] = field(default_factory=dict)
    calibrated_at: str = ""
    source: str = ""

    def __post_init__(self):
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def lookup_city(self, city: Optional[str]) -> Optional[Tuple[str, float]]:
        """Find a city's multiplier.

        Matching is case-insensitive and whitespace-normalized. A bare city
        name ("Pasadena") also matches a "<name>, <state>" entry when
        exactly one such entry exists.

        Returns:
            (normalized key, multiplier), or None for unknown cities.
        """
        key = normalize_city(city)
        if key is None:
            return None
        if key in self.city_multipliers:
            return key, self.city_multipliers[key]
        if "," not in key:
            candidates = [k for k in self.city_multipliers if city_base_name(k) == key]
            if len(candidates) == 1:
                return candidates[0], self.city_multipliers[candidates[0]]
        return None

    def city_label(self, key: str) -> str:
        return self.city_labels.get(key, key.title())

    def with_overrides(
        self,
        city_multipliers: Optional[Mapping[str, float]] = None,
        **constants: float,
    ) -> "Calibration":
        """Return a copy with pinned constants and/or a replacement city table."""
        changes: Dict[str, Any] = {key: float(value) for key, value in constants.items()}
        if city_multipliers is not None:
            changes["city_multipliers"] = dict(city_multipliers)
            changes["city_counts"] = {k: v for k, v in self.city_counts.items() if k in city_multipliers}
        if not changes:
            return self
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            data[name] = dict(value) if name in _MAPPING_FIELDS else value
        if data["sqft_typical_high"] == float("inf"):
            data["sqft_typical_high"] = None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Calibration":
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        if known.get("sqft_typical_high") is None:
            known.pop("sqft_typical_high", None)
        missing = [name for name in ("sqft_slope", "sqft_intercept", "baseline_bed", "baseline_bath") if name not in known]
        if missing:
            raise CalibrationError(f"Calibration is missing fields: {', '.join(missing)}")
        return cls(**known)

    def save(self, path: str) -> None:
        """Save calibration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        logger.info("Calibration saved to: %s", path)

    @classmethod
    def load(cls, path: str) -> "Calibration":
        """Load calibration from a JSON file.

        Raises:
            CalibrationError: If the file is unreadable or incomplete.
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CalibrationError(f"Could not read calibration file {path}: {e}") from e
        calibration = cls.from_dict(data)
        logger.info("Calibration loaded from %s", path)
        return calibration


def _city_tables(data: pd.DataFrame) -> Tuple[Dict[str, float], Dict[str, int], Dict[str, str]]:
    cities = data[data["city"].notna()]
    cities = cities.assign(city_key=cities["city"].map(normalize_city))
    cities = cities[cities["city_key"].notna()]
    if cities.empty:
        return {}, {}, {}

    overall_mean = float(data["price"].mean())
    grouped = cities.groupby("city_key", sort=True)
    means = grouped["price"].mean()
    counts = grouped["price"].count()
    labels = grouped["city"].agg(lambda s: s.value_counts().index[0])

    multipliers = {}
    for key in means.index:
        n = int(counts[key])
        raw = float(means[key]) / overall_mean
        shrunk = (n * raw + CITY_SHRINKAGE_SAMPLES) / (n + CITY_SHRINKAGE_SAMPLES)
        multipliers[key] = round(shrunk, 4)

    return (
        multipliers,
        {key: int(count) for key, count in counts.items()},
        {key: str(label) for key, label in labels.items()},
    )


def calibrate(
    dataset: pd.DataFrame,
    min_samples: int = MIN_CALIBRATION_SAMPLES,
    source: str = "",
) -> Calibration:
    """Calibrate the estimator from a normalized reference dataset.

    Args:
        dataset: Frame with price, square_footage, bedrooms, bathrooms, city.
        min_samples: Minimum usable rows required.
        source: Description of where the data came from (stored for reference).

    Returns:
        Calibration constants.

    Raises:
        InsufficientDataError: If fewer than min_samples usable rows.
        CalibrationError: If square footage carries no usable price signal.
    """
    data = dataset.dropna(subset=["price", "square_footage"])
    data = data[(data["price"] > 0) & (data["square_footage"] > 0)].copy()

    if len(data) < min_samples:
        raise InsufficientDataError(
            f"Insufficient calibration data: {len(data)} samples (minimum: {min_samples})",
            required=min_samples,
            available=len(data),
        )

    logger.info("Calibrating feature estimator on %d records", len(data))

    sqft = data["square_footage"].to_numpy(dtype=float)
    price = data["price"].to_numpy(dtype=float)
    if np.std(sqft) == 0:
        raise CalibrationError("Square footage is constant in the reference data")

    # 1. Square footage
    sqft_model = LinearRegression().fit(sqft.reshape(-1, 1), price)
    slope = float(sqft_model.coef_[0])
    intercept = float(sqft_model.intercept_)
    if slope <= 0:
        raise CalibrationError(f"Square footage slope is not positive ({slope:.2f}); data is unusable")
    base_pred = sqft_model.predict(sqft.reshape(-1, 1))
    correlation = float(np.corrcoef(sqft, price)[0, 1])

    # 2. Rooms
    baseline_bed = float(round(data["bedrooms"].median())) if data["bedrooms"].notna().any() else 3.0
    baseline_bath = float(round(data["bathrooms"].median(), 1)) if data["bathrooms"].notna().any() else 2.0

    bed_increment = bath_increment = 0.0
    full_pred = base_pred.copy()
    rooms_mask = (data["bedrooms"].notna() & data["bathrooms"].notna()).to_numpy()
    if rooms_mask.sum() >= min_samples:
        rooms = np.column_stack([
            data["bedrooms"].to_numpy(dtype=float)[rooms_mask] - baseline_bed,
            data["bathrooms"].to_numpy(dtype=float)[rooms_mask] - baseline_bath,
        ])
        residual = price[rooms_mask] - base_pred[rooms_mask]
        rooms_model = LinearRegression(positive=True).fit(rooms, residual)
        bed_increment = round(float(rooms_model.coef_[0]), 2)
        bath_increment = round(float(rooms_model.coef_[1]), 2)
        full_pred[rooms_mask] += rooms @ np.array([bed_increment, bath_increment])
    else:
        logger.warning("Too few records with room counts; bedroom/bathroom modifiers disabled")

    # 3. Cities
    multipliers, counts, labels = _city_tables(data)

    # 4. Well-represented sqft range
    low_pct, high_pct = SQFT_TYPICAL_PERCENTILES
    typical_low, typical_high = (float(v) for v in np.percentile(sqft, [low_pct, high_pct]))

    metrics = {
        "r2_sqft": float(r2_score(price, base_pred)),
        "mae_sqft": float(mean_absolute_error(price, base_pred)),
        "r2": float(r2_score(price, full_pred)),
        "mae": float(mean_absolute_error(price, full_pred)),
        "mape": float(mean_absolute_percentage_error(price, full_pred) * 100),
    }

    logger.info("Sqft/price correlation: %.3f", correlation)
    logger.info("Slope: $%.2f/sqft, intercept: $%.0f", slope, intercept)
    logger.info("Bedroom increment: $%.0f, bathroom increment: $%.0f", bed_increment, bath_increment)
    logger.info("R² Score: %.4f, MAE: $%.0f", metrics["r2"], metrics["mae"])
    logger.info("Calibrated %d city multipliers", len(multipliers))

    return Calibration(
        sqft_slope=round(slope, 4),
        sqft_intercept=round(intercept, 2),
        baseline_bed=baseline_bed,
        baseline_bath=baseline_bath,
        bed_increment=bed_increment,
        bath_increment=bath_increment,
        sqft_typical_low=round(typical_low, 1),
        sqft_typical_high=round(typical_high, 1),
        sqft_median=float(np.median(sqft)),
        median_price=float(np.median(price)),
        sqft_price_correlation=round(correlation, 4),
        sample_count=int(len(data)),
        city_multipliers=multipliers,
        city_counts=counts,
        city_labels=labels,
        metrics=metrics,
        calibrated_at=datetime.now().isoformat(),
        source=source,
    )


def load_city_table(path: str) -> Dict[str, float]:
    """Load a city -> multiplier table from JSON (object) or CSV (city,multiplier).

    Raises:
        ConfigurationError: If the file is missing, malformed, or holds a
            non-positive multiplier.
    """
    table_path = Path(path)
    if not table_path.exists():
        raise ConfigurationError(f"City table not found: {path}")

    try:
        if table_path.suffix.lower() == ".json":
            with open(table_path, "r") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ConfigurationError(f"City table {path} must be a JSON object")
            items = raw.items()
        else:
            frame = pd.read_csv(table_path)
            frame.columns = [str(col).strip().lower() for col in frame.columns]
            if not {"city", "multiplier"} <= set(frame.columns):
                raise ConfigurationError(f"City table {path} needs 'city' and 'multiplier' columns")
            items = zip(frame["city"], frame["multiplier"])
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise ConfigurationError(f"Could not read city table {path}: {e}") from e

    table = {}
    for city, multiplier in items:
        key = normalize_city(city)
        try:
            value = float(multiplier)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid multiplier for {city!r}: {multiplier!r}") from e
        if key is None or not np.isfinite(value) or value <= 0:
            raise ConfigurationError(f"Invalid city table entry: {city!r} -> {multiplier!r}")
        table[key] = value

    logger.info("Loaded %d city multipliers from %s", len(table), path)
    return table


def load_calibration(config: Optional[Config] = None) -> Calibration:
    """Build the estimator calibration from configuration.

    Order: the saved calibration JSON if present, otherwise a fresh
    calibration over the configured reference dataset. Configured
    constants and the external city table are applied on top.

    Raises:
        ConfigurationError: If neither a calibration file nor a dataset is available.
    """
    if config is None:
        config = get_config()

    calibration_path = config.estimator.calibration_path
    if calibration_path and Path(calibration_path).exists():
        calibration = Calibration.load(calibration_path)
    else:
        try:
            dataset = load_reference_dataset(config.dataset.path, config.dataset.table)
        except DatasetNotFoundError as e:
            raise ConfigurationError(
                f"No calibration at {calibration_path} and no reference dataset at {config.dataset.path}"
            ) from e
        calibration = calibrate(dataset, source=config.dataset.path)

    city_table = None
    if config.estimator.city_table:
        city_table = load_city_table(config.estimator.city_table)

    return calibration.with_overrides(city_multipliers=city_table, **config.estimator.calibration_overrides)
