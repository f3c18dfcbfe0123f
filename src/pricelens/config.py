"""
Centralized Configuration Module

Provides configuration classes and environment variable loading for all components.

Usage:
    from pricelens.config import get_config

    config = get_config()
    dataset_path = config.dataset.path
    floor = config.estimator.price_floor
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from pricelens.exceptions import ConfigurationError

# Load .env file if present
load_dotenv()


def _get_project_root() -> Path:
    """Get the project root directory."""
    # Go up: config.py -> pricelens -> src -> project_root
    return Path(__file__).resolve().parent.parent.parent


def _resolve(path: Optional[str]) -> Optional[str]:
    if path and not os.path.isabs(path):
        return str(_get_project_root() / path)
    return path


def _env_float(name: str, default: Optional[float] = None) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class DatasetConfig:
    """Reference dataset configuration."""

    path: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_DATASET_PATH",
        str(_get_project_root() / "data" / "socal_houses.csv")
    ))
    table: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_DATASET_TABLE", "houses"
    ))

    def __post_init__(self):
        self.path = _resolve(self.path)


@dataclass
class ImageModelConfig:
    """Pretrained image classifier configuration."""

    model_path: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_IMAGE_MODEL_PATH",
        str(_get_project_root() / "models" / "image_classifier.joblib")
    ))
    metadata_path: Optional[str] = field(default_factory=lambda: os.getenv(
        "PRICELENS_IMAGE_MODEL_METADATA"
    ))
    load_on_startup: bool = field(default_factory=lambda: _env_bool(
        "PRICELENS_LOAD_MODEL_ON_STARTUP", "true"
    ))

    def __post_init__(self):
        self.model_path = _resolve(self.model_path)
        if self.metadata_path is None:
            # Sidecar next to the artifact: image_classifier.joblib -> image_classifier.json
            self.metadata_path = str(Path(self.model_path).with_suffix(".json"))
        self.metadata_path = _resolve(self.metadata_path)


@dataclass
class EstimatorConfig:
    """Feature-based estimator configuration.

    The calibration constants are normally derived from the reference
    dataset. Any of them can be pinned through the environment.
    """

    calibration_path: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_CALIBRATION_PATH",
        str(_get_project_root() / "models" / "calibration.json")
    ))
    city_table: Optional[str] = field(default_factory=lambda: os.getenv(
        "PRICELENS_CITY_TABLE"
    ))
    sqft_slope: Optional[float] = field(default_factory=lambda: _env_float("PRICELENS_SQFT_SLOPE"))
    sqft_intercept: Optional[float] = field(default_factory=lambda: _env_float("PRICELENS_SQFT_INTERCEPT"))
    baseline_bed: Optional[float] = field(default_factory=lambda: _env_float("PRICELENS_BASELINE_BED"))
    baseline_bath: Optional[float] = field(default_factory=lambda: _env_float("PRICELENS_BASELINE_BATH"))
    price_floor: float = field(default_factory=lambda: _env_float("PRICELENS_PRICE_FLOOR", 195_000.0))
    price_ceiling: float = field(default_factory=lambda: _env_float("PRICELENS_PRICE_CEILING", 2_000_000.0))

    def __post_init__(self):
        self.calibration_path = _resolve(self.calibration_path)
        self.city_table = _resolve(self.city_table)
        if self.price_floor <= 0 or self.price_floor >= self.price_ceiling:
            raise ConfigurationError(
                f"Invalid price bounds: floor={self.price_floor}, ceiling={self.price_ceiling}"
            )

    @property
    def calibration_overrides(self) -> dict:
        """Constants pinned through the environment, keyed by calibration field."""
        overrides = {
            "sqft_slope": self.sqft_slope,
            "sqft_intercept": self.sqft_intercept,
            "baseline_bed": self.baseline_bed,
            "baseline_bath": self.baseline_bath,
        }
        return {key: value for key, value in overrides.items() if value is not None}


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_API_HOST", "127.0.0.1"
    ))
    port: int = field(default_factory=lambda: int(os.getenv(
        "PRICELENS_API_PORT", "5000"
    )))
    debug: bool = field(default_factory=lambda: _env_bool("PRICELENS_DEBUG"))
    max_upload_mb: float = field(default_factory=lambda: _env_float("PRICELENS_MAX_UPLOAD_MB", 10.0))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv(
        "PRICELENS_LOG_LEVEL", "INFO"
    ).upper())
    log_file: Optional[str] = field(default_factory=lambda: os.getenv(
        "PRICELENS_LOG_FILE"
    ))

    def __post_init__(self):
        # Validate log level
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level not in valid_levels:
            self.level = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    image_model: ImageModelConfig = field(default_factory=ImageModelConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    api: APIConfig = field(default_factory=APIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The application configuration.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the configuration (useful for testing)."""
    global _config
    _config = None
