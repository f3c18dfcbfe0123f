"""
Unit tests for configuration loading.
"""

import pytest

from pricelens.config import EstimatorConfig, ImageModelConfig, get_config, reset_config
from pricelens.exceptions import ConfigurationError


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_singleton(self, test_config):
        assert get_config() is test_config

    def test_paths_from_environment(self, test_config, reference_csv):
        assert test_config.dataset.path == reference_csv
        assert test_config.dataset.table == "houses"
        assert test_config.image_model.load_on_startup is False

    def test_metadata_sidecar_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PRICELENS_IMAGE_MODEL_METADATA", raising=False)
        monkeypatch.setenv("PRICELENS_IMAGE_MODEL_PATH", str(tmp_path / "tiers.joblib"))
        assert ImageModelConfig().metadata_path == str(tmp_path / "tiers.json")

    def test_default_price_bounds(self, test_config):
        assert test_config.estimator.price_floor == 195_000
        assert test_config.estimator.price_ceiling == 2_000_000
        assert test_config.estimator.calibration_overrides == {}

    def test_pinned_constants(self, monkeypatch):
        monkeypatch.setenv("PRICELENS_SQFT_SLOPE", "240.5")
        monkeypatch.setenv("PRICELENS_BASELINE_BED", "3")
        monkeypatch.delenv("PRICELENS_SQFT_INTERCEPT", raising=False)
        monkeypatch.delenv("PRICELENS_BASELINE_BATH", raising=False)
        assert EstimatorConfig().calibration_overrides == {"sqft_slope": 240.5, "baseline_bed": 3.0}

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("PRICELENS_PRICE_FLOOR", "cheap")
        with pytest.raises(ConfigurationError):
            EstimatorConfig()

    @pytest.mark.parametrize("floor,ceiling", [("0", "2000000"), ("500000", "400000")])
    def test_invalid_bounds(self, monkeypatch, floor, ceiling):
        monkeypatch.setenv("PRICELENS_PRICE_FLOOR", floor)
        monkeypatch.setenv("PRICELENS_PRICE_CEILING", ceiling)
        with pytest.raises(ConfigurationError):
            EstimatorConfig()

    def test_reset(self, test_config):
        reset_config()
        assert get_config() is not test_config
