"""
Unit tests for the feature-based price estimator.
"""

import pytest

from pricelens.core.models import PropertyFeatures
from pricelens.exceptions import InvalidFeatureError
from pricelens.ml.price_estimator import FeaturePriceEstimator


def _features(**overrides):
    values = {"square_footage": 1500, "bedrooms": 3, "bathrooms": 2, "city": "Los Angeles, CA"}
    values.update(overrides)
    return PropertyFeatures(**values)


class TestEstimate:
    """Tests for FeaturePriceEstimator.estimate."""

    def test_typical_house_within_modeled_range(self, estimator):
        result = estimator.estimate(_features())
        assert 195_000 <= result.predicted_price <= 2_000_000
        assert result.factors
        assert 0 < result.confidence <= 1

    def test_required_factors_present(self, estimator):
        factors = estimator.estimate(_features()).factors
        assert list(factors)[:4] == ["base_price", "location", "bedrooms", "bathrooms"]
        assert all(isinstance(text, str) and text for text in factors.values())

    def test_deterministic(self, estimator):
        first = estimator.estimate(_features())
        second = estimator.estimate(_features())
        assert first == second

    def test_price_range_label_matches_band(self, estimator):
        result = estimator.estimate(_features())
        band = next(b for b in estimator.bands if b.tier.value == result.price_range_label)
        assert band.contains(result.predicted_price)

    def test_bedrooms_monotonic(self, estimator):
        prices = [estimator.estimate(_features(bedrooms=beds)).predicted_price for beds in range(0, 9)]
        assert prices == sorted(prices)

    def test_bathrooms_monotonic(self, estimator):
        prices = [estimator.estimate(_features(bathrooms=baths)).predicted_price for baths in (0, 1, 2, 3, 4, 5)]
        assert prices == sorted(prices)

    def test_larger_house_costs_more(self, estimator):
        small = estimator.estimate(_features(square_footage=1200))
        large = estimator.estimate(_features(square_footage=2800))
        assert large.predicted_price > small.predicted_price


class TestCityHandling:
    """Tests for city lookup and the unknown-city fallback."""

    def test_city_lookup_is_case_and_whitespace_insensitive(self, estimator):
        a = estimator.estimate(_features(city="Los Angeles, CA"))
        b = estimator.estimate(_features(city="  los   angeles ,ca "))
        assert a.predicted_price == b.predicted_price
        assert a.confidence == b.confidence

    def test_unknown_city_uses_neutral_multiplier(self, estimator, calibration):
        result = estimator.estimate(_features(city="Atlantis"))
        base = calibration.sqft_intercept + calibration.sqft_slope * 1500
        rooms = calibration.bed_increment * (3 - calibration.baseline_bed) \
            + calibration.bath_increment * (2 - calibration.baseline_bath)
        expected = base * 1.0 + rooms
        assert result.predicted_price == max(195_000, round(expected))
        assert "Unknown city" in result.factors["location"]
        assert "1.00" in result.factors["location"]

    def test_unknown_city_has_strictly_lower_confidence(self, estimator):
        known = estimator.estimate(_features())
        unknown = estimator.estimate(_features(city="Atlantis"))
        assert unknown.confidence < known.confidence

    def test_missing_city_is_not_an_error(self, estimator):
        result = estimator.estimate(_features(city=None))
        assert "City not provided" in result.factors["location"]

    def test_expensive_city_priced_higher(self, estimator):
        pasadena = estimator.estimate(_features(city="Pasadena, CA"))
        riverside = estimator.estimate(_features(city="Riverside, CA"))
        assert pasadena.predicted_price > riverside.predicted_price


class TestEdgeCases:
    """Tests for invalid input, fallbacks and clamping."""

    @pytest.mark.parametrize("sqft", [0, -1, -1500.5])
    def test_non_positive_square_footage_rejected(self, estimator, sqft):
        with pytest.raises(InvalidFeatureError):
            estimator.estimate(_features(square_footage=sqft))

    @pytest.mark.parametrize("overrides", [
        {"square_footage": float("nan")},
        {"square_footage": float("inf")},
        {"bathrooms": float("nan")},
        {"bathrooms": float("-inf")},
        {"bedrooms": 2.5},
    ])
    def test_non_finite_or_fractional_values_rejected(self, estimator, overrides):
        with pytest.raises(InvalidFeatureError) as exc_info:
            estimator.estimate(_features(**overrides))
        assert exc_info.value.field == next(iter(overrides))

    def test_negative_bedrooms_rejected(self, estimator):
        with pytest.raises(InvalidFeatureError):
            estimator.estimate(_features(bedrooms=-1))

    def test_negative_bathrooms_rejected(self, estimator):
        with pytest.raises(InvalidFeatureError):
            estimator.estimate(_features(bathrooms=-0.5))

    def test_missing_square_footage_falls_back_to_median(self, estimator, calibration):
        result = estimator.estimate(_features(square_footage=None, bedrooms=None, bathrooms=None, city=None))
        assert result.predicted_price == max(195_000, round(calibration.median_price))
        assert "missing_square_footage" in result.factors
        assert "missing_bedrooms" in result.factors
        assert "missing_bathrooms" in result.factors

    def test_missing_features_lower_confidence(self, estimator):
        complete = estimator.estimate(_features())
        partial = estimator.estimate(_features(bedrooms=None, bathrooms=None))
        assert partial.confidence < complete.confidence

    def test_tiny_house_clamped_to_floor(self, estimator):
        result = estimator.estimate(_features(square_footage=50, bedrooms=0, bathrooms=0, city="Riverside, CA"))
        assert result.predicted_price == 195_000
        assert "price_floor" in result.factors
        assert result.price_range_label == "Low"

    def test_huge_house_flagged_above_range_not_clipped(self, estimator):
        result = estimator.estimate(_features(square_footage=20_000, city="Pasadena, CA"))
        assert result.predicted_price > 2_000_000
        assert "above_typical_range" in result.factors
        assert result.price_range_label == "High"

    def test_extreme_size_lowers_confidence(self, estimator):
        typical = estimator.estimate(_features(square_footage=2000))
        extreme = estimator.estimate(_features(square_footage=9000))
        assert "square_footage_range" in extreme.factors
        assert extreme.confidence < typical.confidence
        assert extreme.confidence > 0

    def test_bathroom_factor_uses_full_half_convention(self, estimator):
        result = estimator.estimate(_features(bathrooms=2.1))
        assert "2 full baths + 1 half bath" in result.factors["bathrooms"]

    def test_custom_floor(self, calibration):
        estimator = FeaturePriceEstimator(calibration, price_floor=300_000, price_ceiling=2_000_000)
        result = estimator.estimate(_features(square_footage=100))
        assert result.predicted_price == 300_000
