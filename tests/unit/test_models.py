"""
Unit tests for data models and feature normalization helpers.
"""

import pytest

from pricelens.core.models import DatasetStatistics, PriceBucket, PriceTier, PropertyFeatures
from pricelens.exceptions import InvalidFeatureError
from pricelens.utils.normalization import (
    city_base_name,
    describe_bathrooms,
    normalize_city,
    parse_count,
    parse_number,
    split_bathrooms,
)


class TestPriceTier:
    """Tests for PriceTier."""

    def test_canonical_order(self):
        assert [t.value for t in PriceTier.ordered()] == ["Low", "Mid", "High"]

    @pytest.mark.parametrize("label", ["mid", " MID ", "Mid"])
    def test_from_label(self, label):
        assert PriceTier.from_label(label) is PriceTier.MID

    def test_unknown_label(self):
        with pytest.raises(ValueError):
            PriceTier.from_label("Luxury")


class TestPropertyFeatures:
    """Tests for PropertyFeatures."""

    def test_from_form_values(self, house_features):
        features = PropertyFeatures.from_mapping(house_features)
        assert features == PropertyFeatures(1500.0, 3, 2.0, "Los Angeles, CA")
        assert features.supplied_count == 4

    def test_from_json_names(self):
        features = PropertyFeatures.from_mapping({
            "square_footage": 2100, "bedrooms": 4, "bathrooms": 2.1, "city": "  Pasadena, CA ",
        })
        assert features.bathrooms == 2.1
        assert features.city == "Pasadena, CA"

    def test_blank_values_are_missing(self):
        features = PropertyFeatures.from_mapping({"sqft": "1,800", "bed": "", "bath": None, "city": "  "})
        assert features.square_footage == 1800.0
        assert features.bedrooms is None
        assert features.bathrooms is None
        assert features.city is None
        assert features.supplied_count == 1

    @pytest.mark.parametrize("data,field", [
        ({"sqft": "large"}, "square_footage"),
        ({"bed": "2.5"}, "bedrooms"),
        ({"bath": "inf"}, "bathrooms"),
        ({"sqft": True}, "square_footage"),
    ])
    def test_invalid_values(self, data, field):
        with pytest.raises(InvalidFeatureError) as exc_info:
            PropertyFeatures.from_mapping(data)
        assert exc_info.value.field == field

    @pytest.mark.parametrize("features,field", [
        (PropertyFeatures(square_footage=float("nan")), "square_footage"),
        (PropertyFeatures(bathrooms=float("inf")), "bathrooms"),
        (PropertyFeatures(bedrooms=2.5), "bedrooms"),
        (PropertyFeatures(bedrooms=True), "bedrooms"),
    ])
    def test_validate_rejects_non_finite_and_fractional(self, features, field):
        with pytest.raises(InvalidFeatureError) as exc_info:
            features.validate()
        assert exc_info.value.field == field

    def test_validate(self):
        PropertyFeatures(square_footage=1, bedrooms=0, bathrooms=0).validate()
        with pytest.raises(InvalidFeatureError) as exc_info:
            PropertyFeatures(square_footage=0).validate()
        assert exc_info.value.field == "square_footage"


class TestDatasetStatistics:
    """Tests for DatasetStatistics helpers."""

    def test_percentage(self):
        stats = DatasetStatistics(total_count=3)
        assert stats.percentage(1) == 33.3
        assert DatasetStatistics().percentage(0) == 0.0

    def test_api_dict_adds_percentages(self):
        stats = DatasetStatistics(
            total_count=4,
            price_range_buckets={"low": PriceBucket(min=1, max=2, count=1)},
        )
        assert stats.to_api_dict()["price_ranges"]["low"] == {"min": 1, "max": 2, "count": 1, "percentage": 25.0}


class TestNormalization:
    """Tests for normalization helpers."""

    @pytest.mark.parametrize("raw,expected", [
        ("Los Angeles, CA", "los angeles, ca"),
        ("  Los   Angeles ,CA ", "los angeles, ca"),
        ("SAN DIEGO", "san diego"),
        ("", None),
        (None, None),
        (float("nan"), None),
    ])
    def test_normalize_city(self, raw, expected):
        assert normalize_city(raw) == expected

    def test_city_base_name(self):
        assert city_base_name("pasadena, ca") == "pasadena"
        assert city_base_name("pasadena") == "pasadena"

    def test_parse_number(self):
        assert parse_number(" 1,500 ", "square_footage") == 1500.0
        assert parse_number(3, "bedrooms") == 3.0
        assert parse_number("", "bedrooms") is None

    def test_parse_count(self):
        assert parse_count("3", "bedrooms") == 3
        assert parse_count(4.0, "bedrooms") == 4
        with pytest.raises(InvalidFeatureError):
            parse_count(2.5, "bedrooms")

    @pytest.mark.parametrize("value,expected", [
        (2.1, (2, 1)),
        (3, (3, 0)),
        (1.2, (1, 2)),
        (0, (0, 0)),
    ])
    def test_split_bathrooms(self, value, expected):
        assert split_bathrooms(value) == expected

    def test_describe_bathrooms(self):
        assert describe_bathrooms(2.1) == "2 full baths + 1 half bath"
        assert describe_bathrooms(1) == "1 full bath"
        assert describe_bathrooms(3.2) == "3 full baths + 2 half baths"
