"""
Unit tests for the prediction combiner.
"""

from pricelens.core.models import ComponentStatus, FeatureEstimate, PriceTier, TierPrediction
from pricelens.core.price_bands import band_for_tier
from pricelens.exceptions import DecodeError, InvalidFeatureError
from pricelens.ml.combiner import combine


def _image(tier=PriceTier.MID):
    confidences = {"Low": 0.1, "Mid": 0.1, "High": 0.1}
    confidences[tier.value] = 0.8
    return TierPrediction(
        tier=tier,
        confidence=0.8,
        per_tier_confidences=confidences,
        price_band=band_for_tier(tier),
    )


def _estimate(price=1_000_000, label="Mid"):
    return FeatureEstimate(
        predicted_price=price,
        price_range_label=label,
        confidence=0.7,
        factors={"base_price": "x"},
    )


class TestCombine:
    """Tests for combine()."""

    def test_agreement(self):
        result = combine(_image(PriceTier.MID), _estimate(1_000_000, "Mid"))
        assert result.image_status is ComponentStatus.OK
        assert result.feature_status is ComponentStatus.OK
        assert result.tiers_agree is True
        assert "agree on the Mid tier" in result.reconciliation_notes[0]
        assert "inside the image tier's band" in result.reconciliation_notes[1]
        assert not result.is_partial

    def test_disagreement_below_band(self):
        result = combine(_image(PriceTier.HIGH), _estimate(500_000, "Low"))
        assert result.tiers_agree is False
        assert result.reconciliation_notes[0].startswith("Image suggests High, feature model suggests Low")
        assert "$898,334 below" in result.reconciliation_notes[1]

    def test_disagreement_above_band(self):
        result = combine(_image(PriceTier.LOW), _estimate(900_000, "Mid"))
        assert result.tiers_agree is False
        assert "$103,334 above" in result.reconciliation_notes[1]

    def test_results_passed_through_unchanged(self):
        image, estimate = _image(), _estimate()
        result = combine(image, estimate)
        assert result.image_result is image
        assert result.feature_result is estimate

    def test_image_failed(self):
        error = DecodeError("Input is not a decodable image")
        result = combine(None, _estimate(), image_error=error)
        assert result.image_status is ComponentStatus.FAILED
        assert result.feature_status is ComponentStatus.OK
        assert result.image_error.error_type == "DecodeError"
        assert result.tiers_agree is None
        assert result.is_partial
        assert any("Image classification failed" in note for note in result.reconciliation_notes)

    def test_feature_not_run(self):
        result = combine(_image(), None)
        assert result.feature_status is ComponentStatus.NOT_RUN
        assert result.feature_error is None
        assert "Feature-based estimate was not run" in result.reconciliation_notes

    def test_both_failed(self):
        result = combine(
            None,
            None,
            image_error=DecodeError("bad image"),
            feature_error=InvalidFeatureError("square_footage must be positive"),
        )
        assert result.image_status is ComponentStatus.FAILED
        assert result.feature_status is ComponentStatus.FAILED
        assert not result.is_partial
        assert len(result.reconciliation_notes) == 2

    def test_to_dict(self):
        data = combine(_image(), _estimate()).to_dict()
        assert data["image_prediction"]["tier"] == "Mid"
        assert data["data_prediction"]["price_range"] == "Mid"
        assert data["image_status"] == "ok"
        assert data["data_status"] == "ok"
        assert data["image_error"] is None
        assert data["tiers_agree"] is True
