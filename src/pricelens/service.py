"""
Prediction Service

Inbound boundary of the dual prediction engine:

- classify_image(image_bytes) -> TierPrediction
- estimate_from_features(features) -> FeatureEstimate
- predict_combined(image_bytes, features) -> CombinedResult
- get_dataset_statistics() -> DatasetStatistics

The image path and the feature path fail independently: a corrupt image
or a missing model never prevents a feature estimate, and vice versa.

Usage:
    from pricelens.service import PredictionService

    service = PredictionService.from_config()
    service.start_model_loading()
    result = service.predict_combined(image_bytes, {"sqft": 1500, "bed": 3})
"""

from typing import Any, Dict, Mapping, Optional, Union

from pricelens.config import Config, get_config
from pricelens.core.models import (
    CombinedResult,
    DatasetStatistics,
    FeatureEstimate,
    PropertyFeatures,
    TierPrediction,
)
from pricelens.core.price_bands import bands_as_dict, build_price_bands
from pricelens.core.statistics import StatisticsCache
from pricelens.exceptions import (
    CalibrationError,
    ConfigurationError,
    ModelUnavailableError,
    PriceLensError,
)
from pricelens.imaging.classifier import ImageClassifier
from pricelens.imaging.preprocessor import ImagePreprocessor, RawImage
from pricelens.logging_config import get_logger
from pricelens.ml.calibration import load_calibration
from pricelens.ml.combiner import combine
from pricelens.ml.price_estimator import FeaturePriceEstimator

logger = get_logger(__name__)

FeaturesInput = Union[PropertyFeatures, Mapping[str, Any]]


class PredictionService:
    """Wires the preprocessor, classifier, estimator and statistics cache."""

    def __init__(
        self,
        estimator: Optional[FeaturePriceEstimator] = None,
        classifier: Optional[ImageClassifier] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        statistics: Optional[StatisticsCache] = None,
        estimator_error: Optional[str] = None,
    ):
        self.estimator = estimator
        self.classifier = classifier if classifier is not None else ImageClassifier()
        self.preprocessor = preprocessor if preprocessor is not None else ImagePreprocessor()
        self.statistics = statistics if statistics is not None else StatisticsCache()
        self._estimator_error = estimator_error

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "PredictionService":
        """Build the service from configuration.

        A missing calibration does not stop the service from starting;
        feature estimates then fail with CalibrationError until fixed.
        """
        if config is None:
            config = get_config()

        bands = build_price_bands(config.estimator.price_floor, config.estimator.price_ceiling)

        estimator = None
        estimator_error = None
        try:
            estimator = FeaturePriceEstimator(
                load_calibration(config),
                price_floor=config.estimator.price_floor,
                price_ceiling=config.estimator.price_ceiling,
            )
        except (ConfigurationError, CalibrationError) as e:
            estimator_error = e.message
            logger.error("Feature estimator unavailable: %s", e)

        classifier = ImageClassifier(
            model_path=config.image_model.model_path,
            metadata_path=config.image_model.metadata_path,
            bands=bands,
        )
        statistics = StatisticsCache(dataset_path=config.dataset.path, bands=bands)

        return cls(
            estimator=estimator,
            classifier=classifier,
            statistics=statistics,
            estimator_error=estimator_error,
        )

    def start_model_loading(self):
        """Load the image model in the background; returns the future."""
        logger.info("Loading image model in the background")
        return self.classifier.load_async()

    def classify_image(self, image_bytes: RawImage) -> TierPrediction:
        """Classify a house photo into a price tier.

        Raises:
            ModelUnavailableError: If the image model is not loaded.
            DecodeError: If the bytes are not an image.
            UnsupportedFormatError: If the image cannot be converted to RGB.
            PredictionError: If the model output is malformed.
        """
        if not self.classifier.is_ready:
            raise ModelUnavailableError(self.classifier.load_error or "Image model is still loading")
        with self.preprocessor.tensor(image_bytes) as tensor:
            return self.classifier.classify(tensor)

    def estimate_from_features(self, features: FeaturesInput) -> FeatureEstimate:
        """Estimate a price from property features.

        Raises:
            InvalidFeatureError: If the features are malformed.
            CalibrationError: If the estimator could not be calibrated.
        """
        if self.estimator is None:
            raise CalibrationError(self._estimator_error or "Feature estimator is not calibrated")
        if not isinstance(features, PropertyFeatures):
            features = PropertyFeatures.from_mapping(features)
        return self.estimator.estimate(features)

    def predict_combined(
        self,
        image_bytes: Optional[RawImage],
        features: Optional[FeaturesInput],
    ) -> CombinedResult:
        """Run both estimators and reconcile their results.

        Either input may be None, in which case that side is marked as not
        run. A failure on one side is reported in the result while the
        other side is still returned.
        """
        image_result = feature_result = None
        image_error = feature_error = None

        if image_bytes is not None:
            try:
                image_result = self.classify_image(image_bytes)
            except PriceLensError as e:
                logger.warning("Image classification failed: %s", e)
                image_error = e

        if features is not None:
            try:
                feature_result = self.estimate_from_features(features)
            except PriceLensError as e:
                logger.warning("Feature estimate failed: %s", e)
                feature_error = e

        return combine(image_result, feature_result, image_error=image_error, feature_error=feature_error)

    def get_dataset_statistics(self) -> DatasetStatistics:
        """Statistics of the reference dataset, cached until it changes.

        Raises:
            DatasetNotFoundError: If the dataset file does not exist.
            DatasetError: If the dataset cannot be parsed.
        """
        return self.statistics.get()

    def status(self) -> Dict[str, Any]:
        """Readiness of both estimators."""
        calibration = self.estimator.calibration if self.estimator else None
        return {
            "model_loaded": self.classifier.is_ready,
            "model_error": self.classifier.load_error,
            "model_version": self.classifier.metadata.get("version"),
            "estimator_ready": self.estimator is not None,
            "estimator_error": self._estimator_error,
            "calibration_source": calibration.source if calibration else None,
            "calibrated_at": calibration.calibrated_at if calibration else None,
            "price_bands": bands_as_dict(self.classifier.bands),
        }
