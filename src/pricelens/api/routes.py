"""
API Routes for the Price Prediction Service

Provides REST API endpoints for:
- Image price-tier classification
- Feature-based price estimates
- Combined predictions
- Reference dataset statistics
- Health and calibration info
"""

from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request

from pricelens.exceptions import (
    DatasetError,
    DecodeError,
    ModelError,
    ModelUnavailableError,
    PriceLensError,
    UnsupportedFormatError,
    ValidationError,
)
from pricelens.logging_config import get_logger
from pricelens.service import PredictionService

logger = get_logger(__name__)

# Create blueprint
api = Blueprint("api", __name__, url_prefix="/api")

FEATURE_FIELDS = ("sqft", "square_footage", "bed", "bedrooms", "bath", "bathrooms", "city")


def get_service() -> PredictionService:
    return current_app.extensions["pricelens"]


def _error(error: Exception, status: int):
    return jsonify({
        "status": "error",
        "error": str(error),
        "error_type": type(error).__name__,
    }), status


def _status_for(error: PriceLensError) -> int:
    """HTTP status for a typed service error."""
    if isinstance(error, UnsupportedFormatError):
        return 415
    if isinstance(error, (ValidationError, DecodeError)):
        return 400
    if isinstance(error, ModelUnavailableError):
        return 503
    if isinstance(error, ModelError):
        # Uncalibrated estimator or malformed model output
        return 503
    if isinstance(error, DatasetError):
        return 503
    return 500


def _uploaded_image() -> Optional[bytes]:
    upload = request.files.get("image")
    if upload is None:
        return None
    return upload.read()


def _feature_data() -> Optional[Dict[str, Any]]:
    """Features from a JSON body or form fields; None when nothing was sent."""
    data = request.get_json(silent=True) if request.is_json else None
    if data is None:
        data = {key: request.form[key] for key in FEATURE_FIELDS if key in request.form}
    if not isinstance(data, dict):
        return None
    return data or None


# Health & Model Info Endpoints
@api.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    status = get_service().status()
    healthy = status["estimator_ready"] and status["model_loaded"]
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        **status,
    }), 200 if healthy else 503


@api.route("/model-info", methods=["GET"])
def model_info():
    """Get calibration constants and fit metrics of the feature estimator."""
    service = get_service()
    if service.estimator is None:
        return jsonify({"status": "error", "error": service.status()["estimator_error"]}), 503
    return jsonify({
        "status": "success",
        "calibration": service.estimator.calibration.to_dict(),
        "image_model": {
            "loaded": service.classifier.is_ready,
            "metadata": service.classifier.metadata,
        },
    })


# Prediction Endpoints
@api.route("/classify", methods=["POST"])
def classify():
    """Classify an uploaded house photo into a price tier."""
    image_bytes = _uploaded_image()
    if image_bytes is None:
        return jsonify({"status": "error", "error": "Missing required file: image"}), 400
    try:
        result = get_service().classify_image(image_bytes)
    except PriceLensError as e:
        logger.warning("Classification error: %s", e)
        return _error(e, _status_for(e))
    return jsonify({"status": "success", "prediction": result.to_dict()})


@api.route("/predict", methods=["POST"])
def predict():
    """Estimate a price from property features."""
    data = _feature_data()
    if data is None:
        return jsonify({
            "status": "error",
            "error": "Request must contain property features (sqft, bed, bath, city)",
        }), 400
    try:
        result = get_service().estimate_from_features(data)
    except PriceLensError as e:
        logger.warning("Prediction error: %s", e)
        return _error(e, _status_for(e))
    return jsonify({"status": "success", "prediction": result.to_dict()})


@api.route("/predict-with-image", methods=["POST"])
def predict_with_image():
    """Run both estimators; partial results are returned with status 200."""
    image_bytes = _uploaded_image()
    data = _feature_data()
    if image_bytes is None and data is None:
        return jsonify({
            "status": "error",
            "error": "Provide an image, property features, or both",
        }), 400

    result = get_service().predict_combined(image_bytes, data)
    payload: Dict[str, Any] = result.to_dict()
    payload["status"] = "partial" if result.is_partial else "success"
    if result.image_result is None and result.feature_result is None:
        payload["status"] = "error"
        return jsonify(payload), 422
    return jsonify(payload)


# Statistics Endpoints
@api.route("/stats", methods=["GET"])
def get_stats():
    """Get reference dataset statistics."""
    try:
        stats = get_service().get_dataset_statistics()
    except PriceLensError as e:
        logger.error("Error computing stats: %s", e)
        return _error(e, _status_for(e))
    return jsonify(stats.to_api_dict())


@api.errorhandler(413)
def upload_too_large(error) -> Tuple[Any, int]:
    return jsonify({"status": "error", "error": "Uploaded image is too large"}), 413


def register_routes(app):
    """Register API routes with Flask app."""
    app.register_blueprint(api)
    logger.info("API routes registered")
