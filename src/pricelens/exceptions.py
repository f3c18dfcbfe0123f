"""
Custom Exceptions for PriceLens

Provides a hierarchy of exceptions for standardized error handling across all modules.

Exception Hierarchy:
    PriceLensError (base)
    ├── ConfigurationError
    ├── DatasetError
    │   └── DatasetNotFoundError
    ├── ImageError
    │   ├── DecodeError
    │   └── UnsupportedFormatError
    ├── ModelError
    │   ├── ModelUnavailableError
    │   ├── PredictionError
    │   └── CalibrationError
    │       └── InsufficientDataError
    └── ValidationError
        └── InvalidFeatureError
"""


class PriceLensError(Exception):
    """Base exception for all PriceLens errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# Configuration Errors
class ConfigurationError(PriceLensError):
    """Raised when there's a configuration problem."""

    pass


# Dataset Errors
class DatasetError(PriceLensError):
    """Base exception for reference dataset errors."""

    def __init__(self, message: str, source: str = None):
        self.source = source
        super().__init__(message)


class DatasetNotFoundError(DatasetError):
    """Raised when the reference dataset file does not exist."""

    def __init__(self, source: str = None):
        message = f"Reference dataset not found at: {source}" if source else "Reference dataset not found"
        super().__init__(message, source=source)


# Image Errors
class ImageError(PriceLensError):
    """Base exception for image handling errors."""

    pass


class DecodeError(ImageError):
    """Raised when the input bytes are not a decodable image."""

    pass


class UnsupportedFormatError(ImageError):
    """Raised when a decoded image cannot be normalized to RGB."""

    def __init__(self, message: str, mode: str = None):
        self.mode = mode
        super().__init__(message)


# ML Model Errors
class ModelError(PriceLensError):
    """Base exception for model-related errors."""

    pass


class ModelUnavailableError(ModelError):
    """Raised when the image classifier is not loaded or failed to load."""

    def __init__(self, message: str = None, model_path: str = None):
        self.model_path = model_path
        if message is None:
            message = (
                f"Image model not available: {model_path}" if model_path else "Image model not available"
            )
        super().__init__(message)


class PredictionError(ModelError):
    """Raised when a prediction fails."""

    def __init__(self, message: str, input_data: dict = None):
        self.input_data = input_data
        super().__init__(message)


class CalibrationError(ModelError):
    """Raised when the feature estimator cannot be calibrated."""

    pass


class InsufficientDataError(CalibrationError):
    """Raised when there's not enough data for calibration."""

    def __init__(self, message: str, required: int = None, available: int = None):
        self.required = required
        self.available = available
        super().__init__(message)


# Validation Errors
class ValidationError(PriceLensError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(message)


class InvalidFeatureError(ValidationError):
    """Raised when a property feature is malformed or out of range."""

    pass
