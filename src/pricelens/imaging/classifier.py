"""
Image Classifier Adapter

Wraps a pretrained three-class (Low/Mid/High) price-tier image model.
The model itself is opaque: any object with
``predict(tensor) -> 3 probabilities`` can be plugged in, either passed
directly or loaded from a joblib artifact.

An optional JSON metadata sidecar next to the artifact is checked against
the adapter contract:

    {"version": "1", "classes": ["Low", "Mid", "High"], "input_shape": [1, 224, 224, 3]}

Tie-break rule: when two or more tiers share the maximal probability
exactly, the first tier in canonical order wins (Low, then Mid, then
High). numpy.argmax returns the first maximal index, which implements
this rule because the output vector is in canonical order.
"""

import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Optional

import joblib
import numpy as np

from pricelens.core.constants import INPUT_SHAPE, PROBABILITY_TOLERANCE, TIER_NAMES
from pricelens.core.models import PriceTier, TierPrediction
from pricelens.core.price_bands import DEFAULT_PRICE_BANDS, PriceBandTable, band_for_tier
from pricelens.exceptions import ModelUnavailableError, PredictionError
from pricelens.logging_config import get_logger

logger = get_logger(__name__)


class ImageClassifier:
    """Adapter around the opaque price-tier image model."""

    def __init__(
        self,
        model: Any = None,
        model_path: Optional[str] = None,
        metadata_path: Optional[str] = None,
        bands: PriceBandTable = DEFAULT_PRICE_BANDS,
    ):
        """Initialize the adapter.

        Args:
            model: Ready model object exposing predict(). Skips loading.
            model_path: joblib artifact to load the model from.
            metadata_path: Optional JSON sidecar describing the model.
            bands: Price band table used to attach a band to each tier.
        """
        self.model_path = Path(model_path) if model_path else None
        self.metadata_path = Path(metadata_path) if metadata_path else None
        self.bands = bands
        self.metadata: Dict[str, Any] = {}

        self._model = None
        self._load_error: Optional[str] = None
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        if model is not None:
            self._validate_model(model)
            self._model = model

    @property
    def is_ready(self) -> bool:
        """True once a model is loaded and classify() can be called."""
        return self._model is not None

    @property
    def load_error(self) -> Optional[str]:
        return self._load_error

    @staticmethod
    def _validate_model(model: Any) -> None:
        if not callable(getattr(model, "predict", None)):
            raise ModelUnavailableError(f"Model object {type(model).__name__} has no predict() method")

    def _validate_metadata(self, metadata: Dict[str, Any]) -> None:
        classes = metadata.get("classes")
        if classes is not None and list(classes) != TIER_NAMES:
            raise ModelUnavailableError(
                f"Model classes {classes} do not match expected {TIER_NAMES}",
                model_path=str(self.model_path),
            )
        input_shape = metadata.get("input_shape")
        if input_shape is not None and tuple(input_shape) != INPUT_SHAPE:
            raise ModelUnavailableError(
                f"Model input shape {input_shape} does not match expected {list(INPUT_SHAPE)}",
                model_path=str(self.model_path),
            )

    def load(self) -> bool:
        """Load the model from disk. Safe to call from several threads.

        Returns:
            True if a model is loaded.
        """
        with self._lock:
            if self._model is not None:
                return True

            if self.model_path is None:
                self._load_error = "No image model path configured"
                logger.warning(self._load_error)
                return False

            if not self.model_path.exists():
                self._load_error = f"Image model not found at {self.model_path}"
                logger.warning(self._load_error)
                return False

            try:
                metadata = {}
                if self.metadata_path and self.metadata_path.exists():
                    with open(self.metadata_path, "r") as f:
                        metadata = json.load(f)
                    self._validate_metadata(metadata)

                model = joblib.load(self.model_path)
                self._validate_model(model)
            except ModelUnavailableError as e:
                self._load_error = e.message
                logger.error("Image model rejected: %s", e)
                return False
            except Exception as e:
                self._load_error = f"Error loading image model: {e}"
                logger.error("Error loading image model: %s", e, exc_info=True)
                return False

            self.metadata = metadata
            self._model = model
            self._load_error = None
            logger.info(
                "Image model loaded from %s (version %s)",
                self.model_path,
                metadata.get("version", "unknown"),
            )
            return True

    def load_async(self) -> Future:
        """Start loading in a background worker and return its future."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="model_loader")
        return self._executor.submit(self.load)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _probabilities(self, tensor: np.ndarray) -> np.ndarray:
        try:
            raw = self._model.predict(tensor)
        except Exception as e:
            logger.error("Image model prediction failed: %s", e, exc_info=True)
            raise PredictionError(f"Image model prediction failed: {e}") from e

        try:
            probabilities = np.asarray(raw, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as e:
            raise PredictionError(f"Image model returned a non-numeric output: {e}") from e
        if probabilities.size != len(TIER_NAMES):
            raise PredictionError(
                f"Image model returned {probabilities.size} outputs, expected {len(TIER_NAMES)}"
            )
        if not np.all(np.isfinite(probabilities)) or np.any(probabilities < 0):
            raise PredictionError(f"Image model returned invalid probabilities: {probabilities.tolist()}")

        total = float(probabilities.sum())
        if total <= 0:
            raise PredictionError("Image model returned all-zero probabilities")
        if abs(total - 1.0) > PROBABILITY_TOLERANCE:
            logger.warning("Image model output sums to %.6f; renormalizing", total)
        return probabilities / total

    def classify(self, tensor: np.ndarray) -> TierPrediction:
        """Classify a preprocessed image tensor into a price tier.

        Args:
            tensor: (1, 224, 224, 3) float tensor from the preprocessor.

        Returns:
            TierPrediction with per-tier confidences and the tier's price band.

        Raises:
            ModelUnavailableError: If no model is loaded.
            PredictionError: If the tensor or the model output is malformed.
        """
        if self._model is None:
            raise ModelUnavailableError(
                self._load_error or "Image model is not loaded yet",
                model_path=str(self.model_path) if self.model_path else None,
            )

        shape = tuple(getattr(tensor, "shape", ()))
        if shape != INPUT_SHAPE:
            raise PredictionError(f"Expected input tensor of shape {INPUT_SHAPE}, got {shape}")

        probabilities = self._probabilities(tensor)
        tiers = PriceTier.ordered()
        best = int(np.argmax(probabilities))
        tier = tiers[best]

        return TierPrediction(
            tier=tier,
            confidence=float(probabilities[best]),
            per_tier_confidences={t.value: float(p) for t, p in zip(tiers, probabilities)},
            price_band=band_for_tier(tier, self.bands),
        )
