"""
Pytest Configuration and Fixtures

Provides shared fixtures for all tests.
"""

import io
import sqlite3
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import pandas as pd
import pytest
from PIL import Image

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

CITY_FACTORS = {
    "Los Angeles, CA": 1.25,
    "San Diego, CA": 1.1,
    "Riverside, CA": 0.7,
    "Pasadena, CA": 1.5,
}


class StubImageModel:
    """Stands in for the pretrained classifier: returns a fixed output."""

    def __init__(self, output: Sequence[float] = (0.1, 0.7, 0.2)):
        self.output = list(output)
        self.calls = 0

    def predict(self, tensor):
        self.calls += 1
        return [self.output]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def reference_df() -> pd.DataFrame:
    """Deterministic synthetic reference dataset in normalized column form."""
    rng = np.random.RandomState(42)
    n = 160
    cities = list(CITY_FACTORS)
    city = [cities[i % len(cities)] for i in range(n)]
    sqft = rng.randint(800, 3600, size=n).astype(float)
    bedrooms = np.clip(np.round(sqft / 650) + rng.randint(-1, 2, size=n), 1, 6)
    bathrooms = rng.choice([1.0, 2.0, 2.1, 3.0, 3.1], size=n)
    factor = np.array([CITY_FACTORS[c] for c in city])
    price = (150.0 * sqft + 60_000) * factor + 15_000 * (bedrooms - 3) + rng.normal(0, 30_000, size=n)
    price = np.clip(np.round(price), 195_000, 2_000_000)

    return pd.DataFrame({
        "price": price,
        "square_footage": sqft,
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "city": city,
    })


@pytest.fixture(scope="function")
def reference_csv(tmp_path: Path, reference_df: pd.DataFrame) -> str:
    """Reference dataset written with the raw export's column names."""
    raw = reference_df.rename(columns={
        "city": "citi",
        "bedrooms": "bed",
        "bathrooms": "bath",
        "square_footage": "sqft",
    })
    raw.insert(0, "image_id", range(len(raw)))
    path = tmp_path / "socal_houses.csv"
    raw.to_csv(path, index=False)
    return str(path)


@pytest.fixture(scope="function")
def reference_db(tmp_path: Path, reference_df: pd.DataFrame) -> str:
    """Reference dataset stored in a SQLite table named 'houses'."""
    path = tmp_path / "houses.db"
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE houses (
            image_id INTEGER,
            citi TEXT,
            bed INTEGER,
            bath REAL,
            sqft REAL,
            price REAL
        )
    """)
    conn.executemany(
        "INSERT INTO houses VALUES (?, ?, ?, ?, ?, ?)",
        [
            (i, row.city, int(row.bedrooms), float(row.bathrooms), float(row.square_footage), float(row.price))
            for i, row in enumerate(reference_df.itertuples())
        ],
    )
    conn.commit()
    conn.close()
    return str(path)


@pytest.fixture(scope="function")
def test_config(tmp_path: Path, reference_csv: str, monkeypatch):
    """Configuration pointing at temporary files.

    Yields:
        Config object configured for testing.
    """
    monkeypatch.setenv("PRICELENS_DATASET_PATH", reference_csv)
    monkeypatch.setenv("PRICELENS_CALIBRATION_PATH", str(tmp_path / "calibration.json"))
    monkeypatch.setenv("PRICELENS_IMAGE_MODEL_PATH", str(tmp_path / "image_classifier.joblib"))
    monkeypatch.setenv("PRICELENS_LOAD_MODEL_ON_STARTUP", "false")
    monkeypatch.setenv("PRICELENS_LOG_LEVEL", "DEBUG")
    for name in (
        "PRICELENS_CITY_TABLE",
        "PRICELENS_SQFT_SLOPE",
        "PRICELENS_SQFT_INTERCEPT",
        "PRICELENS_BASELINE_BED",
        "PRICELENS_BASELINE_BATH",
        "PRICELENS_PRICE_FLOOR",
        "PRICELENS_PRICE_CEILING",
    ):
        monkeypatch.delenv(name, raising=False)

    from pricelens.config import reset_config, get_config
    reset_config()

    config = get_config()
    yield config

    reset_config()


@pytest.fixture(scope="session")
def calibration(reference_df: pd.DataFrame):
    from pricelens.ml.calibration import calibrate
    return calibrate(reference_df, source="fixture")


@pytest.fixture(scope="function")
def estimator(calibration):
    from pricelens.ml.price_estimator import FeaturePriceEstimator
    return FeaturePriceEstimator(calibration, price_floor=195_000, price_ceiling=2_000_000)


@pytest.fixture(scope="function")
def stub_model() -> StubImageModel:
    return StubImageModel()


@pytest.fixture(scope="function")
def stub_model_class():
    return StubImageModel


@pytest.fixture(scope="function")
def classifier(stub_model):
    from pricelens.imaging.classifier import ImageClassifier
    return ImageClassifier(model=stub_model)


@pytest.fixture(scope="session")
def make_image() -> Callable[..., bytes]:
    """Factory for encoded test images."""

    def _make(size=(10, 10), color=(0, 0, 0), mode="RGB", fmt="PNG") -> bytes:
        image = Image.new(mode, size, color)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture(scope="function")
def house_features() -> dict:
    """Typical form submission."""
    return {"sqft": "1500", "bed": "3", "bath": "2", "city": "Los Angeles, CA"}
