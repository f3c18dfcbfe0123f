"""
Dataset Statistics Aggregator

Descriptive statistics of the reference dataset for the dashboard:
averages, price-band buckets, bedroom/bathroom distributions and
histograms. Not part of the prediction path.
"""

import threading
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from pricelens.core.constants import HISTOGRAM_BINS
from pricelens.core.dataset import dataset_fingerprint, load_reference_dataset
from pricelens.core.models import DatasetStatistics, HistogramBin, PriceBucket
from pricelens.core.price_bands import DEFAULT_PRICE_BANDS, PriceBandTable
from pricelens.logging_config import get_logger

logger = get_logger(__name__)


def _mean(series: pd.Series) -> float:
    values = series.dropna()
    if values.empty:
        return 0.0
    return round(float(values.mean()), 2)


def _distribution(series: pd.Series) -> Dict[str, int]:
    """Counts keyed by the value's display label, in ascending value order."""
    counts = series.dropna().value_counts().sort_index()
    distribution = {}
    for value, count in counts.items():
        label = str(int(value)) if float(value).is_integer() else str(value)
        distribution[label] = int(count)
    return distribution


def _histogram(series: pd.Series, bins: int) -> List[HistogramBin]:
    values = series.dropna().to_numpy(dtype=float)
    if values.size == 0:
        return []
    counts, edges = np.histogram(values, bins=bins)
    return [
        HistogramBin(start=round(float(edges[i]), 2), end=round(float(edges[i + 1]), 2), count=int(counts[i]))
        for i in range(len(counts))
    ]


def aggregate(
    dataset: pd.DataFrame,
    bands: PriceBandTable = DEFAULT_PRICE_BANDS,
    bins: int = HISTOGRAM_BINS,
) -> DatasetStatistics:
    """Compute dataset statistics.

    Every record lands in exactly one price bucket: prices below the floor
    count as low and prices above the ceiling as high, so bucket counts
    always sum to total_count.

    Args:
        dataset: Normalized reference dataset.
        bands: Price band table used for the low/mid/high buckets.
        bins: Number of histogram bins.

    Returns:
        DatasetStatistics for the frame.
    """
    total = int(len(dataset))
    prices = dataset["price"].to_numpy(dtype=float) if total else np.array([], dtype=float)

    upper_bounds = [band.max for band in bands[:-1]]
    # side="left": a price equal to a band's max stays in that band
    bucket_index = np.searchsorted(upper_bounds, prices, side="left")
    bucket_counts = np.bincount(bucket_index, minlength=len(bands))

    buckets = {
        band.tier.value.lower(): PriceBucket(min=band.min, max=band.max, count=int(bucket_counts[i]))
        for i, band in enumerate(bands)
    }

    stats = DatasetStatistics(
        total_count=total,
        average_price=_mean(dataset["price"]) if total else 0.0,
        average_sqft=_mean(dataset["square_footage"]) if total else 0.0,
        average_bed=_mean(dataset["bedrooms"]) if total else 0.0,
        average_bath=_mean(dataset["bathrooms"]) if total else 0.0,
        price_range_buckets=buckets,
        bed_distribution=_distribution(dataset["bedrooms"]) if total else {},
        bath_distribution=_distribution(dataset["bathrooms"]) if total else {},
        price_histogram=_histogram(dataset["price"], bins) if total else [],
        sqft_histogram=_histogram(dataset["square_footage"], bins) if total else [],
    )
    logger.debug("Aggregated statistics for %d records", total)
    return stats


class StatisticsCache:
    """Caches DatasetStatistics per dataset file.

    The cache key is the dataset fingerprint (path, size, mtime), so a
    replaced file is picked up on the next read. invalidate() drops the
    cached value explicitly.
    """

    def __init__(
        self,
        dataset_path: Optional[str] = None,
        bands: PriceBandTable = DEFAULT_PRICE_BANDS,
        loader: Callable[[str], pd.DataFrame] = load_reference_dataset,
    ):
        self.dataset_path = dataset_path
        self.bands = bands
        self._loader = loader
        self._lock = threading.Lock()
        self._key: Optional[Tuple] = None
        self._stats: Optional[DatasetStatistics] = None

    def get(self) -> DatasetStatistics:
        """Return cached statistics, recomputing when the dataset changed.

        Raises:
            DatasetNotFoundError: If the dataset file does not exist.
            DatasetError: If the dataset cannot be parsed.
        """
        key = dataset_fingerprint(self.dataset_path)
        with self._lock:
            if self._stats is None or self._key != key:
                logger.info("Computing dataset statistics for %s", key[0])
                self._stats = aggregate(self._loader(self.dataset_path), bands=self.bands)
                self._key = key
            return self._stats

    def invalidate(self) -> None:
        with self._lock:
            self._key = None
            self._stats = None
