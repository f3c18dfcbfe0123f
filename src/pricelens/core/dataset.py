"""
Reference Dataset Loader

Loads the historical house records used to calibrate the feature-based
estimator and to compute display statistics. Sources are CSV files
(read with pandas) or a table in a SQLite file.

The loaded frame always has the columns:
    price, square_footage, bedrooms, bathrooms, city
"""

from pathlib import Path
from typing import Optional, Tuple

import pandas as pd

from pricelens.config import get_config
from pricelens.core.constants import DATASET_COLUMN_ALIASES, REQUIRED_COLUMNS
from pricelens.core.database import get_connection, is_sqlite_path, list_tables, table_exists
from pricelens.exceptions import DatasetError, DatasetNotFoundError
from pricelens.logging_config import get_logger
from pricelens.utils.price_parser import parse_price_value

logger = get_logger(__name__)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename known column aliases and coerce column types.

    Raises:
        DatasetError: If a required column is missing.
    """
    df = df.copy()
    df.columns = [str(col).strip().lower() for col in df.columns]
    renames = {
        alias: target
        for alias, target in DATASET_COLUMN_ALIASES.items()
        if alias in df.columns and target not in df.columns
    }
    df = df.rename(columns=renames)

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DatasetError(f"Reference dataset is missing columns: {', '.join(missing)}")

    df["price"] = pd.to_numeric(df["price"].map(parse_price_value), errors="coerce")
    for col in ("square_footage", "bedrooms", "bathrooms"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    cities = df["city"].map(lambda value: str(value).strip() if pd.notna(value) else None).astype(object)
    # Missing and blank cities are None in an object column, never NaN or ""
    df["city"] = cities.where(cities.notna() & (cities != ""), None)

    initial_count = len(df)
    df = df[df["price"].notna()].reset_index(drop=True)
    dropped = initial_count - len(df)
    if dropped:
        logger.info("Dropped %d rows without a numeric price", dropped)

    return df


def _read_sqlite(path: str, table: str) -> pd.DataFrame:
    with get_connection(path) as conn:
        if not table_exists(conn, table):
            raise DatasetError(
                f"Table '{table}' not found (available: {', '.join(list_tables(conn)) or 'none'})",
                source=path,
            )
        cursor = conn.execute(f'SELECT * FROM "{table}"')
        columns = [col[0] for col in cursor.description]
        return pd.DataFrame(cursor.fetchall(), columns=columns)


def load_reference_dataset(path: Optional[str] = None, table: Optional[str] = None) -> pd.DataFrame:
    """Load and normalize the reference dataset.

    Args:
        path: CSV or SQLite file. Uses config default if not provided.
        table: Table name for SQLite sources. Uses config default if not provided.

    Returns:
        DataFrame with normalized columns.

    Raises:
        DatasetNotFoundError: If the file does not exist.
        DatasetError: If the file cannot be parsed.
    """
    config = get_config()
    if path is None:
        path = config.dataset.path
    if table is None:
        table = config.dataset.table

    if not Path(path).exists():
        raise DatasetNotFoundError(path)

    logger.info("Loading reference dataset from %s", path)

    if is_sqlite_path(path):
        raw = _read_sqlite(path, table)
    else:
        try:
            raw = pd.read_csv(path)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise DatasetError(f"Could not parse reference dataset: {e}", source=path) from e

    try:
        df = normalize_columns(raw)
    except DatasetError as e:
        e.source = path
        raise

    logger.info("Loaded %d reference records", len(df))
    return df


def dataset_fingerprint(path: Optional[str] = None) -> Tuple[str, int, float]:
    """Identity of the dataset file used to key cached statistics.

    Raises:
        DatasetNotFoundError: If the file does not exist.
    """
    if path is None:
        path = get_config().dataset.path
    file_path = Path(path)
    if not file_path.exists():
        raise DatasetNotFoundError(str(path))
    stat = file_path.stat()
    return str(file_path.resolve()), stat.st_size, stat.st_mtime
