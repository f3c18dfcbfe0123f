"""
Database Helper Functions

Provides a context manager and helpers for reading the reference dataset
from a SQLite file.

Usage:
    from pricelens.core.database import get_connection, table_exists

    with get_connection("houses.db") as conn:
        if table_exists(conn, "houses"):
            ...
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List

from pricelens.exceptions import DatasetError, DatasetNotFoundError
from pricelens.logging_config import get_logger

logger = get_logger(__name__)

SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}


def is_sqlite_path(path: str) -> bool:
    return Path(path).suffix.lower() in SQLITE_SUFFIXES


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> Dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


@contextmanager
def get_connection(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for read access to a reference dataset database.

    The file must already exist; the dataset is never created here.

    Raises:
        DatasetNotFoundError: If the database file does not exist.
        DatasetError: If SQLite cannot open or query the file.
    """
    if not Path(db_path).exists():
        raise DatasetNotFoundError(db_path)

    conn = None
    try:
        conn = sqlite3.connect(db_path)
        conn.row_factory = dict_factory
        logger.debug("Connected to database: %s", db_path)
        yield conn
    except sqlite3.Error as e:
        logger.error("Database error: %s", e)
        raise DatasetError(f"Failed to read database: {e}", source=db_path) from e
    finally:
        if conn:
            conn.close()
            logger.debug("Closed database connection")


def table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    """Check whether a table exists."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table_name,),
    ).fetchone()
    return row is not None


def list_tables(conn: sqlite3.Connection) -> List[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
    return [row["name"] for row in rows]
