"""
Data loading utilities for the availability finder.

Loads the Inside Airbnb style listings.csv and calendar.csv files into DuckDB,
casting every column to its proper type (prices are parsed from currency strings).
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Tuple

import duckdb
import pandas as pd

from .validator import CleaningConfig, DataCleaner

logger = logging.getLogger(__name__)

DATA_DIR_ENV_VAR = "STAY_FINDER_DATA_DIR"

LISTINGS_FILE = "listings.csv"
CALENDAR_FILE = "calendar.csv"

# Typed column -> (raw column candidates, SQL type). A None type keeps VARCHAR.
LISTING_COLUMNS = {
    "id": (("id",), "BIGINT"),
    "name": (("name",), None),
    "neighborhood": (("neighbourhood_cleansed", "neighborhood", "neighbourhood"), None),
    "property_type": (("property_type",), None),
    "accommodates": (("accommodates",), "INTEGER"),
    "bedrooms": (("bedrooms",), "DOUBLE"),
    "bathrooms": (("bathrooms",), "DOUBLE"),
    "latitude": (("latitude",), "DOUBLE"),
    "longitude": (("longitude",), "DOUBLE"),
    "rating": (("review_scores_rating", "rating"), "DOUBLE"),
}

REVIEW_SCORE_PREFIX = "review_scores_"


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def get_data_dir() -> Path:
    """Data directory: $STAY_FINDER_DATA_DIR if set, else <project root>/data."""
    override = os.environ.get(DATA_DIR_ENV_VAR)
    if override:
        return Path(override)
    return get_project_root() / "data"


def _typed(expr: str, sql_type: Optional[str]) -> str:
    if sql_type is None:
        return expr
    return f"TRY_CAST(NULLIF(TRIM({expr}), '') AS {sql_type})"


def _pick(raw_columns: Iterable[str], candidates: Tuple[str, ...]) -> Optional[str]:
    raw = set(raw_columns)
    for name in candidates:
        if name in raw:
            return name
    return None


def _raw_columns(con: duckdb.DuckDBPyConnection, table: str) -> list:
    return con.execute(f"DESCRIBE {table}").fetchdf()["column_name"].tolist()


def _read_raw_csv(con: duckdb.DuckDBPyConnection, file_path: Path, table: str) -> None:
    if not file_path.exists():
        raise FileNotFoundError(
            f"Data file not found: {file_path}\n"
            f"Set {DATA_DIR_ENV_VAR} or pass data_dir to point at the dataset."
        )
    con.execute(f"""
        CREATE TEMP TABLE {table} AS
        SELECT * FROM read_csv_auto('{file_path}', all_varchar=True, header=True)
    """)


def _create_listings(con: duckdb.DuckDBPyConnection) -> None:
    raw = _raw_columns(con, "temp_listings")

    select_exprs = []
    used = set()
    for column, (candidates, sql_type) in LISTING_COLUMNS.items():
        source = _pick(raw, candidates)
        used.add(source)
        if source is None:
            cast_type = sql_type or "VARCHAR"
            select_exprs.append(f"CAST(NULL AS {cast_type}) AS {column}")
        else:
            select_exprs.append(f"{_typed(source, sql_type)} AS {column}")

    # Secondary review scores keep their raw names
    for source in raw:
        if source.startswith(REVIEW_SCORE_PREFIX) and source not in used:
            select_exprs.append(f"{_typed(source, 'DOUBLE')} AS {source}")

    con.execute(f"""
        CREATE TABLE listings AS
        SELECT
            {', '.join(select_exprs)}
        FROM temp_listings
    """)


def _create_calendar(con: duckdb.DuckDBPyConnection, price_column: str) -> None:
    raw = _raw_columns(con, "temp_calendar")
    if price_column not in raw:
        raise ValueError(
            f"Price column '{price_column}' not found in {CALENDAR_FILE}. Available: {raw}"
        )

    con.execute(f"""
        CREATE TABLE calendar AS
        SELECT
            TRY_CAST(NULLIF(TRIM(listing_id), '') AS BIGINT) AS listing_id,
            TRY_CAST(NULLIF(TRIM("date"), '') AS DATE) AS "date",
            CASE
                WHEN LOWER(TRIM(available)) IN ('t', 'true', '1') THEN TRUE
                WHEN LOWER(TRIM(available)) IN ('f', 'false', '0') THEN FALSE
            END AS available,
            TRY_CAST(
                NULLIF(regexp_replace({price_column}, '[^0-9.-]', '', 'g'), '') AS DOUBLE
            ) AS price,
            TRY_CAST(NULLIF(TRIM(minimum_nights), '') AS BIGINT) AS minimum_nights,
            TRY_CAST(NULLIF(TRIM(maximum_nights), '') AS BIGINT) AS maximum_nights
        FROM temp_calendar
    """)


def init_db(
    data_dir: Optional[Path] = None,
    db_path: str = ":memory:",
    price_column: str = "price"
) -> duckdb.DuckDBPyConnection:
    """
    Load listings.csv and calendar.csv into DuckDB.

    Args:
        data_dir: Directory holding the CSV files (defaults to get_data_dir())
        db_path: DuckDB database path, in-memory by default
        price_column: Raw calendar column holding the nightly rate
            ('price' or 'adjusted_price')

    Returns:
        Connection with typed `listings` and `calendar` tables
    """
    data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
    con = duckdb.connect(database=db_path, read_only=False)

    _read_raw_csv(con, data_dir / LISTINGS_FILE, "temp_listings")
    _create_listings(con)
    con.execute("DROP TABLE temp_listings")

    _read_raw_csv(con, data_dir / CALENDAR_FILE, "temp_calendar")
    _create_calendar(con, price_column)
    con.execute("DROP TABLE temp_calendar")

    n_listings = con.execute("SELECT COUNT(*) FROM listings").fetchone()[0]
    n_days = con.execute("SELECT COUNT(*) FROM calendar").fetchone()[0]
    logger.info(f"Loaded {n_listings:,} listings and {n_days:,} calendar rows from {data_dir}")

    return con


def get_clean_connection(
    data_dir: Optional[Path] = None,
    price_column: str = "price",
    verbose: bool = False,
    **overrides
) -> duckdb.DuckDBPyConnection:
    """
    Initialize database with standard cleaning rules applied.

    Args:
        data_dir: Directory holding the CSV files
        price_column: Raw calendar column holding the nightly rate
        verbose: Log per-rule cleaning statistics
        **overrides: Any CleaningConfig flag, e.g. remove_orphan_calendar_rows=False

    Returns:
        Cleaned DuckDB connection
    """
    config = CleaningConfig(verbose=verbose, **overrides)
    cleaner = DataCleaner(config)
    return cleaner.clean(init_db(data_dir, price_column=price_column))


def load_tables(con: duckdb.DuckDBPyConnection) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Fetch the listings and calendar tables as DataFrames.

    Returns:
        (listings, calendar), ordered by listing id and date
    """
    listings = con.execute("SELECT * FROM listings ORDER BY id").fetchdf()
    calendar = con.execute('SELECT * FROM calendar ORDER BY listing_id, "date"').fetchdf()
    return listings, calendar
