"""
Availability query engine.

Answers "which listings can I book starting on date D for N nights with P people,
and what will it cost per person per night?" over an immutable snapshot of the
listings and calendar tables.

Pipeline (one SQL query, see sql/QUERY_STAY_WINDOWS.sql):
1. Stay-length eligibility on the start date (minimum_nights <= N <= maximum_nights)
2. Capacity eligibility (accommodates >= P)
3. Every night of the stay window must be present and available; prices are summed
4. price_per_day_person = total_price / (N * P), joined back onto the listing
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

import duckdb
import numpy as np
import pandas as pd

from stay_finder.data.loader import load_tables
from stay_finder.data.sql_loader import load_sql_file

logger = logging.getLogger(__name__)


REQUIRED_LISTING_COLUMNS = ['id', 'accommodates']

# Descriptive listing attributes and their SQL types; absent ones load as NULL
LISTING_ATTRIBUTES = {
    'name': 'VARCHAR',
    'neighborhood': 'VARCHAR',
    'property_type': 'VARCHAR',
    'bedrooms': 'DOUBLE',
    'bathrooms': 'DOUBLE',
    'latitude': 'DOUBLE',
    'longitude': 'DOUBLE',
    'rating': 'DOUBLE',
}

CALENDAR_COLUMNS = [
    'listing_id', 'date', 'available', 'price', 'minimum_nights', 'maximum_nights'
]

RESULT_COLUMNS = [
    'listing_id', 'stay_start', 'name', 'neighborhood', 'property_type',
    'accommodates', 'bedrooms', 'bathrooms', 'latitude', 'longitude', 'rating',
    'total_price', 'price_per_day_person',
]


@dataclass
class AvailabilityConfig:
    """Configuration for the availability engine."""
    round_to_whole_currency: bool = False  # Round price_per_day_person half-up to 0 decimals


@dataclass(frozen=True)
class AvailabilityQuery:
    """One lookup: a stay starting on start_of_stay for n_days nights and n_people guests."""
    start_of_stay: date
    n_days: int
    n_people: int

    @property
    def is_valid(self) -> bool:
        return self.n_days >= 1 and self.n_people >= 1


def _none_if_nan(value):
    if value is None:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


def _as_date(value) -> date:
    """Coerce a date, datetime, Timestamp or ISO string to a date."""
    return pd.Timestamp(value).date()


@dataclass
class AvailabilityResult:
    """One bookable listing for a query."""
    listing_id: int
    stay_start: date
    name: Optional[str]
    neighborhood: Optional[str]
    property_type: Optional[str]
    accommodates: int
    bedrooms: Optional[float]
    bathrooms: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]
    rating: Optional[float]
    total_price: float
    price_per_day_person: float

    @classmethod
    def from_row(cls, row: Dict) -> 'AvailabilityResult':
        """Build from one record of a result table."""
        return cls(
            listing_id=int(row['listing_id']),
            stay_start=_as_date(row['stay_start']),
            name=_none_if_nan(row['name']),
            neighborhood=_none_if_nan(row['neighborhood']),
            property_type=_none_if_nan(row['property_type']),
            accommodates=int(row['accommodates']),
            bedrooms=_none_if_nan(row['bedrooms']),
            bathrooms=_none_if_nan(row['bathrooms']),
            latitude=_none_if_nan(row['latitude']),
            longitude=_none_if_nan(row['longitude']),
            rating=_none_if_nan(row['rating']),
            total_price=float(row['total_price']),
            price_per_day_person=float(row['price_per_day_person']),
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {column: getattr(self, column) for column in RESULT_COLUMNS}


def _check_columns(df: pd.DataFrame, required: List[str], table: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{table} is missing required columns {missing}. Available: {df.columns.tolist()}")


class AvailabilityEngine:
    """
    Availability lookups over a read-only snapshot of listings and calendar.

    The tables are copied into a private in-memory DuckDB database at construction
    and never modified afterwards. Each query runs on its own cursor, so one engine
    can serve several threads.

    Usage:
        engine = AvailabilityEngine(listings, calendar)
        results = engine.get_availability(date(2019, 11, 8), n_days=4, n_people=4)
    """

    def __init__(
        self,
        listings: pd.DataFrame,
        calendar: pd.DataFrame,
        config: Optional[AvailabilityConfig] = None
    ):
        self.config = config or AvailabilityConfig()

        _check_columns(listings, REQUIRED_LISTING_COLUMNS, 'listings')
        _check_columns(calendar, CALENDAR_COLUMNS, 'calendar')

        listings = self._prepare_listings(listings)
        calendar = self._prepare_calendar(calendar)

        self._con = duckdb.connect(database=':memory:')
        self._load(listings, calendar)
        self._query = load_sql_file('sql/QUERY_STAY_WINDOWS.sql', __file__)
        self._date_range = self._con.execute('SELECT MIN("date"), MAX("date") FROM calendar').fetchone()

        logger.info(
            f"Availability engine ready: {len(listings):,} listings, "
            f"{len(calendar):,} calendar rows"
        )

    @classmethod
    def from_connection(
        cls,
        con: duckdb.DuckDBPyConnection,
        config: Optional[AvailabilityConfig] = None,
        listings: Optional[pd.DataFrame] = None
    ) -> 'AvailabilityEngine':
        """
        Build an engine from a loader connection's listings and calendar tables.

        Args:
            con: Connection from init_db/get_clean_connection
            config: Engine configuration
            listings: Optional listings subset (e.g. select_top_listings output)
                used instead of the full listings table
        """
        all_listings, calendar = load_tables(con)
        return cls(all_listings if listings is None else listings, calendar, config)

    @staticmethod
    def _prepare_listings(listings: pd.DataFrame) -> pd.DataFrame:
        if listings['id'].isna().any():
            raise ValueError("listings contains NULL ids")
        if listings['id'].duplicated().any():
            dupes = listings.loc[listings['id'].duplicated(), 'id'].unique()[:5].tolist()
            raise ValueError(f"listings ids must be unique, duplicated: {dupes}")

        frame = listings[REQUIRED_LISTING_COLUMNS].copy()
        for column, sql_type in LISTING_ATTRIBUTES.items():
            if column in listings.columns:
                frame[column] = listings[column]
            elif sql_type == 'VARCHAR':
                frame[column] = pd.Series([None] * len(frame), index=frame.index, dtype=object)
            else:
                frame[column] = np.nan
        return frame

    @staticmethod
    def _prepare_calendar(calendar: pd.DataFrame) -> pd.DataFrame:
        frame = calendar[CALENDAR_COLUMNS].copy()
        frame['date'] = pd.to_datetime(frame['date']).dt.normalize()

        duplicated = frame.duplicated(['listing_id', 'date'])
        if duplicated.any():
            raise ValueError(
                f"calendar must hold at most one row per (listing_id, date); "
                f"found {int(duplicated.sum()):,} duplicates"
            )
        return frame

    def _load(self, listings: pd.DataFrame, calendar: pd.DataFrame) -> None:
        attributes = ',\n'.join(
            f"CAST({column} AS {sql_type}) AS {column}"
            for column, sql_type in LISTING_ATTRIBUTES.items()
        )

        self._con.register('listings_df', listings)
        self._con.execute(f"""
            CREATE TABLE listings AS
            SELECT
                CAST(id AS BIGINT) AS id,
                CAST(accommodates AS INTEGER) AS accommodates,
                {attributes}
            FROM listings_df
        """)
        self._con.unregister('listings_df')

        self._con.register('calendar_df', calendar)
        self._con.execute("""
            CREATE TABLE calendar AS
            SELECT
                CAST(listing_id AS BIGINT) AS listing_id,
                CAST("date" AS DATE) AS "date",
                CAST(available AS BOOLEAN) AS available,
                CASE WHEN isnan(CAST(price AS DOUBLE)) THEN NULL
                     ELSE CAST(price AS DOUBLE) END AS price,
                CAST(minimum_nights AS BIGINT) AS minimum_nights,
                CAST(maximum_nights AS BIGINT) AS maximum_nights
            FROM calendar_df
        """)
        self._con.unregister('calendar_df')

    @property
    def date_range(self) -> Tuple[Optional[date], Optional[date]]:
        """First and last calendar date covered, (None, None) for an empty calendar."""
        first, last = self._date_range
        if first is None:
            return None, None
        return _as_date(first), _as_date(last)

    def covers(self, day) -> bool:
        """Whether a date falls inside the loaded calendar."""
        first, last = self.date_range
        if first is None:
            return False
        return first <= _as_date(day) <= last

    @staticmethod
    def _empty_result() -> pd.DataFrame:
        return pd.DataFrame(columns=RESULT_COLUMNS)

    def get_availability_table(
        self,
        n_days: int,
        n_people: int,
        first_start=None,
        last_start=None
    ) -> pd.DataFrame:
        """
        Bookable stays for every start date in [first_start, last_start].

        Args:
            n_days: Stay length in nights
            n_people: Party size
            first_start: First stay start date (defaults to the first calendar date)
            last_start: Last stay start date (defaults to the last calendar date)

        Returns:
            DataFrame with RESULT_COLUMNS, one row per (listing, stay_start),
            ordered by stay_start then listing_id. Empty when nothing matches.
        """
        if n_days < 1 or n_people < 1:
            return self._empty_result()

        first_date, last_date = self.date_range
        if first_date is None:
            return self._empty_result()

        first_start = _as_date(first_start) if first_start is not None else first_date
        last_start = _as_date(last_start) if last_start is not None else last_date
        if first_start > last_start:
            return self._empty_result()

        params = {
            'n_days': int(n_days),
            'n_people': int(n_people),
            'first_start': first_start,
            'last_start': last_start,
        }

        cursor = self._con.cursor()
        try:
            result = cursor.execute(self._query, params).fetchdf()
        finally:
            cursor.close()

        logger.debug(
            f"Stays of {n_days} nights for {n_people} starting "
            f"{first_start}..{last_start}: {len(result):,} rows"
        )

        if result.empty:
            return self._empty_result()

        result['stay_start'] = pd.to_datetime(result['stay_start'])
        if self.config.round_to_whole_currency:
            result['price_per_day_person'] = np.floor(result['price_per_day_person'] + 0.5)

        return result[RESULT_COLUMNS].reset_index(drop=True)

    def availability_frame(self, start_of_stay, n_days: int, n_people: int) -> pd.DataFrame:
        """Bookable stays starting on one date, as a DataFrame."""
        start = _as_date(start_of_stay)
        return self.get_availability_table(n_days, n_people, start, start)

    def get_availability(self, start_of_stay, n_days: int, n_people: int) -> List[AvailabilityResult]:
        """
        Listings bookable from start_of_stay for n_days nights with n_people guests.

        Args:
            start_of_stay: First night of the stay (date, datetime or 'YYYY-MM-DD')
            n_days: Stay length in nights; < 1 yields an empty result
            n_people: Party size; < 1 yields an empty result

        Returns:
            AvailabilityResult list ordered by listing_id
        """
        frame = self.availability_frame(start_of_stay, n_days, n_people)
        return [AvailabilityResult.from_row(row) for row in frame.to_dict('records')]

    def run(self, query: AvailabilityQuery) -> List[AvailabilityResult]:
        """Execute an AvailabilityQuery."""
        return self.get_availability(query.start_of_stay, query.n_days, query.n_people)

    def close(self) -> None:
        self._con.close()
