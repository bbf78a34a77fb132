"""
Data validation and cleaning using a unified Rule-based architecture.

All data quality operations (deletions, fixes) use the same Rule format with a
check_query and an action_query. The rules enforce the invariants the
availability engine relies on: unique listing ids, at most one calendar row per
(listing_id, date), sane capacity and stay-length bounds.
"""

import logging
from dataclasses import dataclass

import duckdb

logger = logging.getLogger(__name__)

DUPLICATE_LISTINGS_QUERY = """
    SELECT CAST(COALESCE(SUM(n - 1), 0) AS BIGINT) FROM (
        SELECT COUNT(*) AS n FROM listings
        WHERE id IS NOT NULL
        GROUP BY id
    )
"""

DUPLICATE_CALENDAR_QUERY = """
    SELECT CAST(COALESCE(SUM(n - 1), 0) AS BIGINT) FROM (
        SELECT COUNT(*) AS n FROM calendar
        GROUP BY listing_id, "date"
    )
"""

# ============================================================================
# 1. RULE DATACLASS (Unified Format)
# ============================================================================

@dataclass
class Rule:
    """
    Single data quality rule.

    All operations follow the same pattern:
    1. Check query: How many rows are affected?
    2. Action query: Fix the issue
    """
    name: str
    check_query: str
    action_query: str
    enabled: bool = True

# ============================================================================
# 2. CLEANING CONFIG
# ============================================================================

@dataclass
class CleaningConfig:
    """
    Configuration for the data cleaning pipeline.

    Each field enables/disables a specific rule. Field names describe what they do.
    """
    # Listings
    remove_null_listing_ids: bool = True
    remove_duplicate_listings: bool = True      # Keeps the first row per id
    remove_invalid_capacity: bool = True        # accommodates NULL or < 1
    fix_empty_strings: bool = True              # Convert '' to NULL

    # Calendar
    remove_null_calendar_keys: bool = True      # NULL listing_id or date
    remove_duplicate_calendar_days: bool = True # Keeps the first row per (listing_id, date)
    remove_orphan_calendar_rows: bool = True    # listing_id not in listings
    remove_inverted_night_bounds: bool = True   # minimum_nights > maximum_nights
    mark_unpriced_days_unavailable: bool = True # available but price IS NULL

    # Logging
    verbose: bool = False

# ============================================================================
# 3. DATA CLEANER CLASS (Applies Rules)
# ============================================================================

class DataCleaner:
    """
    Applies data cleaning rules based on configuration.

    Usage:
        cleaner = DataCleaner(CleaningConfig(verbose=True))
        clean_con = cleaner.clean(init_db())
    """

    def __init__(self, config: CleaningConfig):
        self.config = config
        self.rules = self._build_rules()
        self.stats = {}

    def _build_rules(self) -> list[Rule]:
        """Build list of rules based on config."""
        rules = []

        # ===== LISTINGS =====
        if self.config.remove_null_listing_ids:
            rules.append(Rule(
                "NULL Listing ID",
                "SELECT COUNT(*) FROM listings WHERE id IS NULL",
                "DELETE FROM listings WHERE id IS NULL"
            ))

        if self.config.remove_duplicate_listings:
            rules.append(Rule(
                "Duplicate Listing ID",
                DUPLICATE_LISTINGS_QUERY,
                """DELETE FROM listings WHERE rowid NOT IN (
                       SELECT MIN(rowid) FROM listings GROUP BY id)"""
            ))

        if self.config.remove_invalid_capacity:
            rules.append(Rule(
                "Invalid Capacity",
                "SELECT COUNT(*) FROM listings WHERE accommodates IS NULL OR accommodates < 1",
                "DELETE FROM listings WHERE accommodates IS NULL OR accommodates < 1"
            ))

        if self.config.fix_empty_strings:
            for column in ("name", "neighborhood", "property_type"):
                rules.append(Rule(
                    f"Fix Empty {column}",
                    f"SELECT COUNT(*) FROM listings WHERE TRIM({column}) = ''",
                    f"UPDATE listings SET {column} = NULL WHERE TRIM({column}) = ''"
                ))

        # ===== CALENDAR =====
        if self.config.remove_null_calendar_keys:
            rules.append(Rule(
                "NULL Calendar Key",
                'SELECT COUNT(*) FROM calendar WHERE listing_id IS NULL OR "date" IS NULL',
                'DELETE FROM calendar WHERE listing_id IS NULL OR "date" IS NULL'
            ))

        if self.config.remove_duplicate_calendar_days:
            rules.append(Rule(
                "Duplicate Calendar Day",
                DUPLICATE_CALENDAR_QUERY,
                """DELETE FROM calendar WHERE rowid NOT IN (
                       SELECT MIN(rowid) FROM calendar GROUP BY listing_id, "date")"""
            ))

        if self.config.remove_orphan_calendar_rows:
            rules.append(Rule(
                "Orphan Calendar Rows",
                """SELECT COUNT(*) FROM calendar c
                   WHERE NOT EXISTS (SELECT 1 FROM listings l WHERE l.id = c.listing_id)""",
                """DELETE FROM calendar
                   WHERE listing_id NOT IN (SELECT id FROM listings WHERE id IS NOT NULL)"""
            ))

        if self.config.remove_inverted_night_bounds:
            rules.append(Rule(
                "Inverted Night Bounds",
                "SELECT COUNT(*) FROM calendar WHERE minimum_nights > maximum_nights",
                "DELETE FROM calendar WHERE minimum_nights > maximum_nights"
            ))

        if self.config.mark_unpriced_days_unavailable:
            rules.append(Rule(
                "Unpriced Available Day",
                "SELECT COUNT(*) FROM calendar WHERE available AND price IS NULL",
                "UPDATE calendar SET available = FALSE WHERE available AND price IS NULL"
            ))

        return rules

    def clean(self, con: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
        """Apply all enabled rules to the listings and calendar tables."""
        if self.config.verbose:
            logger.info(f"Applying {len(self.rules)} data cleaning rules...")

        for rule in self.rules:
            if not rule.enabled:
                continue

            affected = con.execute(rule.check_query).fetchone()[0]

            if affected > 0:
                con.execute(rule.action_query)
                self.stats[rule.name] = affected

                if self.config.verbose:
                    logger.info(f"  ✓ {rule.name}: {affected:,} rows")
            elif self.config.verbose:
                logger.info(f"  - {rule.name}: 0 rows")

        if self.config.verbose:
            listings = con.execute("SELECT COUNT(*) FROM listings").fetchone()[0]
            calendar = con.execute("SELECT COUNT(*) FROM calendar").fetchone()[0]
            logger.info(f"Final: {listings:,} listings, {calendar:,} calendar rows")

        return con


def check_data_quality(con: duckdb.DuckDBPyConnection) -> dict:
    """
    Report invariant violations without modifying the data.

    Returns:
        Dict of issue name -> affected row count
    """
    checks = {
        'null_listing_ids': "SELECT COUNT(*) FROM listings WHERE id IS NULL",
        'duplicate_listing_ids': DUPLICATE_LISTINGS_QUERY,
        'invalid_capacity': """SELECT COUNT(*) FROM listings
                               WHERE accommodates IS NULL OR accommodates < 1""",
        'null_calendar_keys': """SELECT COUNT(*) FROM calendar
                                 WHERE listing_id IS NULL OR "date" IS NULL""",
        'duplicate_calendar_days': DUPLICATE_CALENDAR_QUERY,
        'orphan_calendar_rows': """SELECT COUNT(*) FROM calendar c
                                   WHERE NOT EXISTS (
                                       SELECT 1 FROM listings l WHERE l.id = c.listing_id)""",
        'inverted_night_bounds': """SELECT COUNT(*) FROM calendar
                                    WHERE minimum_nights > maximum_nights""",
        'unpriced_available_days': """SELECT COUNT(*) FROM calendar
                                      WHERE available AND price IS NULL""",
    }
    return {name: con.execute(query).fetchone()[0] for name, query in checks.items()}
