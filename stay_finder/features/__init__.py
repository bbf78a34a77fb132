"""Listing quality features."""
from .quality import (
    REVIEW_SCORE_PREFIX,
    review_score_columns,
    neighborhood_score_means,
    select_top_listings,
)
