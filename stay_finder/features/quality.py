"""
Listing quality selection.

A listing is "top rated" when it beats its neighbourhood's mean on every review
score (overall rating, accuracy, cleanliness, check-in, ...). Neighbourhood means
skip missing scores; a listing with any missing score is not top rated.
"""

from typing import List, Optional

import numpy as np
import pandas as pd


REVIEW_SCORE_PREFIX = 'review_scores_'


def review_score_columns(listings: pd.DataFrame) -> List[str]:
    """Review score columns present in the listings table, overall 'rating' first."""
    columns = [c for c in listings.columns if c.startswith(REVIEW_SCORE_PREFIX)]
    if 'rating' in listings.columns:
        columns = ['rating'] + columns
    return columns


def neighborhood_score_means(
    listings: pd.DataFrame,
    score_columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Mean of each review score per neighbourhood.

    Args:
        listings: Listings with a 'neighborhood' column
        score_columns: Scores to average (defaults to review_score_columns)

    Returns:
        DataFrame indexed by neighborhood with one column per score
    """
    if score_columns is None:
        score_columns = review_score_columns(listings)
    if not score_columns:
        raise ValueError(f"No review score columns found. Available: {listings.columns.tolist()}")

    return listings.groupby('neighborhood', observed=True)[score_columns].mean()


def select_top_listings(
    listings: pd.DataFrame,
    score_columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Keep listings scoring strictly above their neighbourhood mean on every score.

    Args:
        listings: Listings table
        score_columns: Scores to compare (defaults to review_score_columns)

    Returns:
        Subset of listings, original columns and order preserved
    """
    if score_columns is None:
        score_columns = review_score_columns(listings)
    if not score_columns:
        raise ValueError(f"No review score columns found. Available: {listings.columns.tolist()}")

    grouped = listings.groupby('neighborhood', observed=True)[score_columns]
    means = grouped.transform('mean')

    # NaN comparisons are False, so missing scores (or an all-NaN neighbourhood) disqualify
    above = listings[score_columns].to_numpy(dtype=float) > means.to_numpy(dtype=float)
    keep = np.all(above, axis=1)

    return listings[keep].copy()
