"""
Visualization functions for availability results.

Renders a result table (AvailabilityEngine.availability_frame output) as a
price histogram, listing attribute bar charts, and an interactive map.
"""

import logging
from pathlib import Path
from typing import Optional

import folium
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)

# Boston bounding box used by the course dataset
BOSTON_COORDS = {
    'left': -71.1289,
    'bottom': 42.3201,
    'right': -71.0189,
    'top': 42.3701,
}
DEFAULT_CENTER = (
    (BOSTON_COORDS['bottom'] + BOSTON_COORDS['top']) / 2,
    (BOSTON_COORDS['left'] + BOSTON_COORDS['right']) / 2,
)

ATTRIBUTE_COLUMNS = ['accommodates', 'bedrooms', 'bathrooms']


def _save_figure(fig: plt.Figure, output_path: Optional[Path]) -> None:
    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        logger.info(f"Saved to {output_path}")


def plot_price_distribution(
    results: pd.DataFrame,
    output_path: Optional[Path] = None,
    bins: int = 30
) -> plt.Figure:
    """
    Histogram of price per day per person.

    Args:
        results: Availability result table
        output_path: Optional path to save figure
        bins: Number of histogram bins

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    prices = results['price_per_day_person'].astype(float) if len(results) else pd.Series(dtype=float)
    if len(prices) > 0:
        sns.histplot(prices, bins=bins, ax=ax, color='#3498db')
        ax.axvline(prices.median(), color='black', linestyle='--', linewidth=1,
                   label=f"median {prices.median():.2f}")
        ax.legend()
    else:
        ax.text(0.5, 0.5, 'No available listings', ha='center', va='center',
                transform=ax.transAxes, fontsize=14)

    ax.set_xlabel('Price per day per person', fontsize=12)
    ax.set_ylabel('Number of listings', fontsize=12)
    ax.set_title(f'Price Distribution (n={len(results)} listings)', fontsize=14)

    plt.tight_layout()
    _save_figure(fig, output_path)
    return fig


def plot_listing_attributes(
    results: pd.DataFrame,
    output_path: Optional[Path] = None
) -> plt.Figure:
    """
    Bar counts of accommodates, bedrooms and bathrooms, one panel each.

    Args:
        results: Availability result table
        output_path: Optional path to save figure

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(1, len(ATTRIBUTE_COLUMNS), figsize=(15, 5))

    for ax, column in zip(axes, ATTRIBUTE_COLUMNS):
        counts = results[column].dropna().value_counts().sort_index() if len(results) else pd.Series(dtype=int)
        if len(counts) > 0:
            ax.bar([f"{v:g}" for v in counts.index.astype(float)], counts.values, color='#95a5a6')
        ax.set_title(column, fontsize=12)
        ax.set_xlabel('#')

    axes[0].set_ylabel('Number of listings')

    plt.tight_layout()
    _save_figure(fig, output_path)
    return fig


def create_availability_map(
    results: pd.DataFrame,
    output_path: Optional[str] = None,
    zoom_start: int = 13
) -> folium.Map:
    """
    Interactive map with one circle marker per available listing.

    Popups show the listing name and its price per day per person.
    Rows without coordinates are skipped.

    Args:
        results: Availability result table
        output_path: If provided, saves the map to this HTML file path
        zoom_start: Initial zoom level

    Returns:
        folium.Map
    """
    located = results.dropna(subset=['latitude', 'longitude']) if len(results) else results

    if len(located) > 0:
        center = (float(located['latitude'].mean()), float(located['longitude'].mean()))
    else:
        center = DEFAULT_CENTER

    m = folium.Map(location=center, zoom_start=zoom_start, tiles='OpenStreetMap')

    for row in located.itertuples(index=False):
        popup = f"{row.name} ${row.price_per_day_person:.2f}"
        folium.CircleMarker(
            location=(float(row.latitude), float(row.longitude)),
            radius=6,
            color='#e74c3c',
            fill=True,
            fill_opacity=0.7,
            popup=folium.Popup(popup, max_width=300),
            tooltip=popup,
        ).add_to(m)

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        m.save(str(output_path))
        logger.info(f"Saved map to {output_path}")

    return m
