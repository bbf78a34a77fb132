"""
Tests for stay_finder/availability/visualize.py - histogram, attribute bars and map.
"""

from datetime import date

import folium
import matplotlib.pyplot as plt
import numpy as np
import pytest

from stay_finder.availability.visualize import (
    DEFAULT_CENTER,
    create_availability_map,
    plot_listing_attributes,
    plot_price_distribution,
)


@pytest.fixture
def results(engine):
    """Nov 1, 3 nights, 2 guests: listings 100, 101, 103."""
    return engine.availability_frame(date(2019, 11, 1), n_days=3, n_people=2)


@pytest.fixture
def empty_results(engine):
    return engine.availability_frame(date(2019, 12, 25), n_days=3, n_people=2)


def count_markers(m: folium.Map) -> int:
    return sum(isinstance(child, folium.CircleMarker) for child in m._children.values())


class TestPriceDistribution:
    """Test the price histogram."""

    def test_returns_figure(self, results):
        fig = plot_price_distribution(results)
        assert isinstance(fig, plt.Figure)
        assert 'n=3' in fig.axes[0].get_title()
        plt.close(fig)

    def test_saves_png(self, results, tmp_path):
        output = tmp_path / 'plots' / 'prices.png'
        fig = plot_price_distribution(results, output_path=output)
        assert output.exists()
        plt.close(fig)

    def test_empty_results(self, empty_results):
        fig = plot_price_distribution(empty_results)
        assert 'n=0' in fig.axes[0].get_title()
        plt.close(fig)


class TestListingAttributes:
    """Test the attribute bar panels."""

    def test_one_panel_per_attribute(self, results):
        fig = plot_listing_attributes(results)
        titles = [ax.get_title() for ax in fig.axes]
        assert titles == ['accommodates', 'bedrooms', 'bathrooms']
        plt.close(fig)

    def test_bar_heights_count_listings(self, results):
        fig = plot_listing_attributes(results)
        # accommodates: 2, 3, 4 → one listing each
        heights = [patch.get_height() for patch in fig.axes[0].patches]
        assert heights == [1, 1, 1]
        plt.close(fig)

    def test_empty_results(self, empty_results, tmp_path):
        output = tmp_path / 'attributes.png'
        fig = plot_listing_attributes(empty_results, output_path=output)
        assert output.exists()
        plt.close(fig)


class TestAvailabilityMap:
    """Test the folium map."""

    def test_one_marker_per_listing(self, results):
        m = create_availability_map(results)
        assert isinstance(m, folium.Map)
        assert count_markers(m) == 3

    def test_popup_has_name_and_price(self, results, tmp_path):
        output = tmp_path / 'map.html'
        create_availability_map(results, output_path=output)
        html = output.read_text()

        assert 'Back Bay Loft $55.00' in html
        assert 'Cozy Studio $40.00' in html

    def test_rows_without_coordinates_skipped(self, results):
        results = results.copy()
        results.loc[results['listing_id'] == 101, 'latitude'] = np.nan
        assert count_markers(create_availability_map(results)) == 2

    def test_centered_on_results(self, results):
        m = create_availability_map(results)
        assert m.location[0] == pytest.approx(results['latitude'].mean())

    def test_empty_results_centered_on_default(self, empty_results, tmp_path):
        output = tmp_path / 'empty.html'
        m = create_availability_map(empty_results, output_path=output)

        assert count_markers(m) == 0
        assert m.location[0] == pytest.approx(DEFAULT_CENTER[0])
        assert output.exists()
