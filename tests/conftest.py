"""
Shared pytest fixtures for the loader, cleaner, availability engine and renderers.
"""

from datetime import date, timedelta

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from stay_finder.availability import AvailabilityEngine


NOV_1 = date(2019, 11, 1)


@pytest.fixture
def calendar_rows():
    """Factory building consecutive calendar rows for one listing."""
    def _make(
        listing_id,
        prices,
        start=NOV_1,
        available=True,
        minimum_nights=1,
        maximum_nights=30
    ) -> pd.DataFrame:
        n = len(prices)
        if isinstance(available, bool):
            available = [available] * n
        return pd.DataFrame({
            'listing_id': [listing_id] * n,
            'date': [start + timedelta(days=i) for i in range(n)],
            'available': available,
            'price': [float(p) for p in prices],
            'minimum_nights': [minimum_nights] * n,
            'maximum_nights': [maximum_nights] * n,
        })
    return _make


@pytest.fixture
def sample_listings():
    """Four listings across two neighbourhoods."""
    return pd.DataFrame({
        'id': [100, 101, 102, 103],
        'name': ['Back Bay Loft', 'Cozy Studio', 'Harbor House', 'Downtown Flat'],
        'neighborhood': ['Back Bay', 'Back Bay', 'Downtown', 'Downtown'],
        'property_type': ['Apartment', 'Apartment', 'House', 'Condominium'],
        'accommodates': [4, 2, 6, 3],
        'bedrooms': [2.0, 1.0, 3.0, 1.0],
        'bathrooms': [1.0, 1.0, 2.0, 1.0],
        'latitude': [42.350, 42.349, 42.360, 42.355],
        'longitude': [-71.080, -71.082, -71.050, -71.060],
        'rating': [95.0, np.nan, 88.0, 91.0],
    })


@pytest.fixture
def sample_calendar(calendar_rows):
    """
    Calendar for Nov 1-10, 2019:
    - 100: nights 2-7, all available, Nov 1-3 priced 100/120/110 then 100
    - 101: nights 1-3, all available at 80
    - 102: nights 2-5, 200 a night, unavailable on Nov 2
    - 103: nights 1-30, 90 a night, data stops after Nov 5
    """
    availability_102 = [True] * 10
    availability_102[1] = False
    return pd.concat([
        calendar_rows(100, [100, 120, 110] + [100] * 7, minimum_nights=2, maximum_nights=7),
        calendar_rows(101, [80] * 10, minimum_nights=1, maximum_nights=3),
        calendar_rows(102, [200] * 10, available=availability_102, minimum_nights=2, maximum_nights=5),
        calendar_rows(103, [90] * 5, minimum_nights=1, maximum_nights=30),
    ], ignore_index=True)


@pytest.fixture
def engine(sample_listings, sample_calendar):
    """Availability engine over the sample tables."""
    eng = AvailabilityEngine(sample_listings, sample_calendar)
    yield eng
    eng.close()


LISTINGS_CSV = """id,name,neighbourhood_cleansed,property_type,accommodates,bedrooms,bathrooms,latitude,longitude,review_scores_rating,review_scores_cleanliness
1,Cozy Loft,Back Bay,Apartment,4,2,1,42.35,-71.08,95,10
2,Harbor View,Downtown,Condominium,2,1,1,42.36,-71.05,,9
3,Tiny Room,Downtown,House,0,3,2,42.36,-71.06,88,8
"""

CALENDAR_CSV = """listing_id,date,available,price,adjusted_price,minimum_nights,maximum_nights
1,2019-11-01,t,"$1,250.00","$1,200.00",1,7
1,2019-11-02,t,$100.00,$90.00,1,7
1,2019-11-02,t,$100.00,$90.00,1,7
2,2019-11-01,f,$80.00,$80.00,3,2
2,2019-11-02,t,,,1,30
9,2019-11-01,t,$50.00,$50.00,1,30
"""


@pytest.fixture
def raw_data_dir(tmp_path):
    """
    Directory with raw Inside Airbnb style CSVs containing one of each issue:
    listing 3 has zero capacity, listing 1 has a duplicated Nov 2 row,
    listing 2 has inverted night bounds on Nov 1 and an unpriced available Nov 2,
    listing 9 does not exist.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "listings.csv").write_text(LISTINGS_CSV)
    (data_dir / "calendar.csv").write_text(CALENDAR_CSV)
    return data_dir
