"""Shared fixtures for the Mobile Air-Quality Survey test suite."""

import sys
import os
import pytest
import numpy as np
import pandas as pd

# Ensure project root is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.campaign import SiteLocation


def utc_times(seconds, base="2023-06-14 15:00:00"):
    """Aware UTC timestamps at the given second offsets from *base*."""
    return pd.Timestamp(base, tz="UTC") + pd.to_timedelta(np.asarray(seconds), unit="s")


@pytest.fixture
def origin_site():
    """A site at (0, 0) so quadrants follow the coordinate signs."""
    return SiteLocation(name="Origin", latitude=0.0, longitude=0.0)


@pytest.fixture
def filled_track():
    """A 1-second GPS track over 21 s moving north 0.001 deg per second."""
    secs = np.arange(0, 21)
    return pd.DataFrame({
        "timestamp": utc_times(secs),
        "latitude": 40.0 + 0.001 * secs,
        "longitude": np.full(len(secs), -80.0),
        "segment": np.zeros(len(secs), dtype=int),
        "observed": np.ones(len(secs), dtype=bool),
    })


@pytest.fixture
def quadrant_raster():
    """Raster around (0, 0): high CO in NE, low in SW, mid elsewhere."""
    rng = np.random.default_rng(0)
    rows = []
    for lat_sign, lon_sign, level in ((1, 1, 10.0), (-1, -1, 1.0), (1, -1, 5.0), (-1, 1, 5.0)):
        for k in range(1, 11):
            rows.append({
                "latitude": lat_sign * 0.001 * k,
                "longitude": lon_sign * 0.001 * k,
                "n": 3,
                "CO": level + 0.1 * rng.standard_normal(),
                "CO2": 420.0,
            })
    df = pd.DataFrame(rows)
    df.insert(0, "y", np.arange(len(df)))
    df.insert(0, "x", np.arange(len(df)))
    return df


@pytest.fixture(scope="session")
def mock_campaign():
    """Raw (gas, gps) tables of the simulated campaign."""
    from data.mock_data import simulate_campaign
    return simulate_campaign(seed=42)


@pytest.fixture(scope="session")
def campaign_result(mock_campaign):
    """The simulated campaign run through the whole pipeline."""
    from processing.pipeline import run_campaign
    gas, gps = mock_campaign
    return run_campaign(gas, gps)


@pytest.fixture(scope="session")
def prior_raster():
    from data.mock_data import get_prior_raster
    return get_prior_raster()


@pytest.fixture(scope="session")
def factory_site():
    from data.mock_data import get_factory_site
    return get_factory_site()
