"""
Mock Data for the Mobile Air-Quality Survey toolkit.

Simulates a survey drive around the factory: a GPS track in two segments
separated by a multi-hour break, and an FTIR gas log whose concentrations
rise near the factory and downwind of it while the factory is running.
Designed to be swapped out for real campaign files.
"""

import os
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from models.campaign import SiteLocation, CampaignConditions
from analysis.geodesy import haversine_km, bearing_deg
from config import (
    FACTORY_LOCATION,
    GAS_LOG_TZ,
    GPS_LOG_TZ,
    GAS_POLLUTANTS,
    GAP_THRESHOLD_S,
)

MOCK_DATE = "2023-06-14"
MOCK_PRIOR_DATE = "2023-05-30"
MOCK_WIND_DIRECTION = 225.0     # From the south-west: plume drifts north-east

# Local start/end of each collection segment
MOCK_SEGMENTS = [("10:00:00", "10:45:00"), ("14:00:00", "14:45:00")]

KM_PER_DEG_LAT = 111.32
PLUME_LENGTH_KM = 0.8

# Typical roadside background levels (ppm; H2O vol-%, PM ug/m^3)
BACKGROUND = {
    "H2O": 1.8, "CO2": 420.0, "CO": 0.25, "N2O": 0.33, "NO": 0.02,
    "NO2": 0.03, "SO2": 0.004, "NH3": 0.01, "HCl": 0.002, "HF": 0.001,
    "CH4": 2.0, "C2H6": 0.005, "C2H4": 0.004, "C3H8": 0.003, "C6H14": 0.002,
    "CH2O": 0.004, "C6H6": 0.001, "C7H8": 0.002, "PM2.5": 9.0, "PM10": 18.0,
}

# Peak enhancement at the factory fence line while operating
PLUME_AMPLITUDE = {
    "H2O": 0.0, "CO2": 60.0, "CO": 1.5, "N2O": 0.02, "NO": 0.25,
    "NO2": 0.12, "SO2": 0.08, "NH3": 0.05, "HCl": 0.01, "HF": 0.004,
    "CH4": 0.6, "C2H6": 0.02, "C2H4": 0.015, "C3H8": 0.01, "C6H14": 0.006,
    "CH2O": 0.01, "C6H6": 0.008, "C7H8": 0.012, "PM2.5": 25.0, "PM10": 40.0,
}


def get_factory_site() -> SiteLocation:
    """The configured factory location."""
    return SiteLocation.from_dict(FACTORY_LOCATION)


def get_conditions() -> List[CampaignConditions]:
    """Conditions for the mock campaign and the prior (factory off) campaign."""
    return [
        CampaignConditions(
            label=f"{MOCK_DATE} factory on",
            collection_date=date.fromisoformat(MOCK_DATE),
            factory_on=True,
            wind_direction_deg=MOCK_WIND_DIRECTION,
            wind_speed=3.5,
        ),
        CampaignConditions(
            label=f"{MOCK_PRIOR_DATE} factory off",
            collection_date=date.fromisoformat(MOCK_PRIOR_DATE),
            factory_on=False,
            wind_direction_deg=MOCK_WIND_DIRECTION,
            wind_speed=3.0,
        ),
    ]


def vehicle_position(
    frac: np.ndarray,
    site: SiteLocation,
    r_min_km: float = 0.2,
    r_max_km: float = 3.0,
    turns: float = 3.0,
    phase: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Position along an outward spiral centred on the site.

    Args:
        frac: Fraction of the segment elapsed, in [0, 1].

    Returns:
        (latitude, longitude) arrays.
    """
    r = r_min_km + (r_max_km - r_min_km) * frac
    theta = 2.0 * np.pi * turns * frac + phase
    lat = site.latitude + r * np.cos(theta) / KM_PER_DEG_LAT
    lon = site.longitude + r * np.sin(theta) / (
        KM_PER_DEG_LAT * np.cos(np.radians(site.latitude))
    )
    return lat, lon


def concentrations(
    lat: np.ndarray,
    lon: np.ndarray,
    site: SiteLocation,
    factory_on: bool,
    wind_direction_deg: float,
    pollutants: Sequence[str],
    rng: np.random.Generator,
) -> Dict[str, np.ndarray]:
    """Background with 5% noise plus a distance-decaying, wind-skewed plume."""
    dist = haversine_km(site.latitude, site.longitude, lat, lon)
    toward = (wind_direction_deg + 180.0) % 360.0
    angle = np.radians(bearing_deg(site.latitude, site.longitude, lat, lon) - toward)
    downwind = np.clip(np.cos(angle), 0.0, None)
    plume = np.exp(-dist / PLUME_LENGTH_KM) * (0.25 + 0.75 * downwind)

    out = {}
    for p in pollutants:
        base = BACKGROUND.get(p, 1.0) * (1.0 + 0.05 * rng.standard_normal(len(lat)))
        value = base + (PLUME_AMPLITUDE.get(p, 0.0) * plume if factory_on else 0.0)
        out[p] = np.clip(value, 0.0, None)
    return out


def simulate_campaign(
    seed: int = 42,
    factory_on: bool = True,
    wind_direction_deg: float = MOCK_WIND_DIRECTION,
    collection_date: str = MOCK_DATE,
    segments: Sequence[Tuple[str, str]] = MOCK_SEGMENTS,
    pollutants: Optional[Sequence[str]] = None,
    gps_interval_s: int = 3,
    gps_dropout: float = 0.05,
    duplicate_fraction: float = 0.01,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Simulate raw gas and GPS logs for one collection day.

    Gas timestamps are naive local time (``GAS_LOG_TZ``); GPS timestamps
    are naive UTC (``GPS_LOG_TZ``), as the instruments write them.  The gas
    analyzer reports every 7-9 s, the GPS every *gps_interval_s* with random
    dropouts, and a few gas rows are logged twice.

    Returns:
        (gas, gps) raw tables.
    """
    rng = np.random.default_rng(seed)
    site = get_factory_site()
    pollutants = list(GAS_POLLUTANTS if pollutants is None else pollutants)

    gas_frames, gps_frames = [], []
    for k, (start, end) in enumerate(segments):
        t0 = pd.Timestamp(f"{collection_date} {start}")
        duration = (pd.Timestamp(f"{collection_date} {end}") - t0).total_seconds()
        phase = k * np.pi / 4.0

        # GPS track
        offsets = np.arange(0, duration + 1, gps_interval_s, dtype=float)
        keep = rng.random(len(offsets)) >= gps_dropout
        keep[0] = keep[-1] = True
        offsets = offsets[keep]
        lat, lon = vehicle_position(offsets / duration, site, phase=phase)
        local = t0 + pd.to_timedelta(offsets, unit="s")
        gps_times = (
            local.tz_localize(GAS_LOG_TZ).tz_convert(GPS_LOG_TZ).tz_localize(None)
        )
        gps_frames.append(pd.DataFrame({
            "timestamp": gps_times,
            "latitude": lat + rng.normal(0.0, 2e-6, len(lat)),
            "longitude": lon + rng.normal(0.0, 2e-6, len(lon)),
        }))

        # Gas log, sampled every 7-9 s starting shortly after the GPS
        steps = rng.choice([7, 8, 9], size=int(duration // 7) + 1)
        gas_offsets = 10.0 + np.cumsum(steps) - steps[0]
        gas_offsets = gas_offsets[gas_offsets <= duration]
        g_lat, g_lon = vehicle_position(gas_offsets / duration, site, phase=phase)
        values = concentrations(
            g_lat, g_lon, site, factory_on, wind_direction_deg, pollutants, rng,
        )
        gas_frames.append(pd.DataFrame({
            "timestamp": t0 + pd.to_timedelta(gas_offsets, unit="s"),
            **values,
        }))

    gas = pd.concat(gas_frames, ignore_index=True)
    gps = pd.concat(gps_frames, ignore_index=True)

    n_dup = int(len(gas) * duplicate_fraction)
    if n_dup:
        dup = gas.sample(n=n_dup, random_state=seed).copy()
        dup[pollutants] = dup[pollutants] * (1.0 + 0.01 * rng.standard_normal((n_dup, len(pollutants))))
        gas = pd.concat([gas, dup]).sort_values("timestamp", kind="stable")

    return gas.reset_index(drop=True), gps


def get_prior_raster(seed: int = 7) -> pd.DataFrame:
    """Rasterized means of an earlier campaign with the factory off."""
    from processing.pipeline import run_campaign

    gas, gps = simulate_campaign(
        seed=seed, factory_on=False, collection_date=MOCK_PRIOR_DATE,
    )
    return run_campaign(gas, gps).raster


def split_gps_segments(gps: pd.DataFrame, min_gap_s: float = GAP_THRESHOLD_S) -> List[pd.DataFrame]:
    """Split a GPS table wherever consecutive fixes are more than *min_gap_s* apart."""
    gps = gps.sort_values("timestamp").reset_index(drop=True)
    deltas = gps["timestamp"].diff().dt.total_seconds().fillna(0.0).to_numpy()
    segment_id = np.cumsum(deltas > min_gap_s)
    return [part.reset_index(drop=True) for _, part in gps.groupby(segment_id)]


def write_mock_campaign(directory: str, seed: int = 42) -> Dict[str, object]:
    """
    Write the mock campaign as instrument-style CSV files.

    The gas log uses separate ``Date``/``Time`` columns, GPS segments use
    ``time,lat,lon``, and the prior raster uses ``lat``/``lon``, matching
    the formats accepted by the readers.

    Returns:
        Dict with keys 'gas', 'gps' (list of paths) and 'prior_raster'.
    """
    os.makedirs(directory, exist_ok=True)
    gas, gps = simulate_campaign(seed=seed)

    gas_out = gas.copy()
    gas_out.insert(0, "Time", gas_out["timestamp"].dt.strftime("%H:%M:%S"))
    gas_out.insert(0, "Date", gas_out["timestamp"].dt.strftime("%m/%d/%Y"))
    gas_path = os.path.join(directory, "gas_analyzer.csv")
    gas_out.drop(columns="timestamp").to_csv(gas_path, index=False)

    gps_paths = []
    for i, part in enumerate(split_gps_segments(gps), start=1):
        path = os.path.join(directory, f"gps_segment_{i}.csv")
        part.rename(columns={"timestamp": "time", "latitude": "lat", "longitude": "lon"}).to_csv(
            path, index=False, date_format="%Y-%m-%dT%H:%M:%S",
        )
        gps_paths.append(path)

    prior_path = os.path.join(directory, "prior_raster.csv")
    prior = get_prior_raster().drop(columns=["x", "y"])
    prior.rename(columns={"latitude": "lat", "longitude": "lon"}).to_csv(prior_path, index=False)

    return {"gas": gas_path, "gps": gps_paths, "prior_raster": prior_path}
