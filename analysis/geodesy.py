"""
Great-circle geometry relative to a fixed site.
"""

import numpy as np

from models.campaign import SiteLocation
from config import EARTH_RADIUS_KM

QUADRANTS = ("NE", "SE", "SW", "NW")
_OPPOSITE = {"NE": "SW", "SW": "NE", "NW": "SE", "SE": "NW"}


def haversine_km(lat1, lon1, lat2, lon2, radius_km: float = EARTH_RADIUS_KM):
    """Great-circle distance in km between points given in degrees (vectorized)."""
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * radius_km * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def bearing_deg(lat1, lon1, lat2, lon2):
    """Initial bearing from point 1 to point 2, degrees clockwise from north."""
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    dlon = lon2 - lon1
    x = np.sin(dlon) * np.cos(lat2)
    y = np.cos(lat1) * np.sin(lat2) - np.sin(lat1) * np.cos(lat2) * np.cos(dlon)
    return np.degrees(np.arctan2(x, y)) % 360.0


def distance_to_site(lat, lon, site: SiteLocation):
    return haversine_km(site.latitude, site.longitude, lat, lon)


def assign_quadrant(lat, lon, site: SiteLocation) -> np.ndarray:
    """
    Quadrant label of each point relative to *site*.

    Points exactly on the site's latitude count as north, and points on its
    longitude count as east.
    """
    north = np.asarray(lat) >= site.latitude
    east = np.asarray(lon) >= site.longitude
    return np.where(
        north,
        np.where(east, "NE", "NW"),
        np.where(east, "SE", "SW"),
    )


def downwind_quadrant(wind_direction_deg: float) -> str:
    """
    Quadrant the plume is carried into for a meteorological wind direction.

    The wind direction is where the wind comes FROM, so the plume travels
    toward ``direction + 180``.
    """
    toward = (wind_direction_deg + 180.0) % 360.0
    return QUADRANTS[int(toward // 90.0) % 4]


def opposite_quadrant(quadrant: str) -> str:
    if quadrant not in _OPPOSITE:
        raise ValueError(f"Unknown quadrant: {quadrant}")
    return _OPPOSITE[quadrant]
