"""
Raster grid definition.

A grid is anchored at its south-west corner and indexed by integer cell
coordinates ``x`` (eastward) and ``y`` (northward).
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class GridSpec:
    """A regular longitude/latitude grid.

    Args:
        lon0: Longitude of the grid's western edge (degrees).
        lat0: Latitude of the grid's southern edge (degrees).
        resolution: Cell size in degrees (same in both axes).
        nx: Number of cells along longitude.
        ny: Number of cells along latitude.
    """

    lon0: float
    lat0: float
    resolution: float
    nx: int
    ny: int

    def __post_init__(self):
        if self.resolution <= 0:
            raise ValueError("resolution must be > 0")
        if self.nx < 1 or self.ny < 1:
            raise ValueError(f"Grid must have at least one cell, got {self.nx}x{self.ny}")

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(lon_min, lat_min, lon_max, lat_max) of the grid extent."""
        return (
            self.lon0,
            self.lat0,
            self.lon0 + self.nx * self.resolution,
            self.lat0 + self.ny * self.resolution,
        )

    def cell_center(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        """Return (lon, lat) of cell centres for integer cell coordinates."""
        lon = self.lon0 + (np.asarray(x) + 0.5) * self.resolution
        lat = self.lat0 + (np.asarray(y) + 0.5) * self.resolution
        return lon, lat

    def cell_bounds(self, x: int, y: int) -> Tuple[float, float, float, float]:
        """(lon_min, lat_min, lon_max, lat_max) of a single cell."""
        west = self.lon0 + x * self.resolution
        south = self.lat0 + y * self.resolution
        return west, south, west + self.resolution, south + self.resolution
