"""
Rasterization of located readings onto a regular geographic grid.

Each cell's value is the mean of the readings that fall inside it.  Cells
without readings are dropped rather than interpolated, so the raster
weights every visited location equally regardless of how long the
vehicle spent there.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from models.grid import GridSpec
from config import RASTER_RESOLUTION_DEG, RASTER_MARGIN_DEG

logger = logging.getLogger(__name__)

# Non-pollutant columns of a raster table
RASTER_META_COLUMNS = ("x", "y", "longitude", "latitude", "n")

# Non-pollutant columns of a joined readings table
JOINED_META_COLUMNS = (
    "timestamp", "latitude", "longitude", "window_s", "n_fixes", "segment", "observed",
)

BBox = Tuple[float, float, float, float]


def _cell_index(values: np.ndarray, origin: float, resolution: float) -> np.ndarray:
    # Rounding before floor absorbs float error for points on cell edges
    return np.floor(np.round((values - origin) / resolution, 9)).astype(np.int64)


def pollutant_columns(df: pd.DataFrame, exclude: Sequence[str] = RASTER_META_COLUMNS) -> List[str]:
    """Numeric columns of *df* that are not coordinates or bookkeeping."""
    skip = set(exclude) | set(JOINED_META_COLUMNS)
    return [
        c for c in df.columns
        if c not in skip and pd.api.types.is_numeric_dtype(df[c])
    ]


def build_grid(
    points: pd.DataFrame,
    resolution: float = RASTER_RESOLUTION_DEG,
    margin: float = RASTER_MARGIN_DEG,
) -> GridSpec:
    """
    Create a grid covering all points plus *margin* degrees on every side.

    The south-west corner is snapped down to a multiple of *resolution* so
    grids built from different campaigns share cell boundaries.

    Args:
        points: Table with ``latitude`` and ``longitude`` columns.
        resolution: Cell size in degrees.
        margin: Padding in degrees.

    Returns:
        GridSpec whose extent contains every point.
    """
    if len(points) == 0:
        raise ValueError("Cannot build a grid from an empty table")
    if resolution <= 0:
        raise ValueError("resolution must be > 0")

    lon_min = points["longitude"].min() - margin
    lon_max = points["longitude"].max() + margin
    lat_min = points["latitude"].min() - margin
    lat_max = points["latitude"].max() + margin

    lon0 = float(np.floor(np.round(lon_min / resolution, 9)) * resolution)
    lat0 = float(np.floor(np.round(lat_min / resolution, 9)) * resolution)
    nx = int(_cell_index(np.array([lon_max]), lon0, resolution)[0]) + 1
    ny = int(_cell_index(np.array([lat_max]), lat0, resolution)[0]) + 1

    return GridSpec(lon0=lon0, lat0=lat0, resolution=resolution, nx=nx, ny=ny)


def assign_cells(points: pd.DataFrame, grid: GridSpec) -> pd.DataFrame:
    """
    Add integer cell coordinates ``x``, ``y`` to each point.

    Points outside the grid are dropped.
    """
    out = points.copy()
    out["x"] = _cell_index(out["longitude"].to_numpy(dtype=float), grid.lon0, grid.resolution)
    out["y"] = _cell_index(out["latitude"].to_numpy(dtype=float), grid.lat0, grid.resolution)

    inside = out["x"].between(0, grid.nx - 1) & out["y"].between(0, grid.ny - 1)
    n_outside = int((~inside).sum())
    if n_outside:
        logger.warning("Dropping %d point(s) outside the grid extent", n_outside)
    return out[inside].reset_index(drop=True)


def rasterize(
    points: pd.DataFrame,
    pollutants: Optional[Sequence[str]] = None,
    grid: Optional[GridSpec] = None,
) -> pd.DataFrame:
    """
    Average readings per grid cell.

    Args:
        points: Joined readings with ``latitude``, ``longitude`` and the
                pollutant columns.
        pollutants: Columns to average (default: every pollutant column).
        grid: Grid to bin into.  Built from *points* when omitted.

    Returns:
        One row per non-empty cell with ``x``, ``y``, cell-centre
        ``longitude`` and ``latitude``, the reading count ``n`` and the mean
        of each pollutant, sorted by (y, x).
    """
    if pollutants is None:
        pollutants = pollutant_columns(points)
    pollutants = list(pollutants)
    if grid is None:
        grid = build_grid(points)

    cells = assign_cells(points, grid)
    grouped = cells.groupby(["y", "x"], sort=True)
    raster = grouped[pollutants].mean()
    raster.insert(0, "n", grouped.size())
    raster = raster.reset_index()

    lon, lat = grid.cell_center(raster["x"].to_numpy(), raster["y"].to_numpy())
    raster.insert(2, "longitude", lon)
    raster.insert(3, "latitude", lat)

    raster = raster[["x", "y", "longitude", "latitude", "n"] + pollutants]
    logger.info("Rasterized %d readings into %d of %d cells",
                len(cells), len(raster), grid.nx * grid.ny)
    return raster


def cell_polygons(raster: pd.DataFrame, grid: GridSpec) -> dict:
    """
    GeoJSON FeatureCollection with one square polygon per raster cell.

    Feature ids are ``"<x>_<y>"`` and match :func:`cell_ids`.
    """
    features = []
    for x, y in zip(raster["x"].astype(int), raster["y"].astype(int)):
        west, south, east, north = grid.cell_bounds(x, y)
        features.append({
            "type": "Feature",
            "id": f"{x}_{y}",
            "properties": {"x": x, "y": y},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[
                    [west, south], [east, south], [east, north],
                    [west, north], [west, south],
                ]],
            },
        })
    return {"type": "FeatureCollection", "features": features}


def cell_ids(raster: pd.DataFrame) -> List[str]:
    return [f"{int(x)}_{int(y)}" for x, y in zip(raster["x"], raster["y"])]


def raster_bbox(raster: pd.DataFrame) -> BBox:
    """(lon_min, lat_min, lon_max, lat_max) of the cell centres."""
    return (
        float(raster["longitude"].min()),
        float(raster["latitude"].min()),
        float(raster["longitude"].max()),
        float(raster["latitude"].max()),
    )


def common_bbox(a: pd.DataFrame, b: pd.DataFrame) -> Optional[BBox]:
    """Intersection of two rasters' extents, or None if they do not overlap."""
    if len(a) == 0 or len(b) == 0:
        return None
    a_box, b_box = raster_bbox(a), raster_bbox(b)
    box = (
        max(a_box[0], b_box[0]),
        max(a_box[1], b_box[1]),
        min(a_box[2], b_box[2]),
        min(a_box[3], b_box[3]),
    )
    if box[0] > box[2] or box[1] > box[3]:
        return None
    return box


def restrict_to_bbox(raster: pd.DataFrame, bbox: BBox) -> pd.DataFrame:
    """Cells whose centre lies inside *bbox* (edges inclusive)."""
    lon_min, lat_min, lon_max, lat_max = bbox
    mask = (
        raster["longitude"].between(lon_min, lon_max)
        & raster["latitude"].between(lat_min, lat_max)
    )
    return raster[mask].reset_index(drop=True)
