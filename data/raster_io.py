"""
Raster persistence as CSV with an optional JSON metadata sidecar.

Also reads the rasterized-mean CSVs produced by earlier campaigns, which
name their coordinate columns ``lat``/``lon`` and may lack cell indices.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from data.readers import find_column
from config import LATITUDE_ALIASES, LONGITUDE_ALIASES

logger = logging.getLogger(__name__)


def metadata_path(path) -> Path:
    """Sidecar path for a raster CSV: ``<name>.meta.json``."""
    path = Path(path)
    return path.with_name(path.stem + ".meta.json")


def write_raster_csv(
    raster: pd.DataFrame,
    path,
    metadata: Optional[dict] = None,
) -> Path:
    """Write a raster table to CSV, plus a JSON sidecar if *metadata* is given.

    Returns:
        Path of the written CSV.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    raster.to_csv(path, index=False)
    if metadata:
        with open(metadata_path(path), "w") as f:
            json.dump(metadata, f, indent=2, default=str)
    logger.info("Wrote %d raster cells to %s", len(raster), path)
    return path


def read_raster_csv(path) -> pd.DataFrame:
    """Read a raster CSV written by :func:`write_raster_csv` or a prior campaign.

    Coordinate aliases are renamed to ``latitude``/``longitude`` and
    leftover index columns (``Unnamed: 0``) are dropped.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If coordinate columns are missing or the table is empty.
    """
    df = pd.read_csv(path)
    df = df.loc[:, [c for c in df.columns if not str(c).startswith("Unnamed")]]
    df.columns = [c.strip() for c in df.columns]

    lat_col = find_column(df.columns, LATITUDE_ALIASES)
    lon_col = find_column(df.columns, LONGITUDE_ALIASES)
    if lat_col is None or lon_col is None:
        raise ValueError(f"Raster file {path} missing latitude/longitude columns")
    df = df.rename(columns={lat_col: "latitude", lon_col: "longitude"})

    if len(df) == 0:
        raise ValueError(f"Raster file contains no cells: {path}")
    return df


def read_raster_metadata(path) -> dict:
    """Metadata sidecar of a raster CSV, or an empty dict if there is none."""
    meta = metadata_path(path)
    if not meta.exists():
        return {}
    with open(meta) as f:
        return json.load(f)
