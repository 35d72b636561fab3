"""
CSV readers for the gas analyzer log and the GPS track.

Readers only parse and validate; timezone handling and de-duplication
happen in :mod:`processing.alignment`.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from config import TIMESTAMP_ALIASES, LATITUDE_ALIASES, LONGITUDE_ALIASES

logger = logging.getLogger(__name__)


def find_column(columns: Iterable[str], aliases: Sequence[str]) -> Optional[str]:
    """Return the first column matching an alias (case-insensitive)."""
    lookup = {c.strip().lower(): c for c in columns}
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    return None


def _parse_timestamps(df: pd.DataFrame, path: str) -> pd.Series:
    """Build a timestamp series from a single column or Date + Time columns."""
    date_col = find_column(df.columns, ("date",))
    time_col = find_column(df.columns, ("time",))
    ts_col = find_column(
        df.columns, [a for a in TIMESTAMP_ALIASES if a != "time"]
    )

    if ts_col is not None:
        raw = df[ts_col].astype(str)
    elif date_col is not None and time_col is not None:
        raw = df[date_col].astype(str).str.strip() + " " + df[time_col].astype(str).str.strip()
    elif time_col is not None:
        raw = df[time_col].astype(str)
    else:
        raise ValueError(
            f"No timestamp column found in {path}; expected one of "
            f"{list(TIMESTAMP_ALIASES)} or Date + Time"
        )
    return pd.to_datetime(raw, errors="coerce")


def _timestamp_source_columns(df: pd.DataFrame) -> List[str]:
    names = set(TIMESTAMP_ALIASES) | {"date"}
    return [c for c in df.columns if c.strip().lower() in names]


def read_gas_log(path: str, pollutants: Optional[List[str]] = None) -> pd.DataFrame:
    """Parse an FTIR gas analyzer CSV export.

    Args:
        path: CSV file path.
        pollutants: Channels to keep.  If None, every column other than the
            timestamp columns that holds at least one numeric value is kept.

    Returns:
        DataFrame with a naive ``timestamp`` column followed by one float
        column per pollutant, in file order.

    Raises:
        ValueError: If no timestamp column exists, a requested pollutant is
            missing, or the file has no usable rows.
    """
    df = pd.read_csv(path)
    df.columns = [c.strip() for c in df.columns]

    timestamps = _parse_timestamps(df, path)
    candidates = [c for c in df.columns if c not in _timestamp_source_columns(df)]

    if pollutants is not None:
        missing = [p for p in pollutants if p not in df.columns]
        if missing:
            raise ValueError(f"Gas log {path} missing pollutant columns {missing}")
        columns = list(pollutants)
    else:
        columns = candidates

    out = pd.DataFrame({"timestamp": timestamps})
    for col in columns:
        values = pd.to_numeric(df[col], errors="coerce")
        if pollutants is None and values.notna().sum() == 0:
            continue
        out[col] = values.astype(float)

    bad = out["timestamp"].isna()
    if bad.any():
        logger.warning("Dropping %d gas rows with unparseable timestamps in %s",
                       int(bad.sum()), path)
        out = out[~bad]

    if len(out) == 0 or len(out.columns) < 2:
        raise ValueError(f"Gas log contains no usable readings: {path}")

    logger.info("Read %d gas readings with %d channels from %s",
                len(out), len(out.columns) - 1, path)
    return out.reset_index(drop=True)


def read_gps_log(path: str) -> pd.DataFrame:
    """Parse one GPS log segment.

    Rows with coordinates outside the valid ranges, or exactly (0, 0)
    which the logger writes when it has no fix, are dropped.

    Returns:
        DataFrame with ``timestamp`` (naive), ``latitude``, ``longitude``.

    Raises:
        ValueError: If a timestamp or coordinate column is missing, or no
            valid fix remains.
    """
    df = pd.read_csv(path)
    df.columns = [c.strip() for c in df.columns]

    lat_col = find_column(df.columns, LATITUDE_ALIASES)
    lon_col = find_column(df.columns, LONGITUDE_ALIASES)
    missing = [
        name for name, col in (("latitude", lat_col), ("longitude", lon_col))
        if col is None
    ]
    if missing:
        raise ValueError(f"GPS log {path} missing required columns {missing}")

    out = pd.DataFrame({
        "timestamp": _parse_timestamps(df, path),
        "latitude": pd.to_numeric(df[lat_col], errors="coerce"),
        "longitude": pd.to_numeric(df[lon_col], errors="coerce"),
    })

    valid = (
        out["timestamp"].notna()
        & out["latitude"].between(-90.0, 90.0)
        & out["longitude"].between(-180.0, 180.0)
        & ~((out["latitude"] == 0.0) & (out["longitude"] == 0.0))
    )
    n_dropped = int((~valid).sum())
    if n_dropped:
        logger.info("Dropping %d invalid GPS fixes in %s", n_dropped, path)
    out = out[valid].reset_index(drop=True)

    if len(out) == 0:
        raise ValueError(f"GPS log contains no valid fixes: {path}")

    logger.info("Read %d GPS fixes from %s", len(out), path)
    return out


def read_gps_logs(paths: Sequence) -> pd.DataFrame:
    """Read several GPS segments (paths or file objects) and concatenate them in time order."""
    if len(paths) == 0:
        raise ValueError("At least one GPS log is required")
    frames = [read_gps_log(p) for p in paths]
    gps = pd.concat(frames, ignore_index=True)
    return gps.sort_values("timestamp", kind="stable").reset_index(drop=True)
