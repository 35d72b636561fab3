"""
Window averaging: assigns a location to every gas reading.

The analyzer reports one value per sampling window.  A reading at time
``t`` covers the seconds since the previous reading, so its location is
the mean of the filled GPS fixes in ``(t - window, t]``.  When the
interval back to the previous reading crosses a collection gap, or is too
long to be a sampling window, the window falls back to a fixed size.
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from models.campaign import CollectionGap
from config import FALLBACK_WINDOW_S, MAX_WINDOW_S

logger = logging.getLogger(__name__)

_EPOCH = pd.Timestamp("1970-01-01")


def _naive_utc(ts: pd.Timestamp) -> pd.Timestamp:
    ts = pd.Timestamp(ts)
    return ts if ts.tzinfo is None else ts.tz_convert("UTC").tz_localize(None)


def epoch_seconds(timestamps) -> np.ndarray:
    """Whole seconds since the Unix epoch for a series of timestamps."""
    ts = pd.to_datetime(pd.Series(timestamps))
    if ts.dt.tz is not None:
        ts = ts.dt.tz_convert("UTC").dt.tz_localize(None)
    return ((ts - _EPOCH) // pd.Timedelta(seconds=1)).to_numpy(dtype=np.int64)


def compute_windows(
    gas_times,
    gaps: Sequence[CollectionGap] = (),
    fallback_s: int = FALLBACK_WINDOW_S,
    max_window_s: int = MAX_WINDOW_S,
) -> np.ndarray:
    """
    Sampling window length (seconds) preceding each gas reading.

    Args:
        gas_times: Sorted, unique reading timestamps.
        gaps: Collection gaps.
        fallback_s: Window used when the elapsed time is not a valid window.
        max_window_s: Elapsed times above this use the fallback.

    Returns:
        Float array aligned with *gas_times*.  The first entry is NaN since
        the first reading has no preceding reading.
    """
    t = epoch_seconds(gas_times)
    windows = np.full(len(t), np.nan)
    if len(t) < 2:
        return windows

    prev, cur = t[:-1], t[1:]
    delta = (cur - prev).astype(float)

    use_fallback = delta > max_window_s
    for gap in gaps:
        g_start = int((_naive_utc(gap.start) - _EPOCH) // pd.Timedelta(seconds=1))
        g_end = int((_naive_utc(gap.end) - _EPOCH) // pd.Timedelta(seconds=1))
        use_fallback |= (prev < g_end) & (cur > g_start)

    n_fallback = int(use_fallback.sum())
    if n_fallback:
        logger.info("Using %d s fallback window for %d reading(s)", fallback_s, n_fallback)

    delta[use_fallback] = fallback_s
    windows[1:] = delta
    return windows


def join_readings(
    gas: pd.DataFrame,
    filled_gps: pd.DataFrame,
    gaps: Sequence[CollectionGap] = (),
    fallback_s: int = FALLBACK_WINDOW_S,
    max_window_s: int = MAX_WINDOW_S,
) -> pd.DataFrame:
    """
    Attach the window-averaged GPS position to every gas reading.

    Args:
        gas: Cleaned gas table (sorted, unique ``timestamp``).
        filled_gps: Output of :func:`processing.alignment.fill_gps`.
        gaps: Collection gaps used to build *filled_gps*.
        fallback_s: Fallback window size in seconds.
        max_window_s: Largest elapsed time accepted as a window.

    Returns:
        Gas columns plus ``latitude``, ``longitude``, ``window_s`` and
        ``n_fixes``.  The first reading and readings with no GPS fix in their
        window are dropped, so every row has a non-empty window.
    """
    gas = gas.sort_values("timestamp").reset_index(drop=True)
    gps = filled_gps.sort_values("timestamp")

    windows = compute_windows(gas["timestamp"], gaps, fallback_s, max_window_s)
    t = epoch_seconds(gas["timestamp"])
    gps_t = epoch_seconds(gps["timestamp"])

    # Prefix sums give O(log n) window means via two binary searches
    cs_lat = np.concatenate([[0.0], np.cumsum(gps["latitude"].to_numpy(dtype=float))])
    cs_lon = np.concatenate([[0.0], np.cumsum(gps["longitude"].to_numpy(dtype=float))])

    has_window = ~np.isnan(windows)
    w = np.where(has_window, windows, 0).astype(np.int64)
    lo = np.searchsorted(gps_t, t - w, side="right")
    hi = np.searchsorted(gps_t, t, side="right")
    n_fixes = hi - lo

    keep = has_window & (n_fixes > 0)
    n_uncovered = int((has_window & (n_fixes == 0)).sum())
    if n_uncovered:
        logger.warning("Dropping %d gas reading(s) with no GPS fix in their window",
                       n_uncovered)

    with np.errstate(invalid="ignore", divide="ignore"):
        lat = (cs_lat[hi] - cs_lat[lo]) / n_fixes
        lon = (cs_lon[hi] - cs_lon[lo]) / n_fixes

    joined = gas.copy()
    joined["latitude"] = lat
    joined["longitude"] = lon
    joined["window_s"] = w
    joined["n_fixes"] = n_fixes
    if "segment" in gps:
        # Segment of the last fix in each window
        joined["segment"] = gps["segment"].to_numpy()[np.maximum(hi - 1, 0)]
    joined = joined[keep].reset_index(drop=True)

    logger.info("Joined %d of %d gas readings to GPS positions", len(joined), len(gas))
    return joined
