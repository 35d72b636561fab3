"""
Time alignment of the gas analyzer and GPS streams.

Both streams are brought to one timezone at whole-second resolution and
de-duplicated.  The GPS track is then upsampled to a uniform 1-second
timeline by forward fill.  Forward fill never crosses a collection gap:
the seconds inside a gap are left out of the timeline entirely.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from models.campaign import CollectionGap
from config import (
    GAS_LOG_TZ,
    GPS_LOG_TZ,
    ANALYSIS_TZ,
    TIMESTAMP_ROUNDING,
    GPS_FILL_FREQ,
    GAP_THRESHOLD_S,
    KNOWN_COLLECTION_GAPS,
)

logger = logging.getLogger(__name__)


def normalize_timestamps(
    df: pd.DataFrame,
    source_tz: str,
    target_tz: str = ANALYSIS_TZ,
    rounding: str = TIMESTAMP_ROUNDING,
) -> pd.DataFrame:
    """
    Convert the ``timestamp`` column to *target_tz* rounded to *rounding*.

    Naive timestamps are interpreted as wall-clock time in *source_tz*;
    aware ones are converted directly.  Rounding is done in UTC so DST
    transitions in the target zone cannot make a rounded time ambiguous.

    Naive input is expected in log order.  Wall-clock times repeated by a
    DST fall-back are resolved from that order: readings before the clock
    steps back are daylight time, readings after it standard time.  Rows
    whose local time does not exist (spring-forward) are dropped.

    Returns:
        A new DataFrame; the input is not modified.
    """
    out = df.copy()
    ts = pd.to_datetime(out["timestamp"])
    if ts.dt.tz is None:
        # Only rows inside the repeated hour read this flag
        is_dst = ((ts.diff() < pd.Timedelta(0)).cumsum() == 0).to_numpy()
        ts = ts.dt.tz_localize(source_tz, ambiguous=is_dst, nonexistent="NaT")
    ts = ts.dt.tz_convert("UTC").dt.round(rounding).dt.tz_convert(target_tz)
    out["timestamp"] = ts

    bad = out["timestamp"].isna()
    if bad.any():
        logger.warning("Dropping %d rows with nonexistent local times",
                       int(bad.sum()))
        out = out[~bad]
    return out.reset_index(drop=True)


def deduplicate(df: pd.DataFrame) -> pd.DataFrame:
    """Average rows that share a timestamp; result is sorted by time."""
    n_before = len(df)
    out = df.groupby("timestamp", as_index=False, sort=True).mean(numeric_only=True)
    if len(out) < n_before:
        logger.info("Merged %d duplicate timestamps", n_before - len(out))
    return out


def clean_gas(
    gas: pd.DataFrame,
    source_tz: str = GAS_LOG_TZ,
    target_tz: str = ANALYSIS_TZ,
) -> pd.DataFrame:
    """Normalize and de-duplicate a raw gas analyzer table."""
    return deduplicate(normalize_timestamps(gas, source_tz, target_tz))


def clean_gps(
    gps: pd.DataFrame,
    source_tz: str = GPS_LOG_TZ,
    target_tz: str = ANALYSIS_TZ,
) -> pd.DataFrame:
    """Normalize and de-duplicate a raw GPS table."""
    cleaned = deduplicate(normalize_timestamps(gps, source_tz, target_tz))
    return cleaned[["timestamp", "latitude", "longitude"]]


# ---------------------------------------------------------------------------
# Collection gaps
# ---------------------------------------------------------------------------

def detect_collection_gaps(
    timestamps: pd.Series,
    min_gap_s: float = GAP_THRESHOLD_S,
) -> List[CollectionGap]:
    """
    Find silences in a timestamp series longer than *min_gap_s* seconds.

    Args:
        timestamps: Sorted or unsorted timestamps (e.g. GPS fix times).
        min_gap_s: Minimum interval between consecutive timestamps that
                   counts as a gap.

    Returns:
        List of CollectionGap from the last timestamp before each silence to
        the first timestamp after it, in time order.
    """
    ts = pd.Series(pd.to_datetime(timestamps)).dropna().sort_values().reset_index(drop=True)
    if len(ts) < 2:
        return []
    deltas = ts.diff().dt.total_seconds().to_numpy()
    idx = np.flatnonzero(deltas > min_gap_s)
    gaps = [CollectionGap(start=ts[i - 1], end=ts[i]) for i in idx]
    for gap in gaps:
        logger.info("Detected collection gap %s -> %s (%.0f s)",
                    gap.start, gap.end, gap.duration_s)
    return gaps


def parse_declared_gaps(
    pairs: Iterable[Tuple] = KNOWN_COLLECTION_GAPS,
    tz: str = ANALYSIS_TZ,
) -> List[CollectionGap]:
    """Build CollectionGaps from (start, end) pairs; naive values are local to *tz*."""
    gaps = []
    for start, end in pairs:
        start, end = pd.Timestamp(start), pd.Timestamp(end)
        if start.tzinfo is None:
            start = start.tz_localize(tz)
        if end.tzinfo is None:
            end = end.tz_localize(tz)
        gaps.append(CollectionGap(start=start, end=end))
    return gaps


def merge_gaps(*gap_lists: Sequence[CollectionGap]) -> List[CollectionGap]:
    """Union of several gap lists with overlapping or touching gaps merged."""
    all_gaps = sorted(
        (g for gaps in gap_lists for g in gaps), key=lambda g: g.start
    )
    merged: List[CollectionGap] = []
    for gap in all_gaps:
        if merged and gap.start <= merged[-1].end:
            if gap.end > merged[-1].end:
                merged[-1] = CollectionGap(start=merged[-1].start, end=gap.end)
        else:
            merged.append(CollectionGap(start=gap.start, end=gap.end))
    return merged


# ---------------------------------------------------------------------------
# GPS upsampling
# ---------------------------------------------------------------------------

def _to_tz(ts: pd.Timestamp, tz) -> pd.Timestamp:
    """Express *ts* in *tz*; naive values are taken to already be in *tz*."""
    ts = pd.Timestamp(ts)
    if tz is None:
        return ts if ts.tzinfo is None else ts.tz_convert(None)
    return ts.tz_localize(tz) if ts.tzinfo is None else ts.tz_convert(tz)


def fill_gps(
    gps: pd.DataFrame,
    gaps: Sequence[CollectionGap] = (),
    freq: str = GPS_FILL_FREQ,
) -> pd.DataFrame:
    """
    Upsample a cleaned GPS table to a uniform timeline by forward fill.

    The timeline runs from the first to the last fix at *freq*.  Seconds
    strictly inside a gap are excluded, and forward fill restarts in each
    segment between gaps, so a fix is never carried across a gap.  Seconds
    at the start of a segment before its first fix stay unfilled and are
    dropped.

    Args:
        gps: Cleaned GPS table (``timestamp``, ``latitude``, ``longitude``),
             unique timestamps.
        gaps: Collection gaps (merged, in time order).
        freq: Timeline frequency.

    Returns:
        DataFrame with ``timestamp``, ``latitude``, ``longitude``,
        ``segment`` (index of the collection segment) and ``observed``
        (True where a real fix exists at that second).
    """
    if len(gps) == 0:
        raise ValueError("Cannot fill an empty GPS table")

    track = gps.set_index("timestamp")[["latitude", "longitude"]].sort_index()
    timeline = pd.date_range(track.index[0], track.index[-1], freq=freq)

    inside_gap = np.zeros(len(timeline), dtype=bool)
    for gap in gaps:
        start, end = _to_tz(gap.start, timeline.tz), _to_tz(gap.end, timeline.tz)
        inside_gap |= (timeline > start) & (timeline < end)
    timeline = timeline[~inside_gap]

    # Segment id = number of gaps that ended at or before each second
    if gaps:
        gap_ends = pd.DatetimeIndex(
            sorted(_to_tz(g.end, timeline.tz) for g in gaps)
        )
        segment = gap_ends.searchsorted(timeline, side="right")
    else:
        segment = np.zeros(len(timeline), dtype=int)

    filled = track.reindex(timeline)
    filled["observed"] = filled["latitude"].notna()
    filled["segment"] = segment
    filled[["latitude", "longitude"]] = (
        filled.groupby("segment")[["latitude", "longitude"]].ffill()
    )

    n_missing = int(filled["latitude"].isna().sum())
    if n_missing:
        logger.debug("Dropping %d unfilled seconds at segment starts", n_missing)
    filled = filled.dropna(subset=["latitude", "longitude"])

    filled.index.name = "timestamp"
    out = filled.reset_index()[["timestamp", "latitude", "longitude", "segment", "observed"]]
    logger.info("Filled GPS track: %d fixes -> %d seconds in %d segment(s)",
                len(gps), len(out), len(gaps) + 1)
    return out
