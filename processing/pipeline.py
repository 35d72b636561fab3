"""
Campaign pipeline: cleaning, spatial-temporal join and rasterization.

Chains the stages for one collection campaign and keeps every
intermediate table for inspection and plotting.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from models.campaign import CollectionGap
from models.grid import GridSpec
from processing.alignment import (
    clean_gas,
    clean_gps,
    detect_collection_gaps,
    parse_declared_gaps,
    merge_gaps,
    fill_gps,
)
from processing.window import join_readings
from processing.raster import build_grid, rasterize, pollutant_columns
from config import (
    GAS_LOG_TZ,
    GPS_LOG_TZ,
    ANALYSIS_TZ,
    GAP_THRESHOLD_S,
    KNOWN_COLLECTION_GAPS,
    FALLBACK_WINDOW_S,
    MAX_WINDOW_S,
    RASTER_RESOLUTION_DEG,
    RASTER_MARGIN_DEG,
)

logger = logging.getLogger(__name__)


@dataclass
class CampaignResult:
    """Holds every stage's output for one campaign."""

    gas: pd.DataFrame
    gps: pd.DataFrame
    gaps: List[CollectionGap]
    joined: pd.DataFrame
    grid: GridSpec
    raster: pd.DataFrame
    pollutants: List[str] = field(default_factory=list)

    @property
    def num_readings(self) -> int:
        return len(self.joined)

    @property
    def num_cells(self) -> int:
        return len(self.raster)


def run_campaign(
    gas: pd.DataFrame,
    gps: pd.DataFrame,
    pollutants: Optional[Sequence[str]] = None,
    declared_gaps: Sequence = KNOWN_COLLECTION_GAPS,
    grid: Optional[GridSpec] = None,
    gas_tz: str = GAS_LOG_TZ,
    gps_tz: str = GPS_LOG_TZ,
    target_tz: str = ANALYSIS_TZ,
    gap_threshold_s: float = GAP_THRESHOLD_S,
    fallback_s: int = FALLBACK_WINDOW_S,
    max_window_s: int = MAX_WINDOW_S,
    resolution: float = RASTER_RESOLUTION_DEG,
    margin: float = RASTER_MARGIN_DEG,
) -> CampaignResult:
    """
    Run ingest cleaning, the GPS join and rasterization for one campaign.

    Args:
        gas: Raw gas analyzer table (``timestamp`` + pollutant columns).
        gps: Raw GPS table (``timestamp``, ``latitude``, ``longitude``),
             all segments concatenated.
        pollutants: Channels to carry through (default: all in *gas*).
        declared_gaps: Extra (start, end) gaps, naive values in *target_tz*.
        grid: Grid to rasterize into, e.g. a prior campaign's grid.  Built
              from the joined readings when omitted.

    Returns:
        CampaignResult with the intermediate and final tables.
    """
    gas_clean = clean_gas(gas, source_tz=gas_tz, target_tz=target_tz)
    gps_clean = clean_gps(gps, source_tz=gps_tz, target_tz=target_tz)

    if pollutants is None:
        pollutants = pollutant_columns(gas_clean)
    pollutants = list(pollutants)
    missing = [p for p in pollutants if p not in gas_clean.columns]
    if missing:
        raise ValueError(f"Gas readings missing pollutant columns {missing}")

    gaps = merge_gaps(
        detect_collection_gaps(gps_clean["timestamp"], min_gap_s=gap_threshold_s),
        parse_declared_gaps(declared_gaps, tz=target_tz),
    )
    filled = fill_gps(gps_clean, gaps)

    joined = join_readings(
        gas_clean[["timestamp"] + pollutants], filled, gaps,
        fallback_s=fallback_s, max_window_s=max_window_s,
    )
    if len(joined) == 0:
        raise ValueError("No gas readings overlap the GPS track")

    if grid is None:
        grid = build_grid(joined, resolution=resolution, margin=margin)
    raster = rasterize(joined, pollutants, grid)

    return CampaignResult(
        gas=gas_clean,
        gps=filled,
        gaps=gaps,
        joined=joined,
        grid=grid,
        raster=raster,
        pollutants=pollutants,
    )
