"""
Comparisons between rasterized datasets.

Each comparison returns a DataFrame with one row per pollutant (and per
group pair where several pairs are tested), so results can be printed,
exported to CSV or attached to a report as-is.
"""

import itertools
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from models.campaign import SiteLocation
from processing.raster import common_bbox, restrict_to_bbox, pollutant_columns
from analysis.geodesy import (
    QUADRANTS,
    assign_quadrant,
    distance_to_site,
    downwind_quadrant,
    opposite_quadrant,
)
from analysis.statistics import (
    sample_summary,
    normality_test,
    rank_sum_test,
    linear_fit,
)
from config import ALPHA, NEAR_FAR_THRESHOLD_KM, MIN_SAMPLES_REGRESSION

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = [
    "group_a", "group_b", "pollutant",
    "n_a", "median_a", "min_a", "max_a", "normal_p_a",
    "n_b", "median_b", "min_b", "max_b", "normal_p_b",
    "statistic", "p_value", "significant",
]


def compare_samples(
    a,
    b,
    pollutant: str,
    labels: Tuple[str, str] = ("a", "b"),
    alpha: float = ALPHA,
) -> dict:
    """Summary, normality and rank-sum test for one pollutant's two samples."""
    sa, sb = sample_summary(a), sample_summary(b)
    stat, p = rank_sum_test(a, b)
    return {
        "group_a": labels[0],
        "group_b": labels[1],
        "pollutant": pollutant,
        "n_a": sa["n"], "median_a": sa["median"], "min_a": sa["min"], "max_a": sa["max"],
        "normal_p_a": normality_test(a),
        "n_b": sb["n"], "median_b": sb["median"], "min_b": sb["min"], "max_b": sb["max"],
        "normal_p_b": normality_test(b),
        "statistic": stat,
        "p_value": p,
        "significant": bool(np.isfinite(p) and p < alpha),
    }


def _shared_pollutants(a: pd.DataFrame, b: pd.DataFrame) -> List[str]:
    b_cols = set(pollutant_columns(b))
    return [p for p in pollutant_columns(a) if p in b_cols]


def compare_rasters(
    a: pd.DataFrame,
    b: pd.DataFrame,
    pollutants: Optional[Sequence[str]] = None,
    labels: Tuple[str, str] = ("a", "b"),
    restrict: bool = True,
    alpha: float = ALPHA,
) -> pd.DataFrame:
    """
    Rank-sum comparison of two rasters, pollutant by pollutant.

    Args:
        a, b: Raster tables (e.g. two collection dates, or factory on/off).
        pollutants: Pollutants to test (default: those present in both).
        labels: Names for the two groups in the result.
        restrict: Limit both rasters to their common bounding box first so
                  only the jointly covered area is compared.
        alpha: Significance level for the ``significant`` flag.

    Returns:
        DataFrame with :data:`COMPARISON_COLUMNS`.

    Raises:
        ValueError: If *restrict* is set and the rasters do not overlap.
    """
    if pollutants is None:
        pollutants = _shared_pollutants(a, b)

    if restrict:
        box = common_bbox(a, b)
        if box is None:
            raise ValueError("Rasters do not overlap; nothing to compare")
        a, b = restrict_to_bbox(a, box), restrict_to_bbox(b, box)
        logger.info("Comparing %s (%d cells) vs %s (%d cells) in common extent",
                    labels[0], len(a), labels[1], len(b))

    rows = [compare_samples(a[p], b[p], p, labels, alpha) for p in pollutants]
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def label_quadrants(raster: pd.DataFrame, site: SiteLocation) -> pd.Series:
    return pd.Series(
        assign_quadrant(raster["latitude"], raster["longitude"], site),
        index=raster.index,
        name="quadrant",
    )


def compare_quadrants(
    raster: pd.DataFrame,
    site: SiteLocation,
    pollutants: Optional[Sequence[str]] = None,
    pairs: Optional[Sequence[Tuple[str, str]]] = None,
    alpha: float = ALPHA,
) -> pd.DataFrame:
    """
    Partition a raster into quadrants around *site* and test quadrant pairs.

    Args:
        raster: Raster table.
        site: Partition centre (the factory).
        pollutants: Pollutants to test (default: all).
        pairs: Quadrant pairs to test (default: all six pairs).

    Returns:
        DataFrame with :data:`COMPARISON_COLUMNS`, one row per pair and
        pollutant.
    """
    if pollutants is None:
        pollutants = pollutant_columns(raster)
    if pairs is None:
        pairs = list(itertools.combinations(QUADRANTS, 2))

    quadrant = label_quadrants(raster, site)
    rows = []
    for qa, qb in pairs:
        a = raster[quadrant == qa]
        b = raster[quadrant == qb]
        for p in pollutants:
            rows.append(compare_samples(a[p], b[p], p, (qa, qb), alpha))
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def compare_wind_sides(
    raster: pd.DataFrame,
    site: SiteLocation,
    wind_direction_deg: float,
    pollutants: Optional[Sequence[str]] = None,
    alpha: float = ALPHA,
) -> pd.DataFrame:
    """Downwind quadrant of *site* against the opposite (upwind) quadrant."""
    downwind = downwind_quadrant(wind_direction_deg)
    upwind = opposite_quadrant(downwind)
    logger.info("Wind from %.0f deg: downwind %s, upwind %s",
                wind_direction_deg, downwind, upwind)
    return compare_quadrants(
        raster, site, pollutants, pairs=[(downwind, upwind)], alpha=alpha,
    )


def compare_distance_bands(
    raster: pd.DataFrame,
    site: SiteLocation,
    pollutants: Optional[Sequence[str]] = None,
    threshold_km: float = NEAR_FAR_THRESHOLD_KM,
    alpha: float = ALPHA,
) -> pd.DataFrame:
    """Cells within *threshold_km* of *site* against cells farther away."""
    if pollutants is None:
        pollutants = pollutant_columns(raster)

    dist = distance_to_site(raster["latitude"].to_numpy(), raster["longitude"].to_numpy(), site)
    near = raster[dist <= threshold_km]
    far = raster[dist > threshold_km]
    labels = (f"<= {threshold_km:g} km", f"> {threshold_km:g} km")
    rows = [compare_samples(near[p], far[p], p, labels, alpha) for p in pollutants]
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def distance_regression(
    raster: pd.DataFrame,
    site: SiteLocation,
    pollutants: Optional[Sequence[str]] = None,
    min_samples: int = MIN_SAMPLES_REGRESSION,
) -> pd.DataFrame:
    """
    Linear regression of each pollutant against distance to *site*.

    Distance is the great-circle distance in km from the site to each cell
    centre.

    Returns:
        DataFrame indexed by pollutant with n, r_squared, slope (per km),
        intercept, p_value and stderr.  Pollutants that cannot be fit have
        NaN entries.
    """
    if pollutants is None:
        pollutants = pollutant_columns(raster)

    dist = distance_to_site(raster["latitude"].to_numpy(), raster["longitude"].to_numpy(), site)
    rows = []
    for p in pollutants:
        fit = linear_fit(dist, raster[p].to_numpy(), min_samples=min_samples)
        rows.append({"pollutant": p, **fit})
    return pd.DataFrame(rows).set_index("pollutant")
