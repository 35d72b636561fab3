"""
HTML report with one tile map per pollutant.

Each pollutant gets its own section, separated by page breaks so the
document prints as one map per page.
"""

import html
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import pandas as pd

from models.campaign import SiteLocation
from models.grid import GridSpec
from visualization.plots import create_tile_map

logger = logging.getLogger(__name__)

_PAGE_STYLE = """
body { font-family: sans-serif; margin: 2em; }
section { page-break-after: always; break-after: page; margin-bottom: 3em; }
table { border-collapse: collapse; font-size: 0.85em; }
th, td { border: 1px solid #ccc; padding: 2px 6px; text-align: right; }
"""


def write_report(
    path: Union[str, Path],
    raster: pd.DataFrame,
    grid: GridSpec,
    pollutants: Sequence[str],
    title: str = "Mobile survey report",
    site: Optional[SiteLocation] = None,
    tables: Optional[Dict[str, pd.DataFrame]] = None,
    include_plotlyjs: Union[bool, str] = True,
) -> Path:
    """
    Write a single HTML document with a tile map section per pollutant.

    Args:
        path: Output file.
        raster: Raster table to map.
        grid: Grid the raster was built on.
        pollutants: Pollutants to include, in order.
        title: Document title.
        site: Optional site marked on every map.
        tables: Optional result tables appended as sections, keyed by heading.
        include_plotlyjs: Passed to ``Figure.to_html`` for the first map:
            True embeds plotly.js (self-contained file), "cdn" links it.

    Returns:
        Path of the written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'>",
        f"<title>{html.escape(title)}</title>",
        f"<style>{_PAGE_STYLE}</style>",
        "</head><body>",
        f"<h1>{html.escape(title)}</h1>",
        f"<p>{len(raster)} cells at {grid.resolution:g} deg resolution, "
        f"{len(pollutants)} pollutant(s).</p>",
    ]

    for i, pollutant in enumerate(pollutants):
        fig = create_tile_map(raster, grid, pollutant, site=site)
        parts.append("<section>")
        parts.append(f"<h2>{html.escape(pollutant)}</h2>")
        parts.append(fig.to_html(full_html=False, include_plotlyjs=include_plotlyjs if i == 0 else False))
        parts.append("</section>")

    for heading, table in (tables or {}).items():
        parts.append("<section>")
        parts.append(f"<h2>{html.escape(heading)}</h2>")
        parts.append(table.to_html(float_format=lambda v: f"{v:.4g}", na_rep="-"))
        parts.append("</section>")

    parts.append("</body></html>")
    path.write_text("\n".join(parts), encoding="utf-8")
    logger.info("Wrote report with %d map(s) to %s", len(pollutants), path)
    return path
