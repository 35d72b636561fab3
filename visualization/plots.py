"""
Visualization module for the Mobile Air-Quality Survey toolkit.

Provides Plotly-based maps over an OpenStreetMap basemap and statistical
figures for the Streamlit interface and the HTML report.
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Optional, Tuple

from models.campaign import SiteLocation
from models.grid import GridSpec
from processing.raster import cell_polygons, cell_ids
from analysis.geodesy import distance_to_site
from analysis.statistics import linear_fit
from config import MAP_STYLE, MAP_ZOOM, MAP_HEIGHT_PX, COLOR_SCALE, TILE_OPACITY


def _map_layout(fig: go.Figure, lat: float, lon: float, title: str) -> go.Figure:
    fig.update_layout(
        title=title,
        map=dict(style=MAP_STYLE, center=dict(lat=lat, lon=lon), zoom=MAP_ZOOM),
        height=MAP_HEIGHT_PX,
        margin=dict(l=0, r=0, t=40, b=0),
    )
    return fig


def _add_site_marker(fig: go.Figure, site: SiteLocation) -> None:
    """Black star marker with the site name."""
    fig.add_trace(
        go.Scattermap(
            lat=[site.latitude],
            lon=[site.longitude],
            mode="markers+text",
            marker=dict(size=14, color="black"),
            text=[site.name],
            textposition="top right",
            name=site.name,
            showlegend=False,
            hovertemplate=f"{site.name}<br>(%{{lat:.5f}}, %{{lon:.5f}})<extra></extra>",
        )
    )


def create_point_map(
    joined: pd.DataFrame,
    pollutant: str,
    site: Optional[SiteLocation] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Located gas readings coloured by concentration.

    Args:
        joined: Joined readings (``latitude``, ``longitude``, pollutant).
        pollutant: Column to colour by.
        site: Optional site to mark on the map.
        title: Figure title (default: the pollutant name).
    """
    values = joined[pollutant]
    hover = joined["timestamp"].astype(str) if "timestamp" in joined else None

    fig = go.Figure(
        go.Scattermap(
            lat=joined["latitude"],
            lon=joined["longitude"],
            mode="markers",
            marker=dict(
                size=7,
                color=values,
                colorscale=COLOR_SCALE,
                colorbar=dict(title=pollutant),
            ),
            text=hover,
            name=pollutant,
            hovertemplate=(
                "%{text}<br>" if hover is not None else ""
            ) + pollutant + ": %{marker.color:.4g}<extra></extra>",
        )
    )
    if site is not None:
        _add_site_marker(fig, site)

    lat, lon = joined["latitude"].mean(), joined["longitude"].mean()
    return _map_layout(fig, lat, lon, title or pollutant)


def create_tile_map(
    raster: pd.DataFrame,
    grid: GridSpec,
    pollutant: str,
    site: Optional[SiteLocation] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Raster cells drawn as filled squares over the basemap.

    Cells whose value is NaN for *pollutant* are left out.
    """
    cells = raster[raster[pollutant].notna()]
    fig = go.Figure(
        go.Choroplethmap(
            geojson=cell_polygons(cells, grid),
            locations=cell_ids(cells),
            z=cells[pollutant],
            colorscale=COLOR_SCALE,
            marker=dict(opacity=TILE_OPACITY, line=dict(width=0)),
            colorbar=dict(title=pollutant),
            customdata=cells["n"] if "n" in cells else None,
            hovertemplate=(
                pollutant + ": %{z:.4g}"
                + ("<br>n = %{customdata}" if "n" in cells else "")
                + "<extra></extra>"
            ),
        )
    )
    if site is not None:
        _add_site_marker(fig, site)

    if len(cells):
        lat, lon = cells["latitude"].mean(), cells["longitude"].mean()
    else:
        lon0, lat0, lon1, lat1 = grid.bbox
        lat, lon = (lat0 + lat1) / 2, (lon0 + lon1) / 2
    return _map_layout(fig, lat, lon, title or f"{pollutant} ({grid.resolution:g} deg cells)")


def create_comparison_figure(
    a: pd.DataFrame,
    b: pd.DataFrame,
    pollutant: str,
    labels: Tuple[str, str] = ("a", "b"),
) -> go.Figure:
    """Side-by-side box plots of two samples of one pollutant."""
    fig = go.Figure()
    for df, label, color in ((a, labels[0], "steelblue"), (b, labels[1], "darkorange")):
        fig.add_trace(
            go.Box(
                y=df[pollutant].dropna(),
                name=label,
                marker_color=color,
                boxmean=True,
            )
        )
    fig.update_layout(
        title=f"{pollutant}: {labels[0]} vs {labels[1]}",
        yaxis_title=pollutant,
        showlegend=False,
        height=450,
    )
    return fig


def create_distance_figure(
    raster: pd.DataFrame,
    site: SiteLocation,
    pollutant: str,
) -> go.Figure:
    """Cell concentration against distance to *site* with the fitted line."""
    dist = distance_to_site(raster["latitude"].to_numpy(), raster["longitude"].to_numpy(), site)
    values = raster[pollutant].to_numpy(dtype=float)
    fit = linear_fit(dist, values)

    fig = go.Figure(
        go.Scatter(
            x=dist,
            y=values,
            mode="markers",
            marker=dict(size=6, color="steelblue", opacity=0.7),
            name="cells",
            hovertemplate="%{x:.2f} km<br>%{y:.4g}<extra></extra>",
        )
    )

    subtitle = ""
    if np.isfinite(fit["slope"]):
        xs = np.array([np.nanmin(dist), np.nanmax(dist)])
        fig.add_trace(
            go.Scatter(
                x=xs,
                y=fit["intercept"] + fit["slope"] * xs,
                mode="lines",
                line=dict(color="crimson", width=2),
                name="fit",
            )
        )
        subtitle = f" (R² = {fit['r_squared']:.3f}, p = {fit['p_value']:.2g})"

    fig.update_layout(
        title=f"{pollutant} vs distance to {site.name}{subtitle}",
        xaxis_title=f"Distance to {site.name} (km)",
        yaxis_title=pollutant,
        height=450,
    )
    return fig


def create_timeseries_figure(joined: pd.DataFrame, pollutant: str) -> go.Figure:
    """Concentration over time, one trace per collection segment."""
    fig = go.Figure()
    # Break the line at collection gaps
    groups = joined.groupby("segment") if "segment" in joined else [(0, joined)]
    for seg, part in groups:
        fig.add_trace(
            go.Scatter(
                x=part["timestamp"],
                y=part[pollutant],
                mode="lines",
                name=f"segment {seg}",
            )
        )
    fig.update_layout(
        title=f"{pollutant} time series",
        xaxis_title="Time",
        yaxis_title=pollutant,
        height=350,
    )
    return fig
