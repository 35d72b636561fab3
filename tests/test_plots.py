"""Smoke tests for visualization plot functions and the HTML report.

Each test verifies that the function returns a valid Plotly Figure
without raising exceptions, with the expected traces.
"""

import sys
import os
import pytest
import numpy as np
import plotly.graph_objects as go

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from visualization.plots import (
    create_point_map,
    create_tile_map,
    create_comparison_figure,
    create_distance_figure,
    create_timeseries_figure,
)
from visualization.report import write_report


class TestMaps:
    def test_point_map(self, campaign_result, factory_site):
        fig = create_point_map(campaign_result.joined, "CO", site=factory_site)
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 2
        assert len(fig.data[0].lat) == len(campaign_result.joined)
        assert fig.layout.map.style == "open-street-map"

    def test_tile_map(self, campaign_result):
        fig = create_tile_map(campaign_result.raster, campaign_result.grid, "CO")
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 1
        assert len(fig.data[0].locations) == len(campaign_result.raster)
        assert len(fig.data[0].geojson["features"]) == len(campaign_result.raster)

    def test_tile_map_skips_nan_cells(self, campaign_result):
        raster = campaign_result.raster.copy()
        raster.loc[raster.index[:5], "CO"] = np.nan
        fig = create_tile_map(raster, campaign_result.grid, "CO")
        assert len(fig.data[0].locations) == len(raster) - 5


class TestFigures:
    def test_comparison(self, campaign_result, prior_raster):
        fig = create_comparison_figure(campaign_result.raster, prior_raster, "CO",
                                       labels=("current", "prior"))
        assert [t.name for t in fig.data] == ["current", "prior"]

    def test_distance(self, campaign_result, factory_site):
        fig = create_distance_figure(campaign_result.raster, factory_site, "CO")
        assert len(fig.data) == 2
        assert "R²" in fig.layout.title.text

    def test_distance_constant_pollutant(self, quadrant_raster, origin_site):
        fig = create_distance_figure(quadrant_raster, origin_site, "CO2")
        # no fit line for a constant column
        assert len(fig.data) == 1

    def test_timeseries_per_segment(self, campaign_result):
        fig = create_timeseries_figure(campaign_result.joined, "CO")
        assert len(fig.data) == campaign_result.joined["segment"].nunique()


class TestReport:
    def test_write_report(self, tmp_path, campaign_result, factory_site):
        path = write_report(
            tmp_path / "report.html",
            campaign_result.raster, campaign_result.grid, ["CO", "NO2"],
            title="Test report", site=factory_site,
            tables={"Summary": campaign_result.raster[["CO"]].describe()},
            include_plotlyjs="cdn",
        )
        text = path.read_text(encoding="utf-8")
        assert text.count("<section>") == 3
        assert "<h2>CO</h2>" in text
        assert "<h2>NO2</h2>" in text
        assert "Test report" in text
        assert "page-break-after" in text
