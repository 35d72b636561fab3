"""Tests for grid construction and rasterization."""

import sys
import os
import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.grid import GridSpec
from processing.raster import (
    pollutant_columns,
    build_grid,
    assign_cells,
    rasterize,
    cell_polygons,
    cell_ids,
    raster_bbox,
    common_bbox,
    restrict_to_bbox,
)


@pytest.fixture
def unit_grid():
    """3 x 2 grid of 1-degree cells anchored at the origin."""
    return GridSpec(lon0=0.0, lat0=0.0, resolution=1.0, nx=3, ny=2)


@pytest.fixture
def points():
    return pd.DataFrame({
        "longitude": [0.5, 0.2, 2.5, 5.0],
        "latitude": [0.5, 0.7, 1.5, 5.0],
        "CO": [1.0, 3.0, 10.0, 99.0],
        "CO2": [400.0, 410.0, 420.0, 430.0],
    })


class TestGridSpec:
    def test_bbox(self, unit_grid):
        assert unit_grid.bbox == (0.0, 0.0, 3.0, 2.0)

    def test_cell_center(self, unit_grid):
        lon, lat = unit_grid.cell_center(2, 1)
        assert lon == pytest.approx(2.5)
        assert lat == pytest.approx(1.5)

    def test_rejects_bad_resolution(self):
        with pytest.raises(ValueError):
            GridSpec(lon0=0.0, lat0=0.0, resolution=0.0, nx=1, ny=1)

    def test_rejects_empty_grid(self):
        with pytest.raises(ValueError, match="at least one cell"):
            GridSpec(lon0=0.0, lat0=0.0, resolution=1.0, nx=0, ny=1)


class TestAssignCells:
    def test_indices(self, unit_grid, points):
        cells = assign_cells(points, unit_grid)
        assert cells["x"].tolist() == [0, 0, 2]
        assert cells["y"].tolist() == [0, 0, 1]

    def test_edge_float_error(self):
        grid = GridSpec(lon0=0.0, lat0=0.0, resolution=0.1, nx=10, ny=10)
        cells = assign_cells(pd.DataFrame({"longitude": [0.3], "latitude": [0.7]}), grid)
        assert cells["x"].iloc[0] == 3
        assert cells["y"].iloc[0] == 7


class TestRasterize:
    def test_cell_means(self, unit_grid, points):
        raster = rasterize(points, ["CO", "CO2"], unit_grid)
        assert len(raster) == 2
        first = raster.iloc[0]
        assert (first["x"], first["y"]) == (0, 0)
        assert first["n"] == 2
        assert first["CO"] == pytest.approx(2.0)
        assert first["CO2"] == pytest.approx(405.0)
        assert raster.iloc[1]["CO"] == pytest.approx(10.0)

    def test_columns_and_centres(self, unit_grid, points):
        raster = rasterize(points, ["CO"], unit_grid)
        assert list(raster.columns) == ["x", "y", "longitude", "latitude", "n", "CO"]
        assert raster["longitude"].tolist() == pytest.approx([0.5, 2.5])
        assert raster["latitude"].tolist() == pytest.approx([0.5, 1.5])

    def test_default_pollutants(self, unit_grid, points):
        raster = rasterize(points, grid=unit_grid)
        assert "CO" in raster.columns
        assert "CO2" in raster.columns

    def test_counts_match_readings(self, campaign_result):
        assert campaign_result.raster["n"].sum() == len(campaign_result.joined)

    def test_builds_grid_when_missing(self, points):
        raster = rasterize(points.iloc[:3], ["CO"])
        assert raster["n"].sum() == 3


class TestBuildGrid:
    def test_contains_all_points(self, campaign_result):
        grid = build_grid(campaign_result.joined, resolution=0.0005, margin=0.001)
        cells = assign_cells(campaign_result.joined, grid)
        assert len(cells) == len(campaign_result.joined)

    def test_corner_snapped_to_resolution(self):
        pts = pd.DataFrame({"longitude": [-87.33517, -87.3302], "latitude": [41.60013, 41.6051]})
        grid = build_grid(pts, resolution=0.001, margin=0.0)
        assert grid.lon0 / 0.001 == pytest.approx(round(grid.lon0 / 0.001))
        assert grid.lat0 / 0.001 == pytest.approx(round(grid.lat0 / 0.001))
        assert grid.lon0 <= -87.33517
        assert grid.bbox[2] > -87.3302

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            build_grid(pd.DataFrame({"longitude": [], "latitude": []}))


class TestCellGeometry:
    def test_polygons_match_ids(self, unit_grid, points):
        raster = rasterize(points, ["CO"], unit_grid)
        geojson = cell_polygons(raster, unit_grid)
        assert geojson["type"] == "FeatureCollection"
        assert [f["id"] for f in geojson["features"]] == cell_ids(raster)
        ring = geojson["features"][1]["geometry"]["coordinates"][0]
        assert ring[0] == ring[-1]
        assert ring[0] == [2.0, 1.0]
        assert ring[2] == [3.0, 2.0]


class TestBoundingBoxes:
    def test_raster_bbox(self, unit_grid, points):
        raster = rasterize(points, ["CO"], unit_grid)
        assert raster_bbox(raster) == (0.5, 0.5, 2.5, 1.5)

    def test_common_bbox_and_restrict(self):
        a = pd.DataFrame({"longitude": [0.0, 1.0, 2.0], "latitude": [0.0, 1.0, 2.0], "CO": [1.0, 2.0, 3.0]})
        b = pd.DataFrame({"longitude": [1.0, 3.0], "latitude": [1.0, 3.0], "CO": [5.0, 6.0]})
        box = common_bbox(a, b)
        assert box == (1.0, 1.0, 2.0, 2.0)
        restricted = restrict_to_bbox(a, box)
        assert restricted["CO"].tolist() == [2.0, 3.0]

    def test_disjoint_rasters(self):
        a = pd.DataFrame({"longitude": [0.0, 1.0], "latitude": [0.0, 1.0]})
        b = pd.DataFrame({"longitude": [5.0, 6.0], "latitude": [5.0, 6.0]})
        assert common_bbox(a, b) is None


class TestPollutantColumns:
    def test_skips_bookkeeping(self, campaign_result):
        cols = pollutant_columns(campaign_result.joined)
        assert "window_s" not in cols
        assert "latitude" not in cols
        assert "CO" in cols
