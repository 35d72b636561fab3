"""
Mobile Air-Quality Survey: Streamlit Interface.

Run with:  streamlit run main.py
"""

import sys
import os
import io

# Ensure the project root is on the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import streamlit as st

from data.interfaces import MockDataProvider
from data.readers import read_gas_log, read_gps_logs
from data.raster_io import read_raster_csv
from models.campaign import SiteLocation
from processing.pipeline import run_campaign
from analysis.statistics import describe
from analysis.comparison import (
    compare_rasters,
    compare_quadrants,
    compare_wind_sides,
    compare_distance_bands,
    distance_regression,
)
from visualization.plots import (
    create_point_map,
    create_tile_map,
    create_comparison_figure,
    create_distance_figure,
    create_timeseries_figure,
)
from data.mock_data import MOCK_WIND_DIRECTION
from config import (
    FACTORY_LOCATION,
    RASTER_RESOLUTION_DEG,
    FALLBACK_WINDOW_S,
    NEAR_FAR_THRESHOLD_KM,
    ALPHA,
    CACHE_MAX_ENTRIES,
)


@st.cache_data(max_entries=CACHE_MAX_ENTRIES)
def load_mock_campaign(seed: int, resolution: float, fallback_s: int):
    provider = MockDataProvider(seed=seed)
    result = run_campaign(
        provider.get_gas_readings(),
        provider.get_gps_fixes(),
        resolution=resolution,
        fallback_s=fallback_s,
    )
    return result, provider.get_prior_raster()


@st.cache_data(max_entries=CACHE_MAX_ENTRIES)
def load_uploaded_campaign(
    gas_bytes: bytes,
    gps_bytes: tuple,
    prior_bytes,
    resolution: float,
    fallback_s: int,
):
    """Cached wrapper around run_campaign for uploaded files (raw bytes are hashable)."""
    gas = read_gas_log(io.BytesIO(gas_bytes))
    gps = read_gps_logs([io.BytesIO(b) for b in gps_bytes])
    result = run_campaign(gas, gps, resolution=resolution, fallback_s=fallback_s)
    prior = read_raster_csv(io.BytesIO(prior_bytes)) if prior_bytes else None
    return result, prior


# ── Page Config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Mobile Air-Quality Survey",
    page_icon="🚐",
    layout="wide",
)

st.title("Mobile Air-Quality Survey")
st.markdown(
    "Aligns the gas analyzer log with the GPS track, rasterizes pollutant "
    "concentrations and compares them across operating conditions."
)

# ── Sidebar Controls ─────────────────────────────────────────────────────────

st.sidebar.header("Campaign Data")
source = st.sidebar.radio("Data Source", ["Simulated campaign", "Upload CSV files"])

st.sidebar.header("Processing")
resolution = st.sidebar.select_slider(
    "Raster Resolution (deg)",
    options=[0.00025, 0.0005, 0.001, 0.002],
    value=RASTER_RESOLUTION_DEG,
)
fallback_s = st.sidebar.number_input(
    "Fallback Window (s)",
    min_value=1,
    max_value=60,
    value=FALLBACK_WINDOW_S,
    help="Window assumed for readings whose interval crosses a collection gap.",
)

st.sidebar.header("Site & Conditions")
site_lat = st.sidebar.number_input(
    "Factory Latitude", value=FACTORY_LOCATION["latitude"], format="%.5f",
)
site_lon = st.sidebar.number_input(
    "Factory Longitude", value=FACTORY_LOCATION["longitude"], format="%.5f",
)
wind_direction = st.sidebar.slider(
    "Wind Direction (degrees, direction wind comes FROM)",
    min_value=0,
    max_value=359,
    value=int(MOCK_WIND_DIRECTION),
    step=5,
)
threshold_km = st.sidebar.slider(
    "Near/Far Threshold (km)",
    min_value=0.25,
    max_value=5.0,
    value=NEAR_FAR_THRESHOLD_KM,
    step=0.25,
)

site = SiteLocation(name=FACTORY_LOCATION["name"], latitude=site_lat, longitude=site_lon)

# ── Load & Process ───────────────────────────────────────────────────────────

if source == "Simulated campaign":
    seed = st.sidebar.number_input("Random Seed", value=42, step=1)
    with st.spinner("Simulating and processing campaign..."):
        result, prior = load_mock_campaign(int(seed), resolution, int(fallback_s))
else:
    gas_file = st.sidebar.file_uploader("Gas analyzer CSV", type="csv")
    gps_files = st.sidebar.file_uploader("GPS log segments", type="csv",
                                         accept_multiple_files=True)
    prior_file = st.sidebar.file_uploader("Prior raster CSV (optional)", type="csv")
    if gas_file is None or not gps_files:
        st.info("Upload a gas analyzer log and at least one GPS segment to begin.")
        st.stop()
    try:
        with st.spinner("Processing campaign..."):
            result, prior = load_uploaded_campaign(
                gas_file.getvalue(),
                tuple(f.getvalue() for f in gps_files),
                prior_file.getvalue() if prior_file else None,
                resolution,
                int(fallback_s),
            )
    except ValueError as e:
        st.error(f"Could not process the uploaded files: {e}")
        st.stop()

pollutant = st.sidebar.selectbox("Pollutant", result.pollutants)

c1, c2, c3, c4 = st.columns(4)
c1.metric("Gas Readings", len(result.gas))
c2.metric("Located Readings", result.num_readings)
c3.metric("Raster Cells", result.num_cells)
c4.metric("Collection Gaps", len(result.gaps))

# ── Tabs ─────────────────────────────────────────────────────────────────────

tab_maps, tab_stats, tab_compare = st.tabs(["Maps", "Statistics", "Comparisons"])

with tab_maps:
    col_points, col_tiles = st.columns(2)
    with col_points:
        st.plotly_chart(
            create_point_map(result.joined, pollutant, site=site),
            use_container_width=True,
        )
    with col_tiles:
        st.plotly_chart(
            create_tile_map(result.raster, result.grid, pollutant, site=site),
            use_container_width=True,
        )
    st.plotly_chart(create_timeseries_figure(result.joined, pollutant), use_container_width=True)

with tab_stats:
    st.subheader("Raster Summary")
    st.dataframe(describe(result.raster, result.pollutants), use_container_width=True)

    st.subheader("Regression on Distance to Factory")
    st.plotly_chart(create_distance_figure(result.raster, site, pollutant), use_container_width=True)
    st.dataframe(distance_regression(result.raster, site, result.pollutants),
                 use_container_width=True)

with tab_compare:
    st.caption(f"Two-sided Wilcoxon rank-sum tests, significance level {ALPHA}.")

    st.subheader("Downwind vs Upwind")
    st.dataframe(
        compare_wind_sides(result.raster, site, wind_direction, result.pollutants),
        use_container_width=True,
    )

    st.subheader("Near vs Far")
    st.dataframe(
        compare_distance_bands(result.raster, site, result.pollutants, threshold_km=threshold_km),
        use_container_width=True,
    )

    st.subheader("Quadrant Pairs")
    st.dataframe(compare_quadrants(result.raster, site, result.pollutants),
                 use_container_width=True)

    if prior is not None:
        st.subheader("Current vs Prior Campaign")
        shared = [p for p in result.pollutants if p in prior.columns]
        try:
            st.dataframe(
                compare_rasters(result.raster, prior, shared, labels=("current", "prior")),
                use_container_width=True,
            )
            if pollutant in shared:
                st.plotly_chart(
                    create_comparison_figure(result.raster, prior, pollutant,
                                             labels=("current", "prior")),
                    use_container_width=True,
                )
        except ValueError as e:
            st.warning(str(e))
