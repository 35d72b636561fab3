"""
Global configuration and constants for the Mobile Air-Quality Survey toolkit.
"""

# --- Timezones ---
GAS_LOG_TZ = "America/Chicago"   # FTIR analyzer logs local wall-clock time (naive)
GPS_LOG_TZ = "UTC"               # GPS logger records UTC
ANALYSIS_TZ = "America/Chicago"  # Common timezone for all aligned streams
TIMESTAMP_ROUNDING = "s"         # Round both streams to whole seconds

# --- Time Alignment ---
GPS_FILL_FREQ = "1s"             # Uniform timeline for the upsampled GPS track
GAP_THRESHOLD_S = 600            # Longer silences in the GPS log are collection gaps

# Gaps identified by hand for a campaign, as (start, end) strings in ANALYSIS_TZ.
# Merged with the gaps detected from the GPS log.
KNOWN_COLLECTION_GAPS = []

# --- Window Averaging ---
FALLBACK_WINDOW_S = 8            # Assumed analyzer sampling window (seconds)
MAX_WINDOW_S = 60                # Longer deltas are not a valid sampling window

# --- Rasterization ---
RASTER_RESOLUTION_DEG = 0.0005   # Cell size in degrees (~55 m N-S)
RASTER_MARGIN_DEG = 0.001        # Padding added around the data extent

# --- Statistics ---
ALPHA = 0.05                     # Significance level for hypothesis tests
MIN_SAMPLES_NORMALITY = 3        # Shapiro-Wilk needs at least 3 values
MIN_SAMPLES_REGRESSION = 3
NEAR_FAR_THRESHOLD_KM = 1.0      # Distance band split for near/far comparisons
EARTH_RADIUS_KM = 6371.0088      # Mean Earth radius (IUGG)

# --- Site ---
FACTORY_LOCATION = {
    "name": "Factory",
    "latitude": 41.6005,
    "longitude": -87.3350,
}

# --- Gas Analyzer Channels ---
# Column names as written by the FTIR analyzer export (concentrations in ppm,
# except H2O in vol-% and PM in ug/m^3).
GAS_POLLUTANTS = [
    "H2O",
    "CO2",
    "CO",
    "N2O",
    "NO",
    "NO2",
    "SO2",
    "NH3",
    "HCl",
    "HF",
    "CH4",
    "C2H6",
    "C2H4",
    "C3H8",
    "C6H14",
    "CH2O",
    "C6H6",
    "C7H8",
    "PM2.5",
    "PM10",
]

# Column aliases accepted by the readers, mapped to canonical names
TIMESTAMP_ALIASES = ("timestamp", "datetime", "time", "date_time", "utc")
LATITUDE_ALIASES = ("latitude", "lat")
LONGITUDE_ALIASES = ("longitude", "lon", "lng", "long")

# --- Cache ---
CACHE_MAX_ENTRIES = 8            # Max processed campaigns kept by the Streamlit cache

# --- Visualization ---
MAP_STYLE = "open-street-map"    # Plotly basemap style, no token required
MAP_ZOOM = 13
MAP_HEIGHT_PX = 600
COLOR_SCALE = "YlOrRd"
TILE_OPACITY = 0.7
