"""Tests for the gas analyzer and GPS CSV readers."""

import sys
import os
import io
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from data.readers import find_column, read_gas_log, read_gps_log, read_gps_logs


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


GAS_CSV = """Date,Time,CO,CO2,Status
06/14/2023,10:00:10,0.25,420.1,OK
06/14/2023,10:00:18,0.31,421.0,OK
06/14/2023,not a time,0.40,422.0,OK
06/14/2023,10:00:26,,419.8,OK
"""


class TestFindColumn:
    def test_case_insensitive(self):
        assert find_column(["Time", " LAT ", "Lon"], ("latitude", "lat")) == " LAT "

    def test_alias_order(self):
        assert find_column(["lon", "longitude"], ("longitude", "lon")) == "longitude"

    def test_missing(self):
        assert find_column(["a", "b"], ("lat",)) is None


class TestReadGasLog:
    def test_date_and_time_columns(self, tmp_path):
        gas = read_gas_log(_write(tmp_path, "gas.csv", GAS_CSV))
        assert list(gas.columns) == ["timestamp", "CO", "CO2"]
        assert gas["timestamp"].iloc[0] == pd.Timestamp("2023-06-14 10:00:10")
        assert gas["timestamp"].dt.tz is None

    def test_bad_timestamp_row_dropped(self, tmp_path):
        gas = read_gas_log(_write(tmp_path, "gas.csv", GAS_CSV))
        assert len(gas) == 3

    def test_missing_value_kept_as_nan(self, tmp_path):
        gas = read_gas_log(_write(tmp_path, "gas.csv", GAS_CSV))
        assert gas["CO"].isna().sum() == 1
        assert gas["CO2"].iloc[2] == pytest.approx(419.8)

    def test_pollutant_subset(self, tmp_path):
        gas = read_gas_log(_write(tmp_path, "gas.csv", GAS_CSV), pollutants=["CO2"])
        assert list(gas.columns) == ["timestamp", "CO2"]

    def test_missing_pollutant_raises(self, tmp_path):
        with pytest.raises(ValueError, match="missing pollutant columns"):
            read_gas_log(_write(tmp_path, "gas.csv", GAS_CSV), pollutants=["CO", "SO2"])

    def test_single_timestamp_column(self, tmp_path):
        path = _write(tmp_path, "gas.csv", "DateTime,CO\n2023-06-14 10:00:10,0.2\n")
        gas = read_gas_log(path)
        assert gas["timestamp"].iloc[0] == pd.Timestamp("2023-06-14 10:00:10")

    def test_no_timestamp_raises(self, tmp_path):
        with pytest.raises(ValueError, match="No timestamp column"):
            read_gas_log(_write(tmp_path, "gas.csv", "CO,CO2\n0.2,420\n"))

    def test_no_usable_rows_raises(self, tmp_path):
        with pytest.raises(ValueError, match="no usable readings"):
            read_gas_log(_write(tmp_path, "gas.csv", "timestamp,CO\nbad,0.2\n"))


class TestReadGpsLog:
    def test_aliases(self, tmp_path):
        path = _write(tmp_path, "gps.csv",
                      "time,lat,lon\n2023-06-14T15:00:00,41.60,-87.33\n")
        gps = read_gps_log(path)
        assert list(gps.columns) == ["timestamp", "latitude", "longitude"]
        assert gps["latitude"].iloc[0] == pytest.approx(41.60)

    def test_invalid_fixes_dropped(self, tmp_path):
        path = _write(tmp_path, "gps.csv", (
            "time,lat,lon\n"
            "2023-06-14T15:00:00,41.60,-87.33\n"
            "2023-06-14T15:00:03,0.0,0.0\n"
            "2023-06-14T15:00:06,95.0,-87.33\n"
            "2023-06-14T15:00:09,41.60,-200.0\n"
            "2023-06-14T15:00:12,,-87.33\n"
            "2023-06-14T15:00:15,41.61,-87.34\n"
        ))
        gps = read_gps_log(path)
        assert len(gps) == 2
        assert gps["latitude"].tolist() == pytest.approx([41.60, 41.61])

    def test_missing_coordinate_column(self, tmp_path):
        path = _write(tmp_path, "gps.csv", "time,lat\n2023-06-14T15:00:00,41.60\n")
        with pytest.raises(ValueError, match="longitude"):
            read_gps_log(path)

    def test_no_valid_fixes(self, tmp_path):
        path = _write(tmp_path, "gps.csv", "time,lat,lon\n2023-06-14T15:00:00,0,0\n")
        with pytest.raises(ValueError, match="no valid fixes"):
            read_gps_log(path)

    def test_segments_sorted(self, tmp_path):
        late = _write(tmp_path, "b.csv", "time,lat,lon\n2023-06-14T19:00:00,41.6,-87.3\n")
        early = _write(tmp_path, "a.csv", "time,lat,lon\n2023-06-14T15:00:00,41.5,-87.3\n")
        gps = read_gps_logs([late, early])
        assert gps["timestamp"].is_monotonic_increasing
        assert gps["latitude"].tolist() == pytest.approx([41.5, 41.6])

    def test_no_segments(self):
        with pytest.raises(ValueError, match="At least one"):
            read_gps_logs([])

    def test_segments_from_buffers(self):
        late = io.BytesIO(b"time,lat,lon\n2023-06-14T19:00:00,41.6,-87.3\n")
        early = io.BytesIO(b"time,lat,lon\n2023-06-14T15:00:00,41.5,-87.3\n")
        gps = read_gps_logs([late, early])
        assert len(gps) == 2
        assert gps["timestamp"].tolist() == list(pd.to_datetime(
            ["2023-06-14 15:00:00", "2023-06-14 19:00:00"]))
