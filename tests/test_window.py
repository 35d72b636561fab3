"""Tests for window averaging of the GPS track onto gas readings."""

import sys
import os
import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import utc_times
from models.campaign import CollectionGap
from processing.window import epoch_seconds, compute_windows, join_readings


def _gas(seconds, co=None):
    seconds = np.asarray(seconds)
    if co is None:
        co = np.arange(len(seconds), dtype=float)
    return pd.DataFrame({"timestamp": utc_times(seconds), "CO": co})


class TestEpochSeconds:
    def test_aware_and_naive_agree(self):
        aware = utc_times([0, 1])
        naive = aware.tz_localize(None)
        np.testing.assert_array_equal(epoch_seconds(aware), epoch_seconds(naive))

    def test_other_timezone(self):
        local = utc_times([0]).tz_convert("America/Chicago")
        assert epoch_seconds(local)[0] == epoch_seconds(utc_times([0]))[0]


class TestComputeWindows:
    def test_window_is_delta_to_previous(self):
        w = compute_windows(utc_times([0, 8, 15, 24]))
        assert np.isnan(w[0])
        np.testing.assert_array_equal(w[1:], [8, 7, 9])

    def test_fallback_across_gap(self):
        times = utc_times([0, 8, 1000])
        t = utc_times([10, 990])
        w = compute_windows(times, [CollectionGap(t[0], t[1])],
                            fallback_s=5, max_window_s=10_000)
        np.testing.assert_array_equal(w[1:], [8, 5])

    def test_fallback_for_overlong_delta(self):
        w = compute_windows(utc_times([0, 100]), fallback_s=8, max_window_s=60)
        assert w[1] == 8

    def test_single_reading(self):
        w = compute_windows(utc_times([0]))
        assert len(w) == 1
        assert np.isnan(w[0])


class TestJoinReadings:
    def test_window_mean_position(self, filled_track):
        joined = join_readings(_gas([5, 10, 18]), filled_track)
        # first reading has no window and is dropped
        assert len(joined) == 2
        assert joined["latitude"].tolist() == pytest.approx([40.008, 40.0145])
        assert joined["longitude"].tolist() == pytest.approx([-80.0, -80.0])
        assert joined["n_fixes"].tolist() == [5, 8]
        assert joined["window_s"].tolist() == [5, 8]

    def test_gas_columns_kept(self, filled_track):
        joined = join_readings(_gas([5, 10, 18], co=[1.0, 2.0, 3.0]), filled_track)
        assert joined["CO"].tolist() == [2.0, 3.0]
        assert joined["segment"].tolist() == [0, 0]

    def test_uncovered_reading_dropped(self, filled_track):
        joined = join_readings(_gas([5, 10, 100]), filled_track)
        assert len(joined) == 1
        assert joined["timestamp"].iloc[0] == utc_times([10])[0]

    def test_unsorted_gas_input(self, filled_track):
        joined = join_readings(_gas([18, 5, 10], co=[3.0, 1.0, 2.0]), filled_track)
        assert joined["CO"].tolist() == [2.0, 3.0]

    def test_every_row_has_fixes(self, campaign_result):
        joined = campaign_result.joined
        assert (joined["n_fixes"] > 0).all()
        assert joined[["latitude", "longitude"]].notna().all().all()
