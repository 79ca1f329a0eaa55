"""
Tests for revisit coverage accumulation.
"""

import logging
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from eo_sim.astrodynamics.coverage import (
    RevisitAccumulator, accumulate_revisits, lat_to_row, lon_to_col,
    local_time_hhmm, is_local_daytime, revisit_statistics, swath_half_width_deg,
)
from eo_sim.astrodynamics.tle import parse_tle, orbital_elements_from_tle
from eo_sim.core.config import CoverageConfig
from eo_sim.core.types import GroundTrackPoint, OrbitalElements


def _point(lat, lon, when=None):
    return GroundTrackPoint(latitude_deg=lat, longitude_deg=lon,
                            timestamp=when or datetime(2024, 1, 1, tzinfo=timezone.utc),
                            elapsed_min=0.0)


@pytest.fixture
def constellation():
    return [
        OrbitalElements(altitude_km=500.0, inclination_deg=97.4, raan_deg=0.0),
        OrbitalElements(altitude_km=550.0, inclination_deg=53.0, raan_deg=120.0,
                        true_anomaly_deg=90.0),
    ]


class TestGridIndexing:
    """Row/column lookup"""

    def test_rows(self):
        assert lat_to_row(90.0, 18) == 0
        assert lat_to_row(-90.0, 18) == 17
        assert lat_to_row(0.5, 18) == 8

    def test_cols(self):
        assert lon_to_col(-180.0, 36) == 0
        assert lon_to_col(180.0, 36) == 35
        assert lon_to_col(0.0, 36) == 18

    def test_swath_half_width(self):
        expected = 500.0 * np.tan(np.deg2rad(10.0)) / 111.0
        assert swath_half_width_deg(500.0, 10.0) == pytest.approx(expected)


class TestMarking:
    """Single-sample swath footprint"""

    def test_equator_footprint(self):
        counts = np.zeros((18, 36), dtype=np.int64)
        RevisitAccumulator().mark(counts, _point(0.0, 0.0), 500.0)
        assert counts.sum() == 4
        assert np.all(counts[8:10, 17:19] == 1)

    def test_dateline_wrap(self):
        counts = np.zeros((18, 36), dtype=np.int64)
        RevisitAccumulator(CoverageConfig(wrap_dateline=True)).mark(
            counts, _point(0.0, 179.9), 500.0)
        assert counts[:, 35].sum() > 0
        assert counts[:, 0].sum() > 0

    def test_dateline_clamped_by_default(self):
        counts = np.zeros((18, 36), dtype=np.int64)
        RevisitAccumulator().mark(counts, _point(0.0, 179.9), 500.0)
        assert counts[:, 35].sum() > 0
        assert counts[:, 0].sum() == 0

    @pytest.mark.parametrize("lat, lon, altitude", [
        (float("nan"), 0.0, 500.0),
        (0.0, float("nan"), 500.0),
        (0.0, 0.0, float("nan")),
        (0.0, 0.0, float("inf")),
    ])
    def test_non_finite_sample_marks_nothing(self, lat, lon, altitude):
        counts = np.zeros((18, 36), dtype=np.int64)
        RevisitAccumulator().mark(counts, _point(lat, lon), altitude)
        assert counts.sum() == 0

    def test_high_latitude_widens_longitude(self):
        counts_eq = np.zeros((90, 180), dtype=np.int64)
        counts_hi = np.zeros((90, 180), dtype=np.int64)
        accumulator = RevisitAccumulator(CoverageConfig(sensor_half_angle_deg=30.0))
        accumulator.mark(counts_eq, _point(0.0, 0.0), 700.0)
        accumulator.mark(counts_hi, _point(75.0, 0.0), 700.0)
        assert counts_hi.any(axis=0).sum() > counts_eq.any(axis=0).sum()


class TestAccumulation:
    """Constellation grids"""

    def test_shape_and_dtype(self, constellation):
        grid = accumulate_revisits(constellation, 6.0, 36)
        assert grid.shape == (36, 72)
        assert grid.counts.dtype == np.int64
        assert np.all(grid.counts >= 0)
        assert grid.max_count == grid.counts.max()
        assert grid.time_span_hours == 6.0

    def test_additive_over_satellites(self, constellation):
        both = accumulate_revisits(constellation, 6.0, 36).counts
        first = accumulate_revisits(constellation[:1], 6.0, 36).counts
        second = accumulate_revisits(constellation[1:], 6.0, 36).counts
        np.testing.assert_array_equal(both, first + second)

    def test_order_independent(self, constellation):
        forward = accumulate_revisits(constellation, 6.0, 36).counts
        backward = accumulate_revisits(list(reversed(constellation)), 6.0, 36).counts
        np.testing.assert_array_equal(forward, backward)

    def test_fresh_grid_each_call(self, constellation):
        accumulator = RevisitAccumulator()
        first = accumulator.accumulate(constellation, 3.0, 18)
        second = accumulator.accumulate(constellation, 3.0, 18)
        np.testing.assert_array_equal(first.counts, second.counts)

    def test_accepts_generator(self, constellation):
        grid = accumulate_revisits((sat for sat in constellation), 3.0, 18)
        assert grid.total > 0

    def test_empty_constellation(self):
        grid = accumulate_revisits([], 12.0, 18)
        assert grid.total == 0
        assert grid.max_count == 0
        assert grid.statistics.coverage_pct == 0.0
        assert grid.statistics.average_revisit_time_h == 12.0
        assert grid.statistics.max_gap_h == 12.0

    def test_daytime_filter_independent_of_start_zone(self, constellation):
        utc = datetime(2024, 6, 1, tzinfo=timezone.utc)
        shifted = utc.astimezone(timezone(timedelta(hours=-7)))
        a = accumulate_revisits(constellation, 12.0, 36, start_time=utc, only_daytime=True)
        b = accumulate_revisits(constellation, 12.0, 36, start_time=shifted, only_daytime=True)
        np.testing.assert_array_equal(a.counts, b.counts)

    def test_daytime_filter_subset(self, constellation):
        start = datetime(2024, 6, 1, tzinfo=timezone.utc)
        full = accumulate_revisits(constellation, 24.0, 36, start_time=start)
        day = accumulate_revisits(constellation, 24.0, 36, start_time=start, only_daytime=True)
        assert 0 < day.total < full.total
        assert np.all(day.counts <= full.counts)

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_nan_altitude_orbit_contributes_nothing(self, constellation):
        broken = OrbitalElements(altitude_km=float("nan"), inclination_deg=50.0)
        grid = accumulate_revisits([broken], 1.0, 18)
        assert grid.total == 0
        mixed = accumulate_revisits([broken] + constellation, 6.0, 36)
        np.testing.assert_array_equal(mixed.counts, accumulate_revisits(constellation, 6.0, 36).counts)

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_nan_altitude_with_daytime_filter(self):
        broken = OrbitalElements(altitude_km=float("nan"), inclination_deg=50.0)
        assert accumulate_revisits([broken], 1.0, 18, only_daytime=True).total == 0

    def test_accumulation_logged(self, constellation, caplog):
        with caplog.at_level(logging.DEBUG, logger="eo_sim.astrodynamics.coverage"):
            accumulate_revisits(constellation, 1.0, 18)
        assert "2 satellites" in caplog.text


class TestTLEAccumulation:
    """TLE records are flown with SGP4"""

    def test_iss_record(self, iss_tle_text):
        grid = accumulate_revisits([parse_tle(iss_tle_text)], 6.0, 36)
        assert grid.total > 0
        # Inclination 51.6 deg: polar caps stay empty
        assert grid.counts[:3].sum() == 0
        assert grid.counts[-3:].sum() == 0

    def test_mixed_inputs_additive(self, iss_tle_text, constellation):
        record = parse_tle(iss_tle_text)
        start = datetime(2008, 9, 21, tzinfo=timezone.utc)
        mixed = accumulate_revisits([record] + constellation, 6.0, 36, start_time=start).counts
        tle_only = accumulate_revisits([record], 6.0, 36, start_time=start).counts
        circular = accumulate_revisits(constellation, 6.0, 36, start_time=start).counts
        np.testing.assert_array_equal(mixed, tle_only + circular)

    def test_differs_from_circular_reduction(self, iss_tle_text):
        record = parse_tle(iss_tle_text)
        sgp4_grid = accumulate_revisits([record], 12.0, 90).counts
        reduced = orbital_elements_from_tle(record.elements)
        circular_grid = accumulate_revisits([reduced], 12.0, 90).counts
        assert not np.array_equal(sgp4_grid, circular_grid)


class TestLocalTime:
    """Mean local solar time"""

    @pytest.mark.parametrize("hour, minute, lon, expected", [
        (12, 0, 0.0, 1200),
        (12, 0, 90.0, 1800),
        (12, 30, 7.5, 1300),
        (23, 0, 30.0, 100),
        (2, 0, -45.0, 2300),
    ])
    def test_hhmm(self, hour, minute, lon, expected):
        when = datetime(2024, 1, 1, hour, minute, tzinfo=timezone.utc)
        assert local_time_hhmm(when, lon) == expected

    def test_aware_timestamp_converted_to_utc(self):
        utc = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        plus_two = utc.astimezone(timezone(timedelta(hours=2)))
        assert plus_two.hour == 12
        assert local_time_hhmm(plus_two, 30.0) == local_time_hhmm(utc, 30.0) == 1200

    def test_naive_timestamp_taken_as_utc(self):
        assert local_time_hhmm(datetime(2024, 1, 1, 10, 0), 0.0) == 1000

    def test_window_inclusive(self):
        when = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert is_local_daytime(when, 0.0)
        assert is_local_daytime(when, 105.0)
        assert not is_local_daytime(when, 106.0)


class TestStatistics:
    """Grid summary"""

    def test_known_grid(self):
        stats = revisit_statistics(np.array([[0, 1], [2, 4]]), 12.0)
        assert stats.total_cells == 4
        assert stats.covered_cells == 3
        assert stats.coverage_pct == pytest.approx(75.0)
        assert stats.min_revisits == 1
        assert stats.max_revisits == 4
        assert stats.average_revisits == pytest.approx(7.0 / 3.0)
        assert stats.average_revisit_time_h == pytest.approx(12.0 * 3.0 / 7.0)
        assert stats.min_revisit_time_h == pytest.approx(4.0)
        assert stats.max_gap_h == pytest.approx(12.0)

    def test_single_visits_report_span(self):
        stats = revisit_statistics(np.array([[1, 1], [0, 1]]), 6.0)
        assert stats.min_revisit_time_h == 6.0
        assert stats.max_gap_h == 6.0
