"""
Revisit coverage accumulation.

Each ground-track sample of each satellite marks the grid cells inside an
approximate instantaneous swath:
    half-width [deg] = altitude · tan(sensor half-angle) / km_per_deg
with the longitude half-width widened by 1 / max(min_cos, cos lat) for
meridian convergence. Every covered cell gains one count per sample.

Increments are order-independent, so the grid does not depend on the
order of satellites or samples.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

import numpy as np

from ..core.config import CoverageConfig, PropagationConfig
from ..core.constants import DEG2RAD, KM_PER_DEG
from ..core.types import (
    OrbitalElements, TLERecord, GroundTrackPoint, RevisitGrid, RevisitStatistics,
)
from .propagator import GroundTrackPropagator, SGP4GroundTrackPropagator

logger = logging.getLogger(__name__)


def swath_half_width_deg(altitude_km: float, half_angle_deg: float,
                         km_per_deg: float = KM_PER_DEG) -> float:
    """Latitude half-width of the sensor swath [deg]."""
    return altitude_km * np.tan(half_angle_deg * DEG2RAD) / km_per_deg


def lat_to_row(lat_deg: float, rows: int) -> int:
    """Grid row of a latitude; row 0 is the north pole band."""
    return min(rows - 1, max(0, int(np.floor((90.0 - lat_deg) * rows / 180.0))))


def lon_to_col(lon_deg: float, cols: int) -> int:
    """Grid column of a longitude, clamped; column 0 starts at -180°."""
    return min(cols - 1, max(0, int(np.floor((lon_deg + 180.0) * cols / 360.0))))


def local_time_hhmm(timestamp: datetime, longitude_deg: float) -> int:
    """Mean local solar time at a longitude as an HHMM integer.

    Local time is UTC hours plus longitude / 15, wrapped into [0, 24).
    Aware timestamps are converted to UTC first; naive ones are taken as
    UTC.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    hours = timestamp.hour + timestamp.minute / 60.0 + longitude_deg / 15.0
    hours %= 24.0
    return int(np.floor(hours)) * 100 + int(np.floor((hours % 1.0) * 60.0 + 0.5))


def is_local_daytime(timestamp: datetime, longitude_deg: float,
                     start_hhmm: int = 1000, end_hhmm: int = 1700) -> bool:
    """True when local time falls in [start, end] (HHMM, inclusive)."""
    return start_hhmm <= local_time_hhmm(timestamp, longitude_deg) <= end_hhmm


def revisit_statistics(counts: np.ndarray, time_span_hours: float) -> RevisitStatistics:
    """Summarise a revisit grid.

    Revisit times are per-cell mean intervals span / (count − 1) over cells
    seen more than once; the span itself is reported when no cell
    qualifies.

    Args:
        counts: Revisit counts, shape (rows, cols).
        time_span_hours: Accumulation span [h].

    Returns:
        RevisitStatistics.
    """
    total_cells = int(counts.size)
    covered = counts[counts > 0]
    covered_cells = int(covered.size)

    average = float(covered.mean()) if covered_cells else 0.0
    repeat = counts[counts > 1]
    intervals = time_span_hours / (repeat - 1) if repeat.size else np.array([])

    return RevisitStatistics(
        total_cells=total_cells,
        covered_cells=covered_cells,
        coverage_pct=100.0 * covered_cells / total_cells if total_cells else 0.0,
        min_revisits=int(covered.min()) if covered_cells else 0,
        max_revisits=int(counts.max()) if total_cells else 0,
        average_revisits=average,
        average_revisit_time_h=time_span_hours / average if average > 0 else time_span_hours,
        min_revisit_time_h=float(intervals.min()) if intervals.size else time_span_hours,
        max_gap_h=float(intervals.max()) if intervals.size else time_span_hours,
    )


class RevisitAccumulator:
    """Revisit-count grid built from ground tracks.

    Attributes:
        config: Swath and grid settings.
        propagator: Circular ground-track source for ``OrbitalElements``.
        sgp4_propagator: SGP4 ground-track source for ``TLERecord``.
    """

    def __init__(self, config: Optional[CoverageConfig] = None,
                 propagation: Optional[PropagationConfig] = None):
        self.config = config or CoverageConfig()
        self.propagator = GroundTrackPropagator(propagation)
        self.sgp4_propagator = SGP4GroundTrackPropagator(propagation)

    def _col_ranges(self, lon_min: float, lon_max: float,
                    cols: int) -> list[tuple[int, int]]:
        """Inclusive column ranges covered by a longitude interval."""
        if not self.config.wrap_dateline or (lon_min >= -180.0 and lon_max <= 180.0):
            return [(lon_to_col(lon_min, cols), lon_to_col(lon_max, cols))]
        if lon_max - lon_min >= 360.0:
            return [(0, cols - 1)]
        if lon_min < -180.0:
            return [(lon_to_col(lon_min + 360.0, cols), cols - 1),
                    (0, lon_to_col(lon_max, cols))]
        return [(lon_to_col(lon_min, cols), cols - 1),
                (0, lon_to_col(lon_max - 360.0, cols))]

    def mark(self, counts: np.ndarray, point: GroundTrackPoint, altitude_km: float):
        """Increment every cell under the swath of one sample in place.

        Samples with a non-finite position or swath mark nothing.
        """
        rows, cols = counts.shape
        cfg = self.config
        half = swath_half_width_deg(altitude_km, cfg.sensor_half_angle_deg, cfg.km_per_deg)
        lat, lon = point.latitude_deg, point.longitude_deg
        if not (np.isfinite(lat) and np.isfinite(lon) and np.isfinite(half)):
            return
        half_lon = half / max(cfg.min_latitude_cosine, np.cos(lat * DEG2RAD))

        # Higher latitude -> smaller row index
        r0 = lat_to_row(lat + half, rows)
        r1 = lat_to_row(lat - half, rows)
        for c0, c1 in self._col_ranges(lon - half_lon, lon + half_lon, cols):
            counts[r0:r1 + 1, c0:c1 + 1] += 1

    def accumulate(self, satellites: Iterable[Union[OrbitalElements, TLERecord]],
                   time_span_hours: float,
                   grid_resolution: int, start_time: Optional[datetime] = None,
                   only_daytime: bool = False, daytime_start_hhmm: int = 1000,
                   daytime_end_hhmm: int = 1700) -> RevisitGrid:
        """Accumulate revisit counts for a constellation.

        A fresh grid is allocated on every call.

        Args:
            satellites: One entry per satellite: circular ``OrbitalElements``
                or a parsed ``TLERecord``, which is flown with SGP4.
            time_span_hours: Propagation span [h].
            grid_resolution: Number of latitude rows; columns are twice this.
            start_time: UTC start of propagation. Defaults to J2000 for
                circular elements and to the epoch for TLE records.
            only_daytime: Count only samples in local daytime.
            daytime_start_hhmm: Daytime window start (HHMM).
            daytime_end_hhmm: Daytime window end (HHMM).

        Returns:
            RevisitGrid with counts, maximum and statistics.
        """
        rows = int(grid_resolution)
        counts = np.zeros((rows, 2 * rows), dtype=np.int64)

        n_sats = 0
        n_samples = 0
        for satellite in satellites:
            n_sats += 1
            if isinstance(satellite, TLERecord):
                track = self.sgp4_propagator.ground_track(satellite, time_span_hours, start_time)
            else:
                track = self.propagator.ground_track(satellite, time_span_hours, start_time)

            for point in track:
                if not (np.isfinite(point.latitude_deg) and np.isfinite(point.longitude_deg)):
                    continue
                if only_daytime and not is_local_daytime(
                        point.timestamp, point.longitude_deg,
                        daytime_start_hhmm, daytime_end_hhmm):
                    continue
                self.mark(counts, point, satellite.altitude_km)
                n_samples += 1

        max_count = int(counts.max()) if counts.size else 0
        logger.debug("Revisit grid %dx%d: %d satellites, %d samples, max count %d",
                     rows, 2 * rows, n_sats, n_samples, max_count)

        return RevisitGrid(
            counts=counts,
            max_count=max_count,
            time_span_hours=float(time_span_hours),
            statistics=revisit_statistics(counts, time_span_hours),
        )


def accumulate_revisits(satellites: Iterable[Union[OrbitalElements, TLERecord]],
                        time_span_hours: float,
                        grid_resolution: int,
                        config: Optional[CoverageConfig] = None,
                        **kwargs) -> RevisitGrid:
    """Revisit-count grid for a constellation over a time span.

    Extra keyword arguments are passed to ``RevisitAccumulator.accumulate``.
    """
    return RevisitAccumulator(config).accumulate(satellites, time_span_hours,
                                                 grid_resolution, **kwargs)
