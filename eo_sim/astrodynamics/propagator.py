"""
Circular-orbit ground-track propagator.

Two-body, constant-rate propagation of the sub-satellite point:
    - Period from Kepler's third law with a = R_earth + altitude
    - Argument of latitude advanced linearly in time
    - Unit position rotated by inclination then RAAN into ECI
    - Longitude corrected for Earth rotation since t = 0

Sample count is clamp(total_minutes / 2, 100, 500): long spans are
subsampled rather than growing the track.

Parsed TLEs can instead be flown with SGP4 (``SGP4GroundTrackPropagator``),
which keeps eccentricity and the secular and periodic perturbations the
circular model drops.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

import numpy as np
from sgp4.api import Satrec

from ..core.config import PropagationConfig
from ..core.constants import MU_EARTH, OMEGA_EARTH, DEG2RAD, RAD2DEG, TWO_PI, SECONDS_PER_DAY
from ..core.frames import (
    normalize_longitude, epoch_to_datetime, julian_date, gmst_from_jd,
    eci_to_ecef, ecef_to_geodetic,
)
from ..core.types import OrbitalElements, GroundTrackPoint, TLERecord

logger = logging.getLogger(__name__)

# J2000.0 reference instant, used when no start time is given
J2000_UTC = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def orbital_period_min(altitude_km: float, earth_radius_km: float = 6371.0) -> float:
    """Circular-orbit period [min].

    Args:
        altitude_km: Altitude above the spherical Earth [km].
        earth_radius_km: Earth radius [km].
    """
    a = earth_radius_km + altitude_km
    return TWO_PI * np.sqrt(a ** 3 / MU_EARTH) / 60.0


def sub_satellite_point(inclination_rad: float, raan_rad: float,
                        arg_latitude_rad: float) -> tuple[float, float]:
    """Inertial latitude and right ascension of the satellite direction.

    Args:
        inclination_rad: Inclination [rad].
        raan_rad: RAAN [rad].
        arg_latitude_rad: Angle from the ascending node [rad].

    Returns:
        (latitude [deg], inertial longitude [deg]).
    """
    cu, su = np.cos(arg_latitude_rad), np.sin(arg_latitude_rad)
    ci, si = np.cos(inclination_rad), np.sin(inclination_rad)
    co, so = np.cos(raan_rad), np.sin(raan_rad)

    x = cu * co - su * ci * so
    y = cu * so + su * ci * co
    z = su * si

    lat = np.arcsin(np.clip(z, -1.0, 1.0)) * RAD2DEG
    lon = np.arctan2(y, x) * RAD2DEG
    return float(lat), float(lon)


class GroundTrackPropagator:
    """Circular two-body ground-track generator.

    Attributes:
        config: Sampling configuration.
    """

    def __init__(self, config: Optional[PropagationConfig] = None):
        """Initialize the propagator.

        Args:
            config: Sampling limits and Earth radius. Defaults if omitted.
        """
        self.config = config or PropagationConfig()

    def sample_count(self, time_span_hours: float) -> int:
        """Number of samples for a span, clamped to the configured bounds."""
        total_min = time_span_hours * 60.0
        n = int(np.floor(total_min / self.config.minutes_per_sample))
        return min(self.config.max_samples, max(self.config.min_samples, n))

    def ground_track(self, elements: OrbitalElements, time_span_hours: float,
                     start_time: Optional[datetime] = None) -> Iterator[GroundTrackPoint]:
        """Yield ground-track points over ``time_span_hours``.

        The generator is single-pass; call again for a fresh track.

        Args:
            elements: Circular-orbit elements.
            time_span_hours: Propagation span [h].
            start_time: UTC time of the first sample. Defaults to J2000.

        Yields:
            GroundTrackPoint per sample, ordered by time.
        """
        start = start_time or J2000_UTC
        total_min = time_span_hours * 60.0
        n = self.sample_count(time_span_hours)
        period = orbital_period_min(elements.altitude_km, self.config.earth_radius_km)

        inc = elements.inclination_deg * DEG2RAD
        raan = elements.raan_deg * DEG2RAD
        u0 = elements.true_anomaly_deg * DEG2RAD

        for i in range(n):
            t_min = i * total_min / n
            u = u0 + TWO_PI * t_min / period
            lat, lon_inertial = sub_satellite_point(inc, raan, u)
            lon = lon_inertial - OMEGA_EARTH * 60.0 * t_min * RAD2DEG

            yield GroundTrackPoint(
                latitude_deg=lat,
                longitude_deg=normalize_longitude(lon),
                timestamp=start + timedelta(minutes=t_min),
                elapsed_min=t_min,
            )

    def propagate(self, elements: OrbitalElements, time_span_hours: float,
                  start_time: Optional[datetime] = None) -> list[GroundTrackPoint]:
        """Full ground track as a list.

        Args:
            elements: Circular-orbit elements.
            time_span_hours: Propagation span [h].
            start_time: UTC time of the first sample.

        Returns:
            Between ``min_samples`` and ``max_samples`` points.
        """
        track = list(self.ground_track(elements, time_span_hours, start_time))
        logger.debug("Propagated %d ground-track samples over %.2f h (alt %.1f km, inc %.1f deg)",
                     len(track), time_span_hours, elements.altitude_km, elements.inclination_deg)
        return track


def propagate_orbit(elements: OrbitalElements, time_span_hours: float,
                    start_time: Optional[datetime] = None,
                    config: Optional[PropagationConfig] = None) -> list[GroundTrackPoint]:
    """Sub-satellite points of a circular orbit over a time span."""
    return GroundTrackPropagator(config).propagate(elements, time_span_hours, start_time)


# ---------------------------------------------------------------------------
# SGP4 ground tracks from parsed TLEs
# ---------------------------------------------------------------------------

class SGP4GroundTrackPropagator(GroundTrackPropagator):
    """SGP4 ground-track generator for parsed TLEs.

    Uses the same sample grid as the circular propagator. Positions come
    from ``sgp4`` in the TEME frame, are treated as ECI and rotated into
    ECEF by GMST, then converted to WGS-84 geodetic coordinates. Samples
    for which SGP4 reports a non-zero error code are skipped.
    """

    def ground_track(self, record: TLERecord, time_span_hours: float,
                     start_time: Optional[datetime] = None) -> Iterator[GroundTrackPoint]:
        """Yield SGP4 ground-track points over ``time_span_hours``.

        Args:
            record: Parsed TLE; both data lines are handed to SGP4.
            time_span_hours: Propagation span [h].
            start_time: UTC time of the first sample. Defaults to the TLE
                epoch.

        Yields:
            GroundTrackPoint per successfully propagated sample.
        """
        satrec = Satrec.twoline2rv(record.line1, record.line2)
        start = start_time or epoch_to_datetime(record.elements.epoch_year,
                                                record.elements.epoch_day)
        jd_start = julian_date(start)
        total_min = time_span_hours * 60.0
        n = self.sample_count(time_span_hours)

        for i in range(n):
            t_min = i * total_min / n
            jd = jd_start + t_min * 60.0 / SECONDS_PER_DAY
            jd_whole = float(np.floor(jd))
            error, r_teme, _ = satrec.sgp4(jd_whole, float(jd - jd_whole))
            if error != 0:
                logger.debug("SGP4 error %d for %r at +%.1f min; sample skipped",
                             error, record.name, t_min)
                continue

            lat, lon, _ = ecef_to_geodetic(eci_to_ecef(r_teme, gmst_from_jd(jd)))
            yield GroundTrackPoint(
                latitude_deg=float(lat),
                longitude_deg=normalize_longitude(float(lon)),
                timestamp=start + timedelta(minutes=t_min),
                elapsed_min=t_min,
            )

    def propagate(self, record: TLERecord, time_span_hours: float,
                  start_time: Optional[datetime] = None) -> list[GroundTrackPoint]:
        """Full SGP4 ground track as a list."""
        track = list(self.ground_track(record, time_span_hours, start_time))
        logger.debug("Propagated %d SGP4 samples over %.2f h for %r",
                     len(track), time_span_hours, record.name)
        return track


def propagate_tle(record: TLERecord, time_span_hours: float,
                  start_time: Optional[datetime] = None,
                  config: Optional[PropagationConfig] = None) -> list[GroundTrackPoint]:
    """Sub-satellite points of a parsed TLE over a time span, via SGP4."""
    return SGP4GroundTrackPropagator(config).propagate(record, time_span_hours, start_time)
