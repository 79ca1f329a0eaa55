"""
Reference frame transformations.

Provides the rotations and time scales needed to go from orbital elements
to geodetic coordinates:
    - Perifocal (PQW) -> ECI via the 3-1-3 rotation (ω, i, Ω)
    - ECI -> ECEF by Greenwich Mean Sidereal Time about Z
    - ECEF -> WGS-84 geodetic latitude / longitude / height

No precession, nutation or polar motion: ECI here is the true-of-date
equator with a mean sidereal angle, adequate for ground-track work.
"""

from __future__ import annotations

import numpy as np
from datetime import datetime, timedelta, timezone

from .constants import (
    JD_J2000, DAYS_PER_CENTURY, R_EARTH, WGS84_E2, RAD2DEG, DEG2RAD,
)


def rot_z(theta: float) -> np.ndarray:
    """Active rotation matrix about Z by ``theta`` [rad].

    Args:
        theta: Rotation angle [rad].

    Returns:
        3x3 rotation matrix such that R · v rotates v counter-clockwise.
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [c, -s, 0.],
        [s, c, 0.],
        [0., 0., 1.]
    ])


def rot_x(theta: float) -> np.ndarray:
    """Active rotation matrix about X by ``theta`` [rad]."""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [1., 0., 0.],
        [0., c, -s],
        [0., s, c]
    ])


def perifocal_to_eci_matrix(arg_perigee: float, inclination: float,
                            raan: float) -> np.ndarray:
    """Perifocal to ECI rotation: R3(Ω) · R1(i) · R3(ω).

    Args:
        arg_perigee: Argument of perigee ω [rad].
        inclination: Inclination i [rad].
        raan: Right ascension of ascending node Ω [rad].

    Returns:
        3x3 rotation matrix, r_ECI = R · r_PQW.
    """
    return rot_z(raan) @ rot_x(inclination) @ rot_z(arg_perigee)


def julian_date(when: datetime) -> float:
    """Julian Date of a UTC datetime (Meeus, Gregorian calendar).

    Naive datetimes are taken as UTC.

    Args:
        when: Calendar instant.

    Returns:
        Julian Date [days].
    """
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)

    year, month = when.year, when.month
    day = (when.day
           + (when.hour + (when.minute + (when.second
                                          + when.microsecond / 1e6) / 60.0) / 60.0) / 24.0)
    if month <= 2:
        year -= 1
        month += 12

    a = year // 100
    b = 2 - a + a // 4
    return (np.floor(365.25 * (year + 4716))
            + np.floor(30.6001 * (month + 1))
            + day + b - 1524.5)


def epoch_to_datetime(epoch_year: int, epoch_day: float) -> datetime:
    """Convert a TLE-style epoch (year, fractional day-of-year) to UTC.

    Day 1.0 is January 1 at 00:00 UTC.
    """
    start = datetime(int(epoch_year), 1, 1, tzinfo=timezone.utc)
    return start + timedelta(days=epoch_day - 1.0)


def julian_date_from_epoch(epoch_year: int, epoch_day: float) -> float:
    """Julian Date of a TLE epoch."""
    return julian_date(epoch_to_datetime(epoch_year, epoch_day))


def gmst_from_jd(jd: float) -> float:
    """Greenwich Mean Sidereal Time from a UT1 Julian Date.

    IAU 1982 polynomial in degrees (Meeus eq. 12.4).

    Args:
        jd: Julian Date (UT1 ≈ UTC).

    Returns:
        GMST in radians, wrapped to [0, 2π).
    """
    T = (jd - JD_J2000) / DAYS_PER_CENTURY
    gmst_deg = (280.46061837
                + 360.98564736629 * (jd - JD_J2000)
                + 0.000387933 * T**2
                - T**3 / 38710000.0)
    gmst_deg = gmst_deg % 360.0
    return gmst_deg * DEG2RAD


def eci_to_ecef(r_eci: np.ndarray, gmst: float) -> np.ndarray:
    """Rotate an ECI vector into ECEF by −GMST about Z.

    Args:
        r_eci: ECI position, shape (3,).
        gmst: Greenwich Mean Sidereal Time [rad].

    Returns:
        ECEF position, shape (3,).
    """
    return rot_z(-gmst) @ np.asarray(r_eci, dtype=float)


def ecef_to_geodetic(r_ecef: np.ndarray,
                     a: float = R_EARTH,
                     e2: float = WGS84_E2,
                     iterations: int = 5) -> tuple[float, float, float]:
    """ECEF position to geodetic latitude, longitude and height.

    Fixed-point iteration on the prime-vertical radius of curvature N,
    starting from the spherical-Earth latitude. Five iterations reach
    sub-millimetre height convergence from LEO to GEO.

    Args:
        r_ecef: ECEF position [km], shape (3,).
        a: Ellipsoid semi-major axis [km].
        e2: Ellipsoid first eccentricity squared.
        iterations: Number of refinement passes.

    Returns:
        (latitude [deg], longitude [deg], height [km]).
    """
    x, y, z = (float(c) for c in r_ecef)
    p = np.hypot(x, y)
    lon = np.arctan2(y, x)
    lat = np.arctan2(z, p * (1.0 - e2))

    for _ in range(iterations):
        N = a / np.sqrt(1.0 - e2 * np.sin(lat) ** 2)
        h = p / np.cos(lat) - N
        lat = np.arctan2(z, p * (1.0 - e2 * N / (N + h)))

    N = a / np.sqrt(1.0 - e2 * np.sin(lat) ** 2)
    h = p / np.cos(lat) - N
    return lat * RAD2DEG, lon * RAD2DEG, h


def normalize_longitude(lon_deg: float) -> float:
    """Wrap a longitude into [-180, 180] by repeated ±360° steps.

    Values already in range are returned unchanged. Non-finite values
    are returned as given.
    """
    if not np.isfinite(lon_deg):
        return lon_deg
    while lon_deg > 180.0:
        lon_deg -= 360.0
    while lon_deg < -180.0:
        lon_deg += 360.0
    return lon_deg
