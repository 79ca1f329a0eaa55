"""
Keplerian primitives and TLE-epoch geodetic conversion.

Pipeline from mean elements to the sub-satellite point at the element
epoch:
    1. Mean motion -> semi-major axis
    2. Kepler's equation (Newton-Raphson) -> eccentric anomaly
    3. Half-angle form -> true anomaly
    4. Perifocal position
    5. Perifocal -> ECI (3-1-3 rotation)
    6. Epoch -> Julian Date -> GMST
    7. ECI -> ECEF
    8. ECEF -> WGS-84 geodetic

No perturbations: the result is the osculating two-body position, not an
SGP4 solution.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..core.constants import MU_EARTH, TWO_PI, DEG2RAD, RAD2DEG, SECONDS_PER_DAY
from ..core.frames import (
    perifocal_to_eci_matrix, julian_date_from_epoch, gmst_from_jd,
    eci_to_ecef, ecef_to_geodetic,
)
from ..core.types import TLEElements, GeodeticPosition, TraceHook

logger = logging.getLogger(__name__)

KEPLER_TOL = 1e-8
KEPLER_MAX_ITER = 100


def mean_motion_to_sma(mean_motion_rev_per_day: float, mu: float = MU_EARTH) -> float:
    """Semi-major axis from mean motion, a = (μ / n²)^(1/3) [km]."""
    n_rad = np.float64(mean_motion_rev_per_day) * TWO_PI / SECONDS_PER_DAY
    return (mu / (n_rad * n_rad)) ** (1.0 / 3.0)


def sma_to_mean_motion(semi_major_axis_km: float, mu: float = MU_EARTH) -> float:
    """Mean motion from semi-major axis [rev/day]."""
    return np.sqrt(mu / semi_major_axis_km ** 3) * SECONDS_PER_DAY / TWO_PI


def solve_kepler(mean_anomaly: float, eccentricity: float,
                 tol: float = KEPLER_TOL, max_iter: int = KEPLER_MAX_ITER) -> float:
    """Solve E − e sin E = M by Newton-Raphson.

    Starts from M for e < 0.8, otherwise from π. Stops when the update
    falls below ``tol``; after ``max_iter`` iterations the last iterate
    is returned and a warning is logged.

    Args:
        mean_anomaly: Mean anomaly M [rad].
        eccentricity: Eccentricity e.
        tol: Update tolerance [rad].
        max_iter: Iteration cap.

    Returns:
        Eccentric anomaly E [rad].
    """
    E = mean_anomaly if eccentricity < 0.8 else np.pi
    for _ in range(max_iter):
        dE = (E - eccentricity * np.sin(E) - mean_anomaly) / (1.0 - eccentricity * np.cos(E))
        E -= dE
        if abs(dE) < tol:
            return E

    logger.warning("Kepler solver hit %d iterations (M=%.6f rad, e=%.6f); "
                   "returning last iterate", max_iter, mean_anomaly, eccentricity)
    return E


def eccentric_to_true(E: float, eccentricity: float) -> float:
    """True anomaly from eccentric anomaly (half-angle atan2 form) [rad]."""
    return 2.0 * np.arctan2(np.sqrt(1.0 + eccentricity) * np.sin(0.5 * E),
                            np.sqrt(1.0 - eccentricity) * np.cos(0.5 * E))


def true_to_mean(nu: float, eccentricity: float) -> float:
    """Mean anomaly from true anomaly via the eccentric anomaly [rad]."""
    if eccentricity == 0.0:
        return nu
    E = 2.0 * np.arctan(np.sqrt((1.0 - eccentricity) / (1.0 + eccentricity)) * np.tan(0.5 * nu))
    return E - eccentricity * np.sin(E)


def perifocal_position(a: float, eccentricity: float, E: float) -> np.ndarray:
    """Position in the perifocal frame [km], shape (3,)."""
    return np.array([
        a * (np.cos(E) - eccentricity),
        a * np.sqrt(1.0 - eccentricity ** 2) * np.sin(E),
        0.0,
    ])


class TLEGeodeticConverter:
    """Geodetic sub-satellite point of a TLE at its epoch.

    Attributes:
        trace: Optional observer called as ``trace(stage, values)`` after
            each pipeline stage.
    """

    def __init__(self, trace: Optional[TraceHook] = None):
        self.trace = trace

    def _emit(self, stage: str, **values):
        if self.trace is not None:
            self.trace(stage, values)

    def convert(self, elements: TLEElements) -> GeodeticPosition:
        """Run the full pipeline for one element set.

        Args:
            elements: TLE mean elements.

        Returns:
            GeodeticPosition at the element epoch.
        """
        a = mean_motion_to_sma(elements.mean_motion_rev_per_day)
        e = elements.eccentricity
        self._emit("semi_major_axis", a_km=a)

        M = elements.mean_anomaly_deg * DEG2RAD
        E = solve_kepler(M, e)
        self._emit("eccentric_anomaly", E_rad=E)

        nu = eccentric_to_true(E, e)
        self._emit("true_anomaly", nu_rad=nu)

        r_pqw = perifocal_position(a, e, E)
        self._emit("perifocal", r_km=r_pqw.copy())

        R = perifocal_to_eci_matrix(elements.arg_perigee_deg * DEG2RAD,
                                    elements.inclination_deg * DEG2RAD,
                                    elements.raan_deg * DEG2RAD)
        r_eci = R @ r_pqw
        self._emit("eci", r_km=r_eci.copy())

        jd = julian_date_from_epoch(elements.epoch_year, elements.epoch_day)
        self._emit("julian_date", jd=jd)

        gmst = gmst_from_jd(jd)
        self._emit("gmst", gmst_rad=gmst)

        r_ecef = eci_to_ecef(r_eci, gmst)
        self._emit("ecef", r_km=r_ecef.copy())

        lat, lon, h = ecef_to_geodetic(r_ecef)
        position = GeodeticPosition(latitude_deg=float(lat), longitude_deg=float(lon),
                                    altitude_km=float(h))
        self._emit("geodetic", latitude_deg=position.latitude_deg,
                   longitude_deg=position.longitude_deg, altitude_km=position.altitude_km)
        return position


def tle_to_geodetic(elements: TLEElements,
                    trace: Optional[TraceHook] = None) -> GeodeticPosition:
    """Latitude, longitude and height of a TLE at its epoch."""
    return TLEGeodeticConverter(trace).convert(elements)


def argument_of_latitude_deg(elements: TLEElements) -> float:
    """ω + ν at the element epoch, wrapped to [0, 360) [deg]."""
    E = solve_kepler(elements.mean_anomaly_deg * DEG2RAD, elements.eccentricity)
    nu = eccentric_to_true(E, elements.eccentricity)
    return float((elements.arg_perigee_deg + nu * RAD2DEG) % 360.0)
