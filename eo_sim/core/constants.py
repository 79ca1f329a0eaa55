"""
Physical and mathematical constants.

Sources:
    - WGS-84 for the reference ellipsoid
    - IAU 1982 GMST polynomial (Meeus form) for sidereal time
    - IERS conventions for Earth rotation rate

Units follow the quantity: altitudes and radii in km unless the name says
otherwise, optics in the unit named by the suffix (_um, _mm, _nm).
"""

import numpy as np

# ---------------------------------------------------------------------------
# Mathematical constants
# ---------------------------------------------------------------------------
TWO_PI = 2.0 * np.pi
DEG2RAD = np.pi / 180.0
RAD2DEG = 180.0 / np.pi
ARCSEC2RAD = DEG2RAD / 3600.0

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------
JD_J2000 = 2451545.0                    # Julian Date of J2000.0 epoch
SECONDS_PER_DAY = 86400.0
DAYS_PER_CENTURY = 36525.0

# ---------------------------------------------------------------------------
# Earth parameters
# ---------------------------------------------------------------------------
MU_EARTH = 398600.4418                  # Gravitational parameter [km³/s²]
R_EARTH = 6378.137                      # WGS-84 equatorial radius [km]
R_EARTH_MEAN = 6371.0                   # Mean spherical radius [km]
R_EARTH_SENSOR = 6378.0                 # Radius used by pixel-size geometry [km]
OMEGA_EARTH = 7.2921150e-5              # Earth rotation rate [rad/s]

WGS84_F = 1.0 / 298.257223563           # Flattening
WGS84_E2 = WGS84_F * (2.0 - WGS84_F)    # First eccentricity squared

KM_PER_DEG = 111.0                      # Great-circle km per degree (approx.)

# ---------------------------------------------------------------------------
# Optics
# ---------------------------------------------------------------------------
FWHM_TO_SIGMA = 1.0 / (2.0 * np.sqrt(2.0 * np.log(2.0)))  # Gaussian σ / FWHM
AIRY_DIAMETER_FACTOR = 2.44             # First-zero diameter = 2.44 λ N
AIRY_FWHM_FACTOR = 1.22                 # Diffraction FWHM = 1.22 λ N
