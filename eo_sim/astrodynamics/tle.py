"""
Two-line element set text handling.

    - parse_tle: fixed-column parsing of a 2- or 3-line set
    - tle_checksum: modulo-10 line checksum
    - generate_tle: build a TLE for a (near-)circular orbit
    - orbital_elements_from_tle: reduce a TLE to propagator elements
    - local_time_of_ascending_node: nearest standard LTAN slot from RAAN
    - geo_longitude: sub-satellite longitude of a geostationary TLE

Epoch years use the conventional two-digit pivot: 57-99 -> 19xx,
00-56 -> 20xx.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from ..core.constants import R_EARTH, R_EARTH_MEAN, DEG2RAD, RAD2DEG
from ..core.frames import (
    perifocal_to_eci_matrix, julian_date_from_epoch, gmst_from_jd, eci_to_ecef,
    ecef_to_geodetic, normalize_longitude,
)
from ..core.types import TLEElements, TLERecord, OrbitalElements
from .kepler import mean_motion_to_sma, sma_to_mean_motion, true_to_mean, argument_of_latitude_deg


class TLEParseError(ValueError):
    """Malformed two-line element text."""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def tle_checksum(line: str) -> int:
    """Sum of digits, plus one per '-', modulo 10.

    Pass the first 68 characters of a line to check an existing TLE.
    """
    total = 0
    for ch in line:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1
    return total % 10


def expand_epoch_year(two_digit_year: int) -> int:
    return 2000 + two_digit_year if two_digit_year < 57 else 1900 + two_digit_year


def _field(line: str, start: int, end: int, name: str) -> float:
    text = line[start:end].strip()
    try:
        return float(text)
    except ValueError:
        raise TLEParseError(f"Invalid {name} field {text!r}") from None


def parse_tle(text: str, verify_checksum: bool = False) -> TLERecord:
    """Parse a two-line element set.

    Accepts either two data lines or a name line followed by two data
    lines. Surrounding whitespace on each line is ignored.

    Args:
        text: TLE text.
        verify_checksum: Also check column 69 of both data lines.

    Returns:
        TLERecord with parsed elements and derived semi-major axis and
        altitude above the mean Earth radius.

    Raises:
        TLEParseError: Wrong line count, wrong line prefixes, unparsable
            fields or (optionally) a checksum mismatch.
    """
    lines = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
    if len(lines) == 3:
        name, line1, line2 = lines
    elif len(lines) == 2:
        name, (line1, line2) = "", lines
    else:
        raise TLEParseError(f"Expected 2 or 3 lines, got {len(lines)}")

    if not line1.startswith("1 ") or not line2.startswith("2 "):
        raise TLEParseError('Data lines must start with "1 " and "2 "')

    if verify_checksum:
        for ln in (line1, line2):
            if len(ln) < 69 or not ln[68].isdigit() or tle_checksum(ln[:68]) != int(ln[68]):
                raise TLEParseError(f"Checksum mismatch on line {ln[0]}")

    elements = TLEElements(
        epoch_year=expand_epoch_year(int(_field(line1, 18, 20, "epoch year"))),
        epoch_day=_field(line1, 20, 32, "epoch day"),
        inclination_deg=_field(line2, 8, 16, "inclination"),
        raan_deg=_field(line2, 17, 25, "RAAN"),
        eccentricity=_field("0." + line2[26:33].strip(), 0, None, "eccentricity"),
        arg_perigee_deg=_field(line2, 34, 42, "argument of perigee"),
        mean_anomaly_deg=_field(line2, 43, 51, "mean anomaly"),
        mean_motion_rev_per_day=_field(line2, 52, 63, "mean motion"),
    )

    a = mean_motion_to_sma(elements.mean_motion_rev_per_day)
    return TLERecord(
        name=name,
        line1=line1,
        line2=line2,
        elements=elements,
        semi_major_axis_km=a,
        altitude_km=a - R_EARTH_MEAN,
    )


def orbital_elements_from_tle(elements: TLEElements) -> OrbitalElements:
    """Circular propagator elements equivalent to a TLE at its epoch.

    Altitude is measured from the mean Earth radius; the initial angle is
    the argument of latitude ω + ν so the propagator starts from the
    epoch position.
    """
    a = mean_motion_to_sma(elements.mean_motion_rev_per_day)
    return OrbitalElements(
        altitude_km=a - R_EARTH_MEAN,
        inclination_deg=elements.inclination_deg,
        raan_deg=elements.raan_deg,
        true_anomaly_deg=argument_of_latitude_deg(elements),
    )


# ---------------------------------------------------------------------------
# Derived orbit descriptors
# ---------------------------------------------------------------------------

# Standard sun-synchronous LTAN slots, as offered to mission planners
LTAN_SLOTS = ("06:00", "09:30", "10:30", "13:30")

GEO_ALTITUDE_KM = 35786.0


def ltan_hours(raan_deg: float) -> float:
    """Approximate local time of the ascending node, (RAAN + 180) / 15 [h]."""
    return ((raan_deg + 180.0) % 360.0) / 15.0


def local_time_of_ascending_node(raan_deg: float) -> str:
    """Closest entry of ``LTAN_SLOTS`` to the RAAN-derived local time.

    The local time is truncated to whole minutes before the comparison.
    Ties go to the earlier slot.

    Args:
        raan_deg: Right ascension of the ascending node [deg].

    Returns:
        Slot string "HH:MM".
    """
    hours = ltan_hours(raan_deg)
    target = np.floor(hours) + np.floor((hours % 1.0) * 60.0) / 60.0

    def distance(slot):
        hh, mm = slot.split(":")
        return abs(target - (int(hh) + int(mm) / 60.0))

    return min(LTAN_SLOTS, key=distance)


def geo_longitude(raan_deg: float, arg_perigee_deg: float, mean_anomaly_deg: float,
                  altitude_km: float = GEO_ALTITUDE_KM,
                  epoch_year: Optional[int] = None,
                  epoch_day: Optional[float] = None) -> float:
    """Sub-satellite longitude of a geostationary satellite [deg].

    The orbit is taken as circular and equatorial, so the inertial
    longitude is RAAN + ω + M. It is rotated into ECEF by GMST at the
    epoch and converted to geodetic coordinates.

    Args:
        raan_deg: RAAN [deg].
        arg_perigee_deg: Argument of perigee [deg].
        mean_anomaly_deg: Mean anomaly [deg].
        altitude_km: Altitude above the mean Earth radius [km].
        epoch_year: Four-digit epoch year. Defaults to now.
        epoch_day: Fractional day of year. Defaults to now.

    Returns:
        Longitude in [-180, 180] [deg].
    """
    if epoch_year is None or epoch_day is None:
        epoch_year, epoch_day = current_epoch()

    a = R_EARTH_MEAN + altitude_km
    M = mean_anomaly_deg * DEG2RAD
    r_pqw = np.array([a * np.cos(M), a * np.sin(M), 0.0])
    r_eci = perifocal_to_eci_matrix(arg_perigee_deg * DEG2RAD, 0.0, raan_deg * DEG2RAD) @ r_pqw

    gmst = gmst_from_jd(julian_date_from_epoch(epoch_year, epoch_day))
    _, lon, _ = ecef_to_geodetic(eci_to_ecef(r_eci, gmst))
    return normalize_longitude(float(lon))


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def _wrap360(angle_deg: float) -> float:
    while angle_deg < 0.0:
        angle_deg += 360.0
    while angle_deg >= 360.0:
        angle_deg -= 360.0
    return angle_deg


def _fixed(value: float, width: int, decimals: int = 0) -> str:
    text = f"{value:.{decimals}f}" if decimals > 0 else str(int(np.floor(value)))
    return text.rjust(width, "0")


def _exp_field(value: float) -> str:
    """TLE assumed-decimal exponent field, e.g. -0.00011606 -> '-11606-3'."""
    if value == 0.0:
        return " 00000-0"
    sign = "-" if value < 0 else " "
    exponent = int(np.floor(np.log10(abs(value)))) + 1
    mantissa = int(round(abs(value) / 10.0 ** exponent * 1e5))
    if mantissa >= 100000:
        mantissa //= 10
        exponent += 1
    return f"{sign}{mantissa:05d}{'-' if exponent < 0 else '+'}{abs(exponent)}"


def current_epoch() -> tuple[int, float]:
    """(four-digit year, fractional day of year) for the present UTC time."""
    now = datetime.now(timezone.utc)
    start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
    return now.year, 1.0 + (now - start).total_seconds() / 86400.0


def generate_tle(altitude_km: float, inclination_deg: float, raan_deg: float,
                 true_anomaly_deg: float, eccentricity: float = 0.0,
                 arg_perigee_deg: float = 0.0,
                 epoch_year: Optional[int] = None, epoch_day: Optional[float] = None,
                 satellite_number: Optional[int] = None, classification: str = "U",
                 intl_designator: str = "99999A", bstar: float = 0.0,
                 ephemeris_type: int = 0, element_number: int = 999,
                 name: Optional[str] = None) -> str:
    """Build a three-line TLE from orbit geometry.

    Mean motion follows from Kepler's third law with the semi-major axis
    measured from the WGS-84 equatorial radius. Derivative terms are zero.

    Args:
        altitude_km: Altitude above the equatorial radius [km].
        inclination_deg: Inclination [deg].
        raan_deg: RAAN [deg].
        true_anomaly_deg: True anomaly at epoch [deg].
        eccentricity: Eccentricity.
        arg_perigee_deg: Argument of perigee [deg].
        epoch_year: Epoch year (two or four digits). Defaults to now.
        epoch_day: Fractional day of year. Defaults to now.
        satellite_number: Catalogue number. Random 5-digit if omitted.
        classification: Security classification character.
        intl_designator: International designator (up to 8 characters).
        bstar: Drag term.
        ephemeris_type: Ephemeris type digit.
        element_number: Element set number.
        name: Name line. Defaults to "Generated Sat <number>".

    Returns:
        Name line and both data lines joined by newlines.
    """
    if epoch_year is None or epoch_day is None:
        now_year, now_day = current_epoch()
        epoch_year = now_year if epoch_year is None else epoch_year
        epoch_day = now_day if epoch_day is None else epoch_day
    if satellite_number is None:
        satellite_number = random.randint(10000, 99999)

    mean_motion = sma_to_mean_motion(R_EARTH + altitude_km)
    mean_anomaly = true_to_mean(true_anomaly_deg * DEG2RAD, eccentricity) * RAD2DEG

    line1 = (
        "1 "
        + _fixed(satellite_number, 5)
        + classification
        + " "
        + intl_designator.ljust(8)[:8]
        + " "
        + _fixed(int(epoch_year) % 100, 2)
        + _fixed(epoch_day, 12, 8)
        + " "
        + " .00000000"
        + "  00000-0"
        + " "
        + _exp_field(bstar)
        + " "
        + str(ephemeris_type)
        + " "
        + _fixed(element_number, 4)
    )
    line1 += str(tle_checksum(line1))

    line2 = (
        "2 "
        + _fixed(satellite_number, 5)
        + " "
        + _fixed(_wrap360(inclination_deg), 8, 4)
        + " "
        + _fixed(_wrap360(raan_deg), 8, 4)
        + " "
        + f"{eccentricity:.7f}".split(".")[1]
        + " "
        + _fixed(_wrap360(arg_perigee_deg), 8, 4)
        + " "
        + _fixed(_wrap360(mean_anomaly), 8, 4)
        + " "
        + _fixed(mean_motion, 11, 8)
        + _fixed(0, 5)
    )
    line2 += str(tle_checksum(line2))

    return "\n".join([name or f"Generated Sat {satellite_number}", line1, line2])
