"""
Sensor imaging geometry.

Computes the ground-projected sampling of a push-broom / framing sensor
on a spherical Earth and the pointing-error budget that degrades it:
    - Field of view and IFOV from pixel pitch, pixel count and focal length
    - Ground pixel size at the boresight and at the FOV edge
    - Swath footprint across and along track
    - Roll / pitch / yaw induced ground displacement and their RSS

Two pointing cases are evaluated, both at maximum altitude:
    nominal     sensor pointed at nadir
    worst case  sensor at the maximum off-nadir angle

Invalid inputs are not rejected here; they surface as NaN/inf in the
outputs. Use ``core.validation.validate_sensor_inputs`` beforehand.
"""

from __future__ import annotations

import numpy as np

from ..core.constants import DEG2RAD, RAD2DEG, R_EARTH_SENSOR, R_EARTH_MEAN
from ..core.types import (
    SensorInputs, CalculationResults, GeometryRecord, SensorParameters,
)


# ---------------------------------------------------------------------------
# First-order optics
# ---------------------------------------------------------------------------

def required_focal_length_mm(altitude_min_km: float, altitude_max_km: float,
                             pixel_size_um: float, gsd_m: float) -> float:
    """Focal length that delivers the GSD target at mean altitude.

    f [mm] = h_mean [km] · p [µm] / GSD [m]

    Args:
        altitude_min_km: Minimum altitude [km].
        altitude_max_km: Maximum altitude [km].
        pixel_size_um: Pixel pitch [µm].
        gsd_m: Required ground sample distance [m].

    Returns:
        Focal length [mm].
    """
    altitude_mean_km = 0.5 * (altitude_min_km + altitude_max_km)
    return np.float64(altitude_mean_km) * pixel_size_um / gsd_m


def f_number(focal_length_mm: float, aperture_mm: float) -> float:
    """Focal ratio N = f / D."""
    return np.float64(focal_length_mm) / aperture_mm


def ifov_rad(pixel_size_um: float, focal_length_mm: float) -> float:
    """Instantaneous field of view of one pixel [rad]."""
    return 1e-3 * np.float64(pixel_size_um) / focal_length_mm


def full_fov_rad(pixel_size_um: float, pixel_count: int,
                 focal_length_mm: float) -> float:
    """Full field of view across ``pixel_count`` pixels [rad].

    Exact pinhole form 2·atan(half-width / f), not the small-angle
    count × IFOV.
    """
    half_width_mm = 0.5 * np.float64(pixel_size_um) * pixel_count / 1000.0
    return 2.0 * np.arctan(half_width_mm / focal_length_mm)


# ---------------------------------------------------------------------------
# Ground projection on a spherical Earth
# ---------------------------------------------------------------------------

def center_pixel_size_m(ifov: float, altitude_km: float,
                        off_nadir_deg: float = 0.0,
                        earth_radius_km: float = R_EARTH_SENSOR) -> float:
    """Ground length of one IFOV at a given off-nadir angle.

    The Earth-centre angle λ for a look angle η at orbit radius R+h is
        λ(η) = asin(sin η · (1 + h/R)) − η
    and the ground pixel is R · [λ(η + IFOV) − λ(η)]. Slant range and
    incidence both grow with η, so the result increases non-linearly
    off nadir.

    Args:
        ifov: Pixel IFOV [rad].
        altitude_km: Orbit altitude [km].
        off_nadir_deg: Look angle from nadir [deg].
        earth_radius_km: Spherical Earth radius [km].

    Returns:
        Ground pixel size [m].
    """
    eta = off_nadir_deg * DEG2RAD
    k = 1.0 + altitude_km / earth_radius_km
    lam_far = np.arcsin(np.sin(eta + ifov) * k) - eta - ifov
    lam_near = np.arcsin(np.sin(eta) * k) - eta
    return float(earth_radius_km * 1000.0 * (lam_far - lam_near))


def earth_center_angle_rad(altitude_km: float, fov_deg: float,
                           earth_radius_km: float = R_EARTH_SENSOR) -> float:
    """Half-swath angle subtended at Earth centre (flat-projection estimate).

    Args:
        altitude_km: Orbit altitude [km].
        fov_deg: Full field of view [deg].
        earth_radius_km: Earth radius [km].

    Returns:
        Angle [rad].
    """
    half_fov = 0.5 * fov_deg * DEG2RAD
    return float(np.arctan(altitude_km * np.tan(half_fov) / earth_radius_km))


def footprint_km(altitude_km: float, fov_deg: float,
                 off_nadir_deg: float = 0.0,
                 earth_radius_km: float = R_EARTH_MEAN) -> float:
    """Ground swath spanned by a field of view [km].

    Both FOV edges are projected with λ(η) as in ``center_pixel_size_m``.
    The asin arguments are clamped to [-1, 1] so an edge past the limb
    projects to the horizon instead of producing NaN.

    Args:
        altitude_km: Orbit altitude [km].
        fov_deg: Full field of view [deg].
        off_nadir_deg: Boresight off-nadir angle [deg].
        earth_radius_km: Earth radius [km].

    Returns:
        Swath length [km].
    """
    eta = off_nadir_deg * DEG2RAD
    half = 0.5 * fov_deg * DEG2RAD
    k = 1.0 + altitude_km / earth_radius_km

    far_arg = np.clip(np.sin(eta + half) * k, -1.0, 1.0)
    near_arg = np.clip(np.sin(eta - half) * k, -1.0, 1.0)

    far = np.arcsin(far_arg) - eta - half
    near = np.arcsin(near_arg) - eta + half
    return float(earth_radius_km * (far - near))


# ---------------------------------------------------------------------------
# Pointing error budget
# ---------------------------------------------------------------------------

def pointing_error_budget(altitude_m: float, off_nadir_deg: float,
                          attitude_accuracy_deg: float,
                          gps_accuracy_m: float) -> dict[str, float]:
    """Ground displacement caused by attitude and position knowledge errors.

    Small-angle propagation of the same attitude error on each axis:
        roll  = h · sec²η · δ    (cross-track, amplified by obliquity)
        pitch = h · secη  · δ
        yaw   = h · secη  · δ
    combined by RSS, then the GPS error is added directly.

    Args:
        altitude_m: Orbit altitude [m].
        off_nadir_deg: Look angle from nadir [deg].
        attitude_accuracy_deg: Per-axis attitude error [deg].
        gps_accuracy_m: Position knowledge error [m].

    Returns:
        Dict with keys 'roll_edge_change_m', 'pitch_edge_change_m',
        'yaw_edge_change_m', 'rss_error_m', 'geolocation_error_m'.
    """
    sec_eta = 1.0 / np.cos(off_nadir_deg * DEG2RAD)
    delta = attitude_accuracy_deg * DEG2RAD

    roll = altitude_m * sec_eta * sec_eta * delta
    pitch = altitude_m * sec_eta * delta
    yaw = altitude_m * sec_eta * delta
    rss = np.sqrt(roll ** 2 + pitch ** 2 + yaw ** 2)

    return {
        'roll_edge_change_m': float(roll),
        'pitch_edge_change_m': float(pitch),
        'yaw_edge_change_m': float(yaw),
        'rss_error_m': float(rss),
        'geolocation_error_m': float(rss + gps_accuracy_m),
    }


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class SensorGeometryCalculator:
    """Ground resolution, footprint and pointing budget for one sensor.

    Attributes:
        inputs: Sensor specification.
    """

    def __init__(self, inputs: SensorInputs):
        """Initialize from a sensor specification.

        Args:
            inputs: Sensor, optics and orbit parameters.
        """
        self.inputs = inputs

    @property
    def ifov_rad(self) -> float:
        return ifov_rad(self.inputs.pixel_size_um, self.inputs.focal_length_mm)

    @property
    def hfov_deg(self) -> float:
        """Horizontal FOV from the exact pinhole form [deg]."""
        return full_fov_rad(self.inputs.pixel_size_um, self.inputs.pixel_count_h,
                            self.inputs.focal_length_mm) * RAD2DEG

    @property
    def vfov_deg(self) -> float:
        """Vertical FOV from the exact pinhole form [deg]."""
        return full_fov_rad(self.inputs.pixel_size_um, self.inputs.pixel_count_v,
                            self.inputs.focal_length_mm) * RAD2DEG

    @property
    def altitude_max_km(self) -> float:
        return self.inputs.altitude_max_m / 1000.0

    def record_at(self, off_nadir_deg: float) -> GeometryRecord:
        """Evaluate every geometry metric at one off-nadir angle.

        Altitude is the maximum altitude (worst case for ground sampling).

        Args:
            off_nadir_deg: Boresight look angle [deg].

        Returns:
            GeometryRecord for that pointing.
        """
        h_km = self.altitude_max_km
        ifov = self.ifov_rad
        hfov = self.hfov_deg

        center = center_pixel_size_m(ifov, h_km, off_nadir_deg)
        edge = center_pixel_size_m(ifov, h_km, off_nadir_deg + 0.5 * hfov)
        errors = pointing_error_budget(
            self.inputs.altitude_max_m, off_nadir_deg,
            self.inputs.attitude_accuracy_deg, self.inputs.gps_accuracy_m
        )

        return GeometryRecord(
            off_nadir_deg=float(off_nadir_deg),
            center_pixel_size_m=center,
            edge_pixel_size_m=edge,
            earth_center_angle_deg=earth_center_angle_rad(h_km, hfov) * RAD2DEG,
            horizontal_footprint_km=footprint_km(h_km, hfov, off_nadir_deg),
            vertical_footprint_km=footprint_km(h_km, self.vfov_deg, off_nadir_deg),
            **errors,
        )

    def compute(self) -> CalculationResults:
        """Nominal (nadir) and worst-case (max off-nadir) geometry."""
        return CalculationResults(
            nominal=self.record_at(0.0),
            worst_case=self.record_at(self.inputs.max_off_nadir_deg),
        )

    def parameters(self) -> SensorParameters:
        """First-order sensor summary at the nominal off-nadir angle.

        FOVs here use the small-angle count × IFOV form.
        """
        inp = self.inputs
        h_km = self.altitude_max_km
        ifov = self.ifov_rad
        hfov = inp.pixel_count_h * ifov * RAD2DEG
        vfov = inp.pixel_count_v * ifov * RAD2DEG

        return SensorParameters(
            focal_length_mm=inp.focal_length_mm,
            required_focal_length_mm=required_focal_length_mm(
                inp.altitude_min_m / 1000.0, h_km,
                inp.pixel_size_um, inp.gsd_requirement_m
            ),
            f_number=f_number(inp.focal_length_mm, inp.aperture_mm),
            ifov_rad=ifov,
            hfov_deg=hfov,
            vfov_deg=vfov,
            center_pixel_size_m=center_pixel_size_m(ifov, h_km, inp.nominal_off_nadir_deg),
            earth_center_angle_deg=earth_center_angle_rad(h_km, hfov) * RAD2DEG,
            horizontal_footprint_km=footprint_km(h_km, hfov, inp.nominal_off_nadir_deg),
            vertical_footprint_km=footprint_km(h_km, vfov, inp.nominal_off_nadir_deg),
        )


def compute_sensor_geometry(inputs: SensorInputs) -> CalculationResults:
    """Nominal and worst-case ground geometry for a sensor."""
    return SensorGeometryCalculator(inputs).compute()


def compute_sensor_parameters(inputs: SensorInputs) -> SensorParameters:
    """First-order sensor summary at the nominal off-nadir angle."""
    return SensorGeometryCalculator(inputs).parameters()
