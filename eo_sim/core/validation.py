"""
Input validation.

The engines never raise on numerically invalid inputs: bad values flow
through the formulas as NaN or inf. Callers that want to reject inputs up
front run the validators here first. Each validator collects every problem
rather than stopping at the first one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .types import (
    SensorInputs, PSFInputs, MTFInputs, OrbitalElements, TLEElements,
    AtmosphericCondition,
)


class InputValidationError(ValueError):
    """Raised by ``ValidationReport.raise_if_invalid`` when issues exist."""

    def __init__(self, issues: list[str]):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))


@dataclass
class ValidationReport:
    """Outcome of validating one input record.

    Attributes:
        issues: Human-readable problems, one per violated rule.
    """
    issues: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def raise_if_invalid(self):
        """Raise ``InputValidationError`` listing every issue."""
        if self.issues:
            raise InputValidationError(self.issues)

    # Rule helpers -------------------------------------------------------

    def finite(self, name: str, value) -> bool:
        try:
            ok = math.isfinite(float(value))
        except (TypeError, ValueError):
            ok = False
        if not ok:
            self.issues.append(f"{name} must be a finite number (got {value!r})")
        return ok

    def positive(self, name: str, value):
        if self.finite(name, value) and float(value) <= 0.0:
            self.issues.append(f"{name} must be positive (got {value!r})")

    def non_negative(self, name: str, value):
        if self.finite(name, value) and float(value) < 0.0:
            self.issues.append(f"{name} must be non-negative (got {value!r})")

    def in_range(self, name: str, value, low: float, high: float,
                 high_inclusive: bool = False):
        if not self.finite(name, value):
            return
        v = float(value)
        above = v > high if high_inclusive else v >= high
        if v < low or above:
            bracket = "]" if high_inclusive else ")"
            self.issues.append(f"{name} must be in [{low:g}, {high:g}{bracket} (got {value!r})")


def validate_sensor_inputs(inputs: SensorInputs) -> ValidationReport:
    """Check a ``SensorInputs`` record before geometry evaluation."""
    report = ValidationReport()
    for name in ("pixel_size_um", "pixel_count_h", "pixel_count_v",
                 "gsd_requirement_m", "altitude_min_m", "altitude_max_m",
                 "focal_length_mm", "aperture_mm", "attitude_accuracy_deg",
                 "gps_accuracy_m"):
        report.positive(name, getattr(inputs, name))

    report.in_range("nominal_off_nadir_deg", inputs.nominal_off_nadir_deg, 0.0, 90.0)
    report.in_range("max_off_nadir_deg", inputs.max_off_nadir_deg, 0.0, 90.0)

    if report.ok and inputs.altitude_max_m < inputs.altitude_min_m:
        report.issues.append("altitude_max_m must be >= altitude_min_m")
    return report


def validate_psf_inputs(inputs: PSFInputs) -> ValidationReport:
    """Check a ``PSFInputs`` (or ``MTFInputs``) record."""
    report = ValidationReport()
    for name in ("pixel_size_um", "aperture_mm", "focal_length_mm", "wavelength_nm"):
        report.positive(name, getattr(inputs, name))
    report.in_range("off_nadir_deg", inputs.off_nadir_deg, 0.0, 90.0)
    report.finite("defocus_um", inputs.defocus_um)
    try:
        AtmosphericCondition.coerce(inputs.atmospheric_condition)
    except ValueError as exc:
        report.issues.append(str(exc))
    return report


def validate_mtf_inputs(inputs: MTFInputs) -> ValidationReport:
    """Check an ``MTFInputs`` record, including the PSF fields."""
    report = validate_psf_inputs(inputs)
    report.in_range("detector_qe", inputs.detector_qe, 0.0, 1.0, high_inclusive=True)
    report.positive("detector_qe", inputs.detector_qe)
    report.non_negative("electronic_noise_e", inputs.electronic_noise_e)
    report.non_negative("platform_velocity_mps", inputs.platform_velocity_mps)
    report.non_negative("integration_time_s", inputs.integration_time_s)
    report.positive("altitude_m", inputs.altitude_m)

    f_min, f_max = inputs.spatial_frequency_range
    report.non_negative("spatial_frequency_range[0]", f_min)
    report.positive("spatial_frequency_range[1]", f_max)
    if report.ok and f_max <= f_min:
        report.issues.append("spatial_frequency_range must be increasing")
    return report


def validate_orbital_elements(elements: OrbitalElements) -> ValidationReport:
    """Check circular-orbit elements for the ground-track propagator."""
    report = ValidationReport()
    report.positive("altitude_km", elements.altitude_km)
    report.in_range("inclination_deg", elements.inclination_deg, 0.0, 180.0,
                    high_inclusive=True)
    report.finite("raan_deg", elements.raan_deg)
    report.finite("true_anomaly_deg", elements.true_anomaly_deg)
    return report


def validate_tle_elements(elements: TLEElements) -> ValidationReport:
    """Check TLE mean elements before geodetic conversion."""
    report = ValidationReport()
    report.in_range("eccentricity", elements.eccentricity, 0.0, 1.0)
    report.positive("mean_motion_rev_per_day", elements.mean_motion_rev_per_day)
    report.in_range("epoch_day", elements.epoch_day, 1.0, 367.0)
    report.in_range("inclination_deg", elements.inclination_deg, 0.0, 180.0,
                    high_inclusive=True)
    for name in ("raan_deg", "arg_perigee_deg", "mean_anomaly_deg"):
        report.finite(name, getattr(elements, name))
    return report
