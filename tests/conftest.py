"""
Shared fixtures for the eo_sim test suite.
"""

import pytest

from eo_sim.core.types import (
    SensorInputs, PSFInputs, MTFInputs, OrbitalElements, TLEElements,
)


@pytest.fixture
def sensor_inputs():
    """500 km imager with a 1 m focal length and 5 µm pixels (~2.5 m GSD)."""
    return SensorInputs(
        pixel_size_um=5.0,
        pixel_count_h=4096,
        pixel_count_v=4096,
        gsd_requirement_m=0.5,
        altitude_min_m=500000.0,
        altitude_max_m=500000.0,
        focal_length_mm=1000.0,
        aperture_mm=300.0,
        attitude_accuracy_deg=0.001,
        nominal_off_nadir_deg=0.0,
        max_off_nadir_deg=30.0,
        gps_accuracy_m=5.0,
    )


@pytest.fixture
def psf_inputs():
    return PSFInputs(
        pixel_size_um=5.5,
        aperture_mm=150.0,
        focal_length_mm=600.0,
        wavelength_nm=550.0,
    )


@pytest.fixture
def mtf_inputs():
    """Reference optical chain: 150 mm aperture, f = 600 mm, 550 nm, 5.5 µm."""
    return MTFInputs(
        pixel_size_um=5.5,
        aperture_mm=150.0,
        focal_length_mm=600.0,
        wavelength_nm=550.0,
    )


@pytest.fixture
def leo_orbit():
    return OrbitalElements(altitude_km=500.0, inclination_deg=97.4,
                           raan_deg=30.0, true_anomaly_deg=0.0)


@pytest.fixture
def iss_tle_text():
    return (
        "ISS (ZARYA)\n"
        "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927\n"
        "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537\n"
    )


@pytest.fixture
def circular_tle_elements():
    """Equatorial circular orbit at ~700 km, 14.5 rev/day."""
    return TLEElements(
        epoch_year=2024,
        epoch_day=100.25,
        inclination_deg=0.0,
        raan_deg=0.0,
        eccentricity=0.0,
        arg_perigee_deg=0.0,
        mean_anomaly_deg=45.0,
        mean_motion_rev_per_day=14.5,
    )
