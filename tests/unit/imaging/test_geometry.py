"""
Tests for sensor ground geometry and pointing budget.
"""

from dataclasses import replace

import numpy as np
import pytest

from eo_sim.imaging.geometry import (
    SensorGeometryCalculator, compute_sensor_geometry, compute_sensor_parameters,
    center_pixel_size_m, footprint_km, full_fov_rad, ifov_rad,
    required_focal_length_mm, pointing_error_budget,
)


class TestGroundSampling:
    """Ground pixel size at nadir and off nadir"""

    def test_reference_scenario_nadir_pixel(self, sensor_inputs):
        """500 km, f = 1000 mm, 5 µm pixels -> ~2.5 m"""
        results = compute_sensor_geometry(sensor_inputs)
        assert results.nominal.center_pixel_size_m == pytest.approx(2.5, abs=0.01)

    def test_worst_case_pixel_larger(self, sensor_inputs):
        results = compute_sensor_geometry(sensor_inputs)
        assert results.worst_case.center_pixel_size_m > results.nominal.center_pixel_size_m

    @pytest.mark.parametrize("max_off_nadir", [0.0, 5.0, 20.0, 45.0])
    def test_worst_case_never_better(self, sensor_inputs, max_off_nadir):
        inputs = replace(sensor_inputs, max_off_nadir_deg=max_off_nadir,
                         altitude_min_m=450000.0)
        results = compute_sensor_geometry(inputs)
        assert results.worst_case.center_pixel_size_m >= results.nominal.center_pixel_size_m

    def test_edge_pixel_larger_than_center(self, sensor_inputs):
        results = compute_sensor_geometry(sensor_inputs)
        assert results.nominal.edge_pixel_size_m > results.nominal.center_pixel_size_m
        assert results.worst_case.edge_pixel_size_m > results.worst_case.center_pixel_size_m

    def test_pixel_size_grows_with_altitude(self):
        ifov = 5e-6
        assert center_pixel_size_m(ifov, 700.0) > center_pixel_size_m(ifov, 500.0)

    def test_records_carry_pointing(self, sensor_inputs):
        results = compute_sensor_geometry(sensor_inputs)
        assert results.nominal.off_nadir_deg == 0.0
        assert results.worst_case.off_nadir_deg == 30.0


class TestFieldOfView:
    """FOV and swath"""

    def test_exact_fov(self):
        fov = full_fov_rad(5.0, 4096, 1000.0)
        assert fov == pytest.approx(2.0 * np.arctan(0.01024))

    def test_ifov(self):
        assert ifov_rad(5.0, 1000.0) == pytest.approx(5e-6)

    def test_nadir_swath(self, sensor_inputs):
        results = compute_sensor_geometry(sensor_inputs)
        assert results.nominal.horizontal_footprint_km == pytest.approx(10.24, rel=0.01)

    def test_square_detector_square_footprint(self, sensor_inputs):
        record = compute_sensor_geometry(sensor_inputs).nominal
        assert record.horizontal_footprint_km == pytest.approx(record.vertical_footprint_km)

    def test_off_nadir_swath_wider(self):
        assert footprint_km(500.0, 1.0, 30.0) > footprint_km(500.0, 1.0, 0.0)

    def test_swath_past_limb_is_finite(self):
        assert np.isfinite(footprint_km(500.0, 40.0, 60.0))


class TestPointingBudget:
    """Attitude and GPS error propagation"""

    def test_nadir_axes_equal(self, sensor_inputs):
        record = compute_sensor_geometry(sensor_inputs).nominal
        expected = 500000.0 * np.deg2rad(0.001)
        assert record.roll_edge_change_m == pytest.approx(expected)
        assert record.pitch_edge_change_m == pytest.approx(expected)
        assert record.yaw_edge_change_m == pytest.approx(expected)

    def test_rss_and_gps(self, sensor_inputs):
        record = compute_sensor_geometry(sensor_inputs).nominal
        rss = np.sqrt(record.roll_edge_change_m ** 2 + record.pitch_edge_change_m ** 2
                      + record.yaw_edge_change_m ** 2)
        assert record.rss_error_m == pytest.approx(rss)
        assert record.geolocation_error_m == pytest.approx(rss + 5.0)

    def test_roll_amplified_off_nadir(self):
        budget = pointing_error_budget(500000.0, 30.0, 0.001, 0.0)
        sec = 1.0 / np.cos(np.deg2rad(30.0))
        assert budget["roll_edge_change_m"] == pytest.approx(budget["pitch_edge_change_m"] * sec)

    def test_outputs_non_negative(self, sensor_inputs):
        for record in (compute_sensor_geometry(sensor_inputs).nominal,
                       compute_sensor_geometry(sensor_inputs).worst_case):
            assert all(value >= 0.0 for value in record.as_dict().values())


class TestSensorParameters:
    """First-order sensor summary"""

    def test_required_focal_length(self):
        assert required_focal_length_mm(400.0, 600.0, 5.0, 0.5) == pytest.approx(5000.0)

    def test_summary(self, sensor_inputs):
        params = compute_sensor_parameters(sensor_inputs)
        assert params.required_focal_length_mm == pytest.approx(5000.0)
        assert params.f_number == pytest.approx(1000.0 / 300.0)
        assert params.ifov_rad == pytest.approx(5e-6)
        assert params.hfov_deg == pytest.approx(4096 * 5e-6 * 180.0 / np.pi)
        assert params.center_pixel_size_m == pytest.approx(2.5, abs=0.01)

    def test_calculator_properties(self, sensor_inputs):
        calc = SensorGeometryCalculator(sensor_inputs)
        assert calc.altitude_max_km == pytest.approx(500.0)
        assert calc.hfov_deg == pytest.approx(calc.vfov_deg)


class TestDegenerateInputs:
    """Zero optics parameters give inf/NaN instead of raising"""

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_zero_focal_length(self, sensor_inputs):
        inputs = replace(sensor_inputs, focal_length_mm=0.0)
        results = compute_sensor_geometry(inputs)
        params = compute_sensor_parameters(inputs)
        assert np.isnan(results.nominal.center_pixel_size_m)
        assert np.isnan(results.worst_case.edge_pixel_size_m)
        assert np.isinf(params.ifov_rad)
        assert params.f_number == 0.0

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_zero_aperture_and_gsd(self, sensor_inputs):
        params = compute_sensor_parameters(
            replace(sensor_inputs, aperture_mm=0.0, gsd_requirement_m=0.0))
        assert np.isinf(params.f_number)
        assert np.isinf(params.required_focal_length_mm)

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_scalar_helpers(self):
        assert np.isinf(ifov_rad(5.0, 0.0))
        assert np.isnan(ifov_rad(0.0, 0.0))
        assert full_fov_rad(5.0, 4096, 0.0) == pytest.approx(np.pi)
        assert np.isinf(required_focal_length_mm(500.0, 500.0, 5.0, 0.0))
