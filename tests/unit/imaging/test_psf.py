"""
Tests for the Gaussian-equivalent PSF model.
"""

from dataclasses import replace

import numpy as np
import pytest

from eo_sim.core.config import OpticsModelConfig
from eo_sim.core.types import AtmosphericCondition
from eo_sim.imaging.psf import (
    PSFModel, compute_psf, diffraction_fwhm_um, airy_disk_diameter_um,
    find_radius_for_energy,
)


class TestBlurBudget:
    """FWHM contributions and their quadrature sum"""

    def test_diffraction_terms(self):
        assert diffraction_fwhm_um(550.0, 600.0, 150.0) == pytest.approx(2.684)
        assert airy_disk_diameter_um(550.0, 600.0, 150.0) == pytest.approx(5.368)

    def test_quadrature_sum(self, psf_inputs):
        results = compute_psf(psf_inputs)
        expected = np.sqrt(results.diffraction_fwhm_um ** 2
                           + results.atmospheric_fwhm_um ** 2
                           + results.defocus_fwhm_um ** 2)
        assert results.fwhm_um == pytest.approx(expected)
        assert results.atmospheric_fwhm_um == pytest.approx(15.0)

    @pytest.mark.parametrize("condition", list(AtmosphericCondition))
    @pytest.mark.parametrize("defocus", [0.0, 3.0, -8.0])
    def test_total_never_below_diffraction(self, psf_inputs, condition, defocus):
        results = compute_psf(replace(psf_inputs, atmospheric_condition=condition,
                                      defocus_um=defocus))
        assert results.fwhm_um >= results.diffraction_fwhm_um

    def test_atmosphere_ordering(self):
        model = PSFModel()
        clear = model.atmospheric_fwhm_um("clear", 0.0)
        hazy = model.atmospheric_fwhm_um("hazy", 0.0)
        cloudy = model.atmospheric_fwhm_um("cloudy", 0.0)
        assert clear < hazy < cloudy

    def test_airmass_scaling(self):
        fwhm = PSFModel().atmospheric_fwhm_um(AtmosphericCondition.CLEAR, 30.0)
        assert fwhm == pytest.approx(15.0 * (1.0 / np.cos(np.deg2rad(30.0))) ** 0.6)

    def test_unknown_atmosphere_raises(self, psf_inputs):
        with pytest.raises(ValueError):
            compute_psf(replace(psf_inputs, atmospheric_condition="volcanic"))

    def test_config_override(self, psf_inputs):
        config = OpticsModelConfig(atmospheric_fwhm_um={"clear": 0.0, "hazy": 0.0, "cloudy": 0.0})
        results = compute_psf(psf_inputs, config)
        assert results.fwhm_um == pytest.approx(results.diffraction_fwhm_um)


class TestStrehl:
    """Wavefront error and Strehl ratio"""

    def test_perfect_optics(self, psf_inputs):
        results = compute_psf(psf_inputs)
        assert results.wavefront_error_m == 0.0
        assert results.strehl_ratio == 1.0

    def test_defocus_degrades(self, psf_inputs):
        results = compute_psf(replace(psf_inputs, defocus_um=0.2))
        expected_wfe = 0.2e-6 / 4.0
        assert results.wavefront_error_m == pytest.approx(expected_wfe)
        assert results.strehl_ratio == pytest.approx(
            np.exp(-(2.0 * np.pi * expected_wfe / 550e-9) ** 2))
        assert results.strehl_ratio < 1.0

    def test_off_axis_degrades(self, psf_inputs):
        results = compute_psf(replace(psf_inputs, off_nadir_deg=40.0))
        assert 0.0 < results.strehl_ratio < 1.0


class TestSampledCurves:
    """PSF grid, radial profile and encircled energy"""

    def test_grid_shape_and_peak(self, psf_inputs):
        grid = compute_psf(psf_inputs).psf_grid
        assert grid.shape == (64, 64)
        assert grid[32, 32] == 1.0
        assert grid.max() == 1.0
        assert np.all(grid > 0.0)

    def test_profile(self, psf_inputs):
        profile = compute_psf(psf_inputs).psf_profile
        assert profile.shape == (101,)
        assert profile[0] == 1.0
        assert np.all(np.diff(profile) < 0.0)

    def test_rms_spot_from_fwhm(self, psf_inputs):
        results = compute_psf(psf_inputs)
        assert results.rms_spot_size_um == pytest.approx(
            results.fwhm_um / (2.0 * np.sqrt(2.0 * np.log(2.0))))

    def test_encircled_energy_radii(self, psf_inputs):
        results = compute_psf(psf_inputs)
        ee = results.encircled_energy
        assert ee.radii_um.shape == (51,)
        assert ee.energy_pct[0] == 0.0
        assert ee.ee50_um < ee.ee80_um < ee.ee95_um <= ee.radii_um[-1]
        # Gaussian EE50 radius is the half width at half maximum
        assert ee.ee50_um == pytest.approx(results.fwhm_um / 2.0, rel=0.01)

    def test_radius_not_extrapolated(self):
        radii = np.linspace(0.0, 10.0, 11)
        energy = np.linspace(0.0, 90.0, 11)
        assert find_radius_for_energy(radii, energy, 95.0) == 10.0
        assert find_radius_for_energy(radii, energy, 45.0) == pytest.approx(5.0)

    def test_wavelength_band(self, psf_inputs):
        assert compute_psf(psf_inputs).wavelength_range_nm == (500.0, 600.0)


class TestDegenerateInputs:
    """Zero optics parameters give inf/NaN instead of raising"""

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_zero_aperture(self, psf_inputs):
        results = compute_psf(replace(psf_inputs, aperture_mm=0.0))
        assert np.isinf(results.diffraction_fwhm_um)
        assert np.isinf(results.airy_disk_diameter_um)
        assert np.isinf(results.fwhm_um)
        assert results.strehl_ratio == 1.0
        assert results.psf_grid.shape == (64, 64)

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_zero_wavelength(self, psf_inputs):
        results = compute_psf(replace(psf_inputs, wavelength_nm=0.0))
        assert results.diffraction_fwhm_um == 0.0
        assert np.isnan(results.strehl_ratio)

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_scalar_helpers(self):
        assert np.isinf(diffraction_fwhm_um(550.0, 600.0, 0.0))
        assert np.isnan(airy_disk_diameter_um(550.0, 0.0, 0.0))
