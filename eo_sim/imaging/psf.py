"""
Point spread function model.

Gaussian-equivalent PSF of the optical chain. Three independent blur
sources are combined in quadrature:
    - Diffraction (Airy core FWHM = 1.22 λ f / D)
    - Atmospheric seeing (per-bucket base value scaled by air mass^0.6)
    - Defocus (linear in focus error)

The Strehl ratio comes from an RMS wavefront error built from a defocus
term and a quadratic off-axis aberration term (Maréchal approximation).

All inputs use the interface units of ``PSFInputs``; focal-plane lengths
in results are micrometers.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.config import OpticsModelConfig
from ..core.constants import (
    DEG2RAD, TWO_PI, FWHM_TO_SIGMA, AIRY_DIAMETER_FACTOR, AIRY_FWHM_FACTOR,
)
from ..core.types import (
    PSFInputs, PSFResults, EncircledEnergy, AtmosphericCondition,
)


def airy_disk_diameter_um(wavelength_nm: float, focal_length_mm: float,
                          aperture_mm: float) -> float:
    """Diameter of the Airy first dark ring [µm]."""
    return AIRY_DIAMETER_FACTOR * np.float64(wavelength_nm) * 1e-3 * focal_length_mm / aperture_mm


def diffraction_fwhm_um(wavelength_nm: float, focal_length_mm: float,
                        aperture_mm: float) -> float:
    """Diffraction-limited FWHM [µm]."""
    return AIRY_FWHM_FACTOR * np.float64(wavelength_nm) * 1e-3 * focal_length_mm / aperture_mm


def gaussian_sigma(fwhm: float) -> float:
    """Standard deviation of a Gaussian with the given FWHM."""
    return fwhm * FWHM_TO_SIGMA


def find_radius_for_energy(radii: np.ndarray, energy: np.ndarray,
                           target: float) -> float:
    """Radius at which a tabulated cumulative curve first crosses ``target``.

    Linear interpolation inside the bracketing pair; never extrapolates.

    Args:
        radii: Sampled radii, shape (N,).
        energy: Cumulative energy at each radius, shape (N,).
        target: Energy level, same units as ``energy``.

    Returns:
        Interpolated radius, or the last sampled radius if the curve never
        crosses the target.
    """
    for i in range(len(energy) - 1):
        if energy[i] <= target < energy[i + 1]:
            frac = (target - energy[i]) / (energy[i + 1] - energy[i])
            return float(radii[i] + frac * (radii[i + 1] - radii[i]))
    return float(radii[-1])


class PSFModel:
    """Gaussian-equivalent PSF evaluator.

    Attributes:
        config: Empirical model constants.
    """

    def __init__(self, config: Optional[OpticsModelConfig] = None):
        self.config = config or OpticsModelConfig()

    # ------------------------------------------------------------------
    # Blur contributions
    # ------------------------------------------------------------------

    def atmospheric_fwhm_um(self, condition, off_nadir_deg: float) -> float:
        """Seeing blur at the focal plane [µm].

        Base value for the bucket, scaled by (1/cos θ)^0.6.

        Raises:
            ValueError: Unknown atmospheric condition.
        """
        bucket = AtmosphericCondition.coerce(condition)
        base = self.config.atmospheric_fwhm_um[bucket.value]
        airmass = 1.0 / np.cos(off_nadir_deg * DEG2RAD)
        return float(base * airmass ** self.config.airmass_exponent)

    def defocus_fwhm_um(self, defocus_um: float) -> float:
        return abs(defocus_um) * self.config.defocus_fwhm_factor

    def wavefront_error_m(self, defocus_um: float, off_nadir_deg: float) -> float:
        """RMS wavefront error [m].

        Quarter of the focus error in quadrature with an off-axis term
        quadratic in the viewing angle.
        """
        defocus_term = abs(defocus_um) * 1e-6 / 4.0
        off_axis_term = (off_nadir_deg * DEG2RAD) ** 2 * self.config.off_axis_wavefront_m
        return float(np.sqrt(defocus_term ** 2 + off_axis_term ** 2))

    # ------------------------------------------------------------------
    # Sampled curves
    # ------------------------------------------------------------------

    def psf_grid(self, fwhm_um: float) -> np.ndarray:
        """Peak-normalised 2-D Gaussian PSF over a square grid.

        The grid spans ``psf_grid_extent_fwhm`` FWHM with the peak on
        sample (size/2, size/2).

        Returns:
            Intensity array, shape (size, size).
        """
        size = self.config.psf_grid_size
        step = fwhm_um * self.config.psf_grid_extent_fwhm / size
        sigma = gaussian_sigma(fwhm_um)

        offsets = (np.arange(size) - size / 2) * step
        x, y = np.meshgrid(offsets, offsets)
        return np.exp(-(x ** 2 + y ** 2) / (2.0 * sigma ** 2))

    def psf_profile(self, fwhm_um: float) -> np.ndarray:
        """Radial intensity profile from r = 0 out to the profile extent."""
        points = self.config.psf_profile_points
        max_radius = fwhm_um * self.config.psf_profile_extent_fwhm
        r = np.arange(points + 1) * (max_radius / points)
        sigma = gaussian_sigma(fwhm_um)
        return np.exp(-r ** 2 / (2.0 * sigma ** 2))

    def encircled_energy(self, fwhm_um: float, sigma_um: float) -> EncircledEnergy:
        """Cumulative energy 1 − exp(−r²/2σ²) in percent, with EE radii."""
        points = self.config.ee_points
        max_radius = fwhm_um * self.config.ee_extent_fwhm
        radii = np.arange(points + 1) * (max_radius / points)
        energy = 100.0 * (1.0 - np.exp(-radii ** 2 / (2.0 * sigma_um ** 2)))

        return EncircledEnergy(
            radii_um=radii,
            energy_pct=energy,
            ee50_um=find_radius_for_energy(radii, energy, 50.0),
            ee80_um=find_radius_for_energy(radii, energy, 80.0),
            ee95_um=find_radius_for_energy(radii, energy, 95.0),
        )

    # ------------------------------------------------------------------
    # Full evaluation
    # ------------------------------------------------------------------

    def compute(self, inputs: PSFInputs) -> PSFResults:
        """Evaluate every PSF metric and curve for one input set."""
        diff_fwhm = diffraction_fwhm_um(inputs.wavelength_nm, inputs.focal_length_mm,
                                        inputs.aperture_mm)
        atm_fwhm = self.atmospheric_fwhm_um(inputs.atmospheric_condition,
                                            inputs.off_nadir_deg)
        dfc_fwhm = self.defocus_fwhm_um(inputs.defocus_um)
        fwhm = float(np.sqrt(diff_fwhm ** 2 + atm_fwhm ** 2 + dfc_fwhm ** 2))

        wfe = self.wavefront_error_m(inputs.defocus_um, inputs.off_nadir_deg)
        wavelength_m = np.float64(inputs.wavelength_nm) * 1e-9
        strehl = float(np.exp(-(TWO_PI * wfe / wavelength_m) ** 2))

        sigma = gaussian_sigma(fwhm)

        return PSFResults(
            airy_disk_diameter_um=airy_disk_diameter_um(
                inputs.wavelength_nm, inputs.focal_length_mm, inputs.aperture_mm),
            diffraction_fwhm_um=diff_fwhm,
            atmospheric_fwhm_um=atm_fwhm,
            defocus_fwhm_um=dfc_fwhm,
            fwhm_um=fwhm,
            wavefront_error_m=wfe,
            strehl_ratio=strehl,
            rms_spot_size_um=sigma,
            encircled_energy=self.encircled_energy(fwhm, sigma),
            psf_grid=self.psf_grid(fwhm),
            psf_profile=self.psf_profile(fwhm),
            wavelength_range_nm=(inputs.wavelength_nm - 50.0, inputs.wavelength_nm + 50.0),
        )


def compute_psf(inputs: PSFInputs,
                config: Optional[OpticsModelConfig] = None) -> PSFResults:
    """PSF metrics and sampled curves for one optical configuration."""
    return PSFModel(config).compute(inputs)
