"""
Modulation transfer function model.

System MTF is the product of three independent transfer functions:
    optics    diffraction (circular aperture) × defocus × atmosphere
    detector  pixel-aperture sinc scaled by quantum efficiency
    motion    sinc of the image smear accumulated during integration

Frequencies are in cycles/mm at the focal plane.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..core.config import OpticsModelConfig
from ..core.constants import DEG2RAD, TWO_PI, ARCSEC2RAD
from ..core.types import MTFInputs, MTFResults, MTFCurve, AtmosphericCondition

logger = logging.getLogger(__name__)

# Below this |argument| a sinc is taken as exactly 1
SINC_SMALL_ARG = 1e-3


def _abs_sinc(arg: np.ndarray) -> np.ndarray:
    """|sin(x)/x| with the small-argument limit pinned to 1."""
    arg = np.asarray(arg, dtype=float)
    out = np.ones_like(arg)
    big = np.abs(arg) >= SINC_SMALL_ARG
    out[big] = np.abs(np.sin(arg[big]) / arg[big])
    return out


# ---------------------------------------------------------------------------
# Component transfer functions
# ---------------------------------------------------------------------------

def diffraction_cutoff(aperture_mm: float, wavelength_nm: float,
                       focal_length_mm: float) -> float:
    """Incoherent cutoff frequency D / (λ f) [cycles/mm]."""
    aperture_m = np.float64(aperture_mm) * 1e-3
    wavelength_m = wavelength_nm * 1e-9
    focal_length_m = focal_length_mm * 1e-3
    return aperture_m / (wavelength_m * focal_length_m) / 1000.0


def diffraction_mtf(frequencies: np.ndarray, cutoff: float) -> np.ndarray:
    """Diffraction-limited MTF of a circular aperture.

    (2/π)(acos ν − ν√(1−ν²)) with ν = f / f_c, zero beyond the cutoff
    and exactly 1 at zero frequency.
    """
    frequencies = np.asarray(frequencies, dtype=float)
    nu = frequencies / cutoff
    out = np.zeros_like(nu)
    inside = nu <= 1.0
    v = nu[inside]
    out[inside] = (2.0 / np.pi) * (np.arccos(v) - v * np.sqrt(1.0 - v * v))
    out[frequencies == 0.0] = 1.0
    return out


def defocus_mtf(frequencies: np.ndarray, defocus_um: float, wavelength_nm: float,
                focal_length_mm: float, aperture_mm: float) -> np.ndarray:
    """Sinc-like defocus attenuation parameterised by f-number.

    Argument π·δ·f / (λ·N²·1000) with δ and λ in meters.
    """
    frequencies = np.asarray(frequencies, dtype=float)
    defocus_m = abs(defocus_um) * 1e-6
    if defocus_m == 0.0:
        return np.ones_like(frequencies)

    n = np.float64(focal_length_mm) / aperture_mm
    wavelength_m = wavelength_nm * 1e-9
    arg = np.pi * defocus_m * frequencies / (wavelength_m * n * n * 1000.0)
    return _abs_sinc(arg)


def atmospheric_mtf(frequencies: np.ndarray, seeing_arcsec: float,
                    off_nadir_deg: float, airmass_exponent: float = 0.6) -> np.ndarray:
    """Kolmogorov-like rolloff exp(−(f/f_break)^(5/3)).

    Effective seeing grows with air mass^0.6. The break frequency is
    derived from the Fried parameter r0 = 0.98 / seeing [rad].
    """
    airmass = 1.0 / np.cos(off_nadir_deg * DEG2RAD)
    effective_seeing = seeing_arcsec * airmass ** airmass_exponent
    r0 = 0.98 / (effective_seeing * ARCSEC2RAD)
    f_break = r0 / TWO_PI * 1000.0
    return np.exp(-(np.asarray(frequencies, dtype=float) / f_break) ** (5.0 / 3.0))


def detector_mtf(frequencies: np.ndarray, pixel_size_um: float,
                 detector_qe: float = 1.0) -> np.ndarray:
    """Pixel-aperture |sinc| scaled by quantum efficiency.

    Equal to ``detector_qe`` at zero frequency.
    """
    pixel_freq = 1000.0 / np.float64(pixel_size_um)
    return np.abs(np.sinc(np.asarray(frequencies, dtype=float) / pixel_freq)) * detector_qe


def ground_velocity_mps(platform_velocity_mps: float, altitude_m: float,
                        focal_length_mm: float) -> float:
    return np.float64(platform_velocity_mps) * altitude_m / (altitude_m + focal_length_mm * 1e-3)


def motion_blur_pixels(inputs: MTFInputs) -> float:
    """Image smear during one integration period [pixels].

    Ground-projected velocity × integration time ÷ GSD, where
    GSD = h · p / f.
    """
    gsd = (np.float64(inputs.altitude_m) * inputs.pixel_size_um * 1e-6
           / (inputs.focal_length_mm * 1e-3))
    v_ground = ground_velocity_mps(inputs.platform_velocity_mps, inputs.altitude_m,
                                   inputs.focal_length_mm)
    return v_ground * inputs.integration_time_s / gsd


def motion_mtf(frequencies: np.ndarray, blur_px: float,
               pixel_size_um: float) -> np.ndarray:
    """Linear-smear |sinc| with argument π·f·blur / pixel frequency."""
    frequencies = np.asarray(frequencies, dtype=float)
    if blur_px == 0.0:
        return np.ones_like(frequencies)
    pixel_freq = 1000.0 / np.float64(pixel_size_um)
    return _abs_sinc(np.pi * frequencies * blur_px / pixel_freq)


# ---------------------------------------------------------------------------
# Figures of merit
# ---------------------------------------------------------------------------

def find_mtf50(frequencies: np.ndarray, mtf: np.ndarray) -> float:
    """Frequency where the curve first drops through 0.5.

    Linear interpolation between the bracketing samples. Returns 0.0 when
    no bracketing pair exists.
    """
    for i in range(len(mtf) - 1):
        if mtf[i] >= 0.5 and mtf[i + 1] < 0.5:
            frac = (0.5 - mtf[i]) / (mtf[i + 1] - mtf[i])
            return float(frequencies[i] + frac * (frequencies[i + 1] - frequencies[i]))
    return 0.0


def nyquist_frequency(pixel_size_um: float) -> float:
    """Detector Nyquist frequency 1000 / (2 p) [cycles/mm]."""
    return 1000.0 / (2.0 * np.float64(pixel_size_um))


def sampling_efficiency(frequencies: np.ndarray, mtf: np.ndarray,
                        nyquist: float) -> float:
    """MTF at the first sampled frequency at or above Nyquist, in [0, 1].

    Uses the bracketing sample, not an interpolated value. Returns 0.0 if
    the sampled range never reaches Nyquist.
    """
    above = np.nonzero(np.asarray(frequencies) >= nyquist)[0]
    if above.size == 0:
        return 0.0
    return float(np.clip(mtf[above[0]], 0.0, 1.0))


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

class MTFModel:
    """System MTF evaluator.

    Attributes:
        config: Empirical model constants.
    """

    def __init__(self, config: Optional[OpticsModelConfig] = None):
        self.config = config or OpticsModelConfig()

    def frequencies(self, inputs: MTFInputs) -> np.ndarray:
        f_min, f_max = inputs.spatial_frequency_range
        return np.linspace(f_min, f_max, self.config.mtf_samples)

    def optics_mtf(self, frequencies: np.ndarray, inputs: MTFInputs) -> np.ndarray:
        """Diffraction × defocus × atmosphere.

        Raises:
            ValueError: Unknown atmospheric condition.
        """
        bucket = AtmosphericCondition.coerce(inputs.atmospheric_condition)
        cutoff = diffraction_cutoff(inputs.aperture_mm, inputs.wavelength_nm,
                                    inputs.focal_length_mm)
        return (
            diffraction_mtf(frequencies, cutoff)
            * defocus_mtf(frequencies, inputs.defocus_um, inputs.wavelength_nm,
                          inputs.focal_length_mm, inputs.aperture_mm)
            * atmospheric_mtf(frequencies, self.config.seeing_arcsec[bucket.value],
                              inputs.off_nadir_deg, self.config.airmass_exponent)
        )

    def compute(self, inputs: MTFInputs) -> MTFResults:
        """Evaluate every MTF component and derived metric."""
        freqs = self.frequencies(inputs)
        optics = self.optics_mtf(freqs, inputs)
        detector = detector_mtf(freqs, inputs.pixel_size_um, inputs.detector_qe)
        blur_px = motion_blur_pixels(inputs)
        motion = motion_mtf(freqs, blur_px, inputs.pixel_size_um)
        overall = optics * detector * motion

        nyquist = nyquist_frequency(inputs.pixel_size_um)
        mtf50 = find_mtf50(freqs, overall)
        logger.debug("MTF: %d samples, MTF50=%.2f cy/mm, blur=%.3f px",
                     freqs.size, mtf50, blur_px)

        return MTFResults(
            frequencies=freqs,
            optics_mtf=optics,
            detector_mtf=detector,
            motion_mtf=motion,
            overall_mtf=overall,
            mtf50=mtf50,
            nyquist_frequency=nyquist,
            sampling_efficiency=sampling_efficiency(freqs, overall, nyquist),
            motion_blur_px=float(blur_px),
            curve=MTFCurve(
                frequencies=freqs,
                values=overall,
                sagittal=overall * 0.95,
                tangential=overall * 0.98,
            ),
        )


def compute_mtf(inputs: MTFInputs,
                config: Optional[OpticsModelConfig] = None) -> MTFResults:
    """Per-frequency MTF components and figures of merit."""
    return MTFModel(config).compute(inputs)
