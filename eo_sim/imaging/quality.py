"""
Optical quality grading and MTF tuning suggestions.

Turns PSF/MTF numbers into the qualitative summary an analyst reads first:
a grade, the dominant blur source, and concrete parameter changes.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.config import OpticsModelConfig
from ..core.types import (
    PSFInputs, PSFResults, MTFInputs, OpticalQualityMetrics, AtmosphericCondition,
)
from .psf import diffraction_fwhm_um
from .mtf import compute_mtf


def grade_strehl(strehl: float) -> str:
    """Quality bucket from the Strehl ratio."""
    if strehl > 0.8:
        return "excellent"
    if strehl > 0.6:
        return "good"
    if strehl > 0.3:
        return "acceptable"
    return "poor"


def analyze_optical_quality(results: PSFResults,
                            inputs: PSFInputs) -> OpticalQualityMetrics:
    """Grade a PSF analysis and name its limiting factor.

    The limiting factor is diffraction when the total FWHM is within 20%
    of the diffraction limit; otherwise defocus (> 5 µm), then a non-clear
    atmosphere, then residual aberrations.

    Args:
        results: Output of ``compute_psf`` for ``inputs``.
        inputs: The PSF inputs that produced ``results``.

    Returns:
        OpticalQualityMetrics.
    """
    strehl = results.strehl_ratio
    fwhm_ratio = results.fwhm_um / diffraction_fwhm_um(
        inputs.wavelength_nm, inputs.focal_length_mm, inputs.aperture_mm)
    condition = AtmosphericCondition.coerce(inputs.atmospheric_condition, strict=False)

    if fwhm_ratio < 1.2:
        limiting = "diffraction"
    elif inputs.defocus_um > 5:
        limiting = "defocus"
    elif condition is not AtmosphericCondition.CLEAR:
        limiting = "atmosphere"
    else:
        limiting = "aberrations"

    recommendations = []
    if strehl < 0.8:
        recommendations.append("Consider reducing optical aberrations")
    if inputs.defocus_um > 2:
        recommendations.append("Improve focus accuracy")
    if fwhm_ratio > 2:
        recommendations.append("Check for optical misalignment")

    return OpticalQualityMetrics(
        image_quality=grade_strehl(strehl),
        limiting_factor=limiting,
        recommendations=recommendations,
        performance_score=int(round(strehl * 100)) if np.isfinite(strehl) else 0,
    )


def optimize_mtf_parameters(inputs: MTFInputs, target_mtf50: float,
                            config: Optional[OpticsModelConfig] = None) -> dict:
    """Suggest input changes that would raise MTF50 toward a target.

    Nothing is suggested when the current MTF50 already meets the target.
    Suggestions are independent single-step moves, not an optimum.

    Args:
        inputs: Current MTF inputs.
        target_mtf50: Desired MTF50 [cycles/mm].
        config: Optics model constants.

    Returns:
        Dict mapping ``MTFInputs`` field names to suggested values.
    """
    suggestions = {}
    current = compute_mtf(inputs, config)
    if current.mtf50 >= target_mtf50:
        return suggestions

    if inputs.pixel_size_um > 3:
        suggestions["pixel_size_um"] = max(3.0, inputs.pixel_size_um * 0.8)
    if inputs.integration_time_s > 0.0005:
        suggestions["integration_time_s"] = max(0.0005, inputs.integration_time_s * 0.8)
    suggestions["aperture_mm"] = inputs.aperture_mm * 1.2
    if inputs.defocus_um > 1:
        suggestions["defocus_um"] = max(0.0, inputs.defocus_um * 0.5)
    return suggestions
