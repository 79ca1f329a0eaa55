"""
Engine configuration.

Central configuration objects holding the empirical model constants of each
engine. Defaults reproduce the reference model; override individual fields
for sensitivity studies.
"""

from dataclasses import dataclass, field

from .constants import KM_PER_DEG


@dataclass
class OpticsModelConfig:
    """Empirical constants of the PSF/MTF models.

    Attributes:
        atmospheric_fwhm_um: Base focal-plane seeing FWHM per bucket [µm].
        seeing_arcsec: Base angular seeing per bucket [arcsec].
        airmass_exponent: Exponent applied to the 1/cos(off-nadir) air mass.
        defocus_fwhm_factor: FWHM contribution per µm of defocus.
        off_axis_wavefront_m: Wavefront error per rad² of off-nadir angle [m].
    """
    atmospheric_fwhm_um: dict[str, float] = field(default_factory=lambda: {
        "clear": 15.0, "hazy": 25.0, "cloudy": 40.0,
    })
    seeing_arcsec: dict[str, float] = field(default_factory=lambda: {
        "clear": 1.5, "hazy": 2.5, "cloudy": 4.0,
    })
    airmass_exponent: float = 0.6
    defocus_fwhm_factor: float = 0.5
    off_axis_wavefront_m: float = 100e-9

    # Sampling
    psf_grid_size: int = 64
    psf_grid_extent_fwhm: float = 4.0       # Grid spans 4 FWHM
    psf_profile_points: int = 100
    psf_profile_extent_fwhm: float = 3.0
    ee_points: int = 50
    ee_extent_fwhm: float = 3.0
    mtf_samples: int = 100


@dataclass
class PropagationConfig:
    """Circular ground-track sampling.

    Attributes:
        min_samples: Lower bound on ground-track samples.
        max_samples: Upper bound on ground-track samples.
        minutes_per_sample: Nominal sampling interval before clamping [min].
        earth_radius_km: Radius added to altitude for the orbit radius [km].
    """
    min_samples: int = 100
    max_samples: int = 500
    minutes_per_sample: float = 2.0
    earth_radius_km: float = 6371.0


@dataclass
class CoverageConfig:
    """Revisit grid accumulation.

    Attributes:
        sensor_half_angle_deg: Fixed sensor half-angle defining the swath [deg].
        km_per_deg: Small-angle conversion from ground km to degrees.
        min_latitude_cosine: Floor on cos(lat) when widening longitude spans.
        wrap_dateline: If True, longitude spans crossing ±180° wrap to the
            other side of the grid; if False they are clamped at the edge.
    """
    sensor_half_angle_deg: float = 10.0
    km_per_deg: float = KM_PER_DEG
    min_latitude_cosine: float = 0.1
    wrap_dateline: bool = False


@dataclass
class DeconvolutionConfig:
    """Restoration algorithm constants.

    Attributes:
        ratio_floor: Convolved values at or below this give a zero ratio.
        tv_regularization: Default total-variation weight.
        wiener_noise_variance: Default Wiener noise variance.
        blind_kernel_update_every: Blind mode re-estimates the kernel on
            iterations that are non-zero multiples of this.
        blind_inner_iterations: Richardson-Lucy iterations per blind step.
    """
    ratio_floor: float = 1e-10
    tv_regularization: float = 0.01
    wiener_noise_variance: float = 0.001
    blind_kernel_update_every: int = 3
    blind_inner_iterations: int = 2


@dataclass
class EngineConfig:
    """Top-level engine configuration."""
    optics: OpticsModelConfig = field(default_factory=OpticsModelConfig)
    propagation: PropagationConfig = field(default_factory=PropagationConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    deconvolution: DeconvolutionConfig = field(default_factory=DeconvolutionConfig)

    def describe(self) -> str:
        """Human-readable one-line summary of the active model settings."""
        parts = [
            f"MTF samples: {self.optics.mtf_samples}",
            f"track samples: {self.propagation.min_samples}-{self.propagation.max_samples}",
            f"swath half-angle: {self.coverage.sensor_half_angle_deg:g} deg",
        ]
        if self.coverage.wrap_dateline:
            parts.append("date-line wrap")
        return " | ".join(parts)
