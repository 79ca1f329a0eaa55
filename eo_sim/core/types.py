"""
Foundational data types for the electro-optical modeling engine.

Every engine consumes one of the input records below and returns one of
the result records. Inputs are plain mutable dataclasses filled in by the
caller; results are frozen and recomputed wholesale on any input change.

Convention:
    - Sensor altitudes: meters (SensorInputs, MTFInputs)
    - Orbit altitudes and positions: km
    - Pixel pitch, FWHM, defocus: micrometers
    - Focal length, aperture: millimeters
    - Wavelength: nanometers
    - Spatial frequency: cycles/mm
    - Angles: degrees at the interface, radians internally
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Callable, Optional


# Optional observability hook: trace(stage_name, values)
TraceHook = Callable[[str, dict], None]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class AtmosphericCondition(str, Enum):
    """Atmospheric bucket controlling seeing-induced blur."""
    CLEAR = "clear"
    HAZY = "hazy"
    CLOUDY = "cloudy"

    @classmethod
    def coerce(cls, value, strict: bool = True) -> AtmosphericCondition:
        """Convert a string or member to a member.

        Args:
            value: Member or its string value (case-insensitive).
            strict: If False, unknown values fall back to CLEAR.

        Raises:
            ValueError: Unknown value with ``strict=True``.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            if strict:
                raise ValueError(
                    f"Unknown atmospheric condition {value!r}; "
                    f"expected one of {[m.value for m in cls]}"
                ) from None
            return cls.CLEAR


class KernelType(str, Enum):
    """Synthetic blur kernel shape."""
    MOTION = "motion"
    GAUSSIAN = "gaussian"
    DEFOCUS = "defocus"


class DeconvolutionMethod(str, Enum):
    """Image restoration algorithm."""
    RICHARDSON_LUCY = "richardson_lucy"
    RICHARDSON_LUCY_TV = "richardson_lucy_tv"
    WIENER = "wiener"
    BLIND = "blind"


# ---------------------------------------------------------------------------
# Sensor geometry
# ---------------------------------------------------------------------------

@dataclass
class SensorInputs:
    """Sensor, optics and orbit parameters for the geometry calculator.

    Attributes:
        pixel_size_um: Detector pixel pitch [µm].
        pixel_count_h: Horizontal pixel count.
        pixel_count_v: Vertical pixel count.
        gsd_requirement_m: Target ground sample distance [m].
        altitude_min_m: Minimum orbit altitude [m].
        altitude_max_m: Maximum orbit altitude [m].
        focal_length_mm: Effective focal length [mm].
        aperture_mm: Aperture diameter [mm].
        attitude_accuracy_deg: Attitude determination accuracy [deg, 3σ].
        nominal_off_nadir_deg: Nominal off-nadir pointing angle [deg].
        max_off_nadir_deg: Maximum off-nadir pointing angle [deg].
        gps_accuracy_m: GPS position accuracy [m].
    """
    pixel_size_um: float
    pixel_count_h: int
    pixel_count_v: int
    gsd_requirement_m: float
    altitude_min_m: float
    altitude_max_m: float
    focal_length_mm: float
    aperture_mm: float
    attitude_accuracy_deg: float
    nominal_off_nadir_deg: float
    max_off_nadir_deg: float
    gps_accuracy_m: float


@dataclass(frozen=True)
class GeometryRecord:
    """Ground-sampling and pointing-error metrics at one pointing case.

    Attributes:
        off_nadir_deg: Off-nadir angle the record was evaluated at [deg].
        center_pixel_size_m: Ground size of the boresight pixel [m].
        edge_pixel_size_m: Ground size of the pixel at the FOV edge [m].
        earth_center_angle_deg: Half-swath angle subtended at Earth centre [deg].
        horizontal_footprint_km: Cross-track swath [km].
        vertical_footprint_km: Along-track swath [km].
        roll_edge_change_m: Ground displacement from roll error [m].
        pitch_edge_change_m: Ground displacement from pitch error [m].
        yaw_edge_change_m: Ground displacement from yaw error [m].
        rss_error_m: Root-sum-square of the three attitude terms [m].
        geolocation_error_m: RSS attitude error plus GPS error [m].
    """
    off_nadir_deg: float
    center_pixel_size_m: float
    edge_pixel_size_m: float
    earth_center_angle_deg: float
    horizontal_footprint_km: float
    vertical_footprint_km: float
    roll_edge_change_m: float
    pitch_edge_change_m: float
    yaw_edge_change_m: float
    rss_error_m: float
    geolocation_error_m: float

    def as_dict(self) -> dict[str, float]:
        """Metric name -> value mapping (units are in the names)."""
        return asdict(self)


@dataclass(frozen=True)
class CalculationResults:
    """Nominal (nadir) and worst-case (max off-nadir) geometry records."""
    nominal: GeometryRecord
    worst_case: GeometryRecord


@dataclass(frozen=True)
class SensorParameters:
    """First-order sensor summary at the nominal off-nadir angle.

    Attributes:
        focal_length_mm: Focal length in use [mm].
        required_focal_length_mm: Focal length meeting the GSD target at
            mean altitude [mm].
        f_number: Focal ratio.
        ifov_rad: Instantaneous field of view per pixel [rad].
        hfov_deg: Horizontal field of view [deg].
        vfov_deg: Vertical field of view [deg].
        center_pixel_size_m: Boresight ground pixel size [m].
        earth_center_angle_deg: Half-swath Earth-centre angle [deg].
        horizontal_footprint_km: Cross-track swath [km].
        vertical_footprint_km: Along-track swath [km].
    """
    focal_length_mm: float
    required_focal_length_mm: float
    f_number: float
    ifov_rad: float
    hfov_deg: float
    vfov_deg: float
    center_pixel_size_m: float
    earth_center_angle_deg: float
    horizontal_footprint_km: float
    vertical_footprint_km: float


# ---------------------------------------------------------------------------
# PSF / MTF
# ---------------------------------------------------------------------------

@dataclass
class PSFInputs:
    """Optical chain parameters for PSF analysis.

    Attributes:
        pixel_size_um: Detector pixel pitch [µm].
        aperture_mm: Aperture diameter [mm].
        focal_length_mm: Focal length [mm].
        wavelength_nm: Centre wavelength [nm].
        atmospheric_condition: Seeing bucket.
        off_nadir_deg: Off-nadir viewing angle [deg].
        defocus_um: Focus error [µm].
    """
    pixel_size_um: float
    aperture_mm: float
    focal_length_mm: float
    wavelength_nm: float
    atmospheric_condition: AtmosphericCondition = AtmosphericCondition.CLEAR
    off_nadir_deg: float = 0.0
    defocus_um: float = 0.0


@dataclass
class MTFInputs(PSFInputs):
    """PSF inputs plus detector, platform and frequency sampling.

    Attributes:
        spatial_frequency_range: (min, max) sampled frequency [cycles/mm].
        detector_qe: Detector quantum efficiency [0-1].
        electronic_noise_e: Read noise [electrons RMS].
        platform_velocity_mps: Platform ground velocity [m/s].
        integration_time_s: Detector integration time [s].
        altitude_m: Orbit altitude [m].
    """
    spatial_frequency_range: tuple[float, float] = (0.0, 200.0)
    detector_qe: float = 1.0
    electronic_noise_e: float = 50.0
    platform_velocity_mps: float = 7500.0
    integration_time_s: float = 0.001
    altitude_m: float = 400000.0


@dataclass(frozen=True)
class EncircledEnergy:
    """Cumulative energy curve of the Gaussian PSF model.

    Attributes:
        radii_um: Sampled radii [µm], shape (N,).
        energy_pct: Cumulative energy [%], shape (N,).
        ee50_um: Radius enclosing 50% of the energy [µm].
        ee80_um: Radius enclosing 80% of the energy [µm].
        ee95_um: Radius enclosing 95% of the energy [µm].
    """
    radii_um: np.ndarray
    energy_pct: np.ndarray
    ee50_um: float
    ee80_um: float
    ee95_um: float


@dataclass(frozen=True)
class PSFResults:
    """Point spread function metrics and sampled curves.

    Attributes:
        airy_disk_diameter_um: Airy first-zero diameter [µm].
        diffraction_fwhm_um: Diffraction-limited FWHM [µm].
        atmospheric_fwhm_um: Seeing FWHM contribution [µm].
        defocus_fwhm_um: Defocus FWHM contribution [µm].
        fwhm_um: Total FWHM, quadrature sum [µm].
        wavefront_error_m: RMS wavefront error [m].
        strehl_ratio: Strehl ratio [0-1].
        rms_spot_size_um: Gaussian σ equivalent of the total FWHM [µm].
        encircled_energy: Encircled-energy curve and EE radii.
        psf_grid: Normalised-peak 2-D PSF, shape (G, G).
        psf_profile: Radial profile from centre, shape (P+1,).
        wavelength_range_nm: (λ-50, λ+50) analysis band [nm].
    """
    airy_disk_diameter_um: float
    diffraction_fwhm_um: float
    atmospheric_fwhm_um: float
    defocus_fwhm_um: float
    fwhm_um: float
    wavefront_error_m: float
    strehl_ratio: float
    rms_spot_size_um: float
    encircled_energy: EncircledEnergy
    psf_grid: np.ndarray
    psf_profile: np.ndarray
    wavelength_range_nm: tuple[float, float]


@dataclass(frozen=True)
class MTFCurve:
    """Combined MTF with sagittal/tangential display variants."""
    frequencies: np.ndarray
    values: np.ndarray
    sagittal: np.ndarray
    tangential: np.ndarray


@dataclass(frozen=True)
class MTFResults:
    """Per-frequency transfer functions and derived figures of merit.

    Attributes:
        frequencies: Sampled spatial frequencies [cycles/mm], shape (N,).
        optics_mtf: Diffraction × defocus × atmosphere MTF, shape (N,).
        detector_mtf: Pixel-aperture sinc × QE, shape (N,).
        motion_mtf: Linear-motion sinc, shape (N,).
        overall_mtf: Product of the three components, shape (N,).
        mtf50: Frequency where overall MTF crosses 0.5; 0 if it never does.
        nyquist_frequency: Detector Nyquist frequency [cycles/mm].
        sampling_efficiency: Overall MTF at the first sample ≥ Nyquist.
        motion_blur_px: Image smear during integration [pixels].
        curve: Display curve bundle.
    """
    frequencies: np.ndarray
    optics_mtf: np.ndarray
    detector_mtf: np.ndarray
    motion_mtf: np.ndarray
    overall_mtf: np.ndarray
    mtf50: float
    nyquist_frequency: float
    sampling_efficiency: float
    motion_blur_px: float
    curve: MTFCurve


@dataclass(frozen=True)
class OpticalQualityMetrics:
    """Qualitative grading of a PSF analysis."""
    image_quality: str
    limiting_factor: str
    recommendations: list[str]
    performance_score: int


# ---------------------------------------------------------------------------
# Orbits and coverage
# ---------------------------------------------------------------------------

@dataclass
class OrbitalElements:
    """Circular-orbit elements for ground-track propagation.

    Attributes:
        altitude_km: Orbit altitude above the mean Earth radius [km].
        inclination_deg: Inclination [deg].
        raan_deg: Right ascension of ascending node [deg].
        true_anomaly_deg: True anomaly at t=0 [deg].
    """
    altitude_km: float
    inclination_deg: float
    raan_deg: float = 0.0
    true_anomaly_deg: float = 0.0


@dataclass(frozen=True)
class GroundTrackPoint:
    """Sub-satellite point at one sample time.

    Attributes:
        latitude_deg: Geographic latitude [deg].
        longitude_deg: Longitude in [-180, 180] [deg].
        timestamp: UTC time of the sample.
        elapsed_min: Minutes since the start of propagation.
    """
    latitude_deg: float
    longitude_deg: float
    timestamp: datetime
    elapsed_min: float


@dataclass(frozen=True)
class RevisitStatistics:
    """Summary of a revisit grid.

    Attributes:
        total_cells: Number of grid cells.
        covered_cells: Cells with at least one revisit.
        coverage_pct: Covered fraction [%].
        min_revisits: Smallest non-zero cell count (0 if none covered).
        max_revisits: Largest cell count.
        average_revisits: Mean count over covered cells.
        average_revisit_time_h: Time span / mean revisits [h].
        min_revisit_time_h: Shortest mean interval among cells with >1 visit [h].
        max_gap_h: Longest mean interval among cells with >1 visit [h].
    """
    total_cells: int
    covered_cells: int
    coverage_pct: float
    min_revisits: int
    max_revisits: int
    average_revisits: float
    average_revisit_time_h: float
    min_revisit_time_h: float
    max_gap_h: float


@dataclass(frozen=True)
class RevisitGrid:
    """Revisit counts over a (latitude, longitude) grid.

    Row 0 is the north pole band, column 0 starts at -180° longitude.

    Attributes:
        counts: Non-negative integer counts, shape (rows, 2*rows).
        max_count: Maximum cell value.
        time_span_hours: Accumulation time span [h].
        statistics: Grid summary.
    """
    counts: np.ndarray
    max_count: int
    time_span_hours: float
    statistics: RevisitStatistics

    @property
    def shape(self) -> tuple[int, int]:
        return self.counts.shape

    @property
    def total(self) -> int:
        """Sum of all cell counts."""
        return int(self.counts.sum())


# ---------------------------------------------------------------------------
# TLE / geodetic
# ---------------------------------------------------------------------------

@dataclass
class TLEElements:
    """Mean orbital elements from a two-line element set.

    Attributes:
        epoch_year: Four-digit epoch year.
        epoch_day: Fractional day of year (1.0 = Jan 1 00:00 UTC).
        inclination_deg: Inclination [deg].
        raan_deg: Right ascension of ascending node [deg].
        eccentricity: Eccentricity [0, 1).
        arg_perigee_deg: Argument of perigee [deg].
        mean_anomaly_deg: Mean anomaly [deg].
        mean_motion_rev_per_day: Mean motion [rev/day].
    """
    epoch_year: int
    epoch_day: float
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float


@dataclass(frozen=True)
class TLERecord:
    """A parsed TLE with derived size parameters."""
    name: str
    line1: str
    line2: str
    elements: TLEElements
    semi_major_axis_km: float
    altitude_km: float


@dataclass(frozen=True)
class GeodeticPosition:
    """WGS-84 geodetic coordinates.

    Attributes:
        latitude_deg: Geodetic latitude [deg].
        longitude_deg: Longitude [deg].
        altitude_km: Height above the ellipsoid [km].
    """
    latitude_deg: float
    longitude_deg: float
    altitude_km: float


# ---------------------------------------------------------------------------
# Deconvolution
# ---------------------------------------------------------------------------

@dataclass
class KernelParams:
    """Blur kernel synthesis parameters.

    Attributes:
        size: Kernel side length [px]; odd sizes centre the kernel.
        length: Motion smear length [px] (motion only).
        angle_deg: Motion direction [deg] (motion only).
        sigma: Gaussian standard deviation [px] (gaussian only).
    """
    size: int = 15
    length: float = 10.0
    angle_deg: float = 0.0
    sigma: float = 2.0


@dataclass
class DeconvolutionOptions:
    """Restoration settings for multi-channel images.

    Attributes:
        iterations: Number of update iterations (no convergence check).
        method: Restoration algorithm.
        regularization: TV weight (richardson_lucy_tv). None uses config.
        noise_variance: Noise variance (wiener). None uses config.
    """
    iterations: int = 10
    method: DeconvolutionMethod = DeconvolutionMethod.RICHARDSON_LUCY
    regularization: Optional[float] = None
    noise_variance: Optional[float] = None
