"""
Engine facade.

Single entry object over the six computation engines. Presentation
layers hold one ``EOEngine`` and call its methods with typed inputs; each
call is independent and recomputes from scratch.

    compute_sensor_geometry   SensorInputs      -> CalculationResults
    compute_psf               PSFInputs         -> PSFResults
    compute_mtf               MTFInputs         -> MTFResults
    propagate_orbit           OrbitalElements   -> list[GroundTrackPoint]
    propagate_tle             TLERecord         -> list[GroundTrackPoint]
    accumulate_revisits       [elements | TLE]  -> RevisitGrid
    tle_to_geodetic           TLEElements       -> GeodeticPosition
    estimate_psf_kernel       KernelType        -> kernel array
    deconvolve                channel, kernel   -> channel
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

import numpy as np

from .core.config import EngineConfig
from .core.types import (
    SensorInputs, CalculationResults, SensorParameters,
    PSFInputs, PSFResults, MTFInputs, MTFResults, OpticalQualityMetrics,
    OrbitalElements, GroundTrackPoint, RevisitGrid,
    TLEElements, TLERecord, GeodeticPosition, TraceHook,
    KernelParams, DeconvolutionOptions,
)
from .imaging.geometry import SensorGeometryCalculator
from .imaging.psf import PSFModel
from .imaging.mtf import MTFModel
from .imaging.quality import analyze_optical_quality, optimize_mtf_parameters
from .imaging.deconvolution import PSFKernelDeconvolver, estimate_psf_kernel
from .astrodynamics.propagator import GroundTrackPropagator, SGP4GroundTrackPropagator
from .astrodynamics.coverage import RevisitAccumulator
from .astrodynamics.kepler import TLEGeodeticConverter


class EOEngine:
    """Electro-optical mission analysis engine.

    Attributes:
        config: Model constants shared by all engines.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize the engine.

        Args:
            config: Engine configuration. Defaults if omitted.
        """
        self.config = config or EngineConfig()
        self._psf = PSFModel(self.config.optics)
        self._mtf = MTFModel(self.config.optics)
        self._propagator = GroundTrackPropagator(self.config.propagation)
        self._sgp4_propagator = SGP4GroundTrackPropagator(self.config.propagation)
        self._accumulator = RevisitAccumulator(self.config.coverage, self.config.propagation)
        self._deconvolver = PSFKernelDeconvolver(self.config.deconvolution)

    # ------------------------------------------------------------------
    # Sensor geometry
    # ------------------------------------------------------------------

    def compute_sensor_geometry(self, inputs: SensorInputs) -> CalculationResults:
        return SensorGeometryCalculator(inputs).compute()

    def compute_sensor_parameters(self, inputs: SensorInputs) -> SensorParameters:
        return SensorGeometryCalculator(inputs).parameters()

    # ------------------------------------------------------------------
    # Optical transfer
    # ------------------------------------------------------------------

    def compute_psf(self, inputs: PSFInputs) -> PSFResults:
        return self._psf.compute(inputs)

    def compute_mtf(self, inputs: MTFInputs) -> MTFResults:
        return self._mtf.compute(inputs)

    def analyze_optical_quality(self, inputs: PSFInputs) -> OpticalQualityMetrics:
        """Compute the PSF for ``inputs`` and grade it."""
        return analyze_optical_quality(self._psf.compute(inputs), inputs)

    def optimize_mtf_parameters(self, inputs: MTFInputs, target_mtf50: float) -> dict:
        return optimize_mtf_parameters(inputs, target_mtf50, self.config.optics)

    # ------------------------------------------------------------------
    # Orbits and coverage
    # ------------------------------------------------------------------

    def propagate_orbit(self, elements: OrbitalElements, time_span_hours: float,
                        start_time: Optional[datetime] = None) -> list[GroundTrackPoint]:
        return self._propagator.propagate(elements, time_span_hours, start_time)

    def propagate_tle(self, record: TLERecord, time_span_hours: float,
                      start_time: Optional[datetime] = None) -> list[GroundTrackPoint]:
        """SGP4 ground track of a parsed TLE, starting at its epoch by default."""
        return self._sgp4_propagator.propagate(record, time_span_hours, start_time)

    def accumulate_revisits(self, satellites: Iterable[Union[OrbitalElements, TLERecord]],
                            time_span_hours: float, grid_resolution: int,
                            **kwargs) -> RevisitGrid:
        """Revisit grid for a constellation.

        Keyword arguments (start time, daytime filter) are passed to
        ``RevisitAccumulator.accumulate``.
        """
        return self._accumulator.accumulate(satellites, time_span_hours,
                                            grid_resolution, **kwargs)

    def tle_to_geodetic(self, elements: TLEElements,
                        trace: Optional[TraceHook] = None) -> GeodeticPosition:
        return TLEGeodeticConverter(trace).convert(elements)

    # ------------------------------------------------------------------
    # Image restoration
    # ------------------------------------------------------------------

    def estimate_psf_kernel(self, kernel_type,
                            params: Optional[KernelParams] = None) -> np.ndarray:
        return estimate_psf_kernel(kernel_type, params)

    def deconvolve(self, channel, kernel, iterations: int) -> np.ndarray:
        """Richardson-Lucy restoration of one image channel."""
        return self._deconvolver.richardson_lucy(channel, kernel, iterations)

    def deconvolve_image(self, image, kernel,
                         options: Optional[DeconvolutionOptions] = None) -> np.ndarray:
        return self._deconvolver.deconvolve_image(image, kernel, options)
