"""
Electro-Optical Earth Observation Modeling
==========================================
Numerical engine for sizing and assessing electro-optical imaging
satellites.

Architecture:
    - Sensor geometry: ground sample distance, footprint, pointing budget
    - Optical transfer: PSF (Airy, FWHM, Strehl, encircled energy) and MTF
    - Circular-orbit ground-track propagation
    - Revisit coverage accumulation over a global grid
    - TLE parsing, generation and epoch geodetic conversion
    - Blur kernel synthesis and Richardson-Lucy family deconvolution
"""

__version__ = "0.1.0"

from .engine import EOEngine
