"""
Blur kernel synthesis and image restoration.

Kernels:
    motion    rasterised line segment of given length and direction
    gaussian  sampled isotropic normal
    defocus   uniform disk of radius size/4
All kernels are square, non-negative and unit-sum.

Restoration methods (one 2-D channel at a time):
    richardson_lucy     multiplicative fixed-point update
    richardson_lucy_tv  same, minus a total-variation gradient step
    wiener              spatial-domain Wiener approximation (single pass)
    blind               Richardson-Lucy alternated with kernel re-estimation

Filtering is direct 2-D correlation with zero-padded borders
(``scipy.ndimage.correlate``, kernel centre at index size // 2).
Iteration counts are caller-supplied; there is no convergence check.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from scipy import ndimage

from ..core.config import DeconvolutionConfig
from ..core.constants import DEG2RAD
from ..core.types import (
    KernelType, KernelParams, DeconvolutionMethod, DeconvolutionOptions,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Kernel synthesis
# ---------------------------------------------------------------------------

def _normalize(kernel: np.ndarray) -> np.ndarray:
    total = kernel.sum()
    if total > 0:
        kernel = kernel / total
    return kernel


def motion_kernel(length: float, angle_deg: float, size: int) -> np.ndarray:
    """Linear motion blur kernel.

    ``length`` taps are stepped one pixel apart along the direction
    ``angle_deg`` and centred on the kernel; taps that round onto the same
    pixel accumulate. Taps outside the kernel are dropped.

    Args:
        length: Smear length [px].
        angle_deg: Smear direction, counter-clockwise from +x [deg].
        size: Kernel side length [px].

    Returns:
        Unit-sum kernel, shape (size, size).
    """
    kernel = np.zeros((size, size))
    center = size // 2
    dx = np.cos(angle_deg * DEG2RAD)
    dy = np.sin(angle_deg * DEG2RAD)

    i = np.arange(int(np.ceil(length)))
    offsets = i - length / 2.0
    # floor(v + 0.5) rounds half up
    xs = np.floor(center + dx * offsets + 0.5).astype(int)
    ys = np.floor(center + dy * offsets + 0.5).astype(int)
    inside = (xs >= 0) & (xs < size) & (ys >= 0) & (ys < size)
    np.add.at(kernel, (ys[inside], xs[inside]), 1.0)
    return _normalize(kernel)


def gaussian_kernel(size: int, sigma: float) -> np.ndarray:
    """Sampled isotropic Gaussian centred at index size // 2."""
    offsets = np.arange(size) - size // 2
    x, y = np.meshgrid(offsets, offsets)
    return _normalize(np.exp(-(x ** 2 + y ** 2) / (2.0 * sigma ** 2)))


def defocus_kernel(size: int) -> np.ndarray:
    """Uniform disk of radius size/4 centred at index size // 2."""
    offsets = np.arange(size) - size // 2
    x, y = np.meshgrid(offsets, offsets)
    disk = (np.sqrt(x ** 2 + y ** 2) <= size / 4.0).astype(float)
    return _normalize(disk)


def estimate_psf_kernel(kernel_type, params: Optional[KernelParams] = None) -> np.ndarray:
    """Synthesise a blur kernel.

    Args:
        kernel_type: ``KernelType`` member or its string value.
        params: Size and shape parameters; defaults if omitted.

    Returns:
        Unit-sum kernel, shape (params.size, params.size).

    Raises:
        ValueError: Unknown kernel type.
    """
    params = params or KernelParams()
    kernel_type = KernelType(kernel_type)

    if kernel_type is KernelType.MOTION:
        return motion_kernel(params.length, params.angle_deg, params.size)
    if kernel_type is KernelType.GAUSSIAN:
        return gaussian_kernel(params.size, params.sigma)
    return defocus_kernel(params.size)


# ---------------------------------------------------------------------------
# Filtering primitives
# ---------------------------------------------------------------------------

def correlate2d(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Direct 2-D correlation with zero padding outside the image."""
    return ndimage.correlate(image, kernel, mode="constant", cval=0.0)


def flip_kernel(kernel: np.ndarray) -> np.ndarray:
    """Kernel rotated by 180°."""
    return kernel[::-1, ::-1]


def tv_gradient(image: np.ndarray) -> np.ndarray:
    """Total-variation gradient proxy (gx + gy) / (|g| + 1e-8).

    Forward differences, zero on the last row/column.
    """
    gx = np.zeros_like(image)
    gy = np.zeros_like(image)
    gx[:, :-1] = image[:, 1:] - image[:, :-1]
    gy[:-1, :] = image[1:, :] - image[:-1, :]
    return (gx + gy) / (np.sqrt(gx ** 2 + gy ** 2) + 1e-8)


def _as_channel(image) -> np.ndarray:
    channel = np.asarray(image, dtype=float)
    if channel.ndim != 2:
        raise ValueError(f"Expected a 2-D image channel, got shape {channel.shape}")
    return channel


# ---------------------------------------------------------------------------
# Deconvolver
# ---------------------------------------------------------------------------

class PSFKernelDeconvolver:
    """Iterative restoration of blurred image channels.

    Attributes:
        config: Algorithm constants.
    """

    def __init__(self, config: Optional[DeconvolutionConfig] = None):
        self.config = config or DeconvolutionConfig()

    # ------------------------------------------------------------------
    # Richardson-Lucy family
    # ------------------------------------------------------------------

    def _rl_step(self, observed: np.ndarray, estimate: np.ndarray,
                 kernel: np.ndarray, flipped: np.ndarray) -> np.ndarray:
        """One multiplicative update; returns estimate × correction."""
        convolved = correlate2d(estimate, kernel)
        ratio = np.zeros_like(observed)
        valid = convolved > self.config.ratio_floor
        ratio[valid] = observed[valid] / convolved[valid]
        return estimate * correlate2d(ratio, flipped)

    def richardson_lucy(self, image, kernel, iterations: int) -> np.ndarray:
        """Richardson-Lucy deconvolution of one channel.

        The estimate starts at the observed channel. With a non-negative
        unit-sum kernel the update preserves non-negativity; an identity
        kernel leaves the channel unchanged above the ratio floor.

        Pixels where the re-blurred estimate is at or below
        ``config.ratio_floor`` (1e-10 by default) get a zero ratio, so
        observed values that small come back as 0 even with an identity
        kernel. Lower the floor for data with meaningful signal below it.

        Args:
            image: Observed channel, shape (H, W).
            kernel: Blur kernel, shape (K, K).
            iterations: Number of updates.

        Returns:
            Restored channel, shape (H, W).
        """
        observed = _as_channel(image)
        kernel = np.asarray(kernel, dtype=float)
        flipped = flip_kernel(kernel)

        estimate = observed.copy()
        for _ in range(iterations):
            estimate = np.maximum(0.0, self._rl_step(observed, estimate, kernel, flipped))
        return estimate

    def richardson_lucy_tv(self, image, kernel, iterations: int,
                           regularization: Optional[float] = None) -> np.ndarray:
        """Richardson-Lucy with a total-variation penalty step.

        The TV gradient is taken on the estimate before the update.
        """
        lam = self.config.tv_regularization if regularization is None else regularization
        observed = _as_channel(image)
        kernel = np.asarray(kernel, dtype=float)
        flipped = flip_kernel(kernel)

        estimate = observed.copy()
        for _ in range(iterations):
            tv = tv_gradient(estimate)
            estimate = self._rl_step(observed, estimate, kernel, flipped) - lam * tv
            estimate = np.maximum(0.0, estimate)
        return estimate

    def wiener(self, image, kernel, noise_variance: Optional[float] = None) -> np.ndarray:
        """Single-pass Wiener approximation.

        Correlates with the flipped kernel and scales by P / (P + σ²),
        where P is the kernel power. Output is clipped to [0, 1].
        """
        sigma2 = self.config.wiener_noise_variance if noise_variance is None else noise_variance
        observed = _as_channel(image)
        kernel = np.asarray(kernel, dtype=float)

        power = float(np.sum(kernel ** 2))
        coef = power / (power + sigma2)
        return np.clip(correlate2d(observed, flip_kernel(kernel)) * coef, 0.0, 1.0)

    def estimate_kernel_from_image(self, blurred: np.ndarray, sharp: np.ndarray,
                                   size: int) -> np.ndarray:
        """Re-estimate a kernel by correlating blurred and sharp channels.

        Each tap is the mean product of the blurred interior with the sharp
        channel shifted by the tap offset.

        Returns:
            Unit-sum kernel, or all zeros if the interior is empty.
        """
        height, width = blurred.shape
        c = size // 2
        kernel = np.zeros((size, size))
        interior = blurred[c:height - c, c:width - c]
        if interior.size == 0:
            return kernel

        for py in range(size):
            for px in range(size):
                sy, sx = py - c, px - c
                shifted = sharp[c + sy:height - c + sy, c + sx:width - c + sx]
                kernel[py, px] = np.mean(interior * shifted)
        return _normalize(kernel)

    def blind(self, image, kernel, iterations: int) -> np.ndarray:
        """Blind deconvolution by alternating image and kernel updates.

        Each iteration restores the observed channel with a short
        Richardson-Lucy run; on iterations that are non-zero multiples of
        ``blind_kernel_update_every`` the kernel is re-estimated from the
        restored result.
        """
        observed = _as_channel(image)
        kernel = np.asarray(kernel, dtype=float).copy()
        every = self.config.blind_kernel_update_every

        estimate = observed.copy()
        for it in range(iterations):
            estimate = self.richardson_lucy(observed, kernel, self.config.blind_inner_iterations)
            if it > 0 and it % every == 0:
                updated = self.estimate_kernel_from_image(observed, estimate, kernel.shape[0])
                if updated.sum() > 0:
                    kernel = updated
                else:
                    logger.debug("Blind kernel update had no support; keeping previous kernel")
        return estimate

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def deconvolve(self, image, kernel, iterations: int,
                   method=DeconvolutionMethod.RICHARDSON_LUCY,
                   regularization: Optional[float] = None,
                   noise_variance: Optional[float] = None) -> np.ndarray:
        """Restore one channel with the selected method.

        Raises:
            ValueError: Unknown method or non-2-D channel.
        """
        method = DeconvolutionMethod(method)
        logger.debug("Deconvolving %s channel: method=%s, iterations=%d",
                     np.shape(image), method.value, iterations)

        if method is DeconvolutionMethod.RICHARDSON_LUCY:
            return self.richardson_lucy(image, kernel, iterations)
        if method is DeconvolutionMethod.RICHARDSON_LUCY_TV:
            return self.richardson_lucy_tv(image, kernel, iterations, regularization)
        if method is DeconvolutionMethod.WIENER:
            return self.wiener(image, kernel, noise_variance)
        return self.blind(image, kernel, iterations)

    def deconvolve_image(self, image, kernel,
                         options: Optional[DeconvolutionOptions] = None) -> np.ndarray:
        """Restore a single- or multi-channel image with values in [0, 1].

        Channels of an (H, W, C) array are processed independently. The
        result is clipped to [0, 1].

        Args:
            image: Array of shape (H, W) or (H, W, C).
            kernel: Blur kernel.
            options: Method and iteration settings.

        Returns:
            Restored image, same shape as ``image``.
        """
        options = options or DeconvolutionOptions()
        data = np.asarray(image, dtype=float)
        if data.ndim == 2:
            restored = self.deconvolve(data, kernel, options.iterations, options.method,
                                       options.regularization, options.noise_variance)
            return np.clip(restored, 0.0, 1.0)
        if data.ndim != 3:
            raise ValueError(f"Expected an (H, W) or (H, W, C) image, got shape {data.shape}")

        channels = [
            self.deconvolve(data[:, :, ch], kernel, options.iterations, options.method,
                            options.regularization, options.noise_variance)
            for ch in range(data.shape[2])
        ]
        return np.clip(np.stack(channels, axis=-1), 0.0, 1.0)


def deconvolve(channel, kernel, iterations: int,
               config: Optional[DeconvolutionConfig] = None) -> np.ndarray:
    """Richardson-Lucy restoration of one image channel."""
    return PSFKernelDeconvolver(config).richardson_lucy(channel, kernel, iterations)


def deconvolve_image(image, kernel, iterations: int = 10,
                     method=DeconvolutionMethod.RICHARDSON_LUCY,
                     config: Optional[DeconvolutionConfig] = None) -> np.ndarray:
    """Restore every channel of an image, clipped to [0, 1]."""
    options = DeconvolutionOptions(iterations=iterations, method=DeconvolutionMethod(method))
    return PSFKernelDeconvolver(config).deconvolve_image(image, kernel, options)
