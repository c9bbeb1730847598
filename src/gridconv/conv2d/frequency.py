# src/gridconv/conv2d/frequency.py
"""Frequency-domain convolution of pixel grids via a zero-padded FFT."""
from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from gridconv.conv2d.kernels import Kernel
from gridconv.conv2d.spatial import check_operands
from gridconv.core.fft import pad_top_left, plan_fft
from gridconv.core.rgba import PixelGrid

__all__ = [
    "FftConvolver",
]

logger = logging.getLogger(__name__)


class FftConvolver:
    """
    Linear convolution through the frequency domain.

    Grid channels and kernel are zero-padded to
    ``(grid_w + kernel_w - 1, grid_h + kernel_h - 1)``, transformed as
    flattened 1D buffers, multiplied, and transformed back. The result is
    re-centered by reading the padded output at ``(x + kc.x, y + kc.y)``.

    The kernel is loaded rotated by 180 degrees, so tap ``(kx, ky)`` weighs
    the same source pixel as in the spatial convolvers. Zero padding stands in
    for the boundary-skip policy; only pixels farther than the kernel radius
    from every edge are guaranteed to match the spatial strategies.

    Parameters
    ----------
    workers : int | None
        Passed through to ``scipy.fft``; the four channel transforms run as
        one batched call.
    """

    name = "fft"

    def __init__(self, workers: Optional[int] = None) -> None:
        self.workers = workers

    def convolve(self, grid: PixelGrid, kernel: Kernel) -> PixelGrid:
        check_operands(grid, kernel)

        t0 = time.perf_counter()
        plan = plan_fft(grid.raster, kernel.raster, workers=self.workers)
        padded = plan.padded
        logger.debug("FFT plan %dx%d took %.2f ms", padded.width, padded.height, 1e3 * (time.perf_counter() - t0))

        t0 = time.perf_counter()
        # (4, H, W) -> (4, padded.size)
        channels = pad_top_left(np.moveaxis(grid.data, -1, 0), padded)
        logger.debug("FFT preparation took %.2f ms", 1e3 * (time.perf_counter() - t0))

        t0 = time.perf_counter()
        spectra = plan.forward(channels)
        kernel_spectrum = plan.kernel_spectrum(kernel.weights[::-1, ::-1])
        logger.debug("FFT forward took %.2f ms", 1e3 * (time.perf_counter() - t0))

        spectra *= kernel_spectrum

        t0 = time.perf_counter()
        full = plan.inverse(spectra)
        logger.debug("FFT inverse took %.2f ms", 1e3 * (time.perf_counter() - t0))

        kc = kernel.center
        full = full.real.reshape(4, padded.height, padded.width)
        window = full[:, kc.y : kc.y + grid.height, kc.x : kc.x + grid.width] / plan.length
        out = np.clip(np.moveaxis(window, 0, -1), 0.0, 1.0).astype(np.float32)
        return PixelGrid(grid.raster, out, copy=False)

    def __repr__(self) -> str:
        return f"FftConvolver(workers={self.workers})"
