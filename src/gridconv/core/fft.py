# src/gridconv/core/fft.py
"""FFT plans and padded buffers for frequency-domain linear convolution."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.fft

from gridconv.core.raster import Raster

__all__ = [
    "FftPlan",
    "linear_padded_raster",
    "pad_top_left",
    "plan_fft",
    "clear_plan_cache",
    "plan_cache_info",
    "kernel_spectrum_cache_info",
]

logger = logging.getLogger(__name__)

ArrayLike = np.ndarray


# ---------------------------------------------------------------------------
# Padded geometry
# ---------------------------------------------------------------------------

def linear_padded_raster(grid: Raster, kernel: Raster) -> Raster:
    """
    Raster large enough to hold the full linear convolution of ``grid`` and
    ``kernel``: ``(grid_w + kernel_w - 1, grid_h + kernel_h - 1)``.

    Raises
    ------
    ValueError
        If any input dimension is not positive.
    """
    dims = (grid.width, grid.height, kernel.width, kernel.height)
    if min(dims) <= 0:
        raise ValueError(f"Cannot plan FFT for empty grid or kernel: {dims}")
    return Raster(grid.width + kernel.width - 1, grid.height + kernel.height - 1)


def pad_top_left(x: ArrayLike, padded: Raster) -> ArrayLike:
    """
    Zero-pad ``x`` (shape ``(..., H, W)``) into the top-left corner of
    ``padded`` and flatten the last two axes row-major.

    Returns
    -------
    ndarray, shape (..., padded.width * padded.height), complex128
        Imaginary parts are zero.
    """
    x = np.asarray(x, dtype=np.float64)
    h, w = x.shape[-2:]
    if h > padded.height or w > padded.width:
        raise ValueError(f"Array of shape {x.shape} does not fit into {padded.width}x{padded.height}")
    pads = [(0, 0)] * (x.ndim - 2) + [(0, padded.height - h), (0, padded.width - w)]
    x_padded = np.pad(x, pad_width=pads, mode="constant", constant_values=0)
    return x_padded.reshape(*x.shape[:-2], padded.size).astype(np.complex128)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FftPlan:
    """
    Forward/inverse 1D transforms over a flattened padded raster.

    A 2D linear convolution is carried out as one flattened 1D transform of
    length ``padded.width * padded.height``. The row padding of
    ``kernel_w - 1`` columns keeps contributions from carrying into the next
    row, and the column padding keeps the flattened transform from wrapping.

    The plan holds the padded geometry and the spectra of kernels already
    transformed at that size. Twiddle factors are cached by ``scipy.fft``
    itself, so the plan does not duplicate them.
    """

    padded: Raster
    workers: Optional[int] = None

    @property
    def length(self) -> int:
        return self.padded.size

    def forward(self, buffers: ArrayLike) -> ArrayLike:
        """Unnormalized forward DFT along the last axis."""
        return scipy.fft.fft(buffers, n=self.length, axis=-1, workers=self.workers)

    def inverse(self, spectra: ArrayLike) -> ArrayLike:
        """Unnormalized inverse DFT along the last axis; caller divides by ``length``."""
        return scipy.fft.ifft(spectra, n=self.length, axis=-1, norm="forward", workers=self.workers)

    def kernel_spectrum(self, weights: ArrayLike) -> ArrayLike:
        """
        Forward transform of ``weights`` padded top-left, cached per plan.

        Kernels are immutable for a run, so repeated passes with the same
        kernel reuse the spectrum. The returned array is read-only.
        """
        w = np.ascontiguousarray(weights, dtype=np.float64)
        return _cached_kernel_spectrum(self, w.shape, w.tobytes())


@functools.lru_cache(maxsize=16)
def _cached_kernel_spectrum(plan: FftPlan, shape: tuple, raw: bytes) -> ArrayLike:
    weights = np.frombuffer(raw, dtype=np.float64).reshape(shape)
    spectrum = plan.forward(pad_top_left(weights, plan.padded))
    spectrum.flags.writeable = False
    return spectrum


@functools.lru_cache(maxsize=32)
def _cached_plan(padded_width: int, padded_height: int, workers: Optional[int]) -> FftPlan:
    logger.debug("Planning FFT for padded raster %dx%d", padded_width, padded_height)
    return FftPlan(Raster(padded_width, padded_height), workers=workers)


def plan_fft(grid: Raster, kernel: Raster, workers: Optional[int] = None) -> FftPlan:
    """Return the (cached) plan for convolving ``grid`` with ``kernel``."""
    padded = linear_padded_raster(grid, kernel)
    return _cached_plan(padded.width, padded.height, workers)


def clear_plan_cache() -> None:
    """Drop cached plans and the kernel spectra computed with them."""
    _cached_plan.cache_clear()
    _cached_kernel_spectrum.cache_clear()


def plan_cache_info():
    return _cached_plan.cache_info()


def kernel_spectrum_cache_info():
    return _cached_kernel_spectrum.cache_info()
