# src/gridconv/conv2d/spatial.py
"""Spatial convolution: direct and row-parallel, with the boundary-skip policy."""
from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np

from gridconv.conv2d.kernels import Kernel
from gridconv.core.rgba import PixelGrid

__all__ = [
    "DirectConvolver",
    "ParallelConvolver",
    "check_operands",
    "row_chunks",
]

logger = logging.getLogger(__name__)

ArrayLike = np.ndarray


def check_operands(grid: PixelGrid, kernel: Kernel) -> None:
    if not isinstance(grid, PixelGrid):
        raise TypeError(f"Expected PixelGrid, got {type(grid).__name__}")
    if not isinstance(kernel, Kernel):
        raise TypeError(f"Expected Kernel, got {type(kernel).__name__}")


# ---------------------------------------------------------------------------
# Shared numerical routine
# ---------------------------------------------------------------------------

def _convolve_rows(src: ArrayLike, weights: ArrayLike, y0: int, y1: int) -> ArrayLike:
    """
    Convolve output rows ``[y0, y1)`` of ``src`` (``(H, W, C)``) with ``weights``.

    Each kernel tap is added as one shifted slice, in row-major kernel order,
    so every pixel accumulates its in-bounds taps in the same order as a
    per-pixel loop would. Out-of-bounds taps are skipped and the remaining
    weights are not renormalized. The result is clamped to [0, 1].
    """
    h, w = src.shape[:2]
    kh, kw = weights.shape
    cy, cx = kh // 2, kw // 2

    acc = np.zeros((y1 - y0,) + src.shape[1:], dtype=src.dtype)
    for ky in range(kh):
        dy = ky - cy
        lo, hi = max(y0, -dy), min(y1, h - dy)
        if lo >= hi:
            continue
        for kx in range(kw):
            dx = kx - cx
            xlo, xhi = max(0, -dx), min(w, w - dx)
            if xlo >= xhi:
                continue
            acc[lo - y0 : hi - y0, xlo:xhi] += (
                src[lo + dy : hi + dy, xlo + dx : xhi + dx] * weights[ky, kx]
            )

    np.clip(acc, 0.0, 1.0, out=acc)
    return acc


def row_chunks(height: int, n_chunks: int) -> List[Tuple[int, int]]:
    """Split ``range(height)`` into at most ``n_chunks`` disjoint, non-empty row ranges."""
    n = max(1, min(int(n_chunks), height))
    bounds = [(i * height) // n for i in range(n + 1)]
    return [(bounds[i], bounds[i + 1]) for i in range(n)]


# ---------------------------------------------------------------------------
# Convolvers
# ---------------------------------------------------------------------------

class DirectConvolver:
    """Single-threaded spatial convolution over the whole grid."""

    name = "direct"

    def convolve(self, grid: PixelGrid, kernel: Kernel) -> PixelGrid:
        check_operands(grid, kernel)
        t0 = time.perf_counter()
        out = _convolve_rows(grid.data, kernel.weights, 0, grid.height)
        logger.debug(
            "Direct convolution %r * %r took %.2f ms",
            grid, kernel, 1e3 * (time.perf_counter() - t0),
        )
        return PixelGrid(grid.raster, out, copy=False)

    def __repr__(self) -> str:
        return "DirectConvolver()"


class ParallelConvolver:
    """
    Data-parallel spatial convolution.

    The output is split into disjoint row chunks, one per worker. Every worker
    reads the shared input grid and kernel and writes only its own rows of a
    freshly allocated output buffer; leaving the pool is the join barrier.

    Parameters
    ----------
    workers : int | None
        Maximum number of chunks/threads. Defaults to ``os.cpu_count()``.
    """

    name = "parallel"

    def __init__(self, workers: Optional[int] = None) -> None:
        if workers is not None and workers <= 0:
            raise ValueError("workers must be positive")
        self.workers = workers

    def _n_workers(self) -> int:
        return self.workers or os.cpu_count() or 1

    def convolve(self, grid: PixelGrid, kernel: Kernel) -> PixelGrid:
        check_operands(grid, kernel)
        src = grid.data
        weights = kernel.weights
        out = np.empty(src.shape, dtype=src.dtype)
        chunks = row_chunks(grid.height, self._n_workers())

        def _work(bounds: Tuple[int, int]) -> None:
            y0, y1 = bounds
            out[y0:y1] = _convolve_rows(src, weights, y0, y1)

        t0 = time.perf_counter()
        with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
            # Consuming the iterator re-raises any worker exception.
            list(pool.map(_work, chunks))
        logger.debug(
            "Parallel convolution %r * %r over %d row chunks took %.2f ms",
            grid, kernel, len(chunks), 1e3 * (time.perf_counter() - t0),
        )
        return PixelGrid(grid.raster, out, copy=False)

    def __repr__(self) -> str:
        return f"ParallelConvolver(workers={self.workers})"
