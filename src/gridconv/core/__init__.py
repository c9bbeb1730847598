"""
gridconv.core
=============

Containers and low-level primitives.

Submodules
----------
- :mod:`gridconv.core.raster` : Raster geometry and row-major indexing.
- :mod:`gridconv.core.grid`   : Generic grid container and traversals.
- :mod:`gridconv.core.rgba`   : RGBA pixels and pixel grids.
- :mod:`gridconv.core.fft`    : FFT plans and padded buffers.
"""

from .raster import Center, Raster
from .grid import Grid
from .rgba import DEFAULT_SEED, RGBA, PixelGrid
from .fft import (
    FftPlan,
    linear_padded_raster,
    pad_top_left,
    plan_fft,
    clear_plan_cache,
    plan_cache_info,
)

__all__ = [
    # raster / grid
    "Center",
    "Raster",
    "Grid",
    "DEFAULT_SEED",
    "RGBA",
    "PixelGrid",
    # fft
    "FftPlan",
    "linear_padded_raster",
    "pad_top_left",
    "plan_fft",
    "clear_plan_cache",
    "plan_cache_info",
]
