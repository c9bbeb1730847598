"""
gridconv.conv2d
===============

2D convolution of pixel grids.

Submodules
----------
- :mod:`gridconv.conv2d.kernels`   : Odd-sized kernels and presets (Gaussian, box, Laplacian).
- :mod:`gridconv.conv2d.spatial`   : Direct and row-parallel spatial convolvers.
- :mod:`gridconv.conv2d.frequency` : FFT-based convolver.
- :mod:`gridconv.conv2d.strategy`  : Strategy selection and dispatch.
"""

from .kernels import Kernel, PRESETS, preset
from .spatial import DirectConvolver, ParallelConvolver
from .frequency import FftConvolver
from .strategy import Strategy, Convolver, get_convolver, convolve, convolve_repeated

__all__ = [
    # kernels
    "Kernel",
    "PRESETS",
    "preset",
    # convolvers
    "DirectConvolver",
    "ParallelConvolver",
    "FftConvolver",
    # dispatch
    "Strategy",
    "Convolver",
    "get_convolver",
    "convolve",
    "convolve_repeated",
]
