# src/gridconv/conv2d/strategy.py
"""Interchangeable convolution strategies behind one interface."""
from __future__ import annotations

import enum
import logging
from typing import Protocol, Union

from gridconv.conv2d.frequency import FftConvolver
from gridconv.conv2d.kernels import Kernel
from gridconv.conv2d.spatial import DirectConvolver, ParallelConvolver
from gridconv.core.rgba import PixelGrid

__all__ = [
    "Strategy",
    "Convolver",
    "get_convolver",
    "convolve",
    "convolve_repeated",
]

logger = logging.getLogger(__name__)


class Strategy(str, enum.Enum):
    DIRECT = "direct"
    PARALLEL = "parallel"
    FFT = "fft"

    @classmethod
    def parse(cls, value: Union["Strategy", str]) -> "Strategy":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise ValueError(
            f"Unknown convolution strategy {value!r}; expected one of {[m.value for m in cls]}"
        )


class Convolver(Protocol):
    name: str

    def convolve(self, grid: PixelGrid, kernel: Kernel) -> PixelGrid:
        ...


StrategyLike = Union[Strategy, str]


def get_convolver(strategy: StrategyLike = Strategy.DIRECT, **options) -> Convolver:
    """
    Instantiate the convolver for ``strategy``.

    Parameters
    ----------
    strategy : Strategy | str
        "direct", "parallel" or "fft".
    **options
        ``workers`` for the parallel and FFT convolvers.
    """
    s = Strategy.parse(strategy)
    if s is Strategy.DIRECT:
        if options:
            raise TypeError(f"Direct convolver takes no options, got {sorted(options)}")
        return DirectConvolver()
    if s is Strategy.PARALLEL:
        return ParallelConvolver(**options)
    return FftConvolver(**options)


def convolve(
    grid: PixelGrid,
    kernel: Kernel,
    strategy: StrategyLike = Strategy.DIRECT,
    **options,
) -> PixelGrid:
    """Convolve ``grid`` with ``kernel``; returns a new grid of the same size."""
    return get_convolver(strategy, **options).convolve(grid, kernel)


def convolve_repeated(
    grid: PixelGrid,
    kernel: Kernel,
    times: int,
    strategy: StrategyLike = Strategy.DIRECT,
    **options,
) -> PixelGrid:
    """Apply the same convolution ``times`` times, each pass replacing the grid."""
    if times < 0:
        raise ValueError("times must be non-negative")
    convolver = get_convolver(strategy, **options)
    for i in range(times):
        grid = convolver.convolve(grid, kernel)
        logger.debug("Pass %d/%d with %r done", i + 1, times, convolver)
    return grid
