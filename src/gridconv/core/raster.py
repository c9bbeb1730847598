# src/gridconv/core/raster.py
"""Raster geometry shared by every 2D buffer: size, row-major indexing, center."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple

__all__ = [
    "Center",
    "Raster",
]


class Center(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class Raster:
    """
    Width/height pair plus the row-major indexing scheme.

    Parameters
    ----------
    width, height : int
        Raster size. Both must be positive.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        w, h = int(self.width), int(self.height)
        if w <= 0 or h <= 0:
            raise ValueError(f"Raster dimensions must be positive, got {w}x{h}")
        object.__setattr__(self, "width", w)
        object.__setattr__(self, "height", h)

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """Array shape ``(height, width)``."""
        return (self.height, self.width)

    @property
    def center(self) -> Center:
        return Center(self.width // 2, self.height // 2)

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def iter_positions(self) -> Iterator[Tuple[int, int, int]]:
        """Yield ``(x, y, index)`` for every position in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y, y * self.width + x
