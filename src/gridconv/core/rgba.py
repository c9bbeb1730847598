# src/gridconv/core/rgba.py
"""RGBA pixels and the pixel grid that convolvers consume and produce."""
from __future__ import annotations

from typing import Iterable, NamedTuple, Tuple, Union

import numpy as np

from gridconv.core.grid import Grid
from gridconv.core.raster import Raster

__all__ = [
    "DEFAULT_SEED",
    "RGBA",
    "PixelGrid",
]

# Fixed seed for the demo/test fill, so repeated initialization is reproducible.
DEFAULT_SEED = 0


class RGBA(NamedTuple):
    r: float
    g: float
    b: float
    a: float

    def clamped(self) -> "RGBA":
        return RGBA(*(min(max(c, 0.0), 1.0) for c in self))


ColorLike = Union[RGBA, Tuple[float, float, float, float]]


class PixelGrid(Grid[RGBA]):
    """Grid of linear RGBA pixels, stored as float32 ``(height, width, 4)``."""

    cell_shape = (4,)

    def _to_cell(self, value: np.ndarray) -> RGBA:
        return RGBA(float(value[0]), float(value[1]), float(value[2]), float(value[3]))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelGrid":
        """
        Build a grid from an array shaped ``(height, width, 4)``.

        Raises
        ------
        ValueError
            If the array is not 3D with four channels.
        """
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {arr.shape}")
        return cls(Raster(arr.shape[1], arr.shape[0]), arr)

    @classmethod
    def from_cells(cls, width: int, height: int, cells: Iterable[ColorLike]) -> "PixelGrid":
        """Build a grid from a row-major sequence of ``width*height`` colors."""
        return cls(Raster(width, height), [tuple(c) for c in cells])

    @classmethod
    def filled(cls, width: int, height: int, color: ColorLike) -> "PixelGrid":
        raster = Raster(width, height)
        data = np.empty((raster.height, raster.width, 4), dtype=np.float32)
        data[...] = np.asarray(color, dtype=np.float32)
        return cls(raster, data, copy=False)

    @classmethod
    def random(cls, width: int, height: int, seed: int = DEFAULT_SEED) -> "PixelGrid":
        """
        Deterministic pseudo-random grid.

        Red, green and blue are integers drawn from ``[0, 255)`` and divided
        by 255; alpha is 1. Two calls with the same seed and size return
        identical grids.
        """
        raster = Raster(width, height)
        rng = np.random.default_rng(seed)
        data = np.ones((raster.height, raster.width, 4), dtype=np.float32)
        rgb = rng.integers(0, 255, size=(raster.height, raster.width, 3))
        data[..., :3] = rgb.astype(np.float32) / np.float32(255.0)
        return cls(raster, data, copy=False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def channel(self, name: str) -> np.ndarray:
        """Read-only ``(height, width)`` view of one channel ("r", "g", "b" or "a")."""
        try:
            idx = RGBA._fields.index(name)
        except ValueError:
            raise ValueError(f"Unknown channel {name!r}; expected one of {RGBA._fields}") from None
        return self.data[..., idx]

    def clamped(self) -> "PixelGrid":
        return type(self)(self.raster, np.clip(self._data, 0.0, 1.0), copy=False)
