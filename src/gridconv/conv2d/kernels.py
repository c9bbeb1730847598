# src/gridconv/conv2d/kernels.py
"""Odd-sized 2D weight kernels: binomial Gaussian presets, box, Laplacian, custom."""
from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

import numpy as np

from gridconv.core.grid import Grid
from gridconv.core.raster import Center, Raster

__all__ = [
    "Kernel",
    "PRESETS",
    "preset",
]


ArrayLike = np.ndarray


# ---------------------------------------------------------------------------
# Binomial approximations to a Gaussian, row-major
# ---------------------------------------------------------------------------

# fmt: off
_GAUSS3 = np.array([
    [1, 2, 1],
    [2, 4, 2],
    [1, 2, 1],
], dtype=np.float64) / 16.0

_GAUSS5 = np.array([
    [1,  4,  6,  4, 1],
    [4, 16, 24, 16, 4],
    [6, 24, 36, 24, 6],
    [4, 16, 24, 16, 4],
    [1,  4,  6,  4, 1],
], dtype=np.float64) / 256.0

_GAUSS7 = np.array([
    [ 1,   6,  15,  20,  15,   6,  1],
    [ 6,  36,  90, 120,  90,  36,  6],
    [15,  90, 225, 300, 225,  90, 15],
    [20, 120, 300, 400, 300, 120, 20],
    [15,  90, 225, 300, 225,  90, 15],
    [ 6,  36,  90, 120,  90,  36,  6],
    [ 1,   6,  15,  20,  15,   6,  1],
], dtype=np.float64) / 4096.0
# fmt: on


class Kernel(Grid[float]):
    """
    Scalar weight grid with odd width and height.

    Odd dimensions guarantee a unique center tap at
    ``(width // 2, height // 2)``. Weights are not required to sum to 1.

    Raises
    ------
    ValueError
        If either dimension is even (or not positive).
    """

    def __init__(self, raster: Raster, cells, *, copy: bool = True) -> None:
        if raster.width % 2 == 0 or raster.height % 2 == 0:
            raise ValueError(
                f"Kernel dimensions must be odd, got {raster.width}x{raster.height}"
            )
        super().__init__(raster, cells, copy=copy)

    @property
    def radius(self) -> Center:
        """Number of taps on each side of the center, per axis."""
        return self.center

    @property
    def weights(self) -> ArrayLike:
        """Read-only ``(height, width)`` weight table."""
        return self.data

    def weight_sum(self) -> float:
        return float(np.sum(self._data, dtype=np.float64))

    def flipped(self) -> "Kernel":
        """Kernel rotated by 180 degrees."""
        return Kernel(self.raster, self._data[::-1, ::-1])

    def interior(self, raster: Raster) -> Tuple[slice, slice]:
        """
        ``(rows, cols)`` slices of the positions of ``raster`` whose full
        kernel footprint lies inside it. Either slice may be empty.
        """
        rx, ry = self.radius
        return slice(ry, max(ry, raster.height - ry)), slice(rx, max(rx, raster.width - rx))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_weights(cls, weights) -> "Kernel":
        """
        Build a kernel from a 2D weight table (rows are ``y``, columns ``x``).

        Parameters
        ----------
        weights : array_like, shape (H, W)
            H and W must be odd.
        """
        w = np.asarray(weights, dtype=np.float64)
        if w.ndim != 2:
            raise ValueError(f"Expected 2D weight table, got shape {w.shape}")
        if w.size == 0:
            raise ValueError("Kernel weight table is empty")
        return cls(Raster(w.shape[1], w.shape[0]), w)

    @classmethod
    def gauss3(cls) -> "Kernel":
        return cls.from_weights(_GAUSS3)

    @classmethod
    def gauss5(cls) -> "Kernel":
        return cls.from_weights(_GAUSS5)

    @classmethod
    def gauss7(cls) -> "Kernel":
        return cls.from_weights(_GAUSS7)

    @classmethod
    def identity(cls) -> "Kernel":
        return cls.from_weights([[1.0]])

    @classmethod
    def box(cls, size: int = 3) -> "Kernel":
        """Uniform ``size x size`` average, each weight ``1/size**2``."""
        if size <= 0 or size % 2 == 0:
            raise ValueError(f"Box size must be a positive odd integer, got {size}")
        return cls.from_weights(np.full((size, size), 1.0 / (size * size)))

    @classmethod
    def gaussian(
        cls,
        sigma: float,
        radius: Optional[int] = None,
        truncate: float = 3.0,
    ) -> "Kernel":
        """
        Sampled isotropic Gaussian, normalized to sum to 1.

        Parameters
        ----------
        sigma : float
            Standard deviation in pixels.
        radius : int | None
            Taps on each side of the center. If None, ``round(truncate * sigma)``
            (at least 1).
        truncate : float
            Truncation in standard deviations when ``radius`` is None.
        """
        if sigma <= 0:
            raise ValueError("sigma must be positive")
        if radius is None:
            radius = max(1, int(round(truncate * sigma)))
        if radius < 0:
            raise ValueError("radius must be non-negative")

        x = np.arange(-radius, radius + 1, dtype=np.float64)
        g = np.exp(-0.5 * (x / sigma) ** 2)
        k = np.outer(g, g)
        return cls.from_weights(k / k.sum())

    @classmethod
    def laplacian(cls, center_weight: float = -4.0, eight_connected: bool = False) -> "Kernel":
        """Classic 3x3 Laplacian, 4- or 8-connected."""
        if eight_connected:
            k = [
                [1.0, 1.0, 1.0],
                [1.0, center_weight, 1.0],
                [1.0, 1.0, 1.0],
            ]
        else:
            k = [
                [0.0, 1.0, 0.0],
                [1.0, center_weight, 1.0],
                [0.0, 1.0, 0.0],
            ]
        return cls.from_weights(k)


# ---------------------------------------------------------------------------
# Named presets
# ---------------------------------------------------------------------------

PRESETS: Dict[str, Callable[[], Kernel]] = {
    "gauss3": Kernel.gauss3,
    "gauss5": Kernel.gauss5,
    "gauss7": Kernel.gauss7,
    "box3": Kernel.box,
    "identity": Kernel.identity,
    "laplacian": Kernel.laplacian,
}


def preset(name: str) -> Kernel:
    """Look up a preset kernel by name (case-insensitive)."""
    key = name.strip().lower()
    try:
        factory = PRESETS[key]
    except KeyError:
        raise ValueError(
            f"Unknown kernel preset {name!r}; expected one of {sorted(PRESETS)}"
        ) from None
    return factory()
