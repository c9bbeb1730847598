# src/gridconv/core/grid.py
"""Generic row-major grid container and its traversals."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, Iterator, Tuple, TypeVar

import numpy as np

from gridconv.core.raster import Center, Raster

if TYPE_CHECKING:
    from gridconv.conv2d.kernels import Kernel

__all__ = [
    "Cell",
    "Grid",
]

Cell = TypeVar("Cell")


class Grid(Generic[Cell]):
    """
    Dense 2D buffer of cells stored in row-major order.

    The grid owns a numpy array of shape ``(height, width, *cell_shape)``.
    ``cells`` exposes the same memory as a flat buffer of ``width*height``
    cells so that ``cells[index(x, y)]`` is the cell at ``(x, y)``.

    Subclasses fix the cell type by setting ``cell_shape`` and overriding
    ``_to_cell``.

    Parameters
    ----------
    raster : Raster
        Grid dimensions.
    cells : array_like
        Either a flat sequence of ``width*height`` cells or an array already
        shaped ``(height, width, *cell_shape)``.
    copy : bool
        If False and ``cells`` is already an array of the right dtype, the
        grid takes it over without copying.
    """

    cell_shape: Tuple[int, ...] = ()
    dtype: Any = np.float32

    def __init__(self, raster: Raster, cells: Any, *, copy: bool = True) -> None:
        data = np.array(cells, dtype=self.dtype, copy=True) if copy else np.asarray(cells, dtype=self.dtype)
        per_cell = int(np.prod(self.cell_shape, dtype=np.int64))
        if data.size != raster.size * per_cell:
            raise ValueError(
                f"Cell buffer holds {data.size // max(per_cell, 1)} cells, "
                f"expected {raster.width}*{raster.height} = {raster.size}"
            )
        self._raster = raster
        self._data = data.reshape(raster.height, raster.width, *self.cell_shape)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def raster(self) -> Raster:
        return self._raster

    @property
    def width(self) -> int:
        return self._raster.width

    @property
    def height(self) -> int:
        return self._raster.height

    @property
    def center(self) -> Center:
        return self._raster.center

    def index(self, x: int, y: int) -> int:
        return self._raster.index(x, y)

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Read-only ``(height, width, *cell_shape)`` view of the buffer."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def cells(self) -> np.ndarray:
        """Read-only flat row-major view, ``width*height`` cells long."""
        return self.data.reshape(self._raster.size, *self.cell_shape)

    def to_array(self) -> np.ndarray:
        """Independent copy of the buffer shaped ``(height, width, *cell_shape)``."""
        return self._data.copy()

    def _to_cell(self, value: np.ndarray) -> Cell:
        if self.cell_shape:
            return tuple(float(v) for v in value)  # type: ignore[return-value]
        return float(value)  # type: ignore[return-value]

    def _check(self, x: int, y: int) -> None:
        if not self._raster.is_inside(x, y):
            raise IndexError(
                f"index out of range: ({x}, {y}) outside {self.width}x{self.height} grid"
            )

    def get(self, x: int, y: int) -> Cell:
        self._check(x, y)
        return self._to_cell(self._data[y, x])

    def set(self, x: int, y: int, cell: Cell) -> None:
        self._check(x, y)
        self._data[y, x] = cell

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_cells(self) -> Iterator[Tuple[int, int, int, Cell]]:
        """Yield ``(x, y, index, cell)`` for every cell in row-major order."""
        for x, y, index in self._raster.iter_positions():
            yield x, y, index, self._to_cell(self._data[y, x])

    def map_cells(self, fn: Callable[[int, int, int, Cell], Cell]) -> None:
        """Replace every cell, in row-major order, by ``fn(x, y, index, cell)``."""
        for x, y, index, cell in self.iter_cells():
            self._data[y, x] = fn(x, y, index, cell)

    def iter_kernel_taps(
        self, kernel: "Kernel", x: int, y: int
    ) -> Iterator[Tuple[int, int, int, Cell, float]]:
        """
        Yield ``(kx, ky, index, cell, weight)`` for each kernel tap over ``(x, y)``.

        Taps are visited in row-major kernel order. The source coordinate of
        tap ``(kx, ky)`` is ``(x + kx - kc.x, y + ky - kc.y)``; taps whose
        source lies outside the raster are skipped, not clamped.
        """
        self._check(x, y)
        kc = kernel.center
        for ky in range(kernel.height):
            for kx in range(kernel.width):
                sx = x + kx - kc.x
                sy = y + ky - kc.y
                if not self._raster.is_inside(sx, sy):
                    continue
                yield (
                    kx,
                    ky,
                    self._raster.index(sx, sy),
                    self._to_cell(self._data[sy, sx]),
                    kernel.get(kx, ky),
                )

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def copy(self):
        return type(self)(self._raster, self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid) or other.cell_shape != self.cell_shape:
            return NotImplemented
        return self._raster == other._raster and np.array_equal(self._data, other._data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"
