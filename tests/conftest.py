# tests/conftest.py
from __future__ import annotations

import numpy as np
import pytest

from gridconv.conv2d.kernels import Kernel
from gridconv.core.fft import clear_plan_cache
from gridconv.core.rgba import PixelGrid

# Row-major cells of the hand-checked 3x3 scenario.
GOLDEN_CELLS = [
    (1.0, 0.0, 0.0, 1.0), (0.0, 1.0, 0.0, 1.0), (0.0, 0.0, 1.0, 1.0),
    (1.0, 1.0, 0.0, 1.0), (0.0, 1.0, 1.0, 1.0), (1.0, 0.0, 1.0, 1.0),
    (1.0, 1.0, 1.0, 1.0), (0.0, 0.0, 0.0, 1.0), (0.5, 0.5, 0.5, 1.0),
]


@pytest.fixture
def golden_grid() -> PixelGrid:
    return PixelGrid.from_cells(3, 3, GOLDEN_CELLS)


@pytest.fixture
def random_grid() -> PixelGrid:
    # Non-square so that width/height mix-ups show up.
    return PixelGrid.random(37, 23, seed=7)


@pytest.fixture
def asymmetric_kernel() -> Kernel:
    rng = np.random.default_rng(11)
    w = rng.random((3, 5)) + 0.05
    return Kernel.from_weights(w / w.sum())


@pytest.fixture(autouse=True)
def _fresh_plan_cache():
    clear_plan_cache()
    yield
    clear_plan_cache()
