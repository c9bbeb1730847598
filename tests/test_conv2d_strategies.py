import numpy as np
import pytest

from gridconv.conv2d.frequency import FftConvolver
from gridconv.conv2d.kernels import Kernel
from gridconv.conv2d.spatial import DirectConvolver, ParallelConvolver, row_chunks
from gridconv.conv2d.strategy import Strategy, convolve, convolve_repeated, get_convolver
from gridconv.core.rgba import RGBA, PixelGrid

ALL_STRATEGIES = list(Strategy)


def _naive_reference(grid: PixelGrid, kernel: Kernel) -> np.ndarray:
    """Per-pixel loop over the boundary-skipping tap iterator."""
    out = np.zeros((grid.height, grid.width, 4), dtype=np.float32)
    for x, y, _, _ in grid.iter_cells():
        acc = np.zeros(4, dtype=np.float32)
        for _, _, _, cell, weight in grid.iter_kernel_taps(kernel, x, y):
            acc += np.asarray(cell, dtype=np.float32) * np.float32(weight)
        out[y, x] = np.clip(acc, 0.0, 1.0)
    return out


# ---------------------------------------------------------------------------
# Golden 3x3 scenario
# ---------------------------------------------------------------------------

def test_golden_box_blur(golden_grid):
    out = DirectConvolver().convolve(golden_grid, Kernel.box(3))

    # center: full footprint, plain average of all nine cells
    np.testing.assert_allclose(out.get(1, 1), (0.5, 0.5, 0.5, 1.0), atol=1e-6)
    # corners: four in-bounds taps, not renormalized
    np.testing.assert_allclose(out.get(0, 0), (2 / 9, 3 / 9, 1 / 9, 4 / 9), atol=1e-6)
    np.testing.assert_allclose(out.get(2, 0), (1 / 9, 2 / 9, 3 / 9, 4 / 9), atol=1e-6)
    np.testing.assert_allclose(out.get(0, 2), (2 / 9, 3 / 9, 2 / 9, 4 / 9), atol=1e-6)
    np.testing.assert_allclose(out.get(2, 2), (1.5 / 9, 1.5 / 9, 2.5 / 9, 4 / 9), atol=1e-6)
    # edge: six taps
    np.testing.assert_allclose(out.get(1, 0), (3 / 9, 3 / 9, 3 / 9, 6 / 9), atol=1e-6)


@pytest.mark.parametrize("strategy", [Strategy.DIRECT, Strategy.PARALLEL])
def test_spatial_matches_naive_loop(golden_grid, random_grid, asymmetric_kernel, strategy):
    for grid, kernel in [(golden_grid, Kernel.box(3)), (random_grid, asymmetric_kernel)]:
        out = convolve(grid, kernel, strategy)
        np.testing.assert_allclose(out.data, _naive_reference(grid, kernel), atol=1e-6)


# ---------------------------------------------------------------------------
# Identity and fixed point
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_identity_kernel_returns_input(random_grid, strategy):
    out = convolve(random_grid, Kernel.identity(), strategy)
    assert out is not random_grid
    assert out.raster == random_grid.raster
    if strategy is Strategy.FFT:
        np.testing.assert_allclose(out.data, random_grid.data, atol=1e-6)
    else:
        assert out == random_grid


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
@pytest.mark.parametrize("kernel", [Kernel.gauss3(), Kernel.gauss5(), Kernel.gauss7(), Kernel.box(3)])
def test_uniform_grid_interior_fixed_point(strategy, kernel):
    c = np.array([0.25, 0.5, 0.75, 1.0], dtype=np.float32)
    grid = PixelGrid.filled(19, 14, c)
    out = convolve(grid, kernel, strategy).data
    rows, cols = kernel.interior(grid.raster)

    np.testing.assert_allclose(out[rows, cols], np.broadcast_to(c, out[rows, cols].shape), atol=1e-6)

    # border pixels lose the weight of skipped taps: never brighter, corners darker
    assert np.all(out <= c + 1e-6)
    for x, y in [(0, 0), (18, 0), (0, 13), (18, 13)]:
        assert np.all(out[y, x] < c - 1e-3)


# ---------------------------------------------------------------------------
# Cross-strategy agreement
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("workers", [None, 1, 2, 3, 64])
@pytest.mark.parametrize("kernel_name", ["gauss7", "laplacian", "asymmetric"])
def test_direct_equals_parallel(random_grid, asymmetric_kernel, workers, kernel_name):
    kernel = asymmetric_kernel if kernel_name == "asymmetric" else getattr(Kernel, kernel_name)()
    direct = DirectConvolver().convolve(random_grid, kernel)
    parallel = ParallelConvolver(workers=workers).convolve(random_grid, kernel)
    np.testing.assert_allclose(parallel.data, direct.data, rtol=0, atol=1e-5)


@pytest.mark.parametrize("kernel_name", ["gauss3", "gauss5", "gauss7", "asymmetric"])
def test_fft_matches_direct_on_interior(random_grid, asymmetric_kernel, kernel_name):
    kernel = asymmetric_kernel if kernel_name == "asymmetric" else getattr(Kernel, kernel_name)()
    direct = DirectConvolver().convolve(random_grid, kernel).data
    fft = FftConvolver().convolve(random_grid, kernel).data
    rows, cols = kernel.interior(random_grid.raster)
    assert direct[rows, cols].size > 0
    np.testing.assert_allclose(fft[rows, cols], direct[rows, cols], rtol=0, atol=1e-3)


def test_fft_on_large_kernel_relative_to_grid():
    grid = PixelGrid.random(9, 8, seed=2)
    kernel = Kernel.gaussian(sigma=1.0, radius=3)
    direct = convolve(grid, kernel, "direct").data
    fft = convolve(grid, kernel, "fft").data
    rows, cols = kernel.interior(grid.raster)
    np.testing.assert_allclose(fft[rows, cols], direct[rows, cols], atol=1e-3)


# ---------------------------------------------------------------------------
# Output contract
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_output_always_clamped(random_grid, strategy):
    sharpen = Kernel.from_weights([[0, -1, 0], [-1, 5, -1], [0, -1, 0]])
    bright = Kernel.from_weights(np.full((3, 3), 1.0))
    for kernel in (sharpen, bright, Kernel.laplacian()):
        out = convolve(random_grid, kernel, strategy).data
        assert out.dtype == np.float32
        assert out.min() >= 0.0 and out.max() <= 1.0


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_input_grid_is_not_modified(random_grid, strategy):
    before = random_grid.to_array()
    out = convolve(random_grid, Kernel.gauss5(), strategy)
    np.testing.assert_array_equal(random_grid.to_array(), before)
    assert out.raster == random_grid.raster


@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
def test_single_row_and_single_column_grids(strategy):
    for w, h in [(1, 1), (7, 1), (1, 6)]:
        grid = PixelGrid.random(w, h, seed=4)
        out = convolve(grid, Kernel.gauss3(), strategy)
        assert (out.width, out.height) == (w, h)
        ref = convolve(grid, Kernel.gauss3(), Strategy.DIRECT)
        np.testing.assert_allclose(out.data, ref.data, atol=1e-5)


def test_operand_types_checked(random_grid):
    with pytest.raises(TypeError):
        DirectConvolver().convolve(random_grid.to_array(), Kernel.gauss3())
    with pytest.raises(TypeError):
        FftConvolver().convolve(random_grid, np.ones((3, 3)))


# ---------------------------------------------------------------------------
# Chunking and dispatch
# ---------------------------------------------------------------------------

def test_row_chunks_are_disjoint_and_cover():
    for height, n in [(23, 4), (5, 8), (1, 3), (100, 7)]:
        chunks = row_chunks(height, n)
        assert len(chunks) == min(height, n)
        assert chunks[0][0] == 0 and chunks[-1][1] == height
        for (a0, a1), (b0, b1) in zip(chunks, chunks[1:]):
            assert a1 == b0
        assert all(y1 > y0 for y0, y1 in chunks)


def test_parallel_rejects_bad_worker_count():
    with pytest.raises(ValueError):
        ParallelConvolver(workers=0)


def test_strategy_parsing_and_dispatch():
    assert Strategy.parse("FFT") is Strategy.FFT
    assert Strategy.parse(" parallel ") is Strategy.PARALLEL
    assert Strategy.parse(Strategy.DIRECT) is Strategy.DIRECT
    with pytest.raises(ValueError, match="Unknown convolution strategy"):
        Strategy.parse("winograd")

    assert isinstance(get_convolver("direct"), DirectConvolver)
    assert isinstance(get_convolver(Strategy.PARALLEL, workers=2), ParallelConvolver)
    assert get_convolver("fft", workers=1).workers == 1
    with pytest.raises(TypeError):
        get_convolver("direct", workers=2)


def test_convolve_repeated_replaces_grid(random_grid):
    kernel = Kernel.gauss3()
    assert convolve_repeated(random_grid, kernel, 0) is random_grid
    twice = convolve_repeated(random_grid, kernel, 2, Strategy.PARALLEL)
    expected = convolve(convolve(random_grid, kernel), kernel)
    np.testing.assert_allclose(twice.data, expected.data, atol=1e-5)
    with pytest.raises(ValueError):
        convolve_repeated(random_grid, kernel, -1)


def test_repeated_blur_reduces_variance():
    grid = PixelGrid.random(32, 32)
    blurred = convolve_repeated(grid, Kernel.gauss7(), 3, "fft")
    inner = slice(10, 22)
    assert blurred.data[inner, inner, :3].std() < 0.5 * grid.data[inner, inner, :3].std()
    np.testing.assert_allclose(blurred.get(16, 16).a, 1.0, atol=1e-3)
    assert isinstance(blurred.get(0, 0), RGBA)
