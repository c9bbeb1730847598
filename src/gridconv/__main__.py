"""
Command-line entry for the gridconv package.

Usage
-----
$ python -m gridconv
"""

import numpy as np

from . import __version__
from .conv2d import Kernel, Strategy, convolve
from .core import PixelGrid


def _diagnostics():
    print(f"gridconv RGBA grid convolution v{__version__}\n")

    grid = PixelGrid.random(64, 48)
    kernel = Kernel.gauss5()
    print(f"Grid {grid.width}x{grid.height}, kernel {kernel.width}x{kernel.height} (sum {kernel.weight_sum():.6f})")

    outputs = {s: convolve(grid, kernel, s).data for s in Strategy}
    rows, cols = kernel.interior(grid.raster)
    direct = outputs[Strategy.DIRECT]

    par_err = np.max(np.abs(outputs[Strategy.PARALLEL] - direct))
    fft_err = np.max(np.abs(outputs[Strategy.FFT][rows, cols] - direct[rows, cols]))
    print(f"  parallel vs direct, max error: {par_err:.2e}")
    print(f"  fft vs direct (interior), max error: {fft_err:.2e}")

    identity = convolve(grid, Kernel.identity(), Strategy.FFT)
    print(f"  fft identity error: {np.max(np.abs(identity.data - grid.data)):.2e}")

    ok = par_err <= 1e-5 and fft_err <= 1e-3
    print("\nAll checks passed ✅" if ok else "\nSome checks FAILED ❌")


if __name__ == "__main__":
    _diagnostics()
