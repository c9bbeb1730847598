"""
gridconv
2D convolution of RGBA grids with interchangeable strategies.
"""

# Version detection that works even when not installed
from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("gridconv")
except _metadata.PackageNotFoundError:
    # Not installed (dev mode)
    __version__ = "0.0.0.dev0"

# Re-export core for convenience
from . import core, conv2d  # noqa: E402
from .core import Raster, Grid, RGBA, PixelGrid  # noqa: E402
from .conv2d import Kernel, Strategy, convolve  # noqa: E402

__all__ = [
    "core",
    "conv2d",
    "Raster",
    "Grid",
    "RGBA",
    "PixelGrid",
    "Kernel",
    "Strategy",
    "convolve",
    "__version__",
]
