# src/gridconv/cli/render_demo.py
"""Command-line demo: a stand-in host loop around the convolution core.
Usage:
    python -m gridconv.cli.render_demo [--width W] [--height H] [--presses N] [OPTIONS...]
Builds a random grid, "presses space" N times (one convolution per press)
and converts every result to a tiled RGBA8 buffer, the way a renderer would
before uploading a texture. Nothing is written to disk.
"""
import logging
import time

import click
import numpy as np

from gridconv.conv2d import PRESETS, Strategy, get_convolver, preset
from gridconv.core import DEFAULT_SEED, PixelGrid
from gridconv.logging_config import setup_logging

logger = logging.getLogger(__name__)


def render_tiles(grid: PixelGrid, tile: int = 8) -> np.ndarray:
    """
    Map a grid to a ``(height*tile, width*tile, 4)`` uint8 buffer.

    Channels are scaled by 255 and truncated; every cell becomes a
    ``tile x tile`` block of device pixels.
    """
    if tile <= 0:
        raise ValueError("tile must be positive")
    rgba8 = (grid.data * np.float32(255.0)).astype(np.uint8)
    return np.repeat(np.repeat(rgba8, tile, axis=0), tile, axis=1)


@click.command()
@click.option("--width", default=64, show_default=True, help="Grid width in cells.")
@click.option("--height", default=64, show_default=True, help="Grid height in cells.")
@click.option("--tile", default=8, show_default=True, help="Device pixels per cell edge.")
@click.option("--presses", default=3, show_default=True, help="Simulated key presses.")
@click.option("--kernel", default="gauss7", type=click.Choice(sorted(PRESETS)), show_default=True)
@click.option("--strategy", default="parallel", type=click.Choice([s.value for s in Strategy]), show_default=True)
@click.option("--seed", default=DEFAULT_SEED, show_default=True)
@click.option("--verbose", is_flag=True, default=False, help="Log stage timings.")
def main(width, height, tile, presses, kernel, strategy, seed, verbose):
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    # --- Startup: initial grid and first frame ---
    grid = PixelGrid.random(width, height, seed=seed)
    frame = render_tiles(grid, tile)
    click.echo(f"Grid size: {grid.width}x{grid.height} = {grid.width * grid.height} cells")
    click.echo(f"Frame 0: {frame.shape[1]}x{frame.shape[0]} px, mean rgb {frame[..., :3].mean():.2f}")

    # --- Update: one convolution per key press, the grid is replaced each time ---
    k = preset(kernel)
    convolver = get_convolver(strategy)
    for press in range(1, presses + 1):
        t0 = time.perf_counter()
        grid = convolver.convolve(grid, k)
        frame = render_tiles(grid, tile)
        elapsed = 1e3 * (time.perf_counter() - t0)
        click.echo(f"Frame {press}: mean rgb {frame[..., :3].mean():.2f}  ({elapsed:.1f} ms)")

    click.echo("Done.")


if __name__ == "__main__":
    main()
