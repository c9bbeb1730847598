from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import numpy as np

from gridconv import __version__
from gridconv.cli.settings import (
    add_settings_args,
    split_settings_args,
    load_settings,
    settings_for,
    apply_defaults,
    options_to_settings,
    save_settings,
    find_subparser,
    subcommand_names,
)
from gridconv.conv2d import PRESETS, Kernel, Strategy, get_convolver, preset
from gridconv.core import DEFAULT_SEED, PixelGrid
from gridconv.logging_config import setup_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _kernel_from_args(args: argparse.Namespace) -> Kernel:
    if getattr(args, "sigma", None) is not None:
        return Kernel.gaussian(sigma=float(args.sigma), radius=args.radius)
    return preset(args.kernel)


def _grid_from_args(args: argparse.Namespace) -> PixelGrid:
    grid = PixelGrid.random(args.width, args.height, seed=args.seed)
    logger.info(
        "Grid size: %dx%d = %d cells (seed=%d)",
        grid.width, grid.height, grid.width * grid.height, args.seed,
    )
    return grid


def _channel_summary(grid: PixelGrid) -> str:
    arr = grid.data
    parts = []
    for i, name in enumerate("rgba"):
        ch = arr[..., i]
        parts.append(f"{name}: mean={ch.mean():.4f} min={ch.min():.4f} max={ch.max():.4f}")
    return "  ".join(parts)


# ---------------------------------------------------------------------------
# Subcommand implementations
# ---------------------------------------------------------------------------

def _cmd_run(args: argparse.Namespace) -> int:
    grid = _grid_from_args(args)
    kernel = _kernel_from_args(args)
    options = {} if args.strategy == Strategy.DIRECT.value else {"workers": args.workers}
    convolver = get_convolver(args.strategy, **options)

    print(f"before: {_channel_summary(grid)}")
    for i in range(args.times):
        t0 = time.perf_counter()
        grid = convolver.convolve(grid, kernel)
        logger.info("Pass %d with %r took %.2f ms", i + 1, convolver, 1e3 * (time.perf_counter() - t0))
    print(f"after {args.times} pass(es) [{args.strategy}, {kernel.width}x{kernel.height}]: {_channel_summary(grid)}")
    return 0


def _cmd_compare(args: argparse.Namespace) -> int:
    grid = _grid_from_args(args)
    kernel = _kernel_from_args(args)
    rows, cols = kernel.interior(grid.raster)

    results = {}
    for strategy in Strategy:
        options = {} if strategy is Strategy.DIRECT else {"workers": args.workers}
        t0 = time.perf_counter()
        results[strategy] = get_convolver(strategy, **options).convolve(grid, kernel).data
        elapsed = 1e3 * (time.perf_counter() - t0)
        print(f"{strategy.value:>8}: {elapsed:9.2f} ms")

    reference = results[Strategy.DIRECT]
    for strategy in (Strategy.PARALLEL, Strategy.FFT):
        diff = np.abs(results[strategy] - reference)
        interior = diff[rows, cols]
        interior_max = float(interior.max()) if interior.size else 0.0
        print(
            f"{strategy.value} vs direct: max |diff| = {float(diff.max()):.3e} "
            f"(interior {interior_max:.3e})"
        )
    return 0


def _cmd_kernels(args: argparse.Namespace) -> int:
    for name in sorted(PRESETS):
        k = preset(name)
        print(f"{name:<10} {k.width}x{k.height}  sum={k.weight_sum():.6f}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {value}")
    return value


def _add_grid_kernel_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--width", type=int, default=512, help="Grid width in cells.")
    p.add_argument("--height", type=int, default=512, help="Grid height in cells.")
    p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random fill seed.")
    p.add_argument(
        "--kernel",
        default="gauss7",
        choices=sorted(PRESETS),
        help="Preset kernel (ignored when --sigma is given).",
    )
    p.add_argument("--sigma", type=float, default=None, help="Use a sampled Gaussian with this sigma.")
    p.add_argument("--radius", type=int, default=None, help="Radius of the sampled Gaussian.")
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for the parallel and fft strategies (default: all CPUs / scipy default).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gridconv",
        description="Convolve random RGBA grids with direct, parallel or FFT strategies.",
    )
    add_settings_args(parser)
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log stage timings (DEBUG).")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- run ----
    p_run = subparsers.add_parser("run", help="Convolve a random grid one or more times.")
    _add_grid_kernel_args(p_run)
    p_run.add_argument(
        "--strategy",
        default=Strategy.PARALLEL.value,
        choices=[s.value for s in Strategy],
    )
    p_run.add_argument("--times", type=_non_negative_int, default=1, help="Number of successive passes.")
    p_run.set_defaults(func=_cmd_run)

    # ---- compare ----
    p_cmp = subparsers.add_parser("compare", help="Run every strategy on the same grid and diff them.")
    _add_grid_kernel_args(p_cmp)
    p_cmp.set_defaults(func=_cmd_compare)

    # ---- kernels ----
    p_k = subparsers.add_parser("kernels", help="List preset kernels.")
    p_k.set_defaults(func=_cmd_kernels)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    cleaned_argv, settings_path, save_path, command = split_settings_args(
        raw_argv, commands=subcommand_names(parser)
    )

    if settings_path:
        settings = settings_for(load_settings(Path(settings_path)), command)
        apply_defaults(find_subparser(parser, command) or parser, settings)

    args = parser.parse_args(cleaned_argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    if save_path:
        target = find_subparser(parser, args.command) or parser
        save_settings(Path(save_path), options_to_settings(args, target), command=args.command)

    try:
        return args.func(args)
    except ValueError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
