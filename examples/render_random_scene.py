#!/usr/bin/env python3
"""Render the random sphere field scene.

This script renders the showcase scene end to end: it builds the random
sphere field, sets up the depth-of-field camera, renders rows in parallel
on the CPU and writes the image.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH             Image width in pixels (default: 1200)
    --aspect-ratio RATIO      Width / height (default: 16/9)
    --samples SAMPLES         Samples per pixel (default: 100)
    --max-depth DEPTH         Maximum bounces per ray (default: 50)
    --seed SEED               Seed for scene layout and sampling (default: 0)
    --threads N               CPU worker threads (default: all cores)
    --rows-per-batch N        Rows per kernel launch (default: 16)
    --output OUTPUT           Output path; .ppm writes ASCII PPM, '-' writes
                              PPM to stdout (default: random_scene.png)
    --quiet                   Suppress progress output

Example:
    python -m examples.render_random_scene --width 400 --samples 20 --output out.ppm
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from fractions import Fraction
from pathlib import Path

import taichi as ti


def _aspect_ratio(text: str) -> float:
    # Accepts "1.7778" as well as "16/9"
    try:
        value = float(Fraction(text))
    except (ValueError, ZeroDivisionError) as e:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {text!r}") from e
    if value <= 0.0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive: {text!r}")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere field scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=1200,
        help="Image width in pixels (default: 1200)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=_aspect_ratio,
        default=16.0 / 9.0,
        help="Image width / height, e.g. 1.5 or 16/9 (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum ray bounces (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene layout and sampling (default: 0)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of CPU worker threads (default: all cores)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows rendered per progress update (default: 16)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.png",
        help="Output file path, or '-' for PPM on stdout (default: random_scene.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_random_scene(
    width: int = 1200,
    aspect_ratio: float = 16.0 / 9.0,
    samples_per_pixel: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    rows_per_batch: int = 16,
    output_path: str = "random_scene.png",
    quiet: bool = False,
) -> Path | None:
    """Render the random sphere field and write the image.

    Args:
        width: Image width in pixels.
        aspect_ratio: Image width divided by height.
        samples_per_pixel: Number of samples per pixel.
        max_depth: Maximum ray bounces.
        seed: Seed for the scene layout and the per-row random streams.
        rows_per_batch: Rows rendered between progress updates.
        output_path: Output file path, or "-" to write PPM to stdout.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file, or None when writing to stdout.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.renderer import Renderer, RenderSettings
    from pathtracer.preview.export import save_image, write_ppm
    from pathtracer.scene.random_scene import create_random_scene, create_random_scene_camera

    settings = RenderSettings.from_aspect_ratio(
        width,
        aspect_ratio,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        seed=seed,
        rows_per_batch=rows_per_batch,
    )
    renderer = Renderer(settings)

    if not quiet:
        print(f"Creating random scene ({settings.width}x{settings.height})...", file=sys.stderr)

    scene = create_random_scene(seed=seed)
    setup_camera(create_random_scene_camera(aspect_ratio))

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres at "
            f"{samples_per_pixel} samples per pixel...",
            file=sys.stderr,
        )

    start_time = time.time()

    def progress_callback(rows_completed: int, total_rows: int) -> None:
        if not quiet:
            print(
                f"\rScanlines remaining: {total_rows - rows_completed} ",
                end="",
                file=sys.stderr,
                flush=True,
            )

    image = renderer.render(callback=progress_callback)

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    output_file = None
    if output_path == "-":
        write_ppm(image, sys.stdout)
    else:
        output_file = Path(output_path)
        save_image(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        if output_file is not None:
            print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Total time: {total_time:.2f}s", file=sys.stderr)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    threads = args.threads if args.threads is not None else os.cpu_count() or 1
    if threads <= 0:
        print(f"Error: --threads must be positive, got {threads}", file=sys.stderr)
        return 1

    ti.init(arch=ti.cpu, cpu_max_num_threads=threads)
    if not args.quiet:
        print(f"Using CPU backend with {threads} threads", file=sys.stderr)

    try:
        render_random_scene(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            rows_per_batch=args.rows_per_batch,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
