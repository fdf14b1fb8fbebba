#!/usr/bin/env python3
"""Render a procedural scene through a Film and save it as PNG.

Pipeline:
    1. Load and validate the film config (film.v1 schema)
    2. Build the Film (resolution, filter, encoding) over a black buffer
    3. For each pass, draw --spp jittered samples per pixel of the scene
       and add them to the film; a few bright "stars" go in as splats
    4. Render and save the image (one PNG per pass with --progressive)
    5. With --dump-config, write the effective config (overrides applied)

The scene is a sky gradient with a sun disc over a checkered ground, so
the filter's effect on hard edges is easy to compare between configs.

Usage:
    python -m scripts.render_film --output outputs/film.png
    python -m scripts.render_film --config configs/film.v1.yaml \\
                                 --output outputs/film.png --passes 4 --progressive
    python -m scripts.render_film --output out.png --filter box --radius 0.5 --spp 8
    python -m scripts.render_film --output out.png --filter box --dump-config out.yaml
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from src.film import Film, create_filter
from src.raster.colors import Color
from src.utils import fs
from src.utils.logging_config import pop_context, push_context, setup_logging
from src.utils.validators import FILTER_KINDS, FilterConfig, load_film_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("configs/film.v1.yaml")

SKY_TOP = Color(0.15, 0.35, 0.9)
SKY_HORIZON = Color(0.9, 0.75, 0.6)
SUN = Color(8.0, 6.5, 4.0)
GROUND_LIGHT = Color(0.8, 0.8, 0.75)
GROUND_DARK = Color(0.1, 0.1, 0.12)


def scene_radiance(u: float, v: float) -> Color:
    """Linear radiance of the procedural scene at normalized (u, v) in [0, 1)².

    v grows downwards; the horizon sits at v = 0.6.
    """
    horizon = 0.6
    if v >= horizon:
        # Ground: checkerboard that narrows towards the horizon
        depth = 1.0 / max(v - horizon, 1e-3)
        cell = int(np.floor(u * depth * 0.5)) + int(np.floor(depth))
        return GROUND_LIGHT if cell % 2 == 0 else GROUND_DARK

    du, dv = u - 0.7, v - 0.35
    if du * du + dv * dv <= 0.06 ** 2:
        return SUN
    return SKY_TOP.lerp(SKY_HORIZON, v / horizon)


def star_positions(width: int, height: int, count: int, rng: np.random.Generator) -> List[Tuple[float, float]]:
    """Random positions in the sky half of the image."""
    xs = rng.uniform(0.0, width, size=count)
    ys = rng.uniform(0.0, height * 0.3, size=count)
    return list(zip(xs.tolist(), ys.tolist()))


def render_pass(film: Film, spp: int, rng: np.random.Generator) -> int:
    """Add ``spp`` jittered samples for every pixel of the film.

    Returns
    -------
    int
        Number of samples added
    """
    width, height = film.resolution_x, film.resolution_y
    samples = 0
    for py in range(height):
        jitter = rng.random((width, spp, 2))
        for px in range(width):
            for sx, sy in jitter[px]:
                x = px + sx
                y = py + sy
                film.add(x, y, scene_radiance(x / width, y / height))
                samples += 1
    return samples


def render_film_main(
    config_path: Path,
    output_path: Path,
    passes: int = 1,
    spp: int = 4,
    progressive: bool = False,
    stars: int = 20,
    seed: Optional[int] = None,
    filter_kind: Optional[str] = None,
    radius: Optional[float] = None,
    dump_config: Optional[Path] = None,
) -> dict:
    """Render the scene and save the result.

    Parameters
    ----------
    config_path : Path
        film.v1 YAML config
    output_path : Path
        Final PNG path; progressive passes are saved next to it as
        ``<stem>_pass<N>.png``
    passes : int
        Number of sampling passes
    spp : int
        Samples per pixel per pass
    progressive : bool
        Save a PNG after every pass
    stars : int
        Number of splatted point lights
    seed : int, optional
        RNG seed
    filter_kind, radius : optional
        Override the configured filter kind and half-width
    dump_config : Path, optional
        Write the effective film.v1 config here before rendering

    Returns
    -------
    dict
        {output, samples, seconds, pass_outputs, config}
    """
    cfg = load_film_config(config_path)
    film = Film.from_config(cfg)
    if filter_kind is not None or radius is not None:
        kind = filter_kind or cfg.filter.kind
        if kind == cfg.filter.kind:
            radius_x = cfg.filter.radius_x if radius is None else radius
            radius_y = cfg.filter.radius_y if radius is None else radius
            params = cfg.filter.params
        else:
            radius_x = radius_y = radius
            params = {}
        film.set_filter(create_filter(kind, radius_x, radius_y, **params))
        cfg = cfg.model_copy(update={"filter": FilterConfig(
            kind=kind,
            radius_x=film.filter.resolution_x,
            radius_y=film.filter.resolution_y,
            params=params,
        )})

    if dump_config is not None:
        fs.ensure_dir(dump_config.parent)
        fs.atomic_yaml_dump(cfg.model_dump(by_alias=True), dump_config)
        logger.info(f"Wrote effective config to {dump_config}")

    rng = np.random.default_rng(seed)
    width, height = film.resolution_x, film.resolution_y
    star_list = star_positions(width, height, stars, rng)
    logger.info(f"Rendering {width}x{height}: {passes} pass(es) x {spp} spp, filter={film.filter!r}")

    pass_outputs = []
    total_samples = 0
    start = time.perf_counter()
    for index in range(1, passes + 1):
        push_context(pass_index=index)
        try:
            total_samples += render_pass(film, spp, rng)
            for sx, sy in star_list:
                film.splat(sx, sy, Color.WHITE * (1.0 / passes))
            logger.info(f"Pass {index}/{passes} done: {total_samples} samples")

            if progressive and index < passes:
                film.render_to_image(cfg.splat_scale)
                pass_path = output_path.with_name(f"{output_path.stem}_pass{index}{output_path.suffix}")
                film.image.save(pass_path)
                pass_outputs.append(str(pass_path))
        finally:
            pop_context(["pass_index"])

    film.render_to_image(cfg.splat_scale)
    fs.ensure_dir(output_path.parent)
    film.image.save(output_path)
    elapsed = time.perf_counter() - start
    logger.info(f"Saved {output_path} ({total_samples} samples in {elapsed:.2f}s)")

    return {
        "output": str(output_path),
        "samples": total_samples,
        "seconds": elapsed,
        "pass_outputs": pass_outputs,
        "config": None if dump_config is None else str(dump_config),
    }


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Render a procedural scene through the film accumulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Film config (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Output PNG path",
    )
    parser.add_argument(
        "--passes",
        type=int,
        default=1,
        help="Number of sampling passes (default: 1)",
    )
    parser.add_argument(
        "--spp",
        type=int,
        default=4,
        help="Samples per pixel per pass (default: 4)",
    )
    parser.add_argument(
        "--progressive",
        action="store_true",
        help="Save a PNG after every pass",
    )
    parser.add_argument(
        "--stars",
        type=int,
        default=20,
        help="Number of splatted point lights (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed",
    )
    parser.add_argument(
        "--filter",
        choices=FILTER_KINDS,
        default=None,
        help="Override the configured filter kind",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help="Override the filter half-width (both axes)",
    )
    parser.add_argument(
        "--dump-config",
        type=Path,
        default=None,
        help="Write the effective config (with overrides) to this YAML path",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.passes < 1 or args.spp < 1:
        print("Error: --passes and --spp must be >= 1", file=sys.stderr)
        return 1
    if not args.config.exists():
        print(f"Error: Config not found: {args.config}", file=sys.stderr)
        return 1

    cfg = load_film_config(args.config)
    log_kwargs = cfg.logging.setup_kwargs()
    if args.verbose:
        log_kwargs["log_level"] = "DEBUG"
    setup_logging(**log_kwargs, context={"app": "render_film"})

    result = render_film_main(
        config_path=args.config,
        output_path=args.output,
        passes=args.passes,
        spp=args.spp,
        progressive=args.progressive,
        stars=args.stars,
        seed=args.seed,
        filter_kind=args.filter,
        radius=args.radius,
        dump_config=args.dump_config,
    )

    print("\n=== Render Complete ===")
    print(f"Image: {result['output']}")
    for path in result["pass_outputs"]:
        print(f"Pass preview: {path}")
    if result["config"]:
        print(f"Config: {result['config']}")
    print(f"Samples: {result['samples']} in {result['seconds']:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
