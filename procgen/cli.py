from __future__ import annotations

import argparse
import logging
import random
import sys

from procgen.config import (
    APP_VERSION,
    DEFAULT_AMPLITUDE,
    DEFAULT_CHUNK_DEPTH,
    DEFAULT_CHUNK_WIDTH,
    DEFAULT_EROSION_ITERATIONS,
    DEFAULT_FREQUENCY,
    DEFAULT_GAIN,
    DEFAULT_GRASS_START,
    DEFAULT_LACUNARITY,
    DEFAULT_MAX_HEIGHT,
    DEFAULT_NOISE,
    DEFAULT_NORMALIZE_BIAS,
    DEFAULT_OCTAVES,
    DEFAULT_RADIUS,
    DEFAULT_ROCK_START,
    DEFAULT_SAND_START,
    DEFAULT_SCALE,
    DEFAULT_SEED,
    DEFAULT_SNOW_START,
)
from procgen.errors import ConfigError, ProcgenError
from procgen.log import setup_logging
from procgen.world.mesh_builder import TILE_NAMES
from procgen.world.params import NOISE_MODES, ErosionParams, NoiseParams, TerrainParams, TextureThresholds
from procgen.world.world import TerrainGenerator

logger = logging.getLogger("procgen.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="procgen", description=f"Chunked erodible terrain generator v{APP_VERSION}")
    p.add_argument("--seed", default=str(DEFAULT_SEED), help=f"int seed or 'random' (default: {DEFAULT_SEED})")
    p.add_argument("--width", type=int, default=DEFAULT_CHUNK_WIDTH, help="cells per chunk along X")
    p.add_argument("--depth", type=int, default=DEFAULT_CHUNK_DEPTH, help="cells per chunk along Z")
    p.add_argument("--max-height", type=float, default=DEFAULT_MAX_HEIGHT, help="world height range of the terrain")
    p.add_argument("--radius", type=int, default=DEFAULT_RADIUS, help="generation radius (1 = 1 chunk, 2 = 3x3, 3 = 5x5)")
    p.add_argument("--erosion-iterations", type=int, default=DEFAULT_EROSION_ITERATIONS, help="erosion droplets per chunk (0 = off)")
    p.add_argument("--noise", choices=list(NOISE_MODES), default=DEFAULT_NOISE, help="noise backend (fast or simplex)")
    p.add_argument("--frequency", type=float, default=DEFAULT_FREQUENCY)
    p.add_argument("--amplitude", type=float, default=DEFAULT_AMPLITUDE)
    p.add_argument("--octaves", type=int, default=DEFAULT_OCTAVES)
    p.add_argument("--lacunarity", type=float, default=DEFAULT_LACUNARITY)
    p.add_argument("--gain", type=float, default=DEFAULT_GAIN)
    p.add_argument("--scale", type=float, default=DEFAULT_SCALE, help="world units -> noise units")
    p.add_argument("--normalize-bias", type=float, default=DEFAULT_NORMALIZE_BIAS)
    p.add_argument("--snow", type=float, default=DEFAULT_SNOW_START, help="snow band start (world height)")
    p.add_argument("--rock", type=float, default=DEFAULT_ROCK_START, help="rock band start (world height)")
    p.add_argument("--grass", type=float, default=DEFAULT_GRASS_START, help="grass band start (world height)")
    p.add_argument("--sand", type=float, default=DEFAULT_SAND_START, help="sand band start (world height)")
    p.add_argument("--headless", action="store_true", help="generate and print a summary without opening a window")
    p.add_argument("--wireframe", action="store_true", help="render wireframe")
    p.add_argument("--debug", action="store_true", help="verbose logging")
    return p.parse_args(argv)


def params_from_args(args: argparse.Namespace) -> TerrainParams:
    if isinstance(args.seed, str) and args.seed.lower() == "random":
        seed = random.randint(0, 2**31 - 1)
    else:
        try:
            seed = int(args.seed)
        except ValueError as e:
            raise ConfigError(f"seed must be an integer or 'random', got {args.seed!r}") from e

    return TerrainParams(
        seed=seed,
        chunk_width=int(args.width),
        chunk_depth=int(args.depth),
        max_height=float(args.max_height),
        radius=int(args.radius),
        noise=NoiseParams(
            frequency=float(args.frequency),
            amplitude=float(args.amplitude),
            octaves=int(args.octaves),
            lacunarity=float(args.lacunarity),
            gain=float(args.gain),
            scale=float(args.scale),
            normalize_bias=float(args.normalize_bias),
            mode=str(args.noise),
        ),
        erosion=ErosionParams(iterations=int(args.erosion_iterations)),
        thresholds=TextureThresholds(
            snow=float(args.snow),
            rock=float(args.rock),
            grass=float(args.grass),
            sand=float(args.sand),
        ),
    )


def run_headless(params: TerrainParams) -> None:
    results = TerrainGenerator(params).generate()
    for r in results:
        counts = [int((r.mesh.tiles == t).sum()) for t in range(len(TILE_NAMES))]
        tiles = " ".join(f"{name}={n}" for name, n in zip(TILE_NAMES, counts))
        logger.info(
            "chunk (%d, %d) bounds=[%g, %g]x[%g, %g] vertices=%d triangles=%d y=[%.2f, %.2f] %s",
            r.coord.cx, r.coord.cz, *r.bounds,
            r.mesh.vertex_count, r.mesh.triangle_count,
            float(r.mesh.bounds_min[1]), float(r.mesh.bounds_max[1]), tiles,
        )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(debug=bool(args.debug))

    try:
        params = params_from_args(args).validate()
        if args.headless:
            run_headless(params)
        else:
            from procgen.app import run_app  # pygame/GL only when a window is wanted

            run_app(params, wireframe=bool(args.wireframe))
    except ConfigError as e:
        logger.error("invalid configuration: %s", e)
        return 2
    except ProcgenError as e:
        logger.error("generation failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
