"""
Command line entry point.

Usage:
    py-worldgen --seed 3k9x --continent-count 20 --path 10 400
"""

import argparse
import sys
from collections import Counter
from typing import List, Optional

import structlog

from .config import settings
from .core.errors import WorldGenerationError
from .core.navigation import build_graph
from .core.pathfinding import find_path, path_cost
from .core.world_generator import WorldGenerationParams, generate
from .utils.logging import configure_logging
from .utils.random import create_prng

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    defaults = WorldGenerationParams()
    parser = argparse.ArgumentParser(prog="py-worldgen",
                                     description="Generate a strategy map height field")
    parser.add_argument("--width", type=float, default=defaults.width)
    parser.add_argument("--height", type=float, default=defaults.height)
    parser.add_argument("--plate-count", type=int, default=defaults.plate_count)
    parser.add_argument("--plate-size", type=int, default=defaults.plate_size)
    parser.add_argument("--continent-count", type=int, default=defaults.continent_count)
    parser.add_argument("--continent-size", type=int, default=defaults.continent_size)
    parser.add_argument("--ocean-count", type=int, default=defaults.ocean_count)
    parser.add_argument("--ocean-size", type=int, default=defaults.ocean_size)
    parser.add_argument("--seed", help="base36 seed; a random one is drawn when omitted")
    parser.add_argument("--path", nargs=2, type=int, metavar=("START", "GOAL"),
                        help="also find a path between two cells")
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--log-format", default="console", choices=("console", "json"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        config = WorldGenerationParams(
            width=args.width, height=args.height,
            plate_count=args.plate_count, plate_size=args.plate_size,
            continent_count=args.continent_count, continent_size=args.continent_size,
            ocean_count=args.ocean_count, ocean_size=args.ocean_size,
        )
        prng = create_prng(args.seed)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(f"seed: {prng.seed}")
    try:
        world = generate(config, prng)
    except WorldGenerationError as e:
        logger.error("Generation failed", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1

    kinds = Counter(edge.kind.value for edge in world.boundary_edges)
    print(f"cells: {world.cell_count}")
    print(f"land fraction: {world.land_fraction():.3f}")
    print(f"plates: {len(world.plates)}")
    print("boundaries: " + ", ".join(f"{kind}={kinds[kind]}"
                                     for kind in ("convergent", "divergent", "transform")))

    if args.path:
        start, goal = args.path
        graph = build_graph(world)
        try:
            path = find_path(graph, start, goal)
        except WorldGenerationError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        if path is None:
            print(f"path {start} -> {goal}: unreachable")
        else:
            print(f"path {start} -> {goal} (goal first, cost {path_cost(graph, path):.2f}): "
                  + " ".join(str(cell) for cell in path))
    return 0


if __name__ == "__main__":
    sys.exit(main())
