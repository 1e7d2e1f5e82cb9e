#!/usr/bin/env python3
"""Generate a square region in shuffled order and verify every shared border matches."""
from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from seamless_terrain import ChunkCoord, Corner, Edge, HeightGrid, TerrainGenerator  # noqa: E402
from seamless_terrain.config import load_terrain_config  # noqa: E402
from seamless_terrain.borders import corner_sharers  # noqa: E402

LOGGER = logging.getLogger("check_seams")


def region(radius: int) -> List[ChunkCoord]:
    return [ChunkCoord(x, z) for x in range(-radius, radius + 1) for z in range(-radius, radius + 1)]


def generate(generator: TerrainGenerator, coords: Sequence[ChunkCoord]) -> Dict[ChunkCoord, HeightGrid]:
    return {coord: generator.build_height_grid(coord) for coord in coords}


def seam_mismatches(grids: Dict[ChunkCoord, HeightGrid], tolerance: float = 0.0) -> List[str]:
    """Describe every shared edge or corner whose copies differ by more than ``tolerance``."""

    problems: List[str] = []
    for coord, grid in sorted(grids.items()):
        # //1.- Compare each EAST and NORTH edge with the neighbour that owns the mirror.
        for edge in (Edge.EAST, Edge.NORTH):
            other = grids.get(coord.neighbor(edge))
            if other is None:
                continue
            mine = grid.edge(edge)
            theirs = other.edge(edge.opposite)
            delta = max(abs(a - b) for a, b in zip(mine, theirs))
            if delta > tolerance:
                problems.append(f"{tuple(coord)} {edge.value} edge differs by {delta:.6g}")
        # //2.- Compare the NE corner across all four chunks around its lattice point.
        values = [
            grids[sharer].corner(name)
            for sharer, name in corner_sharers(coord, Corner.NE)
            if sharer in grids
        ]
        if len(values) > 1 and max(values) - min(values) > tolerance:
            problems.append(f"{tuple(coord)} ne corner spread {max(values) - min(values):.6g}")
    return problems


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Check chunk seams for a seed.")
    ap.add_argument("--config", type=str, default=None, help="Optional JSON file with terrain settings")
    ap.add_argument("--seed", type=int, default=None, help="World seed (overrides config)")
    ap.add_argument("--radius", type=int, default=2, help="Region radius in chunks")
    ap.add_argument("--order-seed", type=int, default=0, help="Seed for the shuffled generation order")
    ap.add_argument("--tolerance", type=float, default=0.0, help="Allowed difference between copies")
    ap.add_argument("--verbose", action="store_true", help="Log resolution details")
    return ap.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s %(message)s",
    )
    config = load_terrain_config(args.config)
    if args.seed is not None:
        payload = config.as_dict()
        payload["world_seed"] = args.seed
        config = load_terrain_config(mapping=payload)

    coords = region(args.radius)
    random.Random(args.order_seed).shuffle(coords)
    generator = TerrainGenerator(config)
    grids = generate(generator, coords)

    problems = seam_mismatches(grids, args.tolerance)
    fallbacks: List[Tuple[int, int]] = [tuple(c) for c, g in sorted(grids.items()) if g.is_fallback]
    for problem in problems:
        LOGGER.error("%s", problem)
    LOGGER.info(
        "Checked %d chunks for seed %s: %d mismatches, %d fallbacks, %d cache inconsistencies",
        len(grids),
        config.world_seed,
        len(problems),
        len(fallbacks),
        len(generator.cache.inconsistencies),
    )
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
