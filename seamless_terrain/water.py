"""Water surface placement for wet biomes."""
from __future__ import annotations

from typing import Optional

from .biomes import Biome
from .config import TerrainConfig
from .grid import HeightGrid

WATER_BIOMES = frozenset({Biome.SWAMP, Biome.FOREST})


def water_level(grid: HeightGrid, config: TerrainConfig) -> Optional[float]:
    """Surface height for a chunk's standing water, or ``None`` when it has none.

    Only swamp and forest chunks hold water, and only when some vertex dips
    below a fifth of the terrain height. The surface sits just above the
    lowest vertex but never below 15% of the terrain height.
    """

    if grid.biome not in WATER_BIOMES:
        return None
    lowest = grid.min_height
    if lowest >= config.terrain_height * 0.2:
        return None
    return max(lowest + 0.1, config.terrain_height * 0.15)


__all__ = ["WATER_BIOMES", "water_level"]
