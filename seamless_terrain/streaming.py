"""Chunk streaming helper."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .grid import ChunkCoord, HeightGrid
from .terrain_generator import TerrainGenerator

LOGGER = logging.getLogger(__name__)


@dataclass
class ChunkStreamer:
    generator: TerrainGenerator
    visible_radius: int = 2
    batch_size: Optional[int] = 2
    loaded: Dict[ChunkCoord, HeightGrid] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.visible_radius < 0:
            raise ValueError("visible_radius must not be negative")
        if self.batch_size is not None and self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    def chunks_around(self, position: Tuple[float, float], radius: Optional[int] = None) -> List[ChunkCoord]:
        """Chunks within ``radius`` of the one containing ``position``, nearest first."""

        radius = self.visible_radius if radius is None else radius
        x, z = position
        center = ChunkCoord.from_world(x, z, self.generator.config.chunk_size)
        desired = [
            center.offset(dx, dz)
            for dx in range(-radius, radius + 1)
            for dz in range(-radius, radius + 1)
        ]
        desired.sort(key=lambda coord: (math.hypot(coord.x - center.x, coord.z - center.z), coord))
        return desired

    def update(self, position: Tuple[float, float]) -> List[ChunkCoord]:
        """Unload chunks out of range, then load the next batch of missing ones; returns what loaded."""

        desired = self.chunks_around(position)
        wanted = set(desired)
        to_unload = [coord for coord in self.loaded if coord not in wanted]
        for coord in to_unload:
            del self.loaded[coord]
            self.generator.unload_chunk(coord)
        missing = [coord for coord in desired if coord not in self.loaded]
        batch = missing if self.batch_size is None else missing[: self.batch_size]
        for coord in batch:
            self.loaded[coord] = self.generator.build_height_grid(coord)
        if to_unload or batch:
            LOGGER.info(
                "Streaming: loaded %d, unloaded %d, %d pending",
                len(batch),
                len(to_unload),
                len(missing) - len(batch),
            )
        return batch

    def pending(self, position: Tuple[float, float]) -> List[ChunkCoord]:
        return [coord for coord in self.chunks_around(position) if coord not in self.loaded]

    def band_summary(self) -> str:
        keys = sorted(self.loaded.keys())
        return ", ".join(self.loaded[k].summary() for k in keys)


__all__ = ["ChunkStreamer"]
