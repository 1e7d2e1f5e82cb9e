"""High-level chunk generation entry point."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .assembler import HeightMapAssembler
from .biomes import Biome, BiomeClassifier
from .border_cache import BorderCache
from .config import TerrainConfig
from .errors import GenerationFailure
from .grid import ChunkCoord, Edge, HeightGrid
from .height import terrain_height
from .lifecycle import ChunkLifecycleManager
from .resolution import BorderResolver, HeightFunction

LOGGER = logging.getLogger(__name__)

FALLBACK_BIOME = Biome.PLAINS


class TerrainGenerator:
    """Generates chunk height grids on demand while caching shared borders.

    The generator owns one world: the seed and all tuning constants come
    from ``config`` and are fixed for its lifetime. Every collaborator
    (classifier, border cache, resolver, assembler, lifecycle manager) is
    created here and exposed as an attribute for inspection and tests.
    """

    def __init__(
        self,
        config: Optional[TerrainConfig] = None,
        *,
        height_function: HeightFunction = terrain_height,
    ) -> None:
        self.config = config or TerrainConfig()
        self.classifier = BiomeClassifier(self.config)
        self.cache = BorderCache(self.config.vertices_per_side)
        self.lifecycle = ChunkLifecycleManager(self.cache)
        self.resolver = BorderResolver(
            self.config,
            self.cache,
            self.classifier,
            height_function=height_function,
            live_grids=self.lifecycle.live_grid,
        )
        self.assembler = HeightMapAssembler(
            self.config,
            self.cache,
            self.classifier,
            height_function=height_function,
            resolver=self.resolver,
        )

    @classmethod
    def for_seed(cls, seed: int, **overrides: object) -> "TerrainGenerator":
        payload = dict(overrides)
        payload["world_seed"] = seed
        return cls(TerrainConfig.from_mapping(payload))

    @property
    def seed(self) -> int:
        return self.config.world_seed

    def biome_at(self, x: float, z: float) -> Biome:
        return self.classifier.biome_at(x, z)

    def chunk_biome(self, coord: Tuple[int, int]) -> Biome:
        x, z = ChunkCoord(*coord).center(self.config.chunk_size)
        return self.classifier.biome_at(x, z)

    def neighbor_biomes(self, coord: Tuple[int, int]) -> Dict[Edge, Biome]:
        coord = ChunkCoord(*coord)
        return {edge: self.chunk_biome(coord.neighbor(edge)) for edge in Edge}

    def build_height_grid(self, coord: Tuple[int, int]) -> HeightGrid:
        """Return the grid for ``coord``; never raises for per-chunk failures."""

        coord = ChunkCoord(*coord)
        # //1.- Build and register under one hold so eviction never sees a half-registered chunk.
        with self.cache.locked(coord.neighborhood()):
            try:
                biome = self.chunk_biome(coord)
                neighbors = self.neighbor_biomes(coord)
            except Exception as exc:
                failure = GenerationFailure(coord, exc)
                LOGGER.exception("%s; classifying as %s", failure, FALLBACK_BIOME.value)
                grid = self.assembler.build_fallback_grid(coord, FALLBACK_BIOME, {}, failure)
            else:
                grid = self.assembler.build_height_grid(coord, biome, neighbors)
            self.lifecycle.register(grid)
        LOGGER.debug("Built chunk %s", grid.summary())
        # //2.- This chunk may have been the last neighbour a pending eviction was waiting on.
        self.lifecycle.evict_ready()
        return grid

    def unload_chunk(self, coord: Tuple[int, int]) -> bool:
        unloaded = self.lifecycle.unload(coord)
        if unloaded:
            self.lifecycle.evict_ready()
        return unloaded

    def reset(self) -> None:
        """Forget every cached border, biome and live grid; not safe during generation."""

        self.cache.clear()
        self.classifier.clear_cache()
        self.lifecycle.reset()
        LOGGER.info("Terrain caches reset for seed %s", self.seed)


__all__ = ["TerrainGenerator"]
