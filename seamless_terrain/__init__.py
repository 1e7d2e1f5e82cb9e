"""Seamless chunked terrain package.

This package bundles the deterministic core of a streamed height-map
world: seeded noise, biome classification, per-biome height curves and the
border protocol that keeps shared chunk edges and corners identical no
matter which chunk is generated first.
"""

from .errors import CacheInconsistency, GenerationFailure, InvalidConfiguration, TerrainError
from .config import TerrainConfig, load_terrain_config
from .noise import derive_seed, fractal2d, noise2d
from .biomes import Biome, BiomeClassifier, biome_details, classify
from .height import terrain_height
from .grid import ChunkCoord, Corner, Edge, HeightGrid
from .borders import BorderSet, BorderWrite, propagate_to_neighbors
from .border_cache import BorderCache
from .resolution import BorderResolver, ResolvedBorders
from .assembler import HeightMapAssembler, smooth_interior
from .lifecycle import ChunkLifecycleManager
from .terrain_generator import TerrainGenerator
from .streaming import ChunkStreamer
from .water import water_level

__all__ = [
    "TerrainError",
    "InvalidConfiguration",
    "GenerationFailure",
    "CacheInconsistency",
    "TerrainConfig",
    "load_terrain_config",
    "derive_seed",
    "noise2d",
    "fractal2d",
    "Biome",
    "BiomeClassifier",
    "biome_details",
    "classify",
    "terrain_height",
    "ChunkCoord",
    "Corner",
    "Edge",
    "HeightGrid",
    "BorderSet",
    "BorderWrite",
    "propagate_to_neighbors",
    "BorderCache",
    "BorderResolver",
    "ResolvedBorders",
    "HeightMapAssembler",
    "smooth_interior",
    "ChunkLifecycleManager",
    "TerrainGenerator",
    "ChunkStreamer",
    "water_level",
]
