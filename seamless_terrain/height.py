"""Biome-specific height remapping on top of the shared fractal field."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .biomes import Biome
from .config import TerrainConfig
from .noise import derive_seed, fractal2d

_DETAIL_SALT = 0x51D3


@dataclass(frozen=True)
class BiomeProfile:
    """Power-curve remap ``(n ** exponent * multiplier + detail) * scale * H + offset``."""

    exponent: float
    multiplier: float
    height_scale: float
    offset: float = 0.0
    detail_frequency: Optional[float] = None
    detail_weight: float = 0.0


BIOME_PROFILES: Dict[Biome, BiomeProfile] = {
    # Tall and rugged.
    Biome.MOUNTAINS: BiomeProfile(exponent=0.8, multiplier=1.8, height_scale=1.0),
    # Low and flat.
    Biome.PLAINS: BiomeProfile(exponent=1.5, multiplier=0.5, height_scale=0.4, offset=0.5),
    Biome.FOREST: BiomeProfile(exponent=1.2, multiplier=0.8, height_scale=0.6, offset=0.2),
    # Dunes ride on a secondary high-frequency layer.
    Biome.DESERT: BiomeProfile(
        exponent=1.3, multiplier=0.7, height_scale=0.5, offset=0.5,
        detail_frequency=0.05, detail_weight=0.2,
    ),
    Biome.SNOW: BiomeProfile(exponent=1.1, multiplier=0.9, height_scale=0.7, offset=1.0),
    # Near flat with micro-noise.
    Biome.SWAMP: BiomeProfile(
        exponent=2.0, multiplier=0.3, height_scale=0.2, offset=0.1,
        detail_frequency=0.1, detail_weight=0.1,
    ),
}


def base_noise(seed: int, x: float, z: float, config: TerrainConfig) -> float:
    frequency = config.height_frequency
    return fractal2d(
        seed, x * frequency, z * frequency, config.octaves, config.persistence, config.lacunarity
    )


def terrain_height(seed: int, x: float, z: float, biome: Biome, config: TerrainConfig) -> float:
    """Elevation at ``(x, z)`` for ``biome``; makes no continuity promise across chunks."""

    profile = BIOME_PROFILES[Biome(biome)]
    n = base_noise(seed, x, z, config)
    value = (n ** profile.exponent) * profile.multiplier
    if profile.detail_frequency is not None:
        frequency = profile.detail_frequency
        detail = fractal2d(
            derive_seed(seed, _DETAIL_SALT),
            x * frequency,
            z * frequency,
            config.octaves,
            config.persistence,
            config.lacunarity,
        )
        value += detail * profile.detail_weight
    return value * profile.height_scale * config.terrain_height + profile.offset


__all__ = ["BiomeProfile", "BIOME_PROFILES", "base_noise", "terrain_height"]
