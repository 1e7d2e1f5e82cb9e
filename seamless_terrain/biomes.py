"""Seeded biome classification from temperature and humidity fields."""
from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .config import TerrainConfig
from .noise import derive_seed, fractal2d

_TEMPERATURE_SALT = 0x7E3A
_HUMIDITY_SALT = 0x4B1D
_MOUNTAIN_SALT = 0x3C0F


class Biome(str, Enum):
    PLAINS = "plains"
    FOREST = "forest"
    MOUNTAINS = "mountains"
    DESERT = "desert"
    SNOW = "snow"
    SWAMP = "swamp"


# //1.- Static descriptive data consumed by UI and placement collaborators.
@dataclass(frozen=True)
class BiomeDetails:
    name: str
    description: str
    color: str
    temperature_c: float
    humidity: float
    resources: Tuple[str, ...]


_BIOME_DETAILS: Dict[Biome, BiomeDetails] = {
    Biome.PLAINS: BiomeDetails(
        "Plains", "Wide grassland with sparse vegetation.", "#8BC34A", 22.0, 0.4, ("food", "wood"),
    ),
    Biome.FOREST: BiomeDetails(
        "Forest", "Dense vegetation with many trees and wildlife.", "#4CAF50", 18.0, 0.7,
        ("wood", "animals", "fruit"),
    ),
    Biome.MOUNTAINS: BiomeDetails(
        "Mountains", "High rocky ground with steep slopes.", "#9E9E9E", 5.0, 0.3,
        ("stone", "ore", "crystals"),
    ),
    Biome.DESERT: BiomeDetails(
        "Desert", "Arid dunes with little vegetation.", "#FFC107", 35.0, 0.1, ("sand", "rare minerals"),
    ),
    Biome.SNOW: BiomeDetails(
        "Snow", "Frozen land covered by snow and ice.", "#E0F7FA", -10.0, 0.2, ("ice", "crystals"),
    ),
    Biome.SWAMP: BiomeDetails(
        "Swamp", "Wet, muddy lowland with dense plants.", "#795548", 24.0, 0.9,
        ("rare plants", "organic matter"),
    ),
}


def biome_details(biome: Biome) -> BiomeDetails:
    return _BIOME_DETAILS[Biome(biome)]


def all_biome_types() -> Tuple[Biome, ...]:
    return tuple(Biome)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


# //2.- Whittaker-style lookup; thresholds are fixed so classification stays reproducible.
def classify(temperature: float, humidity: float) -> Biome:
    if temperature < 0.2:
        return Biome.SNOW
    if temperature < 0.4:
        return Biome.FOREST if humidity > 0.5 else Biome.PLAINS
    if temperature < 0.7:
        if humidity >= 0.6:
            return Biome.SWAMP
        if humidity >= 0.3:
            return Biome.FOREST
        return Biome.PLAINS
    if humidity >= 0.6:
        return Biome.SWAMP
    if humidity >= 0.3:
        return Biome.PLAINS
    return Biome.DESERT


class BiomeClassifier:
    """Maps world positions to biomes, memoised per integer tile."""

    def __init__(self, config: TerrainConfig) -> None:
        # //3.- Independent sub-seeds keep temperature and humidity from mirroring each other.
        self._config = config
        self._temperature_seed = derive_seed(config.world_seed, _TEMPERATURE_SALT)
        self._humidity_seed = derive_seed(config.world_seed, _HUMIDITY_SALT)
        self._mountain_seed = derive_seed(config.world_seed, _MOUNTAIN_SALT)
        # //4.- Append-only memo keyed by floored coordinates; cleared only wholesale.
        self._cache: Dict[Tuple[int, int], Biome] = {}
        self._lock = threading.Lock()

    @property
    def seed(self) -> int:
        return self._config.world_seed

    def latitude_factor(self, z: float) -> float:
        return 1.0 - abs(z * self._config.latitude_scale) * 2.0

    def temperature(self, x: float, z: float) -> float:
        scale = self._config.temperature_scale
        base = fractal2d(self._temperature_seed, x * scale, z * scale, 3, 0.5, 2.0)
        return _clamp01(0.7 * base + 0.3 * self.latitude_factor(z))

    def humidity(self, x: float, z: float) -> float:
        scale = self._config.humidity_scale
        base = fractal2d(self._humidity_seed, x * scale, z * scale, 4, 0.4, 2.0)
        return _clamp01(0.8 * base + 0.2 * self.temperature(x, z))

    def _mountainous(self, x: float, z: float) -> bool:
        scale = self._config.biome_scale * 2.0
        return fractal2d(self._mountain_seed, x * scale, z * scale, 2, 0.5, 2.0) > 0.7

    def _classify_uncached(self, x: float, z: float) -> Biome:
        if self._config.mountain_override and self._mountainous(x, z):
            return Biome.MOUNTAINS
        return classify(self.temperature(x, z), self.humidity(x, z))

    def biome_at(self, x: float, z: float) -> Biome:
        key = (int(math.floor(x)), int(math.floor(z)))
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached
        # The value is a pure function of the key, so racing writers store the same biome.
        biome = self._classify_uncached(float(key[0]), float(key[1]))
        with self._lock:
            return self._cache.setdefault(key, biome)

    def cached_tiles(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()


__all__ = [
    "Biome",
    "BiomeDetails",
    "BiomeClassifier",
    "biome_details",
    "all_biome_types",
    "classify",
]
