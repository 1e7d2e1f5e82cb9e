"""Tests for the per-biome height curves."""
from __future__ import annotations

import random

import pytest

from seamless_terrain.biomes import Biome
from seamless_terrain.config import TerrainConfig
from seamless_terrain.height import BIOME_PROFILES, terrain_height


@pytest.mark.parametrize("biome", list(Biome))
def test_heights_stay_inside_each_profile_envelope(biome: Biome) -> None:
    config = TerrainConfig(world_seed=77)
    profile = BIOME_PROFILES[biome]
    # //1.- The noise and detail layers are both in [0, 1], which bounds the remapped value.
    ceiling = (profile.multiplier + profile.detail_weight) * profile.height_scale * config.terrain_height
    rng = random.Random(biome.value)
    for _ in range(500):
        x, z = rng.uniform(-2000, 2000), rng.uniform(-2000, 2000)
        height = terrain_height(config.world_seed, x, z, biome, config)
        assert profile.offset - 1e-9 <= height <= profile.offset + ceiling + 1e-9


def test_height_is_deterministic() -> None:
    config = TerrainConfig(world_seed=5)
    assert terrain_height(5, 12.5, -3.0, Biome.FOREST, config) == terrain_height(
        5, 12.5, -3.0, Biome.FOREST, config
    )


def test_height_accepts_biome_names() -> None:
    config = TerrainConfig(world_seed=5)
    assert terrain_height(5, 1.0, 2.0, "desert", config) == terrain_height(5, 1.0, 2.0, Biome.DESERT, config)


def test_snow_sits_above_its_offset_and_swamp_stays_low() -> None:
    config = TerrainConfig(world_seed=9)
    for x in range(0, 200, 20):
        assert terrain_height(9, float(x), 0.0, Biome.SNOW, config) >= 1.0
        swamp = terrain_height(9, float(x), 0.0, Biome.SWAMP, config)
        assert swamp <= 0.1 + (0.3 + 0.1) * 0.2 * config.terrain_height + 1e-9
