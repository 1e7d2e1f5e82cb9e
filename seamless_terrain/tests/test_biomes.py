"""Tests for biome thresholds and the memoised classifier."""
from __future__ import annotations

import random

import pytest

from seamless_terrain.biomes import Biome, BiomeClassifier, all_biome_types, biome_details, classify
from seamless_terrain.config import TerrainConfig


@pytest.mark.parametrize(
    "temperature, humidity, expected",
    [
        (0.1, 0.9, Biome.SNOW),
        (0.3, 0.6, Biome.FOREST),
        (0.3, 0.5, Biome.PLAINS),
        (0.5, 0.6, Biome.SWAMP),
        (0.5, 0.3, Biome.FOREST),
        (0.5, 0.29, Biome.PLAINS),
        (0.8, 0.6, Biome.SWAMP),
        (0.8, 0.3, Biome.PLAINS),
        (0.8, 0.1, Biome.DESERT),
    ],
)
def test_classify_thresholds(temperature: float, humidity: float, expected: Biome) -> None:
    assert classify(temperature, humidity) is expected


def test_classifier_is_deterministic_across_instances() -> None:
    config = TerrainConfig(world_seed=314)
    first = BiomeClassifier(config)
    second = BiomeClassifier(config)
    rng = random.Random(1)
    for _ in range(200):
        x, z = rng.uniform(-5000, 5000), rng.uniform(-5000, 5000)
        assert first.biome_at(x, z) is second.biome_at(x, z)


def test_biome_lookup_is_memoised_per_integer_tile() -> None:
    classifier = BiomeClassifier(TerrainConfig(world_seed=2))
    first = classifier.biome_at(10.2, 3.7)
    second = classifier.biome_at(10.9, 3.1)
    assert first is second
    assert classifier.cached_tiles() == 1
    classifier.clear_cache()
    assert classifier.cached_tiles() == 0


def test_mountains_require_the_override() -> None:
    classifier = BiomeClassifier(TerrainConfig(world_seed=8))
    rng = random.Random(3)
    biomes = {classifier.biome_at(rng.uniform(-1e4, 1e4), rng.uniform(-1e4, 1e4)) for _ in range(300)}
    assert Biome.MOUNTAINS not in biomes


def test_mountain_override_takes_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    enabled = BiomeClassifier(TerrainConfig(world_seed=8, mountain_override=True))
    disabled = BiomeClassifier(TerrainConfig(world_seed=8))
    monkeypatch.setattr(enabled, "_mountainous", lambda x, z: True)
    monkeypatch.setattr(disabled, "_mountainous", lambda x, z: True)
    assert enabled.biome_at(40.0, 40.0) is Biome.MOUNTAINS
    assert disabled.biome_at(40.0, 40.0) is not Biome.MOUNTAINS


def test_climate_fields_are_normalised() -> None:
    classifier = BiomeClassifier(TerrainConfig(world_seed=21))
    for x, z in [(0.0, 0.0), (1e4, -3e4), (-250.0, 9000.0)]:
        assert 0.0 <= classifier.temperature(x, z) <= 1.0
        assert 0.0 <= classifier.humidity(x, z) <= 1.0
    assert classifier.latitude_factor(0.0) == 1.0
    assert classifier.latitude_factor(5000.0) == pytest.approx(0.0)


def test_biome_details_cover_every_biome() -> None:
    assert len(all_biome_types()) == 6
    for biome in all_biome_types():
        details = biome_details(biome)
        assert details.name.lower() == biome.value
        assert details.color.startswith("#")
        assert details.resources
