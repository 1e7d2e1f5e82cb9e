"""Configuration helpers for deterministic chunked terrain generation."""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidConfiguration


# //1.- Bundle every tuning constant so a world is fully described by one immutable value.
@dataclass(frozen=True)
class TerrainConfig:
    """Seed, grid resolution and tuning constants for a streamed world."""

    world_seed: int = 0
    chunk_size: float = 16.0
    vertices_per_side: int = 33
    terrain_height: float = 15.0

    # Height noise.
    height_frequency: float = 0.015
    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0

    # Biome classification.
    temperature_scale: float = 0.001
    humidity_scale: float = 0.001
    latitude_scale: float = 0.0001
    biome_scale: float = 0.005
    mountain_override: bool = False

    # Interior blending, expressed as fractions of the chunk size.
    biome_blend_zone: float = 0.3
    edge_influence_zone: float = 0.4
    corner_influence_zone: float = 0.3
    corner_weight: float = 0.5
    influence_falloff_power: float = 2.0
    smoothing_blend: float = 0.5

    # Border protocol tolerances, in world height units.
    smoothing_tolerance: float = 0.1
    corner_agreement_tolerance: float = 0.05
    corner_perturbation: float = 0.04
    edge_bias_amplitude: float = 0.05
    edge_bias_frequency: float = 0.2

    fallback_elevation: float = 0.5

    def __post_init__(self) -> None:
        # //2.- Reject constants that would make noise, grids or blends meaningless.
        if self.chunk_size <= 0:
            raise InvalidConfiguration("chunk_size must be positive")
        if self.vertices_per_side < 3:
            raise InvalidConfiguration("vertices_per_side must be >= 3")
        if self.terrain_height <= 0:
            raise InvalidConfiguration("terrain_height must be positive")
        if self.octaves < 1:
            raise InvalidConfiguration("octaves must be >= 1")
        if self.persistence <= 0 or self.lacunarity <= 0:
            raise InvalidConfiguration("persistence and lacunarity must be positive")
        for name in ("height_frequency", "temperature_scale", "humidity_scale", "biome_scale"):
            if getattr(self, name) <= 0:
                raise InvalidConfiguration(f"{name} must be positive")
        for name in ("biome_blend_zone", "edge_influence_zone", "corner_influence_zone"):
            value = getattr(self, name)
            if not 0.0 < value <= 0.5:
                raise InvalidConfiguration(f"{name} must be within (0, 0.5]")
        if not 0.0 < self.corner_weight <= 1.0:
            raise InvalidConfiguration("corner_weight must be within (0, 1]")
        if self.influence_falloff_power <= 0:
            raise InvalidConfiguration("influence_falloff_power must be positive")
        if not 0.0 <= self.smoothing_blend <= 1.0:
            raise InvalidConfiguration("smoothing_blend must be within [0, 1]")
        if self.smoothing_tolerance <= 0:
            raise InvalidConfiguration("smoothing_tolerance must be positive")
        # //3.- Keep the corner heuristics inside the error budget the smoothing pass absorbs.
        if not 0.0 <= self.corner_perturbation <= 0.5 * self.smoothing_tolerance:
            raise InvalidConfiguration("corner_perturbation must not exceed half the smoothing tolerance")
        if not 0.0 <= self.corner_agreement_tolerance <= self.smoothing_tolerance:
            raise InvalidConfiguration("corner_agreement_tolerance must not exceed the smoothing tolerance")
        if self.edge_bias_amplitude < 0:
            raise InvalidConfiguration("edge_bias_amplitude must not be negative")

    @property
    def vertex_spacing(self) -> float:
        return self.chunk_size / (self.vertices_per_side - 1)

    @property
    def cells_per_side(self) -> int:
        return self.vertices_per_side - 1

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # //4.- Build a config from a loose mapping, ignoring keys that are not tuning constants.
    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "TerrainConfig":
        if not payload:
            return cls()
        known = {item.name: item for item in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in payload.items():
            item = known.get(key)
            if item is None:
                continue
            kwargs[key] = _coerce(item.type, value, key)
        return cls(**kwargs)

    # //5.- Allow overriding the seed and grid through environment variables for integration runs.
    @classmethod
    def from_environment(
        cls,
        prefix: str = "TERRAIN",
        env: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, Any]] = None,
    ) -> "TerrainConfig":
        source = env if env is not None else os.environ
        mapping: Dict[str, Any] = dict(base or {})
        seed = source.get(f"{prefix}_SEED")
        chunk_size = source.get(f"{prefix}_CHUNK_SIZE")
        vertices = source.get(f"{prefix}_VERTICES_PER_SIDE")
        if seed is not None:
            mapping["world_seed"] = seed
        if chunk_size is not None:
            mapping["chunk_size"] = chunk_size
        if vertices is not None:
            mapping["vertices_per_side"] = vertices
        return cls.from_mapping(mapping)


def _coerce(type_name: Any, value: Any, key: str) -> Any:
    # Field types are strings because of postponed annotations.
    kind = str(type_name)
    try:
        if kind == "bool":
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
        if kind == "int":
            return int(value)
        if kind == "float":
            return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"{key} has invalid value {value!r}") from exc
    return value


def _read_json_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise InvalidConfiguration(f"{path} must contain a JSON object")
    return payload


# //6.- Canonical accessor: explicit mapping, then JSON file, then environment overrides.
def load_terrain_config(
    path: Optional[str] = None,
    mapping: Optional[Mapping[str, Any]] = None,
    *,
    env_prefix: Optional[str] = "TERRAIN",
    env: Optional[Mapping[str, str]] = None,
) -> TerrainConfig:
    if mapping is not None:
        return TerrainConfig.from_mapping(mapping)
    payload: Dict[str, Any] = _read_json_config(path) if path else {}
    if env_prefix is None:
        return TerrainConfig.from_mapping(payload)
    return TerrainConfig.from_environment(prefix=env_prefix, env=env, base=payload)


__all__ = ["TerrainConfig", "load_terrain_config"]
