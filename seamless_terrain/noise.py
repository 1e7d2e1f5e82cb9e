"""Deterministic value noise used by the biome and height fields."""
from __future__ import annotations

import math

from .errors import InvalidConfiguration

_MASK32 = 0xFFFFFFFF
_HASH_SCALE = 1.0 / 4294967296.0


# -- Hash helpers ---------------------------------------------------------

def _fold_seed(seed: int) -> int:
    seed = int(seed)
    return (seed ^ (seed >> 32)) & _MASK32


def derive_seed(seed: int, salt: int) -> int:
    """Return a decorrelated 32-bit sub-seed so independent fields never align."""

    value = (_fold_seed(seed) * 0x9E3779B1 + int(salt) * 0x85EBCA77) & _MASK32
    value ^= value >> 15
    value = (value * 0xC2B2AE3D) & _MASK32
    value ^= value >> 13
    return value


def lattice_hash(seed: int, ix: int, iy: int) -> float:
    """Hash an integer lattice point into ``[0, 1)`` using only integer maths."""

    value = (_fold_seed(seed) * 3266489917 + ix * 668265263 + iy * 374761393) & _MASK32
    value ^= value >> 13
    value = (value * 1274126177) & _MASK32
    value ^= value >> 16
    return value * _HASH_SCALE


def smoothstep(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# -- Noise evaluators -----------------------------------------------------

def noise2d(seed: int, x: float, y: float) -> float:
    """Smooth value noise in ``[-1, 1]``.

    The four lattice corners around ``(x, y)`` are hashed and blended
    bilinearly with a smoothstep easing on both axes.
    """

    ix = math.floor(x)
    iy = math.floor(y)
    sx = smoothstep(x - ix)
    sy = smoothstep(y - iy)

    v00 = lattice_hash(seed, ix, iy)
    v10 = lattice_hash(seed, ix + 1, iy)
    v01 = lattice_hash(seed, ix, iy + 1)
    v11 = lattice_hash(seed, ix + 1, iy + 1)

    row0 = _lerp(v00, v10, sx)
    row1 = _lerp(v01, v11, sx)
    return _lerp(row0, row1, sy) * 2.0 - 1.0


def fractal2d(
    seed: int,
    x: float,
    y: float,
    octaves: int,
    persistence: float,
    lacunarity: float,
    base_frequency: float = 1.0,
) -> float:
    """Octave sum of :func:`noise2d` normalised into ``[0, 1]``."""

    if octaves < 1:
        raise InvalidConfiguration("octaves must be >= 1")
    if persistence <= 0 or lacunarity <= 0:
        raise InvalidConfiguration("persistence and lacunarity must be positive")

    total = 0.0
    weight = 0.0
    amplitude = 1.0
    frequency = base_frequency
    for _ in range(int(octaves)):
        total += noise2d(seed, x * frequency, y * frequency) * amplitude
        weight += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    value = (total / weight + 1.0) * 0.5
    # Rounding in the normalisation can step a hair outside the unit interval.
    return min(1.0, max(0.0, value))


__all__ = ["derive_seed", "lattice_hash", "smoothstep", "noise2d", "fractal2d"]
