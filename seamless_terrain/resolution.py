"""Order-independent resolution of a chunk's corners and edges.

Corners are settled first and edges are then pinned to them, so the two
ends of every edge always agree with the corner values every sharer sees.
Resolution only reads the cache; the assembler commits the resolved values
after the grid is built while it still holds the neighbourhood locks.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from .biomes import BiomeClassifier
from .border_cache import BorderCache
from .borders import BorderSet, corner_sharers, edge_sharers
from .config import TerrainConfig
from .errors import CacheInconsistency
from .grid import (
    ChunkCoord,
    Corner,
    Edge,
    HeightGrid,
    corner_lattice_point,
    corner_position,
    edge_positions,
)
from .height import terrain_height
from .noise import derive_seed, noise2d

LOGGER = logging.getLogger(__name__)

HeightFunction = Callable[..., float]
LiveGridLookup = Callable[[ChunkCoord], Optional[HeightGrid]]

_PERTURBATION_SALT = 0x2C07
_EDGE_BIAS_SALT = 0x6B42


class Source(str, Enum):
    """Where a resolved corner or edge came from, in precedence order."""

    CACHED = "cached"
    LIVE = "live"
    AGREEMENT = "agreement"
    OFFSET = "offset"
    INTERPOLATED = "interpolated"
    FRESH = "fresh"


@dataclass
class ResolvedBorders:
    coord: ChunkCoord
    edges: Dict[Edge, Tuple[float, ...]]
    corners: Dict[Corner, float]
    sources: Dict[str, str] = field(default_factory=dict)

    def as_border_set(self) -> BorderSet:
        return BorderSet(edges=dict(self.edges), corners=dict(self.corners))


class BorderResolver:
    """Decides the border values of a chunk from cache, live neighbours or fresh samples."""

    def __init__(
        self,
        config: TerrainConfig,
        cache: BorderCache,
        classifier: BiomeClassifier,
        height_function: HeightFunction = terrain_height,
        live_grids: Optional[LiveGridLookup] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._classifier = classifier
        self._height = height_function
        self._live_grids = live_grids
        self._perturbation_seed = derive_seed(config.world_seed, _PERTURBATION_SALT)
        self._bias_seed = derive_seed(config.world_seed, _EDGE_BIAS_SALT)
        # //1.- Coordinates currently being resolved on this thread guard against re-entry.
        self._local = threading.local()

    # -- Public API -------------------------------------------------------

    def resolve(self, coord: ChunkCoord) -> ResolvedBorders:
        coord = ChunkCoord(*coord)
        active = self._active()
        if coord in active:
            LOGGER.debug("Re-entrant resolution of %s; using fresh borders", coord)
            return self.fresh_borders(coord)
        active.add(coord)
        try:
            return self._resolve(coord)
        finally:
            active.discard(coord)

    def is_resolving(self, coord: ChunkCoord) -> bool:
        return ChunkCoord(*coord) in self._active()

    def fresh_borders(self, coord: ChunkCoord) -> ResolvedBorders:
        """Borders computed purely from the height function, touching no cache."""

        coord = ChunkCoord(*coord)
        corners = {corner: self._fresh_corner(coord, corner) for corner in Corner}
        edges = {edge: self._fresh_edge(coord, edge, self._pins(edge, corners)) for edge in Edge}
        sources = {_corner_key(corner): Source.FRESH.value for corner in Corner}
        sources.update({_edge_key(edge): Source.FRESH.value for edge in Edge})
        return ResolvedBorders(coord, edges, corners, sources)

    def cached_borders(self, coord: ChunkCoord) -> BorderSet:
        """Whatever the cache already settles for ``coord``; nothing is computed."""

        coord = ChunkCoord(*coord)
        borders = BorderSet()
        for corner in Corner:
            value = self._cached_corner(coord, corner)
            if value is not None:
                borders.corners[corner] = value
        for edge in Edge:
            values = self._cached_edge(coord, edge)
            if values is None:
                continue
            start, end = edge.corners
            pinned = list(values)
            if start in borders.corners:
                pinned[0] = borders.corners[start]
            if end in borders.corners:
                pinned[-1] = borders.corners[end]
            borders.edges[edge] = tuple(pinned)
        return borders

    # -- Resolution -------------------------------------------------------

    def _resolve(self, coord: ChunkCoord) -> ResolvedBorders:
        corners: Dict[Corner, float] = {}
        sources: Dict[str, str] = {}
        # //2.- Corners first so every edge can be pinned to settled endpoints.
        for corner in Corner:
            value, source = self._resolve_corner(coord, corner)
            corners[corner] = value
            sources[_corner_key(corner)] = source.value
        edges: Dict[Edge, Tuple[float, ...]] = {}
        for edge in Edge:
            values, source = self._resolve_edge(coord, edge, corners)
            edges[edge] = values
            sources[_edge_key(edge)] = source.value
        LOGGER.debug("Resolved borders of %s: %s", coord, sources)
        return ResolvedBorders(coord, edges, corners, sources)

    def _resolve_corner(self, coord: ChunkCoord, corner: Corner) -> Tuple[float, Source]:
        cached = self._cached_corner(coord, corner)
        if cached is not None:
            return cached, Source.CACHED
        live = self._live_corner(coord, corner)
        if live is not None:
            return live, Source.LIVE

        candidates = self._endpoint_candidates(coord, corner)
        tolerance = self._config.corner_agreement_tolerance
        if len(candidates) >= 2 and max(candidates) - min(candidates) <= tolerance:
            return math.fsum(candidates) / len(candidates), Source.AGREEMENT
        if candidates:
            # //3.- Disagreeing or lone endpoints get a bounded, lattice-seeded nudge.
            lx, lz = corner_lattice_point(coord, corner)
            offset = noise2d(self._perturbation_seed, lx, lz) * self._config.corner_perturbation
            LOGGER.debug(
                "Corner %s of %s offset from %d endpoint candidate(s)", corner.value, coord, len(candidates)
            )
            return candidates[0] + offset, Source.OFFSET
        return self._fresh_corner(coord, corner), Source.FRESH

    def _resolve_edge(
        self, coord: ChunkCoord, edge: Edge, corners: Dict[Corner, float]
    ) -> Tuple[Tuple[float, ...], Source]:
        pins = self._pins(edge, corners)
        cached = self._cached_edge(coord, edge)
        if cached is not None:
            return self._pin(coord, edge, cached, pins), Source.CACHED
        live = self._live_edge(coord, edge)
        if live is not None:
            return self._pin(coord, edge, live, pins), Source.LIVE
        partial = self._partial_edge(coord, edge)
        if partial is not None:
            return self._interpolate_partial(coord, edge, partial, pins), Source.INTERPOLATED
        return self._fresh_edge(coord, edge, pins), Source.FRESH

    # -- Cache lookups ----------------------------------------------------

    def _cached_corner(self, coord: ChunkCoord, corner: Corner) -> Optional[float]:
        found: Optional[float] = None
        for sharer, name in corner_sharers(coord, corner):
            value = self._cache.peek_corner(sharer, name)
            if value is None:
                continue
            if found is None:
                found = value
            elif abs(found - value) > self._config.smoothing_tolerance:
                self._cache.report(CacheInconsistency(sharer, _corner_key(name), found, value))
        return found

    def _cached_edge(self, coord: ChunkCoord, edge: Edge) -> Optional[Tuple[float, ...]]:
        size = self._config.vertices_per_side
        found: Optional[Tuple[float, ...]] = None
        for sharer, name in edge_sharers(coord, edge):
            values = self._cache.peek_edge(sharer, name)
            if values is None or len(values) != size:
                continue
            if found is None:
                found = values
                continue
            for index, (kept, other) in enumerate(zip(found, values)):
                if abs(kept - other) > self._config.smoothing_tolerance:
                    self._cache.report(CacheInconsistency(sharer, _edge_key(name), kept, other, index))
                    break
        return found

    def _partial_edge(self, coord: ChunkCoord, edge: Edge) -> Optional[Tuple[float, ...]]:
        size = self._config.vertices_per_side
        for sharer, name in edge_sharers(coord, edge):
            values = self._cache.peek_edge(sharer, name)
            if values and len(values) < size:
                return values
        return None

    def _endpoint_candidates(self, coord: ChunkCoord, corner: Corner) -> List[float]:
        # Partial edges are lower-resolution samplings that still span the whole edge.
        candidates: List[float] = []
        for sharer, name in corner_sharers(coord, corner):
            for edge in name.edges:
                values = self._cache.peek_edge(sharer, edge)
                if values:
                    candidates.append(values[name.index_on(edge)])
        return candidates

    # -- Live neighbours --------------------------------------------------

    def _live(self, coord: ChunkCoord) -> Optional[HeightGrid]:
        if self._live_grids is None or coord in self._active():
            return None
        grid = self._live_grids(coord)
        if grid is None or grid.size != self._config.vertices_per_side:
            return None
        return grid

    def _live_corner(self, coord: ChunkCoord, corner: Corner) -> Optional[float]:
        for sharer, name in corner_sharers(coord, corner):
            grid = self._live(sharer)
            if grid is not None:
                return grid.corner(name)
        return None

    def _live_edge(self, coord: ChunkCoord, edge: Edge) -> Optional[Tuple[float, ...]]:
        for sharer, name in edge_sharers(coord, edge):
            grid = self._live(sharer)
            if grid is not None:
                return grid.edge(name)
        return None

    # -- Sampling ---------------------------------------------------------

    def _sample(self, x: float, z: float) -> float:
        biome = self._classifier.biome_at(x, z)
        return float(self._height(self._config.world_seed, x, z, biome, self._config))

    def _fresh_corner(self, coord: ChunkCoord, corner: Corner) -> float:
        x, z = corner_position(coord, corner, self._config)
        return self._sample(x, z)

    def _fresh_edge(self, coord: ChunkCoord, edge: Edge, pins: Tuple[float, float]) -> Tuple[float, ...]:
        positions = edge_positions(coord, edge, self._config)
        values = [pins[0]]
        values.extend(self._sample(x, z) for x, z in positions[1:-1])
        values.append(pins[1])
        return tuple(values)

    def _interpolate_partial(
        self, coord: ChunkCoord, edge: Edge, partial: Tuple[float, ...], pins: Tuple[float, float]
    ) -> Tuple[float, ...]:
        size = self._config.vertices_per_side
        positions = edge_positions(coord, edge, self._config)
        frequency = self._config.edge_bias_frequency
        amplitude = self._config.edge_bias_amplitude
        values: List[float] = []
        for index, (x, z) in enumerate(positions):
            t = index / (size - 1)
            if len(partial) >= 2:
                base = _sample_linear(partial, t)
                # Shift the known samples so the ends land on the settled corners.
                base += (1.0 - t) * (pins[0] - partial[0]) + t * (pins[1] - partial[-1])
            else:
                base = pins[0] + (pins[1] - pins[0]) * t
            bias = noise2d(self._bias_seed, x * frequency, z * frequency) * amplitude * math.sin(math.pi * t)
            values.append(base + bias)
        values[0], values[-1] = pins
        return tuple(values)

    def _pins(self, edge: Edge, corners: Dict[Corner, float]) -> Tuple[float, float]:
        start, end = edge.corners
        return corners[start], corners[end]

    def _pin(
        self, coord: ChunkCoord, edge: Edge, values: Tuple[float, ...], pins: Tuple[float, float]
    ) -> Tuple[float, ...]:
        tolerance = self._config.smoothing_tolerance
        for index, pin in ((0, pins[0]), (len(values) - 1, pins[1])):
            if abs(values[index] - pin) > tolerance:
                self._cache.report(CacheInconsistency(coord, _edge_key(edge), values[index], pin, index))
        pinned = list(values)
        pinned[0], pinned[-1] = pins
        return tuple(pinned)

    def _active(self) -> Set[ChunkCoord]:
        active = getattr(self._local, "active", None)
        if active is None:
            active = set()
            self._local.active = active
        return active


def _sample_linear(samples: Tuple[float, ...], t: float) -> float:
    position = t * (len(samples) - 1)
    low = min(int(math.floor(position)), len(samples) - 2)
    frac = position - low
    return samples[low] + (samples[low + 1] - samples[low]) * frac


def _corner_key(corner: Corner) -> str:
    return f"corner:{corner.value}"


def _edge_key(edge: Edge) -> str:
    return f"edge:{edge.value}"


__all__ = ["BorderResolver", "ResolvedBorders", "Source", "HeightFunction"]
