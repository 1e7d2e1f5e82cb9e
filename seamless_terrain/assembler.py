"""Builds full chunk height grids around resolved borders."""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import numpy as np

from .biomes import Biome, BiomeClassifier
from .border_cache import BorderCache
from .borders import BorderSet
from .config import TerrainConfig
from .errors import GenerationFailure
from .grid import (
    ChunkCoord,
    Corner,
    Edge,
    HeightGrid,
    corner_cell,
    edge_cells,
    vertex_position,
)
from .height import terrain_height
from .noise import smoothstep
from .resolution import BorderResolver, HeightFunction, LiveGridLookup, ResolvedBorders

LOGGER = logging.getLogger(__name__)


def smooth_interior(heights: np.ndarray, blend: float) -> np.ndarray:
    """One 3x3 box pass over interior vertices; border rows and columns are copied untouched.

    ``blend`` is the weight kept by the original value. Every neighbourhood
    average reads the unsmoothed input.
    """

    out = np.array(heights, dtype=np.float64, copy=True)
    if out.shape[0] < 3 or out.shape[1] < 3:
        return out
    window = np.zeros_like(out[1:-1, 1:-1])
    rows, cols = out.shape
    for dr in (0, 1, 2):
        for dc in (0, 1, 2):
            window += heights[dr:rows - 2 + dr, dc:cols - 2 + dc]
    window /= 9.0
    out[1:-1, 1:-1] = heights[1:-1, 1:-1] * blend + window * (1.0 - blend)
    return out


class HeightMapAssembler:
    """Resolves borders, fills the interior, smooths it and commits the borders."""

    def __init__(
        self,
        config: TerrainConfig,
        cache: BorderCache,
        classifier: BiomeClassifier,
        height_function: HeightFunction = terrain_height,
        resolver: Optional[BorderResolver] = None,
        live_grids: Optional[LiveGridLookup] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._height = height_function
        self._resolver = resolver or BorderResolver(
            config, cache, classifier, height_function=height_function, live_grids=live_grids
        )

    @property
    def resolver(self) -> BorderResolver:
        return self._resolver

    def build_height_grid(
        self,
        coord: ChunkCoord,
        biome: Biome,
        neighbor_biomes: Optional[Mapping[Edge, Biome]] = None,
    ) -> HeightGrid:
        """Return a complete grid for ``coord``; failures yield a tagged flat grid instead of raising."""

        coord = ChunkCoord(*coord)
        neighbors: Dict[Edge, Biome] = dict(neighbor_biomes or {})
        # //1.- Holding the whole neighbourhood serialises builds that share any border.
        with self._cache.locked(coord.neighborhood()):
            try:
                grid = self._build(coord, biome, neighbors)
            except Exception as exc:
                failure = GenerationFailure(coord, exc)
                LOGGER.exception("%s; substituting a flat fallback grid", failure)
                grid = self._fallback_grid(coord, biome, neighbors, failure)
            # //2.- Commit what the grid actually contains so sharers inherit these exact values.
            self._cache.commit(coord, BorderSet.from_grid(grid))
        return grid

    def build_fallback_grid(
        self,
        coord: ChunkCoord,
        biome: Biome,
        neighbor_biomes: Optional[Mapping[Edge, Biome]],
        failure: GenerationFailure,
    ) -> HeightGrid:
        """Commit and return the flat grid for a chunk whose inputs could not be computed."""

        coord = ChunkCoord(*coord)
        with self._cache.locked(coord.neighborhood()):
            grid = self._fallback_grid(coord, biome, dict(neighbor_biomes or {}), failure)
            self._cache.commit(coord, BorderSet.from_grid(grid))
        return grid

    # -- Normal path ------------------------------------------------------

    def _build(self, coord: ChunkCoord, biome: Biome, neighbors: Dict[Edge, Biome]) -> HeightGrid:
        resolved = self._resolver.resolve(coord)
        size = self._config.vertices_per_side
        heights = self._biome_heights(coord, biome, neighbors)
        blended = self._apply_border_influence(heights, resolved)
        _write_borders(blended, resolved.edges, resolved.corners)
        smoothed = smooth_interior(blended, self._config.smoothing_blend)
        if smoothed.shape != (size, size) or not np.all(np.isfinite(smoothed)):
            raise ValueError(f"assembled heights for {coord} are not finite")
        return HeightGrid(
            coord=coord,
            biome=biome,
            heights=smoothed,
            neighbor_biomes=neighbors,
            sources=dict(resolved.sources),
        )

    def _biome_heights(self, coord: ChunkCoord, biome: Biome, neighbors: Dict[Edge, Biome]) -> np.ndarray:
        """Interior heights blended toward differing neighbour biomes near each edge."""

        config = self._config
        size = config.vertices_per_side
        zone = config.biome_blend_zone
        seed = config.world_seed
        heights = np.zeros((size, size), dtype=np.float64)
        last = size - 1
        for row in range(1, last):
            w = row / last
            for col in range(1, last):
                u = col / last
                x, z = vertex_position(coord, row, col, config)
                samples: Dict[Biome, float] = {biome: float(self._height(seed, x, z, biome, config))}
                total = samples[biome]
                weight = 1.0
                for edge, distance in ((Edge.WEST, u), (Edge.EAST, 1.0 - u), (Edge.SOUTH, w), (Edge.NORTH, 1.0 - w)):
                    other = neighbors.get(edge)
                    if other is None or other == biome or distance >= zone:
                        continue
                    if other not in samples:
                        samples[other] = float(self._height(seed, x, z, other, config))
                    factor = 0.5 * smoothstep(1.0 - distance / zone)
                    total += samples[other] * factor
                    weight += factor
                heights[row, col] = total / weight
        return heights

    def _apply_border_influence(self, heights: np.ndarray, resolved: ResolvedBorders) -> np.ndarray:
        config = self._config
        size = config.vertices_per_side
        power = config.influence_falloff_power
        t = np.arange(size, dtype=np.float64) / (size - 1)
        u = t[np.newaxis, :]
        w = t[:, np.newaxis]

        def falloff(distance: np.ndarray, zone: float) -> np.ndarray:
            return np.clip(1.0 - distance / zone, 0.0, None) ** power

        edge_zone = config.edge_influence_zone
        edges = resolved.edges
        # //3.- Each edge pulls the interior toward the border sample facing it.
        terms = [
            (falloff(w, edge_zone), np.asarray(edges[Edge.SOUTH])[np.newaxis, :]),
            (falloff(1.0 - w, edge_zone), np.asarray(edges[Edge.NORTH])[np.newaxis, :]),
            (falloff(u, edge_zone), np.asarray(edges[Edge.WEST])[:, np.newaxis]),
            (falloff(1.0 - u, edge_zone), np.asarray(edges[Edge.EAST])[:, np.newaxis]),
        ]
        corner_zone = config.corner_influence_zone
        for corner in Corner:
            ox, oz = corner.lattice_offset
            radius = np.hypot(u - ox, w - oz)
            terms.append((config.corner_weight * falloff(radius, corner_zone), resolved.corners[corner]))

        total = np.zeros((size, size), dtype=np.float64)
        weighted = np.zeros((size, size), dtype=np.float64)
        for weight, value in terms:
            total = total + weight
            weighted = weighted + weight * value
        target = np.divide(weighted, total, out=np.zeros_like(weighted), where=total > 0)
        strength = np.minimum(total, 1.0)
        return heights * (1.0 - strength) + target * strength

    # -- Fallback ---------------------------------------------------------

    def _fallback_grid(
        self,
        coord: ChunkCoord,
        biome: Biome,
        neighbors: Dict[Edge, Biome],
        failure: GenerationFailure,
    ) -> HeightGrid:
        size = self._config.vertices_per_side
        heights = np.full((size, size), self._config.fallback_elevation, dtype=np.float64)
        # //4.- Keep whatever neighbours already settled so the flat patch still meets them.
        cached = self._resolver.cached_borders(coord)
        complete = {edge: values for edge, values in cached.edges.items() if len(values) == size}
        _write_borders(heights, complete, cached.corners)
        return HeightGrid(
            coord=coord,
            biome=biome,
            heights=heights,
            neighbor_biomes=neighbors,
            is_fallback=True,
            failure=failure,
        )


def _write_borders(heights: np.ndarray, edges: Mapping[Edge, tuple], corners: Mapping[Corner, float]) -> None:
    size = heights.shape[0]
    for edge, values in edges.items():
        for (row, col), value in zip(edge_cells(edge, size), values):
            heights[row, col] = value
    for corner, value in corners.items():
        row, col = corner_cell(corner, size)
        heights[row, col] = value


__all__ = ["HeightMapAssembler", "smooth_interior"]
