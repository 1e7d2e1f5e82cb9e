"""Tracks resident chunks and decides when cached borders may be released."""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Set

from .border_cache import BorderCache
from .grid import ChunkCoord, Edge, HeightGrid

LOGGER = logging.getLogger(__name__)


class ChunkLifecycleManager:
    """Keeps live grids and evicts a chunk's border entry only once it can be rebuilt seamlessly.

    An unloaded chunk's entry is dropped after all four edge neighbours have
    been resolved and still hold their own cached copies of the shared
    borders, so a later regeneration reads those copies instead. A neighbour
    counts as resolved while its own cache entry is complete.
    """

    def __init__(self, cache: BorderCache) -> None:
        self._cache = cache
        self._resident: Dict[ChunkCoord, HeightGrid] = {}
        self._unloaded: Set[ChunkCoord] = set()
        self._lock = threading.Lock()

    def register(self, grid: HeightGrid) -> None:
        with self._lock:
            self._resident[grid.coord] = grid
            self._unloaded.discard(grid.coord)

    def live_grid(self, coord: ChunkCoord) -> Optional[HeightGrid]:
        with self._lock:
            return self._resident.get(ChunkCoord(*coord))

    def is_resident(self, coord: ChunkCoord) -> bool:
        with self._lock:
            return ChunkCoord(*coord) in self._resident

    def resident_coords(self) -> List[ChunkCoord]:
        with self._lock:
            return sorted(self._resident)

    def pending_eviction(self) -> List[ChunkCoord]:
        with self._lock:
            return sorted(self._unloaded)

    def unload(self, coord: ChunkCoord) -> bool:
        coord = ChunkCoord(*coord)
        with self._lock:
            grid = self._resident.pop(coord, None)
            if grid is None:
                return False
            self._unloaded.add(coord)
        LOGGER.info("Unloaded chunk %s", coord)
        return True

    def can_evict(self, coord: ChunkCoord) -> bool:
        coord = ChunkCoord(*coord)
        with self._lock:
            if coord not in self._unloaded:
                return False
        # //1.- A complete entry includes the shared edge at full resolution.
        return all(self._cache.is_complete(coord.neighbor(edge)) for edge in Edge)

    def evict_ready(self) -> List[ChunkCoord]:
        """Drop the cache entries of every unloaded chunk that is safe to forget."""

        evicted: List[ChunkCoord] = []
        for coord in self.pending_eviction():
            # //1.- A rebuild holds this neighbourhood until it is registered, so the check cannot go stale.
            with self._cache.locked(coord.neighborhood()):
                if not self.can_evict(coord):
                    continue
                self._cache.evict(coord)
                with self._lock:
                    self._unloaded.discard(coord)
            evicted.append(coord)
        return evicted

    def reset(self) -> None:
        with self._lock:
            self._resident.clear()
            self._unloaded.clear()


__all__ = ["ChunkLifecycleManager"]
