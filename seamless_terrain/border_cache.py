"""Process-wide cache of shared border data keyed by chunk coordinate."""
from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .borders import BorderSet, BorderWrite, border_writes
from .errors import CacheInconsistency
from .grid import ChunkCoord, Corner, Edge

LOGGER = logging.getLogger(__name__)


class BorderCache:
    """Folds border writes into per-chunk entries without ever overwriting settled data.

    Merge rules: an empty slot takes whatever arrives, a partial edge is
    upgraded by a longer or complete one, and a complete edge or a present
    corner is kept. When incoming data disagrees with a kept value by more
    than ``tolerance`` a :class:`CacheInconsistency` is logged and recorded.
    """

    def __init__(self, vertices_per_side: int, tolerance: float = 1e-9) -> None:
        # //1.- Entries hold whatever is known for each chunk, including chunks never generated.
        self._size = int(vertices_per_side)
        self._tolerance = float(tolerance)
        self._entries: Dict[ChunkCoord, BorderSet] = {}
        # //2.- One re-entrant lock per key while someone holds it, counted under a registry lock.
        self._locks: Dict[ChunkCoord, threading.RLock] = {}
        self._holders: Dict[ChunkCoord, int] = {}
        self._registry_lock = threading.Lock()
        self.inconsistencies: List[CacheInconsistency] = []

    @property
    def vertices_per_side(self) -> int:
        return self._size

    def __contains__(self, coord: object) -> bool:
        return coord in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def coords(self) -> List[ChunkCoord]:
        return sorted(self._entries)

    # -- Locking ----------------------------------------------------------

    def lock_count(self) -> int:
        """Number of per-key locks currently checked out by some caller."""

        with self._registry_lock:
            return len(self._locks)

    def _checkout(self, coord: ChunkCoord) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(coord)
            if lock is None:
                lock = threading.RLock()
                self._locks[coord] = lock
            self._holders[coord] = self._holders.get(coord, 0) + 1
            return lock

    def _checkin(self, coord: ChunkCoord) -> None:
        with self._registry_lock:
            remaining = self._holders.get(coord, 0) - 1
            if remaining > 0:
                self._holders[coord] = remaining
                return
            # //3.- Nobody holds or waits on the lock any more, so it can go.
            self._holders.pop(coord, None)
            self._locks.pop(coord, None)

    @contextmanager
    def _held(self, coord: ChunkCoord) -> Iterator[None]:
        coord = ChunkCoord(*coord)
        lock = self._checkout(coord)
        try:
            with lock:
                yield
        finally:
            self._checkin(coord)

    @contextmanager
    def locked(self, coords: Iterable[ChunkCoord]) -> Iterator[None]:
        """Hold the locks of ``coords`` in sorted order so concurrent callers cannot deadlock."""

        ordered = sorted({ChunkCoord(*coord) for coord in coords})
        with ExitStack() as stack:
            for coord in ordered:
                stack.enter_context(self._held(coord))
            yield

    # -- Reads ------------------------------------------------------------

    def entry(self, coord: ChunkCoord) -> Optional[BorderSet]:
        """A copy of everything cached for ``coord``, or ``None``."""

        with self._held(coord):
            current = self._entries.get(ChunkCoord(*coord))
            return current.copy() if current is not None else None

    def peek_edge(self, coord: ChunkCoord, edge: Edge) -> Optional[Tuple[float, ...]]:
        current = self._entries.get(ChunkCoord(*coord))
        return current.edges.get(edge) if current is not None else None

    def peek_corner(self, coord: ChunkCoord, corner: Corner) -> Optional[float]:
        current = self._entries.get(ChunkCoord(*coord))
        return current.corners.get(corner) if current is not None else None

    def is_complete(self, coord: ChunkCoord) -> bool:
        current = self._entries.get(ChunkCoord(*coord))
        return current is not None and current.is_complete(self._size)

    # -- Writes -----------------------------------------------------------

    def apply(self, writes: Iterable[BorderWrite]) -> int:
        """Merge ``writes`` and return how many slots changed."""

        changed = 0
        for write in writes:
            with self._held(write.coord):
                if write.is_corner:
                    changed += self._merge_corner(write)
                else:
                    changed += self._merge_edge(write)
        return changed

    def commit(self, coord: ChunkCoord, borders: BorderSet) -> int:
        """Store a generated chunk's borders for itself and every sharer."""

        coord = ChunkCoord(*coord)
        changed = self.apply(border_writes(coord, borders))
        LOGGER.debug("Committed borders of %s (%d slots changed)", coord, changed)
        return changed

    def store_edge(self, coord: ChunkCoord, edge: Edge, values: Iterable[float]) -> int:
        return self.apply([BorderWrite(ChunkCoord(*coord), edge, tuple(float(v) for v in values))])

    def store_corner(self, coord: ChunkCoord, corner: Corner, value: float) -> int:
        return self.apply([BorderWrite(ChunkCoord(*coord), corner, (float(value),))])

    def report(self, inconsistency: CacheInconsistency) -> None:
        LOGGER.warning("%s", inconsistency)
        self.inconsistencies.append(inconsistency)

    def _slot_entry(self, coord: ChunkCoord) -> BorderSet:
        current = self._entries.get(coord)
        if current is None:
            current = BorderSet()
            self._entries[coord] = current
        return current

    def _merge_corner(self, write: BorderWrite) -> int:
        current = self._slot_entry(write.coord)
        corner = write.slot
        incoming = float(write.values[0])
        existing = current.corners.get(corner)
        if existing is None:
            current.corners[corner] = incoming
            return 1
        if abs(existing - incoming) > self._tolerance:
            self.report(CacheInconsistency(write.coord, f"corner:{corner.value}", existing, incoming))
        return 0

    def _merge_edge(self, write: BorderWrite) -> int:
        current = self._slot_entry(write.coord)
        edge = write.slot
        incoming = tuple(float(v) for v in write.values)
        existing = current.edges.get(edge)
        if existing is None or (len(existing) < self._size and len(incoming) > len(existing)):
            current.edges[edge] = incoming
            return 1
        if len(existing) == self._size and len(incoming) == self._size:
            index, delta = _largest_difference(existing, incoming)
            if delta > self._tolerance:
                self.report(
                    CacheInconsistency(
                        write.coord, f"edge:{edge.value}", existing[index], incoming[index], index
                    )
                )
        return 0

    # -- Lifecycle --------------------------------------------------------

    def evict(self, coord: ChunkCoord) -> bool:
        coord = ChunkCoord(*coord)
        with self._held(coord):
            removed = self._entries.pop(coord, None) is not None
        if removed:
            LOGGER.info("Evicted cached borders of %s", coord)
        return removed

    def clear(self) -> None:
        with self._registry_lock:
            self._entries.clear()
        self.inconsistencies.clear()


def _largest_difference(a: Tuple[float, ...], b: Tuple[float, ...]) -> Tuple[int, float]:
    index, delta = 0, 0.0
    for position, (left, right) in enumerate(zip(a, b)):
        gap = abs(left - right)
        if gap > delta:
            index, delta = position, gap
    return index, delta


__all__ = ["BorderCache"]
