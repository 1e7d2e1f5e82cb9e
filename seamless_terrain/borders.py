"""Border sets and the bounded propagation of shared edges and corners.

An edge is shared by exactly two chunks and a corner by up to four. The
helpers here enumerate the sharers in a canonical order that does not depend
on which chunk is asking, which is what lets every sharer reach the same
answer when cached copies have to be chosen between.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .grid import ChunkCoord, Corner, Edge, HeightGrid, corner_lattice_point

Slot = Union[Edge, Corner]


@dataclass
class BorderSet:
    """Possibly partial edge and corner data known for one chunk."""

    edges: Dict[Edge, Tuple[float, ...]] = field(default_factory=dict)
    corners: Dict[Corner, float] = field(default_factory=dict)

    @classmethod
    def from_grid(cls, grid: HeightGrid) -> "BorderSet":
        return cls(
            edges={edge: grid.edge(edge) for edge in Edge},
            corners={corner: grid.corner(corner) for corner in Corner},
        )

    def copy(self) -> "BorderSet":
        return BorderSet(edges=dict(self.edges), corners=dict(self.corners))

    def edge(self, edge: Edge) -> Optional[Tuple[float, ...]]:
        return self.edges.get(edge)

    def corner(self, corner: Corner) -> Optional[float]:
        return self.corners.get(corner)

    def has_complete_edge(self, edge: Edge, size: int) -> bool:
        values = self.edges.get(edge)
        return values is not None and len(values) == size

    def is_complete(self, size: int) -> bool:
        return all(self.has_complete_edge(edge, size) for edge in Edge) and all(
            corner in self.corners for corner in Corner
        )

    def is_empty(self) -> bool:
        return not self.edges and not self.corners


@dataclass(frozen=True)
class BorderWrite:
    """One slot of border data destined for one chunk's cache entry."""

    coord: ChunkCoord
    slot: Slot
    values: Tuple[float, ...]

    @property
    def is_corner(self) -> bool:
        return isinstance(self.slot, Corner)

    @property
    def value(self) -> float:
        if not self.is_corner:
            raise TypeError("only corner writes carry a single value")
        return self.values[0]


# -- Sharer topology ------------------------------------------------------

def edge_sharers(coord: ChunkCoord, edge: Edge) -> Tuple[Tuple[ChunkCoord, Edge], Tuple[ChunkCoord, Edge]]:
    """Both views of one shared edge, the chunk owning it as NORTH/EAST first."""

    own = (coord, edge)
    other = (coord.neighbor(edge), edge.opposite)
    if edge in (Edge.NORTH, Edge.EAST):
        return own, other
    return other, own


def corner_sharers(coord: ChunkCoord, corner: Corner) -> Tuple[Tuple[ChunkCoord, Corner], ...]:
    """The four chunks meeting at a corner's lattice point, ordered SW, SE, NW, NE."""

    lx, lz = corner_lattice_point(coord, corner)
    sharers = []
    for name in Corner:
        ox, oz = name.lattice_offset
        sharers.append((ChunkCoord(lx - ox, lz - oz), name))
    return tuple(sharers)


# -- Propagation ----------------------------------------------------------

def propagate_to_neighbors(coord: ChunkCoord, borders: BorderSet) -> List[BorderWrite]:
    """Writes that mirror ``borders`` into every other chunk sharing them.

    Each edge goes to the single adjacent chunk under the opposite name with
    its order preserved (all edges run in increasing world coordinate); each
    corner goes to the three other chunks around its lattice point. At most
    sixteen writes are produced.
    """

    writes: List[BorderWrite] = []
    for edge in Edge:
        values = borders.edges.get(edge)
        if values is None:
            continue
        writes.append(BorderWrite(coord.neighbor(edge), edge.opposite, tuple(values)))
    for corner in Corner:
        value = borders.corners.get(corner)
        if value is None:
            continue
        for sharer, sharer_corner in corner_sharers(coord, corner):
            if sharer == coord:
                continue
            writes.append(BorderWrite(sharer, sharer_corner, (float(value),)))
    return writes


def border_writes(coord: ChunkCoord, borders: BorderSet) -> List[BorderWrite]:
    """The chunk's own writes followed by everything propagated to its sharers."""

    writes = [BorderWrite(coord, edge, tuple(borders.edges[edge])) for edge in Edge if edge in borders.edges]
    writes.extend(
        BorderWrite(coord, corner, (float(borders.corners[corner]),))
        for corner in Corner
        if corner in borders.corners
    )
    writes.extend(propagate_to_neighbors(coord, borders))
    return writes


__all__ = [
    "BorderSet",
    "BorderWrite",
    "Slot",
    "edge_sharers",
    "corner_sharers",
    "propagate_to_neighbors",
    "border_writes",
]
