"""Chunk addressing, edge/corner topology and the per-chunk height grid."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from .biomes import Biome
from .config import TerrainConfig
from .errors import GenerationFailure


class ChunkCoord(NamedTuple):
    """Integer address of a chunk; also the composite key for every cache."""

    x: int
    z: int

    @classmethod
    def from_world(cls, x: float, z: float, chunk_size: float) -> "ChunkCoord":
        return cls(int(math.floor(x / chunk_size)), int(math.floor(z / chunk_size)))

    def offset(self, dx: int, dz: int) -> "ChunkCoord":
        return ChunkCoord(self.x + dx, self.z + dz)

    def neighbor(self, edge: "Edge") -> "ChunkCoord":
        dx, dz = edge.offset
        return self.offset(dx, dz)

    def neighborhood(self) -> Tuple["ChunkCoord", ...]:
        """The 3x3 block around this chunk in sorted order (lock acquisition order)."""

        return tuple(sorted(self.offset(dx, dz) for dx in (-1, 0, 1) for dz in (-1, 0, 1)))

    def origin(self, chunk_size: float) -> Tuple[float, float]:
        return self.x * chunk_size, self.z * chunk_size

    def center(self, chunk_size: float) -> Tuple[float, float]:
        return (self.x + 0.5) * chunk_size, (self.z + 0.5) * chunk_size


class Edge(Enum):
    """Chunk sides; every edge sequence runs in increasing world coordinate."""

    SOUTH = "south"
    NORTH = "north"
    WEST = "west"
    EAST = "east"

    @property
    def offset(self) -> Tuple[int, int]:
        return _EDGE_OFFSETS[self]

    @property
    def opposite(self) -> "Edge":
        return _EDGE_OPPOSITES[self]

    @property
    def runs_along_x(self) -> bool:
        return self in (Edge.SOUTH, Edge.NORTH)

    @property
    def corners(self) -> Tuple["Corner", "Corner"]:
        """Corners at index 0 and index -1 of the edge sequence."""

        return _EDGE_CORNERS[self]


class Corner(Enum):
    SW = "sw"
    SE = "se"
    NW = "nw"
    NE = "ne"

    @property
    def lattice_offset(self) -> Tuple[int, int]:
        return _CORNER_OFFSETS[self]

    @property
    def edges(self) -> Tuple[Edge, Edge]:
        """The x-running and z-running edges that meet at this corner."""

        ox, oz = self.lattice_offset
        return (Edge.NORTH if oz else Edge.SOUTH, Edge.EAST if ox else Edge.WEST)

    def index_on(self, edge: Edge) -> int:
        start, end = edge.corners
        if self is start:
            return 0
        if self is end:
            return -1
        raise ValueError(f"corner {self.name} does not lie on edge {edge.name}")


_EDGE_OFFSETS: Dict[Edge, Tuple[int, int]] = {
    Edge.SOUTH: (0, -1),
    Edge.NORTH: (0, 1),
    Edge.WEST: (-1, 0),
    Edge.EAST: (1, 0),
}
_EDGE_OPPOSITES: Dict[Edge, Edge] = {
    Edge.SOUTH: Edge.NORTH,
    Edge.NORTH: Edge.SOUTH,
    Edge.WEST: Edge.EAST,
    Edge.EAST: Edge.WEST,
}
_EDGE_CORNERS: Dict[Edge, Tuple[Corner, Corner]] = {
    Edge.SOUTH: (Corner.SW, Corner.SE),
    Edge.NORTH: (Corner.NW, Corner.NE),
    Edge.WEST: (Corner.SW, Corner.NW),
    Edge.EAST: (Corner.SE, Corner.NE),
}
_CORNER_OFFSETS: Dict[Corner, Tuple[int, int]] = {
    Corner.SW: (0, 0),
    Corner.SE: (1, 0),
    Corner.NW: (0, 1),
    Corner.NE: (1, 1),
}


# -- Vertex lattice -------------------------------------------------------

def corner_cell(corner: Corner, size: int) -> Tuple[int, int]:
    ox, oz = corner.lattice_offset
    return (size - 1) * oz, (size - 1) * ox


def edge_cells(edge: Edge, size: int) -> List[Tuple[int, int]]:
    last = size - 1
    if edge is Edge.SOUTH:
        return [(0, k) for k in range(size)]
    if edge is Edge.NORTH:
        return [(last, k) for k in range(size)]
    if edge is Edge.WEST:
        return [(k, 0) for k in range(size)]
    return [(k, last) for k in range(size)]


def vertex_position(coord: ChunkCoord, row: int, col: int, config: TerrainConfig) -> Tuple[float, float]:
    # Global integer vertex indices make shared vertices bit-identical across chunks.
    cells = config.cells_per_side
    spacing = config.vertex_spacing
    return (coord.x * cells + col) * spacing, (coord.z * cells + row) * spacing


def edge_positions(coord: ChunkCoord, edge: Edge, config: TerrainConfig) -> List[Tuple[float, float]]:
    return [
        vertex_position(coord, row, col, config)
        for row, col in edge_cells(edge, config.vertices_per_side)
    ]


def corner_lattice_point(coord: ChunkCoord, corner: Corner) -> Tuple[int, int]:
    ox, oz = corner.lattice_offset
    return coord.x + ox, coord.z + oz


def corner_position(coord: ChunkCoord, corner: Corner, config: TerrainConfig) -> Tuple[float, float]:
    row, col = corner_cell(corner, config.vertices_per_side)
    return vertex_position(coord, row, col, config)


# -- Height grid ----------------------------------------------------------

@dataclass(frozen=True, eq=False)
class HeightGrid:
    """Fully populated heights for one chunk, indexed ``[row_z, column_x]``."""

    coord: ChunkCoord
    biome: Biome
    heights: np.ndarray
    neighbor_biomes: Mapping[Edge, Biome] = field(default_factory=dict)
    is_fallback: bool = False
    failure: Optional[GenerationFailure] = None
    sources: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.heights.ndim != 2 or self.heights.shape[0] != self.heights.shape[1]:
            raise ValueError("heights must be a square 2D array")
        # Grids are handed to mesh builders and must not change afterwards.
        self.heights.setflags(write=False)

    @property
    def size(self) -> int:
        return int(self.heights.shape[0])

    def edge(self, edge: Edge) -> Tuple[float, ...]:
        return tuple(float(self.heights[row, col]) for row, col in edge_cells(edge, self.size))

    def corner(self, corner: Corner) -> float:
        row, col = corner_cell(corner, self.size)
        return float(self.heights[row, col])

    def height_at(self, row: int, col: int) -> float:
        return float(self.heights[row, col])

    @property
    def min_height(self) -> float:
        return float(self.heights.min())

    @property
    def max_height(self) -> float:
        return float(self.heights.max())

    def summary(self) -> str:
        tag = " fallback" if self.is_fallback else ""
        return (
            f"({self.coord.x},{self.coord.z}) {self.biome.value}{tag} "
            f"h=[{self.min_height:.2f},{self.max_height:.2f}]"
        )


__all__ = [
    "ChunkCoord",
    "Edge",
    "Corner",
    "HeightGrid",
    "corner_cell",
    "edge_cells",
    "vertex_position",
    "edge_positions",
    "corner_lattice_point",
    "corner_position",
]
