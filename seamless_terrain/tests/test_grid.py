"""Tests for chunk addressing, lattice positions and the height grid container."""
from __future__ import annotations

import numpy as np
import pytest

from seamless_terrain.biomes import Biome
from seamless_terrain.config import TerrainConfig
from seamless_terrain.grid import (
    ChunkCoord,
    Corner,
    Edge,
    HeightGrid,
    corner_cell,
    edge_positions,
)


def test_chunk_coord_from_world_floors_negative_positions() -> None:
    assert ChunkCoord.from_world(-0.1, 16.0, 16.0) == ChunkCoord(-1, 1)
    assert ChunkCoord.from_world(15.99, 0.0, 16.0) == ChunkCoord(0, 0)


def test_neighborhood_is_sorted_three_by_three() -> None:
    block = ChunkCoord(4, -2).neighborhood()
    assert len(block) == 9
    assert list(block) == sorted(block)
    assert ChunkCoord(4, -2) in block


def test_edge_topology() -> None:
    assert Edge.EAST.opposite is Edge.WEST
    assert Edge.SOUTH.opposite is Edge.NORTH
    assert ChunkCoord(0, 0).neighbor(Edge.NORTH) == ChunkCoord(0, 1)
    assert ChunkCoord(0, 0).neighbor(Edge.WEST) == ChunkCoord(-1, 0)
    assert Edge.EAST.corners == (Corner.SE, Corner.NE)
    assert Corner.NW.edges == (Edge.NORTH, Edge.WEST)
    assert Corner.NE.index_on(Edge.EAST) == -1
    assert Corner.SW.index_on(Edge.SOUTH) == 0
    with pytest.raises(ValueError):
        Corner.SW.index_on(Edge.NORTH)


def test_shared_edge_positions_are_bit_identical() -> None:
    config = TerrainConfig(chunk_size=10.0, vertices_per_side=7)
    east = edge_positions(ChunkCoord(-3, 2), Edge.EAST, config)
    west = edge_positions(ChunkCoord(-2, 2), Edge.WEST, config)
    assert east == west
    north = edge_positions(ChunkCoord(5, -1), Edge.NORTH, config)
    south = edge_positions(ChunkCoord(5, 0), Edge.SOUTH, config)
    assert north == south


def test_height_grid_extracts_edges_and_corners() -> None:
    heights = np.arange(9, dtype=np.float64).reshape(3, 3)
    grid = HeightGrid(ChunkCoord(0, 0), Biome.PLAINS, heights)
    assert grid.edge(Edge.SOUTH) == (0.0, 1.0, 2.0)
    assert grid.edge(Edge.NORTH) == (6.0, 7.0, 8.0)
    assert grid.edge(Edge.WEST) == (0.0, 3.0, 6.0)
    assert grid.edge(Edge.EAST) == (2.0, 5.0, 8.0)
    assert grid.corner(Corner.SE) == 2.0
    assert grid.corner(Corner.NW) == 6.0
    assert corner_cell(Corner.NE, 3) == (2, 2)
    assert grid.min_height == 0.0 and grid.max_height == 8.0


def test_height_grid_is_read_only() -> None:
    grid = HeightGrid(ChunkCoord(0, 0), Biome.PLAINS, np.zeros((3, 3)))
    with pytest.raises(ValueError):
        grid.heights[1, 1] = 4.0


def test_height_grid_rejects_non_square_arrays() -> None:
    with pytest.raises(ValueError):
        HeightGrid(ChunkCoord(0, 0), Biome.PLAINS, np.zeros((3, 4)))
