"""Shared fixtures: hand-built partitions and a small generated world."""

import numpy as np
import pytest

from py_worldgen.core.alea_prng import AleaPRNG
from py_worldgen.core.voronoi_graph import VoronoiGraph
from py_worldgen.core.world_generator import WorldGenerationParams, generate
from py_worldgen.core.world_map import WorldMap


def make_grid_graph(rows: int, cols: int) -> VoronoiGraph:
    """Unit square cells, 4-connected, outer ring flagged as hull."""
    points = np.array([[c + 0.5, r + 0.5] for r in range(rows) for c in range(cols)])

    def cell(r, c):
        return r * cols + c

    def corner(r, c):
        return r * (cols + 1) + c

    neighbors = []
    vertices = []
    border = np.zeros(rows * cols, dtype=bool)
    for r in range(rows):
        for c in range(cols):
            adjacent = []
            for dr, dc in ((-1, 0), (0, -1), (0, 1), (1, 0)):
                rr, cc = r + dr, c + dc
                if 0 <= rr < rows and 0 <= cc < cols:
                    adjacent.append(cell(rr, cc))
            neighbors.append(sorted(adjacent))
            vertices.append([corner(r, c), corner(r, c + 1),
                             corner(r + 1, c + 1), corner(r + 1, c)])
            border[cell(r, c)] = r in (0, rows - 1) or c in (0, cols - 1)

    corners = np.array([[c, r] for r in range(rows + 1) for c in range(cols + 1)],
                       dtype=np.float64)
    return VoronoiGraph(width=float(cols), height=float(rows), spacing=1.0,
                        points=points, cell_neighbors=neighbors, cell_vertices=vertices,
                        cell_border_flags=border, vertex_coordinates=corners)


def make_two_component_graph() -> VoronoiGraph:
    """Two 2-cell chains with no link between them: {0, 1} and {2, 3}."""
    graph = make_grid_graph(1, 4)
    graph.cell_neighbors = [[1], [0], [3], [2]]
    return graph


@pytest.fixture
def grid_graph():
    return make_grid_graph(3, 3)


@pytest.fixture
def chain_graph():
    return make_grid_graph(1, 4)


@pytest.fixture
def two_component_graph():
    return make_two_component_graph()


@pytest.fixture
def flat_chain_map(chain_graph):
    """A-B-C-D one unit apart at equal height."""
    return WorldMap(graph=chain_graph, heights=np.full(4, 0.6))


@pytest.fixture
def small_params():
    return WorldGenerationParams(
        width=4.0, height=3.0,
        plate_count=3, plate_size=10,
        continent_count=4, continent_size=60,
        ocean_count=4, ocean_size=60,
        relax_iterations=1,
    )


@pytest.fixture(scope="session")
def small_world():
    params = WorldGenerationParams(
        width=4.0, height=3.0,
        plate_count=3, plate_size=10,
        continent_count=4, continent_size=60,
        ocean_count=4, ocean_size=60,
        relax_iterations=1,
    )
    return generate(params, AleaPRNG("smallworld"))
