"""
Navigation graph over map cells.

Adjacent cells are linked when the slope between them is below
``max_slope``; steeper steps are impassable cliffs. Edge weights are the 3D
distance between cell sites in world units.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Sequence, Tuple

import numpy as np
import structlog

from .errors import UnknownCellError
from .world_map import WorldMap

logger = structlog.get_logger()


@dataclass
class NavigationOptions:
    max_slope: float = 0.3  # |height delta| / horizontal distance, exclusive


@dataclass(frozen=True, eq=False)
class NavigationGraph:
    """
    Immutable weighted adjacency over cell ids.

    ``adjacency[cell]`` is a tuple of ``(neighbor, weight)`` pairs sorted by
    neighbor id. Every edge is stored in both directions.
    """
    positions: np.ndarray
    adjacency: Tuple[Tuple[Tuple[int, float], ...], ...]
    max_slope: float = 0.3
    _weights: Dict[Tuple[int, int], float] = field(init=False, repr=False)

    def __post_init__(self):
        positions = np.array(self.positions, dtype=np.float64, copy=True)
        positions.setflags(write=False)
        object.__setattr__(self, "positions", positions)
        object.__setattr__(self, "_weights", {
            (a, b): weight
            for a, links in enumerate(self.adjacency)
            for b, weight in links
        })

    @property
    def node_count(self) -> int:
        return len(self.adjacency)

    @property
    def edge_count(self) -> int:
        """Number of undirected edges."""
        return len(self._weights) // 2

    def _check(self, cell_id: int) -> int:
        if not 0 <= cell_id < len(self.adjacency):
            raise UnknownCellError(cell_id, len(self.adjacency))
        return int(cell_id)

    def links(self, cell_id: int) -> Tuple[Tuple[int, float], ...]:
        """(neighbor, weight) pairs leaving a cell."""
        return self.adjacency[self._check(cell_id)]

    def neighbors(self, cell_id: int) -> Iterator[int]:
        return (neighbor for neighbor, _ in self.links(cell_id))

    def edge_weight(self, a: int, b: int) -> Optional[float]:
        """Weight of edge a -> b, or None when the cells are not linked."""
        self._check(a)
        self._check(b)
        return self._weights.get((int(a), int(b)))

    def edges(self) -> Dict[Tuple[int, int], float]:
        """Directed edge map ``{(a, b): weight}``, both directions included."""
        return dict(self._weights)

    def horizontal_distance(self, a: int, b: int) -> float:
        return float(np.linalg.norm(self.positions[a] - self.positions[b]))


def build_navigation_graph(positions: np.ndarray, elevations: np.ndarray,
                           neighbors: Sequence[Sequence[int]],
                           options: Optional[NavigationOptions] = None) -> NavigationGraph:
    """
    Link adjacent cells whose slope is below the threshold.

    Args:
        positions: (N, 2) horizontal cell positions
        elevations: (N,) cell elevations, same units as positions
        neighbors: Adjacency lists; a pair listed from either side is linked
            in both directions
        options: Slope threshold

    Returns:
        NavigationGraph
    """
    options = options or NavigationOptions()
    positions = np.asarray(positions, dtype=np.float64)
    elevations = np.asarray(elevations, dtype=np.float64)
    n_cells = len(positions)
    if len(elevations) != n_cells or len(neighbors) != n_cells:
        raise ValueError("positions, elevations and neighbors must have the same length")

    links = [dict() for _ in range(n_cells)]
    rejected = set()

    for a in range(n_cells):
        for b in neighbors[a]:
            b = int(b)
            pair = (min(a, b), max(a, b))
            if b == a or b in links[a] or pair in rejected:
                continue
            horizontal = float(np.linalg.norm(positions[a] - positions[b]))
            if horizontal <= 0:
                continue
            delta = float(elevations[b] - elevations[a])
            # NaN elevations never pass the comparison
            if not abs(delta) / horizontal < options.max_slope:
                rejected.add(pair)
                continue
            weight = float(np.hypot(horizontal, delta))
            links[a][b] = weight
            links[b][a] = weight

    adjacency = tuple(tuple(sorted(cell_links.items())) for cell_links in links)
    graph = NavigationGraph(positions=positions, adjacency=adjacency,
                            max_slope=options.max_slope)

    logger.info("Navigation graph built", nodes=graph.node_count,
                edges=graph.edge_count, too_steep=len(rejected))
    return graph


def build_graph(world_map: WorldMap,
                options: Optional[NavigationOptions] = None) -> NavigationGraph:
    """Navigation graph for a generated map, in world units."""
    neighbors = [world_map.graph.cell_neighbors[i] for i in world_map.iter_cells()]
    return build_navigation_graph(world_map.positions(), world_map.elevations(),
                                  neighbors, options)
