"""
Multi-source distance fields over the cell graph.

Distances are counted in graph hops by breadth-first search and converted
to domain units with the mean distance between adjacent cell sites. Cells
that no seed can reach keep an infinite distance; every falloff applied to
these fields must treat infinity as "no contribution".
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence

import numpy as np
import structlog

from .tectonics import BoundaryEdge, BoundaryKind
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()


@dataclass
class DistanceFields:
    """Per-cell distances in domain units."""
    coast: np.ndarray             # signed: < 0 ocean, > 0 land, 0 on the land shoreline
    convergent: np.ndarray
    divergent: np.ndarray
    transform: np.ndarray
    convergent_ocean: np.ndarray  # to the ocean side of ocean/land convergent boundaries
    convergent_land: np.ndarray   # to the land side of ocean/land convergent boundaries
    edge_length: float


def multi_source_bfs(neighbors: Sequence[Sequence[int]], seeds: Iterable[int]) -> np.ndarray:
    """
    Hop distance from every cell to the nearest seed.

    Args:
        neighbors: Neighbor ids for every cell
        seeds: Seed cells (distance 0)

    Returns:
        Float array of hop counts, ``inf`` where no seed is reachable
    """
    distance = np.full(len(neighbors), np.inf)
    queue = deque()
    for seed in seeds:
        if distance[seed] != 0:
            distance[seed] = 0
            queue.append(seed)

    while queue:
        cell = queue.popleft()
        next_distance = distance[cell] + 1
        for neighbor in neighbors[cell]:
            if distance[neighbor] == np.inf:
                distance[neighbor] = next_distance
                queue.append(neighbor)

    return distance


def finite_or_zero(distance: np.ndarray, falloff: Callable[[np.ndarray], np.ndarray]) -> np.ndarray:
    """Apply a falloff to finite distances; infinite distances contribute 0."""
    distance = np.asarray(distance, dtype=np.float64)
    result = np.zeros_like(distance)
    finite = np.isfinite(distance)
    if finite.any():
        result[finite] = falloff(distance[finite])
    return result


def shoreline_cells(neighbors: Sequence[Sequence[int]], is_ocean: np.ndarray) -> List[int]:
    """Land cells with at least one ocean neighbor."""
    return [
        cell for cell, cell_neighbors in enumerate(neighbors)
        if not is_ocean[cell] and any(is_ocean[n] for n in cell_neighbors)
    ]


def compute_distance_fields(graph: VoronoiGraph, is_ocean: np.ndarray,
                            edges: List[BoundaryEdge]) -> DistanceFields:
    """
    Compute the coast and plate-boundary distance fields.

    Args:
        graph: Map partition
        is_ocean: Ocean flag per cell
        edges: Classified plate boundary edges

    Returns:
        DistanceFields in domain units
    """
    neighbors = graph.cell_neighbors
    edge_length = graph.mean_edge_length()

    shoreline = shoreline_cells(neighbors, is_ocean)
    coast = multi_source_bfs(neighbors, shoreline) * edge_length
    coast = np.where(is_ocean, -coast, coast)

    seeds = {kind: set() for kind in BoundaryKind}
    ocean_side = set()
    land_side = set()
    for edge in edges:
        seeds[edge.kind].update((edge.a, edge.b))
        if edge.kind is BoundaryKind.CONVERGENT and is_ocean[edge.a] != is_ocean[edge.b]:
            ocean_cell, land_cell = (edge.a, edge.b) if edge.ocean_on_a else (edge.b, edge.a)
            ocean_side.add(ocean_cell)
            land_side.add(land_cell)

    def field(cells):
        return multi_source_bfs(neighbors, sorted(cells)) * edge_length

    fields = DistanceFields(
        coast=coast,
        convergent=field(seeds[BoundaryKind.CONVERGENT]),
        divergent=field(seeds[BoundaryKind.DIVERGENT]),
        transform=field(seeds[BoundaryKind.TRANSFORM]),
        convergent_ocean=field(ocean_side),
        convergent_land=field(land_side),
        edge_length=edge_length,
    )

    logger.info("Distance fields computed",
                edge_length=round(edge_length, 4),
                shoreline_cells=len(shoreline),
                subduction_cells=len(ocean_side) + len(land_side))
    return fields
