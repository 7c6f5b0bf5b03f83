"""
Randomized multi-source region growing.

Plates are grown over a coarse partition and continents over the dense map
partition with the same flood fill:

- K seed cells are sampled without replacement and claim themselves
- each pass every cell claimed in the previous pass claims its still
  unassigned neighbors, sweeping claimants in ascending cell id so the
  result only depends on the seeds
- a pass reads a snapshot of the assignment and writes a fresh copy, so
  cells claimed during a pass never claim further cells in that same pass
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np
import structlog
from scipy.spatial import cKDTree

from .alea_prng import AleaPRNG
from .errors import ConfigurationError, DisconnectedPartitionError
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()

UNASSIGNED = -1
NO_PLATE = -1  # hull cells of the map partition
OCEAN = -1     # continent id of ocean cells


@dataclass
class ContinentOptions:
    """Continent mask options."""
    island_probability: float = 0.02  # chance an isolated interior ocean cell becomes an island


@dataclass
class ContinentMap:
    """Result of continent growing on the map partition."""
    continent_ids: np.ndarray  # OCEAN for ocean cells
    is_ocean: np.ndarray
    island_count: int = 0

    @property
    def continent_count(self) -> int:
        return len(np.unique(self.continent_ids[self.continent_ids != OCEAN]))


def choose_seeds(cell_count: int, k: int, prng: AleaPRNG) -> List[int]:
    """Pick ``k`` distinct seed cells uniformly without replacement."""
    if k <= 0:
        raise ConfigurationError(f"Seed count must be positive, got {k}")
    if k > cell_count:
        raise ConfigurationError(f"Cannot place {k} seeds in {cell_count} cells")
    return prng.sample(range(cell_count), k)


def grow_regions(neighbors: Sequence[Sequence[int]], seeds: Sequence[int]) -> np.ndarray:
    """
    Flood fill regions outward from seed cells until every cell is claimed.

    Region ``i`` is the region grown from ``seeds[i]``.

    Args:
        neighbors: Neighbor ids for every cell
        seeds: Distinct seed cells

    Returns:
        Region id for every cell

    Raises:
        ConfigurationError: If seeds are invalid
        DisconnectedPartitionError: If some cells can never be reached
    """
    n_cells = len(neighbors)
    assignment = np.full(n_cells, UNASSIGNED, dtype=np.int64)

    for region_id, seed in enumerate(seeds):
        if not 0 <= seed < n_cells:
            raise ConfigurationError(f"Seed {seed} outside partition of {n_cells} cells")
        if assignment[seed] != UNASSIGNED:
            raise ConfigurationError(f"Duplicate seed cell {seed}")
        assignment[seed] = region_id

    remaining = n_cells - len(seeds)
    frontier = sorted(int(s) for s in seeds)
    passes = 0

    while remaining > 0:
        snapshot = assignment
        next_state = snapshot.copy()
        claimed = []

        # Only last pass's claims can still have unassigned neighbors
        for cell in frontier:
            region = snapshot[cell]
            for neighbor in neighbors[cell]:
                if next_state[neighbor] == UNASSIGNED:
                    next_state[neighbor] = region
                    claimed.append(neighbor)

        if not claimed:
            raise DisconnectedPartitionError(remaining)

        assignment = next_state
        remaining -= len(claimed)
        frontier = sorted(claimed)
        passes += 1

    logger.debug("Regions grown", regions=len(seeds), cells=n_cells, passes=passes)
    return assignment


def grow_plates(graph: VoronoiGraph, plate_count: int, prng: AleaPRNG) -> np.ndarray:
    """Grow ``plate_count`` plates over the plate partition."""
    seeds = choose_seeds(graph.cell_count, plate_count, prng)
    plates = grow_regions(graph.cell_neighbors, seeds)
    logger.info("Plates grown", plates=plate_count, cells=graph.cell_count)
    return plates


def _union_touching(continent_ids: np.ndarray, neighbors: Sequence[Sequence[int]]) -> np.ndarray:
    """Merge continents that share a border; each set keeps its smallest id."""
    parent: Dict[int, int] = {}

    def find(x: int) -> int:
        root = x
        while parent.get(root, root) != root:
            root = parent[root]
        while parent.get(x, x) != root:
            parent[x], x = root, parent[x]
        return root

    for cell, cell_neighbors in enumerate(neighbors):
        a = int(continent_ids[cell])
        if a == OCEAN:
            continue
        for neighbor in cell_neighbors:
            b = int(continent_ids[neighbor])
            if b == OCEAN or b == a:
                continue
            ra, rb = find(a), find(b)
            if ra != rb:
                parent[max(ra, rb)] = min(ra, rb)

    if not parent:
        return continent_ids
    merged = continent_ids.copy()
    for cell in np.flatnonzero(continent_ids != OCEAN):
        merged[cell] = find(int(continent_ids[cell]))
    return merged


def grow_continents(graph: VoronoiGraph, continent_count: int, ocean_count: int,
                    prng: AleaPRNG, options: ContinentOptions = None) -> ContinentMap:
    """
    Build the land/ocean mask of the map partition.

    Continent and ocean seeds are grown together. Regions grown from
    continent seeds are land unless their seed sits on the hull; every
    continent containing or touching a hull cell is deleted so landmasses
    stay inside the map. Isolated interior ocean cells may become
    single-cell islands, and touching continents are merged.

    Args:
        graph: Map partition
        continent_count: Number of continent seeds
        ocean_count: Number of ocean seeds
        prng: Random source
        options: Continent mask options

    Returns:
        ContinentMap with per-cell continent ids and ocean flags
    """
    options = options or ContinentOptions()
    if ocean_count < 0:
        raise ConfigurationError(f"Ocean seed count must not be negative, got {ocean_count}")
    if continent_count <= 0:
        raise ConfigurationError(f"Continent seed count must be positive, got {continent_count}")

    hull = graph.cell_border_flags
    seeds = choose_seeds(graph.cell_count, continent_count + ocean_count, prng)
    regions = grow_regions(graph.cell_neighbors, seeds)

    land_regions = [r for r in range(continent_count) if not hull[seeds[r]]]
    continent_ids = np.where(np.isin(regions, land_regions), regions, OCEAN)
    continent_ids[hull] = OCEAN

    # Continents reaching the hull are coerced to ocean
    hull_adjacent = set()
    for cell in np.flatnonzero(hull):
        for neighbor in graph.cell_neighbors[cell]:
            if continent_ids[neighbor] != OCEAN:
                hull_adjacent.add(int(continent_ids[neighbor]))
    if hull_adjacent:
        continent_ids[np.isin(continent_ids, list(hull_adjacent))] = OCEAN

    # Islands in open water
    snapshot = continent_ids.copy()
    next_id = continent_count + ocean_count
    islands = 0
    for cell in range(graph.cell_count):
        if snapshot[cell] != OCEAN or hull[cell]:
            continue
        cell_neighbors = graph.cell_neighbors[cell]
        if any(snapshot[n] != OCEAN or hull[n] for n in cell_neighbors):
            continue
        if prng.bernoulli(options.island_probability):
            continent_ids[cell] = next_id
            next_id += 1
            islands += 1

    continent_ids = _union_touching(continent_ids, graph.cell_neighbors)
    result = ContinentMap(continent_ids=continent_ids,
                          is_ocean=continent_ids == OCEAN,
                          island_count=islands)

    logger.info("Continents grown",
                land_seeds=len(land_regions),
                removed_at_hull=len(hull_adjacent),
                islands=islands,
                continents=result.continent_count,
                land_fraction=round(float(1.0 - result.is_ocean.mean()), 3))
    return result


def project_plates(map_graph: VoronoiGraph, plate_graph: VoronoiGraph,
                   plate_assignment: np.ndarray) -> np.ndarray:
    """
    Assign every map cell the plate of the nearest plate-partition site.

    Map hull cells get ``NO_PLATE``.
    """
    tree = cKDTree(plate_graph.points)
    _, nearest = tree.query(map_graph.points)
    cell_plates = np.asarray(plate_assignment)[nearest].astype(np.int64)
    cell_plates[map_graph.cell_border_flags] = NO_PLATE
    return cell_plates
