"""Voronoi cell graph: the spatial partition every generation stage runs on."""

import math
from dataclasses import dataclass, field
from typing import Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import Voronoi

from .alea_prng import AleaPRNG
from .errors import ConfigurationError, UnknownCellError

logger = structlog.get_logger()


class GridConfig(NamedTuple):
    """Configuration for grid generation."""
    width: float
    height: float
    cells_desired: int


@dataclass
class VoronoiGraph:
    """Relaxed Voronoi partition of the map domain.

    Cells are identified by their index into ``points``. Boundary points
    placed outside the domain pseudo-clip the diagram, so every grid cell
    has a finite polygon; cells sharing a ridge with a boundary point are
    flagged as hull cells.
    """
    width: float
    height: float
    spacing: float

    points: np.ndarray                # (n, 2) cell sites
    cell_neighbors: List[List[int]]   # sorted neighbor ids per cell
    cell_vertices: List[List[int]]    # polygon vertex ids, counter-clockwise
    cell_border_flags: np.ndarray     # True for hull cells
    vertex_coordinates: np.ndarray    # (m, 2) polygon vertices

    boundary_points: np.ndarray = field(default_factory=lambda: np.empty((0, 2)))

    @property
    def cell_count(self) -> int:
        return len(self.points)

    def _check(self, cell_id: int) -> int:
        if not 0 <= cell_id < len(self.points):
            raise UnknownCellError(cell_id, len(self.points))
        return int(cell_id)

    def for_each_cell(self) -> Iterator[Tuple[int, np.ndarray, bool]]:
        """Yield ``(cell_id, position, is_on_hull)`` for every cell."""
        for i in range(len(self.points)):
            yield i, self.points[i], bool(self.cell_border_flags[i])

    def neighbors(self, cell_id: int) -> List[int]:
        """Neighbor ids of a cell."""
        return self.cell_neighbors[self._check(cell_id)]

    def boundary_vertices(self, cell_id: int) -> np.ndarray:
        """Polygon vertices of a cell, ordered counter-clockwise."""
        return self.vertex_coordinates[self.cell_vertices[self._check(cell_id)]]

    def mean_edge_length(self) -> float:
        """Mean distance between the sites of adjacent cells."""
        total = 0.0
        count = 0
        for i, neighbors in enumerate(self.cell_neighbors):
            for j in neighbors:
                if j > i:
                    total += float(np.linalg.norm(self.points[i] - self.points[j]))
                    count += 1
        if count == 0:
            return self.spacing
        return total / count


def get_jittered_grid(width: float, height: float, spacing: float, prng: AleaPRNG) -> np.ndarray:
    """
    Generate jittered square grid points.

    Creates a regular grid with randomized positions to prevent artificial
    patterns.

    Args:
        width: Grid width
        height: Grid height
        spacing: Distance between grid points
        prng: Random source

    Returns:
        Array of [x, y] point coordinates
    """
    radius = spacing / 2
    jittering = radius * 0.9  # max deviation
    double_jittering = jittering * 2

    def jitter():
        return prng.random() * double_jittering - jittering

    points = []
    y = radius
    while y < height:
        x = radius
        while x < width:
            xj = min(max(x + jitter(), 0.0), width)
            yj = min(max(y + jitter(), 0.0), height)
            points.append([xj, yj])
            x += spacing
        y += spacing

    return np.array(points, dtype=np.float64)


def get_boundary_points(width: float, height: float, spacing: float) -> np.ndarray:
    """
    Generate boundary points for pseudo-clipping Voronoi cells.

    Adds a ring of points one spacing outside the map edge to prevent
    infinite Voronoi cells.

    Args:
        width: Grid width
        height: Grid height
        spacing: Base spacing for points

    Returns:
        Array of boundary point coordinates
    """
    offset = -spacing
    b_spacing = spacing * 2
    w = width - offset * 2
    h = height - offset * 2

    number_x = max(int(math.ceil(w / b_spacing)) - 1, 1)
    number_y = max(int(math.ceil(h / b_spacing)) - 1, 1)

    points = []
    for i in range(number_x):
        x = w * (i + 0.5) / number_x + offset
        points.append([x, offset])
        points.append([x, h + offset])

    for i in range(number_y):
        y = h * (i + 0.5) / number_y + offset
        points.append([offset, y])
        points.append([w + offset, y])

    return np.array(points, dtype=np.float64)


def build_cell_connectivity(vor: Voronoi, n_grid_points: int) -> Tuple[List[List[int]], np.ndarray]:
    """
    Build cell neighbor lists and hull flags from scipy Voronoi output.

    Args:
        vor: scipy Voronoi diagram
        n_grid_points: Number of grid points (excluding boundary)

    Returns:
        Tuple of (cell_neighbors, border_flags)
    """
    cell_neighbors = [set() for _ in range(n_grid_points)]
    border_flags = np.zeros(n_grid_points, dtype=bool)

    for p1, p2 in vor.ridge_points:
        if p1 < n_grid_points and p2 < n_grid_points:
            cell_neighbors[p1].add(int(p2))
            cell_neighbors[p2].add(int(p1))
        elif p1 < n_grid_points:
            border_flags[p1] = True
        elif p2 < n_grid_points:
            border_flags[p2] = True

    return [sorted(n) for n in cell_neighbors], border_flags


def build_cell_vertices(vor: Voronoi, points: np.ndarray) -> List[List[int]]:
    """
    Build ordered polygon vertex lists for every grid cell.

    Vertices are sorted by angle around the cell site so the lists can be
    used directly as polygon rings.

    Args:
        vor: scipy Voronoi diagram
        points: Grid points (boundary points excluded)

    Returns:
        List of vertex ID lists for each cell
    """
    cell_vertices = []
    for i in range(len(points)):
        region = vor.regions[vor.point_region[i]]
        vertex_ids = [v for v in region if v != -1]
        if vertex_ids:
            coords = vor.vertices[vertex_ids]
            angles = np.arctan2(coords[:, 1] - points[i][1], coords[:, 0] - points[i][0])
            vertex_ids = [vertex_ids[k] for k in np.argsort(angles)]
        cell_vertices.append(vertex_ids)
    return cell_vertices


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    # Shoelace formula
    n = len(vertices)
    area = 0.0
    cx = 0.0
    cy = 0.0

    for i in range(n):
        j = (i + 1) % n
        a = vertices[i][0] * vertices[j][1] - vertices[j][0] * vertices[i][1]
        area += a
        cx += (vertices[i][0] + vertices[j][0]) * a
        cy += (vertices[i][1] + vertices[j][1]) * a

    if abs(area) < 1e-12:
        return np.mean(vertices, axis=0)

    area *= 0.5
    cx /= (6.0 * area)
    cy /= (6.0 * area)

    return np.array([cx, cy])


def relax_points(points: np.ndarray, boundary_points: np.ndarray,
                 width: float, height: float, n_iterations: int = 3) -> np.ndarray:
    """Apply Lloyd's relaxation to improve point distribution.

    Moves each point to the centroid of its Voronoi cell.

    Args:
        points: Grid points to relax
        boundary_points: Boundary points (fixed)
        width: Map width
        height: Map height
        n_iterations: Number of relaxation iterations

    Returns:
        Relaxed point coordinates
    """
    points = points.copy()
    n_points = len(points)

    for iteration in range(n_iterations):
        vor = Voronoi(np.vstack([points, boundary_points]))

        for i in range(n_points):
            region_vertices = vor.regions[vor.point_region[i]]
            if -1 in region_vertices or len(region_vertices) < 3:
                continue

            centroid = compute_polygon_centroid(vor.vertices[region_vertices])
            points[i][0] = np.clip(centroid[0], 0, width)
            points[i][1] = np.clip(centroid[1], 0, height)

        logger.debug("Relaxation iteration complete", iteration=iteration + 1)

    return points


def build_voronoi_graph(points: np.ndarray, width: float, height: float,
                        spacing: Optional[float] = None,
                        boundary_points: Optional[np.ndarray] = None) -> VoronoiGraph:
    """
    Build a Voronoi graph from explicit cell sites.

    Args:
        points: (n, 2) cell sites inside the domain
        width: Domain width
        height: Domain height
        spacing: Nominal point spacing; derived from point density if omitted
        boundary_points: Clipping ring; generated from spacing if omitted

    Returns:
        VoronoiGraph over the given points
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 2:
        raise ConfigurationError("A Voronoi partition needs at least two cells")
    if spacing is None:
        spacing = math.sqrt(width * height / len(points))
    if boundary_points is None:
        boundary_points = get_boundary_points(width, height, spacing)

    vor = Voronoi(np.vstack([points, boundary_points]))
    cell_neighbors, border_flags = build_cell_connectivity(vor, len(points))
    cell_vertices = build_cell_vertices(vor, points)

    logger.debug("Voronoi diagram calculated",
                 vertices=len(vor.vertices), ridges=len(vor.ridge_points))

    return VoronoiGraph(
        width=width,
        height=height,
        spacing=spacing,
        points=points,
        cell_neighbors=cell_neighbors,
        cell_vertices=cell_vertices,
        cell_border_flags=border_flags,
        vertex_coordinates=vor.vertices,
        boundary_points=boundary_points,
    )


def generate_voronoi_graph(config: GridConfig, prng: AleaPRNG,
                           relax_iterations: int = 3) -> VoronoiGraph:
    """
    Generate a relaxed Voronoi partition of the domain.

    Args:
        config: Grid configuration
        prng: Random source for jittering
        relax_iterations: Lloyd relaxation passes (0 disables relaxation)

    Returns:
        Complete Voronoi graph data structure
    """
    if config.width <= 0 or config.height <= 0:
        raise ConfigurationError(f"Domain must be positive, got {config.width}x{config.height}")
    if config.cells_desired <= 0:
        raise ConfigurationError(f"cells_desired must be positive, got {config.cells_desired}")

    spacing = math.sqrt((config.width * config.height) / config.cells_desired)

    grid_points = get_jittered_grid(config.width, config.height, spacing, prng)
    boundary_points = get_boundary_points(config.width, config.height, spacing)

    if relax_iterations > 0:
        grid_points = relax_points(grid_points, boundary_points,
                                   config.width, config.height, n_iterations=relax_iterations)

    graph = build_voronoi_graph(grid_points, config.width, config.height,
                                spacing=spacing, boundary_points=boundary_points)

    logger.info("Voronoi graph generated",
                width=config.width, height=config.height,
                cells_desired=config.cells_desired, cells=graph.cell_count,
                hull_cells=int(graph.cell_border_flags.sum()))
    return graph
