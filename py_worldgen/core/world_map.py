"""Generated world map: the read-only product of a generation run."""

import dataclasses
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from shapely.geometry import Point, Polygon
from shapely.strtree import STRtree

from .errors import UnknownCellError
from .tectonics import BoundaryEdge, Plate
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()

SEA_LEVEL = 0.5


def _read_only(values, dtype) -> Optional[np.ndarray]:
    if values is None:
        return None
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class WorldMap:
    """
    Normalized height map over a Voronoi partition.

    Heights lie in [0, 1] with 0.5 as sea level. Positions are in world
    units (domain units times ``scale``); elevations are heights times
    ``height_scale``. Instances never change after construction; a
    height-affecting event produces a new map through ``with_heights``.
    """
    graph: VoronoiGraph
    heights: np.ndarray
    scale: float = 1.0
    height_scale: float = 1.0
    seed: Optional[str] = None
    plate_ids: Optional[np.ndarray] = None
    continent_ids: Optional[np.ndarray] = None
    river_flow: Optional[np.ndarray] = None
    plates: Tuple[Plate, ...] = ()
    boundary_edges: Tuple[BoundaryEdge, ...] = ()

    _polygons: List[Polygon] = field(init=False, repr=False)
    _polygon_cells: np.ndarray = field(init=False, repr=False)
    _tree: STRtree = field(init=False, repr=False)

    def __post_init__(self):
        if len(self.heights) != self.graph.cell_count:
            raise ValueError(
                f"Got {len(self.heights)} heights for {self.graph.cell_count} cells")

        object.__setattr__(self, "heights", _read_only(self.heights, np.float64))
        object.__setattr__(self, "plate_ids", _read_only(self.plate_ids, np.int64))
        object.__setattr__(self, "continent_ids", _read_only(self.continent_ids, np.int64))
        object.__setattr__(self, "river_flow", _read_only(self.river_flow, np.float64))
        object.__setattr__(self, "plates", tuple(self.plates))
        object.__setattr__(self, "boundary_edges", tuple(self.boundary_edges))

        polygons = []
        polygon_cells = []
        for cell_id in range(self.graph.cell_count):
            vertices = self.graph.boundary_vertices(cell_id)
            if len(vertices) < 3:
                continue
            polygons.append(Polygon(vertices * self.scale))
            polygon_cells.append(cell_id)

        object.__setattr__(self, "_polygons", polygons)
        object.__setattr__(self, "_polygon_cells", np.array(polygon_cells, dtype=np.int64))
        object.__setattr__(self, "_tree", STRtree(polygons))

    @property
    def cell_count(self) -> int:
        return self.graph.cell_count

    def _check(self, cell_id: int) -> int:
        if not 0 <= cell_id < self.graph.cell_count:
            raise UnknownCellError(cell_id, self.graph.cell_count)
        return int(cell_id)

    def iter_cells(self) -> Iterator[int]:
        return iter(range(self.graph.cell_count))

    def height(self, cell_id: int) -> float:
        """Normalized height of a cell."""
        return float(self.heights[self._check(cell_id)])

    def elevation(self, cell_id: int) -> float:
        """Height in world units."""
        return self.height(cell_id) * self.height_scale

    def neighbors(self, cell_id: int) -> List[int]:
        return list(self.graph.neighbors(cell_id))

    def position(self, cell_id: int) -> np.ndarray:
        """Cell site in world units."""
        return self.graph.points[self._check(cell_id)] * self.scale

    def positions(self) -> np.ndarray:
        """All cell sites in world units."""
        return self.graph.points * self.scale

    def elevations(self) -> np.ndarray:
        """All cell heights in world units."""
        return self.heights * self.height_scale

    def polygon(self, cell_id: int) -> Optional[Polygon]:
        """Cell outline in world units."""
        matches = np.flatnonzero(self._polygon_cells == self._check(cell_id))
        return self._polygons[matches[0]] if len(matches) else None

    def is_water(self, cell_id: int) -> bool:
        """True for cells in the water-mapped range (below sea level)."""
        return self.height(cell_id) < SEA_LEVEL

    def land_fraction(self) -> float:
        return float(np.count_nonzero(self.heights >= SEA_LEVEL)) / max(self.cell_count, 1)

    def non_finite_cells(self) -> np.ndarray:
        """Cells whose height is NaN or infinite (a data error downstream)."""
        return np.flatnonzero(~np.isfinite(self.heights))

    def cell_for_position(self, position: Sequence[float]) -> Optional[int]:
        """
        Find the cell whose polygon contains a world position.

        Points on a shared edge resolve to the lowest cell id.

        Returns:
            Cell id, or None outside every cell
        """
        point = Point(float(position[0]), float(position[1]))
        hits = self._tree.query(point, predicate="intersects")
        if len(hits) == 0:
            return None
        return int(self._polygon_cells[np.min(hits)])

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Component-wise (min, max) of cell positions in world units."""
        positions = self.positions()
        return positions.min(axis=0), positions.max(axis=0)

    def with_heights(self, heights: np.ndarray) -> "WorldMap":
        """New map sharing everything but the heights."""
        return dataclasses.replace(self, heights=heights)
