"""
Plate kinematics and plate-boundary classification.

Each plate drifts with a constant velocity. Where two cells on different
plates meet, the relative velocity projected onto the line between the
cell centers decides whether the boundary is convergent, divergent or a
transform fault.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .region_growing import NO_PLATE
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()


class CrustType(str, Enum):
    CONTINENTAL = "continental"
    OCEANIC = "oceanic"


class BoundaryKind(str, Enum):
    CONVERGENT = "convergent"
    DIVERGENT = "divergent"
    TRANSFORM = "transform"


@dataclass
class TectonicsOptions:
    """Plate sampling ranges and classification threshold."""
    velocity_min: Tuple[float, float] = (-1.0, -1.0)
    velocity_max: Tuple[float, float] = (1.0, 1.0)
    age_min_myr: float = 0.0
    age_max_myr: float = 200.0
    # Share of the relative speed that must point along the normal for a
    # boundary to count as convergent or divergent
    convergence_ratio: float = 0.6


@dataclass(frozen=True)
class Plate:
    """A tectonic plate."""
    id: int
    velocity: Tuple[float, float]
    crust: CrustType
    age_myr: float


@dataclass(frozen=True)
class BoundaryEdge:
    """Boundary between two adjacent cells on different plates (a < b)."""
    a: int
    b: int
    kind: BoundaryKind
    normal: Tuple[float, float]  # unit vector from a towards b
    ocean_on_a: bool


def generate_plates(plate_count: int, cell_plates: np.ndarray, is_continental: np.ndarray,
                    prng: AleaPRNG, options: TectonicsOptions = None) -> List[Plate]:
    """
    Give every plate a velocity, an age and a crust type.

    Crust is the majority vote of the plate's cells being on a continent;
    ties and empty plates resolve to continental.

    Args:
        plate_count: Number of plates
        cell_plates: Plate id per cell (NO_PLATE cells are ignored)
        is_continental: True for cells that belong to a continent
        prng: Random source
        options: Sampling ranges

    Returns:
        Plates indexed by plate id
    """
    options = options or TectonicsOptions()
    plates = []
    for plate_id in range(plate_count):
        velocity = (
            prng.uniform(options.velocity_min[0], options.velocity_max[0]),
            prng.uniform(options.velocity_min[1], options.velocity_max[1]),
        )
        age = prng.uniform(options.age_min_myr, options.age_max_myr)

        members = cell_plates == plate_id
        continental_votes = int(np.count_nonzero(is_continental[members]))
        oceanic_votes = int(np.count_nonzero(members)) - continental_votes
        crust = CrustType.CONTINENTAL if continental_votes >= oceanic_votes else CrustType.OCEANIC

        plates.append(Plate(id=plate_id, velocity=velocity, crust=crust, age_myr=age))

    logger.info("Plates generated",
                plates=plate_count,
                continental=sum(p.crust is CrustType.CONTINENTAL for p in plates))
    return plates


def classify_boundary(velocity_a, velocity_b, normal, convergence_ratio: float = 0.6) -> BoundaryKind:
    """
    Classify the boundary between two plates.

    Args:
        velocity_a: Velocity of the plate on side a
        velocity_b: Velocity of the plate on side b
        normal: Unit vector pointing from a to b
        convergence_ratio: Minimum share of relative speed along the normal

    Returns:
        BoundaryKind of the edge
    """
    v_rel = np.asarray(velocity_a, dtype=np.float64) - np.asarray(velocity_b, dtype=np.float64)
    approach = float(np.dot(v_rel, np.asarray(normal, dtype=np.float64)))
    if abs(approach) >= convergence_ratio * float(np.linalg.norm(v_rel)):
        if approach > 0:
            return BoundaryKind.CONVERGENT
        if approach < 0:
            return BoundaryKind.DIVERGENT
    return BoundaryKind.TRANSFORM


def find_boundary_edges(graph: VoronoiGraph, cell_plates: np.ndarray, plates: List[Plate],
                        is_ocean: np.ndarray, options: TectonicsOptions = None) -> List[BoundaryEdge]:
    """
    Find and classify every cell pair that straddles a plate boundary.

    Pairs are visited once, as ``(a, b)`` with ``a < b``; cells without a
    plate are skipped.
    """
    options = options or TectonicsOptions()
    edges = []
    for a, neighbors in enumerate(graph.cell_neighbors):
        plate_a = cell_plates[a]
        if plate_a == NO_PLATE:
            continue
        for b in neighbors:
            plate_b = cell_plates[b]
            if b <= a or plate_b == NO_PLATE or plate_b == plate_a:
                continue

            offset = graph.points[b] - graph.points[a]
            length = float(np.linalg.norm(offset))
            if length == 0.0:
                continue
            normal = offset / length

            kind = classify_boundary(plates[plate_a].velocity, plates[plate_b].velocity,
                                     normal, options.convergence_ratio)
            edges.append(BoundaryEdge(a=a, b=int(b), kind=kind,
                                      normal=(float(normal[0]), float(normal[1])),
                                      ocean_on_a=bool(is_ocean[a])))

    logger.info("Plate boundaries classified",
                edges=len(edges),
                convergent=sum(e.kind is BoundaryKind.CONVERGENT for e in edges),
                divergent=sum(e.kind is BoundaryKind.DIVERGENT for e in edges),
                transform=sum(e.kind is BoundaryKind.TRANSFORM for e in edges))
    return edges
