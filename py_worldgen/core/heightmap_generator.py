"""
Height field synthesis.

Heights are composed additively in a fixed order; every layer works on raw
(unbounded) values where 0 is sea level:

1. Baseline crust elevation (oceanic crust deepens with plate age)
2. Laplacian smoothing to blur plate-boundary steps
3. Plate-boundary features: orogeny, trench, volcanic arc, ridge, transform
4. Coastal plains and the shelf / slope / abyssal ocean profile
5. Domain-warped low-frequency and ridged noise

River carving and normalization to [0, 1] follow in ``hydrology`` and
``normalize_heights``.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .distance_fields import DistanceFields, finite_or_zero
from .noise import NoiseField, ridged
from .region_growing import NO_PLATE
from .tectonics import CrustType, Plate
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()


@dataclass
class HeightmapOptions:
    """Layer weights and shapes.

    Heights are raw units where 0 is sea level and roughly +-1 spans the
    full relief. Widths and break distances are domain units (the default
    16 x 9 domain has cells about 0.06 apart).
    """
    # Baseline
    continental_base: float = 0.15
    oceanic_base: float = -0.30
    age_deepening: float = 0.02       # per sqrt(Myr)
    max_age_deepening: float = 0.25
    smoothing_iterations: int = 2

    # Plate boundaries
    mountain_height: float = 0.70
    mountain_width: float = 1.0
    mountain_exponent: float = 2.0
    mountain_ocean_factor: float = 0.3  # share of the orogeny bump on the ocean side
    trench_depth: float = 0.40
    trench_width: float = 0.25
    arc_height: float = 0.35
    arc_offset: float = 0.5             # inland distance of the volcanic arc crest
    arc_width: float = 0.25
    ridge_height: float = 0.15
    ridge_width: float = 0.30
    transform_height: float = 0.05
    transform_width: float = 0.20

    # Coast
    plains_height: float = 0.08
    plains_width: float = 1.0
    shelf_depth: float = 0.08
    shelf_break: float = 0.3
    slope_depth: float = 0.25
    slope_break: float = 0.9
    abyssal_depth: float = 0.15
    abyssal_break: float = 2.5

    # Noise
    warp_frequency: float = 0.4
    warp_strength: float = 0.5
    low_frequency: float = 0.3
    low_octaves: int = 3
    low_weight: float = 0.12
    ocean_noise_scale: float = 0.35
    ridged_frequency: float = 1.1
    ridged_octaves: int = 2
    ridged_weight: float = 0.35


def smoothstep(edge0: float, edge1: float, x: np.ndarray) -> np.ndarray:
    """Hermite step from 0 at ``edge0`` to 1 at ``edge1``."""
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def gaussian(distance: np.ndarray, width: float) -> np.ndarray:
    """Gaussian bump of standard deviation ``width`` centred on zero."""
    distance = np.asarray(distance, dtype=np.float64)
    return np.exp(-(distance * distance) / (2.0 * width * width))


class HeightmapGenerator:
    """
    Builds the raw height field of the map partition.

    Each layer is a public method so stages can be inspected in isolation;
    ``assemble`` runs them in the required order.
    """

    def __init__(self, graph: VoronoiGraph, cell_plates: np.ndarray, plates: List[Plate],
                 is_ocean: np.ndarray, distances: DistanceFields, prng: AleaPRNG,
                 options: HeightmapOptions = None):
        """
        Initialize the heightmap generator.

        Args:
            graph: Map partition
            cell_plates: Plate id per cell (NO_PLATE for hull cells)
            plates: Plates indexed by id
            is_ocean: Ocean flag per cell
            distances: Coast and boundary distance fields
            prng: Random source for the noise seeds
            options: Layer weights
        """
        self.graph = graph
        self.cell_plates = cell_plates
        self.plates = plates
        self.is_ocean = np.asarray(is_ocean, dtype=bool)
        self.distances = distances
        self.options = options or HeightmapOptions()
        self.n_cells = graph.cell_count

        self.heights = np.zeros(self.n_cells, dtype=np.float64)

        opts = self.options
        self.warp_x = NoiseField.from_prng(prng, frequency=opts.warp_frequency)
        self.warp_y = NoiseField.from_prng(prng, frequency=opts.warp_frequency)
        self.low_noise = NoiseField.from_prng(prng, frequency=opts.low_frequency,
                                              octaves=opts.low_octaves)
        self.ridge_noise = NoiseField.from_prng(prng, frequency=opts.ridged_frequency,
                                                octaves=opts.ridged_octaves)

    def convergent_proximity(self) -> np.ndarray:
        """1 on convergent boundaries, falling to 0 at ``mountain_width``."""
        opts = self.options
        return finite_or_zero(
            self.distances.convergent,
            lambda d: np.clip(1.0 - d / opts.mountain_width, 0.0, 1.0) ** opts.mountain_exponent,
        )

    def apply_baseline(self) -> None:
        """
        Land sits at the continental base and ocean at the oceanic base.

        Ocean cells on plates with oceanic crust deepen with plate age; ocean
        on a continental plate (flooded margins, inland seas) does not.
        """
        opts = self.options
        ages = np.array([plate.age_myr for plate in self.plates] + [0.0])
        oceanic = np.array([plate.crust is CrustType.OCEANIC for plate in self.plates] + [False])
        # NO_PLATE indexes the trailing zero-age continental entry
        plate_index = np.where(self.cell_plates == NO_PLATE, len(self.plates), self.cell_plates)
        deepening = np.minimum(opts.age_deepening * np.sqrt(ages[plate_index]),
                               opts.max_age_deepening)
        deepening = np.where(oceanic[plate_index], deepening, 0.0)

        self.heights = np.where(self.is_ocean,
                                opts.oceanic_base - deepening,
                                opts.continental_base)

    def smooth(self, iterations: int = 2) -> None:
        """
        Move every cell halfway towards the mean of its neighbors.

        Each iteration reads only the previous iteration's heights.
        """
        for _ in range(iterations):
            previous = self.heights
            new_heights = previous.copy()
            for i, neighbors in enumerate(self.graph.cell_neighbors):
                if neighbors:
                    new_heights[i] = 0.5 * previous[i] + 0.5 * previous[neighbors].mean()
            self.heights = new_heights

    def add_boundary_features(self) -> None:
        """Orogeny, subduction trench and arc, mid-ocean ridge and transform bumps."""
        opts = self.options
        d = self.distances

        side = np.where(self.is_ocean, opts.mountain_ocean_factor, 1.0)
        mountains = opts.mountain_height * self.convergent_proximity() * side

        trench = -opts.trench_depth * finite_or_zero(
            d.convergent_ocean, lambda x: gaussian(x, opts.trench_width))
        trench = np.where(self.is_ocean, trench, 0.0)

        arc = opts.arc_height * finite_or_zero(
            d.convergent_land, lambda x: gaussian(x - opts.arc_offset, opts.arc_width))
        arc = np.where(self.is_ocean, 0.0, arc)

        ridge = opts.ridge_height * finite_or_zero(
            d.divergent, lambda x: gaussian(x, opts.ridge_width))
        transform = opts.transform_height * finite_or_zero(
            d.transform, lambda x: gaussian(x, opts.transform_width))

        self.heights = self.heights + mountains + trench + arc + ridge + transform

    def add_coastal_profile(self) -> None:
        """Coastal plains on land; shelf, slope and abyssal plain offshore."""
        opts = self.options
        coast = self.distances.coast

        plains = opts.plains_height * finite_or_zero(
            coast, lambda x: smoothstep(0.0, opts.plains_width, x))

        def ocean_profile(signed):
            offshore = -signed
            return -(opts.shelf_depth * smoothstep(0.0, opts.shelf_break, offshore)
                     + opts.slope_depth * smoothstep(opts.shelf_break, opts.slope_break, offshore)
                     + opts.abyssal_depth * smoothstep(opts.slope_break, opts.abyssal_break, offshore))

        ocean = finite_or_zero(coast, ocean_profile)
        self.heights = self.heights + np.where(self.is_ocean, ocean, plains)

    def add_domain_warped_noise(self) -> None:
        """Low-frequency relief everywhere, ridged crests near convergent boundaries."""
        opts = self.options
        points = self.graph.points

        offset = np.column_stack([self.warp_x.sample_many(points),
                                  self.warp_y.sample_many(points)])
        warped = points + opts.warp_strength * offset

        low = opts.low_weight * self.low_noise.sample_many(warped)
        low = low * np.where(self.is_ocean, opts.ocean_noise_scale, 1.0)

        crests = opts.ridged_weight * ridged(self.ridge_noise.sample_many(warped))
        crests = crests * self.convergent_proximity()

        self.heights = self.heights + low + crests

    def assemble(self) -> np.ndarray:
        """
        Run every layer in order.

        Returns:
            Raw heights (0 = sea level)
        """
        self.apply_baseline()
        logger.debug("Baseline applied")
        self.smooth(self.options.smoothing_iterations)
        logger.debug("Baseline smoothed", iterations=self.options.smoothing_iterations)
        self.add_boundary_features()
        self.add_coastal_profile()
        self.add_domain_warped_noise()

        logger.info("Heightmap assembled",
                    min=round(float(np.nanmin(self.heights)), 4),
                    max=round(float(np.nanmax(self.heights)), 4))
        return self.heights.copy()


def normalize_heights(heights: np.ndarray) -> np.ndarray:
    """
    Map raw heights into [0, 1] with sea level at exactly 0.5.

    Non-positive values scale linearly onto [0, 0.5] (minimum to 0) and
    positive values onto (0.5, 1] (maximum to 1). Non-finite values are
    ignored by the min/max scan and returned unchanged.

    Args:
        heights: Raw heights, 0 = sea level

    Returns:
        New normalized array
    """
    raw = np.asarray(heights, dtype=np.float64)
    result = raw.copy()
    finite = np.isfinite(raw)

    bad = int(np.count_nonzero(~finite))
    if bad:
        logger.warning("Non-finite heights left unnormalized", cells=bad)
    if not finite.any():
        return result

    low = float(raw[finite].min())
    high = float(raw[finite].max())

    below = finite & (raw <= 0)
    above = finite & (raw > 0)

    if low < 0:
        result[below] = 0.5 * (raw[below] - low) / -low
    else:
        result[below] = 0.5
    if high > 0:
        result[above] = 0.5 + 0.5 * raw[above] / high

    # Tiny non-zero values can round onto 0.5; keep them on their side of sea level
    under = below & (raw < 0)
    result[under] = np.minimum(result[under], np.nextafter(0.5, 0.0))
    result[above] = np.maximum(result[above], np.nextafter(0.5, 1.0))

    return result
