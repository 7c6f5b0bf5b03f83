"""
World generation pipeline.

Stages run strictly in sequence and each consumes the previous stage's
output in full:

1. Plate partition and plate growing
2. Map partition and continent growing
3. Plate lookup, plate kinematics and boundary classification
4. Distance fields
5. Height assembly, river carving and normalization

The ``WorldMap`` is only constructed once normalization is complete, so no
caller can observe a partially generated map.
"""

import time
from dataclasses import dataclass, field

import structlog

from .alea_prng import AleaPRNG
from .distance_fields import compute_distance_fields
from .errors import ConfigurationError
from .heightmap_generator import HeightmapGenerator, HeightmapOptions, normalize_heights
from .hydrology import Hydrology, HydrologyOptions
from .region_growing import ContinentOptions, grow_continents, grow_plates, project_plates
from .tectonics import TectonicsOptions, find_boundary_edges, generate_plates
from .voronoi_graph import GridConfig, generate_voronoi_graph
from .world_map import WorldMap

logger = structlog.get_logger()


@dataclass
class WorldGenerationParams:
    """Parameters of one generation run.

    The plate partition has ``plate_count * plate_size`` cells; the map
    partition has ``continent_count * continent_size + ocean_count *
    ocean_size`` cells.
    """
    width: float = 16.0
    height: float = 9.0
    plate_count: int = 10
    plate_size: int = 10
    continent_count: int = 55
    continent_size: int = 350
    ocean_count: int = 66
    ocean_size: int = 250
    scale: float = 30.0
    height_scale: float = 20.0
    relax_iterations: int = 3

    tectonics: TectonicsOptions = field(default_factory=TectonicsOptions)
    continents: ContinentOptions = field(default_factory=ContinentOptions)
    heightmap: HeightmapOptions = field(default_factory=HeightmapOptions)
    hydrology: HydrologyOptions = field(default_factory=HydrologyOptions)

    def __post_init__(self):
        for name in ("width", "height", "scale", "height_scale"):
            if not getattr(self, name) > 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("plate_count", "plate_size", "continent_count", "continent_size",
                     "ocean_size"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.ocean_count < 0:
            raise ConfigurationError(f"ocean_count must not be negative, got {self.ocean_count}")
        if self.relax_iterations < 0:
            raise ConfigurationError("relax_iterations must not be negative")

    @property
    def plate_cells(self) -> int:
        return self.plate_count * self.plate_size

    @property
    def map_cells(self) -> int:
        return self.continent_count * self.continent_size + self.ocean_count * self.ocean_size


def generate(config: WorldGenerationParams, rng: AleaPRNG) -> WorldMap:
    """
    Generate a complete world map.

    Args:
        config: Generation parameters
        rng: Random source; fixes the whole map for a given seed

    Returns:
        Immutable WorldMap with normalized heights

    Raises:
        ConfigurationError: On invalid parameters or a disconnected partition
    """
    started = time.perf_counter()
    logger.info("Generating world", seed=rng.seed,
                width=config.width, height=config.height,
                plate_cells=config.plate_cells, map_cells=config.map_cells)

    # Stage 1: plates on the coarse partition
    plate_graph = generate_voronoi_graph(
        GridConfig(config.width, config.height, config.plate_cells), rng,
        relax_iterations=config.relax_iterations)
    plate_assignment = grow_plates(plate_graph, config.plate_count, rng)

    # Stage 2: continents on the map partition
    map_graph = generate_voronoi_graph(
        GridConfig(config.width, config.height, config.map_cells), rng,
        relax_iterations=config.relax_iterations)
    continents = grow_continents(map_graph, config.continent_count, config.ocean_count,
                                 rng, config.continents)

    # Stage 3: kinematics
    cell_plates = project_plates(map_graph, plate_graph, plate_assignment)
    plates = generate_plates(config.plate_count, cell_plates, ~continents.is_ocean,
                             rng, config.tectonics)
    edges = find_boundary_edges(map_graph, cell_plates, plates, continents.is_ocean,
                                config.tectonics)

    # Stage 4: distance fields
    distances = compute_distance_fields(map_graph, continents.is_ocean, edges)

    # Stage 5: heights
    generator = HeightmapGenerator(map_graph, cell_plates, plates, continents.is_ocean,
                                   distances, rng, config.heightmap)
    raw_heights = generator.assemble()
    rivers = Hydrology(map_graph, raw_heights, config.hydrology).carve_rivers()
    heights = normalize_heights(rivers.heights)

    world = WorldMap(
        graph=map_graph,
        heights=heights,
        scale=config.scale,
        height_scale=config.height_scale,
        seed=rng.seed,
        plate_ids=cell_plates,
        continent_ids=continents.continent_ids,
        river_flow=rivers.flow,
        plates=plates,
        boundary_edges=edges,
    )

    logger.info("World generated", seed=rng.seed, cells=world.cell_count,
                land_fraction=round(world.land_fraction(), 3),
                river_cells=rivers.river_cells,
                seconds=round(time.perf_counter() - started, 2))
    return world

