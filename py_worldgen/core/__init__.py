"""
Core world generation functionality.
"""

from .errors import (ConfigurationError, DisconnectedPartitionError, UnknownCellError,
                     WorldGenerationError)
from .voronoi_graph import GridConfig, VoronoiGraph, generate_voronoi_graph
from .heightmap_generator import HeightmapGenerator, HeightmapOptions, normalize_heights
from .world_map import SEA_LEVEL, WorldMap
from .world_generator import WorldGenerationParams, generate
from .navigation import NavigationGraph, NavigationOptions, build_graph, build_navigation_graph
from .pathfinding import find_path, path_cost

__all__ = ['ConfigurationError', 'DisconnectedPartitionError', 'UnknownCellError',
           'WorldGenerationError', 'GridConfig', 'VoronoiGraph', 'generate_voronoi_graph',
           'HeightmapGenerator', 'HeightmapOptions', 'normalize_heights',
           'SEA_LEVEL', 'WorldMap', 'WorldGenerationParams', 'generate',
           'NavigationGraph', 'NavigationOptions', 'build_graph', 'build_navigation_graph',
           'find_path', 'path_cost']
