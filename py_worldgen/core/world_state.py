"""
In-memory store of generated worlds.

A ``WorldSnapshot`` pairs a map with the navigation graph built from it.
Snapshots are immutable; changing heights publishes a new snapshot under
the same map id, so queries already holding the old one finish against
consistent data.
"""

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import numpy as np
import structlog

from .navigation import NavigationGraph, NavigationOptions, build_graph
from .world_map import WorldMap

logger = structlog.get_logger()


@dataclass(frozen=True)
class WorldSnapshot:
    map_id: str
    world_map: WorldMap
    graph: NavigationGraph
    version: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    generation_time_seconds: Optional[float] = None


class WorldRegistry:
    """Thread-safe map id -> snapshot store, oldest maps evicted first."""

    def __init__(self, max_maps: int = 8, options: Optional[NavigationOptions] = None):
        if max_maps <= 0:
            raise ValueError("max_maps must be positive")
        self.max_maps = max_maps
        self.options = options or NavigationOptions()
        self._snapshots: "OrderedDict[str, WorldSnapshot]" = OrderedDict()
        self._lock = threading.Lock()

    def publish(self, world_map: WorldMap, map_id: Optional[str] = None,
                generation_time_seconds: Optional[float] = None) -> WorldSnapshot:
        """Build the navigation graph and make the map visible to readers."""
        # Graph construction happens outside the lock
        graph = build_graph(world_map, self.options)
        snapshot = WorldSnapshot(map_id=map_id or str(uuid.uuid4()),
                                 world_map=world_map, graph=graph,
                                 generation_time_seconds=generation_time_seconds)
        with self._lock:
            self._snapshots[snapshot.map_id] = snapshot
            self._snapshots.move_to_end(snapshot.map_id)
            while len(self._snapshots) > self.max_maps:
                evicted, _ = self._snapshots.popitem(last=False)
                logger.info("Map evicted", map_id=evicted)

        logger.info("Map published", map_id=snapshot.map_id, cells=world_map.cell_count)
        return snapshot

    def get(self, map_id: str) -> Optional[WorldSnapshot]:
        with self._lock:
            return self._snapshots.get(map_id)

    def list(self) -> List[WorldSnapshot]:
        """Snapshots, newest first."""
        with self._lock:
            return list(reversed(self._snapshots.values()))

    def update_heights(self, map_id: str, heights: np.ndarray) -> WorldSnapshot:
        """
        Replace a map's heights.

        A new map and graph are built and swapped in atomically; the previous
        snapshot is left untouched.

        Raises:
            KeyError: If the map id is unknown
        """
        current = self.get(map_id)
        if current is None:
            raise KeyError(map_id)

        world_map = current.world_map.with_heights(heights)
        graph = build_graph(world_map, self.options)

        with self._lock:
            latest = self._snapshots.get(map_id)
            if latest is None:
                raise KeyError(map_id)
            snapshot = WorldSnapshot(map_id=map_id, world_map=world_map, graph=graph,
                                     version=latest.version + 1,
                                     created_at=latest.created_at,
                                     generation_time_seconds=latest.generation_time_seconds)
            self._snapshots[map_id] = snapshot

        logger.info("Map heights updated", map_id=map_id, version=snapshot.version)
        return snapshot

    def remove(self, map_id: str) -> bool:
        with self._lock:
            return self._snapshots.pop(map_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)
