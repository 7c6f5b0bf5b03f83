"""A* search over a navigation graph."""

import heapq
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from .navigation import NavigationGraph

logger = structlog.get_logger()

NO_PARENT = -1


@dataclass
class SearchNode:
    """One visited cell in the search arena; ``parent`` indexes the arena."""
    cell: int
    g: float
    parent: int = NO_PARENT
    closed: bool = False


def _reconstruct(arena: List[SearchNode], index: int) -> List[int]:
    # Walking parents from the goal yields goal-first order
    path = []
    while index != NO_PARENT:
        node = arena[index]
        path.append(node.cell)
        index = node.parent
    return path


def find_path(graph: NavigationGraph, start: int, goal: int,
              max_expansions: Optional[int] = None) -> Optional[List[int]]:
    """
    Find a cheapest path between two cells.

    The heuristic is the horizontal straight-line distance to the goal,
    which never exceeds the 3D edge weights. Equal priorities are broken
    by insertion order.

    Args:
        graph: Navigation graph
        start: Start cell id
        goal: Goal cell id
        max_expansions: Give up after closing this many nodes (None for no limit)

    Returns:
        Cell ids ordered goal first, ending with ``start``; None when the goal
        is unreachable or the expansion budget runs out

    Raises:
        UnknownCellError: If start or goal is not a graph node
    """
    start = graph._check(start)
    goal = graph._check(goal)

    arena = [SearchNode(cell=start, g=0.0)]
    index_of: Dict[int, int] = {start: 0}
    open_set = [(graph.horizontal_distance(start, goal), 0, 0)]
    counter = 1
    expansions = 0

    while open_set:
        _, _, index = heapq.heappop(open_set)
        node = arena[index]
        if node.closed:
            continue
        if node.cell == goal:
            logger.debug("Path found", start=start, goal=goal,
                         expansions=expansions, cost=round(node.g, 3))
            return _reconstruct(arena, index)

        node.closed = True
        expansions += 1
        if max_expansions is not None and expansions > max_expansions:
            logger.debug("Path search budget exhausted", start=start, goal=goal,
                         max_expansions=max_expansions)
            return None

        for neighbor, weight in graph.adjacency[node.cell]:
            tentative = node.g + weight
            neighbor_index = index_of.get(neighbor)
            if neighbor_index is None:
                neighbor_index = len(arena)
                arena.append(SearchNode(cell=neighbor, g=tentative, parent=index))
                index_of[neighbor] = neighbor_index
            else:
                known = arena[neighbor_index]
                if known.closed or tentative >= known.g:
                    continue
                known.g = tentative
                known.parent = index
            priority = tentative + graph.horizontal_distance(neighbor, goal)
            heapq.heappush(open_set, (priority, counter, neighbor_index))
            counter += 1

    return None


def path_cost(graph: NavigationGraph, path: Sequence[int]) -> float:
    """
    Sum of edge weights along a path (either direction).

    Raises:
        ValueError: If consecutive cells are not linked
    """
    total = 0.0
    for a, b in zip(path, path[1:]):
        weight = graph.edge_weight(a, b)
        if weight is None:
            raise ValueError(f"Cells {a} and {b} are not linked")
        total += weight
    return total
