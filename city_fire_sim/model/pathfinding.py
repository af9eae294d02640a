"""A* pathfinding over the walkable part of the city grid."""

import heapq
import math
from itertools import count
from typing import Dict, List, Optional, Tuple

from .grid import GridMap, NEIGHBORS_8, move_cost

Position = Tuple[int, int]


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _nearest_walkable(grid: GridMap, origin: Position, towards: Position,
                      fire_exempt: bool) -> Optional[Position]:
    """Walkable 8-neighbor of ``origin`` closest to ``towards``."""
    best = None
    best_dist = math.inf
    for dx, dy in NEIGHBORS_8:
        nx, ny = origin[0] + dx, origin[1] + dy
        if grid.is_walkable(nx, ny, fire_exempt):
            dist = math.hypot(towards[0] - nx, towards[1] - ny)
            if dist < best_dist:
                best_dist = dist
                best = (nx, ny)
    return best


def find_path(grid: GridMap, start: Position, goal: Position,
              fire_exempt: bool = False) -> Optional[List[Position]]:
    """
    Shortest path from ``start`` (exclusive) to ``goal`` (inclusive).

    Grid A* with a Manhattan heuristic over 4-connected walkable cells,
    weighted by ``move_cost``; ties on f are broken by lowest accumulated
    cost. An unwalkable start or goal (e.g. the inside of a building) is
    replaced by its nearest walkable 8-neighbor and the real goal is
    appended as a final step into the building.

    Returns [] when already at the goal, None when no path exists.
    """
    start = (int(start[0]), int(start[1]))
    goal = (int(goal[0]), int(goal[1]))

    search_start = start
    if not grid.is_walkable(*start, fire_exempt=fire_exempt):
        search_start = _nearest_walkable(grid, start, goal, fire_exempt)
        if search_start is None:
            return None  # Fully enclosed

    search_goal = goal
    if not grid.is_walkable(*goal, fire_exempt=fire_exempt):
        search_goal = _nearest_walkable(grid, goal, search_start, fire_exempt)
        if search_goal is None:
            return None

    if search_start == search_goal:
        path = []
        if search_start != start:
            path.append(search_start)
        if search_goal != goal:
            path.append(goal)
        return path

    tie = count()
    open_heap = [(manhattan(search_start, search_goal), 0.0, next(tie), search_start)]
    g_score: Dict[Position, float] = {search_start: 0.0}
    came_from: Dict[Position, Position] = {}
    closed = set()

    while open_heap:
        _, g_current, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue

        if current == search_goal:
            path = [current]
            while current in came_from:
                current = came_from[current]
                path.append(current)
            path.reverse()

            # Drop the tile the agent is already standing on
            if path[0] == start:
                path = path[1:]
            if not path or path[-1] != goal:
                path.append(goal)
            return path

        closed.add(current)

        for neighbor in grid.neighbors(*current):
            if neighbor in closed or not grid.is_walkable(*neighbor, fire_exempt=fire_exempt):
                continue
            tentative = g_current + move_cost(grid.get_cell(*neighbor))
            if tentative < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                heapq.heappush(open_heap, (tentative + manhattan(neighbor, search_goal),
                                           tentative, next(tie), neighbor))

    return None
