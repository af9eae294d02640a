"""Unit tests for grid A* pathfinding."""

from city_fire_sim.model.buildings import BuildingType
from city_fire_sim.model.cell import Cell, CellType
from city_fire_sim.model.grid import GridMap
from city_fire_sim.model.pathfinding import find_path, manhattan

from conftest import put_building, road_grid


def _is_connected(start, path):
    """Each step moves to a 4-neighbor of the previous position."""
    prev = start
    for step in path:
        if manhattan(prev, step) != 1:
            return False
        prev = step
    return True


class TestFindPath:

    def test_straight_line(self, open_grid):
        path = find_path(open_grid, (0, 0), (5, 0))
        assert path == [(1, 0), (2, 0), (3, 0), (4, 0), (5, 0)]

    def test_shortest_length_on_open_grid(self, open_grid):
        path = find_path(open_grid, (2, 3), (9, 12))
        assert len(path) == manhattan((2, 3), (9, 12))
        assert path[-1] == (9, 12)
        assert _is_connected((2, 3), path)

    def test_start_equals_goal(self, open_grid):
        assert find_path(open_grid, (4, 4), (4, 4)) == []

    def test_routes_around_obstacles(self):
        grid = road_grid(5, 5)
        for y in range(0, 4):
            grid.set_cell(Cell(x=2, y=y, cell_type=CellType.WATER))
        path = find_path(grid, (0, 0), (4, 0))
        assert path is not None
        assert path[-1] == (4, 0)
        assert (2, 4) in path
        assert all(grid.is_walkable(*p) for p in path)

    def test_prefers_roads_over_parks(self):
        # Direct row is park (cost 2), a detour row is road (cost 1)
        grid = road_grid(7, 3)
        for x in range(1, 6):
            grid.set_cell(Cell(x=x, y=0, cell_type=CellType.PARK))
        path = find_path(grid, (0, 0), (6, 0))
        assert path is not None
        assert not any(p[1] == 0 and 1 <= p[0] <= 5 for p in path)

    def test_building_goal_is_final_step(self):
        grid = road_grid(6, 6)
        put_building(grid, 5, 5, BuildingType.SINGLE_FAMILY_HOME)
        path = find_path(grid, (0, 0), (5, 5))
        assert path[-1] == (5, 5)
        assert all(grid.is_walkable(*p) for p in path[:-1])

    def test_start_inside_building(self):
        grid = road_grid(6, 6)
        put_building(grid, 0, 0, BuildingType.SINGLE_FAMILY_HOME)
        path = find_path(grid, (0, 0), (5, 0))
        assert path is not None
        assert path[-1] == (5, 0)

    def test_enclosed_start_returns_none(self):
        grid = GridMap(5, 5)  # all LAND, nothing walkable
        grid.set_cell(Cell(x=2, y=2, cell_type=CellType.ROAD))
        grid.set_cell(Cell(x=0, y=0, cell_type=CellType.ROAD))
        assert find_path(grid, (2, 2), (0, 0)) is None

    def test_unreachable_goal_returns_none(self):
        grid = road_grid(5, 5)
        for y in range(5):
            grid.set_cell(Cell(x=2, y=y, cell_type=CellType.WATER))
        assert find_path(grid, (0, 0), (4, 4)) is None

    def test_fire_blocks_unless_exempt(self):
        grid = road_grid(3, 1)
        grid.get_cell(1, 0).fire_level = 6.0
        assert find_path(grid, (0, 0), (2, 0)) is None
        assert find_path(grid, (0, 0), (2, 0), fire_exempt=True) == [(1, 0), (2, 0)]

    def test_path_to_burning_building(self):
        grid = road_grid(4, 1)
        put_building(grid, 3, 0, BuildingType.SINGLE_FAMILY_HOME)
        grid.get_cell(3, 0).fire_level = 8.0
        path = find_path(grid, (0, 0), (3, 0), fire_exempt=True)
        assert path == [(1, 0), (2, 0), (3, 0)]
