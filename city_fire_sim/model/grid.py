"""City grid management for the fire simulation."""

import numpy as np
from scipy.ndimage import binary_dilation
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TYPE_CHECKING

from .buildings import BuildingProperties, BuildingType, TRANSIT_BUILDINGS
from .cell import Cell, CellType, RoadType

if TYPE_CHECKING:
    from ..config import LayoutConfig, RectSpec

Position = Tuple[int, int]

# Agents refuse to enter cells burning above this level
WALKABLE_FIRE_LIMIT = 3

# Integer codes for the terrain snapshot layer
TERRAIN_CODES: Dict[CellType, int] = {
    CellType.LAND: 0,
    CellType.ROAD: 1,
    CellType.PARK: 2,
    CellType.WATER: 3,
    CellType.BUILDING: 4,
}

NEIGHBORS_4 = [(-1, 0), (1, 0), (0, -1), (0, 1)]
NEIGHBORS_8 = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1)
]


def make_building_cell(x: int, y: int, building_type: BuildingType,
                       props: BuildingProperties) -> Cell:
    """Create a BUILDING cell carrying the properties of its building type."""
    return Cell(
        x=x, y=y,
        cell_type=CellType.BUILDING,
        building_type=building_type,
        flammability=props.flammability,
        arson_risk=props.arson_risk,
        surveillance_level=props.surveillance_level,
        capacity=props.capacity,
        has_cctv=props.has_cctv,
        has_fire_alarm=props.has_fire_alarm,
        has_sprinkler_system=props.has_sprinkler_system,
        has_security_patrol=props.has_security_patrol,
        is_community_watched=props.is_community_watched,
        is_abandoned=props.is_abandoned,
        has_poor_maintenance=props.has_poor_maintenance,
        has_graffiti=props.has_graffiti,
        is_isolated=props.is_isolated,
        is_controversial=props.is_controversial,
    )


def move_cost(cell: Optional[Cell]) -> float:
    """Pathfinding edge weight for entering a cell."""
    if cell is None:
        return np.inf
    if cell.cell_type == CellType.ROAD:
        return 1.0
    if cell.cell_type == CellType.PARK:
        return 2.0
    if cell.cell_type == CellType.BUILDING and cell.building_type in TRANSIT_BUILDINGS:
        return 1.5
    return np.inf


class GridMap:
    """
    The city grid: a 2D array of cells plus derived numpy layers.

    Coordinate convention: (x, y) for API, [y][x] / [y, x] for storage.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells: List[List[Cell]] = [
            [Cell(x=x, y=y) for x in range(width)] for y in range(height)
        ]
        # Police presence bonus, recomputed from scratch every tick
        self.dynamic_surveillance = np.zeros((height, width), dtype=np.float64)

    @classmethod
    def from_layout(cls, width: int, height: int, layout: "LayoutConfig",
                    building_properties: Dict[BuildingType, BuildingProperties]) -> "GridMap":
        """Materialize a declarative layout. Later layers overwrite earlier ones."""
        grid = cls(width, height)
        for rect in layout.water:
            grid.fill_rect(rect, CellType.WATER)
        for rect in layout.parks:
            grid.fill_rect(rect, CellType.PARK)
        for rect in layout.roads:
            grid.fill_rect(rect, CellType.ROAD, road_type=rect.road_type or RoadType.STREET)
        for spec in layout.buildings:
            props = building_properties[spec.building_type]
            w = spec.width if spec.width is not None else props.size[0]
            h = spec.height if spec.height is not None else props.size[1]
            grid.place_building(spec.building_type, props, spec.x, spec.y, w, h)
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        """Cell at (x, y), or None outside the grid."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[y][x]

    def set_cell(self, cell: Cell) -> None:
        if self.in_bounds(cell.x, cell.y):
            self.cells[cell.y][cell.x] = cell

    def _clamped_rect(self, x: int, y: int, w: int, h: int) -> Iterator[Position]:
        # Clamp to grid boundaries
        x_end = min(x + w, self.width)
        y_end = min(y + h, self.height)
        for cy in range(max(0, y), y_end):
            for cx in range(max(0, x), x_end):
                yield cx, cy

    def fill_rect(self, rect: "RectSpec", cell_type: CellType,
                  road_type: Optional[RoadType] = None) -> None:
        """Mark rectangular region with a non-building terrain."""
        for cx, cy in self._clamped_rect(rect.x, rect.y, rect.width, rect.height):
            self.cells[cy][cx] = Cell(x=cx, y=cy, cell_type=cell_type, road_type=road_type)

    def place_building(self, building_type: BuildingType, props: BuildingProperties,
                       x: int, y: int, w: int, h: int) -> None:
        for cx, cy in self._clamped_rect(x, y, w, h):
            self.cells[cy][cx] = make_building_cell(cx, cy, building_type, props)

    def iter_cells(self) -> Iterator[Cell]:
        """All cells in row-major scan order."""
        for row in self.cells:
            yield from row

    def is_walkable(self, x: int, y: int, fire_exempt: bool = False) -> bool:
        """
        Check if an agent may stand on (x, y).

        Walkable terrain is ROAD, PARK or a transit-like building. Cells
        burning above level 3 are refused unless ``fire_exempt`` (a
        firefighter on a call), who in turn may not enter burnt-out cells.
        """
        cell = self.get_cell(x, y)
        if cell is None:
            return False
        if fire_exempt:
            if cell.is_burnt_out:
                return False
        elif cell.fire_level > WALKABLE_FIRE_LIMIT:
            return False
        return move_cost(cell) != np.inf

    def neighbors(self, x: int, y: int, include_diagonals: bool = False) -> List[Position]:
        """In-bounds von Neumann (or Moore) neighbors of (x, y)."""
        offsets = NEIGHBORS_8 if include_diagonals else NEIGHBORS_4
        return [(x + dx, y + dy) for dx, dy in offsets if self.in_bounds(x + dx, y + dy)]

    def find_locations(self, predicate: Callable[[Cell], bool]) -> List[Position]:
        return [cell.key for cell in self.iter_cells() if predicate(cell)]

    def first_location(self, predicate: Callable[[Cell], bool]) -> Optional[Position]:
        for cell in self.iter_cells():
            if predicate(cell):
                return cell.key
        return None

    def random_location(self, rng: np.random.Generator,
                        predicate: Callable[[Cell], bool],
                        attempts: int = 1000) -> Optional[Position]:
        """
        Random cell satisfying ``predicate``.

        Probes ``attempts`` uniform positions, then falls back to the first
        match in scan order. Returns None when nothing matches.
        """
        for _ in range(attempts):
            x = int(rng.integers(0, self.width))
            y = int(rng.integers(0, self.height))
            if predicate(self.cells[y][x]):
                return (x, y)
        return self.first_location(predicate)

    def random_walkable_location(self, rng: np.random.Generator) -> Optional[Position]:
        return self.random_location(rng, lambda c: self.is_walkable(c.x, c.y))

    def update_dynamic_surveillance(self, positions: Iterable[Position],
                                    radius: int, bonus: float) -> None:
        """
        Recompute the police-presence layer from scratch.

        Every cell within Euclidean ``radius`` of at least one position gets
        exactly ``bonus``; overlapping officers do not accumulate.
        """
        seeds = np.zeros((self.height, self.width), dtype=bool)
        for x, y in positions:
            if self.in_bounds(x, y):
                seeds[y, x] = True

        r = max(0, int(radius))
        dy, dx = np.mgrid[-r:r + 1, -r:r + 1]
        disk = (dx * dx + dy * dy) <= r * r
        covered = binary_dilation(seeds, structure=disk)
        self.dynamic_surveillance = np.where(covered, bonus, 0.0)

    def total_surveillance(self, x: int, y: int) -> float:
        """Static plus dynamic surveillance at (x, y), capped at 1."""
        cell = self.get_cell(x, y)
        if cell is None:
            return 0.0
        return min(1.0, cell.surveillance_level + float(self.dynamic_surveillance[y, x]))

    def fire_levels(self) -> np.ndarray:
        return np.array([[c.fire_level for c in row] for row in self.cells], dtype=np.float64)

    def burnt_out_mask(self) -> np.ndarray:
        return np.array([[c.is_burnt_out for c in row] for row in self.cells], dtype=bool)

    def terrain_codes(self) -> np.ndarray:
        return np.array([[TERRAIN_CODES[c.cell_type] for c in row] for row in self.cells],
                        dtype=np.int8)
