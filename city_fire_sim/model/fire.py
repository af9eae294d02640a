"""Fire registry and per-tick fire dynamics."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Set, Tuple

import numpy as np

from .cell import CellType, MAX_FIRE_LEVEL
from .grid import GridMap, NEIGHBORS_4

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Ticks a fire must burn (above SPREAD_THRESHOLD) before the cell is destroyed
BURN_OUT_TICKS = 10
# Ticks after ignition before a cell can ignite its neighbors
SPREAD_DELAY_TICKS = 1
# Intensity above which a cell spreads and can burn out
SPREAD_THRESHOLD = 5
# Per-tick growth chance is GROWTH_RATE * effective flammability
GROWTH_RATE = 0.1
# Intensity of a cell freshly ignited by spread
SPREAD_IGNITION_LEVEL = 1
NON_FLAMMABLE_TERRAIN = (CellType.ROAD, CellType.WATER)


class FireRegistry:
    """
    The three shared fire sets.

    burning  -- cells with an active fire, tracked for growth/spread/burnout
    reported -- fires known to responders
    claimed  -- fires reserved by a dispatched firefighter

    Invariant: claimed is a subset of reported.
    """

    def __init__(self):
        self.burning: Set[Position] = set()
        self.reported: Set[Position] = set()
        self.claimed: Set[Position] = set()

    def ignite(self, grid: GridMap, key: Position, level: float, time: int) -> bool:
        """Set a cell alight. Returns False for missing or burnt-out cells."""
        cell = grid.get_cell(*key)
        if cell is None or cell.is_burnt_out:
            return False
        cell.fire_level = min(float(MAX_FIRE_LEVEL), level)
        cell.fire_ignition_time = time
        self.burning.add(key)
        return True

    def report(self, key: Position) -> bool:
        """Make a fire visible to responders. Returns True if newly reported."""
        if key in self.reported:
            return False
        self.reported.add(key)
        return True

    def unclaimed(self) -> Set[Position]:
        return self.reported - self.claimed

    def claim(self, key: Position) -> bool:
        """Reserve a reported fire. Check and insert happen together."""
        if key not in self.reported or key in self.claimed:
            return False
        self.claimed.add(key)
        return True

    def release(self, key: Position) -> None:
        """Drop a fire from reported and claimed together."""
        self.reported.discard(key)
        self.claimed.discard(key)

    def extinguish(self, grid: GridMap, key: Position) -> bool:
        """
        Put out the fire at ``key`` and forget it everywhere.

        Returns True only if the cell was actually burning.
        """
        cell = grid.get_cell(*key)
        was_burning = cell is not None and cell.is_burning
        if was_burning:
            cell.fire_level = 0.0
            cell.fire_ignition_time = None
        self.burning.discard(key)
        self.release(key)
        return was_burning

    def burn_out(self, key: Position) -> None:
        self.burning.discard(key)
        self.release(key)

    def clear(self) -> None:
        self.burning.clear()
        self.reported.clear()
        self.claimed.clear()


@dataclass
class FirePassResult:
    burnt_out: Set[Position] = field(default_factory=set)
    buildings_destroyed: int = 0


class FireDynamics:
    """
    Advances every burning cell by one tick.

    Per burning cell: burnout check, intensity growth, automated alarm,
    then spread to eligible 4-neighbors. Cells ignited during a pass are
    not processed until the next pass.
    """

    def __init__(self, rng: np.random.Generator, probabilistic_spread: bool = False):
        self.rng = rng
        self.probabilistic_spread = probabilistic_spread

    def _spreads_to(self, source_level: float, neighbor_flammability: float) -> bool:
        if self.probabilistic_spread:
            chance = 0.01 * neighbor_flammability * (source_level * 1.5)
            return self.rng.random() < chance
        return source_level > SPREAD_THRESHOLD

    def step(self, grid: GridMap, registry: FireRegistry, time: int,
             report_fire: Callable[[int, int], None],
             add_event: Callable[[str], None]) -> FirePassResult:
        result = FirePassResult()

        for key in sorted(registry.burning):
            x, y = key
            cell = grid.get_cell(x, y)
            if cell is None:
                continue

            if (cell.fire_ignition_time is not None
                    and time - cell.fire_ignition_time >= BURN_OUT_TICKS
                    and cell.fire_level > SPREAD_THRESHOLD):
                cell.burn_out()
                result.burnt_out.add(key)
                if cell.cell_type == CellType.BUILDING:
                    result.buildings_destroyed += 1
                    label = cell.building_type.label if cell.building_type else 'Building'
                    add_event(f"{label} at ({x}, {y}) completely burned down.")
                continue

            if cell.fire_level < MAX_FIRE_LEVEL:
                if self.rng.random() < GROWTH_RATE * cell.effective_flammability():
                    cell.fire_level = min(float(MAX_FIRE_LEVEL), cell.fire_level + 1)

            if cell.fire_level == 1 and cell.has_fire_alarm:
                report_fire(x, y)

            if (cell.fire_ignition_time is None
                    or time - cell.fire_ignition_time < SPREAD_DELAY_TICKS):
                continue

            for dx, dy in NEIGHBORS_4:
                neighbor = grid.get_cell(x + dx, y + dy)
                if neighbor is None or neighbor.cell_type in NON_FLAMMABLE_TERRAIN:
                    continue
                if neighbor.is_burnt_out or neighbor.fire_level != 0:
                    continue
                if neighbor.key in registry.burning:
                    continue
                if self._spreads_to(cell.fire_level, neighbor.effective_flammability()):
                    registry.ignite(grid, neighbor.key, SPREAD_IGNITION_LEVEL, time)

        for key in result.burnt_out:
            registry.burn_out(key)
        if result.burnt_out:
            logger.debug("t=%d: %d cell(s) burnt out", time, len(result.burnt_out))
        return result
