"""Per-tick shared context handed to every agent controller."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from .buildings import BuildingType, SHOP_BUILDINGS
from .cell import RoadType
from .fire import FireRegistry
from .grid import GridMap
from .state import SimEvent

if TYPE_CHECKING:
    from ..config import SimulationConfig
    from .agent import Agent

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

PATROL_ROAD_TYPES = (RoadType.HIGHWAY, RoadType.MAIN_ROAD)


class Scenario(Enum):
    NORMAL = "NORMAL"
    RIOT = "RIOT"
    LARGE_EVENT = "LARGE_EVENT"
    CRISIS = "CRISIS"


@dataclass
class CityLocations:
    """Landmarks looked up once per run from the static layout."""
    shops: List[Position] = field(default_factory=list)
    fire_stations: List[Position] = field(default_factory=list)
    police_stations: List[Position] = field(default_factory=list)
    # HIGHWAY and MAIN_ROAD cells police patrol between
    patrol_roads: List[Position] = field(default_factory=list)
    event_venue: Optional[Position] = None
    riot_hotspot: Optional[Position] = None

    @classmethod
    def from_grid(cls, grid: GridMap) -> "CityLocations":
        return cls(
            shops=grid.find_locations(lambda c: c.building_type in SHOP_BUILDINGS),
            fire_stations=grid.find_locations(
                lambda c: c.building_type == BuildingType.FIRE_STATION),
            police_stations=grid.find_locations(
                lambda c: c.building_type == BuildingType.POLICE_STATION),
            patrol_roads=grid.find_locations(lambda c: c.road_type in PATROL_ROAD_TYPES),
            event_venue=grid.first_location(lambda c: c.building_type == BuildingType.STADIUM),
            riot_hotspot=grid.first_location(lambda c: c.building_type == BuildingType.TOWN_HALL),
        )


@dataclass
class TickContext:
    """
    Single owner of the mutable state shared by agents during one tick.

    Every controller receives the same instance, so a mutation made by an
    agent is visible to every agent dispatched after it in the same tick.
    """
    time: int
    grid: GridMap
    registry: FireRegistry
    agents: List["Agent"]
    scenario: Scenario
    rng: np.random.Generator
    config: "SimulationConfig"
    locations: CityLocations
    events: List[SimEvent] = field(default_factory=list)
    # Per-tick tallies folded into Stats by the engine
    fires_extinguished: int = 0
    arrests: int = 0
    fires_by_profile: Counter = field(default_factory=Counter)

    def add_event(self, message: str) -> None:
        self.events.append(SimEvent(timestamp=self.time, message=message))
        logger.debug("t=%d: %s", self.time, message)

    def report_fire(self, x: int, y: int) -> None:
        """Make the fire at (x, y) visible to firefighters, once."""
        key = (x, y)
        if key in self.registry.reported or key in self.registry.claimed:
            return
        cell = self.grid.get_cell(x, y)
        if cell is not None and cell.has_fire_alarm:
            self.add_event(f"AUTOMATED ALARM: Fire detected at ({x}, {y}).")
        else:
            self.add_event(f"Fire reported at ({x}, {y}).")
        self.registry.report(key)
