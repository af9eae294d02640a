"""Initial agent placement."""

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from .agent import Agent
from .arsonist import Arsonist
from .buildings import BuildingType, RESIDENTIAL_BUILDINGS
from .civilian import Civilian, RoutineType
from .firefighter import Firefighter
from .police import Police

if TYPE_CHECKING:
    from ..config import SimulationConfig
    from .context import CityLocations
    from .grid import GridMap

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

STATION_BUILDINGS = (BuildingType.FIRE_STATION, BuildingType.POLICE_STATION)
# Cumulative routine split: 30% stay at home, 65% commute, 5% night shift
STAY_AT_HOME_SHARE = 0.3
COMMUTER_SHARE = 0.95
ARSONIST_MAX_INITIAL_COOLDOWN = 200


def _pick_routine(rng: np.random.Generator) -> RoutineType:
    r = rng.random()
    if r < STAY_AT_HOME_SHARE:
        return RoutineType.STAY_AT_HOME
    if r < COMMUTER_SHARE:
        return RoutineType.REGULAR_COMMUTER
    return RoutineType.NIGHT_SHIFT


def _station_for(index: int, stations: List[Position], grid: "GridMap",
                 rng: np.random.Generator) -> Optional[Position]:
    """Round-robin over stations, or any walkable cell when there are none."""
    if stations:
        return stations[index % len(stations)]
    return grid.random_walkable_location(rng)


def spawn_agents(grid: "GridMap", config: "SimulationConfig",
                 locations: "CityLocations", rng: np.random.Generator) -> List[Agent]:
    """
    Create the initial population.

    Order (and therefore id assignment, starting at 1): firefighters,
    police, civilians, arsonists by profile.
    """
    counts = config.agents
    agents: List[Agent] = []
    next_id = 1

    for i in range(counts.firefighter):
        station = _station_for(i, locations.fire_stations, grid, rng)
        if station is None:
            logger.warning("No place to spawn firefighter %d", i)
            continue
        agents.append(Firefighter(next_id, station))
        next_id += 1

    for i in range(counts.police):
        station = _station_for(i, locations.police_stations, grid, rng)
        if station is None:
            logger.warning("No place to spawn police officer %d", i)
            continue
        agents.append(Police(next_id, station))
        next_id += 1

    # One slot per unit of residential capacity
    slots = [
        cell.key
        for cell in grid.iter_cells()
        if cell.building_type in RESIDENTIAL_BUILDINGS
        for _ in range(cell.capacity)
    ]
    slots = [slots[i] for i in rng.permutation(len(slots))]
    if counts.civilian > len(slots):
        logger.info("Civilians capped at residential capacity: %d of %d",
                    len(slots), counts.civilian)

    workplaces = grid.find_locations(
        lambda c: c.building_type is not None and c.capacity > 0
        and c.building_type not in RESIDENTIAL_BUILDINGS
        and c.building_type not in STATION_BUILDINGS
    )
    for home in slots[:counts.civilian]:
        if workplaces:
            workplace = workplaces[int(rng.integers(len(workplaces)))]
        else:
            workplace = grid.random_walkable_location(rng)
        agents.append(Civilian(next_id, home, workplace, _pick_routine(rng)))
        next_id += 1

    for profile, profile_cfg in counts.arsonists.items():
        for _ in range(profile_cfg.count):
            position = grid.random_walkable_location(rng)
            if position is None:
                logger.warning("No walkable cell to spawn %s arsonist", profile.value)
                continue
            cooldown = int(rng.integers(0, ARSONIST_MAX_INITIAL_COOLDOWN))
            agents.append(Arsonist(next_id, position, profile, cooldown=cooldown))
            next_id += 1

    return agents
