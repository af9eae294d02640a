"""Shared pytest fixtures for the city fire simulation test suite.

Grids here are built by hand so each test controls exactly which cells are
walkable, which are buildings and where fires burn.
"""

import pytest
import numpy as np

from city_fire_sim.config import (
    BuildingSpec,
    GridConfig,
    LayoutConfig,
    RectSpec,
    SimulationConfig,
)
from city_fire_sim.model.buildings import BUILDING_PROPERTIES, BuildingType
from city_fire_sim.model.cell import CellType, RoadType
from city_fire_sim.model.context import CityLocations, Scenario, TickContext
from city_fire_sim.model.fire import FireRegistry
from city_fire_sim.model.grid import GridMap


# ============================================================================
# Grid Fixtures
# ============================================================================

def road_grid(width: int = 20, height: int = 20) -> GridMap:
    """Every cell is a STREET road."""
    grid = GridMap(width, height)
    grid.fill_rect(RectSpec(0, 0, width, height), CellType.ROAD, road_type=RoadType.STREET)
    return grid


def put_building(grid: GridMap, x: int, y: int,
                 building_type: BuildingType = BuildingType.SINGLE_FAMILY_HOME,
                 width: int = 1, height: int = 1) -> None:
    grid.place_building(building_type, BUILDING_PROPERTIES[building_type], x, y, width, height)


@pytest.fixture
def open_grid():
    """A 20x20 grid made entirely of road."""
    return road_grid()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


# ============================================================================
# Config / Context Fixtures
# ============================================================================

def make_config(width: int = 20, height: int = 20, **kwargs) -> SimulationConfig:
    return SimulationConfig(grid=GridConfig(width=width, height=height), **kwargs)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def make_ctx(rng):
    """Factory for a TickContext over a given grid.

    Usage: ctx = make_ctx(grid, agents=[...], time=5, scenario=Scenario.RIOT)
    """
    def _make(grid, agents=None, time=1, scenario=Scenario.NORMAL,
              config=None, registry=None, locations=None):
        return TickContext(
            time=time,
            grid=grid,
            registry=registry if registry is not None else FireRegistry(),
            agents=agents if agents is not None else [],
            scenario=scenario,
            rng=rng,
            config=config if config is not None else make_config(grid.width, grid.height),
            locations=locations if locations is not None else CityLocations.from_grid(grid),
        )
    return _make


def engine_config(width: int = 20, height: int = 20, roads: bool = True,
                  buildings=(), **kwargs) -> SimulationConfig:
    """A city of streets with the given 1x1 buildings and no spawned agents."""
    layout = LayoutConfig(
        roads=[RectSpec(0, 0, width, height, road_type=RoadType.STREET)] if roads else [],
        buildings=[BuildingSpec(t, x, y, 1, 1) for t, x, y in buildings],
    )
    kwargs.setdefault('seed', 1)
    return SimulationConfig(grid=GridConfig(width=width, height=height), layout=layout, **kwargs)
