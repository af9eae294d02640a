"""Model package for the city fire simulation."""

from .state import AgentSnapshot, SimEvent, SimulationState, Stats
from .cell import Cell, CellType, RoadType
from .buildings import ArsonistProfile, BuildingType
from .grid import GridMap
from .pathfinding import find_path
from .fire import FireDynamics, FireRegistry
from .agent import Agent, AgentState, AgentType
from .firefighter import Firefighter
from .police import Police
from .civilian import Civilian, RoutineType
from .arsonist import Arsonist
from .context import Scenario, TickContext
from .clock import SimulationClock
from .engine import RunState, SimulationEngine

__all__ = [
    'AgentSnapshot',
    'SimEvent',
    'SimulationState',
    'Stats',
    'Cell',
    'CellType',
    'RoadType',
    'ArsonistProfile',
    'BuildingType',
    'GridMap',
    'find_path',
    'FireDynamics',
    'FireRegistry',
    'Agent',
    'AgentState',
    'AgentType',
    'Firefighter',
    'Police',
    'Civilian',
    'RoutineType',
    'Arsonist',
    'Scenario',
    'TickContext',
    'SimulationClock',
    'RunState',
    'SimulationEngine',
]
