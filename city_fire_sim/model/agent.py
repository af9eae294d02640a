"""Agent base class shared by the four behavior controllers."""

import math
from collections import deque
from enum import Enum
from typing import Deque, Optional, Sequence, Tuple, TYPE_CHECKING

from .grid import GridMap, WALKABLE_FIRE_LIMIT
from .pathfinding import find_path
from .state import AgentSnapshot

if TYPE_CHECKING:
    from .context import TickContext

Position = Tuple[int, int]


class AgentType(Enum):
    FIREFIGHTER = "firefighter"
    POLICE = "police"
    CIVILIAN = "civilian"
    ARSONIST = "arsonist"


# Fixed per-tick dispatch order
DISPATCH_ORDER = {
    AgentType.FIREFIGHTER: 0,
    AgentType.POLICE: 1,
    AgentType.CIVILIAN: 2,
    AgentType.ARSONIST: 3,
}


class AgentState(Enum):
    """Possible states for an agent."""
    # Generic
    IDLE = "idle"
    PATROLLING = "patrolling"
    FLEEING = "fleeing"
    # Firefighter
    RESPONDING = "responding"
    EXTINGUISHING = "extinguishing"
    RETURNING = "returning"
    # Arsonist
    APPREHENDED = "apprehended"
    WANDERING_LIMIT_REACHED = "wandering_limit_reached"
    # Civilian
    GOING_TO_WORK = "going_to_work"
    WORKING = "working"
    GOING_HOME = "going_home"
    AT_HOME = "at_home"
    SEEKING_SHELTER = "seeking_shelter"
    SHOPPING = "shopping"
    # Police
    APPREHENDING = "apprehending"


class Agent:
    """
    A mobile entity on the city grid.

    Position is continuous so agents can be part-way between cells; the
    cell an agent occupies is the floor of its coordinates. The path is a
    queue of grid waypoints consumed front-to-back by ``move``.
    """

    agent_type: AgentType

    def __init__(self, agent_id: int, position: Tuple[float, float],
                 state: AgentState):
        self.id = agent_id
        self.x = float(position[0])
        self.y = float(position[1])
        self.state = state
        self.path: Deque[Position] = deque()
        self.target: Optional[Position] = None
        self.state_timer = 0
        self.is_trapped = False

    @property
    def cell(self) -> Position:
        """Grid cell currently occupied."""
        return (math.floor(self.x), math.floor(self.y))

    @property
    def fire_exempt(self) -> bool:
        """Whether this agent may walk into cells burning above level 3."""
        return False

    @property
    def is_apprehended(self) -> bool:
        return self.state == AgentState.APPREHENDED

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)

    def set_path(self, path: Optional[Sequence[Position]]) -> bool:
        """Replace the current path. A failed search leaves the agent idle."""
        self.path = deque(path or [])
        return path is not None

    def clear_path(self) -> None:
        self.path.clear()

    def path_to(self, ctx: "TickContext", goal: Position,
                fire_exempt: bool = False) -> Optional[list]:
        return find_path(ctx.grid, self.cell, goal, fire_exempt=fire_exempt)

    def wander(self, ctx: "TickContext") -> None:
        """Head for a random walkable cell once the current path is spent."""
        if self.path:
            return
        destination = ctx.grid.random_walkable_location(ctx.rng)
        if destination is not None:
            self.set_path(self.path_to(ctx, destination))

    def update(self, ctx: "TickContext") -> None:
        raise NotImplementedError

    def speed_multiplier(self) -> float:
        return 1.0

    def on_path_blocked(self) -> None:
        """Next waypoint is on fire and this agent may not enter it."""
        self.clear_path()

    def move(self, grid: GridMap, speed: float) -> None:
        """
        Advance along the path by up to ``speed`` cells.

        Several waypoints can be consumed in one call; the remainder of the
        budget interpolates toward the next waypoint.
        """
        budget = speed
        while self.path and budget > 0:
            nx, ny = self.path[0]
            next_cell = grid.get_cell(nx, ny)
            if (next_cell is not None and next_cell.fire_level > WALKABLE_FIRE_LIMIT
                    and not self.fire_exempt):
                self.on_path_blocked()
                return

            dx = nx - self.x
            dy = ny - self.y
            distance = math.hypot(dx, dy)
            if distance <= budget:
                self.x, self.y = float(nx), float(ny)
                self.path.popleft()
                budget -= distance
            else:
                self.x += dx / distance * budget
                self.y += dy / distance * budget
                budget = 0

    def snapshot(self) -> AgentSnapshot:
        return AgentSnapshot(
            agent_id=self.id,
            agent_type=self.agent_type.value,
            x=self.x,
            y=self.y,
            state=self.state.value,
            is_trapped=self.is_trapped
        )

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(id={self.id}, pos=({self.x:.2f}, {self.y:.2f}), "
                f"state={self.state.value})")
