"""Civilian daily routines, scenario overrides and fire flight."""

import math
from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

from .agent import Agent, AgentState, AgentType
from .clock import hour_of_day
from .context import Scenario

if TYPE_CHECKING:
    from .context import TickContext

Position = Tuple[int, int]

# Chebyshev radius in which civilians notice (and report) fires
PERCEPTION_RADIUS = 8
FLEE_DISTANCE_FACTOR = 5
SCENARIO_TAKEOVER_PROB = 0.7
# Rioters within this distance of the hotspot stop and hold
RIOT_HOLD_RADIUS = 20
INITIAL_HOME_TIMER = 100


class RoutineType(Enum):
    REGULAR_COMMUTER = "REGULAR_COMMUTER"
    STAY_AT_HOME = "STAY_AT_HOME"
    NIGHT_SHIFT = "NIGHT_SHIFT"


def is_commuter_work_hour(hour: int) -> bool:
    return 8 <= hour < 18


def is_night_shift_work_hour(hour: int) -> bool:
    return hour >= 20 or hour < 6


class Civilian(Agent):
    """
    A resident following a daily routine.

    Priority each tick: trapped (do nothing) > fleeing from nearby fire >
    scenario override > routine > wandering.
    """

    agent_type = AgentType.CIVILIAN

    def __init__(self, agent_id: int, home: Position,
                 workplace: Optional[Position] = None,
                 routine: RoutineType = RoutineType.REGULAR_COMMUTER):
        super().__init__(agent_id, home, AgentState.AT_HOME)
        self.home: Optional[Position] = home
        self.workplace = workplace
        self.routine = routine
        self.state_timer = INITIAL_HOME_TIMER

    def on_path_blocked(self) -> None:
        self.clear_path()
        self.state = AgentState.FLEEING

    def update(self, ctx: "TickContext") -> None:
        if self.is_trapped:
            return

        fires = self._fires_in_sight(ctx)
        if fires:
            self._flee(ctx, fires)
            return
        if self.state == AgentState.FLEEING:
            self.state = AgentState.PATROLLING

        if not self.path:
            self._arrive(ctx)
        if self.state_timer > 0:
            self.state_timer -= 1

        if self._scenario_override(ctx):
            return

        hour = hour_of_day(ctx.time)
        if self.routine == RoutineType.STAY_AT_HOME:
            self._stay_at_home(ctx)
        elif self.routine == RoutineType.NIGHT_SHIFT:
            self._night_shift(ctx, hour)
        else:
            self._commute(ctx, hour)

        if not self.path and self.state in (AgentState.IDLE, AgentState.PATROLLING):
            self.wander(ctx)

    # --- fire ---------------------------------------------------------------

    def _fires_in_sight(self, ctx: "TickContext") -> List[Position]:
        """Burning cells in the perception box, reported as they are seen."""
        ix, iy = self.cell
        fires = sorted(
            key for key in ctx.registry.burning
            if abs(key[0] - ix) <= PERCEPTION_RADIUS and abs(key[1] - iy) <= PERCEPTION_RADIUS
        )
        for x, y in fires:
            ctx.report_fire(x, y)
        return fires

    def _flee(self, ctx: "TickContext", fires: List[Position]) -> None:
        self.state = AgentState.FLEEING
        ix, iy = self.cell
        cx = sum(f[0] for f in fires) / len(fires)
        cy = sum(f[1] for f in fires) / len(fires)

        tx = ix + (ix - cx) * FLEE_DISTANCE_FACTOR
        ty = iy + (iy - cy) * FLEE_DISTANCE_FACTOR
        tx = min(max(math.floor(tx + 0.5), 0), ctx.grid.width - 1)
        ty = min(max(math.floor(ty + 0.5), 0), ctx.grid.height - 1)

        path = self.path_to(ctx, (tx, ty))
        if path is None:
            fallback = ctx.grid.random_walkable_location(ctx.rng)
            if fallback is not None:
                path = self.path_to(ctx, fallback)
        self.set_path(path)

    # --- routine ------------------------------------------------------------

    def _arrive(self, ctx: "TickContext") -> None:
        """Path complete: settle into whatever the trip was for."""
        if self.state == AgentState.GOING_TO_WORK:
            self.state = AgentState.WORKING
            self.state_timer = int(ctx.rng.integers(100, 300))
        elif self.state == AgentState.GOING_HOME:
            self.state = AgentState.AT_HOME
            self.state_timer = int(ctx.rng.integers(100, 300))
        elif self.state == AgentState.SHOPPING:
            self.state = AgentState.PATROLLING
            self.state_timer = int(ctx.rng.integers(20, 70))

    def _go(self, ctx: "TickContext", destination: Optional[Position],
            state: AgentState) -> None:
        if destination is None:
            return
        self.set_path(self.path_to(ctx, destination))
        self.state = state

    def _nearest_shop(self, ctx: "TickContext") -> Optional[Position]:
        shops = ctx.locations.shops
        if not shops:
            return None
        ix, iy = self.cell
        return min(shops, key=lambda s: (math.hypot(s[0] - ix, s[1] - iy), s))

    def _stay_at_home(self, ctx: "TickContext") -> None:
        if self.state == AgentState.AT_HOME:
            return
        if self.state == AgentState.GOING_HOME and self.path:
            return
        self._go(ctx, self.home, AgentState.GOING_HOME)

    def _night_shift(self, ctx: "TickContext", hour: int) -> None:
        if is_night_shift_work_hour(hour):
            if self.state not in (AgentState.WORKING, AgentState.GOING_TO_WORK):
                self._go(ctx, self.workplace, AgentState.GOING_TO_WORK)
        elif self.state == AgentState.WORKING:
            self._go(ctx, self.home, AgentState.GOING_HOME)

    def _commute(self, ctx: "TickContext", hour: int) -> None:
        if is_commuter_work_hour(hour):
            if self.state == AgentState.AT_HOME:
                self._go(ctx, self.workplace, AgentState.GOING_TO_WORK)
            elif self.state == AgentState.WORKING and self.state_timer == 0:
                if ctx.rng.random() < 0.2:
                    shop = self._nearest_shop(ctx)
                    if shop is not None:
                        self._go(ctx, shop, AgentState.SHOPPING)
                    else:
                        self.state_timer = 100
            return

        if self.home is None:
            return
        if self.state in (AgentState.WORKING, AgentState.PATROLLING, AgentState.SHOPPING):
            if (self.state != AgentState.SHOPPING and ctx.locations.shops
                    and ctx.rng.random() < 0.1):
                self._go(ctx, self._nearest_shop(ctx), AgentState.SHOPPING)
            else:
                self._go(ctx, self.home, AgentState.GOING_HOME)

    # --- scenarios ----------------------------------------------------------

    def _scenario_override(self, ctx: "TickContext") -> bool:
        """Riot / large-event behaviour. Returns True when it replaced the routine."""
        if ctx.scenario == Scenario.RIOT and ctx.locations.riot_hotspot is not None:
            if (self.routine == RoutineType.REGULAR_COMMUTER
                    and ctx.rng.random() < SCENARIO_TAKEOVER_PROB):
                hotspot = ctx.locations.riot_hotspot
                if self.state not in (AgentState.FLEEING, AgentState.PATROLLING):
                    self.state = AgentState.PATROLLING
                    self.set_path(self.path_to(ctx, hotspot))
                ix, iy = self.cell
                if math.hypot(ix - hotspot[0], iy - hotspot[1]) < RIOT_HOLD_RADIUS:
                    self.clear_path()
                return True

        if ctx.scenario == Scenario.LARGE_EVENT and ctx.locations.event_venue is not None:
            if (self.routine != RoutineType.STAY_AT_HOME
                    and ctx.rng.random() < SCENARIO_TAKEOVER_PROB):
                venue = ctx.locations.event_venue
                if self.cell == venue:
                    self.clear_path()
                    self.state = AgentState.PATROLLING
                elif self.state != AgentState.PATROLLING or not self.path:
                    path = self.path_to(ctx, venue)
                    if path is not None:
                        self.set_path(path)
                        self.state = AgentState.PATROLLING
                return True

        return False
