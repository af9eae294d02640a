"""Firefighter state machine: idle -> responding -> extinguishing -> returning."""

import math
from typing import Optional, Tuple, TYPE_CHECKING

from .agent import Agent, AgentState, AgentType

if TYPE_CHECKING:
    from .context import TickContext

Position = Tuple[int, int]

# Suppression time once on scene
EXTINGUISH_TICKS = 4
# Speed boost while driving to a fire
RESPONSE_SPEED_MULTIPLIER = 4.0


class Firefighter(Agent):
    """
    Responds to reported fires.

    A fire is claimed in the shared registry before the firefighter sets
    off, so no two firefighters are ever dispatched to the same fire.
    """

    agent_type = AgentType.FIREFIGHTER

    def __init__(self, agent_id: int, station: Position):
        super().__init__(agent_id, station, AgentState.IDLE)
        self.station: Optional[Position] = station
        self.extinguished_fires = 0

    @property
    def fire_exempt(self) -> bool:
        return self.state in (AgentState.RESPONDING, AgentState.EXTINGUISHING)

    def speed_multiplier(self) -> float:
        if self.state == AgentState.RESPONDING:
            return RESPONSE_SPEED_MULTIPLIER
        return 1.0

    def on_path_blocked(self) -> None:
        self.clear_path()
        self.state = AgentState.IDLE

    def update(self, ctx: "TickContext") -> None:
        if self.state == AgentState.IDLE:
            self._dispatch(ctx)
        elif self.state == AgentState.RESPONDING:
            self._arrive(ctx)
        elif self.state == AgentState.EXTINGUISHING:
            self._extinguish(ctx)
        elif self.state == AgentState.RETURNING:
            if not self.path:
                self.state = AgentState.IDLE

    def _dispatch(self, ctx: "TickContext") -> None:
        """Claim the nearest unclaimed reported fire, if it can be reached."""
        ix, iy = self.cell
        candidates = ctx.registry.unclaimed()
        if not candidates:
            return

        nearest = min(candidates, key=lambda k: (math.hypot(ix - k[0], iy - k[1]), k))
        path = self.path_to(ctx, nearest, fire_exempt=True)
        if path is None:
            return
        if not ctx.registry.claim(nearest):
            return

        self.target = nearest
        self.set_path(path)
        self.state = AgentState.RESPONDING
        ctx.add_event(f"Firefighter {self.id} dispatched to fire at ({nearest[0]}, {nearest[1]}).")

    def _target_burning(self, ctx: "TickContext") -> bool:
        if self.target is None:
            return False
        cell = ctx.grid.get_cell(*self.target)
        return cell is not None and cell.is_burning

    def _arrive(self, ctx: "TickContext") -> None:
        if self.path:
            return
        if self._target_burning(ctx):
            self.state = AgentState.EXTINGUISHING
            self.state_timer = EXTINGUISH_TICKS
        else:
            # Burnt out (or gone) before we got here
            self._stand_down(ctx)

    def _extinguish(self, ctx: "TickContext") -> None:
        self.state_timer -= 1
        if self.state_timer > 0:
            return

        target = self.target
        if target is None or not ctx.registry.extinguish(ctx.grid, target):
            self._stand_down(ctx)
            return

        self.extinguished_fires += 1
        ctx.fires_extinguished += 1
        ctx.add_event(f"Fire extinguished at ({target[0]}, {target[1]}).")
        self.target = None

        if not ctx.registry.reported and self.station is not None:
            back = self.path_to(ctx, self.station)
            if back is not None:
                self.set_path(back)
                self.state = AgentState.RETURNING
                return
        self.state = AgentState.IDLE

    def _stand_down(self, ctx: "TickContext") -> None:
        """Give up on the current target without credit."""
        if self.target is not None:
            ctx.registry.release(self.target)
        self.target = None
        self.clear_path()
        self.state = AgentState.IDLE
