"""Police state machine: patrolling <-> apprehending, plus fire sighting."""

from typing import Optional, Tuple, TYPE_CHECKING

import numpy as np

from .agent import Agent, AgentState, AgentType
from .cell import CellType

if TYPE_CHECKING:
    from .context import TickContext

Position = Tuple[int, int]

# Ticks an officer stays put after an arrest
ARREST_HOLD_TICKS = 2


class Police(Agent):
    """
    Patrols main roads, arrests nearby arsonists and reports fires in sight.

    Officers also project dynamic surveillance; that layer is recomputed by
    the engine from officer positions before any agent is dispatched.
    """

    agent_type = AgentType.POLICE

    def __init__(self, agent_id: int, station: Position):
        super().__init__(agent_id, station, AgentState.PATROLLING)
        self.station: Optional[Position] = station

    def update(self, ctx: "TickContext") -> None:
        if self.state == AgentState.APPREHENDING:
            self.state_timer -= 1
            if self.state_timer <= 0:
                self.state = AgentState.PATROLLING
            self._report_fire_in_sight(ctx)
            return

        if self._try_arrest(ctx):
            return  # An arrest ends the turn

        if not self.path:
            destination = self._patrol_destination(ctx)
            if destination is not None:
                self.set_path(self.path_to(ctx, destination))
            self.state = AgentState.PATROLLING

        self._report_fire_in_sight(ctx)

    def _try_arrest(self, ctx: "TickContext") -> bool:
        ix, iy = self.cell
        radius = ctx.config.police.arrest_radius
        for other in ctx.agents:
            if other is self or other.agent_type != AgentType.ARSONIST:
                continue
            if other.is_apprehended or other.distance_to(ix, iy) >= radius:
                continue

            other.state = AgentState.APPREHENDED
            other.clear_path()
            self.state = AgentState.APPREHENDING
            self.state_timer = ARREST_HOLD_TICKS
            self.clear_path()
            ctx.arrests += 1
            ox, oy = other.cell
            ctx.add_event(f"Arsonist with {other.profile.value} profile apprehended at ({ox}, {oy}).")
            return True
        return False

    def _report_fire_in_sight(self, ctx: "TickContext") -> None:
        """Report the first burning cell in the sighting box (scan order x, then y)."""
        ix, iy = self.cell
        r = ctx.config.police.sighting_radius
        in_sight = [
            key for key in ctx.registry.burning
            if abs(key[0] - ix) <= r and abs(key[1] - iy) <= r
        ]
        if in_sight:
            ctx.report_fire(*min(in_sight))

    def _patrol_destination(self, ctx: "TickContext") -> Optional[Position]:
        roads = ctx.locations.patrol_roads
        if not roads:
            return None
        if ctx.config.police.risk_weighted_patrol:
            choice = self._risk_weighted_destination(ctx, roads)
            if choice is not None:
                return choice
        return roads[int(ctx.rng.integers(len(roads)))]

    def _risk_weighted_destination(self, ctx: "TickContext", roads) -> Optional[Position]:
        """
        Sample patrol roads near the officer and prefer high-risk areas.

        score = risk_weight * mean effective arson risk of buildings around
        the candidate + random_weight * U(0, 1)
        """
        cfg = ctx.config.police
        ix, iy = self.cell
        nearby = [
            pos for pos in roads
            if abs(pos[0] - ix) <= cfg.patrol_scan_radius
            and abs(pos[1] - iy) <= cfg.patrol_scan_radius
        ]
        if not nearby:
            return None

        size = min(cfg.patrol_sample_locations, len(nearby))
        picks = ctx.rng.choice(len(nearby), size=size, replace=False)
        best, best_score = None, -np.inf
        for idx in picks:
            candidate = nearby[int(idx)]
            score = (cfg.patrol_risk_weight * area_risk(ctx, candidate, cfg.patrol_risk_radius)
                     + cfg.patrol_random_weight * ctx.rng.random())
            if score > best_score:
                best, best_score = candidate, score
        return best


def area_risk(ctx: "TickContext", center: Position, radius: int) -> float:
    """Mean effective arson risk of intact buildings within a square radius."""
    cx, cy = center
    risks = []
    for y in range(cy - radius, cy + radius + 1):
        for x in range(cx - radius, cx + radius + 1):
            cell = ctx.grid.get_cell(x, y)
            if cell is not None and cell.cell_type == CellType.BUILDING and not cell.is_burnt_out:
                risks.append(cell.effective_arson_risk())
    return float(np.mean(risks)) if risks else 0.0
