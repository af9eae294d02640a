"""Arsonist behavior: cooldown, per-profile fire cap and opportunistic ignition."""

from typing import List, Tuple, TYPE_CHECKING

from .agent import Agent, AgentState, AgentType
from .buildings import ARSONIST_PROFILES, ArsonistProfile
from .cell import Cell, CellType

if TYPE_CHECKING:
    from .civilian import Civilian
    from .context import TickContext

Position = Tuple[float, float]

# Starting intensity of an arson fire
IGNITION_LEVEL = 3.33
SCAN_RADIUS = 3
# Surveillance halves the chance at most
SURVEILLANCE_DETERRENCE = 0.5
# Cooldown after a successful fire, drawn from [low, high)
COOLDOWN_RANGE = (40, 80)


class Arsonist(Agent):
    """Wanders the city and sets fire to buildings matching its profile."""

    agent_type = AgentType.ARSONIST

    def __init__(self, agent_id: int, position: Position,
                 profile: ArsonistProfile, cooldown: int = 0):
        super().__init__(agent_id, position, AgentState.PATROLLING)
        self.profile = profile
        self.cooldown = cooldown
        self.arson_count = 0

    @classmethod
    def from_civilian(cls, civilian: "Civilian",
                      profile: ArsonistProfile = ArsonistProfile.PROTESTER) -> "Arsonist":
        """Riot conversion: same id and position, new behavior."""
        return cls(civilian.id, (civilian.x, civilian.y), profile)

    def update(self, ctx: "TickContext") -> None:
        if self.is_apprehended:
            return

        self.cooldown = max(0, self.cooldown - 1)
        if self.cooldown > 0:
            self.wander(ctx)
            return

        if (self.state == AgentState.WANDERING_LIMIT_REACHED
                or self.arson_count >= ctx.config.agents.max_fires(self.profile)):
            self.state = AgentState.WANDERING_LIMIT_REACHED
            self.wander(ctx)
            return

        targets = self._targets_in_reach(ctx)
        if not targets:
            self.wander(ctx)
            return

        target = targets[int(ctx.rng.integers(len(targets)))]
        chance = (target.effective_arson_risk()
                  * ctx.config.arson.base_probability_multiplier
                  * (1 - ctx.grid.total_surveillance(target.x, target.y) * SURVEILLANCE_DETERRENCE))
        if ctx.rng.random() < chance:
            self._set_fire(ctx, target)

    def _targets_in_reach(self, ctx: "TickContext") -> List[Cell]:
        targets = ARSONIST_PROFILES[self.profile].targets
        ix, iy = self.cell
        found = []
        for dx in range(-SCAN_RADIUS, SCAN_RADIUS + 1):
            for dy in range(-SCAN_RADIUS, SCAN_RADIUS + 1):
                cell = ctx.grid.get_cell(ix + dx, iy + dy)
                if cell is None or cell.cell_type != CellType.BUILDING:
                    continue
                if cell.fire_level != 0 or cell.is_burnt_out:
                    continue
                if targets is None or cell.building_type in targets:
                    found.append(cell)
        return found

    def _set_fire(self, ctx: "TickContext", target: Cell) -> None:
        if not ctx.registry.ignite(ctx.grid, target.key, IGNITION_LEVEL, ctx.time):
            return
        label = target.building_type.label if target.building_type else 'Building'
        ctx.add_event(f"Fire started by {ARSONIST_PROFILES[self.profile].name} "
                      f"at a {label} ({target.x}, {target.y}).")
        self.arson_count += 1
        self.cooldown = int(ctx.rng.integers(*COOLDOWN_RANGE))
        ctx.fires_by_profile[self.profile.value] += 1
