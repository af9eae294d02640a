"""Simulation engine for the city fire simulation."""

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

import numpy as np

from .agent import Agent, AgentType, DISPATCH_ORDER
from .arsonist import Arsonist, IGNITION_LEVEL
from .buildings import ArsonistProfile
from .civilian import Civilian
from .clock import TICKS_PER_HOUR, hour_of_day
from .context import CityLocations, Scenario, TickContext
from .fire import FireDynamics, FireRegistry
from .grid import GridMap, NEIGHBORS_8
from .spawner import spawn_agents
from .state import EVENT_LOG_LIMIT, SimEvent, SimulationState, Stats

if TYPE_CHECKING:
    from ..config import SimulationConfig

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# An agent on a cell hotter than this may be trapped
TRAP_FIRE_LEVEL = 7
RUSH_HOURS = ((7, 9), (16, 18))
RUSH_HOUR_CONGESTION = 0.6
SCENARIO_CONGESTION = {
    Scenario.RIOT: 0.4,
    Scenario.LARGE_EVENT: 0.4,
    Scenario.CRISIS: 0.5,
}


class RunState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


def congestion_multiplier(time: int, scenario: Scenario) -> float:
    """Movement speed factor for the time of day and scenario."""
    hour = hour_of_day(time)
    multiplier = 1.0
    if any(start <= hour <= end for start, end in RUSH_HOURS):
        multiplier = RUSH_HOUR_CONGESTION
    if scenario in SCENARIO_CONGESTION:
        multiplier = min(multiplier, SCENARIO_CONGESTION[scenario])
    return multiplier


class SimulationEngine:
    """
    Orchestrates the discrete-time simulation loop.

    One tick, strictly in order:
    1. Advance time
    2. Recompute police surveillance
    3. Fire pass (growth, spread, burnout)
    4. Drop burnt-out cells from the fire sets
    5. Building-collapse casualties
    6. Riot conversions
    7. Trapped status
    8. Agent controllers (firefighters, police, civilians, arsonists)
    9. Movement
    10. Stats, history and events
    """

    def __init__(self, config: "SimulationConfig",
                 on_end: Optional[Callable[["SimulationEngine"], None]] = None):
        if config.max_ticks < 1:
            raise ValueError(f"Run length must be at least one tick, got {config.max_ticks}")
        self.config = config
        self.on_end = on_end
        self._initialize(f"Simulation initialized with {config.scenario.value} scenario.")

    def _initialize(self, message: str) -> None:
        config = self.config
        self.current_step = 0
        self.run_state = RunState.NOT_STARTED
        self.scenario = config.scenario
        self.rng = np.random.default_rng(config.seed)

        self.grid = GridMap.from_layout(config.grid.width, config.grid.height,
                                        config.layout, config.building_properties)
        self.locations = CityLocations.from_grid(self.grid)
        self.registry = FireRegistry()
        self.fire = FireDynamics(self.rng, config.fire.probabilistic_spread)
        self.agents: List[Agent] = spawn_agents(self.grid, config, self.locations, self.rng)

        self.stats = Stats()
        self.events: Deque[SimEvent] = deque(maxlen=EVENT_LOG_LIMIT)
        self.congestion = 1.0
        self._update_gauges()
        self.add_event(message)
        logger.info("%s (%dx%d grid, %d agents)", message,
                    self.grid.width, self.grid.height, len(self.agents))

    # --- lifecycle ----------------------------------------------------------

    def reset(self, scenario: Optional[Scenario] = None) -> None:
        """Discard all state and rebuild the city, optionally under a new scenario."""
        if scenario is not None:
            self.config.scenario = scenario
        self._initialize(f"Simulation reset with {self.config.scenario.value} scenario.")

    def start(self) -> None:
        if self.run_state == RunState.NOT_STARTED:
            self.run_state = RunState.RUNNING
            logger.info("Simulation started")

    def pause(self) -> None:
        if self.run_state == RunState.RUNNING:
            self.run_state = RunState.PAUSED
            self.add_event("Simulation paused.")

    def resume(self) -> None:
        if self.run_state == RunState.PAUSED:
            self.run_state = RunState.RUNNING
            self.add_event("Simulation resumed.")

    def toggle_pause(self) -> None:
        if self.run_state == RunState.RUNNING:
            self.pause()
        elif self.run_state == RunState.PAUSED:
            self.resume()

    def is_running(self) -> bool:
        return self.run_state == RunState.RUNNING

    def is_finished(self) -> bool:
        return self.run_state == RunState.ENDED

    def add_event(self, message: str) -> None:
        self.events.appendleft(SimEvent(timestamp=self.current_step, message=message))
        logger.debug("t=%d: %s", self.current_step, message)

    def _end(self) -> None:
        self.run_state = RunState.ENDED
        self.add_event("Simulation ended.")
        logger.info("Simulation ended after %d ticks", self.current_step)
        if self.on_end is not None:
            self.on_end(self)

    # --- external triggers --------------------------------------------------

    def ignite(self, x: int, y: int, level: float = IGNITION_LEVEL,
               ignition_time: Optional[int] = None) -> bool:
        """Start a fire by hand (scenario seeding, tests)."""
        time = self.current_step if ignition_time is None else ignition_time
        return self.registry.ignite(self.grid, (x, y), level, time)

    def _context(self) -> TickContext:
        return TickContext(
            time=self.current_step,
            grid=self.grid,
            registry=self.registry,
            agents=self.agents,
            scenario=self.scenario,
            rng=self.rng,
            config=self.config,
            locations=self.locations,
        )

    # --- tick ---------------------------------------------------------------

    def step(self) -> Optional[SimulationState]:
        """
        Execute one discrete time step.

        Returns the new state, or None when the simulation is not running.
        """
        if self.run_state != RunState.RUNNING:
            return None

        self.current_step += 1
        ctx = self._context()

        police_cfg = self.config.police
        self.grid.update_dynamic_surveillance(
            [a.cell for a in self.agents if a.agent_type == AgentType.POLICE],
            police_cfg.surveillance_radius, police_cfg.surveillance_bonus)

        fire_result = self.fire.step(self.grid, self.registry, ctx.time,
                                     ctx.report_fire, ctx.add_event)

        casualties = self._apply_collapse(ctx, fire_result.burnt_out)
        self._apply_riot_conversions(ctx)
        self._update_trapped(ctx)

        for agent in sorted(self.agents, key=lambda a: DISPATCH_ORDER[a.agent_type]):
            if agent.is_apprehended:
                continue
            agent.update(ctx)

        self.congestion = congestion_multiplier(ctx.time, self.scenario)
        for agent in self.agents:
            if agent.is_apprehended:
                continue
            agent.move(self.grid, self.config.base_speed * agent.speed_multiplier() * self.congestion)

        self.stats.casualties += casualties
        self.stats.buildings_destroyed += fire_result.buildings_destroyed
        self.stats.fires_extinguished += ctx.fires_extinguished
        self.stats.arsonists_apprehended += ctx.arrests
        for profile, n in ctx.fires_by_profile.items():
            self.stats.fires_by_profile[profile] = self.stats.fires_by_profile.get(profile, 0) + n
        self._update_gauges()
        if ctx.time % TICKS_PER_HOUR == 0:
            self.stats.record_history(ctx.time)

        for event in ctx.events:
            self.events.appendleft(event)

        if self.current_step >= self.config.max_ticks:
            self._end()

        return self.snapshot()

    def _apply_collapse(self, ctx: TickContext, burnt_out: Set[Position]) -> int:
        """Remove civilians and free arsonists standing on freshly burnt cells."""
        if not burnt_out:
            return 0
        survivors = []
        casualties = 0
        for agent in self.agents:
            ix, iy = agent.cell
            if ((ix, iy) in burnt_out
                    and agent.agent_type in (AgentType.CIVILIAN, AgentType.ARSONIST)
                    and not agent.is_apprehended):
                casualties += 1
                ctx.add_event(f"{agent.agent_type.value.capitalize()} perished in collapsed "
                              f"building at ({ix}, {iy}).")
                continue
            survivors.append(agent)
        self.agents[:] = survivors
        return casualties

    def _apply_riot_conversions(self, ctx: TickContext) -> None:
        if self.scenario != Scenario.RIOT:
            return
        arson_cfg = self.config.arson
        hotspot = self.locations.riot_hotspot
        for i, agent in enumerate(self.agents):
            if not isinstance(agent, Civilian):
                continue
            chance = arson_cfg.civilian_to_arsonist_prob_base
            if hotspot is not None and agent.distance_to(*hotspot) < arson_cfg.riot_radius:
                chance *= arson_cfg.riot_transform_prob_multiplier
            if self.rng.random() < chance:
                ix, iy = agent.cell
                ctx.add_event(f"A civilian has joined the riot at ({ix}, {iy})!")
                self.agents[i] = Arsonist.from_civilian(agent, ArsonistProfile.PROTESTER)

    def can_escape(self, x: int, y: int) -> bool:
        """Whether some 8-neighbor of (x, y) is walkable, which implies level below 4."""
        return any(self.grid.is_walkable(x + dx, y + dy) for dx, dy in NEIGHBORS_8)

    def _update_trapped(self, ctx: TickContext) -> None:
        for agent in self.agents:
            if agent.agent_type not in (AgentType.CIVILIAN, AgentType.ARSONIST):
                continue
            ix, iy = agent.cell
            cell = self.grid.get_cell(ix, iy)
            trapped = (cell is not None and cell.fire_level > TRAP_FIRE_LEVEL
                       and not self.can_escape(ix, iy))
            if trapped and not agent.is_trapped:
                ctx.add_event(f"{agent.agent_type.value.capitalize()} trapped by fire "
                              f"at ({ix}, {iy}).")
            agent.is_trapped = trapped

    def _update_gauges(self) -> None:
        counts: Dict[AgentType, int] = {t: 0 for t in AgentType}
        for agent in self.agents:
            if agent.is_apprehended:
                continue
            counts[agent.agent_type] += 1
        self.stats.live_firefighters = counts[AgentType.FIREFIGHTER]
        self.stats.live_police = counts[AgentType.POLICE]
        self.stats.live_civilians = counts[AgentType.CIVILIAN]
        self.stats.live_arsonists = counts[AgentType.ARSONIST]
        self.stats.citizens_trapped = sum(1 for a in self.agents if a.is_trapped)
        self.stats.fires = len(self.registry.burning)

    # --- output -------------------------------------------------------------

    def snapshot(self) -> SimulationState:
        """Create an immutable snapshot of the current simulation state."""
        return SimulationState(
            step=self.current_step,
            run_state=self.run_state.value,
            agents=[a.snapshot() for a in self.agents],
            fire_level=self.grid.fire_levels(),
            burnt_out=self.grid.burnt_out_mask(),
            dynamic_surveillance=self.grid.dynamic_surveillance.copy(),
            stats=self.stats.copy(),
            events=list(self.events),
            congestion=self.congestion,
        )

    def get_summary(self) -> Dict:
        """Get summary statistics for the simulation."""
        stats = self.stats
        return {
            'total_steps': self.current_step,
            'scenario': self.scenario.value,
            'run_state': self.run_state.value,
            'casualties': stats.casualties,
            'buildings_destroyed': stats.buildings_destroyed,
            'fires_extinguished': stats.fires_extinguished,
            'arsonists_apprehended': stats.arsonists_apprehended,
            'active_fires': stats.fires,
            'citizens_trapped': stats.citizens_trapped,
            'fires_by_profile': dict(stats.fires_by_profile),
            'live_agents': {
                'firefighter': stats.live_firefighters,
                'police': stats.live_police,
                'civilian': stats.live_civilians,
                'arsonist': stats.live_arsonists,
            },
        }
