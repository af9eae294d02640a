"""State snapshot dataclasses for the city fire simulation."""

from dataclasses import dataclass, field, replace
from typing import List, Dict
import numpy as np

# Hourly history samples kept
HISTORY_LIMIT = 100
# Event log entries kept
EVENT_LOG_LIMIT = 100


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of an agent's state at a given time step."""
    agent_id: int
    agent_type: str
    x: float
    y: float
    state: str
    is_trapped: bool = False


@dataclass(frozen=True)
class SimEvent:
    timestamp: int
    message: str

    def __str__(self) -> str:
        return f"[t={self.timestamp}] {self.message}"


@dataclass(frozen=True)
class HistoricalStat:
    time: int
    fires: int
    casualties: int
    buildings_destroyed: int
    arsonists_apprehended: int


@dataclass
class Stats:
    """Monotonic counters, point-in-time gauges and hourly history."""
    # Counters
    casualties: int = 0
    buildings_destroyed: int = 0
    fires_extinguished: int = 0
    arsonists_apprehended: int = 0
    fires_by_profile: Dict[str, int] = field(default_factory=dict)
    # Gauges
    fires: int = 0
    citizens_trapped: int = 0
    live_firefighters: int = 0
    live_police: int = 0
    live_civilians: int = 0
    live_arsonists: int = 0
    history: List[HistoricalStat] = field(default_factory=list)

    def record_history(self, time: int) -> None:
        self.history.append(HistoricalStat(
            time=time,
            fires=self.fires,
            casualties=self.casualties,
            buildings_destroyed=self.buildings_destroyed,
            arsonists_apprehended=self.arsonists_apprehended
        ))
        del self.history[:-HISTORY_LIMIT]

    def copy(self) -> "Stats":
        return replace(self, fires_by_profile=dict(self.fires_by_profile),
                       history=list(self.history))


@dataclass
class SimulationState:
    """Complete snapshot of simulation state at a given time step."""
    step: int
    run_state: str
    agents: List[AgentSnapshot]
    fire_level: np.ndarray           # Copy of fire intensity layer
    burnt_out: np.ndarray            # Copy of burnt-out mask
    dynamic_surveillance: np.ndarray  # Copy of police presence layer
    stats: Stats
    events: List[SimEvent]           # Newest first
    congestion: float = 1.0

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format."""
        return [
            {
                "step": self.step,
                "agent_id": a.agent_id,
                "type": a.agent_type,
                "x": round(a.x, 3),
                "y": round(a.y, 3),
                "state": a.state
            }
            for a in self.agents
        ]
