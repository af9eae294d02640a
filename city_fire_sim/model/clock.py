"""Real-time stepping of the simulation engine."""

from typing import Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import SimulationEngine

# One tick is 15 simulated minutes
TICKS_PER_DAY = 96
TICKS_PER_HOUR = 4

# Speed key -> real milliseconds per tick
SIMULATION_SPEEDS: Dict[str, int] = {
    '1x': 1000,
    '2x': 500,
    '4x': 250,
}


def hour_of_day(time: int) -> int:
    """Hour (0-23) for a tick index."""
    return (time % TICKS_PER_DAY) // TICKS_PER_HOUR


class SimulationClock:
    """
    Time-accumulator driver that converts real elapsed time into ticks.

    Under a slow caller several ticks run back-to-back with no intermediate
    observation. The engine owns the paused/running state; while it is not
    running the accumulator is drained so resuming never bursts.
    """

    def __init__(self, engine: "SimulationEngine", speed: str = '4x'):
        if speed not in SIMULATION_SPEEDS:
            raise ValueError(f"Unknown speed: {speed}")
        self.engine = engine
        self.speed = speed
        self.accumulator = 0.0

    @property
    def interval_ms(self) -> int:
        return SIMULATION_SPEEDS[self.speed]

    def set_speed(self, speed: str) -> None:
        if speed not in SIMULATION_SPEEDS:
            raise ValueError(f"Unknown speed: {speed}")
        self.speed = speed
        self.engine.add_event(f"Simulation speed set to {speed}.")

    def advance(self, elapsed_ms: float) -> int:
        """Accumulate elapsed real time and run every tick it pays for."""
        if not self.engine.is_running():
            self.accumulator = 0.0
            return 0

        self.accumulator += elapsed_ms
        ticks = 0
        while self.accumulator >= self.interval_ms:
            self.accumulator -= self.interval_ms
            if self.engine.step() is None:
                self.accumulator = 0.0
                break
            ticks += 1
        return ticks
