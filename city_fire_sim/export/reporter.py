"""Summary report generation for the city fire simulation."""

from typing import Optional, TYPE_CHECKING
from pathlib import Path

from ..model.clock import TICKS_PER_DAY

if TYPE_CHECKING:
    from ..model.state import SimulationState


class Reporter:
    """Tracks peaks over a run and formats the end-of-run text report."""

    def __init__(self, config_path: str, seed: Optional[int], scenario: str):
        self.config_path = config_path
        self.seed = seed
        self.scenario = scenario
        self.peak_fires = 0
        self.peak_fires_step = 0
        self.peak_trapped = 0

    def update(self, state: "SimulationState") -> None:
        """Accumulate peaks per step."""
        if state.stats.fires > self.peak_fires:
            self.peak_fires = state.stats.fires
            self.peak_fires_step = state.step
        self.peak_trapped = max(self.peak_trapped, state.stats.citizens_trapped)

    def generate_summary(self, final_state: "SimulationState",
                         output_dir: Path,
                         csv_enabled: bool,
                         history_enabled: bool,
                         snapshot_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        s = final_state.stats
        days, ticks = divmod(final_state.step, TICKS_PER_DAY)

        lines = [
            "",
            "=" * 80,
            "                    CITY FIRE SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path}",
            f"Scenario:      {self.scenario}",
            f"Random Seed:   {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "CITY STATISTICS",
            "-" * 40,
            f"Total Ticks:            {final_state.step} ({days} days + {ticks} ticks)",
            f"Casualties:             {s.casualties}",
            f"Buildings Destroyed:    {s.buildings_destroyed}",
            f"Fires Extinguished:     {s.fires_extinguished}",
            f"Arsonists Apprehended:  {s.arsonists_apprehended}",
            f"Active Fires (end):     {s.fires}",
            f"Peak Active Fires:      {self.peak_fires} (tick {self.peak_fires_step})",
            f"Peak Trapped Citizens:  {self.peak_trapped}",
            "",
            "FIRES BY ARSONIST PROFILE",
            "-" * 40,
        ]
        if s.fires_by_profile:
            for profile, count in sorted(s.fires_by_profile.items()):
                lines.append(f"{profile:<24}{count}")
        else:
            lines.append("(no arson fires)")

        lines += [
            "",
            "SURVIVING POPULATION",
            "-" * 40,
            f"Firefighters: {s.live_firefighters}   Police: {s.live_police}   "
            f"Civilians: {s.live_civilians}   Arsonists at large: {s.live_arsonists}",
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]

        outputs = [
            ("CSV Log:   ", csv_enabled, 'simulation_log.csv'),
            ("History:   ", history_enabled, 'history.csv'),
            ("Snapshot:  ", snapshot_enabled, 'final_state.png'),
            ("Animation: ", gif_enabled, 'simulation.gif'),
        ]
        for label, enabled, filename in outputs:
            lines.append(f"{label} {output_dir / filename if enabled else '(disabled)'}")

        lines.append("=" * 80)
        return "\n".join(lines)
