"""Incremental CSV tables for the city fire simulation."""

import csv
from pathlib import Path
from typing import IO, Iterable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState


class _TableWriter:
    """Appends rows derived from each state; the file is created on first use."""

    fieldnames: List[str] = []

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self._handle: Optional[IO[str]] = None
        self._writer: Optional[csv.DictWriter] = None

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    def open(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.output_path.open('w', newline='')
        self._writer = csv.DictWriter(self._handle, fieldnames=self.fieldnames)
        self._writer.writeheader()

    def rows(self, state: "SimulationState") -> Iterable[dict]:
        raise NotImplementedError

    def append(self, state: "SimulationState") -> None:
        if not self.is_open:
            self.open()
        self._writer.writerows(self.rows(state))
        self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class CSVWriter(_TableWriter):
    """
    One row per agent per tick.

        step,agent_id,type,x,y,state
        1,1,firefighter,12.0,4.0,idle
    """

    fieldnames = ['step', 'agent_id', 'type', 'x', 'y', 'state']

    def rows(self, state: "SimulationState") -> Iterable[dict]:
        return state.to_csv_rows()


class HistoryWriter(_TableWriter):
    """One row of city-wide counters and gauges per tick."""

    STAT_FIELDS = [
        'fires', 'casualties', 'buildings_destroyed', 'fires_extinguished',
        'arsonists_apprehended', 'citizens_trapped', 'live_firefighters',
        'live_police', 'live_civilians', 'live_arsonists',
    ]
    fieldnames = ['step'] + STAT_FIELDS + ['congestion']

    def rows(self, state: "SimulationState") -> Iterable[dict]:
        row = {name: getattr(state.stats, name) for name in self.STAT_FIELDS}
        row.update(step=state.step, congestion=state.congestion)
        return [row]
