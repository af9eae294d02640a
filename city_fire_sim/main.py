#!/usr/bin/env python3
"""
City Fire Simulation

An agent-based city simulator of arson, fire spread, suppression and
crowd behaviour on a 2D grid.

Usage:
    city-fire-sim --config configs/small_town.yaml [options]

Examples:
    city-fire-sim --config configs/small_town.yaml
    city-fire-sim --config configs/small_town.yaml --scenario RIOT --days 7
    city-fire-sim --config configs/small_town.yaml --gif --out-dir results/
    city-fire-sim --config configs/small_town.yaml --no-csv --no-snapshot --quiet
    city-fire-sim --config configs/small_town.yaml --realtime 2x
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterator, Optional

from city_fire_sim.config import SimulationConfig, load_config
from city_fire_sim.model.clock import SIMULATION_SPEEDS, TICKS_PER_DAY, TICKS_PER_HOUR, SimulationClock
from city_fire_sim.model.context import Scenario
from city_fire_sim.model.engine import SimulationEngine
from city_fire_sim.model.state import SimulationState
from city_fire_sim.export.csv_writer import CSVWriter, HistoryWriter
from city_fire_sim.export.visualizer import Visualizer
from city_fire_sim.export.reporter import Reporter

LOG_FILENAME = 'simulation_log.csv'
HISTORY_FILENAME = 'history.csv'
HISTORY_CHART_FILENAME = 'history.png'
SNAPSHOT_FILENAME = 'final_state.png'
GIF_FILENAME = 'simulation.gif'


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f'must be at least 1, got {value}')
    return value


def _add_toggle(group, name: str, what: str) -> None:
    """Register a --name / --no-name pair that defaults to 'use the config'."""
    group.add_argument(f'--{name}', dest=name, action='store_true', default=None,
                       help=f'Write {what}')
    group.add_argument(f'--no-{name}', dest=name, action='store_false',
                       help=f'Skip {what}')


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='city-fire-sim',
        description='Agent-based city fire simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    city-fire-sim --config configs/small_town.yaml
    city-fire-sim --config configs/small_town.yaml --scenario RIOT --days 7
    city-fire-sim --config configs/small_town.yaml --steps 200 --gif
        """
    )
    parser.add_argument('--config', type=Path, required=True,
                        help='YAML file describing the city, agents and options')

    run = parser.add_argument_group('run')
    run.add_argument('--scenario', type=str.upper, default=None,
                     choices=[s.value for s in Scenario],
                     help='Scenario to simulate instead of the configured one')
    run.add_argument('--days', type=int, default=None, choices=[1, 7, 30],
                     help='Cycle length in simulated days')
    run.add_argument('--steps', type=_positive_int, default=None,
                     help='Stop after this many ticks instead of whole days')
    run.add_argument('--seed', type=int, default=None,
                     help='Seed for the random generator')
    run.add_argument('--realtime', type=str, default=None,
                     choices=list(SIMULATION_SPEEDS),
                     help='Pace ticks against the wall clock at this speed')

    output = parser.add_argument_group('output')
    output.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Directory for exported files (default: ./output)')
    _add_toggle(output, 'csv', 'the per-tick agent log')
    _add_toggle(output, 'history', 'the per-tick stats table and hourly chart')
    _add_toggle(output, 'snapshot', 'a PNG of the final state')
    output.add_argument('--gif', action='store_true', default=False,
                        help='Write an animated GIF, one frame per simulated hour')
    output.add_argument('--quiet', action='store_true', default=False,
                        help='Print nothing to stdout')
    output.add_argument('--verbose', action='store_true', default=False,
                        help='Log every simulation event')

    return parser.parse_args(argv)


def _apply_overrides(config: SimulationConfig, args: argparse.Namespace) -> None:
    if args.scenario is not None:
        config.scenario = Scenario(args.scenario)
    if args.days is not None:
        config.simulation_days = args.days
    if args.steps is not None:
        config.tick_limit = args.steps
    if args.seed is not None:
        config.seed = args.seed
    for flag, attr in (('csv', 'csv_enabled'), ('history', 'history_enabled'),
                       ('snapshot', 'snapshot_enabled')):
        value = getattr(args, flag)
        if value is not None:
            setattr(config, attr, value)
    config.gif_enabled = config.gif_enabled or args.gif
    config.quiet = args.quiet
    config.out_dir = args.out_dir


class RunOutputs:
    """Every exporter for one run, fed a state per tick."""

    def __init__(self, config: SimulationConfig, engine: SimulationEngine, config_path: Path):
        self.config = config
        out = config.out_dir
        self.log = CSVWriter(out / LOG_FILENAME) if config.csv_enabled else None
        self.history = HistoryWriter(out / HISTORY_FILENAME) if config.history_enabled else None
        self.visualizer = Visualizer(engine.grid.width, engine.grid.height,
                                     engine.grid.terrain_codes())
        self.reporter = Reporter(str(config_path), config.seed, config.scenario.value)
        self.final_state: Optional[SimulationState] = None

    def say(self, message: str) -> None:
        if not self.config.quiet:
            print(message)

    def record(self, state: SimulationState, finished: bool) -> None:
        self.final_state = state
        for writer in (self.log, self.history):
            if writer is not None:
                writer.append(state)
        if self.config.gif_enabled and (state.step % TICKS_PER_HOUR == 0 or finished):
            self.visualizer.buffer_frame(state)
        self.reporter.update(state)

        if state.step % TICKS_PER_DAY == 0:
            s = state.stats
            self.say(f"  Day {state.step // TICKS_PER_DAY}: {s.fires} burning, "
                     f"{s.casualties} casualties, {s.buildings_destroyed} destroyed")

    def finish(self) -> None:
        config = self.config
        out = config.out_dir
        final = self.final_state

        if self.log is not None:
            self.log.close()
            self.say(f"\nAgent log: {out / LOG_FILENAME}")

        if self.history is not None:
            self.history.close()
            if final is not None:
                self.visualizer.save_history_chart(final.stats.history, out / HISTORY_CHART_FILENAME)
            self.say(f"Stats history: {out / HISTORY_FILENAME}")

        if final is not None and config.snapshot_enabled:
            self.visualizer.save_snapshot(final, out / SNAPSHOT_FILENAME)
            self.say(f"Final map: {out / SNAPSHOT_FILENAME}")

        if config.gif_enabled:
            self.say(f"Assembling {len(self.visualizer.frames)} animation frames...")
            self.visualizer.generate_gif(out / GIF_FILENAME, fps=10)
            self.say(f"Animation: {out / GIF_FILENAME}")

        if final is not None:
            self.say(self.reporter.generate_summary(
                final, out,
                csv_enabled=config.csv_enabled,
                history_enabled=config.history_enabled,
                snapshot_enabled=config.snapshot_enabled,
                gif_enabled=config.gif_enabled,
            ))


def _run_realtime(engine: SimulationEngine, speed: str) -> Iterator[SimulationState]:
    """Yield states as a wall-clock driven SimulationClock produces them."""
    clock = SimulationClock(engine, speed)
    last = time.monotonic()
    while not engine.is_finished():
        time.sleep(clock.interval_ms / 1000.0)
        now = time.monotonic()
        before = engine.current_step
        clock.advance((now - last) * 1000.0)
        last = now
        if engine.current_step != before:
            yield engine.snapshot()


def _run_batch(engine: SimulationEngine) -> Iterator[SimulationState]:
    state = engine.step()
    while state is not None:
        yield state
        state = engine.step()


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (ValueError, KeyError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1
    _apply_overrides(config, args)

    engine = SimulationEngine(config)
    outputs = RunOutputs(config, engine, args.config)
    outputs.say(f"City {config.grid.width}x{config.grid.height}, "
                f"{config.scenario.value} scenario, {config.max_ticks} ticks, "
                f"{len(engine.agents)} agents")

    engine.start()
    states = _run_realtime(engine, args.realtime) if args.realtime else _run_batch(engine)
    try:
        for state in states:
            outputs.record(state, engine.is_finished())
    except KeyboardInterrupt:
        outputs.say("\nStopped early, writing what we have.")

    outputs.finish()
    return 0


if __name__ == '__main__':
    sys.exit(main())
