"""Fire map rendering, GIF assembly and history charts."""

import io
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Tuple, TYPE_CHECKING

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb
from PIL import Image

from ..model.clock import TICKS_PER_DAY

if TYPE_CHECKING:
    from ..model.state import AgentSnapshot, HistoricalStat, SimulationState


def _ensure_parent(path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


class Visualizer:
    """
    Draws the city as an RGB raster with agents scattered on top.

    Terrain comes from a fixed palette; fire intensity blends each cell
    toward orange-red, burnt-out cells are near black and cells under
    police watch get a light blue wash. Frames buffered with
    ``buffer_frame`` become an animated GIF.
    """

    # Indexed by terrain code (LAND, ROAD, PARK, WATER, BUILDING)
    TERRAIN_COLORS = ['#D5DBDB', '#7F8C8D', '#58D68D', '#5DADE2', '#A04000']
    COLORS = {
        'burnt': '#17202A',
        'fire': '#FF4500',
        'surveillance': '#3380FF',
        'firefighter': '#E74C3C',
        'police': '#2E86C1',
        'civilian': '#F4D03F',
        'arsonist': '#8E44AD',
        'apprehended': '#95A5A6',
    }
    SURVEILLANCE_ALPHA = 0.15
    AGENT_LAYERS = ('civilian', 'arsonist', 'apprehended', 'police', 'firefighter')

    def __init__(self, grid_width: int, grid_height: int, terrain: np.ndarray):
        self.width = grid_width
        self.height = grid_height
        self.terrain = terrain
        self._palette = np.array([to_rgb(c) for c in self.TERRAIN_COLORS])
        self.frames: List[Image.Image] = []

    def _raster(self, state: "SimulationState") -> np.ndarray:
        rgb = self._palette[self.terrain]

        heat = np.clip(state.fire_level / 10.0, 0, 1)[..., None]
        rgb = rgb * (1 - heat) + np.array(to_rgb(self.COLORS['fire'])) * heat
        rgb[state.burnt_out] = to_rgb(self.COLORS['burnt'])

        watched = (state.dynamic_surveillance > 0)[..., None] * self.SURVEILLANCE_ALPHA
        rgb = rgb * (1 - watched) + np.array(to_rgb(self.COLORS['surveillance'])) * watched
        return np.clip(rgb, 0, 1)

    @staticmethod
    def _layer_of(agent: "AgentSnapshot") -> str:
        return 'apprehended' if agent.state == 'apprehended' else agent.agent_type

    def _draw_agents(self, ax, agents: List["AgentSnapshot"]) -> None:
        layers: Dict[str, List[Tuple[float, float, bool]]] = defaultdict(list)
        for agent in agents:
            layers[self._layer_of(agent)].append((agent.x, agent.y, agent.is_trapped))

        for name in self.AGENT_LAYERS:
            points = layers.get(name)
            if not points:
                continue
            xs, ys, trapped = zip(*points)
            ax.scatter(xs, ys, s=14, c=self.COLORS[name], label=name.capitalize(),
                       edgecolors=['black' if t else 'white' for t in trapped],
                       linewidths=0.3, zorder=3)

    def _figure(self, state: "SimulationState"):
        height_in = 6
        fig, ax = plt.subplots(figsize=(max(8, height_in * self.width / self.height), height_in))
        ax.imshow(self._raster(state), origin='lower', interpolation='nearest',
                  extent=(-0.5, self.width - 0.5, -0.5, self.height - 0.5))
        self._draw_agents(ax, state.agents)

        s = state.stats
        day, tick = divmod(state.step, TICKS_PER_DAY)
        ax.set_title(f'Day {day} tick {tick}  |  fires {s.fires}  |  casualties {s.casualties}'
                     f'  |  destroyed {s.buildings_destroyed}  |  trapped {s.citizens_trapped}')
        ax.set_axis_off()
        if state.agents:
            ax.legend(loc='upper right', fontsize=7, markerscale=1.5)
        fig.tight_layout()
        return fig

    def buffer_frame(self, state: "SimulationState") -> None:
        """Render the state and keep it as a GIF frame."""
        fig = self._figure(state)
        with io.BytesIO() as buf:
            fig.savefig(buf, format='png', dpi=80)
            buf.seek(0)
            self.frames.append(Image.open(buf).convert('RGB'))
        plt.close(fig)

    def save_snapshot(self, state: "SimulationState", output_path: Path) -> None:
        fig = self._figure(state)
        fig.savefig(_ensure_parent(output_path), dpi=150, bbox_inches='tight')
        plt.close(fig)

    def save_history_chart(self, history: List["HistoricalStat"], output_path: Path) -> None:
        """Line chart of the hourly samples; nothing is written for an empty history."""
        if not history:
            return
        times = [h.time for h in history]
        series = (
            ('Active fires', 'fires', self.COLORS['fire']),
            ('Casualties', 'casualties', 'black'),
            ('Buildings destroyed', 'buildings_destroyed', self.COLORS['arsonist']),
            ('Arrests', 'arsonists_apprehended', self.COLORS['police']),
        )
        fig, ax = plt.subplots(figsize=(8, 4))
        for label, attr, color in series:
            ax.plot(times, [getattr(h, attr) for h in history], label=label, color=color)
        ax.set_xlabel('Tick')
        ax.set_ylabel('Count')
        ax.legend(fontsize=8)
        fig.tight_layout()
        fig.savefig(_ensure_parent(output_path), dpi=120)
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 10) -> None:
        """Write the buffered frames as a looping GIF."""
        if not self.frames:
            return
        first, *rest = self.frames
        first.save(_ensure_parent(output_path), save_all=True, append_images=rest,
                   duration=int(1000 / fps), loop=0)

    def clear_frames(self) -> None:
        self.frames.clear()
