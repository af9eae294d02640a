"""Cell record and control-flag impacts for the city grid."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .buildings import BuildingType


class CellType(Enum):
    """Terrain kind of a grid cell."""
    LAND = "LAND"
    ROAD = "ROAD"
    PARK = "PARK"
    WATER = "WATER"
    BUILDING = "BUILDING"


class RoadType(Enum):
    HIGHWAY = "HIGHWAY"
    MAIN_ROAD = "MAIN_ROAD"
    ALLEY = "ALLEY"
    BRIDGE = "BRIDGE"
    STREET = "STREET"


# Control flag -> (arson risk delta, flammability delta)
CONTROL_IMPACTS: Dict[str, Dict[str, float]] = {
    'has_cctv': {'risk': -0.1, 'flammability': 0.0},
    'has_fire_alarm': {'risk': -0.05, 'flammability': 0.0},
    'has_sprinkler_system': {'risk': 0.0, 'flammability': -0.3},
    'has_security_patrol': {'risk': -0.3, 'flammability': 0.0},
    'is_community_watched': {'risk': -0.05, 'flammability': 0.0},
    'is_abandoned': {'risk': 0.2, 'flammability': 0.4},
    'has_poor_maintenance': {'risk': 0.05, 'flammability': 0.2},
    'has_graffiti': {'risk': 0.1, 'flammability': 0.0},
    'is_isolated': {'risk': 0.15, 'flammability': 0.0},
    'is_controversial': {'risk': 0.2, 'flammability': 0.0},
}

CONTROL_FLAGS = tuple(CONTROL_IMPACTS.keys())

# Maximum fire intensity
MAX_FIRE_LEVEL = 10


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass
class Cell:
    """
    A single grid cell.

    Static properties (terrain, building tag, base risk/flammability and
    control flags) are fixed for the duration of a run. Fire state
    (fire_level, is_burnt_out, fire_ignition_time) is mutated by the fire
    dynamics engine and by firefighters.
    """
    x: int
    y: int
    cell_type: CellType = CellType.LAND
    building_type: Optional[BuildingType] = None
    road_type: Optional[RoadType] = None
    flammability: float = 0.1
    arson_risk: float = 0.01
    surveillance_level: float = 0.0
    capacity: int = 0

    # Fire state
    fire_level: float = 0.0
    is_burnt_out: bool = False
    fire_ignition_time: Optional[int] = None

    # Positive controls
    has_cctv: bool = False
    has_fire_alarm: bool = False
    has_sprinkler_system: bool = False
    has_security_patrol: bool = False
    is_community_watched: bool = False
    # Negative controls
    is_abandoned: bool = False
    has_poor_maintenance: bool = False
    has_graffiti: bool = False
    is_isolated: bool = False
    is_controversial: bool = False

    @property
    def key(self):
        return (self.x, self.y)

    @property
    def is_burning(self) -> bool:
        return self.fire_level > 0 and not self.is_burnt_out

    def active_controls(self):
        return [flag for flag in CONTROL_FLAGS if getattr(self, flag)]

    def effective_flammability(self) -> float:
        """Base flammability plus active control deltas, clamped to [0, 1]."""
        total = self.flammability + sum(
            CONTROL_IMPACTS[flag]['flammability'] for flag in self.active_controls()
        )
        return _clamp01(total)

    def effective_arson_risk(self) -> float:
        """Base arson risk plus active control deltas, clamped to [0, 1]."""
        total = self.arson_risk + sum(
            CONTROL_IMPACTS[flag]['risk'] for flag in self.active_controls()
        )
        return _clamp01(total)

    def burn_out(self) -> None:
        """Terminal transition: the cell can never burn again."""
        self.is_burnt_out = True
        self.fire_level = 0.0
        self.fire_ignition_time = None

    def __repr__(self) -> str:
        tag = self.building_type.value if self.building_type else self.cell_type.value
        return (f"Cell(({self.x}, {self.y}), {tag}, "
                f"fire={self.fire_level}, burnt_out={self.is_burnt_out})")

