"""Configuration dataclasses and YAML loader for the city fire simulation."""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from pathlib import Path
import yaml

from .model.buildings import (
    ARSONIST_PROFILES,
    BUILDING_PROPERTIES,
    ArsonistProfile,
    BuildingProperties,
    BuildingType,
    apply_building_overrides,
)
from .model.cell import RoadType
from .model.clock import SIMULATION_SPEEDS, TICKS_PER_DAY
from .model.context import Scenario


@dataclass
class GridConfig:
    width: int
    height: int


@dataclass
class RectSpec:
    x: int
    y: int
    width: int
    height: int
    road_type: Optional[RoadType] = None  # roads only


@dataclass
class BuildingSpec:
    building_type: BuildingType
    x: int
    y: int
    # Footprint defaults to the building type's size
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class LayoutConfig:
    roads: List[RectSpec] = field(default_factory=list)
    parks: List[RectSpec] = field(default_factory=list)
    water: List[RectSpec] = field(default_factory=list)
    buildings: List[BuildingSpec] = field(default_factory=list)


@dataclass
class ArsonistProfileConfig:
    count: int = 0
    max_fires: Optional[float] = None  # None -> profile default


@dataclass
class AgentCountsConfig:
    firefighter: int = 0
    police: int = 0
    civilian: int = 0
    arsonists: Dict[ArsonistProfile, ArsonistProfileConfig] = field(default_factory=dict)

    def max_fires(self, profile: ArsonistProfile) -> float:
        """Fire cap for a profile: configured value or the profile default."""
        profile_cfg = self.arsonists.get(profile)
        if profile_cfg is not None and profile_cfg.max_fires is not None:
            return profile_cfg.max_fires
        return ARSONIST_PROFILES[profile].max_fires


@dataclass
class PoliceConfig:
    surveillance_radius: int = 5
    surveillance_bonus: float = 0.5
    sighting_radius: int = 7
    arrest_radius: float = 2.0
    # Risk-weighted patrol destination sampling
    risk_weighted_patrol: bool = False
    patrol_risk_radius: int = 10
    patrol_scan_radius: int = 30
    patrol_sample_locations: int = 20
    patrol_risk_weight: float = 100.0
    patrol_random_weight: float = 5.0


@dataclass
class ArsonConfig:
    base_probability_multiplier: float = 1.0
    civilian_to_arsonist_prob_base: float = 0.00002
    riot_transform_prob_multiplier: float = 25.0
    riot_radius: float = 25.0


@dataclass
class FireConfig:
    # Deterministic threshold spread is the default behaviour
    probabilistic_spread: bool = False


@dataclass
class SimulationConfig:
    grid: GridConfig
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    agents: AgentCountsConfig = field(default_factory=AgentCountsConfig)
    scenario: Scenario = Scenario.NORMAL
    simulation_days: int = 1
    speed: str = '4x'
    base_speed: float = 1.0  # cells per tick
    police: PoliceConfig = field(default_factory=PoliceConfig)
    arson: ArsonConfig = field(default_factory=ArsonConfig)
    fire: FireConfig = field(default_factory=FireConfig)
    building_properties: Dict[BuildingType, BuildingProperties] = field(
        default_factory=lambda: dict(BUILDING_PROPERTIES))

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    history_enabled: bool = True
    snapshot_enabled: bool = True
    gif_enabled: bool = False
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))
    # Explicit tick limit, overrides simulation_days when set
    tick_limit: Optional[int] = None

    @property
    def max_ticks(self) -> int:
        if self.tick_limit is not None:
            return self.tick_limit
        return self.simulation_days * TICKS_PER_DAY


def _parse_enum(enum_cls, value: str, what: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown {what}: {value}") from None


def _parse_rects(rects_raw: List[Dict], with_road_type: bool = False) -> List[RectSpec]:
    """Parse rectangle specifications from raw YAML data."""
    rects = []
    for r in rects_raw:
        road_type = None
        if with_road_type:
            road_type = _parse_enum(RoadType, r.get('road_type', 'STREET'), 'road type')
        rects.append(RectSpec(
            x=r['x'],
            y=r['y'],
            width=r.get('width', 1),
            height=r.get('height', 1),
            road_type=road_type
        ))
    return rects


def _parse_buildings(buildings_raw: List[Dict]) -> List[BuildingSpec]:
    """Parse building placements from raw YAML data."""
    return [
        BuildingSpec(
            building_type=_parse_enum(BuildingType, b['type'], 'building type'),
            x=b['x'],
            y=b['y'],
            width=b.get('width'),
            height=b.get('height')
        )
        for b in buildings_raw
    ]


def _non_negative(value, name: str):
    if value is None or value != value or value < 0:  # NaN check
        raise ValueError(f"{name} must be a non-negative number, got {value!r}")
    return value


def _count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return _non_negative(value, name)


def _parse_agents(agents_raw: Dict) -> AgentCountsConfig:
    arsonists = {}
    for name, entry in (agents_raw.get('arsonists') or {}).items():
        profile = _parse_enum(ArsonistProfile, name, 'arsonist profile')
        if entry is None:
            entry = {}
        elif not isinstance(entry, dict):
            entry = {'count': entry}
        max_fires = entry.get('max_fires')
        if max_fires is not None:
            if isinstance(max_fires, bool):
                raise ValueError(f"{name}.max_fires must be a number, got {max_fires!r}")
            max_fires = _non_negative(float(max_fires), f"{name}.max_fires")
        arsonists[profile] = ArsonistProfileConfig(
            count=_count(entry.get('count', 0), f"{name}.count"),
            max_fires=max_fires
        )
    return AgentCountsConfig(
        firefighter=_count(agents_raw.get('firefighter', 0), 'firefighter'),
        police=_count(agents_raw.get('police', 0), 'police'),
        civilian=_count(agents_raw.get('civilian', 0), 'civilian'),
        arsonists=arsonists
    )


def _parse_building_overrides(raw: Dict) -> Dict[BuildingType, BuildingProperties]:
    overrides = {
        _parse_enum(BuildingType, name, 'building type'): dict(values)
        for name, values in raw.items()
    }
    try:
        return apply_building_overrides(BUILDING_PROPERTIES, overrides)
    except TypeError as e:
        raise ValueError(f"Invalid building override: {e}") from None


def _parse_section(cls, section_raw: Dict, name: str):
    """Instantiate a flat settings dataclass, rejecting unknown keys."""
    try:
        return cls(**(section_raw or {}))
    except TypeError as e:
        raise ValueError(f"Invalid '{name}' section: {e}") from None


def config_from_dict(raw: Dict[str, Any]) -> SimulationConfig:
    """Build and validate a SimulationConfig from parsed YAML data."""
    if "grid" not in raw:
        raise ValueError("Configuration is missing the 'grid' section")
    grid = GridConfig(
        width=raw['grid']['width'],
        height=raw['grid']['height']
    )
    if grid.width <= 0 or grid.height <= 0:
        raise ValueError(f"Grid must be non-empty, got {grid.width}x{grid.height}")

    layout_raw = raw.get('layout', {})
    layout = LayoutConfig(
        roads=_parse_rects(layout_raw.get('roads', []), with_road_type=True),
        parks=_parse_rects(layout_raw.get('parks', [])),
        water=_parse_rects(layout_raw.get('water', [])),
        buildings=_parse_buildings(layout_raw.get('buildings', []))
    )

    sim_raw = raw.get('simulation', {})
    days = sim_raw.get('days', 1)
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValueError(f"Simulation days must be a positive integer, got {days!r}")
    speed = str(sim_raw.get('speed', '4x'))
    if speed not in SIMULATION_SPEEDS:
        raise ValueError(f"Unknown speed: {speed}")

    police = _parse_section(PoliceConfig, raw.get('police', {}), 'police')
    arson = _parse_section(ArsonConfig, raw.get('arson', {}), 'arson')
    fire = _parse_section(FireConfig, raw.get('fire', {}), 'fire')

    # Parse export config (optional)
    export_raw = raw.get('export', {})

    return SimulationConfig(
        grid=grid,
        layout=layout,
        agents=_parse_agents(raw.get('agents') or {}),
        scenario=_parse_enum(Scenario, sim_raw.get('scenario', 'NORMAL'), 'scenario'),
        simulation_days=days,
        speed=speed,
        base_speed=float(sim_raw.get('base_speed', 1.0)),
        police=police,
        arson=arson,
        fire=fire,
        building_properties=_parse_building_overrides(raw.get('building_overrides', {})),
        csv_enabled=export_raw.get('csv', True),
        history_enabled=export_raw.get('history', True),
        snapshot_enabled=export_raw.get('snapshot', True),
        gif_enabled=export_raw.get('gif', False),
        seed=sim_raw.get('seed')
    )


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration must be a mapping: {config_path}")
    return config_from_dict(raw)
