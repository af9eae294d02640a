"""Building-type property table and arsonist profiles."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class BuildingType(Enum):
    # Public
    TOWN_HALL = "TOWN_HALL"
    ADMIN_OFFICE = "ADMIN_OFFICE"
    PUBLIC_OFFICE = "PUBLIC_OFFICE"
    ELEMENTARY_SCHOOL = "ELEMENTARY_SCHOOL"
    MIDDLE_SCHOOL = "MIDDLE_SCHOOL"
    HIGH_SCHOOL = "HIGH_SCHOOL"
    VOCATIONAL_SCHOOL = "VOCATIONAL_SCHOOL"
    UNIVERSITY = "UNIVERSITY"
    KINDERGARTEN = "KINDERGARTEN"
    CHURCH = "CHURCH"
    SYNAGOGUE = "SYNAGOGUE"
    MOSQUE = "MOSQUE"
    BUDDHIST_TEMPLE = "BUDDHIST_TEMPLE"
    STADIUM = "STADIUM"
    LIBRARY = "LIBRARY"
    MUSEUM = "MUSEUM"
    THEATER = "THEATER"
    POOL = "POOL"
    COMMUNITY_CENTER = "COMMUNITY_CENTER"
    # Residential
    SINGLE_FAMILY_HOME = "SINGLE_FAMILY_HOME"
    MULTI_FAMILY_HOME = "MULTI_FAMILY_HOME"
    APARTMENT_BUILDING = "APARTMENT_BUILDING"
    # Commercial
    GAS_STATION = "GAS_STATION"
    KIOSK = "KIOSK"
    SUPERMARKET = "SUPERMARKET"
    SHOPPING_MALL = "SHOPPING_MALL"
    PARKING_GARAGE = "PARKING_GARAGE"
    PARKING_LOT = "PARKING_LOT"
    MARKET_STALL = "MARKET_STALL"
    # Health
    HOSPITAL = "HOSPITAL"
    CLINIC = "CLINIC"
    # Emergency services
    POLICE_STATION = "POLICE_STATION"
    FIRE_STATION = "FIRE_STATION"
    # Transport
    TRAIN_STATION = "TRAIN_STATION"
    BUS_DEPOT = "BUS_DEPOT"
    BUS_STOP = "BUS_STOP"
    # Industrial
    INDUSTRIAL_HALL = "INDUSTRIAL_HALL"
    WAREHOUSE = "WAREHOUSE"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. 'Town Hall'."""
        return ' '.join(word.capitalize() for word in self.value.split('_'))


# Building cells agents may walk through (cost 1.5)
TRANSIT_BUILDINGS: FrozenSet[BuildingType] = frozenset({
    BuildingType.PARKING_LOT,
    BuildingType.MARKET_STALL,
    BuildingType.POOL,
})

RESIDENTIAL_BUILDINGS: FrozenSet[BuildingType] = frozenset({
    BuildingType.SINGLE_FAMILY_HOME,
    BuildingType.MULTI_FAMILY_HOME,
    BuildingType.APARTMENT_BUILDING,
})

SHOP_BUILDINGS: FrozenSet[BuildingType] = frozenset({
    BuildingType.SUPERMARKET,
    BuildingType.SHOPPING_MALL,
    BuildingType.KIOSK,
})


@dataclass(frozen=True)
class BuildingProperties:
    size: Tuple[int, int]
    arson_risk: float
    flammability: float
    surveillance_level: float = 0.0
    capacity: int = 0
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


def _props(size, arson_risk, flammability, surveillance, capacity, **controls):
    return BuildingProperties(size=size, arson_risk=arson_risk,
                              flammability=flammability,
                              surveillance_level=surveillance,
                              capacity=capacity, **controls)


B = BuildingType

BUILDING_PROPERTIES: Dict[BuildingType, BuildingProperties] = {
    B.TOWN_HALL: _props((3, 2), 0.07, 0.6, 0.8, 50, is_controversial=True, has_cctv=True),
    B.ADMIN_OFFICE: _props((2, 2), 0.06, 0.5, 0.6, 40, has_cctv=True),
    B.PUBLIC_OFFICE: _props((2, 2), 0.05, 0.5, 0.5, 30, has_cctv=True),
    B.ELEMENTARY_SCHOOL: _props((3, 2), 0.02, 0.4, 0.3, 150),
    B.MIDDLE_SCHOOL: _props((3, 2), 0.03, 0.5, 0.3, 200),
    B.HIGH_SCHOOL: _props((3, 2), 0.02, 0.4, 0.4, 250),
    B.VOCATIONAL_SCHOOL: _props((3, 2), 0.03, 0.5, 0.3, 100),
    B.UNIVERSITY: _props((10, 8), 0.03, 0.5, 0.5, 1000, has_cctv=True),
    B.KINDERGARTEN: _props((2, 2), 0.02, 0.4, 0.2, 50),
    B.CHURCH: _props((3, 2), 0.02, 0.4, 0.2, 80),
    B.SYNAGOGUE: _props((2, 2), 0.03, 0.5, 0.7, 60, is_controversial=True, has_cctv=True),
    B.MOSQUE: _props((1, 2), 0.03, 0.5, 0.6, 100, is_controversial=True, has_cctv=True),
    B.BUDDHIST_TEMPLE: _props((2, 2), 0.01, 0.3, 0.1, 40),
    B.STADIUM: _props((8, 5), 0.08, 0.7, 0.7, 5000, has_cctv=True),
    B.LIBRARY: _props((3, 2), 0.01, 0.3, 0.4, 100),
    B.MUSEUM: _props((5, 4), 0.02, 0.4, 0.7, 200, has_cctv=True),
    B.THEATER: _props((4, 4), 0.02, 0.4, 0.6, 300, has_cctv=True),
    B.POOL: _props((6, 4), 0.01, 0.3, 0.2, 150),
    B.COMMUNITY_CENTER: _props((2, 2), 0.03, 0.5, 0.2, 50),
    B.SINGLE_FAMILY_HOME: _props((1, 1), 0.02, 0.7, 0.05, 4),
    B.MULTI_FAMILY_HOME: _props((2, 2), 0.04, 0.8, 0.1, 8),
    B.APARTMENT_BUILDING: _props((3, 3), 0.05, 0.85, 0.2, 20),
    B.GAS_STATION: _props((2, 2), 0.07, 0.9, 0.8, 10, has_cctv=True),
    B.KIOSK: _props((1, 1), 0.04, 0.6, 0.3, 5),
    B.SUPERMARKET: _props((3, 2), 0.05, 0.7, 0.6, 100, has_cctv=True),
    B.SHOPPING_MALL: _props((6, 4), 0.06, 0.8, 0.75, 500, has_cctv=True),
    B.PARKING_GARAGE: _props((3, 3), 0.03, 0.6, 0.4, 0, has_cctv=True, is_isolated=True),
    B.PARKING_LOT: _props((1, 2), 0.02, 0.4, 0.1, 0, is_isolated=True),
    B.MARKET_STALL: _props((1, 1), 0.04, 0.5, 0.1, 3),
    B.HOSPITAL: _props((8, 4), 0.02, 0.4, 0.7, 600, has_cctv=True),
    B.CLINIC: _props((2, 2), 0.02, 0.4, 0.6, 50, has_cctv=True),
    B.POLICE_STATION: _props((3, 2), 0.05, 0.3, 0.95, 50, has_cctv=True,
                             has_security_patrol=True, is_controversial=True),
    B.FIRE_STATION: _props((3, 2), 0.01, 0.1, 0.9, 30, has_cctv=True),
    B.TRAIN_STATION: _props((12, 6), 0.07, 0.7, 0.85, 1500, has_cctv=True),
    B.BUS_DEPOT: _props((4, 3), 0.03, 0.5, 0.5, 60),
    B.BUS_STOP: _props((1, 1), 0.02, 0.3, 0.1, 15),
    B.INDUSTRIAL_HALL: _props((10, 6), 0.08, 0.9, 0.4, 80, is_isolated=True),
    B.WAREHOUSE: _props((2, 3), 0.05, 0.8, 0.3, 20, is_isolated=True),
}


def apply_building_overrides(
        base: Dict[BuildingType, BuildingProperties],
        overrides: Dict[BuildingType, Dict]) -> Dict[BuildingType, BuildingProperties]:
    """Return a copy of ``base`` with per-type partial overrides applied."""
    table = dict(base)
    for building_type, values in overrides.items():
        if 'size' in values:
            values = dict(values, size=tuple(values['size']))
        table[building_type] = replace(table[building_type], **values)
    return table


class ArsonistProfile(Enum):
    PROTESTER = "PROTESTER"
    VANDAL = "VANDAL"
    GRIFTER = "GRIFTER"
    PYROMANIAC = "PYROMANIAC"


@dataclass(frozen=True)
class ProfileSpec:
    name: str
    max_fires: float
    # None means any building is a target
    targets: Optional[FrozenSet[BuildingType]] = field(default=None)


ARSONIST_PROFILES: Dict[ArsonistProfile, ProfileSpec] = {
    ArsonistProfile.PYROMANIAC: ProfileSpec(
        name='Psychiatric',
        max_fires=float('inf'),
    ),
    ArsonistProfile.GRIFTER: ProfileSpec(
        name='Financial',
        max_fires=1,
        targets=frozenset({B.SUPERMARKET, B.SHOPPING_MALL, B.WAREHOUSE,
                           B.INDUSTRIAL_HALL, B.GAS_STATION}),
    ),
    ArsonistProfile.PROTESTER: ProfileSpec(
        name='Protester',
        max_fires=1,
        targets=frozenset({B.TOWN_HALL, B.ADMIN_OFFICE, B.PUBLIC_OFFICE,
                           B.POLICE_STATION}),
    ),
    ArsonistProfile.VANDAL: ProfileSpec(
        name='Vandal',
        max_fires=2,
        targets=frozenset({B.ELEMENTARY_SCHOOL, B.MIDDLE_SCHOOL, B.HIGH_SCHOOL,
                           B.BUS_STOP, B.COMMUNITY_CENTER, B.KIOSK,
                           B.PARKING_LOT, B.PARKING_GARAGE, B.LIBRARY,
                           B.THEATER, B.MUSEUM}),
    ),
}

del B
