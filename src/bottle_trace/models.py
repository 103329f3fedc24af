from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional
from .constants import (
    FacilityCategory, TransportMode, RunState, LEG_NAMES, LEG_DISPLAY_KEYS
)


@dataclass
class Coordinate:
    lat: float
    lng: float


@dataclass
class Facility:
    """
    A named site in the supply chain directory.
    coordinates stays None until resolved from the address.
    """
    id: str
    name: str
    address: str
    category: FacilityCategory
    coordinates: Optional[Coordinate] = None


@dataclass(frozen=True)
class TransportHop:
    """
    One leg of the route: rounded distance (km), rounded CO2 (kg) and mode.
    """
    distance_km: float
    co2_kg: float
    mode: TransportMode


@dataclass
class RouteEmissions:
    """
    Per-leg transport emissions. None means "not computed", never zero.
    """
    last_mile: Optional[TransportHop] = None
    distribution: Optional[TransportHop] = None
    manufacturing: Optional[TransportHop] = None
    water_source: Optional[TransportHop] = None
    water_treatment: Optional[TransportHop] = None

    def set_leg(self, name: str, hop: Optional[TransportHop]) -> None:
        if name not in LEG_NAMES:
            raise KeyError(f"Unknown leg '{name}'")
        setattr(self, name, hop)

    def get_leg(self, name: str) -> Optional[TransportHop]:
        if name not in LEG_NAMES:
            raise KeyError(f"Unknown leg '{name}'")
        return getattr(self, name)

    def present_legs(self) -> Dict[str, TransportHop]:
        legs = {}
        for name in LEG_NAMES:
            hop = getattr(self, name)
            if hop is not None:
                legs[name] = hop
        return legs

    def snapshot(self) -> "RouteEmissions":
        # Hops are frozen, a shallow copy is independent
        return replace(self)

    def as_dict(self) -> Dict[str, Optional[Dict[str, object]]]:
        out = {}
        for name in LEG_NAMES:
            hop = getattr(self, name)
            out[LEG_DISPLAY_KEYS[name]] = None if hop is None else {
                "distance": hop.distance_km,
                "co2Emissions": hop.co2_kg,
                "transportType": hop.mode,
            }
        return out


@dataclass
class BaseProductFootprint:
    co2_kg: float
    microplastics_ug: float
    water_usage_l: float


@dataclass
class TransportationSummary:
    co2_kg: float
    total_distance_km: float


@dataclass
class TotalEmissions:
    """
    Base product footprint plus transportation, recomputed from all known legs.
    """
    base_product: BaseProductFootprint
    transportation: TransportationSummary
    total: BaseProductFootprint


@dataclass
class Distributor:
    name: str
    address: str
    phone: str
    coordinates: Coordinate


@dataclass
class WaterSource:
    name: str
    address: str
    distance: str
    coordinates: Coordinate


@dataclass
class WaterSources:
    municipal_source: WaterSource
    treatment_center: WaterSource


@dataclass
class DirectionsResult:
    distance_km: float
    polyline: str


@dataclass
class ImpactRun:
    """
    State of one "calculate impact" action. Discarded on the next action.
    """
    generation: int
    location_text: str
    base_product: BaseProductFootprint
    state: RunState = "idle"
    history: List[str] = field(default_factory=list)
    user_coordinate: Optional[Coordinate] = None
    zip_code: Optional[str] = None
    distributor: Optional[Distributor] = None
    production: Optional[Facility] = None
    manufacturing: Optional[Facility] = None
    water_sources: Optional[WaterSources] = None
    route_emissions: RouteEmissions = field(default_factory=RouteEmissions)
    total_emissions: Optional[TotalEmissions] = None
    routes: Dict[str, str] = field(default_factory=dict)

    def transition(self, state: RunState) -> None:
        self.state = state
        self.history.append(state)
