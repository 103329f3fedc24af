from .models import (
    Coordinate,
    Facility,
    TransportHop,
    RouteEmissions,
    BaseProductFootprint,
    TransportationSummary,
    TotalEmissions,
    Distributor,
    WaterSources,
    ImpactRun
)
from .constants import (
    EMISSION_FACTORS,
    UNIT_WEIGHT_KG
)
from .utils.calculations import haversine_km, hop_footprint, aggregate_emissions
from .utils.facilities import nearest_facility
from .orchestrator import RouteChainOrchestrator

__all__ = [
    "Coordinate",
    "Facility",
    "TransportHop",
    "RouteEmissions",
    "BaseProductFootprint",
    "TransportationSummary",
    "TotalEmissions",
    "Distributor",
    "WaterSources",
    "ImpactRun",
    "EMISSION_FACTORS",
    "UNIT_WEIGHT_KG",
    "haversine_km",
    "hop_footprint",
    "aggregate_emissions",
    "nearest_facility",
    "RouteChainOrchestrator"
]
