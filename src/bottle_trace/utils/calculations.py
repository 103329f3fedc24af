from math import radians, sin, cos, sqrt, atan2, floor
from typing import Optional
from ..constants import (
    EARTH_RADIUS_KM, EMISSION_FACTORS, UNIT_WEIGHT_KG, DISTANCE_DECIMALS, CO2_DECIMALS,
    BASE_PRODUCT_FOOTPRINTS, DEFAULT_BASE_FOOTPRINT, TransportMode
)
from ..models import (
    Coordinate, TransportHop, RouteEmissions, BaseProductFootprint,
    TransportationSummary, TotalEmissions
)
from ..audit import audit_logger
import logging

logger = logging.getLogger(__name__)


def round_half_up(x: float, decimals: int) -> float:
    """
    Round to a fixed number of decimals with halves going up
    (0.0625 -> 0.063), unlike Python's round() which rounds halves to even.
    """
    scale = 10 ** decimals
    return floor(x * scale + 0.5) / scale


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """
    Compute great-circle distance in km between two coordinates (lat/lng in degrees).
    """
    lat1 = radians(a.lat)
    lon1 = radians(a.lng)
    lat2 = radians(b.lat)
    lon2 = radians(b.lng)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def hop_footprint(distance_km: float, mode: TransportMode) -> TransportHop:
    """
    Transport emissions for one unit of product carried distance_km by mode.

    co2 = distance * (emission factor [kgCO2/kg·km] * unit weight [kg])
    Distance is rounded to 1 decimal, CO2 to 3 decimals.
    """
    if mode not in EMISSION_FACTORS:
        raise ValueError(f"Unsupported transport mode: {mode}")

    co2_per_km = EMISSION_FACTORS[mode] * UNIT_WEIGHT_KG
    co2 = distance_km * co2_per_km

    audit_logger.log_calculation(
        context=f"Transport Hop (Mode: {mode})",
        formula="Dist(km) * EF(kgCO2/kg·km) * UnitWeight(kg)",
        variables={
            "Dist_km": round(distance_km, 4),
            "EF": EMISSION_FACTORS[mode],
            "UnitWeight_kg": UNIT_WEIGHT_KG,
        },
        result=co2,
        unit="kgCO2"
    )

    return TransportHop(
        distance_km=round_half_up(distance_km, DISTANCE_DECIMALS),
        co2_kg=round_half_up(co2, CO2_DECIMALS),
        mode=mode,
    )


def aggregate_emissions(base: BaseProductFootprint, route: RouteEmissions) -> TotalEmissions:
    """
    Combine the base product footprint with every leg currently present.
    Absent legs contribute nothing. Always recomputed from scratch, so the
    result does not depend on the order legs arrived in.
    """
    transport_co2 = 0.0
    total_distance = 0.0
    legs = route.present_legs()
    for hop in legs.values():
        transport_co2 += hop.co2_kg
        total_distance += hop.distance_km

    total_co2 = base.co2_kg + transport_co2

    audit_logger.log_calculation(
        context=f"Total Emissions ({len(legs)} legs: {', '.join(legs) or 'none'})",
        formula="BaseCO2 + Sum(LegCO2)",
        variables={"BaseCO2_kg": base.co2_kg, "TransportCO2_kg": round(transport_co2, 4)},
        result=total_co2,
        unit="kgCO2"
    )

    return TotalEmissions(
        base_product=base,
        transportation=TransportationSummary(
            co2_kg=round_half_up(transport_co2, CO2_DECIMALS),
            total_distance_km=round_half_up(total_distance, DISTANCE_DECIMALS),
        ),
        total=BaseProductFootprint(
            co2_kg=round_half_up(total_co2, CO2_DECIMALS),
            microplastics_ug=base.microplastics_ug,
            water_usage_l=base.water_usage_l,
        ),
    )


def lookup_base_footprint(brand: Optional[str], drink: Optional[str]) -> BaseProductFootprint:
    """
    Static brand/drink footprint. Unknown brand or drink gets the generic default.
    """
    brand_key = (brand or "").strip().lower()
    drink_key = (drink or "").strip().lower()
    values = BASE_PRODUCT_FOOTPRINTS.get(brand_key, {}).get(drink_key)
    if values is None:
        logger.info(f"No base footprint for '{brand}'/'{drink}'. Using default.")
        values = DEFAULT_BASE_FOOTPRINT

    co2, microplastics, water = values
    return BaseProductFootprint(co2_kg=co2, microplastics_ug=microplastics, water_usage_l=water)
