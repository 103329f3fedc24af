from typing import Dict, Literal, Tuple
from .config import load_excel_config, resolve_parameter

# ============================================================================
# SETTINGS & CONSTANTS
# ============================================================================

# Load configuration immediately (blocking). Missing keys fall back to defaults.
_config = load_excel_config()


def _get(key, default):
    return resolve_parameter(_config, key, default)


# Services
GEOCODER_USER_AGENT = _get("GEOCODER_USER_AGENT", "bottle-trace/0.1 (CHANGE_THIS_TO_YOUR_EMAIL@DOMAIN)")
NOMINATIM_URL = _get("NOMINATIM_URL", "https://nominatim.openstreetmap.org")
OSRM_URL = _get("OSRM_URL", "http://router.project-osrm.org")
DISTRIBUTOR_LOOKUP_URL = _get("DISTRIBUTOR_LOOKUP_URL", "")
WATER_SOURCE_LOOKUP_URL = _get("WATER_SOURCE_LOOKUP_URL", "")
HTTP_TIMEOUT_S = _get("HTTP_TIMEOUT_S", 15.0)

# Facility directory (xlsx or csv)
FACILITY_DIRECTORY_PATH = _get("FACILITY_DIRECTORY_PATH", "data/facilities.csv")

# Geometry
EARTH_RADIUS_KM = 6371.0

# Transport Factors (kg CO2 per kg of product per km)
EMISSIONFACTOR_TRUCK = _get("EMISSIONFACTOR_TRUCK", 0.15)
EMISSIONFACTOR_RAIL = _get("EMISSIONFACTOR_RAIL", 0.03)
EMISSIONFACTOR_SHIP = _get("EMISSIONFACTOR_SHIP", 0.01)
EMISSIONFACTOR_LAST_MILE = _get("EMISSIONFACTOR_LAST_MILE", 0.25)

# Mass of one unit of product (one bottle)
UNIT_WEIGHT_KG = _get("UNIT_WEIGHT_KG", 0.025)

# Reporting precision. These are part of the published result format.
DISTANCE_DECIMALS = 1
CO2_DECIMALS = 3

# Audit trail of every hop/aggregate calculation
AUDIT_ENABLED = _get("AUDIT_ENABLED", False)

# ============================================================================
# TYPES (Code constructs, not excel parameters)
# ============================================================================

TransportMode = Literal["truck", "rail", "ship", "last-mile"]
FacilityCategory = Literal["sales", "production", "manufacturing"]
LegName = Literal["last_mile", "distribution", "manufacturing", "water_source", "water_treatment"]
RunState = Literal[
    "idle",
    "locating_user",
    "resolving_distributor",
    "resolving_production_chain",
    "resolving_water_chain",
    "aggregated",
    "degraded",
]

FACILITY_CATEGORIES: Tuple[str, ...] = ("sales", "production", "manufacturing")
LEG_NAMES: Tuple[str, ...] = ("last_mile", "distribution", "manufacturing", "water_source", "water_treatment")

# Names the presentation layer uses for each leg
LEG_DISPLAY_KEYS: Dict[str, str] = {
    "last_mile": "lastMile",
    "distribution": "distribution",
    "manufacturing": "manufacturing",
    "water_source": "waterSource",
    "water_treatment": "waterTreatment",
}

LEG_LABELS: Dict[str, str] = {
    "last_mile": "Last mile (Distributor -> You)",
    "distribution": "Distribution (Bottling -> Distributor)",
    "manufacturing": "Manufacturing (Plant -> Bottling)",
    "water_source": "Water source (Source -> Treatment)",
    "water_treatment": "Water treatment (Treatment -> Bottling)",
}

EMISSION_FACTORS: Dict[str, float] = {
    "truck": EMISSIONFACTOR_TRUCK,
    "rail": EMISSIONFACTOR_RAIL,
    "ship": EMISSIONFACTOR_SHIP,
    "last-mile": EMISSIONFACTOR_LAST_MILE,
}

# ============================================================================
# BASE PRODUCT FOOTPRINTS (brand -> drink -> (co2 kg, microplastics ug, water L))
# ============================================================================

BASE_PRODUCT_FOOTPRINTS: Dict[str, Dict[str, Tuple[float, float, float]]] = {
    "coca-cola": {
        "water": (0.33, 5.2, 1.9),
        "coke": (0.42, 5.2, 2.5),
    },
}
DEFAULT_BASE_FOOTPRINT: Tuple[float, float, float] = (0.35, 5.0, 2.0)
