"""
External collaborators: geocoding, directions, distributor lookup,
facility directory and water-source lookup.

Every function here is synchronous, logs on failure and returns None
instead of raising. The orchestrator runs them off the event loop.
"""
import json
import logging
import os
import re
from dataclasses import dataclass
from numbers import Real
from typing import Any, Callable, List, Optional

import requests

from ..config import PROJECT_ROOT
from ..constants import (
    GEOCODER_USER_AGENT, NOMINATIM_URL, OSRM_URL, DISTRIBUTOR_LOOKUP_URL,
    WATER_SOURCE_LOOKUP_URL, HTTP_TIMEOUT_S, FACILITY_DIRECTORY_PATH
)
from ..models import Coordinate, DirectionsResult, Distributor, Facility, WaterSource, WaterSources
from .facilities import load_facility_directory

logger = logging.getLogger(__name__)

HEADERS = {"User-Agent": GEOCODER_USER_AGENT}


def geocode_address(address: str) -> Optional[Coordinate]:
    """
    Geocode a free-text address to a Coordinate using Nominatim/OSM.
    """
    url = f"{NOMINATIM_URL}/search"
    params = {"q": address, "format": "json", "limit": 1}
    try:
        logger.info(f"Geocoding '{address}' ...")
        resp = requests.get(url, params=params, headers=HEADERS, timeout=HTTP_TIMEOUT_S)
        logger.debug(f"Geocoder HTTP status: {resp.status_code}")
        resp.raise_for_status()
        data = resp.json()
        if not data:
            logger.warning(f"No geocoding results for '{address}'.")
            return None
        return Coordinate(lat=float(data[0]["lat"]), lng=float(data[0]["lon"]))
    except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"Geocoding error: {e}")
        return None


def reverse_geocode(coord: Coordinate) -> Optional[str]:
    """
    Reverse-geocode a Coordinate to a display address using Nominatim/OSM.
    """
    url = f"{NOMINATIM_URL}/reverse"
    params = {"lat": coord.lat, "lon": coord.lng, "format": "json"}
    try:
        resp = requests.get(url, params=params, headers=HEADERS, timeout=HTTP_TIMEOUT_S)
        resp.raise_for_status()
        data = resp.json()
        return data.get("display_name") or None
    except (requests.RequestException, ValueError, AttributeError) as e:
        logger.error(f"Reverse geocoding error: {e}")
        return None


def get_osrm_route(origin: Coordinate, dest: Coordinate) -> Optional[DirectionsResult]:
    """
    Driving route from the OSRM public API.
    Returns distance (km) and the encoded polyline, or None if the request fails.
    """
    url = (
        f"{OSRM_URL}/route/v1/driving/{origin.lng},{origin.lat};{dest.lng},{dest.lat}"
        "?overview=full&geometries=polyline"
    )
    try:
        resp = requests.get(url, headers=HEADERS, timeout=HTTP_TIMEOUT_S)
        resp.raise_for_status()
        data = resp.json()
        routes = data.get("routes") or []
        if not routes:
            logger.warning("OSRM returned no routes.")
            return None
        route = routes[0]
        return DirectionsResult(
            distance_km=float(route["distance"]) / 1000.0,
            polyline=route.get("geometry", ""),
        )
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.warning(f"OSRM request failed: {e}")
        return None


# ============================================================================
# RESPONSE VALIDATION
# ============================================================================

def _strip_code_fences(raw: str) -> str:
    """
    Remove markdown code fences so the string can be parsed as JSON.
    """
    pattern = r"^```(?:json)?\s*\n?(.*?)\n?```\s*$"
    match = re.search(pattern, raw.strip(), re.DOTALL | re.IGNORECASE)
    if match:
        return match.group(1).strip()
    return raw.strip()


def _as_object(payload: Any) -> Optional[dict]:
    if isinstance(payload, (str, bytes)):
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        try:
            payload = json.loads(_strip_code_fences(payload))
        except ValueError:
            return None
    return payload if isinstance(payload, dict) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_coordinate(payload: Any) -> Optional[Coordinate]:
    """
    {"lat": <number>, "lng": <number>} -> Coordinate. Strings and booleans are rejected.
    """
    if not isinstance(payload, dict):
        return None
    lat = payload.get("lat")
    lng = payload.get("lng")
    if not (_is_number(lat) and _is_number(lng)):
        return None
    return Coordinate(lat=float(lat), lng=float(lng))


def parse_distributor(payload: Any) -> Optional[Distributor]:
    data = _as_object(payload)
    if data is None:
        logger.warning("Distributor response is not a JSON object.")
        return None

    name = data.get("name")
    coord = parse_coordinate(data.get("coordinates"))
    if not name or coord is None:
        logger.warning(f"Distributor response missing name or numeric coordinates: {data}")
        return None

    return Distributor(
        name=str(name),
        address=str(data.get("address") or ""),
        phone=str(data.get("phone") or ""),
        coordinates=coord,
    )


def _parse_water_source(data: Any) -> Optional[WaterSource]:
    if not isinstance(data, dict) or not data.get("name"):
        return None
    coord = parse_coordinate(data.get("coordinates"))
    if coord is None:
        return None
    return WaterSource(
        name=str(data["name"]),
        address=str(data.get("address") or ""),
        distance=str(data.get("distance") or ""),
        coordinates=coord,
    )


def parse_water_sources(payload: Any) -> Optional[WaterSources]:
    """
    Validate a water-source answer. The service is generative, so the answer
    may be a JSON object, a JSON string, or JSON inside a markdown code block.
    Both entries must carry a name and numeric coordinates.
    """
    data = _as_object(payload)
    if data is None:
        logger.warning("Water-source response is not valid JSON.")
        return None

    municipal = _parse_water_source(data.get("municipalWaterSource"))
    treatment = _parse_water_source(data.get("waterTreatmentCenter"))
    if municipal is None or treatment is None:
        logger.warning(f"Water-source response failed validation: {data}")
        return None

    return WaterSources(municipal_source=municipal, treatment_center=treatment)


# ============================================================================
# LOOKUP SERVICES
# ============================================================================

def lookup_distributor(zip_code: str) -> Optional[Distributor]:
    """
    Ask the distributor-lookup service for the distributor serving zip_code.
    """
    if not DISTRIBUTOR_LOOKUP_URL:
        logger.warning("DISTRIBUTOR_LOOKUP_URL is not configured. Skipping distributor lookup.")
        return None
    try:
        logger.info(f"Looking up distributor for ZIP {zip_code} ...")
        resp = requests.get(DISTRIBUTOR_LOOKUP_URL, params={"zip": zip_code}, timeout=HTTP_TIMEOUT_S)
        resp.raise_for_status()
        return parse_distributor(resp.json())
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Distributor lookup failed: {e}")
        return None


def lookup_water_sources(coord: Coordinate) -> Optional[WaterSources]:
    """
    Ask the water-source service for the municipal source and treatment
    center supplying the plant at coord.
    """
    if not WATER_SOURCE_LOOKUP_URL:
        logger.warning("WATER_SOURCE_LOOKUP_URL is not configured. Skipping water-source lookup.")
        return None
    try:
        logger.info(f"Looking up water sources near {coord.lat:.4f}, {coord.lng:.4f} ...")
        resp = requests.get(
            WATER_SOURCE_LOOKUP_URL,
            params={"lat": coord.lat, "lng": coord.lng},
            timeout=HTTP_TIMEOUT_S,
        )
        resp.raise_for_status()
        try:
            payload = resp.json()
        except ValueError:
            payload = resp.text
        return parse_water_sources(payload)
    except requests.RequestException as e:
        logger.error(f"Water-source lookup failed: {e}")
        return None


def load_facilities() -> List[Facility]:
    path = FACILITY_DIRECTORY_PATH
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    return load_facility_directory(path)


@dataclass
class Services:
    """
    The collaborators one orchestrator talks to. Each may be a plain
    function or a coroutine function.
    """
    geocode: Callable[[str], Optional[Coordinate]]
    lookup_distributor: Callable[[str], Optional[Distributor]]
    load_facilities: Callable[[], List[Facility]]
    lookup_water_sources: Callable[[Coordinate], Optional[WaterSources]]
    directions: Optional[Callable[[Coordinate, Coordinate], Optional[DirectionsResult]]] = None

    @classmethod
    def default(cls, with_directions: bool = False) -> "Services":
        return cls(
            geocode=geocode_address,
            lookup_distributor=lookup_distributor,
            load_facilities=load_facilities,
            lookup_water_sources=lookup_water_sources,
            directions=get_osrm_route if with_directions else None,
        )
