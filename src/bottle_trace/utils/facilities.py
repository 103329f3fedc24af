import logging
import os
import threading
from typing import Callable, Dict, List, Optional

import pandas as pd

from ..constants import FACILITY_CATEGORIES, FacilityCategory
from ..models import Coordinate, Facility
from .calculations import haversine_km

logger = logging.getLogger(__name__)

CoordinateResolver = Callable[[Facility], Optional[Coordinate]]


def nearest_facility(
    candidates: List[Facility],
    category: FacilityCategory,
    reference: Coordinate,
    resolve_coordinates: CoordinateResolver,
) -> Optional[Facility]:
    """
    Return the facility of `category` closest to `reference`.

    Each candidate's coordinates come from `resolve_coordinates`. Candidates
    whose coordinates cannot be resolved are skipped. On equal distance the
    earlier candidate wins. Returns None when nothing usable is left.
    """
    best: Optional[Facility] = None
    best_km = float("inf")

    for facility in candidates:
        if facility.category != category:
            continue
        try:
            coord = resolve_coordinates(facility)
        except Exception as e:
            logger.warning(f"Could not resolve coordinates for '{facility.name}': {e}")
            continue
        if coord is None:
            logger.debug(f"Skipping '{facility.name}': no coordinates")
            continue

        d = haversine_km(reference, coord)
        if d < best_km:
            best_km = d
            best = facility

    if best is None:
        logger.warning(f"No {category} facility with usable coordinates.")
    else:
        logger.info(f"Nearest {category} facility: {best.name} ({best_km:.1f} km)")
    return best


class CoordinateCache:
    """
    Memoized coordinate resolution, keyed by facility id, for one session.

    Known coordinates are used as-is. Otherwise the address is geocoded once;
    failures are remembered too so a bad address is not queried again.
    """

    def __init__(self, geocode: Callable[[str], Optional[Coordinate]]):
        self._geocode = geocode
        self._cache: Dict[str, Optional[Coordinate]] = {}
        self._lock = threading.Lock()

    def resolve(self, facility: Facility) -> Optional[Coordinate]:
        if facility.coordinates is not None:
            return facility.coordinates

        with self._lock:
            if facility.id in self._cache:
                return self._cache[facility.id]

            try:
                coord = self._geocode(facility.address)
            except Exception as e:
                logger.warning(f"Geocoding failed for '{facility.name}': {e}")
                coord = None
            self._cache[facility.id] = coord

        if coord is not None:
            facility.coordinates = coord
        return coord

    def __len__(self) -> int:
        return len(self._cache)


def _cell(row, *names) -> Optional[object]:
    for name in names:
        if name in row and not pd.isna(row[name]):
            return row[name]
    return None


def load_facility_directory(path: str) -> List[Facility]:
    """
    Load the facility directory from a spreadsheet (.xlsx or .csv).
    Expected columns: id, name, address, type (or category), lat, lng
    Rows with an unknown category are skipped. Missing lat/lng means
    unresolved coordinates.
    """
    if not os.path.exists(path):
        logger.warning(f"Facility directory not found at {path}")
        return []

    try:
        if path.lower().endswith(".csv"):
            df = pd.read_csv(path)
        else:
            df = pd.read_excel(path)
    except Exception as e:
        logger.error(f"Error reading facility directory {path}: {e}")
        return []

    df.columns = [str(c).strip().lower() for c in df.columns]

    facilities = []
    for idx, row in df.iterrows():
        category = str(_cell(row, "type", "category") or "").strip().lower()
        if category not in FACILITY_CATEGORIES:
            logger.warning(f"Row {idx}: unknown facility type '{category}', skipped.")
            continue

        lat = _cell(row, "lat", "latitude")
        lng = _cell(row, "lng", "lon", "longitude")
        coordinates = None
        if lat is not None and lng is not None:
            try:
                coordinates = Coordinate(lat=float(lat), lng=float(lng))
            except (TypeError, ValueError):
                logger.warning(f"Row {idx}: invalid coordinates ({lat}, {lng}), will geocode.")

        facility_id = _cell(row, "id", "_id")
        facilities.append(Facility(
            id=str(facility_id) if facility_id is not None else str(idx),
            name=str(_cell(row, "name") or ""),
            address=str(_cell(row, "address") or ""),
            category=category,  # type: ignore[arg-type]
            coordinates=coordinates,
        ))

    logger.info(f"Loaded {len(facilities)} facilities from {path}")
    return facilities
