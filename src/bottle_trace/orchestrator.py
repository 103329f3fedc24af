"""Impact calculation orchestrator: walks the supply chain and aggregates emissions."""

import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional

from .constants import LEG_NAMES, TransportMode
from .models import (
    Coordinate, Facility, ImpactRun, RouteEmissions, TotalEmissions, TransportHop
)
from .utils.calculations import (
    aggregate_emissions, haversine_km, hop_footprint, lookup_base_footprint
)
from .utils.facilities import CoordinateCache, nearest_facility
from .utils.input_helpers import extract_zip_code, try_parse_lat_lon
from .utils.services import Services

logger = logging.getLogger(__name__)

RouteListener = Callable[[RouteEmissions], None]
TotalListener = Callable[[TotalEmissions], None]


class RouteChainOrchestrator:
    """
    Sequences one "calculate impact" action:

        locating_user -> resolving_distributor -> resolving_production_chain
                      -> resolving_water_chain -> aggregated | degraded

    Every external lookup may fail; a failure only leaves its leg absent.
    Each completed leg triggers a full recompute of the total, which is pushed
    to the listeners together with a snapshot of the route emissions.
    """

    def __init__(
        self,
        services: Optional[Services] = None,
        on_route_update: Optional[RouteListener] = None,
        on_total_update: Optional[TotalListener] = None,
    ):
        self.services = services or Services.default()
        self.on_route_update = on_route_update
        self.on_total_update = on_total_update
        self.coordinates = CoordinateCache(self._geocode_sync)
        self._facilities: Optional[List[Facility]] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def calculate_impact(
        self,
        location_text: str,
        brand: str = "coca-cola",
        drink: str = "water",
        user_coordinate: Optional[Coordinate] = None,
    ) -> ImpactRun:
        self._generation += 1
        run = ImpactRun(
            generation=self._generation,
            location_text=location_text or "",
            base_product=lookup_base_footprint(brand, drink),
        )
        run.transition("idle")
        logger.info(f"Run #{run.generation}: calculating impact for {brand}/{drink}")

        await self._locate_user(run, user_coordinate)

        run.transition("resolving_distributor")
        # Coordinate text has no ZIP; its decimals would match the pattern
        if try_parse_lat_lon(run.location_text) is None:
            run.zip_code = extract_zip_code(run.location_text)
        if run.zip_code is None:
            logger.warning("No ZIP code in location input. Using base product footprint only.")
            return self._finish(run)

        await self._resolve_distributor(run)
        if run.distributor is None:
            return self._finish(run)

        run.transition("resolving_production_chain")
        production_coord = await self._resolve_production(run)
        if production_coord is None:
            return self._finish(run)

        # Both depend on the production site only, so they run side by side
        run.transition("resolving_water_chain")
        await asyncio.gather(
            self._resolve_manufacturing(run, production_coord),
            self._resolve_water_chain(run, production_coord),
        )

        return self._finish(run)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _locate_user(self, run: ImpactRun, user_coordinate: Optional[Coordinate]):
        run.transition("locating_user")
        if user_coordinate is not None:
            run.user_coordinate = user_coordinate
            return

        text = run.location_text.strip()
        if not text:
            logger.info("No location given; last-mile leg will be skipped.")
            return

        coord = try_parse_lat_lon(text)
        if coord is None:
            coord = await self._call("geocode", self.services.geocode, text)
        if coord is None:
            logger.warning(f"Could not locate '{text}'. Last-mile leg will be skipped.")
        run.user_coordinate = coord

    async def _resolve_distributor(self, run: ImpactRun):
        distributor = await self._call("distributor lookup", self.services.lookup_distributor, run.zip_code)
        if not self._is_current(run):
            return
        run.distributor = distributor
        if distributor is None:
            return

        logger.info(f"Distributor for {run.zip_code}: {distributor.name}")
        if run.user_coordinate is not None:
            await self._record_hop(run, "last_mile", distributor.coordinates, run.user_coordinate, "last-mile")

    async def _resolve_production(self, run: ImpactRun) -> Optional[Coordinate]:
        facilities = await self._get_facilities()
        reference = run.distributor.coordinates
        production = await asyncio.to_thread(
            nearest_facility, facilities, "production", reference, self.coordinates.resolve
        )
        if production is None or not self._is_current(run):
            return None

        run.production = production
        production_coord = self.coordinates.resolve(production)
        await self._record_hop(run, "distribution", production_coord, reference, "truck")
        return production_coord

    async def _resolve_manufacturing(self, run: ImpactRun, production_coord: Coordinate):
        facilities = await self._get_facilities()
        manufacturing = await asyncio.to_thread(
            nearest_facility, facilities, "manufacturing", production_coord, self.coordinates.resolve
        )
        if manufacturing is None or not self._is_current(run):
            return

        run.manufacturing = manufacturing
        manufacturing_coord = self.coordinates.resolve(manufacturing)
        await self._record_hop(run, "manufacturing", manufacturing_coord, production_coord, "truck")

    async def _resolve_water_chain(self, run: ImpactRun, production_coord: Coordinate):
        sources = await self._call("water-source lookup", self.services.lookup_water_sources, production_coord)
        if sources is None or not self._is_current(run):
            return

        run.water_sources = sources
        source_coord = sources.municipal_source.coordinates
        treatment_coord = sources.treatment_center.coordinates
        await self._record_hop(run, "water_source", source_coord, treatment_coord, "truck")
        await self._record_hop(run, "water_treatment", treatment_coord, production_coord, "truck")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_facilities(self) -> List[Facility]:
        # Loaded once per session
        if self._facilities is None:
            facilities = await self._call("facility directory", self.services.load_facilities)
            if facilities is None:
                return []
            self._facilities = list(facilities)
        return self._facilities

    def _geocode_sync(self, address: str) -> Optional[Coordinate]:
        # Runs inside a worker thread (nearest_facility), so coroutine
        # collaborators need their own loop here
        result = self.services.geocode(address)
        if inspect.isawaitable(result):
            return asyncio.run(result)
        return result

    async def _call(self, what: str, fn: Callable[..., Any], *args) -> Any:
        """
        Invoke one collaborator. Any failure becomes None.
        """
        try:
            if inspect.iscoroutinefunction(fn):
                result = await fn(*args)
            else:
                result = await asyncio.to_thread(fn, *args)
                if inspect.isawaitable(result):
                    result = await result
        except Exception as e:
            logger.warning(f"{what} failed: {e}")
            return None
        if result is None:
            logger.warning(f"{what} returned no result.")
        return result

    def _is_current(self, run: ImpactRun) -> bool:
        if run.generation != self._generation:
            logger.info(f"Discarding stale result from run #{run.generation} (current #{self._generation}).")
            return False
        return True

    async def _record_hop(
        self,
        run: ImpactRun,
        leg: str,
        origin: Coordinate,
        destination: Coordinate,
        mode: TransportMode,
    ):
        distance = haversine_km(origin, destination)
        hop = hop_footprint(distance, mode)

        if self.services.directions is not None:
            directions = await self._call("directions", self.services.directions, origin, destination)
            if directions is not None:
                logger.debug(
                    f"{leg}: routed {directions.distance_km:.1f} km vs great-circle {distance:.1f} km"
                )
                run.routes[leg] = directions.polyline

        self._merge_leg(run, leg, hop)

    def _merge_leg(self, run: ImpactRun, leg: str, hop: TransportHop):
        if not self._is_current(run):
            return

        run.route_emissions.set_leg(leg, hop)
        logger.info(f"Leg {leg}: {hop.distance_km:.1f} km, {hop.co2_kg:.3f} kg CO2 ({hop.mode})")
        self._notify(self.on_route_update, run.route_emissions.snapshot())

        run.total_emissions = aggregate_emissions(run.base_product, run.route_emissions)
        self._notify(self.on_total_update, run.total_emissions)

    def _notify(self, listener: Optional[Callable[[Any], None]], payload: Any):
        if listener is None:
            return
        try:
            listener(payload)
        except Exception as e:
            logger.error(f"Listener failed: {e}")

    def _finish(self, run: ImpactRun) -> ImpactRun:
        run.total_emissions = aggregate_emissions(run.base_product, run.route_emissions)
        complete = len(run.route_emissions.present_legs()) == len(LEG_NAMES)
        run.transition("aggregated" if complete else "degraded")
        logger.info(
            f"Run #{run.generation} {run.state}: total {run.total_emissions.total.co2_kg:.3f} kg CO2"
        )
        return run
