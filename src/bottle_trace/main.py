import asyncio
import logging

from .audit import audit_logger
from .constants import BASE_PRODUCT_FOOTPRINTS
from .logging_conf import setup_logging
from .orchestrator import RouteChainOrchestrator
from .utils.input_helpers import (
    prompt_choice, prompt_location_text, prompt_yes_no, print_header,
    print_impact_overview, print_total_update, try_parse_lat_lon
)
from .utils.services import Services, reverse_geocode
from .visualization import Visualizer

logger = logging.getLogger(__name__)


def main():
    # 1. LOGGING SETUP
    setup_logging(console_level=logging.INFO)

    print_header("trace - bottled water footprint")

    orchestrator = RouteChainOrchestrator(
        services=Services.default(with_directions=False),
        on_total_update=print_total_update,
    )

    while True:
        # 2. PRODUCT
        brand = prompt_choice("Bottle brand", sorted(BASE_PRODUCT_FOOTPRINTS), default="coca-cola")
        drinks = sorted(BASE_PRODUCT_FOOTPRINTS.get(brand, {})) or ["water"]
        drink = prompt_choice("Drink type", drinks, default=drinks[0])

        # 3. LOCATION
        location = prompt_location_text()
        audit_logger.enabled = prompt_yes_no("Write calculation audit log?", default=audit_logger.enabled)

        # 4. CALCULATE
        print_header("Calculating impact ...")
        # Raw coordinates carry no ZIP; the reverse-geocoded address usually does
        coord = try_parse_lat_lon(location)
        if coord is not None:
            place = reverse_geocode(coord)
            if place:
                logger.info(f"Location resolved to: {place}")
                location = place

        run = asyncio.run(orchestrator.calculate_impact(
            location, brand=brand, drink=drink, user_coordinate=coord
        ))
        print_impact_overview(run)

        # 5. PLOTS
        if run.total_emissions is not None and prompt_yes_no("Save charts?", default=False):
            vis = Visualizer(mode="single_run")
            vis.generate_all_plots(run.total_emissions, run.route_emissions, product_name=f"{brand} {drink}")

        if not prompt_yes_no("Calculate another?", default=False):
            break


if __name__ == "__main__":
    main()
