import logging
import re
from typing import List, Optional

import colorama
from colorama import Fore, Style

from ..constants import LEG_NAMES, LEG_LABELS
from ..models import Coordinate, ImpactRun, RouteEmissions, TotalEmissions

colorama.init(autoreset=True)

logger = logging.getLogger(__name__)

# Style Constants
C_HEADER = Fore.CYAN + Style.BRIGHT
C_PROMPT = Fore.YELLOW
C_CHOICE = Fore.MAGENTA
C_ERROR = Fore.RED
C_SUCCESS = Fore.GREEN
C_RESET = Style.RESET_ALL

ZIP_PATTERN = re.compile(r"(?<![.\d])\b\d{5}\b(?!\.\d)")


def style_prompt(prompt_text: str) -> str:
    """Helper to wrap input prompt in color."""
    return f"{C_PROMPT}{prompt_text}{C_RESET}"


def print_header(text: str):
    """Print a styled header."""
    print(f"\n{C_HEADER}{'='*60}")
    print(f"{text.center(60)}")
    print(f"{'='*60}{C_RESET}")


def try_parse_lat_lon(text: str) -> Optional[Coordinate]:
    """
    Try to parse 'lat,lng' text into a Coordinate.
    """
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0].strip())
        lng = float(parts[1].strip())
    except ValueError:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinate(lat=lat, lng=lng)


def extract_zip_code(text: str) -> Optional[str]:
    """
    First standalone 5-digit run in free text ("Philadelphia, PA 19104" -> "19104").
    """
    match = ZIP_PATTERN.search(text or "")
    return match.group(0) if match else None


def prompt_choice(label: str, options: List[str], default: str) -> str:
    """
    Prompt user to pick one value from a list of options; returns the chosen option.
    Supports selecting by index (1-based) or typing the name.
    """
    display_parts = []
    for idx, opt in enumerate(options, 1):
        display_parts.append(f"[{C_SUCCESS}{idx}{C_PROMPT}] {C_CHOICE}{opt}{C_PROMPT}")

    opts_str = " / ".join(display_parts)

    while True:
        print(f"\n{C_PROMPT}{label} options:{C_RESET} {opts_str}")
        s = input(style_prompt(f"Select option (name or number) [default={default}]: ")).strip().lower()

        if not s:
            return default

        if s.isdigit():
            idx = int(s)
            if 1 <= idx <= len(options):
                return options[idx-1]

        for opt in options:
            if s == opt.lower():
                return opt

        logger.warning(f"Invalid choice '{s}'. Please enter a number 1-{len(options)} or the option name.")


def prompt_yes_no(label: str, default: bool) -> bool:
    """
    Prompt user for yes/no answer, returning True/False.
    """
    d = "y" if default else "n"
    opts = f"{C_CHOICE}y{C_PROMPT}/{C_CHOICE}n{C_PROMPT}"
    while True:
        s = input(style_prompt(f"{label} [{opts}] (default={d}): ")).strip().lower()
        if not s:
            return default
        if s in ("y", "yes"):
            return True
        if s in ("n", "no"):
            return False
        logger.warning("Please answer y or n.")


def prompt_location_text() -> str:
    """
    Free-text location: address with ZIP, bare ZIP, or 'lat,lng'. May be empty.
    """
    s = input(style_prompt("Enter your location (address with ZIP, or 'lat,lng') [optional]: ")).strip()
    if s and extract_zip_code(s) is None and try_parse_lat_lon(s) is None:
        logger.warning("No 5-digit ZIP code found. Supply-chain legs will be skipped.")
    return s


def format_leg_lines(route: RouteEmissions) -> List[str]:
    lines = []
    for name in LEG_NAMES:
        hop = route.get_leg(name)
        label = LEG_LABELS[name]
        if hop is None:
            lines.append(f"  {label:<42} {'-':>10}")
        else:
            lines.append(f"  {label:<42} {hop.distance_km:>8.1f} km  {hop.co2_kg:>7.3f} kg  ({hop.mode})")
    return lines


def print_total_update(total: TotalEmissions):
    """One-line progress print, used as the orchestrator's total listener."""
    print(
        f"{C_SUCCESS}  -> Running total: {total.total.co2_kg:.3f} kg CO2 "
        f"({total.transportation.total_distance_km:.1f} km transported){C_RESET}"
    )


def print_impact_overview(run: ImpactRun):
    """
    Print the final breakdown of one impact calculation.
    """
    print_header("Environmental Impact")

    if run.distributor is not None:
        print(f"Distributor   : {run.distributor.name} ({run.distributor.address})")
    if run.production is not None:
        print(f"Bottling plant: {run.production.name} ({run.production.address})")
    if run.manufacturing is not None:
        print(f"Manufacturing : {run.manufacturing.name} ({run.manufacturing.address})")
    if run.water_sources is not None:
        print(f"Water source  : {run.water_sources.municipal_source.name}")
        print(f"Treatment     : {run.water_sources.treatment_center.name}")

    print(f"\n{C_HEADER}Transport legs{C_RESET}")
    for line in format_leg_lines(run.route_emissions):
        print(line)

    total = run.total_emissions
    if total is None:
        return

    print("\n" + "-" * 60)
    print(f"{'Base product CO2':<30} {total.base_product.co2_kg:>10.3f} kg")
    print(f"{'Transportation CO2':<30} {total.transportation.co2_kg:>10.3f} kg")
    print(f"{C_SUCCESS}{'Total CO2':<30} {total.total.co2_kg:>10.3f} kg{C_RESET}")
    print(f"{'Microplastics':<30} {total.total.microplastics_ug:>10.1f} ug")
    print(f"{'Water usage':<30} {total.total.water_usage_l:>10.1f} L")
    print("-" * 60)

    if run.state == "degraded":
        logger.warning("Some supply-chain legs could not be resolved; the total is partial.")
