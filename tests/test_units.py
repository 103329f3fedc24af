import sys
import os
import itertools

# Add src to path
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

import pytest

from bottle_trace.models import Coordinate, RouteEmissions, BaseProductFootprint, TransportHop
from bottle_trace.utils.calculations import (
    haversine_km, hop_footprint, aggregate_emissions, lookup_base_footprint, round_half_up
)

BASE = BaseProductFootprint(co2_kg=0.33, microplastics_ug=5.2, water_usage_l=1.9)


def test_haversine_symmetry_and_zero():
    print("Testing haversine symmetry and zero distance...")
    pairs = [
        (Coordinate(40.0, -75.0), Coordinate(40.1, -75.1)),
        (Coordinate(51.5, -0.1), Coordinate(48.85, 2.35)),
        (Coordinate(-33.87, 151.21), Coordinate(35.68, 139.69)),
    ]
    for a, b in pairs:
        assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))
        assert haversine_km(a, a) == 0.0

    # London -> Paris is about 343 km great-circle
    assert haversine_km(*pairs[1]) == pytest.approx(342.5, abs=3.0)
    print("PASS")


def test_hop_footprint_truck_100km():
    hop = hop_footprint(100, "truck")
    assert hop == TransportHop(distance_km=100.0, co2_kg=0.375, mode="truck")


def test_hop_footprint_rounding_per_mode():
    print("Testing hop rounding for every mode...")
    factors = {"truck": 0.15, "rail": 0.03, "ship": 0.01, "last-mile": 0.25}
    for d in (0.0, 13.3, 123.456, 987.65):
        for mode, factor in factors.items():
            hop = hop_footprint(d, mode)
            assert hop.mode == mode
            assert hop.distance_km == round_half_up(d, 1)
            assert hop.co2_kg == round_half_up(d * (factor * 0.025), 3), f"{mode} @ {d} km"
    print("PASS")


def test_round_half_up_differs_from_bankers_rounding():
    # 13.3 km last-mile -> 0.083125 kg
    assert round_half_up(0.0625, 3) == 0.063
    assert round_half_up(12.25, 1) == 12.3
    assert hop_footprint(13.3, "last-mile").co2_kg == 0.083


def test_hop_footprint_unknown_mode():
    with pytest.raises(ValueError):
        hop_footprint(10.0, "bicycle")


def test_aggregate_zero_legs_equals_base():
    total = aggregate_emissions(BASE, RouteEmissions())
    assert total.base_product == BASE
    assert total.transportation.co2_kg == 0
    assert total.transportation.total_distance_km == 0
    assert total.total == BASE


def test_aggregate_single_last_mile():
    route = RouteEmissions(last_mile=hop_footprint(13.3, "last-mile"))
    total = aggregate_emissions(BASE, route)
    assert total.transportation.co2_kg == 0.083
    assert total.transportation.total_distance_km == 13.3
    assert total.total.co2_kg == 0.413
    # Microplastics and water pass straight through
    assert total.total.microplastics_ug == 5.2
    assert total.total.water_usage_l == 1.9


def test_aggregate_order_independent():
    print("Testing aggregate order independence...")
    hops = {
        "last_mile": hop_footprint(14.0, "last-mile"),
        "distribution": hop_footprint(15.7, "truck"),
        "manufacturing": hop_footprint(61.2, "truck"),
        "water_treatment": hop_footprint(7.1, "truck"),
    }
    results = []
    for order in itertools.permutations(hops):
        route = RouteEmissions()
        for name in order:
            route.set_leg(name, hops[name])
        results.append(aggregate_emissions(BASE, route))

    assert all(r == results[0] for r in results)
    expected_co2 = round_half_up(sum(h.co2_kg for h in hops.values()), 3)
    assert results[0].transportation.co2_kg == expected_co2
    print("PASS")


def test_route_emissions_set_leg_and_snapshot():
    route = RouteEmissions()
    route.set_leg("distribution", hop_footprint(10.0, "truck"))
    snap = route.snapshot()
    route.set_leg("last_mile", hop_footprint(5.0, "last-mile"))

    assert list(snap.present_legs()) == ["distribution"]
    assert list(route.present_legs()) == ["last_mile", "distribution"]
    assert route.as_dict()["lastMile"]["transportType"] == "last-mile"
    assert route.as_dict()["waterSource"] is None

    with pytest.raises(KeyError):
        route.set_leg("warehouse", None)


def test_base_footprint_lookup():
    water = lookup_base_footprint("coca-cola", "water")
    coke = lookup_base_footprint("Coca-Cola", "COKE")
    other = lookup_base_footprint("unknown-brand", "water")

    assert (water.co2_kg, water.microplastics_ug, water.water_usage_l) == (0.33, 5.2, 1.9)
    assert (coke.co2_kg, coke.microplastics_ug, coke.water_usage_l) == (0.42, 5.2, 2.5)
    assert (other.co2_kg, other.microplastics_ug, other.water_usage_l) == (0.35, 5.0, 2.0)


if __name__ == "__main__":
    test_haversine_symmetry_and_zero()
    test_hop_footprint_rounding_per_mode()
    test_aggregate_order_independent()
