import sys
import os
import tempfile

# Add src to path
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from bottle_trace.audit import audit_logger
from bottle_trace.models import (
    BaseProductFootprint, Distributor, Coordinate, ImpactRun, RouteEmissions
)
from bottle_trace.utils.calculations import hop_footprint, aggregate_emissions
from bottle_trace.utils.input_helpers import (
    format_leg_lines, print_impact_overview, extract_zip_code, try_parse_lat_lon
)
from bottle_trace.visualization import Visualizer

BASE = BaseProductFootprint(co2_kg=0.33, microplastics_ug=5.2, water_usage_l=1.9)


def partial_route():
    route = RouteEmissions()
    route.set_leg("last_mile", hop_footprint(14.0, "last-mile"))
    route.set_leg("distribution", hop_footprint(15.7, "truck"))
    return route


def test_leg_lines_mark_missing_legs():
    print("Running test_leg_lines_mark_missing_legs...")
    lines = format_leg_lines(partial_route())

    assert len(lines) == 5
    assert "14.0 km" in lines[0] and "0.088 kg" in lines[0] and "(last-mile)" in lines[0]
    assert "(truck)" in lines[1]
    for line in lines[2:]:
        assert line.rstrip().endswith("-")
    print("PASS")


def test_impact_overview_output(capsys):
    route = partial_route()
    run = ImpactRun(generation=1, location_text="19104", base_product=BASE, state="degraded")
    run.distributor = Distributor("Liberty Coca-Cola", "725 E Erie Ave", "", Coordinate(40.1, -75.1))
    run.route_emissions = route
    run.total_emissions = aggregate_emissions(BASE, route)

    print_impact_overview(run)
    out = capsys.readouterr().out

    assert "Liberty Coca-Cola" in out
    assert f"{run.total_emissions.total.co2_kg:.3f} kg" in out
    assert "Bottling plant" not in out


def test_zip_and_coordinate_text():
    assert extract_zip_code("1600 Market St, Philadelphia, PA 19103") == "19103"
    assert extract_zip_code("Suite 123456, 19104") == "19104"
    assert extract_zip_code("Philadelphia") is None
    assert extract_zip_code("") is None
    assert extract_zip_code("39.95123, -75.16543") is None
    assert extract_zip_code("Depot at 40.12345,-75.1 near 19104") == "19104"

    assert try_parse_lat_lon("40.0, -75.0") == Coordinate(40.0, -75.0)
    assert try_parse_lat_lon("95, 10") is None
    assert try_parse_lat_lon("Philadelphia, PA") is None


def test_visualizer_writes_plots():
    print("Running test_visualizer_writes_plots...")
    route = partial_route()
    total = aggregate_emissions(BASE, route)

    with tempfile.TemporaryDirectory() as tmp:
        viz = Visualizer(mode="single_run", output_root=tmp)
        assert viz.session_dir.startswith(os.path.join(tmp, "single_run"))

        paths = viz.generate_all_plots(total, route, "Coca-Cola Water")
        assert [os.path.basename(p) for p in paths] == ["leg_breakdown.png", "footprint_split.png"]
        for p in paths:
            assert os.path.getsize(p) > 0

        # Base-only totals still render
        empty = aggregate_emissions(BASE, RouteEmissions())
        assert os.path.exists(viz.plot_footprint_split(empty))
    print("PASS")


def test_audit_log_written_when_enabled():
    saved = (audit_logger.enabled, audit_logger.log_dir, audit_logger.log_file)
    try:
        with tempfile.TemporaryDirectory() as tmp:
            audit_logger.enabled = True
            audit_logger.log_dir = tmp
            audit_logger.log_file = None

            hop_footprint(100.0, "truck")

            assert audit_logger.log_file is not None
            with open(audit_logger.log_file, encoding="utf-8") as f:
                text = f.read()
            assert "EMISSION CALCULATION AUDIT LOG" in text
            assert "truck" in text
            assert "0.3750" in text
    finally:
        audit_logger.enabled, audit_logger.log_dir, audit_logger.log_file = saved


if __name__ == "__main__":
    test_leg_lines_mark_missing_legs()
    test_visualizer_writes_plots()
