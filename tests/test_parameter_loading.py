import sys
import os
import tempfile
from unittest.mock import patch

# Add src to path
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

import pandas as pd
import pytest

from bottle_trace.config import load_excel_config, resolve_parameter
from bottle_trace import constants

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))
from format_excel import PARAMS, create_formatted_excel  # noqa: E402


def test_param_loading():
    print("Testing Parameter Loading...")
    df = pd.DataFrame([
        {"Section": "3. Transport Emissions", "Key": "EMISSIONFACTOR_TRUCK", "Value": 0.12, "Unit": "-", "Description": ""},
        {"Section": "1. Services", "Key": "DISTRIBUTOR_LOOKUP_URL", "Value": None, "Unit": "URL", "Description": ""},
        {"Section": "2. Data", "Key": " AUDIT_ENABLED ", "Value": True, "Unit": "Bool", "Description": ""},
    ])
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "project_parameters.xlsx")
        df.to_excel(path, index=False)
        config = load_excel_config(path)

    assert config["EMISSIONFACTOR_TRUCK"] == 0.12
    assert "DISTRIBUTOR_LOOKUP_URL" not in config  # blank cell -> default
    assert bool(config["AUDIT_ENABLED"]) is True
    print("PASS")


def test_missing_or_malformed_sheet():
    assert load_excel_config("/nonexistent/project_parameters.xlsx") == {}

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "bad.xlsx")
        pd.DataFrame([{"Name": "X", "Amount": 1}]).to_excel(path, index=False)
        assert load_excel_config(path) == {}


def test_resolve_parameter_precedence():
    config = {"UNIT_WEIGHT_KG": "0.5", "AUDIT_ENABLED": "yes"}

    assert resolve_parameter(config, "UNIT_WEIGHT_KG", 0.025) == 0.5
    assert resolve_parameter(config, "EMISSIONFACTOR_SHIP", 0.01) == 0.01
    assert resolve_parameter(config, "AUDIT_ENABLED", False) is True

    with patch.dict(os.environ, {"BOTTLE_TRACE_UNIT_WEIGHT_KG": "0.75"}):
        assert resolve_parameter(config, "UNIT_WEIGHT_KG", 0.025) == 0.75

    # Unparseable values fall back to the default
    assert resolve_parameter({"HTTP_TIMEOUT_S": "soon"}, "HTTP_TIMEOUT_S", 15.0) == 15.0


def test_default_emission_factors():
    overrides = [k for k in os.environ if k.startswith("BOTTLE_TRACE_")]
    if overrides:
        pytest.skip(f"constants were loaded with environment overrides: {overrides}")
    assert set(constants.EMISSION_FACTORS) == {"truck", "rail", "ship", "last-mile"}
    assert constants.EARTH_RADIUS_KM == 6371.0
    assert (constants.DISTANCE_DECIMALS, constants.CO2_DECIMALS) == (1, 3)

    # Built-in defaults win when neither environment nor sheet sets a value
    with patch.dict(os.environ, {}, clear=True):
        assert resolve_parameter({}, "EMISSIONFACTOR_TRUCK", 0.15) == 0.15
        assert resolve_parameter({}, "UNIT_WEIGHT_KG", 0.025) == 0.025


def test_generated_sheet_loads_back():
    print("Testing generated parameter sheet...")
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "parameters_config", "project_parameters.xlsx")
        create_formatted_excel(path)
        config = load_excel_config(path)

    assert config["EMISSIONFACTOR_TRUCK"] == 0.15
    assert config["UNIT_WEIGHT_KG"] == 0.025
    filled = {p["Key"] for p in PARAMS if p["Value"] not in ("", None)}
    assert filled <= set(config)
    print("PASS")


if __name__ == "__main__":
    test_param_loading()
    test_resolve_parameter_precedence()
