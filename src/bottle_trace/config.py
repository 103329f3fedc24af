import os
import pandas as pd
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)

# Parameter sheet lives in the project root: <root>/data/parameters_config/project_parameters.xlsx
# This file is <root>/src/bottle_trace/config.py, so the root is three levels up.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "data", "parameters_config", "project_parameters.xlsx")
ENV_PREFIX = "BOTTLE_TRACE_"


def load_excel_config(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from Excel file.
    Expected columns: Key, Value (Unit, Section, Description are informational)
    Returns a dictionary of Key -> Value
    """
    config = {}
    if not os.path.exists(path):
        logger.debug(f"Config file not found at {path}. Using defaults.")
        return config

    try:
        df = pd.read_excel(path)
        if "Key" in df.columns and "Value" in df.columns:
            for _, row in df.iterrows():
                key = str(row["Key"]).strip()
                val = row["Value"]
                if pd.isna(val):
                    continue
                config[key] = val
            logger.info(f"Loaded {len(config)} parameters from {path}")
        else:
            logger.warning(f"Excel file {path} missing 'Key' or 'Value' columns.")
    except Exception as e:
        logger.error(f"Failed to load config from {path}: {e}")

    return config


def resolve_parameter(config: Dict[str, Any], key: str, default: Any) -> Any:
    """
    Resolve one parameter: environment (BOTTLE_TRACE_<KEY>) wins over the
    Excel sheet, which wins over the built-in default. Values are coerced
    to the type of the default.
    """
    raw = os.environ.get(ENV_PREFIX + key)
    if raw is None:
        raw = config.get(key, default)
    if raw is None or default is None:
        return raw

    try:
        if isinstance(default, bool):
            if isinstance(raw, str):
                return raw.strip().lower() in ("1", "true", "yes", "y", "on")
            return bool(raw)
        if isinstance(default, (int, float)):
            return type(default)(raw)
        return str(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid value {raw!r} for parameter '{key}'. Using default {default!r}.")
        return default
