import os
import logging
from datetime import datetime
from typing import Dict, Any, Optional

from .constants import AUDIT_ENABLED

logger = logging.getLogger(__name__)

# Reports are written to <root>/reports
current_directory = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
report_directory = os.path.join(current_directory, 'reports')


class CalculationAudit:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(CalculationAudit, cls).__new__(cls)
            cls._instance.initialized = False
        return cls._instance

    def __init__(self):
        if self.initialized:
            return

        self.enabled = bool(AUDIT_ENABLED)
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_dir = report_directory
        self.log_file: Optional[str] = None
        self.initialized = True

    def _open_session_file(self) -> str:
        os.makedirs(self.log_dir, exist_ok=True)
        path = os.path.join(self.log_dir, f"audit_{self.session_id}.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("=== EMISSION CALCULATION AUDIT LOG ===\n")
            f.write(f"Session: {self.session_id}\n")
            f.write("======================================\n\n")
        return path

    def log_calculation(self, context: str, formula: str, variables: Dict[str, Any], result: float, unit: str = ""):
        """
        Log a calculation step to the audit file.

        Args:
            context: Description of what is being calculated (e.g., "Hop: last-mile")
            formula: Text representation of equation (e.g., "Dist * EF * UnitWeight")
            variables: Dict of actual values used (e.g., {"Dist_km": 14.0, "EF": 0.25})
            result: The final result
            unit: Unit of the result (e.g., "kgCO2")
        """
        if not self.enabled:
            return

        try:
            if self.log_file is None:
                self.log_file = self._open_session_file()
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"[{datetime.now().strftime('%H:%M:%S')}] {context}\n")
                f.write(f"  Formula: {formula}\n")

                vars_str = ", ".join([f"{k}={v}" for k, v in variables.items()])
                f.write(f"  Inputs:  {vars_str}\n")

                f.write(f"  Result:  {result:.4f} {unit}\n")
                f.write("-" * 40 + "\n")
        except OSError as e:
            logger.error(f"Failed to write to audit log: {e}")


# Global Accessor
audit_logger = CalculationAudit()
