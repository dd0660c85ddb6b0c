"""
Runtime configuration for hplan.

Settings are read from environment variables (optionally from a .env file).
The simulation core itself has no I/O; these knobs only control logging and
the iteration ceiling of the month loop.
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_MAX_SIMULATION_MONTHS = 100 * 12


class SimulationSettings:
    """Settings from environment variables."""

    def __init__(self):
        self.log_level = os.getenv("HPLAN_LOG_LEVEL", "INFO").upper()
        self.log_file: Optional[str] = os.getenv("HPLAN_LOG_FILE") or None

        raw_ceiling = os.getenv("HPLAN_MAX_SIMULATION_MONTHS", str(DEFAULT_MAX_SIMULATION_MONTHS))
        try:
            self.max_simulation_months = int(raw_ceiling)
        except ValueError:
            raise ValueError(
                f"HPLAN_MAX_SIMULATION_MONTHS must be an integer, got '{raw_ceiling}'"
            )
        if self.max_simulation_months <= 0:
            raise ValueError("HPLAN_MAX_SIMULATION_MONTHS must be positive")


@lru_cache(maxsize=1)
def get_settings() -> SimulationSettings:
    """Return the process-wide settings instance."""
    return SimulationSettings()
