"""Settings and environment configuration.

Every tunable constant of the calculator lives here so a deployment can
adjust it through the environment without touching the calculation code.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from typing import Optional

# Cash position within +/- this many currency units counts as break-even
BREAKEVEN_BAND = Decimal(os.getenv("CAR_EQUITY_BREAKEVEN_BAND", "200"))

# Reported spread either side of a balloon estimate
BALLOON_VARIANCE = Decimal(os.getenv("CAR_EQUITY_BALLOON_VARIANCE", "0.05"))

# Used-car market multiplier applied to balloon estimates (0.95 = market down 5%)
MARKET_TREND = Decimal(os.getenv("CAR_EQUITY_MARKET_TREND", "1.00"))

# Mileage assumed when a vehicle record does not carry its own figure
DEFAULT_ANNUAL_MILEAGE = Decimal(os.getenv("CAR_EQUITY_ANNUAL_MILEAGE", "10000"))

# Months simulated after the contract ends
POST_CONTRACT_MONTHS = int(os.getenv("CAR_EQUITY_POST_CONTRACT_MONTHS", "6"))

# Vehicle store
DATABASE_URL: Optional[str] = os.getenv("CAR_EQUITY_DATABASE_URL")
DEFAULT_DATABASE_URL = "sqlite:///car_equity.sqlite3"
MAX_VEHICLES_PER_OWNER = int(os.getenv("CAR_EQUITY_MAX_VEHICLES", "25"))

# Web
SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret-key")

LOG_LEVEL = os.getenv("CAR_EQUITY_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
