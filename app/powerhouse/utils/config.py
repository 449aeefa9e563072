"""
Configuration module for the Powerhouse sales-ops backend.

All settings are configurable via environment variables with sensible defaults
for local development against the built-in fixture data.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Data source
# ---------------------------------------------------------------------------
# "fixture" serves the built-in seed data; "live" calls the HTTP endpoints below
DATA_SOURCE: str = os.getenv("DATA_SOURCE", "fixture").lower()

QUOTES_URL: str = os.getenv("REXAGEN_QUOTES_URL", "")
QUOTES_API_KEY: str = os.getenv("REXAGEN_QUOTES_API_KEY", "")

SUPPLIER_COSTS_URL: str = os.getenv("REXAGEN_SUPPLIER_COSTS_URL", "")
SUPPLIER_COSTS_API_KEY: str = os.getenv("REXAGEN_SUPPLIER_COSTS_API_KEY", "")

PRICING_HISTORY_URL: str = os.getenv("REXAGEN_PRICING_HISTORY_URL", "")
PRICING_HISTORY_API_KEY: str = os.getenv("REXAGEN_PRICING_HISTORY_API_KEY", "")

INVENTORY_URL: str = os.getenv("REXAGEN_INVENTORY_URL", "")
INVENTORY_API_KEY: str = os.getenv("REXAGEN_INVENTORY_API_KEY", "")

HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------
CACHE_TTL: int = int(os.getenv("CACHE_TTL", "300"))  # seconds

# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------
SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
SCHEDULER_INTERVAL_SECONDS: float = float(os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"))

# Civil time zone used for report timestamps and the weekly job trigger
REPORT_TIMEZONE: str = "America/New_York"

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_TITLE: str = "Rexagen Powerhouse Dashboard"
APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
STATIC_FILES_DIR: str = os.getenv("STATIC_FILES_DIR", "static")
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
