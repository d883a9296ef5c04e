"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
dashboard tuning constants and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Database
DB_PATH = Path(
    os.getenv("FINTRACK_DB_PATH", DATA_DIR / "finance.db")
).resolve()

# Dashboard
TREND_MONTHS = int(os.getenv("FINTRACK_TREND_MONTHS", "6"))
RECENT_TRANSACTIONS_LIMIT = 5

# Budget status tiers, in percent of the budget amount
WARNING_THRESHOLD = 80
OVER_THRESHOLD = 100

# Currencies
DEFAULT_CURRENCY = os.getenv("FINTRACK_DEFAULT_CURRENCY", "GBP")
SUPPORTED_CURRENCIES = ("GBP", "USD", "EUR")

# Categories
DEFAULT_CATEGORY_COLOR = "#6B7280"
UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_COLOR = "#6B7280"

# Listing limits
NOTIFICATION_LIMIT = 50
USER_SEARCH_LIMIT = 10
USER_SEARCH_MIN_CHARS = 2

# CSV import
IMPORT_MAX_BYTES = 5 * 1024 * 1024


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
