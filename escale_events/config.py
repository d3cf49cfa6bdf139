"""Centralised configuration for escale_events.

Environment variables are loaded once and all related constants are
grouped by concern for easier maintenance.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Core credentials (from environment)
# ---------------------------------------------------------------------------
PERPLEXITY_API_KEY: str | None = os.getenv("PERPLEXITY_API_KEY")
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
MONGODB_URI: str | None = os.getenv("MONGODB_URI")

# ---------------------------------------------------------------------------
# Discovery backend
# accepted values: "perplexity", "openai"
# ---------------------------------------------------------------------------
DISCOVERY_BACKEND: str = os.getenv("DISCOVERY_BACKEND", "perplexity").lower()
PERPLEXITY_MODEL: str = "sonar-pro"
# accepted values: "low", "medium", "high"
PERPLEXITY_CONTEXT_SIZE: str = "high"
OPENAI_DISCOVERY_MODEL: str = "gpt-4.1-mini"
REQUEST_TIMEOUT_SECONDS: float = 60.0

# ---------------------------------------------------------------------------
# Discovery window & event timing policy
# ---------------------------------------------------------------------------
# Window runs from today to the last day of the Nth following calendar month.
DISCOVERY_WINDOW_MONTHS_AHEAD: int = 1
# Events that started less than this long ago are still "happening".
PAST_GRACE_PERIOD: timedelta = timedelta(hours=6)
UPCOMING_SOON_WINDOW: timedelta = timedelta(hours=24)
AUTO_REFRESH_INTERVAL: float = 300.0

DEFAULT_DISCOVERY_QUERY: str = (
    "a broad and diverse mix of upcoming student parties, club nights, cultural"
    " outings, language exchanges and international student gatherings in Paris"
)

# ---------------------------------------------------------------------------
# Favourites persistence
# accepted backends: "file", "mongodb", "memory"
# ---------------------------------------------------------------------------
FAVORITES_STORAGE_KEY: str = "escale_favorites"
FAVORITES_BACKEND: str = os.getenv("FAVORITES_BACKEND", "file").lower()
FAVORITES_DIR: Path = Path(
    os.getenv("FAVORITES_DIR", Path.home() / ".escale_events")
)
MONGODB_DATABASE: str = "escale"
MONGODB_COLLECTION: str = "storage"

# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------
APP_NAME: str = "L'Escale Paris"
SHARE_URL: str = os.getenv("SHARE_URL", "https://escale.paris/events")

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials
    "PERPLEXITY_API_KEY",
    "OPENAI_API_KEY",
    "MONGODB_URI",
    # discovery
    "DISCOVERY_BACKEND",
    "PERPLEXITY_MODEL",
    "PERPLEXITY_CONTEXT_SIZE",
    "OPENAI_DISCOVERY_MODEL",
    "REQUEST_TIMEOUT_SECONDS",
    "DISCOVERY_WINDOW_MONTHS_AHEAD",
    "PAST_GRACE_PERIOD",
    "UPCOMING_SOON_WINDOW",
    "AUTO_REFRESH_INTERVAL",
    "DEFAULT_DISCOVERY_QUERY",
    # favourites
    "FAVORITES_STORAGE_KEY",
    "FAVORITES_BACKEND",
    "FAVORITES_DIR",
    "MONGODB_DATABASE",
    "MONGODB_COLLECTION",
    # sharing
    "APP_NAME",
    "SHARE_URL",
]
