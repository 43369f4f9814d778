from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

PLACES_TYPES: tuple[str, ...] = (
    "restaurant",
    "cafe",
    "bar",
    "museum",
    "park",
    "movie_theater",
    "shopping_mall",
    "bowling_alley",
)


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the date-suggestion engine and its upstream adapters.
    """

    google_places_api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    eventbrite_api_key: str = os.getenv("EVENTBRITE_API_KEY", "")
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_ANON_KEY", "")

    upstream_timeout: float = 6.0
    fetch_deadline: float = 8.0
    cache_ttl_minutes: float = 15.0

    timezone: str = os.getenv("DATE_ENGINE_TIMEZONE", "UTC")
    lookahead_days: int = 7
    max_suggested_times: int = 5
    slot_duration_hours: int = 3

    places_types: tuple[str, ...] = PLACES_TYPES
    places_results_per_type: int = 5
    events_within_km: int = 5


DEFAULT_ENGINE_CONFIG = EngineConfig()
