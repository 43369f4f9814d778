from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import requests

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..suggestions.errors import UpstreamError
from ..suggestions.models import Candidate, Coordinate

logger = logging.getLogger(__name__)

EVENTBRITE_SEARCH_URL = "https://www.eventbriteapi.com/v3/events/search/"


def _event_name(event: dict[str, Any]) -> str:
    name = event.get("name")
    if isinstance(name, dict):
        name = name.get("text")
    return name or "Local Activity"


def _min_ticket_price(event: dict[str, Any]) -> float | None:
    """Cheapest ticket in major currency units (dollars, not cents)."""
    price = (event.get("ticket_availability") or {}).get("minimum_ticket_price") or {}
    try:
        if price.get("major_value") is not None:
            return float(price["major_value"])
        if price.get("value") is not None:
            return float(price["value"]) / 100
    except (AttributeError, TypeError, ValueError):
        return None
    return None


def _starts_at(event: dict[str, Any]) -> datetime | None:
    local = (event.get("start") or {}).get("local")
    if not local:
        return None
    try:
        return datetime.fromisoformat(local)
    except ValueError:
        return None


def _to_candidate(event: dict[str, Any]) -> Candidate | None:
    if event.get("id") is None:
        return None
    address = ((event.get("venue") or {}).get("address") or {}).get("localized_address_display")
    return Candidate(
        id=str(event["id"]),
        name=_event_name(event),
        kind="event",
        min_ticket_price=_min_ticket_price(event),
        address=address,
        starts_at=_starts_at(event),
        raw_source=event,
    )


class EventbriteEventSource:
    """Public events near a coordinate. Disabled (empty) without a token."""

    name = "events"

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> None:
        self.config = config

    def fetch(self, origin: Coordinate, radius_km: float) -> list[Candidate]:
        if not self.config.eventbrite_api_key:
            logger.debug("Eventbrite token not configured, skipping events")
            return []

        params = {
            "location.latitude": origin.latitude,
            "location.longitude": origin.longitude,
            "location.within": f"{self.config.events_within_km}km",
        }
        headers = {"Authorization": f"Bearer {self.config.eventbrite_api_key}"}
        try:
            response = requests.get(
                EVENTBRITE_SEARCH_URL,
                params=params,
                headers=headers,
                timeout=self.config.upstream_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamError(self.name, str(exc)) from exc
        if not isinstance(data, dict):
            raise UpstreamError(self.name, "unexpected response body")

        candidates = []
        for event in data.get("events") or []:
            candidate = _to_candidate(event)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
