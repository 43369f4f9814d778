"""
Upstream adapters.

Responsibilities:
- Query Google Places and Eventbrite near a coordinate.
- Read a partner's shareable busy blocks and the requester's day/time preferences.
- Normalize every third-party payload into the engine's candidate models.
"""
from __future__ import annotations

from typing import Protocol

from ..suggestions.models import CalendarContext, Candidate, Coordinate


class CandidateSource(Protocol):
    name: str

    def fetch(self, origin: Coordinate, radius_km: float) -> list[Candidate]: ...


class CalendarProvider(Protocol):
    def fetch(self, requester_id: str, relationship_id: str) -> CalendarContext: ...
