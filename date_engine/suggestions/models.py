from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BudgetCategory = Literal["cheap", "mid-range", "splurge"]


class Coordinate(BaseModel):
    # Range checks live in the engine so they surface as InvalidInput.
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class PreferenceProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_types: list[str] = Field(default_factory=list)
    vibe_tags: list[str] = Field(default_factory=list)
    max_budget: float = Field(default=100.0, ge=0.0)

    @field_validator("date_types", "vibe_tags")
    @classmethod
    def _as_sorted_set(cls, value: list[str]) -> list[str]:
        return sorted({v.strip().lower() for v in value if v and v.strip()})


class DateSuggestionRequest(BaseModel):
    location: Coordinate
    radius_km: float = Field(default=5.0, gt=0.0)
    preferences: PreferenceProfile = Field(default_factory=PreferenceProfile)
    requester_id: str | None = None
    relationship_id: str | None = None


class Candidate(BaseModel):
    """A venue or event normalized from an upstream provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: Literal["venue", "event"]
    distance_km: float = Field(default=0.0, ge=0.0)
    quality_score: float = 0.0
    price_level: int | None = Field(default=None, ge=0, le=4)
    min_ticket_price: float | None = None
    category_tags: tuple[str, ...] = ()
    address: str | None = None
    starts_at: datetime | None = None
    raw_source: dict[str, Any] = Field(default_factory=dict)


class RankedCandidate(Candidate):
    score: float


class BusyInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime
    shareable: bool = True


class SchedulingPreference(BaseModel):
    """Requester's preferred weekdays and time-of-day bucket."""

    model_config = ConfigDict(frozen=True)

    preferred_days: list[str] = Field(default_factory=list)
    time_of_day: str | None = None


class CalendarContext(BaseModel):
    busy_intervals: list[BusyInterval] = Field(default_factory=list)
    preference: SchedulingPreference | None = None


class CandidateSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: datetime
    duration_hours: int = 3

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(hours=self.duration_hours)


class ItemizedBudget(BaseModel):
    model_config = ConfigDict(frozen=True)

    dining: float
    activity: float
    transportation: float
    taxes_and_tips: float

    def total(self) -> float:
        return self.dining + self.activity + self.transportation + self.taxes_and_tips


class PackageItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["dining", "activity"]
    candidate: RankedCandidate


class DatePackage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    budget_category: BudgetCategory
    total_cost_estimate: float
    itemized_budget: ItemizedBudget
    items: list[PackageItem]
    suggested_times: list[CandidateSlot] | None = None


class DateSuggestionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_packages: list[DatePackage]
