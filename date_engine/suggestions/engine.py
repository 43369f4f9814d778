from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime
from enum import Enum
from typing import Any, Callable
from zoneinfo import ZoneInfo

from ..analytics.store import record_event
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..sources import CalendarProvider, CandidateSource
from .cache import ResponseCache, fingerprint
from .errors import PARTIAL_UPSTREAM_FAILURE, DateEngineError, UpstreamUnavailable
from .geo import validate_coordinate
from .models import CalendarContext, DateSuggestionRequest, DateSuggestionResponse
from .packages import generate_packages
from .ranking import rank_candidates
from .scheduling import propose_slots

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    validating = "Validating"
    cache_check = "CacheCheck"
    fetching = "Fetching"
    ranking = "Ranking"
    scheduling = "Scheduling"
    packaging = "Packaging"
    caching = "Caching"
    responding = "Responding"
    failed = "Failed"


class DateSuggestionEngine:
    """
    Request entry point for date suggestions.

    Runs Validating -> CacheCheck -> Fetching -> Ranking -> Scheduling ->
    Packaging -> Caching -> Responding. A cache hit jumps straight to
    Responding; invalid input or losing both candidate sources ends in Failed.
    """

    def __init__(
        self,
        venue_source: CandidateSource,
        event_source: CandidateSource,
        calendar_provider: CalendarProvider | None = None,
        cache: ResponseCache | None = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.venue_source = venue_source
        self.event_source = event_source
        self.calendar_provider = calendar_provider
        self.cache = cache if cache is not None else ResponseCache()
        self.config = config
        self.tz = ZoneInfo(config.timezone)
        self._now = now or (lambda: datetime.now(self.tz))

    def _enter(self, state: EngineState) -> None:
        logger.debug("date suggestions -> %s", state.value)

    def suggest(self, request: DateSuggestionRequest) -> DateSuggestionResponse:
        start_time = time.time()
        metrics: dict[str, Any] = {
            "latitude": None,
            "longitude": None,
            "radius_km": request.radius_km,
            "cache_hit": False,
            "failed_sources": [],
            "calendar_used": False,
            "calendar_unavailable": False,
        }
        try:
            response = self._run(request, metrics)
        except DateEngineError as exc:
            self._enter(EngineState.failed)
            metrics["failure"] = exc.kind
            raise
        else:
            metrics["packages_returned"] = len(response.date_packages)
            return response
        finally:
            metrics["response_time_ms"] = round((time.time() - start_time) * 1000, 1)
            record_event("date_suggestions", metrics)

    def _run(self, request: DateSuggestionRequest, metrics: dict[str, Any]) -> DateSuggestionResponse:
        # --- Validating ---
        self._enter(EngineState.validating)
        origin = validate_coordinate(request.location)
        metrics["latitude"] = round(origin.latitude, 4)
        metrics["longitude"] = round(origin.longitude, 4)

        # --- CacheCheck ---
        self._enter(EngineState.cache_check)
        key = fingerprint(request)
        cached = self.cache.get(key)
        if cached is not None:
            metrics["cache_hit"] = True
            self._enter(EngineState.responding)
            return cached

        # --- Fetching ---
        self._enter(EngineState.fetching)
        venues, events, calendar = self._fetch(request, metrics)

        # --- Ranking ---
        self._enter(EngineState.ranking)
        ranked = rank_candidates(venues, events)

        # --- Scheduling ---
        self._enter(EngineState.scheduling)
        slots = propose_slots(
            calendar.busy_intervals,
            calendar.preference,
            now=self._now(),
            tz=self.tz,
            lookahead_days=self.config.lookahead_days,
            target_count=self.config.max_suggested_times,
            duration_hours=self.config.slot_duration_hours,
        )

        # --- Packaging ---
        self._enter(EngineState.packaging)
        packages = generate_packages(ranked, request.preferences.max_budget, slots)
        response = DateSuggestionResponse(date_packages=packages)

        # --- Caching ---
        self._enter(EngineState.caching)
        self.cache.put(key, response, ttl_minutes=self.config.cache_ttl_minutes)

        self._enter(EngineState.responding)
        return response

    def _fetch(self, request: DateSuggestionRequest, metrics: dict[str, Any]):
        """Query venues, events and (when both ids are known) the calendar concurrently."""
        origin = request.location
        use_calendar = bool(
            self.calendar_provider and request.requester_id and request.relationship_id
        )
        metrics["calendar_used"] = use_calendar

        pool = ThreadPoolExecutor(max_workers=3, thread_name_prefix="date-suggestions")
        try:
            futures: dict[str, Future] = {
                "venues": pool.submit(self.venue_source.fetch, origin, request.radius_km),
                "events": pool.submit(self.event_source.fetch, origin, request.radius_km),
            }
            if use_calendar:
                futures["calendar"] = pool.submit(
                    self.calendar_provider.fetch, request.requester_id, request.relationship_id,
                )
            done, _ = wait(futures.values(), timeout=self.config.fetch_deadline)
        finally:
            # Abandon anything still in flight; it has no side effects to undo.
            pool.shutdown(wait=False, cancel_futures=True)

        # Keyed by role; source names are not guaranteed unique.
        outcomes = {role: self._outcome(role, future, done) for role, future in futures.items()}
        venues = outcomes["venues"]
        events = outcomes["events"]

        failed = [
            source.name
            for role, source in (("venues", self.venue_source), ("events", self.event_source))
            if outcomes[role] is None
        ]
        metrics["failed_sources"] = failed
        if len(failed) == 2:
            raise UpstreamUnavailable("Venue and event providers are both unavailable")
        if failed:
            logger.warning("%s: continuing without %s", PARTIAL_UPSTREAM_FAILURE, failed[0])

        calendar = outcomes.get("calendar")
        if calendar is None:
            if use_calendar:
                logger.warning("CalendarUnavailable: omitting suggested times")
                metrics["calendar_unavailable"] = True
            calendar = CalendarContext()

        return venues or [], events or [], calendar

    def _outcome(self, role: str, future: Future, done: set[Future]) -> Any | None:
        if future not in done:
            logger.warning("%s did not answer within %.1fs", role, self.config.fetch_deadline)
            return None
        try:
            return future.result()
        except Exception:
            logger.warning("%s lookup failed", role, exc_info=True)
            return None
