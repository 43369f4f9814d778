from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import requests

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..suggestions.errors import CalendarUnavailable
from ..suggestions.models import BusyInterval, CalendarContext, SchedulingPreference

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class SupabaseCalendarProvider:
    """
    Partner busy blocks and requester preferences over the Supabase REST API.

    Only events the partner flagged ``can_share_busy_status`` are requested,
    and any other row the server returns is dropped here, so non-shareable
    intervals never reach the engine.
    """

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> None:
        self.config = config

    def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{self.config.supabase_url.rstrip('/')}/rest/v1/{table}"
        headers = {
            "apikey": self.config.supabase_key,
            "Authorization": f"Bearer {self.config.supabase_key}",
        }
        response = requests.get(url, params=params, headers=headers, timeout=self.config.upstream_timeout)
        response.raise_for_status()
        rows = response.json()
        if not isinstance(rows, list):
            raise ValueError(f"Unexpected response from {table}")
        return rows

    def _partner_id(self, requester_id: str, relationship_id: str) -> str | None:
        rows = self._select("relationships", {
            "select": "partner_a_id,partner_b_id",
            "id": f"eq.{relationship_id}",
        })
        if not rows:
            return None
        couple = rows[0]
        if couple.get("partner_a_id") == requester_id:
            return couple.get("partner_b_id")
        if couple.get("partner_b_id") == requester_id:
            return couple.get("partner_a_id")
        logger.warning("Requester %s is not part of relationship %s", requester_id, relationship_id)
        return None

    def busy_intervals(self, requester_id: str, relationship_id: str) -> list[BusyInterval]:
        partner_id = self._partner_id(requester_id, relationship_id)
        if not partner_id:
            return []

        rows = self._select("user_calendar_events", {
            "select": "id,user_id,start_time,end_time,can_share_busy_status",
            "user_id": f"eq.{partner_id}",
            "can_share_busy_status": "eq.true",
        })
        return [
            BusyInterval(
                start_time=_parse_timestamp(row["start_time"]),
                end_time=_parse_timestamp(row["end_time"]),
                shareable=True,
            )
            for row in rows
            if row.get("can_share_busy_status") is True
        ]

    def preference(self, requester_id: str) -> SchedulingPreference | None:
        rows = self._select("user_notification_preferences", {
            "select": "date_suggestion_days,date_suggestion_time_preference",
            "user_id": f"eq.{requester_id}",
        })
        if not rows:
            return None
        row = rows[0]
        return SchedulingPreference(
            preferred_days=row.get("date_suggestion_days") or [],
            time_of_day=row.get("date_suggestion_time_preference"),
        )

    def fetch(self, requester_id: str, relationship_id: str) -> CalendarContext:
        if not self.config.supabase_url or not self.config.supabase_key:
            raise CalendarUnavailable("Supabase is not configured")
        try:
            return CalendarContext(
                busy_intervals=self.busy_intervals(requester_id, relationship_id),
                preference=self.preference(requester_id),
            )
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            raise CalendarUnavailable(str(exc)) from exc
