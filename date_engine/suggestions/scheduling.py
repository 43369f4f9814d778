from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

from .models import BusyInterval, CandidateSlot, SchedulingPreference

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

ANCHOR_HOURS = {"morning": 10, "afternoon": 14, "evening": 19}
DEFAULT_ANCHOR_HOUR = ANCHOR_HOURS["evening"]

# Tried after the primary anchor, in this order.
ALTERNATE_OFFSETS_MINUTES: tuple[int, ...] = (-120, -60, 60, 120)

EARLIEST_START_HOUR = 9
LATEST_START_HOUR = 22


def _is_allowed_day(day: date, preference: SchedulingPreference | None) -> bool:
    if preference is None or not preference.preferred_days:
        return True
    allowed = {d.strip().lower() for d in preference.preferred_days}
    return WEEKDAY_NAMES[day.weekday()] in allowed


def anchor_times(day: date, preference: SchedulingPreference | None, tz: tzinfo) -> list[datetime]:
    """Primary anchor first, then alternates inside the reasonable-hours window."""
    bucket = (preference.time_of_day or "").strip().lower() if preference else ""
    hour = ANCHOR_HOURS.get(bucket, DEFAULT_ANCHOR_HOUR)
    primary = datetime.combine(day, time(hour), tzinfo=tz)

    anchors = [primary]
    for offset in ALTERNATE_OFFSETS_MINUTES:
        alternative = primary + timedelta(minutes=offset)
        if EARLIEST_START_HOUR <= alternative.hour <= LATEST_START_HOUR:
            anchors.append(alternative)
    return anchors


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    return start < other_end and end > other_start


def propose_slots(
    busy_intervals: list[BusyInterval],
    preference: SchedulingPreference | None,
    now: datetime,
    tz: tzinfo,
    lookahead_days: int = 7,
    target_count: int = 5,
    duration_hours: int = 3,
) -> list[CandidateSlot]:
    """
    Propose up to ``target_count`` future slots over the next ``lookahead_days``.

    Slots are returned in generation order: day by day, primary anchor before
    alternates. A slot is accepted only when it overlaps neither a busy
    interval nor an already accepted slot. Without busy data and without a
    preference record there is nothing to plan around, so the result is empty.
    """
    if not busy_intervals and preference is None:
        return []

    local_now = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
    blocked = [
        (_localize(b.start_time, tz), _localize(b.end_time, tz))
        for b in busy_intervals
    ]
    duration = timedelta(hours=duration_hours)

    slots: list[CandidateSlot] = []
    for day_offset in range(lookahead_days):
        day = local_now.date() + timedelta(days=day_offset)
        if not _is_allowed_day(day, preference):
            continue

        for start in anchor_times(day, preference, tz):
            if start <= local_now:
                continue
            end = start + duration
            if any(overlaps(start, end, b_start, b_end) for b_start, b_end in blocked):
                continue
            slots.append(CandidateSlot(start_time=start, duration_hours=duration_hours))
            blocked.append((start, end))
            if len(slots) >= target_count:
                return slots

    return slots


def _localize(value: datetime, tz: tzinfo) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=tz)
