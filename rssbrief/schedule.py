"""
Digest due-time computation.

A schedule is a local (hour, day-of-week) in an IANA time zone, with
day 0 = Sunday. Finding due users takes two steps:

1. ``candidate_slots(now)`` lists every local (hour, day) that is "now"
   somewhere between UTC-12 and UTC+14. Preferences are filtered on
   those pairs through the schedule index.
2. ``is_due(schedule, now)`` confirms each candidate in the user's own
   zone, so DST transitions come from the tz database.

Half-hour and quarter-hour zones need no extra offsets: their local hour
always matches one of the whole-hour neighbours.
"""

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .database import Schedule

MIN_UTC_OFFSET = -12
MAX_UTC_OFFSET = 14


class InvalidTimezoneError(ValueError):
    """Schedule names a time zone the tz database doesn't know."""
    pass


def day_of_week(value: datetime) -> int:
    """Day of week with 0 = Sunday."""
    return (value.weekday() + 1) % 7


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(f"Unknown time zone: {name!r}") from e


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def candidate_slots(now: datetime) -> set[tuple[int, int]]:
    """(local hour, local day of week) pairs that are current somewhere on Earth."""
    now = _as_utc(now)
    slots = set()
    for offset in range(MIN_UTC_OFFSET, MAX_UTC_OFFSET + 1):
        local = now + timedelta(hours=offset)
        slots.add((local.hour, day_of_week(local)))
    return slots


def local_now(schedule: Schedule, now: datetime) -> datetime:
    return _as_utc(now).astimezone(get_zone(schedule.timezone))


def is_due(schedule: Schedule, now: datetime) -> bool:
    """
    True when ``now`` falls in the schedule's local hour and day.

    Raises:
        InvalidTimezoneError: unknown time zone name
    """
    local = local_now(schedule, now)
    return local.hour == schedule.hour and day_of_week(local) == schedule.day_of_week


def next_scheduled_time(schedule: Schedule, now: datetime) -> datetime:
    """
    Next UTC instant at which the schedule fires.

    When today is the scheduled day and the scheduled hour is current or
    already past, the answer is a week later.

    Raises:
        InvalidTimezoneError: unknown time zone name
    """
    zone = get_zone(schedule.timezone)
    local = _as_utc(now).astimezone(zone)
    current_hour = local.replace(minute=0, second=0, microsecond=0)

    days_ahead = (schedule.day_of_week - day_of_week(local)) % 7
    day = local.date() + timedelta(days=days_ahead)
    candidate = datetime.combine(day, time(hour=schedule.hour), tzinfo=zone)
    if candidate <= current_hour:
        candidate = datetime.combine(day + timedelta(days=7), time(hour=schedule.hour), tzinfo=zone)
    return candidate.astimezone(timezone.utc)


def occurrence_slot(now: datetime) -> datetime:
    """The UTC hour a digest occurrence is keyed by."""
    return _as_utc(now).replace(minute=0, second=0, microsecond=0)
