"""
Tests for digest due-time computation.
"""

from datetime import datetime, timezone

import pytest

from rssbrief.database import Schedule
from rssbrief.schedule import (
    InvalidTimezoneError,
    candidate_slots,
    day_of_week,
    is_due,
    next_scheduled_time,
    occurrence_slot,
)

UTC = timezone.utc
# Monday 09:00 in New York
NY_MONDAY_9 = Schedule(hour=9, day_of_week=1, timezone="America/New_York")


class TestDayOfWeek:

    def test_sunday_is_zero(self):
        assert day_of_week(datetime(2026, 1, 11)) == 0  # Sunday
        assert day_of_week(datetime(2026, 1, 12)) == 1  # Monday
        assert day_of_week(datetime(2026, 1, 17)) == 6  # Saturday


class TestIsDue:
    """Due-time checks, including DST."""

    def test_winter_est(self):
        # EST is UTC-5: 09:00 local = 14:00 UTC
        assert is_due(NY_MONDAY_9, datetime(2026, 1, 12, 14, 0, tzinfo=UTC))
        assert is_due(NY_MONDAY_9, datetime(2026, 1, 12, 14, 59, tzinfo=UTC))
        assert not is_due(NY_MONDAY_9, datetime(2026, 1, 12, 13, 0, tzinfo=UTC))

    def test_summer_edt(self):
        # EDT is UTC-4: 09:00 local = 13:00 UTC
        assert is_due(NY_MONDAY_9, datetime(2026, 7, 13, 13, 0, tzinfo=UTC))
        assert not is_due(NY_MONDAY_9, datetime(2026, 7, 13, 14, 0, tzinfo=UTC))

    def test_monday_after_spring_forward(self):
        # DST starts Sunday 2026-03-08; the next Monday is already EDT
        assert is_due(NY_MONDAY_9, datetime(2026, 3, 9, 13, 0, tzinfo=UTC))
        assert not is_due(NY_MONDAY_9, datetime(2026, 3, 9, 14, 0, tzinfo=UTC))

    def test_wrong_day(self):
        assert not is_due(NY_MONDAY_9, datetime(2026, 1, 13, 14, 0, tzinfo=UTC))

    def test_day_boundary_east_of_utc(self):
        tokyo = Schedule(hour=8, day_of_week=1, timezone="Asia/Tokyo")
        # Sunday 23:00 UTC is Monday 08:00 in Tokyo
        assert is_due(tokyo, datetime(2026, 1, 11, 23, 0, tzinfo=UTC))

    def test_invalid_timezone(self):
        with pytest.raises(InvalidTimezoneError):
            is_due(Schedule(hour=9, day_of_week=1, timezone="Mars/Olympus"), datetime.now(UTC))


class TestCandidateSlots:
    """The offset pre-filter must never miss a due user."""

    def test_contains_every_due_schedule(self):
        now = datetime(2026, 1, 12, 14, 30, tzinfo=UTC)
        slots = candidate_slots(now)

        assert (9, 1) in slots  # New York
        assert (14, 1) in slots  # UTC
        assert (23, 1) in slots  # Tokyo
        assert (20, 1) in slots  # Kolkata, UTC+5:30
        assert len(slots) == 27

    def test_excludes_impossible_slots(self):
        now = datetime(2026, 1, 12, 14, 30, tzinfo=UTC)
        assert (14, 3) not in candidate_slots(now)

    @pytest.mark.parametrize("tz", [
        "America/New_York", "Asia/Kolkata", "Asia/Kathmandu", "Pacific/Kiritimati",
        "Pacific/Pago_Pago", "Australia/Adelaide", "Europe/London",
    ])
    def test_local_slot_always_candidate(self, tz):
        from zoneinfo import ZoneInfo

        now = datetime(2026, 7, 1, 3, 45, tzinfo=UTC)
        local = now.astimezone(ZoneInfo(tz))
        assert (local.hour, day_of_week(local)) in candidate_slots(now)


class TestNextScheduledTime:

    def test_later_this_week(self):
        # Sunday noon UTC -> Monday 09:00 EST
        now = datetime(2026, 1, 11, 12, 0, tzinfo=UTC)
        assert next_scheduled_time(NY_MONDAY_9, now) == datetime(2026, 1, 12, 14, 0, tzinfo=UTC)

    def test_later_today(self):
        now = datetime(2026, 1, 12, 12, 0, tzinfo=UTC)  # Monday 07:00 EST
        assert next_scheduled_time(NY_MONDAY_9, now) == datetime(2026, 1, 12, 14, 0, tzinfo=UTC)

    def test_current_hour_rolls_to_next_week(self):
        now = datetime(2026, 1, 12, 14, 10, tzinfo=UTC)  # Monday 09:10 EST
        assert next_scheduled_time(NY_MONDAY_9, now) == datetime(2026, 1, 19, 14, 0, tzinfo=UTC)

    def test_across_dst_change(self):
        # Tuesday before spring-forward -> next Monday is EDT
        now = datetime(2026, 3, 3, 12, 0, tzinfo=UTC)
        assert next_scheduled_time(NY_MONDAY_9, now) == datetime(2026, 3, 9, 13, 0, tzinfo=UTC)


class TestOccurrenceSlot:

    def test_truncates_to_hour(self):
        assert occurrence_slot(datetime(2026, 1, 12, 14, 37, 12, tzinfo=UTC)) == datetime(
            2026, 1, 12, 14, 0, tzinfo=UTC
        )
