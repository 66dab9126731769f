"""
Unit tests for the recurrence expander.
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from homeschool_planner.models.imported_event import ImportedEvent
from homeschool_planner.services.recurrence_expander import RecurrenceExpander, parse_until


def _event(**overrides) -> ImportedEvent:
    now = datetime(2024, 8, 1, tzinfo=timezone.utc)
    data = {
        "id": uuid4(),
        "child_id": uuid4(),
        "summary": "Piano",
        "dtstart": datetime(2024, 9, 2, 15, 0),
        "dtend": datetime(2024, 9, 2, 16, 0),
        "frequency": "WEEKLY",
        "timezone": "America/New_York",
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return ImportedEvent(**data)


class TestWeeklyExpansion:
    def test_count_stops_after_exact_number(self):
        result = RecurrenceExpander().expand(_event(count=10), "America/New_York")

        assert len(result.occurrences) == 10
        assert result.truncated is False
        assert result.error is None
        assert result.occurrences[0].on_date == date(2024, 9, 2)
        assert result.occurrences[-1].on_date == date(2024, 11, 4)

    def test_wall_clock_time_survives_dst_change(self):
        result = RecurrenceExpander().expand(_event(count=10), "America/New_York")

        # DST ends on 2024-11-03; the lesson stays at 15:00 local time.
        assert all(o.start.hour == 15 for o in result.occurrences)
        assert all(o.day_of_week == 1 for o in result.occurrences)

    def test_interval_skips_weeks(self):
        result = RecurrenceExpander().expand(_event(count=3, interval=2), "America/New_York")

        assert [o.on_date for o in result.occurrences] == [
            date(2024, 9, 2),
            date(2024, 9, 16),
            date(2024, 9, 30),
        ]

    def test_until_date_is_inclusive(self):
        result = RecurrenceExpander().expand(_event(until="2024-09-16"), "America/New_York")

        assert [o.on_date for o in result.occurrences] == [
            date(2024, 9, 2),
            date(2024, 9, 9),
            date(2024, 9, 16),
        ]

    def test_until_in_ical_basic_format(self):
        result = RecurrenceExpander().expand(_event(until="20240909"), "America/New_York")

        assert len(result.occurrences) == 2

    def test_display_timezone_conversion(self):
        result = RecurrenceExpander().expand(_event(count=1), "Europe/London")

        occurrence = result.occurrences[0]
        assert occurrence.start.hour == 20
        assert occurrence.end.hour == 21

    def test_non_recurring_event_has_one_occurrence(self):
        result = RecurrenceExpander().expand(_event(frequency=None), "America/New_York")

        assert len(result.occurrences) == 1
        assert result.error is None


class TestExpansionCap:
    def test_unbounded_rule_is_truncated_at_cap(self):
        result = RecurrenceExpander(max_occurrences=366).expand(_event(), "America/New_York")

        assert len(result.occurrences) == 366
        assert result.truncated is True
        assert any("truncated" in warning for warning in result.warnings)

    def test_rule_ending_exactly_at_cap_is_not_truncated(self):
        result = RecurrenceExpander(max_occurrences=5).expand(_event(count=5), "America/New_York")

        assert len(result.occurrences) == 5
        assert result.truncated is False

    def test_iter_occurrences_respects_cap(self):
        expander = RecurrenceExpander(max_occurrences=4)

        assert len(list(expander.iter_occurrences(_event(), "UTC"))) == 4

    def test_count_beyond_cap_yields_every_occurrence(self):
        result = RecurrenceExpander(max_occurrences=366).expand(_event(count=400), "America/New_York")

        assert len(result.occurrences) == 400
        assert result.truncated is False
        assert result.occurrences[-1].on_date == date(2024, 9, 2) + timedelta(weeks=399)

    def test_until_beyond_cap_is_not_truncated(self):
        expander = RecurrenceExpander(max_occurrences=10)
        event = _event(until="2024-12-30")

        result = expander.expand(event, "America/New_York")

        assert len(result.occurrences) == 18
        assert result.truncated is False
        assert len(list(expander.iter_occurrences(event, "America/New_York"))) == 18

    def test_bounded_rules_stop_at_safety_ceiling(self):
        expander = RecurrenceExpander(max_occurrences=10, bounded_max_occurrences=20)

        result = expander.expand(_event(count=50), "UTC")

        assert len(result.occurrences) == 20
        assert result.truncated is True


class TestMalformedRecurrence:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"frequency": "MONTHLY"},
            {"interval": 0},
            {"count": 0},
            {"until": "next tuesday"},
            {"dtend": datetime(2024, 9, 2, 14, 0)},
        ],
    )
    def test_degrades_to_single_occurrence(self, overrides):
        result = RecurrenceExpander().expand(_event(**overrides), "America/New_York")

        assert len(result.occurrences) == 1
        assert result.error
        assert result.occurrences[0].on_date == date(2024, 9, 2)

    def test_bad_dtend_uses_default_duration(self):
        expander = RecurrenceExpander(default_duration_minutes=60)
        result = expander.expand(_event(dtend=datetime(2024, 9, 2, 15, 0)), "America/New_York")

        occurrence = result.occurrences[0]
        assert occurrence.end - occurrence.start == timedelta(minutes=60)

    def test_check_reports_event_id(self):
        event = _event(frequency="DAILY")

        error = RecurrenceExpander().check(event)

        assert error is not None
        assert error.event_id == str(event.id)


class TestTimezoneFallback:
    def test_unknown_event_timezone_falls_back_to_utc(self):
        result = RecurrenceExpander().expand(_event(count=1, timezone="Mars/Olympus"), "UTC")

        assert result.occurrences[0].start.hour == 15
        assert any("Mars/Olympus" in warning for warning in result.warnings)

    def test_unknown_display_timezone_falls_back_to_utc(self):
        result = RecurrenceExpander().expand(_event(count=1, timezone="UTC"), "Nowhere/Special")

        assert result.occurrences[0].start.hour == 15
        assert any("Nowhere/Special" in warning for warning in result.warnings)


def test_parse_until_with_utc_suffix_converts_to_event_zone():
    from zoneinfo import ZoneInfo

    parsed = parse_until("20240909T190000Z", ZoneInfo("America/New_York"))

    assert parsed == datetime(2024, 9, 9, 15, 0)
