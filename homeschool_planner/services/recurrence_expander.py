"""
Recurrence expander.

Turns an imported calendar event into concrete occurrences in the child's
display time zone. Only WEEKLY rules are expanded (every ``interval`` weeks
from DTSTART). COUNT stops after exactly that many occurrences, UNTIL is
inclusive, and a rule with neither stops at ``RECURRENCE_MAX_OCCURRENCES``
(reported as truncated). Bounded rules only answer to the much larger
``RECURRENCE_BOUNDED_MAX_OCCURRENCES`` safety ceiling.

Rules that cannot be honoured degrade to a single occurrence built from
DTSTART/DTEND and the problem is reported as a MalformedRecurrenceError.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from itertools import islice
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse
from dateutil.rrule import WEEKLY, rrule

from homeschool_planner.core.config import get_settings
from homeschool_planner.core.exceptions import MalformedRecurrenceError
from homeschool_planner.core.logger import setup_logger
from homeschool_planner.models.imported_event import ExpansionResult, ImportedEvent, Occurrence
from homeschool_planner.utils.datetime_utils import localize, resolve_timezone

logger = setup_logger(__name__)

SUPPORTED_FREQUENCY = "WEEKLY"


def parse_until(value: str, tz: ZoneInfo) -> datetime:
    """
    Parse an UNTIL value into a naive wall-clock datetime in ``tz``.

    A date-only value covers the whole day. Aware values are converted into
    ``tz``; naive values are already read in ``tz``.

    Raises:
        ValueError: If the value is not ISO 8601 / iCalendar basic format
    """
    text = value.strip()
    if "T" not in text.upper():
        until_day = isoparse(text).date()
        return datetime.combine(until_day, time.max)
    parsed = isoparse(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz).replace(tzinfo=None)
    return parsed


class RecurrenceExpander:
    """Expands imported events into bounded occurrence sequences."""

    def __init__(
        self,
        max_occurrences: Optional[int] = None,
        default_duration_minutes: Optional[int] = None,
        bounded_max_occurrences: Optional[int] = None,
    ):
        settings = get_settings()
        self.max_occurrences = max_occurrences or settings.RECURRENCE_MAX_OCCURRENCES
        self.bounded_max_occurrences = (
            bounded_max_occurrences or settings.RECURRENCE_BOUNDED_MAX_OCCURRENCES
        )
        self.default_duration_minutes = (
            default_duration_minutes or settings.RECURRENCE_DEFAULT_DURATION_MINUTES
        )

    def expand(self, event: ImportedEvent, display_timezone: str) -> ExpansionResult:
        """Materialize all occurrences of ``event`` up to the cap."""
        event_tz, event_fallback = resolve_timezone(event.timezone)
        display_tz, display_fallback = resolve_timezone(display_timezone)
        warnings: list[str] = []
        if event_fallback:
            warnings.append(f"Unknown event time zone {event.timezone!r}, using UTC")
        if display_fallback:
            warnings.append(f"Unknown display time zone {display_timezone!r}, using UTC")

        error = self.check(event)
        if error is not None:
            logger.warning(f"Recurrence for event {event.id} degraded to one occurrence: {error.message}")
            return ExpansionResult(
                occurrences=[self._single_occurrence(event, display_timezone)],
                truncated=False,
                error=error.message,
                warnings=warnings,
            )

        limit = self.limit_for(event)
        # One extra candidate tells us whether the cap cut the series short.
        candidates = list(islice(self._iter_starts(event), limit + 1))
        truncated = len(candidates) > limit
        if truncated:
            logger.warning(f"Recurrence for event {event.id} truncated at {limit} occurrences")
            candidates = candidates[:limit]
            warnings.append(f"Expansion truncated at {limit} occurrences")
        duration = self._duration(event)
        return ExpansionResult(
            occurrences=[
                self._to_occurrence(event, start, duration, event_tz, display_tz) for start in candidates
            ],
            truncated=truncated,
            warnings=warnings,
        )

    def iter_occurrences(self, event: ImportedEvent, display_timezone: str) -> Iterator[Occurrence]:
        """Lazily yield occurrences, never more than the cap."""
        if self.check(event) is not None:
            yield self._single_occurrence(event, display_timezone)
            return
        event_tz, _ = resolve_timezone(event.timezone)
        display_tz, _ = resolve_timezone(display_timezone)
        duration = self._duration(event)
        for start in islice(self._iter_starts(event), self.limit_for(event)):
            yield self._to_occurrence(event, start, duration, event_tz, display_tz)

    def limit_for(self, event: ImportedEvent) -> int:
        """
        Occurrence ceiling for ``event``.

        Open-ended rules stop at ``max_occurrences``. Rules bounded by COUNT or
        UNTIL run to their end, guarded only by the much larger
        ``bounded_max_occurrences``.
        """
        if event.count is None and not event.until:
            return self.max_occurrences
        return self.bounded_max_occurrences

    def check(self, event: ImportedEvent) -> Optional[MalformedRecurrenceError]:
        """Return the reason ``event`` cannot be expanded as written, if any."""
        event_id = str(event.id)
        if event.dtend is not None and self._naive_local(event.dtend, event) <= self._naive_local(
            event.dtstart, event
        ):
            return MalformedRecurrenceError("DTEND must be after DTSTART", event_id=event_id)
        if event.frequency is None:
            return None
        if event.frequency.strip().upper() != SUPPORTED_FREQUENCY:
            return MalformedRecurrenceError(
                f"Unsupported recurrence frequency {event.frequency!r}", event_id=event_id
            )
        if event.interval < 1:
            return MalformedRecurrenceError("INTERVAL must be a positive integer", event_id=event_id)
        if event.count is not None and event.count < 1:
            return MalformedRecurrenceError("COUNT must be a positive integer", event_id=event_id)
        if event.until:
            event_tz, _ = resolve_timezone(event.timezone)
            try:
                parse_until(event.until, event_tz)
            except ValueError:
                return MalformedRecurrenceError(f"Unparseable UNTIL {event.until!r}", event_id=event_id)
        return None

    # ===========================================
    # Internals
    # ===========================================

    def _naive_local(self, value: datetime, event: ImportedEvent) -> datetime:
        if value.tzinfo is None:
            return value
        event_tz, _ = resolve_timezone(event.timezone)
        return value.astimezone(event_tz).replace(tzinfo=None)

    def _duration(self, event: ImportedEvent) -> timedelta:
        if event.dtend is not None:
            delta = self._naive_local(event.dtend, event) - self._naive_local(event.dtstart, event)
            if delta > timedelta(0):
                return delta
        return timedelta(minutes=self.default_duration_minutes)

    def _iter_starts(self, event: ImportedEvent) -> Iterator[datetime]:
        """Wall-clock starts in the event zone, bounded by COUNT/UNTIL but not the cap."""
        start = self._naive_local(event.dtstart, event)
        if event.frequency is None:
            yield start
            return

        until: Optional[datetime] = None
        if event.until:
            event_tz, _ = resolve_timezone(event.timezone)
            until = parse_until(event.until, event_tz)

        rule = rrule(WEEKLY, interval=event.interval, dtstart=start)
        emitted = 0
        for occurrence_start in rule:
            if until is not None and occurrence_start > until:
                return
            yield occurrence_start
            emitted += 1
            if event.count is not None and emitted >= event.count:
                return

    def _to_occurrence(
        self,
        event: ImportedEvent,
        start: datetime,
        duration: timedelta,
        event_tz: ZoneInfo,
        display_tz: ZoneInfo,
    ) -> Occurrence:
        end = start + duration
        return Occurrence(
            event_id=event.id,
            summary=event.summary,
            start=localize(start, event_tz).astimezone(display_tz),
            end=localize(end, event_tz).astimezone(display_tz),
        )

    def _single_occurrence(self, event: ImportedEvent, display_timezone: str) -> Occurrence:
        event_tz, _ = resolve_timezone(event.timezone)
        display_tz, _ = resolve_timezone(display_timezone)
        start = self._naive_local(event.dtstart, event)
        return self._to_occurrence(event, start, self._duration(event), event_tz, display_tz)
