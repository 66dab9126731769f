"""
Fixed-commitment index.

Per child, per day view of everything that blocks learning time: weekly
TimeBlocks plus expanded ImportedEvent occurrences. Queries take an ISO
weekday and, for one-off placements, an absolute date.

- Date queries see the weekday's TimeBlocks and the occurrences on that date.
- Weekly (pattern) queries see the weekday's TimeBlocks and the occurrences
  falling on that weekday from a start date onward (all of them when no
  start date is given).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
from uuid import UUID

from homeschool_planner.core.logger import setup_logger
from homeschool_planner.models.imported_event import ImportedEvent, Occurrence
from homeschool_planner.models.time_block import TimeBlock
from homeschool_planner.services.recurrence_expander import RecurrenceExpander
from homeschool_planner.utils.datetime_utils import time_to_minutes
from homeschool_planner.utils.intervals import TimeInterval, merge_intervals, overlaps

logger = setup_logger(__name__)

SOURCE_TIME_BLOCK = "time_block"
SOURCE_IMPORTED_EVENT = "imported_event"

DAY_MINUTES = 24 * 60


@dataclass
class CommitmentEntry:
    source: str
    source_id: Optional[UUID]
    label: str
    day_of_week: int
    start_minutes: int
    end_minutes: int
    on_date: Optional[date] = None


@dataclass
class FixedCommitmentIndex:
    """Busy intervals for one child, keyed by weekday and by date."""

    child_id: Optional[UUID] = None
    display_timezone: str = "UTC"
    weekly: dict[int, list[CommitmentEntry]] = field(default_factory=dict)
    dated: dict[date, list[CommitmentEntry]] = field(default_factory=dict)
    dated_by_weekday: dict[int, list[CommitmentEntry]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    recurrence_errors: dict[UUID, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        time_blocks: Iterable[TimeBlock],
        events: Iterable[ImportedEvent],
        display_timezone: str,
        expander: Optional[RecurrenceExpander] = None,
        child_id: Optional[UUID] = None,
    ) -> "FixedCommitmentIndex":
        expander = expander or RecurrenceExpander()
        index = cls(child_id=child_id, display_timezone=display_timezone)
        for block in time_blocks:
            index._add(
                CommitmentEntry(
                    source=SOURCE_TIME_BLOCK,
                    source_id=block.id,
                    label=block.label,
                    day_of_week=block.day_of_week,
                    start_minutes=time_to_minutes(block.start_time),
                    end_minutes=time_to_minutes(block.end_time),
                )
            )
        for event in events:
            result = expander.expand(event, display_timezone)
            if result.error:
                index.recurrence_errors[event.id] = result.error
                index.warnings.append(f"{event.summary or event.id}: {result.error}")
            for warning in result.warnings:
                index.warnings.append(f"{event.summary or event.id}: {warning}")
            for occurrence in result.occurrences:
                for entry in _split_occurrence(occurrence):
                    index._add(entry)
        return index

    def _add(self, entry: CommitmentEntry) -> None:
        if entry.on_date is None:
            self.weekly.setdefault(entry.day_of_week, []).append(entry)
            return
        self.dated.setdefault(entry.on_date, []).append(entry)
        self.dated_by_weekday.setdefault(entry.day_of_week, []).append(entry)

    def entries_for(
        self,
        day_of_week: int,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> list[CommitmentEntry]:
        """
        Commitments for a weekday pattern or one absolute date.

        Pattern queries (no ``on_date``) see TimeBlocks plus every imported
        occurrence on that weekday, limited to those on or after ``from_date``
        when given so finished series stop blocking the weekday.
        """
        entries = list(self.weekly.get(day_of_week, []))
        if on_date is not None:
            entries.extend(self.dated.get(on_date, []))
        else:
            entries.extend(
                e
                for e in self.dated_by_weekday.get(day_of_week, [])
                if from_date is None or e.on_date >= from_date
            )
        return sorted(entries, key=lambda e: (e.start_minutes, e.end_minutes))

    def merged_for(
        self,
        day_of_week: int,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> list[TimeInterval]:
        """Union of busy intervals; double-booked commitments count once."""
        return merge_intervals(
            TimeInterval(e.start_minutes, e.end_minutes)
            for e in self.entries_for(day_of_week, on_date, from_date)
        )

    def busy_minutes(
        self,
        day_of_week: int,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> int:
        return sum(interval.minutes for interval in self.merged_for(day_of_week, on_date, from_date))

    def find_overlap(
        self,
        day_of_week: int,
        start_minutes: int,
        end_minutes: int,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> Optional[CommitmentEntry]:
        """First commitment (by start) overlapping ``[start, end)``."""
        for entry in self.entries_for(day_of_week, on_date, from_date):
            if overlaps(start_minutes, end_minutes, entry.start_minutes, entry.end_minutes):
                return entry
        return None

    def is_busy(
        self,
        day_of_week: int,
        start_minutes: int,
        end_minutes: int,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> bool:
        return self.find_overlap(day_of_week, start_minutes, end_minutes, on_date, from_date) is not None


def _split_occurrence(occurrence: Occurrence) -> list[CommitmentEntry]:
    """Cut an occurrence at local midnights so each entry stays within one date."""
    entries: list[CommitmentEntry] = []
    current: datetime = occurrence.start
    while current < occurrence.end:
        day_end = datetime.combine(current.date() + timedelta(days=1), datetime.min.time(), current.tzinfo)
        segment_end = min(occurrence.end, day_end)
        start_minutes = current.hour * 60 + current.minute
        end_minutes = DAY_MINUTES if segment_end == day_end else segment_end.hour * 60 + segment_end.minute
        if end_minutes > start_minutes:
            entries.append(
                CommitmentEntry(
                    source=SOURCE_IMPORTED_EVENT,
                    source_id=occurrence.event_id,
                    label=occurrence.summary,
                    day_of_week=current.isoweekday(),
                    start_minutes=start_minutes,
                    end_minutes=end_minutes,
                    on_date=current.date(),
                )
            )
        current = segment_end
    return entries


class CommitmentIndexCache:
    """
    Process-wide cache of built indexes, invalidated on calendar writes.

    Every invalidation bumps a per-child generation. A reader records the
    generation before it lists the calendar and passes it to ``put``; an
    index built while a write landed is then discarded instead of cached.
    """

    def __init__(self) -> None:
        self._indexes: dict[UUID, FixedCommitmentIndex] = {}
        self._generations: dict[UUID, int] = {}

    def get(self, child_id: UUID) -> Optional[FixedCommitmentIndex]:
        return self._indexes.get(child_id)

    def generation(self, child_id: UUID) -> int:
        return self._generations.get(child_id, 0)

    def put(
        self,
        child_id: UUID,
        index: FixedCommitmentIndex,
        generation: Optional[int] = None,
    ) -> bool:
        """Cache ``index`` unless the calendar changed since ``generation``."""
        if generation is not None and generation != self.generation(child_id):
            logger.info(f"Discarding stale commitment index for child {child_id}")
            return False
        self._indexes[child_id] = index
        return True

    def invalidate(self, child_id: UUID) -> None:
        self._generations[child_id] = self.generation(child_id) + 1
        if self._indexes.pop(child_id, None) is not None:
            logger.info(f"Invalidated commitment index for child {child_id}")

    def clear(self) -> None:
        self._indexes.clear()
        self._generations.clear()


commitment_index_cache = CommitmentIndexCache()
