"""
Conflict detection for candidate session slots.

Pure functions: given a candidate slot, the child's fixed-commitment index
and the child's other sessions, report the first collision. Intervals are
half-open, so a session may start exactly when a commitment ends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional
from uuid import UUID

from homeschool_planner.core.exceptions import ConflictError
from homeschool_planner.models.enums import SessionStatus
from homeschool_planner.models.session import Session
from homeschool_planner.services.commitment_index import FixedCommitmentIndex
from homeschool_planner.utils.datetime_utils import time_to_minutes
from homeschool_planner.utils.intervals import overlaps


@dataclass
class SlotCandidate:
    day_of_week: int
    start_minutes: int
    end_minutes: int
    on_date: Optional[date] = None
    # Weekly slots: ignore imported occurrences before this date.
    from_date: Optional[date] = None


def same_effective_day(
    day_a: int, date_a: Optional[date], day_b: int, date_b: Optional[date]
) -> bool:
    """Weekly slots recur, so they meet any slot on the same weekday; two dated slots must share the date."""
    if day_a != day_b:
        return False
    if date_a is None or date_b is None:
        return True
    return date_a == date_b


def _session_range(session: Session) -> Optional[tuple[int, int]]:
    if session.scheduled_start_time is None or session.scheduled_end_time is None:
        return None
    return time_to_minutes(session.scheduled_start_time), time_to_minutes(session.scheduled_end_time)


def _session_blocks(candidate: SlotCandidate, session: Session) -> bool:
    slot = _session_range(session)
    if slot is None or session.scheduled_day_of_week is None:
        return False
    if session.status == SessionStatus.SCHEDULED:
        if not same_effective_day(
            candidate.day_of_week, candidate.on_date, session.scheduled_day_of_week, session.scheduled_date
        ):
            return False
    elif session.status == SessionStatus.SKIPPED:
        # A skipped slot only holds its original date.
        if candidate.on_date is None or session.skip_date != candidate.on_date:
            return False
        if session.scheduled_day_of_week != candidate.day_of_week:
            return False
    else:
        return False
    return overlaps(candidate.start_minutes, candidate.end_minutes, slot[0], slot[1])


def find_conflict(
    candidate: SlotCandidate,
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
    exclude_session_id: Optional[UUID] = None,
) -> Optional[ConflictError]:
    """First collision for ``candidate``, fixed commitments before sessions."""
    commitment = index.find_overlap(
        candidate.day_of_week,
        candidate.start_minutes,
        candidate.end_minutes,
        candidate.on_date,
        candidate.from_date,
    )
    if commitment is not None:
        return ConflictError(
            f"Slot overlaps fixed commitment '{commitment.label}'",
            entity_type=commitment.source,
            entity_id=str(commitment.source_id) if commitment.source_id else None,
            label=commitment.label,
        )

    ordered = sorted(
        (s for s in sessions if s.id != exclude_session_id),
        key=lambda s: (s.scheduled_start_time or time.min, str(s.id)),
    )
    for session in ordered:
        if _session_blocks(candidate, session):
            label = f"{session.status.value.lower()} session"
            return ConflictError(
                f"Slot overlaps {label} {session.id}",
                entity_type="session",
                entity_id=str(session.id),
                label=label,
            )
    return None


def check_conflict(
    candidate: SlotCandidate,
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
    exclude_session_id: Optional[UUID] = None,
) -> None:
    """Raise ConflictError for the first collision, if any."""
    conflict = find_conflict(candidate, index, sessions, exclude_session_id)
    if conflict is not None:
        raise conflict
