"""
Catch-up redistribution planner.

Places skipped sessions into open slots over the next ``lookahead_days``:

1. Order the child's catch-up entries by policy (oldest skip first by default).
2. For each entry, scan days from the reference date (never on or before the
   skip date) for one with enough remaining capacity and fewer than the
   child's maximum sessions, and take the earliest gap in the learning window.
3. Plan the whole batch against one snapshot, then apply each placement
   through the session state machine, which re-validates it.
4. A placement only counts against ``max_sessions`` once applied. When an
   apply fails, entries held back by the batch limit are re-planned against
   a fresh snapshot. Each entry is tried at most once per run.

Partial success is normal. Entries that cannot be placed are reported with
a reason; an apply-time conflict only affects its own entry.

``suggest_slots`` is the read-only counterpart for one session: it lists the
free gaps over the next two weeks, ranked easiest first, without writing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Optional
from uuid import UUID

from homeschool_planner.core.config import get_settings
from homeschool_planner.core.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from homeschool_planner.core.logger import setup_logger
from homeschool_planner.interfaces.catch_up_repository import ICatchUpRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.enums import (
    CapacityStatus,
    CatchUpPolicy,
    CommitmentType,
    SessionStatus,
    UnplacedReason,
)
from homeschool_planner.models.schedule import (
    PlacedSession,
    PlacementReport,
    SlotSuggestion,
    UnplacedSession,
)
from homeschool_planner.models.session import Session, SlotInput
from homeschool_planner.services.capacity_calculator import (
    capacity_status,
    day_capacity,
    sessions_on,
    utilization_percent,
)
from homeschool_planner.services.child_snapshot import ChildSnapshot
from homeschool_planner.services.session_service import SessionService
from homeschool_planner.utils.datetime_utils import minutes_to_time, time_to_minutes
from homeschool_planner.utils.intervals import (
    TimeInterval,
    first_fit,
    parse_time_to_minutes,
    subtract_intervals,
)

logger = setup_logger(__name__)

# Extra difficulty for moving a session, by the commitment it holds.
MOVE_DIFFICULTY_BY_COMMITMENT: dict[CommitmentType, int] = {
    CommitmentType.FIXED: 10,
    CommitmentType.PREFERRED: 3,
    CommitmentType.FLEXIBLE: 1,
}


@dataclass
class PlannedPlacement:
    entry: CatchUpEntry
    day: date
    start_minutes: int
    end_minutes: int


def _oldest_key(entry: CatchUpEntry) -> tuple:
    return (
        entry.skip_date,
        entry.original_day_of_week or 8,
        entry.original_start_time or time.max,
        entry.created_at,
        str(entry.id),
    )


def order_entries(entries: list[CatchUpEntry], policy: CatchUpPolicy) -> list[CatchUpEntry]:
    """Deterministic processing order for a policy."""
    if policy == CatchUpPolicy.PRIORITY_FIRST:
        return sorted(entries, key=lambda e: (e.priority, *_oldest_key(e)))
    if policy == CatchUpPolicy.LONGEST_FIRST:
        return sorted(entries, key=lambda e: (-e.estimated_minutes, *_oldest_key(e)))
    return sorted(entries, key=_oldest_key)


def _busy_session_intervals(sessions: list[Session], day: date) -> list[TimeInterval]:
    intervals = []
    for session in sessions_on(sessions, day):
        if session.scheduled_start_time and session.scheduled_end_time:
            intervals.append(
                TimeInterval(
                    time_to_minutes(session.scheduled_start_time),
                    time_to_minutes(session.scheduled_end_time),
                )
            )
    for session in sessions:
        if (
            session.status == SessionStatus.SKIPPED
            and session.skip_date == day
            and session.scheduled_day_of_week == day.isoweekday()
            and session.scheduled_start_time
            and session.scheduled_end_time
        ):
            intervals.append(
                TimeInterval(
                    time_to_minutes(session.scheduled_start_time),
                    time_to_minutes(session.scheduled_end_time),
                )
            )
    return intervals


class RedistributionPlanner:
    """Plans and applies catch-up placements for one child at a time."""

    def __init__(
        self,
        session_service: SessionService,
        catch_up_repo: ICatchUpRepository,
        lookahead_days: Optional[int] = None,
        policy: Optional[CatchUpPolicy] = None,
        day_start: Optional[str] = None,
        day_end: Optional[str] = None,
    ):
        settings = get_settings()
        self.session_service = session_service
        self.catch_up_repo = catch_up_repo
        self.lookahead_days = lookahead_days or settings.CATCH_UP_LOOKAHEAD_DAYS
        self.policy = policy or CatchUpPolicy(settings.CATCH_UP_POLICY)
        self.max_batch = settings.CATCH_UP_MAX_BATCH
        self.default_max_sessions_per_day = settings.MAX_SESSIONS_PER_DAY
        self.suggestion_days = settings.SUGGESTION_DAYS
        self.suggestion_limit = settings.SUGGESTION_LIMIT
        self.recommended_below_percent = settings.SUGGESTION_RECOMMENDED_BELOW_PERCENT

        start = parse_time_to_minutes(day_start or settings.LEARNING_DAY_START)
        end = parse_time_to_minutes(day_end or settings.LEARNING_DAY_END)
        if start is None or end is None or end <= start:
            raise ValidationError(
                "Learning window must be HH:MM with end after start",
                details={"day_start": day_start, "day_end": day_end},
            )
        self.window = TimeInterval(start, end)

    async def redistribute(
        self,
        child_id: UUID,
        max_sessions: int,
        reference_date: date,
        policy: Optional[CatchUpPolicy] = None,
    ) -> PlacementReport:
        if max_sessions < 1 or max_sessions > self.max_batch:
            raise ValidationError(
                f"max_sessions must be between 1 and {self.max_batch}",
                details={"field": "max_sessions"},
            )

        policy = policy or self.policy
        async with self.session_service.locks.hold(child_id):
            snapshot = await self.session_service.snapshots.load(child_id)
            pending = await self.catch_up_repo.list(child_id)

        report = PlacementReport(child_id=child_id, reference_date=reference_date)
        while pending:
            planned, unplaced = self.plan(
                snapshot, pending, max_sessions - len(report.placed), reference_date, policy
            )
            held_back = [u for u in unplaced if u.reason == UnplacedReason.BATCH_LIMIT]
            report.unplaced.extend(u for u in unplaced if u.reason != UnplacedReason.BATCH_LIMIT)

            failed = 0
            for placement in planned:
                outcome = await self._apply(child_id, placement)
                if isinstance(outcome, PlacedSession):
                    report.placed.append(outcome)
                else:
                    report.unplaced.append(outcome)
                    failed += 1

            held_ids = {u.session_id for u in held_back}
            pending = [e for e in pending if e.session_id in held_ids]
            if not failed or not pending:
                report.unplaced.extend(held_back)
                break

            # Failed applies leave batch room; each held-back entry gets one try on fresh data.
            logger.info(
                f"Re-planning {len(pending)} held-back catch-up entries for child {child_id} "
                f"after {failed} failed placements"
            )
            async with self.session_service.locks.hold(child_id):
                snapshot = await self.session_service.snapshots.load(child_id)

        logger.info(
            f"Redistributed catch-up for child {child_id}: "
            f"{len(report.placed)} placed, {len(report.unplaced)} unplaced"
        )
        return report

    def plan(
        self,
        snapshot: ChildSnapshot,
        entries: list[CatchUpEntry],
        max_sessions: int,
        reference_date: date,
        policy: CatchUpPolicy,
    ) -> tuple[list[PlannedPlacement], list[UnplacedSession]]:
        """Plan placements against a working copy of the snapshot. No writes."""
        working = list(snapshot.sessions)
        max_per_day = snapshot.child.max_sessions_per_day or self.default_max_sessions_per_day
        planned: list[PlannedPlacement] = []
        unplaced: list[UnplacedSession] = []

        for entry in order_entries(entries, policy):
            if len(planned) >= max_sessions:
                unplaced.append(UnplacedSession(session_id=entry.session_id, reason=UnplacedReason.BATCH_LIMIT))
                continue

            session = next((s for s in working if s.id == entry.session_id), None)
            if session is None or session.status != SessionStatus.SKIPPED:
                unplaced.append(
                    UnplacedSession(
                        session_id=entry.session_id,
                        reason=UnplacedReason.STALE,
                        detail="Session is no longer skipped",
                    )
                )
                continue

            placement = self._find_slot(snapshot, working, entry, session, reference_date, max_per_day)
            if placement is None:
                unplaced.append(
                    UnplacedSession(
                        session_id=entry.session_id,
                        reason=UnplacedReason.NO_SLOT,
                        detail=f"No open slot within {self.lookahead_days} days",
                    )
                )
                continue

            planned.append(placement)
            working = [
                self._as_scheduled(s, placement) if s.id == session.id else s for s in working
            ]
        return planned, unplaced

    def _find_slot(
        self,
        snapshot: ChildSnapshot,
        working: list[Session],
        entry: CatchUpEntry,
        session: Session,
        reference_date: date,
        max_per_day: int,
    ) -> Optional[PlannedPlacement]:
        duration = session.estimated_minutes
        for offset in range(self.lookahead_days):
            day = reference_date + timedelta(days=offset)
            if day <= entry.skip_date:
                continue
            capacity = day_capacity(snapshot.child, day, snapshot.index, working)
            if capacity.remaining_minutes < duration:
                continue
            if capacity.session_count >= max_per_day:
                continue
            fit = first_fit(self._free_intervals(snapshot, working, day), duration)
            if fit is not None:
                return PlannedPlacement(
                    entry=entry, day=day, start_minutes=fit.start_minutes, end_minutes=fit.end_minutes
                )
        return None

    def _free_intervals(self, snapshot: ChildSnapshot, working: list[Session], day: date) -> list[TimeInterval]:
        busy = snapshot.index.merged_for(day.isoweekday(), on_date=day)
        busy.extend(_busy_session_intervals(working, day))
        return subtract_intervals([TimeInterval(self.window.start_minutes, self.window.end_minutes)], busy)

    async def suggest_slots(
        self,
        child_id: UUID,
        session_id: UUID,
        reference_date: date,
        limit: Optional[int] = None,
    ) -> list[SlotSuggestion]:
        """
        Rank candidate slots for moving one session. Read-only.

        Scans ``suggestion_days`` days from ``reference_date`` (starting after
        the skip date for a skipped session). Every free gap in the learning
        window that fits the session's estimate on a day with room becomes a
        candidate. Difficulty grows with distance from the reference date, the
        firmness of the session's commitment and how full the day would get.
        """
        limit = self.suggestion_limit if limit is None else limit
        if limit < 1:
            raise ValidationError("limit must be at least 1", details={"field": "limit"})

        snapshot = await self.session_service.snapshots.load(child_id)
        session = snapshot.session(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        if session.status == SessionStatus.DONE:
            raise ValidationError(
                "Completed sessions cannot be moved",
                details={"from": session.status.value},
            )
        return self.suggest(snapshot, session, reference_date, limit)

    def suggest(
        self,
        snapshot: ChildSnapshot,
        session: Session,
        reference_date: date,
        limit: int,
    ) -> list[SlotSuggestion]:
        working = [s for s in snapshot.sessions if s.id != session.id]
        max_per_day = snapshot.child.max_sessions_per_day or self.default_max_sessions_per_day
        duration = session.estimated_minutes
        first_day = reference_date
        if session.status == SessionStatus.SKIPPED and session.skip_date and session.skip_date >= first_day:
            first_day = session.skip_date + timedelta(days=1)
        move_cost = MOVE_DIFFICULTY_BY_COMMITMENT[session.commitment_type or CommitmentType.FLEXIBLE]

        suggestions: list[SlotSuggestion] = []
        for offset in range(self.suggestion_days):
            day = first_day + timedelta(days=offset)
            capacity = day_capacity(snapshot.child, day, snapshot.index, working)
            if capacity.remaining_minutes < duration or capacity.session_count >= max_per_day:
                continue
            used = utilization_percent(
                capacity.fixed_minutes + capacity.scheduled_minutes + duration, capacity.budget_minutes
            )
            difficulty = (day - reference_date).days + move_cost
            status = capacity_status(used)
            if status == CapacityStatus.OVERLOADED:
                difficulty += 5
            elif status == CapacityStatus.BUSY:
                difficulty += 2
            for gap in self._free_intervals(snapshot, working, day):
                if gap.minutes < duration:
                    continue
                suggestions.append(
                    SlotSuggestion(
                        scheduled_date=day,
                        day_of_week=day.isoweekday(),
                        start_time=minutes_to_time(gap.start_minutes),
                        end_time=minutes_to_time(gap.start_minutes + duration),
                        capacity_used_percent=used,
                        difficulty=difficulty,
                        recommended=used < self.recommended_below_percent,
                    )
                )

        suggestions.sort(key=lambda s: (s.difficulty, s.scheduled_date, s.start_time))
        return suggestions[:limit]

    def _as_scheduled(self, session: Session, placement: PlannedPlacement) -> Session:
        return session.model_copy(
            update={
                "status": SessionStatus.SCHEDULED,
                "scheduled_day_of_week": placement.day.isoweekday(),
                "scheduled_date": placement.day,
                "scheduled_start_time": minutes_to_time(placement.start_minutes),
                "scheduled_end_time": minutes_to_time(placement.end_minutes),
                "commitment_type": CommitmentType.FLEXIBLE,
            }
        )

    async def _apply(self, child_id: UUID, placement: PlannedPlacement) -> PlacedSession | UnplacedSession:
        session_id = placement.entry.session_id
        slot = SlotInput(
            day_of_week=placement.day.isoweekday(),
            start_time=minutes_to_time(placement.start_minutes),
            end_time=minutes_to_time(placement.end_minutes),
            scheduled_date=placement.day,
            commitment_type=CommitmentType.FLEXIBLE,
        )
        try:
            await self.session_service.schedule(child_id, session_id, slot, strict_capacity=False)
        except ConflictError as exc:
            conflict = ConcurrencyConflictError(
                f"Placement for session {session_id} on {placement.day} no longer fits",
                details=exc.details,
            )
            logger.warning(conflict.message)
            return UnplacedSession(session_id=session_id, reason=UnplacedReason.CONFLICT, detail=exc.message)
        except (NotFoundError, ValidationError) as exc:
            logger.warning(f"Catch-up entry for session {session_id} is stale: {exc.message}")
            return UnplacedSession(session_id=session_id, reason=UnplacedReason.STALE, detail=exc.message)

        return PlacedSession(
            session_id=session_id,
            scheduled_date=placement.day,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
