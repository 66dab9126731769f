"""
Session state machine.

Owns the learning session lifecycle:

    BACKLOG -> PLANNED -> SCHEDULED -> DONE
                  ^          |  ^
                  +----------+  +-- SKIPPED

Every transition touching time runs the conflict check while holding the
child's lock. Input validation happens before any conflict check, and a
failed check leaves the session untouched.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from homeschool_planner.core.config import get_settings
from homeschool_planner.core.exceptions import (
    CapacityExceededError,
    NotFoundError,
    ValidationError,
)
from homeschool_planner.core.logger import setup_logger
from homeschool_planner.interfaces.child_repository import IChildRepository
from homeschool_planner.interfaces.event_publisher import ISessionEventPublisher
from homeschool_planner.interfaces.imported_event_repository import IImportedEventRepository
from homeschool_planner.interfaces.session_repository import ISessionRepository
from homeschool_planner.interfaces.time_block_repository import ITimeBlockRepository
from homeschool_planner.interfaces.topic_repository import ITopicRepository
from homeschool_planner.models.catch_up import CatchUpEntry
from homeschool_planner.models.enums import (
    CATCH_UP_PRIORITY_BY_COMMITMENT,
    CommitmentType,
    SessionStatus,
)
from homeschool_planner.models.schedule import SessionCompletedEvent
from homeschool_planner.models.session import (
    CompleteInput,
    Session,
    SessionCreate,
    SkipInput,
    SlotInput,
    TransitionRequest,
)
from homeschool_planner.services.capacity_calculator import slot_remaining_minutes
from homeschool_planner.services.child_locks import ChildLockRegistry, child_locks
from homeschool_planner.services.child_snapshot import ChildSnapshot, ChildSnapshotLoader
from homeschool_planner.services.conflict_detector import SlotCandidate, check_conflict
from homeschool_planner.utils.datetime_utils import now_utc, resolve_timezone, time_to_minutes

logger = setup_logger(__name__)


ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.BACKLOG: frozenset({SessionStatus.PLANNED}),
    SessionStatus.PLANNED: frozenset({SessionStatus.SCHEDULED}),
    SessionStatus.SCHEDULED: frozenset(
        {SessionStatus.PLANNED, SessionStatus.SCHEDULED, SessionStatus.DONE, SessionStatus.SKIPPED}
    ),
    SessionStatus.SKIPPED: frozenset({SessionStatus.SCHEDULED}),
    SessionStatus.DONE: frozenset(),
}


def require_transition(session: Session, target: SessionStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[session.status]:
        raise ValidationError(
            f"Cannot move session from {session.status.value} to {target.value}",
            details={"from": session.status.value, "to": target.value},
        )


def validate_slot(slot: SlotInput) -> SlotCandidate:
    """Check slot shape and return it as minutes. Raises ValidationError."""
    day_of_week = slot.day_of_week
    if day_of_week is None and slot.scheduled_date is not None:
        day_of_week = slot.scheduled_date.isoweekday()
    if day_of_week is None:
        raise ValidationError("day_of_week is required", details={"field": "day_of_week"})
    if day_of_week < 1 or day_of_week > 7:
        raise ValidationError("day_of_week must be between 1 and 7", details={"field": "day_of_week"})
    if slot.start_time is None:
        raise ValidationError("start_time is required", details={"field": "start_time"})
    if slot.end_time is None:
        raise ValidationError("end_time is required", details={"field": "end_time"})
    if slot.end_time <= slot.start_time:
        raise ValidationError("end_time must be after start_time", details={"field": "end_time"})
    if slot.scheduled_date is not None and slot.scheduled_date.isoweekday() != day_of_week:
        raise ValidationError(
            "scheduled_date does not fall on day_of_week",
            details={"field": "scheduled_date"},
        )
    return SlotCandidate(
        day_of_week=day_of_week,
        start_minutes=time_to_minutes(slot.start_time),
        end_minutes=time_to_minutes(slot.end_time),
        on_date=slot.scheduled_date,
        from_date=slot.effective_from if slot.scheduled_date is None else None,
    )


def _parse_params(model, params: dict[str, Any]):
    try:
        return model.model_validate(params)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid transition parameters", details=exc.errors()) from exc


class SessionService:
    """Service for session lifecycle transitions."""

    def __init__(
        self,
        session_repo: ISessionRepository,
        topic_repo: ITopicRepository,
        child_repo: IChildRepository,
        time_block_repo: ITimeBlockRepository,
        event_repo: IImportedEventRepository,
        publisher: Optional[ISessionEventPublisher] = None,
        locks: Optional[ChildLockRegistry] = None,
        strict_capacity: Optional[bool] = None,
    ):
        self.session_repo = session_repo
        self.topic_repo = topic_repo
        self.child_repo = child_repo
        self.publisher = publisher
        self.locks = locks or child_locks
        self.strict_capacity = (
            get_settings().STRICT_CAPACITY if strict_capacity is None else strict_capacity
        )
        self.snapshots = ChildSnapshotLoader(child_repo, session_repo, time_block_repo, event_repo)

    # ===========================================
    # Queries
    # ===========================================

    async def get(self, child_id: UUID, session_id: UUID) -> Session:
        session = await self.session_repo.get(child_id, session_id)
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    async def list(self, child_id: UUID, status: Optional[SessionStatus] = None) -> list[Session]:
        await self.snapshots.load_child(child_id)
        return await self.session_repo.list(child_id, status=status)

    # ===========================================
    # Transitions
    # ===========================================

    async def create_from_topic(self, child_id: UUID, data: SessionCreate) -> Session:
        """(new) -> BACKLOG."""
        await self.snapshots.load_child(child_id)
        topic = await self.topic_repo.get(data.topic_id)
        if not topic:
            raise NotFoundError(f"Topic {data.topic_id} not found")
        now = now_utc()
        session = Session(
            id=uuid4(),
            child_id=child_id,
            topic_id=topic.id,
            status=SessionStatus.BACKLOG,
            estimated_minutes=data.estimated_minutes or topic.estimated_minutes,
            notes=data.notes,
            created_at=now,
            updated_at=now,
        )
        created = await self.session_repo.create(session)
        logger.info(f"Created session {created.id} for child {child_id} from topic {topic.id}")
        return created

    async def plan(self, child_id: UUID, session_id: UUID) -> Session:
        """BACKLOG -> PLANNED."""
        async with self.locks.hold(child_id):
            session = await self.get(child_id, session_id)
            require_transition(session, SessionStatus.PLANNED)
            if session.status != SessionStatus.BACKLOG:
                raise ValidationError("Only BACKLOG sessions can be planned; use unschedule instead")
            session = session.model_copy(update={"status": SessionStatus.PLANNED})
            return await self._save(session, "planned")

    async def unschedule(self, child_id: UUID, session_id: UUID) -> Session:
        """SCHEDULED -> PLANNED, dropping the slot."""
        async with self.locks.hold(child_id):
            session = await self.get(child_id, session_id)
            if session.status != SessionStatus.SCHEDULED:
                raise ValidationError(
                    f"Cannot unschedule a {session.status.value} session",
                    details={"from": session.status.value, "to": SessionStatus.PLANNED.value},
                )
            session = session.model_copy(
                update={
                    "status": SessionStatus.PLANNED,
                    "scheduled_day_of_week": None,
                    "scheduled_date": None,
                    "scheduled_start_time": None,
                    "scheduled_end_time": None,
                    "commitment_type": None,
                }
            )
            return await self._save(session, "unscheduled")

    async def schedule(
        self,
        child_id: UUID,
        session_id: UUID,
        slot: SlotInput,
        strict_capacity: Optional[bool] = None,
    ) -> Session:
        """PLANNED or SKIPPED -> SCHEDULED."""
        candidate = validate_slot(slot)
        async with self.locks.hold(child_id):
            snapshot = await self.snapshots.load(child_id)
            session = self._from_snapshot(snapshot, session_id)
            if session.status == SessionStatus.SCHEDULED:
                raise ValidationError("Session is already scheduled; use reschedule instead")
            require_transition(session, SessionStatus.SCHEDULED)
            self._check_slot(snapshot, session, candidate, strict_capacity)
            updated = self._with_slot(
                session, candidate, slot, slot.commitment_type or CommitmentType.PREFERRED
            )
            return await self._save(updated, "scheduled")

    async def reschedule(
        self,
        child_id: UUID,
        session_id: UUID,
        slot: SlotInput,
        strict_capacity: Optional[bool] = None,
    ) -> Session:
        """SCHEDULED -> SCHEDULED at a new slot. Only the new slot is checked."""
        candidate = validate_slot(slot)
        async with self.locks.hold(child_id):
            snapshot = await self.snapshots.load(child_id)
            session = self._from_snapshot(snapshot, session_id)
            if session.status != SessionStatus.SCHEDULED:
                raise ValidationError(
                    f"Cannot reschedule a {session.status.value} session",
                    details={"from": session.status.value, "to": SessionStatus.SCHEDULED.value},
                )
            self._check_slot(snapshot, session, candidate, strict_capacity)
            updated = self._with_slot(
                session,
                candidate,
                slot,
                slot.commitment_type or session.commitment_type or CommitmentType.PREFERRED,
            )
            return await self._save(updated, "rescheduled")

    async def complete(
        self,
        child_id: UUID,
        session_id: UUID,
        data: Optional[CompleteInput] = None,
        completed_at: Optional[datetime] = None,
    ) -> Session:
        """SCHEDULED -> DONE, then publish the session-completed event."""
        data = data or CompleteInput()
        async with self.locks.hold(child_id):
            session = await self.get(child_id, session_id)
            require_transition(session, SessionStatus.DONE)
            session = session.model_copy(
                update={
                    "status": SessionStatus.DONE,
                    "evidence_notes": data.evidence_notes,
                    "completed_at": completed_at or now_utc(),
                }
            )
            saved = await self._save(session, "completed")

        await self._publish_completed(saved, completed_at=session.completed_at)
        return saved

    async def skip(self, child_id: UUID, session_id: UUID, data: SkipInput) -> Session:
        """SCHEDULED -> SKIPPED, creating exactly one catch-up entry."""
        if data.skip_date is None:
            raise ValidationError("skip_date is required", details={"field": "skip_date"})
        reason = (data.skip_reason or "").strip()
        if not reason:
            raise ValidationError("skip_reason is required", details={"field": "skip_reason"})

        async with self.locks.hold(child_id):
            session = await self.get(child_id, session_id)
            require_transition(session, SessionStatus.SKIPPED)
            skipped = session.model_copy(
                update={
                    "status": SessionStatus.SKIPPED,
                    "skip_date": data.skip_date,
                    "skip_reason": reason,
                }
            )
            entry = CatchUpEntry(
                id=uuid4(),
                session_id=session.id,
                child_id=child_id,
                topic_id=session.topic_id,
                estimated_minutes=session.estimated_minutes,
                skip_date=data.skip_date,
                skip_reason=reason,
                priority=CATCH_UP_PRIORITY_BY_COMMITMENT[
                    session.commitment_type or CommitmentType.PREFERRED
                ],
                original_day_of_week=session.scheduled_day_of_week,
                original_start_time=session.scheduled_start_time,
                original_end_time=session.scheduled_end_time,
                created_at=now_utc(),
            )
            saved = await self.session_repo.skip(skipped, entry)
            logger.info(f"Session {session_id} skipped on {data.skip_date}: {reason}")
            return saved

    async def delete(self, child_id: UUID, session_id: UUID, confirm: bool = False) -> None:
        """Delete from any non-DONE state. Requires explicit confirmation."""
        if not confirm:
            raise ValidationError("Deleting a session requires confirm=true", details={"field": "confirm"})
        async with self.locks.hold(child_id):
            session = await self.get(child_id, session_id)
            if session.status == SessionStatus.DONE:
                raise ValidationError(
                    "Completed sessions cannot be deleted",
                    details={"from": session.status.value},
                )
            await self.session_repo.delete(child_id, session_id)
            logger.info(f"Deleted session {session_id} ({session.status.value})")

    async def transition(self, child_id: UUID, session_id: UUID, request: TransitionRequest) -> Session:
        """Dispatch a generic transition command to the matching operation."""
        current = await self.get(child_id, session_id)
        require_transition(current, request.target_status)
        target = request.target_status

        if target == SessionStatus.PLANNED:
            if current.status == SessionStatus.BACKLOG:
                return await self.plan(child_id, session_id)
            return await self.unschedule(child_id, session_id)
        if target == SessionStatus.SCHEDULED:
            slot = _parse_params(SlotInput, request.params)
            if current.status == SessionStatus.SCHEDULED:
                return await self.reschedule(child_id, session_id, slot)
            return await self.schedule(child_id, session_id, slot)
        if target == SessionStatus.DONE:
            return await self.complete(child_id, session_id, _parse_params(CompleteInput, request.params))
        if target == SessionStatus.SKIPPED:
            return await self.skip(child_id, session_id, _parse_params(SkipInput, request.params))
        raise ValidationError(f"Unsupported target status {target.value}")

    # ===========================================
    # Helpers
    # ===========================================

    def _from_snapshot(self, snapshot: ChildSnapshot, session_id: UUID) -> Session:
        session = snapshot.session(session_id)
        if not session:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def _check_slot(
        self,
        snapshot: ChildSnapshot,
        session: Session,
        candidate: SlotCandidate,
        strict_capacity: Optional[bool],
    ) -> None:
        if candidate.on_date is None and candidate.from_date is None:
            tz, _ = resolve_timezone(snapshot.child.timezone)
            candidate.from_date = now_utc().astimezone(tz).date()
        check_conflict(candidate, snapshot.index, snapshot.sessions, exclude_session_id=session.id)

        others = [s for s in snapshot.sessions if s.id != session.id]
        remaining = slot_remaining_minutes(
            snapshot.child,
            candidate.day_of_week,
            candidate.on_date,
            snapshot.index,
            others,
            from_date=candidate.from_date,
        )
        needed = candidate.end_minutes - candidate.start_minutes
        if needed <= remaining:
            return
        strict = self.strict_capacity if strict_capacity is None else strict_capacity
        message = (
            f"Slot needs {needed} minutes but only {remaining} remain on day {candidate.day_of_week}"
        )
        if strict:
            raise CapacityExceededError(
                message,
                details={"needed_minutes": needed, "remaining_minutes": remaining},
            )
        logger.warning(f"Over-committing child {snapshot.child.id}: {message}")

    def _with_slot(
        self,
        session: Session,
        candidate: SlotCandidate,
        slot: SlotInput,
        commitment_type: CommitmentType,
    ) -> Session:
        return session.model_copy(
            update={
                "status": SessionStatus.SCHEDULED,
                "scheduled_day_of_week": candidate.day_of_week,
                "scheduled_date": candidate.on_date,
                "scheduled_start_time": slot.start_time,
                "scheduled_end_time": slot.end_time,
                "commitment_type": commitment_type,
                "skip_date": None,
                "skip_reason": None,
            }
        )

    async def _save(self, session: Session, action: str) -> Session:
        saved = await self.session_repo.save(session)
        logger.info(f"Session {session.id} {action} (status={saved.status.value})")
        return saved

    async def _publish_completed(self, session: Session, completed_at: Optional[datetime]) -> None:
        if self.publisher is None:
            return
        event = SessionCompletedEvent(
            session_id=session.id,
            topic_id=session.topic_id,
            child_id=session.child_id,
            completed_at=completed_at or session.completed_at or now_utc(),
        )
        try:
            await self.publisher.publish_completed(event)
        except Exception:
            # The transition is already committed; delivery is best effort.
            logger.exception(f"Failed to publish completion of session {session.id}")
