"""
Quality heuristics advisor.

Read-only review of a child's week. Warnings are advisory and never block
a transition. The score starts at 100 and loses points per warning
(high -15, medium -8, low -3), clamped to 0..100.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional
from uuid import UUID

from homeschool_planner.core.config import get_settings
from homeschool_planner.models.child import Child
from homeschool_planner.models.enums import WarningSeverity
from homeschool_planner.models.schedule import QualityReport, QualityWarning
from homeschool_planner.models.session import Session
from homeschool_planner.models.topic import Topic
from homeschool_planner.services.capacity_calculator import day_capacity, sessions_on
from homeschool_planner.services.commitment_index import FixedCommitmentIndex
from homeschool_planner.utils.datetime_utils import time_to_minutes, week_start

SEVERITY_DEDUCTIONS = {
    WarningSeverity.HIGH: 15,
    WarningSeverity.MEDIUM: 8,
    WarningSeverity.LOW: 3,
}


class QualityAdvisor:
    def __init__(
        self,
        subject_limit: Optional[int] = None,
        back_to_back_gap_minutes: Optional[int] = None,
        long_session_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.subject_limit = subject_limit or settings.SUBJECT_CONCENTRATION_LIMIT
        self.back_to_back_gap_minutes = back_to_back_gap_minutes or settings.BACK_TO_BACK_GAP_MINUTES
        self.long_session_minutes = long_session_minutes or settings.LONG_SESSION_MINUTES

    def assess_week(
        self,
        child: Child,
        reference_date: date,
        index: FixedCommitmentIndex,
        sessions: Iterable[Session],
        topics: dict[UUID, Topic],
    ) -> QualityReport:
        sessions = list(sessions)
        monday = week_start(reference_date)
        warnings: list[QualityWarning] = []
        for offset in range(7):
            day = monday + timedelta(days=offset)
            warnings.extend(self._assess_day(child, day, index, sessions, topics))

        score = 100 - sum(SEVERITY_DEDUCTIONS[w.severity] for w in warnings)
        return QualityReport(
            child_id=child.id,
            week_start=monday,
            score=max(0, min(100, score)),
            warnings=warnings,
        )

    def _assess_day(
        self,
        child: Child,
        day: date,
        index: FixedCommitmentIndex,
        sessions: list[Session],
        topics: dict[UUID, Topic],
    ) -> list[QualityWarning]:
        warnings: list[QualityWarning] = []
        occupying = sorted(
            (s for s in sessions_on(sessions, day) if s.scheduled_start_time and s.scheduled_end_time),
            key=lambda s: (s.scheduled_start_time, str(s.id)),
        )
        # Fixed commitments alone can exceed the budget.
        capacity = day_capacity(child, day, index, sessions)
        if capacity.over_committed:
            used = capacity.fixed_minutes + capacity.scheduled_minutes
            warnings.append(
                QualityWarning(
                    code="day_over_capacity",
                    severity=WarningSeverity.HIGH,
                    message=f"{used} minutes planned against a {capacity.budget_minutes} minute budget",
                    day=day,
                    session_ids=[s.id for s in occupying],
                )
            )

        by_subject: dict[str, list[Session]] = defaultdict(list)
        for session in occupying:
            topic = topics.get(session.topic_id)
            key = (topic.subject or topic.name) if topic else str(session.topic_id)
            by_subject[key].append(session)
        for subject, grouped in sorted(by_subject.items()):
            if len(grouped) > self.subject_limit:
                warnings.append(
                    QualityWarning(
                        code="subject_concentration",
                        severity=WarningSeverity.MEDIUM,
                        message=f"{len(grouped)} sessions of {subject} on one day",
                        day=day,
                        session_ids=[s.id for s in grouped],
                    )
                )

        for session in occupying:
            start = time_to_minutes(session.scheduled_start_time)
            end = time_to_minutes(session.scheduled_end_time)
            commitment = index.find_overlap(day.isoweekday(), start, end, on_date=day)
            if commitment is not None:
                warnings.append(
                    QualityWarning(
                        code="fixed_commitment_overlap",
                        severity=WarningSeverity.HIGH,
                        message=f"Session overlaps '{commitment.label}'",
                        day=day,
                        session_ids=[session.id],
                    )
                )
            if end - start > self.long_session_minutes:
                warnings.append(
                    QualityWarning(
                        code="long_session",
                        severity=WarningSeverity.MEDIUM,
                        message=f"{end - start} minute session exceeds {self.long_session_minutes} minutes",
                        day=day,
                        session_ids=[session.id],
                    )
                )

        for previous, current in zip(occupying, occupying[1:]):
            gap = time_to_minutes(current.scheduled_start_time) - time_to_minutes(previous.scheduled_end_time)
            if gap < self.back_to_back_gap_minutes:
                warnings.append(
                    QualityWarning(
                        code="back_to_back_sessions",
                        severity=WarningSeverity.LOW,
                        message=f"Only {max(gap, 0)} minutes between sessions",
                        day=day,
                        session_ids=[previous.id, current.id],
                    )
                )
        return warnings
