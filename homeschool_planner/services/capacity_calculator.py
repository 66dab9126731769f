"""
Capacity calculation.

remaining = day budget - merged fixed-commitment minutes - scheduled session
minutes, floored at zero. Every query takes an explicit date.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from homeschool_planner.core.config import get_settings
from homeschool_planner.models.child import Child
from homeschool_planner.models.enums import CapacityStatus, SessionStatus
from homeschool_planner.models.schedule import DayCapacity, WeekCapacity
from homeschool_planner.models.session import Session
from homeschool_planner.services.commitment_index import FixedCommitmentIndex
from homeschool_planner.utils.datetime_utils import week_start


def sessions_on(sessions: Iterable[Session], day: date) -> list[Session]:
    """Scheduled sessions that occupy ``day``: weekly slots on its weekday or dated slots on it."""
    result = []
    for session in sessions:
        if session.status != SessionStatus.SCHEDULED:
            continue
        if session.scheduled_day_of_week != day.isoweekday():
            continue
        if session.scheduled_date is not None and session.scheduled_date != day:
            continue
        result.append(session)
    return result


def utilization_percent(used_minutes: int, budget_minutes: int) -> float:
    """Share of the budget in use, one decimal. A zero budget with anything in it counts as full."""
    if budget_minutes <= 0:
        return 100.0 if used_minutes > 0 else 0.0
    return round(used_minutes * 100 / budget_minutes, 1)


def capacity_status(percent: float) -> CapacityStatus:
    settings = get_settings()
    if percent >= settings.CAPACITY_OVERLOADED_PERCENT:
        return CapacityStatus.OVERLOADED
    if percent >= settings.CAPACITY_BUSY_PERCENT:
        return CapacityStatus.BUSY
    if percent >= settings.CAPACITY_MODERATE_PERCENT:
        return CapacityStatus.MODERATE
    return CapacityStatus.LIGHT


def day_capacity(
    child: Child,
    day: date,
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
) -> DayCapacity:
    day_of_week = day.isoweekday()
    budget = child.day_budget(day_of_week)
    fixed = index.busy_minutes(day_of_week, on_date=day)
    occupying = sessions_on(sessions, day)
    scheduled = sum(session.slot_minutes for session in occupying)
    raw_remaining = budget - fixed - scheduled
    percent = utilization_percent(fixed + scheduled, budget)
    status = capacity_status(percent)
    return DayCapacity(
        day=day,
        day_of_week=day_of_week,
        budget_minutes=budget,
        fixed_minutes=fixed,
        scheduled_minutes=scheduled,
        remaining_minutes=max(raw_remaining, 0),
        session_count=len(occupying),
        over_committed=raw_remaining < 0,
        utilization_percent=percent,
        status=status,
        can_add_session=raw_remaining > 0 and status != CapacityStatus.OVERLOADED,
    )


def remaining_minutes(
    child: Child,
    day: date,
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
) -> int:
    return day_capacity(child, day, index, sessions).remaining_minutes


def week_capacity(
    child: Child,
    reference_date: date,
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
) -> WeekCapacity:
    """Capacity for the ISO week containing ``reference_date``."""
    sessions = list(sessions)
    monday = week_start(reference_date)
    days = [day_capacity(child, monday + timedelta(days=offset), index, sessions) for offset in range(7)]
    return WeekCapacity(
        child_id=child.id,
        week_start=monday,
        days=days,
        total_budget_minutes=sum(d.budget_minutes for d in days),
        total_remaining_minutes=sum(d.remaining_minutes for d in days),
    )


def slot_remaining_minutes(
    child: Child,
    day_of_week: int,
    on_date: Optional[date],
    index: FixedCommitmentIndex,
    sessions: Iterable[Session],
    from_date: Optional[date] = None,
) -> int:
    """
    Remaining minutes for a candidate slot.

    Dated slots use that day's capacity. Weekly slots count the same fixed
    commitments the conflict check sees (TimeBlocks plus imported occurrences
    on the weekday from ``from_date`` onward) and undated scheduled sessions.
    """
    if on_date is not None:
        return remaining_minutes(child, on_date, index, sessions)
    fixed = index.busy_minutes(day_of_week, from_date=from_date)
    scheduled = sum(
        session.slot_minutes
        for session in sessions
        if session.status == SessionStatus.SCHEDULED
        and session.scheduled_day_of_week == day_of_week
        and session.scheduled_date is None
    )
    return max(child.day_budget(day_of_week) - fixed - scheduled, 0)
