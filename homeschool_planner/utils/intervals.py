"""
Minute-of-day interval helpers.

All intervals are half-open ``[start, end)``: two ranges that only touch
(09:00-10:00 and 10:00-11:00) do not overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class TimeInterval:
    start_minutes: int
    end_minutes: int

    @property
    def minutes(self) -> int:
        return max(self.end_minutes - self.start_minutes, 0)


def parse_time_to_minutes(value: str) -> Optional[int]:
    parts = value.split(":")
    if len(parts) != 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if hours < 0 or hours > 24 or minutes < 0 or minutes > 59:
        return None
    if hours == 24 and minutes != 0:
        return None
    return hours * 60 + minutes


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def merge_intervals(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Union of intervals, sorted by start. Touching intervals are joined."""
    ordered = sorted(
        (i for i in intervals if i.end_minutes > i.start_minutes),
        key=lambda i: (i.start_minutes, i.end_minutes),
    )
    merged: list[TimeInterval] = []
    for interval in ordered:
        if merged and interval.start_minutes <= merged[-1].end_minutes:
            merged[-1].end_minutes = max(merged[-1].end_minutes, interval.end_minutes)
        else:
            merged.append(TimeInterval(interval.start_minutes, interval.end_minutes))
    return merged


def total_minutes(intervals: Iterable[TimeInterval]) -> int:
    return sum(interval.minutes for interval in merge_intervals(intervals))


def subtract_intervals(base: list[TimeInterval], remove: list[TimeInterval]) -> list[TimeInterval]:
    if not remove:
        return base
    intervals = base
    for block in remove:
        next_intervals: list[TimeInterval] = []
        for interval in intervals:
            if block.end_minutes <= interval.start_minutes or block.start_minutes >= interval.end_minutes:
                next_intervals.append(interval)
                continue
            if block.start_minutes > interval.start_minutes:
                next_intervals.append(
                    TimeInterval(interval.start_minutes, min(block.start_minutes, interval.end_minutes))
                )
            if block.end_minutes < interval.end_minutes:
                next_intervals.append(
                    TimeInterval(max(block.end_minutes, interval.start_minutes), interval.end_minutes)
                )
        intervals = next_intervals
    return [interval for interval in intervals if interval.end_minutes > interval.start_minutes]


def first_fit(free: list[TimeInterval], duration_minutes: int) -> Optional[TimeInterval]:
    """Earliest sub-interval of ``free`` long enough for ``duration_minutes``."""
    for interval in sorted(free, key=lambda i: i.start_minutes):
        if interval.minutes >= duration_minutes:
            return TimeInterval(interval.start_minutes, interval.start_minutes + duration_minutes)
    return None
