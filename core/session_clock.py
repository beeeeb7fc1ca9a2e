# -*- coding: utf-8 -*-

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from domain.models import BreakInterval


def seconds_between(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, never negative."""
    return max(0, int((end - start).total_seconds()))


@dataclass(frozen=True)
class ClockReading:
    wall_clock_seconds: int
    completed_break_seconds: int
    current_open_break_seconds: int
    total_break_seconds: int
    focus_seconds: int


def read_clock(
    start_time: Optional[datetime],
    breaks: Sequence[BreakInterval],
    now: datetime,
) -> ClockReading:
    """
    Pure derivation from timestamps (no tick counters).
    Same inputs -> same reading, no matter how many ticks were missed.
    """
    if start_time is None:
        return ClockReading(0, 0, 0, 0, 0)

    wall = seconds_between(start_time, now)
    completed = sum(b.duration or 0 for b in breaks if not b.is_open)

    open_sec = 0
    if breaks and breaks[-1].is_open:
        open_sec = seconds_between(breaks[-1].start, now)

    total_break = completed + open_sec
    return ClockReading(
        wall_clock_seconds=wall,
        completed_break_seconds=completed,
        current_open_break_seconds=open_sec,
        total_break_seconds=total_break,
        focus_seconds=max(0, wall - total_break),
    )
