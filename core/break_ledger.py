# -*- coding: utf-8 -*-

import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from core.session_clock import seconds_between
from domain.models import BreakInterval


class BreakLedger:
    """
    Ordered break intervals. Only the last one may be open (end is None).
    Duplicate open/close calls are no-ops so double clicks are harmless.
    """

    def __init__(self, breaks: Optional[Iterable[BreakInterval]] = None):
        self._breaks: List[BreakInterval] = list(breaks or [])

    @property
    def breaks(self) -> List[BreakInterval]:
        return list(self._breaks)

    def open_interval(self) -> Optional[BreakInterval]:
        if self._breaks and self._breaks[-1].is_open:
            return self._breaks[-1]
        return None

    def has_open_break(self) -> bool:
        return self.open_interval() is not None

    def open_break(self, now: datetime) -> bool:
        if self.has_open_break():
            return False
        if self._breaks and self._breaks[-1].end > now:
            # clock stepped back; keep intervals ordered and disjoint
            now = self._breaks[-1].end
        self._breaks.append(BreakInterval(id=uuid.uuid4().hex, start=now))
        return True

    def close_break(self, now: datetime) -> bool:
        last = self.open_interval()
        if last is None:
            return False
        last.end = max(now, last.start)
        last.duration = seconds_between(last.start, last.end)
        return True

    def close_dangling(self, now: datetime) -> None:
        # finish() path: safe with or without an open break
        self.close_break(now)

    def __len__(self) -> int:
        return len(self._breaks)
