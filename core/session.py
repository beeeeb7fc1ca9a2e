# -*- coding: utf-8 -*-

import uuid
from datetime import datetime
from typing import Optional

from core.break_ledger import BreakLedger
from core.session_clock import ClockReading, read_clock
from domain.models import (
    STATUS_FINISHED,
    STATUS_IDLE,
    STATUS_ON_BREAK,
    STATUS_RUNNING,
)


class Session:
    """
    idle -> running -> (onBreak <-> running) -> finished.
    Invalid transitions return False and change nothing.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        status: str = STATUS_IDLE,
        ledger: Optional[BreakLedger] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.start_time = start_time
        self.status = status
        self.ledger = ledger or BreakLedger()

    @property
    def is_active(self) -> bool:
        return self.status in (STATUS_RUNNING, STATUS_ON_BREAK)

    def start(self, now: datetime) -> bool:
        if self.status != STATUS_IDLE:
            return False
        self.start_time = now
        self.status = STATUS_RUNNING
        return True

    def take_break(self, now: datetime) -> bool:
        if self.status != STATUS_RUNNING:
            return False
        if now < self.start_time:
            now = self.start_time
        if not self.ledger.open_break(now):
            return False
        self.status = STATUS_ON_BREAK
        return True

    def resume(self, now: datetime) -> bool:
        if self.status != STATUS_ON_BREAK:
            return False
        self.ledger.close_break(now)
        self.status = STATUS_RUNNING
        return True

    def mark_finished(self) -> None:
        self.status = STATUS_FINISHED

    def reading(self, now: datetime) -> ClockReading:
        return read_clock(self.start_time, self.ledger.breaks, now)
