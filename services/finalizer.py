# -*- coding: utf-8 -*-

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from core.session import Session
from domain.errors import SessionNotStartedError
from domain.models import STATUS_FINISHED, STATUS_IDLE, FinalizedSessionRecord
from services.persistence import SessionPersistence


class SessionFinalizer:
    """
    finish(): close dangling break -> totals -> record -> clear snapshot
    -> status finished -> hand the record to the journal.
    """

    def __init__(
        self,
        persistence: SessionPersistence,
        on_finalized: Optional[Callable[[FinalizedSessionRecord], None]] = None,
    ):
        self.persistence = persistence
        self.on_finalized = on_finalized

    def finish(self, session: Session, now: datetime) -> FinalizedSessionRecord:
        # a finished session is terminal; a new one has to be started first
        if session.status in (STATUS_IDLE, STATUS_FINISHED) or session.start_time is None:
            raise SessionNotStartedError()

        session.ledger.close_dangling(now)
        # focus and break come from the same `now` and the same closed list
        reading = session.reading(now)

        record = FinalizedSessionRecord(
            session_id=session.id,
            start_time=session.start_time,
            end_time=now,
            total_focus_seconds=reading.focus_seconds,
            total_break_seconds=reading.total_break_seconds,
            breaks=session.ledger.breaks,
        )

        self.persistence.clear()
        session.mark_finished()
        logger.info(
            f"Session {session.id} finished: focus={record.total_focus_seconds}s "
            f"break={record.total_break_seconds}s breaks={record.breaks_count}"
        )

        if self.on_finalized:
            try:
                self.on_finalized(record)
            except Exception:
                logger.exception(f"Journal hand-off failed for session {session.id}")
        return record

    def reset(self) -> None:
        self.persistence.clear()
