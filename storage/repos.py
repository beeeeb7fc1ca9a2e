# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from datetime import datetime
from typing import List, Optional

from domain.models import BreakInterval, FinalizedSessionRecord
from storage.db import Database


class AppStateRepo:
    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        row = self.db.conn.execute(
            "SELECT value FROM app_state WHERE key=?",
            (key,),
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.db.conn.execute(
            """
            INSERT INTO app_state(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )
        self.db.conn.commit()

    def delete(self, key: str) -> None:
        self.db.conn.execute("DELETE FROM app_state WHERE key=?", (key,))
        self.db.conn.commit()


class FinishedSessionRepo:
    """Local journal of finalized sessions (one row per finish())."""

    def __init__(self, db: Database):
        self.db = db

    def record(self, rec: FinalizedSessionRecord) -> None:
        self.db.conn.execute(
            """
            INSERT OR REPLACE INTO finished_sessions(
                id, start_ts, end_ts, focus_sec, break_sec, breaks_count
            )
            VALUES(?,?,?,?,?,?)
            """,
            (
                rec.session_id,
                rec.start_time.isoformat(),
                rec.end_time.isoformat(),
                rec.total_focus_seconds,
                rec.total_break_seconds,
                rec.breaks_count,
            ),
        )
        self.db.conn.execute("DELETE FROM session_breaks WHERE session_id=?", (rec.session_id,))
        self.db.conn.executemany(
            """
            INSERT INTO session_breaks(id, session_id, start_ts, end_ts, duration_sec)
            VALUES(?,?,?,?,?)
            """,
            [
                (b.id, rec.session_id, b.start.isoformat(), b.end.isoformat(), b.duration or 0)
                for b in rec.breaks
            ],
        )
        self.db.conn.commit()

    def get(self, session_id: str) -> Optional[FinalizedSessionRecord]:
        r = self.db.conn.execute(
            "SELECT * FROM finished_sessions WHERE id=?",
            (session_id,),
        ).fetchone()
        return self._to_record(r) if r else None

    def list_recent(self, limit: int = 20) -> List[FinalizedSessionRecord]:
        rows = self.db.conn.execute(
            "SELECT * FROM finished_sessions ORDER BY start_ts DESC LIMIT ?",
            (int(limit),),
        ).fetchall()
        return [self._to_record(r) for r in rows]

    def _to_record(self, r) -> FinalizedSessionRecord:
        brows = self.db.conn.execute(
            """
            SELECT id, start_ts, end_ts, duration_sec
            FROM session_breaks WHERE session_id=? ORDER BY start_ts ASC
            """,
            (r["id"],),
        ).fetchall()
        breaks = [
            BreakInterval(
                id=b["id"],
                start=datetime.fromisoformat(b["start_ts"]),
                end=datetime.fromisoformat(b["end_ts"]),
                duration=int(b["duration_sec"]),
            )
            for b in brows
        ]
        return FinalizedSessionRecord(
            session_id=r["id"],
            start_time=datetime.fromisoformat(r["start_ts"]),
            end_time=datetime.fromisoformat(r["end_ts"]),
            total_focus_seconds=int(r["focus_sec"]),
            total_break_seconds=int(r["break_sec"]),
            breaks=breaks,
        )
