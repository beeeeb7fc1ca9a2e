# -*- coding: utf-8 -*-

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from storage.db import Database


def _start_of_today(now: Optional[datetime] = None) -> datetime:
    local = (now or datetime.now(timezone.utc)).astimezone()
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


class StatsService:
    def __init__(self, db: Database):
        self.db = db

    def get_db_info(self) -> Dict[str, Any]:
        conn = self.db.conn
        sessions = conn.execute("SELECT COUNT(1) AS c FROM finished_sessions").fetchone()["c"]
        breaks = conn.execute("SELECT COUNT(1) AS c FROM session_breaks").fetchone()["c"]
        return {
            "db_path": self.db.db_path,
            "sessions_count": sessions,
            "breaks_count": breaks,
        }

    def _sum_since(self, column: str, since: datetime) -> int:
        rows = self.db.conn.execute(
            f"SELECT start_ts, {column} AS sec FROM finished_sessions"
        ).fetchall()
        total = 0
        for r in rows:
            started = datetime.fromisoformat(r["start_ts"])
            if started.tzinfo is None:
                started = started.replace(tzinfo=timezone.utc)
            if started >= since:
                total += int(r["sec"] or 0)
        return total

    def total_today_focus_sec(self, now: Optional[datetime] = None) -> int:
        return self._sum_since("focus_sec", _start_of_today(now))

    def total_today_break_sec(self, now: Optional[datetime] = None) -> int:
        return self._sum_since("break_sec", _start_of_today(now))
