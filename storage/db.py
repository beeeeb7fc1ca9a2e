#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sqlite3
from pathlib import Path
from typing import List

from loguru import logger


class Database:
    def __init__(self, db_path: str = "smart_timer.db"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON;")

    def _cols(self, table: str) -> List[str]:
        try:
            return [
                r["name"]
                for r in self.conn.execute(f"PRAGMA table_info({table});").fetchall()
            ]
        except sqlite3.Error:
            return []

    def init_schema(self):
        cur = self.conn.cursor()

        # key/value store (holds the in-progress timer snapshot)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

        # finalized sessions handed to the journal
        cur.execute("""
            CREATE TABLE IF NOT EXISTS finished_sessions (
                id TEXT PRIMARY KEY,
                start_ts TEXT NOT NULL,
                end_ts TEXT NOT NULL,
                focus_sec INTEGER NOT NULL,
                break_sec INTEGER NOT NULL,
                breaks_count INTEGER NOT NULL DEFAULT 0
            );
        """)

        cur.execute("""
            CREATE TABLE IF NOT EXISTS session_breaks (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL,
                start_ts TEXT NOT NULL,
                end_ts TEXT NOT NULL,
                duration_sec INTEGER NOT NULL,
                FOREIGN KEY(session_id) REFERENCES finished_sessions(id) ON DELETE CASCADE
            );
        """)

        # older files may predate the breaks_count column
        if "breaks_count" not in self._cols("finished_sessions"):
            logger.info("Migrating finished_sessions: adding breaks_count")
            cur.execute(
                "ALTER TABLE finished_sessions ADD COLUMN breaks_count INTEGER NOT NULL DEFAULT 0;"
            )

        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_finished_start ON finished_sessions(start_ts);"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_breaks_session ON session_breaks(session_id);"
        )

        self.conn.commit()

    def close(self):
        try:
            self.conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Closing database failed: {e}")
