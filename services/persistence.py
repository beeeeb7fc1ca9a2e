# -*- coding: utf-8 -*-

import sqlite3
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from storage.snapshot import SnapshotModel, build_snapshot, parse_snapshot
from storage.snapshot_store import SnapshotStore


class SessionPersistence:
    """
    Rate-limited snapshot writes on top of a SnapshotStore.

    - save(): at most one write per min_interval_seconds unless forced
    - failures are logged; the next tick simply tries again
    - load(): anything unreadable or malformed counts as "no snapshot"
    """

    def __init__(self, store: SnapshotStore, min_interval_seconds: float = 1.0):
        self.store = store
        self.min_interval_seconds = float(min_interval_seconds)
        self.last_saved_at: Optional[datetime] = None

    def due(self, now: datetime) -> bool:
        if self.last_saved_at is None:
            return True
        return (now - self.last_saved_at).total_seconds() >= self.min_interval_seconds

    def save(self, snapshot: Dict[str, Any], now: datetime, force: bool = False) -> bool:
        if not force and not self.due(now):
            return False
        try:
            self.store.save(snapshot)
        except (OSError, sqlite3.Error, TypeError, ValueError) as e:
            logger.warning(f"Snapshot save failed, will retry next tick: {e}")
            return False
        self.last_saved_at = now
        return True

    def save_session(self, session, engine, now: datetime, force: bool = False) -> bool:
        """Build the snapshot only when a write is due; a bad build is retried later."""
        if not force and not self.due(now):
            return False
        try:
            snapshot = build_snapshot(session, engine, now)
        except ValidationError as e:
            logger.warning(f"Snapshot build failed, will retry next tick: {e.error_count()} errors")
            return False
        return self.save(snapshot, now, force=True)

    def load(self) -> Optional[SnapshotModel]:
        try:
            raw = self.store.load()
        except (OSError, sqlite3.Error, ValueError) as e:
            logger.warning(f"Snapshot load failed, starting fresh: {e}")
            return None
        if raw is None:
            return None
        try:
            return parse_snapshot(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed snapshot ({e.error_count()} errors)")
            self.clear()
            return None

    def clear(self) -> None:
        try:
            self.store.clear()
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Snapshot clear failed: {e}")
        self.last_saved_at = None
