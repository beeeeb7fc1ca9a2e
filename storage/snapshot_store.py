# -*- coding: utf-8 -*-

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from loguru import logger

from storage.db import Database
from storage.repos import AppStateRepo

SNAPSHOT_KEY = "timer_session"


class SnapshotStore(Protocol):
    def save(self, snapshot: Dict[str, Any]) -> None:
        ...

    def load(self) -> Optional[Dict[str, Any]]:
        ...

    def clear(self) -> None:
        ...


class MemorySnapshotStore:
    """Fallback when no durable medium is available (lost on exit)."""

    def __init__(self):
        self._data: Optional[Dict[str, Any]] = None

    def save(self, snapshot: Dict[str, Any]) -> None:
        self._data = json.loads(json.dumps(snapshot))

    def load(self) -> Optional[Dict[str, Any]]:
        return json.loads(json.dumps(self._data)) if self._data is not None else None

    def clear(self) -> None:
        self._data = None


class SqliteSnapshotStore:
    """Snapshot as JSON text under one key of the app_state table."""

    def __init__(self, db: Database, key: str = SNAPSHOT_KEY):
        self.state = AppStateRepo(db)
        self.key = key

    def save(self, snapshot: Dict[str, Any]) -> None:
        self.state.set(self.key, json.dumps(snapshot, sort_keys=True))

    def load(self) -> Optional[Dict[str, Any]]:
        raw = self.state.get(self.key)
        if not raw:
            return None
        data = json.loads(raw)
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        self.state.delete(self.key)


class JsonFileSnapshotStore:
    """
    timer_session.json next to the user's data.
    - atomic write: temp file + fsync + os.replace
    - corrupt file: backed up, then treated as missing
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def save(self, snapshot: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        payload = json.dumps(snapshot, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

        try:
            os.chmod(self.path, 0o600)
        except OSError:
            pass

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        txt = self.path.read_text(encoding="utf-8").strip()
        if not txt:
            return None
        try:
            data = json.loads(txt)
        except json.JSONDecodeError:
            backup = self.path.with_suffix(f".corrupt-{int(time.time())}.json")
            backup.write_text(txt, encoding="utf-8")
            logger.warning(f"Corrupt snapshot file backed up to {backup}")
            self.clear()
            return None
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def open_snapshot_store(backend: str, db: Optional[Database] = None, path: Optional[Path] = None):
    """Pick the store once at startup; fall back to memory if the durable one can't be used."""
    try:
        if backend == "sqlite":
            if db is None:
                raise ValueError("sqlite snapshot store needs a database")
            store = SqliteSnapshotStore(db)
            store.state.get(store.key)
            return store
        if backend == "json":
            if path is None:
                raise ValueError("json snapshot store needs a path")
            path.parent.mkdir(parents=True, exist_ok=True)
            return JsonFileSnapshotStore(path)
        if backend == "memory":
            return MemorySnapshotStore()
        raise ValueError(f"unknown snapshot backend {backend!r}")
    except Exception as e:
        logger.warning(f"Snapshot store {backend!r} unavailable ({e}); using in-memory fallback")
        return MemorySnapshotStore()
