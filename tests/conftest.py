"""Shared fixtures: a fake Tk-style event loop with a controllable clock."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.notifications import LogNotificationSink
from services.persistence import SessionPersistence
from services.timer_service import SmartTimerService
from storage.snapshot_store import MemorySnapshotStore

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


class FakeLoop:
    """after()/after_cancel() like a Tk root, plus a wall clock we move by hand."""

    def __init__(self, start: datetime = T0):
        self.start = start
        self.now_ms = 0
        self._seq = 0
        self._jobs: dict[int, tuple[int, object]] = {}

    # Tk-style host API
    def after(self, ms, fn):
        self._seq += 1
        self._jobs[self._seq] = (self.now_ms + int(ms), fn)
        return self._seq

    def after_cancel(self, job):
        self._jobs.pop(job, None)

    # test helpers
    def clock(self) -> datetime:
        return self.start + timedelta(milliseconds=self.now_ms)

    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, seconds: float) -> None:
        """Run every job that comes due, in order, like a live event loop."""
        target = self.now_ms + int(seconds * 1000)
        while True:
            due = sorted((t, seq) for seq, (t, _) in self._jobs.items() if t <= target)
            if not due:
                break
            t, seq = due[0]
            _, fn = self._jobs.pop(seq)
            self.now_ms = max(self.now_ms, t)
            fn()
        self.now_ms = target

    def jump(self, seconds: float) -> None:
        """Move the wall clock without firing anything (laptop asleep)."""
        self.now_ms += int(seconds * 1000)


class FailingSink:
    def notify(self, title, body, sound_hint):
        raise PermissionError("notifications denied")


@pytest.fixture()
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture()
def sink() -> LogNotificationSink:
    return LogNotificationSink()


@pytest.fixture()
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture()
def journal() -> list:
    return []


@pytest.fixture()
def make_service(loop, sink, store, journal):
    def _make(**kwargs) -> SmartTimerService:
        return SmartTimerService(
            SessionPersistence(kwargs.pop("store", store)),
            timers=loop,
            notifier=kwargs.pop("notifier", sink),
            on_finalized=journal.append,
            clock=loop.clock,
            **kwargs,
        )

    return _make


@pytest.fixture()
def service(make_service) -> SmartTimerService:
    return make_service()
