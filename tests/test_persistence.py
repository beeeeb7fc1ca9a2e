"""Tests for services.persistence.SessionPersistence and the snapshot schema."""

from __future__ import annotations

import pytest
from conftest import T0, at

from core.coaching_engine import CoachingEngine
from core.session import Session
from domain.models import PHASE_FOCUS, STATUS_ON_BREAK
from services.persistence import SessionPersistence
from storage.snapshot import build_snapshot, parse_snapshot, restore_coaching, session_from_snapshot
from storage.snapshot_store import MemorySnapshotStore


class FlakyStore(MemorySnapshotStore):
    def __init__(self, fail_times: int):
        super().__init__()
        self.fail_times = fail_times
        self.writes = 0

    def save(self, snapshot):
        if self.fail_times > 0:
            self.fail_times -= 1
            raise OSError("disk full")
        self.writes += 1
        super().save(snapshot)


class BrokenReadStore(MemorySnapshotStore):
    def load(self):
        raise OSError("unreadable")


def _running_session(loop, sink):
    session = Session()
    session.start(T0)
    engine = CoachingEngine(sink, loop)
    engine.enabled = True
    engine.begin(PHASE_FOCUS, T0)
    return session, engine


# ---- rate limiting ----


def test_save_is_rate_limited():
    store = FlakyStore(0)
    p = SessionPersistence(store, min_interval_seconds=1)
    assert p.save({"a": 1}, at(0))
    assert not p.save({"a": 2}, at(0.5))
    assert p.save({"a": 3}, at(1))
    assert store.writes == 2
    assert store.load() == {"a": 3}


def test_forced_save_skips_rate_limit():
    store = FlakyStore(0)
    p = SessionPersistence(store)
    p.save({"a": 1}, at(0))
    assert p.save({"a": 2}, at(0.1), force=True)
    assert store.writes == 2


def test_failed_save_retries_next_time():
    store = FlakyStore(1)
    p = SessionPersistence(store)
    assert not p.save({"a": 1}, at(0))
    assert p.last_saved_at is None
    assert p.save({"a": 1}, at(0.2))
    assert store.writes == 1


# ---- load ----


def test_load_failure_means_no_snapshot():
    assert SessionPersistence(BrokenReadStore()).load() is None


def test_malformed_snapshot_is_discarded():
    store = MemorySnapshotStore()
    store.save({"startTime": "yesterday-ish", "status": "running"})
    p = SessionPersistence(store)
    assert p.load() is None
    assert store.load() is None


@pytest.mark.parametrize(
    "raw",
    [
        {"startTime": "2026-03-02T09:00:00+00:00", "status": "finished"},
        {"startTime": "2026-03-02T09:00:00+00:00", "status": "idle"},
        # two open breaks
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "onBreak",
            "breaks": [
                {"id": "a", "start": "2026-03-02T09:01:00+00:00"},
                {"id": "b", "start": "2026-03-02T09:02:00+00:00"},
            ],
        },
        # onBreak without an open break
        {"startTime": "2026-03-02T09:00:00+00:00", "status": "onBreak", "breaks": []},
        # end without duration
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "running",
            "breaks": [{"id": "a", "start": "2026-03-02T09:01:00+00:00", "end": "2026-03-02T09:02:00+00:00"}],
        },
        # duration disagrees with start and end
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "running",
            "breaks": [
                {
                    "id": "a",
                    "start": "2026-03-02T09:01:00+00:00",
                    "end": "2026-03-02T09:02:00+00:00",
                    "duration": 9999,
                }
            ],
        },
        # break before the session started
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "running",
            "breaks": [
                {
                    "id": "a",
                    "start": "2026-03-02T08:51:40+00:00",
                    "end": "2026-03-02T09:00:50+00:00",
                    "duration": 550,
                }
            ],
        },
        # overlapping breaks
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "onBreak",
            "breaks": [
                {
                    "id": "a",
                    "start": "2026-03-02T09:01:00+00:00",
                    "end": "2026-03-02T09:05:00+00:00",
                    "duration": 240,
                },
                {"id": "b", "start": "2026-03-02T09:04:00+00:00"},
            ],
        },
    ],
)
def test_schema_rejects(raw):
    p = SessionPersistence(MemorySnapshotStore())
    p.store.save(raw)
    assert p.load() is None


def test_legacy_running_plus_is_on_break_reads_as_on_break():
    snap = parse_snapshot(
        {
            "startTime": "2026-03-02T09:00:00.000Z",
            "status": "running",
            "isOnBreak": True,
            "breaks": [{"id": "1700000000000", "start": "2026-03-02T09:10:00.000Z"}],
            "lastSavedAt": 1772442000000,
            "lastUpdated": "2026-03-02T09:20:00.000Z",
            "pomodoro": {"enabled": True, "presetId": "classic", "phase": "break"},
        }
    )
    assert snap.status == STATUS_ON_BREAK
    assert snap.is_on_break
    assert snap.start_time == T0


# ---- build / restore ----


def test_snapshot_uses_iso_timestamps(loop, sink):
    session, engine = _running_session(loop, sink)
    session.take_break(at(100))
    raw = build_snapshot(session, engine, at(120))
    assert raw["startTime"] == "2026-03-02T09:00:00Z" or raw["startTime"].startswith("2026-03-02T09:00:00")
    assert raw["status"] == "onBreak"
    assert raw["isOnBreak"] is True
    assert raw["breaks"][0]["end"] is None
    assert raw["pomodoro"]["phase"] == "focus"
    assert raw["pomodoro"]["presetId"] == "classic"
    assert isinstance(raw["pomodoro"]["phaseStart"], str)


def test_recovery_is_idempotent(loop, sink):
    session, engine = _running_session(loop, sink)
    session.take_break(at(100))
    session.resume(at(160))
    session.take_break(at(400))
    now = at(450)
    before = session.reading(now)

    store = MemorySnapshotStore()
    p = SessionPersistence(store)
    p.save(build_snapshot(session, engine, now), now)

    snap = p.load()
    restored = session_from_snapshot(snap)
    after = restored.reading(now)
    assert after == before
    assert restored.id == session.id
    assert restored.status == STATUS_ON_BREAK
    assert restored.start_time == T0

    engine2 = CoachingEngine(sink, loop)
    restore_coaching(snap, engine2, now)
    assert engine2.enabled
    # phase mismatch (engine still said focus) resyncs to the session's break
    assert engine2.state.phase == "break"


def test_restore_rearms_remaining_reminder(loop, sink):
    session, engine = _running_session(loop, sink)
    engine.check(at(1500))
    engine.dismiss()
    raw = build_snapshot(session, engine, at(1500))
    engine.discard()

    loop.jump(1560)
    engine2 = CoachingEngine(sink, loop)
    restore_coaching(parse_snapshot(raw), engine2, at(1560))
    assert engine2.state.alert_fired
    assert not engine2.show_alert
    assert engine2.reminder_pending

    loop.advance(119)
    assert not engine2.escalated
    loop.advance(1)
    assert engine2.escalated


def test_schema_accepts_back_to_back_breaks():
    snap = parse_snapshot(
        {
            "startTime": "2026-03-02T09:00:00+00:00",
            "status": "onBreak",
            "breaks": [
                {
                    "id": "a",
                    "start": "2026-03-02T09:01:00+00:00",
                    "end": "2026-03-02T09:01:00+00:00",
                    "duration": 0,
                },
                {"id": "b", "start": "2026-03-02T09:01:00+00:00"},
            ],
        }
    )
    reading = session_from_snapshot(snap).reading(at(160))
    assert reading.focus_seconds + reading.total_break_seconds == reading.wall_clock_seconds


def test_save_session_skips_build_until_due(loop, sink):
    session, engine = _running_session(loop, sink)
    store = FlakyStore(0)
    p = SessionPersistence(store)
    assert p.save_session(session, engine, at(0))
    assert not p.save_session(session, engine, at(0.5))
    assert p.save_session(session, engine, at(0.5), force=True)
    assert store.writes == 2
    assert parse_snapshot(store.load()).status == "running"


def test_save_session_contains_a_bad_build(loop, sink):
    session, engine = _running_session(loop, sink)
    session.take_break(at(100))
    # a ledger entry that cannot be serialized
    session.ledger.open_interval().start = at(-50)
    p = SessionPersistence(MemorySnapshotStore())
    assert not p.save_session(session, engine, at(120), force=True)
    assert p.last_saved_at is None
