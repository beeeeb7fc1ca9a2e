"""Tests for services.finalizer.SessionFinalizer."""

from __future__ import annotations

import pytest
from conftest import T0, at

from core.session import Session
from domain.errors import SessionNotStartedError
from domain.models import STATUS_FINISHED, STATUS_IDLE
from services.finalizer import SessionFinalizer
from services.persistence import SessionPersistence
from storage.snapshot_store import MemorySnapshotStore


@pytest.fixture()
def persistence() -> SessionPersistence:
    store = MemorySnapshotStore()
    store.save({"placeholder": True})
    return SessionPersistence(store)


def test_finish_closes_dangling_break(persistence):
    records = []
    fin = SessionFinalizer(persistence, records.append)
    s = Session()
    s.start(T0)
    s.take_break(at(100))

    rec = fin.finish(s, at(160))

    assert len(rec.breaks) == 1
    b = rec.breaks[0]
    assert (b.start, b.end, b.duration) == (at(100), at(160), 60)
    assert rec.total_break_seconds == 60
    assert rec.total_focus_seconds == 100
    assert rec.breaks_count == 1
    assert s.status == STATUS_FINISHED
    assert records == [rec]


def test_finish_sum_matches_wall_clock(persistence):
    fin = SessionFinalizer(persistence)
    s = Session()
    s.start(T0)
    s.take_break(at(30))
    s.resume(at(95))
    s.take_break(at(1000))
    rec = fin.finish(s, at(4321))
    wall = int((rec.end_time - rec.start_time).total_seconds())
    assert rec.total_focus_seconds + rec.total_break_seconds == wall


def test_finish_clears_snapshot_before_hand_off(persistence):
    seen = []
    fin = SessionFinalizer(persistence, lambda rec: seen.append(persistence.store.load()))
    s = Session()
    s.start(T0)
    fin.finish(s, at(10))
    assert seen == [None]


def test_idle_finish_rejected(persistence):
    records = []
    fin = SessionFinalizer(persistence, records.append)
    s = Session()
    with pytest.raises(SessionNotStartedError, match="Start the timer first"):
        fin.finish(s, at(10))
    assert records == []
    assert s.status == STATUS_IDLE
    assert persistence.store.load() == {"placeholder": True}


def test_finished_session_cannot_finish_twice(persistence):
    fin = SessionFinalizer(persistence)
    s = Session()
    s.start(T0)
    fin.finish(s, at(10))
    with pytest.raises(SessionNotStartedError):
        fin.finish(s, at(20))


def test_hand_off_failure_is_contained(persistence):
    def boom(rec):
        raise RuntimeError("journal offline")

    fin = SessionFinalizer(persistence, boom)
    s = Session()
    s.start(T0)
    rec = fin.finish(s, at(10))
    assert rec.total_focus_seconds == 10
    assert s.status == STATUS_FINISHED


def test_record_to_dict_shape(persistence):
    fin = SessionFinalizer(persistence)
    s = Session()
    s.start(T0)
    s.take_break(at(100))
    d = fin.finish(s, at(160)).to_dict()
    assert d["sessionId"] == s.id
    assert d["startTime"] == T0.isoformat()
    assert d["totalFocusSeconds"] == 100
    assert d["totalBreakSeconds"] == 60
    assert d["breaksCount"] == 1
    assert d["breaks"][0]["duration"] == 60
