"""Tests for core.session_clock.read_clock."""

from __future__ import annotations

import random

from conftest import T0, at

from core.break_ledger import BreakLedger
from core.session_clock import read_clock, seconds_between
from domain.models import BreakInterval


def _closed(start, end):
    return BreakInterval(id=f"b{start}", start=at(start), end=at(end), duration=end - start)


def test_idle_reads_zero():
    r = read_clock(None, [], at(100))
    assert r.wall_clock_seconds == 0
    assert r.focus_seconds == 0
    assert r.total_break_seconds == 0


def test_no_breaks_all_focus():
    r = read_clock(T0, [], at(1500))
    assert r.wall_clock_seconds == 1500
    assert r.focus_seconds == 1500
    assert r.total_break_seconds == 0


def test_closed_and_open_breaks():
    breaks = [_closed(100, 160), BreakInterval(id="open", start=at(300))]
    r = read_clock(T0, breaks, at(400))
    assert r.completed_break_seconds == 60
    assert r.current_open_break_seconds == 100
    assert r.total_break_seconds == 160
    assert r.focus_seconds == 240


def test_focus_plus_break_equals_wall_over_random_histories():
    rng = random.Random(7)
    for _ in range(50):
        ledger = BreakLedger()
        t = 0
        for _ in range(rng.randint(0, 6)):
            t += rng.randint(1, 900)
            ledger.open_break(at(t))
            if rng.random() < 0.8:
                t += rng.randint(1, 600)
                ledger.close_break(at(t))
        now = at(t + rng.randint(0, 1200))
        r = read_clock(T0, ledger.breaks, now)
        assert r.focus_seconds + r.total_break_seconds == r.wall_clock_seconds


def test_drift_immunity_single_jump_equals_every_second():
    breaks = [_closed(600, 900), BreakInterval(id="open", start=at(5000))]
    stepped = None
    for s in range(0, 7201):
        stepped = read_clock(T0, breaks, at(s))
    jumped = read_clock(T0, breaks, at(7200))
    assert jumped == stepped
    assert jumped.focus_seconds == 7200 - 300 - 2200


def test_seconds_between_never_negative():
    assert seconds_between(at(10), at(5)) == 0
    assert seconds_between(at(0), at(2.9)) == 2
