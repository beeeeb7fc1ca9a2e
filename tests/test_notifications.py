"""Tests for services.notifications sinks."""

from __future__ import annotations

import subprocess

from conftest import FailingSink

from services.notifications import (
    DesktopNotificationSink,
    LogNotificationSink,
    SafeNotificationSink,
)


def test_log_sink_records():
    sink = LogNotificationSink()
    sink.notify("t", "b", "focus")
    assert sink.sent == [("t", "b", "focus")]


def test_safe_sink_swallows_failures():
    SafeNotificationSink(FailingSink()).notify("t", "b", "break")


def test_safe_sink_passes_through():
    inner = LogNotificationSink()
    SafeNotificationSink(inner).notify("t", "b", "break")
    assert inner.sent == [("t", "b", "break")]


def test_desktop_sink_without_notifier_does_not_raise(monkeypatch):
    monkeypatch.setattr("services.notifications.shutil.which", lambda name: None)
    DesktopNotificationSink().notify("t", "b", "focus")


def test_desktop_sink_calls_notify_send(monkeypatch):
    calls = []

    class FakePopen:
        def __init__(self, cmd, **kwargs):
            calls.append(cmd)

    monkeypatch.setattr("services.notifications.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    sink = DesktopNotificationSink(sound=False)
    sink.system = "Linux"
    sink.notify("Focus time is up!", "25 min completed", "focus")
    assert calls == [["notify-send", "-a", "Smart Timer", "Focus time is up!", "25 min completed"]]


def test_desktop_sink_popen_failure_is_contained(monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("exec failed")

    monkeypatch.setattr("services.notifications.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(subprocess, "Popen", broken)
    sink = DesktopNotificationSink()
    sink.system = "Linux"
    sink.notify("t", "b", "break")


def test_desktop_sink_plays_a_chime_per_hint(monkeypatch):
    calls = []

    class FakePopen:
        def __init__(self, cmd, **kwargs):
            calls.append(cmd)

    monkeypatch.setattr("services.notifications.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    sink = DesktopNotificationSink()
    sink.system = "Linux"
    sink.notify("Focus time is up!", "take a break", "focus")
    sink.notify("Break is over!", "back to work", "break")

    focus_chime, break_chime = calls[1], calls[3]
    assert focus_chime[0] == "paplay"
    assert break_chime[0] == "paplay"
    assert focus_chime != break_chime


def test_desktop_sink_unknown_hint_plays_nothing(monkeypatch):
    calls = []
    monkeypatch.setattr("services.notifications.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(subprocess, "Popen", lambda cmd, **kwargs: calls.append(cmd))
    sink = DesktopNotificationSink()
    sink.system = "Linux"
    sink.notify("t", "b", "chime")
    assert [c[0] for c in calls] == ["notify-send"]
