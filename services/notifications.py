# -*- coding: utf-8 -*-

import platform
import shutil
import subprocess
from typing import List, Optional, Protocol

from loguru import logger


class NotificationSink(Protocol):
    def notify(self, title: str, body: str, sound_hint: str) -> None:
        ...


class LogNotificationSink:
    """Headless sink: notifications only go to the log."""

    def __init__(self):
        self.sent: List[tuple] = []

    def notify(self, title: str, body: str, sound_hint: str) -> None:
        self.sent.append((title, body, sound_hint))
        logger.info(f"[notify:{sound_hint}] {title} - {body}")


class DesktopNotificationSink:
    """
    OS notification + chime, fire-and-forget via subprocess.
    Never raises: a missing notifier just means banner-only.
    """

    _SOUNDS = {
        "Linux": {
            "focus": [
                ["paplay", "/usr/share/sounds/freedesktop/stereo/complete.oga"],
                ["aplay", "-q", "/usr/share/sounds/sound-icons/prompt.wav"],
            ],
            "break": [
                ["paplay", "/usr/share/sounds/freedesktop/stereo/bell.oga"],
                ["aplay", "-q", "/usr/share/sounds/sound-icons/guitar-13.wav"],
            ],
        },
        "Darwin": {
            "focus": [["afplay", "/System/Library/Sounds/Glass.aiff"]],
            "break": [["afplay", "/System/Library/Sounds/Ping.aiff"]],
        },
    }

    def __init__(self, app_name: str = "Smart Timer", sound: bool = True):
        self.app_name = app_name
        self.sound = sound
        self.system = platform.system()

    def notify(self, title: str, body: str, sound_hint: str) -> None:
        if not self._show(title, body):
            logger.warning("Desktop notification unavailable, in-app banner only")
        if self.sound:
            self._play(sound_hint)

    def _show(self, title: str, body: str) -> bool:
        cmd: Optional[List[str]] = None
        if self.system == "Linux" and shutil.which("notify-send"):
            cmd = ["notify-send", "-a", self.app_name, title, body]
        elif self.system == "Darwin" and shutil.which("osascript"):
            script = f'display notification "{body}" with title "{title}"'
            cmd = ["osascript", "-e", script]
        if cmd is None:
            return False
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            return True
        except OSError as e:
            logger.warning(f"Notification command failed: {e}")
            return False

    def _play(self, sound_hint: str) -> None:
        for cmd in self._SOUNDS.get(self.system, {}).get(sound_hint, []):
            if not shutil.which(cmd[0]):
                continue
            try:
                subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
                return
            except OSError:
                continue
        logger.debug(f"No sound player for hint {sound_hint!r}")


class SafeNotificationSink:
    """Wraps any sink so a failing notifier cannot break the coaching engine."""

    def __init__(self, inner: NotificationSink):
        self.inner = inner

    def notify(self, title: str, body: str, sound_hint: str) -> None:
        try:
            self.inner.notify(title, body, sound_hint)
        except Exception as e:
            logger.warning(f"Notification dispatch failed ({e}); in-app banner only")
