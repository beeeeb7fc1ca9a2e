# -*- coding: utf-8 -*-

from typing import Any, Callable

from loguru import logger


class TickScheduler:
    """
    The single periodic driver. Owns no business state.

    host: anything with Tk-style after(ms, fn) -> job and after_cancel(job),
    e.g. the tkinter root. callback takes no arguments.
    """

    def __init__(self, host: Any, callback: Callable[[], None], interval_ms: int = 1000):
        self.host = host
        self.callback = callback
        self.interval_ms = int(interval_ms)
        self._job = None
        self._active = False

    @property
    def running(self) -> bool:
        return self._active

    def start(self) -> None:
        self._active = True
        if self._job is None:
            self._job = self.host.after(self.interval_ms, self._tick_once)

    def stop(self) -> None:
        self._active = False
        if self._job is not None:
            try:
                self.host.after_cancel(self._job)
            except Exception as e:
                logger.warning(f"Could not cancel tick job: {e}")
            self._job = None

    def _tick_once(self) -> None:
        self._job = None
        try:
            self.callback()
        except Exception:
            logger.exception("Tick callback failed")
        # callback may have called stop()
        if self._active and self._job is None:
            self._job = self.host.after(self.interval_ms, self._tick_once)
