# -*- coding: utf-8 -*-


class TimerError(ValueError):
    """Base for errors shown to the user as-is."""


class SessionNotStartedError(TimerError):
    def __init__(self, message: str = "Start the timer first before finishing!"):
        super().__init__(message)
