# -*- coding: utf-8 -*-

from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from loguru import logger

from core.session_clock import seconds_between
from domain.models import (
    ALERT_BREAK,
    ALERT_RESUME,
    CUSTOM_PRESET_ID,
    DEFAULT_PRESET_ID,
    DEFAULT_TARGET_SESSIONS,
    PHASE_BREAK,
    PHASE_FOCUS,
    SOUND_BREAK,
    SOUND_FOCUS,
    CoachingAlert,
    CoachingConfig,
    CoachingPhaseState,
    find_preset,
)
from services.notifications import NotificationSink, SafeNotificationSink

CUSTOM_FOCUS_RANGE = (1, 180)
CUSTOM_BREAK_RANGE = (1, 60)
TARGET_RANGE = (1, 12)


def _clamp(value: int, bounds) -> int:
    lo, hi = bounds
    return max(lo, min(hi, int(value)))


class CoachingEngine:
    """
    Pomodoro coach layered over a running session (no Tkinter).

    - phase mirrors the session (focus <-> running, break <-> onBreak)
    - tick() calls check(now) to detect threshold crossings
    - an unanswered alert escalates once after reminder_delay_seconds
    - sessions_completed only moves on explicit confirmation

    `timers` is any object with Tk-style after(ms, fn) / after_cancel(job).
    """

    def __init__(
        self,
        notifier: NotificationSink,
        timers: Any,
        reminder_delay_seconds: int = 180,
        extend_minutes: int = 5,
    ):
        self.notifier = SafeNotificationSink(notifier)
        self.timers = timers
        self.reminder_delay_seconds = int(reminder_delay_seconds)
        self.extend_minutes = int(extend_minutes)

        self.enabled = False
        self.preset_id = DEFAULT_PRESET_ID
        self.custom_focus = 25
        self.custom_break = 5
        self.target_sessions = DEFAULT_TARGET_SESSIONS

        self.state: Optional[CoachingPhaseState] = None
        self.show_alert = False
        self.alert_type: Optional[str] = None
        self.alert_fired_at: Optional[datetime] = None
        self.escalated = False
        self.confirm_pending = False
        self.target_announced = False

        self._reminder_job = None

        self._on_alert: Optional[Callable[[CoachingAlert], None]] = None
        self._on_confirm_prompt: Optional[Callable[[], None]] = None
        self._on_toast: Optional[Callable[[str], None]] = None

    # ----- Callbacks -----
    def set_on_alert(self, fn: Callable[[CoachingAlert], None]) -> None:
        self._on_alert = fn

    def set_on_confirm_prompt(self, fn: Callable[[], None]) -> None:
        self._on_confirm_prompt = fn

    def set_on_toast(self, fn: Callable[[str], None]) -> None:
        self._on_toast = fn

    # ----- Config -----
    def config(self) -> CoachingConfig:
        preset = find_preset(self.preset_id) or find_preset(DEFAULT_PRESET_ID)
        if preset.id == CUSTOM_PRESET_ID:
            focus, brk = self.custom_focus, self.custom_break
        else:
            focus, brk = preset.focus_minutes, preset.break_minutes
        return CoachingConfig(
            preset_id=preset.id,
            focus_minutes=focus,
            break_minutes=brk,
            target_session_count=self.target_sessions,
        )

    def select_preset(self, preset_id: str) -> bool:
        if find_preset(preset_id) is None:
            logger.warning(f"Unknown preset {preset_id!r}, keeping {self.preset_id!r}")
            return False
        self.preset_id = preset_id
        return True

    def set_custom_minutes(
        self, focus_minutes: Optional[int] = None, break_minutes: Optional[int] = None
    ) -> None:
        if focus_minutes is not None:
            self.custom_focus = _clamp(focus_minutes, CUSTOM_FOCUS_RANGE)
        if break_minutes is not None:
            self.custom_break = _clamp(break_minutes, CUSTOM_BREAK_RANGE)

    def set_target_sessions(self, count: int) -> None:
        self.target_sessions = _clamp(count, TARGET_RANGE)
        self._check_target()

    @property
    def sessions_completed(self) -> int:
        return self.state.sessions_completed if self.state else 0

    @property
    def active(self) -> bool:
        return self.enabled and self.state is not None

    # ----- Lifecycle -----
    def begin(self, phase: str, now: datetime, keep_count: bool = False) -> None:
        """Start phase tracking (session start, or coaching switched on mid-session)."""
        count = self.sessions_completed if keep_count else 0
        self._clear_alert()
        self.state = CoachingPhaseState(phase=phase, phase_start=now, sessions_completed=count)
        if not keep_count:
            self.confirm_pending = False
            self.target_announced = False

    def set_enabled(self, enabled: bool, now: datetime, session_phase: Optional[str]) -> None:
        self.enabled = bool(enabled)
        if self.enabled and session_phase is not None:
            self.begin(session_phase, now, keep_count=True)
        elif not self.enabled:
            self._clear_alert()
            self.confirm_pending = False
            if self.state is not None:
                # keep the count so re-enabling later does not lose confirmed pomodoros
                self.state = CoachingPhaseState(
                    phase=self.state.phase,
                    phase_start=self.state.phase_start,
                    sessions_completed=self.state.sessions_completed,
                )

    def discard(self) -> None:
        self._clear_alert()
        self.state = None
        self.confirm_pending = False
        self.target_announced = False

    # ----- Transitions -----
    def on_phase_change(self, new_phase: str, now: datetime) -> None:
        if not self.active or self.state.phase == new_phase:
            return
        self.state.phase = new_phase
        self.state.phase_start = now
        self._clear_alert()
        if new_phase == PHASE_FOCUS:
            # counting a pomodoro needs the user to confirm they stayed on task
            self.confirm_pending = True
            if self._on_confirm_prompt:
                self._on_confirm_prompt()

    def extend(self, now: datetime) -> bool:
        if not self.active:
            return False
        self.state.phase_start = self.state.phase_start + timedelta(minutes=self.extend_minutes)
        self._clear_alert()
        logger.info(
            f"Coaching phase {self.state.phase} extended by {self.extend_minutes} min "
            f"(phase start now {self.state.phase_start.isoformat()})"
        )
        return True

    def dismiss(self) -> None:
        # banner only; alert_fired stays set and the reminder keeps running
        self.show_alert = False

    def confirm_session(self, completed: bool) -> None:
        if not self.confirm_pending:
            return
        self.confirm_pending = False
        if completed and self.state is not None:
            self.state.sessions_completed += 1
            logger.info(
                f"Pomodoro confirmed: {self.state.sessions_completed}/{self.target_sessions}"
            )
            self._check_target()

    # ----- Threshold detection -----
    def threshold_seconds(self) -> int:
        cfg = self.config()
        if self.state is not None and self.state.phase == PHASE_BREAK:
            return cfg.break_seconds
        return cfg.focus_seconds

    def elapsed_in_phase(self, now: datetime) -> int:
        if self.state is None:
            return 0
        return seconds_between(self.state.phase_start, now)

    def remaining_seconds(self, now: datetime) -> int:
        if not self.active:
            return 0
        return max(0, self.threshold_seconds() - self.elapsed_in_phase(now))

    def check(self, now: datetime) -> Optional[CoachingAlert]:
        if not self.active or self.state.alert_fired:
            return None
        if self.elapsed_in_phase(now) < self.threshold_seconds():
            return None

        self.state.alert_fired = True
        self.alert_fired_at = now
        alert = self._build_alert()
        self.alert_type = alert.type
        self.show_alert = True
        self.escalated = False
        logger.info(f"Coaching alert fired: {alert.type} ({alert.title})")

        self.notifier.notify(alert.title, alert.body, alert.sound_hint)
        self._schedule_reminder(self.reminder_delay_seconds)
        if self._on_alert:
            self._on_alert(alert)
        return alert

    def _build_alert(self, escalated: bool = False) -> CoachingAlert:
        cfg = self.config()
        focus_ended = self.state.phase == PHASE_FOCUS
        if escalated:
            extra = max(1, self.reminder_delay_seconds // 60)
            if focus_ended:
                body = f"You've been working for {extra} extra minutes. Your brain needs a break!"
            else:
                body = f"Break extended by {extra} minutes. Time to get back to work!"
            return CoachingAlert(
                type=ALERT_BREAK if focus_ended else ALERT_RESUME,
                title="👋 Still there?",
                body=body,
                sound_hint=SOUND_FOCUS,
                escalated=True,
            )
        if focus_ended:
            return CoachingAlert(
                type=ALERT_BREAK,
                title="⏰ Focus time is up!",
                body=f"{cfg.focus_minutes} min completed. Time for a {cfg.break_minutes} min break!",
                sound_hint=SOUND_FOCUS,
            )
        return CoachingAlert(
            type=ALERT_RESUME,
            title="☕ Break is over!",
            body=f"Your {cfg.break_minutes} min break is done. Ready to focus?",
            sound_hint=SOUND_BREAK,
        )

    # ----- Reminder escalation -----
    def _schedule_reminder(self, delay_seconds: int) -> None:
        self._cancel_reminder()
        self._reminder_job = self.timers.after(max(0, int(delay_seconds)) * 1000, self._escalate)

    def _cancel_reminder(self) -> None:
        if self._reminder_job is not None:
            try:
                self.timers.after_cancel(self._reminder_job)
            except Exception as e:
                logger.warning(f"Could not cancel reminder job: {e}")
            self._reminder_job = None

    @property
    def reminder_pending(self) -> bool:
        return self._reminder_job is not None

    def _escalate(self) -> None:
        self._reminder_job = None
        if not self.active or not self.state.alert_fired:
            return
        alert = self._build_alert(escalated=True)
        self.escalated = True
        self.show_alert = True
        logger.info(f"Coaching alert escalated: {alert.type}")
        self.notifier.notify(alert.title, alert.body, alert.sound_hint)
        if self._on_alert:
            self._on_alert(alert)

    def _clear_alert(self) -> None:
        self._cancel_reminder()
        if self.state is not None:
            self.state.alert_fired = False
        self.show_alert = False
        self.alert_type = None
        self.alert_fired_at = None
        self.escalated = False

    def _check_target(self) -> None:
        if self.target_announced or not self.enabled or self.state is None:
            return
        if self.target_sessions > 0 and self.state.sessions_completed >= self.target_sessions:
            self.target_announced = True
            msg = (
                f"🎉 Target reached! {self.state.sessions_completed}/"
                f"{self.target_sessions} Pomodoros completed!"
            )
            logger.info(msg)
            if self._on_toast:
                self._on_toast(msg)

    # ----- Recovery -----
    def restore(
        self,
        *,
        enabled: bool,
        preset_id: Optional[str],
        custom_focus: int,
        custom_break: int,
        target_sessions: int,
        state: Optional[CoachingPhaseState],
        show_alert: bool,
        alert_type: Optional[str],
        alert_fired_at: Optional[datetime],
        confirm_pending: bool,
        target_announced: bool,
        now: datetime,
        escalated: bool = False,
    ) -> None:
        self._cancel_reminder()
        self.enabled = bool(enabled)
        if not self.select_preset(preset_id or DEFAULT_PRESET_ID):
            self.preset_id = DEFAULT_PRESET_ID
        self.set_custom_minutes(custom_focus, custom_break)
        self.target_sessions = _clamp(target_sessions, TARGET_RANGE)
        self.state = state
        self.show_alert = bool(show_alert) and state is not None and state.alert_fired
        self.alert_type = alert_type if state is not None and state.alert_fired else None
        self.alert_fired_at = alert_fired_at if self.alert_type else None
        self.escalated = bool(escalated) and self.alert_type is not None
        self.confirm_pending = bool(confirm_pending)
        self.target_announced = bool(target_announced)

        if self.active and self.state.alert_fired and not self.escalated:
            # re-arm escalation for whatever is left of the delay
            fired_at = self.alert_fired_at or now
            left = self.reminder_delay_seconds - seconds_between(fired_at, now)
            self._schedule_reminder(max(0, left))
