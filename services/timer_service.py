# -*- coding: utf-8 -*-

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from loguru import logger

from core.coaching_engine import CoachingEngine
from core.session import Session
from domain.models import (
    PHASE_BREAK,
    PHASE_FOCUS,
    STATUS_FINISHED,
    STATUS_ON_BREAK,
    CoachingAlert,
    FinalizedSessionRecord,
)
from services.finalizer import SessionFinalizer
from services.notifications import NotificationSink
from services.persistence import SessionPersistence
from services.tick_scheduler import TickScheduler
from storage.snapshot import restore_coaching, session_from_snapshot


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TimerView:
    status: str
    session_id: str
    wall_clock_seconds: int
    focus_seconds: int
    break_seconds: int
    breaks_count: int
    coaching_enabled: bool
    preset_id: str
    focus_minutes: int
    break_minutes: int
    phase: Optional[str]
    phase_remaining_seconds: int
    sessions_completed: int
    target_sessions: int
    show_alert: bool
    alert_type: Optional[str]
    escalated: bool
    confirm_pending: bool


class SmartTimerService:
    """
    Orchestrates:
    - Session + BreakLedger (start / break / resume / finish / reset)
    - CoachingEngine (thresholds, alerts, escalation, confirmations)
    - SessionPersistence (debounced on tick, immediate on user actions)
    - TickScheduler (1 Hz driver, owns nothing)
    - Callbacks for UI
    """

    def __init__(
        self,
        persistence: SessionPersistence,
        timers: Any,
        notifier: NotificationSink,
        on_finalized: Optional[Callable[[FinalizedSessionRecord], None]] = None,
        clock: Callable[[], datetime] = utc_now,
        tick_interval_ms: int = 1000,
        reminder_delay_seconds: int = 180,
        extend_minutes: int = 5,
    ):
        self.persistence = persistence
        self.clock = clock

        self.session = Session()
        self.coaching = CoachingEngine(
            notifier,
            timers,
            reminder_delay_seconds=reminder_delay_seconds,
            extend_minutes=extend_minutes,
        )
        self.finalizer = SessionFinalizer(persistence, on_finalized)
        self.scheduler = TickScheduler(timers, self.tick, tick_interval_ms)

        self._on_tick: Optional[Callable[[TimerView], None]] = None
        self._on_state_change: Optional[Callable[[TimerView], None]] = None
        self._on_alert: Optional[Callable[[CoachingAlert], None]] = None
        self._on_confirm_prompt: Optional[Callable[[], None]] = None
        self._on_toast: Optional[Callable[[str], None]] = None

        self.coaching.set_on_alert(self._handle_alert)
        self.coaching.set_on_confirm_prompt(self._emit_confirm_prompt)
        self.coaching.set_on_toast(self._emit_toast)

    # ----- Callbacks -----
    def set_on_tick(self, fn: Callable[[TimerView], None]) -> None:
        self._on_tick = fn

    def set_on_state_change(self, fn: Callable[[TimerView], None]) -> None:
        self._on_state_change = fn

    def set_on_alert(self, fn: Callable[[CoachingAlert], None]) -> None:
        self._on_alert = fn

    def set_on_confirm_prompt(self, fn: Callable[[], None]) -> None:
        self._on_confirm_prompt = fn

    def set_on_toast(self, fn: Callable[[str], None]) -> None:
        self._on_toast = fn

    def _emit_tick(self, now: datetime) -> None:
        if self._on_tick:
            self._on_tick(self.view(now))

    def _emit_state_change(self, now: datetime) -> None:
        if self._on_state_change:
            self._on_state_change(self.view(now))

    def _emit_confirm_prompt(self) -> None:
        if self._on_confirm_prompt:
            self._on_confirm_prompt()

    def _emit_toast(self, message: str) -> None:
        if self._on_toast:
            self._on_toast(message)

    def _handle_alert(self, alert: CoachingAlert) -> None:
        self._persist(self.clock(), force=True)
        if self._on_alert:
            self._on_alert(alert)

    # ----- Read side -----
    def _session_phase(self) -> Optional[str]:
        if not self.session.is_active:
            return None
        return PHASE_BREAK if self.session.status == STATUS_ON_BREAK else PHASE_FOCUS

    def view(self, now: Optional[datetime] = None) -> TimerView:
        now = now or self.clock()
        reading = self.session.reading(now)
        cfg = self.coaching.config()
        coaching_on = self.coaching.active and self.session.is_active
        return TimerView(
            status=self.session.status,
            session_id=self.session.id,
            wall_clock_seconds=reading.wall_clock_seconds,
            focus_seconds=reading.focus_seconds,
            break_seconds=reading.total_break_seconds,
            breaks_count=len(self.session.ledger),
            coaching_enabled=self.coaching.enabled,
            preset_id=cfg.preset_id,
            focus_minutes=cfg.focus_minutes,
            break_minutes=cfg.break_minutes,
            phase=self.coaching.state.phase if coaching_on else None,
            phase_remaining_seconds=self.coaching.remaining_seconds(now) if coaching_on else 0,
            sessions_completed=self.coaching.sessions_completed,
            target_sessions=cfg.target_session_count,
            show_alert=self.coaching.show_alert,
            alert_type=self.coaching.alert_type,
            escalated=self.coaching.escalated,
            confirm_pending=self.coaching.confirm_pending,
        )

    # ----- Session controls -----
    def start(self) -> None:
        now = self.clock()
        if self.session.status == STATUS_FINISHED:
            self.session = Session()
        if not self.session.start(now):
            return
        if self.coaching.enabled:
            self.coaching.begin(PHASE_FOCUS, self.session.start_time)
        else:
            self.coaching.discard()
        logger.info(f"Session {self.session.id} started at {now.isoformat()}")
        self._after_action(now)
        self.scheduler.start()

    def take_break(self) -> None:
        now = self.clock()
        if not self.session.take_break(now):
            return
        self.coaching.on_phase_change(PHASE_BREAK, now)
        logger.info(f"Break started ({len(self.session.ledger)} so far)")
        self._after_action(now)

    def resume(self) -> None:
        now = self.clock()
        if not self.session.resume(now):
            return
        self.coaching.on_phase_change(PHASE_FOCUS, now)
        logger.info("Break ended, back to focus")
        self._after_action(now)

    def finish(self) -> FinalizedSessionRecord:
        """Raises SessionNotStartedError if nothing is running."""
        now = self.clock()
        record = self.finalizer.finish(self.session, now)
        self.coaching.discard()
        self.scheduler.stop()
        self._emit_state_change(now)
        return record

    def reset(self) -> None:
        now = self.clock()
        logger.info(f"Session {self.session.id} reset (status was {self.session.status})")
        self.session = Session()
        self.coaching.discard()
        self.finalizer.reset()
        self.scheduler.stop()
        self._emit_state_change(now)

    # ----- Coaching controls -----
    def toggle_coaching(self, enabled: Optional[bool] = None) -> None:
        now = self.clock()
        target = (not self.coaching.enabled) if enabled is None else bool(enabled)
        self.coaching.set_enabled(target, now, self._session_phase())
        logger.info(f"Coaching {'enabled' if target else 'disabled'}")
        self._after_action(now)

    def select_preset(self, preset_id: str) -> bool:
        ok = self.coaching.select_preset(preset_id)
        if ok:
            self._after_action(self.clock())
        return ok

    def set_custom_minutes(
        self, focus_minutes: Optional[int] = None, break_minutes: Optional[int] = None
    ) -> None:
        self.coaching.set_custom_minutes(focus_minutes, break_minutes)
        self._after_action(self.clock())

    def set_target_sessions(self, count: int) -> None:
        self.coaching.set_target_sessions(count)
        self._after_action(self.clock())

    def extend(self) -> None:
        now = self.clock()
        if self.coaching.extend(now):
            self._after_action(now)

    def dismiss_alert(self) -> None:
        self.coaching.dismiss()
        self._after_action(self.clock())

    def confirm_session(self, completed: bool) -> None:
        self.coaching.confirm_session(completed)
        self._after_action(self.clock())

    # ----- Tick + recovery -----
    def tick(self) -> None:
        """Called once per second by the TickScheduler."""
        if not self.session.is_active:
            return
        now = self.clock()
        self.coaching.check(now)
        self._persist(now)
        self._emit_tick(now)

    def recover(self) -> bool:
        """Resume an in-progress session from the last snapshot, if any."""
        snap = self.persistence.load()
        if snap is None:
            return False
        now = self.clock()
        self.session = session_from_snapshot(snap)
        restore_coaching(snap, self.coaching, now)
        reading = self.session.reading(now)
        logger.info(
            f"Recovered session {self.session.id} ({self.session.status}): "
            f"focus={reading.focus_seconds}s break={reading.total_break_seconds}s"
        )
        self.scheduler.start()
        self._emit_state_change(now)
        return True

    # ----- internals -----
    def _after_action(self, now: datetime) -> None:
        self._persist(now, force=True)
        self._emit_state_change(now)

    def _persist(self, now: datetime, force: bool = False) -> None:
        if not self.session.is_active:
            return
        self.persistence.save_session(self.session, self.coaching, now, force=force)
