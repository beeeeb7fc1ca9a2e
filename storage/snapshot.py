# -*- coding: utf-8 -*-
"""
Persisted timer snapshot schema.

Shape (camelCase on disk, ISO-8601 timestamps):

    { startTime, breaks: [{id, start, end?, duration?}], isOnBreak, status,
      lastSavedAt, pomodoro: { enabled, presetId, phase, phaseStart,
      sessionsCompleted, targetSessions, customFocus, customBreak,
      alertFired, showAlert, alertType, ... } }

Anything that fails validation is discarded as a whole by the caller.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.break_ledger import BreakLedger
from core.coaching_engine import CoachingEngine
from core.session import Session
from core.session_clock import seconds_between
from domain.models import (
    DEFAULT_PRESET_ID,
    DEFAULT_TARGET_SESSIONS,
    STATUS_ON_BREAK,
    STATUS_RUNNING,
    BreakInterval,
    CoachingPhaseState,
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BreakModel(_Model):
    id: str
    start: datetime
    end: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)

    @field_validator("start", "end")
    @classmethod
    def aware_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)

    @model_validator(mode="after")
    def end_and_duration_together(self) -> "BreakModel":
        if (self.end is None) != (self.duration is None):
            raise ValueError("break end and duration must be set together")
        if self.end is not None and self.end < self.start:
            raise ValueError("break ends before it starts")
        if self.end is not None and self.duration != seconds_between(self.start, self.end):
            raise ValueError("break duration does not match its start and end")
        return self


class PomodoroModel(_Model):
    enabled: bool = False
    preset_id: str = Field(default=DEFAULT_PRESET_ID, alias="presetId")
    phase: Literal["focus", "break"] = "focus"
    phase_start: Optional[datetime] = Field(default=None, alias="phaseStart")
    sessions_completed: int = Field(default=0, ge=0, alias="sessionsCompleted")
    target_sessions: int = Field(default=DEFAULT_TARGET_SESSIONS, ge=0, alias="targetSessions")
    custom_focus: int = Field(default=25, ge=0, alias="customFocus")
    custom_break: int = Field(default=5, ge=0, alias="customBreak")
    alert_fired: bool = Field(default=False, alias="alertFired")
    show_alert: bool = Field(default=False, alias="showAlert")
    alert_type: Optional[Literal["break", "resume"]] = Field(default=None, alias="alertType")
    alert_fired_at: Optional[datetime] = Field(default=None, alias="alertFiredAt")
    escalated: bool = False
    confirm_pending: bool = Field(default=False, alias="confirmPending")
    target_announced: bool = Field(default=False, alias="targetAnnounced")

    @field_validator("phase_start", "alert_fired_at")
    @classmethod
    def aware_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)


class SnapshotModel(_Model):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    start_time: datetime = Field(alias="startTime")
    breaks: List[BreakModel] = Field(default_factory=list)
    is_on_break: bool = Field(default=False, alias="isOnBreak")
    status: Literal["running", "onBreak"]
    last_saved_at: Optional[datetime] = Field(default=None, alias="lastSavedAt")
    pomodoro: Optional[PomodoroModel] = None

    @field_validator("start_time", "last_saved_at")
    @classmethod
    def aware_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)

    @model_validator(mode="after")
    def consistent_breaks(self) -> "SnapshotModel":
        # older files only ever wrote status "running" plus the isOnBreak flag
        if self.status == STATUS_RUNNING and self.is_on_break:
            self.status = STATUS_ON_BREAK

        open_idx = [i for i, b in enumerate(self.breaks) if b.end is None]
        if len(open_idx) > 1:
            raise ValueError("more than one open break")
        if open_idx and open_idx[0] != len(self.breaks) - 1:
            raise ValueError("open break is not the last one")
        if self.breaks and self.breaks[0].start < self.start_time:
            raise ValueError("break starts before the session")
        for prev, cur in zip(self.breaks, self.breaks[1:]):
            if cur.start < prev.end:
                raise ValueError("breaks overlap or are out of order")

        last_open = bool(open_idx)
        if (self.status == STATUS_ON_BREAK) != last_open:
            raise ValueError("status does not match the open break")
        self.is_on_break = last_open
        return self


# ----- session + coaching <-> snapshot -----

def build_snapshot(session: Session, engine: CoachingEngine, now: datetime) -> Dict[str, Any]:
    state = engine.state
    pomodoro = PomodoroModel(
        enabled=engine.enabled,
        preset_id=engine.preset_id,
        phase=state.phase if state else "focus",
        phase_start=state.phase_start if state else None,
        sessions_completed=engine.sessions_completed,
        target_sessions=engine.target_sessions,
        custom_focus=engine.custom_focus,
        custom_break=engine.custom_break,
        alert_fired=bool(state and state.alert_fired),
        show_alert=engine.show_alert,
        alert_type=engine.alert_type,
        alert_fired_at=engine.alert_fired_at,
        escalated=engine.escalated,
        confirm_pending=engine.confirm_pending,
        target_announced=engine.target_announced,
    )
    snap = SnapshotModel(
        session_id=session.id,
        start_time=session.start_time,
        breaks=[
            BreakModel(id=b.id, start=b.start, end=b.end, duration=b.duration)
            for b in session.ledger.breaks
        ],
        is_on_break=session.status == STATUS_ON_BREAK,
        status=session.status,
        last_saved_at=now,
        pomodoro=pomodoro,
    )
    return snap.model_dump(mode="json", by_alias=True)


def parse_snapshot(raw: Dict[str, Any]) -> SnapshotModel:
    """Raises pydantic.ValidationError on anything malformed."""
    return SnapshotModel.model_validate(raw)


def session_from_snapshot(snap: SnapshotModel) -> Session:
    ledger = BreakLedger(
        BreakInterval(id=b.id, start=b.start, end=b.end, duration=b.duration)
        for b in snap.breaks
    )
    return Session(
        session_id=snap.session_id,
        start_time=snap.start_time,
        status=snap.status,
        ledger=ledger,
    )


def restore_coaching(snap: SnapshotModel, engine: CoachingEngine, now: datetime) -> None:
    p = snap.pomodoro or PomodoroModel()
    session_phase = "break" if snap.status == STATUS_ON_BREAK else "focus"

    state = None
    if p.phase_start is not None:
        state = CoachingPhaseState(
            phase=p.phase,
            phase_start=p.phase_start,
            sessions_completed=p.sessions_completed,
            alert_fired=p.alert_fired,
        )
        if state.phase != session_phase:
            # phase must mirror the session; resync as a fresh phase
            state = CoachingPhaseState(
                phase=session_phase,
                phase_start=now,
                sessions_completed=p.sessions_completed,
            )

    engine.restore(
        enabled=p.enabled,
        preset_id=p.preset_id,
        custom_focus=p.custom_focus or 25,
        custom_break=p.custom_break or 5,
        target_sessions=p.target_sessions or DEFAULT_TARGET_SESSIONS,
        state=state,
        show_alert=p.show_alert,
        alert_type=p.alert_type,
        alert_fired_at=p.alert_fired_at,
        confirm_pending=p.confirm_pending,
        target_announced=p.target_announced,
        escalated=p.escalated,
        now=now,
    )
