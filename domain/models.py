# -*- coding: utf-8 -*-

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# Session status values (also the persisted spelling)
STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_ON_BREAK = "onBreak"
STATUS_FINISHED = "finished"

PHASE_FOCUS = "focus"
PHASE_BREAK = "break"

# alert types: "break" = focus ended, "resume" = break ended
ALERT_BREAK = "break"
ALERT_RESUME = "resume"

# sound hints for the notification sink
SOUND_FOCUS = "focus"
SOUND_BREAK = "break"


def iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


@dataclass
class BreakInterval:
    id: str
    start: datetime
    end: Optional[datetime] = None
    duration: Optional[int] = None  # seconds, set together with end

    @property
    def is_open(self) -> bool:
        return self.end is None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "start": iso(self.start)}
        if self.end is not None:
            d["end"] = iso(self.end)
            d["duration"] = self.duration
        return d


@dataclass(frozen=True)
class Preset:
    id: str
    label: str
    focus_minutes: int
    break_minutes: int
    recommended: bool = False


CUSTOM_PRESET_ID = "custom"

PRESETS: List[Preset] = [
    Preset("classic", "Classic", 25, 5, recommended=True),
    Preset("sprint", "Sprint", 15, 3),
    Preset("deep-work", "Deep Work", 45, 15, recommended=True),
    Preset("study-block", "Study Block", 50, 10, recommended=True),
    Preset("power-hour", "Power Hour", 60, 15),
    Preset("quick-sprint", "Quick Sprint", 10, 2),
    Preset("extended", "Extended", 90, 20),
    Preset("focus-burst", "Focus Burst", 20, 4),
    Preset("flow-state", "Flow State", 75, 15),
    Preset("balanced", "Balanced", 30, 10),
    Preset(CUSTOM_PRESET_ID, "Custom", 25, 5),
]

DEFAULT_PRESET_ID = "classic"
DEFAULT_TARGET_SESSIONS = 4


def find_preset(preset_id: Optional[str]) -> Optional[Preset]:
    for p in PRESETS:
        if p.id == preset_id:
            return p
    return None


@dataclass(frozen=True)
class CoachingConfig:
    preset_id: str
    focus_minutes: int
    break_minutes: int
    target_session_count: int

    @property
    def focus_seconds(self) -> int:
        return self.focus_minutes * 60

    @property
    def break_seconds(self) -> int:
        return self.break_minutes * 60


@dataclass
class CoachingPhaseState:
    phase: str  # "focus" | "break"
    phase_start: datetime
    sessions_completed: int = 0
    alert_fired: bool = False


@dataclass(frozen=True)
class CoachingAlert:
    type: str  # "break" | "resume"
    title: str
    body: str
    sound_hint: str
    escalated: bool = False


@dataclass(frozen=True)
class FinalizedSessionRecord:
    session_id: str
    start_time: datetime
    end_time: datetime
    total_focus_seconds: int
    total_break_seconds: int
    breaks: List[BreakInterval] = field(default_factory=list)

    @property
    def breaks_count(self) -> int:
        return len(self.breaks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "startTime": iso(self.start_time),
            "endTime": iso(self.end_time),
            "totalFocusSeconds": self.total_focus_seconds,
            "totalBreakSeconds": self.total_break_seconds,
            "breaks": [b.to_dict() for b in self.breaks],
            "breaksCount": self.breaks_count,
        }
