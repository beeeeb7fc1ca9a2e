# -*- coding: utf-8 -*-

import tkinter as tk
from tkinter import messagebox, ttk
from typing import Callable

from domain.errors import TimerError
from domain.models import (
    ALERT_BREAK,
    CUSTOM_PRESET_ID,
    PRESETS,
    STATUS_FINISHED,
    STATUS_IDLE,
    STATUS_ON_BREAK,
    STATUS_RUNNING,
    CoachingAlert,
    Preset,
)
from services.timer_service import SmartTimerService, TimerView


def format_time(seconds: int) -> str:
    seconds = max(0, int(seconds))
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_countdown(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def _preset_label(preset: Preset) -> str:
    label = f"{preset.label} ({preset.focus_minutes}/{preset.break_minutes})"
    return f"{label} \u2605" if preset.recommended else label


class TimerWidget(ttk.Frame):
    def __init__(
        self,
        master,
        timer_service: SmartTimerService,
        on_request_refresh: Callable[[], None],
    ):
        super().__init__(master)

        self.timer_service = timer_service
        self.on_request_refresh = on_request_refresh

        self._preset_labels = {_preset_label(p): p.id for p in PRESETS}

        self._build_ui()

        # wire callbacks from service -> widget UI
        self.timer_service.set_on_tick(self._render)
        self.timer_service.set_on_state_change(self._on_state_change)
        self.timer_service.set_on_alert(self._on_alert)
        self.timer_service.set_on_confirm_prompt(self._on_confirm_prompt)
        self.timer_service.set_on_toast(self._on_toast)

        self._on_state_change(self.timer_service.view())

    def _build_ui(self):
        self.columnconfigure(0, weight=1)

        self.label_var = tk.StringVar(value="Ready")
        self.time_var = tk.StringVar(value="00:00:00")
        self.info_var = tk.StringVar(value="")
        self.coach_var = tk.StringVar(value="")

        ttk.Label(self, text="Smart Timer", font=("Sans", 12, "bold")).grid(
            row=0, column=0, sticky="w", pady=(0, 6)
        )
        ttk.Label(self, textvariable=self.label_var).grid(row=1, column=0, sticky="w")
        ttk.Label(self, textvariable=self.time_var, font=("Sans", 32, "bold")).grid(
            row=2, column=0, sticky="w", pady=(8, 4)
        )
        ttk.Label(self, textvariable=self.info_var).grid(row=3, column=0, sticky="w")

        btns = ttk.Frame(self)
        btns.grid(row=4, column=0, sticky="w", pady=(8, 8))

        self.start_btn = ttk.Button(btns, text="Start", command=self.timer_service.start)
        self.break_btn = ttk.Button(btns, text="Take Break", command=self.timer_service.take_break)
        self.resume_btn = ttk.Button(btns, text="Resume", command=self.timer_service.resume)
        self.finish_btn = ttk.Button(btns, text="Finish", command=self._finish)
        self.reset_btn = ttk.Button(btns, text="Reset", command=self._reset)
        for i, b in enumerate(
            (self.start_btn, self.break_btn, self.resume_btn, self.finish_btn, self.reset_btn)
        ):
            b.grid(row=0, column=i, padx=(0, 6))

        # coaching controls
        coach = ttk.Labelframe(self, text="Pomodoro coach", padding=8)
        coach.grid(row=5, column=0, sticky="ew")
        coach.columnconfigure(1, weight=1)

        self.coach_on_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(
            coach, text="Enabled", variable=self.coach_on_var, command=self._toggle_coaching
        ).grid(row=0, column=0, sticky="w")

        self.preset_var = tk.StringVar()
        preset_box = ttk.Combobox(
            coach,
            textvariable=self.preset_var,
            values=list(self._preset_labels),
            state="readonly",
            width=24,
        )
        preset_box.grid(row=0, column=1, sticky="w", padx=(8, 0))
        preset_box.bind("<<ComboboxSelected>>", self._select_preset)

        ttk.Label(coach, text="Custom focus/break (min)").grid(row=1, column=0, sticky="w", pady=(6, 0))
        custom = ttk.Frame(coach)
        custom.grid(row=1, column=1, sticky="w", padx=(8, 0), pady=(6, 0))
        self.custom_focus_var = tk.IntVar(value=25)
        self.custom_break_var = tk.IntVar(value=5)
        ttk.Spinbox(custom, from_=1, to=180, width=5, textvariable=self.custom_focus_var,
                    command=self._set_custom).pack(side="left")
        ttk.Spinbox(custom, from_=1, to=60, width=5, textvariable=self.custom_break_var,
                    command=self._set_custom).pack(side="left", padx=(6, 0))

        ttk.Label(coach, text="Target pomodoros").grid(row=2, column=0, sticky="w", pady=(6, 0))
        self.target_var = tk.IntVar(value=4)
        ttk.Spinbox(coach, from_=1, to=12, width=5, textvariable=self.target_var,
                    command=self._set_target).grid(row=2, column=1, sticky="w", padx=(8, 0), pady=(6, 0))

        ttk.Label(coach, textvariable=self.coach_var).grid(row=3, column=0, columnspan=2, sticky="w", pady=(6, 0))

        # alert banner (hidden until an alert fires)
        self.alert_frame = ttk.Labelframe(self, text="Alert", padding=8)
        self.alert_title_var = tk.StringVar()
        self.alert_body_var = tk.StringVar()
        ttk.Label(self.alert_frame, textvariable=self.alert_title_var, font=("Sans", 11, "bold")).grid(
            row=0, column=0, columnspan=4, sticky="w"
        )
        ttk.Label(self.alert_frame, textvariable=self.alert_body_var, wraplength=380).grid(
            row=1, column=0, columnspan=4, sticky="w", pady=(4, 6)
        )
        self.alert_action_btn = ttk.Button(self.alert_frame, text="Take Break", command=self._alert_action)
        self.alert_action_btn.grid(row=2, column=0, padx=(0, 6))
        ttk.Button(self.alert_frame, text="+5 min", command=self.timer_service.extend).grid(
            row=2, column=1, padx=(0, 6)
        )
        ttk.Button(self.alert_frame, text="Dismiss", command=self.timer_service.dismiss_alert).grid(
            row=2, column=2
        )

    # ----- actions -----
    def _finish(self):
        try:
            self.timer_service.finish()
        except TimerError as e:
            self.info_var.set(str(e))
            return
        self.on_request_refresh()

    def _reset(self):
        if self.timer_service.view().status in (STATUS_RUNNING, STATUS_ON_BREAK):
            if not messagebox.askyesno("Reset", "Abandon the current session?"):
                return
        self.timer_service.reset()

    def _toggle_coaching(self):
        self.timer_service.toggle_coaching(self.coach_on_var.get())

    def _select_preset(self, event=None):
        preset_id = self._preset_labels.get(self.preset_var.get())
        if preset_id:
            self.timer_service.select_preset(preset_id)

    def _set_custom(self):
        try:
            self.timer_service.set_custom_minutes(
                self.custom_focus_var.get(), self.custom_break_var.get()
            )
        except tk.TclError:
            pass  # half-typed spinbox value

    def _set_target(self):
        try:
            self.timer_service.set_target_sessions(self.target_var.get())
        except tk.TclError:
            pass

    def _alert_action(self):
        view = self.timer_service.view()
        if view.alert_type == ALERT_BREAK:
            self.timer_service.take_break()
        else:
            self.timer_service.resume()

    # ----- service callbacks -----
    def _on_state_change(self, view: TimerView):
        self._sync_settings(view)
        self._render(view)
        self.on_request_refresh()

    def _on_alert(self, alert: CoachingAlert):
        self.alert_title_var.set(alert.title)
        self.alert_body_var.set(alert.body)
        self.alert_action_btn.configure(text="Take Break" if alert.type == ALERT_BREAK else "Resume Focus")
        self._render(self.timer_service.view())

    def _on_confirm_prompt(self):
        # ask once the resume action has finished applying
        self.after_idle(self._ask_confirm)

    def _ask_confirm(self):
        done = messagebox.askyesno(
            "Pomodoro", "Did you complete that focus session without drifting off task?"
        )
        self.timer_service.confirm_session(done)

    def _on_toast(self, message: str):
        self.info_var.set(message)

    # ----- render -----
    def _render(self, view: TimerView):
        on_break = view.status == STATUS_ON_BREAK
        self.time_var.set(format_time(view.break_seconds if on_break else view.focus_seconds))
        if view.status == STATUS_RUNNING:
            self.label_var.set("Working")
        elif on_break:
            self.label_var.set("On Break")
        elif view.status == STATUS_FINISHED:
            self.label_var.set("Finished")
        else:
            self.label_var.set("Ready")

        if view.status in (STATUS_RUNNING, STATUS_ON_BREAK):
            self.info_var.set(
                f"Focus {format_time(view.focus_seconds)} | Break {format_time(view.break_seconds)}"
                f" | {view.breaks_count} break(s)"
            )

        if view.phase:
            self.coach_var.set(
                f"{view.phase.title()} phase: {format_countdown(view.phase_remaining_seconds)} left"
                f" | {view.sessions_completed}/{view.target_sessions} pomodoros"
            )
        else:
            self.coach_var.set("")

        if view.show_alert:
            if not self.alert_title_var.get():
                # restored from a snapshot, no alert event seen yet
                self.alert_title_var.set(
                    "⏰ Focus time is up!" if view.alert_type == ALERT_BREAK else "☕ Break is over!"
                )
                self.alert_action_btn.configure(
                    text="Take Break" if view.alert_type == ALERT_BREAK else "Resume Focus"
                )
            if view.escalated:
                self.alert_frame.configure(text="Reminder")
            else:
                self.alert_frame.configure(text="Alert")
            self.alert_frame.grid(row=6, column=0, sticky="ew", pady=(8, 0))
        else:
            self.alert_frame.grid_remove()

        self._update_buttons(view)

    def _sync_settings(self, view: TimerView):
        # not on tick: a half-typed spinbox value would be overwritten
        self.coach_on_var.set(view.coaching_enabled)
        for label, pid in self._preset_labels.items():
            if pid == view.preset_id:
                self.preset_var.set(label)
        if view.preset_id == CUSTOM_PRESET_ID:
            self.custom_focus_var.set(view.focus_minutes)
            self.custom_break_var.set(view.break_minutes)
        self.target_var.set(view.target_sessions)

    def _update_buttons(self, view: TimerView):
        def enable(btn, on):
            btn.state(["!disabled"] if on else ["disabled"])

        enable(self.start_btn, view.status in (STATUS_IDLE, STATUS_FINISHED))
        enable(self.break_btn, view.status == STATUS_RUNNING)
        enable(self.resume_btn, view.status == STATUS_ON_BREAK)
        enable(self.finish_btn, view.status in (STATUS_RUNNING, STATUS_ON_BREAK))
        enable(self.reset_btn, view.status != STATUS_IDLE)
