# -*- coding: utf-8 -*-

import tkinter as tk
from tkinter import ttk

from services.stats_service import StatsService
from services.timer_service import SmartTimerService
from ui.timer_widget import TimerWidget


def _fmt_hms(sec: int) -> str:
    sec = max(0, int(sec))
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    if h > 0:
        return f"{h}h {m:02d}m"
    return f"{m}m {s:02d}s"


class MainWindow:
    def __init__(self, root: tk.Tk, timer_service: SmartTimerService, stats_service: StatsService):
        self.root = root
        self.timer_service = timer_service
        self.stats_service = stats_service

        self.root.title("Smart Timer")
        self.root.geometry("520x560")
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._build_ui()
        self._refresh_stats()

    def _build_ui(self):
        outer = ttk.Frame(self.root, padding=10)
        outer.pack(fill="both", expand=True)
        outer.columnconfigure(0, weight=1)

        self.timer = TimerWidget(
            outer,
            timer_service=self.timer_service,
            on_request_refresh=self._refresh_stats,
        )
        self.timer.grid(row=0, column=0, sticky="ew")

        stats = ttk.Labelframe(outer, text="Today", padding=10)
        stats.grid(row=1, column=0, sticky="nsew", pady=(10, 0))
        self.stats_var = tk.StringVar(value="")
        ttk.Label(stats, textvariable=self.stats_var, font=("Sans", 11)).grid(
            row=0, column=0, sticky="w"
        )

    def run(self):
        self.root.mainloop()

    def _refresh_stats(self):
        focus = self.stats_service.total_today_focus_sec()
        brk = self.stats_service.total_today_break_sec()
        self.stats_var.set(f"Finished focus: {_fmt_hms(focus)}\nFinished breaks: {_fmt_hms(brk)}")

    def _on_close(self):
        # keep the snapshot: the session resumes on next launch
        self.timer_service.scheduler.stop()
        self.root.destroy()
