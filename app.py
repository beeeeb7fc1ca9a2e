#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import tkinter as tk

from loguru import logger

from core.logger import setup_logger
from core.settings import get_settings
from services.notifications import DesktopNotificationSink, LogNotificationSink
from services.persistence import SessionPersistence
from services.stats_service import StatsService
from services.timer_service import SmartTimerService
from storage.db import Database
from storage.repos import FinishedSessionRepo
from storage.snapshot_store import open_snapshot_store
from ui.main_window import MainWindow


def main():
    settings = get_settings()
    setup_logger(level=settings.log_level, log_file=settings.log_file)

    db = Database(db_path=settings.db_path)
    db.init_schema()

    store = open_snapshot_store(settings.snapshot_backend, db=db, path=settings.snapshot_path)
    persistence = SessionPersistence(store, min_interval_seconds=settings.save_interval_seconds)
    journal = FinishedSessionRepo(db)

    notifier = DesktopNotificationSink() if settings.desktop_notifications else LogNotificationSink()

    root = tk.Tk()
    timer_service = SmartTimerService(
        persistence,
        timers=root,
        notifier=notifier,
        on_finalized=journal.record,
        tick_interval_ms=settings.tick_interval_ms,
        reminder_delay_seconds=settings.reminder_delay_seconds,
        extend_minutes=settings.extend_minutes,
    )
    app = MainWindow(root, timer_service, StatsService(db))

    if timer_service.recover():
        logger.info("Resumed in-progress session from snapshot")

    try:
        app.run()
    finally:
        db.close()


if __name__ == "__main__":
    main()
