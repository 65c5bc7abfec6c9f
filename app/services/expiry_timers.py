# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import datetime
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler


class APSchedulerTimers:
    """
    One-shot timers on top of an APScheduler scheduler. The scheduler must run
    in UTC because run times are naive UTC datetimes.
    """

    def __init__(self, scheduler: BaseScheduler, prefix: str = "session-expiry"):
        self.scheduler = scheduler
        self.prefix = prefix

    def schedule(self, key, run_at: datetime, callback: Callable[[], None]):
        return self.scheduler.add_job(
            callback,
            trigger="date",
            run_date=run_at,
            id=f"{self.prefix}-{key}",
            replace_existing=True,
            misfire_grace_time=None,   # Late is better than never
        )

    def cancel(self, handle) -> None:
        try:
            handle.remove()
        except JobLookupError:
            pass  # Already fired
