from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from stockledger.core.errors import LedgerError

logger = logging.getLogger(__name__)

_SCHEDULED_JOB_EXCEPTIONS = (LedgerError, SQLAlchemyError, OSError, RuntimeError, ValueError)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScheduledJob:
    name: str
    interval: timedelta
    func: Callable[[], object]
    run_in_thread: bool = True
    next_run: Optional[datetime] = None


class Scheduler:
    def __init__(self, *, poll_seconds: int = 1):
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._poll_seconds = max(1, int(poll_seconds))

    @property
    def jobs(self) -> list[ScheduledJob]:
        with self._lock:
            return list(self._jobs)

    def add_interval_job(
        self,
        name: str,
        interval_seconds: int,
        func: Callable[[], object],
        *,
        run_immediately: bool = False,
        run_in_thread: bool = True,
    ) -> ScheduledJob:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        job = ScheduledJob(
            name=name,
            interval=timedelta(seconds=interval_seconds),
            func=func,
            run_in_thread=run_in_thread,
        )
        job.next_run = _now() if run_immediately else _now() + job.interval
        with self._lock:
            self._jobs.append(job)
        return job

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("Scheduler started with %d job(s).", len(self._jobs))

    def stop(self) -> None:
        if not self._thread:
            return
        self._stop_event.set()
        self._thread.join(timeout=self._poll_seconds + 1)
        self._thread = None
        logger.info("Scheduler stopped.")

    def run_pending(self) -> None:
        now = _now()
        for job in self.jobs:
            if job.next_run and now >= job.next_run:
                job.next_run = now + job.interval
                self._run_job(job)

    def _run_job(self, job: ScheduledJob) -> None:
        logger.info("Running scheduled job: %s", job.name)
        if job.run_in_thread:
            threading.Thread(
                target=self._safe_run,
                args=(job,),
                name=f"job-{job.name}",
                daemon=True,
            ).start()
        else:
            self._safe_run(job)

    @staticmethod
    def _safe_run(job: ScheduledJob) -> None:
        try:
            job.func()
        except _SCHEDULED_JOB_EXCEPTIONS:
            logger.exception("Scheduled job failed: %s", job.name)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(self._poll_seconds)
