"""Periodic snapshot export on a background thread.

Each writer gets its own ``schedule`` job, so term and tag snapshots run on
independent timers and may drift relative to each other.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import schedule

from socialpulse.errors import WriteError
from socialpulse.export.snapshot_writer import SnapshotWriter

logger = logging.getLogger(__name__)


@dataclass
class SnapshotJob:
    writer: SnapshotWriter
    path: str
    interval_seconds: float
    last_written_at: Optional[datetime] = None
    last_error: Optional[WriteError] = None


class SnapshotScheduler:
    def __init__(self, tick_seconds: float = 0.5):
        self.tick_seconds = tick_seconds
        self.jobs: List[SnapshotJob] = []
        self._scheduler = schedule.Scheduler()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        # one write at a time, so stop() can wait for an in-flight write
        self._write_lock = threading.Lock()

    def add(self, writer: SnapshotWriter, path, interval_seconds: float) -> SnapshotJob:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        job = SnapshotJob(writer=writer, path=os.fspath(path), interval_seconds=interval_seconds)
        self.jobs.append(job)
        self._scheduler.every(interval_seconds).seconds.do(self.write, job)
        return job

    def write(self, job: SnapshotJob) -> bool:
        """Write one snapshot; a failure is logged and the job keeps its schedule."""
        with self._write_lock:
            try:
                rows = job.writer.write_snapshot(job.path)
            except WriteError as e:
                job.last_error = e
                logger.error(f"Snapshot write failed for {job.path}: {e}")
                return False
            job.last_written_at = datetime.now()
            job.last_error = None
            logger.info(f"{job.writer.label.capitalize()} statistics file written ({rows} rows): {job.path}")
            return True

    def run_pending(self) -> None:
        self._scheduler.run_pending()

    def flush(self) -> int:
        """Write every registered snapshot now; returns how many succeeded."""
        return sum(1 for job in self.jobs if self.write(job))

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="snapshot-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Snapshot scheduler started with {len(self.jobs)} job(s)")

    def _run(self) -> None:
        while not self._stop.wait(self.tick_seconds):
            self._scheduler.run_pending()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Snapshot scheduler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
