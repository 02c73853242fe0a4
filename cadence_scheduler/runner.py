"""
Recurring task runner using APScheduler.

Every registered job is armed as a one-shot ``date`` job. When it fires,
the runner executes the job and, unless shutdown has been requested,
arms a new one-shot job one cadence interval later. The chain continues
until ``shutdown()``.

- Bounded worker pool shared by all jobs
- Failing jobs are logged and keep firing on schedule
- Successive firings of the same job never overlap
- Cooperative shutdown: nothing starts once shutdown is requested
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    EVENT_JOB_ADDED,
    EVENT_JOB_REMOVED
)

from cadence_scheduler.cadence import Cadence, interval, is_cadence, next_delay
from cadence_scheduler.config import SchedulerConfig, cadence_from_config
from cadence_scheduler.jobs import CommandJob, Job, JobExecutionError

logger = logging.getLogger(__name__)


@dataclass
class ScheduledEntry:
    """A job paired with its cadence and the currently armed timer."""
    id: str
    name: str
    job: Job
    cadence: Cadence
    cancel_token: threading.Event = field(repr=False)
    handle: Any = field(default=None, repr=False)  # apscheduler.job.Job
    delay: Optional[timedelta] = None
    due_at: Optional[datetime] = None


class RecurringTaskRunner:
    """
    Runs jobs on hourly, daily or weekly cadences until shut down.

    Uses an APScheduler background scheduler with a thread pool
    executor. Nothing is persisted; all entries live in memory.
    """

    def __init__(
        self,
        max_workers: int = 3,
        clock: Optional[Callable[[], datetime]] = None,
        error_handler: Optional[Callable[[JobExecutionError], None]] = None
    ):
        """
        Initialize and start the runner.

        Args:
            max_workers: Maximum number of concurrent job executions
            clock: Returns the current local civil time (default: datetime.now)
            error_handler: Called with a JobExecutionError for every failed execution
        """
        self.clock = clock or datetime.now
        self.error_handler = error_handler
        self._shutdown = threading.Event()
        self._lock = threading.Lock()
        self._worker = threading.local()  # Set while a worker thread runs a firing
        self._entries: Dict[str, ScheduledEntry] = {}

        executors = {
            'default': ThreadPoolExecutor(max_workers)
        }

        job_defaults = {
            'coalesce': True,
            'max_instances': 1,
            'misfire_grace_time': None  # A late one-shot still runs
        }

        self.scheduler = BackgroundScheduler(
            executors=executors,
            job_defaults=job_defaults
        )

        self._setup_event_listeners()
        self.scheduler.start()

        logger.info(f"Recurring task runner started with {max_workers} worker(s)")

    def _setup_event_listeners(self):
        """Setup APScheduler event listeners for logging."""

        def job_error_listener(event):
            logger.error(
                f"Job '{event.job_id}' raised exception: {event.exception}",
                exc_info=event.exception
            )

        def job_missed_listener(event):
            logger.warning(f"Job '{event.job_id}' missed scheduled run time")

        def job_added_listener(event):
            logger.debug(f"Timer '{event.job_id}' armed")

        def job_removed_listener(event):
            logger.debug(f"Timer '{event.job_id}' removed")

        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)
        self.scheduler.add_listener(job_missed_listener, EVENT_JOB_MISSED)
        self.scheduler.add_listener(job_added_listener, EVENT_JOB_ADDED)
        self.scheduler.add_listener(job_removed_listener, EVENT_JOB_REMOVED)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def schedule(self, job: Job, cadence: Cadence, name: Optional[str] = None) -> str:
        """
        Register a job to run on a cadence.

        Args:
            job: Object exposing a zero-argument execute()
            cadence: Hourly, Daily or Weekly cadence
            name: Name used in log messages (default: job's name attribute or class name)

        Returns:
            Entry ID

        Raises:
            TypeError: If job has no execute() or cadence is not a cadence
            RuntimeError: If the runner has been shut down
        """
        if not callable(getattr(job, 'execute', None)):
            raise TypeError(f"Job must provide an execute() method, got {job!r}")
        if not is_cadence(cadence):
            raise TypeError(f"Unsupported cadence: {cadence!r}")

        entry = ScheduledEntry(
            id=uuid.uuid4().hex[:12],
            name=name or getattr(job, 'name', None) or type(job).__name__,
            job=job,
            cadence=cadence,
            cancel_token=self._shutdown
        )

        delay = next_delay(cadence, self.clock())

        with self._lock:
            if self._shutdown.is_set():
                raise RuntimeError("Runner has been shut down")
            self._entries[entry.id] = entry

        try:
            self._arm(entry, delay)
        except Exception:
            with self._lock:
                self._entries.pop(entry.id, None)
            raise

        logger.info(f"[{entry.name}] Scheduled {cadence}, first run in {delay}")
        return entry.id

    def _arm(self, entry: ScheduledEntry, delay: timedelta):
        """Arm a one-shot execution of ``entry`` after ``delay``."""
        due_at = datetime.now(self.scheduler.timezone) + delay
        entry.delay = delay
        entry.due_at = due_at
        entry.handle = self.scheduler.add_job(
            self._fire,
            'date',
            run_date=due_at,
            args=[entry],
            id=f"{entry.id}:{uuid.uuid4().hex[:8]}",
            name=entry.name
        )

    def _fire(self, entry: ScheduledEntry):
        """Execute one firing of ``entry`` and re-arm it."""
        if entry.cancel_token.is_set():
            logger.debug(f"[{entry.name}] Shutdown requested, skipping run")
            return

        logger.debug(f"[{entry.name}] Running")
        self._worker.firing = True
        try:
            entry.job.execute()
        except Exception as e:
            error = JobExecutionError(f"Error executing job '{entry.name}': {e}", entry.name)
            error.__cause__ = e
            self._report(error)
        finally:
            self._worker.firing = False

        if entry.cancel_token.is_set():
            logger.debug(f"[{entry.name}] Shutdown requested, not re-arming")
            return

        self._arm(entry, interval(entry.cadence))
        logger.debug(f"[{entry.name}] Next run at {entry.due_at.isoformat()}")

    def _report(self, error: JobExecutionError):
        logger.error(str(error), exc_info=error.__cause__)
        if self.error_handler:
            try:
                self.error_handler(error)
            except Exception as e:
                logger.error(f"Error handler failed: {e}", exc_info=True)

    def load_jobs_from_config(self, config: SchedulerConfig) -> int:
        """
        Schedule every enabled job from a configuration.

        A job with an invalid schedule is logged and skipped; the others
        are still scheduled.

        Args:
            config: Scheduler configuration

        Returns:
            Number of jobs scheduled
        """
        enabled_jobs = config.get_enabled_jobs()
        logger.info(f"Loading {len(enabled_jobs)} enabled job(s) from configuration")

        count = 0
        for job_config in enabled_jobs:
            try:
                cadence = cadence_from_config(job_config.schedule)
            except ValueError as e:
                logger.error(f"Failed to load job '{job_config.name}': {e}")
                continue

            job = CommandJob(
                name=job_config.name,
                command=job_config.command,
                timeout=job_config.timeout,
                working_dir=job_config.working_dir
            )
            self.schedule(job, cadence, name=job_config.name)
            count += 1

        return count

    def get_entry(self, entry_id: str) -> Optional[ScheduledEntry]:
        """Get a live entry by ID."""
        with self._lock:
            return self._entries.get(entry_id)

    def get_jobs(self) -> List[Dict[str, Any]]:
        """
        Get list of all scheduled entries.

        Returns:
            List of entry information dictionaries
        """
        with self._lock:
            entries = list(self._entries.values())

        return [
            {
                'id': entry.id,
                'name': entry.name,
                'cadence': str(entry.cadence),
                'next_run': entry.due_at.isoformat() if entry.due_at else None
            }
            for entry in entries
        ]

    def is_running(self) -> bool:
        """Check if the runner accepts and fires jobs."""
        return self.scheduler.running and not self._shutdown.is_set()

    def shutdown(self, wait: bool = True):
        """
        Stop all scheduling. Safe to call more than once.

        Args:
            wait: If True, wait for executions already in progress to complete
                  (ignored when called from inside a running job)
        """
        with self._lock:
            if self._shutdown.is_set():
                logger.debug("Runner already shut down")
                return
            self._shutdown.set()
            self._entries.clear()

        # A worker thread cannot wait for its own pool to drain
        if getattr(self._worker, 'firing', False):
            wait = False

        self.scheduler.remove_all_jobs()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        logger.info("Scheduler shut down.")
