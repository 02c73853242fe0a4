"""
Cadence Scheduler

A process-local recurring task scheduler. Jobs run on hourly, daily or
weekly cadences and are re-armed after every firing until shutdown.

Features:
- Hourly / daily / weekly cadences validated at construction
- Bounded worker pool (APScheduler thread pool executor)
- Failing jobs keep firing on schedule
- Cooperative shutdown
- JSON job configuration and command line interface
"""

from cadence_scheduler.cadence import (
    DayOfWeek,
    Hourly,
    Daily,
    Weekly,
    ValidationError,
    next_delay,
    next_fire_time,
    interval,
)
from cadence_scheduler.jobs import Job, JobExecutionError, HelloWorldJob, CommandJob
from cadence_scheduler.runner import RecurringTaskRunner, ScheduledEntry
from cadence_scheduler.config import SchedulerConfig

__version__ = "0.1.0"
__all__ = [
    "DayOfWeek",
    "Hourly",
    "Daily",
    "Weekly",
    "ValidationError",
    "next_delay",
    "next_fire_time",
    "interval",
    "Job",
    "JobExecutionError",
    "HelloWorldJob",
    "CommandJob",
    "RecurringTaskRunner",
    "ScheduledEntry",
    "SchedulerConfig",
]
