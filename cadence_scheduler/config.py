"""
Scheduler configuration management.

Handles loading, saving, and validating scheduler configuration.
Configured jobs are shell commands paired with an hourly, daily or
weekly schedule.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from cadence_scheduler.cadence import (
    Cadence,
    Daily,
    Hourly,
    ValidationError,
    Weekly,
    parse_time,
)

load_dotenv()

logger = logging.getLogger(__name__)

SCHEDULE_TYPES = ('hourly', 'daily', 'weekly')


def get_home_dir() -> Path:
    """Get the base directory for scheduler files."""
    home_dir = os.environ.get('CADENCE_SCHEDULER_HOME')
    if home_dir:
        return Path(home_dir).expanduser()
    return Path.home() / ".cadence_scheduler"


def get_log_dir() -> Path:
    """Get the log directory from environment or default."""
    if os.environ.get('CADENCE_SCHEDULER_LOG_DIR'):
        return Path(os.environ['CADENCE_SCHEDULER_LOG_DIR']).expanduser()
    return get_home_dir() / "logs"


@dataclass
class ScheduleConfig:
    """Schedule timing configuration."""
    type: str  # 'hourly', 'daily', 'weekly'
    minute: Optional[int] = None  # minute past the hour for hourly
    time: Optional[str] = None  # HH:MM for daily/weekly
    day: Optional[str] = None  # monday, tuesday, etc. for weekly


@dataclass
class JobConfig:
    """
    Individual job configuration.

    Jobs are command-based - the scheduler doesn't know or care what
    the command does. It just executes it on the specified schedule.
    """
    name: str
    command: str  # Shell command to execute
    enabled: bool
    schedule: ScheduleConfig
    timeout: int = 3600  # Command timeout in seconds (default: 1 hour)
    working_dir: Optional[str] = None  # Working directory for command
    description: Optional[str] = None  # Human-readable description


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: str = None  # Set dynamically in __post_init__

    def __post_init__(self):
        if self.file is None:
            self.file = str(get_log_dir() / "scheduler.log")


@dataclass
class RunnerConfig:
    """Worker pool configuration."""
    max_workers: int = 3
    shutdown_wait: bool = True  # Wait for in-flight jobs on shutdown


def cadence_from_config(schedule: ScheduleConfig) -> Cadence:
    """
    Build a cadence from a schedule configuration.

    Args:
        schedule: Schedule configuration

    Returns:
        Hourly, Daily or Weekly cadence

    Raises:
        ValidationError: If the schedule type or any field is invalid
    """
    if schedule.type == 'hourly':
        if schedule.minute is None:
            raise ValidationError('minute', None, "'hourly' schedule requires 'minute'")
        return Hourly(schedule.minute)

    if schedule.type == 'daily':
        if not schedule.time:
            raise ValidationError('time', schedule.time, "'daily' schedule requires 'time'")
        hour, minute = parse_time(schedule.time)
        return Daily(hour, minute)

    if schedule.type == 'weekly':
        if not schedule.day:
            raise ValidationError('day', schedule.day, "'weekly' schedule requires 'day'")
        if not schedule.time:
            raise ValidationError('time', schedule.time, "'weekly' schedule requires 'time'")
        hour, minute = parse_time(schedule.time)
        return Weekly(schedule.day, hour, minute)

    raise ValidationError(
        'type', schedule.type,
        f"Invalid schedule type: {schedule.type!r} (expected one of {', '.join(SCHEDULE_TYPES)})"
    )


class SchedulerConfig:
    """
    Scheduler configuration manager.

    Loads and manages scheduler configuration from JSON file,
    with support for validation and defaults.

    Configuration path priority:
    1. Explicit config_path argument
    2. CADENCE_SCHEDULER_CONFIG_PATH environment variable
    3. Default: ~/.cadence_scheduler/scheduler_config.json
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize scheduler configuration.

        Args:
            config_path: Path to configuration file. If None, uses env var or default.
        """
        if config_path:
            self.config_path = Path(config_path).expanduser()
        elif os.environ.get('CADENCE_SCHEDULER_CONFIG_PATH'):
            self.config_path = Path(os.environ['CADENCE_SCHEDULER_CONFIG_PATH']).expanduser()
        else:
            self.config_path = get_home_dir() / "scheduler_config.json"
        self.jobs: List[JobConfig] = []
        self.logging: LoggingConfig = LoggingConfig()
        self.runner: RunnerConfig = RunnerConfig()

        if self.config_path.exists():
            self.load()
        else:
            logger.info(f"No config found at {self.config_path}, using defaults")
            self._load_defaults()

    def load(self):
        """Load configuration from JSON file."""
        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)

            self.jobs = []
            for job_data in data.get('schedules', []):
                schedule = ScheduleConfig(**job_data['schedule'])

                job = JobConfig(
                    name=job_data['name'],
                    command=job_data['command'],
                    enabled=job_data.get('enabled', True),
                    schedule=schedule,
                    timeout=job_data.get('timeout', 3600),
                    working_dir=job_data.get('working_dir'),
                    description=job_data.get('description')
                )
                self.jobs.append(job)

            if 'logging' in data:
                self.logging = LoggingConfig(**data['logging'])

            if 'runner' in data:
                self.runner = RunnerConfig(**data['runner'])

            logger.info(f"Loaded {len(self.jobs)} job(s) from {self.config_path}")

        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    def save(self):
        """Save configuration to JSON file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'schedules': [
                {
                    'name': job.name,
                    'command': job.command,
                    'enabled': job.enabled,
                    'schedule': {k: v for k, v in asdict(job.schedule).items() if v is not None},
                    'timeout': job.timeout,
                    'working_dir': job.working_dir,
                    'description': job.description
                }
                for job in self.jobs
            ],
            'logging': asdict(self.logging),
            'runner': asdict(self.runner)
        }

        with open(self.config_path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.info(f"Saved configuration to {self.config_path}")

    def _load_defaults(self):
        """Load default configuration."""
        default_job = JobConfig(
            name="hello_world",
            command='echo "Hello World"',
            enabled=True,
            schedule=ScheduleConfig(type="daily", time="14:30"),
            description="Print a greeting every day at 14:30"
        )
        self.jobs = [default_job]

    def add_job(self, job: JobConfig):
        """Add a new job to configuration."""
        if any(j.name == job.name for j in self.jobs):
            raise ValueError(f"Job with name '{job.name}' already exists")

        self.jobs.append(job)
        logger.info(f"Added job: {job.name}")

    def remove_job(self, name: str) -> bool:
        """
        Remove a job by name.

        Returns:
            True if job was removed, False if not found
        """
        initial_len = len(self.jobs)
        self.jobs = [j for j in self.jobs if j.name != name]

        if len(self.jobs) < initial_len:
            logger.info(f"Removed job: {name}")
            return True
        return False

    def get_job(self, name: str) -> Optional[JobConfig]:
        """Get job configuration by name."""
        for job in self.jobs:
            if job.name == name:
                return job
        return None

    def update_job(self, name: str, **kwargs):
        """Update job configuration."""
        job = self.get_job(name)
        if not job:
            raise ValueError(f"Job '{name}' not found")

        for key, value in kwargs.items():
            if hasattr(job, key):
                setattr(job, key, value)

        logger.info(f"Updated job: {name}")

    def enable_job(self, name: str):
        """Enable a job."""
        self.update_job(name, enabled=True)

    def disable_job(self, name: str):
        """Disable a job."""
        self.update_job(name, enabled=False)

    def get_enabled_jobs(self) -> List[JobConfig]:
        """Get list of enabled jobs."""
        return [j for j in self.jobs if j.enabled]

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        seen = set()

        for job in self.jobs:
            if job.name in seen:
                errors.append(f"Job {job.name}: duplicate name")
            seen.add(job.name)

            if not job.command or not job.command.strip():
                errors.append(f"Job {job.name}: 'command' cannot be empty")

            try:
                cadence_from_config(job.schedule)
            except ValidationError as e:
                errors.append(f"Job {job.name}: {e}")

            if job.timeout <= 0:
                errors.append(f"Job {job.name}: 'timeout' must be positive")

        if self.runner.max_workers <= 0:
            errors.append("Runner: 'max_workers' must be positive")

        return errors

    def __repr__(self):
        return f"SchedulerConfig(jobs={len(self.jobs)}, path={self.config_path})"
