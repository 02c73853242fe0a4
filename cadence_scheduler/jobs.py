"""
Jobs run by the recurring task runner.

A job is anything exposing a zero-argument ``execute()``. The runner
treats it as an opaque callback; this module provides the protocol,
the error type used to report failed executions, and two concrete jobs:

- HelloWorldJob: prints a greeting line
- CommandJob: runs a shell command with a timeout and logs its output
"""

import logging
import subprocess
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Job(Protocol):
    """Unit of user work invoked on every firing."""

    def execute(self) -> None:
        ...


class JobExecutionError(Exception):
    """Raised when a job execution fails."""

    def __init__(self, message: str, job_name: Optional[str] = None):
        self.job_name = job_name
        super().__init__(message)


class HelloWorldJob:
    """Prints ``[name] Hello World - <timestamp>``."""

    def __init__(self, name: str):
        self.name = name

    def execute(self):
        print(f"[{self.name}] Hello World - {datetime.now()}")

    def __repr__(self):
        return f"HelloWorldJob(name={self.name!r})"


class CommandJob:
    """
    Runs a shell command on every firing.

    The job knows nothing about what the command does. Output lines are
    logged with the job name as prefix; a non-zero exit code, a timeout
    or a launch failure raises JobExecutionError.
    """

    def __init__(
        self,
        name: str,
        command: str,
        timeout: Optional[int] = 3600,
        working_dir: Optional[str] = None
    ):
        """
        Args:
            name: Job name (used in log messages)
            command: Shell command to execute
            timeout: Timeout in seconds (None = no timeout)
            working_dir: Working directory for the command
        """
        self.name = name
        self.command = command
        self.timeout = timeout
        self.working_dir = working_dir

    def execute(self):
        log_prefix = f"[{self.name}] "
        logger.info(f"{log_prefix}Executing command: {self.command}")

        try:
            result = subprocess.run(
                self.command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.working_dir
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"{log_prefix}Command timed out after {self.timeout}s: {self.command}")
            raise JobExecutionError(f"Command timed out after {self.timeout}s", self.name) from e
        except OSError as e:
            raise JobExecutionError(f"Command execution failed: {e}", self.name) from e

        for line in result.stdout.splitlines():
            logger.info(f"{log_prefix}{line}")
        for line in result.stderr.splitlines():
            logger.warning(f"{log_prefix}{line}")

        if result.returncode != 0:
            raise JobExecutionError(
                f"Command failed with exit code {result.returncode}: {result.stderr.strip()}",
                self.name
            )

    def __repr__(self):
        return f"CommandJob(name={self.name!r}, command={self.command!r})"
