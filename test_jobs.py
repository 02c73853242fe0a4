"""
Tests for the built-in jobs.
"""

import sys

import pytest

from cadence_scheduler.jobs import CommandJob, HelloWorldJob, Job, JobExecutionError


def test_hello_world_job_prints_greeting(capsys):
    job = HelloWorldJob("Daily@14:30")

    job.execute()

    out = capsys.readouterr().out
    assert out.startswith("[Daily@14:30] Hello World - ")


def test_jobs_satisfy_protocol():
    assert isinstance(HelloWorldJob("x"), Job)
    assert isinstance(CommandJob("x", "true"), Job)
    assert not isinstance(object(), Job)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")
def test_command_job_success(tmp_path):
    marker = tmp_path / "ran.txt"
    job = CommandJob("touch", f"echo done > {marker.name}", working_dir=str(tmp_path))

    job.execute()

    assert marker.read_text().strip() == "done"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")
def test_command_job_failure_raises():
    job = CommandJob("failing", "echo oops >&2; exit 3")

    with pytest.raises(JobExecutionError) as exc_info:
        job.execute()

    assert exc_info.value.job_name == "failing"
    assert "exit code 3" in str(exc_info.value)
    assert "oops" in str(exc_info.value)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")
def test_command_job_timeout_raises():
    job = CommandJob("slow", "sleep 5", timeout=0.2)

    with pytest.raises(JobExecutionError) as exc_info:
        job.execute()

    assert "timed out" in str(exc_info.value)
