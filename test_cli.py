"""
Tests for the command-line interface.
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from cadence_scheduler.cli import CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME, main


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() in (CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME):
            root_logger.removeHandler(handler)


def test_next_daily(capsys):
    main(['next', '--daily', '14:30', '--now', '2024-01-01 14:29'])

    out = capsys.readouterr().out
    assert "daily at 14:30" in out
    assert "Next run:   2024-01-01 14:30:00" in out
    assert "Delay:      60s" in out
    assert "Interval:   86400s" in out


def test_next_weekly_exact_match(capsys):
    # 2024-01-07 is a Sunday
    main(['next', '--weekly', 'sunday', '10:00', '--now', '2024-01-07 10:00'])

    out = capsys.readouterr().out
    assert "Next run:   2024-01-14 10:00:00" in out
    assert "Delay:      604800s" in out


def test_next_rejects_invalid_cadence(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(['next', '--hourly', '60'])

    assert exc_info.value.code == 1
    assert "minute" in capsys.readouterr().err


def test_add_list_and_remove(capsys):
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = str(Path(temp_dir) / "scheduler_config.json")

        main(['-c', config_path, 'add', 'nightly', '--command', 'echo nightly', '--daily', '02:00'])
        main(['-c', config_path, 'disable', 'nightly'])

        data = json.loads(Path(config_path).read_text())
        nightly = [job for job in data['schedules'] if job['name'] == 'nightly'][0]
        assert nightly['enabled'] is False
        assert nightly['schedule'] == {'type': 'daily', 'time': '02:00'}

        capsys.readouterr()
        main(['-c', config_path, 'list'])
        out = capsys.readouterr().out
        assert "✗ nightly" in out
        assert "Schedule: daily at 02:00" in out

        main(['-c', config_path, 'remove', 'nightly'])
        data = json.loads(Path(config_path).read_text())
        assert 'nightly' not in [job['name'] for job in data['schedules']]


def test_add_rejects_invalid_schedule():
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "scheduler_config.json"

        with pytest.raises(SystemExit):
            main(['-c', str(config_path), 'add', 'bad', '--command', 'true', '--hourly', '75'])

        assert not config_path.exists()


def test_no_subcommand_prints_help():
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 1


@pytest.mark.parametrize("command", ['run', 'demo'])
@pytest.mark.parametrize("duration", ['0', '-5', 'soon'])
def test_duration_must_be_positive(command, duration, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([command, '--duration', duration])

    assert exc_info.value.code == 2
    assert "--duration" in capsys.readouterr().err
