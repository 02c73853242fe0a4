"""
Tests for cadence validation and next-fire-time calculation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cadence_scheduler.cadence import (
    DayOfWeek,
    Daily,
    Hourly,
    ValidationError,
    Weekly,
    interval,
    next_delay,
    next_fire_time,
    parse_time,
)

# 2024-01-01 is a Monday
SAMPLE_NOWS = [
    datetime(2024, 1, 1, 0, 0, 0),
    datetime(2024, 1, 1, 14, 29, 0),
    datetime(2024, 1, 1, 14, 30, 0),
    datetime(2024, 1, 1, 14, 30, 0, 1),
    datetime(2024, 1, 3, 23, 59, 59, 999999),
    datetime(2024, 1, 7, 10, 0, 0),
    datetime(2024, 2, 29, 12, 15, 30),
    datetime(2024, 12, 31, 23, 45, 0),
]


@pytest.mark.parametrize("factory", [
    lambda: Hourly(60),
    lambda: Hourly(-1),
    lambda: Daily(24, 0),
    lambda: Daily(0, 60),
    lambda: Weekly(DayOfWeek.MONDAY, 24, 0),
    lambda: Weekly("funday", 10, 0),
    lambda: Weekly(7, 10, 0),
    lambda: Hourly("15"),
    lambda: Daily(True, 0),
])
def test_invalid_cadences_fail_at_construction(factory):
    with pytest.raises(ValidationError):
        factory()


def test_valid_cadences():
    assert Hourly(0).minute == 0
    assert Daily(23, 59).hour == 23
    weekly = Weekly(DayOfWeek.SUNDAY, 0, 0)
    assert weekly.day_of_week is DayOfWeek.SUNDAY


def test_validation_error_names_field_and_value():
    with pytest.raises(ValidationError) as exc_info:
        Daily(0, 60)

    assert exc_info.value.field == 'minute'
    assert exc_info.value.value == 60
    assert 'minute' in str(exc_info.value)
    assert '60' in str(exc_info.value)


def test_day_of_week_parsing():
    assert DayOfWeek.parse("sunday") is DayOfWeek.SUNDAY
    assert DayOfWeek.parse("Sun") is DayOfWeek.SUNDAY
    assert DayOfWeek.parse("WED") is DayOfWeek.WEDNESDAY
    assert DayOfWeek.parse(0) is DayOfWeek.MONDAY
    assert Weekly("friday", 9, 0).day_of_week is DayOfWeek.FRIDAY

    with pytest.raises(ValidationError):
        DayOfWeek.parse("s")


@pytest.mark.parametrize("now", SAMPLE_NOWS)
@pytest.mark.parametrize("minute", [0, 15, 29, 30, 59])
def test_hourly_next_fire_time(minute, now):
    fire_time = next_fire_time(Hourly(minute), now)

    assert fire_time > now
    assert fire_time - now <= timedelta(hours=1)
    assert fire_time.minute == minute
    assert fire_time.second == 0
    assert fire_time.microsecond == 0


@pytest.mark.parametrize("now", SAMPLE_NOWS)
@pytest.mark.parametrize("hour,minute", [(0, 0), (14, 30), (23, 59)])
def test_daily_next_fire_time(hour, minute, now):
    fire_time = next_fire_time(Daily(hour, minute), now)

    assert fire_time > now
    assert fire_time - now <= timedelta(days=1)
    assert (fire_time.hour, fire_time.minute, fire_time.second, fire_time.microsecond) == (hour, minute, 0, 0)


@pytest.mark.parametrize("now", SAMPLE_NOWS)
@pytest.mark.parametrize("day", list(DayOfWeek))
def test_weekly_next_fire_time(day, now):
    fire_time = next_fire_time(Weekly(day, 10, 0), now)

    assert fire_time > now
    assert fire_time - now <= timedelta(weeks=1)
    assert fire_time.weekday() == day
    assert (fire_time.hour, fire_time.minute, fire_time.second) == (10, 0, 0)


def test_exact_match_is_pushed_to_next_cycle():
    now = datetime(2024, 1, 7, 10, 0, 0)  # Sunday 10:00

    assert next_delay(Hourly(0), now) == timedelta(hours=1)
    assert next_delay(Daily(10, 0), now) == timedelta(days=1)
    assert next_delay(Weekly(DayOfWeek.SUNDAY, 10, 0), now) == timedelta(weeks=1)


def test_weekly_same_day_later_time_fires_today():
    now = datetime(2024, 1, 7, 9, 0, 0)  # Sunday 09:00
    assert next_fire_time(Weekly(DayOfWeek.SUNDAY, 10, 0), now) == datetime(2024, 1, 7, 10, 0, 0)


def test_weekly_same_day_earlier_time_fires_next_week():
    now = datetime(2024, 1, 7, 11, 0, 0)  # Sunday 11:00
    assert next_fire_time(Weekly(DayOfWeek.SUNDAY, 10, 0), now) == datetime(2024, 1, 14, 10, 0, 0)


def test_hourly_rolls_over_midnight():
    now = datetime(2024, 12, 31, 23, 45, 0)
    assert next_fire_time(Hourly(15), now) == datetime(2025, 1, 1, 0, 15, 0)


def test_daily_end_to_end_delays():
    cadence = Daily(14, 30)

    assert next_delay(cadence, datetime(2024, 1, 1, 14, 29, 0)) == timedelta(seconds=60)
    assert interval(cadence) == timedelta(seconds=86400)
    assert next_delay(cadence, datetime(2024, 1, 1, 14, 30, 0)) == timedelta(seconds=86400)


def test_intervals():
    assert interval(Hourly(15)) == timedelta(seconds=3600)
    assert interval(Daily(14, 30)) == timedelta(seconds=86400)
    assert interval(Weekly(DayOfWeek.SUNDAY, 10, 0)) == timedelta(seconds=604800)


def test_aware_now_keeps_offset():
    tz = timezone(timedelta(hours=2))
    now = datetime(2024, 1, 1, 14, 29, 0, tzinfo=tz)

    fire_time = next_fire_time(Daily(14, 30), now)

    assert fire_time.tzinfo is tz
    assert fire_time - now == timedelta(seconds=60)


def test_unknown_cadence_rejected():
    with pytest.raises(TypeError):
        next_delay("daily", datetime(2024, 1, 1))
    with pytest.raises(TypeError):
        interval(object())


def test_parse_time():
    assert parse_time("14:30") == (14, 30)
    assert parse_time("0:05") == (0, 5)

    for bad in ["24:00", "12:60", "1430", "ab:cd", "", None]:
        with pytest.raises(ValidationError):
            parse_time(bad)


def test_cadence_descriptions():
    assert str(Hourly(5)) == "hourly at :05"
    assert str(Daily(14, 30)) == "daily at 14:30"
    assert str(Weekly(DayOfWeek.SUNDAY, 10, 0)) == "weekly on Sunday at 10:00"
