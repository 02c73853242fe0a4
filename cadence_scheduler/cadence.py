"""
Cadence definitions and next-fire-time calculation.

A cadence is one of three timing rules:

- Hourly: every hour at a given minute
- Daily: every day at a given hour and minute
- Weekly: every week on a given day at a given hour and minute

The calculator works on plain wall-clock arithmetic. Daylight-saving
transitions are not accounted for; an aware ``now`` is treated as a
fixed offset.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Tuple, Union

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when a cadence is constructed with an illegal field value."""

    def __init__(self, field: str, value: Any, message: str = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid {field}: {value!r}")


class DayOfWeek(IntEnum):
    """Day of week, numbered like ``datetime.weekday()``."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value: Any) -> 'DayOfWeek':
        """
        Convert a day name, abbreviation or number into a DayOfWeek.

        Args:
            value: DayOfWeek, int 0..6, or name such as "sunday" / "Sun"

        Returns:
            DayOfWeek member

        Raises:
            ValidationError: If the value does not name a day
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 6:
                return cls(value)
            raise ValidationError('day_of_week', value, f"Invalid day_of_week: {value!r} (expected 0..6)")

        if isinstance(value, str):
            key = value.strip().lower()
            for day in cls:
                name = day.name.lower()
                if key == name or (len(key) >= 3 and name.startswith(key)):
                    return day

        raise ValidationError('day_of_week', value)

    def __str__(self):
        return self.name.capitalize()


def _check_range(field: str, value: Any, low: int, high: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, value, f"Invalid {field}: {value!r} (expected an integer)")
    if not low <= value <= high:
        raise ValidationError(field, value, f"Invalid {field}: {value!r} (expected {low}..{high})")


@dataclass(frozen=True)
class Hourly:
    """Fires every hour at ``minute`` past the hour."""
    minute: int

    def __post_init__(self):
        _check_range('minute', self.minute, 0, 59)

    def __str__(self):
        return f"hourly at :{self.minute:02d}"


@dataclass(frozen=True)
class Daily:
    """Fires every day at ``hour:minute``."""
    hour: int
    minute: int = 0

    def __post_init__(self):
        _check_range('hour', self.hour, 0, 23)
        _check_range('minute', self.minute, 0, 59)

    def __str__(self):
        return f"daily at {self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class Weekly:
    """Fires every week on ``day_of_week`` at ``hour:minute``."""
    day_of_week: DayOfWeek
    hour: int
    minute: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'day_of_week', DayOfWeek.parse(self.day_of_week))
        _check_range('hour', self.hour, 0, 23)
        _check_range('minute', self.minute, 0, 59)

    def __str__(self):
        return f"weekly on {self.day_of_week} at {self.hour:02d}:{self.minute:02d}"


Cadence = Union[Hourly, Daily, Weekly]

CADENCE_TYPES = (Hourly, Daily, Weekly)

_INTERVALS = {
    Hourly: timedelta(hours=1),
    Daily: timedelta(days=1),
    Weekly: timedelta(weeks=1),
}


def is_cadence(value: Any) -> bool:
    """Return True if ``value`` is one of the cadence kinds."""
    return isinstance(value, CADENCE_TYPES)


def next_fire_time(cadence: Cadence, now: datetime) -> datetime:
    """
    Compute the first firing instant strictly after ``now``.

    An instant exactly equal to ``now`` counts as already passed and is
    pushed to the following cycle.

    Args:
        cadence: Hourly, Daily or Weekly cadence
        now: Current local civil time

    Returns:
        Next firing time (same tzinfo as ``now``)
    """
    if isinstance(cadence, Hourly):
        candidate = now.replace(minute=cadence.minute, second=0, microsecond=0)
    elif isinstance(cadence, Daily):
        candidate = now.replace(hour=cadence.hour, minute=cadence.minute, second=0, microsecond=0)
    elif isinstance(cadence, Weekly):
        days_ahead = (cadence.day_of_week - now.weekday()) % 7
        candidate = (now + timedelta(days=days_ahead)).replace(
            hour=cadence.hour, minute=cadence.minute, second=0, microsecond=0
        )
    else:
        raise TypeError(f"Unsupported cadence: {cadence!r}")

    if candidate <= now:
        candidate += _INTERVALS[type(cadence)]

    return candidate


def next_delay(cadence: Cadence, now: datetime) -> timedelta:
    """Time from ``now`` until the next firing. Always positive."""
    return next_fire_time(cadence, now) - now


def interval(cadence: Cadence) -> timedelta:
    """Fixed repeat interval of a cadence."""
    try:
        return _INTERVALS[type(cadence)]
    except KeyError:
        raise TypeError(f"Unsupported cadence: {cadence!r}") from None


def parse_time(value: str) -> Tuple[int, int]:
    """
    Parse "HH:MM" into an (hour, minute) pair.

    Raises:
        ValidationError: If the text is malformed or out of range
    """
    if not isinstance(value, str):
        raise ValidationError('time', value, f"Invalid time: {value!r} (expected HH:MM)")

    parts = value.strip().split(':')
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValidationError('time', value, f"Invalid time: {value!r} (expected HH:MM)")

    hour, minute = int(parts[0]), int(parts[1])
    _check_range('hour', hour, 0, 23)
    _check_range('minute', minute, 0, 59)
    return hour, minute
