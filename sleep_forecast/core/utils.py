"""Shared time helpers — minute arithmetic, HH:MM clock strings, local calendar days."""

import math
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Tuple, Union

import pytz

from sleep_forecast.core.constants import MINUTES_PER_DAY
from sleep_forecast.core.settings import settings


# Used by: analyzers, predictors, schedule builder — whole minutes, floored
def minutes_between(later: datetime, earlier: datetime) -> int:
    return math.floor((later - earlier).total_seconds() / 60.0)


# Used by: age_patterns.py, schedule_predictor.py, api/models.py
def parse_hhmm(value: str) -> Tuple[int, int]:
    """Parse "HH:MM" into (hours, minutes). Raises ValueError when malformed."""
    parts = value.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Expected HH:MM, got {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Clock time out of range: {value!r}")
    return hours, minutes


def hhmm_to_minutes(value: str) -> int:
    hours, minutes = parse_hhmm(value)
    return hours * 60 + minutes


# Used by: schedule_builder.py, schedule_predictor.py
def minutes_to_hhmm(total_minutes: float) -> str:
    """Minutes since midnight as HH:MM; values past 24h wrap around."""
    total = int(round(total_minutes)) % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


# Used by: schedule_predictor.py (reasoning strings), api/predictions.py
def format_duration(minutes: float) -> str:
    """90 -> "1h 30m", 45 -> "45m"."""
    minutes = int(minutes)
    hours = minutes // 60
    mins = minutes % 60
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def _tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.TIMEZONE)


# Used by: local_date(), minutes_since_midnight() — naive datetimes are already local
def to_local(value: datetime, tz_name: Optional[str] = None) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(_tz(tz_name))


# Used by: sleep_sessions.group_sessions_by_day, predictors — canonical day key
def local_date(value: datetime, tz_name: Optional[str] = None) -> date:
    return to_local(value, tz_name).date()


def minutes_since_midnight(value: datetime, tz_name: Optional[str] = None) -> int:
    local = to_local(value, tz_name)
    return local.hour * 60 + local.minute


# Used by: predict_bedtime — builds a clock time on a local day, matching reference awareness
def at_local_time(
    reference: datetime,
    day: date,
    total_minutes: int,
    tz_name: Optional[str] = None
) -> datetime:
    total_minutes = total_minutes % MINUTES_PER_DAY
    naive = datetime.combine(day, time(total_minutes // 60, total_minutes % 60))
    if reference.tzinfo is None:
        return naive
    return _tz(tz_name).localize(naive)


# Used by: all predictors — calendar-day difference, never negative
def age_in_days(
    birth_date: Union[date, datetime],
    now: datetime,
    tz_name: Optional[str] = None
) -> int:
    if isinstance(birth_date, datetime):
        birth_date = local_date(birth_date, tz_name)
    return max(0, (local_date(now, tz_name) - birth_date).days)


def add_minutes(value: datetime, minutes: float) -> datetime:
    return value + timedelta(minutes=minutes)


# Used by: blending.blend, schedule_builder — halves round up, like a stopwatch would
def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# Used by: all predictors — two decimals, halves up (0.625 -> 0.63)
def round_confidence(confidence: float) -> float:
    return math.floor(confidence * 100 + 0.5) / 100


# Used by: predictors, analyzers, schedule builder — wall clock matching the sessions' awareness
def default_now(sessions: Iterable[Any] = ()) -> datetime:
    """Aware "now" in settings.TIMEZONE when any session timestamp is aware, naive local otherwise."""
    for session in sessions:
        stamps = (session.start_time, getattr(session, "end_time", None))
        if any(stamp is not None and stamp.tzinfo is not None for stamp in stamps):
            return datetime.now(_tz())
    return datetime.now()
