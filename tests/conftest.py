import pytest
from datetime import datetime, timedelta, date, time

from sleep_forecast.utils.sleep_sessions import SleepSession, SleepType


NOW = datetime(2024, 6, 15, 12, 0)
TODAY = NOW.date()


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute))


def nap(start: datetime, minutes: int) -> SleepSession:
    return SleepSession(start_time=start, end_time=start + timedelta(minutes=minutes), sleep_type=SleepType.NAP)


def night(start: datetime, minutes: int) -> SleepSession:
    return SleepSession(start_time=start, end_time=start + timedelta(minutes=minutes), sleep_type=SleepType.NIGHTTIME)


def build_history(days, wake_hour=6, naps=((120, 90),), bedtime=(19, 0), first_day_offset=1):
    """One night (ending wake_hour on day d) plus naps per day, for days ending yesterday.

    naps: (awake_window_before, duration) per nap slot, in minutes.
    """
    sessions = []
    for k in range(first_day_offset, first_day_offset + days):
        day = TODAY - timedelta(days=k)
        night_start = at(day - timedelta(days=1), *bedtime)
        night_end = at(day, wake_hour)
        sessions.append(night(night_start, int((night_end - night_start).total_seconds() // 60)))

        previous_end = night_end
        for awake, duration in naps:
            start = previous_end + timedelta(minutes=awake)
            sessions.append(nap(start, duration))
            previous_end = start + timedelta(minutes=duration)
    return sessions


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def birth_date_200():
    """Baby 200 days old on NOW: two naps, 180/210 min windows, 90/120 min naps, 19:00 bedtime."""
    return TODAY - timedelta(days=200)


@pytest.fixture
def birth_date_90():
    return TODAY - timedelta(days=90)


@pytest.fixture
def custom_schedule():
    from sleep_forecast.utils.sleep_sessions import CustomScheduleConfig
    return CustomScheduleConfig(
        naps_per_day=3,
        wake_windows=[120, 150, 180],
        nap_durations=[90, 120, 90],
        bedtime="19:30",
    )
