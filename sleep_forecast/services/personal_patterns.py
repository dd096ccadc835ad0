"""Personal sleep statistics from a rolling window of the baby's own history."""

import logging
from dataclasses import dataclass
from datetime import datetime
from statistics import mean, pstdev
from typing import Iterable, List, Optional, Tuple

from ..core.constants import (
    BEDTIME_BAND_START_HOUR, BEDTIME_BAND_LATE_END_HOUR, MINUTES_PER_DAY,
    CONSISTENCY_MIN_SAMPLES, BEDTIME_CONSISTENCY_NORMALIZER_MINUTES,
)
from ..core.settings import settings
from ..core.utils import default_now, local_date, minutes_between, minutes_since_midnight, round_half_up
from ..utils.sleep_sessions import (
    SleepSession, group_sessions_by_day, naps_of, recent_completed_sessions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonalPatternStats:
    average_awake_window: float
    average_nap_duration: float
    consistency: float  # 0-1
    sample_size: int  # valid awake-window samples


@dataclass(frozen=True)
class BedtimeStats:
    average_bedtime: Optional[Tuple[int, int]]  # (hours, minutes), None without samples
    average_minutes: Optional[float]  # minutes since midnight, may exceed 1440 for late bedtimes
    consistency: float
    sample_size: int


@dataclass(frozen=True)
class NightSleepStats:
    average_duration: float
    sample_size: int


# Used by: analyze_nap_patterns() — 1 - stddev/mean, only with enough samples
def consistency_score(samples: List[float]) -> float:
    if len(samples) < CONSISTENCY_MIN_SAMPLES:
        return 0.0
    avg = mean(samples)
    if avg <= 0:
        return 0.0
    return max(0.0, 1.0 - pstdev(samples) / avg)


# Used by: analyze_nap_patterns(), schedule_builder.py — the night that ended on the nap's day before it began
def previous_night(
    nights: List[SleepSession],
    nap: SleepSession
) -> Optional[SleepSession]:
    nap_day = local_date(nap.start_time)
    candidates = [
        n for n in nights
        if n.end_time <= nap.start_time and local_date(n.end_time) == nap_day
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda n: n.end_time)


# Used by: predict_next_nap, predict_wake_up
def analyze_nap_patterns(
    sessions: Iterable[SleepSession],
    nap_index: int,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
    max_awake_window: Optional[float] = None,
    max_nap_duration: Optional[float] = None
) -> PersonalPatternStats:
    """Awake window before, and duration of, the nap at nap_index across recent days."""
    sessions = list(sessions)
    now = now or default_now(sessions)
    window_days = window_days or settings.HISTORY_WINDOW_DAYS
    max_awake_window = max_awake_window or settings.MAX_AWAKE_WINDOW_MINUTES
    max_nap_duration = max_nap_duration or settings.MAX_NAP_DURATION_MINUTES

    relevant = recent_completed_sessions(sessions, now, window_days)
    nights = [s for s in relevant if s.is_nighttime]

    awake_windows: List[float] = []
    nap_durations: List[float] = []

    for day, day_sessions in group_sessions_by_day(relevant).items():
        naps = naps_of(day_sessions)
        if len(naps) <= nap_index:
            continue

        target_nap = naps[nap_index]
        if nap_index == 0:
            previous_sleep = previous_night(nights, target_nap)
        else:
            previous_sleep = naps[nap_index - 1]

        if previous_sleep is None or previous_sleep.end_time is None or target_nap.end_time is None:
            continue

        awake_time = minutes_between(target_nap.start_time, previous_sleep.end_time)
        nap_duration = minutes_between(target_nap.end_time, target_nap.start_time)

        if 0 < awake_time < max_awake_window:
            awake_windows.append(awake_time)
        else:
            logger.debug(f"Discarding awake window outlier on {day}: {awake_time}min")
        if 0 < nap_duration < max_nap_duration:
            nap_durations.append(nap_duration)
        else:
            logger.debug(f"Discarding nap duration outlier on {day}: {nap_duration}min")

    stats = PersonalPatternStats(
        average_awake_window=mean(awake_windows) if awake_windows else 0.0,
        average_nap_duration=mean(nap_durations) if nap_durations else 0.0,
        consistency=consistency_score(awake_windows),
        sample_size=len(awake_windows),
    )
    logger.debug(
        f"Nap {nap_index + 1} pattern: {stats.sample_size} samples, "
        f"awake={stats.average_awake_window:.1f}min, nap={stats.average_nap_duration:.1f}min, "
        f"consistency={stats.consistency:.2f}"
    )
    return stats


# Used by: analyze_bedtime_patterns() — None outside the bedtime band
def evening_minutes(value: datetime) -> Optional[int]:
    """Minutes since midnight of the evening the bedtime belongs to (00:30 -> 1470)."""
    minutes = minutes_since_midnight(value)
    hour = minutes // 60
    if hour >= BEDTIME_BAND_START_HOUR:
        return minutes
    if hour < BEDTIME_BAND_LATE_END_HOUR:
        return minutes + MINUTES_PER_DAY
    return None


# Used by: predict_bedtime
def analyze_bedtime_patterns(
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    window_days: Optional[int] = None
) -> BedtimeStats:
    sessions = list(sessions)
    now = now or default_now(sessions)
    window_days = window_days or settings.HISTORY_WINDOW_DAYS

    bedtimes = []
    for session in recent_completed_sessions(sessions, now, window_days):
        if not session.is_nighttime:
            continue
        minutes = evening_minutes(session.start_time)
        if minutes is not None:
            bedtimes.append(minutes)

    if not bedtimes:
        return BedtimeStats(average_bedtime=None, average_minutes=None, consistency=0.0, sample_size=0)

    average = mean(bedtimes)
    normalized = round_half_up(average) % MINUTES_PER_DAY
    consistency = max(0.0, 1.0 - pstdev(bedtimes) / BEDTIME_CONSISTENCY_NORMALIZER_MINUTES)

    logger.debug(f"Bedtime pattern: {len(bedtimes)} samples, avg={average:.1f}min, consistency={consistency:.2f}")

    return BedtimeStats(
        average_bedtime=(normalized // 60, normalized % 60),
        average_minutes=average,
        consistency=consistency,
        sample_size=len(bedtimes),
    )


# Used by: predict_wake_up (nighttime sessions)
def analyze_night_sleep(
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    window_days: Optional[int] = None
) -> NightSleepStats:
    sessions = list(sessions)
    now = now or default_now(sessions)
    window_days = window_days or settings.HISTORY_WINDOW_DAYS

    durations = [
        s.duration_minutes
        for s in recent_completed_sessions(sessions, now, window_days)
        if s.is_nighttime
    ]
    return NightSleepStats(
        average_duration=mean(durations) if durations else 0.0,
        sample_size=len(durations),
    )
