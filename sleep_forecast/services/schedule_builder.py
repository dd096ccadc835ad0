"""Recommended and history-derived nap schedules for the schedule configuration screen."""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from statistics import mean
from typing import Any, Dict, Iterable, List, Optional

from .age_patterns import get_sleep_pattern_for_age
from .personal_patterns import evening_minutes, previous_night
from ..core.constants import (
    PERSONALIZED_SCHEDULE_MIN_SESSIONS, PERSONALIZED_DEFAULT_NIGHT_SLEEP_MINUTES,
    PERSONALIZED_DEFAULT_BEDTIME,
    MIN_NAPS_PER_DAY, MAX_NAPS_PER_DAY,
    MIN_WAKE_WINDOW_MINUTES, MAX_WAKE_WINDOW_MINUTES,
    MIN_NAP_DURATION_MINUTES, MAX_NAP_DURATION_SETTING_MINUTES,
    DEFAULT_WAKE_WINDOW_MINUTES, DEFAULT_NAP_DURATION_MINUTES,
)
from ..core.settings import settings
from ..core.utils import default_now, hhmm_to_minutes, minutes_between, minutes_to_hhmm, round_half_up
from ..utils.sleep_sessions import (
    CustomScheduleConfig, SleepSession,
    group_sessions_by_day, naps_of, recent_completed_sessions,
)

logger = logging.getLogger(__name__)


@dataclass
class RecommendedSchedule:
    average_naps: int
    nap_durations: List[int] = field(default_factory=list)
    awake_windows: List[int] = field(default_factory=list)
    bedtime: str = PERSONALIZED_DEFAULT_BEDTIME
    night_sleep: int = PERSONALIZED_DEFAULT_NIGHT_SLEEP_MINUTES

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_custom_schedule(self) -> CustomScheduleConfig:
        return CustomScheduleConfig(
            naps_per_day=self.average_naps,
            wake_windows=self.awake_windows,
            nap_durations=self.nap_durations,
            bedtime=self.bedtime,
        )


# Used by: api/predictions.py (GET /predictions/schedule/recommended)
def recommended_for_age(age_in_days: int) -> RecommendedSchedule:
    """Fresh copy of the age pattern; callers may edit it freely."""
    pattern = get_sleep_pattern_for_age(age_in_days)
    return RecommendedSchedule(
        average_naps=pattern.average_naps,
        nap_durations=list(pattern.nap_durations),
        awake_windows=list(pattern.awake_windows),
        bedtime=pattern.bedtime,
        night_sleep=pattern.night_sleep,
    )


# Used by: api/predictions.py (POST /predictions/schedule/personalized)
def personalized_from_history(
    sessions: Iterable[SleepSession],
    age_in_days: int,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None
) -> Optional[RecommendedSchedule]:
    """Per-slot averages of the baby's own naps; None without enough recent history."""
    sessions = list(sessions)
    now = now or default_now(sessions)
    window_days = window_days or settings.HISTORY_WINDOW_DAYS

    recent = recent_completed_sessions(sessions, now, window_days)
    if len(recent) < PERSONALIZED_SCHEDULE_MIN_SESSIONS:
        logger.info(
            f"Not enough history for a personalized schedule: "
            f"{len(recent)}/{PERSONALIZED_SCHEDULE_MIN_SESSIONS} sessions"
        )
        return None

    daily = group_sessions_by_day(recent)
    nights = [s for s in recent if s.is_nighttime]
    fallback = get_sleep_pattern_for_age(age_in_days)

    nap_counts = [len(naps_of(day_sessions)) for day_sessions in daily.values()]
    nap_counts = [count for count in nap_counts if count > 0]
    average_naps = round_half_up(mean(nap_counts)) if nap_counts else 0

    nap_durations: List[int] = []
    awake_windows: List[int] = []

    for nap_index in range(average_naps):
        durations = []
        wake_windows = []

        for day_sessions in daily.values():
            naps = naps_of(day_sessions)
            if len(naps) <= nap_index:
                continue

            nap = naps[nap_index]
            durations.append(minutes_between(nap.end_time, nap.start_time))

            if nap_index == 0:
                previous_sleep = previous_night(nights, nap)
            else:
                previous_sleep = naps[nap_index - 1]
            if previous_sleep is not None:
                wake_windows.append(minutes_between(nap.start_time, previous_sleep.end_time))

        nap_durations.append(
            round_half_up(mean(durations)) if durations else fallback.nap_duration_for(nap_index)
        )
        awake_windows.append(
            round_half_up(mean(wake_windows)) if wake_windows else fallback.awake_window_for(nap_index)
        )

    night_durations = [s.duration_minutes for s in nights]
    night_sleep = (
        round_half_up(mean(night_durations)) if night_durations
        else PERSONALIZED_DEFAULT_NIGHT_SLEEP_MINUTES
    )

    bedtimes = [m for m in (evening_minutes(s.start_time) for s in nights) if m is not None]
    bedtime = minutes_to_hhmm(round_half_up(mean(bedtimes))) if bedtimes else PERSONALIZED_DEFAULT_BEDTIME

    logger.info(
        f"Personalized schedule from {len(recent)} sessions over {len(daily)} days: "
        f"{average_naps} naps, bedtime {bedtime}"
    )

    return RecommendedSchedule(
        average_naps=average_naps,
        nap_durations=nap_durations,
        awake_windows=awake_windows,
        bedtime=bedtime,
        night_sleep=night_sleep,
    )


def clamp_naps_per_day(naps: int) -> int:
    return max(MIN_NAPS_PER_DAY, min(MAX_NAPS_PER_DAY, int(naps)))


def clamp_wake_window(minutes: int) -> int:
    return max(MIN_WAKE_WINDOW_MINUTES, min(MAX_WAKE_WINDOW_MINUTES, int(minutes)))


def clamp_nap_duration(minutes: int) -> int:
    return max(MIN_NAP_DURATION_MINUTES, min(MAX_NAP_DURATION_SETTING_MINUTES, int(minutes)))


def _resize(values: List[int], size: int, default: int) -> List[int]:
    if len(values) >= size:
        return list(values[:size])
    filler = values[-1] if values else default
    return list(values) + [filler] * (size - len(values))


# Used by: api/predictions.py (POST /predictions/schedule/resize)
def resize_schedule(config: CustomScheduleConfig, naps_per_day: int) -> CustomScheduleConfig:
    """New nap count with arrays extended by repeating the last slot, or truncated."""
    naps = clamp_naps_per_day(naps_per_day)
    bedtime = config.bedtime
    if bedtime:
        # Re-emit in canonical HH:MM, raises ValueError when malformed
        bedtime = minutes_to_hhmm(hhmm_to_minutes(bedtime))

    return CustomScheduleConfig(
        naps_per_day=naps,
        wake_windows=[
            clamp_wake_window(w)
            for w in _resize(list(config.wake_windows), naps, DEFAULT_WAKE_WINDOW_MINUTES)
        ],
        nap_durations=[
            clamp_nap_duration(d)
            for d in _resize(list(config.nap_durations), naps, DEFAULT_NAP_DURATION_MINUTES)
        ],
        bedtime=bedtime,
    )
