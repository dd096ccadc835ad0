"""Age-normative sleep patterns and the baseline a prediction starts from."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.constants import (
    SLEEP_PATTERN_TABLE, SLEEP_TIPS,
    NEWBORN_TIPS_MAX_AGE_DAYS, INFANT_TIPS_MAX_AGE_DAYS,
    MIN_NAPS_PER_DAY, MAX_NAPS_PER_DAY,
)
from ..core.utils import parse_hhmm
from ..utils.sleep_sessions import CustomScheduleConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SleepPattern:
    age: int  # days
    average_naps: int
    nap_durations: Tuple[int, ...]  # minutes, one per nap slot
    awake_windows: Tuple[int, ...]  # minutes, one per nap slot
    bedtime: str  # "HH:MM"
    night_sleep: int  # minutes

    # Used by: predictors — slot lookup, falling back to slot 0 when out of range
    def awake_window_for(self, nap_index: int) -> int:
        return _slot(self.awake_windows, nap_index)

    def nap_duration_for(self, nap_index: int) -> int:
        return _slot(self.nap_durations, nap_index)

    @property
    def expected_nap_minutes(self) -> int:
        """Sum of the durations for the expected nap count."""
        return sum(self.nap_duration_for(i) for i in range(self.average_naps))


SLEEP_PATTERNS: List[SleepPattern] = [
    SleepPattern(
        age=age,
        average_naps=naps,
        nap_durations=durations,
        awake_windows=windows,
        bedtime=bedtime,
        night_sleep=night,
    )
    for age, naps, durations, windows, bedtime, night in SLEEP_PATTERN_TABLE
]


def _slot(values: Tuple[int, ...], index: int) -> int:
    if 0 <= index < len(values) and values[index]:
        return values[index]
    return values[0] if values else 0


# Used by: resolve_baseline, get_sleep_recommendations, schedule_builder.recommended_for_age
def get_sleep_pattern_for_age(age_in_days: int) -> SleepPattern:
    """Greatest entry with age <= age_in_days; the first entry when none qualifies."""
    pattern = SLEEP_PATTERNS[0]
    for candidate in SLEEP_PATTERNS:
        if candidate.age <= age_in_days:
            pattern = candidate
        else:
            break
    return pattern


# Used by: predict_next_nap, predict_bedtime, predict_wake_up
def resolve_baseline(
    age_in_days: int,
    custom_schedule: Optional[CustomScheduleConfig] = None
) -> SleepPattern:
    """Custom schedule arrays replace the age pattern's; empty arrays keep the age values."""
    pattern = get_sleep_pattern_for_age(age_in_days)
    if custom_schedule is None:
        return pattern

    naps = max(MIN_NAPS_PER_DAY, min(MAX_NAPS_PER_DAY, int(custom_schedule.naps_per_day)))

    bedtime = pattern.bedtime
    if custom_schedule.bedtime:
        try:
            parse_hhmm(custom_schedule.bedtime)
            bedtime = custom_schedule.bedtime
        except ValueError as e:
            logger.warning(f"Ignoring custom bedtime, using age bedtime {pattern.bedtime}: {e}")

    return SleepPattern(
        age=pattern.age,
        average_naps=naps,
        nap_durations=tuple(custom_schedule.nap_durations) or pattern.nap_durations,
        awake_windows=tuple(custom_schedule.wake_windows) or pattern.awake_windows,
        bedtime=bedtime,
        night_sleep=pattern.night_sleep,
    )


# Used by: api/predictions.py (GET /predictions/recommendations)
def get_sleep_recommendations(age_in_days: int) -> Dict[str, Any]:
    pattern = get_sleep_pattern_for_age(age_in_days)

    if age_in_days < NEWBORN_TIPS_MAX_AGE_DAYS:
        tips = SLEEP_TIPS["newborn"]
    elif age_in_days < INFANT_TIPS_MAX_AGE_DAYS:
        tips = SLEEP_TIPS["infant"]
    else:
        tips = SLEEP_TIPS["toddler"]

    return {
        "total_day_sleep": sum(pattern.nap_durations),
        "total_night_sleep": pattern.night_sleep,
        "awake_windows": list(pattern.awake_windows),
        "tips": list(tips),
    }
