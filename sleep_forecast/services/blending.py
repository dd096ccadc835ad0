"""Blends personal statistics with the baseline and derives same-day bedtime adjustments."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..core.constants import (
    MISSING_NAP_ADJUSTMENT_MINUTES, EXTRA_NAP_ADJUSTMENT_MINUTES,
    NAP_DURATION_DEVIATION_THRESHOLD_MINUTES, NAP_DURATION_DEVIATION_DIVISOR,
    NAP_DURATION_ADJUSTMENT_CAP_MINUTES,
    LAST_WAKE_WINDOWS, LAST_WAKE_WINDOW_DEFAULT_MINUTES,
    LATE_NAP_TOLERANCE_MINUTES, LATE_NAP_SHORTFALL_DIVISOR, LATE_NAP_MAX_PUSH_MINUTES,
    LATE_NAP_CONFIDENCE_PENALTY, LATE_NAP_CONFIDENCE_FLOOR,
    NO_NAP_AWAKE_THRESHOLD_MINUTES, NO_NAP_ADJUSTMENT_MINUTES,
    NO_NAP_CONFIDENCE_PENALTY, NO_NAP_CONFIDENCE_FLOOR,
)
from ..core.utils import format_duration, round_half_up

logger = logging.getLogger(__name__)


# Used by: all predictors
def personal_weight(sample_size: int, weight_cap: float, scale: float) -> float:
    """More samples -> more personal weight, saturating at weight_cap."""
    if sample_size <= 0 or scale <= 0:
        return 0.0
    return min(weight_cap, sample_size / scale)


# Used by: all predictors — rounded to the nearest minute
def blend(personal_value: float, baseline_value: float, weight: float) -> int:
    return round_half_up(personal_value * weight + baseline_value * (1.0 - weight))


# Used by: predict_bedtime — lowers confidence without pushing it under floor
def reduce_confidence(confidence: float, penalty: float, floor: float) -> float:
    return max(confidence - penalty, min(confidence, floor))


@dataclass(frozen=True)
class BedtimeAdjustment:
    minutes: int
    note: str
    confidence_penalty: float = 0.0
    confidence_floor: float = 0.0

    def apply_confidence(self, confidence: float) -> float:
        if not self.confidence_penalty:
            return confidence
        return reduce_confidence(confidence, self.confidence_penalty, self.confidence_floor)


# Used by: predict_bedtime
def nap_count_adjustment(actual_naps: int, expected_naps: int) -> Optional[BedtimeAdjustment]:
    deviation = actual_naps - expected_naps
    if deviation < 0:
        minutes = -deviation * MISSING_NAP_ADJUSTMENT_MINUTES
        return BedtimeAdjustment(
            minutes=minutes,
            note=f"{-deviation} fewer nap(s) than expected ({minutes:+d}min)",
        )
    if deviation > 0:
        minutes = deviation * EXTRA_NAP_ADJUSTMENT_MINUTES
        return BedtimeAdjustment(
            minutes=minutes,
            note=f"{deviation} extra nap(s) ({minutes:+d}min)",
        )
    return None


# Used by: predict_bedtime — more daytime sleep than expected pushes bedtime later
def nap_duration_adjustment(
    actual_nap_minutes: int,
    expected_nap_minutes: int
) -> Optional[BedtimeAdjustment]:
    deviation = actual_nap_minutes - expected_nap_minutes
    if abs(deviation) <= NAP_DURATION_DEVIATION_THRESHOLD_MINUTES:
        return None

    minutes = round_half_up(deviation / NAP_DURATION_DEVIATION_DIVISOR)
    minutes = max(-NAP_DURATION_ADJUSTMENT_CAP_MINUTES, min(NAP_DURATION_ADJUSTMENT_CAP_MINUTES, minutes))
    if minutes == 0:
        return None
    return BedtimeAdjustment(
        minutes=minutes,
        note=(
            f"{format_duration(actual_nap_minutes)} total naps vs "
            f"{format_duration(expected_nap_minutes)} expected ({minutes:+d}min)"
        ),
    )


# Used by: late_nap_adjustment()
def expected_last_wake_window(age_in_days: int) -> int:
    for max_age, minutes in LAST_WAKE_WINDOWS:
        if age_in_days < max_age:
            return minutes
    return LAST_WAKE_WINDOW_DEFAULT_MINUTES


# Used by: predict_bedtime — last nap ended too close to bedtime
def late_nap_adjustment(
    minutes_since_last_nap: int,
    age_in_days: int
) -> Optional[BedtimeAdjustment]:
    expected = expected_last_wake_window(age_in_days)
    if minutes_since_last_nap >= expected - LATE_NAP_TOLERANCE_MINUTES:
        return None

    shortfall = expected - minutes_since_last_nap
    minutes = min(LATE_NAP_MAX_PUSH_MINUTES, round_half_up(shortfall / LATE_NAP_SHORTFALL_DIVISOR))
    return BedtimeAdjustment(
        minutes=minutes,
        note=(
            f"late nap, {format_duration(max(0, minutes_since_last_nap))} before bedtime "
            f"vs {format_duration(expected)} typical ({minutes:+d}min)"
        ),
        confidence_penalty=LATE_NAP_CONFIDENCE_PENALTY,
        confidence_floor=LATE_NAP_CONFIDENCE_FLOOR,
    )


# Used by: predict_bedtime — long stretch awake with no naps today
def no_nap_adjustment(awake_minutes: int) -> Optional[BedtimeAdjustment]:
    if awake_minutes <= NO_NAP_AWAKE_THRESHOLD_MINUTES:
        return None
    return BedtimeAdjustment(
        minutes=NO_NAP_ADJUSTMENT_MINUTES,
        note=f"no naps today, awake {format_duration(awake_minutes)} ({NO_NAP_ADJUSTMENT_MINUTES:+d}min)",
        confidence_penalty=NO_NAP_CONFIDENCE_PENALTY,
        confidence_floor=NO_NAP_CONFIDENCE_FLOOR,
    )
