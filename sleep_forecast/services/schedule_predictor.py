"""Predicts the next nap, bedtime and wake-up from age norms blended with personal history."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from .age_patterns import resolve_baseline
from .blending import (
    BedtimeAdjustment, blend, personal_weight,
    nap_count_adjustment, nap_duration_adjustment, late_nap_adjustment, no_nap_adjustment,
)
from .personal_patterns import (
    analyze_bedtime_patterns, analyze_nap_patterns, analyze_night_sleep,
)
from ..core.constants import (
    MINUTES_PER_DAY, BEDTIME_BAND_LATE_END_HOUR,
    NAP_BLEND_WEIGHT_CAP, NAP_BLEND_SCALE, NAP_BLEND_MIN_SAMPLES,
    NAP_NO_HISTORY_CONFIDENCE,
    NAP_PERSONAL_BASE_CONFIDENCE, NAP_SAMPLE_BONUS_CAP, NAP_SAMPLE_BONUS_SCALE,
    NAP_CONSISTENCY_BONUS_FACTOR, NAP_ACCURACY_BONUS_FACTOR, NAP_PERSONAL_MAX_CONFIDENCE,
    NAP_LIMITED_BASE_CONFIDENCE, NAP_LIMITED_PER_SAMPLE_BONUS,
    NAP_AGE_ONLY_BASE_CONFIDENCE, NAP_AGE_ONLY_MIN_CONFIDENCE,
    OVERDUE_CONFIDENCE_PER_MINUTE, OVERDUE_MAX_CONFIDENCE,
    BEDTIME_BLEND_WEIGHT_CAP, BEDTIME_BLEND_SCALE, BEDTIME_BLEND_MIN_SAMPLES,
    BEDTIME_CUSTOM_PERSONAL_BASE_CONFIDENCE, BEDTIME_PERSONAL_BASE_CONFIDENCE,
    BEDTIME_PERSONAL_MIN_SAMPLES, BEDTIME_PERSONAL_MIN_CONSISTENCY,
    BEDTIME_LIMITED_CONFIDENCE, BEDTIME_CUSTOM_ONLY_CONFIDENCE, BEDTIME_AGE_ONLY_CONFIDENCE,
    BEDTIME_SAMPLE_BONUS_CAP, BEDTIME_SAMPLE_BONUS_SCALE, BEDTIME_CONSISTENCY_BONUS_FACTOR,
    BEDTIME_MAX_CONFIDENCE,
    NIGHT_MIN_SAMPLES, NIGHT_PERSONAL_BASE_CONFIDENCE, NIGHT_SAMPLE_BONUS_SCALE,
    NIGHT_PERSONAL_MAX_CONFIDENCE, NIGHT_AGE_ONLY_CONFIDENCE,
    WAKE_UP_NAP_BLEND_WEIGHT_CAP, WAKE_UP_NAP_BLEND_SCALE, WAKE_UP_NAP_MIN_SAMPLES,
    WAKE_UP_NAP_BASE_CONFIDENCE, WAKE_UP_NAP_SAMPLE_BONUS_SCALE,
    WAKE_UP_NAP_CONSISTENCY_BONUS_FACTOR, WAKE_UP_NAP_MAX_CONFIDENCE,
    WAKE_UP_NAP_AGE_ONLY_CONFIDENCE,
    APPROACHING_DURATION_FRACTION, APPROACHING_CONFIDENCE_BONUS, APPROACHING_MAX_CONFIDENCE,
    CONFIDENCE_HIGH_THRESHOLD, CONFIDENCE_MEDIUM_THRESHOLD,
)
from ..core.utils import (
    add_minutes, age_in_days, at_local_time, default_now, format_duration, hhmm_to_minutes,
    local_date, minutes_between, minutes_to_hhmm, round_confidence, round_half_up, to_local,
)
from ..utils.sleep_sessions import CustomScheduleConfig, SleepSession, latest_ended_session

logger = logging.getLogger(__name__)

REASONING_SEPARATOR = "; "


@dataclass(frozen=True)
class PredictionResult:
    predicted_time: datetime
    confidence: float  # 0-1, 2 decimals
    reasoning: str
    predicted_duration: Optional[int] = None  # minutes; None for bedtime
    prediction_type: str = "nap"  # "nap", "bedtime", "wakeup"


# Used by: api/predictions.py — display label for a confidence value
def confidence_level(confidence: float) -> str:
    if confidence >= CONFIDENCE_HIGH_THRESHOLD:
        return "high"
    if confidence >= CONFIDENCE_MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def _to_evening(minutes: int) -> int:
    """Clock minutes in the evening-relative frame used for bedtimes (00:30 -> 1470)."""
    if minutes < BEDTIME_BAND_LATE_END_HOUR * 60:
        return minutes + MINUTES_PER_DAY
    return minutes


# Used by: predict_bedtime — bedtime belongs to the evening it was initiated
def _evening_day(now: datetime) -> date:
    local_now = to_local(now)
    if local_now.hour < BEDTIME_BAND_LATE_END_HOUR:
        return local_now.date() - timedelta(days=1)
    return local_now.date()


def _bedtime_on(now: datetime, evening: date, evening_minutes: int) -> datetime:
    """Clock time for evening_minutes, rolled to the next day once it has passed."""
    day = evening + timedelta(days=evening_minutes // MINUTES_PER_DAY)
    predicted = at_local_time(now, day, evening_minutes % MINUTES_PER_DAY)
    if predicted < now:
        predicted = at_local_time(now, day + timedelta(days=1), evening_minutes % MINUTES_PER_DAY)
    return predicted


class SchedulePredictor:
    """Stateless: every call derives statistics fresh from the snapshots it is given."""

    # Used by: predict_next_nap(), generate_predictions(), api/predictions.py
    def predict_next_nap(
            self,
            birth_date: Union[date, datetime],
            sessions: Iterable[SleepSession],
            now: Optional[datetime] = None,
            custom_schedule: Optional[CustomScheduleConfig] = None
    ) -> PredictionResult:
        sessions = list(sessions)
        if now is None:
            now = default_now(sessions)

        age_days = age_in_days(birth_date, now)
        baseline = resolve_baseline(age_days, custom_schedule)
        source = "custom schedule" if custom_schedule is not None else "typical sleep pattern for age"

        last_sleep = latest_ended_session(sessions, now)
        if last_sleep is None:
            logger.info(f"No completed sleep before {now}, using {source}")
            return PredictionResult(
                predicted_time=add_minutes(now, baseline.awake_window_for(0)),
                confidence=NAP_NO_HISTORY_CONFIDENCE,
                predicted_duration=baseline.nap_duration_for(0),
                reasoning=f"Based on {source} (no recent data)",
                prediction_type="nap",
            )

        time_awake = minutes_between(now, last_sleep.end_time)

        today = local_date(now)
        naps_today = [
            s for s in sessions
            if s.is_nap and s.start_time <= now and local_date(s.start_time) == today
        ]
        nap_index = max(0, min(len(naps_today), baseline.average_naps - 1))
        expected_awake_window = baseline.awake_window_for(nap_index)
        expected_nap_duration = baseline.nap_duration_for(nap_index)

        personal = analyze_nap_patterns(sessions, nap_index, now=now)

        final_awake_window = expected_awake_window
        final_nap_duration = expected_nap_duration

        if personal.sample_size >= NAP_BLEND_MIN_SAMPLES:
            weight = personal_weight(personal.sample_size, NAP_BLEND_WEIGHT_CAP, NAP_BLEND_SCALE)
            final_awake_window = blend(personal.average_awake_window, expected_awake_window, weight)
            if personal.average_nap_duration > 0:
                final_nap_duration = blend(personal.average_nap_duration, expected_nap_duration, weight)

            sample_bonus = min(NAP_SAMPLE_BONUS_CAP, personal.sample_size / NAP_SAMPLE_BONUS_SCALE)
            consistency_bonus = personal.consistency * NAP_CONSISTENCY_BONUS_FACTOR
            accuracy = 0.0
            if final_awake_window > 0:
                accuracy = max(0.0, 1 - abs(time_awake - final_awake_window) / final_awake_window)

            confidence = min(
                NAP_PERSONAL_MAX_CONFIDENCE,
                NAP_PERSONAL_BASE_CONFIDENCE + sample_bonus + consistency_bonus
                + accuracy * NAP_ACCURACY_BONUS_FACTOR
            )
            reasoning = (
                f"Blended with personalized history ({personal.sample_size} samples, "
                f"{round_half_up(personal.consistency * 100)}% consistent) - "
                f"{time_awake}min awake, expecting {final_awake_window}min"
            )
            logger.info(f"Next nap: personalized regime, {personal.sample_size} samples, weight={weight:.2f}")
        elif personal.sample_size > 0:
            confidence = NAP_LIMITED_BASE_CONFIDENCE + personal.sample_size * NAP_LIMITED_PER_SAMPLE_BONUS
            reasoning = (
                f"Limited data ({personal.sample_size} samples) + {source} - "
                f"{time_awake}min awake, expecting {final_awake_window}min"
            )
            logger.info(f"Next nap: limited-data regime, {personal.sample_size} samples")
        else:
            confidence = NAP_AGE_ONLY_MIN_CONFIDENCE
            if expected_awake_window > 0:
                difference = abs(time_awake - expected_awake_window)
                confidence = max(
                    NAP_AGE_ONLY_MIN_CONFIDENCE,
                    NAP_AGE_ONLY_BASE_CONFIDENCE - difference / expected_awake_window
                )
            label = "Custom schedule only" if custom_schedule is not None else "Age-based pattern only"
            reasoning = f"{label} - {time_awake}min awake, expecting {expected_awake_window}min"
            logger.info("Next nap: baseline-only regime")

        predicted_time = add_minutes(last_sleep.end_time, final_awake_window)

        if predicted_time < now:
            minutes_overdue = minutes_between(now, predicted_time)
            confidence = min(confidence + minutes_overdue * OVERDUE_CONFIDENCE_PER_MINUTE, OVERDUE_MAX_CONFIDENCE)
            reasoning += f" ({minutes_overdue}min overdue - suggesting now)"
            predicted_time = now

        return PredictionResult(
            predicted_time=predicted_time,
            confidence=round_confidence(confidence),
            predicted_duration=final_nap_duration,
            reasoning=f"{reasoning} - Nap {nap_index + 1}/{baseline.average_naps}",
            prediction_type="nap",
        )

    # Used by: predict_bedtime(), generate_predictions(), api/predictions.py
    def predict_bedtime(
            self,
            birth_date: Union[date, datetime],
            sessions: Iterable[SleepSession],
            now: Optional[datetime] = None,
            custom_schedule: Optional[CustomScheduleConfig] = None
    ) -> PredictionResult:
        sessions = list(sessions)
        if now is None:
            now = default_now(sessions)

        age_days = age_in_days(birth_date, now)
        baseline = resolve_baseline(age_days, custom_schedule)
        uses_custom_bedtime = (
            custom_schedule is not None
            and bool(custom_schedule.bedtime)
            and baseline.bedtime == custom_schedule.bedtime
        )

        baseline_minutes = _to_evening(hhmm_to_minutes(baseline.bedtime))
        bedtime_minutes = baseline_minutes

        personal = analyze_bedtime_patterns(sessions, now=now)
        samples = personal.sample_size
        consistency_pct = round_half_up(personal.consistency * 100)
        has_personal = samples >= BEDTIME_BLEND_MIN_SAMPLES

        if has_personal:
            weight = personal_weight(samples, BEDTIME_BLEND_WEIGHT_CAP, BEDTIME_BLEND_SCALE)
            bedtime_minutes = blend(personal.average_minutes, baseline_minutes, weight)

        bonuses = (
            min(BEDTIME_SAMPLE_BONUS_CAP, samples / BEDTIME_SAMPLE_BONUS_SCALE)
            + personal.consistency * BEDTIME_CONSISTENCY_BONUS_FACTOR
        )

        if uses_custom_bedtime and has_personal:
            confidence = min(BEDTIME_MAX_CONFIDENCE, BEDTIME_CUSTOM_PERSONAL_BASE_CONFIDENCE + bonuses)
            notes = [
                f"Custom bedtime {baseline.bedtime} blended with personalized history "
                f"({samples} samples, {consistency_pct}% consistent)"
            ]
        elif (not uses_custom_bedtime and samples >= BEDTIME_PERSONAL_MIN_SAMPLES
              and personal.consistency >= BEDTIME_PERSONAL_MIN_CONSISTENCY):
            confidence = min(BEDTIME_MAX_CONFIDENCE, BEDTIME_PERSONAL_BASE_CONFIDENCE + bonuses)
            notes = [
                f"Personalized bedtime ({samples} samples, {consistency_pct}% consistent) "
                f"blended with age pattern {baseline.bedtime}"
            ]
        elif has_personal:
            confidence = BEDTIME_LIMITED_CONFIDENCE
            notes = [
                f"Limited data ({samples} samples, {consistency_pct}% consistent) "
                f"blended with age pattern {baseline.bedtime}"
            ]
        elif uses_custom_bedtime:
            confidence = BEDTIME_CUSTOM_ONLY_CONFIDENCE
            notes = [f"Custom bedtime {baseline.bedtime}"]
        else:
            confidence = BEDTIME_AGE_ONLY_CONFIDENCE
            notes = [f"Age-based bedtime pattern: {baseline.bedtime}"]

        if 0 < samples < BEDTIME_BLEND_MIN_SAMPLES:
            notes.append(f"limited data ({samples} bedtime samples)")

        evening = _evening_day(now)
        unadjusted = _bedtime_on(now, evening, bedtime_minutes)

        adjustments: List[BedtimeAdjustment] = []
        naps_today = [
            s for s in sessions
            if s.is_nap and s.is_complete and s.end_time <= now
            and local_date(s.start_time) == evening
        ]

        if naps_today:
            adjustments.append(nap_count_adjustment(len(naps_today), baseline.average_naps))
            adjustments.append(nap_duration_adjustment(
                sum(s.duration_minutes for s in naps_today),
                baseline.expected_nap_minutes,
            ))
            last_nap_end = max(s.end_time for s in naps_today)
            adjustments.append(late_nap_adjustment(minutes_between(unadjusted, last_nap_end), age_days))
        else:
            last_sleep = latest_ended_session(sessions, now)
            if last_sleep is not None:
                adjustments.append(no_nap_adjustment(minutes_between(now, last_sleep.end_time)))

        offset = 0
        for adjustment in adjustments:
            if adjustment is None:
                continue
            offset += adjustment.minutes
            confidence = adjustment.apply_confidence(confidence)
            notes.append(adjustment.note)

        predicted_time = _bedtime_on(now, evening, bedtime_minutes + offset)
        logger.info(
            f"Bedtime: {minutes_to_hhmm(bedtime_minutes + offset)} "
            f"({samples} samples, offset {offset:+d}min, custom={uses_custom_bedtime})"
        )

        return PredictionResult(
            predicted_time=predicted_time,
            confidence=round_confidence(confidence),
            reasoning=REASONING_SEPARATOR.join(notes),
            prediction_type="bedtime",
        )

    # Used by: predict_wake_up(), generate_predictions(), api/predictions.py
    def predict_wake_up(
            self,
            birth_date: Union[date, datetime],
            current_session: SleepSession,
            sessions: Iterable[SleepSession],
            now: Optional[datetime] = None,
            custom_schedule: Optional[CustomScheduleConfig] = None
    ) -> PredictionResult:
        sessions = list(sessions)
        if now is None:
            now = default_now(sessions + [current_session])

        if current_session.is_complete:
            logger.warning(f"Predicting wake-up for a session that already ended at {current_session.end_time}")

        age_days = age_in_days(birth_date, now)
        baseline = resolve_baseline(age_days, custom_schedule)
        elapsed = minutes_between(now, current_session.start_time)

        if current_session.is_nighttime:
            nights = analyze_night_sleep(sessions, now=now)
            if nights.sample_size >= NIGHT_MIN_SAMPLES:
                expected_duration = round_half_up(nights.average_duration)
                confidence = min(
                    NIGHT_PERSONAL_MAX_CONFIDENCE,
                    NIGHT_PERSONAL_BASE_CONFIDENCE + nights.sample_size / NIGHT_SAMPLE_BONUS_SCALE
                )
                reasoning = (
                    f"Personal night pattern: avg {format_duration(expected_duration)} "
                    f"({nights.sample_size} nights)"
                )
            else:
                expected_duration = baseline.night_sleep
                confidence = NIGHT_AGE_ONLY_CONFIDENCE
                reasoning = f"Age-based night sleep: {format_duration(expected_duration)}"
        else:
            session_day = local_date(current_session.start_time)
            nap_index = len([
                s for s in sessions
                if s.is_nap and s.start_time < current_session.start_time
                and local_date(s.start_time) == session_day
            ])
            expected_duration = baseline.nap_duration_for(nap_index)

            personal = analyze_nap_patterns(sessions, nap_index, now=now)
            if personal.sample_size >= WAKE_UP_NAP_MIN_SAMPLES and personal.average_nap_duration > 0:
                weight = personal_weight(
                    personal.sample_size, WAKE_UP_NAP_BLEND_WEIGHT_CAP, WAKE_UP_NAP_BLEND_SCALE
                )
                expected_duration = blend(personal.average_nap_duration, expected_duration, weight)
                confidence = min(
                    WAKE_UP_NAP_MAX_CONFIDENCE,
                    WAKE_UP_NAP_BASE_CONFIDENCE
                    + personal.sample_size / WAKE_UP_NAP_SAMPLE_BONUS_SCALE
                    + personal.consistency * WAKE_UP_NAP_CONSISTENCY_BONUS_FACTOR
                )
                reasoning = (
                    f"Personal nap {nap_index + 1} pattern: {format_duration(expected_duration)} "
                    f"({personal.sample_size} samples)"
                )
            else:
                confidence = WAKE_UP_NAP_AGE_ONLY_CONFIDENCE
                reasoning = f"Age-based nap {nap_index + 1}: {format_duration(expected_duration)}"

        if elapsed > expected_duration * APPROACHING_DURATION_FRACTION:
            confidence = min(APPROACHING_MAX_CONFIDENCE, confidence + APPROACHING_CONFIDENCE_BONUS)
            reasoning += " (approaching typical duration)"

        logger.info(
            f"Wake-up: {current_session.sleep_type.value} expected {expected_duration}min, "
            f"{elapsed}min elapsed"
        )

        return PredictionResult(
            predicted_time=add_minutes(current_session.start_time, expected_duration),
            confidence=round_confidence(confidence),
            predicted_duration=expected_duration,
            reasoning=reasoning,
            prediction_type="wakeup",
        )

    # Used by: generate_predictions(), api/predictions.py (POST /predictions)
    def generate_predictions(
            self,
            birth_date: Union[date, datetime],
            sessions: Iterable[SleepSession],
            now: Optional[datetime] = None,
            custom_schedule: Optional[CustomScheduleConfig] = None
    ) -> List[PredictionResult]:
        """Wake-up while a session is in progress, otherwise next nap and bedtime."""
        sessions = list(sessions)
        if now is None:
            now = default_now(sessions)

        in_progress = [s for s in sessions if not s.is_complete and s.start_time <= now]
        if in_progress:
            current = max(in_progress, key=lambda s: s.start_time)
            return [self.predict_wake_up(birth_date, current, sessions, now, custom_schedule)]

        return [
            self.predict_next_nap(birth_date, sessions, now, custom_schedule),
            self.predict_bedtime(birth_date, sessions, now, custom_schedule),
        ]


_predictor = SchedulePredictor()


def predict_next_nap(
    birth_date: Union[date, datetime],
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    custom_schedule: Optional[CustomScheduleConfig] = None
) -> PredictionResult:
    return _predictor.predict_next_nap(birth_date, sessions, now, custom_schedule)


def predict_bedtime(
    birth_date: Union[date, datetime],
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    custom_schedule: Optional[CustomScheduleConfig] = None
) -> PredictionResult:
    return _predictor.predict_bedtime(birth_date, sessions, now, custom_schedule)


def predict_wake_up(
    birth_date: Union[date, datetime],
    current_session: SleepSession,
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    custom_schedule: Optional[CustomScheduleConfig] = None
) -> PredictionResult:
    return _predictor.predict_wake_up(birth_date, current_session, sessions, now, custom_schedule)


def generate_predictions(
    birth_date: Union[date, datetime],
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None,
    custom_schedule: Optional[CustomScheduleConfig] = None
) -> List[PredictionResult]:
    return _predictor.generate_predictions(birth_date, sessions, now, custom_schedule)
