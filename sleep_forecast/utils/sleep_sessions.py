"""Sleep session snapshots supplied by the caller, plus parsing and per-day grouping."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sleep_forecast.core.utils import local_date, minutes_between

logger = logging.getLogger(__name__)


class SleepType(str, Enum):
    NAP = "NAP"
    NIGHTTIME = "NIGHTTIME"


# Used by: every analyzer and predictor — read-only from the engine's perspective
@dataclass(frozen=True)
class SleepSession:
    start_time: datetime
    end_time: Optional[datetime] = None
    sleep_type: SleepType = SleepType.NAP

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None

    @property
    def is_nap(self) -> bool:
        return self.sleep_type == SleepType.NAP

    @property
    def is_nighttime(self) -> bool:
        return self.sleep_type == SleepType.NIGHTTIME

    @property
    def duration_minutes(self) -> Optional[int]:
        """Whole minutes; negative if end precedes start (left to the caller to prevent)."""
        if self.end_time is None:
            return None
        return minutes_between(self.end_time, self.start_time)


# Used by: age_patterns.resolve_baseline, schedule_builder.resize_schedule
@dataclass(frozen=True)
class CustomScheduleConfig:
    naps_per_day: int
    wake_windows: Tuple[int, ...] = field(default_factory=tuple)
    nap_durations: Tuple[int, ...] = field(default_factory=tuple)
    bedtime: Optional[str] = None  # "HH:MM"

    def __post_init__(self):
        # Accept lists from callers, keep the snapshot immutable
        object.__setattr__(self, "wake_windows", tuple(self.wake_windows))
        object.__setattr__(self, "nap_durations", tuple(self.nap_durations))


# Used by: parse_sleep_sessions()
def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            pass
    return None


# Used by: api/predictions.py and callers holding raw rows
def parse_sleep_sessions(raw_sessions: Iterable[Dict[str, Any]]) -> List[SleepSession]:
    """Rows with start_time, optional end_time, sleep_type; malformed rows are skipped."""
    sessions = []

    for row in raw_sessions:
        try:
            start_time = _parse_timestamp(row.get("start_time"))
            if start_time is None:
                logger.warning(f"Skipping sleep session without a valid start_time: {row!r}")
                continue

            raw_end = row.get("end_time")
            end_time = _parse_timestamp(raw_end)
            if raw_end is not None and end_time is None:
                logger.warning(f"Skipping sleep session with invalid end_time: {raw_end!r}")
                continue

            sessions.append(SleepSession(
                start_time=start_time,
                end_time=end_time,
                sleep_type=SleepType(str(row.get("sleep_type", "")).upper()),
            ))
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse sleep session: {e}")
            continue

    return sessions


# Used by: personal_patterns.py, schedule_builder.py — completed sessions inside the rolling window
def recent_completed_sessions(
    sessions: Iterable[SleepSession],
    now: datetime,
    window_days: int
) -> List[SleepSession]:
    cutoff = now - timedelta(days=window_days)
    relevant = [s for s in sessions if s.end_time is not None and s.start_time > cutoff]
    return sorted(relevant, key=lambda s: s.start_time)


# Used by: personal_patterns.py, schedule_builder.py
def group_sessions_by_day(sessions: Iterable[SleepSession]) -> Dict[date, List[SleepSession]]:
    """Local calendar date of start -> sessions in start order, days ascending."""
    daily = defaultdict(list)
    for session in sessions:
        daily[local_date(session.start_time)].append(session)

    return {
        day: sorted(day_sessions, key=lambda s: s.start_time)
        for day, day_sessions in sorted(daily.items())
    }


def naps_of(day_sessions: Iterable[SleepSession]) -> List[SleepSession]:
    return sorted((s for s in day_sessions if s.is_nap), key=lambda s: s.start_time)


# Used by: predict_next_nap, predict_bedtime — most recently ended session at or before now
def latest_ended_session(
    sessions: Iterable[SleepSession],
    now: Optional[datetime] = None
) -> Optional[SleepSession]:
    ended = [
        s for s in sessions
        if s.end_time is not None and (now is None or s.end_time <= now)
    ]
    if not ended:
        return None
    return max(ended, key=lambda s: s.end_time)
