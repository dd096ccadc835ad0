"""Pydantic request/response models for the prediction endpoints."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import List, Optional, Literal

from ..core.utils import parse_hhmm, minutes_to_hhmm
from ..utils.sleep_sessions import CustomScheduleConfig, SleepSession, SleepType


# Request models

class SleepSessionIn(BaseModel):
    start_time: datetime
    end_time: Optional[datetime] = None  # None while the baby is still asleep
    sleep_type: Literal["NAP", "NIGHTTIME"]

    def to_session(self) -> SleepSession:
        return SleepSession(
            start_time=self.start_time,
            end_time=self.end_time,
            sleep_type=SleepType(self.sleep_type),
        )


class CustomScheduleIn(BaseModel):
    naps_per_day: int = Field(..., ge=1, le=5)
    wake_windows: List[int] = Field(default_factory=list)
    nap_durations: List[int] = Field(default_factory=list)
    bedtime: Optional[str] = None  # "HH:MM"

    @field_validator("wake_windows", "nap_durations")
    @classmethod
    def validate_positive_minutes(cls, values: List[int]) -> List[int]:
        if any(v <= 0 for v in values):
            raise ValueError("minutes must be positive")
        return values

    @field_validator("bedtime")
    @classmethod
    def validate_bedtime(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        hours, minutes = parse_hhmm(value)
        return minutes_to_hhmm(hours * 60 + minutes)

    def to_config(self) -> CustomScheduleConfig:
        return CustomScheduleConfig(
            naps_per_day=self.naps_per_day,
            wake_windows=self.wake_windows,
            nap_durations=self.nap_durations,
            bedtime=self.bedtime,
        )

    @classmethod
    def from_config(cls, config: CustomScheduleConfig) -> "CustomScheduleIn":
        return cls(
            naps_per_day=config.naps_per_day,
            wake_windows=list(config.wake_windows),
            nap_durations=list(config.nap_durations),
            bedtime=config.bedtime,
        )


class PredictionRequest(BaseModel):
    birth_date: date
    sessions: List[SleepSessionIn] = Field(default_factory=list)
    now: Optional[datetime] = None  # defaults to the server clock
    custom_schedule: Optional[CustomScheduleIn] = None


class WakeUpRequest(BaseModel):
    birth_date: date
    current_session: SleepSessionIn
    sessions: List[SleepSessionIn] = Field(default_factory=list)
    now: Optional[datetime] = None
    custom_schedule: Optional[CustomScheduleIn] = None


class PersonalizedScheduleRequest(BaseModel):
    age_days: int = Field(..., ge=0)
    sessions: List[SleepSessionIn] = Field(default_factory=list)
    now: Optional[datetime] = None


class ResizeScheduleRequest(BaseModel):
    schedule: CustomScheduleIn
    naps_per_day: int


# Response models

class PredictionResponse(BaseModel):
    type: Literal["nap", "bedtime", "wakeup"]
    predicted_time: datetime
    predicted_time_formatted: str  # "07:15 PM"
    minutes_until: int
    confidence: float
    confidence_level: Literal["high", "medium", "low"]
    predicted_duration: Optional[int] = None
    predicted_duration_formatted: Optional[str] = None  # "1h 30m"
    reasoning: str


class PredictionsResponse(BaseModel):
    generated_at: datetime
    predictions: List[PredictionResponse]


class RecommendedScheduleResponse(BaseModel):
    average_naps: int
    nap_durations: List[int]
    awake_windows: List[int]
    bedtime: str  # "HH:MM"
    night_sleep: int


class SleepRecommendationsResponse(BaseModel):
    age_days: int
    total_day_sleep: int
    total_night_sleep: int
    awake_windows: List[int]
    tips: List[str]


class HealthResponse(BaseModel):
    status: str
    version: str
