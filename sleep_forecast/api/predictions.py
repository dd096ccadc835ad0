"""
Predictions API — stateless sleep forecasts over caller-supplied history.

Routes (/predictions):
  POST /                      - Wake-up while asleep, otherwise next nap + bedtime
  POST /next-nap              - Next nap time, confidence and expected duration
  POST /bedtime               - Tonight's bedtime with same-day adjustments
  POST /wake-up               - Wake-up time for the session in progress
  GET  /schedule/recommended  - Age-based schedule for the configuration screen
  POST /schedule/personalized - Schedule derived from the last 60 days of sessions
  POST /schedule/resize       - Change nap count, extending or truncating slots
  GET  /recommendations       - Age-based sleep totals and tips
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from .models import (
    SleepSessionIn,
    CustomScheduleIn,
    PredictionRequest,
    WakeUpRequest,
    PersonalizedScheduleRequest,
    ResizeScheduleRequest,
    PredictionResponse,
    PredictionsResponse,
    RecommendedScheduleResponse,
    SleepRecommendationsResponse,
)
from ..core.utils import default_now, format_duration, minutes_between
from ..services.age_patterns import get_sleep_recommendations
from ..services.schedule_builder import personalized_from_history, recommended_for_age, resize_schedule
from ..services.schedule_predictor import PredictionResult, SchedulePredictor, confidence_level

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/predictions", tags=["predictions"])

predictor = SchedulePredictor()


# Used by: every POST endpoint — all timestamps aware or all naive, now defaults to the server clock
def resolve_now(now: Optional[datetime], sessions: List[SleepSessionIn]) -> datetime:
    stamps = [s.start_time for s in sessions] + [s.end_time for s in sessions if s.end_time]
    if now is not None:
        stamps.append(now)

    awareness = {stamp.tzinfo is not None for stamp in stamps}
    if len(awareness) > 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Timestamps must be either all timezone-aware or all naive"
        )

    if now is not None:
        return now
    return default_now(sessions)


# Used by: all prediction endpoints
def to_response(result: PredictionResult, now: datetime) -> PredictionResponse:
    return PredictionResponse(
        type=result.prediction_type,
        predicted_time=result.predicted_time,
        predicted_time_formatted=result.predicted_time.strftime("%I:%M %p"),
        minutes_until=minutes_between(result.predicted_time, now),
        confidence=result.confidence,
        confidence_level=confidence_level(result.confidence),
        predicted_duration=result.predicted_duration,
        predicted_duration_formatted=(
            format_duration(result.predicted_duration) if result.predicted_duration is not None else None
        ),
        reasoning=result.reasoning,
    )


def _custom(custom_schedule: Optional[CustomScheduleIn]):
    return custom_schedule.to_config() if custom_schedule is not None else None


# Used by: Home Dashboard — all current predictions
@router.post("", response_model=PredictionsResponse)
async def get_predictions(request: PredictionRequest):
    now = resolve_now(request.now, request.sessions)

    results = predictor.generate_predictions(
        birth_date=request.birth_date,
        sessions=[s.to_session() for s in request.sessions],
        now=now,
        custom_schedule=_custom(request.custom_schedule),
    )

    logger.info(f"Generated {len(results)} predictions from {len(request.sessions)} sessions")
    return PredictionsResponse(
        generated_at=now,
        predictions=[to_response(r, now) for r in results],
    )


# Used by: Home Dashboard — next nap card
@router.post("/next-nap", response_model=PredictionResponse)
async def get_next_nap(request: PredictionRequest):
    now = resolve_now(request.now, request.sessions)

    result = predictor.predict_next_nap(
        birth_date=request.birth_date,
        sessions=[s.to_session() for s in request.sessions],
        now=now,
        custom_schedule=_custom(request.custom_schedule),
    )
    return to_response(result, now)


# Used by: Home Dashboard — bedtime card
@router.post("/bedtime", response_model=PredictionResponse)
async def get_bedtime(request: PredictionRequest):
    now = resolve_now(request.now, request.sessions)

    result = predictor.predict_bedtime(
        birth_date=request.birth_date,
        sessions=[s.to_session() for s in request.sessions],
        now=now,
        custom_schedule=_custom(request.custom_schedule),
    )
    return to_response(result, now)


# Used by: Sleep Timer — wake-up estimate while asleep
@router.post("/wake-up", response_model=PredictionResponse)
async def get_wake_up(request: WakeUpRequest):
    if request.current_session.end_time is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Wake-up prediction requires a session that is still in progress"
        )

    now = resolve_now(request.now, request.sessions + [request.current_session])

    result = predictor.predict_wake_up(
        birth_date=request.birth_date,
        current_session=request.current_session.to_session(),
        sessions=[s.to_session() for s in request.sessions],
        now=now,
        custom_schedule=_custom(request.custom_schedule),
    )
    return to_response(result, now)


# Used by: Schedule Config — "use recommended" button
@router.get("/schedule/recommended", response_model=RecommendedScheduleResponse)
async def get_recommended_schedule(
    age_days: int = Query(..., ge=0, description="Baby age in days")
):
    return RecommendedScheduleResponse(**recommended_for_age(age_days).to_dict())


# Used by: Schedule Config — "use my baby's pattern" button
@router.post("/schedule/personalized", response_model=RecommendedScheduleResponse)
async def get_personalized_schedule(request: PersonalizedScheduleRequest):
    now = resolve_now(request.now, request.sessions)

    schedule = personalized_from_history(
        sessions=[s.to_session() for s in request.sessions],
        age_in_days=request.age_days,
        now=now,
    )

    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not enough sleep history for a personalized schedule"
        )

    return RecommendedScheduleResponse(**schedule.to_dict())


# Used by: Schedule Config — naps-per-day stepper
@router.post("/schedule/resize", response_model=CustomScheduleIn)
async def resize_custom_schedule(request: ResizeScheduleRequest):
    resized = resize_schedule(request.schedule.to_config(), request.naps_per_day)
    return CustomScheduleIn.from_config(resized)


# Used by: Settings page — age-based guidance
@router.get("/recommendations", response_model=SleepRecommendationsResponse)
async def get_recommendations(
    age_days: int = Query(..., ge=0, description="Baby age in days")
):
    return SleepRecommendationsResponse(age_days=age_days, **get_sleep_recommendations(age_days))
