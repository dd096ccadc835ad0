"""Infant sleep forecasting — next nap, bedtime and wake-up predictions."""

__version__ = "1.0.0"

from .services.age_patterns import SleepPattern, get_sleep_pattern_for_age, get_sleep_recommendations
from .services.personal_patterns import analyze_bedtime_patterns, analyze_nap_patterns
from .services.schedule_builder import personalized_from_history, recommended_for_age, resize_schedule
from .services.schedule_predictor import (
    PredictionResult,
    SchedulePredictor,
    confidence_level,
    generate_predictions,
    predict_bedtime,
    predict_next_nap,
    predict_wake_up,
)
from .utils.sleep_sessions import CustomScheduleConfig, SleepSession, SleepType, parse_sleep_sessions
