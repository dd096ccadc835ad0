from datetime import date, datetime, timedelta

import pytest
import pytz

from sleep_forecast.core.utils import default_now
from sleep_forecast.services.personal_patterns import (
    analyze_bedtime_patterns,
    analyze_nap_patterns,
    analyze_night_sleep,
)
from sleep_forecast.services.schedule_builder import personalized_from_history
from sleep_forecast.services.schedule_predictor import (
    generate_predictions,
    predict_bedtime,
    predict_next_nap,
    predict_wake_up,
)
from sleep_forecast.utils.sleep_sessions import SleepSession, SleepType

from conftest import NOW, nap


BIRTH_DATE = date.today() - timedelta(days=200)


@pytest.fixture
def aware_history():
    """16 nights and 15 naps in UTC, the latest night ending two hours ago."""
    woke = datetime.now(pytz.utc).replace(microsecond=0) - timedelta(hours=2)
    sessions = []
    for k in range(16):
        night_end = woke - timedelta(days=k)
        sessions.append(SleepSession(night_end - timedelta(hours=11), night_end, SleepType.NIGHTTIME))
        if k:
            nap_start = night_end + timedelta(minutes=120)
            sessions.append(SleepSession(nap_start, nap_start + timedelta(minutes=90), SleepType.NAP))
    return sessions


class TestDefaultNow:

    def test_naive_sessions_give_naive_clock(self):
        assert default_now([nap(NOW, 60)]).tzinfo is None

    def test_no_sessions_give_naive_clock(self):
        assert default_now().tzinfo is None

    def test_any_aware_timestamp_gives_aware_clock(self):
        aware = SleepSession(start_time=pytz.utc.localize(NOW), sleep_type=SleepType.NAP)
        assert default_now([aware]).tzinfo is not None


class TestAwareSessionsWithoutNow:

    def test_next_nap(self, aware_history):
        result = predict_next_nap(BIRTH_DATE, aware_history)
        assert result.predicted_time.tzinfo is not None

    def test_bedtime(self, aware_history):
        result = predict_bedtime(BIRTH_DATE, aware_history)
        assert result.predicted_time.tzinfo is not None

    def test_wake_up(self, aware_history):
        current = SleepSession(
            start_time=datetime.now(pytz.utc) - timedelta(minutes=30),
            sleep_type=SleepType.NAP,
        )
        result = predict_wake_up(BIRTH_DATE, current, aware_history)
        assert result.predicted_time.tzinfo is not None

    def test_generate_predictions(self, aware_history):
        results = generate_predictions(BIRTH_DATE, aware_history)
        assert [r.prediction_type for r in results] == ["nap", "bedtime"]

    def test_analyzers(self, aware_history):
        analyze_nap_patterns(aware_history, 0)
        analyze_bedtime_patterns(aware_history)
        assert analyze_night_sleep(aware_history).sample_size == 16

    def test_analyzers_accept_generators(self, aware_history):
        assert analyze_night_sleep(s for s in aware_history).sample_size == 16

    def test_personalized_schedule(self, aware_history):
        schedule = personalized_from_history(aware_history, 200)
        assert schedule is not None
        assert schedule.night_sleep == 660
