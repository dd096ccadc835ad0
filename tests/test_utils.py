import pytest
import pytz
from datetime import date, datetime

from sleep_forecast.core.utils import (
    age_in_days,
    at_local_time,
    format_duration,
    hhmm_to_minutes,
    local_date,
    minutes_between,
    minutes_since_midnight,
    minutes_to_hhmm,
    parse_hhmm,
    round_confidence,
    round_half_up,
)
from sleep_forecast.utils.sleep_sessions import (
    SleepSession,
    SleepType,
    group_sessions_by_day,
    latest_ended_session,
    parse_sleep_sessions,
    recent_completed_sessions,
)

from conftest import NOW, TODAY, at, nap, night


class TestTimeHelpers:

    def test_minutes_between_floors_partial_minutes(self):
        assert minutes_between(datetime(2024, 1, 1, 10, 30, 59), datetime(2024, 1, 1, 10, 0)) == 30
        assert minutes_between(datetime(2024, 1, 1, 9, 59, 30), datetime(2024, 1, 1, 10, 0)) == -1

    def test_parse_hhmm(self):
        assert parse_hhmm("19:30") == (19, 30)
        assert parse_hhmm(" 7:05 ") == (7, 5)
        assert hhmm_to_minutes("01:15") == 75

    @pytest.mark.parametrize("value", ["1930", "24:00", "19:60", "ab:cd", "19:30:00"])
    def test_parse_hhmm_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_minutes_to_hhmm_wraps_past_midnight(self):
        assert minutes_to_hhmm(1140) == "19:00"
        assert minutes_to_hhmm(1470) == "00:30"
        assert minutes_to_hhmm(-30) == "23:30"

    def test_format_duration(self):
        assert format_duration(90) == "1h 30m"
        assert format_duration(45) == "45m"
        assert format_duration(600) == "10h 0m"

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2
        assert round_half_up(-0.5) == 0

    def test_round_confidence_halves_up(self):
        assert round_confidence(0.625) == 0.63
        assert round_confidence(0.95) == 0.95
        assert round_confidence(0.6249) == 0.62
        assert round_confidence(0.7000000000000001) == 0.7

    def test_local_date_converts_aware_timestamps(self):
        value = pytz.utc.localize(datetime(2024, 6, 15, 2, 0))
        assert local_date(value, "America/New_York") == date(2024, 6, 14)
        assert minutes_since_midnight(value, "America/New_York") == 22 * 60

    def test_naive_timestamps_are_already_local(self):
        assert local_date(datetime(2024, 6, 15, 2, 0), "America/New_York") == date(2024, 6, 15)

    def test_at_local_time_matches_reference_awareness(self):
        naive = at_local_time(NOW, TODAY, 1140)
        assert naive == at(TODAY, 19)
        assert naive.tzinfo is None

        reference = pytz.timezone("Europe/Paris").localize(NOW)
        aware = at_local_time(reference, TODAY, 1140, "Europe/Paris")
        assert aware.tzinfo is not None
        assert (aware.hour, aware.minute) == (19, 0)

    def test_age_in_days_never_negative(self):
        assert age_in_days(date(2024, 1, 1), datetime(2024, 1, 31, 8, 0)) == 30
        assert age_in_days(date(2024, 2, 1), datetime(2024, 1, 31, 8, 0)) == 0
        assert age_in_days(datetime(2024, 1, 1, 23, 0), datetime(2024, 1, 2, 1, 0)) == 1


class TestSleepSessions:

    def test_duration_and_flags(self):
        session = nap(at(TODAY, 9), 75)
        assert session.is_complete
        assert session.is_nap and not session.is_nighttime
        assert session.duration_minutes == 75

        ongoing = SleepSession(start_time=at(TODAY, 9), sleep_type=SleepType.NIGHTTIME)
        assert not ongoing.is_complete
        assert ongoing.duration_minutes is None

    def test_parse_sleep_sessions_skips_malformed_rows(self):
        rows = [
            {"start_time": "2024-06-15T09:00:00Z", "end_time": "2024-06-15T10:00:00Z", "sleep_type": "nap"},
            {"start_time": "2024-06-14T19:00:00", "end_time": None, "sleep_type": "NIGHTTIME"},
            {"start_time": "not a date", "sleep_type": "NAP"},
            {"start_time": "2024-06-15T09:00:00", "end_time": "garbage", "sleep_type": "NAP"},
            {"start_time": "2024-06-15T09:00:00", "sleep_type": "SIESTA"},
        ]

        sessions = parse_sleep_sessions(rows)

        assert len(sessions) == 2
        assert sessions[0].sleep_type == SleepType.NAP
        assert sessions[0].start_time.tzinfo is not None
        assert sessions[0].duration_minutes == 60
        assert sessions[1].is_nighttime
        assert not sessions[1].is_complete

    def test_recent_completed_sessions_window(self):
        sessions = [
            nap(at(TODAY, 9), 60),
            nap(at(TODAY.replace(month=4), 9), 60),  # more than 60 days back
            SleepSession(start_time=at(TODAY, 11)),
        ]
        recent = recent_completed_sessions(sessions, NOW, 60)
        assert recent == [sessions[0]]

    def test_group_sessions_by_day(self):
        late = nap(at(TODAY, 14), 60)
        early = nap(at(TODAY, 9), 60)
        evening = night(at(TODAY.replace(day=14), 19), 660)

        grouped = group_sessions_by_day([late, evening, early])

        assert list(grouped) == [TODAY.replace(day=14), TODAY]
        assert grouped[TODAY] == [early, late]

    def test_latest_ended_session_ignores_future_and_ongoing(self):
        morning = nap(at(TODAY, 9), 60)
        future = nap(at(TODAY, 13), 60)
        ongoing = SleepSession(start_time=at(TODAY, 11, 30))

        assert latest_ended_session([morning, future, ongoing], NOW) is morning
        assert latest_ended_session([morning, future, ongoing]) is future
        assert latest_ended_session([ongoing], NOW) is None
