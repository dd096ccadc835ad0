import pytest
from datetime import timedelta

from sleep_forecast.services.personal_patterns import (
    analyze_bedtime_patterns,
    analyze_nap_patterns,
    analyze_night_sleep,
    consistency_score,
    evening_minutes,
    previous_night,
)

from conftest import NOW, TODAY, at, build_history, nap, night


class TestConsistency:

    def test_needs_three_samples(self):
        assert consistency_score([100, 100]) == 0.0

    def test_identical_samples_are_fully_consistent(self):
        assert consistency_score([120, 120, 120]) == 1.0

    def test_spread_lowers_score(self):
        assert consistency_score([100, 120, 140]) == pytest.approx(1 - 16.3299 / 120, abs=1e-4)

    def test_never_negative(self):
        assert consistency_score([1, 1, 200]) == 0.0


class TestPreviousNight:

    def test_picks_night_ending_on_nap_day(self):
        last_night = night(at(TODAY - timedelta(days=1), 19), 660)
        older = night(at(TODAY - timedelta(days=2), 19), 660)
        morning_nap = nap(at(TODAY, 9), 60)

        assert previous_night([older, last_night], morning_nap) is last_night

    def test_ignores_night_started_same_evening(self):
        tonight = night(at(TODAY, 19), 660)
        morning_nap = nap(at(TODAY, 9), 60)

        assert previous_night([tonight], morning_nap) is None


class TestNapPatterns:

    def test_first_nap_measured_from_previous_night(self):
        sessions = build_history(10, naps=((150, 75), (180, 60)))

        stats = analyze_nap_patterns(sessions, 0, now=NOW)

        assert stats.sample_size == 10
        assert stats.average_awake_window == 150
        assert stats.average_nap_duration == 75
        assert stats.consistency == 1.0

    def test_later_nap_measured_from_previous_nap(self):
        sessions = build_history(10, naps=((150, 75), (180, 60)))

        stats = analyze_nap_patterns(sessions, 1, now=NOW)

        assert stats.sample_size == 10
        assert stats.average_awake_window == 180
        assert stats.average_nap_duration == 60

    def test_days_without_the_slot_are_skipped(self):
        sessions = build_history(5, naps=((150, 75),))

        stats = analyze_nap_patterns(sessions, 1, now=NOW)

        assert stats.sample_size == 0
        assert stats.average_awake_window == 0.0
        assert stats.consistency == 0.0

    def test_outliers_discarded(self):
        sessions = build_history(3, naps=((150, 75),))
        # 700min awake window and a 320min nap, both past the outlier bounds
        day = TODAY - timedelta(days=4)
        sessions += [night(at(day - timedelta(days=1), 19), 660), nap(at(day, 6) + timedelta(minutes=700), 320)]

        stats = analyze_nap_patterns(sessions, 0, now=NOW)

        assert stats.sample_size == 3
        assert stats.average_nap_duration == 75

    def test_history_outside_window_ignored(self):
        sessions = build_history(5, naps=((150, 75),), first_day_offset=70)

        assert analyze_nap_patterns(sessions, 0, now=NOW).sample_size == 0


class TestBedtimePatterns:

    def test_evening_minutes_band(self):
        assert evening_minutes(at(TODAY, 19, 30)) == 1170
        assert evening_minutes(at(TODAY, 0, 30)) == 1470
        assert evening_minutes(at(TODAY, 13, 0)) is None

    def test_no_samples(self):
        stats = analyze_bedtime_patterns([nap(at(TODAY, 9), 60)], now=NOW)
        assert stats.sample_size == 0
        assert stats.average_bedtime is None
        assert stats.average_minutes is None

    def test_consistent_bedtimes(self):
        sessions = [night(at(TODAY - timedelta(days=k), 19, 30), 600) for k in range(1, 6)]

        stats = analyze_bedtime_patterns(sessions, now=NOW)

        assert stats.sample_size == 5
        assert stats.average_bedtime == (19, 30)
        assert stats.consistency == 1.0

    def test_bedtimes_across_midnight_average_in_evening_frame(self):
        sessions = []
        for k in range(1, 11):
            if k % 2:
                sessions.append(night(at(TODAY - timedelta(days=k - 1), 0, 30), 360))
            else:
                sessions.append(night(at(TODAY - timedelta(days=k), 23, 30), 420))

        stats = analyze_bedtime_patterns(sessions, now=NOW)

        assert stats.sample_size == 10
        assert stats.average_minutes == 1440
        assert stats.average_bedtime == (0, 0)
        assert stats.consistency == pytest.approx(0.5)

    def test_ongoing_and_daytime_nights_ignored(self):
        from sleep_forecast.utils.sleep_sessions import SleepSession, SleepType

        sessions = [
            night(at(TODAY - timedelta(days=1), 19), 660),
            night(at(TODAY - timedelta(days=2), 14), 120),
            SleepSession(start_time=at(TODAY, 11), sleep_type=SleepType.NIGHTTIME),
        ]

        assert analyze_bedtime_patterns(sessions, now=NOW).sample_size == 1


class TestNightSleep:

    def test_average_night_duration(self):
        sessions = [night(at(TODAY - timedelta(days=k), 19), 600 + 10 * k) for k in range(1, 4)]

        stats = analyze_night_sleep(sessions, now=NOW)

        assert stats.sample_size == 3
        assert stats.average_duration == 620

    def test_no_nights(self):
        stats = analyze_night_sleep([nap(at(TODAY, 9), 60)], now=NOW)
        assert stats.sample_size == 0
        assert stats.average_duration == 0.0
