"""Tests for fatigue detection and workout derating."""
import pytest

from adaptive_training.models.schemas import FatigueLevel, InjuryStatus, RecoveryMetrics, WorkoutType
from adaptive_training.services.fatigue import FatigueDetector, FatigueDetectorHelper
from adaptive_training.services.normalizer import normalize_runs
from adaptive_training.services.training_load import TrainingLoadCalculator

from conftest import AS_OF, days_from, make_completed, make_planned


def hard_short_sessions(offsets):
    return [make_completed(days_from(o), effort=8, completion_rate=0.8) for o in offsets]


@pytest.fixture
def upcoming():
    return [
        make_planned("done", days_from(-1), WorkoutType.TEMPO, 60, 80),
        make_planned("threshold", days_from(1), WorkoutType.THRESHOLD, 60, 80),
        make_planned("recovery", days_from(2), WorkoutType.RECOVERY, 30, 50),
    ]


class TestAcuteFatigue:
    """Test the short-term fatigue score."""

    def test_signals_add_up(self):
        runs = normalize_runs(
            [
                make_completed(days_from(-1), effort=9, completion_rate=0.8, notes="Very tired today"),
                make_completed(days_from(-5), effort=10, completion_rate=0.5, notes="fatigue"),
            ]
        )
        assert FatigueDetectorHelper.acute_fatigue_score(runs, AS_OF, 3) == 43

    def test_capped_at_100(self):
        runs = normalize_runs(
            make_completed(days_from(0), effort=10, completion_rate=0.5, notes="tired", workout_id=str(i))
            for i in range(5)
        )
        assert FatigueDetectorHelper.acute_fatigue_score(runs, AS_OF, 3) == 100


class TestChronicFatigue:
    """Test consecutive hard-and-short sessions."""

    def test_persistent(self):
        runs = normalize_runs(hard_short_sessions(range(-4, 1)))
        streak = FatigueDetectorHelper.chronic_fatigue_streak(runs)

        assert streak.detected
        assert streak.sessions == 5
        assert streak.pattern == "persistent_underperformance"

    def test_emerging(self):
        runs = normalize_runs(hard_short_sessions(range(-2, 1)))
        streak = FatigueDetectorHelper.chronic_fatigue_streak(runs)

        assert streak.detected
        assert streak.pattern == "emerging_fatigue"

    def test_good_session_breaks_streak(self):
        records = hard_short_sessions([-5, -4]) + [make_completed(days_from(-3), effort=5)]
        records += hard_short_sessions([-2, -1])
        streak = FatigueDetectorHelper.chronic_fatigue_streak(normalize_runs(records))

        assert not streak.detected
        assert streak.sessions == 2


class TestTssOverload:
    """Test calendar-consecutive high-stress days."""

    @staticmethod
    def big_days(offsets):
        # 100 min at threshold pace = 166.7 TSS
        return normalize_runs(make_completed(days_from(o), duration=100, distance=20) for o in offsets)

    def test_consecutive_days(self):
        overload = FatigueDetectorHelper.tss_overload_streak(self.big_days([-4, -3, -2, 0]), 5.0)

        assert overload.detected
        assert overload.consecutive_days == 3
        assert overload.max_daily_tss == pytest.approx(166.7)

    def test_rest_day_breaks_streak(self):
        overload = FatigueDetectorHelper.tss_overload_streak(self.big_days([-4, -2, 0]), 5.0)

        assert not overload.detected
        assert overload.consecutive_days == 1


class TestFatigueDetector:
    """Test classification and the adjusted plan."""

    def test_no_history_is_low_and_leaves_workouts(self, upcoming):
        result = FatigueDetector().detect_and_adjust([], upcoming, None, AS_OF)

        assert result.fatigue_level == FatigueLevel.LOW
        assert result.adjusted_workouts == upcoming
        assert result.warnings == []

    def test_persistent_underperformance_is_severe(self, upcoming):
        result = FatigueDetector().detect_and_adjust(
            hard_short_sessions(range(-4, 1)), upcoming, None, AS_OF
        )
        adjusted = {w.id: w for w in result.adjusted_workouts}

        assert result.fatigue_level == FatigueLevel.SEVERE
        assert result.warnings[0] == "Severe fatigue detected - immediate rest recommended"
        assert any("persistent underperformance" in w for w in result.warnings)

        assert adjusted["threshold"].target_metrics.duration == 30
        assert adjusted["threshold"].target_metrics.intensity == 56
        assert adjusted["threshold"].name.endswith("(Adjusted for severe fatigue)")
        assert adjusted["recovery"] == upcoming[2]
        assert adjusted["done"] == upcoming[0]

    def test_elevated_ratio_is_moderate(self, upcoming):
        load = TrainingLoadCalculator().from_loads(acute=140, chronic=100)

        result = FatigueDetector().detect_and_adjust([], upcoming, None, AS_OF, training_load=load)
        adjusted = {w.id: w for w in result.adjusted_workouts}

        assert result.fatigue_level == FatigueLevel.MODERATE
        assert adjusted["threshold"].target_metrics.duration == 54
        assert adjusted["threshold"].target_metrics.intensity == 76

    def test_injury_adds_warning(self, upcoming):
        recovery = RecoveryMetrics(injury_status=InjuryStatus.INJURED)

        result = FatigueDetector().detect_and_adjust([], upcoming, recovery, AS_OF)

        assert any("Injury or illness reported" in w for w in result.warnings)
