"""Tests for completed-workout normalization."""
import pytest
from pydantic import ValidationError

from adaptive_training.models.schemas import Adherence
from adaptive_training.services.normalizer import (
    coerce_completed_workout,
    completion_rate_of,
    normalize_run,
    normalize_runs,
)

from conftest import days_from, make_completed


class TestCoercion:
    """Test mapping-to-model coercion."""

    def test_aliases_and_unit_conversion(self):
        workout = coerce_completed_workout(
            {"activity_id": 7, "date": "2024-03-10", "duration_seconds": 1800, "distance_meters": 5000, "avg_hr": 150}
        )

        assert workout.workout_id == "7"
        assert workout.actual_duration == pytest.approx(30)
        assert workout.actual_distance == pytest.approx(5)
        assert workout.avg_heart_rate == 150

    def test_numeric_strings_are_unit_converted(self):
        runs = normalize_runs(
            [{"workout_id": "a", "date": "2024-03-14", "duration_seconds": "3600", "distance_meters": "10000"}]
        )

        assert runs[0].duration_min == pytest.approx(60)
        assert runs[0].distance_km == pytest.approx(10)
        assert runs[0].avg_pace == pytest.approx(6.0)

    def test_non_numeric_seconds_rejected(self):
        with pytest.raises(ValueError):
            coerce_completed_workout({"workout_id": "a", "date": "2024-03-14", "duration_seconds": "an hour"})

    def test_canonical_key_wins(self):
        workout = coerce_completed_workout(
            {"workout_id": "a", "date": "2024-03-10", "actual_duration": 40, "actualDuration": 99}
        )
        assert workout.actual_duration == 40

    def test_missing_date_is_rejected(self):
        with pytest.raises(ValidationError):
            coerce_completed_workout({"workout_id": "a", "actual_duration": 40})


class TestNormalizeRun:
    """Test per-record normalization."""

    def test_pace_derived(self):
        run = normalize_run(make_completed(days_from(-1), duration=50, distance=10))
        assert run.avg_pace == pytest.approx(5.0)

    def test_effort_clamped(self):
        assert normalize_run(make_completed(days_from(-1), effort=14)).perceived_effort == 10
        assert normalize_run(make_completed(days_from(-1), effort=0)).perceived_effort == 1

    def test_missed_and_empty_records_skipped(self):
        assert normalize_run(make_completed(days_from(-1), adherence=Adherence.MISSED)) is None
        assert normalize_run(make_completed(days_from(-1), duration=None, distance=None)) is None

    def test_completion_rate_from_planned_duration(self):
        workout = make_completed(days_from(-1), duration=45, planned_duration=60)
        assert completion_rate_of(workout) == pytest.approx(0.75)

    def test_runs_sorted_by_date(self):
        runs = normalize_runs([make_completed(days_from(-1)), make_completed(days_from(-5))])
        assert [r.date for r in runs] == [days_from(-5), days_from(-1)]
