"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from adaptive_training.logging_config import configure_logging

configure_logging()

from adaptive_training.main import app
from adaptive_training.models.schemas import (
    CompletedWorkout,
    CurrentFitness,
    IntensityDistribution,
    PerformanceTrend,
    PlannedWorkout,
    ProgressData,
    TrainingPlan,
    TrainingPlanConfig,
    VolumeProgress,
    VolumeTrend,
    Workout,
    WorkoutMetrics,
    WorkoutSegment,
    WorkoutType,
)
from adaptive_training.models.workout_library import workout_display_name
from adaptive_training.services.training_load import TrainingLoadCalculator

# Friday
AS_OF = date(2024, 3, 15)


def days_from(offset: int) -> date:
    return AS_OF + timedelta(days=offset)


def make_planned(
    workout_id: str,
    day: date,
    workout_type: WorkoutType = WorkoutType.EASY,
    duration: float = 60,
    intensity: float = 70,
    distance: float | None = 10.0,
    tss: float | None = None,
) -> PlannedWorkout:
    """Single-segment planned workout."""
    segment = WorkoutSegment(duration=duration, distance=distance, intensity=intensity, zone="easy")
    return PlannedWorkout(
        id=workout_id,
        date=day,
        type=workout_type,
        name=workout_display_name(workout_type),
        description="",
        workout=Workout(type=workout_type, segments=[segment], estimated_tss=tss),
        target_metrics=WorkoutMetrics(
            duration=duration,
            distance=distance,
            intensity=intensity,
            tss=tss or 0,
            load=tss or 0,
        ),
    )


def make_plan(workouts: list[PlannedWorkout]) -> TrainingPlan:
    return TrainingPlan(
        id="plan-1",
        config=TrainingPlanConfig(name="Spring 10K", goal="10k", start_date=days_from(-14)),
        workouts=workouts,
    )


def make_completed(
    day: date,
    duration: float | None = 50,
    distance: float | None = 10,
    effort: float | None = 5,
    **kwargs,
) -> CompletedWorkout:
    return CompletedWorkout(
        workout_id=kwargs.pop("workout_id", f"w-{day.isoformat()}"),
        date=day,
        actual_duration=duration,
        actual_distance=distance,
        perceived_effort=effort,
        **kwargs,
    )


def make_progress(
    acute: float = 100.0,
    chronic: float = 100.0,
    adherence_rate: float = 1.0,
    trend: PerformanceTrend = PerformanceTrend.STABLE,
) -> ProgressData:
    """Progress snapshot with a chosen workload ratio and otherwise neutral signals."""
    return ProgressData(
        adherence_rate=adherence_rate,
        performance_trend=trend,
        volume_progress=VolumeProgress(weekly_average=40.0, trend=VolumeTrend.STABLE),
        intensity_distribution=IntensityDistribution(easy=80, moderate=10, hard=10, very_hard=0),
        current_fitness=CurrentFitness(vdot=45.0, weekly_mileage=40.0, longest_recent_run=16.0),
        training_load=TrainingLoadCalculator().from_loads(acute, chronic),
        total_workouts=12,
        date=AS_OF,
    )


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client."""

    return TestClient(app)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def sample_plan() -> TrainingPlan:
    """
    Plan around AS_OF: one past, one same-day and four future workouts.

    Future intensities: tempo 85, easy 65, vo2max 95 (all inside the next week)
    and a long run 70 ten days out.
    """
    return make_plan(
        [
            make_planned("past-easy", days_from(-2), WorkoutType.EASY, 50, 65),
            make_planned("today-tempo", days_from(0), WorkoutType.TEMPO, 50, 85),
            make_planned("tempo", days_from(1), WorkoutType.TEMPO, 60, 85),
            make_planned("easy", days_from(3), WorkoutType.EASY, 45, 65),
            make_planned("vo2", days_from(5), WorkoutType.VO2MAX, 50, 95),
            make_planned("long", days_from(10), WorkoutType.LONG_RUN, 120, 70, distance=22.0),
        ]
    )


@pytest.fixture
def completed_factory() -> Callable[..., CompletedWorkout]:
    return make_completed
