"""Convert heterogeneous completed-workout records into a uniform run series."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from adaptive_training.models.schemas import Adherence, CompletedWorkout, NormalizedRun


logger = logging.getLogger(__name__)

# Alternative field names seen in exported activity records, mapped onto
# CompletedWorkout fields. Each entry is (source key, target key, scale).
_FIELD_ALIASES: tuple[tuple[str, str, float], ...] = (
    ("workoutId", "workout_id", 1),
    ("id", "workout_id", 1),
    ("activity_id", "workout_id", 1),
    ("actualDuration", "actual_duration", 1),
    ("duration_minutes", "actual_duration", 1),
    ("duration_seconds", "actual_duration", 1 / 60),
    ("actualDistance", "actual_distance", 1),
    ("distance_km", "actual_distance", 1),
    ("distance_meters", "actual_distance", 1 / 1000),
    ("actualPace", "actual_pace", 1),
    ("plannedDuration", "planned_duration", 1),
    ("avgHeartRate", "avg_heart_rate", 1),
    ("avg_hr", "avg_heart_rate", 1),
    ("maxHeartRate", "max_heart_rate", 1),
    ("max_hr", "max_heart_rate", 1),
    ("perceivedEffort", "perceived_effort", 1),
    ("difficultyRating", "perceived_effort", 1),
    ("rpe", "perceived_effort", 1),
    ("completionRate", "completion_rate", 1),
    ("isRace", "is_race", 1),
)


def coerce_completed_workout(record: CompletedWorkout | Mapping[str, Any]) -> CompletedWorkout:
    """
    Build a ``CompletedWorkout`` from a model instance or a loosely shaped mapping.

    Canonical snake_case keys win over aliases. Raises ``pydantic.ValidationError``
    when required structural fields (id, date) are missing. Unit-converted aliases
    (seconds, metres) accept numbers or numeric strings; other strings raise
    ``ValueError``.
    """
    if isinstance(record, CompletedWorkout):
        return record

    data = dict(record)
    for source, target, scale in _FIELD_ALIASES:
        if source not in data or target in data:
            continue
        value = data.pop(source)
        if scale != 1 and value is not None:
            value = float(value) * scale
        data[target] = value

    if "workout_id" in data and not isinstance(data["workout_id"], str):
        data["workout_id"] = str(data["workout_id"])

    return CompletedWorkout.model_validate(data)


def completion_rate_of(workout: CompletedWorkout) -> float | None:
    """Explicit completion rate, else actual/planned duration, else None."""
    if workout.completion_rate is not None:
        return max(0.0, workout.completion_rate)
    if workout.actual_duration and workout.planned_duration:
        return workout.actual_duration / workout.planned_duration
    return None


def _clamp_effort(effort: float | None) -> float | None:
    if effort is None:
        return None
    return min(10.0, max(1.0, effort))


def normalize_run(workout: CompletedWorkout) -> NormalizedRun | None:
    """Return the normalized run for one record, or None when no session took place."""
    if workout.adherence == Adherence.MISSED:
        return None

    duration = workout.actual_duration or 0.0
    distance = workout.actual_distance or 0.0
    if duration <= 0 and distance <= 0:
        return None

    pace = workout.actual_pace
    if pace is None and duration > 0 and distance > 0:
        pace = duration / distance

    return NormalizedRun(
        date=workout.date,
        distance_km=distance,
        duration_min=duration,
        avg_pace=pace,
        avg_heart_rate=workout.avg_heart_rate,
        perceived_effort=_clamp_effort(workout.perceived_effort),
        completion_rate=completion_rate_of(workout),
        notes=workout.notes or "",
        is_race=workout.is_race,
    )


def normalize_runs(records: Iterable[CompletedWorkout | Mapping[str, Any]]) -> list[NormalizedRun]:
    """
    Normalize completed-workout records into a date-ordered run series.

    Missed sessions and records with neither duration nor distance are skipped.

    Args:
        records: CompletedWorkout models or raw mappings

    Returns:
        List of NormalizedRun sorted by date (stable for same-day sessions)
    """
    runs: list[NormalizedRun] = []
    skipped = 0
    for record in records:
        run = normalize_run(coerce_completed_workout(record))
        if run is None:
            skipped += 1
            continue
        runs.append(run)

    runs.sort(key=lambda r: r.date)
    if skipped:
        logger.debug("Normalized %d runs, skipped %d records without a session", len(runs), skipped)
    return runs
