"""Copy-on-write builders for planned workouts.

Every function returns a new ``PlannedWorkout``; nested segment lists are
rebuilt rather than shared with the input.
"""
from __future__ import annotations

from adaptive_training.models.schemas import PlannedWorkout, WorkoutSegment, WorkoutType
from adaptive_training.models.workout_library import RECOVERY_SEGMENT, workout_display_name
from adaptive_training.services.dates import add_days


def scale_volume(workout: PlannedWorkout, factor: float) -> PlannedWorkout:
    """Scale duration and distance of the workout and of each segment."""
    metrics = workout.target_metrics
    segments = [
        segment.model_copy(
            update={
                "duration": segment.duration * factor,
                "distance": segment.distance * factor if segment.distance is not None else None,
            }
        )
        for segment in workout.workout.segments
    ]
    return workout.model_copy(
        update={
            "target_metrics": metrics.model_copy(
                update={
                    "duration": metrics.duration * factor,
                    "distance": metrics.distance * factor if metrics.distance is not None else None,
                }
            ),
            "workout": workout.workout.model_copy(update={"segments": segments}),
        }
    )


def scale_intensity(
    workout: PlannedWorkout,
    factor: float,
    above: float | None = None,
) -> PlannedWorkout:
    """
    Scale target and segment intensity.

    When ``above`` is given, only segments harder than that value are scaled
    (the caller decides whether the workout as a whole qualifies).
    """
    metrics = workout.target_metrics
    segments = [
        segment.model_copy(update={"intensity": segment.intensity * factor})
        if above is None or segment.intensity > above
        else segment.model_copy()
        for segment in workout.workout.segments
    ]
    return workout.model_copy(
        update={
            "target_metrics": metrics.model_copy(update={"intensity": metrics.intensity * factor}),
            "workout": workout.workout.model_copy(update={"segments": segments}),
        }
    )


def derate(workout: PlannedWorkout, volume: float, intensity: float, label: str) -> PlannedWorkout:
    """Apply fatigue derating with rounded durations and intensities."""
    metrics = workout.target_metrics
    segments = [
        segment.model_copy(
            update={
                "duration": round(segment.duration * volume),
                "intensity": round(segment.intensity * intensity),
            }
        )
        for segment in workout.workout.segments
    ]
    return workout.model_copy(
        update={
            "name": f"{workout.name} (Adjusted for {label} fatigue)",
            "target_metrics": metrics.model_copy(
                update={
                    "duration": round(metrics.duration * volume),
                    "distance": metrics.distance * volume if metrics.distance is not None else None,
                    "intensity": round(metrics.intensity * intensity),
                }
            ),
            "workout": workout.workout.model_copy(update={"segments": segments}),
        }
    )


def to_recovery(workout: PlannedWorkout) -> PlannedWorkout:
    """
    Replace the session with the fixed 30 min / intensity 50 recovery run.

    The distance target is dropped; the recovery run is prescribed by time only.
    """
    segment = WorkoutSegment(**RECOVERY_SEGMENT)
    return workout.model_copy(
        update={
            "type": WorkoutType.RECOVERY,
            "name": "Recovery Run (Modified)",
            "description": "Easy recovery run - plan adjusted for fatigue",
            "workout": workout.workout.model_copy(
                update={"type": WorkoutType.RECOVERY, "segments": [segment]}
            ),
            "target_metrics": workout.target_metrics.model_copy(
                update={
                    "intensity": segment.intensity,
                    "duration": segment.duration,
                    "distance": None,
                }
            ),
        }
    )


def retype(workout: PlannedWorkout, new_type: WorkoutType, reason: str) -> PlannedWorkout:
    """Change the workout type and its displayed name/description."""
    return workout.model_copy(
        update={
            "type": new_type,
            "name": f"{workout_display_name(new_type)} (Substituted)",
            "description": f"Workout substituted: {reason}",
            "workout": workout.workout.model_copy(
                update={
                    "type": new_type,
                    "segments": [s.model_copy() for s in workout.workout.segments],
                }
            ),
        }
    )


def shift(workout: PlannedWorkout, days: int) -> PlannedWorkout:
    return workout.model_copy(update={"date": add_days(workout.date, days)})
