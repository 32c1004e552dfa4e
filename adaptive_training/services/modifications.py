"""Plan modification rules and the transforms that apply them to a plan."""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import (
    AcwrBand,
    ModificationType,
    PerformanceTrend,
    PlanModification,
    PlannedWorkout,
    Priority,
    ProgressData,
    ProgressionRate,
    RecoveryMetrics,
    SubstitutionReason,
    SuggestedChanges,
    TrainingPlan,
    Workout,
    WorkoutType,
)
from adaptive_training.models.workout_library import (
    SUBSTITUTIONS,
    TEMPLATE_FOR_TYPE,
    WORKOUT_TEMPLATES,
    workout_display_name,
)
from adaptive_training.services import workout_edits
from adaptive_training.services.dates import is_future, week_start, within_next_days
from adaptive_training.services.recovery import RecoveryScorer


logger = logging.getLogger(__name__)

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}

HARD_WORKOUT_INTENSITY = 75
HIGH_INTENSITY_CUTOFF = 80
INJURY_WINDOW_DAYS = 7

_OVERLOAD_FACTORS = {
    ProgressionRate.CONSERVATIVE: (1.05, 1.02),
    ProgressionRate.MODERATE: (1.10, 1.05),
    ProgressionRate.AGGRESSIVE: (1.15, 1.08),
}


def reduction_factor(percent: float | None, default: float) -> float:
    """Multiplier for a percentage cut, with the cut clamped to [0, 100]."""
    percent = default if percent is None else max(0.0, min(100.0, percent))
    return 1 - percent / 100


def processing_order(modifications: Sequence[PlanModification]) -> list[PlanModification]:
    """
    Order modifications for output and application.

    Injury protocols come first, then the rest stable-sorted by priority.
    """
    return sorted(
        modifications,
        key=lambda m: (m.type != ModificationType.INJURY_PROTOCOL, PRIORITY_ORDER[m.priority]),
    )


class ModificationGenerator:
    """Maps risk, recovery and adherence signals to candidate plan modifications."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()
        self.recovery_scorer = RecoveryScorer(self.thresholds)

    def _workload_rule(self, progress: ProgressData) -> PlanModification | None:
        ratio = progress.training_load.ratio
        band = progress.training_load.band
        if band == AcwrBand.HIGH_RISK:
            return PlanModification(
                type=ModificationType.REDUCE_VOLUME,
                reason=f"Acute:Chronic workload ratio ({ratio:.2f}) exceeds safe threshold",
                priority=Priority.HIGH,
                suggested_changes=SuggestedChanges(volume_reduction=30),
            )
        if band == AcwrBand.ELEVATED:
            return PlanModification(
                type=ModificationType.REDUCE_INTENSITY,
                reason=f"Elevated training load (A:C ratio {ratio:.2f})",
                priority=Priority.MEDIUM,
                suggested_changes=SuggestedChanges(intensity_reduction=20),
            )
        return None

    def _recovery_rule(self, recovery: RecoveryMetrics | None) -> PlanModification | None:
        if recovery is None:
            return None
        score = self.recovery_scorer.score(recovery)
        if score >= self.thresholds.min_recovery_score:
            return None
        return PlanModification(
            type=ModificationType.ADD_RECOVERY,
            reason=f"Low recovery score ({score:.0f}), indicating high fatigue",
            priority=Priority.HIGH,
            suggested_changes=SuggestedChanges(additional_recovery_days=2, intensity_reduction=30),
        )

    @staticmethod
    def _health_rule(recovery: RecoveryMetrics | None) -> PlanModification | None:
        if recovery is None or not (recovery.is_injured or recovery.is_sick):
            return None
        return PlanModification(
            type=ModificationType.INJURY_PROTOCOL,
            reason="Injury reported" if recovery.is_injured else "Illness reported",
            priority=Priority.HIGH,
            suggested_changes=SuggestedChanges(
                substitute_workout_type=WorkoutType.RECOVERY,
                volume_reduction=100 if recovery.is_injured else 50,
            ),
        )

    def _adherence_rule(self, progress: ProgressData) -> PlanModification | None:
        if progress.adherence_rate >= self.thresholds.min_adherence_rate:
            return None
        return PlanModification(
            type=ModificationType.REDUCE_VOLUME,
            reason=f"Low adherence rate ({progress.adherence_rate * 100:.0f}%)",
            priority=Priority.MEDIUM,
            suggested_changes=SuggestedChanges(volume_reduction=20, delay_days=7),
        )

    @staticmethod
    def _performance_rule(progress: ProgressData) -> PlanModification | None:
        if progress.performance_trend != PerformanceTrend.DECLINING:
            return None
        return PlanModification(
            type=ModificationType.DELAY_PROGRESSION,
            reason="Performance trend showing decline",
            priority=Priority.MEDIUM,
            suggested_changes=SuggestedChanges(delay_days=7, intensity_reduction=15),
        )

    def suggest(
        self,
        progress: ProgressData,
        recovery: RecoveryMetrics | None = None,
    ) -> list[PlanModification]:
        """
        Evaluate every rule and return the modifications that fire.

        The injury/illness protocol, when present, leads the list; the others
        follow in priority order (stable).
        """
        candidates = [
            self._workload_rule(progress),
            self._recovery_rule(recovery),
            self._health_rule(recovery),
            self._adherence_rule(progress),
            self._performance_rule(progress),
        ]
        modifications = processing_order([m for m in candidates if m is not None])

        for modification in modifications:
            if modification.priority == Priority.HIGH:
                logger.warning("Suggested %s: %s", modification.type.value, modification.reason)
            else:
                logger.debug("Suggested %s: %s", modification.type.value, modification.reason)
        logger.info("Suggested %d plan modifications", len(modifications))
        return modifications

    def needs_adaptation(self, progress: ProgressData, recovery: RecoveryMetrics | None = None) -> bool:
        """True when any signal calls for changing the plan."""
        if progress.training_load.band in (
            AcwrBand.HIGH_RISK,
            AcwrBand.ELEVATED,
            AcwrBand.UNDERTRAINING,
        ):
            return True

        if recovery is not None:
            if self.recovery_scorer.is_low(recovery):
                return True
            if recovery.is_injured or recovery.is_sick:
                return True

        if progress.adherence_rate < self.thresholds.min_adherence_rate:
            return True

        return progress.performance_trend == PerformanceTrend.DECLINING


class ModificationApplicator:
    """Rewrites the future part of a plan according to accepted modifications."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()
        self._transforms: dict[
            ModificationType,
            Callable[[list[PlannedWorkout], PlanModification, date], list[PlannedWorkout]],
        ] = {
            ModificationType.REDUCE_VOLUME: self.reduce_volume,
            ModificationType.REDUCE_INTENSITY: self.reduce_intensity,
            ModificationType.ADD_RECOVERY: self.add_recovery,
            ModificationType.SUBSTITUTE_WORKOUT: self.substitute,
            ModificationType.DELAY_PROGRESSION: self.delay_progression,
            ModificationType.INJURY_PROTOCOL: self.injury_protocol,
        }

    @staticmethod
    def reduce_volume(
        workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        """Scale duration and distance of every future workout by (1 - pct/100)."""
        factor = reduction_factor(modification.suggested_changes.volume_reduction, 20)
        return [
            workout_edits.scale_volume(w, factor) if is_future(w.date, as_of) else w
            for w in workouts
        ]

    @staticmethod
    def reduce_intensity(
        workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        """Scale intensity of future workouts harder than 80; easier ones are untouched."""
        factor = reduction_factor(modification.suggested_changes.intensity_reduction, 20)
        return [
            workout_edits.scale_intensity(w, factor, above=HIGH_INTENSITY_CUTOFF)
            if is_future(w.date, as_of) and w.target_metrics.intensity > HIGH_INTENSITY_CUTOFF
            else w
            for w in workouts
        ]

    @staticmethod
    def convert_hard_to_recovery(
        workouts: list[PlannedWorkout],
        count: int,
        as_of: date,
        window_days: int | None = None,
    ) -> list[PlannedWorkout]:
        """Turn the next ``count`` future workouts harder than 75 into recovery runs."""
        eligible = sorted(
            (
                index
                for index, w in enumerate(workouts)
                if is_future(w.date, as_of)
                and w.target_metrics.intensity > HARD_WORKOUT_INTENSITY
                and (window_days is None or within_next_days(w.date, as_of, window_days))
            ),
            key=lambda index: workouts[index].date,
        )
        selected = set(eligible[:count])
        return [
            workout_edits.to_recovery(w) if index in selected else w
            for index, w in enumerate(workouts)
        ]

    def add_recovery(
        self, workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        days = modification.suggested_changes.additional_recovery_days
        return self.convert_hard_to_recovery(workouts, days if days is not None else 2, as_of)

    @staticmethod
    def substitute(
        workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        """Retype the named future workouts, or every future workout when none are named."""
        new_type = modification.suggested_changes.substitute_workout_type or WorkoutType.EASY
        ids = set(modification.workout_ids or [])
        return [
            workout_edits.retype(w, new_type, modification.reason)
            if is_future(w.date, as_of) and (not ids or w.id in ids)
            else w
            for w in workouts
        ]

    @staticmethod
    def shift_future(workouts: list[PlannedWorkout], days: int, as_of: date) -> list[PlannedWorkout]:
        return [workout_edits.shift(w, days) if is_future(w.date, as_of) else w for w in workouts]

    def delay_progression(
        self, workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        days = modification.suggested_changes.delay_days
        return self.shift_future(workouts, days if days is not None else 7, as_of)

    def injury_protocol(
        self, workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        """
        Full stop removes the next 7 days of workouts; a partial cut converts
        hard sessions in that window to recovery runs.
        """
        reduction = modification.suggested_changes.volume_reduction
        if reduction is None or reduction >= 100:
            return [w for w in workouts if not within_next_days(w.date, as_of, INJURY_WINDOW_DAYS)]
        return self.convert_hard_to_recovery(
            workouts, INJURY_WINDOW_DAYS, as_of, window_days=INJURY_WINDOW_DAYS
        )

    def _apply_one(
        self, workouts: list[PlannedWorkout], modification: PlanModification, as_of: date
    ) -> list[PlannedWorkout]:
        changes = modification.suggested_changes
        workouts = self._transforms[modification.type](workouts, modification, as_of)

        # Secondary changes carried by a modification compose with its primary transform.
        if (
            changes.intensity_reduction
            and modification.type in (ModificationType.ADD_RECOVERY, ModificationType.DELAY_PROGRESSION)
        ):
            workouts = self.reduce_intensity(workouts, modification, as_of)
        if (
            changes.delay_days
            and modification.type not in (ModificationType.DELAY_PROGRESSION, ModificationType.INJURY_PROTOCOL)
        ):
            workouts = self.shift_future(workouts, changes.delay_days, as_of)
        return workouts

    def apply(
        self,
        plan: TrainingPlan,
        modifications: Sequence[PlanModification],
        as_of: date,
    ) -> TrainingPlan:
        """
        Apply modifications in processing order and return a new plan.

        Past-dated workouts are never changed. An empty list returns an equal plan.
        """
        if not modifications:
            return plan.model_copy()

        workouts = list(plan.workouts)
        for modification in processing_order(modifications):
            before = len(workouts)
            workouts = self._apply_one(workouts, modification, as_of)
            logger.info(
                "Applied %s (%s priority): %d -> %d workouts",
                modification.type.value,
                modification.priority.value,
                before,
                len(workouts),
            )

        return plan.model_copy(update={"workouts": workouts})


def build_template_workout(workout_type: WorkoutType, target_duration: float) -> Workout:
    """Instantiate the library template for a type, scaled down for short sessions."""
    template = Workout.model_validate(
        {**WORKOUT_TEMPLATES[TEMPLATE_FOR_TYPE[workout_type]], "type": workout_type}
    )
    total = sum(s.duration for s in template.segments)
    if target_duration < 45 and total > 60:
        scale = target_duration / total
        template = template.model_copy(
            update={
                "segments": [
                    s.model_copy(update={"duration": round(s.duration * scale)})
                    for s in template.segments
                ]
            }
        )
    return template


def create_smart_substitution(original: PlannedWorkout, reason: SubstitutionReason) -> PlannedWorkout:
    """
    Replace a workout with the type best suited to ``reason``.

    Example: under fatigue a VO2max session becomes a tempo run, under
    injury it becomes cross training.
    """
    new_type = SUBSTITUTIONS[reason].get(original.type, WorkoutType.EASY)
    template = build_template_workout(new_type, original.target_metrics.duration)
    intensity = (
        sum(s.intensity for s in template.segments) / len(template.segments)
        if template.segments
        else original.target_metrics.intensity
    )
    tss = template.estimated_tss or original.target_metrics.tss

    return original.model_copy(
        update={
            "type": new_type,
            "name": f"{workout_display_name(new_type)} (Substituted due to {reason.value})",
            "description": f"Original {original.type.value} workout modified due to {reason.value}",
            "workout": template,
            "target_metrics": original.target_metrics.model_copy(
                update={"intensity": intensity, "tss": tss, "load": tss}
            ),
        }
    )


def apply_progressive_overload(
    plan: TrainingPlan,
    rate: ProgressionRate,
    first_weekday: int = 0,
) -> TrainingPlan:
    """
    Progressively increase volume and intensity from the third week on.

    Week ``n`` (0-based) gets volume x factor^((n-1)/4) and intensity
    x factor^((n-1)/8), intensity capped at 95. Recovery workouts are kept.
    """
    volume_factor, intensity_factor = _OVERLOAD_FACTORS[rate]
    ordered = sorted(plan.workouts, key=lambda w: w.date)
    if not ordered:
        return plan.model_copy()

    week_keys = sorted({week_start(w.date, first_weekday) for w in ordered})
    week_index = {key: index for index, key in enumerate(week_keys)}

    adjusted: list[PlannedWorkout] = []
    for workout in ordered:
        index = week_index[week_start(workout.date, first_weekday)]
        if index <= 1 or workout.type == WorkoutType.RECOVERY:
            adjusted.append(workout)
            continue

        overload_week = index - 1
        volume = volume_factor ** (overload_week / 4)
        intensity = intensity_factor ** (overload_week / 8)
        metrics = workout.target_metrics
        adjusted.append(
            workout.model_copy(
                update={
                    "target_metrics": metrics.model_copy(
                        update={
                            "duration": round(metrics.duration * volume),
                            "distance": metrics.distance * volume if metrics.distance is not None else None,
                            "intensity": min(95.0, metrics.intensity * intensity),
                        }
                    )
                }
            )
        )

    return plan.model_copy(update={"workouts": adjusted})
