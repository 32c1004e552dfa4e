"""Fatigue and overload detection over the trailing training history."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import (
    ChronicFatigueStreak,
    CompletedWorkout,
    FatigueAssessment,
    FatigueLevel,
    NormalizedRun,
    PlannedWorkout,
    RecoveryMetrics,
    TrainingLoad,
    TssOverloadStreak,
    WorkoutType,
)
from adaptive_training.services.dates import days_between, is_future, within_last_days
from adaptive_training.services.normalizer import normalize_runs
from adaptive_training.services.training_load import TrainingLoadCalculator, daily_stress
from adaptive_training.services.workout_edits import derate


logger = logging.getLogger(__name__)

FATIGUE_KEYWORDS = ("tired", "fatigue")

_SEVERITY_ORDER = {
    FatigueLevel.LOW: 0,
    FatigueLevel.MODERATE: 1,
    FatigueLevel.HIGH: 2,
    FatigueLevel.SEVERE: 3,
}


class FatigueDetectorHelper:
    """Stateless detectors; each looks at one fatigue signal."""

    @staticmethod
    def acute_fatigue_score(runs: Sequence[NormalizedRun], as_of: date, lookback_days: int = 3) -> float:
        """
        Score short-term fatigue (0-100) from the last few sessions.

        Per recent session:
        - under-delivery (completion < 0.9): +10
        - very hard effort (>= 8): +2 x effort
        - notes mentioning tiredness or fatigue: +15
        """
        score = 0.0
        for run in runs:
            if not within_last_days(run.date, as_of, lookback_days):
                continue

            if run.completion_rate is not None and run.completion_rate < 0.9:
                score += 10

            if run.perceived_effort is not None and run.perceived_effort >= 8:
                score += run.perceived_effort * 2

            notes = run.notes.lower()
            if any(keyword in notes for keyword in FATIGUE_KEYWORDS):
                score += 15

        return min(100.0, score)

    @staticmethod
    def chronic_fatigue_streak(
        runs: Sequence[NormalizedRun],
        persistent_sessions: int = 5,
        emerging_sessions: int = 3,
    ) -> ChronicFatigueStreak:
        """
        Find the longest run of consecutive sessions that were both hard and cut short.

        A session counts when effort >= 7 and completion < 0.85.
        """
        current = 0
        longest = 0
        for run in sorted(runs, key=lambda r: r.date):
            hard = run.perceived_effort is not None and run.perceived_effort >= 7
            short = run.completion_rate is not None and run.completion_rate < 0.85
            if hard and short:
                current += 1
                longest = max(longest, current)
            else:
                current = 0

        pattern = "none"
        if longest >= persistent_sessions:
            pattern = "persistent_underperformance"
        elif longest >= emerging_sessions:
            pattern = "emerging_fatigue"

        return ChronicFatigueStreak(
            detected=longest >= emerging_sessions,
            sessions=longest,
            pattern=pattern,
        )

    @staticmethod
    def tss_overload_streak(
        runs: Sequence[NormalizedRun],
        threshold_pace: float,
        daily_threshold: float = 150,
        detection_days: int = 2,
    ) -> TssOverloadStreak:
        """
        Find the longest streak of calendar-consecutive days above the daily stress threshold.

        A rest day (or a day under the threshold) ends the streak.
        """
        per_day = daily_stress(runs, threshold_pace)
        current = 0
        longest = 0
        previous: date | None = None
        for day in sorted(per_day):
            if per_day[day] > daily_threshold:
                consecutive = previous is not None and days_between(previous, day) == 1
                current = current + 1 if consecutive else 1
                longest = max(longest, current)
                previous = day
            else:
                current = 0
                previous = None

        return TssOverloadStreak(
            detected=longest >= detection_days,
            consecutive_days=longest,
            max_daily_tss=round(max(per_day.values(), default=0.0), 1),
        )


class FatigueDetector:
    """Classifies overall fatigue and derates upcoming workouts accordingly."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()
        self.helper = FatigueDetectorHelper()
        self.load_calculator = TrainingLoadCalculator(self.thresholds)

    def classify(
        self,
        acute_score: float,
        acwr: float,
        chronic: ChronicFatigueStreak,
        overload: TssOverloadStreak,
    ) -> tuple[FatigueLevel, list[str]]:
        """Return the most severe level any signal reaches, with warnings."""
        t = self.thresholds
        if chronic.sessions >= t.chronic_fatigue_sessions or overload.consecutive_days >= t.severe_overload_days:
            return FatigueLevel.SEVERE, ["Severe fatigue detected - immediate rest recommended"]
        if acute_score > 70 or acwr > t.high_risk_acwr:
            return FatigueLevel.HIGH, ["High fatigue levels - reduce training intensity"]
        if acute_score > 50 or acwr > t.safe_acwr_upper:
            return FatigueLevel.MODERATE, ["Moderate fatigue - monitor closely"]
        return FatigueLevel.LOW, []

    def adjust_workouts(
        self,
        workouts: Sequence[PlannedWorkout],
        level: FatigueLevel,
        as_of: date,
    ) -> list[PlannedWorkout]:
        """Derate future non-recovery workouts; past ones and recovery runs pass through."""
        if level == FatigueLevel.LOW:
            return list(workouts)

        factors = self.thresholds.fatigue_factors[level.value]
        adjusted: list[PlannedWorkout] = []
        for workout in workouts:
            if not is_future(workout.date, as_of) or workout.type == WorkoutType.RECOVERY:
                adjusted.append(workout)
                continue
            adjusted.append(derate(workout, factors.volume, factors.intensity, level.value))
        return adjusted

    def detect_and_adjust(
        self,
        completed: Iterable[CompletedWorkout | Mapping[str, Any]],
        upcoming: Sequence[PlannedWorkout],
        recovery: RecoveryMetrics | None,
        as_of: date,
        training_load: TrainingLoad | None = None,
    ) -> FatigueAssessment:
        """
        Detect fatigue patterns and derate upcoming workouts.

        Args:
            completed: Completed-workout history
            upcoming: Planned workouts to adjust
            recovery: Optional recovery metrics (injury/illness flags add warnings)
            as_of: Reference date
            training_load: Precomputed load; calculated from history when omitted

        Returns:
            FatigueAssessment with level, adjusted workouts and warnings
        """
        t = self.thresholds
        runs = normalize_runs(completed)
        load = training_load or self.load_calculator.calculate(runs, as_of)

        acute_score = self.helper.acute_fatigue_score(runs, as_of, t.acute_fatigue_lookback_days)
        chronic = self.helper.chronic_fatigue_streak(
            runs, t.chronic_fatigue_sessions, t.emerging_fatigue_sessions
        )
        overload = self.helper.tss_overload_streak(
            runs, t.threshold_pace, t.overreaching_tss_threshold, t.overload_detection_days
        )

        level, warnings = self.classify(acute_score, load.ratio, chronic, overload)

        if chronic.detected:
            warnings.append(
                f"{chronic.sessions} consecutive sessions with high effort and incomplete volume "
                f"({chronic.pattern.replace('_', ' ')})"
            )
        if overload.detected:
            warnings.append(
                f"{overload.consecutive_days} consecutive days above "
                f"{t.overreaching_tss_threshold:.0f} TSS"
            )
        if recovery is not None and (recovery.is_injured or recovery.is_sick):
            warnings.append("Injury or illness reported - follow a recovery protocol before resuming")

        if _SEVERITY_ORDER[level] >= _SEVERITY_ORDER[FatigueLevel.HIGH]:
            logger.warning(
                "Fatigue level %s (acute=%.0f, acwr=%.2f, chronic_streak=%d, overload_days=%d)",
                level.value,
                acute_score,
                load.ratio,
                chronic.sessions,
                overload.consecutive_days,
            )
        else:
            logger.info("Fatigue level %s (acute=%.0f, acwr=%.2f)", level.value, acute_score, load.ratio)

        return FatigueAssessment(
            fatigue_level=level,
            adjusted_workouts=self.adjust_workouts(upcoming, level, as_of),
            warnings=warnings,
            acute_fatigue_score=acute_score,
            chronic_fatigue=chronic,
            tss_overload=overload,
        )
