"""Progress analysis: one ProgressData snapshot from history and plan."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import (
    Adherence,
    CompletedWorkout,
    IntensityDistribution,
    PerformanceTrend,
    PlannedWorkout,
    ProgressData,
    VolumeProgress,
    VolumeTrend,
)
from adaptive_training.services.fitness import current_fitness
from adaptive_training.services.normalizer import coerce_completed_workout, normalize_runs
from adaptive_training.services.training_load import TrainingLoadCalculator, weekly_distances


logger = logging.getLogger(__name__)

MIN_SESSIONS_FOR_TREND = 5
DEFAULT_EFFORT = 5


def largest_remainder_percentages(counts: Sequence[int]) -> list[int]:
    """
    Integer percentages that always sum to 100.

    Each bucket gets the floor of its share; the leftover points go to the
    largest remainders, ties resolved in favour of the later bucket.

    Example:
        >>> largest_remainder_percentages([1, 1, 1, 0])
        [33, 33, 34, 0]
    """
    total = sum(counts)
    if total == 0:
        return [100] + [0] * (len(counts) - 1)

    shares = [count * 100 / total for count in counts]
    floors = [math.floor(share) for share in shares]
    leftover = 100 - sum(floors)
    order = sorted(range(len(counts)), key=lambda i: (shares[i] - floors[i], i), reverse=True)
    for i in order[:leftover]:
        floors[i] += 1
    return floors


class ProgressAnalyzer:
    """Builds the ProgressData snapshot consumed by the modification rules."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()
        self.load_calculator = TrainingLoadCalculator(self.thresholds)

    @staticmethod
    def adherence_rate(
        completed: Sequence[CompletedWorkout],
        planned: Sequence[PlannedWorkout],
        as_of: date,
    ) -> float:
        """
        Fraction of prescribed past workouts actually done, clamped to [0, 1].

        Uses the past-planned count as denominator; without a plan, the
        history records themselves (missed ones included) are the denominator.
        """
        adherent = sum(1 for w in completed if w.adherence != Adherence.MISSED)

        due = sum(1 for w in planned if w.date <= as_of)
        if due == 0:
            due = len(completed)
        if due == 0:
            return 1.0

        return max(0.0, min(1.0, adherent / due))

    @staticmethod
    def _relative_pace(workouts: Sequence[CompletedWorkout]) -> float:
        """Average pace divided by normalized effort; lower is better."""
        paces = [
            (w.actual_duration / w.actual_distance) / (w.perceived_effort / 10)
            for w in workouts
            if w.actual_distance and w.actual_duration and w.perceived_effort
        ]
        if not paces:
            return 0.0
        return sum(paces) / len(paces)

    def performance_trend(self, completed: Sequence[CompletedWorkout]) -> PerformanceTrend:
        """Compare effort-relative pace of the older half with the recent half (+/-2%)."""
        sessions = sorted(
            (w for w in completed if w.adherence != Adherence.MISSED), key=lambda w: w.date
        )
        if len(sessions) < MIN_SESSIONS_FOR_TREND:
            return PerformanceTrend.STABLE

        midpoint = len(sessions) // 2
        older = self._relative_pace(sessions[:midpoint])
        recent = self._relative_pace(sessions[midpoint:])
        if older <= 0 or recent <= 0:
            return PerformanceTrend.STABLE

        improvement = (older - recent) / older * 100
        if improvement > 2:
            return PerformanceTrend.IMPROVING
        if improvement < -2:
            return PerformanceTrend.DECLINING
        return PerformanceTrend.STABLE

    def volume_progress(self, completed: Sequence[CompletedWorkout]) -> VolumeProgress:
        """Weekly distance average and trend (first third vs last third of weeks, +/-10%)."""
        runs = normalize_runs(completed)
        volumes = list(weekly_distances(runs, self.thresholds.week_start_day).values())
        if not volumes:
            return VolumeProgress(weekly_average=0.0, trend=VolumeTrend.STABLE)

        average = sum(volumes) / len(volumes)
        trend = VolumeTrend.STABLE
        if len(volumes) >= 3:
            third = len(volumes) // 3
            first_avg = sum(volumes[:third]) / third
            last_avg = sum(volumes[-third:]) / third
            if last_avg > first_avg * 1.1:
                trend = VolumeTrend.INCREASING
            elif last_avg < first_avg * 0.9:
                trend = VolumeTrend.DECREASING

        return VolumeProgress(weekly_average=round(average, 1), trend=trend)

    @staticmethod
    def intensity_distribution(completed: Sequence[CompletedWorkout]) -> IntensityDistribution:
        """Share of sessions per effort bucket: <=3 easy, <=6 moderate, <=8 hard, else very hard."""
        buckets = [0, 0, 0, 0]
        for workout in completed:
            if workout.adherence == Adherence.MISSED:
                continue
            effort = workout.perceived_effort or DEFAULT_EFFORT
            if effort <= 3:
                buckets[0] += 1
            elif effort <= 6:
                buckets[1] += 1
            elif effort <= 8:
                buckets[2] += 1
            else:
                buckets[3] += 1

        easy, moderate, hard, very_hard = largest_remainder_percentages(buckets)
        return IntensityDistribution(easy=easy, moderate=moderate, hard=hard, very_hard=very_hard)

    def analyze(
        self,
        completed: Iterable[CompletedWorkout | Mapping[str, Any]],
        planned: Sequence[PlannedWorkout],
        as_of: date,
    ) -> ProgressData:
        """
        Analyze workout completion and performance.

        Args:
            completed: Completed-workout history (models or raw mappings)
            planned: Planned workouts the history is measured against
            as_of: Reference date

        Returns:
            ProgressData snapshot; identical inputs give an equal snapshot
        """
        records = [coerce_completed_workout(record) for record in completed]
        runs = normalize_runs(records)

        progress = ProgressData(
            adherence_rate=self.adherence_rate(records, planned, as_of),
            performance_trend=self.performance_trend(records),
            volume_progress=self.volume_progress(records),
            intensity_distribution=self.intensity_distribution(records),
            current_fitness=current_fitness(runs, self.thresholds.week_start_day),
            training_load=self.load_calculator.calculate(runs, as_of),
            completed_workouts=records,
            total_workouts=len(planned),
            date=as_of,
        )

        logger.info(
            "Analyzed progress for %s: adherence=%.2f trend=%s acwr=%.2f sessions=%d",
            as_of.isoformat(),
            progress.adherence_rate,
            progress.performance_trend.value,
            progress.training_load.ratio,
            len(runs),
        )
        return progress
