"""Injury and overreaching risk: current state and a one-week projection."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import (
    AcwrBand,
    CompletedWorkout,
    NormalizedRun,
    OverreachingRisk,
    PlannedWorkout,
    RiskLevel,
    TrainingLoad,
)
from adaptive_training.services.dates import within_last_days, within_next_days
from adaptive_training.services.normalizer import normalize_runs
from adaptive_training.services.recovery import score_from_history
from adaptive_training.services.training_load import TrainingLoadCalculator, weekly_load_increase


logger = logging.getLogger(__name__)

_ACWR_RISK_POINTS = {
    AcwrBand.INSUFFICIENT_DATA: 0,
    AcwrBand.UNDERTRAINING: 20,
    AcwrBand.OPTIMAL: 10,
    AcwrBand.ELEVATED: 25,
    AcwrBand.HIGH_RISK: 40,
}


def planned_stress(workout: PlannedWorkout, default_tss: float) -> float:
    """
    Stress expected from a planned workout.

    Prefers the workout's own estimate, then the target TSS, then ``default_tss``.
    """
    if workout.workout.estimated_tss:
        return float(workout.workout.estimated_tss)
    if workout.target_metrics.tss:
        return float(workout.target_metrics.tss)
    return default_tss


class InjuryRiskProjector:
    """Combines workload ratio, load increase and recovery into risk scores."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()
        self.load_calculator = TrainingLoadCalculator(self.thresholds)

    def current_risk(self, load: TrainingLoad, weekly_increase: float, recovery_score: float) -> float:
        """
        Current injury risk (0-100).

        - ACWR band: up to 40 points
        - Weekly increase: >20% = 30, >10% = 20, >5% = 10
        - Recovery: 0.3 points per point below 100
        """
        risk = float(_ACWR_RISK_POINTS[load.band])

        if weekly_increase > 20:
            risk += 30
        elif weekly_increase > 10:
            risk += 20
        elif weekly_increase > 5:
            risk += 10

        risk += round((100 - max(0.0, min(100.0, recovery_score))) * 0.3)
        return min(100.0, risk)

    def projected_risk(
        self,
        runs: Sequence[NormalizedRun],
        planned: Sequence[PlannedWorkout],
        current_acwr: float,
        as_of: date,
    ) -> float:
        """Risk after the next week of planned training, using a rough ACWR projection."""
        t = self.thresholds
        upcoming_stress = sum(
            planned_stress(w, t.default_planned_tss)
            for w in planned
            if within_next_days(w.date, as_of, 7)
        )
        projected_acwr = current_acwr + upcoming_stress / t.projected_acwr_divisor

        risk = 0.0
        if projected_acwr > t.high_risk_acwr:
            risk += 40
        elif projected_acwr > t.safe_acwr_upper:
            risk += 25
        elif projected_acwr < t.safe_acwr_lower:
            risk += 20

        very_hard_sessions = sum(
            1
            for run in runs
            if within_last_days(run.date, as_of, 7) and (run.perceived_effort or 0) >= 8
        )
        risk += very_hard_sessions * 10

        return min(100.0, risk)

    @staticmethod
    def classify(current: float, projected: float) -> RiskLevel:
        if current >= 80 or projected >= 90:
            return RiskLevel.CRITICAL
        if current >= 60 or projected >= 70:
            return RiskLevel.HIGH
        if current >= 40 or projected >= 50:
            return RiskLevel.MODERATE
        return RiskLevel.LOW

    def mitigation_strategies(
        self,
        level: RiskLevel,
        acwr: float,
        weekly_increase: float,
        recovery_score: float,
    ) -> list[str]:
        """Human-readable actions keyed to whichever factors contribute to the risk."""
        strategies: list[str] = []

        if level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            strategies.extend(
                [
                    "Immediately reduce training volume by 30-40%",
                    "Replace high-intensity workouts with easy recovery runs",
                    "Schedule professional assessment if pain persists",
                ]
            )

        if acwr > self.thresholds.safe_acwr_upper:
            strategies.extend(
                [
                    "Gradually reduce training load over 2 weeks",
                    "Focus on maintaining fitness rather than building",
                ]
            )

        if weekly_increase > 10:
            strategies.extend(
                [
                    "Limit weekly mileage increases to 10%",
                    "Add recovery weeks every 3-4 weeks",
                ]
            )

        if recovery_score < self.thresholds.min_recovery_score:
            strategies.extend(
                [
                    "Prioritize sleep and nutrition",
                    "Consider cross-training activities",
                    "Monitor morning heart rate variability",
                ]
            )

        return strategies

    def assess(
        self,
        completed: Iterable[CompletedWorkout | Mapping[str, Any]],
        planned: Sequence[PlannedWorkout],
        as_of: date,
    ) -> OverreachingRisk:
        """
        Assess overreaching risk now and over the coming week.

        Returns:
            OverreachingRisk with level, ratio, weekly increase, current and
            projected risk, and mitigation strategies
        """
        t = self.thresholds
        runs = normalize_runs(completed)
        load = self.load_calculator.calculate(runs, as_of)
        increase = weekly_load_increase(runs, as_of, t.week_start_day)
        recovery_score = score_from_history(runs, as_of, base_score=t.recovery_base_score)

        current = self.current_risk(load, increase, recovery_score)
        projected = self.projected_risk(runs, planned, load.ratio, as_of)
        level = self.classify(current, projected)

        if level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            logger.warning(
                "Overreaching risk %s (current=%.0f, projected=%.0f, acwr=%.2f, weekly_increase=%.1f%%)",
                level.value,
                current,
                projected,
                load.ratio,
                increase,
            )
        else:
            logger.info(
                "Overreaching risk %s (current=%.0f, projected=%.0f)", level.value, current, projected
            )

        return OverreachingRisk(
            risk_level=level,
            acute_chronic_ratio=load.ratio,
            weekly_load_increase=increase,
            current_risk=current,
            projected_risk=projected,
            mitigation_strategies=self.mitigation_strategies(level, load.ratio, increase, recovery_score),
        )
