"""Recovery scoring from subjective and objective readiness signals."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import (
    CompletedWorkout,
    NormalizedRun,
    RecoveryAssessment,
    RecoveryMetrics,
    RecoveryStatus,
)
from adaptive_training.services.dates import within_last_days
from adaptive_training.services.normalizer import normalize_runs


logger = logging.getLogger(__name__)

SUBJECTIVE_MIDPOINT = 5.0
POINTS_PER_UNIT = 4.0


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def to_ten_point_scale(value: float | None) -> float | None:
    """Subjective ratings arrive as 0-10 or 0-100; values above 10 are rescaled."""
    if value is None:
        return None
    if value > 10:
        value = value / 10
    return _clamp(value, 0.0, 10.0)


def hrv_adjustment(hrv: float | None, partial_bonus: bool = True) -> float:
    """+10 above 60 ms, -10 below 40 ms; +5 for 50-60 ms when ``partial_bonus``."""
    if not hrv:
        return 0.0
    if hrv > 60:
        return 10.0
    if partial_bonus and hrv > 50:
        return 5.0
    if hrv < 40:
        return -10.0
    return 0.0


def resting_hr_adjustment(
    resting_hr: float | None,
    penalty_above: float = 70,
    partial_bonus: bool = True,
) -> float:
    """+10 below 50 bpm, -10 above ``penalty_above``; +5 below 60 bpm when ``partial_bonus``."""
    if not resting_hr:
        return 0.0
    if resting_hr < 50:
        return 10.0
    if partial_bonus and resting_hr < 60:
        return 5.0
    if resting_hr > penalty_above:
        return -10.0
    return 0.0


def score_recovery_metrics(metrics: RecoveryMetrics, base_score: float = 70) -> float:
    """
    Combine recovery signals into a 0-100 score.

    Sleep quality and energy add 4 points per unit above 5 (and lose 4 below);
    muscle soreness works the other way. HRV and resting HR add or remove up
    to 10 points. Missing fields contribute nothing. A supplied ``recovery_score``
    is used, clamped to 0-100, only when none of those signals are present.

    Example:
        >>> score_recovery_metrics(RecoveryMetrics(sleep_quality=8, muscle_soreness=3, energy_level=7))
        98.0
    """
    signals = (
        metrics.sleep_quality,
        metrics.muscle_soreness,
        metrics.energy_level,
        metrics.hrv,
        metrics.resting_hr,
    )
    if metrics.recovery_score is not None and all(s is None for s in signals):
        return round(_clamp(metrics.recovery_score), 1)

    score = base_score

    sleep = to_ten_point_scale(metrics.sleep_quality)
    if sleep is not None:
        score += (sleep - SUBJECTIVE_MIDPOINT) * POINTS_PER_UNIT

    soreness = to_ten_point_scale(metrics.muscle_soreness)
    if soreness is not None:
        score -= (soreness - SUBJECTIVE_MIDPOINT) * POINTS_PER_UNIT

    energy = to_ten_point_scale(metrics.energy_level)
    if energy is not None:
        score += (energy - SUBJECTIVE_MIDPOINT) * POINTS_PER_UNIT

    score += hrv_adjustment(metrics.hrv)
    score += resting_hr_adjustment(metrics.resting_hr)

    return round(_clamp(score), 1)


def score_from_history(
    runs: Sequence[NormalizedRun],
    as_of: date,
    resting_hr: float | None = None,
    hrv: float | None = None,
    base_score: float = 70,
) -> float:
    """
    Load-only recovery heuristic used when no recovery metrics are supplied.

    Each hard session (effort >= 7) in the last week costs 5 points.
    """
    hard_sessions = sum(
        1
        for run in runs
        if within_last_days(run.date, as_of, 7) and (run.perceived_effort or 0) >= 7
    )
    score = base_score - hard_sessions * 5
    score += hrv_adjustment(hrv, partial_bonus=False)
    score += resting_hr_adjustment(resting_hr, penalty_above=65, partial_bonus=False)
    return round(_clamp(score), 1)


def classify_recovery(score: float) -> RecoveryStatus:
    """Fixed status bands: 80 / 60 / 40."""
    if score >= 80:
        return RecoveryStatus.RECOVERED
    if score >= 60:
        return RecoveryStatus.ADEQUATE
    if score >= 40:
        return RecoveryStatus.FATIGUED
    return RecoveryStatus.OVERREACHED


def recovery_recommendations(
    status: RecoveryStatus,
    metrics: RecoveryMetrics | None = None,
) -> list[str]:
    """Return actionable advice for a recovery status and the signals behind it."""
    recommendations: list[str] = []

    if status == RecoveryStatus.OVERREACHED:
        recommendations.extend(
            [
                "Take 2-3 days of complete rest",
                "Focus on sleep quality (8+ hours)",
                "Consider massage or light stretching",
            ]
        )
    elif status == RecoveryStatus.FATIGUED:
        recommendations.extend(
            [
                "Reduce training intensity by 30%",
                "Add an extra recovery day this week",
                "Prioritize hydration and nutrition",
            ]
        )

    if metrics is None:
        return recommendations

    sleep = to_ten_point_scale(metrics.sleep_quality)
    if sleep is not None and sleep < 6:
        recommendations.append("Improve sleep hygiene - aim for consistent bedtime")

    soreness = to_ten_point_scale(metrics.muscle_soreness)
    if soreness is not None and soreness > 7:
        recommendations.append("Consider foam rolling and dynamic stretching")

    if metrics.hrv and metrics.hrv < 40:
        recommendations.append("HRV is low - reduce stress and training load")

    return recommendations


class RecoveryScorer:
    """Scores recovery and turns it into a status with recommendations."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()

    def score(self, metrics: RecoveryMetrics) -> float:
        return score_recovery_metrics(metrics, self.thresholds.recovery_base_score)

    def is_low(self, metrics: RecoveryMetrics) -> bool:
        return self.score(metrics) < self.thresholds.min_recovery_score

    def assess(
        self,
        completed: Iterable[CompletedWorkout | Mapping[str, Any]],
        recovery: RecoveryMetrics | None,
        as_of: date,
    ) -> RecoveryAssessment:
        """
        Assess recovery from metrics when available, else from recent load.

        Returns:
            RecoveryAssessment with score, status band and recommendations
        """
        if recovery is not None:
            score = self.score(recovery)
        else:
            runs = normalize_runs(completed)
            score = score_from_history(runs, as_of, base_score=self.thresholds.recovery_base_score)

        status = classify_recovery(score)
        recommendations = recovery_recommendations(status, recovery)

        if status in (RecoveryStatus.FATIGUED, RecoveryStatus.OVERREACHED):
            logger.warning("Recovery status %s (score=%.1f)", status.value, score)
        else:
            logger.info("Recovery status %s (score=%.1f)", status.value, score)

        return RecoveryAssessment(score=score, status=status, recommendations=recommendations)
