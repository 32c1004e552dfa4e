"""Training stress and acute:chronic workload calculations."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds
from adaptive_training.models.schemas import AcwrBand, NormalizedRun, TrainingLoad, VolumeTrend
from adaptive_training.services.dates import add_days, week_start, within_last_days


logger = logging.getLogger(__name__)

_RECOMMENDATIONS = {
    AcwrBand.INSUFFICIENT_DATA: "Not enough training history to establish a chronic load baseline.",
    AcwrBand.UNDERTRAINING: "Training load is low. Consider increasing volume gradually.",
    AcwrBand.OPTIMAL: "Training load is in optimal range for adaptation.",
    AcwrBand.ELEVATED: "Training load is high. Monitor fatigue carefully.",
    AcwrBand.HIGH_RISK: "Training load is very high. Risk of overtraining. Consider recovery.",
}


def intensity_factor(run: NormalizedRun, threshold_pace: float) -> float | None:
    """
    Intensity of a run relative to threshold.

    Pace-based when pace is known (threshold pace / run pace), otherwise
    perceived effort / 10. Returns None when neither signal is present.
    """
    if run.avg_pace and run.avg_pace > 0:
        return threshold_pace / run.avg_pace
    if run.perceived_effort is not None:
        return run.perceived_effort / 10
    return None


def session_stress(run: NormalizedRun, threshold_pace: float) -> float:
    """
    Training Stress Score for a single run.

    TSS = duration_min * IF^2 * 100 / 60, so an hour at threshold scores 100.

    Example:
        >>> run = NormalizedRun(date=date(2024, 1, 1), duration_min=60, distance_km=12, avg_pace=5.0)
        >>> session_stress(run, threshold_pace=5.0)
        100.0
    """
    factor = intensity_factor(run, threshold_pace)
    if factor is None or run.duration_min <= 0:
        return 0.0
    return round(run.duration_min * factor**2 * 100 / 60, 1)


def daily_stress(runs: Sequence[NormalizedRun], threshold_pace: float) -> dict[date, float]:
    """Sum session stress per calendar day."""
    totals: dict[date, float] = {}
    for run in runs:
        totals[run.date] = totals.get(run.date, 0.0) + session_stress(run, threshold_pace)
    return totals


class TrainingLoadCalculator:
    """Computes acute and chronic load and their ratio (ACWR)."""

    def __init__(self, thresholds: EngineThresholds | None = None):
        self.thresholds = thresholds or EngineThresholds()

    def classify(self, ratio: float, chronic: float) -> AcwrBand:
        """
        Map a ratio onto a risk band.

        Boundaries are strict: 1.3 is still optimal, 1.5 is still elevated.
        A zero chronic load means there is no baseline yet.
        """
        t = self.thresholds
        if chronic <= 0:
            return AcwrBand.INSUFFICIENT_DATA
        if ratio > t.high_risk_acwr:
            return AcwrBand.HIGH_RISK
        if ratio > t.safe_acwr_upper:
            return AcwrBand.ELEVATED
        if ratio < t.safe_acwr_lower:
            return AcwrBand.UNDERTRAINING
        return AcwrBand.OPTIMAL

    def window_load(self, runs: Sequence[NormalizedRun], as_of: date, days: int) -> float:
        """Sum of session stress over the ``days`` ending on ``as_of`` (inclusive)."""
        pace = self.thresholds.threshold_pace
        return sum(
            session_stress(run, pace)
            for run in runs
            if within_last_days(run.date, as_of, days)
        )

    def from_loads(self, acute: float, chronic: float, previous_acute: float | None = None) -> TrainingLoad:
        """Build a TrainingLoad snapshot from precomputed acute and chronic loads."""
        ratio = round(acute / chronic, 2) if chronic > 0 else 0.0
        band = self.classify(ratio, chronic)

        trend = VolumeTrend.STABLE
        if previous_acute is not None and previous_acute > 0:
            if acute > previous_acute * 1.1:
                trend = VolumeTrend.INCREASING
            elif acute < previous_acute * 0.9:
                trend = VolumeTrend.DECREASING

        return TrainingLoad(
            acute=round(acute, 1),
            chronic=round(chronic, 1),
            ratio=ratio,
            band=band,
            trend=trend,
            recommendation=_RECOMMENDATIONS[band],
        )

    def calculate(self, runs: Sequence[NormalizedRun], as_of: date) -> TrainingLoad:
        """
        Calculate the training load at ``as_of``.

        Acute load is the stress of the last 7 days; chronic load is the
        average weekly stress over the last 28 days. Empty input yields a
        zero ratio flagged as insufficient data.
        """
        t = self.thresholds
        acute = self.window_load(runs, as_of, t.acute_window_days)
        chronic_weeks = t.chronic_window_days / t.acute_window_days
        chronic = self.window_load(runs, as_of, t.chronic_window_days) / chronic_weeks
        previous_acute = self.window_load(
            runs, add_days(as_of, -t.acute_window_days), t.acute_window_days
        )

        load = self.from_loads(acute, chronic, previous_acute)
        logger.debug(
            "Training load at %s: acute=%.1f chronic=%.1f ratio=%.2f (%s)",
            as_of.isoformat(),
            load.acute,
            load.chronic,
            load.ratio,
            load.band.value,
        )
        return load


def weekly_distances(runs: Sequence[NormalizedRun], first_weekday: int = 0) -> dict[date, float]:
    """Total distance per week keyed by week start, in chronological order."""
    weeks: dict[date, float] = {}
    for run in sorted(runs, key=lambda r: r.date):
        key = week_start(run.date, first_weekday)
        weeks[key] = weeks.get(key, 0.0) + run.distance_km
    return weeks


def analyze_weekly_patterns(runs: Sequence[NormalizedRun], first_weekday: int = 0) -> dict[str, Any]:
    """
    Summarise weekly training patterns.

    Returns:
        Dict with avg_weekly_mileage, max_weekly_mileage, avg_runs_per_week, weeks
    """
    weeks = weekly_distances(runs, first_weekday)
    if not weeks:
        return {
            "avg_weekly_mileage": 0.0,
            "max_weekly_mileage": 0.0,
            "avg_runs_per_week": 0.0,
            "weeks": 0,
        }

    distances = list(weeks.values())
    return {
        "avg_weekly_mileage": round(sum(distances) / len(distances), 1),
        "max_weekly_mileage": round(max(distances), 1),
        "avg_runs_per_week": round(len(runs) / len(weeks), 1),
        "weeks": len(weeks),
    }


def weekly_load_increase(
    runs: Sequence[NormalizedRun],
    as_of: date,
    first_weekday: int = 0,
) -> float:
    """
    Percentage change of the last 7 days' distance against the average week.

    Returns 0.0 when there is no weekly baseline.
    """
    average = analyze_weekly_patterns(runs, first_weekday)["avg_weekly_mileage"]
    if average <= 0:
        return 0.0

    recent = sum(run.distance_km for run in runs if within_last_days(run.date, as_of, 7))
    return round((recent - average) / average * 100, 1)
