"""Current-fitness estimates derived from the normalized run series."""

from __future__ import annotations

import math
from collections.abc import Sequence

from adaptive_training.models.schemas import CurrentFitness, NormalizedRun
from adaptive_training.services.training_load import analyze_weekly_patterns


DEFAULT_VDOT = 35.0


def vdot_from_performance(distance_km: float, duration_min: float) -> float:
    """
    Estimate VDOT from a single effort using Daniels' formula.

    Example:
        >>> vdot_from_performance(5.0, 20.0)
        49.8
    """
    velocity = distance_km * 1000 / duration_min  # metres per minute
    vo2 = -4.6 + 0.182258 * velocity + 0.000104 * velocity**2
    percent_max = (
        0.8
        + 0.1894393 * math.exp(-0.012778 * duration_min)
        + 0.2989558 * math.exp(-0.1932605 * duration_min)
    )
    return round(vo2 / percent_max, 1)


def calculate_vdot(runs: Sequence[NormalizedRun]) -> float:
    """
    Estimate VDOT from the best qualifying effort.

    Races and near-maximal efforts (effort >= 9) are preferred; otherwise the
    fastest run of at least 3 km is used. Falls back to a beginner default.
    """
    qualifying = [r for r in runs if r.distance_km >= 3 and r.duration_min > 0]
    if not qualifying:
        return DEFAULT_VDOT

    races = [r for r in qualifying if r.is_race or (r.perceived_effort or 0) >= 9]
    candidates = races or qualifying
    best = min(candidates, key=lambda r: r.duration_min / r.distance_km)
    return vdot_from_performance(best.distance_km, best.duration_min)


def current_fitness(runs: Sequence[NormalizedRun], first_weekday: int = 0) -> CurrentFitness:
    """Build the fitness snapshot reported in ProgressData."""
    patterns = analyze_weekly_patterns(runs, first_weekday)
    return CurrentFitness(
        vdot=calculate_vdot(runs),
        weekly_mileage=patterns["avg_weekly_mileage"],
        longest_recent_run=max((r.distance_km for r in runs), default=0.0),
        training_age=1,
    )
