"""Single entry point that wires the analyzers together for callers."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from adaptive_training.config import EngineThresholds, get_thresholds
from adaptive_training.models.schemas import (
    CompletedWorkout,
    Condition,
    FatigueAssessment,
    OverreachingRisk,
    PlanModification,
    PlannedWorkout,
    ProgressData,
    ProgressionRate,
    RecoveryAssessment,
    RecoveryMetrics,
    RecoveryProtocol,
    Severity,
    SubstitutionReason,
    TrainingPlan,
)
from adaptive_training.services.fatigue import FatigueDetector
from adaptive_training.services.injury_risk import InjuryRiskProjector
from adaptive_training.services.modifications import (
    ModificationApplicator,
    ModificationGenerator,
    apply_progressive_overload,
    create_smart_substitution,
)
from adaptive_training.services.progress import ProgressAnalyzer
from adaptive_training.services.recovery import RecoveryScorer
from adaptive_training.services.recovery_protocol import RecoveryProtocolBuilder


logger = logging.getLogger(__name__)

History = Iterable[CompletedWorkout | Mapping[str, Any]]


class AdaptationEngine:
    """
    Analyzes training history and adapts plans.

    Every operation is deterministic given its inputs and ``as_of``; when
    ``as_of`` is omitted, the injected ``clock`` supplies today's date.
    """

    def __init__(
        self,
        thresholds: EngineThresholds | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.thresholds = thresholds or EngineThresholds()
        self.clock = clock

        self.progress_analyzer = ProgressAnalyzer(self.thresholds)
        self.generator = ModificationGenerator(self.thresholds)
        self.applicator = ModificationApplicator(self.thresholds)
        self.recovery_scorer = RecoveryScorer(self.thresholds)
        self.fatigue_detector = FatigueDetector(self.thresholds)
        self.risk_projector = InjuryRiskProjector(self.thresholds)
        self.protocol_builder = RecoveryProtocolBuilder()

    def _resolve(self, as_of: date | None) -> date:
        return as_of if as_of is not None else self.clock()

    def analyze_progress(
        self,
        completed: History,
        planned: Sequence[PlannedWorkout],
        as_of: date | None = None,
    ) -> ProgressData:
        return self.progress_analyzer.analyze(completed, planned, self._resolve(as_of))

    def suggest_modifications(
        self,
        plan: TrainingPlan | None,
        progress: ProgressData,
        recovery: RecoveryMetrics | None = None,
    ) -> list[PlanModification]:
        """
        Suggest modifications for ``plan``.

        The rules read only the progress snapshot and recovery metrics; the plan
        is optional and identifies the target in the logs.
        """
        modifications = self.generator.suggest(progress, recovery)
        if plan is not None and modifications:
            logger.info(
                "Plan %s: %d modifications suggested",
                plan.id or plan.config.name,
                len(modifications),
            )
        return modifications

    def needs_adaptation(self, progress: ProgressData, recovery: RecoveryMetrics | None = None) -> bool:
        return self.generator.needs_adaptation(progress, recovery)

    def apply_modifications(
        self,
        plan: TrainingPlan,
        modifications: Sequence[PlanModification],
        as_of: date | None = None,
    ) -> TrainingPlan:
        return self.applicator.apply(plan, modifications, self._resolve(as_of))

    def assess_recovery_status(
        self,
        completed: History,
        recovery: RecoveryMetrics | None = None,
        as_of: date | None = None,
    ) -> RecoveryAssessment:
        return self.recovery_scorer.assess(completed, recovery, self._resolve(as_of))

    def detect_fatigue_and_adjust(
        self,
        completed: History,
        upcoming: Sequence[PlannedWorkout],
        recovery: RecoveryMetrics | None = None,
        as_of: date | None = None,
    ) -> FatigueAssessment:
        return self.fatigue_detector.detect_and_adjust(completed, upcoming, recovery, self._resolve(as_of))

    def assess_overreaching_risk(
        self,
        completed: History,
        planned: Sequence[PlannedWorkout],
        as_of: date | None = None,
    ) -> OverreachingRisk:
        return self.risk_projector.assess(completed, planned, self._resolve(as_of))

    def create_recovery_protocol(
        self,
        condition: Condition | str,
        severity: Severity | str,
        affected_area: str | None = None,
    ) -> RecoveryProtocol:
        return self.protocol_builder.build(condition, severity, affected_area)

    def create_smart_substitution(
        self, workout: PlannedWorkout, reason: SubstitutionReason | str
    ) -> PlannedWorkout:
        return create_smart_substitution(workout, SubstitutionReason(reason))

    def apply_progressive_overload(
        self, plan: TrainingPlan, rate: ProgressionRate | str = ProgressionRate.MODERATE
    ) -> TrainingPlan:
        return apply_progressive_overload(plan, ProgressionRate(rate), self.thresholds.week_start_day)

    def adapt(
        self,
        plan: TrainingPlan,
        completed: History,
        recovery: RecoveryMetrics | None = None,
        as_of: date | None = None,
    ) -> tuple[TrainingPlan, list[PlanModification]]:
        """
        Run one full cycle: analyze, suggest and apply.

        Returns:
            The adapted plan and the modifications that were applied
        """
        as_of = self._resolve(as_of)
        records = list(completed)
        progress = self.analyze_progress(records, plan.workouts, as_of)
        if not self.needs_adaptation(progress, recovery):
            logger.info("No adaptation needed for plan %s", plan.id or plan.config.name)
            return plan.model_copy(), []

        modifications = self.suggest_modifications(plan, progress, recovery)
        return self.apply_modifications(plan, modifications, as_of), modifications


def create_adaptation_engine() -> AdaptationEngine:
    """Build an engine with the thresholds configured for this process."""
    return AdaptationEngine(get_thresholds())
