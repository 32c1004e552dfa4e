"""Pydantic models describing engine inputs, plans and results."""
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkoutType(str, Enum):
    RECOVERY = "recovery"
    EASY = "easy"
    STEADY = "steady"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    SPEED = "speed"
    HILL_REPEATS = "hill_repeats"
    FARTLEK = "fartlek"
    PROGRESSION = "progression"
    LONG_RUN = "long_run"
    RACE_PACE = "race_pace"
    TIME_TRIAL = "time_trial"
    CROSS_TRAINING = "cross_training"
    STRENGTH = "strength"


class ModificationType(str, Enum):
    REDUCE_VOLUME = "reduce_volume"
    REDUCE_INTENSITY = "reduce_intensity"
    ADD_RECOVERY = "add_recovery"
    SUBSTITUTE_WORKOUT = "substitute_workout"
    DELAY_PROGRESSION = "delay_progression"
    INJURY_PROTOCOL = "injury_protocol"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PerformanceTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class VolumeTrend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class AcwrBand(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    UNDERTRAINING = "undertraining"
    OPTIMAL = "optimal"
    ELEVATED = "elevated"
    HIGH_RISK = "high_risk"


class RecoveryStatus(str, Enum):
    RECOVERED = "recovered"
    ADEQUATE = "adequate"
    FATIGUED = "fatigued"
    OVERREACHED = "overreached"


class FatigueLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class Adherence(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    MISSED = "missed"


class InjuryStatus(str, Enum):
    HEALTHY = "healthy"
    INJURED = "injured"


class IllnessStatus(str, Enum):
    HEALTHY = "healthy"
    SICK = "sick"


class Condition(str, Enum):
    INJURY = "injury"
    ILLNESS = "illness"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class SubstitutionReason(str, Enum):
    FATIGUE = "fatigue"
    INJURY = "injury"
    ILLNESS = "illness"
    TIME_CONSTRAINT = "time_constraint"
    WEATHER = "weather"


class ProgressionRate(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# History inputs
class CompletedWorkout(BaseModel):
    """One finished (or explicitly missed) session supplied by the history source."""

    workout_id: str
    date: date
    actual_duration: float | None = Field(None, ge=0, description="Minutes")
    actual_distance: float | None = Field(None, ge=0, description="Kilometres")
    actual_pace: float | None = Field(None, gt=0, description="Minutes per km")
    planned_duration: float | None = Field(None, ge=0)
    avg_heart_rate: float | None = None
    max_heart_rate: float | None = None
    perceived_effort: float | None = None
    completion_rate: float | None = None
    adherence: Adherence = Adherence.COMPLETE
    notes: str | None = None
    is_race: bool = False


class NormalizedRun(BaseModel):
    """Uniform time-series point derived from a completed workout."""

    model_config = ConfigDict(frozen=True)

    date: date
    distance_km: float = 0.0
    duration_min: float = 0.0
    avg_pace: float | None = None
    avg_heart_rate: float | None = None
    perceived_effort: float | None = None
    completion_rate: float | None = None
    notes: str = ""
    is_race: bool = False


class RecoveryMetrics(BaseModel):
    """Subjective and objective recovery signals for one analysis window."""

    sleep_quality: float | None = None
    sleep_duration: float | None = None
    stress_level: float | None = None
    muscle_soreness: float | None = None
    energy_level: float | None = None
    motivation: float | None = None
    recovery_score: float | None = None
    hrv: float | None = None
    resting_hr: float | None = None
    injury_status: InjuryStatus | None = None
    illness_status: IllnessStatus | None = None

    @property
    def is_injured(self) -> bool:
        return self.injury_status == InjuryStatus.INJURED

    @property
    def is_sick(self) -> bool:
        return self.illness_status == IllnessStatus.SICK


# Plan structure (owned by the external plan generator)
class WorkoutSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: float
    distance: float | None = None
    intensity: float
    zone: str = "easy"
    description: str = ""


class Workout(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: WorkoutType
    primary_zone: str = "easy"
    segments: list[WorkoutSegment] = []
    adaptation_target: str = ""
    estimated_tss: float | None = None
    recovery_time: float = 0


class WorkoutMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: float
    distance: float | None = None
    tss: float = 0
    load: float = 0
    intensity: float


class PlannedWorkout(BaseModel):
    """A scheduled session. ``target_metrics`` is required."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: date
    type: WorkoutType
    name: str
    description: str = ""
    workout: Workout
    target_metrics: WorkoutMetrics


class TrainingBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    phase: str
    start_date: date
    end_date: date
    weeks: int
    focus_areas: list[str] = []


class TrainingPlanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    goal: str
    start_date: date
    target_date: date | None = None
    description: str | None = None


class TrainingPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    config: TrainingPlanConfig
    blocks: list[TrainingBlock] = []
    summary: dict[str, Any] = {}
    workouts: list[PlannedWorkout] = []


# Derived metrics
class TrainingLoad(BaseModel):
    model_config = ConfigDict(frozen=True)

    acute: float = 0.0
    chronic: float = 0.0
    ratio: float = 0.0
    band: AcwrBand = AcwrBand.INSUFFICIENT_DATA
    trend: VolumeTrend = VolumeTrend.STABLE
    recommendation: str = ""


class CurrentFitness(BaseModel):
    model_config = ConfigDict(frozen=True)

    vdot: float
    weekly_mileage: float
    longest_recent_run: float
    training_age: int = 1


class VolumeProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    weekly_average: float
    trend: VolumeTrend


class IntensityDistribution(BaseModel):
    """Percentages of sessions per effort bucket; always sums to 100."""

    model_config = ConfigDict(frozen=True)

    easy: int
    moderate: int
    hard: int
    very_hard: int


class ProgressData(BaseModel):
    model_config = ConfigDict(frozen=True)

    adherence_rate: float = Field(ge=0, le=1)
    performance_trend: PerformanceTrend
    volume_progress: VolumeProgress
    intensity_distribution: IntensityDistribution
    current_fitness: CurrentFitness
    training_load: TrainingLoad = TrainingLoad()
    completed_workouts: list[CompletedWorkout] = []
    total_workouts: int = 0
    date: date


class SuggestedChanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume_reduction: float | None = None
    intensity_reduction: float | None = None
    substitute_workout_type: WorkoutType | None = None
    additional_recovery_days: int | None = None
    delay_days: int | None = None


class PlanModification(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ModificationType
    reason: str
    priority: Priority
    workout_ids: list[str] | None = None
    suggested_changes: SuggestedChanges = SuggestedChanges()


class RecoveryPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    duration_days: int
    allowed_workout_types: list[WorkoutType]
    volume_percent: int
    intensity_ceiling: int
    focus: str


# Operation results
class RecoveryAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float
    status: RecoveryStatus
    recommendations: list[str] = []


class ChronicFatigueStreak(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected: bool = False
    sessions: int = 0
    pattern: str = "none"


class TssOverloadStreak(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected: bool = False
    consecutive_days: int = 0
    max_daily_tss: float = 0.0


class FatigueAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    fatigue_level: FatigueLevel
    adjusted_workouts: list[PlannedWorkout] = []
    warnings: list[str] = []
    acute_fatigue_score: float = 0.0
    chronic_fatigue: ChronicFatigueStreak = ChronicFatigueStreak()
    tss_overload: TssOverloadStreak = TssOverloadStreak()


class OverreachingRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    acute_chronic_ratio: float
    weekly_load_increase: float
    current_risk: float
    projected_risk: float
    mitigation_strategies: list[str] = []


class RecoveryProtocol(BaseModel):
    model_config = ConfigDict(frozen=True)

    phases: list[RecoveryPhase]
    guidelines: list[str] = []
    return_criteria: list[str] = []

    @property
    def total_days(self) -> int:
        return sum(phase.duration_days for phase in self.phases)


# API request bodies
class ProgressRequest(BaseModel):
    completed_workouts: list[CompletedWorkout] = []
    planned_workouts: list[PlannedWorkout] = []
    as_of: date | None = None


class ModificationsRequest(BaseModel):
    progress: ProgressData
    recovery: RecoveryMetrics | None = None
    plan: TrainingPlan | None = None


class ApplyModificationsRequest(BaseModel):
    plan: TrainingPlan
    modifications: list[PlanModification] = []
    as_of: date | None = None


class RecoveryStatusRequest(BaseModel):
    completed_workouts: list[CompletedWorkout] = []
    recovery: RecoveryMetrics | None = None
    as_of: date | None = None


class FatigueRequest(BaseModel):
    completed_workouts: list[CompletedWorkout] = []
    upcoming_workouts: list[PlannedWorkout] = []
    recovery: RecoveryMetrics | None = None
    as_of: date | None = None


class OverreachingRiskRequest(BaseModel):
    completed_workouts: list[CompletedWorkout] = []
    planned_workouts: list[PlannedWorkout] = []
    as_of: date | None = None


class RecoveryProtocolRequest(BaseModel):
    condition: str
    severity: str
    affected_area: str | None = None
