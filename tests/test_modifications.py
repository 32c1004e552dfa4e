"""Tests for modification rules, the plan applicator and plan transforms."""
import pytest

from adaptive_training.models.schemas import (
    IllnessStatus,
    InjuryStatus,
    ModificationType,
    PerformanceTrend,
    PlanModification,
    Priority,
    ProgressionRate,
    RecoveryMetrics,
    SubstitutionReason,
    SuggestedChanges,
    WorkoutType,
)
from adaptive_training.services.modifications import (
    ModificationApplicator,
    ModificationGenerator,
    apply_progressive_overload,
    create_smart_substitution,
)

from conftest import AS_OF, days_from, make_plan, make_planned, make_progress


def by_id(plan):
    return {w.id: w for w in plan.workouts}


class TestModificationRules:
    """Test which modifications the generator suggests."""

    def test_healthy_progress_suggests_nothing(self):
        assert ModificationGenerator().suggest(make_progress()) == []

    def test_elevated_ratio_reduces_intensity_only(self):
        mods = ModificationGenerator().suggest(make_progress(acute=140, chronic=100))

        assert len(mods) == 1
        assert mods[0].type == ModificationType.REDUCE_INTENSITY
        assert mods[0].priority == Priority.MEDIUM
        assert mods[0].suggested_changes.intensity_reduction == 20
        assert mods[0].reason == "Elevated training load (A:C ratio 1.40)"

    def test_high_risk_ratio_reduces_volume(self):
        mods = ModificationGenerator().suggest(make_progress(acute=160, chronic=100))

        assert [m.type for m in mods] == [ModificationType.REDUCE_VOLUME]
        assert mods[0].priority == Priority.HIGH
        assert mods[0].suggested_changes.volume_reduction == 30
        assert "1.60" in mods[0].reason

    def test_low_adherence(self):
        mods = ModificationGenerator().suggest(make_progress(adherence_rate=0.5))

        assert len(mods) == 1
        assert mods[0].type == ModificationType.REDUCE_VOLUME
        assert mods[0].reason == "Low adherence rate (50%)"
        assert mods[0].suggested_changes.volume_reduction == 20
        assert mods[0].suggested_changes.delay_days == 7

    def test_declining_performance_delays_progression(self):
        mods = ModificationGenerator().suggest(make_progress(trend=PerformanceTrend.DECLINING))

        assert [m.type for m in mods] == [ModificationType.DELAY_PROGRESSION]
        assert mods[0].suggested_changes.delay_days == 7
        assert mods[0].suggested_changes.intensity_reduction == 15

    def test_low_recovery_adds_recovery(self):
        recovery = RecoveryMetrics(sleep_quality=2, muscle_soreness=9, energy_level=2)

        mods = ModificationGenerator().suggest(make_progress(), recovery)

        assert [m.type for m in mods] == [ModificationType.ADD_RECOVERY]
        assert mods[0].priority == Priority.HIGH
        assert mods[0].reason == "Low recovery score (30), indicating high fatigue"
        assert mods[0].suggested_changes.additional_recovery_days == 2

    def test_injury_produces_single_full_stop_protocol(self):
        mods = ModificationGenerator().suggest(
            make_progress(), RecoveryMetrics(injury_status=InjuryStatus.INJURED)
        )

        assert len(mods) == 1
        assert mods[0].type == ModificationType.INJURY_PROTOCOL
        assert mods[0].priority == Priority.HIGH
        assert mods[0].reason == "Injury reported"
        assert mods[0].suggested_changes.volume_reduction == 100
        assert mods[0].suggested_changes.substitute_workout_type == WorkoutType.RECOVERY

    def test_illness_halves_volume(self):
        mods = ModificationGenerator().suggest(
            make_progress(), RecoveryMetrics(illness_status=IllnessStatus.SICK)
        )

        assert mods[0].reason == "Illness reported"
        assert mods[0].suggested_changes.volume_reduction == 50

    def test_injury_protocol_comes_first_then_priority(self):
        progress = make_progress(acute=140, chronic=100, trend=PerformanceTrend.DECLINING)
        recovery = RecoveryMetrics(injury_status=InjuryStatus.INJURED)

        mods = ModificationGenerator().suggest(progress, recovery)

        assert [m.type for m in mods] == [
            ModificationType.INJURY_PROTOCOL,
            ModificationType.REDUCE_INTENSITY,
            ModificationType.DELAY_PROGRESSION,
        ]

    def test_high_priority_before_medium(self):
        progress = make_progress(acute=160, chronic=100, adherence_rate=0.5)
        recovery = RecoveryMetrics(sleep_quality=2, muscle_soreness=9, energy_level=2)

        mods = ModificationGenerator().suggest(progress, recovery)

        assert [m.priority for m in mods] == [Priority.HIGH, Priority.HIGH, Priority.MEDIUM]
        assert mods[-1].reason.startswith("Low adherence")


class TestNeedsAdaptation:
    """Test the adaptation trigger."""

    def test_optimal_and_healthy(self):
        assert ModificationGenerator().needs_adaptation(make_progress()) is False

    def test_undertraining_triggers(self):
        assert ModificationGenerator().needs_adaptation(make_progress(acute=70, chronic=100)) is True

    def test_insufficient_data_does_not_trigger(self):
        assert ModificationGenerator().needs_adaptation(make_progress(acute=0, chronic=0)) is False

    def test_elevated_triggers(self):
        assert ModificationGenerator().needs_adaptation(make_progress(acute=135, chronic=100)) is True

    def test_declining_triggers(self):
        progress = make_progress(trend=PerformanceTrend.DECLINING)
        assert ModificationGenerator().needs_adaptation(progress) is True

    def test_illness_triggers(self):
        recovery = RecoveryMetrics(illness_status=IllnessStatus.SICK)
        assert ModificationGenerator().needs_adaptation(make_progress(), recovery) is True


def mod(mod_type, priority=Priority.MEDIUM, workout_ids=None, **changes):
    return PlanModification(
        type=mod_type,
        reason="test",
        priority=priority,
        workout_ids=workout_ids,
        suggested_changes=SuggestedChanges(**changes),
    )


class TestApplicator:
    """Test plan transforms."""

    def test_empty_list_returns_equal_plan(self, sample_plan):
        assert ModificationApplicator().apply(sample_plan, [], AS_OF) == sample_plan

    def test_input_plan_is_not_mutated(self, sample_plan):
        snapshot = sample_plan.model_copy(deep=True)

        ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_VOLUME, volume_reduction=30)], AS_OF
        )

        assert sample_plan == snapshot

    def test_reduce_volume_scales_future_only(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_VOLUME, volume_reduction=30)], AS_OF
        )
        before, after = by_id(sample_plan), by_id(result)

        for workout_id in ("tempo", "easy", "vo2", "long"):
            assert after[workout_id].target_metrics.duration == pytest.approx(
                before[workout_id].target_metrics.duration * 0.7
            )
            assert after[workout_id].workout.segments[0].duration == pytest.approx(
                before[workout_id].workout.segments[0].duration * 0.7
            )
        assert after["long"].target_metrics.distance == pytest.approx(22.0 * 0.7)
        assert after["past-easy"] == before["past-easy"]
        assert after["today-tempo"] == before["today-tempo"]

    def test_reduce_volume_default_is_20_percent(self, sample_plan):
        result = ModificationApplicator().apply(sample_plan, [mod(ModificationType.REDUCE_VOLUME)], AS_OF)
        assert by_id(result)["tempo"].target_metrics.duration == pytest.approx(48)

    def test_reduce_intensity_only_hard_future_workouts(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_INTENSITY, intensity_reduction=20)], AS_OF
        )
        after = by_id(result)

        assert after["tempo"].target_metrics.intensity == pytest.approx(68)
        assert after["vo2"].target_metrics.intensity == pytest.approx(76)
        assert after["vo2"].workout.segments[0].intensity == pytest.approx(76)
        assert after["easy"].target_metrics.intensity == 65
        assert after["long"].target_metrics.intensity == 70
        assert after["today-tempo"].target_metrics.intensity == 85

    def test_volume_reduction_above_100_is_clamped(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_VOLUME, volume_reduction=150)], AS_OF
        )
        after = by_id(result)

        for workout_id in ("tempo", "easy", "vo2", "long"):
            assert after[workout_id].target_metrics.duration == 0
            assert after[workout_id].workout.segments[0].duration == 0
        assert after["past-easy"].target_metrics.duration == 50

    def test_negative_intensity_reduction_is_clamped(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_INTENSITY, intensity_reduction=-50)], AS_OF
        )
        after = by_id(result)

        assert after["vo2"].target_metrics.intensity == 95
        assert after["vo2"].workout.segments[0].intensity == 95
        assert after["tempo"].target_metrics.intensity == 85

    def test_add_recovery_converts_next_hard_sessions(self):
        plan = make_plan(
            [
                make_planned("h1", days_from(1), WorkoutType.TEMPO, 60, 85),
                make_planned("e1", days_from(2), WorkoutType.EASY, 45, 65),
                make_planned("h2", days_from(3), WorkoutType.THRESHOLD, 60, 88),
                make_planned("h3", days_from(6), WorkoutType.VO2MAX, 50, 95),
            ]
        )

        result = ModificationApplicator().apply(
            plan, [mod(ModificationType.ADD_RECOVERY, additional_recovery_days=2)], AS_OF
        )
        after = by_id(result)

        for workout_id in ("h1", "h2"):
            assert after[workout_id].type == WorkoutType.RECOVERY
            assert after[workout_id].name == "Recovery Run (Modified)"
            assert after[workout_id].target_metrics.duration == 30
            assert after[workout_id].target_metrics.intensity == 50
            assert after[workout_id].target_metrics.distance is None
        assert after["h3"].type == WorkoutType.VO2MAX
        assert after["e1"] == by_id(plan)["e1"]

    def test_add_recovery_composes_intensity_reduction(self):
        plan = make_plan(
            [
                make_planned("h1", days_from(1), WorkoutType.TEMPO, 60, 85),
                make_planned("h2", days_from(3), WorkoutType.THRESHOLD, 60, 88),
                make_planned("h3", days_from(6), WorkoutType.VO2MAX, 50, 90),
            ]
        )

        result = ModificationApplicator().apply(
            plan,
            [mod(ModificationType.ADD_RECOVERY, additional_recovery_days=2, intensity_reduction=30)],
            AS_OF,
        )

        assert by_id(result)["h3"].target_metrics.intensity == pytest.approx(63)
        assert by_id(result)["h1"].target_metrics.intensity == 50

    def test_substitute_named_future_workouts(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan,
            [
                mod(
                    ModificationType.SUBSTITUTE_WORKOUT,
                    workout_ids=["vo2", "past-easy"],
                    substitute_workout_type=WorkoutType.STEADY,
                )
            ],
            AS_OF,
        )
        after = by_id(result)

        assert after["vo2"].type == WorkoutType.STEADY
        assert after["vo2"].name == "Steady State Run (Substituted)"
        assert after["vo2"].description == "Workout substituted: test"
        assert after["past-easy"] == by_id(sample_plan)["past-easy"]
        assert after["tempo"].type == WorkoutType.TEMPO

    def test_substitute_defaults_to_easy_for_all_future(self, sample_plan):
        result = ModificationApplicator().apply(sample_plan, [mod(ModificationType.SUBSTITUTE_WORKOUT)], AS_OF)
        future = [w for w in result.workouts if w.date > AS_OF]
        assert {w.type for w in future} == {WorkoutType.EASY}

    def test_delay_shifts_future_workouts(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.DELAY_PROGRESSION, delay_days=7)], AS_OF
        )
        before, after = by_id(sample_plan), by_id(result)

        assert after["tempo"].date == days_from(8)
        assert after["long"].date == days_from(17)
        assert after["past-easy"].date == before["past-easy"].date
        assert after["today-tempo"].date == AS_OF

    def test_reduce_volume_with_delay_also_shifts(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan, [mod(ModificationType.REDUCE_VOLUME, volume_reduction=20, delay_days=7)], AS_OF
        )
        after = by_id(result)

        assert after["tempo"].date == days_from(8)
        assert after["tempo"].target_metrics.duration == pytest.approx(48)

    def test_full_injury_protocol_removes_next_seven_days(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan,
            [mod(ModificationType.INJURY_PROTOCOL, Priority.HIGH, volume_reduction=100)],
            AS_OF,
        )
        after = by_id(result)

        assert set(after) == {"past-easy", "today-tempo", "long"}
        assert after["long"] == by_id(sample_plan)["long"]

    def test_partial_injury_protocol_converts_hard_sessions(self, sample_plan):
        result = ModificationApplicator().apply(
            sample_plan,
            [mod(ModificationType.INJURY_PROTOCOL, Priority.HIGH, volume_reduction=50)],
            AS_OF,
        )
        after = by_id(result)

        assert after["tempo"].type == WorkoutType.RECOVERY
        assert after["vo2"].type == WorkoutType.RECOVERY
        assert after["easy"].type == WorkoutType.EASY
        assert after["today-tempo"].type == WorkoutType.TEMPO
        assert len(result.workouts) == len(sample_plan.workouts)

    def test_generated_injury_modification_end_to_end(self, sample_plan):
        mods = ModificationGenerator().suggest(
            make_progress(), RecoveryMetrics(injury_status=InjuryStatus.INJURED)
        )
        result = ModificationApplicator().apply(sample_plan, mods, AS_OF)

        assert [w.id for w in result.workouts if AS_OF < w.date <= days_from(7)] == []
        assert by_id(result)["long"] == by_id(sample_plan)["long"]


class TestSmartSubstitution:
    """Test reason-aware substitution."""

    def test_fatigue_turns_vo2max_into_tempo(self):
        original = make_planned("vo2", days_from(2), WorkoutType.VO2MAX, 50, 95)

        result = create_smart_substitution(original, SubstitutionReason.FATIGUE)

        assert result.type == WorkoutType.TEMPO
        assert result.name == "Tempo Run (Substituted due to fatigue)"
        assert result.description == "Original vo2max workout modified due to fatigue"
        assert result.target_metrics.tss == 65
        assert result.target_metrics.load == 65
        assert result.target_metrics.intensity == pytest.approx((65 + 84 + 60) / 3)
        assert result.date == original.date
        assert result.id == original.id

    def test_injury_prefers_cross_training(self):
        original = make_planned("t", days_from(2), WorkoutType.THRESHOLD, 60, 88)
        assert create_smart_substitution(original, SubstitutionReason.INJURY).type == WorkoutType.CROSS_TRAINING

    def test_short_target_scales_long_template(self):
        original = make_planned("lr", days_from(2), WorkoutType.LONG_RUN, 30, 70)

        result = create_smart_substitution(original, SubstitutionReason.WEATHER)

        assert result.type == WorkoutType.LONG_RUN
        assert [s.duration for s in result.workout.segments] == [30]


class TestProgressiveOverload:
    """Test week-indexed overload."""

    def overload_plan(self):
        mondays = [days_from(-11), days_from(-4), days_from(3), days_from(10)]
        workouts = [make_planned(f"w{i}", day, WorkoutType.TEMPO, 60, 70) for i, day in enumerate(mondays)]
        workouts.append(make_planned("rec", days_from(10), WorkoutType.RECOVERY, 30, 50))
        workouts.append(make_planned("hot", days_from(11), WorkoutType.VO2MAX, 50, 94))
        return make_plan(workouts)

    def test_first_two_weeks_unchanged(self):
        plan = self.overload_plan()
        after = by_id(apply_progressive_overload(plan, ProgressionRate.MODERATE))

        assert after["w0"] == by_id(plan)["w0"]
        assert after["w1"] == by_id(plan)["w1"]

    def test_third_week_progresses(self):
        after = by_id(apply_progressive_overload(self.overload_plan(), ProgressionRate.MODERATE))

        assert after["w2"].target_metrics.duration == round(60 * 1.10 ** 0.25)
        assert after["w2"].target_metrics.intensity == pytest.approx(70 * 1.05 ** 0.125)
        assert after["w3"].target_metrics.duration == round(60 * 1.10 ** 0.5)

    def test_recovery_untouched_and_intensity_capped(self):
        plan = self.overload_plan()
        after = by_id(apply_progressive_overload(plan, ProgressionRate.AGGRESSIVE))

        assert after["rec"] == by_id(plan)["rec"]
        assert after["hot"].target_metrics.intensity == 95
