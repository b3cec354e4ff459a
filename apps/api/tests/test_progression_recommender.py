"""
Tests for the Progression Recommender

Covers:
  1. Global decision table priority (deload > adherence > increase > decrease > maintain)
  2. Adjustment ranges and confidence bounds
  3. Exercise-level progression from the exercise's own logs
"""

import pytest

from services.progression.constants import ProgressionAction
from services.progression.performance_analyzer import analyze_performance
from services.progression.recommender import (
    calculate_exercise_progression,
    determine_progression_recommendation,
    insufficient_data_recommendation,
)
from services.progression.types import (
    ExerciseLogData,
    ExerciseMeta,
    PerformanceMetrics,
    PlanExerciseData,
    ProgressionRecommendation,
)


def _metrics(completion=100.0, consistency=90.0, readiness=90.0, recovery=90.0, rpe=6.5):
    return PerformanceMetrics(
        completion_rate=completion,
        consistency_score=consistency,
        readiness_score=readiness,
        recovery_score=recovery,
        rpe_average=rpe,
    )


def _plan_exercise(sets=4, reps=(8, 10), weight=100.0, target_rpe=None):
    return PlanExerciseData(
        exercise_id="bench",
        exercise=ExerciseMeta(id="bench", name="Bench Press", primary_muscles=("chest",)),
        target_sets=sets,
        target_reps_min=reps[0],
        target_reps_max=reps[1],
        target_weight=weight,
        target_rpe=target_rpe,
        rest_seconds=120,
    )


def _sessions(count, reps, weight=100.0, rpe=6.0):
    return [
        ExerciseLogData.from_sets("bench", reps, [weight] * len(reps), [rpe] * len(reps))
        for _ in range(count)
    ]


def _rec(action, volume=0.0, intensity=0.0):
    return ProgressionRecommendation(
        action=action,
        volume_adjustment=volume,
        intensity_adjustment=intensity,
        reason="test",
        confidence=0.8,
    )


# ===================================================================
# GROUP 1: Decision table
# ===================================================================


class TestDecisionTable:

    @pytest.mark.parametrize("metrics", [
        _metrics(recovery=39.9),
        _metrics(completion=10.0, consistency=5.0, readiness=5.0, recovery=0.0),
        _metrics(completion=100.0, consistency=100.0, readiness=100.0, recovery=20.0, rpe=5.0),
        _metrics(recovery=35.0, rpe=None),
    ])
    def test_low_recovery_always_deloads(self, metrics):
        rec = determine_progression_recommendation(metrics)
        assert rec.action == ProgressionAction.DELOAD

    def test_max_effort_with_inconsistent_training_deloads(self):
        rec = determine_progression_recommendation(_metrics(consistency=55.0, recovery=60.0, rpe=9.3))
        assert rec.action == ProgressionAction.DELOAD
        assert "RPE 9.3" in rec.reason

    def test_max_effort_with_consistent_training_does_not_deload(self):
        rec = determine_progression_recommendation(_metrics(consistency=80.0, recovery=60.0, rpe=9.3))
        assert rec.action != ProgressionAction.DELOAD

    def test_low_completion_maintains_for_adherence(self):
        rec = determine_progression_recommendation(_metrics(completion=25.0))
        assert rec.action == ProgressionAction.MAINTAIN
        assert "adherence" in rec.reason.lower()
        assert rec.volume_adjustment == 0.0

    def test_low_consistency_maintains_for_adherence(self):
        rec = determine_progression_recommendation(_metrics(consistency=40.0))
        assert rec.action == ProgressionAction.MAINTAIN
        assert "adherence" in rec.reason.lower()

    def test_strong_metrics_increase(self):
        rec = determine_progression_recommendation(_metrics())
        assert rec.action == ProgressionAction.INCREASE
        assert 5.0 <= rec.volume_adjustment <= 10.0
        assert 2.5 <= rec.intensity_adjustment <= 5.0

    def test_low_readiness_decreases(self):
        rec = determine_progression_recommendation(_metrics(completion=90.0, consistency=80.0, readiness=45.0, recovery=60.0))
        assert rec.action == ProgressionAction.DECREASE
        assert rec.volume_adjustment == -10.0
        assert rec.intensity_adjustment == -5.0

    def test_middling_metrics_maintain(self):
        rec = determine_progression_recommendation(_metrics(completion=75.0, consistency=70.0, readiness=65.0, recovery=65.0))
        assert rec.action == ProgressionAction.MAINTAIN
        assert rec.reason.startswith("Solid performance")

    def test_increase_magnitude_grows_with_margin(self):
        barely = determine_progression_recommendation(_metrics(completion=86.0, readiness=71.0, recovery=71.0))
        clearly = determine_progression_recommendation(_metrics(completion=100.0, readiness=100.0, recovery=100.0))
        assert barely.volume_adjustment < clearly.volume_adjustment
        assert barely.confidence < clearly.confidence


class TestConfidence:

    @pytest.mark.parametrize("metrics", [
        _metrics(),
        _metrics(recovery=0.0),
        _metrics(recovery=39.0),
        _metrics(completion=0.0, consistency=0.0),
        _metrics(completion=90.0, readiness=0.0, recovery=45.0),
        _metrics(completion=85.0, consistency=50.0, readiness=70.0, recovery=70.0),
        _metrics(completion=60.0, consistency=50.0, readiness=50.0, recovery=50.0),
    ])
    def test_confidence_within_0_1(self, metrics):
        rec = determine_progression_recommendation(metrics)
        assert 0.0 <= rec.confidence <= 1.0


# ===================================================================
# GROUP 2: Scenarios from logs
# ===================================================================


class TestScenarios:

    @staticmethod
    def _logs(days, rpe, volume):
        from datetime import date, timedelta
        from services.progression.types import WorkoutLogData
        start = date(2026, 1, 5)
        return [
            WorkoutLogData(
                id=f"w{d}", user_id="u", workout_date=start + timedelta(days=d),
                total_volume=volume, avg_rpe=rpe,
            )
            for d in days
        ]

    def test_consistent_moderate_training_increases(self):
        current = self._logs(range(28, 52, 3), rpe=6.0, volume=5000)
        previous = self._logs(range(0, 24, 3), rpe=6.0, volume=5000)
        rec = determine_progression_recommendation(analyze_performance(current, previous, 8))
        assert rec.action == ProgressionAction.INCREASE
        assert 5.0 <= rec.volume_adjustment <= 10.0

    def test_two_of_eight_workouts_maintains(self):
        current = self._logs([28, 31], rpe=6.0, volume=5000)
        rec = determine_progression_recommendation(analyze_performance(current, [], 8))
        assert rec.action == ProgressionAction.MAINTAIN
        assert "adherence" in rec.reason.lower()

    def test_rising_volume_and_rpe_deloads(self):
        previous = self._logs(range(0, 24, 3), rpe=6.0, volume=1000)
        current = self._logs(range(28, 52, 3), rpe=7.5, volume=1200)
        metrics = analyze_performance(current, previous, 8)
        assert metrics.recovery_score == 30.0

        rec = determine_progression_recommendation(metrics)
        assert rec.action == ProgressionAction.DELOAD
        assert -20.0 <= rec.volume_adjustment <= -15.0

    def test_insufficient_data_payload(self):
        payload = insufficient_data_recommendation()
        assert payload["action"] == "maintain"
        assert payload["reason"].startswith("Insufficient data")


# ===================================================================
# GROUP 3: Exercise-level progression
# ===================================================================


class TestExerciseProgression:

    def test_all_reps_with_rpe_to_spare_adds_set_rep_and_load(self):
        increase = _rec(ProgressionAction.INCREASE, volume=7.5, intensity=3.75)
        progression = calculate_exercise_progression(
            _sessions(2, [10, 10, 10, 10]), _plan_exercise(), increase
        )
        assert progression.sets_adjustment == 1
        assert progression.reps_adjustment == 1
        assert progression.weight_adjustment == 5.0
        assert progression.set_completion_rate == 100.0
        assert "RPE to spare" in progression.recommendation.reason

    def test_incomplete_sets_progress_through_load(self):
        increase = _rec(ProgressionAction.INCREASE, volume=5.0, intensity=1.0)
        progression = calculate_exercise_progression(
            _sessions(2, [10, 10, 10]), _plan_exercise(), increase
        )
        assert progression.sets_adjustment == 0
        assert progression.weight_adjustment == 2.5

    def test_never_reaching_target_reps_lowers_weight_even_when_increasing(self):
        increase = _rec(ProgressionAction.INCREASE, volume=7.5, intensity=3.75)
        progression = calculate_exercise_progression(
            _sessions(2, [5, 5, 5, 5]), _plan_exercise(), increase
        )
        assert progression.weight_adjustment == -5.0
        assert "never reached" in progression.recommendation.reason

    def test_decrease_removes_a_set(self):
        decrease = _rec(ProgressionAction.DECREASE, volume=-10.0, intensity=-5.0)
        progression = calculate_exercise_progression(
            _sessions(2, [9, 9, 9, 9], rpe=9.5), _plan_exercise(), decrease
        )
        assert progression.sets_adjustment == -1
        assert progression.reps_adjustment == -1
        assert progression.weight_adjustment == -5.0

    def test_deload_removes_at_most_two_sets(self):
        deload = _rec(ProgressionAction.DELOAD, volume=-20.0, intensity=-20.0)
        progression = calculate_exercise_progression(
            _sessions(1, [9] * 10, rpe=8.0), _plan_exercise(sets=10), deload
        )
        assert progression.sets_adjustment == -2

    def test_deload_removes_at_least_one_set(self):
        deload = _rec(ProgressionAction.DELOAD, volume=-15.0, intensity=-15.0)
        progression = calculate_exercise_progression(
            _sessions(1, [9, 9], rpe=8.0), _plan_exercise(sets=2), deload
        )
        assert progression.sets_adjustment == -1

    def test_deload_ignores_local_weight_increase(self):
        deload = _rec(ProgressionAction.DELOAD, volume=-15.0, intensity=-15.0)
        progression = calculate_exercise_progression(
            _sessions(2, [10, 10, 10, 10], rpe=5.0), _plan_exercise(), deload
        )
        assert progression.weight_adjustment == -15.0

    def test_no_logs_applies_global_deltas(self):
        deload = _rec(ProgressionAction.DELOAD, volume=-20.0, intensity=-17.5)
        progression = calculate_exercise_progression([], _plan_exercise(sets=4), deload)
        assert progression.sets_adjustment == -1
        assert progression.reps_adjustment == 0
        assert progression.weight_adjustment == -17.5
        assert progression.sessions_logged == 0

    @pytest.mark.parametrize("sets,volume,expected", [
        (3, 10.0, 1),
        (1, 5.0, 1),
        (2, -10.0, -1),
        (4, 0.0, 0),
    ])
    def test_no_logs_small_volume_change_moves_one_set(self, sets, volume, expected):
        rec = _rec(ProgressionAction.INCREASE if volume >= 0 else ProgressionAction.DECREASE,
                   volume=volume, intensity=0.0)
        progression = calculate_exercise_progression([], _plan_exercise(sets=sets), rec)
        assert progression.sets_adjustment == expected
        assert progression.reps_adjustment == 0

    def test_no_logs_single_set_decrease_sheds_a_rep(self):
        decrease = _rec(ProgressionAction.DECREASE, volume=-10.0, intensity=-5.0)
        progression = calculate_exercise_progression([], _plan_exercise(sets=1), decrease)
        assert progression.sets_adjustment == 0
        assert progression.reps_adjustment == -1

    def test_current_and_target_intensity(self):
        maintain = _rec(ProgressionAction.MAINTAIN)
        progression = calculate_exercise_progression(
            _sessions(2, [9, 9, 9, 9], weight=80.0, rpe=8.0), _plan_exercise(), maintain
        )
        assert progression.current_intensity == 80.0
        assert progression.target_intensity == 80.0
        assert progression.current_volume == 4 * 9 * 80.0
