"""
Tests for training modality switching and equipment filtering.
"""

import pytest

from services.progression.exceptions import InsufficientEquipmentError, NoExercisesForStyleError
from services.progression.regenerator import filter_by_equipment, switch_training_modality
from services.progression.types import ExerciseMeta, PlanExerciseData, PlanWorkoutData, WorkoutPlanData


def _meta(exercise_id, muscles=(), equipment=(), modality="yoga", exercise_type="flexibility", **kwargs):
    return ExerciseMeta(
        id=exercise_id,
        name=exercise_id.replace("-", " ").title(),
        exercise_type=exercise_type,
        primary_muscles=tuple(muscles),
        equipment=tuple(equipment),
        training_modality=modality,
        **kwargs,
    )


BENCH = _meta("bench-press", ["chest"], ["barbell", "bench"], modality="strength", exercise_type="strength")
SQUAT = _meta("back-squat", ["quads"], ["barbell"], modality="strength", exercise_type="strength")

DOWNWARD_DOG = _meta("downward-dog", ["shoulders", "hamstrings"], recommended_sets_min=2,
                     recommended_reps_min=5, recommended_reps_max=8, recommended_rest_seconds_min=30)
CHATURANGA = _meta("chaturanga", ["chest", "triceps"], ["bodyweight"], recommended_sets_min=3)
CHAIR_POSE = _meta("chair-pose", ["quads", "glutes"], ["None"])
WHEEL_POSE = _meta("wheel-pose", ["back"], ["yoga wheel"])
RETIRED = _meta("retired-pose", ["chest"], is_active=False)


def _plan():
    upper = PlanWorkoutData(
        workout_name="Upper A",
        workout_type="upper",
        day_of_week=0,
        exercises=(
            PlanExerciseData(exercise_id=BENCH.id, exercise=BENCH, target_sets=4, target_reps_min=8,
                             target_reps_max=10, target_weight=100.0, rest_seconds=120),
        ),
    )
    lower = PlanWorkoutData(
        workout_name="Lower A",
        workout_type="lower",
        day_of_week=3,
        exercises=(
            PlanExerciseData(exercise_id=SQUAT.id, exercise=SQUAT, target_sets=5, target_reps_min=5,
                             target_reps_max=8, target_weight=120.0, rest_seconds=180),
        ),
    )
    return WorkoutPlanData(id="plan-1", user_id="user-1", plan_name="Base", workouts=(upper, lower))


class TestFilterByEquipment:

    def test_untagged_and_bodyweight_always_pass(self):
        kept = filter_by_equipment([DOWNWARD_DOG, CHATURANGA, CHAIR_POSE, WHEEL_POSE], [])
        assert [e.id for e in kept] == ["downward-dog", "chaturanga", "chair-pose"]

    def test_equipment_match_is_case_insensitive(self):
        kept = filter_by_equipment([WHEEL_POSE], ["Yoga Wheel "])
        assert kept == [WHEEL_POSE]

    def test_any_matching_tag_is_enough(self):
        kept = filter_by_equipment([BENCH], ["barbell"])
        assert kept == [BENCH]


class TestSwitchTrainingModality:

    def test_yoga_without_equipment_uses_only_bodyweight_exercises(self):
        pool = [DOWNWARD_DOG, CHATURANGA, CHAIR_POSE, WHEEL_POSE, BENCH]
        drafts = switch_training_modality(_plan(), "yoga", pool, available_equipment=[])

        used = {e.exercise_id for d in drafts for e in d.exercises}
        assert used <= {"downward-dog", "chaturanga", "chair-pose"}

    def test_maps_to_same_primary_muscles(self):
        pool = [DOWNWARD_DOG, CHATURANGA, CHAIR_POSE]
        drafts = switch_training_modality(_plan(), "yoga", pool, available_equipment=[])
        assert drafts[0].exercises[0].exercise_id == "chaturanga"
        assert drafts[1].exercises[0].exercise_id == "chair-pose"

    def test_uses_recommended_parameters_and_drops_load(self):
        drafts = switch_training_modality(_plan(), "yoga", [CHATURANGA], available_equipment=[])
        exercise = drafts[0].exercises[0]
        assert exercise.target_sets == 3
        assert exercise.target_reps_min == 8
        assert exercise.target_reps_max == 10
        assert exercise.rest_seconds == 120
        assert exercise.target_weight is None
        assert exercise.progression_notes == "Switched to yoga training modality"

    def test_falls_back_when_no_muscle_match(self):
        drafts = switch_training_modality(_plan(), "yoga", [DOWNWARD_DOG], available_equipment=[])
        assert [d.exercises[0].exercise_id for d in drafts] == ["downward-dog", "downward-dog"]
        assert drafts[0].exercises[0].target_reps_min == 5
        assert drafts[0].exercises[0].rest_seconds == 30

    def test_workout_structure_kept(self):
        drafts = switch_training_modality(_plan(), "yoga", [DOWNWARD_DOG], available_equipment=[])
        assert [(d.workout_name, d.day_of_week) for d in drafts] == [("Upper A", 0), ("Lower A", 3)]

    def test_style_is_case_insensitive(self):
        drafts = switch_training_modality(_plan(), "YOGA", [CHATURANGA], available_equipment=[])
        assert drafts[0].exercises[0].exercise_id == "chaturanga"

    def test_empty_pool_after_filtering_is_insufficient_equipment(self):
        with pytest.raises(InsufficientEquipmentError) as exc_info:
            switch_training_modality(_plan(), "yoga", [WHEEL_POSE], available_equipment=[])
        assert exc_info.value.available_equipment == []
        assert "yoga" in str(exc_info.value)

    def test_no_exercises_for_style(self):
        with pytest.raises(NoExercisesForStyleError):
            switch_training_modality(_plan(), "pilates", [DOWNWARD_DOG, BENCH], available_equipment=["mat"])

    def test_inactive_exercises_are_ignored(self):
        with pytest.raises(NoExercisesForStyleError):
            switch_training_modality(_plan(), "yoga", [RETIRED], available_equipment=[])

    def test_strength_switch_keeps_load_for_loaded_exercises(self):
        incline = _meta("incline-press", ["chest"], ["dumbbells"], modality="hypertrophy", exercise_type="strength")
        drafts = switch_training_modality(_plan(), "hypertrophy", [incline], available_equipment=["dumbbells"])
        assert drafts[0].exercises[0].target_weight == 100.0
