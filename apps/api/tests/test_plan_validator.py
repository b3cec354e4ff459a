"""
Tests for the Plan Validator.
"""

import copy

import pytest

from services.progression.types import (
    ExerciseDraft,
    ExerciseMeta,
    PlanExerciseData,
    PlanWorkoutData,
    WorkoutDraft,
    WorkoutPlanData,
)
from services.progression.validator import validate_regenerated_plan


def _exercise(order=0, sets=3, reps=(8, 10), rest=90, weight=50.0):
    return ExerciseDraft(
        exercise_id=f"ex-{order}",
        target_sets=sets,
        target_reps_min=reps[0],
        target_reps_max=reps[1],
        rest_seconds=rest,
        order_index=order,
        target_weight=weight,
    )


def _workout(*exercises, name="Upper A", duration=60):
    return WorkoutDraft(
        workout_name=name,
        workout_type="upper",
        day_of_week=0,
        estimated_duration_minutes=duration,
        exercises=tuple(exercises),
    )


def _healthy_week():
    return [
        _workout(_exercise(0), _exercise(1), name="Upper A"),
        _workout(_exercise(0, sets=4), _exercise(1, sets=3), name="Lower A"),
    ]


class TestErrors:

    def test_healthy_week_is_valid(self):
        result = validate_regenerated_plan(_healthy_week())
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_no_workouts(self):
        result = validate_regenerated_plan([])
        assert not result.is_valid
        assert result.errors == ["Plan has no workouts"]

    def test_workout_without_exercises(self):
        result = validate_regenerated_plan([_workout()])
        assert not result.is_valid
        assert "Upper A: workout has no exercises" in result.errors
        assert "Weekly volume is zero" in result.errors

    @pytest.mark.parametrize("exercise,fragment", [
        (_exercise(sets=0), "sets must be at least 1"),
        (_exercise(reps=(0, 8)), "reps must be positive"),
        (_exercise(reps=(12, 8)), "is inverted"),
        (_exercise(rest=-5), "outside 0-600s"),
        (_exercise(rest=900), "outside 0-600s"),
        (_exercise(weight=-2.5), "weight cannot be negative"),
    ])
    def test_exercise_errors(self, exercise, fragment):
        result = validate_regenerated_plan([_workout(exercise, _exercise(1), _exercise(2))])
        assert not result.is_valid
        assert any(fragment in e for e in result.errors)


class TestWarnings:

    def test_low_volume_warns_but_stays_valid(self):
        result = validate_regenerated_plan([_workout(_exercise(sets=2))])
        assert result.is_valid
        assert result.warnings == ["Upper A: low volume (2 sets)"]

    def test_high_volume(self):
        week = [_workout(*[_exercise(i, sets=8) for i in range(4)])]
        result = validate_regenerated_plan(week)
        assert result.is_valid
        assert "Upper A: high volume (32 sets)" in result.warnings

    def test_many_sets_on_one_exercise(self):
        result = validate_regenerated_plan([_workout(_exercise(sets=9))])
        assert any("unusually high" in w for w in result.warnings)

    def test_short_rest(self):
        result = validate_regenerated_plan([_workout(_exercise(rest=20), _exercise(1))])
        assert any("may limit recovery" in w for w in result.warnings)

    def test_long_workout(self):
        result = validate_regenerated_plan([_workout(_exercise(), _exercise(1), duration=95)])
        assert any("exceeds 90 min" in w for w in result.warnings)

    def test_comparison_against_current_plan(self):
        meta = ExerciseMeta(id="ex-0", name="Bench")
        current = WorkoutPlanData(
            id="p", user_id="u", plan_name="Base",
            workouts=(PlanWorkoutData(
                workout_name="Upper A", workout_type="upper", day_of_week=0,
                exercises=(
                    PlanExerciseData(exercise_id="ex-0", exercise=meta, target_sets=2,
                                     target_reps_min=8, target_reps_max=10, target_weight=40.0),
                    PlanExerciseData(exercise_id="ex-1", exercise=meta, target_sets=2,
                                     target_reps_min=8, target_reps_max=10, target_weight=50.0, order_index=1),
                ),
            ),),
        )
        result = validate_regenerated_plan([_workout(_exercise(0), _exercise(1))], current)
        assert result.is_valid
        assert any("volume changed +50%" in w for w in result.warnings)
        assert any("weight up 25%" in w for w in result.warnings)

    def test_comparison_ignores_stale_stored_volume(self):
        meta = ExerciseMeta(id="ex-0", name="Bench")
        current = WorkoutPlanData(
            id="p", user_id="u", plan_name="Base",
            workouts=(PlanWorkoutData(
                workout_name="Upper A", workout_type="upper", day_of_week=0,
                target_volume_sets=4,
                exercises=(
                    PlanExerciseData(exercise_id="ex-0", exercise=meta, target_sets=3,
                                     target_reps_min=8, target_reps_max=10, target_weight=50.0),
                    PlanExerciseData(exercise_id="ex-1", exercise=meta, target_sets=3,
                                     target_reps_min=8, target_reps_max=10, target_weight=50.0, order_index=1),
                ),
            ),),
        )
        result = validate_regenerated_plan([_workout(_exercise(0), _exercise(1))], current)
        assert not any("volume changed" in w for w in result.warnings)


class TestDeterminism:

    def test_validation_is_idempotent(self):
        week = _healthy_week() + [_workout(_exercise(sets=0, rest=10), name="Broken")]
        first = validate_regenerated_plan(week)
        second = validate_regenerated_plan(week)
        assert (first.is_valid, first.errors, first.warnings) == (second.is_valid, second.errors, second.warnings)

    def test_input_untouched(self):
        week = _healthy_week()
        snapshot = copy.deepcopy(week)
        validate_regenerated_plan(week)
        assert week == snapshot
