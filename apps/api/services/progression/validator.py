"""
Plan Validator

Structural and safety checks for regenerated drafts. Errors mark a draft set
as invalid; warnings are advisory. The validator never modifies its input and
returns the same result for the same drafts.
"""

import logging
from typing import List, Optional, Sequence

from .constants import (
    HIGH_EXERCISE_SETS,
    HIGH_WORKOUT_VOLUME_SETS,
    LONG_WORKOUT_MINUTES,
    LOW_WORKOUT_VOLUME_SETS,
    MAX_REST_SECONDS,
    MAX_WEIGHT_INCREASE,
    MAX_WORKOUT_VOLUME_CHANGE,
    SHORT_REST_SECONDS,
)
from .types import ExerciseDraft, ValidationResult, WorkoutDraft, WorkoutPlanData, total_volume_sets

logger = logging.getLogger(__name__)


def _exercise_errors(workout: WorkoutDraft, exercise: ExerciseDraft) -> List[str]:
    label = f"{workout.workout_name} / exercise {exercise.order_index + 1}"
    errors = []
    if exercise.target_sets < 1:
        errors.append(f"{label}: sets must be at least 1 (got {exercise.target_sets})")
    if exercise.target_reps_min <= 0 or exercise.target_reps_max <= 0:
        errors.append(f"{label}: reps must be positive")
    if exercise.target_reps_min > exercise.target_reps_max:
        errors.append(
            f"{label}: rep range {exercise.target_reps_min}-{exercise.target_reps_max} is inverted"
        )
    if exercise.rest_seconds < 0 or exercise.rest_seconds > MAX_REST_SECONDS:
        errors.append(f"{label}: rest {exercise.rest_seconds}s outside 0-{MAX_REST_SECONDS}s")
    if exercise.target_weight is not None and exercise.target_weight < 0:
        errors.append(f"{label}: weight cannot be negative")
    return errors


def _exercise_warnings(workout: WorkoutDraft, exercise: ExerciseDraft) -> List[str]:
    label = f"{workout.workout_name} / exercise {exercise.order_index + 1}"
    warnings = []
    if exercise.target_sets > HIGH_EXERCISE_SETS:
        warnings.append(f"{label}: {exercise.target_sets} sets is unusually high")
    if 0 <= exercise.rest_seconds < SHORT_REST_SECONDS:
        warnings.append(f"{label}: rest of {exercise.rest_seconds}s may limit recovery between sets")
    return warnings


def _comparison_warnings(drafts: Sequence[WorkoutDraft], current_plan: WorkoutPlanData) -> List[str]:
    warnings = []
    for index, draft in enumerate(drafts):
        if index >= len(current_plan.workouts):
            break
        prior = current_plan.workouts[index]
        prior_volume = prior.planned_volume_sets
        if prior_volume > 0:
            change = (draft.target_volume_sets - prior_volume) / prior_volume
            if abs(change) > MAX_WORKOUT_VOLUME_CHANGE:
                warnings.append(
                    f"{draft.workout_name}: volume changed {change * 100:+.0f}% "
                    f"({prior_volume} -> {draft.target_volume_sets} sets)"
                )

        prior_exercises = sorted(prior.exercises, key=lambda e: e.order_index)
        for ex_index, exercise in enumerate(draft.exercises):
            if ex_index >= len(prior_exercises):
                break
            before = prior_exercises[ex_index].target_weight
            after = exercise.target_weight
            if before and after and before > 0:
                increase = (after - before) / before
                if increase > MAX_WEIGHT_INCREASE + 1e-9:
                    warnings.append(
                        f"{draft.workout_name} / exercise {exercise.order_index + 1}: "
                        f"weight up {increase * 100:.0f}% ({before} -> {after})"
                    )
    return warnings


def validate_regenerated_plan(
    drafts: Sequence[WorkoutDraft],
    current_plan: Optional[WorkoutPlanData] = None,
) -> ValidationResult:
    """
    Validate regenerated workouts.

    Args:
        drafts: Regenerated (usually clamped) workouts
        current_plan: Plan the drafts were derived from; enables
            week-over-week change warnings

    Returns:
        ValidationResult with is_valid == (no errors)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not drafts:
        errors.append("Plan has no workouts")

    for workout in drafts:
        if not workout.exercises:
            errors.append(f"{workout.workout_name}: workout has no exercises")
            continue
        for exercise in workout.exercises:
            errors.extend(_exercise_errors(workout, exercise))
            warnings.extend(_exercise_warnings(workout, exercise))

        volume = workout.target_volume_sets
        if volume < LOW_WORKOUT_VOLUME_SETS:
            warnings.append(f"{workout.workout_name}: low volume ({volume} sets)")
        elif volume > HIGH_WORKOUT_VOLUME_SETS:
            warnings.append(f"{workout.workout_name}: high volume ({volume} sets)")
        if workout.estimated_duration_minutes > LONG_WORKOUT_MINUTES:
            warnings.append(
                f"{workout.workout_name}: estimated {workout.estimated_duration_minutes} min "
                f"exceeds {LONG_WORKOUT_MINUTES} min"
            )

    if drafts and total_volume_sets(drafts) <= 0:
        errors.append("Weekly volume is zero")

    if current_plan is not None and drafts:
        warnings.extend(_comparison_warnings(drafts, current_plan))

    result = ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
    if errors:
        logger.warning(
            f"Regenerated plan failed validation with {len(errors)} error(s)",
            extra={"extra_fields": {"errors": errors, "warnings": warnings}},
        )
    elif warnings:
        logger.info(f"Regenerated plan validated with {len(warnings)} warning(s)")
    return result
