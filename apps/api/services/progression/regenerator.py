"""
Plan Regenerator

Builds the next week's workout drafts from the current plan.

Two modes:
- progression: every exercise slot keeps its exercise and gets new targets
  from calculate_exercise_progression, then apply_progressive_overload_rules
  clamps the result to safe week-over-week bounds
- modality switch: every exercise slot is remapped to an exercise of the
  requested training style that trains the same muscles and fits the user's
  equipment

Usage:
    drafts = regenerate_workout_plan(plan, metrics, group_logs_by_exercise(logs))
    drafts = apply_progressive_overload_rules(drafts, plan)
"""

import logging
import math
from dataclasses import replace
from typing import Iterable, List, Mapping, Optional, Sequence

from .constants import (
    BODYWEIGHT_EQUIPMENT_TAGS,
    MAX_SET_INCREASE_PER_EXERCISE,
    MAX_WEIGHT_INCREASE,
    MAX_WORKOUT_DURATION_MINUTES,
    MAX_WORKOUT_VOLUME_CHANGE,
    MIN_WORKOUT_DURATION_MINUTES,
    REST_MAX_WHEN_LOADING,
    REST_MIN_WHEN_UNLOADING,
    REST_STEP_SECONDS,
    WEIGHT_DROP_FOR_SHORTER_REST,
    WEIGHT_ROUNDING_INCREMENT,
    ExerciseType,
)
from .exceptions import InsufficientEquipmentError, NoExercisesForStyleError
from .recommender import calculate_exercise_progression, determine_progression_recommendation
from .types import (
    ExerciseDraft,
    ExerciseLogData,
    ExerciseMeta,
    ExerciseProgression,
    PerformanceMetrics,
    PlanExerciseData,
    PlanWorkoutData,
    ProgressionRecommendation,
    WorkoutDraft,
    WorkoutPlanData,
)

logger = logging.getLogger(__name__)


def round_weight(weight: float) -> float:
    """Round to the nearest loadable increment."""
    return round(weight / WEIGHT_ROUNDING_INCREMENT) * WEIGHT_ROUNDING_INCREMENT


def _floor_weight(weight: float) -> float:
    return math.floor(weight / WEIGHT_ROUNDING_INCREMENT) * WEIGHT_ROUNDING_INCREMENT


def scale_duration(minutes: int, old_volume: int, new_volume: int) -> int:
    if old_volume <= 0:
        return minutes
    scaled = int(round(minutes * new_volume / old_volume))
    return max(MIN_WORKOUT_DURATION_MINUTES, min(scaled, MAX_WORKOUT_DURATION_MINUTES))


def _progression_notes(progression: ExerciseProgression, has_logs: bool) -> str:
    notes = []
    if not has_logs:
        notes.append("No logged sessions; applied plan-wide adjustment")

    if progression.sets_adjustment > 0:
        notes.append(f"+{progression.sets_adjustment} set(s) - strong performance")
    elif progression.sets_adjustment < 0:
        notes.append(f"{progression.sets_adjustment} set(s) - recovery focus")

    if progression.reps_adjustment > 0:
        notes.append(f"+{progression.reps_adjustment} rep(s) - low RPE indicates capacity")
    elif progression.reps_adjustment < 0:
        notes.append(f"{progression.reps_adjustment} rep(s) - high RPE, maintaining quality")

    weight = progression.weight_adjustment
    if weight > 2:
        notes.append(f"+{weight:.1f}% weight - progressive overload")
    elif weight > 0:
        notes.append(f"+{weight:.1f}% weight - gradual progression")
    elif weight < -5:
        notes.append(f"{weight:.1f}% weight - deload phase")
    elif weight < 0:
        notes.append(f"{weight:.1f}% weight - recovery adjustment")

    if not notes:
        return "Maintaining current parameters - consistent performance"
    return "; ".join(notes)


def _regenerate_exercise(
    plan_exercise: PlanExerciseData,
    index: int,
    exercise_logs: Sequence[ExerciseLogData],
    recommendation: ProgressionRecommendation,
) -> ExerciseDraft:
    progression = calculate_exercise_progression(exercise_logs, plan_exercise, recommendation)

    logged_weights = [log.max_weight for log in exercise_logs if log.max_weight > 0]
    if logged_weights:
        baseline = sum(logged_weights) / len(logged_weights)
    elif plan_exercise.target_weight:
        baseline = plan_exercise.target_weight
    else:
        baseline = None

    target_weight = None
    if baseline is not None:
        target_weight = round_weight(baseline * (1 + progression.weight_adjustment / 100))

    rest = plan_exercise.rest_seconds
    if progression.weight_adjustment > 0 and rest < REST_MAX_WHEN_LOADING:
        rest = min(rest + REST_STEP_SECONDS, REST_MAX_WHEN_LOADING)
    elif progression.weight_adjustment < WEIGHT_DROP_FOR_SHORTER_REST and rest > REST_MIN_WHEN_UNLOADING:
        rest = max(rest - REST_STEP_SECONDS, REST_MIN_WHEN_UNLOADING)

    reps_min = max(1, plan_exercise.target_reps_min + progression.reps_adjustment)
    reps_max = max(reps_min, plan_exercise.target_reps_max + progression.reps_adjustment)

    return ExerciseDraft(
        exercise_id=plan_exercise.exercise_id,
        target_sets=max(1, plan_exercise.target_sets + progression.sets_adjustment),
        target_reps_min=reps_min,
        target_reps_max=reps_max,
        rest_seconds=rest,
        order_index=index,
        target_weight=target_weight,
        target_rpe=plan_exercise.target_rpe,
        tempo=plan_exercise.tempo,
        progression_notes=_progression_notes(progression, bool(exercise_logs)),
        baseline_weight=baseline,
    )


def _regenerate_workout(
    workout: PlanWorkoutData,
    recommendation: ProgressionRecommendation,
    logs_by_exercise: Mapping[str, Sequence[ExerciseLogData]],
) -> WorkoutDraft:
    exercises = tuple(
        _regenerate_exercise(
            plan_exercise,
            index,
            logs_by_exercise.get(plan_exercise.exercise_id, ()),
            recommendation,
        )
        for index, plan_exercise in enumerate(
            sorted(workout.exercises, key=lambda e: e.order_index)
        )
    )
    new_volume = sum(e.target_sets for e in exercises)
    return WorkoutDraft(
        workout_name=workout.workout_name,
        workout_type=workout.workout_type,
        day_of_week=workout.day_of_week,
        estimated_duration_minutes=scale_duration(
            workout.estimated_duration_minutes, workout.planned_volume_sets, new_volume
        ),
        exercises=exercises,
        week_number=workout.week_number,
        target_muscle_groups=workout.target_muscle_groups,
    )


def regenerate_workout_plan(
    current_plan: WorkoutPlanData,
    performance_metrics: PerformanceMetrics,
    logs_by_exercise: Mapping[str, Sequence[ExerciseLogData]],
    recommendation: Optional[ProgressionRecommendation] = None,
) -> List[WorkoutDraft]:
    """
    Produce one draft per plan workout with progressed targets.

    Args:
        current_plan: The plan being progressed
        performance_metrics: Output of analyze_performance
        logs_by_exercise: Output of group_logs_by_exercise
        recommendation: Precomputed global recommendation (computed from
            performance_metrics when omitted)

    Returns:
        Drafts in plan order, not yet clamped
    """
    if recommendation is None:
        recommendation = determine_progression_recommendation(performance_metrics)

    drafts = [
        _regenerate_workout(workout, recommendation, logs_by_exercise)
        for workout in current_plan.workouts
    ]
    logger.info(
        f"Regenerated {len(drafts)} workouts ({recommendation.action.value})",
        extra={
            "extra_fields": {
                "plan_id": current_plan.id,
                "action": recommendation.action.value,
                "volume_adjustment": recommendation.volume_adjustment,
                "intensity_adjustment": recommendation.intensity_adjustment,
            }
        },
    )
    return drafts


# ============ Safety rules ============

def _fit_volume(
    exercises: List[ExerciseDraft],
    prior_sets: List[Optional[int]],
    lower: int,
    upper: int,
) -> List[ExerciseDraft]:
    """Add or remove single sets until the workout volume lies in [lower, upper]."""
    sets = [e.target_sets for e in exercises]

    if sum(sets) > upper:
        # Scale proportionally first, then settle on exactly `upper`
        requested = list(sets)
        factor = upper / sum(sets)
        sets = [max(1, int(math.floor(s * factor))) for s in sets]
        while sum(sets) > upper:
            candidates = [i for i, s in enumerate(sets) if s > 1]
            if not candidates:
                break
            i = max(candidates, key=lambda k: (sets[k], -k))
            sets[i] -= 1
        while sum(sets) < upper:
            i = max(range(len(sets)), key=lambda k: (requested[k] - sets[k], -k))
            sets[i] += 1

    def shortfall(k):
        prior = prior_sets[k] if prior_sets[k] is not None else sets[k]
        return (sets[k] - prior, k)

    while sum(sets) < lower:
        # Restore the slots cut hardest relative to the prior week, never past
        # the per-exercise set cap
        candidates = [
            k for k in range(len(sets))
            if prior_sets[k] is None or sets[k] < prior_sets[k] + MAX_SET_INCREASE_PER_EXERCISE
        ]
        if not candidates:
            break
        i = min(candidates, key=shortfall)
        sets[i] += 1

    return [replace(e, target_sets=s) for e, s in zip(exercises, sets)]


def _cap_weight(exercise: ExerciseDraft, prior: Optional[PlanExerciseData]) -> ExerciseDraft:
    if exercise.target_weight is None:
        return exercise
    reference = None
    if prior is not None and prior.target_weight:
        reference = prior.target_weight
    elif exercise.baseline_weight:
        reference = exercise.baseline_weight
    if not reference or reference <= 0:
        return exercise

    ceiling = reference * (1 + MAX_WEIGHT_INCREASE)
    if exercise.target_weight <= ceiling:
        return exercise
    capped = _floor_weight(ceiling)
    logger.debug(f"Weight capped for {exercise.exercise_id}: {exercise.target_weight} -> {capped}")
    return replace(
        exercise,
        target_weight=capped,
        progression_notes=f"{exercise.progression_notes}; weight increase capped at "
                          f"{MAX_WEIGHT_INCREASE * 100:.0f}%",
    )


def apply_progressive_overload_rules(
    draft_workouts: Sequence[WorkoutDraft],
    current_plan: WorkoutPlanData,
) -> List[WorkoutDraft]:
    """
    Clamp drafts to safe week-over-week changes.

    Rules:
    - per-workout volume (sets) within +/-20% of the current workout
    - per-exercise sets rise by at most 2
    - per-exercise weight rises by at most 10%
    - sets >= 1 and 1 <= reps_min <= reps_max

    Drafts are matched to current workouts and exercises by position.
    """
    result = []
    for index, draft in enumerate(draft_workouts):
        prior_workout = current_plan.workouts[index] if index < len(current_plan.workouts) else None
        prior_exercises = (
            sorted(prior_workout.exercises, key=lambda e: e.order_index) if prior_workout else []
        )

        exercises = []
        prior_sets = []
        for ex_index, exercise in enumerate(draft.exercises):
            prior = prior_exercises[ex_index] if ex_index < len(prior_exercises) else None
            sets = max(1, exercise.target_sets)
            if prior is not None:
                sets = min(sets, prior.target_sets + MAX_SET_INCREASE_PER_EXERCISE)
            reps_min = max(1, exercise.target_reps_min)
            reps_max = max(reps_min, exercise.target_reps_max)
            exercise = replace(
                exercise, target_sets=sets, target_reps_min=reps_min, target_reps_max=reps_max
            )
            exercises.append(_cap_weight(exercise, prior))
            prior_sets.append(prior.target_sets if prior is not None else None)

        prior_volume = prior_workout.planned_volume_sets if prior_workout else 0
        if prior_volume > 0 and exercises:
            upper = int(math.floor(prior_volume * (1 + MAX_WORKOUT_VOLUME_CHANGE)))
            lower = int(math.ceil(prior_volume * (1 - MAX_WORKOUT_VOLUME_CHANGE)))
            before = sum(e.target_sets for e in exercises)
            exercises = _fit_volume(exercises, prior_sets, lower, upper)
            after = sum(e.target_sets for e in exercises)
            if before != after:
                logger.info(
                    f"Clamped {draft.workout_name} volume {before} -> {after} sets "
                    f"(prior {prior_volume})"
                )

        new_volume = sum(e.target_sets for e in exercises)
        result.append(replace(
            draft,
            exercises=tuple(exercises),
            estimated_duration_minutes=(
                scale_duration(prior_workout.estimated_duration_minutes, prior_volume, new_volume)
                if prior_workout else draft.estimated_duration_minutes
            ),
        ))
    return result


# ============ Modality switch ============

def _normalize(tags: Iterable[str]) -> set:
    return {t.strip().lower() for t in tags if t and t.strip()}


def filter_by_equipment(
    exercises: Sequence[ExerciseMeta],
    available_equipment: Iterable[str],
) -> List[ExerciseMeta]:
    """
    Keep exercises the user can perform.

    Untagged and bodyweight exercises always pass; otherwise any equipment
    tag must match the user's equipment (case-insensitive).
    """
    available = _normalize(available_equipment)
    kept = []
    for exercise in exercises:
        tags = _normalize(exercise.equipment)
        if not tags or tags & BODYWEIGHT_EQUIPMENT_TAGS or tags & available:
            kept.append(exercise)
    return kept


def _pick_replacement(
    plan_exercise: PlanExerciseData,
    index: int,
    pool: Sequence[ExerciseMeta],
    used: set,
) -> ExerciseMeta:
    muscles = _normalize(plan_exercise.exercise.primary_muscles)
    matching = [e for e in pool if muscles & _normalize(e.primary_muscles)]
    for candidate in matching:
        if candidate.id not in used:
            return candidate
    if matching:
        return matching[0]
    unused = [e for e in pool if e.id not in used]
    if unused:
        return unused[index % len(unused)]
    return pool[index % len(pool)]


def switch_training_modality(
    current_plan: WorkoutPlanData,
    training_style: str,
    exercise_pool: Sequence[ExerciseMeta],
    available_equipment: Iterable[str],
) -> List[WorkoutDraft]:
    """
    Remap every exercise slot to the requested training style.

    Raises:
        NoExercisesForStyleError: the style has no active exercises at all
        InsufficientEquipmentError: none of the style's exercises fit the equipment
    """
    style = training_style.strip().lower()
    candidates = [
        e for e in exercise_pool
        if e.is_active and (e.training_modality or "").strip().lower() == style
    ]
    if not candidates:
        raise NoExercisesForStyleError(training_style)

    available_equipment = list(available_equipment or [])
    pool = filter_by_equipment(candidates, available_equipment)
    logger.info(
        "Exercises filtered by available equipment",
        extra={
            "extra_fields": {
                "training_style": training_style,
                "available_equipment": available_equipment,
                "total_exercises": len(candidates),
                "filtered_exercises": len(pool),
            }
        },
    )
    if not pool:
        raise InsufficientEquipmentError(training_style, available_equipment)

    drafts = []
    for workout in current_plan.workouts:
        used = set()
        exercises = []
        for index, plan_exercise in enumerate(sorted(workout.exercises, key=lambda e: e.order_index)):
            replacement = _pick_replacement(plan_exercise, index, pool, used)
            used.add(replacement.id)

            reps_min = replacement.recommended_reps_min or plan_exercise.target_reps_min
            reps_max = max(reps_min, replacement.recommended_reps_max or plan_exercise.target_reps_max)
            keeps_load = (
                replacement.exercise_type == ExerciseType.STRENGTH.value
                and bool(_normalize(replacement.equipment) - BODYWEIGHT_EQUIPMENT_TAGS)
            )
            exercises.append(ExerciseDraft(
                exercise_id=replacement.id,
                target_sets=max(1, replacement.recommended_sets_min or plan_exercise.target_sets),
                target_reps_min=max(1, reps_min),
                target_reps_max=max(1, reps_max),
                rest_seconds=replacement.recommended_rest_seconds_min or plan_exercise.rest_seconds,
                order_index=index,
                target_weight=plan_exercise.target_weight if keeps_load else None,
                progression_notes=f"Switched to {training_style} training modality",
            ))

        drafts.append(WorkoutDraft(
            workout_name=workout.workout_name,
            workout_type=workout.workout_type,
            day_of_week=workout.day_of_week,
            estimated_duration_minutes=workout.estimated_duration_minutes,
            exercises=tuple(exercises),
            week_number=workout.week_number,
            target_muscle_groups=workout.target_muscle_groups,
        ))
    return drafts
