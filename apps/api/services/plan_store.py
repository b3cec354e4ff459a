"""
Workout Plan Store

Data-access boundary for plan progression. Loads ORM rows and converts them
into the frozen value objects the progression core works on; persists
regenerated plans and lifecycle transitions.

Every conversion normalizes exercise metadata to a single ExerciseMeta, so
nothing downstream has to handle missing or malformed library rows.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.exceptions import ConflictError, NotFoundError, PersistenceError
from models import Exercise, PlanExercise, PlanWorkout, UserProfile, WorkoutLog, WorkoutPlan
from services.progression import (
    AnalysisWindow,
    ExerciseLogData,
    ExerciseMeta,
    PlanExerciseData,
    PlanStatus,
    PlanWorkoutData,
    WorkoutDraft,
    WorkoutLogData,
    WorkoutPlanData,
)
from services.progression.constants import PLAN_TRANSITIONS

logger = logging.getLogger(__name__)


def _tags(value) -> tuple:
    """JSON list column -> tuple of strings; tolerates null and scalar strings."""
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(t.strip() for t in value.split(",") if t.strip())
    return tuple(str(v) for v in value if v is not None)


# ============ Row -> value object ============

def exercise_to_meta(exercise: Optional[Exercise], exercise_id) -> ExerciseMeta:
    if exercise is None:
        return ExerciseMeta.unknown(str(exercise_id))
    return ExerciseMeta(
        id=str(exercise.id),
        name=exercise.name,
        category=exercise.category,
        exercise_type=exercise.exercise_type or "strength",
        primary_muscles=_tags(exercise.primary_muscles),
        equipment=_tags(exercise.equipment),
        training_modality=exercise.training_modality,
        difficulty=exercise.difficulty,
        recommended_sets_min=exercise.recommended_sets_min,
        recommended_reps_min=exercise.recommended_reps_min,
        recommended_reps_max=exercise.recommended_reps_max,
        recommended_rest_seconds_min=exercise.recommended_rest_seconds_min,
        is_active=bool(exercise.is_active),
    )


def plan_to_data(plan: WorkoutPlan) -> WorkoutPlanData:
    workouts = []
    for workout in plan.workouts:
        exercises = tuple(
            PlanExerciseData(
                id=str(pe.id),
                exercise_id=str(pe.exercise_id),
                exercise=exercise_to_meta(pe.exercise, pe.exercise_id),
                target_sets=pe.target_sets,
                target_reps_min=pe.target_reps_min,
                target_reps_max=pe.target_reps_max,
                rest_seconds=pe.rest_seconds if pe.rest_seconds is not None else 90,
                order_index=pe.order_index or 0,
                target_weight=pe.target_weight,
                target_rpe=pe.target_rpe,
                tempo=pe.tempo,
                notes=pe.notes,
            )
            for pe in workout.exercises
        )
        workouts.append(PlanWorkoutData(
            id=str(workout.id),
            workout_name=workout.workout_name,
            workout_type=workout.workout_type,
            day_of_week=workout.day_of_week,
            week_number=workout.week_number or 1,
            scheduled_date=workout.scheduled_date,
            estimated_duration_minutes=workout.estimated_duration_minutes or 60,
            target_muscle_groups=_tags(workout.target_muscle_groups),
            target_volume_sets=workout.target_volume_sets,
            completed=bool(workout.completed),
            exercises=exercises,
        ))

    return WorkoutPlanData(
        id=str(plan.id),
        user_id=str(plan.user_id),
        plan_name=plan.plan_name,
        plan_type=plan.plan_type,
        split_pattern=plan.split_pattern,
        weeks_duration=plan.weeks_duration or 4,
        days_per_week=plan.days_per_week,
        start_date=plan.start_date,
        end_date=plan.end_date,
        mesocycle_week=plan.mesocycle_week or 1,
        status=plan.status,
        previous_plan_id=str(plan.previous_plan_id) if plan.previous_plan_id else None,
        workouts=tuple(workouts),
    )


def workout_log_to_data(log: WorkoutLog) -> WorkoutLogData:
    exercise_logs = tuple(
        ExerciseLogData(
            exercise_id=str(el.exercise_id),
            exercise_type=el.exercise_type or "strength",
            plan_exercise_id=str(el.plan_exercise_id) if el.plan_exercise_id else None,
            reps=tuple(el.reps or ()),
            weights=tuple(el.weights or ()),
            rpes=tuple(el.rpes or ()),
            sets_completed=el.sets_completed or 0,
            total_volume=el.total_volume or 0.0,
            max_weight=el.max_weight or 0.0,
            avg_rpe=el.avg_rpe,
            duration_seconds=el.duration_seconds,
            distance_meters=el.distance_meters,
            avg_heart_rate=el.avg_heart_rate,
            swim_laps=el.swim_laps,
            hold_seconds=el.hold_seconds,
        )
        for el in log.exercise_logs
    )
    return WorkoutLogData(
        id=str(log.id),
        user_id=str(log.user_id),
        workout_date=log.workout_date,
        status=log.status,
        plan_workout_id=str(log.plan_workout_id) if log.plan_workout_id else None,
        actual_duration_minutes=log.actual_duration_minutes,
        planned_duration_minutes=log.planned_duration_minutes,
        total_sets_completed=log.total_sets_completed or 0,
        total_volume=log.total_volume or 0.0,
        avg_rpe=log.avg_rpe,
        perceived_difficulty=log.perceived_difficulty,
        energy_level=log.energy_level,
        exercise_logs=exercise_logs,
    )


# ============ Loaders ============

def get_user_profile(db: Session, user_id: UUID) -> UserProfile:
    profile = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    if not profile:
        logger.warning("User profile not found", extra={"extra_fields": {"user_id": str(user_id)}})
        raise NotFoundError("User profile", str(user_id))
    return profile


def get_plan(db: Session, plan_id: UUID, user_id: UUID) -> WorkoutPlan:
    plan = (
        db.query(WorkoutPlan)
        .options(
            selectinload(WorkoutPlan.workouts)
            .selectinload(PlanWorkout.exercises)
            .selectinload(PlanExercise.exercise)
        )
        .filter(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
        .first()
    )
    if not plan:
        logger.warning(
            "Workout plan not found",
            extra={"extra_fields": {"user_id": str(user_id), "plan_id": str(plan_id)}},
        )
        raise NotFoundError("Workout plan", str(plan_id))
    return plan


def get_workout_logs(db: Session, user_id: UUID, window: AnalysisWindow) -> List[WorkoutLogData]:
    """All of the user's workout logs dated inside the window, oldest first."""
    logs = (
        db.query(WorkoutLog)
        .options(selectinload(WorkoutLog.exercise_logs))
        .filter(
            WorkoutLog.user_id == user_id,
            WorkoutLog.workout_date >= window.start,
            WorkoutLog.workout_date <= window.end,
        )
        .order_by(WorkoutLog.workout_date)
        .all()
    )
    return [workout_log_to_data(log) for log in logs]


def get_exercise_pool(db: Session, training_style: str) -> List[ExerciseMeta]:
    """Active library exercises for a training modality (case-insensitive)."""
    rows = (
        db.query(Exercise)
        .filter(
            func.lower(Exercise.training_modality) == training_style.strip().lower(),
            Exercise.is_active.is_(True),
        )
        .order_by(Exercise.name)
        .all()
    )
    return [exercise_to_meta(row, row.id) for row in rows]


# ============ Writes ============

def _scheduled_date(start: date, week_offset: int, day_of_week: int) -> date:
    """Date of day_of_week (0=Monday) in the week starting at start + week_offset weeks."""
    week_start = start + timedelta(weeks=week_offset)
    return week_start + timedelta(days=(day_of_week - week_start.weekday()) % 7)


def save_regenerated_plan(
    db: Session,
    current_plan: WorkoutPlan,
    drafts: Sequence[WorkoutDraft],
    *,
    plan_name: str,
    mesocycle_week: int,
    generation_prompt: str,
    start_date: date,
) -> WorkoutPlan:
    """
    Complete the current plan and insert its successor in one transaction.

    On any database error the whole unit is rolled back, leaving the current
    plan active, and PersistenceError is raised.
    """
    weeks = current_plan.weeks_duration or 4
    first_week = min((d.week_number for d in drafts), default=1)
    try:
        current_plan.status = PlanStatus.COMPLETED.value
        # The predecessor must leave 'active' before the successor is inserted
        db.flush()

        new_plan = WorkoutPlan(
            user_id=current_plan.user_id,
            plan_name=plan_name,
            plan_type=current_plan.plan_type,
            split_pattern=current_plan.split_pattern,
            weeks_duration=weeks,
            days_per_week=current_plan.days_per_week,
            start_date=start_date,
            end_date=start_date + timedelta(days=weeks * 7),
            mesocycle_week=mesocycle_week,
            status=PlanStatus.ACTIVE.value,
            previous_plan_id=current_plan.id,
            generation_prompt=generation_prompt,
            ai_model_version=current_plan.ai_model_version,
        )
        for draft in drafts:
            workout = PlanWorkout(
                workout_name=draft.workout_name,
                workout_type=draft.workout_type,
                day_of_week=draft.day_of_week,
                week_number=draft.week_number,
                scheduled_date=_scheduled_date(start_date, draft.week_number - first_week, draft.day_of_week),
                estimated_duration_minutes=draft.estimated_duration_minutes,
                target_muscle_groups=list(draft.target_muscle_groups),
                target_volume_sets=draft.target_volume_sets,
            )
            for exercise in draft.exercises:
                workout.exercises.append(PlanExercise(
                    exercise_id=UUID(exercise.exercise_id),
                    order_index=exercise.order_index,
                    target_sets=exercise.target_sets,
                    target_reps_min=exercise.target_reps_min,
                    target_reps_max=exercise.target_reps_max,
                    target_weight=exercise.target_weight,
                    rest_seconds=exercise.rest_seconds,
                    target_rpe=exercise.target_rpe,
                    tempo=exercise.tempo,
                    notes=exercise.progression_notes or None,
                ))
            new_plan.workouts.append(workout)

        db.add(new_plan)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to save regenerated plan: {e}",
            extra={"extra_fields": {"plan_id": str(current_plan.id)}},
        )
        raise PersistenceError("Failed to create new plan") from e

    logger.info(
        "Regenerated plan saved",
        extra={
            "extra_fields": {
                "old_plan_id": str(current_plan.id),
                "new_plan_id": str(new_plan.id),
                "workouts": len(drafts),
            }
        },
    )
    return new_plan


def _transition(db: Session, plan: WorkoutPlan, target: PlanStatus) -> WorkoutPlan:
    current = PlanStatus(plan.status)
    if target not in PLAN_TRANSITIONS[current]:
        raise ConflictError(f"Cannot change plan status from {current.value} to {target.value}", plan_id=str(plan.id))

    if target == PlanStatus.ACTIVE:
        other_active = db.query(WorkoutPlan).filter(
            WorkoutPlan.user_id == plan.user_id,
            WorkoutPlan.status == PlanStatus.ACTIVE.value,
            WorkoutPlan.id != plan.id,
        ).first()
        if other_active:
            raise ConflictError(
                f"Another plan is already active: {other_active.id}. Pause it before resuming this one.",
                plan_id=str(other_active.id),
            )

    plan.status = target.value
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update plan status: {e}")
        raise PersistenceError("Failed to update plan status") from e

    logger.info(
        f"Plan {plan.id} {current.value} -> {target.value}",
        extra={"extra_fields": {"plan_id": str(plan.id), "status": target.value}},
    )
    return plan


def pause_plan(db: Session, plan_id: UUID, user_id: UUID) -> WorkoutPlan:
    plan = get_plan(db, plan_id, user_id)
    if plan.status != PlanStatus.ACTIVE.value:
        raise ConflictError(f"Cannot pause plan with status: {plan.status}", plan_id=str(plan.id))
    return _transition(db, plan, PlanStatus.PAUSED)


def resume_plan(db: Session, plan_id: UUID, user_id: UUID) -> WorkoutPlan:
    plan = get_plan(db, plan_id, user_id)
    if plan.status != PlanStatus.PAUSED.value:
        raise ConflictError(f"Cannot resume plan with status: {plan.status}", plan_id=str(plan.id))
    return _transition(db, plan, PlanStatus.ACTIVE)
