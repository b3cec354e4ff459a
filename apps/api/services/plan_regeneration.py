"""
Plan Regeneration Service

Orchestrates the progression pipeline for the HTTP layer:

    logs (window + previous window)
        -> analyze_performance
        -> determine_progression_recommendation
        -> regenerate_workout_plan -> apply_progressive_overload_rules -> validate
           (or switch_training_modality when a training style is requested)
        -> generate_cycle_plan (optional)
        -> save_regenerated_plan

Validation results are returned, not enforced: a plan that fails validation
is still saved and the caller sees the errors.

Usage:
    service = PlanRegenerationService(db)
    response = service.regenerate(request)
    adjustments = service.weekly_adjustments(user_id, plan_id, weeks=1)
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import ConflictError, InsufficientEquipment, NotFoundError, ValidationError
from schemas import (
    AnalysisPeriod,
    BasicRecommendation,
    CycleVolumeSummary,
    ExerciseDraftResponse,
    ExerciseRecommendationResponse,
    InsufficientDataResponse,
    PerformanceAnalysis,
    PerformanceMetricsResponse,
    PerformanceScores,
    RecommendationResponse,
    RegeneratedPlanSummary,
    RegeneratePlanRequest,
    RegeneratePlanResponse,
    ValidationResponse,
    WeeklyAdjustmentsResponse,
    WeeklySummary,
    WorkoutDraftResponse,
)
from services import plan_store
from services.progression import (
    InsufficientEquipmentError,
    NoExercisesForStyleError,
    PerformanceMetrics,
    PlanStatus,
    ProgressionAction,
    ProgressionRecommendation,
    ValidationResult,
    WorkoutDraft,
    WorkoutLogData,
    WorkoutPlanData,
    analyze_performance,
    apply_progressive_overload_rules,
    calculate_exercise_progression,
    determine_progression_recommendation,
    generate_cycle_plan,
    group_logs_by_exercise,
    insufficient_data_recommendation,
    regenerate_workout_plan,
    switch_training_modality,
    validate_regenerated_plan,
    window_ending_now,
)

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No workout data available for analysis yet."


# ============ Response builders ============

def _recommendation_response(rec: ProgressionRecommendation) -> RecommendationResponse:
    return RecommendationResponse(
        action=rec.action.value,
        volume_adjustment=rec.volume_adjustment,
        intensity_adjustment=rec.intensity_adjustment,
        reason=rec.reason,
        confidence=rec.confidence,
    )


def _metrics_response(metrics: PerformanceMetrics) -> PerformanceMetricsResponse:
    return PerformanceMetricsResponse(
        completion_rate=metrics.completion_rate,
        consistency_score=metrics.consistency_score,
        readiness_score=metrics.readiness_score,
        recovery_score=metrics.recovery_score,
        rpe_average=metrics.rpe_average,
        volume_progression=metrics.volume_progression,
    )


def _draft_response(draft: WorkoutDraft) -> WorkoutDraftResponse:
    return WorkoutDraftResponse(
        workout_name=draft.workout_name,
        workout_type=draft.workout_type,
        day_of_week=draft.day_of_week,
        week_number=draft.week_number,
        estimated_duration_minutes=draft.estimated_duration_minutes,
        target_volume_sets=draft.target_volume_sets,
        target_muscle_groups=list(draft.target_muscle_groups),
        exercises=[
            ExerciseDraftResponse(
                exercise_id=e.exercise_id,
                target_sets=e.target_sets,
                target_reps_min=e.target_reps_min,
                target_reps_max=e.target_reps_max,
                target_weight=e.target_weight,
                rest_seconds=e.rest_seconds,
                order_index=e.order_index,
                target_rpe=e.target_rpe,
                tempo=e.tempo,
                progression_notes=e.progression_notes,
            )
            for e in draft.exercises
        ],
    )


def insufficient_data_response() -> InsufficientDataResponse:
    return InsufficientDataResponse(
        message=NO_DATA_MESSAGE,
        recommendation=BasicRecommendation(**insufficient_data_recommendation()),
    )


def generate_next_steps(
    recommendation: ProgressionRecommendation,
    metrics: PerformanceMetrics,
    plan: WorkoutPlanData,
) -> List[str]:
    """Actionable guidance keyed off the action and the weakest scores."""
    steps = []
    action = recommendation.action

    if action == ProgressionAction.INCREASE:
        steps.append("You're ready to progress. Increase weights by 2.5-5% on key exercises.")
        steps.append("Add 1-2 sets to exercises you're completing easily.")
        steps.append("Maintain good form as you increase load.")
    elif action == ProgressionAction.MAINTAIN:
        steps.append("Keep doing what you're doing. Consistency is key.")
        steps.append("Focus on technique and controlled reps.")
        steps.append("Track your RPE to keep intensity where it should be.")
    elif action == ProgressionAction.DECREASE:
        steps.append("Reduce volume slightly this week to prevent overtraining.")
        steps.append("Prioritize sleep and recovery.")
        steps.append("Make sure nutrition supports your recovery.")
    elif action == ProgressionAction.DELOAD:
        steps.append("Deload week: reduce weight by 15-20% and sets by 30%.")
        steps.append("Focus on recovery: sleep, nutrition and stress management.")
        steps.append("Consider active recovery such as walking, yoga or light cardio.")
        steps.append("Return to regular training next week.")

    if metrics.consistency_score < 60:
        steps.append("Work on consistency: aim to complete all planned workouts.")
        steps.append("Schedule workouts in your calendar to improve adherence.")

    if metrics.readiness_score < 50:
        steps.append("Your body may need more recovery. Prioritize sleep quality.")
        steps.append("Review your nutrition and hydration habits.")

    if plan.mesocycle_week >= plan.weeks_duration:
        steps.append("You've completed a training cycle. Consider regenerating your plan.")
        steps.append("Review your progress and set goals for the next cycle.")

    return steps


class PlanRegenerationService:
    """Runs the progression pipeline against the database."""

    def __init__(self, db: Session, today: Optional[date] = None):
        self.db = db
        self.today = today or date.today()

    # ---------- shared ----------

    def _check_weeks(self, weeks: int) -> None:
        if weeks > settings.MAX_WEEKS_TO_ANALYZE:
            raise ValidationError(
                f"Cannot analyze more than {settings.MAX_WEEKS_TO_ANALYZE} weeks",
                field="weeks",
            )

    def _load_logs(self, user_id: UUID, weeks: int):
        window = window_ending_now(weeks, today=self.today)
        current = plan_store.get_workout_logs(self.db, user_id, window)
        previous = plan_store.get_workout_logs(self.db, user_id, window.previous())
        return window, current, previous

    @staticmethod
    def _completed(logs: Sequence[WorkoutLogData]) -> List[WorkoutLogData]:
        return [log for log in logs if log.is_completed]

    # ---------- regenerate ----------

    def regenerate(
        self, request: RegeneratePlanRequest
    ) -> Union[RegeneratePlanResponse, InsufficientDataResponse]:
        self._check_weeks(request.weeks_to_analyze)
        profile = plan_store.get_user_profile(self.db, request.user_id)
        plan_row = plan_store.get_plan(self.db, request.plan_id, request.user_id)
        if plan_row.status != PlanStatus.ACTIVE.value:
            raise ConflictError(f"Cannot regenerate plan with status: {plan_row.status}", plan_id=str(plan_row.id))

        _, current_logs, previous_logs = self._load_logs(request.user_id, request.weeks_to_analyze)
        completed = self._completed(current_logs)
        if not completed:
            logger.info(
                "No completed workouts in analysis window",
                extra={"extra_fields": {"user_id": str(request.user_id), "plan_id": str(request.plan_id)}},
            )
            return insufficient_data_response()

        plan = plan_store.plan_to_data(plan_row)
        planned = plan.workouts_per_week * request.weeks_to_analyze
        metrics = analyze_performance(completed, previous_logs, planned)
        recommendation = determine_progression_recommendation(metrics)

        if request.training_style:
            drafts = self._switch_modality(plan, request.training_style, profile.available_equipment or [])
            validation = ValidationResult(is_valid=True)
        else:
            drafts = regenerate_workout_plan(
                plan, metrics, group_logs_by_exercise(completed), recommendation
            )
            drafts = apply_progressive_overload_rules(drafts, plan)
            validation = validate_regenerated_plan(drafts, plan)

        cycle_plan = generate_cycle_plan(drafts, metrics) if request.generate_full_cycle else None

        next_week = plan.mesocycle_week + 1
        is_new_cycle = next_week > plan.weeks_duration
        week = 1 if is_new_cycle else next_week
        plan_name = (
            f"{plan.plan_name} - Cycle {next_week // plan.weeks_duration + 1}"
            if is_new_cycle else plan.plan_name
        )

        new_plan = plan_store.save_regenerated_plan(
            self.db,
            plan_row,
            drafts,
            plan_name=plan_name,
            mesocycle_week=week,
            generation_prompt=f"Regenerated based on performance: {recommendation.reason}",
            start_date=self.today,
        )

        logger.info(
            "Workout plan regenerated",
            extra={
                "extra_fields": {
                    "user_id": str(request.user_id),
                    "old_plan_id": str(plan_row.id),
                    "new_plan_id": str(new_plan.id),
                    "is_new_cycle": is_new_cycle,
                    "week": week,
                    "total_workouts": len(drafts),
                    "action": recommendation.action.value,
                    "is_valid": validation.is_valid,
                }
            },
        )

        label = "new cycle" if is_new_cycle else f"week {next_week}"
        return RegeneratePlanResponse(
            plan_id=str(new_plan.id),
            previous_plan_id=str(plan_row.id),
            is_new_cycle=is_new_cycle,
            week=week,
            performance_analysis=PerformanceAnalysis(
                metrics=_metrics_response(metrics),
                recommendation=_recommendation_response(recommendation),
            ),
            regenerated_plan=RegeneratedPlanSummary(
                workouts=[_draft_response(d) for d in drafts],
                total_sets=sum(d.target_volume_sets for d in drafts),
                estimated_weekly_duration=sum(d.estimated_duration_minutes for d in drafts),
            ),
            validation=ValidationResponse(
                is_valid=validation.is_valid,
                errors=list(validation.errors),
                warnings=list(validation.warnings),
            ),
            cycle_plan=CycleVolumeSummary(**cycle_plan.weekly_volumes()) if cycle_plan else None,
            message=f"Plan regenerated successfully for {label}. {recommendation.reason}",
        )

    def _switch_modality(
        self, plan: WorkoutPlanData, training_style: str, available_equipment: Sequence[str]
    ) -> List[WorkoutDraft]:
        pool = plan_store.get_exercise_pool(self.db, training_style)
        try:
            return switch_training_modality(plan, training_style, pool, available_equipment)
        except NoExercisesForStyleError as e:
            raise NotFoundError("Exercises for training style", training_style) from e
        except InsufficientEquipmentError as e:
            logger.warning(str(e), extra={"extra_fields": {"plan_id": plan.id}})
            raise InsufficientEquipment(
                training_style, e.available_equipment, detail=str(e)
            ) from e

    # ---------- weekly adjustments ----------

    def weekly_adjustments(
        self, user_id: UUID, plan_id: UUID, weeks: int = 1
    ) -> Union[WeeklyAdjustmentsResponse, InsufficientDataResponse]:
        """Read-only preview of next week's adjustments. Writes nothing."""
        self._check_weeks(weeks)
        plan_row = plan_store.get_plan(self.db, plan_id, user_id)

        window, current_logs, previous_logs = self._load_logs(user_id, weeks)
        completed = self._completed(current_logs)
        if not completed:
            return insufficient_data_response()

        plan = plan_store.plan_to_data(plan_row)
        planned = plan.workouts_per_week * weeks
        metrics = analyze_performance(completed, previous_logs, planned)
        recommendation = determine_progression_recommendation(metrics)
        logs_by_exercise = group_logs_by_exercise(completed)

        exercise_recommendations = []
        for workout in plan.workouts:
            for plan_exercise in workout.exercises:
                exercise_logs = logs_by_exercise.get(plan_exercise.exercise_id, ())
                if not exercise_logs:
                    continue
                progression = calculate_exercise_progression(exercise_logs, plan_exercise, recommendation)
                reps_min = max(1, plan_exercise.target_reps_min + progression.reps_adjustment)
                reps_max = max(reps_min, plan_exercise.target_reps_max + progression.reps_adjustment)
                exercise_recommendations.append(ExerciseRecommendationResponse(
                    exercise_id=plan_exercise.exercise_id,
                    exercise_name=plan_exercise.exercise.name,
                    workout_name=workout.workout_name,
                    current_sets=plan_exercise.target_sets,
                    current_reps=f"{plan_exercise.target_reps_min}-{plan_exercise.target_reps_max}",
                    recommended_sets=max(1, plan_exercise.target_sets + progression.sets_adjustment),
                    recommended_reps=f"{reps_min}-{reps_max}",
                    sets_adjustment=progression.sets_adjustment,
                    reps_adjustment=progression.reps_adjustment,
                    weight_adjustment=progression.weight_adjustment,
                    completion_rate=progression.set_completion_rate,
                    avg_rpe=progression.avg_rpe,
                    notes=progression.recommendation.reason,
                ))

        exercise_recommendations.sort(
            key=lambda r: abs(r.sets_adjustment) + abs(r.weight_adjustment),
            reverse=True,
        )

        durations = [log.actual_duration_minutes or 0 for log in completed]
        logger.info(
            "Weekly adjustments calculated",
            extra={
                "extra_fields": {
                    "user_id": str(user_id),
                    "plan_id": str(plan_id),
                    "weeks": weeks,
                    "workouts_completed": len(completed),
                    "action": recommendation.action.value,
                    "exercise_recommendations": len(exercise_recommendations),
                }
            },
        )

        return WeeklyAdjustmentsResponse(
            period=AnalysisPeriod(start_date=window.start, end_date=window.end, weeks=weeks),
            summary=WeeklySummary(
                workouts_completed=len(completed),
                workouts_planned=planned,
                completion_rate=metrics.completion_rate,
                total_sets=sum(log.total_sets_completed for log in completed),
                total_volume=sum(log.total_volume for log in completed),
                avg_duration=int(round(sum(durations) / len(durations))),
                avg_rpe=metrics.rpe_average,
            ),
            performance_scores=PerformanceScores(
                completion=metrics.completion_rate,
                consistency=metrics.consistency_score,
                readiness=metrics.readiness_score,
                recovery=metrics.recovery_score,
            ),
            global_recommendation=_recommendation_response(recommendation),
            exercise_recommendations=exercise_recommendations,
            next_steps=generate_next_steps(recommendation, metrics, plan),
        )
