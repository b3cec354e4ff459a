from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import date
from uuid import UUID
from typing import Optional, List


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Requests ============

class RegeneratePlanRequest(CamelModel):
    user_id: UUID
    plan_id: UUID
    weeks_to_analyze: int = Field(default=1, ge=1, le=12)
    generate_full_cycle: bool = False
    training_style: Optional[str] = None  # Set to switch modality instead of progressing


# ============ Shared pieces ============

class RecommendationResponse(CamelModel):
    action: str  # increase | maintain | decrease | deload
    volume_adjustment: float
    intensity_adjustment: float
    reason: str
    confidence: float


class BasicRecommendation(CamelModel):
    action: str
    reason: str


class InsufficientDataResponse(CamelModel):
    """Returned when the analysis window holds no completed workouts."""
    success: bool = True
    has_data: bool = False
    message: str
    recommendation: BasicRecommendation


class PerformanceMetricsResponse(CamelModel):
    completion_rate: float
    consistency_score: float
    readiness_score: float
    recovery_score: float
    rpe_average: Optional[float] = None
    volume_progression: float = 0.0


# ============ Regenerate plan ============

class ExerciseDraftResponse(CamelModel):
    exercise_id: str
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    target_weight: Optional[float] = None
    rest_seconds: int
    order_index: int
    target_rpe: Optional[float] = None
    tempo: Optional[str] = None
    progression_notes: str = ""


class WorkoutDraftResponse(CamelModel):
    workout_name: str
    workout_type: str
    day_of_week: int
    week_number: int
    estimated_duration_minutes: int
    target_volume_sets: int
    target_muscle_groups: List[str] = []
    exercises: List[ExerciseDraftResponse]


class PerformanceAnalysis(CamelModel):
    metrics: PerformanceMetricsResponse
    recommendation: RecommendationResponse


class RegeneratedPlanSummary(CamelModel):
    workouts: List[WorkoutDraftResponse]
    total_sets: int
    estimated_weekly_duration: int


class ValidationResponse(CamelModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []


class CycleVolumeSummary(CamelModel):
    week1_volume: int
    week2_volume: int
    week3_volume: int
    week4_volume: int


class RegeneratePlanResponse(CamelModel):
    success: bool = True
    has_data: bool = True
    plan_id: str
    previous_plan_id: str
    is_new_cycle: bool
    week: int
    performance_analysis: PerformanceAnalysis
    regenerated_plan: RegeneratedPlanSummary
    validation: ValidationResponse
    cycle_plan: Optional[CycleVolumeSummary] = None
    message: str


# ============ Weekly adjustments ============

class AnalysisPeriod(CamelModel):
    start_date: date
    end_date: date
    weeks: int


class WeeklySummary(CamelModel):
    workouts_completed: int
    workouts_planned: int
    completion_rate: float
    total_sets: int
    total_volume: float
    avg_duration: int
    avg_rpe: Optional[float] = Field(default=None, alias="avgRPE")


class PerformanceScores(CamelModel):
    completion: float
    consistency: float
    readiness: float
    recovery: float


class ExerciseRecommendationResponse(CamelModel):
    exercise_id: str
    exercise_name: Optional[str] = None
    workout_name: str
    current_sets: int
    current_reps: str  # "8-12"
    recommended_sets: int
    recommended_reps: str
    sets_adjustment: int
    reps_adjustment: int
    weight_adjustment: float
    completion_rate: Optional[float] = None
    avg_rpe: Optional[float] = Field(default=None, alias="avgRPE")
    notes: str


class WeeklyAdjustmentsResponse(CamelModel):
    success: bool = True
    has_data: bool = True
    period: AnalysisPeriod
    summary: WeeklySummary
    performance_scores: PerformanceScores
    global_recommendation: RecommendationResponse
    exercise_recommendations: List[ExerciseRecommendationResponse]
    next_steps: List[str]


# ============ Lifecycle ============

class PlanStatusResponse(CamelModel):
    success: bool = True
    message: str
    plan_id: str
    status: str
