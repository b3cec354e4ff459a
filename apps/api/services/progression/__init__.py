# Adaptive Plan Progression
#
# Pure pipeline that turns workout logs into the next training week.
#
# Architecture:
# - Performance analyzer: logs -> completion/consistency/readiness/recovery scores
# - Recommender: scores -> global action, then per-exercise adjustments
# - Regenerator: plan + adjustments -> drafts, clamped by overload rules
# - Validator: structural and safety checks on drafts
# - Cycle planner: one week -> 4-week mesocycle with a deload week
#
# Nothing here touches the database; see services/plan_store.py.

from .constants import ExerciseType, PlanStatus, ProgressionAction, WorkoutStatus
from .cycle_planner import generate_cycle_plan
from .exceptions import InsufficientEquipmentError, NoExercisesForStyleError, ProgressionError
from .grouping import group_logs_by_exercise
from .performance_analyzer import analyze_performance
from .recommender import (
    calculate_exercise_progression,
    determine_progression_recommendation,
    insufficient_data_recommendation,
)
from .regenerator import (
    apply_progressive_overload_rules,
    filter_by_equipment,
    regenerate_workout_plan,
    switch_training_modality,
)
from .types import (
    CyclePlan,
    ExerciseDraft,
    ExerciseLogData,
    ExerciseMeta,
    ExerciseProgression,
    PerformanceMetrics,
    PlanExerciseData,
    PlanWorkoutData,
    ProgressionRecommendation,
    ValidationResult,
    WorkoutDraft,
    WorkoutLogData,
    WorkoutPlanData,
)
from .validator import validate_regenerated_plan
from .window import AnalysisWindow, window_ending_now

__all__ = [
    # Pipeline
    'analyze_performance',
    'determine_progression_recommendation',
    'calculate_exercise_progression',
    'insufficient_data_recommendation',
    'regenerate_workout_plan',
    'apply_progressive_overload_rules',
    'switch_training_modality',
    'filter_by_equipment',
    'validate_regenerated_plan',
    'generate_cycle_plan',
    'group_logs_by_exercise',

    # Windows
    'AnalysisWindow',
    'window_ending_now',

    # Types
    'ExerciseLogData',
    'WorkoutLogData',
    'ExerciseMeta',
    'PlanExerciseData',
    'PlanWorkoutData',
    'WorkoutPlanData',
    'PerformanceMetrics',
    'ProgressionRecommendation',
    'ExerciseProgression',
    'ExerciseDraft',
    'WorkoutDraft',
    'ValidationResult',
    'CyclePlan',

    # Errors
    'ProgressionError',
    'NoExercisesForStyleError',
    'InsufficientEquipmentError',

    # Constants
    'ProgressionAction',
    'WorkoutStatus',
    'PlanStatus',
    'ExerciseType',
]
