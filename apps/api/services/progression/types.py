"""
Value objects for adaptive plan progression.

Everything the progression core consumes or produces is a frozen dataclass.
ORM rows are converted into these at the data-access boundary
(services/plan_store.py), so the core never sees a database session.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import ExerciseType, PlanStatus, ProgressionAction, WorkoutStatus


# ============ Logs ============

@dataclass(frozen=True)
class ExerciseLogData:
    """One exercise's performance within a workout log."""
    exercise_id: str
    exercise_type: str = ExerciseType.STRENGTH.value
    plan_exercise_id: Optional[str] = None

    # Parallel per-set arrays
    reps: Tuple[int, ...] = ()
    weights: Tuple[float, ...] = ()
    rpes: Tuple[Optional[float], ...] = ()

    sets_completed: int = 0
    total_volume: float = 0.0      # sum(weight * reps)
    max_weight: float = 0.0
    avg_rpe: Optional[float] = None

    # Type-specific fields
    duration_seconds: Optional[int] = None
    distance_meters: Optional[float] = None
    avg_heart_rate: Optional[int] = None
    swim_laps: Optional[int] = None
    hold_seconds: Optional[int] = None

    @classmethod
    def from_sets(
        cls,
        exercise_id: str,
        reps: Sequence[int],
        weights: Sequence[float],
        rpes: Optional[Sequence[Optional[float]]] = None,
        **kwargs,
    ) -> "ExerciseLogData":
        """
        Build a log from per-set arrays, deriving the aggregates.

        A set counts only when both its reps and its weight are recorded:
        reps and weights are cut to the shorter of the two, and rpes are cut
        or padded with None to match.
        """
        n = min(len(reps), len(weights))
        reps = tuple(int(r) for r in reps[:n])
        weights = tuple(float(w) for w in weights[:n])
        rpes = tuple(rpes or ())[:n]
        rpes = rpes + (None,) * (n - len(rpes))
        rated = [r for r in rpes if r is not None]
        return cls(
            exercise_id=exercise_id,
            reps=reps,
            weights=weights,
            rpes=rpes,
            sets_completed=len(reps),
            total_volume=sum(r * w for r, w in zip(reps, weights)),
            max_weight=max(weights) if weights else 0.0,
            avg_rpe=(sum(rated) / len(rated)) if rated else None,
            **kwargs,
        )


@dataclass(frozen=True)
class WorkoutLogData:
    """A completed (or attempted) workout instance."""
    id: str
    user_id: str
    workout_date: date
    status: str = WorkoutStatus.COMPLETED.value
    plan_workout_id: Optional[str] = None
    actual_duration_minutes: Optional[float] = None
    planned_duration_minutes: Optional[float] = None
    total_sets_completed: int = 0
    total_volume: float = 0.0
    avg_rpe: Optional[float] = None
    perceived_difficulty: Optional[float] = None   # 1-10
    energy_level: Optional[float] = None           # 1-10
    exercise_logs: Tuple[ExerciseLogData, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.status == WorkoutStatus.COMPLETED.value


# ============ Plan ============

@dataclass(frozen=True)
class ExerciseMeta:
    """Normalized exercise library entry."""
    id: str
    name: str
    category: Optional[str] = None
    exercise_type: str = ExerciseType.STRENGTH.value
    primary_muscles: Tuple[str, ...] = ()
    equipment: Tuple[str, ...] = ()
    training_modality: Optional[str] = None
    difficulty: Optional[str] = None
    recommended_sets_min: Optional[int] = None
    recommended_reps_min: Optional[int] = None
    recommended_reps_max: Optional[int] = None
    recommended_rest_seconds_min: Optional[int] = None
    is_active: bool = True

    @classmethod
    def unknown(cls, exercise_id: str) -> "ExerciseMeta":
        """Placeholder for a plan exercise whose library row is missing."""
        return cls(id=exercise_id, name="Unknown exercise")


@dataclass(frozen=True)
class PlanExerciseData:
    """A prescribed exercise slot within a plan workout."""
    exercise_id: str
    exercise: ExerciseMeta
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    rest_seconds: int = 90
    order_index: int = 0
    id: Optional[str] = None
    target_weight: Optional[float] = None
    target_rpe: Optional[float] = None
    tempo: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PlanWorkoutData:
    """One scheduled training day."""
    workout_name: str
    workout_type: str
    day_of_week: int
    exercises: Tuple[PlanExerciseData, ...] = ()
    id: Optional[str] = None
    week_number: int = 1
    scheduled_date: Optional[date] = None
    estimated_duration_minutes: int = 60
    target_muscle_groups: Tuple[str, ...] = ()
    target_volume_sets: Optional[int] = None
    completed: bool = False

    @property
    def planned_volume_sets(self) -> int:
        """Sum of exercise sets; the stored target only for a workout without exercises."""
        if self.exercises:
            return sum(e.target_sets for e in self.exercises)
        return self.target_volume_sets or 0


@dataclass(frozen=True)
class WorkoutPlanData:
    """A mesocycle prescription."""
    id: str
    user_id: str
    plan_name: str
    workouts: Tuple[PlanWorkoutData, ...] = ()
    plan_type: Optional[str] = None
    split_pattern: Optional[str] = None
    weeks_duration: int = 4
    days_per_week: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    mesocycle_week: int = 1
    status: str = PlanStatus.ACTIVE.value
    previous_plan_id: Optional[str] = None

    @property
    def workouts_per_week(self) -> int:
        return self.days_per_week or len(self.workouts)


# ============ Derived ============

@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate performance for one analysis window. Scores are 0-100."""
    completion_rate: float
    consistency_score: float
    readiness_score: float
    recovery_score: float
    rpe_average: Optional[float] = None      # 1-10, None without RPE data
    volume_progression: float = 0.0          # % change vs previous window


@dataclass(frozen=True)
class ProgressionRecommendation:
    """Global recommendation for the next block."""
    action: ProgressionAction
    volume_adjustment: float                 # % delta
    intensity_adjustment: float              # % delta
    reason: str
    confidence: float                        # 0-1


@dataclass(frozen=True)
class ExerciseProgression:
    """Exercise-specific adjustments derived from logs and the global direction."""
    exercise_id: str
    sets_adjustment: int
    reps_adjustment: int
    weight_adjustment: float                 # % delta
    recommendation: ProgressionRecommendation
    current_volume: float = 0.0
    current_intensity: float = 0.0
    target_volume: float = 0.0
    target_intensity: float = 0.0
    set_completion_rate: Optional[float] = None
    avg_rpe: Optional[float] = None
    sessions_logged: int = 0


@dataclass(frozen=True)
class ExerciseDraft:
    """Regenerated targets for one exercise slot."""
    exercise_id: str
    target_sets: int
    target_reps_min: int
    target_reps_max: int
    rest_seconds: int
    order_index: int
    target_weight: Optional[float] = None
    target_rpe: Optional[float] = None
    tempo: Optional[str] = None
    progression_notes: str = ""
    # Weight the new target was derived from (logged average or prior target)
    baseline_weight: Optional[float] = None


@dataclass(frozen=True)
class WorkoutDraft:
    """Regenerated workout, not yet persisted."""
    workout_name: str
    workout_type: str
    day_of_week: int
    estimated_duration_minutes: int
    exercises: Tuple[ExerciseDraft, ...] = ()
    week_number: int = 1
    target_muscle_groups: Tuple[str, ...] = ()

    @property
    def target_volume_sets(self) -> int:
        return sum(e.target_sets for e in self.exercises)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a set of drafts."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CyclePlan:
    """Four-week mesocycle built from one regenerated week."""
    week1: Tuple[WorkoutDraft, ...]
    week2: Tuple[WorkoutDraft, ...]
    week3: Tuple[WorkoutDraft, ...]
    week4: Tuple[WorkoutDraft, ...]

    @property
    def weeks(self) -> Tuple[Tuple[WorkoutDraft, ...], ...]:
        return (self.week1, self.week2, self.week3, self.week4)

    def weekly_volumes(self) -> Dict[str, int]:
        return {
            f"week{i}_volume": sum(w.target_volume_sets for w in week)
            for i, week in enumerate(self.weeks, start=1)
        }


def total_volume_sets(workouts: Sequence[WorkoutDraft]) -> int:
    return sum(w.target_volume_sets for w in workouts)
