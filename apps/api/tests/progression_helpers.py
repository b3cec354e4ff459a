"""
Row builders shared by the progression API tests.

Usage:
    from tests.progression_helpers import TODAY, log_workout, make_exercise
"""
from datetime import date

from models import Exercise, ExerciseLog, WorkoutLog

TODAY = date.today()


def make_exercise(db_session, name, muscles, equipment=(), modality="strength", **kwargs):
    """Add an exercise library row (flushed, not committed)."""
    exercise = Exercise(
        name=name,
        category=kwargs.pop("category", None),
        exercise_type=kwargs.pop("exercise_type", "strength"),
        primary_muscles=list(muscles),
        equipment=list(equipment),
        training_modality=modality,
        **kwargs,
    )
    db_session.add(exercise)
    db_session.flush()
    return exercise


def log_workout(db_session, user, workout_date, exercise_sets, status="completed", **kwargs):
    """
    Persist a workout log with derived totals.

    exercise_sets maps an Exercise row to (reps, weights, rpes).
    """
    log = WorkoutLog(
        user_id=user.id,
        workout_date=workout_date,
        status=status,
        actual_duration_minutes=kwargs.pop("actual_duration_minutes", 55),
        **kwargs,
    )
    total_sets = 0
    total_volume = 0.0
    rpes_all = []
    for exercise, (reps, weights, rpes) in exercise_sets.items():
        volume = sum(r * w for r, w in zip(reps, weights))
        rated = [r for r in rpes if r is not None]
        log.exercise_logs.append(ExerciseLog(
            exercise_id=exercise.id,
            reps=list(reps),
            weights=list(weights),
            rpes=list(rpes),
            sets_completed=len(reps),
            total_volume=volume,
            max_weight=max(weights) if weights else 0.0,
            avg_rpe=sum(rated) / len(rated) if rated else None,
        ))
        total_sets += len(reps)
        total_volume += volume
        rpes_all.extend(rated)
    log.total_sets_completed = total_sets
    log.total_volume = total_volume
    log.avg_rpe = sum(rpes_all) / len(rpes_all) if rpes_all else None
    db_session.add(log)
    db_session.commit()
    return log
