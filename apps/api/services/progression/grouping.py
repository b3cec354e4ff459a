"""Grouping of exercise logs by exercise id."""

from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from .types import ExerciseLogData, WorkoutLogData


def group_logs_by_exercise(
    workout_logs: Iterable[WorkoutLogData],
) -> Mapping[str, Tuple[ExerciseLogData, ...]]:
    """
    Collect every exercise log under its exercise id.

    Logs are ordered by workout date within each group. The returned mapping
    is read-only; it is built once per pipeline run.
    """
    grouped = {}
    for workout_log in sorted(workout_logs, key=lambda w: w.workout_date):
        for exercise_log in workout_log.exercise_logs:
            grouped.setdefault(exercise_log.exercise_id, []).append(exercise_log)

    return MappingProxyType({k: tuple(v) for k, v in grouped.items()})
