"""
Tests for analysis windows, exercise log grouping and per-set log aggregates.
"""

from datetime import date

import pytest

from services.progression.grouping import group_logs_by_exercise
from services.progression.types import ExerciseLogData, WorkoutLogData
from services.progression.window import AnalysisWindow, window_ending_now


class TestAnalysisWindow:

    def test_one_week_window_ends_today(self):
        window = window_ending_now(1, today=date(2026, 3, 15))
        assert window.start == date(2026, 3, 9)
        assert window.end == date(2026, 3, 15)
        assert window.days == 7

    def test_multi_week_window(self):
        window = window_ending_now(4, today=date(2026, 3, 15))
        assert window.start == date(2026, 2, 16)
        assert window.days == 28

    def test_previous_window_is_adjacent_and_equal_length(self):
        window = window_ending_now(2, today=date(2026, 3, 1))
        previous = window.previous()
        assert previous.end == date(2026, 2, 15)
        assert previous.start == date(2026, 2, 2)
        assert previous.days == window.days

    def test_contains_is_inclusive(self):
        window = AnalysisWindow(start=date(2026, 1, 1), end=date(2026, 1, 7))
        assert window.contains(date(2026, 1, 1))
        assert window.contains(date(2026, 1, 7))
        assert not window.contains(date(2026, 1, 8))

    def test_defaults_to_today(self):
        assert window_ending_now(1).end == date.today()

    def test_rejects_non_positive_weeks(self):
        with pytest.raises(ValueError):
            window_ending_now(0)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            AnalysisWindow(start=date(2026, 1, 8), end=date(2026, 1, 1))


def _workout_log(log_id, day, *exercise_ids):
    return WorkoutLogData(
        id=log_id,
        user_id="u",
        workout_date=date(2026, 3, day),
        exercise_logs=tuple(
            ExerciseLogData.from_sets(exercise_id, [10], [float(day)]) for exercise_id in exercise_ids
        ),
    )


class TestGroupLogsByExercise:

    def test_groups_across_workouts_in_date_order(self):
        logs = [
            _workout_log("late", 12, "bench", "row"),
            _workout_log("early", 5, "bench"),
        ]
        grouped = group_logs_by_exercise(logs)
        assert set(grouped) == {"bench", "row"}
        assert [log.max_weight for log in grouped["bench"]] == [5.0, 12.0]
        assert len(grouped["row"]) == 1

    def test_result_is_read_only(self):
        grouped = group_logs_by_exercise([_workout_log("a", 1, "bench")])
        with pytest.raises(TypeError):
            grouped["bench"] = ()
        assert isinstance(grouped["bench"], tuple)

    def test_empty_input(self):
        assert len(group_logs_by_exercise([])) == 0


class TestExerciseLogFromSets:

    def test_aggregates(self):
        log = ExerciseLogData.from_sets("bench", [10, 8], [100.0, 110.0], [7.0, None])
        assert log.sets_completed == 2
        assert log.total_volume == 1880.0
        assert log.max_weight == 110.0
        assert log.avg_rpe == 7.0

    def test_extra_reps_without_weight_are_dropped(self):
        log = ExerciseLogData.from_sets("bench", [10, 10, 8], [100.0, 100.0])
        assert log.reps == (10, 10)
        assert log.weights == (100.0, 100.0)
        assert log.rpes == (None, None)
        assert log.sets_completed == 2
        assert log.total_volume == 2000.0

    def test_extra_weights_without_reps_are_dropped(self):
        log = ExerciseLogData.from_sets("bench", [10], [100.0, 140.0])
        assert log.weights == (100.0,)
        assert log.max_weight == 100.0

    @pytest.mark.parametrize("rpes,expected,avg", [
        ([8.0], (8.0, None), 8.0),
        ([8.0, 9.0, 10.0], (8.0, 9.0), 8.5),
        ([], (None, None), None),
    ])
    def test_rpes_padded_or_cut_to_set_count(self, rpes, expected, avg):
        log = ExerciseLogData.from_sets("bench", [10, 10], [100.0, 100.0], rpes)
        assert log.rpes == expected
        assert log.avg_rpe == avg
