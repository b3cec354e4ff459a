"""
Progression Recommender

Maps performance metrics to a global recommendation, then modulates it per
exercise using that exercise's own logs.

Global decision table (first match wins):
    1. recovery < 40, or RPE >= 9 with consistency < 60  -> deload
    2. completion < 60 or consistency < 50                -> maintain (adherence)
    3. completion >= 85, readiness >= 70, recovery >= 70  -> increase
    4. readiness < 50 or recovery < 50                    -> decrease
    5. otherwise                                          -> maintain

Adjustment magnitude and confidence grow with the distance between the
metrics and the thresholds that decided the action.
"""

import logging
import math
from dataclasses import replace
from typing import Sequence, Tuple

from .constants import (
    ADHERENCE_COMPLETION_THRESHOLD,
    ADHERENCE_CONSISTENCY_THRESHOLD,
    CONFIDENCE_FLOOR,
    CONFIDENCE_MARGIN_SCALE,
    DECREASE_INTENSITY,
    DECREASE_READINESS_THRESHOLD,
    DECREASE_RECOVERY_THRESHOLD,
    DECREASE_VOLUME,
    DEFAULT_TARGET_RPE,
    DELOAD_CONSISTENCY_THRESHOLD,
    DELOAD_INTENSITY_RANGE,
    DELOAD_MAX_SETS_REMOVED,
    DELOAD_RECOVERY_THRESHOLD,
    DELOAD_RPE_THRESHOLD,
    DELOAD_SET_REDUCTION,
    DELOAD_VOLUME_RANGE,
    EXERCISE_MIN_WEIGHT_INCREASE,
    HIGH_RPE_FOR_FEWER_REPS,
    INCREASE_COMPLETION_THRESHOLD,
    INCREASE_INTENSITY_RANGE,
    INCREASE_READINESS_THRESHOLD,
    INCREASE_RECOVERY_THRESHOLD,
    INCREASE_VOLUME_RANGE,
    LOCAL_WEIGHT_DECREASE,
    LOCAL_WEIGHT_INCREASE_RANGE,
    LOW_RPE_FOR_EXTRA_REP,
    RPE_POINTS_PER_UNIT,
    SET_COMPLETION_FOR_EXTRA_SET,
    ProgressionAction,
)
from .performance_analyzer import _finite, _mean
from .types import (
    ExerciseLogData,
    ExerciseProgression,
    PerformanceMetrics,
    PlanExerciseData,
    ProgressionRecommendation,
)

logger = logging.getLogger(__name__)


def _strength(margin: float) -> float:
    """Normalize a decision margin to 0-1."""
    return max(0.0, min(1.0, margin / CONFIDENCE_MARGIN_SCALE))


def _confidence(margin: float) -> float:
    return round(CONFIDENCE_FLOOR + (1.0 - CONFIDENCE_FLOOR) * _strength(margin), 2)


def _interpolate(bounds: Tuple[float, float], strength: float) -> float:
    low, high = bounds
    return round(low + (high - low) * strength, 1)


def determine_progression_recommendation(metrics: PerformanceMetrics) -> ProgressionRecommendation:
    """
    Decide the global direction for the next training block.

    Args:
        metrics: Output of analyze_performance

    Returns:
        ProgressionRecommendation with confidence in [0, 1]
    """
    completion = metrics.completion_rate
    consistency = metrics.consistency_score
    readiness = metrics.readiness_score
    recovery = metrics.recovery_score
    rpe = metrics.rpe_average

    # 1. Deload
    deload_margins = []
    if recovery < DELOAD_RECOVERY_THRESHOLD:
        deload_margins.append(DELOAD_RECOVERY_THRESHOLD - recovery)
    if rpe is not None and rpe >= DELOAD_RPE_THRESHOLD and consistency < DELOAD_CONSISTENCY_THRESHOLD:
        deload_margins.append(min(
            (rpe - DELOAD_RPE_THRESHOLD) * RPE_POINTS_PER_UNIT,
            DELOAD_CONSISTENCY_THRESHOLD - consistency,
        ))
    if deload_margins:
        margin = max(deload_margins)
        strength = _strength(margin)
        if recovery < DELOAD_RECOVERY_THRESHOLD:
            reason = (
                f"Recovery score {recovery:.0f} signals accumulated fatigue. "
                "Deload week recommended."
            )
        else:
            reason = (
                f"Near-maximal effort (RPE {rpe:.1f}) with inconsistent training. "
                "Deload week recommended."
            )
        return ProgressionRecommendation(
            action=ProgressionAction.DELOAD,
            volume_adjustment=_interpolate(DELOAD_VOLUME_RANGE, strength),
            intensity_adjustment=_interpolate(DELOAD_INTENSITY_RANGE, strength),
            reason=reason,
            confidence=_confidence(margin),
        )

    # 2. Adherence first
    adherence_margins = []
    if completion < ADHERENCE_COMPLETION_THRESHOLD:
        adherence_margins.append(ADHERENCE_COMPLETION_THRESHOLD - completion)
    if consistency < ADHERENCE_CONSISTENCY_THRESHOLD:
        adherence_margins.append(ADHERENCE_CONSISTENCY_THRESHOLD - consistency)
    if adherence_margins:
        return ProgressionRecommendation(
            action=ProgressionAction.MAINTAIN,
            volume_adjustment=0.0,
            intensity_adjustment=0.0,
            reason=(
                f"Low adherence: {completion:.0f}% of planned workouts completed "
                f"(consistency {consistency:.0f}). Maintain current load until "
                "sessions are completed consistently."
            ),
            confidence=_confidence(max(adherence_margins)),
        )

    # 3. Increase
    if (
        completion >= INCREASE_COMPLETION_THRESHOLD
        and readiness >= INCREASE_READINESS_THRESHOLD
        and recovery >= INCREASE_RECOVERY_THRESHOLD
    ):
        margin = min(
            completion - INCREASE_COMPLETION_THRESHOLD,
            readiness - INCREASE_READINESS_THRESHOLD,
            recovery - INCREASE_RECOVERY_THRESHOLD,
        )
        strength = _strength(margin)
        return ProgressionRecommendation(
            action=ProgressionAction.INCREASE,
            volume_adjustment=_interpolate(INCREASE_VOLUME_RANGE, strength),
            intensity_adjustment=_interpolate(INCREASE_INTENSITY_RANGE, strength),
            reason="Excellent performance with good recovery. Ready for progression.",
            confidence=_confidence(margin),
        )

    # 4. Decrease
    decrease_margins = []
    if readiness < DECREASE_READINESS_THRESHOLD:
        decrease_margins.append(DECREASE_READINESS_THRESHOLD - readiness)
    if recovery < DECREASE_RECOVERY_THRESHOLD:
        decrease_margins.append(DECREASE_RECOVERY_THRESHOLD - recovery)
    if decrease_margins:
        return ProgressionRecommendation(
            action=ProgressionAction.DECREASE,
            volume_adjustment=DECREASE_VOLUME,
            intensity_adjustment=DECREASE_INTENSITY,
            reason="Readiness or recovery below target. Reduce load to prevent overtraining.",
            confidence=_confidence(max(decrease_margins)),
        )

    # 5. Maintain: distance to the nearest threshold that would flip the action
    gap_to_increase = max(
        INCREASE_COMPLETION_THRESHOLD - completion,
        INCREASE_READINESS_THRESHOLD - readiness,
        INCREASE_RECOVERY_THRESHOLD - recovery,
    )
    margin = min(
        gap_to_increase,
        completion - ADHERENCE_COMPLETION_THRESHOLD,
        consistency - ADHERENCE_CONSISTENCY_THRESHOLD,
        readiness - DECREASE_READINESS_THRESHOLD,
        recovery - DECREASE_RECOVERY_THRESHOLD,
    )
    return ProgressionRecommendation(
        action=ProgressionAction.MAINTAIN,
        volume_adjustment=0.0,
        intensity_adjustment=0.0,
        reason="Solid performance. Maintain current volume to build consistency.",
        confidence=_confidence(margin),
    )


def _cold_start_deltas(plan_exercise: PlanExerciseData, volume_adjustment: float) -> Tuple[int, int]:
    """
    (sets, reps) change for an exercise with no logs.

    Any non-zero volume change moves at least one set; an exercise already
    at one set sheds a rep instead.
    """
    if not volume_adjustment:
        return 0, 0
    sets_delta = int(round(plan_exercise.target_sets * volume_adjustment / 100))
    if sets_delta == 0:
        sets_delta = int(math.copysign(1, volume_adjustment))
    if plan_exercise.target_sets + sets_delta >= 1:
        return sets_delta, 0
    sets_delta = 1 - plan_exercise.target_sets
    if sets_delta == 0 and plan_exercise.target_reps_min > 1:
        return 0, -1
    return sets_delta, 0


def calculate_exercise_progression(
    exercise_logs: Sequence[ExerciseLogData],
    plan_exercise: PlanExerciseData,
    global_recommendation: ProgressionRecommendation,
) -> ExerciseProgression:
    """
    Exercise-specific progression.

    Applies the global direction to sets and reps, then lets the exercise's
    own logs override the weight change:
    - every set at the top of the rep range with RPE below target-1
      -> +2.5..5% weight (unless the block is a decrease or deload)
    - no set ever reaching the bottom of the rep range -> at most -5% weight

    Without logs the global deltas are applied uniformly.
    """
    action = global_recommendation.action

    if not exercise_logs:
        sets_delta, reps_delta = _cold_start_deltas(
            plan_exercise, global_recommendation.volume_adjustment
        )
        return ExerciseProgression(
            exercise_id=plan_exercise.exercise_id,
            sets_adjustment=sets_delta,
            reps_adjustment=reps_delta,
            weight_adjustment=global_recommendation.intensity_adjustment,
            recommendation=global_recommendation,
            current_intensity=plan_exercise.target_weight or 0.0,
        )

    sessions = len(exercise_logs)
    avg_sets = sum(log.sets_completed for log in exercise_logs) / sessions
    avg_volume = sum(_finite(log.total_volume for log in exercise_logs)) / sessions
    avg_weight = sum(_finite(log.max_weight for log in exercise_logs)) / sessions
    avg_rpe = _mean(log.avg_rpe for log in exercise_logs)
    set_completion = (
        avg_sets / plan_exercise.target_sets * 100 if plan_exercise.target_sets > 0 else 0.0
    )

    sets_adjustment = 0
    reps_adjustment = 0
    weight_adjustment = global_recommendation.intensity_adjustment

    if action == ProgressionAction.INCREASE:
        if set_completion >= SET_COMPLETION_FOR_EXTRA_SET:
            sets_adjustment = 1
        else:
            # Keep sets, progress through load instead
            weight_adjustment = max(weight_adjustment, EXERCISE_MIN_WEIGHT_INCREASE)
    elif action == ProgressionAction.DECREASE:
        sets_adjustment = -1
    elif action == ProgressionAction.DELOAD:
        removed = max(1, int(round(plan_exercise.target_sets * DELOAD_SET_REDUCTION)))
        sets_adjustment = -min(DELOAD_MAX_SETS_REMOVED, removed)

    if avg_rpe is not None:
        if avg_rpe < LOW_RPE_FOR_EXTRA_REP and action == ProgressionAction.INCREASE:
            reps_adjustment = 1
        elif avg_rpe > HIGH_RPE_FOR_FEWER_REPS and action != ProgressionAction.INCREASE:
            reps_adjustment = -1

    # Local weight signal
    all_reps = [r for log in exercise_logs for r in log.reps]
    target_rpe = plan_exercise.target_rpe or DEFAULT_TARGET_RPE
    local_note = None
    if all_reps:
        full_reps = (
            set_completion >= 100
            and all(r >= plan_exercise.target_reps_max for r in all_reps)
        )
        never_reached = all(r < plan_exercise.target_reps_min for r in all_reps)

        if never_reached:
            weight_adjustment = min(weight_adjustment, LOCAL_WEIGHT_DECREASE)
            local_note = "target reps never reached"
        elif (
            full_reps
            and avg_rpe is not None
            and avg_rpe < target_rpe - 1
            and action in (ProgressionAction.INCREASE, ProgressionAction.MAINTAIN)
        ):
            headroom = (target_rpe - 1) - avg_rpe
            low, high = LOCAL_WEIGHT_INCREASE_RANGE
            local_increase = min(high, low + headroom * low)
            weight_adjustment = max(weight_adjustment, local_increase)
            local_note = "all reps completed with RPE to spare"

    target_sets = max(1, plan_exercise.target_sets + sets_adjustment)
    target_reps_min = max(1, plan_exercise.target_reps_min + reps_adjustment)
    target_reps_max = max(target_reps_min, plan_exercise.target_reps_max + reps_adjustment)
    target_weight = avg_weight * (1 + weight_adjustment / 100)

    detail = f"Exercise-specific: {set_completion:.0f}% set completion"
    if avg_rpe is not None:
        detail += f", {avg_rpe:.1f} avg RPE"
    if local_note:
        detail += f", {local_note}"

    return ExerciseProgression(
        exercise_id=plan_exercise.exercise_id,
        sets_adjustment=sets_adjustment,
        reps_adjustment=reps_adjustment,
        weight_adjustment=round(weight_adjustment, 2),
        recommendation=replace(
            global_recommendation,
            reason=f"{global_recommendation.reason} {detail}.",
        ),
        current_volume=avg_volume,
        current_intensity=avg_weight,
        target_volume=target_sets * (target_reps_min + target_reps_max) / 2 * target_weight,
        target_intensity=target_weight,
        set_completion_rate=round(set_completion, 1),
        avg_rpe=round(avg_rpe, 2) if avg_rpe is not None else None,
        sessions_logged=sessions,
    )


def insufficient_data_recommendation() -> dict:
    """Payload returned when the analysis window has no completed workouts."""
    return {
        "action": ProgressionAction.MAINTAIN.value,
        "reason": "Insufficient data. Complete your workouts as planned.",
    }
