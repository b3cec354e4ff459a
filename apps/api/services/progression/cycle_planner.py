"""
Cycle Planner

Expands one regenerated week into a 4-week mesocycle:

    week 1  baseline (the draft as given)
    week 2  +5-10% sets over week 1, +2.5% load
    week 3  +5-10% sets over week 2 (peak), +2.5% load
    week 4  deload: 70% of week 3 sets, 15-20% less load than week 3

The step size scales with readiness; the deload depth scales with how poor
recovery is. Week 4 is always a deload, whatever the global recommendation.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .constants import (
    CYCLE_DELOAD_INTENSITY_RANGE,
    CYCLE_DELOAD_VOLUME_FACTOR,
    CYCLE_STEP_RANGE,
    CYCLE_WEIGHT_STEP,
    WEIGHT_ROUNDING_INCREMENT,
)
from .regenerator import round_weight, scale_duration
from .types import CyclePlan, PerformanceMetrics, WorkoutDraft, total_volume_sets

logger = logging.getLogger(__name__)


def _unit(score: Optional[float]) -> float:
    if score is None or not math.isfinite(score):
        return 0.5
    return max(0.0, min(1.0, score / 100.0))


def _distribute(sets: List[int], target_total: int) -> List[int]:
    """Proportionally rescale per-slot sets to sum to target_total, each >= 1."""
    current = sum(sets)
    if current <= 0:
        return list(sets)
    target_total = max(target_total, len(sets))
    exact = [s * target_total / current for s in sets]
    scaled = [max(1, int(math.floor(x))) for x in exact]

    # Hand out the remainder by largest fractional part, ties to the earliest slot
    order = sorted(range(len(sets)), key=lambda i: (-(exact[i] - math.floor(exact[i])), i))
    k = 0
    while sum(scaled) < target_total:
        scaled[order[k % len(order)]] += 1
        k += 1
    while sum(scaled) > target_total:
        i = max(range(len(scaled)), key=lambda j: (scaled[j], -j))
        if scaled[i] <= 1:
            break
        scaled[i] -= 1
    return scaled


def _deload_weight(weight: float, cut: float) -> float:
    """
    Week-3 load reduced by `cut`, on the loadable increment, never less than
    the minimum deload cut. Light loads land below the range rather than
    inside it.
    """
    rounded = round_weight(weight * (1 - cut))
    ceiling = weight * (1 - CYCLE_DELOAD_INTENSITY_RANGE[0])
    if rounded <= ceiling:
        return rounded
    return math.floor(ceiling / WEIGHT_ROUNDING_INCREMENT) * WEIGHT_ROUNDING_INCREMENT


def _scale_week(
    workouts: Sequence[WorkoutDraft],
    target_total: int,
    week_number: int,
    weight_factor: float = 1.0,
    deload_cut: Optional[float] = None,
) -> Tuple[WorkoutDraft, ...]:
    slots = [e.target_sets for w in workouts for e in w.exercises]
    new_slots = iter(_distribute(slots, target_total))

    week = []
    for workout in workouts:
        exercises = []
        for exercise in workout.exercises:
            weight = exercise.target_weight
            if weight is not None:
                if deload_cut is not None:
                    weight = _deload_weight(weight, deload_cut)
                else:
                    weight = round_weight(weight * weight_factor)
            exercises.append(replace(exercise, target_sets=next(new_slots), target_weight=weight))
        new_volume = sum(e.target_sets for e in exercises)
        week.append(replace(
            workout,
            exercises=tuple(exercises),
            week_number=week_number,
            estimated_duration_minutes=scale_duration(
                workout.estimated_duration_minutes, workout.target_volume_sets, new_volume
            ),
        ))
    return tuple(week)


def generate_cycle_plan(
    draft: Sequence[WorkoutDraft],
    performance_metrics: Optional[PerformanceMetrics] = None,
) -> CyclePlan:
    """
    Build weeks 1-4 from a regenerated week.

    Args:
        draft: One week of regenerated workouts
        performance_metrics: Scales the progression step (readiness) and
            the deload depth (recovery); midpoints are used when omitted

    Returns:
        CyclePlan where week3 >= week2 >= week1 and week4 < week3 in total sets
    """
    week1 = tuple(draft)
    base_week = week1[0].week_number if week1 else 1
    w1 = total_volume_sets(week1)
    slot_count = sum(len(w.exercises) for w in week1)

    if w1 <= 0:
        logger.warning("Cycle plan requested for a week without volume; repeating week 1")
        return CyclePlan(week1=week1, week2=week1, week3=week1, week4=week1)

    readiness = _unit(performance_metrics.readiness_score if performance_metrics else None)
    recovery = _unit(performance_metrics.recovery_score if performance_metrics else None)

    low, high = CYCLE_STEP_RANGE
    step = low + (high - low) * readiness
    deload_low, deload_high = CYCLE_DELOAD_INTENSITY_RANGE
    deload_cut = deload_low + (deload_high - deload_low) * (1.0 - recovery)

    w2 = int(math.ceil(w1 * (1 + step)))
    w3 = int(math.ceil(w2 * (1 + step)))
    w4 = max(slot_count, int(math.floor(w3 * CYCLE_DELOAD_VOLUME_FACTOR)))

    week2 = _scale_week(week1, w2, base_week + 1, weight_factor=1 + CYCLE_WEIGHT_STEP)
    week3 = _scale_week(week2, w3, base_week + 2, weight_factor=1 + CYCLE_WEIGHT_STEP)
    week4 = _scale_week(week3, w4, base_week + 3, deload_cut=deload_cut)

    plan = CyclePlan(week1=week1, week2=week2, week3=week3, week4=week4)
    logger.info(
        "Cycle plan generated",
        extra={"extra_fields": {**plan.weekly_volumes(), "step": round(step, 3),
                                "deload_cut": round(deload_cut, 3)}},
    )
    return plan
