"""
Performance Analyzer

Turns completed workout logs for the current analysis window (and the
equally long window before it) into aggregate performance metrics.

Scores:
    completion   - completed / planned workouts
    consistency  - regularity of training dates blended with frequency
    readiness    - RPE level and RPE escalation across the window
    recovery     - volume and RPE change versus the previous window

Every score is clamped to 0-100. Missing data yields the neutral score (50)
rather than an error.
"""

import logging
import math
from datetime import date
from statistics import pstdev
from typing import Iterable, List, Optional, Sequence

from .constants import (
    CONSISTENCY_FREQUENCY_WEIGHT,
    CONSISTENCY_REGULARITY_WEIGHT,
    DURATION_COMPLIANCE_TOLERANCE,
    NEUTRAL_SCORE,
    READINESS_AT_HIGH_RPE,
    READINESS_ESCALATION_PENALTY,
    READINESS_RPE_COMFORT_CEILING,
    READINESS_RPE_HIGH,
    READINESS_SUBJECTIVE_WEIGHT,
    RECOVERY_BASELINE,
    RECOVERY_DURATION_WEIGHT,
    RECOVERY_OVERREACH_MULTIPLIER,
    RECOVERY_RPE_DROP_BONUS,
    RECOVERY_RPE_DROP_BONUS_MAX,
    RECOVERY_RPE_RISE_PENALTY,
    RECOVERY_VOLUME_GAIN_BONUS_MAX,
    RECOVERY_VOLUME_RISE_THRESHOLD_PCT,
    SCORE_MAX,
    SCORE_MIN,
)
from .types import PerformanceMetrics, WorkoutLogData

logger = logging.getLogger(__name__)


def _finite(values: Iterable[Optional[float]]) -> List[float]:
    """Drop None, NaN and infinities."""
    out = []
    for v in values:
        if v is None:
            continue
        try:
            f = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(f):
            out.append(f)
    return out


def _mean(values: Iterable[Optional[float]]) -> Optional[float]:
    clean = _finite(values)
    if not clean:
        return None
    return sum(clean) / len(clean)


def _clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    if value is None or not math.isfinite(value):
        return NEUTRAL_SCORE
    return max(low, min(high, value))


def _slope(values: Sequence[float]) -> float:
    """Least-squares slope per session (0 with fewer than two points)."""
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(values) / n
    num = sum((i - x_mean) * (y - y_mean) for i, y in enumerate(values))
    den = sum((i - x_mean) ** 2 for i in range(n))
    return num / den if den else 0.0


def calculate_completion_rate(completed_count: int, planned_count: int) -> float:
    """Completed / planned as a percentage, capped at 100. 0 when nothing was planned."""
    if planned_count <= 0:
        return 0.0
    return round(_clamp(completed_count / planned_count * 100), 1)


def calculate_consistency_score(
    workout_dates: Sequence[date],
    completed_count: int,
    planned_count: int,
) -> float:
    """
    Regularity of training dates blended with frequency.

    Regularity is 100 * (1 - coefficient of variation of the day gaps between
    distinct training dates). Fewer than two distinct dates gives the neutral
    regularity (50). Without a planned count, regularity stands alone.
    """
    distinct = sorted(set(workout_dates))
    if len(distinct) < 2:
        regularity = NEUTRAL_SCORE
    else:
        gaps = [(b - a).days for a, b in zip(distinct, distinct[1:])]
        mean_gap = sum(gaps) / len(gaps)
        cv = pstdev(gaps) / mean_gap if mean_gap else 1.0
        regularity = 100.0 * (1.0 - min(cv, 1.0))

    if planned_count <= 0:
        return round(_clamp(regularity), 1)

    frequency = _clamp(completed_count / planned_count * 100)
    score = (
        CONSISTENCY_REGULARITY_WEIGHT * regularity
        + CONSISTENCY_FREQUENCY_WEIGHT * frequency
    )
    return round(_clamp(score), 1)


def _rpe_level_score(mean_rpe: float) -> float:
    if mean_rpe <= READINESS_RPE_COMFORT_CEILING:
        return 100.0
    if mean_rpe < READINESS_RPE_HIGH:
        span = READINESS_RPE_HIGH - READINESS_RPE_COMFORT_CEILING
        return 100.0 - (mean_rpe - READINESS_RPE_COMFORT_CEILING) / span * (100.0 - READINESS_AT_HIGH_RPE)
    # 9 -> 20, 10 -> 0
    return READINESS_AT_HIGH_RPE - (mean_rpe - READINESS_RPE_HIGH) * READINESS_AT_HIGH_RPE


def calculate_readiness_score(
    rpe_series: Sequence[Optional[float]],
    perceived_difficulty: Sequence[Optional[float]] = (),
    energy_levels: Sequence[Optional[float]] = (),
) -> float:
    """
    Readiness from RPE level and trend.

    Moderate stable RPE (6-7) scores high; sustained RPE >= 9 or a rising RPE
    slope scores low. Perceived difficulty and energy, when logged, are
    blended in at READINESS_SUBJECTIVE_WEIGHT.

    Args:
        rpe_series: Per-session average RPE in chronological order
        perceived_difficulty: Per-session difficulty (1-10)
        energy_levels: Per-session energy (1-10)
    """
    rpes = _finite(rpe_series)
    rpe_score = None
    if rpes:
        escalation = max(0.0, _slope(rpes)) * READINESS_ESCALATION_PENALTY
        rpe_score = _clamp(_rpe_level_score(sum(rpes) / len(rpes)) - escalation)

    subjective_parts = []
    avg_difficulty = _mean(perceived_difficulty)
    if avg_difficulty is not None:
        subjective_parts.append(_clamp((10 - avg_difficulty) * 10))
    avg_energy = _mean(energy_levels)
    if avg_energy is not None:
        subjective_parts.append(_clamp(avg_energy * 10))
    subjective = sum(subjective_parts) / len(subjective_parts) if subjective_parts else None

    if rpe_score is None and subjective is None:
        return NEUTRAL_SCORE
    if rpe_score is None:
        score = subjective
    elif subjective is None:
        score = rpe_score
    else:
        score = (
            (1 - READINESS_SUBJECTIVE_WEIGHT) * rpe_score
            + READINESS_SUBJECTIVE_WEIGHT * subjective
        )
    return round(_clamp(score), 1)


def calculate_volume_progression(current_volume: float, previous_volume: float) -> float:
    """Percentage change in total volume. 0 when there is no previous volume."""
    if not previous_volume or previous_volume <= 0:
        return 0.0
    change = (current_volume - previous_volume) / previous_volume * 100
    return round(change, 1) if math.isfinite(change) else 0.0


def calculate_duration_compliance(logs: Sequence[WorkoutLogData]) -> Optional[float]:
    """Share of logs finished within tolerance of their planned duration, or None."""
    timed = [
        log for log in logs
        if log.planned_duration_minutes and log.planned_duration_minutes > 0
        and log.actual_duration_minutes is not None
    ]
    if not timed:
        return None
    compliant = sum(
        1 for log in timed
        if abs(log.actual_duration_minutes - log.planned_duration_minutes)
        / log.planned_duration_minutes <= DURATION_COMPLIANCE_TOLERANCE
    )
    return compliant / len(timed) * 100


def calculate_recovery_score(
    current_logs: Sequence[WorkoutLogData],
    previous_logs: Sequence[WorkoutLogData],
) -> float:
    """
    Recovery from the window-over-window change in volume and RPE.

    Rising RPE costs points, more so when volume rose too (overreaching).
    Falling RPE and volume growth at stable effort earn points. Without a
    previous window the score starts from neutral.
    """
    if previous_logs:
        score = RECOVERY_BASELINE
        current_volume = sum(_finite(log.total_volume for log in current_logs))
        previous_volume = sum(_finite(log.total_volume for log in previous_logs))
        volume_change = (
            calculate_volume_progression(current_volume, previous_volume)
            if previous_volume > 0 else None
        )

        current_rpe = _mean(log.avg_rpe for log in current_logs)
        previous_rpe = _mean(log.avg_rpe for log in previous_logs)
        rpe_delta = (
            current_rpe - previous_rpe
            if current_rpe is not None and previous_rpe is not None else None
        )

        if rpe_delta is not None and rpe_delta > 0:
            penalty = rpe_delta * RECOVERY_RPE_RISE_PENALTY
            if volume_change is not None and volume_change > RECOVERY_VOLUME_RISE_THRESHOLD_PCT:
                penalty *= RECOVERY_OVERREACH_MULTIPLIER
            score -= penalty
        else:
            if rpe_delta is not None and rpe_delta < 0:
                score += min(RECOVERY_RPE_DROP_BONUS_MAX, -rpe_delta * RECOVERY_RPE_DROP_BONUS)
            if volume_change is not None and volume_change > 0:
                score += min(RECOVERY_VOLUME_GAIN_BONUS_MAX, volume_change / 2)
    else:
        score = NEUTRAL_SCORE

    compliance = calculate_duration_compliance(current_logs)
    if compliance is not None:
        score = (1 - RECOVERY_DURATION_WEIGHT) * score + RECOVERY_DURATION_WEIGHT * compliance

    return round(_clamp(score), 1)


def analyze_performance(
    current_period_logs: Sequence[WorkoutLogData],
    previous_period_logs: Sequence[WorkoutLogData],
    planned_workout_count: int,
) -> PerformanceMetrics:
    """
    Compute performance metrics for the current analysis window.

    Args:
        current_period_logs: Workout logs in the analysis window
        previous_period_logs: Workout logs in the preceding window of equal length
        planned_workout_count: Workouts scheduled for the analysis window

    Returns:
        PerformanceMetrics with all scores in [0, 100]
    """
    completed = sorted(
        (log for log in current_period_logs if log.is_completed),
        key=lambda log: log.workout_date,
    )
    previous = [log for log in previous_period_logs if log.is_completed]

    rpe_average = _mean(log.avg_rpe for log in completed)
    current_volume = sum(_finite(log.total_volume for log in completed))
    previous_volume = sum(_finite(log.total_volume for log in previous))

    metrics = PerformanceMetrics(
        completion_rate=calculate_completion_rate(len(completed), planned_workout_count),
        consistency_score=calculate_consistency_score(
            [log.workout_date for log in completed],
            len(completed),
            planned_workout_count,
        ),
        readiness_score=calculate_readiness_score(
            [log.avg_rpe for log in completed],
            [log.perceived_difficulty for log in completed],
            [log.energy_level for log in completed],
        ),
        recovery_score=calculate_recovery_score(completed, previous),
        rpe_average=round(rpe_average, 2) if rpe_average is not None else None,
        volume_progression=calculate_volume_progression(current_volume, previous_volume),
    )

    logger.debug(
        "Performance analyzed",
        extra={
            "extra_fields": {
                "completed": len(completed),
                "planned": planned_workout_count,
                "completion_rate": metrics.completion_rate,
                "consistency_score": metrics.consistency_score,
                "readiness_score": metrics.readiness_score,
                "recovery_score": metrics.recovery_score,
            }
        },
    )
    return metrics
