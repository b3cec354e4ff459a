"""
Constants for adaptive plan progression.

Thresholds and coefficients here are tunable parameters, not business rules.
They exist here for type safety and documentation.
"""

from enum import Enum


class ProgressionAction(str, Enum):
    """Global direction for the next training block."""
    INCREASE = "increase"
    MAINTAIN = "maintain"
    DECREASE = "decrease"
    DELOAD = "deload"


class WorkoutStatus(str, Enum):
    """Workout log completion status."""
    COMPLETED = "completed"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"


class PlanStatus(str, Enum):
    """Workout plan (mesocycle) status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class ExerciseType(str, Enum):
    """Exercise modality family."""
    STRENGTH = "strength"
    CARDIO = "cardio"
    SWIMMING = "swimming"
    FLEXIBILITY = "flexibility"
    BODYWEIGHT = "bodyweight"
    PLYOMETRIC = "plyometric"
    SPORTS = "sports"


# Lifecycle: successor creation is the only way out of "active" besides pause.
PLAN_TRANSITIONS = {
    PlanStatus.ACTIVE: {PlanStatus.COMPLETED, PlanStatus.PAUSED},
    PlanStatus.PAUSED: {PlanStatus.ACTIVE},
    PlanStatus.COMPLETED: set(),
}


# ============ Performance analyzer ============

NEUTRAL_SCORE = 50.0
SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Consistency: blend of date regularity and frequency vs plan
CONSISTENCY_REGULARITY_WEIGHT = 0.5
CONSISTENCY_FREQUENCY_WEIGHT = 0.5

# Readiness: RPE level mapping
READINESS_RPE_COMFORT_CEILING = 7.0    # At or below -> 100
READINESS_RPE_HIGH = 9.0               # Maps to READINESS_AT_HIGH_RPE
READINESS_AT_HIGH_RPE = 20.0
READINESS_ESCALATION_PENALTY = 40.0    # Points per RPE unit/session of positive slope
READINESS_SUBJECTIVE_WEIGHT = 0.3

# Recovery: window-over-window comparison
RECOVERY_BASELINE = 75.0
RECOVERY_RPE_RISE_PENALTY = 20.0       # Points per RPE point of increase
RECOVERY_OVERREACH_MULTIPLIER = 1.5    # Applied when volume also rose
RECOVERY_VOLUME_RISE_THRESHOLD_PCT = 5.0
RECOVERY_RPE_DROP_BONUS = 10.0         # Points per RPE point of decrease
RECOVERY_RPE_DROP_BONUS_MAX = 15.0
RECOVERY_VOLUME_GAIN_BONUS_MAX = 10.0
RECOVERY_DURATION_WEIGHT = 0.2
DURATION_COMPLIANCE_TOLERANCE = 0.15   # Within 15% of planned duration


# ============ Progression recommender ============

DELOAD_RECOVERY_THRESHOLD = 40.0
DELOAD_RPE_THRESHOLD = 9.0
DELOAD_CONSISTENCY_THRESHOLD = 60.0

ADHERENCE_COMPLETION_THRESHOLD = 60.0
ADHERENCE_CONSISTENCY_THRESHOLD = 50.0

INCREASE_COMPLETION_THRESHOLD = 85.0
INCREASE_READINESS_THRESHOLD = 70.0
INCREASE_RECOVERY_THRESHOLD = 70.0

DECREASE_READINESS_THRESHOLD = 50.0
DECREASE_RECOVERY_THRESHOLD = 50.0

# (min, max) percentage deltas; magnitude grows with decision margin
INCREASE_VOLUME_RANGE = (5.0, 10.0)
INCREASE_INTENSITY_RANGE = (2.5, 5.0)
DELOAD_VOLUME_RANGE = (-15.0, -20.0)
DELOAD_INTENSITY_RANGE = (-15.0, -20.0)
DECREASE_VOLUME = -10.0
DECREASE_INTENSITY = -5.0

# Score points (or RPE tenths) at which a margin counts as decisive
CONFIDENCE_MARGIN_SCALE = 30.0
CONFIDENCE_FLOOR = 0.4
RPE_POINTS_PER_UNIT = 10.0

# Exercise-level progression
SET_COMPLETION_FOR_EXTRA_SET = 95.0
EXERCISE_MIN_WEIGHT_INCREASE = 2.5
LOCAL_WEIGHT_INCREASE_RANGE = (2.5, 5.0)
LOCAL_WEIGHT_DECREASE = -5.0
DEFAULT_TARGET_RPE = 8.0
LOW_RPE_FOR_EXTRA_REP = 7.0
HIGH_RPE_FOR_FEWER_REPS = 9.0
DELOAD_SET_REDUCTION = 0.3
DELOAD_MAX_SETS_REMOVED = 2


# ============ Plan regenerator / safety rules ============

WEIGHT_ROUNDING_INCREMENT = 0.5
REST_STEP_SECONDS = 15
REST_MAX_WHEN_LOADING = 300
REST_MIN_WHEN_UNLOADING = 30
WEIGHT_DROP_FOR_SHORTER_REST = -5.0
MIN_WORKOUT_DURATION_MINUTES = 20
MAX_WORKOUT_DURATION_MINUTES = 120

MAX_WORKOUT_VOLUME_CHANGE = 0.20       # +/-20% week over week
MAX_WEIGHT_INCREASE = 0.10             # +10% per step
MAX_SET_INCREASE_PER_EXERCISE = 2

BODYWEIGHT_EQUIPMENT_TAGS = {"bodyweight", "body weight", "body_weight", "none"}


# ============ Plan validator ============

MAX_REST_SECONDS = 600
SHORT_REST_SECONDS = 30
LOW_WORKOUT_VOLUME_SETS = 5
HIGH_WORKOUT_VOLUME_SETS = 30
LONG_WORKOUT_MINUTES = 90
HIGH_EXERCISE_SETS = 8


# ============ Cycle planner ============

CYCLE_STEP_RANGE = (0.05, 0.10)
CYCLE_WEIGHT_STEP = 0.025
CYCLE_DELOAD_VOLUME_FACTOR = 0.70
CYCLE_DELOAD_INTENSITY_RANGE = (0.15, 0.20)
CYCLE_WEEKS = 4
