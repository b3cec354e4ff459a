from sqlalchemy import Column, Integer, Boolean, CheckConstraint, Float, Date, DateTime, ForeignKey, Text, Index, JSON, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import uuid


class UserProfile(Base):
    """
    Training profile for a user.

    available_equipment is a list of lowercase equipment tags
    (e.g. ["dumbbells", "barbell", "bench"]). An empty list means
    bodyweight only.
    """
    __tablename__ = "user_profile"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    display_name = Column(Text, nullable=True)
    experience_level = Column(Text, nullable=True)  # 'beginner', 'intermediate', 'advanced'
    available_equipment = Column(JSON, nullable=False, default=list)
    weekly_workout_goal = Column(Integer, nullable=True)
    training_style = Column(Text, nullable=True)  # Preferred modality, e.g. 'strength', 'yoga'

    plans = relationship("WorkoutPlan", back_populates="user")


class Exercise(Base):
    """Exercise library entry."""
    __tablename__ = "exercise_library"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=True)  # 'push', 'pull', 'legs', 'core', ...
    exercise_type = Column(Text, default="strength", nullable=False)
    primary_muscles = Column(JSON, nullable=False, default=list)
    equipment = Column(JSON, nullable=False, default=list)  # Empty = no equipment needed
    training_modality = Column(Text, nullable=True, index=True)  # 'strength', 'hypertrophy', 'yoga', ...
    difficulty = Column(Text, nullable=True)

    # Defaults used when the exercise is swapped into a plan
    recommended_sets_min = Column(Integer, nullable=True)
    recommended_reps_min = Column(Integer, nullable=True)
    recommended_reps_max = Column(Integer, nullable=True)
    recommended_rest_seconds_min = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "exercise_type IN ('strength', 'cardio', 'swimming', 'flexibility', 'bodyweight', 'plyometric', 'sports')",
            name='ck_exercise_library_type',
        ),
    )


class WorkoutPlan(Base):
    """
    Mesocycle prescription for a user.

    Plans form an append-only lineage through previous_plan_id. Creating a
    successor completes the predecessor in the same transaction, so at most
    one plan per user is active at a time (enforced by a partial unique index).
    """
    __tablename__ = "workout_plan"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user_profile.id"), nullable=False)  # Index in __table_args__
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    plan_name = Column(Text, nullable=False)
    plan_type = Column(Text, nullable=True)  # e.g., 'hypertrophy', 'strength', 'general_fitness'
    split_pattern = Column(Text, nullable=True)  # e.g., 'upper_lower', 'push_pull_legs'
    weeks_duration = Column(Integer, default=4, nullable=False)
    days_per_week = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    mesocycle_week = Column(Integer, default=1, nullable=False)
    status = Column(Text, default="active", nullable=False)  # 'active', 'completed', 'paused'

    # Lineage and audit
    previous_plan_id = Column(Uuid(as_uuid=True), ForeignKey("workout_plan.id"), nullable=True)
    generation_prompt = Column(Text, nullable=True)  # e.g. "Regenerated based on performance: ..."
    ai_model_version = Column(Text, nullable=True)

    user = relationship("UserProfile", back_populates="plans")
    previous_plan = relationship("WorkoutPlan", remote_side=[id])
    workouts = relationship(
        "PlanWorkout",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by=lambda: [PlanWorkout.week_number, PlanWorkout.day_of_week],
    )

    __table_args__ = (
        Index("ix_workout_plan_user_id", "user_id"),
        Index("ix_workout_plan_status", "status"),
        Index(
            "uq_workout_plan_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        CheckConstraint(
            "status IN ('active', 'completed', 'paused')",
            name='ck_workout_plan_status',
        ),
    )


class PlanWorkout(Base):
    """One scheduled training day within a plan."""
    __tablename__ = "plan_workout"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id = Column(Uuid(as_uuid=True), ForeignKey("workout_plan.id", ondelete="CASCADE"), nullable=False, index=True)

    workout_name = Column(Text, nullable=False)  # e.g., "Upper Body A"
    workout_type = Column(Text, nullable=False)  # e.g., 'upper', 'lower', 'full_body'
    day_of_week = Column(Integer, nullable=False)  # 0=Monday, 6=Sunday
    week_number = Column(Integer, default=1, nullable=False)
    scheduled_date = Column(Date, nullable=True)
    estimated_duration_minutes = Column(Integer, default=60, nullable=False)
    target_muscle_groups = Column(JSON, nullable=False, default=list)
    target_volume_sets = Column(Integer, nullable=True)  # Sum of exercise sets
    completed = Column(Boolean, default=False, nullable=False)

    plan = relationship("WorkoutPlan", back_populates="workouts")
    exercises = relationship(
        "PlanExercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="PlanExercise.order_index",
    )


class PlanExercise(Base):
    """A prescribed exercise slot within a plan workout."""
    __tablename__ = "plan_exercise"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_workout_id = Column(Uuid(as_uuid=True), ForeignKey("plan_workout.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Uuid(as_uuid=True), ForeignKey("exercise_library.id"), nullable=False)

    order_index = Column(Integer, default=0, nullable=False)
    target_sets = Column(Integer, nullable=False)
    target_reps_min = Column(Integer, nullable=False)
    target_reps_max = Column(Integer, nullable=False)
    target_weight = Column(Float, nullable=True)  # Null for bodyweight/timed work
    rest_seconds = Column(Integer, default=90, nullable=False)
    target_rpe = Column(Float, nullable=True)
    tempo = Column(Text, nullable=True)  # e.g., "3-1-1-0"
    notes = Column(Text, nullable=True)  # Progression notes from regeneration

    workout = relationship("PlanWorkout", back_populates="exercises")
    exercise = relationship("Exercise")

    __table_args__ = (
        CheckConstraint("target_sets >= 1", name='ck_plan_exercise_sets'),
        CheckConstraint("target_reps_min <= target_reps_max", name='ck_plan_exercise_rep_range'),
    )


class WorkoutLog(Base):
    """A completed (or attempted) workout instance."""
    __tablename__ = "workout_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user_profile.id"), nullable=False)  # Index in __table_args__
    plan_workout_id = Column(Uuid(as_uuid=True), ForeignKey("plan_workout.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    workout_date = Column(Date, nullable=False)
    status = Column(Text, default="in_progress", nullable=False)  # 'completed', 'skipped', 'in_progress'
    actual_duration_minutes = Column(Float, nullable=True)
    planned_duration_minutes = Column(Float, nullable=True)
    total_sets_completed = Column(Integer, default=0, nullable=False)
    total_volume = Column(Float, default=0.0, nullable=False)  # sum(weight * reps)
    avg_rpe = Column(Float, nullable=True)
    perceived_difficulty = Column(Integer, nullable=True)  # 1-10
    energy_level = Column(Integer, nullable=True)  # 1-10
    notes = Column(Text, nullable=True)

    exercise_logs = relationship(
        "ExerciseLog",
        back_populates="workout_log",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_workout_log_user_date", "user_id", "workout_date"),
        CheckConstraint(
            "status IN ('completed', 'skipped', 'in_progress')",
            name='ck_workout_log_status',
        ),
    )


class ExerciseLog(Base):
    """
    One exercise's performance within a workout log.

    reps, weights and rpes are parallel per-set arrays with
    len == sets_completed.
    """
    __tablename__ = "exercise_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workout_log_id = Column(Uuid(as_uuid=True), ForeignKey("workout_log.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Uuid(as_uuid=True), ForeignKey("exercise_library.id"), nullable=False)
    plan_exercise_id = Column(Uuid(as_uuid=True), ForeignKey("plan_exercise.id", ondelete="SET NULL"), nullable=True)
    exercise_type = Column(Text, default="strength", nullable=False)

    reps = Column(JSON, nullable=False, default=list)
    weights = Column(JSON, nullable=False, default=list)
    rpes = Column(JSON, nullable=False, default=list)

    sets_completed = Column(Integer, default=0, nullable=False)
    total_volume = Column(Float, default=0.0, nullable=False)
    max_weight = Column(Float, default=0.0, nullable=False)
    avg_rpe = Column(Float, nullable=True)

    # Type-specific
    duration_seconds = Column(Integer, nullable=True)
    distance_meters = Column(Float, nullable=True)
    avg_heart_rate = Column(Integer, nullable=True)
    swim_laps = Column(Integer, nullable=True)
    hold_seconds = Column(Integer, nullable=True)

    workout_log = relationship("WorkoutLog", back_populates="exercise_logs")
