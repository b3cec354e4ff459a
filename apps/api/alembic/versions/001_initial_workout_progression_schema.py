"""initial workout progression schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user_profile',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('experience_level', sa.Text(), nullable=True),
        sa.Column('available_equipment', sa.JSON(), nullable=False),
        sa.Column('weekly_workout_goal', sa.Integer(), nullable=True),
        sa.Column('training_style', sa.Text(), nullable=True),
    )

    op.create_table(
        'exercise_library',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('exercise_type', sa.Text(), nullable=False, server_default='strength'),
        sa.Column('primary_muscles', sa.JSON(), nullable=False),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('training_modality', sa.Text(), nullable=True),
        sa.Column('difficulty', sa.Text(), nullable=True),
        sa.Column('recommended_sets_min', sa.Integer(), nullable=True),
        sa.Column('recommended_reps_min', sa.Integer(), nullable=True),
        sa.Column('recommended_reps_max', sa.Integer(), nullable=True),
        sa.Column('recommended_rest_seconds_min', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint(
            "exercise_type IN ('strength', 'cardio', 'swimming', 'flexibility', 'bodyweight', 'plyometric', 'sports')",
            name='ck_exercise_library_type',
        ),
    )
    op.create_index('ix_exercise_library_training_modality', 'exercise_library', ['training_modality'])

    op.create_table(
        'workout_plan',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('plan_name', sa.Text(), nullable=False),
        sa.Column('plan_type', sa.Text(), nullable=True),
        sa.Column('split_pattern', sa.Text(), nullable=True),
        sa.Column('weeks_duration', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('days_per_week', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('mesocycle_week', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.Text(), nullable=False, server_default='active'),
        sa.Column('previous_plan_id', sa.Uuid(), sa.ForeignKey('workout_plan.id'), nullable=True),
        sa.Column('generation_prompt', sa.Text(), nullable=True),
        sa.Column('ai_model_version', sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('active', 'completed', 'paused')", name='ck_workout_plan_status'),
    )
    op.create_index('ix_workout_plan_user_id', 'workout_plan', ['user_id'])
    op.create_index('ix_workout_plan_status', 'workout_plan', ['status'])
    # At most one active plan per user
    op.create_index(
        'uq_workout_plan_one_active_per_user',
        'workout_plan',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'plan_workout',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('plan_id', sa.Uuid(), sa.ForeignKey('workout_plan.id', ondelete='CASCADE'), nullable=False),
        sa.Column('workout_name', sa.Text(), nullable=False),
        sa.Column('workout_type', sa.Text(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('estimated_duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('target_muscle_groups', sa.JSON(), nullable=False),
        sa.Column('target_volume_sets', sa.Integer(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_plan_workout_plan_id', 'plan_workout', ['plan_id'])

    op.create_table(
        'plan_exercise',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('plan_workout_id', sa.Uuid(), sa.ForeignKey('plan_workout.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exercise_id', sa.Uuid(), sa.ForeignKey('exercise_library.id'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('target_sets', sa.Integer(), nullable=False),
        sa.Column('target_reps_min', sa.Integer(), nullable=False),
        sa.Column('target_reps_max', sa.Integer(), nullable=False),
        sa.Column('target_weight', sa.Float(), nullable=True),
        sa.Column('rest_seconds', sa.Integer(), nullable=False, server_default='90'),
        sa.Column('target_rpe', sa.Float(), nullable=True),
        sa.Column('tempo', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('target_sets >= 1', name='ck_plan_exercise_sets'),
        sa.CheckConstraint('target_reps_min <= target_reps_max', name='ck_plan_exercise_rep_range'),
    )
    op.create_index('ix_plan_exercise_plan_workout_id', 'plan_exercise', ['plan_workout_id'])

    op.create_table(
        'workout_log',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('plan_workout_id', sa.Uuid(), sa.ForeignKey('plan_workout.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('workout_date', sa.Date(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='in_progress'),
        sa.Column('actual_duration_minutes', sa.Float(), nullable=True),
        sa.Column('planned_duration_minutes', sa.Float(), nullable=True),
        sa.Column('total_sets_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_volume', sa.Float(), nullable=False, server_default='0'),
        sa.Column('avg_rpe', sa.Float(), nullable=True),
        sa.Column('perceived_difficulty', sa.Integer(), nullable=True),
        sa.Column('energy_level', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint(
            "status IN ('completed', 'skipped', 'in_progress')",
            name='ck_workout_log_status',
        ),
    )
    op.create_index('ix_workout_log_user_date', 'workout_log', ['user_id', 'workout_date'])

    op.create_table(
        'exercise_log',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('workout_log_id', sa.Uuid(), sa.ForeignKey('workout_log.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exercise_id', sa.Uuid(), sa.ForeignKey('exercise_library.id'), nullable=False),
        sa.Column('plan_exercise_id', sa.Uuid(), sa.ForeignKey('plan_exercise.id', ondelete='SET NULL'), nullable=True),
        sa.Column('exercise_type', sa.Text(), nullable=False, server_default='strength'),
        sa.Column('reps', sa.JSON(), nullable=False),
        sa.Column('weights', sa.JSON(), nullable=False),
        sa.Column('rpes', sa.JSON(), nullable=False),
        sa.Column('sets_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_volume', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_weight', sa.Float(), nullable=False, server_default='0'),
        sa.Column('avg_rpe', sa.Float(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('distance_meters', sa.Float(), nullable=True),
        sa.Column('avg_heart_rate', sa.Integer(), nullable=True),
        sa.Column('swim_laps', sa.Integer(), nullable=True),
        sa.Column('hold_seconds', sa.Integer(), nullable=True),
    )
    op.create_index('ix_exercise_log_workout_log_id', 'exercise_log', ['workout_log_id'])


def downgrade() -> None:
    op.drop_index('ix_exercise_log_workout_log_id', table_name='exercise_log')
    op.drop_table('exercise_log')
    op.drop_index('ix_workout_log_user_date', table_name='workout_log')
    op.drop_table('workout_log')
    op.drop_index('ix_plan_exercise_plan_workout_id', table_name='plan_exercise')
    op.drop_table('plan_exercise')
    op.drop_index('ix_plan_workout_plan_id', table_name='plan_workout')
    op.drop_table('plan_workout')
    op.drop_index('uq_workout_plan_one_active_per_user', table_name='workout_plan')
    op.drop_index('ix_workout_plan_status', table_name='workout_plan')
    op.drop_index('ix_workout_plan_user_id', table_name='workout_plan')
    op.drop_table('workout_plan')
    op.drop_index('ix_exercise_library_training_modality', table_name='exercise_library')
    op.drop_table('exercise_library')
    op.drop_table('user_profile')
