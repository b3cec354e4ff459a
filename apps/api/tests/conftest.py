"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database built by the Alembic
migrations. Every table is emptied after each test, so nothing leaks
between tests.
"""
import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Must be set before core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "text")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from models import PlanExercise, PlanWorkout, UserProfile, WorkoutPlan  # noqa: E402
from tests.progression_helpers import TODAY, make_exercise  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _ensure_db_schema_is_at_head():
    """Build the schema from the Alembic migrations, not from the models."""
    try:
        from alembic import command
        from alembic.config import Config

        api_root = Path(__file__).resolve().parents[1]
        cfg = Config(str(api_root / "alembic.ini"))
        # Alembic's script_location in alembic.ini is relative ("alembic")
        # so we set it explicitly.
        cfg.set_main_option("script_location", str(api_root / "alembic"))
        with engine.begin() as connection:
            cfg.attributes["connection"] = connection
            command.upgrade(cfg, "head")
    except Exception as e:
        # Tests should fail loudly if migrations cannot be applied.
        raise RuntimeError(f"Failed to upgrade DB to Alembic head: {e}") from e


@pytest.fixture(scope="function")
def db_session():
    """Session for one test; all rows are deleted afterwards."""
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from main import app

    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)


# ============ Builders ============

@pytest.fixture
def user(db_session):
    profile = UserProfile(
        display_name="Test Lifter",
        experience_level="intermediate",
        available_equipment=["barbell", "dumbbells", "bench"],
        weekly_workout_goal=3,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def strength_exercises(db_session):
    exercises = {
        "bench": make_exercise(db_session, "Bench Press", ["chest"], ["barbell", "bench"]),
        "row": make_exercise(db_session, "Barbell Row", ["back"], ["barbell"]),
        "squat": make_exercise(db_session, "Back Squat", ["quads"], ["barbell"]),
    }
    db_session.commit()
    return exercises


@pytest.fixture
def active_plan(db_session, user, strength_exercises):
    """Two-workout upper/lower plan in week 1 of a 4-week mesocycle."""
    plan = WorkoutPlan(
        user_id=user.id,
        plan_name="Upper Lower Base",
        plan_type="hypertrophy",
        split_pattern="upper_lower",
        weeks_duration=4,
        days_per_week=2,
        start_date=TODAY - timedelta(days=7),
        end_date=TODAY + timedelta(days=21),
        mesocycle_week=1,
        status="active",
    )
    upper = PlanWorkout(
        workout_name="Upper A",
        workout_type="upper",
        day_of_week=0,
        week_number=1,
        estimated_duration_minutes=60,
        target_muscle_groups=["chest", "back"],
        target_volume_sets=8,
    )
    upper.exercises.append(PlanExercise(
        exercise_id=strength_exercises["bench"].id, order_index=0,
        target_sets=4, target_reps_min=8, target_reps_max=10, target_weight=100.0, rest_seconds=120,
    ))
    upper.exercises.append(PlanExercise(
        exercise_id=strength_exercises["row"].id, order_index=1,
        target_sets=4, target_reps_min=8, target_reps_max=10, target_weight=80.0, rest_seconds=90,
    ))
    lower = PlanWorkout(
        workout_name="Lower A",
        workout_type="lower",
        day_of_week=3,
        week_number=1,
        estimated_duration_minutes=50,
        target_muscle_groups=["quads"],
        target_volume_sets=5,
    )
    lower.exercises.append(PlanExercise(
        exercise_id=strength_exercises["squat"].id, order_index=0,
        target_sets=5, target_reps_min=5, target_reps_max=8, target_weight=120.0, rest_seconds=180,
    ))
    plan.workouts.extend([upper, lower])
    db_session.add(plan)
    db_session.commit()
    return plan
