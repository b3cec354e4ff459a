"""
Workout Plan Progression API Router

Endpoints for:
- Regenerating the next week of a plan from logged performance
- Read-only weekly adjustment previews
- Pausing and resuming plans
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Union
from uuid import UUID

from core.database import get_db
from schemas import (
    InsufficientDataResponse,
    PlanStatusResponse,
    RegeneratePlanRequest,
    RegeneratePlanResponse,
    WeeklyAdjustmentsResponse,
)
from services import plan_store
from services.plan_regeneration import PlanRegenerationService

router = APIRouter(prefix="/workouts", tags=["Workout Plans"])


@router.post(
    "/regenerate-plan",
    response_model=Union[RegeneratePlanResponse, InsufficientDataResponse],
)
def regenerate_plan(
    request: RegeneratePlanRequest,
    db: Session = Depends(get_db),
):
    """
    Regenerate a plan from the user's recent performance.

    The current plan is completed and replaced by a successor carrying
    previous_plan_id. With trainingStyle set, exercises are swapped for that
    modality instead of progressed. Returns hasData=false without changing
    anything when no workouts were completed in the analysis window.
    """
    return PlanRegenerationService(db).regenerate(request)


@router.get(
    "/weekly-adjustments",
    response_model=Union[WeeklyAdjustmentsResponse, InsufficientDataResponse],
)
def weekly_adjustments(
    user_id: UUID = Query(..., alias="userId"),
    plan_id: UUID = Query(..., alias="planId"),
    weeks: int = Query(1, ge=1, le=12),
    db: Session = Depends(get_db),
):
    """Preview next week's adjustments without saving anything."""
    return PlanRegenerationService(db).weekly_adjustments(user_id, plan_id, weeks)


@router.post("/plans/{plan_id}/pause", response_model=PlanStatusResponse)
def pause_plan(
    plan_id: UUID,
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
):
    """Pause an active plan."""
    plan = plan_store.pause_plan(db, plan_id, user_id)
    return PlanStatusResponse(
        message=f"Plan paused at week {plan.mesocycle_week}. You can resume anytime.",
        plan_id=str(plan.id),
        status=plan.status,
    )


@router.post("/plans/{plan_id}/resume", response_model=PlanStatusResponse)
def resume_plan(
    plan_id: UUID,
    user_id: UUID = Query(..., alias="userId"),
    db: Session = Depends(get_db),
):
    """Resume a paused plan. Refused while another plan is active."""
    plan = plan_store.resume_plan(db, plan_id, user_id)
    return PlanStatusResponse(
        message="Plan resumed. Continue where you left off.",
        plan_id=str(plan.id),
        status=plan.status,
    )
