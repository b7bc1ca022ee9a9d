"""API endpoints for logging analyzed meals."""
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from mealflow.api.dependencies import get_task_executor
from mealflow.config import settings
from mealflow.database import get_db
from mealflow.services.health_stress_service import HealthStressService
from mealflow.services.health_tags import HealthTagCalculator
from mealflow.services.impact_decision_service import ImpactDecision, ImpactDecisionService
from mealflow.services.meal_record_service import MealRecordService
from mealflow.services.nutrition_schemas import CamelModel, MealRecordRequest
from mealflow.services.task_executor_service import AsyncTaskExecutorService

router = APIRouter(prefix="/records", tags=["records"])


class MealRecordResponse(CamelModel):
    """Synchronous part of the upload response; asyncTasks are polled via /task."""

    record_id: int
    user_id: str
    health_score: int
    risk_level: str
    tags: List[str]
    decision: ImpactDecision
    stress_score: int
    async_tasks: Dict[str, str]


class MealRecordSummary(CamelModel):
    id: int
    eaten_at: str
    health_score: Optional[int]
    risk_level: Optional[str]
    is_balanced: Optional[bool]
    nutrition_summary: Optional[str]


@router.post("", response_model=MealRecordResponse)
def create_meal_record(
    request: MealRecordRequest = Body(...),
    db: Session = Depends(get_db),
    task_executor: AsyncTaskExecutorService = Depends(get_task_executor),
):
    """
    Log a meal from the food analyzer's output.

    Stores the record, classifies it, refreshes the day's stress score and
    starts the async analysis tasks. Returns without waiting for the tasks.
    """
    record = MealRecordService.save_meal_record(
        db,
        request,
        user_id=request.user_id,
        eaten_at=request.eaten_at,
        image_url=request.image_url,
        note=request.note,
    )

    ai_balanced = bool(request.is_balanced)
    tags = HealthTagCalculator.calc_meal_tags(
        request.nutrition, ai_balanced=ai_balanced, risk_level=record.risk_level
    )
    decision = ImpactDecisionService.decide(ai_balanced, tags)

    stress_score = HealthStressService(db).calculate_daily_score(
        record.user_id, record.eaten_at.date()
    )

    async_tasks = task_executor.start_async_tasks(request, record.user_id, record.id)

    return MealRecordResponse(
        record_id=record.id,
        user_id=record.user_id,
        health_score=record.health_score,
        risk_level=record.risk_level,
        tags=sorted(tag.value for tag in tags),
        decision=decision,
        stress_score=stress_score,
        async_tasks=async_tasks,
    )


@router.get("", response_model=List[MealRecordSummary])
def list_meal_records(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """User's meal records, newest first."""
    records = MealRecordService.get_user_meal_records(
        db, user_id or settings.default_user_id, limit=limit
    )
    return [_to_summary(r) for r in records]


@router.get("/{record_id}", response_model=MealRecordSummary)
def get_meal_record(record_id: int, db: Session = Depends(get_db)):
    record = MealRecordService.get_meal_record(db, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Meal record not found")

    return _to_summary(record)


def _to_summary(record) -> MealRecordSummary:
    return MealRecordSummary(
        id=record.id,
        eaten_at=record.eaten_at.isoformat(),
        health_score=record.health_score,
        risk_level=record.risk_level,
        is_balanced=record.is_balanced,
        nutrition_summary=record.nutrition_summary,
    )
