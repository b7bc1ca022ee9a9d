"""Daily food stress score endpoint."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from mealflow.config import settings
from mealflow.database import get_db
from mealflow.services.health_stress_service import HealthStressService
from mealflow.services.nutrition_schemas import CamelModel

router = APIRouter(prefix="/health", tags=["health"])


class HealthStressScoreResponse(CamelModel):
    user_id: str
    score_date: date = Field(alias="date")
    score: int


@router.get("/stress-score", response_model=HealthStressScoreResponse)
def get_health_stress_score(
    user_id: Optional[str] = Query(None, alias="userId"),
    target_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    """Recompute and return the user's stress score for a day (default: today)."""
    target_user_id = user_id or settings.default_user_id
    target_date = target_date or date.today()

    score = HealthStressService(db).calculate_daily_score(target_user_id, target_date)
    return HealthStressScoreResponse(user_id=target_user_id, score_date=target_date, score=score)
