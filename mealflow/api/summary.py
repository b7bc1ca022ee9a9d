"""Summary endpoints over a range of days."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from mealflow.config import settings
from mealflow.database import get_db
from mealflow.services.summary_service import DailyCalories, SummaryService

router = APIRouter(prefix="/summary", tags=["summary"])

MAX_RANGE_DAYS = 366


@router.get("/calories/daily", response_model=List[DailyCalories])
def get_daily_calories(
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """
    Calories per day, oldest first.

    Defaults to the seven days ending today; empty days report zero.
    """
    end_date = end_date or date.today()
    if start_date and (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400, detail=f"Date range must not exceed {MAX_RANGE_DAYS} days"
        )

    try:
        return SummaryService.get_daily_calories(
            db, user_id or settings.default_user_id, start_date, end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
