"""Home screen endpoints: dashboard, calorie totals and the stress score."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from mealflow.api.health_stress import HealthStressScoreResponse, get_health_stress_score
from mealflow.config import settings
from mealflow.database import get_db
from mealflow.services.summary_service import CalorieStatistics, DashboardData, SummaryService

router = APIRouter(prefix="/home", tags=["home"])

router.add_api_route(
    "/stress-score",
    get_health_stress_score,
    methods=["GET"],
    response_model=HealthStressScoreResponse,
)


@router.get("/dashboard", response_model=DashboardData)
def get_dashboard(
    user_id: Optional[str] = Query(None, alias="userId"),
    target_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    """Stress score, calories, meal count and protein sources for a day (default: today)."""
    return SummaryService.get_dashboard_data(
        db, user_id or settings.default_user_id, target_date or date.today()
    )


@router.get("/calories", response_model=CalorieStatistics)
def get_total_calories(
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """Total calories over [startDate, endDate]; both default to today."""
    try:
        return SummaryService.get_total_calories(
            db, user_id or settings.default_user_id, start_date, end_date
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
