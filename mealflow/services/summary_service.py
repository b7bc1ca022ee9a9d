"""
Calorie statistics and the home dashboard.

Meals count toward calorie totals only when they carry a nutrition estimate
with an energy value; other meals are skipped entirely (they add neither
calories nor a meal). Date ranges are inclusive of both end days.
"""

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealflow.config import settings
from mealflow.models.meal_record import MealRecord
from mealflow.services.health_stress_service import HealthStressService
from mealflow.services.meal_record_service import MealRecordService, day_bounds
from mealflow.services.nutrition_schemas import CamelModel
from mealflow.services.quality_protein_service import QualityProteinService

logger = logging.getLogger(__name__)

DEFAULT_DAILY_WINDOW_DAYS = 7


class CalorieStatistics(CamelModel):
    user_id: str
    start_time: datetime
    end_time: datetime
    total_calories: int
    meal_count: int
    average_calories_per_meal: float


class DailyCalories(CamelModel):
    day: date = Field(alias="date")
    calories: int
    meal_count: int


class DashboardData(CamelModel):
    user_id: str
    day: date = Field(alias="date")
    stress_score: int
    total_calories: int
    meal_count: int
    high_quality_proteins: List[str] = Field(default_factory=list)
    protein_summary: str


def _has_energy(meal: MealRecord) -> bool:
    return meal.nutrition is not None and meal.nutrition.energy_kcal is not None


def _tally(meals: Iterable[MealRecord]) -> Tuple[float, int]:
    """Sum of energy and number of meals that have an energy value."""
    counted = [meal.nutrition.energy_kcal for meal in meals if _has_energy(meal)]
    return sum(counted), len(counted)


def _round_kcal(value: float) -> int:
    return math.floor(value + 0.5)  # half-up


class SummaryService:
    """Read-only aggregations over a user's meal records."""

    @staticmethod
    def get_meals_between(
        db: Session, user_id: str, start_date: date, end_date: date
    ) -> List[MealRecord]:
        """A user's meals from start_date 00:00 up to the end of end_date, oldest first."""
        start, _ = day_bounds(start_date)
        _, end = day_bounds(end_date)
        return (
            db.query(MealRecord)
            .filter(
                MealRecord.user_id == user_id,
                MealRecord.eaten_at >= start,
                MealRecord.eaten_at < end,
            )
            .order_by(MealRecord.eaten_at.asc(), MealRecord.id.asc())
            .all()
        )

    @staticmethod
    def get_total_calories(
        db: Session,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CalorieStatistics:
        """
        Total energy a user logged over a date range.

        Args:
            db: Database session
            user_id: User ID
            start_date: First day (defaults to today)
            end_date: Last day, inclusive (defaults to today)

        Returns:
            Totals plus the per-meal average (0.0 when no meal counted)

        Raises:
            ValueError: if start_date is after end_date
        """
        today = date.today()
        start_date = start_date or today
        end_date = end_date or today
        if start_date > end_date:
            raise ValueError("startDate must not be after endDate")

        meals = SummaryService.get_meals_between(db, user_id, start_date, end_date)
        total, count = _tally(meals)

        logger.debug(
            "Calorie statistics: user_id=%s, range=%s..%s, meals=%d, kcal=%.1f",
            user_id,
            start_date,
            end_date,
            count,
            total,
        )
        return CalorieStatistics(
            user_id=user_id,
            start_time=datetime.combine(start_date, time.min),
            end_time=datetime.combine(end_date, time.max),
            total_calories=_round_kcal(total),
            meal_count=count,
            average_calories_per_meal=total / count if count else 0.0,
        )

    @staticmethod
    def get_daily_calories(
        db: Session,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[DailyCalories]:
        """
        Per-day calorie totals, one entry per day in ascending order.

        Days without meals are present with zero calories. The range defaults
        to the seven days ending today.

        Raises:
            ValueError: if start_date is after end_date
        """
        end_date = end_date or date.today()
        start_date = start_date or end_date - timedelta(days=DEFAULT_DAILY_WINDOW_DAYS - 1)
        if start_date > end_date:
            raise ValueError("startDate must not be after endDate")

        by_day: Dict[date, List[MealRecord]] = {}
        for meal in SummaryService.get_meals_between(db, user_id, start_date, end_date):
            by_day.setdefault(meal.eaten_at.date(), []).append(meal)

        days = []
        day = start_date
        while day <= end_date:
            total, count = _tally(by_day.get(day, []))
            days.append(DailyCalories(day=day, calories=_round_kcal(total), meal_count=count))
            day += timedelta(days=1)
        return days

    @staticmethod
    def get_dashboard_data(
        db: Session, user_id: str, day: Optional[date] = None
    ) -> DashboardData:
        """
        Home screen figures for one day.

        Each part degrades on its own: a failed stress score falls back to
        the default score and failed meal lookups to zero meals, so the
        dashboard always renders.
        """
        day = day or date.today()

        try:
            stress_score = HealthStressService(db).calculate_daily_score(user_id, day)
        except SQLAlchemyError:
            logger.exception(
                "Stress score unavailable for dashboard: user_id=%s, day=%s", user_id, day
            )
            stress_score = settings.default_stress_score

        try:
            meals = MealRecordService.get_meals_for_day(db, user_id, day)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Meals unavailable for dashboard: user_id=%s, day=%s", user_id, day)
            meals = []

        total, count = _tally(meals)
        proteins = QualityProteinService.merge_protein_lists(
            meal.nutrition.high_quality_proteins for meal in meals if meal.nutrition is not None
        )

        return DashboardData(
            user_id=user_id,
            day=day,
            stress_score=stress_score,
            total_calories=_round_kcal(total),
            meal_count=count,
            high_quality_proteins=proteins,
            protein_summary=QualityProteinService.generate_protein_summary(proteins),
        )
