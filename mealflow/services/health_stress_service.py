"""
Daily food stress score.

Folds every meal a user ate on a given day (oldest first) into a 0-100
score that starts at 40. Each meal moves the score according to how many
risk tags outweigh protective tags; the running value is clamped after every
meal. The result is upserted per (user, day).
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealflow.config import settings
from mealflow.models.food_stress_score import FoodStressScore
from mealflow.services.health_tags import HealthTagCalculator, NutritionTag
from mealflow.services.meal_record_service import MealRecordService, nutrition_to_snapshot

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100

# Only the HIGH_* bands count as risk; VERY_HIGH_* bands are not listed.
RISK_TAGS = frozenset(
    {
        NutritionTag.HIGH_SODIUM,
        NutritionTag.HIGH_SUGAR,
        NutritionTag.LOW_FIBER,
        NutritionTag.HIGH_SAT_FAT,
        NutritionTag.HIGH_ENERGY_DENSE,
        NutritionTag.PROCESSED_MEAT,
        NutritionTag.DEEP_FRIED,
        NutritionTag.SUGARY_DRINK,
        NutritionTag.GENERIC_HIGH_RISK,
    }
)

PROTECTIVE_TAGS = frozenset(
    {
        NutritionTag.HIGH_FIBER_MEAL,
        NutritionTag.VEGETABLE_RICH,
        NutritionTag.LEAN_PROTEIN,
        NutritionTag.BALANCED_MEAL,
    }
)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class HealthStressService:
    """Computes and stores the per-user daily stress score."""

    def __init__(self, db: Session):
        self.db = db

    def calculate_daily_score(self, user_id: str, day: date) -> int:
        """
        Recompute and persist the user's stress score for one day.

        Args:
            user_id: User ID
            day: Calendar day to score

        Returns:
            Score between 0 and 100 (default when no meals were logged)

        Raises:
            SQLAlchemyError: if the score could not be stored
        """
        meals = MealRecordService.get_meals_for_day(self.db, user_id, day)

        score = settings.default_stress_score
        for meal in meals:
            tags = HealthTagCalculator.calc_meal_tags(
                nutrition_to_snapshot(meal.nutrition),
                ai_balanced=meal.is_balanced,
                risk_level=meal.risk_level,
            )
            score = self.clamp(score + self.calculate_delta_by_tags(tags))

        logger.debug(
            "Stress score folded: user_id=%s, day=%s, meals=%d, score=%d",
            user_id,
            day,
            len(meals),
            score,
        )
        return self._save_or_update_score(user_id, day, score)

    def get_score(self, user_id: str, day: date) -> Optional[int]:
        """Stored score for a user-day, or None if it was never computed."""
        row = (
            self.db.query(FoodStressScore)
            .filter(FoodStressScore.user_id == user_id, FoodStressScore.score_date == day)
            .first()
        )
        return row.score if row else None

    @staticmethod
    def calculate_delta_by_tags(tags: Iterable[NutritionTag]) -> int:
        """
        Score change caused by one meal.

        net_risk = risk tags - protective tags:
        >=3 => +20, 2 => +15, 1 => +10, 0 => 0, -1/-2 => -10, <=-3 => -20
        """
        tags = set(tags)
        net_risk = len(tags & RISK_TAGS) - len(tags & PROTECTIVE_TAGS)

        if net_risk >= 3:
            return 20
        if net_risk == 2:
            return 15
        if net_risk == 1:
            return 10
        if net_risk == 0:
            return 0
        if net_risk >= -2:
            return -10
        return -20

    @staticmethod
    def clamp(score: int) -> int:
        return max(MIN_SCORE, min(MAX_SCORE, score))

    def _save_or_update_score(self, user_id: str, day: date, score: int) -> int:
        """Atomically insert or overwrite the (user, day) row."""
        try:
            insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(FoodStressScore).values(
                    user_id=user_id, score_date=day, score=score
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "score_date"],
                    set_={"score": score, "updated_at": func.now()},
                )
                self.db.execute(stmt)
            else:
                existing = (
                    self.db.query(FoodStressScore)
                    .filter(
                        FoodStressScore.user_id == user_id,
                        FoodStressScore.score_date == day,
                    )
                    .with_for_update()
                    .first()
                )
                if existing:
                    existing.score = score
                else:
                    self.db.add(FoodStressScore(user_id=user_id, score_date=day, score=score))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to store stress score: user_id=%s, day=%s", user_id, day
            )
            raise

        logger.info("Stress score stored: user_id=%s, day=%s, score=%d", user_id, day, score)
        return score
