"""Business logic for meal record persistence."""

import json
import logging
import math
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from mealflow.config import settings
from mealflow.models.meal_nutrition import MealNutrition
from mealflow.models.meal_record import MealRecord
from mealflow.services.nutrition_schemas import FoodAnalysis, NutrientSnapshot
from mealflow.services.quality_protein_service import QualityProteinService

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) datetime window covering a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def nutrition_to_snapshot(nutrition: Optional[MealNutrition]) -> Optional[NutrientSnapshot]:
    """Convert a stored MealNutrition row into an immutable snapshot."""
    if nutrition is None:
        return None
    return NutrientSnapshot(
        energy_kcal=nutrition.energy_kcal,
        protein_g=nutrition.protein_g,
        fat_g=nutrition.fat_g,
        carb_g=nutrition.carb_g,
        fiber_g=nutrition.fiber_g,
        sodium_mg=nutrition.sodium_mg,
        sugar_g=nutrition.sugar_g,
        sat_fat_g=nutrition.sat_fat_g,
    )


class MealRecordService:
    """Service for meal record operations."""

    @staticmethod
    def save_meal_record(
        db: Session,
        analysis: FoodAnalysis,
        user_id: Optional[str] = None,
        eaten_at: Optional[datetime] = None,
        image_url: Optional[str] = None,
        note: Optional[str] = None,
    ) -> MealRecord:
        """
        Persist a meal record built from the food analyzer's output.

        Args:
            db: Database session
            analysis: Analyzer result (foods, confidence, nutrients)
            user_id: Owner (defaults to settings.default_user_id when blank)
            eaten_at: When the meal was eaten (defaults to now)
            image_url: Optional URL of the uploaded photo
            note: Optional free-text note

        Returns:
            Created MealRecord
        """
        health_score = MealRecordService.calculate_health_score(analysis)

        if eaten_at is not None and eaten_at.tzinfo is not None:
            # Day windows are computed on naive local time
            eaten_at = eaten_at.astimezone().replace(tzinfo=None)

        record = MealRecord(
            user_id=user_id if user_id and user_id.strip() else settings.default_user_id,
            eaten_at=eaten_at or datetime.now(),
            source_type="PHOTO" if image_url else "MANUAL",
            image_url=image_url,
            note=note,
            food_items=json.dumps(
                [food.model_dump(by_alias=True) for food in analysis.foods], ensure_ascii=False
            ),
            confidence=analysis.confidence,
            is_balanced=analysis.is_balanced,
            nutrition_summary=analysis.nutrition_summary,
            health_score=health_score,
            risk_level=MealRecordService.calculate_risk_level(health_score),
            ai_result_json=analysis.model_dump_json(by_alias=True),
        )

        if analysis.nutrition is not None:
            n = analysis.nutrition
            proteins = analysis.high_quality_proteins or (
                QualityProteinService.identify_high_quality_proteins(
                    food.name for food in analysis.foods
                )
            )
            record.nutrition = MealNutrition(
                energy_kcal=n.energy_kcal,
                protein_g=n.protein_g,
                fat_g=n.fat_g,
                carb_g=n.carb_g,
                fiber_g=n.fiber_g,
                sodium_mg=n.sodium_mg,
                sugar_g=n.sugar_g,
                sat_fat_g=n.sat_fat_g,
                high_quality_proteins=proteins or None,
            )

        db.add(record)
        db.commit()
        db.refresh(record)

        logger.info(
            "Meal record saved: id=%s, user_id=%s, health_score=%s, risk_level=%s",
            record.id,
            record.user_id,
            record.health_score,
            record.risk_level,
        )
        return record

    @staticmethod
    def get_meal_record(db: Session, record_id: int) -> Optional[MealRecord]:
        """Get a meal record by ID."""
        return db.query(MealRecord).filter(MealRecord.id == record_id).first()

    @staticmethod
    def get_user_meal_records(
        db: Session, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[MealRecord]:
        """Get a user's meal records, newest first."""
        return (
            db.query(MealRecord)
            .filter(MealRecord.user_id == user_id)
            .order_by(MealRecord.eaten_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def get_meals_for_day(db: Session, user_id: str, day: date) -> List[MealRecord]:
        """Get a user's meals eaten on the given day, oldest first."""
        start, end = day_bounds(day)
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
    def count_meal_records(db: Session, user_id: str) -> int:
        return db.query(MealRecord).filter(MealRecord.user_id == user_id).count()

    @staticmethod
    def get_balanced_meal_ratio(db: Session, user_id: str) -> float:
        """Share (0-1) of the user's meals the analyzer judged balanced."""
        total = MealRecordService.count_meal_records(db, user_id)
        if total == 0:
            return 0.0
        balanced = (
            db.query(MealRecord)
            .filter(MealRecord.user_id == user_id, MealRecord.is_balanced.is_(True))
            .count()
        )
        return balanced / total

    @staticmethod
    def calculate_health_score(analysis: FoodAnalysis) -> int:
        """
        Record-level health score from analyzer confidence and balance.

        confidence * 50 plus 50 when balanced, clamped to 0-100.
        Missing confidence is read as 0.5.
        """
        confidence = analysis.confidence if analysis.confidence is not None else 0.5
        balance_bonus = 50 if analysis.is_balanced else 0
        total = math.floor(confidence * 50 + balance_bonus + 0.5)  # half-up
        return max(0, min(100, total))

    @staticmethod
    def calculate_risk_level(health_score: int) -> str:
        if health_score >= 70:
            return "LOW"
        if health_score >= 40:
            return "MEDIUM"
        return "HIGH"
