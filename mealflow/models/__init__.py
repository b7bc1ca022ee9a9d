"""
Database models for MealFlow.

Import all models here so Alembic can detect them for migrations.
"""

from mealflow.database import Base
from mealflow.models.meal_record import MealRecord
from mealflow.models.meal_nutrition import MealNutrition
from mealflow.models.food_stress_score import FoodStressScore

__all__ = [
    "Base",
    "MealRecord",
    "MealNutrition",
    "FoodStressScore",
]
