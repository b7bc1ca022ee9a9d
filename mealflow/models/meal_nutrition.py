from sqlalchemy import JSON, Column, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship

from mealflow.database import Base


class MealNutrition(Base):
    """Nutrient estimate for a single meal record (one-to-one)."""

    __tablename__ = "meal_nutrition"

    meal_id = Column(
        Integer, ForeignKey("meal_records.id", ondelete="CASCADE"), primary_key=True
    )
    energy_kcal = Column(Float)
    protein_g = Column(Float)
    fat_g = Column(Float)
    carb_g = Column(Float)
    fiber_g = Column(Float)
    sodium_mg = Column(Float)
    sugar_g = Column(Float)
    sat_fat_g = Column(Float)
    high_quality_proteins = Column(JSON)  # e.g. ["egg", "sea bass"]

    # Relationships
    meal_record = relationship("MealRecord", back_populates="nutrition")
