from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from mealflow.database import Base


class MealRecord(Base):
    """A logged meal with the food-recognition verdict attached."""

    __tablename__ = "meal_records"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False)
    eaten_at = Column(DateTime, nullable=False)
    source_type = Column(String(20), nullable=False, default="PHOTO")  # PHOTO or MANUAL
    image_url = Column(String(512))
    health_score = Column(Integer)
    risk_level = Column(String(20))  # LOW, MEDIUM, HIGH
    note = Column(String(255))
    ai_result_json = Column(Text)  # Full analyzer payload for debugging
    food_items = Column(Text)  # JSON list of recognised foods
    confidence = Column(Float)
    is_balanced = Column(Boolean)
    nutrition_summary = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    nutrition = relationship(
        "MealNutrition",
        back_populates="meal_record",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="joined",
    )

    __table_args__ = (
        Index("idx_meal_records_user_id", "user_id"),
        Index("idx_meal_records_eaten_at", "eaten_at"),
        Index("idx_meal_records_health_score", "health_score"),
    )

    def __repr__(self):
        return f"<MealRecord(id={self.id}, user_id={self.user_id}, eaten_at={self.eaten_at})>"
