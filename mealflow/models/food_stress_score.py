"""FoodStressScore model for the per-user daily stress score."""
from sqlalchemy import Column, Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from mealflow.database import Base


class FoodStressScore(Base):
    """One row per (user, day) holding the folded 0-100 stress score."""

    __tablename__ = "food_stress_scores"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False)
    score_date = Column(Date, nullable=False)
    score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "score_date", name="uq_food_stress_scores_user_date"),
    )

    def __repr__(self):
        return f"<FoodStressScore(user_id={self.user_id}, score_date={self.score_date}, score={self.score})>"
