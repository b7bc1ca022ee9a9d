"""
Pydantic models for nutrient data exchanged with the food analyzer.

The analyzer (external vision model) produces a FoodAnalysis per uploaded
photo; its nutrient block is the NutrientSnapshot consumed by the tag
calculator. Units: kcal for energy, mg for sodium, g for everything else.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NutrientSnapshot(CamelModel):
    model_config = ConfigDict(frozen=True)

    energy_kcal: Optional[float] = None
    protein_g: Optional[float] = None
    fat_g: Optional[float] = None
    carb_g: Optional[float] = None
    fiber_g: Optional[float] = None
    sodium_mg: Optional[float] = None
    sugar_g: Optional[float] = None
    sat_fat_g: Optional[float] = None

    def value(self, field: str) -> float:
        """Numeric value of a nutrient, with missing data read as 0.0."""
        raw = getattr(self, field)
        return float(raw) if raw is not None else 0.0


class NutritionRatio(CamelModel):
    """Share of the daily guideline amount covered by one meal."""

    sodium_ratio: float = 0.0
    sugar_ratio: float = 0.0
    sat_fat_ratio: float = 0.0
    fiber_ratio: float = 0.0


# --- Food recognition output (analyze upload) ---


class FoodItem(CamelModel):
    name: str
    portion: str = ""
    energy_kcal: Optional[float] = None


class FoodAnalysis(CamelModel):
    foods: list[FoodItem] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    is_balanced: Optional[bool] = None
    nutrition_summary: Optional[str] = None
    nutrition: Optional[NutrientSnapshot] = None
    high_quality_proteins: list[str] = Field(default_factory=list)


class MealRecordRequest(FoodAnalysis):
    """Body of POST /records: analyzer output plus logging metadata."""

    user_id: Optional[str] = None
    eaten_at: Optional[datetime] = None
    image_url: Optional[str] = None
    note: Optional[str] = None
