"""
Nutrition tag vocabulary and the rule-based tag calculator.

Every tag carries explicit metadata (family + severity) so downstream
classifiers never need to inspect tag names. Severity is the band word a
label leads with: HIGH_FIBER is HIGH even though high fiber is good, which is
what the decision table expects.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional, Set

from mealflow.services.nutrition_schemas import NutrientSnapshot, NutritionRatio

# Daily guideline amounts (WHO / Chinese dietary guidelines)
SODIUM_DAILY_LIMIT_MG = 2000.0
SUGAR_DAILY_LIMIT_G = 50.0
SAT_FAT_DAILY_LIMIT_G = 20.0
FIBER_DAILY_MIN_G = 25.0


class TagFamily(str, Enum):
    SODIUM = "SODIUM"
    SUGAR = "SUGAR"
    SAT_FAT = "SAT_FAT"
    FIBER = "FIBER"
    PROTECTIVE = "PROTECTIVE"
    RISK = "RISK"


THRESHOLD_FAMILIES = (TagFamily.SODIUM, TagFamily.SUGAR, TagFamily.SAT_FAT, TagFamily.FIBER)


class TagSeverity(str, Enum):
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    VERY_LOW = "VERY_LOW"
    NONE = "NONE"


class NutritionTag(str, Enum):
    # Sodium
    VERY_HIGH_SODIUM = "VERY_HIGH_SODIUM"
    HIGH_SODIUM = "HIGH_SODIUM"
    MEDIUM_SODIUM = "MEDIUM_SODIUM"
    LOW_SODIUM = "LOW_SODIUM"

    # Sugar
    VERY_HIGH_SUGAR = "VERY_HIGH_SUGAR"
    HIGH_SUGAR = "HIGH_SUGAR"
    MEDIUM_SUGAR = "MEDIUM_SUGAR"
    LOW_SUGAR = "LOW_SUGAR"

    # Saturated fat
    VERY_HIGH_SAT_FAT = "VERY_HIGH_SAT_FAT"
    HIGH_SAT_FAT = "HIGH_SAT_FAT"
    MEDIUM_SAT_FAT = "MEDIUM_SAT_FAT"
    LOW_SAT_FAT = "LOW_SAT_FAT"

    # Fiber
    VERY_LOW_FIBER = "VERY_LOW_FIBER"
    LOW_FIBER = "LOW_FIBER"
    MEDIUM_FIBER = "MEDIUM_FIBER"
    HIGH_FIBER = "HIGH_FIBER"

    # Protective
    HIGH_FIBER_MEAL = "HIGH_FIBER_MEAL"
    VEGETABLE_RICH = "VEGETABLE_RICH"
    LEAN_PROTEIN = "LEAN_PROTEIN"
    BALANCED_MEAL = "BALANCED_MEAL"

    # Risk (only some are emitted by the calculator)
    HIGH_ENERGY_DENSE = "HIGH_ENERGY_DENSE"
    PROCESSED_MEAT = "PROCESSED_MEAT"
    DEEP_FRIED = "DEEP_FRIED"
    SUGARY_DRINK = "SUGARY_DRINK"
    GENERIC_HIGH_RISK = "GENERIC_HIGH_RISK"

    @property
    def family(self) -> TagFamily:
        return TAG_METADATA[self].family

    @property
    def severity(self) -> TagSeverity:
        return TAG_METADATA[self].severity


class TagInfo(NamedTuple):
    family: TagFamily
    severity: TagSeverity


TAG_METADATA: Dict[NutritionTag, TagInfo] = {
    NutritionTag.VERY_HIGH_SODIUM: TagInfo(TagFamily.SODIUM, TagSeverity.VERY_HIGH),
    NutritionTag.HIGH_SODIUM: TagInfo(TagFamily.SODIUM, TagSeverity.HIGH),
    NutritionTag.MEDIUM_SODIUM: TagInfo(TagFamily.SODIUM, TagSeverity.MEDIUM),
    NutritionTag.LOW_SODIUM: TagInfo(TagFamily.SODIUM, TagSeverity.LOW),
    NutritionTag.VERY_HIGH_SUGAR: TagInfo(TagFamily.SUGAR, TagSeverity.VERY_HIGH),
    NutritionTag.HIGH_SUGAR: TagInfo(TagFamily.SUGAR, TagSeverity.HIGH),
    NutritionTag.MEDIUM_SUGAR: TagInfo(TagFamily.SUGAR, TagSeverity.MEDIUM),
    NutritionTag.LOW_SUGAR: TagInfo(TagFamily.SUGAR, TagSeverity.LOW),
    NutritionTag.VERY_HIGH_SAT_FAT: TagInfo(TagFamily.SAT_FAT, TagSeverity.VERY_HIGH),
    NutritionTag.HIGH_SAT_FAT: TagInfo(TagFamily.SAT_FAT, TagSeverity.HIGH),
    NutritionTag.MEDIUM_SAT_FAT: TagInfo(TagFamily.SAT_FAT, TagSeverity.MEDIUM),
    NutritionTag.LOW_SAT_FAT: TagInfo(TagFamily.SAT_FAT, TagSeverity.LOW),
    NutritionTag.VERY_LOW_FIBER: TagInfo(TagFamily.FIBER, TagSeverity.VERY_LOW),
    NutritionTag.LOW_FIBER: TagInfo(TagFamily.FIBER, TagSeverity.LOW),
    NutritionTag.MEDIUM_FIBER: TagInfo(TagFamily.FIBER, TagSeverity.MEDIUM),
    NutritionTag.HIGH_FIBER: TagInfo(TagFamily.FIBER, TagSeverity.HIGH),
    NutritionTag.HIGH_FIBER_MEAL: TagInfo(TagFamily.PROTECTIVE, TagSeverity.HIGH),
    NutritionTag.VEGETABLE_RICH: TagInfo(TagFamily.PROTECTIVE, TagSeverity.NONE),
    NutritionTag.LEAN_PROTEIN: TagInfo(TagFamily.PROTECTIVE, TagSeverity.NONE),
    NutritionTag.BALANCED_MEAL: TagInfo(TagFamily.PROTECTIVE, TagSeverity.NONE),
    NutritionTag.HIGH_ENERGY_DENSE: TagInfo(TagFamily.RISK, TagSeverity.HIGH),
    NutritionTag.PROCESSED_MEAT: TagInfo(TagFamily.RISK, TagSeverity.NONE),
    NutritionTag.DEEP_FRIED: TagInfo(TagFamily.RISK, TagSeverity.NONE),
    NutritionTag.SUGARY_DRINK: TagInfo(TagFamily.RISK, TagSeverity.NONE),
    NutritionTag.GENERIC_HIGH_RISK: TagInfo(TagFamily.RISK, TagSeverity.NONE),
}


def _band(value: float, bands, fallback: NutritionTag) -> NutritionTag:
    """Return the tag of the first (threshold, tag) pair with value >= threshold."""
    for threshold, tag in bands:
        if value >= threshold:
            return tag
    return fallback


SODIUM_BANDS = (
    (2000, NutritionTag.VERY_HIGH_SODIUM),
    (1000, NutritionTag.HIGH_SODIUM),
    (600, NutritionTag.MEDIUM_SODIUM),
)
SUGAR_BANDS = (
    (40, NutritionTag.VERY_HIGH_SUGAR),
    (25, NutritionTag.HIGH_SUGAR),
    (12, NutritionTag.MEDIUM_SUGAR),
)
SAT_FAT_BANDS = (
    (20, NutritionTag.VERY_HIGH_SAT_FAT),
    (10, NutritionTag.HIGH_SAT_FAT),
    (5, NutritionTag.MEDIUM_SAT_FAT),
)
# Fiber bands are upper-open: <4, <8, <12, else HIGH
FIBER_BANDS = (
    (12, NutritionTag.HIGH_FIBER),
    (8, NutritionTag.MEDIUM_FIBER),
    (4, NutritionTag.LOW_FIBER),
)


class HealthTagCalculator:
    """Derives categorical nutrition tags from a nutrient snapshot."""

    @staticmethod
    def calc_tags(nutrition: NutrientSnapshot) -> Set[NutritionTag]:
        """
        Compute band tags plus compound protective tags for one meal.

        Exactly one tag is produced per threshold family (sodium, sugar,
        saturated fat, fiber). Missing nutrient values count as zero.

        Args:
            nutrition: Nutrient estimate for the meal

        Returns:
            Set of NutritionTag
        """
        sodium = nutrition.value("sodium_mg")
        sugar = nutrition.value("sugar_g")
        sat_fat = nutrition.value("sat_fat_g")
        fiber = nutrition.value("fiber_g")
        energy = nutrition.value("energy_kcal")
        protein = nutrition.value("protein_g")
        fat = nutrition.value("fat_g")

        tags = {
            _band(sodium, SODIUM_BANDS, NutritionTag.LOW_SODIUM),
            _band(sugar, SUGAR_BANDS, NutritionTag.LOW_SUGAR),
            _band(sat_fat, SAT_FAT_BANDS, NutritionTag.LOW_SAT_FAT),
            _band(fiber, FIBER_BANDS, NutritionTag.VERY_LOW_FIBER),
        }

        if fiber > 10:
            tags.add(NutritionTag.HIGH_FIBER_MEAL)
        if fiber > 8 and energy < 400:
            tags.add(NutritionTag.VEGETABLE_RICH)
        if protein > 20 and fat < 10:
            tags.add(NutritionTag.LEAN_PROTEIN)
        if protein > 15 and fiber > 5 and fat < 20:
            tags.add(NutritionTag.BALANCED_MEAL)

        return tags

    @staticmethod
    def calc_meal_tags(
        nutrition: Optional[NutrientSnapshot],
        ai_balanced: Optional[bool] = None,
        risk_level: Optional[str] = None,
    ) -> Set[NutritionTag]:
        """
        Tags for a logged meal record.

        Adds the analyzer's own verdicts on top of the nutrient tags, so a
        record without a nutrient estimate can still be classified.

        Args:
            nutrition: Nutrient estimate, or None when the analyzer gave none
            ai_balanced: Analyzer judged the meal balanced
            risk_level: Record risk level (LOW/MEDIUM/HIGH)
        """
        tags: Set[NutritionTag] = set()
        if nutrition is not None:
            tags |= HealthTagCalculator.calc_tags(nutrition)

        if ai_balanced:
            tags.add(NutritionTag.BALANCED_MEAL)
        if risk_level == "HIGH":
            tags.add(NutritionTag.GENERIC_HIGH_RISK)

        return tags

    @staticmethod
    def calc_ratio(nutrition: NutrientSnapshot) -> NutritionRatio:
        """Fraction of each daily guideline amount covered by the meal."""
        return NutritionRatio(
            sodium_ratio=nutrition.value("sodium_mg") / SODIUM_DAILY_LIMIT_MG,
            sugar_ratio=nutrition.value("sugar_g") / SUGAR_DAILY_LIMIT_G,
            sat_fat_ratio=nutrition.value("sat_fat_g") / SAT_FAT_DAILY_LIMIT_G,
            fiber_ratio=nutrition.value("fiber_g") / FIBER_DAILY_MIN_G,
        )
