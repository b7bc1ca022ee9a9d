"""
Decides how much risk narrative a meal deserves.

Combines the analyzer's overall "balanced" verdict with the calculated
nutrition tags into a strategy (no analysis / light tips / full risk
analysis), a user-facing risk level and a 0-100 overall score.
"""

from enum import Enum
from typing import Iterable, Set

from pydantic import Field

from mealflow.services.health_tags import NutritionTag, TagSeverity
from mealflow.services.nutrition_schemas import CamelModel


class ImpactStrategy(str, Enum):
    NONE = "NONE"  # Overall verdict and generic tips only
    LIGHT_TIPS = "LIGHT_TIPS"  # Mostly fine, gentle suggestions
    FULL_RISK_ANALYSIS = "FULL_RISK_ANALYSIS"  # Short/mid/long-term risk breakdown


class NutritionRiskLevel(str, Enum):
    NONE = "NONE"
    MILD = "MILD"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class ImpactDecision(CamelModel):
    strategy: ImpactStrategy
    risk_level: NutritionRiskLevel
    overall_score: int = Field(ge=0, le=100)


VERY_SEVERE = {TagSeverity.VERY_HIGH, TagSeverity.VERY_LOW}
SEVERE = {TagSeverity.HIGH, TagSeverity.LOW}
COUNTED_SEVERE = {TagSeverity.VERY_HIGH, TagSeverity.HIGH, TagSeverity.VERY_LOW}


class ImpactDecisionService:
    """Rule table mapping (ai_balanced, tags) to an ImpactDecision."""

    @staticmethod
    def decide(ai_balanced: bool, tags: Iterable[NutritionTag]) -> ImpactDecision:
        """
        Pick strategy, risk level and score for one meal.

        Rules are evaluated top to bottom and the first match wins:
        - no tags => NONE / NONE
        - any VERY_* tag, or two or more severe tags => FULL_RISK_ANALYSIS / HIGH
        - a single HIGH/LOW tag => FULL_RISK_ANALYSIS / MODERATE
        - only mild tags => LIGHT_TIPS / MILD (MODERATE when not balanced)
        - anything else => MODERATE, strategy depending on ai_balanced

        Args:
            ai_balanced: Analyzer judged the meal nutritionally balanced
            tags: Tags from HealthTagCalculator

        Returns:
            ImpactDecision
        """
        tags = set(tags or ())

        has_very_high = ImpactDecisionService.has_any_very_high(tags)
        has_high = ImpactDecisionService.has_any_high(tags)
        high_count = ImpactDecisionService.count_high_level(tags)
        only_mild = not has_high and not has_very_high

        if not tags:
            return ImpactDecision(
                strategy=ImpactStrategy.NONE,
                risk_level=NutritionRiskLevel.NONE,
                overall_score=90 if ai_balanced else 80,
            )

        if has_very_high or high_count >= 2:
            # A balanced structure does not cancel out a severe excess
            return ImpactDecision(
                strategy=ImpactStrategy.FULL_RISK_ANALYSIS,
                risk_level=NutritionRiskLevel.HIGH,
                overall_score=70 if ai_balanced else 60,
            )

        if has_high:
            return ImpactDecision(
                strategy=ImpactStrategy.FULL_RISK_ANALYSIS,
                risk_level=NutritionRiskLevel.MODERATE,
                overall_score=75 if ai_balanced else 65,
            )

        if only_mild:
            return ImpactDecision(
                strategy=ImpactStrategy.LIGHT_TIPS,
                risk_level=NutritionRiskLevel.MILD if ai_balanced else NutritionRiskLevel.MODERATE,
                overall_score=80 if ai_balanced else 70,
            )

        return ImpactDecision(
            strategy=ImpactStrategy.LIGHT_TIPS if ai_balanced else ImpactStrategy.FULL_RISK_ANALYSIS,
            risk_level=NutritionRiskLevel.MODERATE,
            overall_score=75 if ai_balanced else 65,
        )

    @staticmethod
    def has_any_very_high(tags: Set[NutritionTag]) -> bool:
        return any(tag.severity in VERY_SEVERE for tag in tags)

    @staticmethod
    def has_any_high(tags: Set[NutritionTag]) -> bool:
        return any(tag.severity in SEVERE for tag in tags)

    @staticmethod
    def count_high_level(tags: Set[NutritionTag]) -> int:
        return sum(1 for tag in tags if tag.severity in COUNTED_SEVERE)
