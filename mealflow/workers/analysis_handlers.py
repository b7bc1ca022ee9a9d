"""
Async AI analysis handlers.

Each handler receives the food analysis of a freshly logged meal and returns
a JSON-serializable result dict. The external model calls are simulated with
a configurable delay.
"""
import time

from mealflow.config import settings
from mealflow.services.health_tags import HealthTagCalculator, NutritionTag, TagFamily, TagSeverity
from mealflow.services.impact_decision_service import ImpactDecisionService
from mealflow.services.nutrition_schemas import FoodAnalysis, NutrientSnapshot

TREND_LABELS = [
    "Before meal",
    "0-30 min after",
    "30-60 min after",
    "1 h after",
    "2 h after",
    "3 h after",
]

# mmol/L glucose curves per impact level
TREND_CURVES = {
    "low": [5.2, 5.8, 6.5, 6.2, 5.7, 5.3],
    "medium": [5.5, 6.2, 7.8, 7.2, 6.5, 5.8],
    "high": [5.6, 7.0, 9.2, 8.6, 7.4, 6.2],
}

IMPACT_LEVELS = ["low", "medium", "high"]


def _simulate_latency(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)


def glucose_impact_level(analysis: FoodAnalysis) -> str:
    """
    Estimate the post-meal glucose impact from sugar and fiber tags.

    The sugar band sets the level; a high-fiber meal lowers it one step.
    """
    tags = HealthTagCalculator.calc_tags(analysis.nutrition or NutrientSnapshot())
    sugar_tag = next(tag for tag in tags if tag.family == TagFamily.SUGAR)

    if sugar_tag.severity in (TagSeverity.VERY_HIGH, TagSeverity.HIGH):
        level = 2
    elif sugar_tag.severity == TagSeverity.MEDIUM:
        level = 1
    else:
        level = 0

    if NutritionTag.HIGH_FIBER_MEAL in tags:
        level = max(0, level - 1)
    return IMPACT_LEVELS[level]


def glucose_trend(analysis: FoodAnalysis) -> dict:
    _simulate_latency(settings.glucose_trend_latency_seconds)

    impact_level = glucose_impact_level(analysis)
    curve = TREND_CURVES[impact_level]
    return {
        "peakValue": max(curve),
        "peakTime": "30-60 minutes after the meal",
        "recoveryTime": "1-3 hours after the meal",
        "trendData": curve,
        "trendLabels": TREND_LABELS,
        "impactLevel": impact_level,
    }


def eating_order(analysis: FoodAnalysis) -> dict:
    _simulate_latency(settings.eating_order_latency_seconds)

    return {
        "tips": [
            {
                "order": "1",
                "title": "Vegetables first",
                "description": "Dietary fiber slows carbohydrate absorption, so start with the vegetables.",
            },
            {
                "order": "2",
                "title": "Then protein",
                "description": "Protein keeps you full for longer and steadies blood glucose.",
            },
            {
                "order": "3",
                "title": "Staple carbs last",
                "description": "Leaving carbohydrates until last noticeably lowers the glucose peak.",
            },
        ],
        "summary": "Following this order is expected to lower the glucose peak by 15-20%.",
    }


def health_score(analysis: FoodAnalysis) -> dict:
    _simulate_latency(settings.health_score_latency_seconds)

    ai_balanced = bool(analysis.is_balanced)
    tags = HealthTagCalculator.calc_meal_tags(analysis.nutrition, ai_balanced=ai_balanced)
    decision = ImpactDecisionService.decide(ai_balanced, tags)
    ratio = HealthTagCalculator.calc_ratio(analysis.nutrition or NutrientSnapshot())

    return {
        "tags": sorted(tag.value for tag in tags),
        "strategy": decision.strategy.value,
        "riskLevel": decision.risk_level.value,
        "overallScore": decision.overall_score,
        "nutritionRatio": ratio.model_dump(by_alias=True),
    }
