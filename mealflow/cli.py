"""CLI commands for MealFlow."""

import argparse
import json
import sys
from datetime import date

from sqlalchemy.orm import Session

from mealflow.database import Base, SessionLocal, engine
from mealflow.services.health_stress_service import HealthStressService
from mealflow.services.health_tags import HealthTagCalculator
from mealflow.services.impact_decision_service import ImpactDecisionService
from mealflow.services.nutrition_schemas import NutrientSnapshot


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    print("Database tables created.")


def stress_score(user_id: str, day: date | None = None) -> int:
    """Recompute and print a user's stress score for one day."""
    db: Session = SessionLocal()
    day = day or date.today()

    try:
        score = HealthStressService(db).calculate_daily_score(user_id, day)
        print(f"Stress score for {user_id} on {day.isoformat()}: {score}")
        return score
    finally:
        db.close()


def classify(nutrition: NutrientSnapshot, balanced: bool = False) -> dict:
    """Print the tags and impact decision for a single nutrient estimate."""
    tags = HealthTagCalculator.calc_meal_tags(nutrition, ai_balanced=balanced)
    decision = ImpactDecisionService.decide(balanced, tags)

    result = {
        "tags": sorted(tag.value for tag in tags),
        "strategy": decision.strategy.value,
        "riskLevel": decision.risk_level.value,
        "overallScore": decision.overall_score,
    }
    print(json.dumps(result, indent=2))
    return result


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def main(argv=None):
    parser = argparse.ArgumentParser(description="MealFlow CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables")

    # stress-score command
    stress_parser = subparsers.add_parser(
        "stress-score", help="Recompute a user's daily stress score"
    )
    stress_parser.add_argument("--user-id", required=True, help="User ID")
    stress_parser.add_argument(
        "--date", type=_parse_date, help="Day to score, YYYY-MM-DD (default: today)"
    )

    # classify command
    classify_parser = subparsers.add_parser(
        "classify", help="Tag a nutrient estimate and print the impact decision"
    )
    for flag, dest, unit in (
        ("--energy", "energy_kcal", "kcal"),
        ("--protein", "protein_g", "g"),
        ("--fat", "fat_g", "g"),
        ("--carb", "carb_g", "g"),
        ("--fiber", "fiber_g", "g"),
        ("--sodium", "sodium_mg", "mg"),
        ("--sugar", "sugar_g", "g"),
        ("--sat-fat", "sat_fat_g", "g"),
    ):
        classify_parser.add_argument(flag, dest=dest, type=float, help=f"Amount ({unit})")
    classify_parser.add_argument(
        "--balanced", action="store_true", help="Analyzer judged the meal balanced"
    )

    args = parser.parse_args(argv)

    if args.command == "init-db":
        init_db()
    elif args.command == "stress-score":
        stress_score(args.user_id, args.date)
    elif args.command == "classify":
        nutrition = NutrientSnapshot(
            **{
                field: getattr(args, field)
                for field in NutrientSnapshot.model_fields
            }
        )
        classify(nutrition, balanced=args.balanced)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
