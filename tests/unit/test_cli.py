"""
Unit tests for CLI commands.

Tests the command-line interface for stress score and classification.
"""
import json
from datetime import date, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from mealflow.cli import classify, main, stress_score
from mealflow.services.health_stress_service import HealthStressService
from mealflow.services.nutrition_schemas import NutrientSnapshot
from tests.factories import NET_RISK_ONE, create_meal_record


# =============================================================================
# stress_score Tests
# =============================================================================


class TestStressScore:
    def test_stress_score_for_empty_day(self, db: Session):
        with patch("mealflow.cli.SessionLocal", return_value=db), \
             patch("builtins.print") as mock_print:

            score = stress_score("user_a", date(2026, 3, 1))

        assert score == 40
        mock_print.assert_called_with("Stress score for user_a on 2026-03-01: 40")

    def test_stress_score_counts_meals(self, db: Session):
        create_meal_record(
            db, user_id="user_a", eaten_at=datetime(2026, 3, 1, 12), nutrition=NET_RISK_ONE
        )

        with patch("mealflow.cli.SessionLocal", return_value=db), \
             patch("builtins.print"):

            assert stress_score("user_a", date(2026, 3, 1)) == 50

        assert HealthStressService(db).get_score("user_a", date(2026, 3, 1)) == 50

    def test_main_stress_score_parses_date(self, db: Session):
        with patch("mealflow.cli.SessionLocal", return_value=db), \
             patch("builtins.print") as mock_print:

            main(["stress-score", "--user-id", "user_b", "--date", "2026-02-28"])

        mock_print.assert_called_with("Stress score for user_b on 2026-02-28: 40")

    def test_main_rejects_bad_date(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["stress-score", "--user-id", "user_b", "--date", "28/02/2026"])

        assert exc_info.value.code == 2


# =============================================================================
# classify Tests
# =============================================================================


class TestClassify:
    def test_classify_prints_json(self):
        with patch("builtins.print") as mock_print:
            result = classify(NutrientSnapshot(sodium_mg=2500))

        assert json.loads(mock_print.call_args[0][0]) == result
        assert result["tags"] == [
            "LOW_SAT_FAT",
            "LOW_SUGAR",
            "VERY_HIGH_SODIUM",
            "VERY_LOW_FIBER",
        ]
        assert result["strategy"] == "FULL_RISK_ANALYSIS"
        assert result["riskLevel"] == "HIGH"
        assert result["overallScore"] == 60

    def test_main_classify_flags(self):
        with patch("mealflow.cli.classify") as mock_classify:
            main(["classify", "--sodium", "1200", "--fiber", "9", "--sat-fat", "3", "--balanced"])

        nutrition = mock_classify.call_args[0][0]
        assert nutrition.sodium_mg == 1200
        assert nutrition.fiber_g == 9
        assert nutrition.sat_fat_g == 3
        assert nutrition.sugar_g is None
        assert mock_classify.call_args[1] == {"balanced": True}


class TestMain:
    def test_no_command_prints_help(self):
        with patch("argparse.ArgumentParser.print_help") as mock_help, \
             pytest.raises(SystemExit) as exc_info:

            main([])

        assert exc_info.value.code == 1
        mock_help.assert_called_once()

    def test_init_db(self):
        with patch("mealflow.cli.Base") as mock_base, \
             patch("builtins.print"):

            main(["init-db"])

        mock_base.metadata.create_all.assert_called_once()
