"""
High-quality protein detection from recognized food names.

Keyword table after the Chinese Dietary Guidelines (2022) list of quality
protein foods. A keyword matches a food name as a whole word, optionally
pluralized, so "boiled eggs" hits "egg" but "eggplant" does not.
"""

import logging
import re
from enum import Enum
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class ProteinCategory(str, Enum):
    EGG = "EGG"
    DAIRY = "DAIRY"
    FISH = "FISH"
    SHRIMP = "SHRIMP"
    SHELLFISH = "SHELLFISH"
    CRAB = "CRAB"
    POULTRY = "POULTRY"
    LEAN_MEAT = "LEAN_MEAT"
    SOY = "SOY"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]


CATEGORY_DISPLAY_NAMES = {
    ProteinCategory.EGG: "eggs",
    ProteinCategory.DAIRY: "dairy",
    ProteinCategory.FISH: "fish",
    ProteinCategory.SHRIMP: "shrimp",
    ProteinCategory.SHELLFISH: "shellfish",
    ProteinCategory.CRAB: "crab",
    ProteinCategory.POULTRY: "poultry",
    ProteinCategory.LEAN_MEAT: "lean meat",
    ProteinCategory.SOY: "soy",
}

# Insertion order is match order
PROTEIN_RULES: Dict[str, ProteinCategory] = {
    # Eggs
    "egg": ProteinCategory.EGG,
    "omelette": ProteinCategory.EGG,
    "omelet": ProteinCategory.EGG,
    # Dairy
    "milk": ProteinCategory.DAIRY,
    "yogurt": ProteinCategory.DAIRY,
    "yoghurt": ProteinCategory.DAIRY,
    "cheese": ProteinCategory.DAIRY,
    "latte": ProteinCategory.DAIRY,
    # Fish
    "fish": ProteinCategory.FISH,
    "salmon": ProteinCategory.FISH,
    "tuna": ProteinCategory.FISH,
    "cod": ProteinCategory.FISH,
    "sea bass": ProteinCategory.FISH,
    "mackerel": ProteinCategory.FISH,
    "sardine": ProteinCategory.FISH,
    "eel": ProteinCategory.FISH,
    "sashimi": ProteinCategory.FISH,
    "sushi": ProteinCategory.FISH,
    # Shrimp
    "shrimp": ProteinCategory.SHRIMP,
    "prawn": ProteinCategory.SHRIMP,
    "lobster": ProteinCategory.SHRIMP,
    "crayfish": ProteinCategory.SHRIMP,
    # Shellfish
    "scallop": ProteinCategory.SHELLFISH,
    "oyster": ProteinCategory.SHELLFISH,
    "clam": ProteinCategory.SHELLFISH,
    "mussel": ProteinCategory.SHELLFISH,
    "abalone": ProteinCategory.SHELLFISH,
    # Crab
    "crab": ProteinCategory.CRAB,
    # Poultry
    "chicken": ProteinCategory.POULTRY,
    "duck": ProteinCategory.POULTRY,
    "turkey": ProteinCategory.POULTRY,
    "goose": ProteinCategory.POULTRY,
    # Lean meat
    "beef": ProteinCategory.LEAN_MEAT,
    "lean pork": ProteinCategory.LEAN_MEAT,
    "pork tenderloin": ProteinCategory.LEAN_MEAT,
    "lamb": ProteinCategory.LEAN_MEAT,
    "mutton": ProteinCategory.LEAN_MEAT,
    # Soy
    "tofu": ProteinCategory.SOY,
    "soy milk": ProteinCategory.SOY,
    "soybean": ProteinCategory.SOY,
    "edamame": ProteinCategory.SOY,
    "tempeh": ProteinCategory.SOY,
}

_KEYWORD_PATTERNS = {
    keyword: re.compile(r"\b" + re.escape(keyword) + r"(?:e?s)?\b", re.IGNORECASE)
    for keyword in PROTEIN_RULES
}


class QualityProteinService:
    """Keyword matching of food names against the quality protein table."""

    @staticmethod
    def identify_high_quality_proteins(food_names: Optional[Iterable[str]]) -> List[str]:
        """
        Quality protein sources found in a list of food names.

        Args:
            food_names: Names as recognized by the food analyzer

        Returns:
            Matched keywords, de-duplicated, in first-seen order
        """
        found: Dict[str, None] = {}
        for food_name in food_names or []:
            if not food_name:
                continue
            for keyword in QualityProteinService._matches(food_name):
                found[keyword] = None

        logger.debug("Identified quality proteins: %s", list(found))
        return list(found)

    @staticmethod
    def merge_protein_lists(protein_lists: Iterable[Optional[List[str]]]) -> List[str]:
        merged: Dict[str, None] = {}
        for proteins in protein_lists:
            for protein in proteins or []:
                merged[protein] = None
        return list(merged)

    @staticmethod
    def get_category(food_name: Optional[str]) -> Optional[ProteinCategory]:
        """Category of the most specific (longest) keyword the name matches, or None."""
        if not food_name:
            return None
        matches = QualityProteinService._matches(food_name)
        return PROTEIN_RULES[max(matches, key=len)] if matches else None

    @staticmethod
    def generate_protein_summary(proteins: Optional[List[str]]) -> str:
        """
        One-line summary grouping proteins by category.

        e.g. "Quality protein sources: egg (eggs); salmon, cod (fish)"
        """
        if not proteins:
            return "No obvious quality protein source in this meal"

        grouped: Dict[ProteinCategory, List[str]] = {}
        for protein in proteins:
            category = PROTEIN_RULES.get(protein.lower())
            if category is not None:
                grouped.setdefault(category, []).append(protein)

        if not grouped:
            return "Quality protein sources: " + ", ".join(proteins)

        parts = [
            f"{', '.join(names)} ({category.display_name})" for category, names in grouped.items()
        ]
        return "Quality protein sources: " + "; ".join(parts)

    @staticmethod
    def _matches(text: str) -> List[str]:
        return [keyword for keyword, pattern in _KEYWORD_PATTERNS.items() if pattern.search(text)]
