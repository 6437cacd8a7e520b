"""
Pantry analysis and the substantive-ingredient gate.

Every recipe generation path calls ``validate_pantry`` first; a pantry with
fewer than two substantive ingredients gets guidance, never a recipe.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .data.ingredients import classify, normalize
from .data.models import IngredientCategory, PantryValidation

logger = logging.getLogger(__name__)

MIN_SUBSTANTIVE_INGREDIENTS = 2

PROTEIN_SUGGESTION = "Add a protein like chicken, beef, or eggs"
VEGETABLE_OR_GRAIN_SUGGESTION = "Add vegetables like onions, peppers, or a grain like rice"


@dataclass
class PantryAnalysis:
    """Pantry items bucketed by category. Items keep the user's spelling (trimmed)."""
    proteins: List[str] = field(default_factory=list)
    vegetables: List[str] = field(default_factory=list)
    grains: List[str] = field(default_factory=list)
    dairy: List[str] = field(default_factory=list)
    fruits: List[str] = field(default_factory=list)
    other: List[str] = field(default_factory=list)  # Unknown to the classifier
    enhancers: List[str] = field(default_factory=list)
    substantive: List[str] = field(default_factory=list)
    categories: List[IngredientCategory] = field(default_factory=list)

    @property
    def has_substantive(self) -> bool:
        return len(self.substantive) > 0


def clean_pantry(pantry: List[str]) -> List[str]:
    """Trim items, drop blanks and case-insensitive duplicates, keep first-seen order."""
    seen = set()
    cleaned = []
    for item in pantry or []:
        if not isinstance(item, str):
            continue
        text = item.strip()
        key = normalize(text)
        if not key or key in seen:
            continue
        seen.add(key)
        cleaned.append(text)
    return cleaned


def analyze_pantry(pantry: List[str]) -> PantryAnalysis:
    """Classify each pantry item into category buckets.

    Unknown items are treated as substantive and land in ``other``.
    """
    analysis = PantryAnalysis()

    for item in clean_pantry(pantry):
        info = classify(item)
        if info is None:
            analysis.other.append(item)
            analysis.substantive.append(item)
            continue

        if info.category not in analysis.categories:
            analysis.categories.append(info.category)

        if not info.is_substantive:
            analysis.enhancers.append(item)
            continue

        analysis.substantive.append(item)
        if info.category == IngredientCategory.PROTEIN:
            analysis.proteins.append(item)
        elif info.category == IngredientCategory.VEGETABLE:
            analysis.vegetables.append(item)
        elif info.category == IngredientCategory.GRAIN:
            analysis.grains.append(item)
        elif info.category == IngredientCategory.DAIRY:
            analysis.dairy.append(item)
        elif info.category == IngredientCategory.FRUIT:
            analysis.fruits.append(item)
        else:
            analysis.other.append(item)

    return analysis


def validate_pantry(pantry: List[str]) -> PantryValidation:
    """Decide whether a pantry can anchor a recipe.

    Args:
        pantry: Free-text ingredient names

    Returns:
        PantryValidation with valid=True iff at least two substantive
        ingredients are present, plus suggestions for missing categories
    """
    analysis = analyze_pantry(pantry)

    missing: List[str] = []
    suggestions: List[str] = []

    if IngredientCategory.PROTEIN not in analysis.categories:
        missing.append("protein")
        suggestions.append(PROTEIN_SUGGESTION)

    if (IngredientCategory.VEGETABLE not in analysis.categories
            and IngredientCategory.GRAIN not in analysis.categories):
        missing.append("vegetable or grain")
        suggestions.append(VEGETABLE_OR_GRAIN_SUGGESTION)

    validation = PantryValidation(
        valid=len(analysis.substantive) >= MIN_SUBSTANTIVE_INGREDIENTS,
        substantive_count=len(analysis.substantive),
        enhancer_count=len(analysis.enhancers),
        missing_categories=missing,
        suggestions=suggestions,
    )
    logger.debug(
        f"[PANTRY] valid={validation.valid} substantive={validation.substantive_count} "
        f"enhancers={validation.enhancer_count} missing={missing}"
    )
    return validation
