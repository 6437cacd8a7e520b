"""
Match scoring shared by every recipe source.

Local, external and synthesized recipes are all scored here so they can be
merged and ranked on one scale. Scores are computed per request and never
stored on the recipe.
"""

import random
from typing import Callable, List, Optional, Sequence, TypeVar

from .data.ingredients import is_substantive, matches_any
from .data.models import DerivedPreferences, Recipe, ScoredRecipe
from .pantry import analyze_pantry, clean_pantry

T = TypeVar("T")

REQUIRED_WEIGHT = 0.7
OPTIONAL_WEIGHT = 0.1
MULTI_SUBSTANTIVE_BONUS = 0.2
SINGLE_SUBSTANTIVE_BONUS = 0.1
ENHANCER_ONLY_PENALTY = -0.3

HEALTH_SCORE_THRESHOLD = 80
AGGREGATE_LIKES_THRESHOLD = 100
EXTERNAL_BOOST_STEP = 0.05
EXTERNAL_BOOST_CAP = 0.1

PREFERRED_INGREDIENT_BONUS = 0.05
PREFERRED_INGREDIENT_CAP = 0.15
PREFERRED_CUISINE_BONUS = 0.05
DISLIKED_INGREDIENT_PENALTY = -0.1
DISLIKED_INGREDIENT_CAP = -0.2
DISLIKED_CUISINE_PENALTY = -0.1


def scoring_ingredients(recipe: Recipe):
    """Required and optional ingredient lists used for scoring.

    Recipes without explicit lists treat their substantive (or unknown)
    ingredients as required and their enhancers as optional.
    """
    if recipe.required_ingredients:
        return list(recipe.required_ingredients), list(recipe.optional_ingredients)

    required, optional = [], []
    for name in recipe.ingredient_names():
        (required if is_substantive(name) else optional).append(name)
    return required, list(recipe.optional_ingredients) or optional


def score_recipe(recipe: Recipe, pantry: List[str]) -> float:
    """Relevance of a recipe to a pantry.

    Args:
        recipe: Candidate recipe
        pantry: Free-text pantry items

    Returns:
        Non-negative score. Bonuses can push it slightly above 1.0; only
        relative order is meaningful.
    """
    items = clean_pantry(pantry)
    required, optional = scoring_ingredients(recipe)

    required_matches = 0
    substantive_matches = 0
    enhancer_matches = 0
    for ingredient in required:
        if matches_any(ingredient, items):
            required_matches += 1
            if is_substantive(ingredient):
                substantive_matches += 1
            else:
                enhancer_matches += 1

    optional_matches = sum(1 for ingredient in optional if matches_any(ingredient, items))

    required_score = REQUIRED_WEIGHT * required_matches / len(required) if required else 0.0
    optional_score = OPTIONAL_WEIGHT * optional_matches / len(optional) if optional else 0.0

    pantry_substantive = len(analyze_pantry(items).substantive)
    if pantry_substantive >= 2:
        substantive_bonus = MULTI_SUBSTANTIVE_BONUS
    elif pantry_substantive == 1:
        substantive_bonus = SINGLE_SUBSTANTIVE_BONUS
    else:
        substantive_bonus = 0.0

    penalty = ENHANCER_ONLY_PENALTY if enhancer_matches > 0 and substantive_matches == 0 else 0.0

    return max(0.0, required_score + optional_score + substantive_bonus + penalty)


def external_boost(recipe: Recipe) -> float:
    """Small bump for healthy or popular external recipes, capped well below ingredient relevance."""
    meta = recipe.external
    if meta is None:
        return 0.0
    boost = 0.0
    if meta.health_score is not None and meta.health_score > HEALTH_SCORE_THRESHOLD:
        boost += EXTERNAL_BOOST_STEP
    if meta.aggregate_likes is not None and meta.aggregate_likes > AGGREGATE_LIKES_THRESHOLD:
        boost += EXTERNAL_BOOST_STEP
    return min(boost, EXTERNAL_BOOST_CAP)


def preference_bias(recipe: Recipe, preferences: Optional[DerivedPreferences]) -> float:
    """Bounded nudge from a user's learned likes and dislikes."""
    if preferences is None:
        return 0.0

    names = recipe.ingredient_names()
    liked = sum(1 for p in preferences.preferred_ingredients if matches_any(p, names))
    disliked = sum(1 for d in preferences.disliked_ingredients if matches_any(d, names))

    bias = min(liked * PREFERRED_INGREDIENT_BONUS, PREFERRED_INGREDIENT_CAP)
    bias += max(disliked * DISLIKED_INGREDIENT_PENALTY, DISLIKED_INGREDIENT_CAP)

    cuisine = recipe.cuisine.lower()
    if any(c.lower() == cuisine for c in preferences.preferred_cuisines):
        bias += PREFERRED_CUISINE_BONUS
    if any(c.lower() == cuisine for c in preferences.disliked_cuisines):
        bias += DISLIKED_CUISINE_PENALTY
    return bias


def score_candidate(recipe: Recipe, pantry: List[str],
                    preferences: Optional[DerivedPreferences] = None) -> ScoredRecipe:
    """Full score for ranking: match score plus external boost and preference bias."""
    score = score_recipe(recipe, pantry) + external_boost(recipe) + preference_bias(recipe, preferences)
    return ScoredRecipe(recipe=recipe, source=recipe.source, match_score=max(0.0, score))


def shuffle_within_score_groups(items: Sequence[T], score_of: Callable[[T], float],
                                rng: random.Random) -> List[T]:
    """Sort descending by score, then shuffle each run of equal scores."""
    ordered = sorted(items, key=score_of, reverse=True)

    result: List[T] = []
    group: List[T] = []
    group_score = None
    for item in ordered:
        score = round(score_of(item), 9)
        if group and score != group_score:
            rng.shuffle(group)
            result.extend(group)
            group = []
        group.append(item)
        group_score = score
    rng.shuffle(group)
    result.extend(group)
    return result
