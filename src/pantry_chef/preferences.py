"""
Per-user preference learning from like/dislike ratings.

Profiles hold an append-only rating history; derived preferences are a pure
function of that history and are recomputed in full on every rating.
Ingredient and cuisine signals are gated by confidence, which combines the
like ratio with sample size so a handful of ratings cannot swing results.
Dislikes use much stricter gates than likes.

All functions take the key-value store explicitly; there is no module state.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .data.ingredients import normalize
from .data.kv_store import KeyValueStore, load_json, save_json
from .data.models import (
    DerivedPreferences,
    Difficulty,
    FeedbackReason,
    Rating,
    RatedRecipe,
    RatingFeedback,
    Recipe,
    UserPreferenceProfile,
)

logger = logging.getLogger(__name__)

PROFILE_KEY_TEMPLATE = "user_preferences_{user_id}"
DEFAULT_COOKING_TIME = 30

INGREDIENT_SATURATION = 5  # Appearances at which sample-size confidence maxes out
PREFERRED_INGREDIENT_MIN_LIKES = 3
PREFERRED_INGREDIENT_MIN_CONFIDENCE = 0.7
PREFERRED_INGREDIENT_MIN_APPEARANCES = 4
PREFERRED_INGREDIENT_LIMIT = 15
DISLIKED_INGREDIENT_MIN_DISLIKES = 3
DISLIKED_INGREDIENT_MAX_CONFIDENCE = 0.3
DISLIKED_INGREDIENT_MIN_APPEARANCES = 5
DISLIKED_INGREDIENT_LIMIT = 5
EXPLICIT_DISLIKE_WEIGHT = 2

CUISINE_SATURATION = 3
PREFERRED_CUISINE_MIN_LIKES = 2
PREFERRED_CUISINE_MIN_CONFIDENCE = 0.65
PREFERRED_CUISINE_LIMIT = 5
DISLIKED_CUISINE_MIN_DISLIKES = 3
DISLIKED_CUISINE_MAX_CONFIDENCE = 0.2
DISLIKED_CUISINE_LIMIT = 2


@dataclass
class SignalStats:
    """Like/dislike tallies for one ingredient or cuisine."""
    liked: int = 0
    disliked: float = 0  # Weighted; explicit ingredient complaints count double
    appearances: int = 0

    def confidence(self, saturation: int) -> float:
        total_votes = self.liked + self.disliked
        if total_votes == 0:
            return 0.0
        return (self.liked / total_votes) * min(self.appearances / saturation, 1.0)


@dataclass
class RecommendationBonus:
    boost_ingredients: List[str] = field(default_factory=list)
    avoid_ingredients: List[str] = field(default_factory=list)
    preferred_cuisine: Optional[str] = None
    preferred_difficulty: Optional[Difficulty] = None


@dataclass
class PersonalizationHints:
    """Preference summary a caller can show or feed into generation."""
    has_preferences: bool
    bonus: RecommendationBonus
    average_cooking_time: int = DEFAULT_COOKING_TIME
    summary: str = ""

    def to_dict(self) -> Dict:
        return {
            "has_preferences": self.has_preferences,
            "boost_ingredients": list(self.bonus.boost_ingredients),
            "avoid_ingredients": list(self.bonus.avoid_ingredients),
            "preferred_cuisine": self.bonus.preferred_cuisine,
            "preferred_difficulty": (
                self.bonus.preferred_difficulty.value if self.bonus.preferred_difficulty else None
            ),
            "average_cooking_time": self.average_cooking_time,
            "summary": self.summary,
        }


# ==================== Storage ====================

def profile_key(user_id: str) -> str:
    return PROFILE_KEY_TEMPLATE.format(user_id=user_id)


def load_profile(store: KeyValueStore, user_id: str) -> UserPreferenceProfile:
    """Stored profile, or an empty one if missing or unreadable."""
    data = load_json(store, profile_key(user_id), dict)
    if not data:
        return UserPreferenceProfile(user_id=user_id)
    try:
        return UserPreferenceProfile.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"[PREFS] Unreadable profile for {user_id}: {e}")
        return UserPreferenceProfile(user_id=user_id)


def save_profile(store: KeyValueStore, profile: UserPreferenceProfile) -> bool:
    return save_json(store, profile_key(profile.user_id), profile.to_dict())


# ==================== Derivation ====================

def _recipe_ingredients(recipe: Recipe) -> List[str]:
    names = []
    for name in recipe.ingredient_names():
        key = normalize(name)
        if key and key not in names:
            names.append(key)
    return names


def _ingredient_stats(liked: List[RatedRecipe], disliked: List[RatedRecipe]) -> Dict[str, SignalStats]:
    stats: Dict[str, SignalStats] = {}

    for rated in liked:
        for name in _recipe_ingredients(rated.recipe):
            s = stats.setdefault(name, SignalStats())
            s.liked += 1
            s.appearances += 1

    for rated in disliked:
        explicit = set()
        feedback = rated.feedback
        if feedback and feedback.reason == FeedbackReason.INGREDIENTS:
            explicit = {normalize(i) for i in feedback.specific_ingredients if normalize(i)}

        names = _recipe_ingredients(rated.recipe)
        for name in names + sorted(explicit - set(names)):
            s = stats.setdefault(name, SignalStats())
            s.disliked += EXPLICIT_DISLIKE_WEIGHT if name in explicit else 1
            s.appearances += 1

    return stats


def _cuisine_stats(liked: List[RatedRecipe], disliked: List[RatedRecipe]) -> Dict[str, SignalStats]:
    stats: Dict[str, SignalStats] = {}
    display: Dict[str, str] = {}

    def _tally(rated: RatedRecipe, is_like: bool):
        cuisine = (rated.recipe.cuisine or "").strip()
        if not cuisine:
            return
        key = display.setdefault(cuisine.lower(), cuisine)
        s = stats.setdefault(key, SignalStats())
        if is_like:
            s.liked += 1
        else:
            s.disliked += 1
        s.appearances += 1

    for rated in liked:
        _tally(rated, True)
    for rated in disliked:
        _tally(rated, False)
    return stats


def _preferred(stats: Dict[str, SignalStats], saturation: int, min_likes: int,
               min_confidence: float, min_appearances: int, limit: int) -> List[str]:
    ranked: List[Tuple[float, str]] = []
    for name, s in stats.items():
        conf = s.confidence(saturation)
        if (s.liked > s.disliked and s.liked >= min_likes
                and conf >= min_confidence and s.appearances >= min_appearances):
            ranked.append((conf, name))
    ranked.sort(key=lambda item: (-item[0], item[1]))
    return [name for _, name in ranked[:limit]]


def _disliked(stats: Dict[str, SignalStats], saturation: int, min_dislikes: int,
              max_confidence: float, min_appearances: int, limit: int) -> List[str]:
    ranked: List[Tuple[float, float, str]] = []
    for name, s in stats.items():
        conf = s.confidence(saturation)
        # Anything ever liked is never flagged as disliked
        if (s.disliked > s.liked and s.disliked >= min_dislikes and conf <= max_confidence
                and s.appearances >= min_appearances and s.liked == 0):
            ranked.append((conf, -s.disliked, name))
    ranked.sort()
    return [name for _, _, name in ranked[:limit]]


def derive_preferences(liked: List[RatedRecipe], disliked: List[RatedRecipe]) -> DerivedPreferences:
    """Recompute learned preferences from a full rating history.

    Args:
        liked: Liked recipe snapshots
        disliked: Disliked recipe snapshots

    Returns:
        DerivedPreferences; identical history always gives identical output
    """
    ingredient_stats = _ingredient_stats(liked, disliked)
    cuisine_stats = _cuisine_stats(liked, disliked)

    difficulty_counts = Counter(r.recipe.difficulty for r in liked)
    difficulty_order = list(Difficulty)
    preferred_difficulty = sorted(
        difficulty_counts, key=lambda d: (-difficulty_counts[d], difficulty_order.index(d))
    )

    times = [r.recipe.cooking_time for r in liked]
    average_time = int(round(sum(times) / len(times))) if times else DEFAULT_COOKING_TIME

    return DerivedPreferences(
        preferred_ingredients=_preferred(
            ingredient_stats, INGREDIENT_SATURATION, PREFERRED_INGREDIENT_MIN_LIKES,
            PREFERRED_INGREDIENT_MIN_CONFIDENCE, PREFERRED_INGREDIENT_MIN_APPEARANCES,
            PREFERRED_INGREDIENT_LIMIT,
        ),
        disliked_ingredients=_disliked(
            ingredient_stats, INGREDIENT_SATURATION, DISLIKED_INGREDIENT_MIN_DISLIKES,
            DISLIKED_INGREDIENT_MAX_CONFIDENCE, DISLIKED_INGREDIENT_MIN_APPEARANCES,
            DISLIKED_INGREDIENT_LIMIT,
        ),
        preferred_cuisines=_preferred(
            cuisine_stats, CUISINE_SATURATION, PREFERRED_CUISINE_MIN_LIKES,
            PREFERRED_CUISINE_MIN_CONFIDENCE, 0, PREFERRED_CUISINE_LIMIT,
        ),
        disliked_cuisines=_disliked(
            cuisine_stats, CUISINE_SATURATION, DISLIKED_CUISINE_MIN_DISLIKES,
            DISLIKED_CUISINE_MAX_CONFIDENCE, 0, DISLIKED_CUISINE_LIMIT,
        ),
        preferred_difficulty=preferred_difficulty,
        average_cooking_time=average_time,
    )


# ==================== Public Operations ====================

def record_rating(
    store: KeyValueStore,
    user_id: str,
    recipe: Recipe,
    rating: Rating,
    feedback: Optional[RatingFeedback] = None,
    now: Optional[datetime] = None,
) -> UserPreferenceProfile:
    """Record a like or dislike and recompute the user's derived preferences.

    A recipe lives in at most one of the two lists; re-rating moves it.
    """
    rating = Rating(rating)
    now = now or datetime.now()
    profile = load_profile(store, user_id)

    profile.liked_recipes = [r for r in profile.liked_recipes if r.recipe.id != recipe.id]
    profile.disliked_recipes = [r for r in profile.disliked_recipes if r.recipe.id != recipe.id]

    rated = RatedRecipe(recipe=recipe, rated_at=now, feedback=feedback)
    if rating == Rating.LIKE:
        profile.liked_recipes.append(rated)
    else:
        profile.disliked_recipes.append(rated)

    profile.derived = derive_preferences(profile.liked_recipes, profile.disliked_recipes)
    profile.last_updated = now
    save_profile(store, profile)

    logger.info(
        f"[PREFS] {user_id} {rating.value}d {recipe.id} "
        f"(liked={len(profile.liked_recipes)} disliked={len(profile.disliked_recipes)})"
    )
    return profile


rate_recipe = record_rating


def get_user_preferences(store: KeyValueStore, user_id: str) -> UserPreferenceProfile:
    return load_profile(store, user_id)


def get_derived_preferences(store: KeyValueStore, user_id: str) -> DerivedPreferences:
    profile = load_profile(store, user_id)
    return derive_preferences(profile.liked_recipes, profile.disliked_recipes)


def get_rating(store: KeyValueStore, user_id: str, recipe_id: str) -> Optional[Rating]:
    profile = load_profile(store, user_id)
    if any(r.recipe.id == recipe_id for r in profile.liked_recipes):
        return Rating.LIKE
    if any(r.recipe.id == recipe_id for r in profile.disliked_recipes):
        return Rating.DISLIKE
    return None


def get_recommendation_bonus(store: KeyValueStore, user_id: str) -> RecommendationBonus:
    derived = get_derived_preferences(store, user_id)
    return RecommendationBonus(
        boost_ingredients=derived.preferred_ingredients[:5],
        avoid_ingredients=derived.disliked_ingredients[:3],
        preferred_cuisine=derived.preferred_cuisines[0] if derived.preferred_cuisines else None,
        preferred_difficulty=derived.preferred_difficulty[0] if derived.preferred_difficulty else None,
    )


def get_personalization_hints(store: KeyValueStore, user_id: str) -> PersonalizationHints:
    """Structured hints plus a one-paragraph summary. Empty for users with no ratings."""
    profile = load_profile(store, user_id)
    if not profile.liked_recipes and not profile.disliked_recipes:
        return PersonalizationHints(has_preferences=False, bonus=RecommendationBonus())

    derived = derive_preferences(profile.liked_recipes, profile.disliked_recipes)
    bonus = get_recommendation_bonus(store, user_id)

    parts = []
    if bonus.boost_ingredients:
        parts.append(f"Favors {', '.join(bonus.boost_ingredients)}.")
    if bonus.avoid_ingredients:
        parts.append(f"Avoids {', '.join(bonus.avoid_ingredients)}.")
    if derived.preferred_cuisines:
        parts.append(f"Enjoys {', '.join(derived.preferred_cuisines)} cuisine.")
    if derived.disliked_cuisines:
        parts.append(f"Not keen on {', '.join(derived.disliked_cuisines)} cuisine.")
    if bonus.preferred_difficulty:
        parts.append(f"Usually picks {bonus.preferred_difficulty.value.lower()} recipes.")
    if profile.liked_recipes:
        parts.append(f"Likes meals ready in about {derived.average_cooking_time} minutes.")

    return PersonalizationHints(
        has_preferences=True,
        bonus=bonus,
        average_cooking_time=derived.average_cooking_time,
        summary=" ".join(parts),
    )


def get_user_stats(store: KeyValueStore, user_id: str) -> Dict:
    profile = load_profile(store, user_id)
    liked = len(profile.liked_recipes)
    disliked = len(profile.disliked_recipes)
    total = liked + disliked
    cuisines = Counter(r.recipe.cuisine for r in profile.liked_recipes)
    return {
        "total_ratings": total,
        "liked": liked,
        "disliked": disliked,
        "like_ratio": round(liked / total, 3) if total else 0.0,
        "top_cuisines": [c for c, _ in cuisines.most_common(3)],
        "last_updated": profile.last_updated.isoformat() if profile.last_updated else None,
    }
