"""
Unit tests for match scoring, boosts, preference bias and tie shuffling.
"""

import random

import pytest

from pantry_chef.data.models import DerivedPreferences, ExternalMetadata
from pantry_chef.data.seed_recipes import SEED_RECIPES
from pantry_chef.scoring import (
    external_boost,
    preference_bias,
    score_candidate,
    score_recipe,
    scoring_ingredients,
    shuffle_within_score_groups,
)

ALFREDO, STIR_FRY = SEED_RECIPES[0], SEED_RECIPES[1]
CHICKEN_BOWL = SEED_RECIPES[4]


class TestScoringIngredients:
    """Test required/optional partition."""

    def test_explicit_lists_win(self, recipe_factory):
        recipe = recipe_factory(
            "programmatic-x", ["eggs", "butter"],
            required_ingredients=["eggs"], optional_ingredients=["butter", "cheese"],
        )
        assert scoring_ingredients(recipe) == (["eggs"], ["butter", "cheese"])

    def test_derived_from_classifier(self):
        required, optional = scoring_ingredients(ALFREDO)

        assert required == ["chicken breast", "fettuccine pasta", "parmesan cheese", "garlic"]
        assert optional == ["heavy cream", "butter", "olive oil"]


class TestScoreRecipe:
    """Test the match score formula."""

    def test_required_match_with_bonus(self):
        """One of four required matched plus the two-substantive bonus."""
        score = score_recipe(ALFREDO, ["chicken breast", "broccoli", "rice"])
        assert score == pytest.approx(0.7 * 1 / 4 + 0.2)

    def test_unknown_ingredient_is_required(self):
        """Sesame oil is unknown, so the stir fry has six required ingredients."""
        score = score_recipe(STIR_FRY, ["chicken breast", "broccoli", "rice"])
        assert score == pytest.approx(0.7 * 1 / 6 + 0.2)

    def test_deterministic(self):
        pantry = ["Chicken Breast", "rice", "broccoli"]
        assert score_recipe(CHICKEN_BOWL, pantry) == score_recipe(CHICKEN_BOWL, pantry)

    def test_optional_matches(self, recipe_factory):
        recipe = recipe_factory(
            "programmatic-x", ["eggs"],
            required_ingredients=["eggs"], optional_ingredients=["butter", "milk", "cheese"],
        )
        score = score_recipe(recipe, ["eggs", "milk", "butter"])
        assert score == pytest.approx(0.7 + 0.1 * 2 / 3 + 0.2)

    def test_single_substantive_bonus(self, recipe_factory):
        recipe = recipe_factory("local-x", ["salmon", "rice"])
        assert score_recipe(recipe, ["salmon", "salt"]) == pytest.approx(0.35 + 0.1)

    def test_enhancer_only_penalty(self, recipe_factory):
        """Seasoning-only matches are pushed down."""
        recipe = recipe_factory(
            "local-x", ["salt", "olive oil"], required_ingredients=["salt", "olive oil"],
        )
        assert score_recipe(recipe, ["salt", "pepper"]) == pytest.approx(0.35 - 0.3)

    def test_never_negative(self, recipe_factory):
        recipe = recipe_factory(
            "local-x", ["salt", "tofu", "quinoa", "lentils"],
            required_ingredients=["salt", "tofu", "quinoa", "lentils"],
        )
        assert score_recipe(recipe, ["salt"]) == 0.0

    def test_no_overlap(self):
        assert score_recipe(ALFREDO, ["tofu", "quinoa"]) == pytest.approx(0.2)


class TestBoosts:
    """Test external boost and preference bias."""

    def test_external_boost_capped(self, recipe_factory):
        popular = recipe_factory(
            "spoon-1", ["rice"], external=ExternalMetadata(health_score=95, aggregate_likes=5000)
        )
        healthy = recipe_factory("spoon-2", ["rice"], external=ExternalMetadata(health_score=81))
        plain = recipe_factory("spoon-3", ["rice"], external=ExternalMetadata(health_score=80))

        assert external_boost(popular) == pytest.approx(0.1)
        assert external_boost(healthy) == pytest.approx(0.05)
        assert external_boost(plain) == 0.0
        assert external_boost(ALFREDO) == 0.0

    def test_score_can_exceed_one(self, recipe_factory):
        recipe = recipe_factory(
            "spoon-1", ["chicken", "rice", "garlic"],
            required_ingredients=["chicken", "rice"], optional_ingredients=["garlic"],
            external=ExternalMetadata(health_score=95, aggregate_likes=5000),
        )
        scored = score_candidate(recipe, ["chicken", "rice", "garlic"])

        assert scored.match_score == pytest.approx(1.1)
        assert scored.source.value == "external"

    def test_preference_bias_caps(self):
        preferences = DerivedPreferences(
            preferred_ingredients=["chicken breast", "rice", "broccoli", "carrots"],
            preferred_cuisines=["asian"],
        )
        assert preference_bias(CHICKEN_BOWL, preferences) == pytest.approx(0.15 + 0.05)

    def test_dislike_bias_caps(self):
        preferences = DerivedPreferences(
            disliked_ingredients=["chicken breast", "rice", "broccoli"],
            disliked_cuisines=["Asian"],
        )
        assert preference_bias(CHICKEN_BOWL, preferences) == pytest.approx(-0.2 - 0.1)

    def test_no_preferences_no_bias(self):
        assert preference_bias(CHICKEN_BOWL, None) == 0.0

    def test_candidate_clamped_at_zero(self):
        preferences = DerivedPreferences(disliked_ingredients=["fettuccine", "parmesan"])
        scored = score_candidate(ALFREDO, ["tofu", "salt"], preferences)
        assert scored.match_score == 0.0


class TestShuffleWithinScoreGroups:
    """Test tie shuffling."""

    def test_groups_stay_in_score_order(self, rng):
        items = [("a", 0.5), ("b", 0.9), ("c", 0.5), ("d", 0.9), ("e", 0.1)]
        result = shuffle_within_score_groups(items, lambda i: i[1], rng)

        assert [score for _, score in result] == [0.9, 0.9, 0.5, 0.5, 0.1]
        assert {name for name, _ in result[:2]} == {"b", "d"}

    def test_ties_vary_across_seeds(self):
        items = [(str(i), 1.0) for i in range(6)]
        firsts = {
            shuffle_within_score_groups(items, lambda i: i[1], random.Random(seed))[0][0]
            for seed in range(20)
        }
        assert len(firsts) > 1

    def test_seed_is_repeatable(self):
        items = [(str(i), 1.0) for i in range(6)]
        first = shuffle_within_score_groups(items, lambda i: i[1], random.Random(3))
        second = shuffle_within_score_groups(items, lambda i: i[1], random.Random(3))
        assert first == second

    def test_empty(self, rng):
        assert shuffle_within_score_groups([], lambda i: i, rng) == []
