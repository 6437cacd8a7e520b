"""
Unit tests for the result aggregator.

External sources are mocks; the local index runs against an in-memory store.
"""

import threading
import time
from unittest.mock import Mock

import pytest

from pantry_chef.aggregator import AggregationOptions, RecipeAggregator
from pantry_chef.data.models import DerivedPreferences, Difficulty, ExternalMetadata, RecipeSource
from pantry_chef.errors import QuotaExceededError, SourceUnavailableError
from pantry_chef.synthesizer import TEMPLATE_BANK

PANTRY = ["chicken breast", "broccoli", "rice"]


def external_returning(recipes):
    external = Mock()
    external.is_configured.return_value = True
    external.find_by_ingredients.return_value = recipes
    return external


def external_raising(error):
    external = Mock()
    external.is_configured.return_value = True
    external.find_by_ingredients.side_effect = error
    return external


class TestInvalidPantry:
    """Test the substantive-ingredient gate."""

    def test_no_source_called(self, rng):
        local_index = Mock()
        external = external_returning([])
        aggregator = RecipeAggregator(local_index, external=external, rng=rng)

        result = aggregator.get_recipes(["salt", "pepper"])

        assert not result.valid
        assert result.recipes == []
        assert result.guidance.is_guidance
        local_index.search.assert_not_called()
        external.find_by_ingredients.assert_not_called()

    def test_single_substantive(self, seeded_index, rng):
        result = RecipeAggregator(seeded_index, rng=rng).get_recipes(["chicken"])
        assert not result.valid
        assert result.validation.missing_categories == ["vegetable or grain"]


class TestOptions:
    """Test option validation at construction."""

    @pytest.mark.parametrize("overrides", [
        {"cooking_time": 0},
        {"servings": 0},
        {"servings": -2},
        {"max_cooking_time": 0},
    ])
    def test_rejects_non_positive(self, overrides):
        with pytest.raises(ValueError):
            AggregationOptions(**overrides)

    def test_small_max_cooking_time_still_synthesizes(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2, max_cooking_time=1))

        assert len(result.recipes) == 2
        assert all(s.recipe.cooking_time <= 1 for s in result.recipes)


class TestMerging:
    """Test merge, ranking and fill."""

    def test_local_ranked_by_score(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2))

        assert [s.recipe.id for s in result.recipes] == ["local-1", "local-2"]
        assert result.recipes[0].match_score > result.recipes[1].match_score
        assert result.failed_sources == []

    def test_external_merged_and_deduplicated(self, two_recipe_index, rng, recipe_factory):
        external_recipe = recipe_factory(
            "spoon-7", ["chicken breast", "broccoli", "rice"],
            external=ExternalMetadata(health_score=90),
        )
        external = external_returning([external_recipe, external_recipe])
        aggregator = RecipeAggregator(two_recipe_index, external=external, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=3))

        ids = [s.recipe.id for s in result.recipes]
        assert ids == ["spoon-7", "local-1", "local-2"]
        assert result.recipes[0].source == RecipeSource.EXTERNAL

    def test_unconfigured_external_skipped(self, two_recipe_index, rng):
        external = Mock()
        external.is_configured.return_value = False
        aggregator = RecipeAggregator(two_recipe_index, external=external, rng=rng)

        aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2))

        external.find_by_ingredients.assert_not_called()

    def test_fill_from_synthesizer(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=4, cooking_time=35, servings=3))

        assert len(result.recipes) == 4
        synthesized = [s.recipe for s in result.recipes if s.source == RecipeSource.SYNTHESIZED]
        assert len(synthesized) == 2
        bank_ids = {r.id for r in TEMPLATE_BANK}
        for recipe in synthesized:
            if recipe.id not in bank_ids:
                assert (recipe.cooking_time, recipe.servings) == (35, 3)

    def test_template_bank_fills_first(self, two_recipe_index, rng):
        """Only the alfredo's butter matches locally; the egg template tops the list."""
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(["eggs", "milk", "butter"], AggregationOptions(max_results=2))

        assert [s.recipe.id for s in result.recipes] == ["programmatic-scrambled-eggs", "local-1"]

    def test_no_synthesis_when_disabled(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=5, include_synthesized=False))

        assert [s.recipe.id for s in result.recipes] == ["local-1", "local-2"]

    def test_include_external_false(self, two_recipe_index, rng):
        external = external_returning([])
        aggregator = RecipeAggregator(two_recipe_index, external=external, rng=rng)

        aggregator.get_recipes(PANTRY, AggregationOptions(include_external=False))

        external.find_by_ingredients.assert_not_called()

    def test_preferences_change_order(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)
        preferences = DerivedPreferences(
            preferred_ingredients=["beef", "broccoli", "bell pepper"],
            preferred_cuisines=["Asian"],
            disliked_ingredients=["parmesan cheese"],
        )

        result = aggregator.get_recipes(
            PANTRY, AggregationOptions(max_results=2, include_synthesized=False), preferences
        )

        assert [s.recipe.id for s in result.recipes] == ["local-2", "local-1"]


class TestFilters:
    """Test cooking time, difficulty and cuisine filters."""

    def test_max_cooking_time(self, seeded_index, rng):
        aggregator = RecipeAggregator(seeded_index, rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=4, max_cooking_time=15))

        assert result.recipes
        assert all(s.recipe.cooking_time <= 15 for s in result.recipes)
        assert "local-2" in [s.recipe.id for s in result.recipes]

    def test_difficulty(self, seeded_index, rng):
        result = RecipeAggregator(seeded_index, rng=rng).get_recipes(
            PANTRY, AggregationOptions(max_results=3, difficulty=Difficulty.EASY, include_synthesized=False)
        )
        assert {s.recipe.id for s in result.recipes} <= {"local-2", "local-4", "local-5"}

    def test_cuisine_substring(self, seeded_index, rng):
        result = RecipeAggregator(seeded_index, rng=rng).get_recipes(
            PANTRY, AggregationOptions(max_results=5, cuisine="ital", include_synthesized=False)
        )
        assert {s.recipe.id for s in result.recipes} == {"local-1", "local-4"}

    def test_filters_forwarded_to_external(self, two_recipe_index, rng):
        external = external_returning([])
        aggregator = RecipeAggregator(two_recipe_index, external=external, rng=rng)

        aggregator.get_recipes(
            PANTRY, AggregationOptions(max_results=2, max_cooking_time=20, diet="keto", exclude_ids={"x"})
        )

        options = external.find_by_ingredients.call_args.args[1]
        assert options.number == 3
        assert options.max_ready_time == 20
        assert options.diet == "keto"


class TestExclusion:
    """Test anti-repetition exclusion."""

    def test_excluded_ids_removed(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(
            PANTRY, AggregationOptions(max_results=1, exclude_ids={"local-1"}, include_synthesized=False)
        )

        assert [s.recipe.id for s in result.recipes] == ["local-2"]
        assert not result.exclusion_dropped

    def test_exclusion_dropped_when_everything_excluded(self, two_recipe_index, rng):
        aggregator = RecipeAggregator(two_recipe_index, rng=rng)

        result = aggregator.get_recipes(
            PANTRY,
            AggregationOptions(max_results=2, exclude_ids={"local-1", "local-2"}, include_synthesized=False),
        )

        assert result.exclusion_dropped
        assert {s.recipe.id for s in result.recipes} == {"local-1", "local-2"}


class TestSourceFailures:
    """Test that source failures degrade instead of raising."""

    @pytest.mark.parametrize("error", [
        SourceUnavailableError("network down"),
        QuotaExceededError(),
        RuntimeError("unexpected"),
    ])
    def test_external_failure(self, two_recipe_index, rng, error):
        aggregator = RecipeAggregator(two_recipe_index, external=external_raising(error), rng=rng)

        result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2))

        assert [s.recipe.id for s in result.recipes] == ["local-1", "local-2"]
        assert result.failed_sources == ["external"]
        assert not result.used_fallback

    def test_all_sources_fail(self, rng):
        local_index = Mock()
        local_index.search.side_effect = RuntimeError("index corrupt")
        external = external_raising(SourceUnavailableError("down"))
        aggregator = RecipeAggregator(local_index, external=external, rng=rng)

        result = aggregator.get_recipes(
            PANTRY, AggregationOptions(max_results=3, include_synthesized=False)
        )

        assert result.used_fallback
        assert sorted(result.failed_sources) == ["external", "local"]
        assert len(result.recipes) == 3
        assert all(s.source == RecipeSource.SYNTHESIZED for s in result.recipes)

    def test_slow_external_times_out(self, two_recipe_index, rng):
        release = threading.Event()

        def hang(*args, **kwargs):
            release.wait(5)
            return []

        external = Mock()
        external.is_configured.return_value = True
        external.find_by_ingredients.side_effect = hang
        aggregator = RecipeAggregator(two_recipe_index, external=external, rng=rng, source_timeout=0.2)

        start = time.monotonic()
        try:
            result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2))
        finally:
            release.set()

        assert time.monotonic() - start < 2
        assert result.failed_sources == ["external"]
        assert [s.recipe.id for s in result.recipes] == ["local-1", "local-2"]


class TestQuerySearch:
    """Test free-text search."""

    def test_title_match(self, seeded_index, rng):
        aggregator = RecipeAggregator(seeded_index, rng=rng)
        assert aggregator.search_by_query("alfredo")[0].id == "local-1"

    def test_ingredient_match(self, seeded_index, rng):
        ids = [r.id for r in RecipeAggregator(seeded_index, rng=rng).search_by_query("salmon")]
        assert ids == ["local-3"]

    def test_external_failure_ignored(self, seeded_index, rng):
        external = Mock()
        external.is_configured.return_value = True
        external.search_by_query.side_effect = SourceUnavailableError("down")

        ids = [r.id for r in RecipeAggregator(seeded_index, external=external, rng=rng).search_by_query("rice")]

        assert set(ids) == {"local-3", "local-5"}

    def test_blank_query(self, seeded_index, rng):
        assert RecipeAggregator(seeded_index, rng=rng).search_by_query("  ") == []
