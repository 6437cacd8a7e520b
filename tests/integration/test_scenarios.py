"""
End-to-end scenarios across the aggregator, cache and preference learner.

These use real SQLite storage and the seeded catalog; only the external
API is replaced, with a mock that fails the way the network does.
"""

import itertools
from unittest.mock import Mock

import pytest

from pantry_chef.aggregator import AggregationOptions, RecipeAggregator
from pantry_chef.config import EngineConfig
from pantry_chef.data.kv_store import SQLiteKeyValueStore
from pantry_chef.data.models import Rating, RecipeSource
from pantry_chef.errors import QuotaExceededError, SourceUnavailableError
from pantry_chef.main import PantryChefEngine

PANTRY = ["chicken breast", "broccoli", "rice"]


def failing_external(error=None):
    external = Mock()
    external.is_configured.return_value = True
    external.find_by_ingredients.side_effect = error or SourceUnavailableError("connection refused")
    external.search_by_query.side_effect = error or SourceUnavailableError("connection refused")
    return external


@pytest.fixture
def engine(temp_db_dir, rng, clock):
    return PantryChefEngine(
        config=EngineConfig(data_dir=temp_db_dir),
        store=SQLiteKeyValueStore(db_dir=temp_db_dir),
        rng=rng,
        external=failing_external(),
        clock=clock,
    )


def test_local_ranking_with_external_down(two_recipe_index, rng):
    """Alfredo (one of four required) outranks the stir fry (one of six)."""
    aggregator = RecipeAggregator(two_recipe_index, external=failing_external(), rng=rng)

    result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=2))

    assert [s.recipe.id for s in result.recipes] == ["local-1", "local-2"]
    assert result.recipes[0].match_score == pytest.approx(0.375)
    assert result.recipes[1].match_score == pytest.approx(0.7 / 6 + 0.2)
    assert result.failed_sources == ["external"]


def test_seasoning_only_pantry(engine):
    result = engine.get_instant_recipes(["salt", "pepper", "olive oil"])

    assert result.recipes == []
    assert result.guidance.is_guidance
    assert result.validation.missing_categories == ["protein", "vegetable or grain"]


def test_excluding_everything_still_returns(two_recipe_index, rng):
    aggregator = RecipeAggregator(two_recipe_index, rng=rng)

    result = aggregator.get_recipes(
        PANTRY,
        AggregationOptions(max_results=2, exclude_ids={"local-1", "local-2"}, include_synthesized=False),
    )

    assert result.recipes
    assert result.exclusion_dropped


@pytest.mark.parametrize("local_fails,external_error,include_synthesized", list(itertools.product(
    [False, True],
    [None, SourceUnavailableError("timeout"), QuotaExceededError(), ValueError("bad payload")],
    [False, True],
)))
def test_no_failure_combination_raises(seeded_index, rng, local_fails, external_error, include_synthesized):
    local_index = seeded_index
    if local_fails:
        local_index = Mock()
        local_index.search.side_effect = OSError("database locked")

    external = Mock()
    external.is_configured.return_value = True
    if external_error:
        external.find_by_ingredients.side_effect = external_error
    else:
        external.find_by_ingredients.return_value = []

    aggregator = RecipeAggregator(local_index, external=external, rng=rng)
    result = aggregator.get_recipes(PANTRY, AggregationOptions(max_results=3, include_synthesized=include_synthesized))

    if include_synthesized or not local_fails:
        assert result.recipes
    if local_fails and external_error:
        assert result.used_fallback
        assert len(result.recipes) == 3
        assert all(s.source == RecipeSource.SYNTHESIZED for s in result.recipes)


def test_like_then_dislike(engine):
    recipe = engine.local_index.get_recipe("local-5")

    engine.rate_recipe("cook", recipe, Rating.LIKE)
    profile = engine.rate_recipe("cook", recipe, Rating.DISLIKE)

    assert profile.liked_recipes == []
    assert [r.recipe.id for r in profile.disliked_recipes] == ["local-5"]
    assert engine.get_rating("cook", "local-5") == Rating.DISLIKE


def test_full_flow_survives_restart(engine, temp_db_dir, rng, clock):
    engine.record_ingredient_usage(PANTRY)
    first = engine.get_fast_recipes(PANTRY, user_id="cook")
    shown = engine.get_instant_recipes(PANTRY, AggregationOptions(max_results=2), user_id="cook")
    engine.rate_recipe("cook", shown.recipes[0].recipe, Rating.LIKE)

    reopened = PantryChefEngine(
        config=EngineConfig(data_dir=temp_db_dir),
        store=SQLiteKeyValueStore(db_dir=temp_db_dir),
        rng=rng,
        external=failing_external(),
        clock=clock,
    )

    assert reopened.get_rating("cook", shown.recipes[0].recipe.id) == Rating.LIKE
    assert reopened.get_cache_stats()["usage"]["total_uses"] == 3
    assert reopened.get_cache_stats()["results"]["total_entries"] == 1

    again = reopened.get_instant_recipes(PANTRY, AggregationOptions(max_results=2), user_id="cook")
    assert {s.recipe.id for s in again.recipes}.isdisjoint({s.recipe.id for s in shown.recipes})
    assert len(first.recipes) == 2


def test_search_with_external_down(engine):
    assert [r.id for r in engine.search_recipes("alfredo")] == ["local-1"]
