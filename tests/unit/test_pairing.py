"""
Unit tests for two-recipe generation.
"""

import random
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from pantry_chef.aggregator import RecipeAggregator
from pantry_chef.data.models import ScoredRecipe
from pantry_chef.pairing import RecipePairGenerator, split_pantry
from pantry_chef.synthesizer import RecipeSynthesizer

PANTRY = ["chicken breast", "broccoli", "rice", "carrots", "garlic"]


@pytest.fixture
def synthesizer(rng):
    return RecipeSynthesizer(rng)


@pytest.fixture
def generator(seeded_index, rng):
    return RecipePairGenerator(RecipeAggregator(seeded_index, rng=rng), rng=rng)


class TestSplitPantry:
    """Test the overlapping split."""

    @pytest.mark.parametrize("size,expected", [
        (1, (1, 1)),
        (2, (1, 1)),
        (3, (2, 1)),
        (4, (4, 4)),
        (5, (5, 4)),
        (8, (6, 6)),
    ])
    def test_subset_sizes(self, size, expected):
        items = [f"item {i}" for i in range(size)]
        first, second = split_pantry(items, random.Random(0))
        assert (len(first), len(second)) == expected

    def test_covers_pantry(self):
        first, second = split_pantry(PANTRY, random.Random(1))
        assert set(first) | set(second) == set(PANTRY)

    def test_single_item_not_split(self):
        assert split_pantry(["rice"], random.Random(0)) == (["rice"], ["rice"])

    def test_cleans_input(self):
        first, second = split_pantry([" Rice ", "rice", ""], random.Random(0))
        assert first == second == ["Rice"]


class TestGeneratePair:
    """Test the concurrent pair generation."""

    def test_two_distinct_recipes(self, generator):
        ready = []

        recipes = generator.generate_pair(PANTRY, on_recipe_ready=lambda i, r: ready.append((i, r.id)))

        assert len(recipes) == 2
        assert recipes[0].id != recipes[1].id
        assert {i for i, _ in ready} == {0, 1}
        assert not any(r.is_guidance for r in recipes)

    def test_invalid_pantry_returns_guidance(self, generator):
        ready = []

        recipes = generator.generate_pair(["salt", "olive oil"], on_recipe_ready=lambda i, r: ready.append(i))

        assert len(recipes) == 1
        assert recipes[0].is_guidance
        assert ready == [0]

    def test_failing_aggregator_still_yields_two(self, synthesizer, rng):
        aggregator = Mock()
        aggregator.get_recipes.side_effect = RuntimeError("boom")
        generator = RecipePairGenerator(aggregator, synthesizer=synthesizer, rng=rng)

        recipes = generator.generate_pair(PANTRY)

        assert len(recipes) == 2
        assert recipes[0].id != recipes[1].id
        assert not any(r.is_guidance for r in recipes)

    def test_raising_callback_tolerated(self, generator):
        def explode(index, recipe):
            raise ValueError("listener broke")

        assert len(generator.generate_pair(PANTRY, on_recipe_ready=explode)) == 2

    def test_duplicate_pick_replaced(self, synthesizer, rng, sample_recipe):
        aggregator = Mock()
        aggregator.get_recipes.return_value = SimpleNamespace(
            recipes=[ScoredRecipe(recipe=sample_recipe, source=sample_recipe.source, match_score=0.9)]
        )
        generator = RecipePairGenerator(aggregator, synthesizer=synthesizer, rng=rng)

        first, second = generator.generate_pair(PANTRY)

        assert first.id == "local-test"
        assert second.id.startswith("programmatic-")

    def test_half_without_results_synthesizes_from_whole_pantry(self, synthesizer, rng):
        aggregator = Mock()
        aggregator.get_recipes.return_value = SimpleNamespace(recipes=[])
        generator = RecipePairGenerator(aggregator, synthesizer=synthesizer, rng=rng)

        recipes = generator.generate_pair(["chicken breast", "rice"])

        assert len(recipes) == 2
        assert all(r.id.startswith("programmatic-") for r in recipes)
