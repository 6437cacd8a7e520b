"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import random
import shutil
import tempfile
from datetime import datetime, timedelta

import pytest

from pantry_chef.data.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore
from pantry_chef.data.models import Difficulty, Recipe, RecipeIngredient
from pantry_chef.data.seed_recipes import SEED_RECIPES
from pantry_chef.local_index import LocalRecipeIndex


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_recipe(recipe_id, ingredients, cuisine="International", cooking_time=30,
                difficulty=Difficulty.MEDIUM, title=None, **kwargs):
    """Build a minimal valid recipe from a list of ingredient names."""
    return Recipe(
        id=recipe_id,
        title=title or f"Recipe {recipe_id}",
        description="Test recipe",
        ingredients=[RecipeIngredient(name, "1") for name in ingredients],
        instructions=["Cook everything", "Serve"],
        cooking_time=cooking_time,
        servings=2,
        difficulty=difficulty,
        cuisine=cuisine,
        **kwargs,
    )


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary directory for the SQLite store.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def sqlite_store(temp_db_dir):
    """Fresh SQLite-backed key-value store for each test."""
    return SQLiteKeyValueStore(db_dir=temp_db_dir)


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def rng():
    """Seeded random source so shuffles and style picks are repeatable."""
    return random.Random(42)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 10, 13, 10, 0, 0))


@pytest.fixture
def recipe_factory():
    """
    Factory for minimal valid recipes.

    Usage in tests:
        def test_something(recipe_factory):
            recipe = recipe_factory("local-9", ["eggs", "milk"])
    """
    return make_recipe


@pytest.fixture
def sample_recipe():
    """Sample local recipe for testing."""
    return make_recipe(
        "local-test",
        ["chicken breast", "broccoli", "rice", "soy sauce", "garlic"],
        cuisine="Asian",
        cooking_time=20,
        difficulty=Difficulty.EASY,
        title="Chicken and Broccoli Rice",
    )


@pytest.fixture
def two_recipe_index(memory_store, rng):
    """Local index holding only Classic Chicken Alfredo (local-1) and Beef and Vegetable Stir Fry (local-2)."""
    return LocalRecipeIndex(store=memory_store, rng=rng, seed_recipes=SEED_RECIPES[:2])


@pytest.fixture
def seeded_index(memory_store, rng):
    """Local index with the full seed catalog."""
    return LocalRecipeIndex(store=memory_store, rng=rng)
