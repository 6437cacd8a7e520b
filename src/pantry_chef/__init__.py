"""
Pantry Chef - ingredient-driven recipe matching, caching and preference learning.
"""

from pantry_chef.aggregator import AggregationOptions, AggregationResult, RecipeAggregator
from pantry_chef.cache import FastRecipesResult, RecipeResultCache
from pantry_chef.config import EngineConfig
from pantry_chef.data.models import (
    Difficulty,
    IngredientCategory,
    PantryValidation,
    Rating,
    Recipe,
    RecipeSource,
    ScoredRecipe,
)
from pantry_chef.errors import (
    MalformedRecipeError,
    PantryChefError,
    PersistenceError,
    QuotaExceededError,
    SourceUnavailableError,
)
from pantry_chef.main import PantryChefEngine
from pantry_chef.pantry import validate_pantry

__version__ = "0.1.0"

__all__ = [
    "AggregationOptions",
    "AggregationResult",
    "RecipeAggregator",
    "FastRecipesResult",
    "RecipeResultCache",
    "EngineConfig",
    "Difficulty",
    "IngredientCategory",
    "PantryValidation",
    "Rating",
    "Recipe",
    "RecipeSource",
    "ScoredRecipe",
    "MalformedRecipeError",
    "PantryChefError",
    "PersistenceError",
    "QuotaExceededError",
    "SourceUnavailableError",
    "PantryChefEngine",
    "validate_pantry",
]
