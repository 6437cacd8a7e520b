#!/usr/bin/env python3
"""
Pantry Chef engine and command line entry point.

PantryChefEngine wires the catalog, the external source, the synthesizer,
the aggregator, the result cache and the per-user learners onto one
key-value store and exposes the operations callers use.
"""

import argparse
import logging
import os
import random
import sys
from dataclasses import replace
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Callable, Dict, List, Optional

import requests

from . import history, preferences, usage
from .aggregator import AggregationOptions, AggregationResult, RecipeAggregator
from .cache import FastRecipesResult, RecipeResultCache
from .config import EngineConfig
from .data.ingredients import get_suggestions
from .data.kv_store import KeyValueStore, SQLiteKeyValueStore
from .data.models import (
    DerivedPreferences,
    IngredientInfo,
    PantryValidation,
    QuickSuggestion,
    Rating,
    RatingFeedback,
    Recipe,
    UserPreferenceProfile,
)
from .local_index import LocalRecipeIndex
from .pairing import RecipePairGenerator
from .pantry import validate_pantry
from .sources.spoonacular import ResponseCache, SpoonacularClient
from .synthesizer import RecipeSynthesizer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
RECENT_HISTORY_LIMIT = 10


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None):
    """Configure root logging to the console and, optionally, a rotating file."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            os.path.join(log_dir, "pantry_chef.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        ))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class PantryChefEngine:
    """Recipe matching, caching and preference learning for pantry-driven cooking."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        store: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
        session: Optional[requests.Session] = None,
        external: Optional[SpoonacularClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the engine.

        Args:
            config: Settings; read from the environment if omitted
            store: Key-value store; a SQLite store under config.data_dir if omitted
            rng: Random source shared by every component
            session: HTTP session for the external client
            external: Pre-built external client, overriding config and session
            clock: Current-time source for caching, ratings and history
        """
        self.config = config or EngineConfig.from_env()
        self.store = store or SQLiteKeyValueStore(db_dir=self.config.data_dir)
        self.rng = rng or random.Random()
        self.clock = clock

        self.external = external or SpoonacularClient(
            api_key=self.config.spoonacular_api_key,
            base_url=self.config.spoonacular_base_url,
            session=session,
            cache=ResponseCache(ttl_seconds=self.config.external_cache_ttl_seconds),
            timeout=self.config.http_timeout_seconds,
        )
        self.local_index = LocalRecipeIndex(store=self.store, rng=self.rng)
        self.synthesizer = RecipeSynthesizer(self.rng)
        self.aggregator = RecipeAggregator(
            self.local_index,
            external=self.external,
            synthesizer=self.synthesizer,
            rng=self.rng,
            source_timeout=self.config.source_timeout_seconds,
        )
        self.pair_generator = RecipePairGenerator(self.aggregator, self.synthesizer, self.rng)
        self.result_cache = RecipeResultCache(
            self.store,
            generator=lambda pantry, prefs: self.pair_generator.generate_pair(pantry, prefs),
            preference_lookup=self.get_derived_preferences,
            ttl_hours=self.config.cache_ttl_hours,
            max_entries=self.config.cache_max_entries,
            clock=clock,
        )

        logger.info(f"Pantry Chef engine initialized (external={self.external.is_configured()})")

    # ==================== Recipes ====================

    def validate_pantry(self, pantry: List[str]) -> PantryValidation:
        return validate_pantry(pantry)

    def get_instant_recipes(
        self,
        pantry: List[str],
        options: Optional[AggregationOptions] = None,
        user_id: Optional[str] = None,
        avoid_recent: bool = True,
    ) -> AggregationResult:
        """
        Ranked recipes for a pantry from every source.

        Args:
            pantry: Free-text pantry items
            options: Result count, filters and source switches
            user_id: User whose learned preferences bias the ranking
            avoid_recent: Exclude recipes shown recently and record what is returned

        Returns:
            AggregationResult
        """
        options = options or AggregationOptions()
        if avoid_recent:
            recent = history.recent_recipe_ids(self.store, user_id, limit=RECENT_HISTORY_LIMIT)
            options = replace(options, exclude_ids=set(options.exclude_ids) | set(recent))

        prefs = self.get_derived_preferences(user_id) if user_id else None
        result = self.aggregator.get_recipes(pantry, options, prefs)

        if avoid_recent and result.recipes:
            history.save_recipes(
                self.store, [s.recipe for s in result.recipes], user_id, now=self.clock()
            )
        return result

    def get_fast_recipes(self, pantry: List[str], user_id: Optional[str] = None,
                         force_refresh: bool = False) -> FastRecipesResult:
        """Two recipes for a pantry, served from the result cache when possible."""
        return self.result_cache.get_or_generate(pantry, user_id=user_id, force_refresh=force_refresh)

    def search_recipes(self, query: str, max_results: int = 10) -> List[Recipe]:
        return self.aggregator.search_by_query(query, max_results=max_results)

    def ingredient_suggestions(self, text: str, limit: int = 5) -> List[IngredientInfo]:
        return get_suggestions(text, limit=limit)

    # ==================== Usage ====================

    def record_ingredient_usage(self, ingredients: List[str]):
        usage.record_ingredient_usage(self.store, ingredients, now=self.clock())

    def get_quick_suggestions(self, pantry: List[str], max_suggestions: int = 6) -> List[QuickSuggestion]:
        return usage.get_quick_suggestions(self.store, pantry, max_suggestions=max_suggestions)

    # ==================== Preferences ====================

    def rate_recipe(self, user_id: str, recipe: Recipe, rating: Rating,
                    feedback: Optional[RatingFeedback] = None) -> UserPreferenceProfile:
        return preferences.record_rating(self.store, user_id, recipe, rating, feedback, now=self.clock())

    def get_derived_preferences(self, user_id: str) -> DerivedPreferences:
        return preferences.get_derived_preferences(self.store, user_id)

    def get_personalization_hints(self, user_id: str) -> preferences.PersonalizationHints:
        return preferences.get_personalization_hints(self.store, user_id)

    def get_rating(self, user_id: str, recipe_id: str) -> Optional[Rating]:
        return preferences.get_rating(self.store, user_id, recipe_id)

    def get_user_stats(self, user_id: str) -> Dict:
        return preferences.get_user_stats(self.store, user_id)

    # ==================== Maintenance ====================

    def get_cache_stats(self) -> Dict:
        return {
            "results": self.result_cache.stats(),
            "local_index": self.local_index.stats(),
            "usage": usage.get_usage_stats(self.store),
        }

    def clear_caches(self):
        self.result_cache.clear()
        self.external.clear_cache()
        logger.info("All caches cleared")


def _print_recipe(recipe: Recipe, score: Optional[float] = None):
    suffix = f"  (score {score:.2f})" if score is not None else ""
    print(f"\n{recipe.title} [{recipe.id}]{suffix}")
    print(f"  {recipe.cuisine} | {recipe.difficulty.value} | {recipe.cooking_time} min | serves {recipe.servings}")
    print(f"  Ingredients: {', '.join(recipe.ingredient_names())}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Pantry Chef recipe engine")
    parser.add_argument(
        "command",
        choices=["validate", "recipes", "fast", "suggest"],
        help="Command to run",
    )
    parser.add_argument(
        "items",
        nargs="*",
        help="Pantry items (quote multi-word items)",
    )
    parser.add_argument(
        "--max",
        type=int,
        default=6,
        help="Maximum results",
    )
    parser.add_argument(
        "--user",
        help="User id for personalized results",
    )
    parser.add_argument(
        "--data-dir",
        help="Directory for the SQLite store (overrides PANTRY_CHEF_DATA_DIR)",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Bypass the result cache for 'fast'",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (overrides PANTRY_CHEF_LOG_LEVEL)",
    )

    args = parser.parse_args(argv)

    config = EngineConfig.from_env()
    if args.data_dir:
        config.data_dir = args.data_dir
    setup_logging(args.log_level or config.log_level)

    if args.command == "validate":
        validation = validate_pantry(args.items)
        print(f"Valid: {validation.valid}")
        print(f"Substantive: {validation.substantive_count}, enhancers: {validation.enhancer_count}")
        for suggestion in validation.suggestions:
            print(f"  - {suggestion}")
        return 0 if validation.valid else 1

    engine = PantryChefEngine(config=config)

    if args.command == "recipes":
        result = engine.get_instant_recipes(
            args.items, AggregationOptions(max_results=args.max), user_id=args.user
        )
        if not result.valid:
            _print_recipe(result.guidance)
            return 1
        for scored in result.recipes:
            _print_recipe(scored.recipe, scored.match_score)
        if result.failed_sources:
            print(f"\nUnavailable sources: {', '.join(result.failed_sources)}")

    elif args.command == "fast":
        result = engine.get_fast_recipes(args.items, user_id=args.user, force_refresh=args.refresh)
        for recipe in result.recipes:
            _print_recipe(recipe)
        print(f"\n(from cache: {result.from_cache})")

    elif args.command == "suggest":
        for suggestion in engine.get_quick_suggestions(args.items, max_suggestions=args.max):
            print(f"{suggestion.name:<20} {suggestion.reason:<18} {suggestion.priority}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
