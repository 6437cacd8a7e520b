"""
Local recipe index.

A persisted catalog of pre-authored recipes with an inverted index from
normalized ingredient name to recipe ids. Searches never touch the network
and stay in the low milliseconds for catalogs of a few hundred recipes.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from .data.ingredients import ingredients_match, normalize
from .data.kv_store import KeyValueStore, InMemoryKeyValueStore, load_json, remove_key, save_json
from .data.models import Recipe, validate_recipe
from .data.seed_recipes import SEED_RECIPES
from .errors import MalformedRecipeError
from .scoring import shuffle_within_score_groups

logger = logging.getLogger(__name__)

STORAGE_KEY = "local_recipe_database"
CATALOG_VERSION = "1.0.0"

EXACT_HIT_POINTS = 2
PARTIAL_HIT_POINTS = 1


@dataclass
class LocalSearchResult:
    recipes: List[Recipe] = field(default_factory=list)
    exclusion_dropped: bool = False  # Exclusion would have emptied the result and was ignored


def build_ingredient_index(recipes: Iterable[Recipe]) -> Dict[str, List[str]]:
    """Map each normalized ingredient name to the ids of recipes that use it."""
    index: Dict[str, List[str]] = {}
    for recipe in recipes:
        for name in recipe.ingredient_names():
            key = normalize(name)
            ids = index.setdefault(key, [])
            if recipe.id not in ids:
                ids.append(recipe.id)
    return index


class LocalRecipeIndex:
    """Persisted recipe catalog with ingredient lookup.

    The catalog is loaded lazily on first use. If nothing is stored (or the
    stored copy is unreadable or from another catalog version) it is seeded
    with the built-in recipes.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
        seed_recipes: Optional[List[Recipe]] = None,
    ):
        self.store = store or InMemoryKeyValueStore()
        self.rng = rng or random.Random()
        self._seed_recipes = list(SEED_RECIPES if seed_recipes is None else seed_recipes)
        self._lock = threading.Lock()
        self._recipes: Dict[str, Recipe] = {}
        self._index: Dict[str, List[str]] = {}
        self._last_updated: Optional[datetime] = None
        self._loaded = False

    # ==================== Loading & Persistence ====================

    def _ensure_loaded(self):
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._load()
            self._loaded = True

    def _load(self):
        data = load_json(self.store, STORAGE_KEY, dict)
        if data.get("version") == CATALOG_VERSION and data.get("recipes"):
            try:
                recipes = [Recipe.from_dict(r) for r in data["recipes"]]
                self._set_recipes(recipes)
                self._last_updated = (
                    datetime.fromisoformat(data["last_updated"])
                    if data.get("last_updated") else datetime.now()
                )
                logger.info(f"[LOCAL-INDEX] Loaded {len(recipes)} recipes from store")
                return
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"[LOCAL-INDEX] Stored catalog unreadable ({e}), reseeding")

        self._set_recipes(self._seed_recipes)
        self._last_updated = datetime.now()
        self._save()
        logger.info(f"[LOCAL-INDEX] Created catalog with {len(self._seed_recipes)} seed recipes")

    def _set_recipes(self, recipes: Iterable[Recipe]):
        self._recipes = {r.id: r for r in recipes}
        self._index = build_ingredient_index(self._recipes.values())

    def _save(self):
        save_json(self.store, STORAGE_KEY, {
            "version": CATALOG_VERSION,
            "last_updated": self._last_updated.isoformat(),
            "recipes": [r.to_dict() for r in self._recipes.values()],
        })

    # ==================== Search ====================

    def score_ids(self, ingredients: List[str]) -> Dict[str, int]:
        """Integer index score per recipe id for a query.

        An exact index hit earns +2, and every indexed name that matches the
        query by substring (either direction, exact included) earns +1.
        """
        self._ensure_loaded()
        index = self._index
        scores: Dict[str, int] = {}

        for ingredient in ingredients:
            query = normalize(ingredient)
            if not query:
                continue
            for recipe_id in index.get(query, []):
                scores[recipe_id] = scores.get(recipe_id, 0) + EXACT_HIT_POINTS
            for indexed_name, ids in index.items():
                if ingredients_match(indexed_name, query):
                    for recipe_id in ids:
                        scores[recipe_id] = scores.get(recipe_id, 0) + PARTIAL_HIT_POINTS
        return scores

    def search(
        self,
        ingredients: List[str],
        max_results: int = 10,
        exclude_ids: Optional[Set[str]] = None,
    ) -> LocalSearchResult:
        """Find recipes sharing ingredients with the query.

        Args:
            ingredients: Pantry items to look up
            max_results: Maximum recipes to return
            exclude_ids: Recipe ids to omit; ignored if they would remove every match

        Returns:
            LocalSearchResult, best matches first with ties in random order
        """
        start = time.perf_counter()
        scores = self.score_ids(ingredients)
        recipes = self._recipes

        ranked_ids = shuffle_within_score_groups(
            [rid for rid in scores if rid in recipes], lambda rid: scores[rid], self.rng
        )

        result = LocalSearchResult()
        if exclude_ids:
            kept = [rid for rid in ranked_ids if rid not in exclude_ids]
            if not kept and ranked_ids:
                logger.info("[LOCAL-INDEX] Exclusion removed every match, ignoring it")
                result.exclusion_dropped = True
            else:
                ranked_ids = kept

        result.recipes = [recipes[rid] for rid in ranked_ids[:max(0, max_results)]]

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"[LOCAL-INDEX] search {len(ingredients)} items -> {len(result.recipes)} recipes "
            f"in {elapsed_ms:.2f}ms"
        )
        return result

    # ==================== Catalog Maintenance ====================

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        self._ensure_loaded()
        return self._recipes.get(recipe_id)

    def all_recipes(self) -> List[Recipe]:
        self._ensure_loaded()
        return list(self._recipes.values())

    def get_random_recipes(self, count: int = 3) -> List[Recipe]:
        self._ensure_loaded()
        recipes = list(self._recipes.values())
        self.rng.shuffle(recipes)
        return recipes[:max(0, count)]

    def add_recipes(self, recipes: Iterable[Recipe]) -> int:
        """Add or replace recipes and rebuild the index.

        Returns:
            Number of recipes accepted (malformed ones are skipped)
        """
        self._ensure_loaded()
        accepted = []
        for recipe in recipes:
            try:
                accepted.append(validate_recipe(recipe))
            except MalformedRecipeError as e:
                logger.warning(f"[LOCAL-INDEX] Skipping recipe: {e}")

        if not accepted:
            return 0

        with self._lock:
            merged = dict(self._recipes)
            for recipe in accepted:
                merged[recipe.id] = recipe
            self._set_recipes(merged.values())
            self._last_updated = datetime.now()
            self._save()

        logger.info(f"[LOCAL-INDEX] Added {len(accepted)} recipes, catalog now {len(self._recipes)}")
        return len(accepted)

    def stats(self) -> Dict:
        self._ensure_loaded()
        return {
            "total_recipes": len(self._recipes),
            "indexed_ingredients": len(self._index),
            "last_updated": self._last_updated.isoformat() if self._last_updated else None,
            "version": CATALOG_VERSION,
        }

    def clear(self):
        """Drop the persisted catalog. The next call reseeds from the built-in recipes."""
        with self._lock:
            remove_key(self.store, STORAGE_KEY)
            self._recipes = {}
            self._index = {}
            self._last_updated = None
            self._loaded = False
        logger.info("[LOCAL-INDEX] Catalog cleared")

    def force_refresh(self):
        self.clear()
        self._ensure_loaded()
