"""
Two-recipe generation from overlapping halves of a pantry.

The pantry is shuffled and split in two, each half borrowing a couple of
items from the other, and one recipe is produced per half concurrently.
Each branch falls back to the synthesizer on any failure, so a valid pantry
always yields two recipes.
"""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Tuple

from .aggregator import AggregationOptions, RecipeAggregator
from .data.models import DerivedPreferences, Recipe
from .pantry import analyze_pantry, clean_pantry, validate_pantry
from .synthesizer import RecipeSynthesizer, SynthesisOptions

logger = logging.getLogger(__name__)

BORROWED_ITEMS = 2

RecipeReadyCallback = Callable[[int, Recipe], None]


def split_pantry(pantry: List[str], rng: random.Random) -> Tuple[List[str], List[str]]:
    """Shuffle and split a pantry into two overlapping subsets.

    With more than three items each half borrows up to two items from the
    other. Pantries with fewer than two items are not split.
    """
    items = clean_pantry(pantry)
    if len(items) < 2:
        return list(items), list(items)

    shuffled = list(items)
    rng.shuffle(shuffled)
    mid = math.ceil(len(shuffled) / 2)
    first, second = shuffled[:mid], shuffled[mid:]

    subset1, subset2 = list(first), list(second)
    if len(shuffled) > 3:
        subset1 += second[:BORROWED_ITEMS]
        subset2 += first[:BORROWED_ITEMS]
    return subset1, subset2


class RecipePairGenerator:
    """Produce two distinct recipes for a pantry.

    Args:
        aggregator: Source of ranked recipes for each half
        synthesizer: Per-branch fallback
        rng: Random source for the pantry split
    """

    def __init__(self, aggregator: RecipeAggregator,
                 synthesizer: Optional[RecipeSynthesizer] = None,
                 rng: Optional[random.Random] = None):
        self.aggregator = aggregator
        self.rng = rng or random.Random()
        self.synthesizer = synthesizer or aggregator.synthesizer

    def generate_pair(
        self,
        pantry: List[str],
        preferences: Optional[DerivedPreferences] = None,
        on_recipe_ready: Optional[RecipeReadyCallback] = None,
        options: Optional[SynthesisOptions] = None,
    ) -> List[Recipe]:
        """Two recipes, or a single guidance recipe if the pantry is invalid.

        Args:
            pantry: Free-text pantry items
            preferences: Learned preferences passed to the aggregator
            on_recipe_ready: Called with (branch index, recipe) as each one finishes
            options: Cooking time, servings and difficulty for synthesized recipes

        Returns:
            List of recipes in branch order
        """
        options = options or SynthesisOptions()
        items = clean_pantry(pantry)

        if not validate_pantry(items).valid:
            guidance = self.synthesizer.guidance_recipe(analyze_pantry(items), options)
            if on_recipe_ready:
                self._notify(on_recipe_ready, 0, guidance)
            return [guidance]

        subsets = split_pantry(items, self.rng)
        logger.info(f"[PAIRING] subsets {subsets[0]} | {subsets[1]}")

        recipes: List[Optional[Recipe]] = [None, None]
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = {
                executor.submit(self._branch, subset, items, preferences, options): i
                for i, subset in enumerate(subsets)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    recipe = future.result()
                except Exception as e:
                    logger.warning(f"[PAIRING] Branch {index} failed ({e}), synthesizing instead")
                    recipe = self.synthesizer.synthesize(subsets[index] or items, options)
                    if recipe.is_guidance:
                        recipe = self.synthesizer.synthesize(items, options)
                recipes[index] = recipe
                if on_recipe_ready:
                    self._notify(on_recipe_ready, index, recipe)

        first, second = recipes
        if second.id == first.id:
            logger.info(f"[PAIRING] Both branches picked {first.id}, synthesizing a second recipe")
            second = self.synthesizer.synthesize(subsets[1], options)
            if second.is_guidance:
                second = self.synthesizer.synthesize(items, options)
        return [first, second]

    def _branch(self, subset: List[str], full_pantry: List[str],
                preferences: Optional[DerivedPreferences], options: SynthesisOptions) -> Recipe:
        result = self.aggregator.get_recipes(
            subset,
            AggregationOptions(
                max_results=1,
                cooking_time=options.cooking_time,
                servings=options.servings,
            ),
            preferences,
        )
        if result.recipes:
            return result.recipes[0].recipe

        # Subset lacks two substantive items on its own; use the whole pantry
        return self.synthesizer.synthesize(full_pantry, options)

    @staticmethod
    def _notify(callback: RecipeReadyCallback, index: int, recipe: Recipe):
        try:
            callback(index, recipe)
        except Exception as e:
            logger.warning(f"[PAIRING] on_recipe_ready callback raised: {e}")
