"""
Result aggregator.

Fans out to the local index and the external API in parallel, scores every
candidate on the shared scale, applies filters and the anti-repetition
exclusion list, tops up from the template bank and the synthesizer, and
shuffles within equal-score tiers before truncating.

No source failure escapes ``get_recipes``: a failed or slow source counts as
zero results and, if every source failed, the synthesizer answers alone.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .data.ingredients import normalize
from .data.models import (
    DerivedPreferences,
    Difficulty,
    PantryValidation,
    Recipe,
    ScoredRecipe,
)
from .local_index import LocalRecipeIndex
from .pantry import analyze_pantry, clean_pantry, validate_pantry
from .scoring import score_candidate, shuffle_within_score_groups
from .sources.spoonacular import ExternalSearchOptions, SpoonacularClient
from .synthesizer import RecipeSynthesizer, SynthesisOptions

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "local"
EXTERNAL_SOURCE = "external"


@dataclass
class AggregationOptions:
    max_results: int = 6
    max_cooking_time: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    cuisine: Optional[str] = None
    include_external: bool = True
    include_synthesized: bool = True
    exclude_ids: Set[str] = field(default_factory=set)
    cooking_time: int = 30  # For synthesized recipes
    servings: int = 4  # For synthesized recipes
    diet: Optional[str] = None
    intolerances: Optional[str] = None

    def __post_init__(self):
        if self.cooking_time <= 0:
            raise ValueError(f"cooking_time must be positive, got {self.cooking_time}")
        if self.servings <= 0:
            raise ValueError(f"servings must be positive, got {self.servings}")
        if self.max_cooking_time is not None and self.max_cooking_time <= 0:
            raise ValueError(f"max_cooking_time must be positive, got {self.max_cooking_time}")


@dataclass
class AggregationResult:
    """Ranked recipes plus what happened while producing them."""
    recipes: List[ScoredRecipe]
    validation: PantryValidation
    guidance: Optional[Recipe] = None  # Set when the pantry failed validation
    exclusion_dropped: bool = False
    failed_sources: List[str] = field(default_factory=list)
    used_fallback: bool = False  # Every source failed; synthesizer answered alone

    @property
    def valid(self) -> bool:
        return self.validation.valid


class RecipeAggregator:
    """Merge recipes from every source into one ranked list.

    Args:
        local_index: Local recipe catalog
        external: External API client, or None to run offline
        synthesizer: Offline generator used to fill slots and as last resort
        rng: Random source for tie shuffling
        source_timeout: Seconds to wait for local and external results
    """

    def __init__(
        self,
        local_index: LocalRecipeIndex,
        external: Optional[SpoonacularClient] = None,
        synthesizer: Optional[RecipeSynthesizer] = None,
        rng: Optional[random.Random] = None,
        source_timeout: float = 4.0,
    ):
        self.local_index = local_index
        self.external = external
        self.rng = rng or random.Random()
        self.synthesizer = synthesizer or RecipeSynthesizer(self.rng)
        self.source_timeout = source_timeout

    def get_recipes(
        self,
        pantry: List[str],
        options: Optional[AggregationOptions] = None,
        preferences: Optional[DerivedPreferences] = None,
    ) -> AggregationResult:
        """Ranked recipes for a pantry.

        Args:
            pantry: Free-text pantry items
            options: Result count, filters, source switches and exclusions
            preferences: Learned user preferences used as a ranking bias

        Returns:
            AggregationResult. For an invalid pantry ``recipes`` is empty and
            ``guidance`` explains what to add; no source is called.
        """
        options = options or AggregationOptions()
        items = clean_pantry(pantry)
        validation = validate_pantry(items)

        if not validation.valid:
            logger.info(f"[AGGREGATOR] Pantry invalid ({validation.substantive_count} substantive)")
            guidance = self.synthesizer.guidance_recipe(
                analyze_pantry(items), self._synthesis_options(options)
            )
            return AggregationResult(recipes=[], validation=validation, guidance=guidance)

        result = AggregationResult(recipes=[], validation=validation)
        source_results = self._fan_out(items, options, result)

        candidates: List[Recipe] = []
        for recipes in source_results.values():
            candidates.extend(r for r in recipes if self._passes_filters(r, options))

        merged = self._rank_unique(candidates, items, preferences)
        if options.exclude_ids:
            kept = [s for s in merged if s.recipe.id not in options.exclude_ids]
            if not kept and merged:
                logger.info("[AGGREGATOR] Exclusion removed every candidate, retrying without it")
                result.exclusion_dropped = True
            else:
                merged = kept

        launched = len(source_results) + len(result.failed_sources)
        result.used_fallback = launched > 0 and len(result.failed_sources) == launched
        if result.used_fallback:
            logger.warning("[AGGREGATOR] All sources failed, using synthesizer only")

        if len(merged) < options.max_results and (options.include_synthesized or result.used_fallback):
            excluded = set() if result.exclusion_dropped else set(options.exclude_ids)
            merged.extend(self._fill(items, options, merged, excluded, preferences))

        ranked = shuffle_within_score_groups(merged, lambda s: s.match_score, self.rng)
        result.recipes = ranked[:options.max_results]
        logger.info(
            f"[AGGREGATOR] {len(result.recipes)} recipes "
            f"({', '.join(s.source.value for s in result.recipes)}) failed={result.failed_sources}"
        )
        return result

    # ==================== Fan-out ====================

    def _fan_out(self, items: List[str], options: AggregationOptions,
                 result: AggregationResult) -> Dict[str, List[Recipe]]:
        request_count = options.max_results + len(options.exclude_ids)

        branches: Dict[str, Callable[[], List[Recipe]]] = {
            LOCAL_SOURCE: lambda: self.local_index.search(items, max_results=request_count).recipes,
        }
        if options.include_external and self.external is not None and self.external.is_configured():
            search_options = ExternalSearchOptions(
                number=request_count,
                max_ready_time=options.max_cooking_time,
                diet=options.diet,
                intolerances=options.intolerances,
            )
            branches[EXTERNAL_SOURCE] = lambda: self.external.find_by_ingredients(items, search_options)

        executor = ThreadPoolExecutor(max_workers=len(branches))
        futures = {name: executor.submit(fn) for name, fn in branches.items()}
        deadline = time.monotonic() + self.source_timeout

        results: Dict[str, List[Recipe]] = {}
        try:
            for name, future in futures.items():
                try:
                    results[name] = future.result(timeout=max(0.0, deadline - time.monotonic()))
                except FuturesTimeoutError:
                    logger.warning(f"[AGGREGATOR] {name} source timed out after {self.source_timeout}s")
                    result.failed_sources.append(name)
                except Exception as e:
                    logger.warning(f"[AGGREGATOR] {name} source failed: {e}")
                    result.failed_sources.append(name)
        finally:
            # Abandon anything still running; late results are discarded
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    # ==================== Ranking ====================

    @staticmethod
    def _passes_filters(recipe: Recipe, options: AggregationOptions) -> bool:
        if options.max_cooking_time is not None and recipe.cooking_time > options.max_cooking_time:
            return False
        if options.difficulty is not None and recipe.difficulty != options.difficulty:
            return False
        if options.cuisine and normalize(options.cuisine) not in normalize(recipe.cuisine):
            return False
        return True

    @staticmethod
    def _rank_unique(recipes: List[Recipe], items: List[str],
                     preferences: Optional[DerivedPreferences]) -> List[ScoredRecipe]:
        by_id: Dict[str, ScoredRecipe] = {}
        for recipe in recipes:
            scored = score_candidate(recipe, items, preferences)
            existing = by_id.get(recipe.id)
            if existing is None or scored.match_score > existing.match_score:
                by_id[recipe.id] = scored
        return sorted(by_id.values(), key=lambda s: s.match_score, reverse=True)

    def _synthesis_options(self, options: AggregationOptions) -> SynthesisOptions:
        cooking_time = options.cooking_time
        if options.max_cooking_time is not None:
            cooking_time = max(1, min(cooking_time, options.max_cooking_time))
        return SynthesisOptions(
            cooking_time=cooking_time,
            servings=options.servings,
            difficulty=options.difficulty or Difficulty.MEDIUM,
        )

    def _fill(self, items: List[str], options: AggregationOptions, current: List[ScoredRecipe],
              excluded: Set[str], preferences: Optional[DerivedPreferences]) -> List[ScoredRecipe]:
        """Top up with template bank matches first, then freshly synthesized recipes."""
        taken = {s.recipe.id for s in current} | excluded
        needed = options.max_results - len(current)
        fill: List[ScoredRecipe] = []

        for match in self.synthesizer.find_recipes(
            items,
            max_results=needed,
            max_cooking_time=options.max_cooking_time,
            difficulty=options.difficulty,
            cuisine=options.cuisine,
        ):
            if match.recipe.id not in taken:
                taken.add(match.recipe.id)
                fill.append(score_candidate(match.recipe, items, preferences))

        remaining = needed - len(fill)
        if remaining > 0:
            for recipe in self.synthesizer.synthesize_many(items, remaining, self._synthesis_options(options)):
                fill.append(score_candidate(recipe, items, preferences))

        logger.debug(f"[AGGREGATOR] Filled {len(fill)} slots")
        return fill

    # ==================== Query Search ====================

    def search_by_query(self, query: str, max_results: int = 10) -> List[Recipe]:
        """Title and ingredient search over the local catalog plus the external API."""
        results: List[Recipe] = []
        needle = normalize(query)
        if not needle:
            return results

        local_hits = self.local_index.search([query], max_results=max_results).recipes
        title_hits = [r for r in self.local_index.all_recipes() if needle in normalize(r.title)]
        for recipe in title_hits + local_hits:
            if recipe.id not in {r.id for r in results}:
                results.append(recipe)

        if self.external is not None and self.external.is_configured():
            try:
                external = self.external.search_by_query(query, ExternalSearchOptions(number=max_results))
                results.extend(r for r in external if r.id not in {x.id for x in results})
            except Exception as e:
                logger.warning(f"[AGGREGATOR] external query search failed: {e}")

        return results[:max_results]
