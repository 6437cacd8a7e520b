"""
Spoonacular recipe API adapter.

Wraps the find-by-ingredients, complex search, information and random
endpoints. Raw payloads are validated with pydantic models and converted
into the common Recipe shape; a record that fails validation is dropped, not
the whole response. Responses are cached in memory for a short TTL.

HTTP 402 (quota or billing) raises QuotaExceededError, every other failure
raises SourceUnavailableError, so callers can fall back quietly.
"""

import json
import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import DEFAULT_SPOONACULAR_BASE_URL
from ..data.models import (
    Difficulty,
    EXTERNAL_ID_PREFIX,
    ExternalMetadata,
    NutritionInfo,
    Recipe,
    RecipeIngredient,
    validate_recipe,
)
from ..errors import MalformedRecipeError, QuotaExceededError, SourceUnavailableError
from ..pantry import clean_pantry

logger = logging.getLogger(__name__)

DEFAULT_READY_MINUTES = 30
DEFAULT_SERVINGS = 2
DESCRIPTION_LIMIT = 200
MIN_INSTRUCTION_LENGTH = 10
RESPONSE_CACHE_SWEEP_SIZE = 256

_TAG_RE = re.compile(r"<[^>]+>")


# =============================================================================
# Payload Models
# =============================================================================

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SpoonacularIngredient(_Payload):
    name: str = ""
    name_clean: Optional[str] = Field(default=None, alias="nameClean")
    amount: Optional[float] = None
    unit: Optional[str] = None

    @property
    def display_name(self) -> str:
        return (self.name_clean or self.name or "").strip()


class InstructionStep(_Payload):
    number: int = 0
    step: str = ""


class AnalyzedInstruction(_Payload):
    steps: List[InstructionStep] = Field(default_factory=list)


class Nutrient(_Payload):
    name: str
    amount: float = 0.0
    unit: str = ""


class Nutrition(_Payload):
    nutrients: List[Nutrient] = Field(default_factory=list)


class SpoonacularRecipe(_Payload):
    """Subset of the recipe information payload the engine uses."""
    id: int
    title: str
    summary: Optional[str] = None
    image: Optional[str] = None
    ready_in_minutes: Optional[int] = Field(default=None, alias="readyInMinutes")
    servings: Optional[int] = None
    cuisines: List[str] = Field(default_factory=list)
    dish_types: List[str] = Field(default_factory=list, alias="dishTypes")
    diets: List[str] = Field(default_factory=list)
    extended_ingredients: List[SpoonacularIngredient] = Field(
        default_factory=list, alias="extendedIngredients"
    )
    analyzed_instructions: List[AnalyzedInstruction] = Field(
        default_factory=list, alias="analyzedInstructions"
    )
    instructions: Optional[str] = None
    nutrition: Optional[Nutrition] = None
    health_score: Optional[float] = Field(default=None, alias="healthScore")
    aggregate_likes: Optional[int] = Field(default=None, alias="aggregateLikes")
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    price_per_serving: Optional[float] = Field(default=None, alias="pricePerServing")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()

    @field_validator(
        "cuisines", "dish_types", "diets", "extended_ingredients", "analyzed_instructions", mode="before"
    )
    @classmethod
    def none_to_list(cls, v):
        return v or []


# =============================================================================
# Conversion
# =============================================================================

def estimate_difficulty(ingredient_count: int, minutes: int) -> Difficulty:
    if ingredient_count > 10 or minutes > 60:
        return Difficulty.HARD
    if ingredient_count > 6 or minutes > 30:
        return Difficulty.MEDIUM
    return Difficulty.EASY


def strip_html(text: str) -> str:
    return re.sub(r"\s+", " ", _TAG_RE.sub(" ", text or "")).strip()


def _instructions(payload: SpoonacularRecipe) -> List[str]:
    if payload.analyzed_instructions and payload.analyzed_instructions[0].steps:
        steps = sorted(payload.analyzed_instructions[0].steps, key=lambda s: s.number)
        return [s.step.strip() for s in steps if s.step.strip()]

    if payload.instructions:
        text = _TAG_RE.sub("\n", payload.instructions)
        pieces = re.split(r"\n+|(?<=\.)\s+", text)
        return [p.strip() for p in pieces if len(p.strip()) > MIN_INSTRUCTION_LENGTH]
    return []


def _nutrition(payload: SpoonacularRecipe) -> Optional[NutritionInfo]:
    if not payload.nutrition:
        return None
    amounts = {n.name.lower(): n.amount for n in payload.nutrition.nutrients}
    return NutritionInfo(
        calories=amounts.get("calories"),
        protein_g=amounts.get("protein"),
        carbs_g=amounts.get("carbohydrates"),
        fat_g=amounts.get("fat"),
    )


def _format_amount(amount: Optional[float]) -> str:
    if amount is None:
        return ""
    return f"{round(amount, 2):g}"


def convert_spoonacular_recipe(raw: Dict[str, Any]) -> Recipe:
    """Convert one recipe information payload into a Recipe.

    Args:
        raw: Decoded JSON object from the information or search endpoints

    Returns:
        Validated Recipe with id ``spoon-<id>``

    Raises:
        MalformedRecipeError: If required fields are missing or invalid
    """
    try:
        payload = SpoonacularRecipe.model_validate(raw)
    except ValidationError as e:
        raise MalformedRecipeError(f"Invalid recipe payload: {e.error_count()} errors") from e

    ingredients = [
        RecipeIngredient(name=i.display_name, amount=_format_amount(i.amount), unit=i.unit or None)
        for i in payload.extended_ingredients
        if i.display_name
    ]
    minutes = payload.ready_in_minutes if payload.ready_in_minutes and payload.ready_in_minutes > 0 \
        else DEFAULT_READY_MINUTES
    servings = payload.servings if payload.servings and payload.servings > 0 else DEFAULT_SERVINGS
    difficulty = estimate_difficulty(len(ingredients), minutes)

    summary = strip_html(payload.summary or "")
    if len(summary) > DESCRIPTION_LIMIT:
        summary = summary[:DESCRIPTION_LIMIT] + "..."

    tags: List[str] = []
    for tag in payload.dish_types + payload.diets + ["spoonacular", difficulty.value.lower()]:
        if tag not in tags:
            tags.append(tag)

    recipe = Recipe(
        id=f"{EXTERNAL_ID_PREFIX}{payload.id}",
        title=payload.title,
        description=summary,
        ingredients=ingredients,
        instructions=_instructions(payload),
        cooking_time=minutes,
        servings=servings,
        difficulty=difficulty,
        cuisine=payload.cuisines[0] if payload.cuisines else "International",
        tags=tags,
        image_url=payload.image,
        nutrition=_nutrition(payload),
        external=ExternalMetadata(
            health_score=payload.health_score,
            aggregate_likes=payload.aggregate_likes,
            source_url=payload.source_url,
            price_per_serving=payload.price_per_serving,
            diets=list(payload.diets),
            dish_types=list(payload.dish_types),
        ),
    )
    return validate_recipe(recipe)


def convert_many(raw_recipes: List[Dict[str, Any]]) -> List[Recipe]:
    """Convert a list of payloads, dropping malformed ones."""
    recipes = []
    for raw in raw_recipes or []:
        try:
            recipes.append(convert_spoonacular_recipe(raw))
        except MalformedRecipeError as e:
            rid = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(f"[SPOONACULAR] Dropping recipe {rid}: {e}")
    return recipes


# =============================================================================
# Response Cache
# =============================================================================

class ResponseCache:
    """In-memory TTL cache for decoded API responses."""

    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic,
                 sweep_size: int = RESPONSE_CACHE_SWEEP_SIZE):
        self.ttl_seconds = ttl_seconds
        self.sweep_size = sweep_size
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(path: str, params: Dict[str, Any]) -> str:
        return f"{path}?{json.dumps(params, sort_keys=True, default=str)}"

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any):
        with self._lock:
            now = self._clock()
            if len(self._entries) >= self.sweep_size:
                self._purge_expired(now)
            self._entries[key] = (now + self.ttl_seconds, value)

    def _purge_expired(self, now: float):
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"[SPOONACULAR] Purged {len(expired)} expired cached responses")

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# =============================================================================
# Client
# =============================================================================

@dataclass
class ExternalSearchOptions:
    number: int = 6
    max_ready_time: Optional[int] = None
    diet: Optional[str] = None
    intolerances: Optional[str] = None
    cuisine: Optional[str] = None
    ranking: int = 1  # 1 = maximize used ingredients, 2 = minimize missing
    ignore_pantry: bool = True


class SpoonacularClient:
    """Thin client for the Spoonacular recipes API.

    Args:
        api_key: API key; an empty key leaves the client unconfigured
        base_url: Recipes endpoint root
        session: requests.Session (or compatible) used for every call
        cache: Response cache; a 10 minute cache is created if omitted
        timeout: Per-request HTTP timeout in seconds
        max_workers: Threads used to fetch recipe details in parallel
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_SPOONACULAR_BASE_URL,
        session: Optional[requests.Session] = None,
        cache: Optional[ResponseCache] = None,
        timeout: float = 8.0,
        max_workers: int = 6,
    ):
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.cache = cache or ResponseCache()
        self.timeout = timeout
        self.max_workers = max_workers

    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    def clear_cache(self):
        self.cache.clear()
        logger.info("[SPOONACULAR] Response cache cleared")

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.is_configured():
            raise SourceUnavailableError("Spoonacular API key not configured")

        params = {k: v for k, v in params.items() if v is not None}
        key = ResponseCache.make_key(path, params)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"[SPOONACULAR] Cache hit {path}")
            return cached

        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                params={**params, "apiKey": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"[SPOONACULAR] Request to {path} failed: {e}")
            raise SourceUnavailableError(f"Request to {path} failed: {e}") from e

        if response.status_code == 402:
            logger.info("[SPOONACULAR] Daily quota reached, skipping external recipes")
            raise QuotaExceededError()
        if not response.ok:
            logger.warning(f"[SPOONACULAR] {path} returned HTTP {response.status_code}")
            raise SourceUnavailableError(
                f"{path} returned HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailableError(f"{path} returned invalid JSON") from e

        self.cache.set(key, data)
        return data

    def find_by_ingredients(self, pantry: List[str],
                            options: Optional[ExternalSearchOptions] = None) -> List[Recipe]:
        """Recipes that use the pantry's ingredients, with full details.

        Raises:
            SourceUnavailableError: If the search call itself fails
        """
        options = options or ExternalSearchOptions()
        items = clean_pantry(pantry)
        if not items:
            return []

        matches = self._get("/findByIngredients", {
            "ingredients": ",".join(items),
            "number": options.number,
            "limitLicense": "true",
            "ranking": options.ranking,
            "ignorePantry": "true" if options.ignore_pantry else "false",
        })
        recipe_ids = [m["id"] for m in matches or [] if isinstance(m, dict) and "id" in m]
        recipes = self._fetch_details_parallel(recipe_ids)

        if options.max_ready_time is not None:
            recipes = [r for r in recipes if r.cooking_time <= options.max_ready_time]
        logger.info(f"[SPOONACULAR] {len(recipes)} recipes for {len(items)} ingredients")
        return recipes

    def _fetch_details_parallel(self, recipe_ids: List[int]) -> List[Recipe]:
        if not recipe_ids:
            return []

        details: Dict[int, Recipe] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(recipe_ids))) as executor:
            futures = {executor.submit(self.get_recipe_details, rid): rid for rid in recipe_ids}
            for future in as_completed(futures):
                recipe = future.result()
                if recipe is not None:
                    details[futures[future]] = recipe
        return [details[rid] for rid in recipe_ids if rid in details]

    def get_recipe_details(self, recipe_id: int) -> Optional[Recipe]:
        """Full recipe with nutrition, or None if it cannot be fetched or converted."""
        try:
            raw = self._get(f"/{recipe_id}/information", {"includeNutrition": "true"})
            return convert_spoonacular_recipe(raw)
        except SourceUnavailableError as e:
            logger.debug(f"[SPOONACULAR] Details for {recipe_id} unavailable: {e}")
        except MalformedRecipeError as e:
            logger.warning(f"[SPOONACULAR] Dropping recipe {recipe_id}: {e}")
        return None

    def search_by_query(self, query: str,
                        options: Optional[ExternalSearchOptions] = None) -> List[Recipe]:
        options = options or ExternalSearchOptions()
        data = self._get("/complexSearch", {
            "query": query,
            "number": options.number,
            "addRecipeInformation": "true",
            "fillIngredients": "true",
            "addRecipeNutrition": "true",
            "instructionsRequired": "true",
            "maxReadyTime": options.max_ready_time,
            "diet": options.diet,
            "intolerances": options.intolerances,
            "cuisine": options.cuisine,
        })
        return convert_many((data or {}).get("results", []))

    def get_random_recipes(self, number: int = 6, tags: Optional[List[str]] = None,
                           include_nutrition: bool = True) -> List[Recipe]:
        data = self._get("/random", {
            "number": number,
            "tags": ",".join(tags) if tags else None,
            "includeNutrition": "true" if include_nutrition else "false",
        })
        return convert_many((data or {}).get("recipes", []))
