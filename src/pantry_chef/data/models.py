"""
Data models for the pantry chef engine.

These models define the core entities used throughout the system:
- IngredientInfo: Static classifier table entries
- Recipe: Common recipe shape produced by every source
- ScoredRecipe: Per-request ranking wrapper (never persisted)
- CacheEntry: Content-addressed recipe pair cache entry
- UserPreferenceProfile: Rating history plus derived preferences
- IngredientUsageStat / IngredientPattern: Pantry usage tracking for suggestions
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ..errors import MalformedRecipeError


class IngredientCategory(str, Enum):
    """Classifier categories."""
    PROTEIN = "protein"
    VEGETABLE = "vegetable"
    GRAIN = "grain"
    DAIRY = "dairy"
    SEASONING = "seasoning"
    HERB = "herb"
    FAT = "fat"
    FRUIT = "fruit"
    CONDIMENT = "condiment"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class RecipeSource(str, Enum):
    """Where a recipe came from. Encoded in the recipe id prefix."""
    LOCAL = "local"
    EXTERNAL = "external"
    SYNTHESIZED = "synthesized"


class Rating(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class FeedbackReason(str, Enum):
    INGREDIENTS = "ingredients"
    COOKING_METHOD = "cooking_method"
    COMPLEXITY = "complexity"
    TIME = "time"
    TASTE = "taste"
    OTHER = "other"


# Id prefixes per source. Merge relies on these never colliding.
LOCAL_ID_PREFIX = "local-"
EXTERNAL_ID_PREFIX = "spoon-"
SYNTHESIZED_ID_PREFIXES = ("programmatic-", "guidance-")


@dataclass(frozen=True)
class IngredientInfo:
    """One row of the static ingredient classifier table."""
    canonical_name: str
    category: IngredientCategory
    aliases: FrozenSet[str] = frozenset()
    is_substantive: bool = True

    def all_names(self) -> List[str]:
        """Canonical name followed by aliases, lower-cased."""
        return [self.canonical_name.lower()] + sorted(a.lower() for a in self.aliases)


@dataclass(frozen=True)
class RecipeIngredient:
    """A recipe line: name plus display amount (e.g. "2", "to taste")."""
    name: str
    amount: str = ""
    unit: Optional[str] = None

    def __str__(self) -> str:
        parts = [p for p in (self.amount, self.unit, self.name) if p]
        return " ".join(parts)

    def to_dict(self) -> Dict:
        return {"name": self.name, "amount": self.amount, "unit": self.unit}

    @classmethod
    def from_dict(cls, data: Dict) -> "RecipeIngredient":
        return cls(
            name=data["name"],
            amount=str(data.get("amount", "")),
            unit=data.get("unit") or None,
        )


@dataclass(frozen=True)
class NutritionInfo:
    """Nutrition per serving. Any field may be missing."""
    calories: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None

    def __str__(self) -> str:
        parts = []
        if self.calories:
            parts.append(f"{self.calories:g} cal")
        if self.protein_g:
            parts.append(f"{self.protein_g:g}g protein")
        if self.carbs_g:
            parts.append(f"{self.carbs_g:g}g carbs")
        if self.fat_g:
            parts.append(f"{self.fat_g:g}g fat")
        return ", ".join(parts) if parts else "Nutrition info unavailable"

    def to_dict(self) -> Dict:
        return {
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "NutritionInfo":
        return cls(**{k: data.get(k) for k in ("calories", "protein_g", "carbs_g", "fat_g")})


@dataclass(frozen=True)
class ExternalMetadata:
    """Extra fields only the external API supplies. Used for the popularity boost."""
    health_score: Optional[float] = None
    aggregate_likes: Optional[int] = None
    source_url: Optional[str] = None
    price_per_serving: Optional[float] = None
    diets: List[str] = field(default_factory=list)
    dish_types: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "health_score": self.health_score,
            "aggregate_likes": self.aggregate_likes,
            "source_url": self.source_url,
            "price_per_serving": self.price_per_serving,
            "diets": list(self.diets),
            "dish_types": list(self.dish_types),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ExternalMetadata":
        return cls(
            health_score=data.get("health_score"),
            aggregate_likes=data.get("aggregate_likes"),
            source_url=data.get("source_url"),
            price_per_serving=data.get("price_per_serving"),
            diets=data.get("diets", []),
            dish_types=data.get("dish_types", []),
        )


@dataclass(frozen=True)
class Recipe:
    """Common recipe shape produced by the local index, external API and synthesizer.

    Identity is ``id``, which carries a source prefix (``local-``, ``spoon-``,
    ``programmatic-`` or ``guidance-``). ``required_ingredients`` and
    ``optional_ingredients`` feed the match scorer; when empty the scorer
    derives them from ``ingredients``.
    """

    id: str
    title: str
    description: str
    ingredients: List[RecipeIngredient]
    instructions: List[str]
    cooking_time: int  # Minutes
    servings: int
    difficulty: Difficulty = Difficulty.MEDIUM
    cuisine: str = "International"
    tags: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    nutrition: Optional[NutritionInfo] = None
    required_ingredients: List[str] = field(default_factory=list)
    optional_ingredients: List[str] = field(default_factory=list)
    external: Optional[ExternalMetadata] = None
    is_guidance: bool = False  # Explains an unusable pantry instead of being a dish

    @property
    def source(self) -> RecipeSource:
        if self.id.startswith(LOCAL_ID_PREFIX):
            return RecipeSource.LOCAL
        if self.id.startswith(EXTERNAL_ID_PREFIX):
            return RecipeSource.EXTERNAL
        return RecipeSource.SYNTHESIZED

    def ingredient_names(self) -> List[str]:
        return [ing.name for ing in self.ingredients]

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "instructions": list(self.instructions),
            "cooking_time": self.cooking_time,
            "servings": self.servings,
            "difficulty": self.difficulty.value,
            "cuisine": self.cuisine,
            "tags": list(self.tags),
            "image_url": self.image_url,
            "nutrition": self.nutrition.to_dict() if self.nutrition else None,
            "required_ingredients": list(self.required_ingredients),
            "optional_ingredients": list(self.optional_ingredients),
            "external": self.external.to_dict() if self.external else None,
            "is_guidance": self.is_guidance,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Recipe":
        """Create Recipe from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            ingredients=[RecipeIngredient.from_dict(i) for i in data["ingredients"]],
            instructions=list(data["instructions"]),
            cooking_time=int(data["cooking_time"]),
            servings=int(data["servings"]),
            difficulty=Difficulty(data.get("difficulty", Difficulty.MEDIUM.value)),
            cuisine=data.get("cuisine", "International"),
            tags=list(data.get("tags", [])),
            image_url=data.get("image_url"),
            nutrition=NutritionInfo.from_dict(data["nutrition"]) if data.get("nutrition") else None,
            required_ingredients=list(data.get("required_ingredients", [])),
            optional_ingredients=list(data.get("optional_ingredients", [])),
            external=ExternalMetadata.from_dict(data["external"]) if data.get("external") else None,
            is_guidance=data.get("is_guidance", False),
        )


def validate_recipe(recipe: Recipe) -> Recipe:
    """Check the fields every Recipe must carry.

    Args:
        recipe: Recipe to check

    Returns:
        The same recipe, for chaining

    Raises:
        MalformedRecipeError: If a required field is missing or out of range
    """
    if not recipe.id or not recipe.id.strip():
        raise MalformedRecipeError("Recipe has no id")
    if not recipe.title or not recipe.title.strip():
        raise MalformedRecipeError(f"Recipe {recipe.id} has no title")
    if not recipe.ingredients:
        raise MalformedRecipeError(f"Recipe {recipe.id} has no ingredients")
    if any(not ing.name.strip() for ing in recipe.ingredients):
        raise MalformedRecipeError(f"Recipe {recipe.id} has an unnamed ingredient")
    if not recipe.instructions:
        raise MalformedRecipeError(f"Recipe {recipe.id} has no instructions")
    if recipe.cooking_time <= 0:
        raise MalformedRecipeError(f"Recipe {recipe.id} has cooking time {recipe.cooking_time}")
    if recipe.servings <= 0:
        raise MalformedRecipeError(f"Recipe {recipe.id} has servings {recipe.servings}")
    return recipe


@dataclass
class ScoredRecipe:
    """A recipe ranked against one request's pantry."""
    recipe: Recipe
    source: RecipeSource
    match_score: float

    def to_dict(self) -> Dict:
        return {
            "recipe": self.recipe.to_dict(),
            "source": self.source.value,
            "match_score": self.match_score,
        }


@dataclass
class PantryValidation:
    """Result of the substantive-ingredient gate."""
    valid: bool
    substantive_count: int
    enhancer_count: int
    missing_categories: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "valid": self.valid,
            "substantive_count": self.substantive_count,
            "enhancer_count": self.enhancer_count,
            "missing_categories": list(self.missing_categories),
            "suggestions": list(self.suggestions),
        }


@dataclass
class CacheEntry:
    """Cached recipe pair for one (pantry, preference snapshot) key."""
    pantry_hash: str
    preference_hash: str
    recipes: List[Recipe]
    generated_at: datetime
    access_count: int = 1
    last_accessed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.last_accessed_at is None:
            self.last_accessed_at = self.generated_at

    @property
    def key(self) -> str:
        return f"{self.pantry_hash}:{self.preference_hash}"

    def to_dict(self) -> Dict:
        return {
            "pantry_hash": self.pantry_hash,
            "preference_hash": self.preference_hash,
            "recipes": [r.to_dict() for r in self.recipes],
            "generated_at": self.generated_at.isoformat(),
            "access_count": self.access_count,
            "last_accessed_at": self.last_accessed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CacheEntry":
        return cls(
            pantry_hash=data["pantry_hash"],
            preference_hash=data["preference_hash"],
            recipes=[Recipe.from_dict(r) for r in data["recipes"]],
            generated_at=datetime.fromisoformat(data["generated_at"]),
            access_count=data.get("access_count", 1),
            last_accessed_at=datetime.fromisoformat(data["last_accessed_at"])
            if data.get("last_accessed_at") else None,
        )


@dataclass
class RatingFeedback:
    """Optional explanation attached to a rating."""
    reason: FeedbackReason
    specific_ingredients: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "reason": self.reason.value,
            "specific_ingredients": list(self.specific_ingredients),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RatingFeedback":
        return cls(
            reason=FeedbackReason(data["reason"]),
            specific_ingredients=data.get("specific_ingredients", []),
            notes=data.get("notes"),
        )


@dataclass
class RatedRecipe:
    """Recipe snapshot stored in a user's like or dislike history."""
    recipe: Recipe
    rated_at: datetime
    feedback: Optional[RatingFeedback] = None

    def to_dict(self) -> Dict:
        return {
            "recipe": self.recipe.to_dict(),
            "rated_at": self.rated_at.isoformat(),
            "feedback": self.feedback.to_dict() if self.feedback else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RatedRecipe":
        return cls(
            recipe=Recipe.from_dict(data["recipe"]),
            rated_at=datetime.fromisoformat(data["rated_at"]),
            feedback=RatingFeedback.from_dict(data["feedback"]) if data.get("feedback") else None,
        )


@dataclass
class DerivedPreferences:
    """Learned preferences. Always recomputed from the full rating history."""
    preferred_ingredients: List[str] = field(default_factory=list)
    disliked_ingredients: List[str] = field(default_factory=list)
    preferred_cuisines: List[str] = field(default_factory=list)
    disliked_cuisines: List[str] = field(default_factory=list)
    preferred_difficulty: List[Difficulty] = field(default_factory=list)
    average_cooking_time: int = 30

    def to_dict(self) -> Dict:
        return {
            "preferred_ingredients": list(self.preferred_ingredients),
            "disliked_ingredients": list(self.disliked_ingredients),
            "preferred_cuisines": list(self.preferred_cuisines),
            "disliked_cuisines": list(self.disliked_cuisines),
            "preferred_difficulty": [d.value for d in self.preferred_difficulty],
            "average_cooking_time": self.average_cooking_time,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "DerivedPreferences":
        return cls(
            preferred_ingredients=data.get("preferred_ingredients", []),
            disliked_ingredients=data.get("disliked_ingredients", []),
            preferred_cuisines=data.get("preferred_cuisines", []),
            disliked_cuisines=data.get("disliked_cuisines", []),
            preferred_difficulty=[Difficulty(d) for d in data.get("preferred_difficulty", [])],
            average_cooking_time=data.get("average_cooking_time", 30),
        )


@dataclass
class UserPreferenceProfile:
    """Per-user rating history and the preferences derived from it."""
    user_id: str
    liked_recipes: List[RatedRecipe] = field(default_factory=list)
    disliked_recipes: List[RatedRecipe] = field(default_factory=list)
    derived: DerivedPreferences = field(default_factory=DerivedPreferences)
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "liked_recipes": [r.to_dict() for r in self.liked_recipes],
            "disliked_recipes": [r.to_dict() for r in self.disliked_recipes],
            "derived": self.derived.to_dict(),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UserPreferenceProfile":
        return cls(
            user_id=data["user_id"],
            liked_recipes=[RatedRecipe.from_dict(r) for r in data.get("liked_recipes", [])],
            disliked_recipes=[RatedRecipe.from_dict(r) for r in data.get("disliked_recipes", [])],
            derived=DerivedPreferences.from_dict(data.get("derived", {})),
            last_updated=datetime.fromisoformat(data["last_updated"])
            if data.get("last_updated") else None,
        )


@dataclass
class IngredientUsageStat:
    """How often an ingredient has been added to a working pantry."""
    name: str
    count: int
    last_used_at: datetime
    category: Optional[IngredientCategory] = None
    co_occurring: List[str] = field(default_factory=list)  # Most recent first, max 10

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "count": self.count,
            "last_used_at": self.last_used_at.isoformat(),
            "category": self.category.value if self.category else None,
            "co_occurring": list(self.co_occurring),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "IngredientUsageStat":
        return cls(
            name=data["name"],
            count=data["count"],
            last_used_at=datetime.fromisoformat(data["last_used_at"]),
            category=IngredientCategory(data["category"]) if data.get("category") else None,
            co_occurring=data.get("co_occurring", []),
        )


@dataclass
class IngredientPattern:
    """A combination of ingredients used together."""
    ingredients: List[str]  # Sorted, normalized
    frequency: int
    last_used_at: datetime

    def to_dict(self) -> Dict:
        return {
            "ingredients": list(self.ingredients),
            "frequency": self.frequency,
            "last_used_at": self.last_used_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "IngredientPattern":
        return cls(
            ingredients=data["ingredients"],
            frequency=data["frequency"],
            last_used_at=datetime.fromisoformat(data["last_used_at"]),
        )


@dataclass
class QuickSuggestion:
    """An ingredient the user might want to add next."""
    name: str
    reason: str  # "frequent", "complementary", "missing_category" or "starter"
    priority: int
    category: Optional[IngredientCategory] = None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "reason": self.reason,
            "priority": self.priority,
            "category": self.category.value if self.category else None,
        }
