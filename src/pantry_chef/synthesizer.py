"""
Programmatic recipe synthesizer.

Builds a complete recipe from a categorized pantry without any external
service: pick a style, size the ingredients from simple category rules, add
style enhancers and a salt/pepper/oil baseline, then fill instruction and
title templates. Randomness comes from an injectable ``random.Random``.

Also carries a small bank of hand-written recipes with explicit required
ingredients, matched against the pantry before free synthesis.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional

from .data.ingredients import normalize
from .data.models import Difficulty, Recipe, RecipeIngredient, ScoredRecipe
from .pantry import PantryAnalysis, analyze_pantry
from .scoring import score_recipe

logger = logging.getLogger(__name__)

Ing = RecipeIngredient

COOK_TIME_FRACTION = 0.6
DEFAULT_MIN_MATCH_SCORE = 0.3

GUIDANCE_TITLE = "Add Main Ingredients Needed"
GUIDANCE_INSTRUCTIONS = [
    "Add main ingredients like chicken, vegetables, rice, or pasta to your pantry",
    "Main ingredients form the foundation of any great recipe",
    "Your available seasonings will enhance these main ingredients perfectly",
    "Try adding at least 2-3 different types of main ingredients for the best recipes",
]


@dataclass
class SynthesisOptions:
    cooking_time: int = 30
    servings: int = 4
    difficulty: Difficulty = Difficulty.MEDIUM

    def __post_init__(self):
        if self.cooking_time <= 0:
            raise ValueError(f"cooking_time must be positive, got {self.cooking_time}")
        if self.servings <= 0:
            raise ValueError(f"servings must be positive, got {self.servings}")
        self.difficulty = Difficulty(self.difficulty)


@dataclass(frozen=True)
class RecipeStyle:
    """A flavor profile: cuisine, vocabulary, enhancers and cooking steps.

    Step templates may use {protein}, {vegetables}, {grain} and {cook_time}.
    """
    name: str
    cuisine: str
    tags: List[str]
    flavor: str
    technique: str
    enhancers: List[RecipeIngredient]
    steps: List[str]


STYLES: List[RecipeStyle] = [
    RecipeStyle(
        name="Fusion Magic",
        cuisine="Fusion",
        tags=["innovative", "fusion", "creative"],
        flavor="bold and unexpected",
        technique="fusion techniques",
        enhancers=[Ing("ginger", "1", "tsp"), Ing("soy sauce", "1", "tbsp")],
        steps=[
            "Heat oil in your largest pan until shimmering",
            "Sear {protein} until golden, about {cook_time} minutes",
            "Add {vegetables} and toss together for 3-4 minutes",
            "Drizzle in soy sauce and ginger and let the sauce coat everything",
        ],
    ),
    RecipeStyle(
        name="Comfort Elevated",
        cuisine="American",
        tags=["comfort", "elevated", "cozy"],
        flavor="familiar yet special",
        technique="comfort food mastery",
        enhancers=[Ing("butter", "2", "tbsp"), Ing("thyme", "1", "tsp")],
        steps=[
            "Warm butter in a pan over medium heat until it smells nutty",
            "Gently cook {protein} until browned, {cook_time} minutes",
            "Nestle in {vegetables} and cook until tender",
            "Finish with thyme and spoon the butter over the top",
        ],
    ),
    RecipeStyle(
        name="Mediterranean Fresh",
        cuisine="Mediterranean",
        tags=["fresh", "healthy", "bright"],
        flavor="bright and herbaceous",
        technique="Mediterranean simplicity",
        enhancers=[Ing("lemon juice", "2", "tbsp"), Ing("oregano", "1", "tsp")],
        steps=[
            "Heat olive oil gently over medium heat",
            "Cook {protein} just until done, about {cook_time} minutes",
            "Toss in {vegetables} for a quick sauté",
            "Finish with a squeeze of lemon and a pinch of oregano",
        ],
    ),
    RecipeStyle(
        name="Asian Inspired",
        cuisine="Asian",
        tags=["umami", "balanced", "aromatic"],
        flavor="umami-rich and balanced",
        technique="Asian cooking principles",
        enhancers=[Ing("garlic", "2", "cloves"), Ing("sesame oil", "1", "tsp")],
        steps=[
            "Heat a wok or large skillet over high heat",
            "Stir-fry {protein} with minced garlic for {cook_time} minutes",
            "Add {vegetables} and keep everything moving for 3 minutes",
            "Finish with a drizzle of sesame oil and serve over {grain}",
        ],
    ),
    RecipeStyle(
        name="Rustic Italian",
        cuisine="Italian",
        tags=["rustic", "authentic", "soul-warming"],
        flavor="rustic and soul-warming",
        technique="traditional Italian methods",
        enhancers=[Ing("garlic", "3", "cloves"), Ing("basil", "1", "tbsp")],
        steps=[
            "Warm olive oil with sliced garlic until fragrant",
            "Brown {protein} slowly, about {cook_time} minutes",
            "Add {vegetables} and let them soften in the garlicky oil",
            "Tear in fresh basil and serve with {grain}",
        ],
    ),
    RecipeStyle(
        name="Modern Bistro",
        cuisine="French",
        tags=["sophisticated", "bistro", "refined"],
        flavor="refined yet approachable",
        technique="French bistro techniques",
        enhancers=[Ing("garlic powder", "1", "tsp")],
        steps=[
            "Pat {protein} dry and season well",
            "Sear in a hot pan until a golden crust forms, {cook_time} minutes",
            "Cook {vegetables} in the pan juices until glossy",
            "Rest the {protein} briefly, then plate over the vegetables",
        ],
    ),
    RecipeStyle(
        name="Spicy Adventure",
        cuisine="Mexican",
        tags=["spicy", "vibrant", "bold"],
        flavor="bold and vibrant",
        technique="Mexican spice mastery",
        enhancers=[Ing("garlic powder", "1", "tsp")],
        steps=[
            "Heat oil in a large pan over medium-high heat",
            "Cook {protein} with the spices until charred at the edges, {cook_time} minutes",
            "Add {vegetables} and cook until just tender",
            "Taste for heat and serve with {grain}",
        ],
    ),
    RecipeStyle(
        name="Garden Fresh",
        cuisine="Vegetarian",
        tags=["fresh", "vegetarian", "garden"],
        flavor="garden-fresh and pure",
        technique="vegetable-forward cooking",
        enhancers=[Ing("garlic powder", "1", "tsp")],
        steps=[
            "Heat oil in a large pan over medium heat",
            "Cook {protein} until golden, {cook_time} minutes",
            "Add {vegetables} and cook until bright and tender",
            "Season generously and serve with {grain}",
        ],
    ),
]

TITLE_TEMPLATES = [
    "{style} {protein} Delight",
    "Pantry {protein} & {vegetable} {style}",
    "{cuisine} {protein} Magic",
    "{protein} {vegetable} {style}",
    "Pantry {style}: {protein} Edition",
    "{style} {protein} Adventure",
    "{protein} & {vegetable} {cuisine} Style",
]

DESCRIPTION_TEMPLATES = [
    "A {flavor} creation that turns your pantry ingredients into dinner.",
    "A {flavor} dish built entirely from what you already have.",
    "Using {technique}, simple ingredients become something special.",
    "This {flavor} plate proves the best meals come from your own pantry.",
    "Get ready for {flavor} flavors with almost no shopping required.",
]

PROTEIN_KEYWORDS = ["chicken", "beef", "pork", "fish", "salmon"]
LARGE_PRODUCE_KEYWORDS = ["onion", "bell pepper", "carrot"]
LEAFY_KEYWORDS = ["broccoli", "spinach", "mushroom"]
GRAIN_KEYWORDS = ["rice", "pasta", "quinoa"]

TEMPLATE_BANK: List[Recipe] = [
    Recipe(
        id="programmatic-quick-chicken-stir-fry",
        title="Quick Chicken Stir Fry",
        description="A fast and delicious stir fry perfect for busy weeknights",
        ingredients=[
            Ing("chicken breast", "1", "lb"),
            Ing("mixed vegetables", "2", "cups"),
            Ing("soy sauce", "2", "tbsp"),
            Ing("olive oil", "2", "tbsp"),
        ],
        instructions=[
            "Heat oil in large pan over high heat",
            "Add chicken and cook 5-6 minutes until golden",
            "Add vegetables and stir-fry 3-4 minutes",
            "Add soy sauce and toss to combine",
            "Serve immediately over rice",
        ],
        cooking_time=15,
        servings=2,
        difficulty=Difficulty.EASY,
        cuisine="Asian",
        tags=["quick", "healthy", "protein"],
        required_ingredients=["chicken", "vegetables"],
        optional_ingredients=["soy sauce", "rice", "garlic"],
    ),
    Recipe(
        id="programmatic-pasta-marinara",
        title="Simple Pasta Marinara",
        description="Classic Italian comfort food with a homemade touch",
        ingredients=[
            Ing("pasta", "8", "oz"),
            Ing("tomatoes", "2", "cups"),
            Ing("garlic", "3", "cloves"),
            Ing("olive oil", "2", "tbsp"),
        ],
        instructions=[
            "Cook pasta according to package directions",
            "Heat olive oil and sauté minced garlic",
            "Add tomatoes and simmer 10 minutes",
            "Toss with drained pasta",
            "Season with salt and pepper",
        ],
        cooking_time=20,
        servings=3,
        difficulty=Difficulty.EASY,
        cuisine="Italian",
        tags=["pasta", "vegetarian", "classic"],
        required_ingredients=["pasta", "tomatoes"],
        optional_ingredients=["garlic", "herbs", "cheese"],
    ),
    Recipe(
        id="programmatic-scrambled-eggs",
        title="Perfect Scrambled Eggs",
        description="Creamy, fluffy eggs for the perfect breakfast",
        ingredients=[
            Ing("eggs", "4", "large"),
            Ing("butter", "2", "tbsp"),
            Ing("milk", "2", "tbsp"),
        ],
        instructions=[
            "Crack eggs into bowl and whisk with milk",
            "Heat butter in non-stick pan over low heat",
            "Add eggs and stir gently as they cook",
            "Remove from heat while slightly underdone",
            "Season with salt and pepper",
        ],
        cooking_time=5,
        servings=2,
        difficulty=Difficulty.EASY,
        cuisine="American",
        tags=["breakfast", "protein", "quick"],
        required_ingredients=["eggs"],
        optional_ingredients=["butter", "milk", "cheese"],
    ),
]


def _format_amount(value: float) -> str:
    return f"{value:g}"


def estimate_amount(ingredient: str, servings: int) -> RecipeIngredient:
    """Size an ingredient for a serving count using category rules of thumb."""
    name = normalize(ingredient)
    if any(k in name for k in PROTEIN_KEYWORDS):
        return Ing(ingredient, _format_amount(servings * 0.25), "lb")
    if any(k in name for k in LARGE_PRODUCE_KEYWORDS):
        return Ing(ingredient, str(max(1, servings // 2)), "large")
    if any(k in name for k in LEAFY_KEYWORDS):
        return Ing(ingredient, str(servings), "cups")
    if any(k in name for k in GRAIN_KEYWORDS):
        return Ing(ingredient, _format_amount(servings * 0.5), "cups")
    return Ing(ingredient, str(servings), "portions")


class RecipeSynthesizer:
    """Offline recipe generator.

    Args:
        rng: Random source for style, title and description choice and ids
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{self.rng.getrandbits(48):012x}"

    def synthesize(self, pantry: List[str], options: Optional[SynthesisOptions] = None,
                   style: Optional[RecipeStyle] = None) -> Recipe:
        """Create one recipe from the pantry.

        Args:
            pantry: Free-text pantry items
            options: Cooking time, servings and difficulty to echo onto the recipe
            style: Force a style instead of choosing one at random

        Returns:
            A complete recipe, or a guidance recipe (``is_guidance=True``)
            when the pantry has no substantive ingredient
        """
        options = options or SynthesisOptions()
        analysis = analyze_pantry(pantry)

        if not analysis.has_substantive:
            logger.info("[SYNTH] No substantive ingredients, returning guidance")
            return self.guidance_recipe(analysis, options)

        style = style or self.rng.choice(STYLES)
        recipe = self._build(analysis, options, style)
        logger.debug(f"[SYNTH] {recipe.id} '{recipe.title}' style={style.name}")
        return recipe

    def synthesize_many(self, pantry: List[str], count: int,
                        options: Optional[SynthesisOptions] = None) -> List[Recipe]:
        """Create up to ``count`` recipes, cycling through distinct styles first."""
        if count <= 0:
            return []
        options = options or SynthesisOptions()
        analysis = analyze_pantry(pantry)
        if not analysis.has_substantive:
            return [self.guidance_recipe(analysis, options)]

        styles = self.rng.sample(STYLES, len(STYLES))
        return [self._build(analysis, options, styles[i % len(styles)]) for i in range(count)]

    def guidance_recipe(self, analysis: PantryAnalysis, options: SynthesisOptions) -> Recipe:
        ingredients = [Ing(name, "available") for name in analysis.enhancers]
        if not ingredients:
            ingredients = [Ing("main ingredients needed", "add to pantry")]

        return Recipe(
            id=self._new_id("guidance"),
            title=GUIDANCE_TITLE,
            description=(
                "Please add proteins, vegetables, or grains to your pantry to generate recipes. "
                "Seasonings alone cannot make a complete meal."
            ),
            ingredients=ingredients,
            instructions=list(GUIDANCE_INSTRUCTIONS),
            cooking_time=options.cooking_time,
            servings=options.servings,
            difficulty=Difficulty.EASY,
            cuisine="Educational",
            tags=["guidance", "pantry-help"],
            required_ingredients=["main ingredients needed"],
            optional_ingredients=list(analysis.enhancers),
            is_guidance=True,
        )

    def _build(self, analysis: PantryAnalysis, options: SynthesisOptions,
               style: RecipeStyle) -> Recipe:
        protein = analysis.proteins[0] if analysis.proteins else None
        vegetables = analysis.vegetables[:2]
        grain = analysis.grains[0] if analysis.grains else None
        # Dairy, fruit and unknown items anchor the dish when the main buckets are thin
        supporting = (analysis.dairy + analysis.fruits + analysis.other)[:2]

        mains = ([protein] if protein else []) + vegetables + ([grain] if grain else []) + supporting
        ingredients = [estimate_amount(name, options.servings) for name in mains]

        seen = {normalize(i.name) for i in ingredients}

        def _add(ing: RecipeIngredient):
            key = normalize(ing.name)
            if key not in seen:
                seen.add(key)
                ingredients.append(ing)

        for enhancer in style.enhancers:
            _add(enhancer)
        for enhancer in analysis.enhancers[:3]:
            _add(Ing(enhancer, "to taste"))
        _add(Ing("olive oil", "2", "tbsp"))
        _add(Ing("salt", "to taste"))
        _add(Ing("black pepper", "to taste"))

        protein_label = protein or (supporting[0] if supporting else "your main ingredient")
        vegetable_label = " and ".join(vegetables) if vegetables else "your vegetables"
        fill = {
            "protein": protein_label,
            "vegetables": vegetable_label,
            "grain": grain or "rice",
            "cook_time": max(1, math.floor(options.cooking_time * COOK_TIME_FRACTION)),
        }

        instructions = [f"Prep all ingredients: dice the vegetables and season {protein_label} generously"]
        instructions.extend(step.format(**fill) for step in style.steps)
        if grain:
            instructions.append(f"Cook {grain} according to package directions while the pan works")
        instructions.append("Taste and adjust the seasoning")
        instructions.append(f"Serve immediately and enjoy your {style.name.lower()} dinner")

        title = self.rng.choice(TITLE_TEMPLATES).format(
            style=style.name,
            cuisine=style.cuisine,
            protein=(protein or "Pantry").title(),
            vegetable=(vegetables[0] if vegetables else "Garden").title(),
        )
        description = self.rng.choice(DESCRIPTION_TEMPLATES).format(
            flavor=style.flavor, technique=style.technique
        )

        return Recipe(
            id=self._new_id("programmatic"),
            title=title,
            description=description,
            ingredients=ingredients,
            instructions=instructions,
            cooking_time=options.cooking_time,
            servings=options.servings,
            difficulty=options.difficulty,
            cuisine=style.cuisine,
            tags=list(style.tags) + ["pantry-magic", "programmatic"],
            required_ingredients=mains,
            optional_ingredients=["herbs", "spices"],
        )

    def find_recipes(
        self,
        pantry: List[str],
        max_results: int = 5,
        min_match_score: float = DEFAULT_MIN_MATCH_SCORE,
        max_cooking_time: Optional[int] = None,
        difficulty: Optional[Difficulty] = None,
        cuisine: Optional[str] = None,
    ) -> List[ScoredRecipe]:
        """Match the hand-written template bank against a pantry."""
        if not analyze_pantry(pantry).has_substantive:
            return []

        matches = []
        for recipe in TEMPLATE_BANK:
            if max_cooking_time is not None and recipe.cooking_time > max_cooking_time:
                continue
            if difficulty is not None and recipe.difficulty != difficulty:
                continue
            if cuisine and cuisine.lower() not in recipe.cuisine.lower():
                continue
            score = score_recipe(recipe, pantry)
            if score >= min_match_score:
                matches.append(ScoredRecipe(recipe=recipe, source=recipe.source, match_score=score))

        matches.sort(key=lambda s: s.match_score, reverse=True)
        return matches[:max_results]
