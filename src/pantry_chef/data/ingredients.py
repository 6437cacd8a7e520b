"""
Static ingredient classifier.

Maps free-text ingredient names to a canonical entry with a category and a
substantive/enhancer flag. Also owns ``ingredients_match``, the single
string-matching primitive every other module uses to decide whether a
recipe ingredient and a pantry item refer to the same thing.
"""

from typing import Dict, Iterable, List, Optional

from .models import IngredientCategory, IngredientInfo

P = IngredientCategory


def _entry(name: str, category: IngredientCategory, aliases: Iterable[str] = (),
           substantive: bool = True) -> IngredientInfo:
    return IngredientInfo(
        canonical_name=name,
        category=category,
        aliases=frozenset(aliases),
        is_substantive=substantive,
    )


# Declaration order matters: partial matches return the first entry found.
INGREDIENT_TABLE: List[IngredientInfo] = [
    # Proteins
    _entry("Chicken breast", P.PROTEIN, ["chicken", "chicken breasts"]),
    _entry("Ground beef", P.PROTEIN, ["beef", "ground meat", "hamburger"]),
    _entry("Salmon", P.PROTEIN, ["salmon fillet", "fish"]),
    _entry("Pork chops", P.PROTEIN, ["pork", "pork chop"]),
    _entry("Turkey", P.PROTEIN, ["turkey breast", "ground turkey"]),
    _entry("Shrimp", P.PROTEIN, ["prawns", "shrimps"]),
    _entry("Tofu", P.PROTEIN, ["soy protein"]),
    _entry("Eggs", P.PROTEIN, ["egg"]),
    _entry("Black beans", P.PROTEIN, ["beans", "black bean"]),
    _entry("Lentils", P.PROTEIN, ["red lentils", "green lentils"]),
    _entry("Chickpeas", P.PROTEIN, ["garbanzo beans", "chickpea"]),

    # Vegetables
    _entry("Onions", P.VEGETABLE, ["onion", "yellow onion", "white onion"]),
    _entry("Garlic", P.VEGETABLE, ["garlic cloves", "fresh garlic"]),
    _entry("Tomatoes", P.VEGETABLE, ["tomato", "fresh tomatoes"]),
    _entry("Bell peppers", P.VEGETABLE, ["peppers", "bell pepper", "red pepper", "green pepper"]),
    _entry("Carrots", P.VEGETABLE, ["carrot"]),
    _entry("Broccoli", P.VEGETABLE, ["broccoli florets"]),
    _entry("Spinach", P.VEGETABLE, ["fresh spinach", "baby spinach"]),
    _entry("Mushrooms", P.VEGETABLE, ["mushroom", "button mushrooms", "cremini"]),
    _entry("Zucchini", P.VEGETABLE, ["zucchinis"]),
    _entry("Potatoes", P.VEGETABLE, ["potato", "russet potatoes"]),
    _entry("Sweet potatoes", P.VEGETABLE, ["sweet potato"]),
    _entry("Cauliflower", P.VEGETABLE, ["cauliflower florets"]),

    # Grains and starches
    _entry("Rice", P.GRAIN, ["white rice", "brown rice", "jasmine rice"]),
    _entry("Pasta", P.GRAIN, ["spaghetti", "penne", "noodles"]),
    _entry("Bread", P.GRAIN, ["sandwich bread", "loaf bread"]),
    _entry("Quinoa", P.GRAIN),
    _entry("Oats", P.GRAIN, ["rolled oats", "oatmeal"]),
    _entry("Flour", P.GRAIN, ["all-purpose flour", "wheat flour"]),

    # Dairy
    _entry("Milk", P.DAIRY, ["whole milk", "2% milk"]),
    _entry("Cheese", P.DAIRY, ["cheddar cheese", "mozzarella"]),
    _entry("Butter", P.DAIRY, ["unsalted butter"], substantive=False),
    _entry("Greek yogurt", P.DAIRY, ["yogurt"]),
    _entry("Cream cheese", P.DAIRY),
    _entry("Heavy cream", P.DAIRY, ["heavy whipping cream"], substantive=False),

    # Seasonings
    _entry("Salt", P.SEASONING, ["table salt", "sea salt"], substantive=False),
    _entry("Black pepper", P.SEASONING, ["pepper", "ground black pepper"], substantive=False),
    _entry("Garlic powder", P.SEASONING, substantive=False),
    _entry("Onion powder", P.SEASONING, substantive=False),
    _entry("Paprika", P.SEASONING, substantive=False),
    _entry("Cumin", P.SEASONING, ["ground cumin"], substantive=False),
    _entry("Oregano", P.SEASONING, ["dried oregano"], substantive=False),
    _entry("Thyme", P.SEASONING, ["dried thyme"], substantive=False),
    _entry("Red pepper flakes", P.SEASONING, ["chili flakes", "crushed red pepper"],
           substantive=False),
    _entry("Lowry's Seasoned Salt", P.SEASONING,
           ["lowrys", "lowry's", "lowrys seasoned salt", "seasoned salt"], substantive=False),
    _entry("Italian seasoning", P.SEASONING, ["italian herbs"], substantive=False),
    _entry("Cinnamon", P.SEASONING, ["ground cinnamon"], substantive=False),
    _entry("Chili powder", P.SEASONING, substantive=False),

    # Fresh herbs
    _entry("Fresh basil", P.HERB, ["basil"], substantive=False),
    _entry("Fresh parsley", P.HERB, ["parsley"], substantive=False),
    _entry("Fresh cilantro", P.HERB, ["cilantro"], substantive=False),
    _entry("Fresh rosemary", P.HERB, ["rosemary"], substantive=False),

    # Oils and fats
    _entry("Olive oil", P.FAT, ["extra virgin olive oil", "evoo"], substantive=False),
    _entry("Vegetable oil", P.FAT, ["cooking oil"], substantive=False),
    _entry("Coconut oil", P.FAT, substantive=False),

    # Fruits
    _entry("Apples", P.FRUIT, ["apple"]),
    _entry("Bananas", P.FRUIT, ["banana"]),
    _entry("Lemons", P.FRUIT, ["lemon"]),
    _entry("Limes", P.FRUIT, ["lime"]),

    # Condiments
    _entry("Soy sauce", P.CONDIMENT, substantive=False),
    _entry("Vinegar", P.CONDIMENT, ["white vinegar", "apple cider vinegar"], substantive=False),
    _entry("Honey", P.CONDIMENT, substantive=False),
    _entry("Mustard", P.CONDIMENT, ["dijon mustard"], substantive=False),
    _entry("Hot sauce", P.CONDIMENT, substantive=False),
]

CATEGORY_DISPLAY_NAMES: Dict[IngredientCategory, str] = {
    P.PROTEIN: "Proteins",
    P.VEGETABLE: "Vegetables",
    P.GRAIN: "Grains & Starches",
    P.DAIRY: "Dairy",
    P.SEASONING: "Seasonings",
    P.HERB: "Fresh Herbs",
    P.FAT: "Oils & Fats",
    P.FRUIT: "Fruits",
    P.CONDIMENT: "Condiments",
}


def normalize(text: str) -> str:
    """Lower-case and trim an ingredient string."""
    return text.strip().lower()


def ingredients_match(a: str, b: str) -> bool:
    """True if either ingredient string contains the other (case-insensitive, trimmed).

    Empty strings never match anything.
    """
    a, b = normalize(a), normalize(b)
    if not a or not b:
        return False
    return a in b or b in a


def matches_any(ingredient: str, candidates: Iterable[str]) -> bool:
    return any(ingredients_match(ingredient, c) for c in candidates)


def classify(text: str) -> Optional[IngredientInfo]:
    """Look up an ingredient by exact name, then exact alias, then substring.

    Args:
        text: Free-text ingredient name (e.g. "Chicken Thighs")

    Returns:
        Matching table entry, or None for unknown ingredients. Callers treat
        None as a substantive, uncategorized ingredient.
    """
    query = normalize(text)
    if not query:
        return None

    for info in INGREDIENT_TABLE:
        if info.canonical_name.lower() == query:
            return info

    for info in INGREDIENT_TABLE:
        if any(alias.lower() == query for alias in info.aliases):
            return info

    for info in INGREDIENT_TABLE:
        if any(ingredients_match(query, name) for name in info.all_names()):
            return info

    return None


def is_substantive(text: str) -> bool:
    """Unknown ingredients count as substantive."""
    info = classify(text)
    return info is None or info.is_substantive


def get_suggestions(text: str, limit: int = 5) -> List[IngredientInfo]:
    """Autocomplete: name prefix matches first, then alias prefix, then contains."""
    if not text or len(text.strip()) < 2:
        return []

    query = normalize(text)
    suggestions: List[IngredientInfo] = []

    def _add(predicate):
        for info in INGREDIENT_TABLE:
            if info not in suggestions and predicate(info):
                suggestions.append(info)

    _add(lambda info: info.canonical_name.lower().startswith(query))
    _add(lambda info: any(a.lower().startswith(query) for a in info.aliases))
    _add(lambda info: any(query in name for name in info.all_names()))

    return suggestions[:limit]


def ingredients_by_category() -> Dict[IngredientCategory, List[IngredientInfo]]:
    by_category: Dict[IngredientCategory, List[IngredientInfo]] = {}
    for info in INGREDIENT_TABLE:
        by_category.setdefault(info.category, []).append(info)
    return by_category


def get_category_info(category: Optional[str]) -> Dict[str, str]:
    """Display name for a category value, "Other" for anything unknown."""
    try:
        key = IngredientCategory(category)
    except ValueError:
        return {"category": "other", "name": "Other"}
    return {"category": key.value, "name": CATEGORY_DISPLAY_NAMES[key]}
