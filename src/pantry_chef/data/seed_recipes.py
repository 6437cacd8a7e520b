"""
Professional recipes the local index starts with.
"""

from typing import List

from .models import Difficulty, NutritionInfo, Recipe, RecipeIngredient

Ing = RecipeIngredient


def _image(photo_id: str) -> str:
    return f"https://images.unsplash.com/photo-{photo_id}?ixlib=rb-4.0.3&w=400&q=80"


SEED_RECIPES: List[Recipe] = [
    Recipe(
        id="local-1",
        title="Classic Chicken Alfredo",
        description="Rich and creamy pasta dish with tender chicken breast and fresh parmesan cheese.",
        ingredients=[
            Ing("chicken breast", "2", "pieces"),
            Ing("fettuccine pasta", "12", "oz"),
            Ing("heavy cream", "1", "cup"),
            Ing("parmesan cheese", "1", "cup"),
            Ing("garlic", "3", "cloves"),
            Ing("butter", "4", "tbsp"),
            Ing("olive oil", "2", "tbsp"),
        ],
        instructions=[
            "Season chicken breasts with salt and pepper",
            "Heat olive oil in a large skillet over medium-high heat",
            "Cook chicken until golden brown and cooked through, about 6-7 minutes per side",
            "Remove chicken and slice into strips",
            "Cook fettuccine according to package directions",
            "In the same skillet, melt butter and sauté minced garlic for 1 minute",
            "Add heavy cream and bring to a gentle simmer",
            "Stir in parmesan cheese until melted and smooth",
            "Add cooked pasta and chicken to the sauce",
            "Toss to combine and serve immediately",
        ],
        cooking_time=25,
        servings=4,
        difficulty=Difficulty.MEDIUM,
        cuisine="Italian",
        tags=["pasta", "chicken", "creamy", "dinner", "professional"],
        image_url=_image("1645112411341-6c4fd023714a"),
        nutrition=NutritionInfo(calories=650, protein_g=35, carbs_g=45, fat_g=35),
    ),
    Recipe(
        id="local-2",
        title="Beef and Vegetable Stir Fry",
        description="Quick and healthy stir fry with tender beef strips and fresh vegetables.",
        ingredients=[
            Ing("beef", "1", "lb"),
            Ing("broccoli", "2", "cups"),
            Ing("bell pepper", "1", "piece"),
            Ing("onion", "1", "piece"),
            Ing("garlic", "3", "cloves"),
            Ing("soy sauce", "3", "tbsp"),
            Ing("sesame oil", "2", "tsp"),
            Ing("vegetable oil", "2", "tbsp"),
        ],
        instructions=[
            "Slice beef into thin strips against the grain",
            "Cut vegetables into bite-sized pieces",
            "Heat vegetable oil in a large wok or skillet over high heat",
            "Add beef and stir-fry for 2-3 minutes until browned",
            "Add garlic and onion, stir-fry for 1 minute",
            "Add broccoli and bell pepper, stir-fry for 3-4 minutes",
            "Add soy sauce and sesame oil",
            "Stir-fry for another 1-2 minutes until vegetables are crisp-tender",
            "Serve immediately over rice",
        ],
        cooking_time=15,
        servings=4,
        difficulty=Difficulty.EASY,
        cuisine="Asian",
        tags=["beef", "vegetables", "stir-fry", "quick", "healthy", "professional"],
        image_url=_image("1512058564366-18510be2db19"),
        nutrition=NutritionInfo(calories=320, protein_g=25, carbs_g=15, fat_g=18),
    ),
    Recipe(
        id="local-3",
        title="Mediterranean Salmon with Rice",
        description="Herb-crusted salmon with Mediterranean flavors served over fluffy rice.",
        ingredients=[
            Ing("salmon", "4", "fillets"),
            Ing("rice", "1", "cup"),
            Ing("olive oil", "3", "tbsp"),
            Ing("lemon", "1", "piece"),
            Ing("oregano", "2", "tsp"),
            Ing("garlic", "3", "cloves"),
            Ing("tomatoes", "2", "pieces"),
        ],
        instructions=[
            "Preheat oven to 400°F (200°C)",
            "Cook rice according to package directions",
            "Season salmon fillets with salt, pepper, and oregano",
            "Heat olive oil in an oven-safe skillet",
            "Sear salmon skin-side up for 3-4 minutes",
            "Flip salmon and add minced garlic around the pan",
            "Add lemon slices and diced tomatoes",
            "Transfer skillet to oven and bake for 8-10 minutes",
            "Serve salmon over rice with pan juices",
        ],
        cooking_time=25,
        servings=4,
        difficulty=Difficulty.MEDIUM,
        cuisine="Mediterranean",
        tags=["salmon", "fish", "rice", "healthy", "mediterranean", "professional"],
        image_url=_image("1519708227418-c8fd9a32b7a2"),
        nutrition=NutritionInfo(calories=450, protein_g=35, carbs_g=35, fat_g=20),
    ),
    Recipe(
        id="local-4",
        title="Vegetarian Pasta Primavera",
        description="Light and fresh pasta with seasonal vegetables and herbs.",
        ingredients=[
            Ing("pasta", "12", "oz"),
            Ing("zucchini", "1", "piece"),
            Ing("bell pepper", "1", "piece"),
            Ing("cherry tomatoes", "1", "cup"),
            Ing("broccoli", "1", "cup"),
            Ing("olive oil", "3", "tbsp"),
            Ing("garlic", "3", "cloves"),
            Ing("basil", "2", "tbsp"),
        ],
        instructions=[
            "Cook pasta according to package directions",
            "Cut all vegetables into bite-sized pieces",
            "Heat olive oil in a large skillet",
            "Sauté garlic for 30 seconds until fragrant",
            "Add harder vegetables (broccoli) first, cook 3 minutes",
            "Add remaining vegetables, cook 4-5 minutes",
            "Season with salt, pepper, and herbs",
            "Toss with cooked pasta and serve",
        ],
        cooking_time=20,
        servings=4,
        difficulty=Difficulty.EASY,
        cuisine="Italian",
        tags=["pasta", "vegetables", "vegetarian", "healthy", "italian", "professional"],
        image_url=_image("1563379091339-03246963d59a"),
        nutrition=NutritionInfo(calories=380, protein_g=12, carbs_g=65, fat_g=12),
    ),
    Recipe(
        id="local-5",
        title="Classic Chicken Rice Bowl",
        description="Seasoned chicken served over rice with vegetables.",
        ingredients=[
            Ing("chicken breast", "2", "pieces"),
            Ing("rice", "1", "cup"),
            Ing("broccoli", "1", "cup"),
            Ing("carrots", "2", "pieces"),
            Ing("soy sauce", "2", "tbsp"),
            Ing("garlic", "2", "cloves"),
            Ing("olive oil", "2", "tbsp"),
        ],
        instructions=[
            "Cook rice according to package directions",
            "Season chicken with salt and pepper",
            "Heat olive oil in a large pan",
            "Cook chicken until golden brown and cooked through",
            "Steam vegetables until tender-crisp",
            "Slice chicken and serve over rice",
            "Drizzle with soy sauce and serve with vegetables",
        ],
        cooking_time=25,
        servings=2,
        difficulty=Difficulty.EASY,
        cuisine="Asian",
        tags=["chicken", "rice", "healthy", "bowl", "easy", "professional"],
        image_url=_image("1546833999-b9f581a1996d"),
        nutrition=NutritionInfo(calories=420, protein_g=30, carbs_g=45, fat_g=12),
    ),
]
