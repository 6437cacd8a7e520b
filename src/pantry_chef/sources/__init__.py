"""
External recipe sources.
"""

from pantry_chef.sources.spoonacular import SpoonacularClient, convert_spoonacular_recipe

__all__ = [
    "SpoonacularClient",
    "convert_spoonacular_recipe",
]
