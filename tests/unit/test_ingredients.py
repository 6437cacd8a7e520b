"""
Unit tests for the ingredient classifier and matching primitive.
"""

from pantry_chef.data.ingredients import (
    INGREDIENT_TABLE,
    classify,
    get_category_info,
    get_suggestions,
    ingredients_by_category,
    ingredients_match,
    is_substantive,
    matches_any,
)
from pantry_chef.data.models import IngredientCategory


class TestIngredientsMatch:
    """Test the shared bidirectional substring match."""

    def test_either_direction(self):
        assert ingredients_match("chicken", "chicken breast")
        assert ingredients_match("Chicken Breast", "chicken")

    def test_case_and_whitespace_insensitive(self):
        assert ingredients_match("  RICE ", "brown rice")

    def test_unrelated(self):
        assert not ingredients_match("beef", "broccoli")

    def test_empty_never_matches(self):
        assert not ingredients_match("", "rice")
        assert not ingredients_match("rice", "   ")

    def test_matches_any(self):
        assert matches_any("broccoli florets", ["rice", "broccoli"])
        assert not matches_any("salmon", [])


class TestClassify:
    """Test lookup order: name, alias, then substring."""

    def test_exact_canonical_name(self):
        info = classify("Chicken breast")
        assert info.canonical_name == "Chicken breast"
        assert info.category == IngredientCategory.PROTEIN

    def test_exact_alias(self):
        assert classify("prawns").canonical_name == "Shrimp"
        assert classify("EVOO").canonical_name == "Olive oil"

    def test_partial_match(self):
        """Test that a longer free-text name finds the entry it contains."""
        assert classify("chicken thighs").canonical_name == "Chicken breast"
        assert classify("fettuccine pasta").category == IngredientCategory.GRAIN

    def test_unknown_returns_none(self):
        assert classify("dragonfruit") is None
        assert classify("sesame oil") is None
        assert classify("") is None

    def test_enhancers_are_not_substantive(self):
        assert not is_substantive("salt")
        assert not is_substantive("olive oil")
        assert not is_substantive("butter")
        assert not is_substantive("fresh basil")

    def test_unknown_counts_as_substantive(self):
        assert is_substantive("dragonfruit")

    def test_mains_are_substantive(self):
        for name in ["chicken", "broccoli", "rice", "cheese", "apple"]:
            assert is_substantive(name), name


class TestSuggestions:
    """Test ingredient autocomplete."""

    def test_short_input_returns_nothing(self):
        assert get_suggestions("c") == []
        assert get_suggestions("") == []

    def test_name_prefix_ranks_first(self):
        suggestions = get_suggestions("ch")
        assert suggestions[0].canonical_name == "Chicken breast"
        assert len(suggestions) <= 5

    def test_alias_prefix(self):
        names = [s.canonical_name for s in get_suggestions("evo")]
        assert names == ["Olive oil"]

    def test_contains_match_after_prefixes(self):
        names = [s.canonical_name for s in get_suggestions("oil", limit=10)]
        assert "Olive oil" in names
        assert "Coconut oil" in names

    def test_limit(self):
        assert len(get_suggestions("on", limit=2)) == 2


class TestCategories:
    """Test category helpers."""

    def test_every_category_has_entries(self):
        by_category = ingredients_by_category()
        assert set(by_category) == set(IngredientCategory)
        assert sum(len(v) for v in by_category.values()) == len(INGREDIENT_TABLE)

    def test_category_info(self):
        assert get_category_info("protein") == {"category": "protein", "name": "Proteins"}
        assert get_category_info("grain")["name"] == "Grains & Starches"

    def test_unknown_category_is_other(self):
        assert get_category_info("candy") == {"category": "other", "name": "Other"}
        assert get_category_info(None)["name"] == "Other"
