"""
Ingredient usage tracking and quick-add suggestions.

Every time a user adds ingredients to a working pantry the engine records
per-ingredient counts, recent co-occurrences and the combination as a
pattern. Suggestions draw on that history. None of this feeds recipe
scoring.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .data.ingredients import classify, matches_any, normalize
from .data.kv_store import KeyValueStore, load_json, remove_key, save_json
from .data.models import IngredientCategory, IngredientPattern, IngredientUsageStat, QuickSuggestion
from .pantry import clean_pantry

logger = logging.getLogger(__name__)

USAGE_KEY = "ingredient_usage"
PATTERNS_KEY = "ingredient_patterns"

MAX_CO_OCCURRING = 10
MAX_PATTERNS = 100
MIN_FREQUENCY = 2
PATTERN_FREQUENCY_WEIGHT = 0.7
PATTERN_AGE_WEIGHT = 0.3
SUGGESTIONS_PER_KIND = 3

STARTER_SUGGESTIONS = [
    ("chicken breast", IngredientCategory.PROTEIN, 90),
    ("onions", IngredientCategory.VEGETABLE, 85),
    ("rice", IngredientCategory.GRAIN, 80),
    ("garlic", IngredientCategory.VEGETABLE, 75),
    ("olive oil", IngredientCategory.FAT, 70),
    ("salt", IngredientCategory.SEASONING, 65),
]

ESSENTIAL_CATEGORIES = [
    IngredientCategory.PROTEIN,
    IngredientCategory.VEGETABLE,
    IngredientCategory.GRAIN,
]


def _load_usage(store: KeyValueStore) -> Dict[str, IngredientUsageStat]:
    stats = {}
    for name, data in load_json(store, USAGE_KEY, dict).items():
        try:
            stats[name] = IngredientUsageStat.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[USAGE] Skipping unreadable stat {name}: {e}")
    return stats


def _load_patterns(store: KeyValueStore) -> List[IngredientPattern]:
    patterns = []
    for data in load_json(store, PATTERNS_KEY, list):
        try:
            patterns.append(IngredientPattern.from_dict(data))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[USAGE] Skipping unreadable pattern: {e}")
    return patterns


def _pattern_score(pattern: IngredientPattern, now: datetime) -> float:
    days = max(0.0, (now - pattern.last_used_at).total_seconds() / 86400)
    return pattern.frequency * PATTERN_FREQUENCY_WEIGHT - days * PATTERN_AGE_WEIGHT


def record_ingredient_usage(store: KeyValueStore, ingredients: List[str],
                            now: Optional[datetime] = None):
    """Update usage stats and combination patterns for a batch of added ingredients."""
    now = now or datetime.now()
    names = [normalize(i) for i in clean_pantry(ingredients)]
    if not names:
        return

    stats = _load_usage(store)
    for name in names:
        stat = stats.get(name)
        if stat is None:
            info = classify(name)
            stat = IngredientUsageStat(
                name=name, count=0, last_used_at=now, category=info.category if info else None
            )
            stats[name] = stat
        stat.count += 1
        stat.last_used_at = now

        for other in names:
            if other == name:
                continue
            if other in stat.co_occurring:
                stat.co_occurring.remove(other)
            stat.co_occurring.insert(0, other)
        del stat.co_occurring[MAX_CO_OCCURRING:]

    save_json(store, USAGE_KEY, {name: s.to_dict() for name, s in stats.items()})

    if len(names) >= 2:
        combo = sorted(names)
        patterns = _load_patterns(store)
        for pattern in patterns:
            if pattern.ingredients == combo:
                pattern.frequency += 1
                pattern.last_used_at = now
                break
        else:
            patterns.append(IngredientPattern(ingredients=combo, frequency=1, last_used_at=now))

        if len(patterns) > MAX_PATTERNS:
            patterns = sorted(patterns, key=lambda p: _pattern_score(p, now), reverse=True)[:MAX_PATTERNS]
        save_json(store, PATTERNS_KEY, [p.to_dict() for p in patterns])

    logger.debug(f"[USAGE] Recorded {len(names)} ingredients")


def get_quick_suggestions(store: KeyValueStore, pantry: List[str],
                          max_suggestions: int = 6) -> List[QuickSuggestion]:
    """Ingredients the user is likely to add next, highest priority first.

    Args:
        store: Key-value store with usage history
        pantry: Items already in the working pantry
        max_suggestions: Maximum suggestions to return

    Returns:
        Suggestions from usage history, or a fixed starter list when
        history offers nothing
    """
    current = [normalize(i) for i in clean_pantry(pantry)]

    def _in_pantry(name: str) -> bool:
        return matches_any(name, current)

    stats = _load_usage(store)
    patterns = _load_patterns(store)
    candidates: Dict[str, QuickSuggestion] = {}

    def _offer(suggestion: QuickSuggestion):
        existing = candidates.get(suggestion.name)
        if existing is None or suggestion.priority > existing.priority:
            candidates[suggestion.name] = suggestion

    frequent = sorted(
        (s for s in stats.values() if s.count >= MIN_FREQUENCY and not _in_pantry(s.name)),
        key=lambda s: (-s.count, -s.last_used_at.timestamp(), s.name),
    )
    for stat in frequent[:SUGGESTIONS_PER_KIND]:
        _offer(QuickSuggestion(stat.name, "frequent", 80 + 5 * stat.count, stat.category))

    if current:
        weights: Dict[str, int] = {}
        for pattern in patterns:
            if pattern.frequency < MIN_FREQUENCY:
                continue
            present = [i for i in pattern.ingredients if _in_pantry(i)]
            if not present or len(present) == len(pattern.ingredients):
                continue
            for ingredient in pattern.ingredients:
                if not _in_pantry(ingredient):
                    weights[ingredient] = weights.get(ingredient, 0) + pattern.frequency
        complementary = sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))
        for name, weight in complementary[:SUGGESTIONS_PER_KIND]:
            info = classify(name)
            _offer(QuickSuggestion(name, "complementary", 70 + 3 * weight, info.category if info else None))

    present_categories = {info.category for info in (classify(i) for i in current) if info}
    for category in ESSENTIAL_CATEGORIES:
        if category in present_categories:
            continue
        options = sorted(
            (s for s in stats.values() if s.category == category and not _in_pantry(s.name)),
            key=lambda s: (-s.count, s.name),
        )
        if options:
            best = options[0]
            _offer(QuickSuggestion(best.name, "missing_category", 60 + 2 * best.count, category))

    suggestions = sorted(candidates.values(), key=lambda s: (-s.priority, s.name))
    if not suggestions:
        suggestions = [
            QuickSuggestion(name, "starter", priority, category)
            for name, category, priority in STARTER_SUGGESTIONS
            if not _in_pantry(name)
        ]
    return suggestions[:max_suggestions]


def get_usage_stats(store: KeyValueStore) -> Dict:
    stats = _load_usage(store)
    patterns = _load_patterns(store)
    most_used = sorted(stats.values(), key=lambda s: (-s.count, s.name))[:5]
    return {
        "total_ingredients": len(stats),
        "total_uses": sum(s.count for s in stats.values()),
        "total_patterns": len(patterns),
        "most_used": [(s.name, s.count) for s in most_used],
    }


def clear_usage(store: KeyValueStore):
    remove_key(store, USAGE_KEY)
    remove_key(store, PATTERNS_KEY)
    logger.info("[USAGE] Usage history cleared")
