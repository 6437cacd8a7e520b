"""
Content-addressed cache of generated recipe pairs.

Keys combine a hash of the normalized pantry with a hash of the user's
learned-preference snapshot, so reordering or recasing a pantry still hits
while a change in preferences misses. Entries expire after a TTL and the
cache keeps only the highest ranked entries by access count plus recency.
"""

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .data.ingredients import normalize
from .data.kv_store import KeyValueStore, load_json, remove_key, save_json
from .data.models import CacheEntry, DerivedPreferences, Recipe
from .pantry import clean_pantry, validate_pantry

logger = logging.getLogger(__name__)

STORAGE_KEY = "recipe_cache"
NO_USER_HASH = "no-user"
# Seconds of recency worth one extra access when ranking entries for eviction
RECENCY_SECONDS_PER_ACCESS = 1000

RecipeGenerator = Callable[[List[str], Optional[DerivedPreferences]], List[Recipe]]
PreferenceLookup = Callable[[str], Optional[DerivedPreferences]]


@dataclass
class FastRecipesResult:
    recipes: List[Recipe]
    from_cache: bool
    cache_key: Optional[str] = None  # None when the result was not cacheable


def pantry_hash(pantry: List[str]) -> str:
    """Order- and case-insensitive hash of a pantry."""
    items = sorted({normalize(item) for item in clean_pantry(pantry)})
    return hashlib.sha256("|".join(items).encode("utf-8")).hexdigest()[:16]


def preference_hash(preferences: Optional[DerivedPreferences]) -> str:
    if preferences is None:
        return NO_USER_HASH
    snapshot = {
        "preferred_ingredients": preferences.preferred_ingredients,
        "disliked_ingredients": preferences.disliked_ingredients,
        "preferred_cuisines": preferences.preferred_cuisines,
        "disliked_cuisines": preferences.disliked_cuisines,
        "average_cooking_time": preferences.average_cooking_time,
    }
    encoded = json.dumps(snapshot, sort_keys=True).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


def cache_key(pantry: List[str], preferences: Optional[DerivedPreferences] = None) -> str:
    return f"{pantry_hash(pantry)}:{preference_hash(preferences)}"


def eviction_score(entry: CacheEntry) -> float:
    return entry.access_count + entry.last_accessed_at.timestamp() / RECENCY_SECONDS_PER_ACCESS


class RecipeResultCache:
    """Persisted pantry -> recipe pair cache.

    Args:
        store: Key-value store holding the entry list
        generator: Called on a miss with (pantry, preferences)
        preference_lookup: Resolves a user id to its derived preferences
        ttl_hours: Entries older than this are never served
        max_entries: Entries kept after eviction
        clock: Returns the current time
    """

    def __init__(
        self,
        store: KeyValueStore,
        generator: RecipeGenerator,
        preference_lookup: Optional[PreferenceLookup] = None,
        ttl_hours: float = 24,
        max_entries: int = 50,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.generator = generator
        self.preference_lookup = preference_lookup
        self.ttl = timedelta(hours=ttl_hours)
        self.max_entries = max_entries
        self.clock = clock
        self._lock = threading.Lock()

    # ==================== Persistence ====================

    def _load_entries(self) -> List[CacheEntry]:
        entries = []
        for data in load_json(self.store, STORAGE_KEY, list):
            try:
                entries.append(CacheEntry.from_dict(data))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"[CACHE] Skipping unreadable entry: {e}")
        return entries

    def _save_entries(self, entries: List[CacheEntry]):
        if not save_json(self.store, STORAGE_KEY, [e.to_dict() for e in entries]):
            logger.warning("[CACHE] Cache write failed; result still returned")

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.generated_at > self.ttl

    # ==================== Lookup ====================

    def _preferences(self, user_id: Optional[str]) -> Optional[DerivedPreferences]:
        if not user_id or self.preference_lookup is None:
            return None
        return self.preference_lookup(user_id)

    def get_or_generate(self, pantry: List[str], user_id: Optional[str] = None,
                        force_refresh: bool = False) -> FastRecipesResult:
        """Cached recipes for a pantry, generating and storing them on a miss.

        Args:
            pantry: Free-text pantry items
            user_id: Optional user whose preferences shape the key and generation
            force_refresh: Skip the lookup and regenerate

        Returns:
            FastRecipesResult. Invalid pantries get the generator's guidance
            response, which is never cached.
        """
        preferences = self._preferences(user_id)

        if not validate_pantry(pantry).valid:
            return FastRecipesResult(recipes=self.generator(pantry, preferences), from_cache=False)

        key = cache_key(pantry, preferences)
        now = self.clock()

        if not force_refresh:
            with self._lock:
                entries = self._load_entries()
                for entry in entries:
                    if entry.key == key and not self._is_expired(entry, now):
                        entry.access_count += 1
                        entry.last_accessed_at = now
                        self._save_entries(entries)
                        logger.info(f"[CACHE] Hit {key} (accessed {entry.access_count}x)")
                        return FastRecipesResult(recipes=entry.recipes, from_cache=True, cache_key=key)

        logger.info(f"[CACHE] Miss {key}{' (forced)' if force_refresh else ''}")
        recipes = self.generator(pantry, preferences)

        if recipes and not any(r.is_guidance for r in recipes):
            self._store(key, recipes, now)
        return FastRecipesResult(recipes=recipes, from_cache=False, cache_key=key)

    def _store(self, key: str, recipes: List[Recipe], now: datetime):
        pantry_part, preference_part = key.split(":", 1)
        with self._lock:
            entries = [e for e in self._load_entries() if e.key != key]
            entries.insert(0, CacheEntry(
                pantry_hash=pantry_part,
                preference_hash=preference_part,
                recipes=list(recipes),
                generated_at=now,
                access_count=1,
                last_accessed_at=now,
            ))
            self._save_entries(self._evict(entries, now))

    def _evict(self, entries: List[CacheEntry], now: datetime) -> List[CacheEntry]:
        fresh = [e for e in entries if not self._is_expired(e, now)]
        if len(fresh) > self.max_entries:
            fresh = sorted(fresh, key=eviction_score, reverse=True)[:self.max_entries]
        dropped = len(entries) - len(fresh)
        if dropped:
            logger.debug(f"[CACHE] Evicted {dropped} entries")
        return fresh

    # ==================== Maintenance ====================

    def stats(self) -> Dict:
        entries = self._load_entries()
        total_accesses = sum(e.access_count for e in entries)
        hits = total_accesses - len(entries)
        return {
            "total_entries": len(entries),
            "total_recipes": sum(len(e.recipes) for e in entries),
            "total_accesses": total_accesses,
            "hit_rate": round(hits / total_accesses, 3) if total_accesses else 0.0,
            "oldest_entry": min((e.generated_at for e in entries), default=None),
            "newest_entry": max((e.generated_at for e in entries), default=None),
        }

    def clear(self):
        with self._lock:
            remove_key(self.store, STORAGE_KEY)
        logger.info("[CACHE] Cleared")

    def pregenerate(self, pantries: Iterable[List[str]], user_id: Optional[str] = None) -> int:
        """Force generation for common pantries. Returns how many were cached."""
        generated = 0
        for pantry in pantries:
            try:
                result = self.get_or_generate(pantry, user_id=user_id, force_refresh=True)
            except Exception as e:
                logger.warning(f"[CACHE] Pregeneration failed for {pantry}: {e}")
                continue
            if result.cache_key:
                generated += 1
        logger.info(f"[CACHE] Pregenerated {generated} pantries")
        return generated
