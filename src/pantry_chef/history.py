"""
Recently shown recipes, newest first, used to avoid repeating suggestions.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .data.kv_store import KeyValueStore, load_json, remove_key, save_json
from .data.models import Recipe

logger = logging.getLogger(__name__)

HISTORY_KEY = "recipe_history"
MAX_HISTORY = 50


@dataclass
class HistoryEntry:
    recipe_id: str
    title: str
    shown_at: datetime

    def to_dict(self) -> Dict:
        return {"recipe_id": self.recipe_id, "title": self.title, "shown_at": self.shown_at.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict) -> "HistoryEntry":
        return cls(
            recipe_id=data["recipe_id"],
            title=data.get("title", ""),
            shown_at=datetime.fromisoformat(data["shown_at"]),
        )


def _key(user_id: Optional[str]) -> str:
    return f"{HISTORY_KEY}_{user_id}" if user_id else HISTORY_KEY


def get_history(store: KeyValueStore, user_id: Optional[str] = None) -> List[HistoryEntry]:
    entries = []
    for data in load_json(store, _key(user_id), list):
        try:
            entries.append(HistoryEntry.from_dict(data))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[HISTORY] Skipping unreadable entry: {e}")
    return entries


def save_recipes(store: KeyValueStore, recipes: List[Recipe], user_id: Optional[str] = None,
                 now: Optional[datetime] = None):
    """Put recipes at the front of the history, moving any already present."""
    now = now or datetime.now()
    new_ids = {r.id for r in recipes}
    fresh = [HistoryEntry(r.id, r.title, now) for r in recipes]
    older = [e for e in get_history(store, user_id) if e.recipe_id not in new_ids]
    entries = (fresh + older)[:MAX_HISTORY]
    save_json(store, _key(user_id), [e.to_dict() for e in entries])


def recent_recipe_ids(store: KeyValueStore, user_id: Optional[str] = None, limit: int = 10) -> List[str]:
    return [e.recipe_id for e in get_history(store, user_id)[:limit]]


def clear_history(store: KeyValueStore, user_id: Optional[str] = None):
    remove_key(store, _key(user_id))
