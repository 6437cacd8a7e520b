"""
Unit tests for the recently-shown recipe history.
"""

from pantry_chef import history
from pantry_chef.data.seed_recipes import SEED_RECIPES


class TestHistory:

    def test_newest_first(self, memory_store, clock):
        history.save_recipes(memory_store, SEED_RECIPES[:2], now=clock())
        clock.advance(minutes=5)
        history.save_recipes(memory_store, SEED_RECIPES[2:3], now=clock())

        assert history.recent_recipe_ids(memory_store) == ["local-3", "local-1", "local-2"]
        assert history.get_history(memory_store)[0].shown_at == clock()

    def test_repeat_moves_to_front(self, memory_store, clock):
        history.save_recipes(memory_store, SEED_RECIPES[:3], now=clock())
        history.save_recipes(memory_store, SEED_RECIPES[2:3], now=clock())

        assert history.recent_recipe_ids(memory_store) == ["local-3", "local-1", "local-2"]
        assert len(history.get_history(memory_store)) == 3

    def test_bounded(self, memory_store, recipe_factory):
        recipes = [recipe_factory(f"local-{i}", ["rice"]) for i in range(history.MAX_HISTORY + 5)]
        history.save_recipes(memory_store, recipes)

        entries = history.get_history(memory_store)
        assert len(entries) == history.MAX_HISTORY
        assert entries[0].recipe_id == "local-0"

    def test_limit(self, memory_store):
        history.save_recipes(memory_store, SEED_RECIPES)
        assert history.recent_recipe_ids(memory_store, limit=2) == ["local-1", "local-2"]

    def test_per_user(self, memory_store):
        history.save_recipes(memory_store, SEED_RECIPES[:1], user_id="alice")

        assert history.recent_recipe_ids(memory_store, user_id="alice") == ["local-1"]
        assert history.recent_recipe_ids(memory_store) == []
        assert memory_store.get("recipe_history_alice") is not None

    def test_clear(self, sqlite_store):
        history.save_recipes(sqlite_store, SEED_RECIPES[:2])
        history.clear_history(sqlite_store)
        assert history.get_history(sqlite_store) == []

    def test_unreadable_entries_skipped(self, memory_store):
        memory_store.set(
            history.HISTORY_KEY,
            '[{"recipe_id": "local-1", "shown_at": "2025-10-13T10:00:00"}, {"title": "broken"}]',
        )
        entries = history.get_history(memory_store)
        assert [e.recipe_id for e in entries] == ["local-1"]
        assert entries[0].title == ""
