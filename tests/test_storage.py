from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from devdetective.models import Profile
from devdetective.storage import BOOKMARKS_KEY, HISTORY_KEY, JsonFileStore, MemoryStore, ProfileShelf


def _profile(login: str) -> Profile:
    return Profile(login=login, name=login.title(), avatar_url=f"https://avatars.example/{login}")


class ProfileShelfTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.shelf = ProfileShelf(self.store, max_history=3)

    def test_bookmarks_are_unique_and_newest_first(self) -> None:
        self.assertTrue(self.shelf.add_bookmark(_profile("alice")))
        self.assertTrue(self.shelf.add_bookmark(_profile("bob")))
        self.assertFalse(self.shelf.add_bookmark(_profile("alice")))
        self.assertEqual([item.login for item in self.shelf.bookmarks()], ["bob", "alice"])
        self.assertTrue(self.shelf.is_bookmarked("alice"))
        self.assertEqual(self.store.get(BOOKMARKS_KEY)[0]["name"], "Bob")

    def test_remove_bookmark(self) -> None:
        self.shelf.add_bookmark(_profile("alice"))
        self.assertTrue(self.shelf.remove_bookmark("alice"))
        self.assertFalse(self.shelf.remove_bookmark("alice"))
        self.assertFalse(self.shelf.is_bookmarked("alice"))

    def test_history_dedupes_and_caps(self) -> None:
        for login in ("a", "b", "c", "a", "d"):
            self.shelf.add_to_history(_profile(login))
        self.assertEqual([item.login for item in self.shelf.history()], ["d", "a", "c"])

    def test_clear_history(self) -> None:
        self.shelf.add_to_history(_profile("a"))
        self.shelf.clear_history()
        self.assertEqual(self.shelf.history(), [])
        self.assertEqual(self.store.get(HISTORY_KEY), [])

    def test_ignores_unexpected_stored_values(self) -> None:
        self.store.set(HISTORY_KEY, {"not": "a list"})
        self.assertEqual(self.shelf.history(), [])


class JsonFileStoreTests(unittest.TestCase):
    def test_round_trip_creates_parent_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "store.json"
            store = JsonFileStore(path)
            self.assertIsNone(store.get("missing"))
            store.set("greeting", ["hello"])
            store.set("count", 2)
            self.assertEqual(JsonFileStore(path).get("greeting"), ["hello"])
            self.assertEqual(json.loads(path.read_text(encoding="utf-8")), {"greeting": ["hello"], "count": 2})
            self.assertEqual([p.name for p in path.parent.iterdir()], ["store.json"])

    def test_corrupt_file_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "store.json"
            path.write_text("{broken", encoding="utf-8")
            store = JsonFileStore(path)
            with self.assertLogs("devdetective.storage", level="ERROR"):
                self.assertIsNone(store.get("anything"))

    def test_shelf_persists_across_instances(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "store.json"
            ProfileShelf(JsonFileStore(path)).add_bookmark(_profile("alice"))
            self.assertTrue(ProfileShelf(JsonFileStore(path)).is_bookmarked("alice"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
