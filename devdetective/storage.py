from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .models import Profile, SavedProfile

logger = logging.getLogger(__name__)

BOOKMARKS_KEY = "devdetective_bookmarks"
HISTORY_KEY = "devdetective_history"
MAX_HISTORY = 20


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key-value store persisted as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as error:
            logger.error("Failed to load %s: %s", self.path, error)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring %s: expected a JSON object", self.path)
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class ProfileShelf:
    """Bookmarks and search history kept in a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore, max_history: int = MAX_HISTORY) -> None:
        self.store = store
        self.max_history = max_history

    def bookmarks(self) -> List[SavedProfile]:
        return self._load(BOOKMARKS_KEY)

    def is_bookmarked(self, login: str) -> bool:
        return any(item.login == login for item in self.bookmarks())

    def add_bookmark(self, profile: Profile) -> bool:
        current = self.bookmarks()
        if any(item.login == profile.login for item in current):
            return False
        self._save(BOOKMARKS_KEY, [_snapshot(profile), *current])
        return True

    def remove_bookmark(self, login: str) -> bool:
        current = self.bookmarks()
        remaining = [item for item in current if item.login != login]
        if len(remaining) == len(current):
            return False
        self._save(BOOKMARKS_KEY, remaining)
        return True

    def history(self) -> List[SavedProfile]:
        return self._load(HISTORY_KEY)

    def add_to_history(self, profile: Profile) -> None:
        filtered = [item for item in self.history() if item.login != profile.login]
        self._save(HISTORY_KEY, [_snapshot(profile), *filtered][: self.max_history])

    def clear_history(self) -> None:
        self._save(HISTORY_KEY, [])

    def _load(self, key: str) -> List[SavedProfile]:
        raw = self.store.get(key)
        if not isinstance(raw, list):
            return []
        return [SavedProfile.from_dict(item) for item in raw if isinstance(item, dict)]

    def _save(self, key: str, items: List[SavedProfile]) -> None:
        self.store.set(key, [item.to_dict() for item in items])


def _snapshot(profile: Profile) -> SavedProfile:
    return SavedProfile(
        login=profile.login,
        avatar_url=profile.avatar_url,
        name=profile.name,
        saved_at=datetime.now(timezone.utc).isoformat(),
    )
