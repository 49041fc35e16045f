"""Recent-search history.

The list lives in a small key/value store injected into RecentSearches so it can be
kept per process (MemoryHistoryStore) or per user in the database (SqliteHistoryStore).
"""

import json
import logging
import sqlite3
from typing import List, Optional

from config import RECENT_SEARCH_LIMIT
from db.history import clear_recent_searches, get_recent_searches, set_recent_searches

logger = logging.getLogger(__name__)


class HistoryStore:
    """Persisted ordered list of query strings."""

    def get(self) -> List[str]:
        raise NotImplementedError

    def set(self, queries: List[str]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryHistoryStore(HistoryStore):

    def __init__(self, queries: Optional[List[str]] = None):
        self._queries = list(queries or [])

    def get(self) -> List[str]:
        return list(self._queries)

    def set(self, queries: List[str]) -> None:
        self._queries = list(queries)

    def clear(self) -> None:
        self._queries = []


class SqliteHistoryStore(HistoryStore):

    def __init__(self, user_id: int):
        self.user_id = user_id

    def get(self) -> List[str]:
        return get_recent_searches(self.user_id)

    def set(self, queries: List[str]) -> None:
        set_recent_searches(self.user_id, queries)

    def clear(self) -> None:
        clear_recent_searches(self.user_id)


class RecentSearches:
    """Most-recent-first list of distinct queries, capped at limit."""

    def __init__(self, store: Optional[HistoryStore] = None, limit: int = RECENT_SEARCH_LIMIT):
        self.store = store
        self.limit = limit

    def get(self) -> List[str]:
        if self.store is None:
            return []
        try:
            queries = self.store.get()
        except (sqlite3.Error, json.JSONDecodeError) as e:
            logger.warning(f"Recent searches unavailable: {e}")
            return []
        if not isinstance(queries, list):
            return []
        return [q for q in queries if isinstance(q, str)]

    def save(self, query: str) -> None:
        if self.store is None or not query.strip():
            return
        updated = [query] + [q for q in self.get() if q != query]
        try:
            self.store.set(updated[:self.limit])
        except sqlite3.Error as e:
            logger.error(f"Failed to save recent search: {e}")

    def clear(self) -> None:
        if self.store is None:
            return
        self.store.clear()
