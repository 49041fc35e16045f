"""Search and ranking over the caller's items.

Candidates come from the gateway (already narrowed by category and creation date);
matching, scoring, the remaining filters and sorting happen here in memory.
"""

import logging
from typing import Dict, List, Optional, Tuple

from config import SUGGESTION_LIMIT
from engine.dates import as_utc
from engine.gateway import DataGateway
from engine.history import RecentSearches
from engine.models import (
    Category, Item, SearchFilters, SearchResponse, SearchResult, SearchSuggestion
)
from engine.values import as_number, as_text, searchable_blob

logger = logging.getLogger(__name__)

TITLE_FIELDS = ('title', 'name', 'item_name')
TITLE_BONUS = 2


def tokenize(query: str) -> List[str]:
    """Lowercase whitespace-separated tokens, duplicates removed, order kept."""
    tokens: List[str] = []
    for token in query.lower().split():
        if token not in tokens:
            tokens.append(token)
    return tokens


def score_item(item: Item, tokens: List[str]) -> Tuple[int, List[str]]:
    """Rank an item against query tokens.

    Returns (rank, matched_fields); rank 0 means the item does not match.
    """
    blob = searchable_blob(item.data)
    found = [token for token in tokens if token in blob]
    if not found:
        return 0, []

    rank = len(found)
    matched_fields: List[str] = []
    for token in found:
        for key, value in item.data.items():
            if key not in matched_fields and token in as_text(value).lower():
                matched_fields.append(key)

    for field in TITLE_FIELDS:
        value = item.data.get(field)
        if not value:
            continue
        text = as_text(value).lower()
        if any(token in text for token in tokens):
            rank += TITLE_BONUS

    return rank, matched_fields


def passes_filters(item: Item, filters: SearchFilters) -> bool:
    """Rating range, status and tag filters; each one is a hard exclude."""
    if filters.rating_min is not None or filters.rating_max is not None:
        rating = as_number(item.data.get('rating'))
        if rating is None:
            return False
        if filters.rating_min is not None and rating < filters.rating_min:
            return False
        if filters.rating_max is not None and rating > filters.rating_max:
            return False

    if filters.status and item.data.get('status') != filters.status:
        return False

    if filters.tags:
        item_tags = item.data.get('tags')
        if not isinstance(item_tags, list):
            return False
        if not any(tag in item_tags for tag in filters.tags):
            return False

    return True


def _rating_key(result: SearchResult) -> float:
    return as_number(result.item.data.get('rating')) or 0


def sort_results(results: List[SearchResult], sort_by: str) -> List[SearchResult]:
    """Stable sort; ties keep retrieval order."""
    if sort_by == 'date_desc':
        return sorted(results, key=lambda r: as_utc(r.item.created_at), reverse=True)
    if sort_by == 'date_asc':
        return sorted(results, key=lambda r: as_utc(r.item.created_at))
    if sort_by == 'rating_desc':
        return sorted(results, key=_rating_key, reverse=True)
    if sort_by == 'rating_asc':
        return sorted(results, key=_rating_key)
    return sorted(results, key=lambda r: r.rank, reverse=True)


class SearchEngine:

    def __init__(
        self,
        gateway: DataGateway,
        history: Optional[RecentSearches] = None,
        suggestion_limit: int = SUGGESTION_LIMIT,
    ):
        self.gateway = gateway
        self.history = history if history is not None else RecentSearches()
        self.suggestion_limit = suggestion_limit

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> SearchResponse:
        """Search the caller's items and record the query in recent history."""
        if filters is None:
            filters = SearchFilters()

        if not query.strip():
            return SearchResponse(results=[], total_count=0, query=query, filters=filters)

        try:
            results = await self._find(query, filters)
        except Exception as e:
            logger.error(f"Search for {query!r} failed: {e}")
            raise

        if results is None:
            # Nothing was retrieved; not remembered
            return SearchResponse(results=[], total_count=0, query=query, filters=filters)

        self.history.save(query)
        logger.debug(f"Search {query!r} matched {len(results)} items")
        return SearchResponse(results=results, total_count=len(results), query=query, filters=filters)

    async def _find(self, query: str, filters: SearchFilters) -> Optional[List[SearchResult]]:
        """Ranked results, or None when there were no candidate items to score."""
        categories = await self.gateway.list_owned_categories()
        category_map: Dict[str, Category] = {category.id: category for category in categories}

        if filters.category_ids:
            category_ids = list(filters.category_ids)
        else:
            category_ids = list(category_map)
        if not category_ids:
            return None

        items = await self.gateway.list_items_in(
            category_ids, date_from=filters.date_from, date_to=filters.date_to
        )
        if not items:
            return None
        tokens = tokenize(query)

        results: List[SearchResult] = []
        for item in items:
            category = category_map.get(item.category_id)
            if category is None:
                continue

            rank, matched_fields = score_item(item, tokens)
            if rank == 0 or not passes_filters(item, filters):
                continue

            results.append(SearchResult(
                item=item,
                category=category,
                matched_fields=matched_fields,
                rank=rank,
            ))

        return sort_results(results, filters.sort_by)

    async def search_by_category(
        self,
        category_id: str,
        query: str,
        filters: Optional[SearchFilters] = None,
    ) -> List[SearchResult]:
        if filters is None:
            filters = SearchFilters()
        scoped = filters.model_copy(update={'category_ids': [category_id]})
        response = await self.search(query, scoped)
        return response.results

    def suggest(self, query: str) -> List[SearchSuggestion]:
        """Recent searches containing query (case-insensitive)."""
        needle = query.lower()
        matches = [text for text in self.history.get() if needle in text.lower()]
        return [SearchSuggestion(text=text, type='recent') for text in matches[:self.suggestion_limit]]

    def recent_searches(self) -> List[str]:
        return self.history.get()

    def clear_recent_searches(self) -> None:
        self.history.clear()
