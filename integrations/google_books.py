"""Google Books lookup used to pre-fill book items.

Results are normalized to BookData and cached in memory for LOOKUP_CACHE_SECONDS.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from config import GOOGLE_BOOKS_API_BASE, GOOGLE_BOOKS_API_KEY, LOOKUP_CACHE_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
MAX_RESULTS_LIMIT = 40  # Google Books caps maxResults at 40
MAX_CACHE_ENTRIES = 500

_cache: Dict[str, Tuple[float, Any]] = {}


class BookData(BaseModel):
    id: str
    title: str
    authors: Optional[List[str]] = None
    description: Optional[str] = None
    published_date: Optional[str] = None
    page_count: Optional[int] = None
    categories: Optional[List[str]] = None
    rating: Optional[float] = None
    cover_image: Optional[str] = None
    isbn: Optional[str] = None
    language: Optional[str] = None
    publisher: Optional[str] = None


class BookLookupError(Exception):

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _get_cached(key: str) -> Any:
    cached = _cache.get(key)
    if cached and time.monotonic() - cached[0] < LOOKUP_CACHE_SECONDS:
        return cached[1]
    _cache.pop(key, None)
    return None


def _set_cached(key: str, value: Any) -> None:
    """Store value, dropping expired entries and then the oldest ones beyond MAX_CACHE_ENTRIES."""
    now = time.monotonic()
    for stale in [k for k, (stored_at, _) in _cache.items() if now - stored_at >= LOOKUP_CACHE_SECONDS]:
        del _cache[stale]

    _cache.pop(key, None)
    while len(_cache) >= MAX_CACHE_ENTRIES:
        # Insertion order is age order
        del _cache[next(iter(_cache))]
    _cache[key] = (now, value)


def clear_cache() -> None:
    _cache.clear()


def normalize_volume(volume: Dict[str, Any]) -> BookData:
    info = volume.get('volumeInfo') or {}
    links = info.get('imageLinks') or {}

    # Best quality cover image first
    cover = None
    for size in ('large', 'medium', 'small', 'thumbnail', 'smallThumbnail'):
        if links.get(size):
            cover = links[size].replace('http:', 'https:', 1)
            break

    identifiers = {
        ident.get('type'): ident.get('identifier')
        for ident in info.get('industryIdentifiers') or []
    }

    return BookData(
        id=volume['id'],
        title=info.get('title', ''),
        authors=info.get('authors'),
        description=info.get('description'),
        published_date=info.get('publishedDate'),
        page_count=info.get('pageCount'),
        categories=info.get('categories'),
        rating=info.get('averageRating'),
        cover_image=cover,
        isbn=identifiers.get('ISBN_13') or identifiers.get('ISBN_10'),
        language=info.get('language'),
        publisher=info.get('publisher'),
    )


def _error_message(status_code: int) -> str:
    message = 'Failed to look up books. '
    if status_code == 403:
        return message + 'API key may be invalid or the Books API is not enabled.'
    if status_code == 429:
        return message + 'API quota exceeded. Try again later.'
    return message + f'Upstream returned HTTP {status_code}.'


async def _get_json(path: str, params: Dict[str, Any]) -> Dict[str, Any]:
    if GOOGLE_BOOKS_API_KEY:
        params['key'] = GOOGLE_BOOKS_API_KEY
    else:
        logger.warning("Google Books API key not configured. API calls may be rate-limited.")

    url = GOOGLE_BOOKS_API_BASE.rstrip('/') + path
    logger.debug(f"Calling Google Books API: {url}")
    try:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"Google Books API error: {status} - {e.response.text[:200]}")
        raise BookLookupError(_error_message(status), status_code=status) from e
    except httpx.HTTPError as e:
        logger.error(f"Google Books API request failed: {e}")
        raise BookLookupError('Failed to look up books. The lookup service is unreachable.') from e


async def search_books(query: str, max_results: int = 10) -> List[BookData]:
    """Search volumes by title, author, ISBN or free text."""
    if not query.strip():
        return []

    max_results = max(1, min(max_results, MAX_RESULTS_LIMIT))
    cache_key = f'search:{query}:{max_results}'
    cached = _get_cached(cache_key)
    if cached is not None:
        return cached

    data = await _get_json('/volumes', {
        'q': query,
        'maxResults': str(max_results),
        'printType': 'books',
        'orderBy': 'relevance',
    })
    books = [normalize_volume(volume) for volume in data.get('items') or []]
    _set_cached(cache_key, books)
    return books


async def get_book_details(volume_id: str) -> BookData:
    cache_key = f'details:{volume_id}'
    cached = _get_cached(cache_key)
    if cached is not None:
        return cached

    book = normalize_volume(await _get_json(f'/volumes/{volume_id}', {}))
    _set_cached(cache_key, book)
    return book
