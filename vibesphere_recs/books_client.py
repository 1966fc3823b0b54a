"""
Google Books API Client
=======================

Handles all interactions with the Google Books volumes API including:
- Volume search with paging (the API caps pages at 40 results)
- Mood / genre discovery queries
- Normalization of volumes into catalog Books
- Rate limiting and caching
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import (
    CACHE_DIR,
    CACHE_TTL_HOURS,
    DEFAULT_DISCOVERY_QUERY,
    DEFAULT_LENGTH_HOURS,
    GENRE_QUERIES,
    GOOGLE_BOOKS_API_KEY,
    GOOGLE_BOOKS_API_URL,
    GOOGLE_BOOKS_PAGE_SIZE,
    MAX_BOOK_RATING,
    MOOD_QUERIES,
    PAGES_PER_HOUR,
    REQUEST_TIMEOUT,
)
from .models import Book, ValidationError
from .utils import Cache

logger = logging.getLogger(__name__)


class BooksAPIError(RuntimeError):
    """Raised when the Google Books API cannot be reached or answers with an error."""


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    unique = []
    for v in values:
        if v and v not in seen:
            seen.add(v)
            unique.append(v)
    return unique


def volume_to_book(item: Dict[str, Any]) -> Book:
    """
    Normalize a Google Books volume into a catalog Book.

    Categories like "Fiction / Mystery & Detective" contribute their first
    segment as a genre and the remaining segments (lowercased) as tags.
    """
    info = item.get("volumeInfo") or {}
    volume_id = item.get("id")
    if not volume_id:
        raise ValidationError("Google Books volume has no id")

    genres, tags = [], []
    for category in info.get("categories") or []:
        parts = [p.strip() for p in str(category).split("/") if p.strip()]
        if not parts:
            continue
        genres.append(parts[0])
        tags.extend(p.lower() for p in parts[1:])

    page_count = info.get("pageCount") or 0
    length_hours = round(page_count / PAGES_PER_HOUR, 1) if page_count > 0 else DEFAULT_LENGTH_HOURS
    if length_hours <= 0:
        length_hours = DEFAULT_LENGTH_HOURS

    images = info.get("imageLinks") or {}
    cover = (
        images.get("large") or images.get("medium")
        or images.get("thumbnail") or images.get("smallThumbnail") or ""
    )
    if cover.startswith("http:"):
        cover = "https:" + cover[len("http:"):]

    rating = info.get("averageRating") or 0.0
    rating = min(max(float(rating), 0.0), MAX_BOOK_RATING)

    return Book(
        book_id=volume_id,
        title=info.get("title") or "Untitled",
        author=", ".join(info.get("authors") or ["Unknown Author"]),
        genres=tuple(_dedupe(genres)),
        tags=tuple(_dedupe(tags)),
        length_hours=length_hours,
        summary=info.get("description") or info.get("subtitle") or "",
        cover=cover,
        rating=rating,
    )


class GoogleBooksClient:
    """
    Wrapper around the Google Books REST API with caching and paging.

    Attributes:
        session: requests session used for all calls
        cache: On-disk response cache (None when disabled)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        use_cache: bool = True,
        cache: Optional[Cache] = None,
        session: Optional[requests.Session] = None,
        base_url: str = GOOGLE_BOOKS_API_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """
        Initialize Google Books client.

        Args:
            api_key: API key (optional for low-volume use)
            use_cache: Enable local caching for API responses
            cache: Pre-built cache (defaults to CACHE_DIR)
            session: Pre-configured requests session
            base_url: Volumes endpoint
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else GOOGLE_BOOKS_API_KEY
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        if use_cache:
            self.cache = cache or Cache(CACHE_DIR, CACHE_TTL_HOURS)
        else:
            self.cache = None

        # Request throttling
        self._last_request_time = 0.0
        self._min_request_interval = 0.05  # 50ms between requests

    def _throttle(self):
        """Ensure minimum time between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_request_interval:
            time.sleep(self._min_request_interval - elapsed)
        self._last_request_time = time.time()

    def _get(self, url: str, params: Dict[str, Any]) -> Optional[Dict]:
        """GET a JSON document. Returns None on 404."""
        if self.api_key:
            params = dict(params, key=self.api_key)

        self._throttle()
        logger.debug("GET %s %s", url, {k: v for k, v in params.items() if k != "key"})
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise BooksAPIError(f"Google Books request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise BooksAPIError(
                f"Google Books returned HTTP {response.status_code} for {url}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise BooksAPIError(f"Google Books returned invalid JSON: {e}") from e

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search(
        self,
        query: str,
        start_index: int = 0,
        max_results: int = GOOGLE_BOOKS_PAGE_SIZE,
    ) -> List[Dict]:
        """
        Fetch one page of raw volumes.

        Args:
            query: Google Books query (blank falls back to bestsellers)
            start_index: Offset of the first result
            max_results: Page size (capped at 40 by the API)

        Returns:
            List of raw volume dictionaries
        """
        query = (query or "").strip() or DEFAULT_DISCOVERY_QUERY
        max_results = max(1, min(max_results, GOOGLE_BOOKS_PAGE_SIZE))
        params = {
            "q": query,
            "startIndex": start_index,
            "maxResults": max_results,
            "printType": "books",
        }

        cache_key = None
        if self.cache is not None:
            cache_key = self.cache.make_key("search", params)
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        payload = self._get(self.base_url, params) or {}
        items = payload.get("items") or []

        if cache_key is not None:
            self.cache.set(cache_key, items)
        return items

    def search_many(self, query: str, total: int = 120) -> List[Dict]:
        """Fetch up to total raw volumes, paging through results."""
        items = []
        start = 0
        while start < total:
            page_size = min(GOOGLE_BOOKS_PAGE_SIZE, total - start)
            page = self.search(query, start_index=start, max_results=page_size)
            items.extend(page)
            if len(page) < page_size:
                break
            start += page_size
        return items

    def fetch_books(self, query: str, total: int = GOOGLE_BOOKS_PAGE_SIZE) -> List[Book]:
        """Search and normalize into unique Books (first occurrence wins)."""
        return self._to_books(self.search_many(query, total))

    def discover(
        self,
        mood: Optional[str] = None,
        genre: Optional[str] = None,
        limit: int = GOOGLE_BOOKS_PAGE_SIZE,
    ) -> List[Book]:
        """
        Mood / genre driven discovery.

        Each mood query is optionally refined by the genre query. A query
        that fails is logged and skipped.

        Returns:
            Up to limit unique Books
        """
        genre_query = GENRE_QUERIES.get((genre or "").strip().lower(), "")
        mood_queries = MOOD_QUERIES.get((mood or "").strip().lower(), [])

        if mood_queries:
            queries = [f"{q} {genre_query}".strip() for q in mood_queries]
        elif genre_query:
            queries = [genre_query]
        else:
            queries = [DEFAULT_DISCOVERY_QUERY]

        per_query = max(1, -(-limit // len(queries)))
        raw = []
        for q in queries:
            try:
                raw.extend(self.search_many(q, per_query))
            except BooksAPIError as e:
                logger.warning("Discovery query %r failed: %s", q, e)

        return self._to_books(raw)[:limit]

    def get_book(self, volume_id: str) -> Optional[Book]:
        """
        Fetch a single volume.

        Returns:
            Book, or None when the volume does not exist
        """
        cache_key = None
        if self.cache is not None:
            cache_key = self.cache.make_key("volume", volume_id)
            cached = self.cache.get(cache_key)
            if cached is not None:
                return volume_to_book(cached)

        item = self._get(f"{self.base_url}/{volume_id}", {})
        if item is None:
            return None

        if cache_key is not None:
            self.cache.set(cache_key, item)
        return volume_to_book(item)

    def _to_books(self, items: List[Dict]) -> List[Book]:
        books = []
        seen = set()
        for item in items:
            try:
                book = volume_to_book(item)
            except ValidationError as e:
                logger.debug("Skipping unusable volume: %s", e)
                continue
            if book.book_id in seen:
                continue
            seen.add(book.book_id)
            books.append(book)
        return books
