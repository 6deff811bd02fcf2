"""External catalog client for book autocomplete."""

import httpx
import os
import logging
import time
from typing import Optional, List, Dict, Any
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


class BookAPIClient:
    """Client for looking up book candidates in Google Books and Open Library."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.google_books_url = "https://www.googleapis.com/books/v1/volumes"
        self.open_library_url = "https://openlibrary.org/search.json"
        self.google_api_key = os.getenv('GOOGLE_BOOKS_API_KEY')
        self.timeout = float(os.getenv('CATALOG_TIMEOUT_SECONDS', '10'))
        self.default_max_results = int(os.getenv('CATALOG_MAX_RESULTS', '5'))
        # Injected in tests to serve canned responses
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def search_books(self, query: str, max_results: int = None) -> List[Dict[str, Any]]:
        """Search Google Books, falling back to Open Library when it has nothing."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        max_results = max_results or self.default_max_results

        start_time = time.perf_counter()
        results = await self._search_google_books(query, max_results)
        if not results:
            results = await self._search_open_library(query, max_results)
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Catalog search '{query}' returned {len(results)} results in {duration_ms:.0f}ms")
        return results

    async def _search_google_books(self, query: str, max_results: int) -> List[Dict[str, Any]]:
        """Search Google Books API."""
        params = {
            "q": query,
            "maxResults": min(max_results, 40),
            "printType": "books"
        }
        if self.google_api_key:
            params["key"] = self.google_api_key

        try:
            async with self._client() as client:
                response = await client.get(self.google_books_url, params=params)
                response.raise_for_status()
                data = response.json()
                return self._parse_google_books(data.get('items', []))
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google Books search failed with status {e.response.status_code}: {e.response.text[:200]}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Google Books search failed: {e}")
        return []

    async def _search_open_library(self, query: str, max_results: int) -> List[Dict[str, Any]]:
        """Search Open Library API."""
        params = {
            "q": query,
            "limit": min(max_results, 100),
            "fields": "key,title,author_name,cover_i,subject,first_sentence"
        }

        try:
            async with self._client() as client:
                logger.info(f"Trying Open Library search with query: '{query}'")
                response = await client.get(self.open_library_url, params=params)
                response.raise_for_status()
                data = response.json()
                return self._parse_open_library(data.get('docs', []))
        except httpx.HTTPStatusError as e:
            logger.error(f"Open Library API error: {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Open Library search error: {e}", exc_info=True)
        return []

    def _parse_google_books(self, items: List[Dict]) -> List[Dict[str, Any]]:
        """Parse Google Books API response."""
        books = []
        for item in items:
            info = item.get('volumeInfo', {})
            images = info.get('imageLinks', {})
            cover = images.get('thumbnail') or images.get('smallThumbnail') or ''

            books.append({
                'title': info.get('title', 'Unknown Title'),
                'author': ', '.join(info.get('authors', [])),
                'description': info.get('description', ''),
                'cover': cover.replace('http://', 'https://'),
                'link': info.get('infoLink', ''),
                'categories': info.get('categories', []),
                'source': 'google_books'
            })
        return books

    def _parse_open_library(self, docs: List[Dict]) -> List[Dict[str, Any]]:
        """Parse Open Library API response."""
        books = []
        for doc in docs:
            cover_id = doc.get('cover_i')
            key = doc.get('key', '')
            first_sentence = doc.get('first_sentence') or []

            books.append({
                'title': doc.get('title', 'Unknown Title'),
                'author': ', '.join(doc.get('author_name', [])),
                'description': first_sentence[0] if isinstance(first_sentence, list) and first_sentence else '',
                'cover': f"https://covers.openlibrary.org/b/id/{cover_id}-M.jpg" if cover_id else '',
                'link': f"https://openlibrary.org{key}" if key else '',
                'categories': doc.get('subject', [])[:5],
                'source': 'open_library'
            })
        return books
