"""
Async client for the YouTube Data API (v3), used as the search/metadata backend.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from surge.exceptions import BackendError
from surge.models.config import SurgeConfig
from surge.models.track import SearchResult
from surge.storage.cache import CacheManager
from surge.utils.formatting import best_thumbnail_url, clean_title

log = logging.getLogger(__name__)


class YouTubeAPIClient:
    """
    Resolves search queries and track ids into ranked results and download URLs.

    Result order is the API's relevance order and is preserved as-is.
    """

    BASE_URL = "https://www.googleapis.com/youtube/v3/"
    WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

    def __init__(self, config: SurgeConfig, cache: Optional[CacheManager] = None):
        """
        Initializes the API client.

        Args:
            config: The loaded application configuration (API key, page size).
            cache: Optional response cache; None disables caching.
        """
        self.api_key: str = config.api_key
        self.max_results: int = config.max_results
        self.cache = cache

        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept-Encoding": "gzip, deflate"},
                timeout=aiohttp.ClientTimeout(total=30, connect=10),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    def _cache_key(endpoint: str, params: Dict[str, Any]) -> str:
        return f"{endpoint}?{json.dumps(params, sort_keys=True)}"

    async def api_call(self, endpoint: str, **params: Any) -> Dict[str, Any]:
        """
        Makes a keyed GET request and returns the decoded JSON body.

        Raises:
            BackendError: On transport failures, non-2xx answers or error payloads.
        """
        cache_key = self._cache_key(endpoint, params)
        if self.cache and (cached := self.cache.get(cache_key)) is not None:
            log.debug(f"Cache hit for {endpoint} {params}")
            return cached

        await self._initialize_session()
        start_time = time.monotonic()
        try:
            async with self._session.get(
                self.BASE_URL + endpoint, params={**params, "key": self.api_key}
            ) as r:
                body = await r.json(content_type=None)
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"API {endpoint} answered {r.status} in {duration_ms:.0f}ms")
                if r.status >= 400:
                    raise BackendError(self._error_message(r.status, body))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.debug(f"API call to {endpoint} failed: {e}")
            raise BackendError(f"Could not reach the search API: {e}") from e

        if not isinstance(body, dict):
            raise BackendError(f"Unexpected response from {endpoint}.")
        if self.cache:
            self.cache.set(cache_key, body)
        return body

    @staticmethod
    def _error_message(status: int, body: Any) -> str:
        """Pulls the human-readable message out of an API error payload."""
        message = None
        if isinstance(body, dict):
            message = (body.get("error") or {}).get("message")
        if status == 403:
            return f"Search API refused the request (quota or key problem): {message or status}"
        return f"Search API error {status}: {message or 'no details'}"

    @staticmethod
    def parse_item(item: Dict[str, Any]) -> Optional[SearchResult]:
        """Parses a single raw API item into our SearchResult data model."""
        video_id = (item.get("id") or {}).get("videoId")
        if not video_id:
            return None
        snippet = item.get("snippet") or {}
        return SearchResult(
            id=video_id,
            title=clean_title(snippet.get("title")),
            thumbnail=best_thumbnail_url(snippet),
        )

    def parse_results(self, response: Dict[str, Any]) -> List[SearchResult]:
        results = []
        for item in response.get("items", []):
            parsed = self.parse_item(item)
            if parsed is not None:
                results.append(parsed)
        return results

    # Public API Methods
    async def search(self, query: str) -> List[SearchResult]:
        response = await self.api_call(
            "search",
            part="snippet",
            type="video",
            maxResults=self.max_results,
            q=query,
        )
        results = self.parse_results(response)
        log.info(f"Search for '{query}' returned {len(results)} results")
        return results

    async def find_related(self, video_id: str) -> List[SearchResult]:
        response = await self.api_call(
            "search",
            part="snippet",
            type="video",
            maxResults=self.max_results,
            relatedToVideoId=video_id,
        )
        # The seed itself is sometimes echoed back; never offer it as "related".
        return [r for r in self.parse_results(response) if r.id != video_id]

    def gen_download_url(self, video_id: str) -> str:
        return self.WATCH_URL.format(video_id=video_id)
