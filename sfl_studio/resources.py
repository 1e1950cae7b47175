"""
Related-resource lookup via Google Programmable Search.

The query is the show's topics joined with spaces. Results are replaced
wholesale on every search; an empty result set is not an error.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from .config import config
from .exceptions import MissingCredentialsError, ProviderError
from .logging_config import get_logger
from .models import SearchResultItem

logger = get_logger(__name__)

SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
SEARCH_TIMEOUT_SECONDS = 15


def build_query(topics: Sequence[str]) -> str:
    return " ".join(t.strip() for t in topics if t.strip())


def _thumbnail(item: Dict[str, Any]) -> Optional[str]:
    pagemap = item.get("pagemap") or {}
    for key, field in (("cse_thumbnail", "src"), ("videoobject", "thumbnailurl")):
        entries = pagemap.get(key) or []
        if entries and entries[0].get(field):
            return entries[0][field]
    return None


def parse_search_response(status: int, payload: Optional[Dict[str, Any]]) -> List[SearchResultItem]:
    """
    Map a search API response to result items.

    Raises:
        ProviderError: non-success status, a body that is not a JSON object,
            or an error object in the payload
    """
    if not isinstance(payload, dict):
        raise ProviderError(f"Search request failed with status {status}", provider="google-search", status=status)

    error = payload.get("error")
    if error or not 200 <= status < 300:
        message = (error.get("message") if isinstance(error, dict) else None) or f"Search request failed with status {status}"
        raise ProviderError(message, provider="google-search", status=status)

    return [
        SearchResultItem(
            title=item.get("title", ""),
            link=item.get("link", ""),
            snippet=item.get("snippet", ""),
            thumbnail=_thumbnail(item),
        )
        for item in payload.get("items") or []
    ]


class GoogleSearchClient:
    """Keyed search client; per-session credentials fall back to the environment."""

    def __init__(self, endpoint: str = SEARCH_ENDPOINT):
        self.endpoint = endpoint

    async def _fetch(self, params: Dict[str, str]) -> Tuple[int, Optional[Dict[str, Any]]]:
        """GET the endpoint; the payload is None when the body is not JSON (gateway or quota pages)."""
        timeout = aiohttp.ClientTimeout(total=SEARCH_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.endpoint, params=params) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    logger.warning(f"Search response with status {response.status} is not JSON")
                    payload = None
                return response.status, payload

    async def search(
        self,
        query: str,
        api_key: Optional[str] = None,
        cse_id: Optional[str] = None,
    ) -> List[SearchResultItem]:
        """
        Run one search.

        Raises:
            MissingCredentialsError: no key or scope id from session or environment
            ProviderError: the API reported an error or could not be reached
        """
        key = api_key or config.google_api_key
        cx = cse_id or config.google_cse_id
        if not key or not cx:
            raise MissingCredentialsError()

        logger.info(f"Searching related resources for: {query!r}")
        try:
            status, payload = await self._fetch({"key": key, "cx": cx, "q": query})
        except asyncio.TimeoutError as e:
            logger.error(f"Search request timed out after {SEARCH_TIMEOUT_SECONDS}s")
            raise ProviderError("Search request timed out", provider="google-search") from e
        except aiohttp.ClientError as e:
            logger.error(f"Search request failed: {e}", exc_info=True)
            raise ProviderError(f"Search request failed: {e}", provider="google-search") from e

        results = parse_search_response(status, payload)
        logger.info(f"Search returned {len(results)} result(s)")
        return results
