# /aria-backend/app/services/search_service.py

import logging
from typing import List, Optional

import httpx

from ..core.config import Settings, get_settings
from ..models.chat_model import WebSearchResult

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 5


class SearchService:
    """
    Web search through SerpAPI.

    `search` never raises: a missing key, a transport error, a non-2xx status
    or a malformed body all come back as an empty list so the message turn
    can carry on without search context.
    """
    BASE_URL = "https://serpapi.com/search.json"

    def __init__(self, api_key: Optional[str], transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self._transport = transport

    async def search(self, query: str, limit: int = MAX_SEARCH_RESULTS) -> List[WebSearchResult]:
        if not self.api_key:
            logger.info("SERPAPI_KEY not configured, skipping web search")
            return []

        params = {"q": query, "api_key": self.api_key, "num": limit}
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(self.BASE_URL, params=params)
            if not response.is_success:
                logger.warning("Web search API error: %s", response.status_code)
                return []
            data = response.json()
            organic = data.get("organic_results") or []
            return [
                WebSearchResult(
                    title=item.get("title") or "",
                    url=item.get("link") or "",
                    snippet=item.get("snippet") or "",
                )
                for item in organic[:limit]
            ]
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning("Web search failed: %s", e)
            return []


def format_search_context(query: str, results: List[WebSearchResult]) -> str:
    """Renders results as the numbered block appended to the outbound user turn."""
    if not results:
        return ""
    listing = "\n\n".join(
        f"{i}. {r.title}\n   {r.snippet}\n   Source: {r.url}"
        for i, r in enumerate(results, start=1)
    )
    return (
        f'\n\n[Web Search Results for: "{query}"]\n{listing}\n\n[End of Search Results]\n\n'
        "Please provide a comprehensive answer based on the above search results and your knowledge."
    )


def get_search_service() -> SearchService:
    settings: Settings = get_settings()
    return SearchService(api_key=settings.serpapi_key)
