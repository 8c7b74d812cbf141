"""
Brave search provider.

Uses Brave Search API to find job postings.
"""

import httpx

from jobmatch.errors import ProviderError
from jobmatch.tools.base import RawResult, SearchProvider, SearchQuery

BRAVE_API_URL = "https://api.search.brave.com/res/v1/web/search"
BRAVE_MAX_COUNT = 20


class BraveProvider(SearchProvider):
    """Brave web search, same site-restricted query as Serper."""

    name = "brave"

    def __init__(self, api_key: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def search(self, query: SearchQuery, num: int = 10) -> list[RawResult]:
        headers = {
            "Accept": "application/json",
            "X-Subscription-Token": self._api_key,
        }
        params = {
            "q": query.google_syntax(),
            "count": min(num, BRAVE_MAX_COUNT),
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(BRAVE_API_URL, headers=headers, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"HTTP error {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        web_results = data.get("web", {}).get("results", [])
        return [
            RawResult(title=r.get("title", ""), link=r["url"], snippet=r.get("description", ""))
            for r in web_results
            if r.get("url")
        ]
