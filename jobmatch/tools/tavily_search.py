"""
Tavily search provider.

Uses the Tavily API; job boards are passed as include_domains instead of
site: operators.
"""

from tavily import AsyncTavilyClient

from jobmatch.errors import ProviderError
from jobmatch.tools.base import JOB_BOARD_SITES, RawResult, SearchProvider, SearchQuery

TAVILY_MAX_RESULTS = 20


class TavilyProvider(SearchProvider):
    """Tavily web search."""

    name = "tavily"

    def __init__(self, api_key: str, client: AsyncTavilyClient | None = None):
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> AsyncTavilyClient:
        """Get or create Tavily client."""
        if self._client is None:
            self._client = AsyncTavilyClient(api_key=self._api_key)
        return self._client

    async def search(self, query: SearchQuery, num: int = 10) -> list[RawResult]:
        try:
            results = await self._get_client().search(
                query=query.plain_text(),
                max_results=min(num, TAVILY_MAX_RESULTS),
                include_domains=list(JOB_BOARD_SITES),
            )
        except Exception as e:
            raise ProviderError(self.name, f"search error: {e}") from e

        return [
            RawResult(title=r.get("title", ""), link=r["url"], snippet=r.get("content", ""))
            for r in results.get("results", [])
            if r.get("url")
        ]
