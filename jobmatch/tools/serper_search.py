"""
Serper search provider.

Google results through the Serper API, restricted to ATS job boards with
site: operators.
"""

import httpx

from jobmatch.errors import ProviderError
from jobmatch.tools.base import RawResult, SearchProvider, SearchQuery

SERPER_API_URL = "https://google.serper.dev/search"


class SerperProvider(SearchProvider):
    """Google web search via google.serper.dev."""

    name = "serper"

    def __init__(self, api_key: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def search(self, query: SearchQuery, num: int = 10) -> list[RawResult]:
        headers = {
            "X-API-KEY": self._api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "q": query.google_syntax(),
            "num": num,
            "gl": "us",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(SERPER_API_URL, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            kind = "authentication failed" if status in (401, 403) else "HTTP error"
            raise ProviderError(self.name, f"{kind} {status}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        return [
            RawResult(title=r.get("title", ""), link=r["link"], snippet=r.get("snippet", ""))
            for r in data.get("organic", []) or []
            if r.get("link")
        ]
