import json
from unittest.mock import AsyncMock

import httpx
import pytest

from jobmatch.config import Settings
from jobmatch.errors import ProviderError
from jobmatch.tools import build_providers
from jobmatch.tools.base import JOB_BOARD_SITES, SearchQuery
from jobmatch.tools.brave_search import BraveProvider
from jobmatch.tools.serper_search import SERPER_API_URL, SerperProvider
from jobmatch.tools.tavily_search import TavilyProvider
from tests.conftest import run


@pytest.mark.unit
def test_query_rendering():
    query = SearchQuery("Data Engineer", "Austin, TX")
    rendered = query.google_syntax()
    assert rendered.startswith("(site:jobs.ashbyhq.com OR site:boards.greenhouse.io")
    assert rendered.endswith('"Data Engineer" Austin, TX')
    assert SearchQuery("Data Engineer").plain_text() == "Data Engineer jobs"


@pytest.mark.unit
def test_serper_search_parses_organic_results():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["X-API-KEY"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "organic": [
                    {"title": "Data Engineer - Acme", "link": "https://jobs.lever.co/acme/1", "snippet": "Austin"},
                    {"title": "No link"},
                ]
            },
        )

    provider = SerperProvider("serper-key", transport=httpx.MockTransport(handler))
    results = run(provider.search(SearchQuery("Data Engineer"), num=10))

    assert seen["url"] == SERPER_API_URL
    assert seen["key"] == "serper-key"
    assert seen["body"]["num"] == 10
    assert seen["body"]["gl"] == "us"
    assert '"Data Engineer"' in seen["body"]["q"]
    assert len(results) == 1
    assert results[0].link == "https://jobs.lever.co/acme/1"


@pytest.mark.unit
def test_serper_auth_failure_raises_provider_error():
    provider = SerperProvider("bad", transport=httpx.MockTransport(lambda r: httpx.Response(403)))
    with pytest.raises(ProviderError, match="authentication failed 403"):
        run(provider.search(SearchQuery("Engineer")))


@pytest.mark.unit
def test_serper_transport_error_raises_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    provider = SerperProvider("key", transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError) as exc:
        run(provider.search(SearchQuery("Engineer")))
    assert exc.value.provider == "serper"


@pytest.mark.unit
def test_brave_search():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["X-Subscription-Token"] == "brave-key"
        assert request.url.params["count"] == "20"
        return httpx.Response(
            200,
            json={"web": {"results": [{"title": "QA Engineer", "url": "https://jobs.ashbyhq.com/x/1", "description": "d"}]}},
        )

    provider = BraveProvider("brave-key", transport=httpx.MockTransport(handler))
    results = run(provider.search(SearchQuery("QA Engineer"), num=50))
    assert [r.snippet for r in results] == ["d"]


@pytest.mark.unit
def test_brave_empty_response():
    provider = BraveProvider("k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    assert run(provider.search(SearchQuery("QA Engineer"))) == []


@pytest.mark.unit
def test_tavily_search_passes_domains():
    client = AsyncMock()
    client.search.return_value = {
        "results": [{"title": "Nurse", "url": "https://jobs.workable.com/view/1", "content": "Chicago, IL"}]
    }
    provider = TavilyProvider("tvly-key", client=client)

    results = run(provider.search(SearchQuery("Registered Nurse", "Chicago, IL"), num=5))

    kwargs = client.search.call_args.kwargs
    assert kwargs["query"] == "Registered Nurse jobs in Chicago, IL"
    assert kwargs["max_results"] == 5
    assert kwargs["include_domains"] == list(JOB_BOARD_SITES)
    assert results[0].snippet == "Chicago, IL"


@pytest.mark.unit
def test_tavily_error_raises_provider_error():
    client = AsyncMock()
    client.search.side_effect = RuntimeError("quota exceeded")
    with pytest.raises(ProviderError, match="quota exceeded"):
        run(TavilyProvider("k", client=client).search(SearchQuery("Engineer")))


@pytest.mark.unit
def test_build_providers_order_and_credentials():
    settings = Settings(
        _env_file=None,
        serper_api_key="",
        brave_api_key="b",
        tavily_api_key="t",
        search_providers="tavily, brave, serper, bing",
    )
    assert [p.name for p in build_providers(settings)] == ["tavily", "brave"]


@pytest.mark.unit
def test_build_providers_without_credentials():
    settings = Settings(_env_file=None, serper_api_key="", brave_api_key="", tavily_api_key="")
    assert build_providers(settings) == []
