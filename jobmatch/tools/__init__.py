"""
Adapters for external services.

- pdf_parser: Extract text from PDF files
- serper_search / brave_search / tavily_search: job search providers
- stripe_checkout: payment requests and webhook verification
- resend_email: result emails
"""

import logging

from jobmatch.config import Settings
from jobmatch.tools.base import JOB_BOARD_SITES, RawResult, SearchProvider, SearchQuery
from jobmatch.tools.brave_search import BraveProvider
from jobmatch.tools.serper_search import SerperProvider
from jobmatch.tools.tavily_search import TavilyProvider

logger = logging.getLogger(__name__)


def build_providers(settings: Settings) -> list[SearchProvider]:
    """
    Providers with credentials, in the failover order from SEARCH_PROVIDERS.

    May return an empty list; the search engine treats that as fatal.
    """
    factories = {
        "serper": (settings.serper_api_key, lambda: SerperProvider(settings.serper_api_key, settings.search_timeout)),
        "brave": (settings.brave_api_key, lambda: BraveProvider(settings.brave_api_key, settings.search_timeout)),
        "tavily": (settings.tavily_api_key, lambda: TavilyProvider(settings.tavily_api_key)),
    }

    providers: list[SearchProvider] = []
    for name in settings.provider_order:
        if name not in factories:
            logger.warning(f"Unknown search provider in SEARCH_PROVIDERS: {name}")
            continue
        api_key, factory = factories[name]
        if api_key:
            providers.append(factory())

    if not providers:
        logger.error("No search provider credentials configured, job search will fail")
    return providers


__all__ = [
    "JOB_BOARD_SITES",
    "RawResult",
    "SearchProvider",
    "SearchQuery",
    "SerperProvider",
    "BraveProvider",
    "TavilyProvider",
    "build_providers",
]
