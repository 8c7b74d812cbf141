"""Shared fakes and fixtures."""

import asyncio

import pytest

from jobmatch.agents.job_searcher import JobSearchEngine
from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.config import Settings
from jobmatch.errors import ProviderError
from jobmatch.models import Profile
from jobmatch.storage.memory import InMemorySessionStore
from jobmatch.tools.base import RawResult, SearchProvider, SearchQuery
from jobmatch.tools.resend_email import Notifier, SendResult
from jobmatch.tools.stripe_checkout import CheckoutLookup, PaymentConfirmed, PaymentGateway


def run(coro):
    return asyncio.run(coro)


def make_results(count: int, prefix: str = "job", board: str = "jobs.lever.co/acme") -> list[RawResult]:
    return [
        RawResult(
            title=f"Software Engineer {prefix} {i} - Acme",
            link=f"https://{board}/{prefix}-{i}",
            snippet=f"Join us in Austin, TX - $120k - $150k. Posting {i}.",
        )
        for i in range(count)
    ]


class FakeProvider(SearchProvider):
    """
    Provider answering from a table keyed by (title, location).

    A value may be a list of results or an exception instance to raise.
    """

    def __init__(self, name="fake", responses=None, default=None, delays=None):
        self.name = name
        self.responses = responses or {}
        self.default = default if default is not None else []
        self.delays = delays or {}
        self.queries: list[SearchQuery] = []

    async def search(self, query, num=10):
        self.queries.append(query)
        delay = self.delays.get(query.title)
        if delay:
            await asyncio.sleep(delay)
        value = self.responses.get((query.title, query.location), self.default)
        if isinstance(value, Exception):
            raise value
        return list(value)


class FailingProvider(SearchProvider):
    def __init__(self, name="broken"):
        self.name = name
        self.queries: list[SearchQuery] = []

    async def search(self, query, num=10):
        self.queries.append(query)
        raise ProviderError(self.name, "authentication failed 401")


class FakeGateway(PaymentGateway):
    def __init__(self):
        self.requests = []
        self.event = None
        self.lookups: dict[str, CheckoutLookup] = {}
        self.paid: dict[str, PaymentConfirmed] = {}
        self.find_calls: list[str] = []

    async def create_payment_request(self, session_id, email, profile):
        self.requests.append((session_id, email, profile))
        return f"https://checkout.example/pay/{session_id}"

    def parse_event(self, payload, signature):
        return self.event

    async def retrieve_checkout(self, checkout_session_id):
        return self.lookups[checkout_session_id]

    async def find_paid_checkout(self, session_id):
        self.find_calls.append(session_id)
        return self.paid.get(session_id)


class FakeNotifier(Notifier):
    def __init__(self, success=True):
        self.success = success
        self.sent: list[tuple[str, list]] = []

    async def send(self, to, jobs):
        self.sent.append((to, list(jobs)))
        if self.success:
            return SendResult(success=True, message_id=f"msg-{len(self.sent)}")
        return SendResult(success=False, error="HTTP 500")


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        search_max_calls=7,
        search_max_results=25,
        results_preview_size=5,
        results_timeout_seconds=5.0,
        stuck_after_seconds=120,
        debug_endpoints=True,
    )


@pytest.fixture
def store():
    return InMemorySessionStore(ttl_seconds=7200)


@pytest.fixture
def provider():
    return FakeProvider(default=make_results(10))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def orchestrator(store, provider, gateway, notifier, settings):
    engine = JobSearchEngine([provider], max_calls=settings.search_max_calls)
    return Orchestrator(store, engine, gateway, notifier, settings)


@pytest.fixture
def profile():
    return Profile(
        job_titles=["Software Engineer", "Backend Developer"],
        skills=["Python", "AWS"],
        location="Austin, TX",
    )
