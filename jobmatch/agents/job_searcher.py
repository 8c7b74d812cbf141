"""
Job Search Engine.

Turns a Profile into a deduplicated list of Jobs with a bounded number of
provider calls:

1. Seed titles come from the profile, else from title inference, else from
   a small generic list.
2. Queries stay simple (title, optionally location) and run in phases:
   with location, without location, then extra titles. Inferred seeds
   run on a reduced budget ahead of the generic titles' own plan.
3. Each logical query fails over across providers; every attempt spends
   one unit of the call budget.
4. Results are merged in seed order and deduplicated by URL-derived id.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field

from jobmatch.agents.title_inference import GENERIC_TITLES, KeywordTitleInference, TitleInferenceStrategy
from jobmatch.config import Settings
from jobmatch.errors import ConfigurationError, ProviderError
from jobmatch.models import Job, Profile
from jobmatch.tools import build_providers
from jobmatch.tools.base import RawResult, SearchProvider, SearchQuery
from jobmatch.utils.normalize import result_to_job

logger = logging.getLogger(__name__)

MAX_SEED_TITLES = 3
MAX_TITLE_CHARS = 50
MAX_TITLE_WORDS = 6
EXCLUDED_TITLE_TERMS = ("founder", "owner", "proprietor", "self-employed", "volunteer", "student")
SENIORITY_PREFIXES = ("senior", "sr", "junior", "jr", "lead", "principal", "staff", "associate")
_TITLE_QUALIFIER = re.compile(r"\s+(?:in|for)\s+.*$", re.IGNORECASE)

PHASE_LOCATION = "location"
PHASE_BROAD = "broad"
PHASE_BROADENED = "broadened"
PHASE_EXTRA = "extra"
PHASE_FALLBACK = "fallback"


def clean_title(title: str) -> str:
    """Normalize a resume title for use as a search phrase."""
    cleaned = title.replace("&", " and ")
    cleaned = re.sub(r"\([^)]*\)", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip(" ,-|/")


def is_searchable_title(title: str) -> bool:
    """False for titles that are too long or never appear as postings."""
    if not title:
        return False
    if len(title) > MAX_TITLE_CHARS or len(title.split()) > MAX_TITLE_WORDS:
        return False
    lowered = title.lower()
    return not any(re.search(rf"\b{re.escape(term)}\b", lowered) for term in EXCLUDED_TITLE_TERMS)


def broaden_title(title: str) -> str:
    """
    Shorter form of a title for a retry without location.

    Drops "in/for ..." qualifiers and leading seniority words. Titles still
    longer than two words fall back to the role noun, so "Senior Machine
    Learning Engineer" becomes "Engineer". "X of Y" titles are kept whole.
    """
    core = _TITLE_QUALIFIER.sub("", title).strip() or title
    words = core.split()
    while len(words) > 1 and words[0].lower().rstrip(".") in SENIORITY_PREFIXES:
        words = words[1:]
    if len(words) > 2 and "of" not in (w.lower() for w in words):
        words = words[-1:]
    return " ".join(words)


def _unique(titles: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for title in titles:
        key = title.lower()
        if key not in seen:
            seen.add(key)
            result.append(title)
    return result


@dataclass
class SearchCall:
    """One provider attempt, kept for the debug trace."""

    phase: str
    query: SearchQuery
    provider: str
    results: int = 0
    new_jobs: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "title": self.query.title,
            "location": self.query.location,
            "provider": self.provider,
            "results": self.results,
            "new_jobs": self.new_jobs,
            "error": self.error,
        }


@dataclass
class SearchReport:
    jobs: list[Job] = field(default_factory=list)
    calls: list[SearchCall] = field(default_factory=list)
    seeds: list[str] = field(default_factory=list)
    seed_source: str = "profile"  # profile | inferred | generic

    @property
    def calls_made(self) -> int:
        return len(self.calls)


class _CallBudget:
    """
    Provider call allowance for one search; take() never awaits.

    `reserved` calls are held back from take() until the holder sets it
    back to zero.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0
        self.reserved = 0

    @property
    def available(self) -> int:
        return self.limit - self.reserved - self.used

    def take(self) -> bool:
        if self.available <= 0:
            return False
        self.used += 1
        return True

    @property
    def exhausted(self) -> bool:
        return self.available <= 0


class _SearchRun:
    """Mutable state of a single search()."""

    def __init__(self, engine: "JobSearchEngine", max_results: int, log_prefix: str):
        self.engine = engine
        self.max_results = max_results
        self.log_prefix = log_prefix
        self.budget = _CallBudget(engine.max_calls)
        self.issued: set[SearchQuery] = set()
        self.seeded_titles: set[str] = set()
        self.seen_ids: set[str] = set()
        self.jobs: list[Job] = []
        self.calls: list[SearchCall] = []

    @property
    def done(self) -> bool:
        return len(self.jobs) >= self.max_results or self.budget.exhausted

    async def run_phase(self, phase: str, queries: list[SearchQuery], broaden: bool = True) -> None:
        pending = list(queries)
        while pending and not self.done:
            batch: list[SearchQuery] = []
            while pending and len(batch) < self.engine.concurrency:
                query = pending.pop(0)
                if query in self.issued:
                    continue
                self.issued.add(query)
                batch.append(query)
            if not batch:
                break

            # gather keeps argument order, so merging is by seed, not arrival
            outcomes = await asyncio.gather(*(self._run_seed(phase, query, broaden) for query in batch))
            for result_sets in outcomes:
                for call, results in result_sets:
                    self._collect(call, results)

    async def _run_seed(
        self, phase: str, query: SearchQuery, broaden: bool
    ) -> list[tuple[SearchCall | None, list[RawResult]]]:
        first_for_title = broaden and query.title not in self.seeded_titles
        self.seeded_titles.add(query.title)

        call, results = await self._execute(phase, query)
        result_sets = [(call, results)]

        if first_for_title and not results:
            broadened = SearchQuery(broaden_title(query.title))
            if broadened not in self.issued and not self.budget.exhausted:
                self.issued.add(broadened)
                logger.info(f"{self.log_prefix}No results for '{query}', retrying as '{broadened}'")
                result_sets.append(await self._execute(PHASE_BROADENED, broadened))
        return result_sets

    async def _execute(self, phase: str, query: SearchQuery) -> tuple[SearchCall | None, list[RawResult]]:
        """Run one logical query, failing over across providers."""
        last_call = None
        for provider in self.engine.providers:
            if not self.budget.take():
                break
            call = SearchCall(phase=phase, query=query, provider=provider.name)
            self.calls.append(call)
            last_call = call
            try:
                results = await provider.search(query, self.engine.results_per_query)
            except ProviderError as e:
                call.error = e.message
                logger.warning(f"{self.log_prefix}Provider failed for '{query}': {e.message}")
                continue
            call.results = len(results)
            logger.info(f"{self.log_prefix}{provider.name} '{query}' ({phase}): {len(results)} results")
            return call, results
        return last_call, []

    def _collect(self, call: SearchCall | None, results: list[RawResult]) -> None:
        for result in results:
            job = result_to_job(result)
            if job.id in self.seen_ids:
                continue
            self.seen_ids.add(job.id)
            self.jobs.append(job)
            if call is not None:
                call.new_jobs += 1


class JobSearchEngine:
    """
    Budgeted multi-provider job search.

    Args:
        providers: Search providers in failover order.
        inference: Strategy proposing titles when the profile has none.
        max_calls: Hard cap on provider calls per search.
        concurrency: Seed queries per batch within a phase.
        results_per_query: Results requested from a provider per call.
    """

    def __init__(
        self,
        providers: list[SearchProvider],
        inference: TitleInferenceStrategy | None = None,
        max_calls: int = 7,
        concurrency: int = 1,
        results_per_query: int = 10,
    ):
        self.providers = list(providers)
        self.inference = inference or KeywordTitleInference()
        self.max_calls = max_calls
        self.concurrency = max(1, concurrency)
        self.results_per_query = results_per_query

    @classmethod
    def from_settings(cls, settings: Settings) -> "JobSearchEngine":
        return cls(
            providers=build_providers(settings),
            max_calls=settings.search_max_calls,
            concurrency=settings.search_concurrency,
            results_per_query=settings.search_results_per_query,
        )

    def plan_titles(self, profile: Profile) -> tuple[list[str], list[str], str]:
        """Return (seed titles, extra titles, where the seeds came from)."""
        seeds = _unique(
            [t for t in (clean_title(raw) for raw in profile.job_titles[:MAX_SEED_TITLES]) if is_searchable_title(t)]
        )
        inferred = _unique([t for t in self.inference.infer(profile) if is_searchable_title(t)])

        if seeds:
            source = "profile"
        elif inferred:
            seeds, source = inferred[:MAX_SEED_TITLES], "inferred"
        else:
            seeds, source = list(GENERIC_TITLES), "generic"

        used = {s.lower() for s in seeds}
        extras = [t for t in _unique(inferred + list(GENERIC_TITLES)) if t.lower() not in used]
        return seeds, extras, source

    async def search(self, profile: Profile, max_results: int = 25, session_id: str | None = None) -> SearchReport:
        """
        Run the phased search for one profile.

        Raises ConfigurationError when no provider is configured. Provider
        failures are absorbed; an empty job list is a valid result.
        """
        if not self.providers:
            raise ConfigurationError(
                "No search providers configured. Set SERPER_API_KEY, BRAVE_API_KEY or TAVILY_API_KEY."
            )

        log_prefix = f"[{session_id}] " if session_id else ""
        seeds, extras, source = self.plan_titles(profile)
        location = (profile.location or "").strip() or None
        logger.info(f"{log_prefix}Searching with {source} titles {seeds}, location={location}")

        run = _SearchRun(self, max_results, log_prefix)
        if source == "inferred":
            await self._search_inferred(run, seeds, extras, location)
        else:
            await self._run_seeds(run, seeds, location)
            if not run.done and extras:
                if not run.jobs:
                    # nothing so far: the generic titles are the surest bet
                    generic = [t for t in extras if t in GENERIC_TITLES]
                    extras = generic + [t for t in extras if t not in GENERIC_TITLES]
                await run.run_phase(PHASE_EXTRA, [SearchQuery(t) for t in extras], broaden=False)

        jobs = run.jobs[:max_results]
        logger.info(f"{log_prefix}Search finished: {len(jobs)} jobs from {len(run.calls)} provider calls")
        return SearchReport(jobs=jobs, calls=run.calls, seeds=seeds, seed_source=source)

    async def _run_seeds(
        self,
        run: _SearchRun,
        titles: list[str],
        location: str | None,
        broaden: bool = True,
        phases: tuple[str, str] = (PHASE_LOCATION, PHASE_BROAD),
    ) -> None:
        if location:
            await run.run_phase(phases[0], [SearchQuery(t, location) for t in titles], broaden)
        await run.run_phase(phases[1], [SearchQuery(t) for t in titles], broaden)

    async def _search_inferred(
        self, run: _SearchRun, seeds: list[str], extras: list[str], location: str | None
    ) -> None:
        """
        Inferred seeds first, then exactly the queries an empty profile runs.

        One call per generic query is held back while the inferred seeds
        run, and those seeds get no broadened retry, so a profile with
        inferred titles never finds fewer jobs than the generic plan on
        the same budget when the first provider answers.
        """
        generic = list(GENERIC_TITLES)
        fallback_queries = len(generic) * (2 if location else 1)
        run.budget.reserved = min(self.max_calls, fallback_queries)
        await self._run_seeds(run, seeds, location, broaden=False)

        run.budget.reserved = 0
        await self._run_seeds(run, generic, location, phases=(PHASE_FALLBACK, PHASE_FALLBACK))

        remaining = [t for t in extras if t not in GENERIC_TITLES]
        if remaining:
            await run.run_phase(PHASE_EXTRA, [SearchQuery(t) for t in remaining], broaden=False)

    async def search_jobs(self, profile: Profile, max_results: int = 25, session_id: str | None = None) -> list[Job]:
        report = await self.search(profile, max_results=max_results, session_id=session_id)
        return report.jobs
