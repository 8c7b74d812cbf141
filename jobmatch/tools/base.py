"""Shared types for search providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

# ATS job boards the providers are restricted to
JOB_BOARD_SITES: tuple[str, ...] = (
    "jobs.ashbyhq.com",
    "boards.greenhouse.io",
    "jobs.lever.co",
    "jobs.workable.com",
    "recruiting.paylocity.com",
    "jobs.smartrecruiters.com",
    "careers.jobscore.com",
)


@dataclass(frozen=True)
class SearchQuery:
    """One provider query: a title and an optional location, nothing else."""

    title: str
    location: str | None = None

    def site_filter(self) -> str:
        return "(" + " OR ".join(f"site:{site}" for site in JOB_BOARD_SITES) + ")"

    def google_syntax(self) -> str:
        """`(site:a OR site:b) "title" location` for Google-style engines."""
        parts = [self.site_filter(), f'"{self.title}"']
        if self.location:
            parts.append(self.location)
        return " ".join(parts)

    def plain_text(self) -> str:
        """`title jobs location` for engines that take domains separately."""
        text = f"{self.title} jobs"
        if self.location:
            text += f" in {self.location}"
        return text

    def __str__(self) -> str:
        return f"{self.title} @ {self.location}" if self.location else self.title


@dataclass(frozen=True)
class RawResult:
    """One organic search hit before normalization."""

    title: str
    link: str
    snippet: str = ""


class SearchProvider(ABC):
    """A web search API that can look for job postings."""

    name: str

    @abstractmethod
    async def search(self, query: SearchQuery, num: int = 10) -> list[RawResult]:
        """
        Run one query.

        Returns an empty list when the provider finds nothing; raises
        ProviderError on transport, HTTP or authentication failures.
        """
        raise NotImplementedError
