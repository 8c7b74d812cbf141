"""
Search result normalization.

Turns a raw organic search hit (title, link, snippet) into a Job using
heuristics tuned for ATS job board result pages.
"""

import re
from urllib.parse import urlparse

from jobmatch.models import Job, JobSource, job_id_for
from jobmatch.tools.base import RawResult

SOURCE_DOMAINS: dict[str, JobSource] = {
    "jobs.ashbyhq.com": JobSource.ASHBY,
    "boards.greenhouse.io": JobSource.GREENHOUSE,
    "job-boards.greenhouse.io": JobSource.GREENHOUSE,
    "jobs.lever.co": JobSource.LEVER,
    "jobs.workable.com": JobSource.WORKABLE,
    "apply.workable.com": JobSource.WORKABLE,
    "recruiting.paylocity.com": JobSource.PAYLOCITY,
    "jobs.smartrecruiters.com": JobSource.SMARTRECRUITERS,
    "careers.jobscore.com": JobSource.JOBSCORE,
}

_TITLE_SUFFIX = re.compile(r"\s*[-–|]\s*.+$")
_TITLE_AT_COMPANY = re.compile(r"\s+at\s+.+$", re.IGNORECASE)

_URL_BOARD_PREFIX = re.compile(r"(?:jobs\.|boards\.|recruiting\.)([^.]+)")
_COMPANY_AT = re.compile(r"\bat\s+(.+?)(?:\s*[-|]|$)", re.IGNORECASE)
_COMPANY_DASH = re.compile(r"[-–]\s*(.+?)(?:\s*[-|]|$)")

_LOCATION_PATTERNS = (
    re.compile(r"(?:in|at)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*,\s*[A-Z]{2})"),  # in New York, NY
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*,\s*[A-Z]{2})\s*[-|]"),  # New York, NY -
    re.compile(r"Location:\s*([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*,?\s*[A-Z]{2})", re.IGNORECASE),
)

_SALARY_PATTERNS = (
    re.compile(r"\$[\d,]+k?\s*-\s*\$[\d,]+k?", re.IGNORECASE),  # $80k - $100k
    re.compile(r"\$[\d,]+(?:,\d{3})*\s*-\s*\$[\d,]+(?:,\d{3})*", re.IGNORECASE),
    re.compile(r"salary:?\s*\$[\d,]+k?", re.IGNORECASE),  # Salary: $80k
)

# first path segments that are board routes, not company slugs
_NON_COMPANY_SEGMENTS = frozenset({"recruiting", "view", "jobs", "job", "j", "o", "embed"})

DEFAULT_LOCATION = "Remote"
UNKNOWN_COMPANY = "Unknown Company"


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def extract_job_title(title: str) -> str:
    """Drop " - Company", " | Board" and " at Company" suffixes."""
    cleaned = _TITLE_SUFFIX.sub("", title)
    cleaned = _TITLE_AT_COMPANY.sub("", cleaned).strip()
    return cleaned or title.strip()


def _company_from_board_path(url: str) -> str | None:
    """ATS boards put the company slug first in the path: jobs.lever.co/acme/..."""
    parsed = urlparse(url)
    if parsed.hostname not in SOURCE_DOMAINS:
        return None
    segments = [s for s in parsed.path.split("/") if s]
    if not segments:
        return None
    if segments[0].lower() in _NON_COMPANY_SEGMENTS:
        return None
    slug = segments[0].replace("-", " ").replace("_", " ").strip()
    if not slug:
        return None
    return " ".join(_capitalize(part) for part in slug.split())


def extract_company_name(title: str, url: str) -> str:
    """
    Best-effort company name.

    Order: ATS board path slug, a company-specific board subdomain
    (jobs.acme.com), " at X" in the title, "- X" in the title, then the
    capitalized domain name.
    """
    company = _company_from_board_path(url)
    if company:
        return company

    hostname = urlparse(url).hostname or ""
    if hostname and hostname not in SOURCE_DOMAINS:
        match = _URL_BOARD_PREFIX.search(hostname)
        if match:
            return _capitalize(match.group(1))

    match = _COMPANY_AT.search(title)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _COMPANY_DASH.search(title)
    if match and match.group(1).strip():
        return match.group(1).strip()

    if not hostname:
        return UNKNOWN_COMPANY
    domain = hostname
    for prefix in ("www.", "jobs.", "boards.", "recruiting.", "careers."):
        domain = domain.replace(prefix, "", 1) if domain.startswith(prefix) else domain
    name = domain.split(".")[0]
    return _capitalize(name) if name else UNKNOWN_COMPANY


def extract_location(snippet: str, title: str) -> str:
    """City, ST from the snippet, then the title; Remote when absent."""
    for text in (snippet, title):
        for pattern in _LOCATION_PATTERNS:
            match = pattern.search(text or "")
            if match:
                return match.group(1).strip()
    return DEFAULT_LOCATION


def extract_salary(snippet: str) -> str | None:
    for pattern in _SALARY_PATTERNS:
        match = pattern.search(snippet or "")
        if match:
            return match.group(0).strip()
    return None


def extract_source(url: str) -> JobSource:
    hostname = urlparse(url).hostname or ""
    for domain, source in SOURCE_DOMAINS.items():
        if hostname == domain or hostname.endswith("." + domain):
            return source
    return JobSource.JOB_BOARD


def result_to_job(result: RawResult) -> Job:
    """Convert one raw search hit into a Job; the id is derived from the URL."""
    snippet = result.snippet or ""
    return Job(
        id=job_id_for(result.link),
        title=extract_job_title(result.title),
        company=extract_company_name(result.title, result.link),
        location=extract_location(snippet, result.title),
        url=result.link,
        salary=extract_salary(snippet),
        description=snippet or None,
        source=extract_source(result.link),
    )
