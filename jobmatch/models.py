"""
Domain models: Profile, Job, Session.

Pydantic v2. These are the records stored in the session store and embedded
(in compact form) in payment metadata, so field names are stable.
"""

import hashlib
import json
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from jobmatch.errors import InvalidTransition

JobType = Literal["full-time", "part-time", "contract", "remote"]
JOB_TYPES: tuple[str, ...] = ("full-time", "part-time", "contract", "remote")


def utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


# failed is re-entered only by a redelivered payment event or by the
# results backfill; complete is final.
ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.PENDING: frozenset(
        {SessionStatus.PAID, SessionStatus.PROCESSING, SessionStatus.FAILED}
    ),
    SessionStatus.PAID: frozenset({SessionStatus.PROCESSING, SessionStatus.FAILED}),
    SessionStatus.PROCESSING: frozenset({SessionStatus.COMPLETE, SessionStatus.FAILED}),
    SessionStatus.FAILED: frozenset({SessionStatus.PROCESSING, SessionStatus.COMPLETE}),
    SessionStatus.COMPLETE: frozenset(),
}


def check_transition(current: SessionStatus, new: SessionStatus) -> None:
    """Raise InvalidTransition unless current -> new is a forward move."""
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move session from {current.value} to {new.value}")


class JobSource(str, Enum):
    """Job board that produced a posting. JOB_BOARD covers unknown domains."""

    ASHBY = "Ashby"
    GREENHOUSE = "Greenhouse"
    LEVER = "Lever"
    WORKABLE = "Workable"
    PAYLOCITY = "Paylocity"
    SMARTRECRUITERS = "SmartRecruiters"
    JOBSCORE = "JobScore"
    JOB_BOARD = "Job Board"


class Profile(BaseModel):
    """Structured resume data used to seed the job search."""

    job_titles: list[str] = Field(default_factory=list, description="Most relevant first")
    skills: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    years_experience: float | None = Field(default=None, ge=0)
    location: str | None = None
    education: str | None = None
    job_types: list[JobType] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.job_titles
            or self.skills
            or self.industries
            or self.years_experience is not None
            or self.location
            or self.job_types
        )

    def compact(self, max_chars: int = 500) -> str:
        """
        Serialize a trimmed copy that fits in max_chars.

        Payment metadata values are size-limited, so only the top titles and
        skills survive; each round keeps fewer items until the JSON fits.
        """
        limits = [(3, 10, 3), (3, 6, 2), (2, 4, 1), (2, 2, 0), (1, 0, 0), (0, 0, 0)]
        for titles, skills, industries in limits:
            data = {
                "job_titles": [t[:60] for t in self.job_titles[:titles]],
                "skills": [s[:40] for s in self.skills[:skills]],
                "industries": [i[:40] for i in self.industries[:industries]],
                "years_experience": self.years_experience,
                "location": self.location[:60] if self.location else None,
                "job_types": list(self.job_types),
            }
            payload = json.dumps(data, separators=(",", ":"))
            if len(payload) <= max_chars:
                return payload
        return "{}"


def job_id_for(url: str) -> str:
    """Stable 12-char id derived from the posting URL."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:12]


class Job(BaseModel):
    """One job posting."""

    id: str
    title: str
    company: str
    location: str = "Remote"
    url: str
    salary: str | None = None
    description: str | None = None
    source: JobSource = JobSource.JOB_BOARD


class Session(BaseModel):
    """One resume-to-jobs workflow instance."""

    id: str
    email: str = ""
    resume_text: str = ""
    profile: Profile | None = None
    jobs: list[Job] | None = None
    status: SessionStatus = SessionStatus.PENDING
    email_notified: bool = False
    payment_event_id: str | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    processing_started_at: datetime | None = None

    @model_validator(mode="after")
    def _complete_has_jobs(self) -> "Session":
        if self.status == SessionStatus.COMPLETE and self.jobs is None:
            raise ValueError("A complete session must record its jobs (possibly empty)")
        return self

    @property
    def total_jobs(self) -> int:
        return len(self.jobs or [])
