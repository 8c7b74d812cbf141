"""
Agents for JobMatch.

- resume_parser: Extracts a Profile from resume text
- title_inference: Proposes titles when the resume has none
- job_searcher: Budgeted multi-provider job search
- orchestrator: Drives the session state machine
"""

from jobmatch.agents.job_searcher import JobSearchEngine, SearchReport
from jobmatch.agents.orchestrator import Orchestrator, ResultsView, WebhookOutcome
from jobmatch.agents.resume_parser import ResumeParser

__all__ = [
    "JobSearchEngine",
    "SearchReport",
    "Orchestrator",
    "ResultsView",
    "WebhookOutcome",
    "ResumeParser",
]
