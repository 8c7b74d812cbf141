"""Request dependencies. Components live on app.state, built by the lifespan."""

from fastapi import Request

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.agents.resume_parser import ResumeParser


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def get_resume_parser(request: Request) -> ResumeParser:
    return request.app.state.resume_parser
