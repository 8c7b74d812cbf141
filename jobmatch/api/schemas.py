"""API request/response schemas. JSON keys are camelCase for the web client."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobmatch.models import Job, Profile, SessionStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Upload
class UploadResponse(CamelModel):
    session_id: str
    message: str
    profile: Profile


# Checkout
class CheckoutRequest(CamelModel):
    session_id: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=254)


class CheckoutResponse(CamelModel):
    checkout_url: str


class CheckoutSessionResponse(CamelModel):
    session_id: str
    email: str
    status: SessionStatus


# Webhook
class WebhookResponse(CamelModel):
    received: bool = True
    duplicate: bool | None = None
    session_id: str | None = None
    total_jobs: int | None = None


# Results
class ResultsResponse(CamelModel):
    status: SessionStatus
    jobs: list[Job]
    email: str
    total_jobs: int


# Debug
class SearchCallResponse(CamelModel):
    phase: str
    title: str
    location: str | None
    provider: str
    results: int
    new_jobs: int
    error: str | None


class DebugSearchRequest(CamelModel):
    profile: Profile
    max_results: int = Field(default=25, ge=1, le=100)


class DebugSearchResponse(CamelModel):
    seeds: list[str]
    seed_source: str
    calls: list[SearchCallResponse]
    total_jobs: int
    jobs: list[Job]
