"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from jobmatch.agents.job_searcher import JobSearchEngine
from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.agents.resume_parser import ResumeParser
from jobmatch.api.limiter import limiter
from jobmatch.config import settings
from jobmatch.errors import JobMatchError
from jobmatch.storage import create_session_store
from jobmatch.tools.resend_email import ResendNotifier
from jobmatch.tools.stripe_checkout import StripeGateway

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and adapters once per process."""
    configure_logging(settings.log_level)

    store = create_session_store(settings)
    search_engine = JobSearchEngine.from_settings(settings)
    gateway = StripeGateway(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        price_cents=settings.price_cents,
        app_url=settings.app_url,
        lookup_window_seconds=settings.session_ttl_seconds,
    )
    notifier = ResendNotifier(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        max_attempts=settings.email_max_attempts,
        backoff_seconds=settings.email_backoff_seconds,
    )

    app.state.resume_parser = ResumeParser(settings=settings)
    app.state.orchestrator = Orchestrator(store, search_engine, gateway, notifier, settings)
    logger.info(f"JobMatch started with providers {[p.name for p in search_engine.providers]}")
    try:
        yield
    finally:
        await store.close()


app = FastAPI(
    title="JobMatch API",
    description="Resume-matched job postings, paid per search",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 with a clear message when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


@app.exception_handler(JobMatchError)
async def jobmatch_error_handler(request: Request, exc: JobMatchError):
    """Map domain errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


# Import and include routers
from jobmatch.api.routes import checkout, debug, results, upload, webhook  # noqa: E402

app.include_router(upload.router, tags=["Upload"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(webhook.router, prefix="/webhook", tags=["Webhook"])
app.include_router(results.router, prefix="/results", tags=["Results"])
app.include_router(debug.router, prefix="/debug", tags=["Debug"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
