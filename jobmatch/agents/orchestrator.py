"""
Orchestrator.

Owns the session state machine:

    pending -> (paid) -> processing -> complete
                              \\-> failed -> processing (retry)

Every step reads and writes the session store, so any process can pick up
where another one was torn down. The payment event is the trigger; the
results read path doubles as a recovery path for sessions that were lost
or got stuck.
"""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Literal

from pydantic import BaseModel

from jobmatch.agents.job_searcher import JobSearchEngine
from jobmatch.config import Settings, settings as default_settings
from jobmatch.errors import InvalidTransition, PaymentVerificationError, ProcessingFailed, SessionNotFound
from jobmatch.models import Job, Profile, Session, SessionStatus, utcnow
from jobmatch.storage.base import SessionStore
from jobmatch.tools.resend_email import Notifier, mask_email
from jobmatch.tools.stripe_checkout import PaymentConfirmed, PaymentGateway

logger = logging.getLogger(__name__)


class WebhookOutcome(BaseModel):
    status: Literal["processed", "duplicate"]
    session_id: str
    total_jobs: int = 0


class ResultsView(BaseModel):
    """What the results page sees: a preview plus the full count."""

    status: SessionStatus
    jobs: list[Job]
    email: str
    total_jobs: int


class Orchestrator:
    """Drives a session from upload to emailed results."""

    def __init__(
        self,
        store: SessionStore,
        search_engine: JobSearchEngine,
        gateway: PaymentGateway,
        notifier: Notifier,
        settings: Settings = default_settings,
    ):
        self.store = store
        self.search_engine = search_engine
        self.gateway = gateway
        self.notifier = notifier
        self.settings = settings

    async def create_session(self, profile: Profile, resume_text: str = "") -> Session:
        session = Session(id=str(uuid.uuid4()), profile=profile, resume_text=resume_text)
        await self.store.put(session.id, session)
        logger.info(f"[{session.id}] Created pending session ({len(profile.job_titles)} titles)")
        return session

    async def start_checkout(self, session_id: str, email: str) -> str:
        """Attach the email and return the payment redirect URL."""
        session = await self._patch(session_id, {"email": email.strip()})
        url = await self.gateway.create_payment_request(session_id, session.email, session.profile)
        logger.info(f"[{session_id}] Checkout started for {mask_email(session.email)}")
        return url

    async def confirm_checkout(self, checkout_session_id: str) -> Session:
        """
        Success-page redirect: mark a still-pending session as paid.

        If the store no longer has the session, an unsaved placeholder is
        returned; the webhook or the results read path rebuilds it.
        """
        lookup = await self.gateway.retrieve_checkout(checkout_session_id)
        if not lookup.paid or not lookup.session_id:
            raise PaymentVerificationError("Payment not completed")

        session_id = lookup.session_id
        session = await self.store.get(session_id)
        if session is None:
            logger.warning(f"[{session_id}] Paid checkout for a session the store does not have")
            return Session(id=session_id, email=lookup.email, status=SessionStatus.PAID)

        if session.status == SessionStatus.PENDING:
            updates: dict[str, Any] = {"status": SessionStatus.PAID}
            if lookup.email and not session.email:
                updates["email"] = lookup.email
            try:
                session = await self._patch(session_id, updates)
            except InvalidTransition:
                # the webhook moved it on in the meantime
                session = await self._require(session_id)
        return session

    async def handle_payment_confirmed(self, event: PaymentConfirmed) -> WebhookOutcome:
        """
        Process a verified payment: search, store results, notify.

        Redelivered events and sessions that already completed are reported
        as duplicates without side effects.
        """
        session_id = event.session_id
        session = await self.store.get(session_id)
        if session is None:
            session = await self._reconstruct(event)

        if self._is_duplicate(session, event.event_id):
            logger.info(f"[{session_id}] Duplicate payment event {event.event_id} (status={session.status.value})")
            return WebhookOutcome(status="duplicate", session_id=session_id, total_jobs=session.total_jobs)

        updates: dict[str, Any] = {
            "status": SessionStatus.PROCESSING,
            "payment_event_id": event.event_id,
            "processing_started_at": utcnow(),
            "error": None,
        }
        if event.email and not session.email:
            updates["email"] = event.email
        session = await self._patch(session_id, updates)
        logger.info(f"[{session_id}] Payment {event.event_id} confirmed, processing")

        session = await self._search_and_complete(session)
        await self._notify(session)
        return WebhookOutcome(status="processed", session_id=session_id, total_jobs=session.total_jobs)

    @staticmethod
    def _is_duplicate(session: Session, event_id: str | None) -> bool:
        if session.status == SessionStatus.COMPLETE:
            return True
        return event_id is not None and event_id == session.payment_event_id

    async def _reconstruct(self, event: PaymentConfirmed) -> Session:
        """Rebuild a lost session from the profile embedded in the payment."""
        if event.profile is None:
            raise SessionNotFound(event.session_id)
        session = Session(id=event.session_id, email=event.email, profile=event.profile)
        await self.store.put(session.id, session)
        logger.warning(f"[{session.id}] Session missing from store, rebuilt from payment metadata")
        return session

    async def _search_and_complete(self, session: Session) -> Session:
        """Run the search and store the result. Marks the session failed on any error."""
        session_id = session.id
        try:
            report = await self.search_engine.search(
                session.profile or Profile(),
                max_results=self.settings.search_max_results,
                session_id=session_id,
            )
            session = await self._patch(
                session_id,
                {"jobs": report.jobs, "status": SessionStatus.COMPLETE, "error": None},
            )
        except Exception as e:
            logger.error(f"[{session_id}] Processing failed: {e}")
            await self._mark_failed(session_id, str(e) or e.__class__.__name__)
            raise ProcessingFailed(f"Job search failed for session {session_id}") from e

        if not session.jobs:
            logger.warning(f"[{session_id}] Search completed with zero jobs")
        else:
            logger.info(f"[{session_id}] Complete with {session.total_jobs} jobs")
        return session

    async def _mark_failed(self, session_id: str, error: str) -> None:
        # clearing the event id lets the payment provider's redelivery retry
        try:
            await self.store.patch(
                session_id,
                {"status": SessionStatus.FAILED, "error": error, "payment_event_id": None},
            )
        except Exception:
            logger.exception(f"[{session_id}] Could not mark session failed")

    async def _notify(self, session: Session) -> None:
        """Email the full job list once; failures are logged, never raised."""
        current = await self.store.get(session.id) or session
        if not current.email or current.email_notified or not current.jobs:
            return

        try:
            result = await self.notifier.send(current.email, current.jobs)
        except Exception:
            logger.exception(f"[{session.id}] Notifier raised")
            return

        if not result.success:
            logger.error(f"[{session.id}] Email to {mask_email(current.email)} failed: {result.error}")
            return

        try:
            await self.store.patch(session.id, {"email_notified": True})
        except Exception:
            logger.exception(f"[{session.id}] Email sent but could not record it")

    async def get_results(self, session_id: str) -> ResultsView:
        """
        Current results for the results page.

        Missing sessions are rebuilt from a paid checkout and stuck ones are
        backfilled, both within RESULTS_TIMEOUT_SECONDS; past that the caller
        gets the current (still processing) status.
        """
        session = await self.store.get(session_id)
        if session is None:
            session = await self._bounded(session_id, self._recover_missing(session_id))
        elif self._needs_backfill(session):
            logger.warning(f"[{session_id}] Session stuck in {session.status.value}, backfilling")
            session = await self._bounded(session_id, self._backfill(session))
        return self._view(session)

    def _needs_backfill(self, session: Session) -> bool:
        if session.profile is None or session.jobs is not None:
            return False
        if session.status == SessionStatus.FAILED:
            return True
        if session.status in (SessionStatus.PAID, SessionStatus.PROCESSING):
            started = session.processing_started_at or session.updated_at
            return (utcnow() - started).total_seconds() >= self.settings.stuck_after_seconds
        return False

    async def _recover_missing(self, session_id: str) -> Session:
        event = await self.gateway.find_paid_checkout(session_id)
        if event is None:
            raise SessionNotFound(session_id)
        session = await self._reconstruct(event)
        return await self._backfill(session)

    async def _backfill(self, session: Session) -> Session:
        session = await self._patch(
            session.id,
            {"status": SessionStatus.PROCESSING, "processing_started_at": utcnow(), "error": None},
        )
        session = await self._search_and_complete(session)
        await self._notify(session)
        return session

    async def _bounded(self, session_id: str, work: Awaitable[Session]) -> Session:
        try:
            return await asyncio.wait_for(work, timeout=self.settings.results_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"[{session_id}] Results recovery timed out, returning current status")
        except ProcessingFailed:
            logger.warning(f"[{session_id}] Results recovery failed, returning current status")
        return await self._require(session_id)

    def _view(self, session: Session) -> ResultsView:
        jobs = session.jobs or []
        return ResultsView(
            status=session.status,
            jobs=jobs[: self.settings.results_preview_size],
            email=session.email,
            total_jobs=len(jobs),
        )

    async def _require(self, session_id: str) -> Session:
        session = await self.store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def _patch(self, session_id: str, updates: dict[str, Any]) -> Session:
        session = await self.store.patch(session_id, updates)
        if session is None:
            raise SessionNotFound(session_id)
        return session
