"""Payment webhook endpoint."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.api.deps import get_orchestrator
from jobmatch.api.schemas import WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=WebhookResponse, response_model_exclude_none=True)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Receive a Stripe event.

    Paid checkouts run the whole search before responding, so a failure
    surfaces as a 5xx and Stripe redelivers the event.
    """
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    payload = await request.body()
    event = orchestrator.gateway.parse_event(payload, stripe_signature)
    if event is None:
        return WebhookResponse()

    outcome = await orchestrator.handle_payment_confirmed(event)
    if outcome.status == "duplicate":
        return WebhookResponse(duplicate=True, session_id=outcome.session_id)
    return WebhookResponse(session_id=outcome.session_id, total_jobs=outcome.total_jobs)
