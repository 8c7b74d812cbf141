"""Checkout endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.api.deps import get_orchestrator
from jobmatch.api.schemas import CheckoutRequest, CheckoutResponse, CheckoutSessionResponse
from jobmatch.tools.resend_email import is_valid_email

router = APIRouter()


@router.post("", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Attach an email to the session and start a payment."""
    if not is_valid_email(data.email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    checkout_url = await orchestrator.start_checkout(data.session_id, data.email)
    return CheckoutResponse(checkout_url=checkout_url)


@router.get("/session", response_model=CheckoutSessionResponse)
async def get_checkout_session(
    checkout_session_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Success-page lookup: which session did this checkout pay for."""
    session = await orchestrator.confirm_checkout(checkout_session_id)
    return CheckoutSessionResponse(session_id=session.id, email=session.email, status=session.status)
