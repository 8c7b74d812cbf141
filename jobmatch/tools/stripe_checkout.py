"""
Stripe Checkout payment gateway.

Creates hosted checkout sessions, verifies webhook signatures and looks
up completed checkouts. The compact profile rides along in checkout
metadata so a paid session can be rebuilt after the store lost it.
"""

import json
import logging
import time
from abc import ABC, abstractmethod

import stripe
from pydantic import BaseModel, ValidationError

from jobmatch.errors import (
    ConfigurationError,
    MalformedEventError,
    PaymentError,
    PaymentVerificationError,
    SessionNotFound,
)
from jobmatch.models import Profile
from jobmatch.utils.parser import normalize_profile

logger = logging.getLogger(__name__)

PRODUCT_NAME = "JobMatch - 25 Curated Job Postings"
PRODUCT_DESCRIPTION = "Personalized job matches from top ATS job boards, delivered to your inbox"
METADATA_MAX_CHARS = 500  # Stripe metadata value limit

PAID_EVENT_TYPES = frozenset({"checkout.session.completed", "checkout.session.async_payment_succeeded"})
PAID_STATUSES = frozenset({"paid", "no_payment_required"})


class PaymentConfirmed(BaseModel):
    """A verified, paid checkout tied to one of our sessions."""

    event_id: str | None = None
    session_id: str
    email: str = ""
    profile: Profile | None = None


class CheckoutLookup(BaseModel):
    """What the success-page redirect learns about a checkout."""

    checkout_session_id: str
    session_id: str | None = None
    email: str = ""
    paid: bool = False


class PaymentGateway(ABC):
    @abstractmethod
    async def create_payment_request(self, session_id: str, email: str, profile: Profile | None) -> str:
        """Create a checkout and return the URL to redirect the user to."""

    @abstractmethod
    def parse_event(self, payload: bytes, signature: str) -> PaymentConfirmed | None:
        """Verify a webhook delivery; None for events we do not act on."""

    @abstractmethod
    async def retrieve_checkout(self, checkout_session_id: str) -> CheckoutLookup:
        """Look up a checkout by the id Stripe put in the success URL."""

    @abstractmethod
    async def find_paid_checkout(self, session_id: str) -> PaymentConfirmed | None:
        """Find a paid checkout carrying this session id, if any."""


def _to_dict(obj) -> dict:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()


def _checkout_fields(checkout) -> dict:
    """Plain-dict view of the checkout fields we read."""
    details = getattr(checkout, "customer_details", None)
    return {
        "id": checkout.id,
        "payment_status": getattr(checkout, "payment_status", None),
        "customer_email": getattr(checkout, "customer_email", None),
        "customer_details": {"email": getattr(details, "email", None)} if details else {},
        "metadata": _to_dict(getattr(checkout, "metadata", None)),
    }


def profile_from_metadata(raw: str | None) -> Profile | None:
    """Decode the compact profile stored in checkout metadata."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Checkout metadata profile is not valid JSON")
        return None
    if not isinstance(data, dict) or not data:
        return None
    try:
        return normalize_profile(data)
    except ValidationError as e:
        logger.warning(f"Checkout metadata profile failed validation: {e}")
        return None


def confirmation_from_checkout(data: dict, event_id: str | None = None) -> PaymentConfirmed:
    metadata = data.get("metadata") or {}
    session_id = metadata.get("sessionId")
    if not session_id:
        raise MalformedEventError(f"Checkout {data.get('id')} has no sessionId metadata")

    email = data.get("customer_email") or (data.get("customer_details") or {}).get("email") or ""
    return PaymentConfirmed(
        event_id=event_id,
        session_id=session_id,
        email=email,
        profile=profile_from_metadata(metadata.get("parsedResume")),
    )


class StripeGateway(PaymentGateway):
    """PaymentGateway backed by Stripe Checkout."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        price_cents: int = 500,
        app_url: str = "http://localhost:3000",
        lookup_window_seconds: int = 2 * 60 * 60,
        client: stripe.StripeClient | None = None,
    ):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self.price_cents = price_cents
        self.app_url = app_url.rstrip("/")
        self.lookup_window_seconds = lookup_window_seconds
        self._client = client

    def _get_client(self) -> stripe.StripeClient:
        """Get or create the Stripe client."""
        if self._client is None:
            if not self._secret_key:
                raise ConfigurationError("STRIPE_SECRET_KEY not set")
            self._client = stripe.StripeClient(self._secret_key, http_client=stripe.HTTPXClient())
        return self._client

    async def create_payment_request(self, session_id: str, email: str, profile: Profile | None) -> str:
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "customer_email": email,
            "line_items": [
                {
                    "price_data": {
                        "currency": "usd",
                        "product_data": {"name": PRODUCT_NAME, "description": PRODUCT_DESCRIPTION},
                        "unit_amount": self.price_cents,
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {
                "sessionId": session_id,
                "parsedResume": profile.compact(METADATA_MAX_CHARS) if profile else "{}",
            },
            "success_url": f"{self.app_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.app_url}/cancel",
        }

        try:
            checkout = await self._get_client().v1.checkout.sessions.create_async(params=params)
        except stripe.StripeError as e:
            raise PaymentError(f"Could not create checkout session: {e.user_message or e}") from e

        if not checkout.url:
            raise PaymentError(f"Checkout session {checkout.id} has no redirect URL")
        logger.info(f"[{session_id}] Created checkout session {checkout.id}")
        return checkout.url

    def parse_event(self, payload: bytes, signature: str) -> PaymentConfirmed | None:
        if not self._webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET not set")

        text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
        try:
            stripe.WebhookSignature.verify_header(
                text, signature, self._webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as e:
            raise PaymentVerificationError(f"Webhook signature verification failed: {e}") from e

        try:
            event = json.loads(text)
        except ValueError as e:
            raise MalformedEventError("Webhook payload is not valid JSON") from e

        event_type = event.get("type")
        if event_type not in PAID_EVENT_TYPES:
            logger.info(f"Ignoring webhook event {event.get('id')} of type {event_type}")
            return None

        data = (event.get("data") or {}).get("object") or {}
        if data.get("payment_status") not in PAID_STATUSES:
            logger.info(f"Checkout {data.get('id')} completed without payment yet, waiting")
            return None
        return confirmation_from_checkout(data, event_id=event.get("id"))

    async def retrieve_checkout(self, checkout_session_id: str) -> CheckoutLookup:
        try:
            checkout = await self._get_client().v1.checkout.sessions.retrieve_async(checkout_session_id)
        except stripe.InvalidRequestError as e:
            raise SessionNotFound(checkout_session_id) from e
        except stripe.StripeError as e:
            raise PaymentError(f"Could not retrieve checkout session: {e.user_message or e}") from e

        data = _checkout_fields(checkout)
        email = data["customer_email"] or data["customer_details"].get("email") or ""
        return CheckoutLookup(
            checkout_session_id=checkout_session_id,
            session_id=data["metadata"].get("sessionId"),
            email=email,
            paid=data["payment_status"] in PAID_STATUSES,
        )

    async def find_paid_checkout(self, session_id: str) -> PaymentConfirmed | None:
        params = {
            "limit": 100,
            "created": {"gte": int(time.time()) - self.lookup_window_seconds},
        }
        try:
            page = await self._get_client().v1.checkout.sessions.list_async(params=params)
        except stripe.StripeError as e:
            raise PaymentError(f"Could not list checkout sessions: {e.user_message or e}") from e

        for checkout in page.data:
            data = _checkout_fields(checkout)
            if data["metadata"].get("sessionId") != session_id:
                continue
            if data["payment_status"] not in PAID_STATUSES:
                continue
            logger.info(f"[{session_id}] Found paid checkout {data['id']} for missing session")
            return confirmation_from_checkout(data)
        return None
