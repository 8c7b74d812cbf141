"""
Result email via the Resend REST API.

Sends the full job list to the session's address. Invalid input fails
immediately; transport errors, 429 and 5xx are retried with exponential
backoff.
"""

import asyncio
import html
import logging
import re
from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel

from jobmatch.models import Job

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email.strip()))


def mask_email(email: str) -> str:
    """j***@example.com, for logs."""
    local, sep, domain = (email or "").partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


class SendResult(BaseModel):
    success: bool
    message_id: str | None = None
    error: str | None = None


class Notifier(ABC):
    @abstractmethod
    async def send(self, to: str, jobs: list[Job]) -> SendResult:
        """Deliver the job list. Never raises for delivery failures."""


def email_subject(jobs: list[Job]) -> str:
    return f"Your JobMatch Results - {len(jobs)} Jobs Found"


def render_jobs_html(jobs: list[Job]) -> str:
    """HTML body; every job field is escaped."""
    cards = []
    for index, job in enumerate(jobs, start=1):
        salary = f'<p class="job-salary">{html.escape(job.salary)}</p>' if job.salary else ""
        cards.append(
            '<div class="job">'
            f'<h2 class="job-title">{index}. {html.escape(job.title)}</h2>'
            f'<p class="job-company">{html.escape(job.company)}</p>'
            f'<p class="job-location">{html.escape(job.location)}</p>'
            f"{salary}"
            f'<a href="{html.escape(job.url)}" class="apply-button">Apply Now</a>'
            "</div>"
        )

    return (
        '<!DOCTYPE html><html lang="en"><head><meta charset="UTF-8">'
        "<title>Your Job Matches</title>"
        "<style>"
        "body{font-family:-apple-system,'Segoe UI',Roboto,Arial,sans-serif;color:#333;"
        "max-width:600px;margin:0 auto;padding:20px;background:#f5f5f5}"
        ".container{background:#fff;border-radius:8px;padding:30px}"
        ".header{text-align:center;border-bottom:2px solid #e5e7eb;margin-bottom:30px}"
        ".job{margin-bottom:25px;padding:20px;border:1px solid #e5e7eb;border-radius:6px}"
        ".job-title{font-size:18px;margin:0 0 10px}"
        ".job-salary{color:#059669}"
        ".apply-button{display:inline-block;padding:10px 20px;background:#2563eb;color:#fff;"
        "text-decoration:none;border-radius:5px}"
        ".footer{margin-top:40px;text-align:center;color:#6b7280;font-size:14px}"
        "</style></head><body><div class=\"container\">"
        '<div class="header"><h1>Your Job Matches Are Ready!</h1>'
        f"<p>Here are all {len(jobs)} jobs matched to your resume</p></div>"
        f"{''.join(cards)}"
        '<div class="footer"><p>Good luck with your job search!</p>'
        "<p><strong>JobMatch</strong> - Helping you find your next opportunity</p>"
        "<p>You received this email because you used JobMatch to find job opportunities.</p>"
        "</div></div></body></html>"
    )


def render_jobs_text(jobs: list[Job]) -> str:
    lines = [f"Here are all {len(jobs)} jobs matched to your resume:", ""]
    for index, job in enumerate(jobs, start=1):
        lines.append(f"{index}. {job.title} - {job.company} ({job.location})")
        if job.salary:
            lines.append(f"   {job.salary}")
        lines.append(f"   {job.url}")
    return "\n".join(lines)


def _is_transient(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class ResendNotifier(Notifier):
    """Notifier posting to api.resend.com."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self.sender = sender
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._timeout = timeout
        self._transport = transport

    async def send(self, to: str, jobs: list[Job]) -> SendResult:
        if not is_valid_email(to):
            return SendResult(success=False, error=f"Invalid email address format: {mask_email(to)}")
        if not jobs:
            return SendResult(success=False, error="No jobs to send in email")
        if not self._api_key:
            return SendResult(success=False, error="RESEND_API_KEY not set")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": self.sender,
            "to": [to.strip()],
            "subject": email_subject(jobs),
            "html": render_jobs_html(jobs),
            "text": render_jobs_text(jobs),
        }

        last_error = "unknown error"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for attempt in range(self.max_attempts):
                if attempt > 0:
                    delay = self.backoff_seconds * 2**attempt
                    logger.info(f"Retrying email to {mask_email(to)} in {delay:.1f}s (attempt {attempt + 1})")
                    await asyncio.sleep(delay)

                try:
                    response = await client.post(RESEND_API_URL, headers=headers, json=payload)
                except httpx.HTTPError as e:
                    last_error = f"request failed: {e}"
                    logger.warning(f"Email send to {mask_email(to)} failed: {last_error}")
                    continue

                if response.is_success:
                    message_id = response.json().get("id")
                    logger.info(f"Email sent to {mask_email(to)} with {len(jobs)} jobs (id={message_id})")
                    return SendResult(success=True, message_id=message_id)

                last_error = f"HTTP {response.status_code}: {response.text[:200]}"
                logger.warning(f"Email send to {mask_email(to)} failed: {last_error}")
                if not _is_transient(response.status_code):
                    break

        return SendResult(success=False, error=last_error)
