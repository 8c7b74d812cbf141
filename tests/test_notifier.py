import json

import httpx
import pytest

from jobmatch.models import Job
from jobmatch.tools.resend_email import (
    RESEND_API_URL,
    ResendNotifier,
    email_subject,
    is_valid_email,
    mask_email,
    render_jobs_html,
)
from tests.conftest import run


def _jobs(count=2):
    return [
        Job(id=f"j{i}", title=f"Engineer {i}", company="Acme", url=f"https://jobs.lever.co/acme/{i}")
        for i in range(count)
    ]


def _notifier(handler, **kwargs):
    return ResendNotifier(
        "re_key",
        "JobMatch <jobs@jobmatch.example>",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.unit
def test_email_helpers():
    assert is_valid_email("jane@example.com")
    assert not is_valid_email("jane@example")
    assert not is_valid_email("not an email")
    assert not is_valid_email("")
    assert mask_email("jane@example.com") == "j***@example.com"
    assert email_subject(_jobs(3)) == "Your JobMatch Results - 3 Jobs Found"


@pytest.mark.unit
def test_html_escapes_job_fields():
    job = Job(id="x", title="<script>alert(1)</script>", company="A & B", url="https://example.com/?a=1&b=2")
    body = render_jobs_html([job])
    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "A &amp; B" in body


@pytest.mark.unit
def test_send_success():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_1"})

    result = run(_notifier(handler).send("jane@example.com", _jobs(2)))

    assert result.success
    assert result.message_id == "email_1"
    assert seen["url"] == RESEND_API_URL
    assert seen["auth"] == "Bearer re_key"
    assert seen["body"]["to"] == ["jane@example.com"]
    assert seen["body"]["subject"] == "Your JobMatch Results - 2 Jobs Found"


@pytest.mark.unit
def test_transient_failures_are_retried():
    responses = iter([httpx.Response(500), httpx.Response(429), httpx.Response(200, json={"id": "ok"})])
    calls = []

    def handler(request):
        calls.append(request)
        return next(responses)

    result = run(_notifier(handler, max_attempts=3).send("jane@example.com", _jobs()))
    assert result.success
    assert len(calls) == 3


@pytest.mark.unit
def test_gives_up_after_max_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("down")

    result = run(_notifier(handler, max_attempts=3).send("jane@example.com", _jobs()))
    assert not result.success
    assert len(calls) == 3
    assert "down" in result.error


@pytest.mark.unit
def test_client_errors_fail_fast():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(422, json={"message": "invalid from"})

    result = run(_notifier(handler).send("jane@example.com", _jobs()))
    assert not result.success
    assert len(calls) == 1
    assert "422" in result.error


@pytest.mark.unit
def test_invalid_input_sends_nothing():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"id": "x"})

    notifier = _notifier(handler)
    assert not run(notifier.send("bad-address", _jobs())).success
    assert not run(notifier.send("jane@example.com", [])).success
    assert calls == []
