import pytest
from fastapi.testclient import TestClient

from jobmatch.api.app import app
from jobmatch.api.deps import get_orchestrator, get_resume_parser
from jobmatch.api.limiter import limiter
from jobmatch.api.routes import upload
from jobmatch.config import settings as app_settings
from jobmatch.models import Profile
from jobmatch.tools.stripe_checkout import PaymentConfirmed
from tests.conftest import run

RESUME_TEXT = """Jane Doe
Austin, TX
Experience: Senior Backend Engineer at Acme, 2018-2024. Built Python services on AWS.
Education: BSc Computer Science, University of Texas
Skills: Python, PostgreSQL, AWS, Docker
"""


class StubParser:
    def __init__(self, profile):
        self.profile = profile
        self.texts = []

    async def parse(self, resume_text):
        self.texts.append(resume_text)
        return self.profile


@pytest.fixture
def client(orchestrator, profile, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_resume_parser] = lambda: StubParser(profile)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _pdf(content=b"%PDF-1.4 stub", name="resume.pdf", content_type="application/pdf"):
    return {"file": (name, content, content_type)}


@pytest.mark.unit
def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
def test_upload_creates_pending_session(client, orchestrator, monkeypatch):
    monkeypatch.setattr(upload, "extract_pdf_text", lambda content: RESUME_TEXT)

    response = client.post("/upload", files=_pdf())

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Resume parsed successfully"
    assert body["profile"]["job_titles"] == ["Software Engineer", "Backend Developer"]

    results = client.get(f"/results/{body['sessionId']}").json()
    assert results["status"] == "pending"
    assert results["totalJobs"] == 0


@pytest.mark.unit
def test_upload_rejects_non_pdf(client):
    response = client.post("/upload", files=_pdf(b"hello", name="resume.txt", content_type="text/plain"))
    assert response.status_code == 400
    assert "PDF" in response.json()["detail"]


@pytest.mark.unit
def test_upload_rejects_oversize(client, monkeypatch):
    monkeypatch.setattr(app_settings, "max_upload_bytes", 10)
    response = client.post("/upload", files=_pdf(b"x" * 11))
    assert response.status_code == 413


@pytest.mark.unit
def test_upload_rejects_unreadable_pdf(client):
    response = client.post("/upload", files=_pdf(b"this is not a pdf at all"))
    assert response.status_code == 400
    assert "unreadable" in response.json()["detail"]


@pytest.mark.unit
def test_upload_rejects_thin_resume(client, monkeypatch):
    monkeypatch.setattr(upload, "extract_pdf_text", lambda content: "Jane Doe")
    response = client.post("/upload", files=_pdf())
    assert response.status_code == 400
    assert "insufficient content" in response.json()["detail"]


@pytest.mark.unit
def test_checkout_returns_payment_url(client, orchestrator, profile, gateway):
    session = run(orchestrator.create_session(profile))

    response = client.post("/checkout", json={"sessionId": session.id, "email": "jane@example.com"})

    assert response.status_code == 200
    assert response.json()["checkoutUrl"] == f"https://checkout.example/pay/{session.id}"
    assert gateway.requests[0][1] == "jane@example.com"


@pytest.mark.unit
def test_checkout_invalid_email(client):
    response = client.post("/checkout", json={"sessionId": "s1", "email": "not-an-email"})
    assert response.status_code == 400


@pytest.mark.unit
def test_checkout_unknown_session(client):
    response = client.post("/checkout", json={"sessionId": "missing", "email": "jane@example.com"})
    assert response.status_code == 404
    assert "upload your resume again" in response.json()["detail"]


@pytest.mark.unit
def test_webhook_requires_signature(client):
    response = client.post("/webhook", content=b"{}")
    assert response.status_code == 400


@pytest.mark.unit
def test_webhook_ignores_unrelated_events(client, gateway):
    gateway.event = None
    response = client.post("/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=x"})
    assert response.status_code == 200
    assert response.json() == {"received": True}


@pytest.mark.unit
def test_webhook_processes_then_reports_duplicate(client, orchestrator, profile, gateway, notifier):
    session = run(orchestrator.create_session(profile))
    run(orchestrator.start_checkout(session.id, "jane@example.com"))
    gateway.event = PaymentConfirmed(event_id="evt_1", session_id=session.id, email="jane@example.com")
    headers = {"Stripe-Signature": "t=1,v1=x"}

    first = client.post("/webhook", content=b"{}", headers=headers)
    second = client.post("/webhook", content=b"{}", headers=headers)

    assert first.status_code == 200
    assert first.json() == {"received": True, "sessionId": session.id, "totalJobs": 10}
    assert second.json()["duplicate"] is True
    assert len(notifier.sent) == 1

    results = client.get(f"/results/{session.id}").json()
    assert results["status"] == "complete"
    assert results["totalJobs"] == 10
    assert len(results["jobs"]) == 5
    assert results["email"] == "jane@example.com"


@pytest.mark.unit
def test_results_unknown_session(client):
    response = client.get("/results/nope")
    assert response.status_code == 404


@pytest.mark.unit
def test_debug_search(client):
    response = client.post(
        "/debug/search",
        json={"profile": Profile(job_titles=["Data Engineer"]).model_dump(), "maxResults": 5},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["seeds"] == ["Data Engineer"]
    assert body["seedSource"] == "profile"
    assert body["totalJobs"] == 5
    assert body["calls"][0]["phase"] == "broad"


@pytest.mark.unit
def test_debug_search_disabled(client, settings):
    settings.debug_endpoints = False
    response = client.post("/debug/search", json={"profile": {}})
    assert response.status_code == 404

