"""
Common fixtures for API unit tests.

Provides shared test utilities:
- FastAPI TestClient wired to the in-memory test container
- X-User-Id headers for every persisted user fixture
- Multipart helpers for proposal submission
"""

import pytest
from fastapi.testclient import TestClient

from talk_proposals.api.dependencies import get_app_container
from talk_proposals.api.main import create_app
from tests.fakes import make_pdf


@pytest.fixture
def app(container):
    app = create_app()
    app.dependency_overrides[get_app_container] = lambda: container
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient returning 500 responses instead of re-raising server errors."""
    return TestClient(app, raise_server_exceptions=False)


def headers_for(user) -> dict:
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def speaker_headers(speaker):
    return headers_for(speaker)


@pytest.fixture
def reviewer_headers(reviewer):
    return headers_for(reviewer)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def pdf_upload():
    """files= payload with a small valid PDF."""
    return {"file": ("talk.pdf", make_pdf(2048), "application/pdf")}


@pytest.fixture
def submit(client, speaker_headers):
    """POST /api/proposals as the speaker and return the created proposal payload."""

    def _submit(title="Async Python", description="Event loops", tags=None, files=None, headers=None):
        data = {"title": title, "description": description}
        if tags is not None:
            data["tags"] = tags
        response = client.post(
            "/api/proposals",
            data=data,
            files=files,
            headers=headers or speaker_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["proposal"]

    return _submit
