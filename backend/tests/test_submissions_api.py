import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from quiz_api import config
from quiz_api.db.database import get_db
from quiz_api.db.schema import init_db
from quiz_api.db.submissions import SubmissionStore
from quiz_api.engines.results.catalog import build_catalog
from quiz_api.engines.results.pipeline import SubmissionPipeline
from quiz_api.errors import NotificationError, PersistenceError, UploadError
from quiz_api.main import app
from quiz_api.routers import submissions

CATALOG = build_catalog([{"questionText": "Q1", "chName": "Intro", "followUp": False}])

ADA_PAYLOAD = {
    "userName": "Ada",
    "userSurname": "Lovelace",
    "userEmail": "ada@x.com",
    "answers": [{"questionName": "Q1", "selectedAnswer": "Yes", "points": 5}],
    "totalPoints": 5,
}


class _DummyBlobStore:
    def __init__(self):
        self.error: Exception | None = None
        self.uploads: list[str] = []

    def upload(self, name: str, data: bytes) -> str:
        if self.error is not None:
            raise self.error
        self.uploads.append(name)
        return f"https://blobs.example/{name}"


class _DummyNotifier:
    def __init__(self):
        self.error: Exception | None = None
        self.sent_to: list[str] = []

    def notify(self, address, display_name, document_name, document_url, document=None):
        if self.error is not None:
            raise self.error
        self.sent_to.append(address)


class _BrokenStore:
    def list_all(self):
        raise PersistenceError("database is locked")


@dataclass
class _Harness:
    client: TestClient
    store: SubmissionStore
    blobs: _DummyBlobStore = field(default_factory=_DummyBlobStore)
    notifier: _DummyNotifier = field(default_factory=_DummyNotifier)


@pytest.fixture
def harness(tmp_path: Path):
    db_path = tmp_path / "quiz_results.db"
    init_db(db_path)
    conn = get_db(db_path)
    h = _Harness(client=TestClient(app), store=SubmissionStore(conn))

    app.dependency_overrides[submissions.get_store] = lambda: h.store
    app.dependency_overrides[submissions.get_pipeline] = lambda: SubmissionPipeline(
        CATALOG, h.store, h.blobs, h.notifier
    )
    try:
        yield h
    finally:
        app.dependency_overrides.clear()
        conn.close()


def test_submit_user_data_returns_stored_submission(harness: _Harness):
    response = harness.client.post("/api/submitUserData", json=ADA_PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Quiz submitted successfully!"
    data = body["data"]
    assert data["userName"] == "Ada"
    assert data["userSurname"] == "Lovelace"
    assert data["userEmail"] == "ada@x.com"
    assert data["answers"] == ADA_PAYLOAD["answers"]
    assert data["totalPoints"] == 5
    assert data["documentUrl"] == f"https://blobs.example/{harness.blobs.uploads[0]}"
    assert data["id"].startswith("sub-")
    assert harness.notifier.sent_to == ["ada@x.com"]


def test_client_supplied_document_url_is_ignored(harness: _Harness):
    payload = dict(ADA_PAYLOAD, documentUrl="https://evil.example/x.pdf")
    response = harness.client.post("/api/submitUserData", json=payload)

    assert response.status_code == 200
    assert response.json()["data"]["documentUrl"].startswith("https://blobs.example/")


def test_unknown_question_is_a_500_with_error_code(harness: _Harness):
    payload = dict(ADA_PAYLOAD, answers=[{"questionName": "Q404", "selectedAnswer": "Yes", "points": 1}])
    response = harness.client.post("/api/submitUserData", json=payload)

    assert response.status_code == 500
    assert response.text == "Failed to submit quiz."
    assert response.headers["x-error-code"] == "unknown_question"
    assert harness.blobs.uploads == []
    assert harness.notifier.sent_to == []


def test_upload_failure_is_a_500(harness: _Harness):
    harness.blobs.error = UploadError("bucket gone")
    response = harness.client.post("/api/submitUserData", json=ADA_PAYLOAD)

    assert response.status_code == 500
    assert response.headers["x-error-code"] == "upload_failed"
    assert [s.document_url for s in harness.store.list_all()] == [None]


def test_notification_failure_still_succeeds(harness: _Harness):
    harness.notifier.error = NotificationError("smtp down")
    response = harness.client.post("/api/submitUserData", json=ADA_PAYLOAD)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["documentUrl"] == f"https://blobs.example/{harness.blobs.uploads[0]}"


def test_malformed_body_is_rejected(harness: _Harness):
    payload = {key: value for key, value in ADA_PAYLOAD.items() if key != "userEmail"}
    response = harness.client.post("/api/submitUserData", json=payload)
    assert response.status_code == 422


def test_get_all_submissions_lists_in_insertion_order(harness: _Harness):
    harness.client.post("/api/submitUserData", json=ADA_PAYLOAD)
    harness.client.post("/api/submitUserData", json=dict(ADA_PAYLOAD, userName="Augusta"))

    response = harness.client.get("/api/getAllSubmissions")

    assert response.status_code == 200
    body = response.json()
    assert [item["userName"] for item in body] == ["Ada", "Augusta"]
    assert all(item["documentUrl"] for item in body)


def test_get_all_submissions_failure_is_plain_text_500(harness: _Harness):
    app.dependency_overrides[submissions.get_store] = lambda: _BrokenStore()
    response = harness.client.get("/api/getAllSubmissions")

    assert response.status_code == 500
    assert response.text == "Failed to retrieve submissions."


def test_startup_initialises_database_and_catalog(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_PATH", tmp_path / "startup.db")

    with TestClient(app) as client:
        ready = client.get("/ready").json()
        listing = client.get("/api/getAllSubmissions")

    assert ready["ready"] is True
    assert ready["questions"] > 0
    assert listing.status_code == 200
    assert listing.json() == []
    assert (tmp_path / "startup.db").exists()


def test_health(harness: _Harness):
    response = harness.client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
