"""Endpoint tests for /api/questions.

Uses FastAPI TestClient with dependency overrides: auth, store, AI and
permissions are all replaced, so nothing leaves the process.
"""
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("SUPABASE_URL", "https://fake.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "fake-service-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-fake-key-for-tests")

import pytest
from fastapi.testclient import TestClient

from tenq.api.questions import get_current_user
from tenq.core.deps import get_permission_service, get_question_store
from tenq.main import app
from tenq.services.ai import LLMResponse, get_ai_service
from tenq.services.permissions import PermissionService
from tenq.services.question_store import MemoryQuestionStore

_ANSWERS = ["Zeus", "Hera", "Odin", "Ra", "Anubis", "Loki", "Athena", "Freya", "Isis", "Apollo"]


def _item(answer: str) -> dict:
    return {
        "question": f"This deity is known as {answer}.",
        "choices": [answer, "Decoy A", "Decoy B", "Decoy C"],
        "answer": answer,
        "tags": ["Mythology", "Gods", answer],
    }


def _candidate(answer: str) -> dict:
    item = _item(answer)
    item["question_text"] = item.pop("question")
    return item


class _FakeAI:
    def __init__(self, text: str):
        self.text = text

    async def generate_completion(self, prompt, **kwargs):
        return LLMResponse(text=self.text, model="fake")


class _User:
    def __init__(self, email):
        self.email = email
        self.app_metadata = {}


@pytest.fixture
def store():
    return MemoryQuestionStore()


@pytest.fixture
def client(store):
    ai = _FakeAI(json.dumps([_item(a) for a in _ANSWERS]))
    app.dependency_overrides[get_current_user] = lambda: _User("admin@x.com")
    app.dependency_overrides[get_question_store] = lambda: store
    app.dependency_overrides[get_ai_service] = lambda: ai
    app.dependency_overrides[get_permission_service] = lambda: PermissionService(
        None, admin_emails=["admin@x.com"]
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload_body(date="2025-01-01", approved=range(10)) -> dict:
    return {
        "target_date": date,
        "questions": [_candidate(a) for a in _ANSWERS],
        "approved_positions": list(approved),
    }


class TestGenerate:
    def test_generate_for_given_date(self, client):
        r = client.post("/api/questions/generate", json={"theme": "Mythology", "target_date": "2025-01-01"})
        assert r.status_code == 200
        body = r.json()
        assert body["target_date"] == "2025-01-01"
        assert len(body["questions"]) == 10
        assert body["questions"][0]["id"] == "2025-01-01-q0"

    def test_next_available_date_skips_uploaded_day(self, client):
        client.post("/api/questions/upload", json=_upload_body("2030-06-01"))
        r = client.get("/api/questions/next-available-date", params={"start": "2030-06-01"})
        assert r.json() == {"date": "2030-06-02"}

    def test_bad_date_is_400(self, client):
        r = client.post("/api/questions/generate", json={"theme": "Mythology", "target_date": "01-01-2025"})
        assert r.status_code == 400
        body = r.json()
        assert body["error"] == "INVALID_DATE_FORMAT"
        assert body["details"]["suggested"] == "2025-01-01"

    def test_parse_failure_is_502(self, client):
        app.dependency_overrides[get_ai_service] = lambda: _FakeAI("not json at all")
        r = client.post("/api/questions/generate", json={"theme": "Mythology", "target_date": "2025-01-01"})
        assert r.status_code == 502
        body = r.json()
        assert body["error"] == "PARSE_FAILURE"
        assert body["retryable"] is True
        assert body["details"]["raw_text"] == "not json at all"


class TestRegenerate:
    def test_regenerate(self, client):
        app.dependency_overrides[get_ai_service] = lambda: _FakeAI(json.dumps(_item("Thor")))
        r = client.post("/api/questions/regenerate", json={
            "theme": "Mythology",
            "feedback": "too easy",
            "questions": [_candidate(a) for a in _ANSWERS],
            "position": 0,
            "target_date": "2025-01-01",
        })
        assert r.status_code == 200
        assert r.json()["question"]["answer"] == "Thor"

    def test_position_out_of_range(self, client):
        r = client.post("/api/questions/regenerate", json={
            "theme": "Mythology",
            "feedback": "too easy",
            "questions": [_candidate(a) for a in _ANSWERS],
            "position": 10,
            "target_date": "2025-01-01",
        })
        assert r.status_code == 400


class TestUpload:
    def test_upload_success(self, client, store):
        r = client.post("/api/questions/upload", json=_upload_body())
        assert r.status_code == 200
        assert r.json()["message"] == "Successfully uploaded 10 questions for 2025-01-01"
        assert store.count_records_for_date("2025-01-01") == 10

    def test_incomplete_approval_blocks_upload(self, client, store):
        r = client.post("/api/questions/upload", json=_upload_body(approved=range(9)))
        assert r.status_code == 400
        assert "missing: 10" in r.json()["detail"]
        assert store.count_records_for_date("2025-01-01") == 0

    def test_non_admin_is_403(self, client, store):
        app.dependency_overrides[get_current_user] = lambda: _User("viewer@x.com")
        r = client.post("/api/questions/upload", json=_upload_body())
        assert r.status_code == 403
        assert r.json()["error"] == "PERMISSION_DENIED"
        assert store.count_records_for_date("2025-01-01") == 0

    def test_second_upload_conflicts(self, client):
        client.post("/api/questions/upload", json=_upload_body())
        r = client.post("/api/questions/upload", json=_upload_body())
        assert r.status_code == 409
        assert r.json()["details"] == {"date": "2025-01-01", "existing_count": 10}

    def test_duplicate_answers_are_422(self, client):
        body = _upload_body()
        body["questions"][6] = _candidate("Zeus")
        r = client.post("/api/questions/upload", json=body)
        assert r.status_code == 422
        assert r.json()["details"]["violations"] == ["Questions 1 and 7 share the answer 'Zeus'"]


class TestReads:
    def test_by_date_tag_stats(self, client):
        client.post("/api/questions/upload", json=_upload_body())

        by_date = client.get("/api/questions/by-date/2025-01-01").json()
        assert [q["difficulty_rank"] for q in by_date["questions"]] == list(range(1, 11))

        by_tag = client.get("/api/questions/by-tag/Odin").json()
        assert [q["answer"] for q in by_tag["questions"]] == ["Odin"]

        tags = client.get("/api/questions/tags").json()["tags"]
        assert "Mythology" in tags and "Gods" in tags

        stats = client.get("/api/questions/stats").json()
        assert stats["total_questions"] == 10
        assert stats["average_difficulty"] == 5.5
        assert stats["dates_covered"] == 1

    def test_date_status(self, client):
        client.post("/api/questions/upload", json=_upload_body())
        status = client.get("/api/questions/date-status/2025-01-01").json()
        assert status == {"date": "2025-01-01", "question_count": 10, "available": False, "full": True}


class TestAuth:
    def test_missing_bearer_is_401(self):
        app.dependency_overrides.clear()
        r = TestClient(app).post("/api/questions/upload", json=_upload_body())
        assert r.status_code == 401
