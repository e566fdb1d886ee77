"""
Document store for daily question sets.

Layout (one document per key):
  questions/{date}-q{0..9}             full question document
  tags/{tag}/questions/{questionId}    {"questionId": ...} tag index pointer

Two backends share the same surface:
  SupabaseQuestionStore  production; commit goes through the Postgres function
                         commit_question_batch so every write lands in one
                         transaction (see sql/commit_question_batch.sql)
  MemoryQuestionStore    local dev and tests; staged copy-then-swap commit
"""
import copy
import logging
import threading

import httpx
from postgrest.exceptions import APIError

from tenq.core.errors import DateConflict, PermissionDenied, StoreUnavailable
from tenq.models.question import QuestionRecord, WriteOp

logger = logging.getLogger("tenq.question_store")

QUESTIONS_COLLECTION = "questions"
COMMIT_FUNCTION = "commit_question_batch"

# Postgres / PostgREST codes we classify
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}
_UNIQUE_VIOLATION = "23505"


def tag_collection(tag: str) -> str:
    return f"tags/{tag}/questions"


def tag_from_collection(path: str) -> str | None:
    parts = path.split("/")
    if len(parts) == 3 and parts[0] == "tags" and parts[2] == "questions":
        return parts[1]
    return None


def classify_store_error(exc: Exception, date: str = "") -> Exception:
    """Map a raw store exception onto the pipeline taxonomy.

    Returns PermissionDenied, StoreUnavailable or DateConflict when the cause
    is recognised, otherwise the original exception unchanged.
    """
    if isinstance(exc, (PermissionDenied, StoreUnavailable, DateConflict)):
        return exc
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError, ConnectionError, TimeoutError)):
        return StoreUnavailable()

    if isinstance(exc, APIError):
        code = str(exc.code or "")
        message = str(exc.message or "").lower()
    else:
        code = ""
        message = str(exc).lower()

    if code in _PERMISSION_CODES or "permission-denied" in message or "permission denied" in message:
        return PermissionDenied()
    if code == _UNIQUE_VIOLATION:
        return DateConflict(date or "target date", 0)
    if code.startswith("5") or "unavailable" in message:
        return StoreUnavailable()
    return exc


# ── Supabase ────────────────────────────────────────────────────────────────

def _row_to_document(row: dict) -> dict:
    return {
        "id": row.get("id"),
        "question": row.get("question", ""),
        "choices": row.get("choices") or [],
        "answer": row.get("answer", ""),
        "date": row.get("date", ""),
        "difficulty": row.get("difficulty") or 1,
        "lastUsed": row.get("last_used") or "",
        "tags": row.get("tags") or [],
    }


class SupabaseQuestionStore:
    def __init__(self, client):
        self.client = client

    def count_records_for_date(self, date: str) -> int:
        result = self.client.table("questions") \
            .select("id", count="exact") \
            .eq("date", date) \
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def commit_batch(self, writes: list[WriteOp]) -> None:
        payload = [w.model_dump() for w in writes]
        self.client.rpc(COMMIT_FUNCTION, {"writes": payload}).execute()
        logger.info("Committed %d document(s) via %s", len(payload), COMMIT_FUNCTION)

    def list_all_records(self) -> list[QuestionRecord]:
        result = self.client.table("questions") \
            .select("*") \
            .order("date", desc=True) \
            .execute()
        return [QuestionRecord.from_document(_row_to_document(r)) for r in result.data or []]

    def get_records_by_date(self, date: str) -> list[QuestionRecord]:
        result = self.client.table("questions") \
            .select("*") \
            .eq("date", date) \
            .order("difficulty") \
            .execute()
        return [QuestionRecord.from_document(_row_to_document(r)) for r in result.data or []]

    def get_records_by_tag(self, tag: str) -> list[QuestionRecord]:
        index = self.client.table("tag_questions") \
            .select("question_id") \
            .eq("tag", tag) \
            .execute()
        ids = [row["question_id"] for row in index.data or []]
        if not ids:
            return []
        result = self.client.table("questions") \
            .select("*") \
            .in_("id", ids) \
            .execute()
        return [QuestionRecord.from_document(_row_to_document(r)) for r in result.data or []]

    def list_tags(self) -> list[str]:
        result = self.client.table("tag_questions").select("tag").execute()
        return sorted({row["tag"] for row in result.data or []})


# ── In-memory ───────────────────────────────────────────────────────────────

class MemoryQuestionStore:
    """Dict-backed store. ``fail_after`` makes the next commit raise ``fail_with``
    after that many writes have been staged, to exercise atomicity."""

    def __init__(self):
        self._docs: dict[str, dict[str, dict]] = {}
        self._lock = threading.Lock()
        self.fail_after: int | None = None
        self.fail_with: Exception | None = None
        self.count_calls: list[str] = []

    def count_records_for_date(self, date: str) -> int:
        self.count_calls.append(date)
        with self._lock:
            return sum(
                1 for doc in self._docs.get(QUESTIONS_COLLECTION, {}).values()
                if doc.get("date") == date
            )

    def commit_batch(self, writes: list[WriteOp]) -> None:
        with self._lock:
            staged = copy.deepcopy(self._docs)
            for n, w in enumerate(writes):
                if self.fail_after is not None and n >= self.fail_after:
                    exc = self.fail_with or StoreUnavailable()
                    self.fail_after = None
                    self.fail_with = None
                    raise exc
                staged.setdefault(w.collection_path, {})[w.document_id] = dict(w.value)
            self._docs = staged

    def documents(self, collection_path: str) -> dict[str, dict]:
        with self._lock:
            return copy.deepcopy(self._docs.get(collection_path, {}))

    def list_all_records(self) -> list[QuestionRecord]:
        docs = self.documents(QUESTIONS_COLLECTION).values()
        records = [QuestionRecord.from_document(d) for d in docs]
        return sorted(records, key=lambda r: (r.date, r.difficulty_rank), reverse=True)

    def get_records_by_date(self, date: str) -> list[QuestionRecord]:
        docs = self.documents(QUESTIONS_COLLECTION).values()
        records = [QuestionRecord.from_document(d) for d in docs if d.get("date") == date]
        return sorted(records, key=lambda r: r.difficulty_rank)

    def get_records_by_tag(self, tag: str) -> list[QuestionRecord]:
        ids = [d["questionId"] for d in self.documents(tag_collection(tag)).values()]
        questions = self.documents(QUESTIONS_COLLECTION)
        return [QuestionRecord.from_document(questions[i]) for i in ids if i in questions]

    def list_tags(self) -> list[str]:
        with self._lock:
            paths = list(self._docs)
        return sorted(t for t in (tag_from_collection(p) for p in paths) if t)
