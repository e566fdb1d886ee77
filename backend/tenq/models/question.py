from enum import Enum
from pydantic import BaseModel, Field


class QuestionCandidate(BaseModel):
    """A schema-valid record straight out of the LLM (or the review editor)."""
    question_text: str
    choices: list[str]
    answer: str
    tags: list[str]


class QuestionRecord(BaseModel):
    id: str
    question_text: str
    choices: list[str]  # correct answer is ALWAYS at index 0
    answer: str         # must equal choices[0]
    tags: list[str]     # broad -> specific
    date: str
    difficulty_rank: int = Field(ge=1, le=10)
    last_used_at: str = ""

    def to_document(self) -> dict:
        """Field layout of a stored question document."""
        return {
            "id": self.id,
            "question": self.question_text,
            "choices": list(self.choices),
            "answer": self.answer,
            "date": self.date,
            "difficulty": self.difficulty_rank,
            "lastUsed": self.last_used_at,
            "tags": list(self.tags),
        }

    @classmethod
    def from_document(cls, doc: dict) -> "QuestionRecord":
        return cls(
            id=doc["id"],
            question_text=doc.get("question", ""),
            choices=list(doc.get("choices") or []),
            answer=doc.get("answer", ""),
            tags=list(doc.get("tags") or []),
            date=doc.get("date", ""),
            difficulty_rank=int(doc.get("difficulty") or 1),
            last_used_at=doc.get("lastUsed") or "",
        )


class DailyQuestionSet(BaseModel):
    date: str
    records: list[QuestionRecord]


class TagIndexEntry(BaseModel):
    question_id: str

    def to_document(self) -> dict:
        return {"questionId": self.question_id}


class WriteOp(BaseModel):
    collection_path: str
    document_id: str
    value: dict


class MatchRule(str, Enum):
    EXACT = "exact"
    SUBSTRING = "substring"
    WORD_OVERLAP = "word_overlap"


class ReconcileResult(BaseModel):
    record: QuestionCandidate
    repaired: bool = False
    rule: MatchRule | None = None


class Repair(BaseModel):
    position: int  # 1-indexed
    reported_answer: str
    resolved_answer: str
    rule: MatchRule


class GenerationResult(BaseModel):
    question_set: DailyQuestionSet
    repairs: list[Repair] = []


class DateStatus(BaseModel):
    date: str
    question_count: int
    available: bool
    full: bool


class QuestionStats(BaseModel):
    total_questions: int
    average_difficulty: float
    difficulty_distribution: dict[str, int]
    dates_covered: int
