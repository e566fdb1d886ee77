"""schema_validator.py — per-record shape checks on parsed LLM output.

Checks run in a fixed order and stop at the first failure:
  1. question text  → q["question"] | q["questionText"] | q["question_text"]
  2. choices        → list of exactly 4 non-empty strings
  3. answer         → non-empty string
  4. tags           → list of exactly 3 non-empty strings, pairwise unique,
                     no "/" (tags are part of the index document path)

Positions in messages are 1-indexed ("Question 3: ...").
"""
from typing import Any

from tenq.core.errors import SchemaViolation
from tenq.models.question import QuestionCandidate

CHOICE_COUNT = 4
TAG_COUNT = 3

_QUESTION_KEYS = ("question", "questionText", "question_text")


def _is_filled_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _string_list(value: Any, size: int, position: int, field: str, label: str) -> list[str]:
    if not isinstance(value, list):
        raise SchemaViolation(position, field, f"{field} must be a list of exactly {size} {label}")
    if len(value) != size:
        raise SchemaViolation(
            position, field, f"must have exactly {size} {label}, got {len(value)}"
        )
    for i, item in enumerate(value, 1):
        if not _is_filled_str(item):
            raise SchemaViolation(position, field, f"{field} item {i} must be a non-empty string")
    return [item.strip() for item in value]


def validate_record(raw: Any, position: int) -> QuestionCandidate:
    """Return a typed candidate for one parsed record or raise SchemaViolation."""
    if not isinstance(raw, dict):
        raise SchemaViolation(position, "record", f"expected a JSON object, got {type(raw).__name__}")

    text = next((raw[k] for k in _QUESTION_KEYS if k in raw), None)
    if not _is_filled_str(text):
        raise SchemaViolation(position, "question", "question text is required")

    if "choices" not in raw:
        raise SchemaViolation(position, "choices", "choices are required")
    choices = _string_list(raw["choices"], CHOICE_COUNT, position, "choices", "choices")

    answer = raw.get("answer")
    if not _is_filled_str(answer):
        raise SchemaViolation(position, "answer", "answer is required")

    if "tags" not in raw:
        raise SchemaViolation(position, "tags", "tags are required")
    tags = _string_list(raw["tags"], TAG_COUNT, position, "tags", "tags (broad → subcategory → specific)")
    if len(set(tags)) != TAG_COUNT:
        raise SchemaViolation(position, "tags", f"must have {TAG_COUNT} unique tags, got {tags}")
    if any("/" in t for t in tags):
        raise SchemaViolation(position, "tags", "tags must not contain '/'")

    return QuestionCandidate(
        question_text=text.strip(),
        choices=choices,
        answer=answer.strip(),
        tags=tags,
    )


def validate_records(items: Any) -> list[QuestionCandidate]:
    """Validate a parsed batch. ``items`` must be a list; stops at the first bad record."""
    if not isinstance(items, list):
        raise SchemaViolation(1, "record", f"expected a JSON array of questions, got {type(items).__name__}")
    return [validate_record(raw, i) for i, raw in enumerate(items, 1)]
