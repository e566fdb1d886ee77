"""set_validator.py — whole-batch checks for one day's question set.

Unlike the per-record checks this collects every problem it finds so the
reviewer gets a complete correction list in one pass:

  COUNT       set size must equal the requested count (10 at commit)
  DUPLICATE   no two answers may be equal (case-insensitive)
  RECORD      each record's own invariants, re-checked (edited records
              never passed the schema validator)
"""
import logging

from tenq.core.errors import SetValidationError
from tenq.models.question import DailyQuestionSet, QuestionCandidate, QuestionRecord
from tenq.services.schema_validator import CHOICE_COUNT, TAG_COUNT

logger = logging.getLogger("tenq.set_validator")

DAILY_QUESTION_COUNT = 10


def question_id(date: str, index: int) -> str:
    """Storage key for the question at 0-based ``index`` of ``date``'s set."""
    return f"{date}-q{index}"


def answer_key(answer: str) -> str:
    return answer.strip().lower()


def normalize_tags(tags: list[str]) -> list[str]:
    """Tags as they are indexed: surrounding whitespace removed."""
    return [t.strip() if isinstance(t, str) else "" for t in tags]


def record_problems(q: QuestionCandidate | QuestionRecord, position: int) -> list[str]:
    """Local invariants of one record. Empty list means it is fine."""
    problems = []
    if not q.question_text or not q.question_text.strip():
        problems.append(f"Question {position}: question text is required")
    if len(q.choices) != CHOICE_COUNT:
        problems.append(f"Question {position}: must have exactly {CHOICE_COUNT} choices, got {len(q.choices)}")
    elif any(not c or not c.strip() for c in q.choices):
        problems.append(f"Question {position}: choices must be non-empty")
    if not q.choices or q.answer != q.choices[0]:
        problems.append(f"Question {position}: answer '{q.answer}' must match the first choice")
    tags = normalize_tags(q.tags)
    if len(tags) != TAG_COUNT:
        problems.append(f"Question {position}: must have exactly {TAG_COUNT} tags, got {len(tags)}")
    elif not all(tags) or len(set(tags)) != TAG_COUNT:
        problems.append(f"Question {position}: must have {TAG_COUNT} unique non-empty tags")
    if any("/" in t for t in tags):
        # a slash would split the tags/{tag}/questions index path
        problems.append(f"Question {position}: tags must not contain '/'")
    return problems


def duplicate_answer_problems(questions) -> list[str]:
    """One message per repeat, naming where the answer was first used."""
    problems = []
    first_seen: dict[str, int] = {}
    for i, q in enumerate(questions, 1):
        key = answer_key(q.answer)
        if not key:
            continue
        if key in first_seen:
            problems.append(
                f"Questions {first_seen[key]} and {i} share the answer '{q.answer}'"
            )
        else:
            first_seen[key] = i
    return problems


def validate_set(
    candidates: list[QuestionCandidate],
    date: str,
    expected_count: int = DAILY_QUESTION_COUNT,
) -> DailyQuestionSet:
    """Accept a reconciled batch for ``date`` or raise SetValidationError with every violation."""
    violations: list[str] = []

    if len(candidates) != expected_count:
        violations.append(f"Expected {expected_count} questions, got {len(candidates)}")

    violations.extend(duplicate_answer_problems(candidates))

    for i, q in enumerate(candidates, 1):
        violations.extend(record_problems(q, i))

    if violations:
        logger.warning("Set for %s rejected: %s", date, violations)
        raise SetValidationError(violations)

    records = [
        QuestionRecord(
            id=question_id(date, i),
            question_text=q.question_text,
            choices=list(q.choices),
            answer=q.answer,
            tags=normalize_tags(q.tags),
            date=date,
            difficulty_rank=i + 1,
            last_used_at="",
        )
        for i, q in enumerate(candidates)
    ]
    return DailyQuestionSet(date=date, records=records)
