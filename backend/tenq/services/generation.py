"""
Question generation pipeline.

  generate_daily_set    one LLM call → normalize (array) → schema → reconcile
                        each record → set-level validation
  regenerate_question   one LLM call → normalize (object) → schema → reconcile,
                        then reject answers already used elsewhere in the set

Errors from every stage propagate unchanged; deciding whether to call the
LLM again is the caller's job.
"""
import logging
import re

from tenq.core.errors import AnswerMismatch
from tenq.models.question import GenerationResult, QuestionCandidate, Repair
from tenq.prompts.question_generation import build_daily_set_prompt, build_regeneration_prompt
from tenq.services.answer_reconciler import reconcile
from tenq.services.response_normalizer import parse_response
from tenq.services.schema_validator import validate_record, validate_records
from tenq.services.set_validator import DAILY_QUESTION_COUNT, answer_key, validate_set

logger = logging.getLogger("tenq.generation")

_QUESTION_WORD_RE = re.compile(r"^(what|who|where|when|why|how|which)\b", re.IGNORECASE)


def looks_interrogative(text: str) -> bool:
    text = text.strip()
    return text.endswith("?") or bool(_QUESTION_WORD_RE.match(text))


def _warn_if_interrogative(q: QuestionCandidate, position: int) -> None:
    if looks_interrogative(q.question_text):
        logger.warning(
            "Q%d reads as a question, not a clue statement: %r", position, q.question_text
        )


async def generate_daily_set(
    ai,
    theme: str,
    target_date: str,
    count: int = DAILY_QUESTION_COUNT,
) -> GenerationResult:
    """Generate, repair and validate ``count`` questions for ``target_date``."""
    prompt = build_daily_set_prompt(theme, count)
    response = await ai.generate_completion(prompt)
    logger.info("Generated raw set for theme=%r date=%s (%d chars)", theme, target_date, len(response.text))

    items = parse_response(response.text, "array")
    candidates = validate_records(items)

    reconciled: list[QuestionCandidate] = []
    repairs: list[Repair] = []
    for i, candidate in enumerate(candidates, 1):
        result = reconcile(candidate, i)
        if result.repaired:
            repairs.append(Repair(
                position=i,
                reported_answer=candidate.answer,
                resolved_answer=result.record.answer,
                rule=result.rule,
            ))
        _warn_if_interrogative(result.record, i)
        reconciled.append(result.record)

    question_set = validate_set(reconciled, target_date, expected_count=count)
    logger.info(
        "Daily set for %s accepted: %d questions, %d repair(s)",
        target_date, len(question_set.records), len(repairs),
    )
    return GenerationResult(question_set=question_set, repairs=repairs)


async def regenerate_question(
    ai,
    theme: str,
    feedback: str,
    accepted: list,
    index: int,
    target_date: str,
) -> QuestionCandidate:
    """Replace the question at 0-based ``index`` of ``accepted``.

    ``accepted`` holds the current set (candidates or records). The caller
    clears the approval for ``index`` once this returns.
    """
    position = index + 1
    others = [q for i, q in enumerate(accepted) if i != index]
    rejected = accepted[index].question_text if 0 <= index < len(accepted) else ""

    prompt = build_regeneration_prompt(
        theme=theme,
        feedback=feedback,
        rejected=rejected,
        used_answers=[q.answer for q in others],
        index=index,
    )
    response = await ai.generate_completion(prompt)
    logger.info("Regenerated raw question %d for %s (%d chars)", position, target_date, len(response.text))

    raw = parse_response(response.text, "object")
    candidate = validate_record(raw, position)
    result = reconcile(candidate, position)
    record = result.record

    used = {answer_key(q.answer) for q in others}
    if answer_key(record.answer) in used:
        logger.warning("Regenerated Q%d duplicates an existing answer: %r", position, record.answer)
        raise AnswerMismatch(position, record.answer, record.choices, reason="duplicate")

    _warn_if_interrogative(record, position)
    return record
