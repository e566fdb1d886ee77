"""Commit a validated daily set to the document store in one atomic batch.

Preconditions, checked in this order, each with its own error:
  1. caller has elevated access           else PermissionDenied
  2. target date is YYYY-MM-DD            else InvalidDateFormat
  3. set still passes set validation      else SetValidationError
  4. no record exists for the date yet    else DateConflict

The availability check (4) runs immediately before the batch is built. There
is no lock: if another writer takes the date in between, the store rejects
the loser and the caller retries with a new date.
"""
import logging

from tenq.core.errors import InvalidDateFormat, PermissionDenied, SetValidationError, DateConflict
from tenq.models.question import DailyQuestionSet, TagIndexEntry, WriteOp
from tenq.services.question_store import QUESTIONS_COLLECTION, classify_store_error, tag_collection
from tenq.services.set_validator import DAILY_QUESTION_COUNT, validate_set
from tenq.utils.dates import is_canonical_date

logger = logging.getLogger("tenq.upload")


def build_write_batch(question_set: DailyQuestionSet) -> list[WriteOp]:
    """One question document per record plus one tag pointer per tag."""
    writes: list[WriteOp] = []
    for record in question_set.records:
        writes.append(WriteOp(
            collection_path=QUESTIONS_COLLECTION,
            document_id=record.id,
            value=record.to_document(),
        ))
        for tag in record.tags:
            writes.append(WriteOp(
                collection_path=tag_collection(tag),
                document_id=record.id,
                value=TagIndexEntry(question_id=record.id).to_document(),
            ))
    return writes


def _require_access(has_elevated_access: bool, target_date: str) -> None:
    if has_elevated_access is not True:
        logger.warning("Upload for %s refused: caller lacks elevated access", target_date)
        raise PermissionDenied()


def _require_canonical(target_date: str) -> None:
    if not is_canonical_date(target_date):
        raise InvalidDateFormat(target_date)


def upload_questions(
    questions: list,
    target_date: str,
    has_elevated_access: bool,
    store,
    expected_count: int = DAILY_QUESTION_COUNT,
) -> str:
    """Validate ``questions`` as ``target_date``'s set and commit them. Returns a confirmation."""
    _require_access(has_elevated_access, target_date)
    _require_canonical(target_date)

    question_set = validate_set(questions, target_date, expected_count)

    existing = store.count_records_for_date(target_date)
    if existing > 0:
        logger.info("Upload for %s refused: %d record(s) already present", target_date, existing)
        raise DateConflict(target_date, existing)

    writes = build_write_batch(question_set)
    try:
        store.commit_batch(writes)
    except Exception as exc:
        classified = classify_store_error(exc, target_date)
        logger.error("Commit for %s failed: %s", target_date, exc, exc_info=True)
        if classified is exc:
            raise
        raise classified from exc

    n = len(question_set.records)
    logger.info("Committed %d questions (%d documents) for %s", n, len(writes), target_date)
    return f"Successfully uploaded {n} questions for {target_date}"


def upload_daily_set(
    question_set: DailyQuestionSet,
    target_date: str,
    has_elevated_access: bool,
    store,
    expected_count: int = DAILY_QUESTION_COUNT,
) -> str:
    """Commit an already-validated set. Its ids and ranks are re-derived from ``target_date``."""
    _require_access(has_elevated_access, target_date)
    _require_canonical(target_date)
    if question_set.date != target_date:
        raise SetValidationError([
            f"Question set is dated {question_set.date} but upload targets {target_date}"
        ])
    return upload_questions(question_set.records, target_date, has_elevated_access, store, expected_count)
