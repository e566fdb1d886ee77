"""Error taxonomy for the question pipeline.

Every failure the pipeline can produce is one of the classes below. Each
carries a stable ``code``, the HTTP status the API maps it to, whether the
caller may retry, and a ``details()`` dict with enough context (position,
field, reported vs expected value) to fix the offending record by hand.

  ParseFailure        LLM text could not be turned into JSON
  SchemaViolation     a record is missing / malformed a required field
  AnswerMismatch      reported answer cannot be tied to exactly one choice
  SetValidationError  batch-level rule broken (count, duplicate answers)
  PermissionDenied    caller lacks elevated access at commit time
  InvalidDateFormat   target date is not YYYY-MM-DD
  DateConflict        target date already holds records
  StoreUnavailable    transient store failure, safe to retry the commit
"""
from __future__ import annotations

from tenq.utils.dates import is_legacy_date, legacy_to_canonical


class PipelineError(Exception):
    code = "PIPELINE_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict:
        return {}

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details(),
        }


class ParseFailure(PipelineError):
    code = "PARSE_FAILURE"
    status_code = 502
    retryable = True

    def __init__(self, raw_text: str, parser_message: str):
        super().__init__(f"Failed to parse AI response as JSON: {parser_message}")
        self.raw_text = raw_text
        self.parser_message = parser_message

    def details(self) -> dict:
        return {"parser_message": self.parser_message, "raw_text": self.raw_text}


class SchemaViolation(PipelineError):
    code = "SCHEMA_VIOLATION"
    status_code = 422

    def __init__(self, position: int, field: str, reason: str):
        # position is 1-indexed
        super().__init__(f"Question {position}: {reason}")
        self.position = position
        self.field = field
        self.reason = reason

    def details(self) -> dict:
        return {"position": self.position, "field": self.field, "reason": self.reason}


class AnswerMismatch(PipelineError):
    code = "ANSWER_MISMATCH"
    status_code = 422

    def __init__(self, position: int, answer: str, choices: list[str], reason: str = "unmatched"):
        if reason == "ambiguous":
            text = f"answer '{answer}' matches more than one choice {choices}"
        elif reason == "duplicate":
            text = f"answer '{answer}' is already used by another question in this set"
        else:
            text = f"answer '{answer}' does not match any choice {choices}"
        super().__init__(f"Question {position}: {text}")
        self.position = position
        self.answer = answer
        self.choices = list(choices)
        self.reason = reason

    def details(self) -> dict:
        return {
            "position": self.position,
            "answer": self.answer,
            "choices": self.choices,
            "reason": self.reason,
        }


class SetValidationError(PipelineError):
    code = "SET_VALIDATION_ERROR"
    status_code = 422

    def __init__(self, violations: list[str]):
        super().__init__(
            f"{len(violations)} problem(s) found in question set: " + "; ".join(violations)
        )
        self.violations = list(violations)

    def details(self) -> dict:
        return {"violations": self.violations}


class PermissionDenied(PipelineError):
    code = "PERMISSION_DENIED"
    status_code = 403

    def __init__(self, message: str = "Admin access required to upload questions. Please check your permissions."):
        super().__init__(message)


def _canonical_suggestion(value) -> str | None:
    """YYYY-MM-DD equivalent of a legacy MM-DD-YYYY value, else None."""
    if not is_legacy_date(value):
        return None
    try:
        return legacy_to_canonical(value)
    except ValueError:
        return None


class InvalidDateFormat(PipelineError):
    code = "INVALID_DATE_FORMAT"
    status_code = 400

    def __init__(self, value: str):
        self.value = value
        self.suggested = _canonical_suggestion(value)
        message = f"Date must be in YYYY-MM-DD format, got '{value}'"
        if self.suggested:
            message += f" (legacy MM-DD-YYYY form; use '{self.suggested}')"
        super().__init__(message)

    def details(self) -> dict:
        details = {"value": self.value, "expected": "YYYY-MM-DD"}
        if self.suggested:
            details["suggested"] = self.suggested
        return details


class DateConflict(PipelineError):
    code = "DATE_CONFLICT"
    status_code = 409
    retryable = True

    def __init__(self, date: str, existing_count: int):
        super().__init__(
            f"Questions already exist for {date} ({existing_count} found). "
            "Please choose a different date."
        )
        self.date = date
        self.existing_count = existing_count

    def details(self) -> dict:
        return {"date": self.date, "existing_count": self.existing_count}


class StoreUnavailable(PipelineError):
    code = "STORE_UNAVAILABLE"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Database temporarily unavailable. Please try again."):
        super().__init__(message)
