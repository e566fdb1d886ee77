"""Tests for schema_validator — per-record shape checks, first failure wins."""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from tenq.core.errors import SchemaViolation
from tenq.services.schema_validator import validate_record, validate_records


def _raw(**overrides) -> dict:
    q = {
        "question": "This city on the Seine is the capital of France.",
        "choices": ["Paris", "London", "Berlin", "Madrid"],
        "answer": "Paris",
        "tags": ["Geography", "Europe", "Capitals"],
    }
    q.update(overrides)
    return q


def _violation(raw, position=1) -> SchemaViolation:
    with pytest.raises(SchemaViolation) as exc:
        validate_record(raw, position)
    return exc.value


class TestValidRecord:
    def test_returns_typed_candidate(self):
        c = validate_record(_raw(), 1)
        assert c.question_text.startswith("This city")
        assert c.choices == ["Paris", "London", "Berlin", "Madrid"]
        assert c.answer == "Paris"
        assert c.tags == ["Geography", "Europe", "Capitals"]

    def test_alternate_question_keys(self):
        raw = _raw()
        raw["questionText"] = raw.pop("question")
        assert validate_record(raw, 1).question_text.startswith("This city")

    def test_whitespace_stripped(self):
        c = validate_record(_raw(answer="  Paris "), 1)
        assert c.answer == "Paris"


class TestQuestionText:
    def test_missing(self):
        raw = _raw()
        del raw["question"]
        v = _violation(raw, 4)
        assert v.field == "question"
        assert v.position == 4
        assert str(v).startswith("Question 4:")

    def test_blank(self):
        assert _violation(_raw(question="   ")).field == "question"

    def test_not_an_object(self):
        assert _violation(["not", "a", "dict"]).field == "record"


class TestChoices:
    def test_three_choices(self):
        v = _violation(_raw(choices=["a", "b", "c"]))
        assert v.field == "choices"
        assert "exactly 4" in v.reason

    def test_five_choices(self):
        assert _violation(_raw(choices=["a", "b", "c", "d", "e"])).field == "choices"

    def test_empty_choice(self):
        assert _violation(_raw(choices=["a", "", "c", "d"])).field == "choices"

    def test_non_string_choice(self):
        assert _violation(_raw(choices=["a", 2, "c", "d"])).field == "choices"

    def test_not_a_list(self):
        assert _violation(_raw(choices="a, b, c, d")).field == "choices"


class TestAnswer:
    def test_missing(self):
        raw = _raw()
        del raw["answer"]
        assert _violation(raw).field == "answer"

    def test_checked_after_choices(self):
        raw = _raw(choices=["a"])
        del raw["answer"]
        assert _violation(raw).field == "choices"


class TestTags:
    def test_two_tags(self):
        assert _violation(_raw(tags=["a", "b"])).field == "tags"

    def test_duplicate_tags(self):
        v = _violation(_raw(tags=["Geography", "Europe", "Geography"]))
        assert v.field == "tags"
        assert "unique" in v.reason

    def test_uniqueness_is_case_sensitive(self):
        c = validate_record(_raw(tags=["Europe", "europe", "Capitals"]), 1)
        assert c.tags == ["Europe", "europe", "Capitals"]

    def test_blank_tag(self):
        assert _violation(_raw(tags=["a", " ", "c"])).field == "tags"

    def test_slash_rejected(self):
        assert _violation(_raw(tags=["Music", "Rock", "AC/DC"])).field == "tags"


class TestValidateRecords:
    def test_batch_positions_are_one_indexed(self):
        items = [_raw(), _raw(), _raw(tags=["x"])]
        with pytest.raises(SchemaViolation) as exc:
            validate_records(items)
        assert exc.value.position == 3

    def test_requires_list(self):
        with pytest.raises(SchemaViolation):
            validate_records(_raw())
