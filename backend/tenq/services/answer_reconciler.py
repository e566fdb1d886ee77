"""answer_reconciler.py — tie the LLM's reported answer to exactly one choice.

The model is told to put the correct answer first and to copy it verbatim
into "answer". It often does neither. Matching tiers, tried in order; the
first tier that matches anything decides:

  exact         case-insensitive equality
  substring     answer inside choice or choice inside answer
  word_overlap  a shared word longer than 2 characters

Two or more distinct choices matching in the deciding tier is ambiguous and
fails; so does no match at all. The matched choice is moved to index 0 and
``answer`` becomes ``choices[0]`` verbatim, so running it twice changes nothing.
"""
import logging
import re

from tenq.core.errors import AnswerMismatch
from tenq.models.question import MatchRule, QuestionCandidate, ReconcileResult

logger = logging.getLogger("tenq.reconciler")

_WORD_RE = re.compile(r"[\w']+", re.UNICODE)
MIN_WORD_LEN = 3


def _norm(text: str) -> str:
    return text.strip().lower()


def significant_words(text: str) -> frozenset:
    return frozenset(w for w in _WORD_RE.findall(_norm(text)) if len(w) >= MIN_WORD_LEN)


def find_matches(answer: str, choices: list[str]) -> tuple[MatchRule | None, list[int]]:
    """Return (deciding rule, matching choice indices). Empty list if nothing matched."""
    a = _norm(answer)
    if not a:
        return None, []

    hits = [i for i, c in enumerate(choices) if _norm(c) == a]
    if hits:
        return MatchRule.EXACT, hits

    hits = [
        i for i, c in enumerate(choices)
        if _norm(c) and (_norm(c) in a or a in _norm(c))
    ]
    if hits:
        return MatchRule.SUBSTRING, hits

    answer_words = significant_words(answer)
    hits = [i for i, c in enumerate(choices) if answer_words & significant_words(c)]
    if hits:
        return MatchRule.WORD_OVERLAP, hits

    return None, []


def move_to_front(choices: list[str], index: int) -> list[str]:
    return [choices[index]] + [c for i, c in enumerate(choices) if i != index]


def reconcile(candidate: QuestionCandidate, position: int) -> ReconcileResult:
    """Make ``answer == choices[0]``. ``position`` is 1-indexed, used in errors only."""
    rule, hits = find_matches(candidate.answer, candidate.choices)
    if not hits:
        raise AnswerMismatch(position, candidate.answer, candidate.choices, reason="unmatched")
    if len(hits) > 1:
        raise AnswerMismatch(position, candidate.answer, candidate.choices, reason="ambiguous")

    choices = move_to_front(candidate.choices, hits[0])
    fixed = candidate.model_copy(update={"choices": choices, "answer": choices[0]})
    repaired = fixed.choices != candidate.choices or fixed.answer != candidate.answer

    if repaired:
        logger.info(
            "Q%d: reconciled answer %r -> %r via %s",
            position, candidate.answer, fixed.answer, rule.value,
        )
    return ReconcileResult(record=fixed, repaired=repaired, rule=rule)
