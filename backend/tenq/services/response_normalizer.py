"""response_normalizer.py — turn raw LLM text into a parseable JSON string.

Models wrap JSON in markdown fences, curl the quotes, add bullets and arrows,
and sometimes put a sentence of prose before or after the payload. This module
strips all of that and cuts out the bracketed JSON for the shape we expect:

  "array"   full daily batch    first '[' .. last ']'
  "object"  single regenerated  first '{' .. last '}'

Anything that still fails json.loads raises ParseFailure carrying the raw text.
Nothing here ever substitutes a default.
"""
import json
import logging
import re
from typing import Any, Literal

from tenq.core.errors import ParseFailure

logger = logging.getLogger("tenq.normalizer")

Shape = Literal["array", "object"]

_BRACKETS = {"array": ("[", "]"), "object": ("{", "}")}

_FENCE_START_RE = re.compile(r"^\s*```[a-zA-Z]*\s*")
_FENCE_END_RE = re.compile(r"\s*```\s*$")

# Typographic punctuation → ASCII
_ASCII_MAP = str.maketrans({
    "“": '"', "”": '"', "„": '"', "″": '"',
    "‘": "'", "’": "'", "‚": "'", "′": "'",
    "–": "-", "—": "-", "―": "-", "−": "-",
    "•": "-", "·": "-",
    "\xa0": " ",
    "→": "->", "←": "<-", "⇒": "=>",
    "…": "...",
})


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_START_RE.sub("", text, count=1)
    text = _FENCE_END_RE.sub("", text, count=1)
    return text.strip()


def to_ascii_punctuation(text: str) -> str:
    return text.translate(_ASCII_MAP)


def collapse_newlines(text: str) -> str:
    return re.sub(r"[\r\n]+", " ", text)


def normalize_response(raw_text: str, expected: Shape = "array") -> str:
    """Return the candidate JSON string for ``expected`` or raise ParseFailure."""
    if expected not in _BRACKETS:
        raise ValueError(f"unknown expected shape: {expected!r}")
    if not raw_text or not raw_text.strip():
        raise ParseFailure(raw_text or "", "empty response")

    text = collapse_newlines(to_ascii_punctuation(strip_code_fences(raw_text)))

    open_ch, close_ch = _BRACKETS[expected]
    start = text.find(open_ch)
    end = text.rfind(close_ch)
    if start == -1 or end == -1 or end < start:
        raise ParseFailure(raw_text, f"no JSON {expected} found (missing '{open_ch}' ... '{close_ch}')")

    candidate = text[start:end + 1]
    try:
        json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("JSON parse failed: %s; candidate=%r", exc, candidate[:200])
        raise ParseFailure(raw_text, str(exc)) from exc
    return candidate


def parse_response(raw_text: str, expected: Shape = "array") -> Any:
    """Normalize and decode. The decoded value is guaranteed to be the expected shape."""
    value = json.loads(normalize_response(raw_text, expected))
    wanted = list if expected == "array" else dict
    if not isinstance(value, wanted):
        raise ParseFailure(raw_text, f"expected a JSON {expected}, got {type(value).__name__}")
    return value
