"""
Quiz contract validation
========================
Turns the raw, untrusted text an LLM returns into a well-formed Quiz.

  1. Strip an enclosing markdown code fence (```json ... ```)
  2. Parse as JSON, require a top-level array
  3. Keep the first `expected_count` entries (never pads a short answer)
  4. Check every entry against the question contract, failing fast on the
     first broken entry and naming its index
"""

import json
import logging
import re
from typing import Any, List, Union

from quizgen.schemas.quiz import (
    MultipleChoiceQuestion,
    Quiz,
    ShortAnswerQuestion,
)

logger = logging.getLogger(__name__)

MC_OPTION_COUNT = 4
REQUIRED_FIELDS = ("question", "type", "explanation")

_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?")
_CLOSE_FENCE_RE = re.compile(r"\n?[ \t]*```$")


# ── Errors ────────────────────────────────────────────────────────────────────

class QuizValidationError(ValueError):
    """Base class: the raw response does not satisfy the quiz contract."""


class MalformedJson(QuizValidationError):
    def __init__(self, parse_error: str, raw: str):
        self.parse_error = parse_error
        self.raw = raw
        super().__init__(f"AI returned invalid JSON: {parse_error}")


class NotAnArray(QuizValidationError):
    def __init__(self, found: str):
        self.found = found
        super().__init__(f"Response is not an array (got {found})")


class EmptyQuiz(QuizValidationError):
    def __init__(self):
        super().__init__("Response contained no questions")


class QuestionError(QuizValidationError):
    """An entry-level failure. `index` is zero-based; messages count from 1."""

    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(f"Question {index + 1} {message}")


class MissingField(QuestionError):
    def __init__(self, index: int, field: str):
        self.field = field
        super().__init__(index, f"is missing required field '{field}'")


class BadOptions(QuestionError):
    def __init__(self, index: int):
        super().__init__(index, "(multiple-choice) must have exactly 4 non-empty options")


class BadCorrectAnswer(QuestionError):
    def __init__(self, index: int, expected: str):
        super().__init__(index, f"must have correctAnswer as {expected}")


class UnknownType(QuestionError):
    def __init__(self, index: int, found: Any):
        self.found = found
        super().__init__(index, f"has unknown type {found!r}")


# ── Parsing ───────────────────────────────────────────────────────────────────

def strip_code_fence(raw: str) -> str:
    """Remove one enclosing ``` fence (optionally tagged, e.g. ```json)."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = _OPEN_FENCE_RE.sub("", cleaned, count=1)
        cleaned = _CLOSE_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_question_array(raw: str) -> List[Any]:
    cleaned = strip_code_fence(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[VALIDATE] JSON parse failed. Raw (first 500 chars): {(raw or '')[:500]}")
        raise MalformedJson(str(e), raw)

    if not isinstance(data, list):
        raise NotAnArray(type(data).__name__)
    return data


# ── Per-question checks ───────────────────────────────────────────────────────

def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _as_option_index(value: Any) -> Union[int, None]:
    """Accept ints and integral floats (1.0); reject bools and everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _to_multiple_choice(index: int, entry: dict) -> MultipleChoiceQuestion:
    options = entry.get("options")
    if (
        not isinstance(options, list)
        or len(options) != MC_OPTION_COUNT
        or not all(_is_filled(opt) for opt in options)
    ):
        raise BadOptions(index)

    correct = _as_option_index(entry.get("correctAnswer"))
    if correct is None or not 0 <= correct < MC_OPTION_COUNT:
        raise BadCorrectAnswer(index, "a number 0-3")

    return MultipleChoiceQuestion(
        prompt=entry["question"],
        options=tuple(options),
        correct_index=correct,
        explanation=entry["explanation"],
    )


def _to_short_answer(index: int, entry: dict) -> ShortAnswerQuestion:
    answer = entry.get("correctAnswer")
    if not _is_filled(answer):
        raise BadCorrectAnswer(index, "a non-empty string")

    return ShortAnswerQuestion(
        prompt=entry["question"],
        model_answer=answer,
        explanation=entry["explanation"],
    )


def validate_question(index: int, entry: Any) -> Union[MultipleChoiceQuestion, ShortAnswerQuestion]:
    if not isinstance(entry, dict):
        raise MissingField(index, REQUIRED_FIELDS[0])

    for field in REQUIRED_FIELDS:
        if not _is_filled(entry.get(field)):
            raise MissingField(index, field)

    kind = entry["type"]
    if kind == "multiple-choice":
        return _to_multiple_choice(index, entry)
    if kind == "short-answer":
        return _to_short_answer(index, entry)
    raise UnknownType(index, kind)


# ── Entry point ───────────────────────────────────────────────────────────────

def validate_quiz(raw: str, expected_count: int) -> Quiz:
    """
    Validate a raw LLM response against the quiz contract.

    Returns a Quiz of at most `expected_count` questions in input order.
    Raises a QuizValidationError subclass on the first contract violation.
    """
    if expected_count < 1:
        raise ValueError(f"expected_count must be >= 1, got {expected_count}")

    entries = parse_question_array(raw)

    if not entries:
        raise EmptyQuiz()
    if len(entries) > expected_count:
        logger.warning(
            f"[VALIDATE] Expected {expected_count} questions, got {len(entries)}; "
            f"keeping the first {expected_count}"
        )
        entries = entries[:expected_count]
    elif len(entries) < expected_count:
        logger.warning(
            f"[VALIDATE] Shortfall: expected {expected_count} questions, got {len(entries)}"
        )

    questions = tuple(validate_question(i, entry) for i, entry in enumerate(entries))
    return Quiz(questions=questions, requested_count=expected_count)
