"""
Maps generation failures onto a small, user-facing taxonomy.

Provider errors arrive as free-form exception messages, so classification is
an ordered list of pattern rules: the first matching rule wins and anything
unmatched is Unknown.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from quizgen.services.quiz_validator import QuizValidationError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    INPUT_INVALID = "input_invalid"
    TRANSPORT_UNREACHABLE = "transport_unreachable"
    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    SAFETY_FILTER_TRIGGERED = "safety_filter_triggered"
    UNSUPPORTED_MODEL = "unsupported_model"
    VALIDATION_FAILED = "validation_failed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str
    detail: str


# ── Rules (order matters) ─────────────────────────────────────────────────────
# Patterns are case-insensitive regexes. Bare HTTP status codes are anchored so
# they never match inside longer numbers (token counts, request ids).

_Rule = Tuple[ErrorKind, Tuple[str, ...], str, Optional[str]]

_RULES: Tuple[_Rule, ...] = (
    (
        ErrorKind.INVALID_CREDENTIAL,
        (r"API_KEY_INVALID", r"API key not valid", r"api key missing", r"api key is not configured",
         r"invalid api key", r"PERMISSION_DENIED", r"\b401\b"),
        "Invalid API key",
        "Please check the GOOGLE_API_KEY / GROQ_API_KEY setting in your .env file.",
    ),
    (
        ErrorKind.QUOTA_EXCEEDED,
        (r"quota", r"RESOURCE_EXHAUSTED", r"rate limit", r"rate_limit", r"\b429\b"),
        "API quota exceeded",
        "You have exceeded your API quota. Please check your usage limits.",
    ),
    (
        ErrorKind.SAFETY_FILTER_TRIGGERED,
        (r"safety", r"blocked"),
        "Content safety filter triggered",
        "The content may have triggered safety filters. Please try with different content.",
    ),
    (
        # Provider URLs contain "/models/<name>", so "model" alone is not a signal
        ErrorKind.UNSUPPORTED_MODEL,
        (r"not found for API version", r"model_not_found", r"decommissioned",
         r"models?\b.{0,80}?\b(does not exist|not found|is not supported)"),
        "Model error",
        None,
    ),
    (
        ErrorKind.TRANSPORT_UNREACHABLE,
        (r"connection", r"connect", r"timed out", r"timeout", r"unreachable", r"\b503\b", r"unavailable"),
        "AI provider unreachable",
        None,
    ),
)

_TRANSPORT_EXCEPTIONS = (ConnectionError, TimeoutError, asyncio.TimeoutError)


def _matches(message: str, patterns: Tuple[str, ...]) -> bool:
    return any(re.search(pattern, message, re.IGNORECASE) for pattern in patterns)


def classify(failure: BaseException) -> ClassifiedError:
    """Classify a failure from the generation call or the quiz validator."""
    message = str(failure) or type(failure).__name__

    if isinstance(failure, QuizValidationError):
        return ClassifiedError(
            kind=ErrorKind.VALIDATION_FAILED,
            message="Failed to parse quiz response from AI. Please try again.",
            detail=message,
        )

    # Exception type beats message text: connection errors quote the request URL
    if isinstance(failure, _TRANSPORT_EXCEPTIONS):
        return ClassifiedError(
            kind=ErrorKind.TRANSPORT_UNREACHABLE,
            message="AI provider unreachable",
            detail=message,
        )

    for kind, patterns, title, detail in _RULES:
        if _matches(message, patterns):
            logger.debug(f"[CLASSIFY] {type(failure).__name__} -> {kind.value}")
            return ClassifiedError(kind=kind, message=title, detail=detail or message)

    return ClassifiedError(
        kind=ErrorKind.UNKNOWN,
        message="Failed to generate quiz",
        detail=message,
    )
