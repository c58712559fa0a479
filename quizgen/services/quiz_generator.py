"""
Quiz generation pipeline: QuizRequest → prompt → LLM → validated Quiz.

Failures are classified once, here, and re-raised as QuizGenerationError so
callers only ever see the ErrorKind taxonomy. Nothing is retried.
"""

import asyncio
import json
import logging
from typing import AsyncGenerator, Callable, Optional

from pydantic import ValidationError

from quizgen.schemas.quiz import Quiz, QuizRequest, QuizResponse
from quizgen.services.error_classifier import ClassifiedError, ErrorKind, classify
from quizgen.services.llm_client import LLMClient
from quizgen.services.prompt_builder import build_prompt
from quizgen.services.quiz_validator import validate_quiz

logger = logging.getLogger(__name__)


class QuizGenerationError(Exception):
    def __init__(self, kind: ErrorKind, message: str, detail: Optional[str] = None):
        self.kind = kind
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)

    @classmethod
    def from_classified(cls, classified: ClassifiedError) -> "QuizGenerationError":
        return cls(classified.kind, classified.message, classified.detail)


def build_request(payload: dict) -> QuizRequest:
    """Validate raw request fields; problems surface as InputInvalid."""
    try:
        return QuizRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise QuizGenerationError(
            ErrorKind.INPUT_INVALID,
            "Invalid quiz request",
            f"{field}: {first.get('msg')}" if field else first.get("msg"),
        )


async def generate_quiz(request: QuizRequest, client: LLMClient) -> Quiz:
    """Run one generation round trip. Raises QuizGenerationError on any failure."""
    logger.info(
        f"[QUIZ] Generating: {request.question_count} questions, "
        f"{request.difficulty.value} difficulty, {request.question_type.value} type"
    )
    logger.info(f"[QUIZ] Study guide length: {len(request.source_text)} characters")

    prompt = build_prompt(request)

    try:
        raw = await client.generate(prompt)
        logger.info(f"[QUIZ] Received response ({len(raw or '')} characters)")
        quiz = validate_quiz(raw, request.question_count)
    except Exception as e:
        classified = classify(e)
        logger.error(f"[QUIZ] ✗ {classified.kind.value}: {e}")
        raise QuizGenerationError.from_classified(classified) from e

    if quiz.shortfall:
        logger.warning(
            f"[QUIZ] Model produced {len(quiz)} of {request.question_count} requested questions"
        )
    logger.info(f"[QUIZ] ✓ Generated {len(quiz)} questions")
    return quiz


# ── SSE progress stream ───────────────────────────────────────────────────────

_STAGES = (
    "Reading your study guide...",
    "Asking the AI to write questions...",
    "Checking the quiz format...",
)


async def generate_quiz_stream(
    request: QuizRequest,
    client: LLMClient,
    on_quiz: Optional[Callable[[Quiz], object]] = None,
) -> AsyncGenerator[str, None]:
    """Yield JSON progress events, then a `result` or `error` event."""
    for i, stage in enumerate(_STAGES[:2]):
        yield json.dumps({"type": "status", "message": stage, "progress": (i + 1) * 30})
        await asyncio.sleep(0)

    try:
        quiz = await generate_quiz(request, client)
    except QuizGenerationError as e:
        yield json.dumps(
            {"type": "error", "error": e.kind.value, "message": e.message, "detail": e.detail}
        )
        return

    yield json.dumps({"type": "status", "message": _STAGES[2], "progress": 90})
    if on_quiz is not None:
        on_quiz(quiz)
    yield json.dumps({"type": "result", "data": QuizResponse.from_quiz(quiz).model_dump()})
