"""
Tests for quizgen/services/quiz_generator.py
The LLM is replaced by FakeLLMClient; nothing leaves the process.
"""

import json

import pytest

from conftest import FakeLLMClient, mc_entry
from quizgen.schemas.quiz import QuizRequest
from quizgen.services.error_classifier import ErrorKind
from quizgen.services.quiz_generator import (
    QuizGenerationError,
    build_request,
    generate_quiz,
    generate_quiz_stream,
)


def _request(count=2, question_type="mixed"):
    return QuizRequest(
        source_text="France is a country in Europe. Its capital is Paris.",
        question_count=count,
        question_type=question_type,
    )


class TestGenerateQuiz:

    @pytest.mark.asyncio
    async def test_happy_path(self, fake_llm):
        quiz = await generate_quiz(_request(), fake_llm)
        assert len(quiz) == 2
        assert len(fake_llm.prompts) == 1
        assert "Its capital is Paris." in fake_llm.prompts[0]

    @pytest.mark.asyncio
    async def test_fenced_response(self, raw_two_questions):
        client = FakeLLMClient(response=f"```json\n{raw_two_questions}\n```")
        quiz = await generate_quiz(_request(), client)
        assert len(quiz) == 2

    @pytest.mark.asyncio
    async def test_shortfall_is_not_an_error(self):
        client = FakeLLMClient(response=json.dumps([mc_entry()]))
        quiz = await generate_quiz(_request(count=4), client)
        assert len(quiz) == 1
        assert quiz.shortfall == 3

    @pytest.mark.asyncio
    async def test_validation_failure_classified(self):
        client = FakeLLMClient(response="Sure! Here is your quiz.")
        with pytest.raises(QuizGenerationError) as exc:
            await generate_quiz(_request(), client)
        assert exc.value.kind == ErrorKind.VALIDATION_FAILED
        assert "invalid JSON" in exc.value.detail

    @pytest.mark.asyncio
    async def test_provider_failure_classified(self):
        client = FakeLLMClient(error=RuntimeError("429 quota exceeded"))
        with pytest.raises(QuizGenerationError) as exc:
            await generate_quiz(_request(), client)
        assert exc.value.kind == ErrorKind.QUOTA_EXCEEDED

    @pytest.mark.asyncio
    async def test_no_retry(self):
        client = FakeLLMClient(error=ConnectionError("connection reset"))
        with pytest.raises(QuizGenerationError) as exc:
            await generate_quiz(_request(), client)
        assert exc.value.kind == ErrorKind.TRANSPORT_UNREACHABLE
        assert len(client.prompts) == 1


class TestBuildRequest:

    def test_valid_payload(self):
        req = build_request({"studyGuideText": "notes", "numQuestions": 3})
        assert req.question_count == 3

    @pytest.mark.parametrize(
        "payload",
        [
            {"studyGuideText": "", "numQuestions": 3},
            {"studyGuideText": "notes", "numQuestions": 0},
            {"studyGuideText": "notes", "numQuestions": 21},
            {"studyGuideText": "notes", "difficulty": "impossible"},
            {"numQuestions": 3},
        ],
    )
    def test_invalid_payload_is_input_invalid(self, payload):
        with pytest.raises(QuizGenerationError) as exc:
            build_request(payload)
        assert exc.value.kind == ErrorKind.INPUT_INVALID


class TestStream:

    @pytest.mark.asyncio
    async def test_emits_status_then_result(self, fake_llm):
        started = []
        events = [
            json.loads(chunk)
            async for chunk in generate_quiz_stream(_request(), fake_llm, on_quiz=started.append)
        ]
        assert [e["type"] for e in events] == ["status", "status", "status", "result"]
        assert len(events[-1]["data"]["quiz"]) == 2
        assert len(started) == 1

    @pytest.mark.asyncio
    async def test_emits_error_event(self):
        client = FakeLLMClient(response="{}")
        events = [json.loads(chunk) async for chunk in generate_quiz_stream(_request(), client)]
        assert events[-1]["type"] == "error"
        assert events[-1]["error"] == "validation_failed"
