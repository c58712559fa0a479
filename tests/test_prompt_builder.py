"""
Unit tests for quizgen/services/prompt_builder.py
No LLM required.
"""

import pytest
from pydantic import ValidationError

from quizgen.schemas.quiz import QuizRequest
from quizgen.services.prompt_builder import (
    MAX_SOURCE_CHARS,
    TRUNCATION_MARKER,
    build_prompt,
    mixed_split,
    truncate_source,
)


def _request(**overrides):
    fields = {
        "source_text": "Photosynthesis converts light energy into chemical energy.",
        "question_count": 5,
        "difficulty": "medium",
        "question_type": "multiple-choice",
    }
    fields.update(overrides)
    return QuizRequest(**fields)


class TestBuildPrompt:

    def test_embeds_count_difficulty_and_source(self):
        prompt = build_prompt(_request(question_count=7, difficulty="hard"))
        assert "Generate exactly 7 questions" in prompt
        assert "Difficulty level: hard" in prompt
        assert "Photosynthesis converts light energy" in prompt

    def test_is_deterministic(self):
        req = _request()
        assert build_prompt(req) == build_prompt(req)

    def test_demands_bare_json_array(self):
        prompt = build_prompt(_request())
        assert "JSON array" in prompt
        assert "Return ONLY the JSON array" in prompt
        assert "no code fences" in prompt

    @pytest.mark.parametrize(
        "question_type, expected",
        [
            ("multiple-choice", "All multiple-choice questions"),
            ("short-answer", "All short-answer questions"),
            ("mixed", "Mix of multiple-choice and short-answer questions"),
        ],
    )
    def test_question_type_instruction(self, question_type, expected):
        assert expected in build_prompt(_request(question_type=question_type))

    def test_mixed_prompt_states_split(self):
        prompt = build_prompt(_request(question_type="mixed", question_count=5))
        assert "3 multiple-choice and 2 short-answer" in prompt


class TestTruncation:

    def test_short_text_untouched(self):
        assert truncate_source("abc") == "abc"

    def test_text_at_limit_untouched(self):
        text = "x" * MAX_SOURCE_CHARS
        assert truncate_source(text) == text

    def test_long_text_capped_with_marker(self):
        text = "y" * (MAX_SOURCE_CHARS + 50)
        out = truncate_source(text)
        assert out.endswith(TRUNCATION_MARKER)
        assert len(out) == MAX_SOURCE_CHARS + len(TRUNCATION_MARKER)

    def test_prompt_uses_truncated_text(self):
        prompt = build_prompt(_request(source_text="z" * (MAX_SOURCE_CHARS + 1)))
        assert "[Text truncated due to length...]" in prompt
        assert "z" * (MAX_SOURCE_CHARS + 1) not in prompt


class TestMixedSplit:

    @pytest.mark.parametrize("count, expected", [(1, (1, 0)), (2, (1, 1)), (5, (3, 2)), (20, (10, 10))])
    def test_ceil_floor(self, count, expected):
        assert mixed_split(count) == expected


class TestQuizRequest:

    def test_accepts_original_field_names(self):
        req = QuizRequest.model_validate(
            {"studyGuideText": "notes", "numQuestions": 3, "difficulty": "easy", "questionType": "mixed"}
        )
        assert req.question_count == 3
        assert req.question_type.value == "mixed"

    @pytest.mark.parametrize("count", [0, 21, -1])
    def test_rejects_out_of_range_count(self, count):
        with pytest.raises(ValidationError):
            _request(question_count=count)

    def test_rejects_blank_source(self):
        with pytest.raises(ValidationError):
            _request(source_text="   \n ")

    def test_is_immutable(self):
        req = _request()
        with pytest.raises(ValidationError):
            req.question_count = 10
