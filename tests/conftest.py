"""
Shared pytest fixtures.
No network: every test that needs an LLM gets FakeLLMClient.
"""

import json
import os

import pytest

# Keep real keys from a developer's .env out of the test run
os.environ["GOOGLE_API_KEY"] = ""
os.environ["GROQ_API_KEY"] = ""

from quizgen.schemas.quiz import MultipleChoiceQuestion, Quiz, ShortAnswerQuestion  # noqa: E402


class FakeLLMClient:
    """Stands in for LLMClient: returns a canned response or raises."""

    def __init__(self, response: str = "", error: Exception = None):
        self.response = response
        self.error = error
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def mc_entry(question="What is 2 + 2?", options=("3", "4", "5", "6"), correct=1):
    return {
        "question": question,
        "type": "multiple-choice",
        "options": list(options),
        "correctAnswer": correct,
        "explanation": "Basic arithmetic.",
    }


def sa_entry(question="What is the capital of France?", answer="Paris"):
    return {
        "question": question,
        "type": "short-answer",
        "correctAnswer": answer,
        "explanation": "Paris has been the capital since the 10th century.",
    }


@pytest.fixture
def raw_two_questions():
    return json.dumps([mc_entry(), sa_entry()])


@pytest.fixture
def capital_quiz():
    """Q1: multiple-choice, correct index 1. Q2: short-answer, model answer 'Paris'."""
    return Quiz(
        questions=(
            MultipleChoiceQuestion(
                prompt="Which letter comes second?",
                options=("A", "B", "C", "D"),
                correct_index=1,
                explanation="B follows A.",
            ),
            ShortAnswerQuestion(
                prompt="What is the capital of France?",
                model_answer="Paris",
                explanation="Paris is the capital of France.",
            ),
        ),
        requested_count=2,
    )


@pytest.fixture
def fake_llm(raw_two_questions):
    return FakeLLMClient(response=raw_two_questions)
