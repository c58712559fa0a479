from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class QuestionType(str, Enum):
    multiple_choice = "multiple-choice"
    short_answer = "short-answer"
    mixed = "mixed"


# ── Request ──────────────────────────────────────────────────────────────────

class QuizRequest(BaseModel):
    """Request body for quiz generation. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_text: str = Field(..., alias="studyGuideText", description="Study material to quiz on")
    question_count: int = Field(
        default=5,
        alias="numQuestions",
        ge=MIN_QUESTIONS,
        le=MAX_QUESTIONS,
        description="Number of questions to generate",
    )
    difficulty: Difficulty = Field(default=Difficulty.medium)
    question_type: QuestionType = Field(default=QuestionType.multiple_choice, alias="questionType")

    @field_validator("source_text")
    @classmethod
    def source_text_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Study guide text is required")
        return v


# ── Questions (tagged union on `type`) ───────────────────────────────────────

class MultipleChoiceQuestion(BaseModel):
    """A question with exactly four options and one correct index."""

    model_config = ConfigDict(frozen=True)

    type: Literal["multiple-choice"] = "multiple-choice"
    prompt: str = Field(..., min_length=1)
    options: Tuple[str, str, str, str]
    correct_index: int = Field(..., ge=0, le=3)
    explanation: str = Field(..., min_length=1)

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not opt.strip() for opt in v):
            raise ValueError("options must be non-empty strings")
        return v


class ShortAnswerQuestion(BaseModel):
    """A free-text question graded by exact match against the model answer."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    type: Literal["short-answer"] = "short-answer"
    prompt: str = Field(..., min_length=1)
    model_answer: str = Field(..., min_length=1)
    explanation: str = Field(..., min_length=1)


Question = Annotated[
    Union[MultipleChoiceQuestion, ShortAnswerQuestion],
    Field(discriminator="type"),
]


@dataclass(frozen=True)
class Quiz:
    """Validated, ordered questions. `requested_count` is what the caller asked for."""

    questions: Tuple[Union[MultipleChoiceQuestion, ShortAnswerQuestion], ...]
    requested_count: int

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Union[MultipleChoiceQuestion, ShortAnswerQuestion]]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> Union[MultipleChoiceQuestion, ShortAnswerQuestion]:
        return self.questions[index]

    @property
    def shortfall(self) -> int:
        return max(self.requested_count - len(self.questions), 0)


# ── Wire format (the shape the frontend and the LLM both speak) ──────────────

class QuizQuestionOut(BaseModel):
    """A question as sent to the client."""
    question: str
    type: str
    options: Optional[List[str]] = None
    correctAnswer: Union[int, str]
    explanation: str


def question_to_wire(question: Union[MultipleChoiceQuestion, ShortAnswerQuestion]) -> QuizQuestionOut:
    if isinstance(question, MultipleChoiceQuestion):
        return QuizQuestionOut(
            question=question.prompt,
            type=question.type,
            options=list(question.options),
            correctAnswer=question.correct_index,
            explanation=question.explanation,
        )
    if isinstance(question, ShortAnswerQuestion):
        return QuizQuestionOut(
            question=question.prompt,
            type=question.type,
            correctAnswer=question.model_answer,
            explanation=question.explanation,
        )
    raise TypeError(f"Unsupported question type: {type(question).__name__}")


class QuizResponse(BaseModel):
    """Generated quiz returned to the client."""
    quiz: List[QuizQuestionOut]
    requested: int
    shortfall: int = 0

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizResponse":
        return cls(
            quiz=[question_to_wire(q) for q in quiz],
            requested=quiz.requested_count,
            shortfall=quiz.shortfall,
        )


class UploadResponse(BaseModel):
    """Combined text extracted from one or more uploaded documents."""
    text: str
    sources: List[str]
    characters: int


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    status: str = "error"
    error: str
    message: str
    detail: Optional[str] = None


def error_body(error: str, message: str, detail: Optional[str] = None) -> Dict[str, Any]:
    return ErrorResponse(error=error, message=message, detail=detail).model_dump()
