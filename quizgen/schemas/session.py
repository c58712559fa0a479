from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from quizgen.schemas.quiz import Question, QuizQuestionOut

Answer = Union[int, str]


class AnswerRequest(BaseModel):
    """An option index for multiple-choice, the typed text for short-answer."""
    answer: Answer


class AnswerFeedback(BaseModel):
    """Instant feedback shown once the active question has an answer."""
    is_correct: bool
    user_answer: Answer
    correct_answer: Answer
    explanation: str


class SessionStateOut(BaseModel):
    """Snapshot of the interactive session for the frontend."""
    current_index: int
    total: int
    question: QuizQuestionOut
    answers: List[Optional[Answer]]
    answered_count: int
    all_answered: bool
    progress: int = Field(..., description="Percent of the way through the quiz by position")
    feedback_visible: bool
    feedback: Optional[AnswerFeedback] = None
    completed: bool


class QuestionResult(BaseModel):
    index: int
    question: Question
    user_answer: Optional[Answer] = None
    is_correct: bool


class ScoreReport(BaseModel):
    """Derived summary of a completed session."""
    correct_count: int
    total: int
    percentage: int
    per_question: List[QuestionResult]
