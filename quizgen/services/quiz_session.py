"""
Quiz session state machine
==========================
Tracks one user's pass through a validated Quiz.

States:
  • InProgress(current_index): answering / navigating
  • Completed                : only score() is allowed

Illegal transitions raise PreconditionViolated. Two calls are documented
no-ops instead: an empty short-answer submission and go_previous() on the
first question.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple, Union

from quizgen.schemas.quiz import MultipleChoiceQuestion, Quiz, ShortAnswerQuestion
from quizgen.schemas.session import Answer, AnswerFeedback, QuestionResult, ScoreReport

logger = logging.getLogger(__name__)

AnyQuestion = Union[MultipleChoiceQuestion, ShortAnswerQuestion]


class PreconditionViolated(RuntimeError):
    """A session operation was called from a state that does not allow it."""


class NoActiveSession(LookupError):
    """No quiz has been started, or the session was reset."""


# ── Grading ───────────────────────────────────────────────────────────────────

def canonical_answer(question: AnyQuestion) -> Answer:
    if isinstance(question, MultipleChoiceQuestion):
        return question.correct_index
    if isinstance(question, ShortAnswerQuestion):
        return question.model_answer
    raise TypeError(f"Unsupported question type: {type(question).__name__}")


def is_correct(question: AnyQuestion, answer: Optional[Answer]) -> bool:
    """Exact comparison: integer equality for options, case-sensitive text otherwise."""
    if answer is None:
        return False
    if isinstance(question, MultipleChoiceQuestion):
        return (
            isinstance(answer, int)
            and not isinstance(answer, bool)
            and answer == question.correct_index
        )
    if isinstance(question, ShortAnswerQuestion):
        return isinstance(answer, str) and answer == question.model_answer
    raise TypeError(f"Unsupported question type: {type(question).__name__}")


# ── Session ───────────────────────────────────────────────────────────────────

class QuizSession:
    def __init__(self, quiz: Quiz) -> None:
        if len(quiz) == 0:
            raise ValueError("Cannot start a session on an empty quiz")
        self._quiz = quiz
        self._current_index = 0
        self._answers: List[Optional[Answer]] = [None] * len(quiz)
        self._feedback_visible = False
        self._completed = False

    # ---------- read-only state ----------

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def total(self) -> int:
        return len(self._quiz)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> AnyQuestion:
        return self._quiz[self._current_index]

    @property
    def answers(self) -> Tuple[Optional[Answer], ...]:
        return tuple(self._answers)

    @property
    def feedback_visible(self) -> bool:
        return self._feedback_visible

    @property
    def completed(self) -> bool:
        return self._completed

    def is_answered(self, index: int) -> bool:
        return self._answers[index] is not None

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self._answers if a is not None)

    @property
    def all_answered(self) -> bool:
        return self.answered_count == self.total

    @property
    def progress(self) -> int:
        return round((self._current_index + 1) / self.total * 100)

    def feedback(self) -> Optional[AnswerFeedback]:
        """Feedback for the active question, or None while it is hidden."""
        if not self._feedback_visible:
            return None
        answer = self._answers[self._current_index]
        if answer is None:
            return None
        question = self.current_question
        return AnswerFeedback(
            is_correct=is_correct(question, answer),
            user_answer=answer,
            correct_answer=canonical_answer(question),
            explanation=question.explanation,
        )

    # ---------- transitions ----------

    def _require_in_progress(self, operation: str) -> None:
        if self._completed:
            raise PreconditionViolated(f"{operation}() is not allowed after the quiz is completed")

    def _show(self, index: int) -> None:
        self._current_index = index
        self._feedback_visible = self.is_answered(index)

    def select_answer(self, value: Answer) -> Optional[AnswerFeedback]:
        """
        Record an answer for the active question and reveal feedback.

        Returns None (and changes nothing) for blank short-answer text.
        """
        self._require_in_progress("select_answer")
        if self._feedback_visible:
            raise PreconditionViolated("Question already answered; feedback is showing")

        question = self.current_question
        if isinstance(question, MultipleChoiceQuestion):
            if isinstance(value, bool) or not isinstance(value, int):
                raise PreconditionViolated("Multiple-choice answers must be an option index")
            if not 0 <= value < len(question.options):
                raise PreconditionViolated(f"Option index {value} is out of range")
            recorded: Answer = value
        elif isinstance(question, ShortAnswerQuestion):
            if not isinstance(value, str):
                raise PreconditionViolated("Short-answer answers must be text")
            recorded = value.strip()
            if not recorded:
                return None
        else:
            raise TypeError(f"Unsupported question type: {type(question).__name__}")

        self._answers[self._current_index] = recorded
        self._feedback_visible = True
        logger.debug(f"[SESSION] Answered question {self._current_index + 1}/{self.total}")
        return self.feedback()

    def go_next(self) -> None:
        self._require_in_progress("go_next")
        if not self.is_answered(self._current_index):
            raise PreconditionViolated("Answer the current question before moving on")

        if self._current_index == self.total - 1:
            self._complete()
        else:
            self._show(self._current_index + 1)

    def go_previous(self) -> None:
        self._require_in_progress("go_previous")
        if self._current_index == 0:
            return
        self._show(self._current_index - 1)

    def jump_to(self, index: int) -> None:
        self._require_in_progress("jump_to")
        if not 0 <= index < self.total:
            raise PreconditionViolated(f"Question index {index} is out of range 0..{self.total - 1}")
        self._show(index)

    def submit(self) -> None:
        self._require_in_progress("submit")
        if not self.all_answered:
            missing = self.total - self.answered_count
            raise PreconditionViolated(f"{missing} question(s) still unanswered")
        self._complete()

    def _complete(self) -> None:
        self._completed = True
        self._feedback_visible = False
        logger.info(f"[SESSION] Quiz completed ({self.answered_count}/{self.total} answered)")

    # ---------- scoring ----------

    def score(self) -> ScoreReport:
        if not self._completed:
            raise PreconditionViolated("score() is only available once the quiz is completed")

        results = [
            QuestionResult(
                index=i,
                question=question,
                user_answer=answer,
                is_correct=is_correct(question, answer),
            )
            for i, (question, answer) in enumerate(zip(self._quiz, self._answers))
        ]
        correct = sum(1 for r in results if r.is_correct)
        return ScoreReport(
            correct_count=correct,
            total=self.total,
            percentage=round(correct / self.total * 100),
            per_question=results,
        )


# ── Single-user holder ────────────────────────────────────────────────────────

class SessionStore:
    """
    Holds the one in-memory session of this process.

    Operations go through `operate()`, which serialises them so that the
    answers and the current index always change together.
    """

    def __init__(self) -> None:
        self._session: Optional[QuizSession] = None
        self._lock = threading.Lock()

    def start(self, quiz: Quiz) -> QuizSession:
        with self._lock:
            self._session = QuizSession(quiz)
            logger.info(f"[SESSION] Started with {len(quiz)} questions")
            return self._session

    def reset(self) -> None:
        with self._lock:
            self._session = None
            logger.info("[SESSION] Reset")

    def get(self) -> QuizSession:
        session = self._session
        if session is None:
            raise NoActiveSession("No quiz in progress. Generate a quiz first.")
        return session

    @contextmanager
    def operate(self) -> Iterator[QuizSession]:
        with self._lock:
            yield self.get()


_store = SessionStore()


def get_session_store() -> SessionStore:
    """FastAPI dependency: the process-wide session holder."""
    return _store
