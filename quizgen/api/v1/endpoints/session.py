import logging
from typing import Callable, TypeVar

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from quizgen.schemas.quiz import error_body, question_to_wire
from quizgen.schemas.session import AnswerRequest, ScoreReport, SessionStateOut
from quizgen.services.quiz_session import (
    NoActiveSession,
    PreconditionViolated,
    QuizSession,
    SessionStore,
    get_session_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["Session"])

T = TypeVar("T")


def session_state(session: QuizSession) -> SessionStateOut:
    return SessionStateOut(
        current_index=session.current_index,
        total=session.total,
        question=question_to_wire(session.current_question),
        answers=list(session.answers),
        answered_count=session.answered_count,
        all_answered=session.all_answered,
        progress=session.progress,
        feedback_visible=session.feedback_visible,
        feedback=session.feedback(),
        completed=session.completed,
    )


def _run(store: SessionStore, action: Callable[[QuizSession], T]):
    """Apply one operation under the store lock and map session errors to HTTP."""
    try:
        with store.operate() as session:
            return action(session)
    except NoActiveSession as e:
        return JSONResponse(status_code=404, content=error_body("no_session", str(e)))
    except PreconditionViolated as e:
        logger.info(f"[SESSION] Rejected: {e}")
        return JSONResponse(status_code=409, content=error_body("precondition_violated", str(e)))


def _then_state(operation: Callable[[QuizSession], object]) -> Callable[[QuizSession], SessionStateOut]:
    def action(session: QuizSession) -> SessionStateOut:
        operation(session)
        return session_state(session)
    return action


@router.get("", response_model=SessionStateOut)
def get_session(store: SessionStore = Depends(get_session_store)):
    return _run(store, session_state)


@router.post("/answer", response_model=SessionStateOut)
def answer(body: AnswerRequest, store: SessionStore = Depends(get_session_store)):
    """Answer the active question. Blank short-answer text is ignored."""
    return _run(store, _then_state(lambda s: s.select_answer(body.answer)))


@router.post("/next", response_model=SessionStateOut)
def next_question(store: SessionStore = Depends(get_session_store)):
    return _run(store, _then_state(lambda s: s.go_next()))


@router.post("/previous", response_model=SessionStateOut)
def previous_question(store: SessionStore = Depends(get_session_store)):
    return _run(store, _then_state(lambda s: s.go_previous()))


@router.post("/jump/{index}", response_model=SessionStateOut)
def jump(index: int, store: SessionStore = Depends(get_session_store)):
    return _run(store, _then_state(lambda s: s.jump_to(index)))


@router.post("/submit", response_model=SessionStateOut)
def submit(store: SessionStore = Depends(get_session_store)):
    return _run(store, _then_state(lambda s: s.submit()))


@router.get("/score", response_model=ScoreReport)
def score(store: SessionStore = Depends(get_session_store)):
    return _run(store, lambda s: s.score())


@router.delete("", status_code=204)
def reset(store: SessionStore = Depends(get_session_store)):
    """Discard the current session ("Create New Quiz")."""
    store.reset()
