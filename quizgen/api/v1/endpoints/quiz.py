import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from quizgen.schemas.quiz import QuizResponse, UploadResponse, error_body
from quizgen.services.error_classifier import ErrorKind
from quizgen.services.file_service import ExtractionError, combine_sources, extract_text_from_file
from quizgen.services.llm_client import LLMClient, get_llm_client
from quizgen.services.quiz_generator import (
    QuizGenerationError,
    build_request,
    generate_quiz,
    generate_quiz_stream,
)
from quizgen.services.quiz_session import SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["Quiz"])

# Status code per error kind. Provider-side problems are the server's, not the caller's.
STATUS_BY_KIND = {
    ErrorKind.INPUT_INVALID: 400,
    ErrorKind.SAFETY_FILTER_TRIGGERED: 422,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.INVALID_CREDENTIAL: 500,
    ErrorKind.UNSUPPORTED_MODEL: 500,
    ErrorKind.UNKNOWN: 500,
    ErrorKind.VALIDATION_FAILED: 502,
    ErrorKind.TRANSPORT_UNREACHABLE: 503,
}


def _generation_error(e: QuizGenerationError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(e.kind, 500),
        content=error_body(e.kind.value, e.message, e.detail),
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. GENERATE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/generate", response_model=QuizResponse)
async def create_quiz(
    payload: Dict[str, Any] = Body(...),
    client: LLMClient = Depends(get_llm_client),
    store: SessionStore = Depends(get_session_store),
):
    """Generate a quiz from study guide text and start a fresh session with it."""
    try:
        request = build_request(payload)
        quiz = await generate_quiz(request, client)
    except QuizGenerationError as e:
        return _generation_error(e)

    store.start(quiz)
    return QuizResponse.from_quiz(quiz)


@router.post("/generate/stream")
async def create_quiz_stream(
    payload: Dict[str, Any] = Body(...),
    client: LLMClient = Depends(get_llm_client),
    store: SessionStore = Depends(get_session_store),
):
    """Stream quiz generation progress via Server-Sent Events."""
    try:
        request = build_request(payload)
    except QuizGenerationError as e:
        return _generation_error(e)

    async def _events():
        async for chunk in generate_quiz_stream(request, client, on_quiz=store.start):
            yield f"data: {chunk}\n\n"
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. FILE UPLOAD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/upload", response_model=UploadResponse)
async def upload_files(files: List[UploadFile] = File(...)):
    """Upload study guides (PDF/TXT/MD) and get their combined text back."""
    sources = []
    for upload in files:
        name = upload.filename or "unnamed"
        content = await upload.read()
        try:
            text = await extract_text_from_file(content, name)
        except ExtractionError as e:
            logger.warning(f"[UPLOAD] ✗ {name}: {e}")
            return JSONResponse(
                status_code=400,
                content=error_body(ErrorKind.INPUT_INVALID.value, f"Could not read {name}", str(e)),
            )
        sources.append((name, text))

    combined = combine_sources(sources)
    return UploadResponse(
        text=combined,
        sources=[name for name, _ in sources],
        characters=len(combined),
    )
