"""
Study Guide Quiz Generator
==========================
FastAPI entry point.
  • Global exception handler: always returns a JSON error envelope
  • /api/v1/quiz   : upload study guides, generate a quiz (plain or SSE)
  • /api/v1/session: take the generated quiz one question at a time
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizgen.api.v1.endpoints import quiz, session
from quizgen.core.config import settings
from quizgen.schemas.quiz import ErrorResponse, error_body

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)

# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Study Guide Quiz Generator",
    description=(
        "Turn study material into an AI-generated quiz, then take it with "
        "instant feedback and a final score."
    ),
    version="1.0.0",
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


# ── Global Exception Handler ────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_body("internal_error", "An internal server error occurred.", str(exc)),
    )


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(quiz.router, prefix="/api/v1")
app.include_router(session.router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok", "message": "Quiz Generator API is running"}


if not settings.GOOGLE_API_KEY and not settings.GROQ_API_KEY:
    logger.warning("⚠️  No GOOGLE_API_KEY or GROQ_API_KEY set. Quiz generation will not work.")
