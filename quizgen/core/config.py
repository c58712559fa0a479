from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Optional


PLACEHOLDER_API_KEY = "your_api_key_here"


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── AI Providers ──────────────────────────────────────────────────────────
    AI_PROVIDER: str = "gemini"

    @field_validator("AI_PROVIDER")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        allowed = {"hybrid", "groq", "gemini"}
        if v.lower() not in allowed:
            raise ValueError(f"AI_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # Google (Gemini - primary)
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Groq (Llama 3 - fallback in hybrid mode)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    @field_validator("GOOGLE_API_KEY", "GROQ_API_KEY")
    @classmethod
    def drop_placeholder_keys(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip() or v.strip() == PLACEHOLDER_API_KEY:
            return None
        return v.strip()

    # ── Limits ────────────────────────────────────────────────────────────────
    MAX_FILE_SIZE_MB: int = 10
    MAX_PDF_PAGES: int = 200
    AI_TIMEOUT_SECONDS: int = 120

    # ── Core ──────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
