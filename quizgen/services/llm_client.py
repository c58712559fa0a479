"""
LLM transport
=============
The only place that talks to AI providers. Exposes a single capability,
`await client.generate(prompt) -> str`, which the quiz generator receives as
an injected dependency.

Providers:
  - Gemini (google-generativeai), temperature 0, JSON mime type
  - Groq (Llama 3), temperature 0
  - hybrid: Gemini first, Groq on failure

Latency is bounded here (AI_TIMEOUT_SECONDS), not in the quiz core.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Awaitable, Callable, List, Optional, Tuple

import google.generativeai as genai
from groq import AsyncGroq

from quizgen.core.config import Settings, settings

logger = logging.getLogger(__name__)


class LLMConfigurationError(RuntimeError):
    """The selected provider has no usable API key."""


class LLMClient:
    def __init__(
        self,
        provider: str = "gemini",
        google_api_key: Optional[str] = None,
        gemini_model: str = "gemini-2.0-flash",
        groq_api_key: Optional[str] = None,
        groq_model: str = "llama-3.3-70b-versatile",
        timeout_seconds: float = 120,
    ) -> None:
        self.provider = provider
        self.gemini_model = gemini_model
        self.groq_model = groq_model
        self.timeout_seconds = timeout_seconds

        self._gemini_ready = False
        if google_api_key:
            genai.configure(api_key=google_api_key, transport="rest")
            self._gemini_ready = True
            logger.info("[LLM] ✓ Gemini client ready")
        else:
            logger.warning("[LLM] ✗ Google API key missing")

        self._groq: Optional[AsyncGroq] = None
        if groq_api_key:
            self._groq = AsyncGroq(api_key=groq_api_key)
            logger.info("[LLM] ✓ Groq client ready")
        elif provider != "gemini":
            logger.warning("[LLM] ✗ Groq API key missing")

    @classmethod
    def from_settings(cls, cfg: Settings) -> "LLMClient":
        return cls(
            provider=cfg.AI_PROVIDER,
            google_api_key=cfg.GOOGLE_API_KEY,
            gemini_model=cfg.GEMINI_MODEL,
            groq_api_key=cfg.GROQ_API_KEY,
            groq_model=cfg.GROQ_MODEL,
            timeout_seconds=cfg.AI_TIMEOUT_SECONDS,
        )

    # ── Provider calls ────────────────────────────────────────────────────────

    async def _call_gemini(self, prompt: str) -> str:
        if not self._gemini_ready:
            raise LLMConfigurationError("Gemini API key is not configured")

        logger.info(f"[LLM] Calling Gemini ({self.gemini_model})...")
        model = genai.GenerativeModel(
            model_name=self.gemini_model,
            generation_config={
                "response_mime_type": "application/json",
                "temperature": 0,
            },
        )
        response = await asyncio.to_thread(model.generate_content, prompt)

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            raise RuntimeError(f"Prompt blocked by safety filters ({feedback.block_reason})")

        logger.info("[LLM] ✓ Gemini call succeeded")
        return response.text

    async def _call_groq(self, prompt: str) -> str:
        if self._groq is None:
            raise LLMConfigurationError("Groq API key is not configured")

        logger.info(f"[LLM] Calling Groq ({self.groq_model})...")
        completion = await self._groq.chat.completions.create(
            model=self.groq_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=8000,
        )
        logger.info("[LLM] ✓ Groq call succeeded")
        return completion.choices[0].message.content or ""

    def _callers(self) -> List[Tuple[str, Callable[[str], Awaitable[str]]]]:
        if self.provider == "groq":
            return [("Groq", self._call_groq)]
        if self.provider == "gemini":
            return [("Gemini", self._call_gemini)]
        return [("Gemini", self._call_gemini), ("Groq", self._call_groq)]

    async def _dispatch(self, prompt: str) -> str:
        callers = self._callers()
        if len(callers) == 1:
            _, caller = callers[0]
            return await caller(prompt)

        last_error: Optional[Exception] = None
        for name, caller in callers:
            try:
                return await caller(prompt)
            except Exception as e:
                last_error = e
                logger.warning(f"[LLM] {name} failed: {str(e)[:200]}. Trying next provider...")

        raise RuntimeError(f"All AI providers failed. Last error: {last_error}") from last_error

    # ── Public ────────────────────────────────────────────────────────────────

    async def generate(self, prompt: str) -> str:
        """Return the provider's raw text completion for `prompt`."""
        try:
            return await asyncio.wait_for(self._dispatch(prompt), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            raise TimeoutError(f"AI provider timed out after {self.timeout_seconds}s")


@lru_cache
def get_llm_client() -> LLMClient:
    """FastAPI dependency: one client per process, built from settings."""
    return LLMClient.from_settings(settings)
