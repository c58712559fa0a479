"""
Tests for quizgen/services/llm_client.py
Provider calls are patched out; only dispatch, failover and timeout are exercised.
"""

import asyncio

import pytest

from quizgen.services.llm_client import LLMClient, LLMConfigurationError


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_gemini_without_key(self):
        client = LLMClient(provider="gemini")
        with pytest.raises(LLMConfigurationError, match="Gemini API key is not configured"):
            await client.generate("prompt")

    @pytest.mark.asyncio
    async def test_groq_without_key(self):
        client = LLMClient(provider="groq")
        with pytest.raises(LLMConfigurationError, match="Groq API key is not configured"):
            await client.generate("prompt")


class TestDispatch:

    @pytest.mark.asyncio
    async def test_hybrid_falls_back_to_groq(self, monkeypatch):
        client = LLMClient(provider="hybrid")
        calls = []

        async def gemini(prompt):
            calls.append("gemini")
            raise RuntimeError("503 unavailable")

        async def groq(prompt):
            calls.append("groq")
            return "[]"

        monkeypatch.setattr(client, "_call_gemini", gemini)
        monkeypatch.setattr(client, "_call_groq", groq)

        assert await client.generate("prompt") == "[]"
        assert calls == ["gemini", "groq"]

    @pytest.mark.asyncio
    async def test_hybrid_reports_last_error(self, monkeypatch):
        client = LLMClient(provider="hybrid")

        async def failing(prompt):
            raise RuntimeError("429 quota exceeded")

        monkeypatch.setattr(client, "_call_gemini", failing)
        monkeypatch.setattr(client, "_call_groq", failing)

        with pytest.raises(RuntimeError, match="All AI providers failed.*quota"):
            await client.generate("prompt")

    @pytest.mark.asyncio
    async def test_timeout(self, monkeypatch):
        client = LLMClient(provider="gemini", timeout_seconds=0.01)

        async def slow(prompt):
            await asyncio.sleep(1)
            return "[]"

        monkeypatch.setattr(client, "_call_gemini", slow)

        with pytest.raises(TimeoutError, match="timed out"):
            await client.generate("prompt")
