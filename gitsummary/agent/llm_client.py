"""Thin async wrapper around litellm.acompletion() with throttling detection."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Protocol

import litellm
import structlog

from gitsummary.core.config import Settings
from gitsummary.services import ExternalServiceError

log = structlog.get_logger("gitsummary.llm")

_QUOTA_MARKERS = ("resource_exhausted", "quota", "rate limit", "ratelimit", "too many requests")


class GeneratorUnavailableError(ExternalServiceError):
    """Text generation is disabled or has no API key configured."""


class RateLimitSignal(ExternalServiceError):
    """The provider refused the call because a quota is exhausted.

    Distinct from a generic failure: callers requeue work instead of
    marking it failed.
    """


class TextGenerator(Protocol):
    """Anything that turns a prompt into text, raising RateLimitSignal when throttled."""

    async def generate(
        self, prompt: str, *, temperature: float = ..., max_tokens: int = ...
    ) -> str: ...


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True if *exc* is a throttling / quota-exceeded indication."""
    if isinstance(exc, litellm.RateLimitError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _QUOTA_MARKERS)


# ── LLM Response ─────────────────────────────────────────────────────────────
@dataclass
class LLMResponse:
    """Standardised response from a single LLM call."""

    content: str = ""
    stop_reason: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


# ── LLM Client ───────────────────────────────────────────────────────────────
class LLMClient:
    """Async-only wrapper around ``litellm.acompletion()``.

    Usage::

        client = LLMClient(model="gemini/gemini-2.0-flash", api_key="...")
        text = await client.generate("Summarize this commit ...", max_tokens=300)

    Raises :class:`RateLimitSignal` when throttled, :class:`GeneratorUnavailableError`
    when disabled, and :class:`ExternalServiceError` for any other provider failure.
    """

    def __init__(self, model: str, api_key: str | None = None, *, enabled: bool = True) -> None:
        self.model = model
        self._api_key = api_key
        self._enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(settings.llm_model, settings.llm_api_key, enabled=settings.llm_enabled)

    @property
    def available(self) -> bool:
        return self._enabled and bool(self._api_key)

    async def create(
        self,
        *,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        """Send a chat completion request and return a standardised response."""
        if not self.available:
            raise GeneratorUnavailableError("text generation is not configured")

        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "api_key": self._api_key,
        }

        t0 = time.monotonic()
        try:
            raw = await litellm.acompletion(**kwargs)
        except Exception as exc:
            if is_rate_limit_error(exc):
                log.warning("llm.rate_limited", model=self.model, error=str(exc))
                raise RateLimitSignal(str(exc)) from exc
            raise ExternalServiceError(f"text generation failed: {exc}") from exc
        latency_ms = int((time.monotonic() - t0) * 1000)

        choice = raw.choices[0]
        usage = getattr(raw, "usage", None) or litellm.Usage()

        return LLMResponse(
            content=choice.message.content or "",
            stop_reason=choice.finish_reason or "",
            input_tokens=usage.prompt_tokens or 0,
            output_tokens=usage.completion_tokens or 0,
            latency_ms=latency_ms,
        )

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        """Return the stripped completion text for a single-turn *prompt*."""
        resp = await self.create(prompt=prompt, temperature=temperature, max_tokens=max_tokens)
        return resp.content.strip()
