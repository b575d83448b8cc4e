"""Text generation client and prompt templates."""

from gitsummary.agent.llm_client import (
    GeneratorUnavailableError,
    LLMClient,
    RateLimitSignal,
    TextGenerator,
)

__all__ = [
    "GeneratorUnavailableError",
    "LLMClient",
    "RateLimitSignal",
    "TextGenerator",
]
