"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

SUMMARY_BATCH_SIZE_MAX = 10


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = "postgresql+asyncpg://localhost/gitsummary"

    # extraction service
    extraction_url: str = "http://localhost:8080"
    dispatch_timeout: float = 10.0

    # ticket links
    jira_base_url: str | None = None

    # text generation
    llm_model: str = "gemini/gemini-2.0-flash"
    llm_api_key: str | None = None
    llm_enabled: bool = True

    # summarization pipeline
    summary_batch_size: int = SUMMARY_BATCH_SIZE_MAX
    summary_delay: float = 4.0
    summarize_interval: float = 300.0
    auto_summarize: bool = True

    # reports
    export_dir: str = "exports"
    noise_tokens: tuple[str, ...] = field(default=("[skip ci]", "[ci skip]"))

    # client-side polling
    poll_interval: float = 2.0

    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        batch_size = _env_int("GITSUMMARY_SUMMARY_BATCH_SIZE", defaults.summary_batch_size)
        return cls(
            database_url=os.environ.get("GITSUMMARY_DATABASE_URL", defaults.database_url),
            extraction_url=os.environ.get("GITSUMMARY_EXTRACTION_URL", defaults.extraction_url),
            dispatch_timeout=_env_float("GITSUMMARY_DISPATCH_TIMEOUT", defaults.dispatch_timeout),
            jira_base_url=os.environ.get("JIRA_BASE_URL") or None,
            llm_model=os.environ.get("GITSUMMARY_LLM_MODEL", defaults.llm_model),
            llm_api_key=os.environ.get("GEMINI_API_KEY") or None,
            llm_enabled=_env_bool("GITSUMMARY_LLM_ENABLED", defaults.llm_enabled),
            summary_batch_size=max(1, min(batch_size, SUMMARY_BATCH_SIZE_MAX)),
            summary_delay=_env_float("GITSUMMARY_SUMMARY_DELAY", defaults.summary_delay),
            summarize_interval=_env_float(
                "GITSUMMARY_SUMMARIZE_INTERVAL", defaults.summarize_interval
            ),
            auto_summarize=_env_bool("GITSUMMARY_AUTO_SUMMARIZE", defaults.auto_summarize),
            export_dir=os.environ.get("GITSUMMARY_EXPORT_DIR", defaults.export_dir),
            noise_tokens=_env_list("GITSUMMARY_NOISE_TOKENS", defaults.noise_tokens),
            poll_interval=_env_float("GITSUMMARY_POLL_INTERVAL", defaults.poll_interval),
            cors_origins=_env_list("GITSUMMARY_CORS_ORIGINS", defaults.cors_origins),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""
    return Settings.from_env()
