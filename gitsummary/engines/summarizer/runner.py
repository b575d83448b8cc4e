"""SummarizerRunner — drains the un-summarized commit backlog through the LLM."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gitsummary.agent.llm_client import RateLimitSignal, TextGenerator
from gitsummary.agent.prompts.commit_summary import build_commit_summary_prompt
from gitsummary.core.config import SUMMARY_BATCH_SIZE_MAX
from gitsummary.models.commit import (
    SUMMARY_COMPLETED,
    SUMMARY_FAILED,
    SUMMARY_PENDING,
    Commit,
)
from gitsummary.services.commit_service import CommitService

log = structlog.get_logger("gitsummary.engine.summarizer")

SUMMARY_MAX_TOKENS = 300
SUMMARY_TEMPERATURE = 0.3


@dataclass
class BatchResult:
    success: int = 0
    failed: int = 0
    rate_limited: bool = False

    @property
    def processed(self) -> int:
        return self.success + self.failed


@dataclass
class DrainResult:
    success: int = 0
    failed: int = 0
    batches: int = 0
    rate_limited: bool = False


class SummarizerRunner:
    """Sequentially summarize PENDING / FAILED commits, one claim at a time.

    Every state change is committed in its own short transaction so that a
    crash mid-batch leaves at most one commit in PROCESSING.
    """

    def __init__(
        self,
        commit_service: CommitService,
        generator: TextGenerator,
        *,
        batch_size: int = SUMMARY_BATCH_SIZE_MAX,
        delay: float = 4.0,
    ) -> None:
        self._commit_service = commit_service
        self._generator = generator
        self.batch_size = max(1, min(batch_size, SUMMARY_BATCH_SIZE_MAX))
        self.delay = max(0.0, delay)
        # Set after a successful call; the next call waits out the delay first,
        # across batch and drain boundaries.
        self._throttle_next = False

    async def run_batch(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository_id: uuid.UUID | None = None,
        failed_before: datetime | None = None,
    ) -> BatchResult:
        """Summarize up to ``batch_size`` commits, newest first.

        Stops early (``rate_limited=True``) on the first throttling signal;
        the commit being processed goes back to PENDING.
        """
        async with session_factory() as session:
            commits = await self._commit_service.list_summary_backlog(
                session,
                self.batch_size,
                repository_id=repository_id,
                failed_before=failed_before,
            )

        result = BatchResult()
        for commit in commits:
            if not await self._claim(session_factory, commit.id):
                log.debug("summarizer.claim_lost", commit_id=str(commit.id))
                continue

            await self._throttle()
            try:
                text = await self._generator.generate(
                    build_commit_summary_prompt(
                        commit.message, list(commit.changed_paths or []), commit.files_changed
                    ),
                    temperature=SUMMARY_TEMPERATURE,
                    max_tokens=SUMMARY_MAX_TOKENS,
                )
            except RateLimitSignal:
                await self._write(session_factory, commit, SUMMARY_PENDING)
                result.rate_limited = True
                log.warning(
                    "summarizer.rate_limited",
                    commit_id=str(commit.id),
                    success=result.success,
                    failed=result.failed,
                )
                break
            except Exception:
                await self._write(session_factory, commit, SUMMARY_FAILED)
                result.failed += 1
                log.warning("summarizer.commit_failed", commit_id=str(commit.id), exc_info=True)
                continue

            if not text:
                await self._write(session_factory, commit, SUMMARY_FAILED)
                result.failed += 1
                log.warning("summarizer.empty_summary", commit_id=str(commit.id))
                continue

            await self._write(session_factory, commit, SUMMARY_COMPLETED, text)
            result.success += 1
            self._throttle_next = True

        log.info(
            "summarizer.batch_done",
            success=result.success,
            failed=result.failed,
            rate_limited=result.rate_limited,
        )
        return result

    async def drain(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository_id: uuid.UUID | None = None,
        max_batches: int | None = None,
    ) -> DrainResult:
        """Repeat :meth:`run_batch` until nothing is processed or throttled.

        FAILED commits are retried only if their last attempt predates this
        drain, so every commit is attempted at most once per call.
        """
        started_at = datetime.now(timezone.utc)
        total = DrainResult()
        while max_batches is None or total.batches < max_batches:
            batch = await self.run_batch(
                session_factory, repository_id=repository_id, failed_before=started_at
            )
            total.batches += 1
            total.success += batch.success
            total.failed += batch.failed
            if batch.rate_limited:
                total.rate_limited = True
                break
            if batch.processed == 0:
                break
        log.info(
            "summarizer.drain_done",
            batches=total.batches,
            success=total.success,
            failed=total.failed,
            rate_limited=total.rate_limited,
        )
        return total

    # ── internal ───────────────────────────────────────────────────────────

    async def _throttle(self) -> None:
        if self._throttle_next and self.delay > 0:
            await asyncio.sleep(self.delay)
        self._throttle_next = False

    async def _claim(
        self, session_factory: async_sessionmaker[AsyncSession], commit_id: uuid.UUID
    ) -> bool:
        async with session_factory() as session:
            async with session.begin():
                return await self._commit_service.claim_for_summary(
                    session, commit_id, datetime.now(timezone.utc)
                )

    async def _write(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        commit: Commit,
        status: str,
        summary: str | None = None,
    ) -> None:
        async with session_factory() as session:
            async with session.begin():
                await self._commit_service.update_summary(
                    session, commit.id, status=status, summary=summary
                )
