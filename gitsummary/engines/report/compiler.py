"""ReportCompiler — filtered commits → per-repository workbooks in the blob store."""

from __future__ import annotations

import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.agent.llm_client import TextGenerator
from gitsummary.core.filters import CommitFilter
from gitsummary.engines.report.history import build_file_history
from gitsummary.engines.report.narrative import aggregate, generate_narrative
from gitsummary.engines.report.workbook import build_workbook
from gitsummary.models.commit import Commit
from gitsummary.models.export_job import EXPORT_COMPLETED, ExportJob
from gitsummary.services import NotFoundError, ReportSerializationError, ServiceError
from gitsummary.services.commit_service import CommitService
from gitsummary.services.export_service import ExportService
from gitsummary.services.repository_service import RepositoryService
from gitsummary.storage.blob_store import BlobStore

log = structlog.get_logger("gitsummary.engine.report")

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_SLUG_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class FileDescriptor:
    name: str
    key: str
    size: int
    repository_id: uuid.UUID

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "key": self.key,
            "size": self.size,
            "repository_id": str(self.repository_id),
        }


@dataclass
class CompileResult:
    export_id: uuid.UUID
    files: list[FileDescriptor] = field(default_factory=list)
    total_commits: int = 0


def _slug(name: str) -> str:
    return _SLUG_RE.sub("-", name).strip("-").lower() or "repository"


def _file_name(repository: str, stamp: str, used: set[str]) -> str:
    """Download name for one workbook, suffixed when two repositories share a slug."""
    base = f"git-summary-{_slug(repository)}"
    candidate, n = base, 1
    while candidate.lower() in used:
        n += 1
        candidate = f"{base}-{n}"
    used.add(candidate.lower())
    return f"{candidate}-{stamp}.xlsx"


class ReportCompiler:
    """Build one workbook per matched repository and record the export.

    Either every file is uploaded and an ExportJob is recorded, or the
    uploads of this call are removed and :class:`ReportSerializationError`
    is raised.
    """

    def __init__(
        self,
        commit_service: CommitService,
        repository_service: RepositoryService,
        export_service: ExportService,
        blob_store: BlobStore,
        generator: TextGenerator | None = None,
        *,
        noise_tokens: Sequence[str] = (),
    ) -> None:
        self._commit_service = commit_service
        self._repository_service = repository_service
        self._export_service = export_service
        self._blob_store = blob_store
        self._generator = generator
        self._noise_tokens = tuple(noise_tokens)

    async def compile(
        self,
        session: AsyncSession,
        flt: CommitFilter,
        ai_narrative: bool = True,
    ) -> CompileResult:
        """Raises :class:`NotFoundError` when no commit matches *flt*."""
        try:
            commits = await self._commit_service.list_for_export(session, flt)
        except ServiceError:
            raise
        except Exception as exc:
            raise ReportSerializationError(f"failed to load commits: {exc}") from exc
        if not commits:
            raise NotFoundError("no commits matched the export filter")

        by_repo: dict[uuid.UUID, list[Commit]] = {}
        for commit in commits:
            by_repo.setdefault(commit.repository_id, []).append(commit)

        export_id = uuid.uuid4()
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H%M%S")
        generator = self._generator if ai_narrative else None
        files: list[FileDescriptor] = []
        used_names: set[str] = set()
        try:
            names = await self._repository_service.names(session, set(by_repo))
            for repository_id, repo_commits in by_repo.items():
                name = names.get(repository_id, str(repository_id))
                history = build_file_history(repo_commits, self._noise_tokens)
                narrative = await generate_narrative(
                    generator, aggregate(name, repo_commits, flt.date_range, self._noise_tokens)
                )
                data = build_workbook(name, repo_commits, history, narrative.text)

                file_name = _file_name(name, stamp, used_names)
                key = f"{export_id}/{repository_id}/{file_name}"
                await self._blob_store.put(key, data, XLSX_CONTENT_TYPE)
                files.append(FileDescriptor(file_name, key, len(data), repository_id))

            await self._export_service.record(
                session,
                id=export_id,
                repository_ids=[str(r) for r in flt.repository_ids],
                author_emails=list(flt.author_emails),
                start_date=flt.date_range.start,
                end_date=flt.date_range.end,
                status=EXPORT_COMPLETED,
                files=[f.to_json() for f in files],
                row_count=len(commits),
                completed_at=datetime.now(timezone.utc),
            )
        except Exception as exc:
            await self._discard(files)
            log.error("export.failed", export_id=str(export_id), error=str(exc))
            raise ReportSerializationError(f"export failed: {exc}") from exc

        log.info(
            "export.completed",
            export_id=str(export_id),
            files=len(files),
            rows=len(commits),
        )
        return CompileResult(export_id=export_id, files=files, total_commits=len(commits))

    async def list_exports(self, session: AsyncSession, limit: int = 20) -> list[ExportJob]:
        return await self._export_service.list(session, max(1, min(limit, 100)))

    async def _discard(self, files: list[FileDescriptor]) -> None:
        for f in files:
            try:
                await self._blob_store.delete(f.key)
            except Exception:
                log.warning("export.cleanup_failed", key=f.key, exc_info=True)
