"""Dependency injection — session, service and engine singletons."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gitsummary.agent.llm_client import LLMClient
from gitsummary.core.config import get_settings
from gitsummary.core.database import make_engine, make_session_factory
from gitsummary.dao.analysis_job_dao import AnalysisJobDAO
from gitsummary.dao.commit_dao import CommitDAO
from gitsummary.dao.credential_dao import CredentialDAO
from gitsummary.dao.export_job_dao import ExportJobDAO
from gitsummary.dao.repository_dao import RepositoryDAO
from gitsummary.engines.job_coordinator.coordinator import JobCoordinator
from gitsummary.engines.job_coordinator.dispatcher import ExtractionDispatcher
from gitsummary.engines.report.compiler import ReportCompiler
from gitsummary.engines.summarizer.runner import SummarizerRunner
from gitsummary.scheduler import SUMMARIZER_LOOP, Scheduler
from gitsummary.services.analysis_job_service import AnalysisJobService
from gitsummary.services.commit_service import CommitService
from gitsummary.services.export_service import ExportService
from gitsummary.services.repository_service import RepositoryService
from gitsummary.storage.blob_store import LocalBlobStore

_settings = get_settings()

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_credential_dao = CredentialDAO()
_repository_dao = RepositoryDAO()
_analysis_job_dao = AnalysisJobDAO()
_commit_dao = CommitDAO()
_export_job_dao = ExportJobDAO()

# ---------------------------------------------------------------------------
# Service singletons
# ---------------------------------------------------------------------------
_repository_service = RepositoryService(_repository_dao, _credential_dao)
_commit_service = CommitService(_commit_dao, _settings.jira_base_url)
_analysis_job_service = AnalysisJobService(_analysis_job_dao, _repository_service, _commit_service)
_export_service = ExportService(_export_job_dao)

# ---------------------------------------------------------------------------
# Engine singletons
# ---------------------------------------------------------------------------
_llm_client = LLMClient.from_settings(_settings)
_dispatcher = ExtractionDispatcher(_settings.extraction_url, timeout=_settings.dispatch_timeout)
_job_coordinator = JobCoordinator(_analysis_job_service, _repository_service, _dispatcher)
_summarizer_runner = SummarizerRunner(
    _commit_service,
    _llm_client,
    batch_size=_settings.summary_batch_size,
    delay=_settings.summary_delay,
)
_report_compiler = ReportCompiler(
    _commit_service,
    _repository_service,
    _export_service,
    LocalBlobStore(_settings.export_dir),
    _llm_client,
    noise_tokens=_settings.noise_tokens,
)

# ---------------------------------------------------------------------------
# Engine / session factory (initialised by app lifespan)
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_scheduler: Scheduler | None = None


def init_session_factory(
    database_url: str | None = None, *, pooled: bool = True
) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = make_engine(database_url or _settings.database_url, pooled=pooled)
    _session_factory = make_session_factory(_engine)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def set_scheduler(scheduler: Scheduler | None) -> None:
    global _scheduler  # noqa: PLW0603
    _scheduler = scheduler


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    async with get_session_factory()() as session:
        async with session.begin():
            yield session


def wake_summarizer() -> bool:
    """Nudge the background summarizer, if running. Returns True if woken."""
    if _scheduler is None or not _scheduler.running:
        return False
    return _scheduler.wake(SUMMARIZER_LOOP)


async def close_clients() -> None:
    await _dispatcher.close()


# ---------------------------------------------------------------------------
# Service getters (for Depends())
# ---------------------------------------------------------------------------


def get_commit_service() -> CommitService:
    return _commit_service


def get_analysis_job_service() -> AnalysisJobService:
    return _analysis_job_service


def get_job_coordinator() -> JobCoordinator:
    return _job_coordinator


def get_summarizer_runner() -> SummarizerRunner:
    return _summarizer_runner


def get_report_compiler() -> ReportCompiler:
    return _report_compiler
