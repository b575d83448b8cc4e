"""CLI entry point: gitsummary.

Subcommands:
    gitsummary initdb                     # Create missing tables
    gitsummary serve                      # Run the HTTP API (uvicorn)
    gitsummary drain [--repository-id ID] # Summarize the commit backlog until empty or throttled
    gitsummary export [filters]           # Compile report workbooks
    gitsummary watch JOB_ID               # Poll an analysis job until it finishes
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from datetime import date, datetime

import click

from gitsummary.core.config import get_settings
from gitsummary.core.logging import setup_logging
from gitsummary.services import ServiceError

_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _day(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """gitsummary: commit ingestion, AI summaries and progress reports."""
    setup_logging(level="DEBUG" if verbose else None)


@main.command("initdb")
def initdb() -> None:
    """Create any missing tables in the configured database."""
    from gitsummary.core.database import create_schema, make_engine

    async def _run() -> None:
        engine = make_engine(get_settings().database_url, pooled=False)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    asyncio.run(_run())
    click.echo("Schema ready.")


@main.command("serve")
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host: str, port: int) -> None:
    """Run the HTTP API with the background summarizer."""
    import uvicorn

    uvicorn.run("gitsummary.api:create_app", factory=True, host=host, port=port)


@main.command("drain")
@click.option("--repository-id", type=click.UUID, default=None, help="Limit to one repository")
@click.option("--max-batches", type=int, default=None, help="Stop after N batches")
def drain(repository_id: uuid.UUID | None, max_batches: int | None) -> None:
    """Summarize pending commits until the backlog is empty or the quota is hit."""
    from gitsummary.api import deps

    async def _run():
        factory = deps.init_session_factory(pooled=False)
        try:
            return await deps.get_summarizer_runner().drain(
                factory, repository_id=repository_id, max_batches=max_batches
            )
        finally:
            await deps.dispose_engine()

    result = asyncio.run(_run())
    click.echo(
        f"Summarized {result.success}, failed {result.failed} in {result.batches} batch(es)"
    )
    if result.rate_limited:
        click.echo("Stopped early: text generator rate limited. Try again later.")


@main.command("export")
@click.option("--repository-id", "repository_ids", type=click.UUID, multiple=True)
@click.option("--author", "authors", multiple=True, help="Author email (repeatable)")
@click.option("--start", type=_DATE, default=None, help="First day (YYYY-MM-DD)")
@click.option("--end", type=_DATE, default=None, help="Last day, inclusive (YYYY-MM-DD)")
@click.option("--no-ai", is_flag=True, help="Use the local narrative summary only")
def export(
    repository_ids: tuple[uuid.UUID, ...],
    authors: tuple[str, ...],
    start: datetime | None,
    end: datetime | None,
    no_ai: bool,
) -> None:
    """Compile report workbooks into the export directory."""
    from gitsummary.api import deps
    from gitsummary.core.filters import CommitFilter, DateRange

    flt = CommitFilter(
        repository_ids=list(repository_ids),
        author_emails=list(authors),
        date_range=DateRange(_day(start), _day(end)),
    )

    async def _run():
        factory = deps.init_session_factory(pooled=False)
        try:
            async with factory() as session:
                async with session.begin():
                    return await deps.get_report_compiler().compile(
                        session, flt, ai_narrative=not no_ai
                    )
        finally:
            await deps.dispose_engine()

    try:
        result = asyncio.run(_run())
    except ServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Export {result.export_id}: {result.total_commits} commit(s)")
    for f in result.files:
        click.echo(f"  {get_settings().export_dir}/{f.key} ({f.size} bytes)")


@main.command("watch")
@click.argument("job_id", type=click.UUID)
@click.option("--interval", type=float, default=None, help="Seconds between polls")
@click.option("--timeout", type=float, default=None, help="Give up after N seconds")
def watch(job_id: uuid.UUID, interval: float | None, timeout: float | None) -> None:
    """Poll an analysis job until it is COMPLETED or FAILED."""
    from gitsummary.api import deps
    from gitsummary.engines.job_coordinator.polling import poll_job

    async def _run():
        factory = deps.init_session_factory(pooled=False)
        coordinator = deps.get_job_coordinator()

        async def _fetch():
            async with factory() as session:
                return await coordinator.get_status(session, job_id)

        last = None
        try:
            async for job in poll_job(
                _fetch, interval or get_settings().poll_interval, timeout
            ):
                total = job.total_commits if job.total_commits is not None else "?"
                click.echo(f"{job.status:<10} {job.processed_commits}/{total}")
                last = job
        finally:
            await deps.dispose_engine()
        return last

    try:
        job = asyncio.run(_run())
    except ServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except TimeoutError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if job is not None and job.error:
        click.echo(f"Job failed: {job.error}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
