"""Narrative progress summary with a deterministic local fallback."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import structlog

from gitsummary.agent.llm_client import TextGenerator
from gitsummary.agent.prompts.progress_report import build_progress_report_prompt
from gitsummary.core.filters import DateRange
from gitsummary.engines.report.history import clean_message, commit_day, is_merge_commit
from gitsummary.models.commit import Commit

log = structlog.get_logger("gitsummary.engine.report")

PROMPT_MESSAGE_LIMIT = 100
FALLBACK_SAMPLE_LIMIT = 20
NARRATIVE_MAX_TOKENS = 2000
NARRATIVE_TEMPERATURE = 0.4

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


@dataclass
class NarrativeInput:
    """Aggregate facts about one repository's commit set."""

    repository: str
    authors: list[str]
    start: date
    end: date
    messages: list[str]
    total_commits: int
    total_files_changed: int


@dataclass
class Narrative:
    text: str
    source: str


def aggregate(
    repository: str,
    commits: Sequence[Commit],
    date_range: DateRange,
    noise_tokens: Sequence[str] = (),
) -> NarrativeInput:
    """Build the narrative aggregate from *commits* (oldest first, non-empty).

    Messages are the full commit messages, cleaned as for the file history,
    with merges skipped. The requested range wins; open bounds fall back to
    the observed dates.
    """
    authors: list[str] = []
    messages: list[str] = []
    seen: set[str] = set()
    for commit in commits:
        if commit.author_name not in authors:
            authors.append(commit.author_name)
        if is_merge_commit(commit.message or ""):
            continue
        message = clean_message(commit.message or "", noise_tokens)
        if not message or message in seen:
            continue
        seen.add(message)
        if len(messages) < PROMPT_MESSAGE_LIMIT:
            messages.append(message)

    days = [commit_day(c.commit_date) for c in commits]
    return NarrativeInput(
        repository=repository,
        authors=authors,
        start=date_range.start or min(days),
        end=date_range.end or max(days),
        messages=messages,
        total_commits=len(commits),
        total_files_changed=sum(c.files_changed or 0 for c in commits),
    )


def fallback_summary(inp: NarrativeInput) -> str:
    """Plain-text summary built only from the aggregate; always the same for the same input."""
    lines = [
        "Development Progress Report",
        f"Repository: {inp.repository}",
        f"Report Period: {inp.start.isoformat()} to {inp.end.isoformat()}",
        f"Author(s): {', '.join(inp.authors)}",
        f"Total Commits: {inp.total_commits}",
        f"Total Files Changed: {inp.total_files_changed}",
        "",
    ]
    sample = inp.messages[:FALLBACK_SAMPLE_LIMIT]
    if sample:
        lines.append("Highlights:")
        lines.extend(f"- {m}" for m in sample)
        hidden = len(inp.messages) - len(sample)
        if hidden > 0:
            lines.append(f"... and {hidden} more changes")
    else:
        lines.append("No descriptive commit messages in this period.")
    return "\n".join(lines)


async def generate_narrative(
    generator: TextGenerator | None, inp: NarrativeInput
) -> Narrative:
    """Ask *generator* for a narrative, falling back locally on any failure or empty text."""
    if generator is None:
        return Narrative(fallback_summary(inp), SOURCE_FALLBACK)

    prompt = build_progress_report_prompt(
        authors=inp.authors,
        start=inp.start.isoformat(),
        end=inp.end.isoformat(),
        repositories=[inp.repository],
        messages=inp.messages,
        total_commits=inp.total_commits,
        total_files_changed=inp.total_files_changed,
    )
    try:
        text = await generator.generate(
            prompt, temperature=NARRATIVE_TEMPERATURE, max_tokens=NARRATIVE_MAX_TOKENS
        )
    except Exception as exc:
        log.warning("report.narrative_fallback", repository=inp.repository, reason=str(exc))
        return Narrative(fallback_summary(inp), SOURCE_FALLBACK)

    if not text.strip():
        log.warning("report.narrative_fallback", repository=inp.repository, reason="empty")
        return Narrative(fallback_summary(inp), SOURCE_FALLBACK)
    return Narrative(text.strip(), SOURCE_AI)
