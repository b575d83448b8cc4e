"""Per-file change history built from a commit sequence.

Pure functions; the compiler feeds commits oldest first.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Protocol

MERGE_PREFIXES = (
    "merge commit",
    "merge pull request",
    "merge branch",
    "merge remote-tracking",
)

HISTORY_DATE_FORMAT = "%d/%m/%Y"

_WHITESPACE_RE = re.compile(r"\s+")


class HistoryCommit(Protocol):
    message: str
    commit_date: datetime
    changed_paths: list[str]


@dataclass
class DateGroup:
    day: date
    changes: list[str] = field(default_factory=list)


@dataclass
class FileHistory:
    path: str
    groups: list[DateGroup]

    def render(self) -> str:
        """``dd/mm/yyyy`` followed by its ``- change`` lines; groups separated by a blank line."""
        return "\n\n".join(
            "\n".join([g.day.strftime(HISTORY_DATE_FORMAT), *g.changes]) for g in self.groups
        )


def is_merge_commit(message: str) -> bool:
    return message.lstrip().lower().startswith(MERGE_PREFIXES)


def clean_message(message: str, noise_tokens: Sequence[str] = ()) -> str:
    """Strip noise tokens (case-insensitive) and collapse all whitespace to single spaces."""
    for token in noise_tokens:
        if token:
            message = re.sub(re.escape(token), "", message, flags=re.IGNORECASE)
    return _WHITESPACE_RE.sub(" ", message).strip()


def commit_day(moment: datetime) -> date:
    """Calendar date of *moment* in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


def build_file_history(
    commits: Iterable[HistoryCommit], noise_tokens: Sequence[str] = ()
) -> list[FileHistory]:
    """Group cleaned commit messages by file and day.

    Merge commits and messages that clean to nothing contribute nothing.
    Files are sorted by path; each file's day groups newest first, with
    changes inside a day kept in commit order.
    """
    buckets: dict[str, dict[date, DateGroup]] = {}
    for commit in commits:
        if is_merge_commit(commit.message):
            continue
        text = clean_message(commit.message, noise_tokens)
        if not text:
            continue
        day = commit_day(commit.commit_date)
        for path in commit.changed_paths or []:
            if not path:
                continue
            groups = buckets.setdefault(path, {})
            groups.setdefault(day, DateGroup(day)).changes.append(f"- {text}")

    return [
        FileHistory(path, sorted(groups.values(), key=lambda g: g.day, reverse=True))
        for path, groups in sorted(buckets.items())
    ]
