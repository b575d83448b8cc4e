"""Workbook serialization with openpyxl."""

from __future__ import annotations

import io
import re
from collections.abc import Sequence
from datetime import timezone

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from gitsummary.engines.report.history import FileHistory
from gitsummary.models.commit import Commit

SHEET_NAME_MAX = 31
COMMITS_SHEET = "Git Commits"
HISTORY_SHEET = "File Summary"

_INVALID_SHEET_CHARS_RE = re.compile(r"[\[\]:*?/\\]")

_COMMITS_HEADER_FILL = "FF4472C4"
_HISTORY_HEADER_FILL = "FF2E7D32"
_SUMMARY_HEADER_FILL = "FF6A1B9A"

# (header, width)
_COMMIT_COLUMNS = [
    ("Date Time", 20),
    ("Repository", 25),
    ("Commit Name", 50),
    ("Commit Description", 60),
    ("Commit Code", 12),
    ("Changed Files", 50),
    ("Files Count", 12),
    ("JIRA Link", 30),
    ("Author", 30),
]
_HISTORY_COLUMNS = [("File", 50), ("Change History", 80)]


def sanitize_sheet_name(name: str, used: set[str] | None = None) -> str:
    """Return a valid, unique worksheet title for *name*.

    Drops ``[]:*?/\\``, trims to 31 characters, and appends ``(2)``,
    ``(3)``... on case-insensitive collision with *used*, which is updated.
    """
    cleaned = _INVALID_SHEET_CHARS_RE.sub("", name).strip().strip("'") or "Sheet"
    base = cleaned[:SHEET_NAME_MAX]
    taken = {u.lower() for u in used} if used is not None else set()
    candidate = base
    n = 2
    while candidate.lower() in taken:
        suffix = f" ({n})"
        candidate = base[: SHEET_NAME_MAX - len(suffix)] + suffix
        n += 1
    if used is not None:
        used.add(candidate)
    return candidate


def _text(value: str | None) -> str:
    """Drop control characters the xlsx format cannot store."""
    return ILLEGAL_CHARACTERS_RE.sub("", value or "")


def commit_row(repository: str, commit: Commit) -> list:
    moment = commit.commit_date.astimezone(timezone.utc)
    return [
        moment.strftime("%Y-%m-%d %H:%M:%S"),
        _text(repository),
        _text(commit.message_title),
        _text(commit.message),
        commit.sha[:8],
        _text("\n".join(commit.changed_paths or [])),
        commit.files_changed,
        commit.jira_url or "",
        _text(f"{commit.author_name} <{commit.author_email}>"),
    ]


def _write_header(ws: Worksheet, columns: list[tuple[str, int]], fill: str) -> None:
    ws.append([header for header, _ in columns])
    for idx, (_, width) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx)
        cell.font = Font(bold=True, color="FFFFFFFF")
        cell.fill = PatternFill(fill_type="solid", fgColor=fill)
        ws.column_dimensions[cell.column_letter].width = width
    ws.freeze_panes = "A2"


def _wrap_rows(ws: Worksheet) -> None:
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = Alignment(vertical="top", wrap_text=True)


def build_workbook(
    repository: str,
    commits: Sequence[Commit],
    history: Sequence[FileHistory],
    narrative: str,
) -> bytes:
    """Serialize one repository's report to xlsx bytes.

    *commits* arrive oldest first; the commit sheet lists them newest first.
    """
    wb = Workbook()
    used: set[str] = set()

    summary = wb.active
    summary.title = sanitize_sheet_name(f"{repository} Summary", used)
    summary.append(["Summary"])
    header = summary.cell(row=1, column=1)
    header.font = Font(bold=True, color="FFFFFFFF")
    header.fill = PatternFill(fill_type="solid", fgColor=_SUMMARY_HEADER_FILL)
    summary.column_dimensions["A"].width = 120
    summary.append([_text(narrative)])
    summary.cell(row=2, column=1).alignment = Alignment(vertical="top", wrap_text=True)

    ws = wb.create_sheet(sanitize_sheet_name(COMMITS_SHEET, used))
    _write_header(ws, _COMMIT_COLUMNS, _COMMITS_HEADER_FILL)
    for commit in reversed(commits):
        ws.append(commit_row(repository, commit))
    _wrap_rows(ws)

    ws = wb.create_sheet(sanitize_sheet_name(HISTORY_SHEET, used))
    _write_header(ws, _HISTORY_COLUMNS, _HISTORY_HEADER_FILL)
    for entry in history:
        text = entry.render()
        ws.append([_text(entry.path), _text(text)])
        ws.row_dimensions[ws.max_row].height = max(20, 15 * (text.count("\n") + 1))
    _wrap_rows(ws)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
