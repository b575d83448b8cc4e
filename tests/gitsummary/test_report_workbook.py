"""Tests for xlsx serialization."""

import io
import uuid
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from gitsummary.engines.report.history import build_file_history
from gitsummary.engines.report.workbook import (
    COMMITS_SHEET,
    HISTORY_SHEET,
    SHEET_NAME_MAX,
    build_workbook,
    commit_row,
    sanitize_sheet_name,
)
from gitsummary.models.commit import Commit


def _commit(sha: str, title: str, day: int, paths: list[str], **extra) -> Commit:
    return Commit(
        id=uuid.uuid4(),
        repository_id=uuid.uuid4(),
        sha=sha,
        author_name="Alice",
        author_email="alice@x.com",
        commit_date=datetime(2024, 1, day, 8, 30, tzinfo=timezone.utc),
        message=title,
        message_title=title,
        files_changed=len(paths),
        changed_paths=paths,
        **extra,
    )


class TestSanitizeSheetName:
    def test_strips_invalid_characters(self):
        assert sanitize_sheet_name("a[b]:c*d?e/f\\g") == "abcdefg"

    def test_truncates(self):
        assert len(sanitize_sheet_name("x" * 50)) == SHEET_NAME_MAX

    def test_dedupes_case_insensitively(self):
        used: set[str] = set()
        first = sanitize_sheet_name("Report", used)
        second = sanitize_sheet_name("report", used)
        third = sanitize_sheet_name("REPORT", used)
        assert (first, second, third) == ("Report", "report (2)", "REPORT (3)")

    def test_dedupe_keeps_length_limit(self):
        used = {"y" * 31}
        name = sanitize_sheet_name("y" * 40, used)
        assert len(name) == SHEET_NAME_MAX
        assert name.endswith(" (2)")

    @pytest.mark.parametrize("raw", ["", "///", "''"])
    def test_empty_gets_default(self, raw):
        assert sanitize_sheet_name(raw) == "Sheet"


class TestCommitRow:
    def test_columns(self):
        commit = _commit(
            "0123456789abcdef",
            "PROJ-7 add login",
            5,
            ["a.py", "b.py"],
            jira_url="https://jira.example.com/browse/PROJ-7",
        )

        row = commit_row("app", commit)

        assert row == [
            "2024-01-05 08:30:00",
            "app",
            "PROJ-7 add login",
            "PROJ-7 add login",
            "01234567",
            "a.py\nb.py",
            2,
            "https://jira.example.com/browse/PROJ-7",
            "Alice <alice@x.com>",
        ]

    def test_strips_control_characters(self):
        commit = _commit("abcdef0123", "bad\x01title", 5, [])
        assert commit_row("app", commit)[2] == "badtitle"


class TestBuildWorkbook:
    def _load(self, data: bytes):
        return load_workbook(io.BytesIO(data))

    def test_sheets_and_contents(self):
        commits = [
            _commit("aaaaaaaaaa", "fix x bug", 1, ["src/x.ts"]),
            _commit("bbbbbbbbbb", "feat y", 2, ["src/x.ts", "src/y.ts"]),
        ]
        history = build_file_history(commits)

        wb = self._load(build_workbook("app", commits, history, "Narrative text"))

        assert wb.sheetnames == ["app Summary", COMMITS_SHEET, HISTORY_SHEET]

        summary = wb["app Summary"]
        assert summary["A1"].value == "Summary"
        assert summary["A2"].value == "Narrative text"

        sheet = wb[COMMITS_SHEET]
        assert sheet["A1"].value == "Date Time"
        assert sheet.freeze_panes == "A2"
        assert [sheet.cell(row=r, column=5).value for r in (2, 3)] == ["bbbbbbbb", "aaaaaaaa"]

        files = wb[HISTORY_SHEET]
        assert [files.cell(row=r, column=1).value for r in (2, 3)] == ["src/x.ts", "src/y.ts"]
        assert files["B2"].value == "02/01/2024\n- feat y\n\n01/01/2024\n- fix x bug"

    def test_long_repository_name_yields_valid_title(self):
        commits = [_commit("cccccccccc", "init", 1, ["a"])]
        wb = self._load(build_workbook("r" * 40 + "/x", commits, [], "n"))
        assert len(wb.sheetnames[0]) <= SHEET_NAME_MAX
