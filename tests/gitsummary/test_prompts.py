"""Tests for prompt rendering."""

from gitsummary.agent.prompts.commit_summary import build_commit_summary_prompt
from gitsummary.agent.prompts.progress_report import build_progress_report_prompt


def test_commit_prompt_lists_at_most_fifteen_files():
    paths = [f"src/file{i}.py" for i in range(20)]

    prompt = build_commit_summary_prompt("refactor modules", paths, 20)

    assert "src/file14.py" in prompt
    assert "src/file15.py" not in prompt
    assert "... and 5 more files" in prompt
    assert "Files Changed (20 files)" in prompt


def test_commit_prompt_short_list_has_no_overflow_line():
    prompt = build_commit_summary_prompt("fix", ["a.py"], 1)
    assert "more files" not in prompt


def test_progress_prompt_carries_aggregate():
    prompt = build_progress_report_prompt(
        authors=["Alice", "Bob"],
        start="2024-01-01",
        end="2024-01-31",
        repositories=["app"],
        messages=["feat: login"],
        total_commits=7,
        total_files_changed=19,
    )
    assert "Report Period: 2024-01-01 to 2024-01-31" in prompt
    assert "Author(s): Alice, Bob" in prompt
    assert "Total Commits: 7" in prompt
    assert "Total Files Changed: 19" in prompt
    assert "- feat: login" in prompt
