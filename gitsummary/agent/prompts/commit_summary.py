"""Prompt for per-commit plain-language summaries."""

from __future__ import annotations

MAX_LISTED_FILES = 15

COMMIT_SUMMARY_PROMPT = """\
Summarize this git commit in a clear, human-readable way that both technical \
and non-technical people can understand.

Commit Message: {message}

Files Changed ({files_changed} files):
{files}

Provide a concise summary (2-3 sentences) that explains:
1. What was changed
2. Why it might have been changed (if apparent from the commit message or file names)
3. The impact or scope of the change

Keep it simple and avoid technical jargon where possible. Reply in plain text only."""


def build_commit_summary_prompt(
    message: str, changed_paths: list[str], files_changed: int
) -> str:
    """Render the summary prompt, listing at most 15 changed files."""
    listed = "\n".join(changed_paths[:MAX_LISTED_FILES])
    hidden = len(changed_paths) - MAX_LISTED_FILES
    if hidden > 0:
        listed += f"\n... and {hidden} more files"
    return COMMIT_SUMMARY_PROMPT.format(
        message=message,
        files_changed=files_changed,
        files=listed or "(no file list available)",
    )
