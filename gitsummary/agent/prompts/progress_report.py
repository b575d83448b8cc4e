"""Prompt for the narrative development-progress summary in exports."""

from __future__ import annotations

PROGRESS_REPORT_PROMPT = """\
You are writing a professional Development Progress Report summary.

Report Period: {start} to {end}
Author(s): {authors}
Repositories: {repositories}
Total Commits: {total_commits}
Total Files Changed: {total_files_changed}

Commit Messages (sample):
{messages}

Write a professional, well-structured progress report summary:

Start with a brief opening statement about the period and overall accomplishments.

Then organize the work into logical categories/areas (identify these from the \
commit messages). For each area:
- Use a clear section header
- Describe what was accomplished in readable prose
- Highlight key features, improvements, or fixes
- Keep technical terms but explain their business value

End with a brief summary of the overall impact.

Guidelines:
- Write in third person professional tone
- Be concise but comprehensive
- Group related work together logically
- Make it readable for both technical and non-technical audiences
- Do NOT use markdown formatting (no **, ##, etc.) - use plain text only
- Separate sections with blank lines"""


def build_progress_report_prompt(
    *,
    authors: list[str],
    start: str,
    end: str,
    repositories: list[str],
    messages: list[str],
    total_commits: int,
    total_files_changed: int,
) -> str:
    return PROGRESS_REPORT_PROMPT.format(
        start=start,
        end=end,
        authors=", ".join(authors) or "(unknown)",
        repositories=", ".join(repositories),
        total_commits=total_commits,
        total_files_changed=total_files_changed,
        messages="\n".join(f"- {m}" for m in messages) or "- (no messages)",
    )
