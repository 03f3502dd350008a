from __future__ import annotations

from chlog.release.model import ReleaseRequest

SYSTEM_PROMPT = """\
You are a technical writer that generates git release changelogs in Keep a Changelog format (https://keepachangelog.com/).

Rules:
- Use the exact version header provided in the request
- Use these H3 sections (only include non-empty ones): ### Added, ### Changed, ### Deprecated, ### Removed, ### Fixed, ### Security
- Each item is a bullet point written in past tense (e.g., "Added support for X", "Fixed bug in Y")
- Be concise and factual; do not invent changes not present in the provided information
- No preamble, commentary, or text outside the changelog structure
- Output only the changelog markdown, nothing else"""


def build_user_prompt(request: ReleaseRequest) -> str:
    """Render the request as the user message: range, header, commits, stats, diff."""
    lines: list[str] = []
    lines.append(f"Generate a changelog for the changes from `{request.from_label}` to `{request.to_label}`.")
    lines.append("")
    lines.append(f"Version header to use: {request.version_header}")
    lines.append("")

    if request.commits:
        lines.append("## Commit Messages")
        lines.append("")
        lines.extend(f"- {c}" for c in request.commits)
        lines.append("")

    if request.diff_stat:
        lines.append("## Diff Statistics")
        lines.append("")
        lines.append("```")
        lines.append(request.diff_stat)
        lines.append("```")
        lines.append("")

    if request.full_diff:
        lines.append("## Full Diff")
        lines.append("")
        lines.append("```diff")
        lines.append(request.full_diff)
        lines.append("```")

    return "\n".join(lines).rstrip("\n") + "\n"
