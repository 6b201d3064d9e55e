"""Plain-text console formatter, used by `weekly-updates preview`."""

from __future__ import annotations

from typing import Sequence

from weekly_updates.report_data import PullRequestSummary


def format_console(
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> str:
    """Render both PR lists as numbered plain-text lists.

    Args:
        open_prs: Open PRs waiting for review.
        merged_prs: PRs merged within the lookback window, newest first.
        weeks_back: Lookback window in weeks, shown in the headings.

    Returns:
        The full listing as a single string.
    """
    lines: list[str] = [
        f"Found {len(open_prs)} open PR(s)",
        f"Found {len(merged_prs)} merged PR(s) in last {weeks_back} week(s)",
    ]

    if open_prs:
        lines.append("")
        lines.append("Open PRs:")
        for i, pr in enumerate(open_prs, start=1):
            lines.append(f"{i}. {pr.title}")
            lines.append(f"   Repo: {pr.pull_link}")
            if pr.reviewers:
                lines.append(f"   Reviewers: {', '.join(pr.reviewers)}")
            if pr.requested_reviewers:
                lines.append(f"   Requested: {', '.join(pr.requested_reviewers)}")
            lines.append("")

    if merged_prs:
        lines.append("")
        lines.append("Merged PRs:")
        for i, pr in enumerate(merged_prs, start=1):
            lines.append(f"{i}. {pr.title}")
            lines.append(f"   Repo: {pr.pull_link}")
            if pr.merged_at:
                lines.append(f"   Merged: {pr.merged_at.strftime('%Y-%m-%d %H:%M UTC')}")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"
