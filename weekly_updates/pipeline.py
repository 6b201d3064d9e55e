"""Run modes: collect PRs, build the Slack message, post it.

Every mode is strictly linear (collect, format or summarize, notify). A
failed post aborts the mode; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Optional

from weekly_updates.collect import collect_merged_prs, collect_open_prs
from weekly_updates.format_slack import (
    SlackNotifier,
    create_merged_prs_message,
    create_open_prs_message,
    format_executive_summary,
)
from weekly_updates.github_client import GitHubClient
from weekly_updates.report_data import AISummary, ChatMessage
from weekly_updates.summary import ClaudeSummarizer, generate_summary

logger = logging.getLogger("weekly_updates.pipeline")


def check_open_prs(
    github: GitHubClient, notifier: SlackNotifier, username: str,
) -> ChatMessage:
    """Post the open PRs of `username` that are waiting for reviews."""
    open_prs = collect_open_prs(github, username)
    message = create_open_prs_message(open_prs)
    notifier.post(message)
    logger.info("Posted %d open PRs", len(open_prs))
    return message


def check_merged_prs(
    github: GitHubClient, notifier: SlackNotifier, username: str, weeks_back: int,
) -> ChatMessage:
    """Post the PRs of `username` merged in the last `weeks_back` weeks."""
    merged_prs = collect_merged_prs(github, username, weeks_back)
    message = create_merged_prs_message(merged_prs, weeks_back)
    notifier.post(message)
    logger.info("Posted %d merged PRs", len(merged_prs))
    return message


def send_executive_summary(
    github: GitHubClient,
    notifier: SlackNotifier,
    summarizer: Optional[ClaudeSummarizer],
    username: str,
    weeks_back: int,
) -> ChatMessage:
    """Post an executive summary of open and recently merged PRs.

    Uses Claude when `summarizer` is given and the call succeeds, the
    locally built summary otherwise.
    """
    open_prs = collect_open_prs(github, username)
    merged_prs = collect_merged_prs(github, username, weeks_back)
    outcome = generate_summary(summarizer, open_prs, merged_prs, weeks_back)
    message = format_executive_summary(outcome, open_prs, merged_prs, weeks_back)
    notifier.post(message)
    logger.info(
        "Posted %s executive summary",
        "AI-powered" if isinstance(outcome, AISummary) else "fallback",
    )
    return message
