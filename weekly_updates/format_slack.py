"""Slack Block Kit formatter and chat.postMessage poster for weekly-updates.

Posting uses only stdlib modules (json, urllib.request).
"""

from __future__ import annotations

import json
import logging
import urllib.request
from typing import Sequence

from weekly_updates.report_data import (
    AISummary,
    ChatMessage,
    PullRequestSummary,
    SummaryOutcome,
)
from weekly_updates.summary import build_fallback_text

logger = logging.getLogger("weekly_updates.format_slack")

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"

# Slack limits
_MAX_BLOCKS = 50
_TRUNCATION_SUFFIX = "\n\u2026 (truncated)"

DESCRIPTION_LIMIT = 200
NO_OPEN_PRS_TEXT = "\U0001f389 *Great news!* You have no open PRs waiting for reviews."


class DeliveryError(RuntimeError):
    """Raised when Slack does not acknowledge a posted message."""

    def __init__(self, error: str) -> None:
        super().__init__(f"Slack API error: {error}")
        self.error = error


# ---------------------------------------------------------------------------
# Open / merged PR messages
# ---------------------------------------------------------------------------

def create_open_prs_message(prs: Sequence[PullRequestSummary]) -> ChatMessage:
    """Build the "open PRs waiting for reviews" message."""
    if not prs:
        return ChatMessage(
            text=NO_OPEN_PRS_TEXT,
            blocks=[_section(NO_OPEN_PRS_TEXT)],
        )

    blocks = [
        _header(f"\U0001f50d Open PRs Waiting for Reviews ({len(prs)})"),
        {"type": "divider"},
    ]
    blocks.extend(_item_blocks(prs, _open_pr_text, reserved=len(blocks)))
    return ChatMessage(
        text=f"You have {len(prs)} open PR(s) waiting for reviews",
        blocks=blocks,
    )


def create_merged_prs_message(
    prs: Sequence[PullRequestSummary], weeks_back: int,
) -> ChatMessage:
    """Build the "merged in the last N weeks" message."""
    if not prs:
        sentence = f"No PRs were merged in the last {weeks_back} week(s)."
        return ChatMessage(
            text=sentence,
            blocks=[_section(f"\U0001f4ca *Weekly Summary*\n{sentence}")],
        )

    blocks = [
        _header(f"\U0001f4ca Weekly Summary - Last {weeks_back} Week(s)"),
        _section(f"*{len(prs)} PR(s) merged*"),
        {"type": "divider"},
    ]
    blocks.extend(_item_blocks(prs, _merged_pr_text, reserved=len(blocks)))
    return ChatMessage(
        text=f"{len(prs)} PR(s) were merged in the last {weeks_back} week(s)",
        blocks=blocks,
    )


def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """Cut `text` to `limit` characters, marking the cut with '...'."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# ---------------------------------------------------------------------------
# Executive summary messages
# ---------------------------------------------------------------------------

def wrap_as_message(
    summary_text: str,
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> ChatMessage:
    """Embed summary text in the executive summary layout.

    Layout: header, status overview with counts, divider, summary body.
    """
    blocks = [
        _header("\U0001f4ca Executive Summary"),
        _section(
            f"*Status Overview - Last {weeks_back} Week(s)*\n"
            f"\u2022 Open PRs: {len(open_prs)}\n"
            f"\u2022 Merged PRs: {len(merged_prs)}"
        ),
        {"type": "divider"},
        _section(_truncate_text(summary_text)),
    ]
    return ChatMessage(
        text=(
            f"Executive Summary: {len(open_prs)} open PRs, "
            f"{len(merged_prs)} merged PRs in last {weeks_back} weeks"
        ),
        blocks=blocks,
    )


def build_fallback_message(
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> ChatMessage:
    """Executive summary message built without the language model."""
    return wrap_as_message(build_fallback_text(open_prs), open_prs, merged_prs, weeks_back)


def format_executive_summary(
    outcome: SummaryOutcome,
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> ChatMessage:
    """Render either summary variant into the executive summary layout."""
    if isinstance(outcome, AISummary):
        logger.debug("Formatting AI summary (%d chars)", len(outcome.text))
    else:
        logger.debug("Formatting fallback summary (%s)", outcome.reason)
    return wrap_as_message(outcome.text, open_prs, merged_prs, weeks_back)


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------

class SlackNotifier:
    """Posts messages to a single Slack channel with a bot token."""

    def __init__(self, bot_token: str, channel_id: str, timeout: int = 30) -> None:
        if not bot_token:
            raise ValueError("Slack bot token must not be empty.")
        if not channel_id:
            raise ValueError("Slack channel ID must not be empty.")
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.timeout = timeout

    def post(self, message: ChatMessage) -> dict:
        """Post `message` via chat.postMessage and return Slack's response.

        Raises:
            DeliveryError: If Slack answers with ok=false or an unreadable body.
            urllib.error.URLError: If the HTTP request itself fails.
        """
        payload = {"channel": self.channel_id, **message.to_payload()}
        req = urllib.request.Request(
            SLACK_POST_MESSAGE_URL,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": f"Bearer {self.bot_token}",
            },
            method="POST",
        )
        logger.debug(
            "Posting %d blocks to Slack channel %s", len(message.blocks), self.channel_id,
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            body = resp.read().decode("utf-8", errors="replace")

        try:
            result = json.loads(body)
        except json.JSONDecodeError:
            raise DeliveryError(f"unexpected response: {body[:200]}") from None
        if not isinstance(result, dict) or not result.get("ok"):
            error = result.get("error", "unknown_error") if isinstance(result, dict) else "unknown_error"
            raise DeliveryError(error)
        return result


# --- internal helpers (private) ---


def _header(text: str) -> dict:
    return {
        "type": "header",
        "text": {"type": "plain_text", "text": text, "emoji": True},
    }


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _pr_heading(pr: PullRequestSummary) -> str:
    return f"*<{pr.url}|{pr.title}>*\n*Repo:* <{pr.pull_link}|{pr.repo}> (#{pr.number})"


def _open_pr_text(pr: PullRequestSummary) -> str:
    """Render one open PR; reviewer lines only appear when non-empty."""
    reviewers_text = ""
    if pr.reviewers:
        reviewers_text = f"*Reviewers:* {', '.join(pr.reviewers)}\n"
    requested_text = ""
    if pr.requested_reviewers:
        requested_text = f"*Requested Reviewers:* {', '.join(pr.requested_reviewers)}\n"
    return (
        f"{_pr_heading(pr)}\n{reviewers_text}{requested_text}\n"
        f"{truncate_description(pr.description)}"
    )


def _merged_pr_text(pr: PullRequestSummary) -> str:
    merged_date = pr.merged_at.strftime("%b %d, %Y") if pr.merged_at else "unknown"
    return (
        f"{_pr_heading(pr)} \u2022 *Merged:* {merged_date}\n\n"
        f"{truncate_description(pr.description)}"
    )


def _item_blocks(prs: Sequence[PullRequestSummary], render, reserved: int) -> list[dict]:
    """One section per PR with dividers between them.

    Stays within Slack's block limit; PRs that do not fit are counted in a
    closing note.
    """
    # n items take 2n - 1 blocks; keep one block free for the note
    capacity = (_MAX_BLOCKS - reserved) // 2
    shown = prs if len(prs) * 2 - 1 <= _MAX_BLOCKS - reserved else prs[:capacity]

    blocks: list[dict] = []
    for i, pr in enumerate(shown):
        if i:
            blocks.append({"type": "divider"})
        blocks.append(_section(_truncate_text(render(pr))))

    remaining = len(prs) - len(shown)
    if remaining:
        blocks.append(_section(f"\u2026 and {remaining} more pull requests"))
    return blocks


def _truncate_text(text: str, max_len: int = 2900) -> str:
    """Truncate text to stay within Slack's 3000-char/block limit.

    Uses a default of 2900 to leave room for the truncation suffix.
    """
    if len(text) <= max_len:
        return text
    return text[:max_len] + _TRUNCATION_SUFFIX
