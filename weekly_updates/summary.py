"""Executive summary generation for weekly-updates.

Sends the collected open and merged PRs to Claude with a fixed prompt and
returns the reply verbatim. When the call fails, or no API key is
configured, a deterministic summary is built locally instead, so callers
always get exactly one SummaryOutcome:

- AISummary: text returned by the model
- FallbackSummary: open-PR bullet list with reviewer status
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from weekly_updates.report_data import (
    AISummary,
    FallbackSummary,
    PullRequestSummary,
    SummaryOutcome,
)

logger = logging.getLogger("weekly_updates.summary")

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
MAX_TOKENS = 1000
PROMPT_DESCRIPTION_LIMIT = 150

_PROMPT_TEMPLATE = """\
You are an AI assistant helping to create executive summaries of GitHub Pull Request status updates.

Please analyze the following GitHub data and create a concise, professional executive summary that would be suitable for a business context.

**Data to analyze:**
- Open PRs waiting for review: {open_count}
- Merged PRs in the last {weeks_back} weeks: {merged_count}

**Open PRs Details:**
{open_details}

**Merged PRs Details:**
{merged_details}

**Instructions:**
1. Create a casual executive summary (1 paragraph)
2. List the data you got in bullet points.
3. Use bullet points for easy scannability
4. Leave links to the PRs for easy access (don't pollute)

**Format the response as a clean executive summary suitable for Slack.**"""


class SummarizationError(RuntimeError):
    """Raised when the completion endpoint does not return a summary."""


def _clip(text: str, limit: int = PROMPT_DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _open_pr_lines(pr: PullRequestSummary) -> str:
    lines = [f"- {pr.title} ({pr.repo} #{pr.number}) <{pr.url}>"]
    if pr.reviewers:
        lines.append(f"  Reviewers: {', '.join(pr.reviewers)}")
    if pr.requested_reviewers:
        lines.append(f"  Requested: {', '.join(pr.requested_reviewers)}")
    lines.append(f"  Description: {_clip(pr.description)}")
    return "\n".join(lines)


def _merged_pr_lines(pr: PullRequestSummary) -> str:
    merged = pr.merged_at.isoformat() if pr.merged_at else "unknown"
    return (
        f"- {pr.title} ({pr.repo} #{pr.number}) <{pr.url}> - Merged: {merged}\n"
        f"  Description: {_clip(pr.description)}"
    )


def build_prompt(
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> str:
    """Render the executive summary instructions for the given PRs."""
    return _PROMPT_TEMPLATE.format(
        open_count=len(open_prs),
        merged_count=len(merged_prs),
        weeks_back=weeks_back,
        open_details="\n".join(_open_pr_lines(pr) for pr in open_prs) or "(none)",
        merged_details="\n".join(_merged_pr_lines(pr) for pr in merged_prs) or "(none)",
    )


def build_fallback_text(open_prs: Sequence[PullRequestSummary]) -> str:
    """Summary body built without the model: open PRs and their review status."""
    if not open_prs:
        return "\U0001f389 Great news! You have no open PRs waiting for reviews."

    text = "Here are your open PRs. They are waiting on the following reviews:\n\n"
    for pr in open_prs:
        text += f"\u2022 <{pr.url}|{pr.title}> ({pr.repo} #{pr.number})\n"
        if pr.reviewers:
            text += f"  Reviewers: {', '.join(pr.reviewers)}\n"
        if pr.requested_reviewers:
            text += f"  Requested: {', '.join(pr.requested_reviewers)}\n"
        text += "\n"
    return text


class ClaudeSummarizer:
    """Single-turn Claude Messages API call returning the first text block."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = MAX_TOKENS,
        timeout: float = 120.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout

    def summarize(self, prompt: str) -> str:
        """Send `prompt` and return the model's text reply unchanged.

        Raises:
            SummarizationError: On a missing key, an API error or an empty reply.
        """
        if not self.api_key:
            raise SummarizationError("no Claude API key configured")

        try:
            import anthropic  # lazy import
        except ImportError as e:
            raise SummarizationError("anthropic package is not installed") from e

        logger.debug("Calling Claude SDK (anthropic) with model=%s", self.model)
        client = anthropic.Anthropic(api_key=self.api_key)
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.debug("Claude SDK API error: %s (%s)", type(e).__name__, e)
            raise SummarizationError(f"Claude API call failed: {e}") from e

        for block in response.content:
            if block.type == "text" and block.text:
                logger.debug("Claude SDK response: %d chars", len(block.text))
                return block.text
        raise SummarizationError("Claude returned no text content")


def generate_summary(
    summarizer: Optional[ClaudeSummarizer],
    open_prs: Sequence[PullRequestSummary],
    merged_prs: Sequence[PullRequestSummary],
    weeks_back: int,
) -> SummaryOutcome:
    """Ask the model for a summary, falling back to a local one on failure.

    Never raises SummarizationError; a failure is logged as a warning and
    turned into a FallbackSummary.
    """
    if summarizer is None:
        logger.warning("No Claude API key configured, using fallback summary")
        return FallbackSummary(
            text=build_fallback_text(open_prs), reason="no Claude API key configured",
        )

    prompt = build_prompt(open_prs, merged_prs, weeks_back)
    logger.debug("Summary prompt: %d chars", len(prompt))
    try:
        return AISummary(text=summarizer.summarize(prompt))
    except SummarizationError as e:
        logger.warning("Claude AI failed, falling back to direct message: %s", e)
        return FallbackSummary(text=build_fallback_text(open_prs), reason=str(e))
