"""Structured report data model, consumed by all formatters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

NO_DESCRIPTION = "No description provided"


@dataclass(frozen=True)
class RepoRef:
    """A repository visible to the authenticated GitHub identity."""
    owner: str
    name: str
    full_name: str


@dataclass(frozen=True)
class PullRequestSummary:
    """Read-only projection of a GitHub pull request."""
    title: str
    description: str
    url: str                 # html_url
    repo: str                # owner/name
    number: int
    created_at: Optional[datetime] = None   # open PRs
    merged_at: Optional[datetime] = None    # merged PRs
    reviewers: Tuple[str, ...] = ()         # approved / changes requested
    requested_reviewers: Tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, int]:
        return (self.repo, self.number)

    @property
    def pull_link(self) -> str:
        return f"https://github.com/{self.repo}/pull/{self.number}"


@dataclass(frozen=True)
class ChatMessage:
    """A Slack message: plain-text fallback plus Block Kit blocks."""
    text: str
    blocks: list[dict] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {"text": self.text, "blocks": list(self.blocks)}


@dataclass(frozen=True)
class AISummary:
    """Executive summary text returned by the language model."""
    text: str


@dataclass(frozen=True)
class FallbackSummary:
    """Locally built executive summary used when the model call fails."""
    text: str
    reason: str = ""


SummaryOutcome = Union[AISummary, FallbackSummary]
