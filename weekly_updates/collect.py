"""Collection layer: turns raw GitHub pull-request payloads into summaries.

Each repository is fetched independently and yields a RepoResult. Failed
repositories are logged and contribute nothing; only a failed repository
listing aborts collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from weekly_updates.github_client import GitHubClient, RepositoryFetchError
from weekly_updates.report_data import NO_DESCRIPTION, PullRequestSummary, RepoRef

logger = logging.getLogger("weekly_updates.collect")

# Review states that count as a submitted review
REVIEW_STATES = {"APPROVED", "CHANGES_REQUESTED"}


@dataclass(frozen=True)
class RepoResult:
    """Outcome of fetching one repository: its PRs or the error that stopped it."""
    repo: RepoRef
    prs: tuple[PullRequestSummary, ...] = ()
    error: Optional[RepositoryFetchError] = None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO 8601 timestamp ("2026-02-10T12:00:00Z") into an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def merge_cutoff(weeks_back: int, now: Optional[datetime] = None) -> datetime:
    """Return the instant `weeks_back` weeks before `now` (UTC)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now - timedelta(weeks=weeks_back)


def _author_login(pr: dict) -> str:
    return (pr.get("user") or {}).get("login", "")


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

def select_open_by_author(prs: Iterable[dict], username: str) -> list[dict]:
    """Keep PRs authored by `username`, preserving order."""
    return [pr for pr in prs if _author_login(pr) == username]


def select_merged_by_author_and_window(
    prs: Iterable[dict], username: str, cutoff: datetime,
) -> list[dict]:
    """Keep PRs authored by `username` that were merged strictly after `cutoff`."""
    selected = []
    for pr in prs:
        if _author_login(pr) != username:
            continue
        merged_at = parse_timestamp(pr.get("merged_at"))
        if merged_at is not None and merged_at > cutoff:
            selected.append(pr)
    return selected


def extract_reviewers(reviews: Iterable[dict]) -> tuple[str, ...]:
    """Logins with an approving or changes-requested review, first occurrence order."""
    logins: list[str] = []
    for review in reviews:
        if review.get("state") not in REVIEW_STATES:
            continue
        login = (review.get("user") or {}).get("login", "")
        if login and login not in logins:
            logins.append(login)
    return tuple(logins)


def _to_summary(pr: dict, repo: RepoRef, **extra) -> PullRequestSummary:
    return PullRequestSummary(
        title=pr.get("title", ""),
        description=pr.get("body") or NO_DESCRIPTION,
        url=pr.get("html_url", ""),
        repo=repo.full_name,
        number=pr["number"],
        **extra,
    )


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

def fetch_open(
    client: GitHubClient, repo: RepoRef, username: str,
) -> list[PullRequestSummary]:
    """Fetch open PRs by `username` in `repo`, with their reviewers.

    Reviews are only listed for PRs that pass the author filter.

    Raises:
        RepositoryFetchError: On any transport, API or payload error.
    """
    try:
        prs = client.list_pull_requests(repo.owner, repo.name, state="open")
        result = []
        for pr in select_open_by_author(prs, username):
            reviews = client.list_reviews(repo.owner, repo.name, pr["number"])
            requested = tuple(
                r.get("login", "") for r in (pr.get("requested_reviewers") or [])
                if r.get("login")
            )
            result.append(_to_summary(
                pr,
                repo,
                created_at=parse_timestamp(pr.get("created_at")),
                reviewers=extract_reviewers(reviews),
                requested_reviewers=requested,
            ))
        return result
    except (RuntimeError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise RepositoryFetchError(repo.full_name, str(e)) from e


def fetch_merged_candidates(client: GitHubClient, repo: RepoRef) -> list[dict]:
    """Fetch one page of closed PRs in `repo`, most recently updated first.

    Raises:
        RepositoryFetchError: On any transport or API error.
    """
    try:
        return client.list_pull_requests(
            repo.owner, repo.name, state="closed", sort="updated", direction="desc",
        )
    except RuntimeError as e:
        raise RepositoryFetchError(repo.full_name, str(e)) from e


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

def _fold_results(results: Iterable[RepoResult], kind: str) -> list[PullRequestSummary]:
    """Concatenate successful repository results, logging each failure."""
    collected: list[PullRequestSummary] = []
    for result in results:
        if result.error is not None:
            logger.warning(
                "Could not fetch %s for %s: %s",
                kind, result.repo.full_name, result.error.reason,
            )
            continue
        collected.extend(result.prs)
    return collected


def _open_result(client: GitHubClient, repo: RepoRef, username: str) -> RepoResult:
    try:
        return RepoResult(repo=repo, prs=tuple(fetch_open(client, repo, username)))
    except RepositoryFetchError as e:
        return RepoResult(repo=repo, error=e)


def _merged_result(
    client: GitHubClient, repo: RepoRef, username: str, cutoff: datetime,
) -> RepoResult:
    try:
        candidates = fetch_merged_candidates(client, repo)
        prs = tuple(
            _to_summary(pr, repo, merged_at=parse_timestamp(pr.get("merged_at")))
            for pr in select_merged_by_author_and_window(candidates, username, cutoff)
        )
    except RepositoryFetchError as e:
        return RepoResult(repo=repo, error=e)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        return RepoResult(repo=repo, error=RepositoryFetchError(repo.full_name, str(e)))
    return RepoResult(repo=repo, prs=prs)


def collect_open_prs(client: GitHubClient, username: str) -> list[PullRequestSummary]:
    """Collect open PRs by `username` across all accessible repositories.

    Results follow repository enumeration order.

    Raises:
        UpstreamUnavailable: If repositories cannot be listed.
    """
    repos = client.list_repositories()
    results = (_open_result(client, repo, username) for repo in repos)
    prs = _fold_results(results, "open PRs")
    logger.debug("Collected %d open PRs across %d repositories", len(prs), len(repos))
    return prs


def collect_merged_prs(
    client: GitHubClient,
    username: str,
    weeks_back: int,
    now: Optional[datetime] = None,
) -> list[PullRequestSummary]:
    """Collect PRs by `username` merged within the last `weeks_back` weeks.

    Results are sorted by merge time, newest first.

    Raises:
        UpstreamUnavailable: If repositories cannot be listed.
    """
    cutoff = merge_cutoff(weeks_back, now)
    repos = client.list_repositories()
    results = (_merged_result(client, repo, username, cutoff) for repo in repos)
    prs = _fold_results(results, "merged PRs")
    prs.sort(key=lambda pr: pr.merged_at, reverse=True)
    logger.debug(
        "Collected %d PRs merged after %s across %d repositories",
        len(prs), cutoff.isoformat(), len(repos),
    )
    return prs
