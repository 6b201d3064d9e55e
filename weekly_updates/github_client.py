"""GitHub REST client via the gh CLI.

All requests go through `gh api`, authenticated with the configured token
(exported to gh as GH_TOKEN) or, when no token is configured, whatever
`gh auth login` has stored.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from typing import Optional
from urllib.parse import urlencode

from weekly_updates.report_data import RepoRef

logger = logging.getLogger("weekly_updates.github_client")

PER_PAGE = 100


class UpstreamUnavailable(RuntimeError):
    """Raised when the repository listing cannot be fetched."""


class RepositoryFetchError(RuntimeError):
    """Raised when pull requests or reviews of one repository cannot be fetched."""

    def __init__(self, repo: str, reason: str) -> None:
        super().__init__(f"{repo}: {reason}")
        self.repo = repo
        self.reason = reason


class GitHubClient:
    """Thin wrapper over `gh api` for the endpoints the report needs."""

    def __init__(self, token: Optional[str] = None, timeout: int = 60) -> None:
        self.token = token
        self.timeout = timeout

    def gh_command(self, args: list[str]) -> str:
        """Run a gh CLI command and return stdout."""
        env = None
        if self.token:
            env = dict(os.environ, GH_TOKEN=self.token)
        logger.debug("gh %s", " ".join(args))
        try:
            result = subprocess.run(
                ["gh"] + args,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
                env=env,
            )
        except FileNotFoundError:
            raise RuntimeError("gh CLI is not installed") from None
        except subprocess.TimeoutExpired:
            raise RuntimeError(f"gh command timed out: {' '.join(args)}") from None
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "")[:500]
            raise RuntimeError(f"gh command failed: {' '.join(args)}\n{stderr}") from e
        return result.stdout.strip()

    def api(self, path: str, **params) -> list:
        """GET a REST endpoint and return the decoded JSON list."""
        query = {k: v for k, v in params.items() if v is not None}
        endpoint = f"{path}?{urlencode(query)}" if query else path
        output = self.gh_command(["api", endpoint])
        if not output:
            return []
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"invalid JSON from gh api {endpoint}: {e}") from e
        if not isinstance(data, list):
            raise RuntimeError(
                f"unexpected response from gh api {endpoint}: {type(data).__name__}"
            )
        return data

    def list_repositories(self) -> list[RepoRef]:
        """List repositories of the authenticated user, most recently updated first.

        Raises:
            UpstreamUnavailable: If the listing call fails.
        """
        try:
            repos = self.api("user/repos", per_page=PER_PAGE, sort="updated")
        except RuntimeError as e:
            raise UpstreamUnavailable(f"Could not list repositories: {e}") from e

        result: list[RepoRef] = []
        for raw in repos[:PER_PAGE]:
            owner = (raw.get("owner") or {}).get("login", "")
            name = raw.get("name", "")
            if not owner or not name:
                continue
            result.append(RepoRef(
                owner=owner,
                name=name,
                full_name=raw.get("full_name") or f"{owner}/{name}",
            ))
        logger.debug("Enumerated %d repositories", len(result))
        return result

    def list_pull_requests(
        self,
        owner: str,
        name: str,
        state: str,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> list[dict]:
        """List one page of pull requests in the given state."""
        return self.api(
            f"repos/{owner}/{name}/pulls",
            state=state,
            sort=sort,
            direction=direction,
            per_page=PER_PAGE,
        )

    def list_reviews(self, owner: str, name: str, number: int) -> list[dict]:
        """List submitted reviews of a pull request."""
        return self.api(f"repos/{owner}/{name}/pulls/{number}/reviews")
