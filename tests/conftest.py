"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from weekly_updates.report_data import RepoRef


class FakeGitHub:
    """In-memory stand-in for GitHubClient.

    `pulls` maps (full_name, state) to a list of raw PR dicts or to an
    exception to raise; `reviews` maps (full_name, number) likewise.
    """

    def __init__(self, repos=None, pulls=None, reviews=None, repos_error=None):
        self.repos = list(repos or [])
        self.pulls = dict(pulls or {})
        self.reviews = dict(reviews or {})
        self.repos_error = repos_error
        self.calls: list[tuple] = []

    def list_repositories(self):
        self.calls.append(("repos",))
        if self.repos_error is not None:
            raise self.repos_error
        return list(self.repos)

    def list_pull_requests(self, owner, name, state, sort=None, direction=None):
        self.calls.append(("pulls", f"{owner}/{name}", state, sort, direction))
        result = self.pulls.get((f"{owner}/{name}", state), [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def list_reviews(self, owner, name, number):
        self.calls.append(("reviews", f"{owner}/{name}", number))
        result = self.reviews.get((f"{owner}/{name}", number), [])
        if isinstance(result, Exception):
            raise result
        return list(result)


def repo_ref(full_name: str) -> RepoRef:
    owner, name = full_name.split("/", 1)
    return RepoRef(owner=owner, name=name, full_name=full_name)


@pytest.fixture
def make_github():
    """Factory for FakeGitHub instances keyed by repository full names."""
    def _make(repo_names=(), **kwargs) -> FakeGitHub:
        return FakeGitHub(repos=[repo_ref(n) for n in repo_names], **kwargs)
    return _make
