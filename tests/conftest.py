"""Shared fixtures."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from hackathon_stats.models import DateWindow, PullRequest

_ids = itertools.count(1)


def _user(login: str) -> dict[str, Any]:
    return {
        "login": login,
        "avatar_url": f"https://avatars.example.com/{login}",
        "html_url": f"https://github.com/{login}",
    }


@pytest.fixture
def window() -> DateWindow:
    return DateWindow.from_iso("2024-10-01T00:00:00Z", "2024-10-31T23:59:59Z")


@pytest.fixture
def pr_payload():
    """Factory for raw pull request payloads as returned by the REST API."""

    def make(
        login: str = "alice",
        created_at: str = "2024-10-05T10:00:00Z",
        merged_at: str | None = None,
        title: str = "Fix a bug",
        number: int | None = None,
        state: str | None = None,
    ) -> dict[str, Any]:
        pr_id = next(_ids)
        return {
            "id": pr_id,
            "number": number if number is not None else pr_id,
            "title": title,
            "state": state or ("closed" if merged_at else "open"),
            "html_url": f"https://github.com/org/repo/pull/{pr_id}",
            "user": _user(login),
            "created_at": created_at,
            "merged_at": merged_at,
            "closed_at": merged_at,
        }

    return make


@pytest.fixture
def issue_payload():
    def make(
        login: str = "alice",
        created_at: str = "2024-10-05T10:00:00Z",
        closed_at: str | None = None,
        is_pull_request: bool = False,
    ) -> dict[str, Any]:
        issue_id = next(_ids)
        payload = {
            "id": issue_id,
            "number": issue_id,
            "title": f"Issue {issue_id}",
            "state": "closed" if closed_at else "open",
            "html_url": f"https://github.com/org/repo/issues/{issue_id}",
            "user": _user(login),
            "created_at": created_at,
            "closed_at": closed_at,
        }
        if is_pull_request:
            payload["pull_request"] = {"url": "https://api.github.com/..."}
        return payload

    return make


@pytest.fixture
def review_payload():
    def make(
        login: str = "carol",
        submitted_at: str | None = "2024-10-06T12:00:00Z",
        state: str = "APPROVED",
    ) -> dict[str, Any]:
        return {
            "id": next(_ids),
            "user": _user(login),
            "state": state,
            "html_url": "https://github.com/org/repo/pull/1#pullrequestreview-1",
            "submitted_at": submitted_at,
        }

    return make


@pytest.fixture
def make_pr(pr_payload):
    """Factory for parsed PullRequest records."""

    def make(repository: str = "org/repo", **kwargs: Any) -> PullRequest:
        return PullRequest.from_api(pr_payload(**kwargs), repository)

    return make
