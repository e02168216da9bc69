"""Tests for multi-repository fan-out and organization resolution."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from hackathon_stats.exceptions import HttpError, OrganizationResolutionError, TransportError
from hackathon_stats.fanout import (
    collect_all,
    collect_all_reviews,
    fetch_repository_metadata,
    list_organization_repositories,
    resolve_repositories,
    split_repository,
)
from hackathon_stats.github.client import GitHubClient
from hackathon_stats.models import RecordKind


@pytest.fixture
def client():
    return AsyncMock(spec=GitHubClient)


def test_split_repository():
    assert split_repository("org/repo") == ("org", "repo")
    for bad in ("org", "org/", "/repo", "a/b/c"):
        with pytest.raises(ValueError):
            split_repository(bad)


@pytest.mark.asyncio
async def test_collect_all_tolerates_failing_repository(client, window, pr_payload):
    async def pages(owner, repo, page):
        if page > 1:
            return []
        if repo == "two":
            raise RuntimeError("unexpected failure")
        return [pr_payload(login=repo)]

    client.list_pull_requests_page.side_effect = pages
    failed: list[str] = []
    result = await collect_all(
        client, ["org/one", "org/two", "org/three"], window, RecordKind.PULL_REQUEST,
        failed=failed,
    )
    assert [pr.repository for pr in result] == ["org/one", "org/three"]
    assert failed == ["org/two"]


@pytest.mark.asyncio
async def test_collect_all_counts_first_page_errors_as_failures(client, window, pr_payload):
    async def pages(owner, repo, page):
        if repo == "two":
            raise HttpError(403, "x")
        return [pr_payload(login=repo)] if page == 1 else []

    client.list_pull_requests_page.side_effect = pages
    failed: list[str] = []
    result = await collect_all(
        client, ["org/one", "org/two", "org/three"], window, RecordKind.PULL_REQUEST,
        failed=failed,
    )
    assert sorted(pr.repository for pr in result) == ["org/one", "org/three"]
    assert failed == ["org/two"]


@pytest.mark.asyncio
async def test_collect_all_reviews_uses_collected_pull_requests(
    client, window, make_pr, review_payload
):
    async def list_reviews(owner, repo, number):
        if repo == "broken":
            raise TransportError("https://api.github.com/x")
        return [review_payload(login=f"{repo}-reviewer")]

    client.list_reviews.side_effect = list_reviews
    pull_requests = [
        make_pr(repository="org/one", number=1),
        make_pr(repository="org/broken", number=2),
        make_pr(repository="org/elsewhere", number=3),
    ]
    failed: list[str] = []
    result = await collect_all_reviews(
        client, pull_requests, ["org/one", "org/broken", "org/quiet"], window, failed=failed
    )

    assert [r.author.login for r in result] == ["one-reviewer"]
    assert failed == ["org/broken"]
    client.list_pull_requests_page.assert_not_called()


@pytest.mark.asyncio
async def test_collect_all_skips_malformed_identifier(client, window):
    client.list_issues_page.return_value = []
    failed: list[str] = []
    result = await collect_all(
        client, ["not-a-repo", "org/repo"], window, RecordKind.ISSUE, failed=failed
    )
    assert result == []
    assert failed == ["not-a-repo"]
    client.list_issues_page.assert_awaited_once_with("org", "repo", 1)


@pytest.mark.asyncio
async def test_collect_all_reports_progress(client, window):
    client.list_pull_requests_page.return_value = []
    done: list[str] = []
    await collect_all(
        client, ["org/a", "org/b"], window, RecordKind.PULL_REQUEST, on_done=done.append
    )
    assert sorted(done) == ["org/a", "org/b"]


@pytest.mark.asyncio
async def test_list_organization_repositories_pages(client):
    full_page = [{"full_name": f"org/r{i}", "name": f"r{i}"} for i in range(100)]

    async def pages(org, page):
        return {1: full_page, 2: [{"full_name": "org/last", "name": "last"}]}.get(page, [])

    client.list_org_repos_page.side_effect = pages
    result = await list_organization_repositories(client, "org")
    assert len(result) == 101
    assert result[-1] == "org/last"


@pytest.mark.asyncio
async def test_resolve_merges_and_dedupes(client):
    client.list_org_repos_page.side_effect = lambda org, page: (
        [{"full_name": "org/A"}, {"full_name": "org/B"}] if page == 1 else []
    )
    result = await resolve_repositories(client, "org", ["org/B", "org/C"])
    assert sorted(result) == ["org/A", "org/B", "org/C"]
    assert len(result) == len(set(result))


@pytest.mark.asyncio
async def test_resolve_falls_back_to_explicit_list(client, caplog):
    client.list_org_repos_page.side_effect = HttpError(404, "orgs/missing/repos")
    result = await resolve_repositories(client, "missing", ["org/C"])
    assert result == ["org/C"]
    assert "missing" in caplog.text


@pytest.mark.asyncio
async def test_resolve_without_any_repository_fails(client):
    client.list_org_repos_page.side_effect = HttpError(403, "orgs/x/repos")
    with pytest.raises(OrganizationResolutionError):
        await resolve_repositories(client, "x", [])


@pytest.mark.asyncio
async def test_resolve_without_organization(client):
    result = await resolve_repositories(client, None, ["org/a", "org/a"])
    assert result == ["org/a"]
    client.list_org_repos_page.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_repository_metadata_skips_failures(client):
    async def get_repository(owner, repo):
        if repo == "gone":
            raise HttpError(404, "x")
        return {"full_name": f"{owner}/{repo}"}

    client.get_repository.side_effect = get_repository
    result = await fetch_repository_metadata(client, ["org/a", "org/gone"])
    assert result == [{"full_name": "org/a"}]
