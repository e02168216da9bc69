"""Concurrent collection across repositories and organization resolution."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable

from .collector import COLLECTORS
from .exceptions import (
    HackathonStatsError,
    OrganizationResolutionError,
    RepositoryCollectionError,
)
from .github.client import PER_PAGE, GitHubClient
from .models import ActivityRecord, DateWindow, PullRequest, RecordKind

logger = logging.getLogger(__name__)


def split_repository(identifier: str) -> tuple[str, str]:
    """Split ``owner/name`` into its parts."""
    owner, sep, name = identifier.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must look like 'owner/name': {identifier!r}")
    return owner, name


async def _collect_repository(
    client: GitHubClient,
    repository: str,
    window: DateWindow,
    kind: RecordKind,
    **options: Any,
) -> list[ActivityRecord]:
    owner, name = split_repository(repository)
    collector = COLLECTORS[kind]
    try:
        return await collector(client, owner, name, window, **options)
    except HackathonStatsError as exc:
        raise RepositoryCollectionError(repository, str(exc)) from exc


async def _gather_repositories(
    repositories: list[str],
    collect: Callable[[str], Awaitable[list[ActivityRecord]]],
    kind: RecordKind,
    on_done: Callable[[str], None] | None,
    failed: list[str] | None,
) -> list[ActivityRecord]:
    async def collect_one(repository: str) -> list[ActivityRecord]:
        try:
            return await collect(repository)
        finally:
            if on_done is not None:
                on_done(repository)

    results = await asyncio.gather(
        *(collect_one(r) for r in repositories), return_exceptions=True
    )

    merged: list[ActivityRecord] = []
    for repository, result in zip(repositories, results):
        if isinstance(result, BaseException):
            logger.error(
                "Failed to fetch %s records for %s: %s", kind.value, repository, result
            )
            if failed is not None:
                failed.append(repository)
            continue
        merged.extend(result)
    return merged


async def collect_all(
    client: GitHubClient,
    repositories: Iterable[str],
    window: DateWindow,
    kind: RecordKind,
    on_done: Callable[[str], None] | None = None,
    failed: list[str] | None = None,
) -> list[ActivityRecord]:
    """Collect ``kind`` records from every repository concurrently.

    One repository failing never affects the others: its error is logged,
    it contributes nothing, and its identifier is appended to ``failed``.
    """
    return await _gather_repositories(
        list(repositories),
        lambda repository: _collect_repository(client, repository, window, kind),
        kind,
        on_done,
        failed,
    )


async def collect_all_reviews(
    client: GitHubClient,
    pull_requests: Iterable[PullRequest],
    repositories: Iterable[str],
    window: DateWindow,
    on_done: Callable[[str], None] | None = None,
    failed: list[str] | None = None,
) -> list[ActivityRecord]:
    """Like :func:`collect_all` for reviews, reusing collected pull requests."""
    by_repository: dict[str, list[PullRequest]] = {r: [] for r in repositories}
    for pr in pull_requests:
        if pr.repository in by_repository:
            by_repository[pr.repository].append(pr)

    return await _gather_repositories(
        list(by_repository),
        lambda repository: _collect_repository(
            client,
            repository,
            window,
            RecordKind.REVIEW,
            pull_requests=by_repository[repository],
        ),
        RecordKind.REVIEW,
        on_done,
        failed,
    )


async def list_organization_repositories(
    client: GitHubClient, organization: str
) -> list[str]:
    """All ``owner/name`` identifiers in an organization."""
    repositories: list[str] = []
    page = 1
    while True:
        items = await client.list_org_repos_page(organization, page)
        if not items:
            break
        for repo in items:
            full_name = repo.get("full_name") or f"{organization}/{repo['name']}"
            repositories.append(full_name)
        if len(items) < PER_PAGE:
            break
        page += 1
    return repositories


def _dedupe(identifiers: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for identifier in identifiers:
        if identifier not in seen:
            seen.add(identifier)
            unique.append(identifier)
    return unique


async def resolve_repositories(
    client: GitHubClient,
    organization: str | None,
    explicit: Iterable[str] = (),
) -> list[str]:
    """Explicit repositories plus every repository of ``organization``.

    Organization lookup failures fall back to the explicit list; only an
    empty result raises.
    """
    explicit = list(explicit)
    resolved: list[str] = []
    if organization:
        try:
            resolved = await list_organization_repositories(client, organization)
            logger.info(
                "Resolved %d repositories in organization %s", len(resolved), organization
            )
        except HackathonStatsError as exc:
            logger.warning(
                "Could not list repositories for organization %s, "
                "using the configured list only: %s",
                organization,
                exc,
            )

    repositories = _dedupe([*explicit, *resolved])
    if not repositories:
        raise OrganizationResolutionError(organization)
    return repositories


async def fetch_repository_metadata(
    client: GitHubClient, repositories: Iterable[str]
) -> list[dict[str, Any]]:
    """Raw repository payloads; repositories that fail are left out."""
    repositories = list(repositories)

    async def fetch(repository: str) -> dict[str, Any]:
        owner, name = split_repository(repository)
        return await client.get_repository(owner, name)

    results = await asyncio.gather(
        *(fetch(r) for r in repositories), return_exceptions=True
    )
    metadata: list[dict[str, Any]] = []
    for repository, result in zip(repositories, results):
        if isinstance(result, BaseException):
            logger.warning("Failed to fetch metadata for %s: %s", repository, result)
            continue
        metadata.append(result)
    return metadata
