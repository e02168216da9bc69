"""Per-repository collection of pull requests, issues and reviews."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from .exceptions import HackathonStatsError
from .github.client import GitHubClient
from .models import (
    ActivityRecord,
    DateWindow,
    Issue,
    PullRequest,
    RecordKind,
    Review,
    ReviewState,
)

logger = logging.getLogger(__name__)

MAX_PAGES = 20

PageFetcher = Callable[[int], Awaitable[list[dict[str, Any]]]]
Collector = Callable[..., Awaitable[list[ActivityRecord]]]


def is_relevant(
    created_at: datetime, resolved_at: datetime | None, window: DateWindow
) -> bool:
    """A record counts when it was created or resolved inside the window."""
    return window.contains(created_at) or window.contains(resolved_at)


async def _collect_pages(
    fetch_page: PageFetcher,
    parse: Callable[[dict[str, Any]], PullRequest | Issue | None],
    repository: str,
    window: DateWindow,
    max_pages: int = MAX_PAGES,
) -> list[Any]:
    """Walk pages newest-first until the window is left behind.

    Records arrive in descending creation order, so the first one created
    before ``window.start`` ends collection: it is dropped along with the
    rest of its page, and no further page is requested.

    A failed fetch after the first page keeps what was gathered so far. A
    failed first page propagates, since the repository produced nothing.
    """
    collected: list[Any] = []
    for page in range(1, max_pages + 1):
        try:
            items = await fetch_page(page)
        except HackathonStatsError as exc:
            if page == 1:
                raise
            logger.warning(
                "Stopping collection for %s at page %d: %s", repository, page, exc
            )
            return collected

        if not items:
            break

        for payload in items:
            record = parse(payload)
            if record is None:
                continue
            if record.created_at < window.start:
                logger.debug(
                    "%s: reached records older than the window on page %d",
                    repository,
                    page,
                )
                return collected
            if is_relevant(record.created_at, record.resolved_at, window):
                collected.append(record)
    else:
        logger.info("%s: stopped at the %d page limit", repository, max_pages)

    return collected


async def collect_pull_requests(
    client: GitHubClient, owner: str, repo: str, window: DateWindow
) -> list[PullRequest]:
    """Pull requests created or merged within the window."""
    repository = f"{owner}/{repo}"
    return await _collect_pages(
        lambda page: client.list_pull_requests_page(owner, repo, page),
        lambda payload: PullRequest.from_api(payload, repository),
        repository,
        window,
    )


async def collect_issues(
    client: GitHubClient, owner: str, repo: str, window: DateWindow
) -> list[Issue]:
    """Issues created or closed within the window, pull requests excluded."""
    repository = f"{owner}/{repo}"

    def parse(payload: dict[str, Any]) -> Issue | None:
        # The issues endpoint also lists pull requests
        if "pull_request" in payload:
            return None
        return Issue.from_api(payload, repository)

    return await _collect_pages(
        lambda page: client.list_issues_page(owner, repo, page),
        parse,
        repository,
        window,
    )


async def _reviews_for_pull_request(
    client: GitHubClient, owner: str, repo: str, pr: PullRequest, window: DateWindow
) -> list[Review]:
    payloads = await client.list_reviews(owner, repo, pr.number)

    reviews: list[Review] = []
    for payload in payloads:
        # Pending reviews have not been submitted yet
        if not payload.get("submitted_at"):
            continue
        try:
            review = Review.from_api(payload, pr.repository, pr.number, pr.title)
        except (KeyError, ValueError) as exc:
            logger.debug("Skipping malformed review on %s#%d: %s", pr.repository, pr.number, exc)
            continue
        if review.state is ReviewState.PENDING:
            continue
        if window.contains(review.submitted_at):
            reviews.append(review)
    return reviews


async def collect_reviews(
    client: GitHubClient,
    owner: str,
    repo: str,
    window: DateWindow,
    pull_requests: list[PullRequest] | None = None,
) -> list[Review]:
    """Reviews submitted within the window on the window's pull requests.

    ``pull_requests`` skips re-collecting the repository's pull requests
    when the caller already has them. A pull request whose reviews cannot
    be fetched is skipped; if every one fails, the first error propagates.
    """
    if pull_requests is None:
        pull_requests = await collect_pull_requests(client, owner, repo, window)
    results = await asyncio.gather(
        *(
            _reviews_for_pull_request(client, owner, repo, pr, window)
            for pr in pull_requests
        ),
        return_exceptions=True,
    )

    reviews: list[Review] = []
    errors: list[HackathonStatsError] = []
    for pr, result in zip(pull_requests, results):
        if isinstance(result, HackathonStatsError):
            logger.warning(
                "Failed to fetch reviews for %s#%d: %s", pr.repository, pr.number, result
            )
            errors.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            reviews.extend(result)

    if errors and len(errors) == len(pull_requests):
        raise errors[0]
    return reviews


COLLECTORS: dict[RecordKind, Collector] = {
    RecordKind.PULL_REQUEST: collect_pull_requests,
    RecordKind.ISSUE: collect_issues,
    RecordKind.REVIEW: collect_reviews,
}
