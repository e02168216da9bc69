"""Orchestrator: wires together client, collection, aggregation and rendering."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from rich.progress import Progress, SpinnerColumn, TextColumn

from .aggregator import aggregate_pull_requests, fold_issues, fold_reviews
from .config import HackathonConfig
from .exceptions import AggregationRunError
from .fanout import (
    collect_all,
    collect_all_reviews,
    fetch_repository_metadata,
    resolve_repositories,
)
from .github.client import GitHubClient
from .leaderboard import build_pr_leaderboard, build_review_leaderboard
from .models import DateWindow, HackathonReport, Issue, PullRequest, RecordKind, Review
from .renderer import render_json, render_report

logger = logging.getLogger(__name__)

_STAGES = (RecordKind.PULL_REQUEST, RecordKind.ISSUE, RecordKind.REVIEW)


async def _review_stage(
    client: GitHubClient,
    pull_request_stage: Awaitable[list[PullRequest]],
    repositories: list[str],
    window: DateWindow,
    failures: dict[RecordKind, list[str]],
    on_done: Callable[[str], None] | None,
) -> list[Review]:
    pull_requests = await pull_request_stage
    pr_failures = set(failures[RecordKind.PULL_REQUEST])
    failed = failures[RecordKind.REVIEW]
    failed.extend(r for r in repositories if r in pr_failures)
    return await collect_all_reviews(
        client,
        pull_requests,
        [r for r in repositories if r not in pr_failures],
        window,
        on_done=on_done,
        failed=failed,
    )


async def build_report(
    client: GitHubClient,
    hackathon: HackathonConfig,
    include_metadata: bool = False,
    on_done: Callable[[str], None] | None = None,
) -> HackathonReport:
    """Collect and aggregate everything shown for one hackathon.

    Issues are collected alongside pull requests; reviews start once the
    pull requests are in, so each pull request page is fetched only once.
    """
    window = hackathon.window
    repositories = await resolve_repositories(
        client, hackathon.github.organization, hackathon.github.repositories
    )
    logger.info("Collecting %s across %d repositories", hackathon.slug, len(repositories))

    failures: dict[RecordKind, list[str]] = {kind: [] for kind in _STAGES}
    pull_request_stage = asyncio.ensure_future(
        collect_all(
            client,
            repositories,
            window,
            RecordKind.PULL_REQUEST,
            on_done=on_done,
            failed=failures[RecordKind.PULL_REQUEST],
        )
    )
    results = await asyncio.gather(
        pull_request_stage,
        collect_all(
            client,
            repositories,
            window,
            RecordKind.ISSUE,
            on_done=on_done,
            failed=failures[RecordKind.ISSUE],
        ),
        _review_stage(client, pull_request_stage, repositories, window, failures, on_done),
        return_exceptions=True,
    )

    records: dict[RecordKind, list] = {}
    failed_stages: list[str] = []
    for kind, result in zip(_STAGES, results):
        if isinstance(result, BaseException):
            logger.error("%s stage failed: %s", kind.value, result)
            failed_stages.append(kind.value)
            records[kind] = []
        elif len(failures[kind]) == len(repositories):
            failed_stages.append(kind.value)
            records[kind] = []
        else:
            records[kind] = result

    if len(failed_stages) == len(_STAGES):
        raise AggregationRunError(
            f"Failed to load data for {hackathon.name}: every repository failed to respond"
        )

    prs: list[PullRequest] = records[RecordKind.PULL_REQUEST]
    issues: list[Issue] = records[RecordKind.ISSUE]
    reviews: list[Review] = records[RecordKind.REVIEW]

    stats = aggregate_pull_requests(prs, window)
    fold_reviews(reviews, stats.contributors)
    stats.total_issues, stats.closed_issues = fold_issues(issues, stats.repo_stats)

    limit = hackathon.display.max_leaderboard_entries
    repo_data = (
        await fetch_repository_metadata(client, repositories) if include_metadata else []
    )

    return HackathonReport(
        slug=hackathon.slug,
        name=hackathon.name,
        window=window,
        repositories=repositories,
        stats=stats,
        leaderboard=build_pr_leaderboard(stats.contributors, limit),
        review_leaderboard=build_review_leaderboard(stats.contributors, limit),
        failed_stages=failed_stages,
        repo_data=repo_data,
    )


async def collect_report(
    hackathon: HackathonConfig,
    token: str | None = None,
    no_cache: bool = False,
    include_metadata: bool = False,
    api_url: str | None = None,
) -> HackathonReport:
    """Build a report with a fresh client and a transient progress display."""
    async with GitHubClient(
        token=token or hackathon.github.token, no_cache=no_cache, base_url=api_url
    ) as client:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task(f"Collecting activity for {hackathon.name}...")

            def advance(_repository: str) -> None:
                progress.advance(task)

            return await build_report(
                client, hackathon, include_metadata=include_metadata, on_done=advance
            )


async def run(
    hackathon: HackathonConfig,
    token: str | None = None,
    output_format: str = "table",
    no_cache: bool = False,
    output_file: str | None = None,
    api_url: str | None = None,
) -> None:
    """Main pipeline: fetch data, aggregate, render."""
    report = await collect_report(
        hackathon,
        token=token,
        no_cache=no_cache,
        include_metadata=output_format == "json",
        api_url=api_url,
    )
    if output_format == "json":
        render_json(report, output_file=output_file)
    else:
        render_report(report, hackathon, output_file=output_file)
