"""Fold collected records into contributor rollups and activity statistics."""

from __future__ import annotations

import logging
from typing import Iterable

from .models import (
    ContributorMap,
    DailyActivity,
    DateWindow,
    Issue,
    PullRequest,
    PullRequestStats,
    RepositoryStat,
    Review,
    ReviewState,
    day_key,
)

logger = logging.getLogger(__name__)

AUTOMATION_LOGIN_MARKERS = ("bot", "copilot")
AUTOMATION_TITLE_MARKERS = ("copilot", "pr merged by copilot")


def is_automation(login: str, title: str | None = None) -> bool:
    """Heuristic check for bots and AI-assisted authorship."""
    lower = login.lower()
    if any(marker in lower for marker in AUTOMATION_LOGIN_MARKERS):
        return True
    if title:
        lower_title = title.lower()
        return any(marker in lower_title for marker in AUTOMATION_TITLE_MARKERS)
    return False


def _repo_stat(repo_stats: dict[str, RepositoryStat], repository: str) -> RepositoryStat:
    stat = repo_stats.get(repository)
    if stat is None:
        stat = repo_stats[repository] = RepositoryStat()
    return stat


def aggregate_pull_requests(
    prs: Iterable[PullRequest], window: DateWindow
) -> PullRequestStats:
    """Build totals, contributor rollups, daily buckets and repository stats.

    Automation-authored pull requests count toward every total but never
    get a contributor rollup. Daily buckets exist for each date of the
    window even when nothing happened that day.
    """
    stats = PullRequestStats(
        daily_activity={day: DailyActivity() for day in window.dates()}
    )

    for pr in prs:
        stats.total_prs += 1
        if pr.is_merged:
            stats.merged_prs += 1

        if not is_automation(pr.author.login, pr.title):
            stats.contributors.upsert(pr.author).add_pull_request(pr)

        if window.contains(pr.created_at):
            stats.daily_activity[day_key(pr.created_at)].total += 1

        if pr.is_merged and window.contains(pr.merged_at):
            merged_day = day_key(pr.merged_at)
            stats.daily_activity[merged_day].merged += 1
            per_repo = stats.daily_merged_by_repo.setdefault(merged_day, {})
            per_repo[pr.repository] = per_repo.get(pr.repository, 0) + 1

        repo_stat = _repo_stat(stats.repo_stats, pr.repository)
        repo_stat.total_prs += 1
        if pr.is_merged:
            repo_stat.merged_prs += 1

    logger.debug(
        "Aggregated %d PRs (%d merged) from %d contributors",
        stats.total_prs,
        stats.merged_prs,
        len(stats.contributors),
    )
    return stats


def fold_reviews(reviews: Iterable[Review], contributors: ContributorMap) -> int:
    """Add reviews to contributor rollups. Returns the number counted."""
    counted = 0
    for review in reviews:
        if is_automation(review.author.login):
            continue
        if review.state is ReviewState.DISMISSED:
            continue
        contributors.upsert(review.author).add_review(review)
        counted += 1
    return counted


def fold_issues(
    issues: Iterable[Issue], repo_stats: dict[str, RepositoryStat]
) -> tuple[int, int]:
    """Add issue counts to repository stats. Returns (total, closed)."""
    total = 0
    closed = 0
    for issue in issues:
        repo_stat = _repo_stat(repo_stats, issue.repository)
        repo_stat.total_issues += 1
        total += 1
        if issue.is_closed:
            repo_stat.closed_issues += 1
            closed += 1
    return total, closed
