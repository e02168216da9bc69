"""Contributor rankings."""

from __future__ import annotations

import enum
from typing import Iterable

from .models import ActivityRecord, ContributorRollup, ContributorView

DEFAULT_LIMIT = 10


class Metric(str, enum.Enum):
    MERGED_PRS = "merged_prs"
    REVIEWS = "reviews"
    TOTAL_PRS = "total_prs"


def metric_value(rollup: ContributorRollup, metric: Metric) -> int:
    if metric is Metric.MERGED_PRS:
        return rollup.merged_prs
    if metric is Metric.REVIEWS:
        return rollup.review_count
    if metric is Metric.TOTAL_PRS:
        return rollup.total_prs
    raise ValueError(f"Unknown metric: {metric!r}")


def _records(rollup: ContributorRollup, metric: Metric) -> tuple[ActivityRecord, ...]:
    if metric is Metric.MERGED_PRS:
        return tuple(pr for pr in rollup.pull_requests if pr.is_merged)
    if metric is Metric.REVIEWS:
        return tuple(rollup.reviews)
    return tuple(rollup.pull_requests)


def build_leaderboard(
    contributors: Iterable[ContributorRollup],
    metric: Metric,
    limit: int = DEFAULT_LIMIT,
) -> list[ContributorView]:
    """Rank contributors with a positive ``metric``, highest first.

    Ties keep the order in which contributors were first seen.
    """
    if limit < 0:
        raise ValueError("limit must not be negative")
    ranked = [c for c in contributors if metric_value(c, metric) > 0]
    ranked.sort(key=lambda c: metric_value(c, metric), reverse=True)
    return [
        ContributorView(
            login=c.login,
            avatar_url=c.avatar_url,
            profile_url=c.profile_url,
            value=metric_value(c, metric),
            records=_records(c, metric),
            is_contributor=c.is_contributor,
        )
        for c in ranked[:limit]
    ]


def build_pr_leaderboard(
    contributors: Iterable[ContributorRollup], limit: int = DEFAULT_LIMIT
) -> list[ContributorView]:
    return build_leaderboard(contributors, Metric.MERGED_PRS, limit)


def build_review_leaderboard(
    contributors: Iterable[ContributorRollup], limit: int = DEFAULT_LIMIT
) -> list[ContributorView]:
    return build_leaderboard(contributors, Metric.REVIEWS, limit)
