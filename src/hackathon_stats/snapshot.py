"""JSON snapshots of a hackathon report.

A snapshot is written out-of-band (for example from a scheduled job) and
later served verbatim, so a presentation layer never has to re-aggregate.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from .models import (
    ActivityRecord,
    ContributorView,
    HackathonReport,
    Issue,
    PullRequest,
    Review,
)

logger = logging.getLogger(__name__)


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat().replace("+00:00", "Z") if ts else None


def record_to_dict(record: ActivityRecord) -> dict[str, Any]:
    base: dict[str, Any] = {
        "kind": record.kind.value,
        "id": record.id,
        "repository": record.repository,
        "author": record.author.login,
        "htmlUrl": record.html_url,
    }
    if isinstance(record, PullRequest):
        base.update(
            number=record.number,
            title=record.title,
            state=record.state,
            createdAt=_iso(record.created_at),
            mergedAt=_iso(record.merged_at),
        )
    elif isinstance(record, Issue):
        base.update(
            number=record.number,
            title=record.title,
            state=record.state,
            createdAt=_iso(record.created_at),
            closedAt=_iso(record.closed_at),
        )
    elif isinstance(record, Review):
        base.update(
            state=record.state.value,
            submittedAt=_iso(record.submitted_at),
            pullRequestNumber=record.pull_request_number,
            pullRequestTitle=record.pull_request_title,
        )
    else:
        raise TypeError(f"Unsupported record type: {type(record).__name__}")
    return base


def view_to_dict(view: ContributorView) -> dict[str, Any]:
    return {
        "login": view.login,
        "avatarUrl": view.avatar_url,
        "profileUrl": view.profile_url,
        "value": view.value,
        "isContributor": view.is_contributor,
        "records": [record_to_dict(r) for r in view.records],
    }


def build_snapshot(report: HackathonReport) -> dict[str, Any]:
    stats = report.stats
    return {
        "hackathon": {
            "slug": report.slug,
            "name": report.name,
            "startTime": _iso(report.window.start),
            "endTime": _iso(report.window.end),
        },
        "repositories": list(report.repositories),
        "stats": {
            "totalPRs": stats.total_prs,
            "mergedPRs": stats.merged_prs,
            "totalIssues": stats.total_issues,
            "closedIssues": stats.closed_issues,
            "participantCount": stats.participant_count,
            "dailyActivity": {
                day: {"total": bucket.total, "merged": bucket.merged}
                for day, bucket in stats.daily_activity.items()
            },
            "dailyMergedPRs": {
                day: bucket.merged for day, bucket in stats.daily_activity.items()
            },
            "dailyMergedByRepo": stats.daily_merged_by_repo,
            "repoStats": {
                repo: {
                    "total": stat.total_prs,
                    "merged": stat.merged_prs,
                    "issues": stat.total_issues,
                    "closedIssues": stat.closed_issues,
                }
                for repo, stat in stats.repo_stats.items()
            },
            "repoData": report.repo_data,
            "leaderboard": [view_to_dict(v) for v in report.leaderboard],
            "reviewLeaderboard": [view_to_dict(v) for v in report.review_leaderboard],
            "failedStages": report.failed_stages,
        },
        "lastUpdated": _iso(report.generated_at),
    }


def dumps_snapshot(report: HackathonReport) -> str:
    return json.dumps(build_snapshot(report), indent=2, ensure_ascii=False)


def write_snapshot(report: HackathonReport, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_snapshot(report), encoding="utf-8")
    logger.info("Wrote snapshot for %s to %s", report.slug, path)
    return path


def read_snapshot(path: str | Path) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))
