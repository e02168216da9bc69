"""Data models for hackathon-stats."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Union

GHOST_LOGIN = "ghost"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def day_key(ts: datetime) -> str:
    """Calendar date (UTC) of a timestamp as YYYY-MM-DD."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class DateWindow:
    """Inclusive measurement period."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_utc(self.start))
        object.__setattr__(self, "end", _as_utc(self.end))
        if self.start > self.end:
            raise ValueError(
                f"Window start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def from_iso(cls, start: str, end: str) -> DateWindow:
        start_ts = parse_timestamp(start)
        end_ts = parse_timestamp(end)
        if start_ts is None or end_ts is None:
            raise ValueError("Window start and end are required")
        return cls(start_ts, end_ts)

    def contains(self, ts: datetime | None) -> bool:
        if ts is None:
            return False
        return self.start <= ts <= self.end

    def dates(self) -> list[str]:
        """Every calendar date from start to end, both inclusive."""
        days: list[str] = []
        current: date = self.start.date()
        last: date = self.end.date()
        while current <= last:
            days.append(current.isoformat())
            current += timedelta(days=1)
        return days


class RecordKind(str, enum.Enum):
    PULL_REQUEST = "pull_request"
    ISSUE = "issue"
    REVIEW = "review"


class ReviewState(str, enum.Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


@dataclass(frozen=True)
class Author:
    login: str
    avatar_url: str | None = None
    profile_url: str | None = None

    @classmethod
    def from_api(cls, user: dict[str, Any] | None) -> Author:
        # Deleted accounts come back as null users
        if not user:
            return cls(login=GHOST_LOGIN)
        return cls(
            login=user.get("login") or GHOST_LOGIN,
            avatar_url=user.get("avatar_url"),
            profile_url=user.get("html_url"),
        )


@dataclass(frozen=True)
class PullRequest:
    id: int
    number: int
    repository: str
    author: Author
    title: str
    state: str
    html_url: str | None
    created_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    kind: RecordKind = field(default=RecordKind.PULL_REQUEST, init=False)

    @classmethod
    def from_api(cls, payload: dict[str, Any], repository: str) -> PullRequest:
        merged_at = parse_timestamp(payload.get("merged_at"))
        return cls(
            id=payload["id"],
            number=payload.get("number", 0),
            repository=repository,
            author=Author.from_api(payload.get("user")),
            title=payload.get("title") or "",
            state="merged" if merged_at else payload.get("state", "open"),
            html_url=payload.get("html_url"),
            created_at=parse_timestamp(payload["created_at"]),
            merged_at=merged_at,
            closed_at=parse_timestamp(payload.get("closed_at")),
        )

    @property
    def resolved_at(self) -> datetime | None:
        return self.merged_at

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None


@dataclass(frozen=True)
class Issue:
    id: int
    number: int
    repository: str
    author: Author
    title: str
    state: str
    html_url: str | None
    created_at: datetime
    closed_at: datetime | None = None
    kind: RecordKind = field(default=RecordKind.ISSUE, init=False)

    @classmethod
    def from_api(cls, payload: dict[str, Any], repository: str) -> Issue:
        return cls(
            id=payload["id"],
            number=payload.get("number", 0),
            repository=repository,
            author=Author.from_api(payload.get("user")),
            title=payload.get("title") or "",
            state=payload.get("state", "open"),
            html_url=payload.get("html_url"),
            created_at=parse_timestamp(payload["created_at"]),
            closed_at=parse_timestamp(payload.get("closed_at")),
        )

    @property
    def resolved_at(self) -> datetime | None:
        return self.closed_at

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"


@dataclass(frozen=True)
class Review:
    id: int
    repository: str
    author: Author
    state: ReviewState
    html_url: str | None
    submitted_at: datetime
    pull_request_number: int
    pull_request_title: str
    kind: RecordKind = field(default=RecordKind.REVIEW, init=False)

    @classmethod
    def from_api(
        cls,
        payload: dict[str, Any],
        repository: str,
        pull_request_number: int,
        pull_request_title: str,
    ) -> Review:
        return cls(
            id=payload["id"],
            repository=repository,
            author=Author.from_api(payload.get("user")),
            state=ReviewState(str(payload.get("state", "COMMENTED")).upper()),
            html_url=payload.get("html_url"),
            submitted_at=parse_timestamp(payload["submitted_at"]),
            pull_request_number=pull_request_number,
            pull_request_title=pull_request_title,
        )

    @property
    def created_at(self) -> datetime:
        return self.submitted_at

    @property
    def resolved_at(self) -> datetime:
        return self.submitted_at


ActivityRecord = Union[PullRequest, Issue, Review]


@dataclass
class ContributorRollup:
    """Accumulated activity for one login within a single run."""

    login: str
    avatar_url: str | None = None
    profile_url: str | None = None
    pull_requests: list[PullRequest] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    total_prs: int = 0
    merged_prs: int = 0
    review_count: int = 0

    @property
    def is_contributor(self) -> bool:
        """Whether this login authored any pull request in the window."""
        return self.total_prs > 0

    def add_pull_request(self, pr: PullRequest) -> None:
        self.pull_requests.append(pr)
        self.total_prs += 1
        if pr.is_merged:
            self.merged_prs += 1

    def add_review(self, review: Review) -> None:
        self.reviews.append(review)
        self.review_count += 1


def _validate_login(login: str) -> str:
    if not isinstance(login, str) or not login.strip():
        raise ValueError(f"Invalid login: {login!r}")
    return login


class ContributorMap:
    """Rollups keyed by login, in first-seen order.

    Entries are only created through :meth:`upsert`; an existing rollup is
    always returned rather than replaced.
    """

    def __init__(self) -> None:
        self._rollups: dict[str, ContributorRollup] = {}

    def upsert(self, author: Author) -> ContributorRollup:
        login = _validate_login(author.login)
        rollup = self._rollups.get(login)
        if rollup is None:
            rollup = ContributorRollup(
                login=login,
                avatar_url=author.avatar_url,
                profile_url=author.profile_url,
            )
            self._rollups[login] = rollup
        return rollup

    def get(self, login: str) -> ContributorRollup | None:
        return self._rollups.get(login)

    def logins(self) -> list[str]:
        return list(self._rollups)

    def __contains__(self, login: object) -> bool:
        return login in self._rollups

    def __len__(self) -> int:
        return len(self._rollups)

    def __iter__(self) -> Iterator[ContributorRollup]:
        return iter(self._rollups.values())


@dataclass
class RepositoryStat:
    total_prs: int = 0
    merged_prs: int = 0
    total_issues: int = 0
    closed_issues: int = 0


@dataclass
class DailyActivity:
    total: int = 0
    merged: int = 0


@dataclass
class PullRequestStats:
    """Output of one aggregation run."""

    total_prs: int = 0
    merged_prs: int = 0
    total_issues: int = 0
    closed_issues: int = 0
    contributors: ContributorMap = field(default_factory=ContributorMap)
    daily_activity: dict[str, DailyActivity] = field(default_factory=dict)
    repo_stats: dict[str, RepositoryStat] = field(default_factory=dict)
    # date -> repository -> merged PRs, for per-repository activity charts
    daily_merged_by_repo: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def participant_count(self) -> int:
        return len(self.contributors)


@dataclass(frozen=True)
class ContributorView:
    """One leaderboard entry."""

    login: str
    avatar_url: str | None
    profile_url: str | None
    value: int
    records: tuple[ActivityRecord, ...] = ()
    is_contributor: bool = False

    def highlights(self, limit: int = 5) -> list[ActivityRecord]:
        return list(self.records[:limit])


@dataclass
class HackathonReport:
    slug: str
    name: str
    window: DateWindow
    repositories: list[str]
    stats: PullRequestStats
    leaderboard: list[ContributorView] = field(default_factory=list)
    review_leaderboard: list[ContributorView] = field(default_factory=list)
    failed_stages: list[str] = field(default_factory=list)
    repo_data: list[dict[str, Any]] = field(default_factory=list)
    generated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def participant_count(self) -> int:
        return self.stats.participant_count
