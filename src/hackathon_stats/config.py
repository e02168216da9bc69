"""Hackathon configuration loading and validation."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigError
from .models import DateWindow

REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")

Status = Literal["upcoming", "ongoing", "ended"]


class GitHubConfig(BaseModel):
    """Where to collect activity from."""

    token: str | None = None
    organization: str | None = None
    repositories: list[str] = Field(default_factory=list)

    @field_validator("repositories")
    @classmethod
    def validate_repositories(cls, v: list[str]) -> list[str]:
        for repo in v:
            if not REPOSITORY_PATTERN.match(repo):
                msg = f"Repository must look like 'owner/name': {repo!r}"
                raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def require_target(self) -> GitHubConfig:
        if not self.organization and not self.repositories:
            msg = "Configure an organization, a repository list, or both"
            raise ValueError(msg)
        return self


class DisplayConfig(BaseModel):
    """Display tunables."""

    show_repo_stats: bool = True
    max_leaderboard_entries: int = Field(default=10, ge=1)
    show_prs_in_leaderboard: bool = True
    show_reviews_in_leaderboard: bool = True


SPONSOR_LEVELS = ("platinum", "gold", "silver", "bronze", "partner")

SponsorLevel = Literal["platinum", "gold", "silver", "bronze", "partner"]


class Prize(BaseModel):
    name: str
    description: str = ""
    value: str | None = None


class Sponsor(BaseModel):
    name: str
    level: SponsorLevel
    logo: str | None = None
    website: str | None = None


class HackathonConfig(BaseModel):
    """One measurement run."""

    slug: str = Field(pattern=r"^[A-Za-z0-9_-]+$")
    name: str
    description: str = ""
    rules: str | None = None
    organizer: str | None = None
    start_time: datetime
    end_time: datetime
    github: GitHubConfig
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    prizes: list[Prize] = Field(default_factory=list)
    sponsors: list[Sponsor] = Field(default_factory=list)
    sponsor_note: str | None = None
    sponsor_link: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_period(self) -> HackathonConfig:
        if self.start_time > self.end_time:
            msg = "start_time must not be after end_time"
            raise ValueError(msg)
        return self

    @property
    def window(self) -> DateWindow:
        return DateWindow(self.start_time, self.end_time)

    def sponsors_by_level(self) -> dict[str, list[Sponsor]]:
        """Sponsors grouped by level, highest first; empty levels omitted."""
        grouped: dict[str, list[Sponsor]] = {level: [] for level in SPONSOR_LEVELS}
        for sponsor in self.sponsors:
            grouped[sponsor.level].append(sponsor)
        return {level: sponsors for level, sponsors in grouped.items() if sponsors}

    def status(self, now: datetime | None = None) -> Status:
        now = now or datetime.now(timezone.utc)
        if now < self.start_time:
            return "upcoming"
        if now > self.end_time:
            return "ended"
        return "ongoing"

    def time_remaining(self, now: datetime | None = None) -> str:
        """Human readable countdown for listings."""
        now = now or datetime.now(timezone.utc)
        status = self.status(now)
        if status == "upcoming":
            days = math.ceil((self.start_time - now).total_seconds() / 86400)
            return f"Starts in {days} day{'s' if days != 1 else ''}"
        if status == "ended":
            return "Ended"
        remaining = (self.end_time - now).total_seconds()
        days = int(remaining // 86400)
        hours = int(remaining % 86400 // 3600)
        if days > 0:
            return f"{days} day{'s' if days != 1 else ''} remaining"
        if hours > 0:
            return f"{hours} hour{'s' if hours != 1 else ''} remaining"
        return "Ending soon"


class SiteConfig(BaseModel):
    site_name: str = "Hackathons"
    site_description: str = ""
    organization_name: str | None = None
    organization_url: str | None = None


class HackathonsFile(BaseModel):
    """Root of the configuration file."""

    hackathons: list[HackathonConfig] = Field(default_factory=list)
    site: SiteConfig = Field(default_factory=SiteConfig)

    @model_validator(mode="after")
    def unique_slugs(self) -> HackathonsFile:
        seen: set[str] = set()
        for hackathon in self.hackathons:
            if hackathon.slug in seen:
                msg = f"Duplicate hackathon slug: {hackathon.slug}"
                raise ValueError(msg)
            seen.add(hackathon.slug)
        return self

    def get(self, slug: str) -> HackathonConfig:
        for hackathon in self.hackathons:
            if hackathon.slug == slug:
                return hackathon
        msg = f"No hackathon with slug '{slug}'"
        raise ConfigError(msg)


_STATUS_ORDER = {"ongoing": 0, "upcoming": 1, "ended": 2}


def sort_for_display(
    hackathons: list[HackathonConfig], now: datetime | None = None
) -> list[HackathonConfig]:
    """Ongoing first, then upcoming by start, then ended by most recent end."""
    now = now or datetime.now(timezone.utc)

    def key(h: HackathonConfig) -> tuple[int, float]:
        status = h.status(now)
        if status == "ended":
            return (_STATUS_ORDER[status], -h.end_time.timestamp())
        return (_STATUS_ORDER[status], h.start_time.timestamp())

    return sorted(hackathons, key=key)


def load_config(path: str | Path) -> HackathonsFile:
    """Load and validate a YAML hackathons file."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise ConfigError(msg) from e

    try:
        return HackathonsFile.model_validate(raw or {})
    except ValidationError as e:
        msg = f"Invalid configuration in {path}: {e}"
        raise ConfigError(msg) from e
