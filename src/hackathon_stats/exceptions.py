"""Exceptions raised by hackathon-stats.

Hierarchy:
    HackathonStatsError
    ├── TransportError (network failure reaching GitHub)
    ├── HttpError (non-2xx response)
    │   └── RateLimitError (403, likely rate limited)
    ├── RepositoryCollectionError (a whole repository branch failed)
    ├── OrganizationResolutionError (no repositories could be resolved)
    ├── AggregationRunError (nothing usable could be collected)
    └── ConfigError (invalid or unreadable configuration file)

Per-page and per-repository failures are logged and degraded by the
collector and fan-out layers; only the last three normally reach the CLI.
"""

from __future__ import annotations


class HackathonStatsError(Exception):
    """Base exception for hackathon-stats."""


class TransportError(HackathonStatsError):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Could not reach {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url


class HttpError(HackathonStatsError):
    """Raised when GitHub answers with a non-success status."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"GitHub API error: {status} ({url})")
        self.status = status
        self.url = url


class RateLimitError(HttpError):
    """A 403 response, which GitHub uses for an exhausted rate limit."""

    def __init__(self, url: str, reset_at: float | None = None) -> None:
        super().__init__(403, url)
        self.reset_at = reset_at


class RepositoryCollectionError(HackathonStatsError):
    """Raised when collection for one repository fails outright."""

    def __init__(self, repository: str, reason: str = "") -> None:
        message = f"Failed to collect {repository}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.repository = repository


class OrganizationResolutionError(HackathonStatsError):
    """Raised when neither the organization nor the explicit list yield repositories."""

    def __init__(self, organization: str | None) -> None:
        target = f" for organization '{organization}'" if organization else ""
        super().__init__(f"No repositories could be resolved{target}")
        self.organization = organization


class AggregationRunError(HackathonStatsError):
    """Raised when a run cannot produce any usable statistics."""


class ConfigError(HackathonStatsError):
    """Raised when the hackathons configuration cannot be loaded."""
