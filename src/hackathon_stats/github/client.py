"""GitHub REST API client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..cache import ResponseCache
from ..exceptions import HttpError, RateLimitError, TransportError
from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"
PER_PAGE = 100

TOKEN_PREFIXES = ("ghp_", "github_pat_", "gho_")


def is_valid_token(token: str) -> bool:
    """Loose format check for personal, fine-grained and OAuth tokens."""
    return token.startswith(TOKEN_PREFIXES)


class GitHubClient:
    """Async GitHub REST API client with a per-URL response cache."""

    def __init__(
        self,
        token: str | None = None,
        no_cache: bool = False,
        cache: ResponseCache | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            if not is_valid_token(token):
                logger.warning(
                    "GitHub token format may be invalid; expected a ghp_, "
                    "github_pat_ or gho_ prefix"
                )
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or BASE_URL,
            headers=headers,
            timeout=timeout,
        )
        self._rate_limit = RateLimitMonitor()
        self._cache: ResponseCache | None = None
        if not no_cache:
            self._cache = cache if cache is not None else ResponseCache()

    @property
    def rate_limit(self) -> RateLimitMonitor:
        return self._rate_limit

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _get(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        try:
            response = await self._client.send(request)
        except httpx.TransportError as exc:
            logger.error("Error fetching from GitHub: %s (%s)", url, exc)
            raise TransportError(url, str(exc)) from exc

        self._rate_limit.update(response)
        if response.is_success:
            return response

        if response.status_code == 403:
            logger.warning("GitHub API rate limit may have been exceeded (%s)", url)
            raise RateLimitError(url, reset_at=self._rate_limit.reset_at)
        logger.error("GitHub API error %d for %s", response.status_code, url)
        raise HttpError(response.status_code, url)

    async def request(
        self, path: str, params: dict[str, Any] | None = None, use_cache: bool = True
    ) -> Any:
        """GET ``path`` and return parsed JSON, served from cache while fresh."""
        request = self._client.build_request("GET", path, params=params)
        url = str(request.url)

        if use_cache and self._cache is not None:
            cached = self._cache.get(url)
            if cached is not None:
                logger.debug("Cache hit: %s", url)
                return cached

        response = await self._get(request)
        data = response.json()
        if use_cache and self._cache is not None:
            self._cache.set(url, data)
        return data

    async def list_pull_requests_page(
        self, owner: str, repo: str, page: int, per_page: int = PER_PAGE
    ) -> list[dict[str, Any]]:
        """One page of pull requests, newest first."""
        return await self.request(
            f"/repos/{owner}/{repo}/pulls",
            params={
                "state": "all",
                "sort": "created",
                "direction": "desc",
                "per_page": per_page,
                "page": page,
            },
        )

    async def list_issues_page(
        self, owner: str, repo: str, page: int, per_page: int = PER_PAGE
    ) -> list[dict[str, Any]]:
        """One page of issues, newest first. Includes pull requests."""
        return await self.request(
            f"/repos/{owner}/{repo}/issues",
            params={
                "state": "all",
                "sort": "created",
                "direction": "desc",
                "per_page": per_page,
                "page": page,
            },
        )

    async def list_reviews(
        self, owner: str, repo: str, number: int
    ) -> list[dict[str, Any]]:
        """Reviews submitted on a pull request."""
        return await self.request(
            f"/repos/{owner}/{repo}/pulls/{number}/reviews",
            params={"per_page": PER_PAGE},
        )

    async def list_org_repos_page(
        self, org: str, page: int, per_page: int = PER_PAGE
    ) -> list[dict[str, Any]]:
        """One page of an organization's repositories."""
        return await self.request(
            f"/orgs/{org}/repos",
            params={"type": "all", "per_page": per_page, "page": page},
        )

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        return await self.request(f"/repos/{owner}/{repo}")

    async def get_rate_limit(self) -> dict[str, Any]:
        """Current rate limit status. Never cached."""
        return await self.request("/rate_limit", use_cache=False)
