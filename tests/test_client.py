"""Tests for the GitHub client module."""

from __future__ import annotations

import httpx
import pytest
import respx

from hackathon_stats.cache import ResponseCache
from hackathon_stats.exceptions import HttpError, RateLimitError, TransportError
from hackathon_stats.github.client import GitHubClient, is_valid_token


def test_client_instantiation():
    client = GitHubClient(token="ghp_testtoken")
    assert client._client.headers["Authorization"] == "Bearer ghp_testtoken"
    assert client._client.headers["Accept"] == "application/vnd.github.v3+json"


def test_client_without_token_sends_no_authorization():
    client = GitHubClient()
    assert "Authorization" not in client._client.headers


def test_client_no_cache():
    client = GitHubClient(no_cache=True)
    assert client._cache is None


def test_client_uses_given_cache():
    cache = ResponseCache(ttl=1)
    client = GitHubClient(cache=cache)
    assert client._cache is cache


def test_token_format():
    assert is_valid_token("ghp_abc")
    assert is_valid_token("github_pat_abc")
    assert is_valid_token("gho_abc")
    assert not is_valid_token("abc")


def test_invalid_token_logs_warning(caplog):
    GitHubClient(token="not-a-token")
    assert "token format may be invalid" in caplog.text


@pytest.mark.asyncio
async def test_client_context_manager():
    async with GitHubClient(no_cache=True) as client:
        assert client is not None


@pytest.mark.asyncio
@respx.mock
async def test_request_returns_json():
    route = respx.get(path="/repos/org/repo").mock(
        return_value=httpx.Response(200, json={"full_name": "org/repo"})
    )
    async with GitHubClient(token="ghp_test") as client:
        data = await client.get_repository("org", "repo")
    assert data == {"full_name": "org/repo"}
    assert route.calls.last.request.headers["Authorization"] == "Bearer ghp_test"


@pytest.mark.asyncio
@respx.mock
async def test_request_is_cached_by_url():
    route = respx.get(path="/repos/org/repo/pulls").mock(
        return_value=httpx.Response(200, json=[{"id": 1}])
    )
    async with GitHubClient() as client:
        first = await client.list_pull_requests_page("org", "repo", 1)
        second = await client.list_pull_requests_page("org", "repo", 1)
    assert first == second == [{"id": 1}]
    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_different_pages_are_cached_separately():
    route = respx.get(path="/repos/org/repo/pulls").mock(
        return_value=httpx.Response(200, json=[])
    )
    async with GitHubClient() as client:
        await client.list_pull_requests_page("org", "repo", 1)
        await client.list_pull_requests_page("org", "repo", 2)
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_stale_cache_entry_is_refetched():
    now = [0.0]
    cache = ResponseCache(ttl=300, clock=lambda: now[0])
    route = respx.get(path="/repos/org/repo").mock(
        side_effect=[
            httpx.Response(200, json={"v": 1}),
            httpx.Response(200, json={"v": 2}),
        ]
    )
    async with GitHubClient(cache=cache) as client:
        assert await client.get_repository("org", "repo") == {"v": 1}
        now[0] = 301.0
        assert await client.get_repository("org", "repo") == {"v": 2}
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_no_cache_always_fetches():
    route = respx.get(path="/repos/org/repo").mock(
        return_value=httpx.Response(200, json={})
    )
    async with GitHubClient(no_cache=True) as client:
        await client.get_repository("org", "repo")
        await client.get_repository("org", "repo")
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_pull_request_page_params():
    route = respx.get(path="/repos/org/repo/pulls").mock(
        return_value=httpx.Response(200, json=[])
    )
    async with GitHubClient() as client:
        await client.list_pull_requests_page("org", "repo", 3)
    params = route.calls.last.request.url.params
    assert params["state"] == "all"
    assert params["sort"] == "created"
    assert params["direction"] == "desc"
    assert params["per_page"] == "100"
    assert params["page"] == "3"


@pytest.mark.asyncio
@respx.mock
async def test_http_error_status():
    respx.get(path="/repos/org/missing").mock(return_value=httpx.Response(404))
    async with GitHubClient() as client:
        with pytest.raises(HttpError) as exc_info:
            await client.get_repository("org", "missing")
    assert exc_info.value.status == 404
    assert not isinstance(exc_info.value, RateLimitError)


@pytest.mark.asyncio
@respx.mock
async def test_forbidden_is_rate_limit(caplog):
    respx.get(path="/repos/org/repo").mock(
        return_value=httpx.Response(
            403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
        )
    )
    async with GitHubClient() as client:
        with pytest.raises(RateLimitError) as exc_info:
            await client.get_repository("org", "repo")
    assert exc_info.value.status == 403
    assert exc_info.value.reset_at == 1700000000.0
    assert "rate limit may have been exceeded" in caplog.text


@pytest.mark.asyncio
@respx.mock
async def test_errors_are_not_cached():
    route = respx.get(path="/repos/org/repo").mock(
        side_effect=[httpx.Response(500), httpx.Response(200, json={"ok": True})]
    )
    async with GitHubClient() as client:
        with pytest.raises(HttpError):
            await client.get_repository("org", "repo")
        assert await client.get_repository("org", "repo") == {"ok": True}
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_transport_error():
    respx.get(path="/repos/org/repo").mock(side_effect=httpx.ConnectError("boom"))
    async with GitHubClient() as client:
        with pytest.raises(TransportError):
            await client.get_repository("org", "repo")


@pytest.mark.asyncio
@respx.mock
async def test_rate_limit_headers_tracked():
    respx.get(path="/repos/org/repo").mock(
        return_value=httpx.Response(
            200, json={}, headers={"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "1"}
        )
    )
    async with GitHubClient() as client:
        await client.get_repository("org", "repo")
        assert client.rate_limit.remaining == 42
        assert not client.rate_limit.is_low


@pytest.mark.asyncio
@respx.mock
async def test_rate_limit_endpoint_is_never_cached():
    route = respx.get(path="/rate_limit").mock(
        return_value=httpx.Response(200, json={"resources": {"core": {"remaining": 5}}})
    )
    async with GitHubClient() as client:
        await client.get_rate_limit()
        await client.get_rate_limit()
    assert route.call_count == 2
