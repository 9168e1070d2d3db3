"""Tests for the GitHub API client."""

from __future__ import annotations

import json

import httpx
import pytest

from nswag_build.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    ValidationError,
)
from nswag_build.github import GitHubClient


def _make_client(handler, token: str = "test-token") -> GitHubClient:
    return GitHubClient(
        token=token,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class TestGitHubClientHeaders:
    """Tests for request headers."""

    def test_authenticated_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        client = _make_client(handler)
        client.list_releases("RSuter", "NSwag")

        headers = seen[0].headers
        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert headers["User-Agent"].startswith("nswag-build/")
        assert client.authenticated is True

    def test_anonymous_has_no_authorization(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        client = _make_client(handler, token="  ")
        client.list_releases("RSuter", "NSwag")

        assert "Authorization" not in seen[0].headers
        assert client.authenticated is False

    def test_per_page_clamped(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        _make_client(handler).list_releases("RSuter", "NSwag", per_page=500)

        assert seen[0].url.params["per_page"] == "100"


class TestGitHubClientErrors:
    """Tests for error status mapping."""

    def test_auth_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(401, text="Bad credentials"))
        with pytest.raises(AuthError) as exc_info:
            client.list_releases("RSuter", "NSwag")
        assert exc_info.value.status_code == 401

    def test_forbidden_is_auth_error(self) -> None:
        client = _make_client(
            lambda request: httpx.Response(
                403, text="Resource not accessible", headers={"x-ratelimit-remaining": "4999"}
            )
        )
        with pytest.raises(AuthError):
            client.list_releases("RSuter", "NSwag")

    def test_rate_limit_error(self) -> None:
        client = _make_client(
            lambda request: httpx.Response(
                403,
                text="API rate limit exceeded",
                headers={"x-ratelimit-remaining": "0"},
            )
        )
        with pytest.raises(RateLimitError):
            client.list_releases("RSuter", "NSwag")

    def test_rate_limit_is_network_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(429, text="Too many requests"))
        with pytest.raises(NetworkError):
            client.list_releases("RSuter", "NSwag")

    def test_not_found_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(404, text="Not Found"))
        with pytest.raises(NotFoundError):
            client.list_releases("RSuter", "Missing")

    def test_validation_error(self) -> None:
        client = _make_client(
            lambda request: httpx.Response(422, json={"message": "Validation Failed"})
        )
        with pytest.raises(ValidationError, match="Validation Failed"):
            client.create_pull_request(
                "nuke-build/nswag", head="nswag-update", base="master", title="t", body="b"
            )

    def test_server_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(NetworkError) as exc_info:
            client.list_releases("RSuter", "NSwag")
        assert exc_info.value.status_code == 502

    def test_request_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection failed", request=request)

        with pytest.raises(NetworkError, match="Connection failed"):
            _make_client(handler).list_releases("RSuter", "NSwag")

    def test_invalid_json(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ParseError):
            client.list_releases("RSuter", "NSwag")

    def test_non_list_releases(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json={"message": "?"}))
        with pytest.raises(ParseError):
            client.list_releases("RSuter", "NSwag")


class TestGetCommitSha:
    """Tests for resolving a tag to its commit SHA."""

    def test_resolves_tag(self) -> None:
        seen: list[httpx.Request] = []
        sha = "3f786850e387550fdab836ed7e6dc881de23001b"

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"sha": sha, "commit": {"message": "Release"}})

        assert _make_client(handler).get_commit_sha("RSuter", "NSwag", "v13.2.0") == sha
        assert seen[0].url.path == "/repos/RSuter/NSwag/commits/v13.2.0"

    def test_unknown_tag(self) -> None:
        client = _make_client(lambda request: httpx.Response(404, text="Not Found"))
        with pytest.raises(NotFoundError):
            client.get_commit_sha("RSuter", "NSwag", "v99.0.0")

    def test_missing_sha(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json={"commit": {}}))
        with pytest.raises(ParseError, match="v13.2.0"):
            client.get_commit_sha("RSuter", "NSwag", "v13.2.0")


class TestPullRequests:
    """Tests for pull request helpers."""

    def test_find_open_pull_request_filters_by_head(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"number": 7, "html_url": "https://x/7"}])

        pr = _make_client(handler).find_open_pull_request("nuke-build/nswag", "nswag-update")

        assert pr == {"number": 7, "html_url": "https://x/7"}
        assert seen[0].url.path == "/repos/nuke-build/nswag/pulls"
        assert seen[0].url.params["state"] == "open"
        assert seen[0].url.params["head"] == "nuke-build:nswag-update"

    def test_find_open_pull_request_none(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, json=[]))
        assert client.find_open_pull_request("nuke-build/nswag", "nswag-update") is None

    def test_existing_pull_request_not_duplicated(self) -> None:
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200, json=[{"number": 7, "html_url": "https://x/pull/7"}])

        url = _make_client(handler).create_pull_request_if_needed(
            "nuke-build/nswag", "nswag-update", "Regenerate for NSwag update.", "body"
        )

        assert url == "https://x/pull/7"
        assert methods == ["GET"]

    def test_creates_pull_request_against_default_branch(self) -> None:
        created: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and request.url.path.endswith("/pulls"):
                return httpx.Response(200, json=[])
            if request.method == "GET":
                return httpx.Response(200, json={"default_branch": "develop"})
            created.append(json.loads(request.content))
            return httpx.Response(201, json={"number": 8, "html_url": "https://x/pull/8"})

        url = _make_client(handler).create_pull_request_if_needed(
            "nuke-build/nswag",
            "nswag-update",
            "Regenerate for NSwag update.",
            "Regenerate for NSwag v13.2.0.",
        )

        assert url == "https://x/pull/8"
        assert created == [
            {
                "title": "Regenerate for NSwag update.",
                "head": "nswag-update",
                "base": "develop",
                "body": "Regenerate for NSwag v13.2.0.",
            }
        ]

    def test_explicit_base_skips_repository_lookup(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(f"{request.method} {request.url.path}")
            if request.method == "GET":
                return httpx.Response(200, json=[])
            return httpx.Response(201, json={"number": 9, "html_url": "https://x/pull/9"})

        _make_client(handler).create_pull_request_if_needed(
            "nuke-build/nswag", "nswag-update", "t", "b", base="master"
        )

        assert paths == [
            "GET /repos/nuke-build/nswag/pulls",
            "POST /repos/nuke-build/nswag/pulls",
        ]


class TestGitHubClientLifecycle:
    """Tests for client ownership."""

    def test_close_owned_client(self) -> None:
        client = GitHubClient(token="t")
        inner = client._get_client()
        client.close()
        assert inner.is_closed
        assert client._client is None

    def test_injected_client_left_open(self) -> None:
        inner = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with GitHubClient(token="t", client=inner):
            pass
        assert not inner.is_closed
