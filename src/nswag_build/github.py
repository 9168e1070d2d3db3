"""GitHub REST API client.

The only module that talks to api.github.com: it lists upstream
releases and opens the regeneration pull request. HTTP error statuses
are mapped onto the ``nswag_build.errors`` taxonomy here and nowhere
else.
"""

from __future__ import annotations

from typing import Any

import httpx

from nswag_build import __version__
from nswag_build.constants import GITHUB_API_VERSION
from nswag_build.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    ValidationError,
)
from nswag_build.logging import get_logger

log = get_logger("nswag_build.github")


class GitHubClient:
    """Synchronous GitHub API client.

    An empty token is allowed; requests are then anonymous and subject
    to the lower unauthenticated rate limit.
    """

    def __init__(
        self,
        token: str = "",
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._token = token.strip()
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": f"nswag-build/{__version__}",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._api_base}{path}"
        try:
            resp = self._get_client().request(
                method, url, headers=self._headers(), params=params, json=json_body
            )
        except httpx.RequestError as exc:
            log.warning("github_request_failed", method=method, path=path, error=str(exc))
            raise NetworkError(f"GitHub request failed: {method} {path}: {exc}") from exc

        status = resp.status_code
        if status >= 400:
            self._raise_for_status(resp, method, path)
        if status == 204:
            return None

        try:
            return resp.json()
        except ValueError as exc:
            raise ParseError(f"GitHub returned invalid JSON for {method} {path}") from exc

    @staticmethod
    def _raise_for_status(resp: httpx.Response, method: str, path: str) -> None:
        status = resp.status_code
        text = resp.text or ""
        message = f"GitHub API error {status} {method} {path}: {text[:200]}"
        log.debug("github_error_response", status=status, method=method, path=path)

        if status == 401:
            raise AuthError(message, status_code=status)
        if status in (403, 429):
            remaining = resp.headers.get("x-ratelimit-remaining")
            if status == 429 or remaining == "0" or "rate limit" in text.lower():
                raise RateLimitError(message, status_code=status)
            raise AuthError(message, status_code=status)
        if status == 404:
            raise NotFoundError(message, status_code=status)
        if status == 422:
            raise ValidationError(message, status_code=status)
        raise NetworkError(message, status_code=status)

    # ------------------------------------------------------------------
    # Releases
    # ------------------------------------------------------------------

    def list_releases(self, owner: str, repo: str, per_page: int = 30) -> list[dict[str, Any]]:
        """Return raw release payloads, newest first as GitHub orders them."""
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/releases",
            params={"per_page": max(1, min(per_page, 100))},
        )
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of releases for {owner}/{repo}")
        return data

    def get_commit_sha(self, owner: str, repo: str, ref: str) -> str:
        """Resolve a tag, branch or abbreviated SHA to a full commit SHA."""
        data = self._request("GET", f"/repos/{owner}/{repo}/commits/{ref}")
        sha = data.get("sha") if isinstance(data, dict) else None
        if not isinstance(sha, str) or not sha:
            raise ParseError(f"No commit SHA for {owner}/{repo}@{ref}")
        return sha

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    def get_default_branch(self, repository: str) -> str:
        data = self._request("GET", f"/repos/{repository}")
        return str(data.get("default_branch") or "master")

    def find_open_pull_request(self, repository: str, head_branch: str) -> dict[str, Any] | None:
        """Return the open pull request whose head is ``head_branch``, if any."""
        owner = repository.split("/", 1)[0]
        data = self._request(
            "GET",
            f"/repos/{repository}/pulls",
            params={"state": "open", "head": f"{owner}:{head_branch}"},
        )
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of pull requests for {repository}")
        return data[0] if data else None

    def create_pull_request(
        self,
        repository: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> dict[str, Any]:
        data = self._request(
            "POST",
            f"/repos/{repository}/pulls",
            json_body={"title": title, "head": head, "base": base, "body": body},
        )
        log.info("pull_request_created", repository=repository, number=data.get("number"))
        return data

    def create_pull_request_if_needed(
        self,
        repository: str,
        branch: str,
        title: str,
        body: str,
        base: str | None = None,
    ) -> str:
        """Open a pull request from ``branch`` unless one is already open.

        Returns the pull request's URL either way.
        """
        existing = self.find_open_pull_request(repository, branch)
        if existing is not None:
            log.info(
                "pull_request_exists",
                repository=repository,
                branch=branch,
                number=existing.get("number"),
            )
            return str(existing.get("html_url", ""))

        target = base or self.get_default_branch(repository)
        created = self.create_pull_request(
            repository, head=branch, base=target, title=title, body=body
        )
        return str(created.get("html_url", ""))
