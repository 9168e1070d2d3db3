"""Release update checker.

Decides whether the generated plugin code is stale relative to the
latest upstream release and which version bump that release represents.
Version comparison and prefix selection are pure functions; the only
I/O is the release query and reading the recorded specification file.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from nswag_build.constants import COMMIT_REFERENCE_PREFIX_LENGTH
from nswag_build.errors import (
    InvalidReferenceError,
    NotFoundError,
    ParseError,
    VersionFormatError,
)
from nswag_build.github import GitHubClient
from nswag_build.logging import get_logger
from nswag_build.updater.models import Release, UpdateCheck, VersionBump

log = get_logger("nswag_build.updater.checker")

# Semver regex: v1.2.3, 1.2.3-alpha-1 or 1.2.3+build.5 (optional leading 'v')
_SEMVER_RE = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)

# A commit reference embedded in a GitHub blob/raw URL
_REFERENCE_URL_RE = re.compile(
    r"(?:github\.com/[^/]+/[^/]+/(?:blob|tree|raw)/|raw\.githubusercontent\.com/[^/]+/[^/]+/)"
    r"(?P<ref>[^/\s\"']+)/"
)


def _publication_order(release: Release) -> tuple[bool, float]:
    if release.published_at is None:
        return (False, 0.0)
    return (True, release.published_at.timestamp())


def parse_semver(version_str: str) -> tuple[int, int, int, str] | None:
    """Parse a semver string into (major, minor, patch, pre).

    Returns None if the string is not valid semver.
    """
    m = _SEMVER_RE.match(version_str.strip())
    if m is None:
        return None
    return (
        int(m.group("major")),
        int(m.group("minor")),
        int(m.group("patch")),
        m.group("pre") or "",
    )


def compute_bump(latest: Release, previous: Release) -> VersionBump:
    """Return the bump category between two releases, newest first.

    Major takes precedence over minor, which takes precedence over patch.
    Pre-release labels are ignored.
    """
    new = parse_semver(latest.version)
    if new is None:
        raise VersionFormatError(f"Not a semantic version: {latest.version!r} ({latest.tag})")
    old = parse_semver(previous.version)
    if old is None:
        raise VersionFormatError(f"Not a semantic version: {previous.version!r} ({previous.tag})")

    if new[0] != old[0]:
        return VersionBump.MAJOR
    if new[1] != old[1]:
        return VersionBump.MINOR
    if new[2] != old[2]:
        return VersionBump.PATCH
    return VersionBump.NONE


def select_commit_reference_prefix(release: Release) -> str:
    """Return the fixed-length commit prefix embedded in generated artifacts.

    A reference shorter than the prefix length (a branch name such as
    ``master``, for instance) is rejected instead of being used as-is.
    """
    reference = release.commit_reference.strip()
    if len(reference) < COMMIT_REFERENCE_PREFIX_LENGTH:
        raise InvalidReferenceError(
            f"Commit reference {reference!r} of {release.tag} is shorter than "
            f"{COMMIT_REFERENCE_PREFIX_LENGTH} characters"
        )
    return reference[:COMMIT_REFERENCE_PREFIX_LENGTH]


def read_recorded_reference(spec_path: Path) -> str | None:
    """Read the commit reference recorded in a generated specification file.

    Returns None when the file does not exist. Looks for a top-level
    ``gitReference`` first, then for the first ``references`` URL that
    points at a commit in a GitHub repository.
    """
    if not spec_path.exists():
        return None

    try:
        document = json.loads(spec_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Cannot read specification {spec_path}: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError(f"Specification {spec_path} is not a JSON object")

    git_reference = document.get("gitReference")
    if isinstance(git_reference, str) and git_reference.strip():
        return git_reference.strip()

    references = document.get("references")
    if isinstance(references, list):
        for entry in references:
            if not isinstance(entry, str):
                continue
            m = _REFERENCE_URL_RE.search(entry)
            if m is not None:
                return m.group("ref")

    raise ParseError(f"No recorded commit reference in {spec_path}")


def is_update_available(latest: Release, spec_path: Path) -> bool:
    """Return True if ``latest`` differs from the reference recorded in ``spec_path``.

    A missing specification file always means an update is available.
    """
    recorded = read_recorded_reference(spec_path)
    if recorded is None:
        log.info("no_recorded_reference", spec_path=str(spec_path))
        return True

    current = select_commit_reference_prefix(latest)
    available = current != recorded
    log.debug(
        "recorded_reference_compared",
        recorded=recorded,
        latest=current,
        update_available=available,
    )
    return available


class ReleaseUpdateChecker:
    """Queries upstream releases and compares them with the generated code.

    Typical flow::

        releases = checker.fetch_latest_releases("RSuter", "NSwag", count=2)
        result = checker.check(releases, spec_dir / "NSwag.json")

    The caller keeps the fetched snapshot and passes it to every step that
    needs it; nothing is cached here.
    """

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    def fetch_latest_releases(self, owner: str, repo: str, count: int = 2) -> list[Release]:
        """Return the ``count`` most recent published releases, newest first.

        The credential is the token the ``GitHubClient`` was built with; an
        anonymous client works but is subject to GitHub's lower rate limit.

        A release's ``target_commitish`` is usually a branch name, so each
        returned release has its tag resolved to the commit SHA it points at.
        """
        if count < 1:
            raise ValueError("count must be >= 1")

        # Over-fetch so drafts can be dropped without falling short
        payload = self._client.list_releases(owner, repo, per_page=max(count, 10))
        releases = [Release.from_api(entry) for entry in payload]
        published = [r for r in releases if not r.draft]

        # Stable: releases with equal timestamps keep the service's order
        published.sort(key=_publication_order, reverse=True)
        latest = [
            replace(r, commit_reference=self._client.get_commit_sha(owner, repo, r.tag))
            for r in published[:count]
        ]
        log.info(
            "releases_fetched",
            repository=f"{owner}/{repo}",
            count=len(latest),
            latest=latest[0].tag if latest else None,
        )
        return latest

    def check(self, releases: Sequence[Release], spec_path: Path) -> UpdateCheck:
        """Decide staleness and bump for one snapshot of releases."""
        if not releases:
            raise NotFoundError("No published releases to compare against")

        latest = releases[0]
        previous = releases[1] if len(releases) > 1 else None

        available = is_update_available(latest, spec_path)
        bump = compute_bump(latest, previous) if previous is not None else None

        log.info(
            "update_checked",
            latest=latest.version,
            previous=previous.version if previous else None,
            update_available=available,
            bump=bump.value if bump else None,
        )
        return UpdateCheck(
            latest=latest,
            previous=previous,
            update_available=available,
            bump=bump,
        )
