"""Data models for upstream release tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from nswag_build.errors import ParseError


class VersionBump(Enum):
    """Semantic-version category by which a release differs from another."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


@dataclass(frozen=True)
class Release:
    """One published release of the upstream dependency."""

    tag: str
    version: str  # normalised, no 'v' prefix
    commit_reference: str
    published_at: datetime | None = None
    html_url: str = ""
    prerelease: bool = False
    draft: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Release:
        """Build a release from a GitHub ``/releases`` payload entry."""
        if not isinstance(data, dict):
            raise ParseError(f"Release entry must be an object, got {type(data).__name__}")

        tag = data.get("tag_name")
        if not isinstance(tag, str) or not tag:
            raise ParseError("Release entry has no tag_name")

        published_raw = data.get("published_at")
        published_at: datetime | None = None
        if published_raw:
            try:
                published_at = datetime.fromisoformat(str(published_raw).replace("Z", "+00:00"))
            except ValueError as exc:
                raise ParseError(f"Invalid published_at for {tag}: {published_raw!r}") from exc

        return cls(
            tag=tag,
            version=tag.strip().lstrip("vV"),
            commit_reference=str(data.get("target_commitish") or ""),
            published_at=published_at,
            html_url=str(data.get("html_url") or ""),
            prerelease=bool(data.get("prerelease", False)),
            draft=bool(data.get("draft", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "version": self.version,
            "commit_reference": self.commit_reference,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "html_url": self.html_url,
            "prerelease": self.prerelease,
        }


@dataclass(frozen=True)
class UpdateCheck:
    """Outcome of comparing one release snapshot against the recorded artifact."""

    latest: Release
    previous: Release | None
    update_available: bool
    bump: VersionBump | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "latest": self.latest.to_dict(),
            "previous": self.previous.to_dict() if self.previous else None,
            "update_available": self.update_available,
            "bump": self.bump.value if self.bump else None,
        }
