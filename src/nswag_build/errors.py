"""Exception hierarchy for nswag-build.

Release-service failures are surfaced to the caller without retries.
Malformed input data is always fatal to the current decision.
"""

from __future__ import annotations


class NswagBuildError(Exception):
    """Base class for every error raised by nswag-build."""


# ------------------------------------------------------------------
# Release service (GitHub)
# ------------------------------------------------------------------


class ReleaseServiceError(NswagBuildError):
    """The release-hosting service could not answer a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(ReleaseServiceError):
    """Transport failure or an unexpected error status."""


class RateLimitError(NetworkError):
    """The service's rate limit was exhausted."""


class AuthError(ReleaseServiceError):
    """The credential is missing, invalid or expired."""


class NotFoundError(ReleaseServiceError):
    """The repository (or the resource within it) does not resolve."""


class ValidationError(ReleaseServiceError):
    """The service rejected the request payload."""


# ------------------------------------------------------------------
# Malformed input data
# ------------------------------------------------------------------


class ParseError(NswagBuildError):
    """A recorded reference or service payload could not be parsed."""


class VersionFormatError(NswagBuildError):
    """A release version is not a semantic version."""


class InvalidReferenceError(NswagBuildError):
    """A commit reference is too short to yield a full prefix."""


# ------------------------------------------------------------------
# Build pipeline
# ------------------------------------------------------------------


class CommandError(NswagBuildError):
    """An external tool exited with a non-zero status or is missing."""

    def __init__(self, message: str, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class RequirementError(NswagBuildError):
    """A precondition of a build target is not met."""
