"""Upstream release tracking.

Decides whether the generated plugin code is stale relative to the
latest NSwag release, and which semantic-version bump a new release
represents.
"""

from nswag_build.updater.checker import (
    ReleaseUpdateChecker,
    compute_bump,
    is_update_available,
    parse_semver,
    read_recorded_reference,
    select_commit_reference_prefix,
)
from nswag_build.updater.models import Release, UpdateCheck, VersionBump

__all__ = [
    "Release",
    "ReleaseUpdateChecker",
    "UpdateCheck",
    "VersionBump",
    "compute_bump",
    "is_update_available",
    "parse_semver",
    "read_recorded_reference",
    "select_commit_reference_prefix",
]
