"""Centralized constants for nswag-build."""

# Upstream
UPSTREAM_PACKAGE_ID = "NSwag.Commands"
UPSTREAM_DISPLAY_NAME = "NSwag"

# Generated specification artifacts
SPECIFICATION_FILE_NAME = "NSwag.json"
COMMIT_REFERENCE_PREFIX_LENGTH = 10

# Package feeds
NUGET_SOURCE = "https://api.nuget.org/v3/index.json"
NUGET_SYMBOL_SOURCE = "https://nuget.smbsrc.net"
MYGET_SOURCE = "https://www.myget.org/F/nukebuild/api/v2/package"
MYGET_SYMBOL_SOURCE = "https://www.myget.org/F/nukebuild/symbols/api/v2/package"

# Regeneration
UPDATE_BRANCH = "nswag-update"
UPDATE_MESSAGE = f"Regenerate for {UPSTREAM_DISPLAY_NAME}"
RELEASE_BRANCH = "master"

# GitHub API
GITHUB_API_VERSION = "2022-11-28"
