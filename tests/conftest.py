"""Shared pytest configuration."""

import pytest

from nswag_build.config import get_settings

_SETTINGS_ENV = (
    "GITHUB_API_KEY",
    "NUGET_API_KEY",
    "PUSH_TO_NUGET",
    "CONFIGURATION",
    "REPOSITORY",
    "ROOT_DIRECTORY",
    "ENVIRONMENT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep the developer's environment out of Settings and reset the cache."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
