"""Configuration management for nswag-build."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build settings loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    github_api_key: SecretStr | None = Field(
        default=None,
        description="GitHub API token; must be allowed to create pull requests",
    )
    nuget_api_key: SecretStr | None = Field(
        default=None, description="API key for the package feed being pushed to"
    )

    # Publishing
    push_to_nuget: bool = Field(
        default=False, description="Push to nuget.org instead of the MyGet feed"
    )
    configuration: str = Field(default="Release", description="dotnet build configuration")

    # Upstream release tracking
    upstream_owner: str = Field(default="RSuter", description="Owner of the upstream repo")
    upstream_repo: str = Field(default="NSwag", description="Name of the upstream repo")
    release_count: int = Field(default=2, ge=1, description="Releases fetched per run")
    repository: str | None = Field(
        default=None,
        description="owner/name of this repository, derived from origin when unset",
    )

    # Layout
    root_directory: Path = Field(default=Path("."), description="Repository root")
    source_directory: str = Field(default="src", description="Source dir, relative to root")
    output_directory: str = Field(default="output", description="Package output dir")
    temporary_directory: str = Field(default=".tmp", description="Scratch dir")
    project_name: str = Field(default="Nuke.NSwag", description="Plugin project name")
    generator_command: Annotated[
        list[str],
        Field(
            default_factory=lambda: ["dotnet", "run", "--project", "build/Generator"],
            description="Command line of the specification/code generator",
        ),
    ]

    # HTTP
    github_api_url: str = Field(default="https://api.github.com", description="GitHub API base")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def github_token(self) -> str:
        """The GitHub token as plain text, empty when not configured."""
        return self.github_api_key.get_secret_value() if self.github_api_key else ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
