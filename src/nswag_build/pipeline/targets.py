"""Build targets for the NSwag plugin.

Targets form a small dependency graph::

    clean -> download_packages -> generate -> compile_plugin -> pack -> push
                                                            \\-> regenerate

``BuildPipeline.run(target)`` executes a target after its dependencies,
each at most once. Upstream releases are fetched once per run, before
any target executes, and handed to the targets that need them.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path

from nswag_build.config import Settings
from nswag_build.constants import (
    MYGET_SOURCE,
    MYGET_SYMBOL_SOURCE,
    NUGET_SOURCE,
    NUGET_SYMBOL_SOURCE,
    RELEASE_BRANCH,
    SPECIFICATION_FILE_NAME,
    UPDATE_BRANCH,
    UPDATE_MESSAGE,
    UPSTREAM_PACKAGE_ID,
)
from nswag_build.errors import RequirementError
from nswag_build.github import GitHubClient
from nswag_build.logging import get_logger
from nswag_build.pipeline.process import CommandRunner, Git, run_command
from nswag_build.updater import (
    Release,
    ReleaseUpdateChecker,
    UpdateCheck,
    VersionBump,
    select_commit_reference_prefix,
)

log = get_logger("nswag_build.pipeline.targets")

DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "clean": (),
    "download_packages": ("clean",),
    "generate": ("download_packages",),
    "compile_plugin": ("generate",),
    "pack": ("compile_plugin",),
    "push": ("pack",),
    "regenerate": ("compile_plugin",),
}

DEFAULT_TARGET = "pack"

# Targets that consume the upstream release snapshot
_RELEASE_TARGETS = frozenset({"generate", "regenerate"})


def plan(target: str) -> list[str]:
    """Return ``target`` and its dependencies in execution order."""
    if target not in DEPENDENCIES:
        raise ValueError(f"Unknown target: {target}")

    ordered: list[str] = []

    def visit(name: str) -> None:
        if name in ordered:
            return
        for dependency in DEPENDENCIES[name]:
            visit(dependency)
        ordered.append(name)

    visit(target)
    return ordered


def commit_message(version: str, bump: VersionBump | None) -> str:
    """Commit message for a regeneration; the trailer drives GitVersion."""
    message = f"{UPDATE_MESSAGE} v{version}."
    if bump is not None and bump is not VersionBump.NONE:
        message += f"\n\n+semver: {bump.value}"
    return message


class BuildPipeline:
    """Runs build targets for the plugin project described by ``settings``."""

    def __init__(
        self,
        settings: Settings,
        github: GitHubClient,
        runner: CommandRunner = run_command,
    ) -> None:
        self._settings = settings
        self._github = github
        self._checker = ReleaseUpdateChecker(github)
        self._run = runner
        self._git = Git(self.root_directory, runner=runner)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @property
    def root_directory(self) -> Path:
        return Path(self._settings.root_directory).resolve()

    @property
    def source_directory(self) -> Path:
        return self.root_directory / self._settings.source_directory

    @property
    def output_directory(self) -> Path:
        return self.root_directory / self._settings.output_directory

    @property
    def package_directory(self) -> Path:
        return self.root_directory / self._settings.temporary_directory / "packages"

    @property
    def project_directory(self) -> Path:
        return self.source_directory / self._settings.project_name

    @property
    def project_file(self) -> Path:
        return self.project_directory / f"{self._settings.project_name}.csproj"

    @property
    def specification_directory(self) -> Path:
        return self.project_directory / "specifications"

    @property
    def generation_directory(self) -> Path:
        return self.project_directory / "Generated"

    @property
    def specification_file(self) -> Path:
        return self.specification_directory / SPECIFICATION_FILE_NAME

    @property
    def source(self) -> str:
        return NUGET_SOURCE if self._settings.push_to_nuget else MYGET_SOURCE

    @property
    def symbol_source(self) -> str:
        return NUGET_SYMBOL_SOURCE if self._settings.push_to_nuget else MYGET_SYMBOL_SOURCE

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def fetch_releases(self) -> list[Release]:
        return self._checker.fetch_latest_releases(
            self._settings.upstream_owner,
            self._settings.upstream_repo,
            count=self._settings.release_count,
        )

    def should_regenerate(self, releases: Sequence[Release]) -> UpdateCheck:
        return self._checker.check(releases, self.specification_file)

    def run(self, target: str = DEFAULT_TARGET) -> list[str]:
        """Run ``target`` and its dependencies; return the targets executed."""
        steps = plan(target)
        releases: list[Release] = []
        update: UpdateCheck | None = None

        if _RELEASE_TARGETS.intersection(steps):
            releases = self.fetch_releases()

        if "regenerate" in steps:
            self._require_regenerate(releases)
            # Must run before generate rewrites the specification file
            update = self.should_regenerate(releases)
            if not update.update_available:
                log.info("regenerate_skipped", latest=update.latest.version)
                return []

        if "generate" in steps:
            if not releases:
                raise RequirementError("generate requires at least one upstream release")
            # Fail before clean wipes the output and package directories
            select_commit_reference_prefix(releases[0])

        if "push" in steps:
            self._require_push()

        log.info("build_started", target=target, steps=steps)
        for step in steps:
            log.info("target_started", target=step)
            if step == "generate":
                self.generate(releases)
            elif step == "regenerate":
                if update is None:
                    raise RequirementError("regenerate requires an update check")
                self.regenerate(update)
            else:
                getattr(self, step)()
            log.info("target_finished", target=step)

        log.info("build_finished", target=target)
        return steps

    # ------------------------------------------------------------------
    # Requirements
    # ------------------------------------------------------------------

    def _require_push(self) -> None:
        settings = self._settings
        if settings.nuget_api_key is None or not settings.nuget_api_key.get_secret_value():
            raise RequirementError("push requires NUGET_API_KEY")
        if self._git.has_uncommitted_changes():
            raise RequirementError("push requires a clean working tree")
        if settings.push_to_nuget:
            if settings.configuration.lower() != "release":
                raise RequirementError(
                    f"nuget.org packages must be built in Release, not {settings.configuration}"
                )
            branch = self._git.current_branch()
            if branch != RELEASE_BRANCH:
                raise RequirementError(
                    f"nuget.org packages must be pushed from {RELEASE_BRANCH}, not {branch}"
                )

    def _require_regenerate(self, releases: Sequence[Release]) -> None:
        if not self._github.authenticated:
            raise RequirementError("regenerate requires GITHUB_API_KEY")
        if not releases:
            raise RequirementError(
                f"regenerate requires a release of "
                f"{self._settings.upstream_owner}/{self._settings.upstream_repo}"
            )

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def clean(self) -> None:
        if self.source_directory.exists():
            for pattern in ("bin", "obj"):
                for directory in sorted(self.source_directory.rglob(pattern)):
                    if directory.is_dir():
                        shutil.rmtree(directory)
        shutil.rmtree(self.output_directory, ignore_errors=True)
        self.output_directory.mkdir(parents=True, exist_ok=True)
        shutil.rmtree(self.package_directory, ignore_errors=True)

    def download_packages(self) -> None:
        self.package_directory.mkdir(parents=True, exist_ok=True)
        self._run(
            [
                "nuget",
                "install",
                UPSTREAM_PACKAGE_ID,
                "-OutputDirectory",
                str(self.package_directory),
                "-DependencyVersion",
                "Highest",
                "-NonInteractive",
            ],
            cwd=self.root_directory,
        )

    def generate(self, releases: Sequence[Release]) -> None:
        if not releases:
            raise RequirementError("generate requires at least one upstream release")
        reference = select_commit_reference_prefix(releases[0])

        shutil.rmtree(self.generation_directory, ignore_errors=True)
        shutil.rmtree(self.specification_directory, ignore_errors=True)

        log.info("generating", release=releases[0].tag, git_reference=reference)
        self._run(
            [
                *self._settings.generator_command,
                "--git-reference",
                reference,
                "--specifications",
                str(self.specification_directory),
                "--packages",
                str(self.package_directory),
                "--output",
                str(self.generation_directory),
                "--namespace",
                self._settings.project_name,
            ],
            cwd=self.root_directory,
        )

    def compile_plugin(self) -> None:
        self._run(["dotnet", "restore", str(self.project_file)], cwd=self.root_directory)
        self._run(
            [
                "dotnet",
                "build",
                str(self.project_file),
                "--configuration",
                self._settings.configuration,
                "--no-restore",
            ],
            cwd=self.root_directory,
        )

    def pack(self) -> None:
        self._run(
            [
                "dotnet",
                "pack",
                str(self.project_file),
                "--configuration",
                self._settings.configuration,
                "--no-build",
                "--output",
                str(self.output_directory),
            ],
            cwd=self.root_directory,
        )

    def push(self) -> None:
        api_key = self._settings.nuget_api_key
        if api_key is None or not api_key.get_secret_value():
            raise RequirementError("push requires NUGET_API_KEY")

        packages = sorted(
            p for p in self.output_directory.glob("*.nupkg") if not p.name.endswith("symbols.nupkg")
        )
        if not packages:
            raise RequirementError(f"No packages found in {self.output_directory}")

        for package in packages:
            log.info("pushing_package", package=package.name, source=self.source)
            self._run(
                [
                    "dotnet",
                    "nuget",
                    "push",
                    str(package),
                    "--source",
                    self.source,
                    "--symbol-source",
                    self.symbol_source,
                    "--api-key",
                    api_key.get_secret_value(),
                ],
                cwd=self.root_directory,
            )

    def regenerate(self, update: UpdateCheck) -> str | None:
        """Commit regenerated code to the update branch and open a pull request.

        Returns the pull request URL, or None when generation changed nothing.
        """
        version = update.latest.version
        relative = str(self.project_directory.relative_to(self.root_directory))

        if not self._git.has_uncommitted_changes(relative):
            log.info("regenerate_no_changes", version=version)
            return None

        repository = self._settings.repository or self._git.repository_identifier()

        self._git("checkout", "-B", UPDATE_BRANCH)
        self._git("add", "--", relative)
        self._git("commit", "-m", commit_message(version, update.bump))
        self._git("push", "--force", "--set-upstream", "origin", UPDATE_BRANCH)

        body = f"{UPDATE_MESSAGE} v{version}."
        if update.bump is not None:
            body += f"\n\nVersion bump: {update.bump.value}"
        url = self._github.create_pull_request_if_needed(
            repository,
            UPDATE_BRANCH,
            f"{UPDATE_MESSAGE} update.",
            body,
        )
        log.info(
            "regenerated",
            version=version,
            bump=update.bump.value if update.bump else None,
            pull_request=url,
        )
        return url
