"""Command-line entry point for nswag-build.

Usage::

    nswag-build                      # pack (clean, download, generate, compile, pack)
    nswag-build push --nuget         # pack and push to nuget.org
    nswag-build regenerate           # regenerate against a new NSwag release, open a PR
    nswag-build check                # report whether an NSwag update is available
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from pydantic import ValidationError

from nswag_build import __version__
from nswag_build.config import Settings, get_settings
from nswag_build.errors import NswagBuildError
from nswag_build.github import GitHubClient
from nswag_build.logging import get_logger, setup_logging
from nswag_build.pipeline import DEPENDENCIES, BuildPipeline
from nswag_build.pipeline.targets import DEFAULT_TARGET

CHECK_COMMAND = "check"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nswag-build", description="Build, publish and regenerate the NSwag plugin"
    )
    p.add_argument(
        "target",
        nargs="?",
        default=DEFAULT_TARGET,
        choices=[*DEPENDENCIES, CHECK_COMMAND],
        help=f"Target to run (default: {DEFAULT_TARGET})",
    )
    p.add_argument("--root", default=None, help="Repository root (default: ROOT_DIRECTORY or .)")
    p.add_argument(
        "--nuget",
        action="store_true",
        default=None,
        help="Push to nuget.org instead of the MyGet feed",
    )
    p.add_argument("--configuration", default=None, help="Build configuration (default: Release)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.root is not None:
        overrides["root_directory"] = Path(args.root)
    if args.nuget is not None:
        overrides["push_to_nuget"] = bool(args.nuget)
    if args.configuration is not None:
        overrides["configuration"] = args.configuration
    return settings.model_copy(update=overrides) if overrides else settings


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    log = get_logger("nswag_build.main")

    try:
        settings = _apply_overrides(get_settings(), args)
    except ValidationError as exc:
        log.error("invalid_configuration", error=str(exc), error_count=exc.error_count())
        return 1

    setup_logging()
    log.info("nswag_build_starting", version=__version__, target=args.target)

    try:
        with GitHubClient(
            token=settings.github_token,
            api_base=settings.github_api_url,
            timeout=settings.http_timeout,
        ) as github:
            pipeline = BuildPipeline(settings, github)

            if args.target == CHECK_COMMAND:
                result = pipeline.should_regenerate(pipeline.fetch_releases())
                print(json.dumps(result.to_dict(), indent=2))
                return 0

            pipeline.run(args.target)
    except NswagBuildError as exc:
        log.error("build_failed", target=args.target, error=str(exc), error_type=type(exc).__name__)
        return 1

    return 0


def run() -> None:
    """Run the command-line interface."""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
