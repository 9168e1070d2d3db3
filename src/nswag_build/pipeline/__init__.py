"""Build pipeline: clean, download, generate, compile, pack, push, regenerate."""

from nswag_build.pipeline.targets import DEPENDENCIES, BuildPipeline, plan

__all__ = ["DEPENDENCIES", "BuildPipeline", "plan"]
