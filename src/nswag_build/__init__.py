"""Build automation for the Nuke NSwag plugin.

Downloads NSwag, regenerates the plugin sources, compiles, packs and
publishes them, and keeps the generated code current with upstream
NSwag releases.
"""

__version__ = "0.1.0"
