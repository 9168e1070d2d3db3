"""Entry point for ``python -m nswag_build``."""

from nswag_build.main import run

if __name__ == "__main__":
    run()
