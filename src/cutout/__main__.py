"""Entry point for ``python -m cutout``."""

from cutout.cli import app

if __name__ == "__main__":
    app()
