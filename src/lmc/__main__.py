"""Main entry point for ``python -m lmc``."""

from lmc.cli import run

if __name__ == "__main__":
    run()
