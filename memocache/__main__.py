"""Main entry point when executing memocache as a package.

This allows running the package using python -m memocache.
"""

from memocache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
