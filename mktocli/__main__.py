"""Main entry point when executing mktocli as a package.

This allows running the package using python -m mktocli.
"""

from mktocli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
