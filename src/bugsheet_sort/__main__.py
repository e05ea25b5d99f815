"""Allow ``python -m bugsheet_sort``."""

from bugsheet_sort import cli

if __name__ == "__main__":
    cli.app()
