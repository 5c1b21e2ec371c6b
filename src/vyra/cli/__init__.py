"""
Command-line interface for vyra.

Click commands live in vyra.cli.commands; this package exposes the group and
the console-script entry point.
"""


def main() -> None:
    """Entry point for the vyra console script."""
    from vyra.cli.commands import main as _main

    _main()


__all__ = ["main"]
