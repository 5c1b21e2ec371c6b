"""
Error handling for the CLI.

This module maps library exceptions and callable error codes to exit codes
and prints a single user-facing message.
"""

import sys
from collections.abc import Callable

import click

from vyra.api import (
    INTERNAL,
    INVALID_ARGUMENT,
    RESOURCE_EXHAUSTED,
    UNAUTHENTICATED,
    CallableError,
)
from vyra.cli import progress
from vyra.cli.utils import (
    EXIT_INTERNAL,
    EXIT_QUOTA_EXHAUSTED,
    EXIT_VALIDATION_OR_CONFIG,
)
from vyra.utils.exceptions import ConfigurationError, ValidationError, VyraError

_EXIT_BY_CODE = {
    UNAUTHENTICATED: EXIT_VALIDATION_OR_CONFIG,
    INVALID_ARGUMENT: EXIT_VALIDATION_OR_CONFIG,
    RESOURCE_EXHAUSTED: EXIT_QUOTA_EXHAUSTED,
    INTERNAL: EXIT_INTERNAL,
}


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map callable errors and library exceptions to (exit_code, user_message)."""
    if isinstance(exc, CallableError):
        return (_EXIT_BY_CODE.get(exc.code, EXIT_INTERNAL), exc.message)
    if isinstance(exc, ValidationError):
        msg = exc.args[0] if exc.args else "Validation failed."
        if getattr(exc, "field", None):
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_VALIDATION_OR_CONFIG, msg)
    if isinstance(exc, ConfigurationError):
        return (EXIT_VALIDATION_OR_CONFIG, exc.args[0] if exc.args else "Invalid configuration.")
    if isinstance(exc, VyraError):
        return (EXIT_INTERNAL, exc.args[0] if exc.args else "An error occurred.")
    return (EXIT_INTERNAL, str(exc) if exc.args else "An unexpected error occurred.")


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn(); on failure print one message and exit with the mapped code.

    With debug=True, exceptions outside the vyra hierarchy propagate with their
    traceback instead.
    """
    try:
        fn()
    except Exception as e:
        if debug and not isinstance(e, (CallableError, VyraError)):
            raise
        code, msg = map_exception_to_exit(e)
        if quiet:
            click.echo(msg, err=True)
        else:
            progress.print_error(msg)
        sys.exit(code)


__all__ = [
    "map_exception_to_exit",
    "run_with_error_handling",
]
