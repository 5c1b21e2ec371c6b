"""
Utility constants for the CLI.

Exit codes mirror the callable error codes so scripts can tell a rejected
request from a failed one.
"""

EXIT_SUCCESS = 0
EXIT_INTERNAL = 1
EXIT_VALIDATION_OR_CONFIG = 2
EXIT_QUOTA_EXHAUSTED = 3

__all__ = [
    "EXIT_SUCCESS",
    "EXIT_INTERNAL",
    "EXIT_VALIDATION_OR_CONFIG",
    "EXIT_QUOTA_EXHAUSTED",
]
