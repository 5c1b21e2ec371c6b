"""
Logging configuration for vyra.

Provides structured logging with verbosity levels. Logging is configured lazily
so library users who never call set_verbosity or configure_logging get no
logs unless they configure logging themselves.

Verbosity levels:
- 0 (default): INFO: pipeline activity and timings only
- 1 (info): INFO + prompt text (original/optimized)
- 2 (verbose): DEBUG + prompt text: stage transitions, API calls, store access

Use set_verbosity(level) or configure_logging(verbose_level, quiet).
The CLI reads VYRA_VERBOSITY (0/1/2) through get_verbosity_from_env();
-v/-vv and --quiet override it.
"""

import logging
import os

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "vyra"
VERBOSITY_ENV = "VYRA_VERBOSITY"

# verbosity -> (logger level, log prompt text)
_VERBOSITY_LEVELS = {
    0: (logging.INFO, False),
    1: (logging.INFO, True),
    2: (logging.DEBUG, True),
}

_log_prompts: bool = False
_handler: logging.Handler | None = None


def _root_logger() -> logging.Logger:
    """Return the vyra root logger, attaching the stderr handler on first use."""
    global _handler
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is None:
        if root.handlers:
            _handler = root.handlers[0]
        else:
            _handler = logging.StreamHandler()
            _handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(_handler)
    return root


def set_verbosity(level: int) -> None:
    """
    Set logging verbosity (0=default, 1=info, 2=verbose).

    Values below 0 count as 0 and values above 2 as 2. Secrets are never logged
    at any level.
    """
    global _log_prompts
    clamped = min(max(level, 0), 2)
    log_level, _log_prompts = _VERBOSITY_LEVELS[clamped]
    _root_logger().setLevel(log_level)


def log_prompts() -> bool:
    """Return True if prompt text should be logged at INFO (verbosity 1 or 2)."""
    return _log_prompts


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """
    Configure logging from CLI or library.

    quiet wins over verbose_level and leaves only warnings (optimizer
    fallbacks) and errors.
    """
    global _log_prompts
    if not quiet:
        set_verbosity(verbose_level)
        return
    _root_logger().setLevel(logging.WARNING)
    _log_prompts = False


def get_verbosity_from_env() -> int:
    """Read VYRA_VERBOSITY (0, 1 or 2); anything else means 0."""
    raw = os.environ.get(VERBOSITY_ENV, "").strip()
    return int(raw) if raw in ("1", "2") else 0


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the vyra root (e.g. "core.ledger" -> vyra.core.ledger)."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


__all__ = [
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_prompts",
    "set_verbosity",
]
