"""Diagnostics for the engine and its front-ends.

Everything logs under the ``cellshell`` logger. Output goes to a file
when ``logging.file`` or CELLSHELL_LOG names one; otherwise to stderr,
but only on an interactive terminal so piped command output stays clean.

Two extra levels sit around the standard ones: VERBOSE (15) for
invocation state changes and TRACE (5) for everything else. The CLI's
repeated ``-v`` walks the 0..4 verbosity scale below.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cellshell.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("cellshell")

_initialized = False

_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# error, warning, info, verbose, trace
_VERBOSITY_MAP = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: VERBOSE,
    4: TRACE,
}

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Numeric level for ``config``.

    A verbosity count beats a level name. Out-of-range counts mean TRACE,
    unknown names mean INFO.
    """
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY_MAP.get(config.verbose, TRACE)
    if config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.INFO)
    return logging.INFO


def _log_file(config: LoggingConfig | None) -> str | None:
    path = config.file if config and config.file else os.environ.get("CELLSHELL_LOG")
    return os.path.expanduser(path) if path else None


def _attach(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_LowercaseLevelFormatter(_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the ``cellshell`` logger.

    Only the first call has any effect. A log file that cannot be opened
    is reported on stderr (terminal only) and stderr logging takes over.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    path = _log_file(config)
    if path:
        try:
            _attach(logging.FileHandler(path, mode="a", encoding="utf-8"), level)
            return
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[cellshell] cannot open log file {path}: {e}", file=sys.stderr)

    if sys.stderr.isatty():
        _attach(logging.StreamHandler(sys.stderr), level)


def get_logger(name: str | None = None) -> logging.Logger:
    """``cellshell.<name>``, or the package logger itself without a name."""
    if name:
        return logger.getChild(name)
    return logger
