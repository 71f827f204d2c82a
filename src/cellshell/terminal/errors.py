"""Exceptions raised by the command execution engine."""

from __future__ import annotations


class ShellEngineError(Exception):
    """Base class for command execution engine errors."""


class PathNotFoundError(ShellEngineError):
    """Raised when a ``cd`` target does not exist as a directory.

    ``target`` is the text the user typed (after flag and quote stripping),
    not the normalized path.
    """

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"The system cannot find the path specified: {target}")


class SpawnError(ShellEngineError):
    """Raised when the shell interpreter could not be launched."""

    def __init__(self, executable: str, reason: str) -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"Failed to start {executable}: {reason}")
