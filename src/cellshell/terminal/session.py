"""Session state shared by every invocation of one engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum


class ShellKind(Enum):
    """Which interpreter family runs non-``cd`` commands."""

    PRIMARY = "primary"  # cmd.exe on Windows, /bin/sh elsewhere
    ALTERNATE = "alternate"  # PowerShell (pwsh preferred)

    @classmethod
    def parse(cls, value: str | ShellKind) -> ShellKind:
        """Accept an enum member or its config spelling (case-insensitive).

        Raises:
            ValueError: If the name is not a known shell kind.
        """
        if isinstance(value, ShellKind):
            return value
        name = value.strip().lower()
        kind = _ALIASES.get(name)
        if kind is None:
            raise ValueError(f"Unknown shell kind: {value!r}")
        return kind


_ALIASES = {
    "primary": ShellKind.PRIMARY,
    "cmd": ShellKind.PRIMARY,
    "sh": ShellKind.PRIMARY,
    "alternate": ShellKind.ALTERNATE,
    "powershell": ShellKind.ALTERNATE,
    "pwsh": ShellKind.ALTERNATE,
}


def home_directory() -> str:
    """The user's home directory as an absolute path."""
    return os.path.abspath(os.path.expanduser("~"))


@dataclass
class Session:
    """Working-directory cursor and selected shell kind.

    One session is owned by an engine and shared by reference with every
    invocation it runs. Writes are unsynchronized: a ``cd`` racing another
    invocation's spawn resolves to whichever read happened first.
    """

    working_directory: str = field(default_factory=home_directory)
    shell_kind: ShellKind = ShellKind.PRIMARY

    def __post_init__(self) -> None:
        self.working_directory = os.path.abspath(self.working_directory)
        if not os.path.isdir(self.working_directory):
            raise ValueError(f"Not a directory: {self.working_directory}")
