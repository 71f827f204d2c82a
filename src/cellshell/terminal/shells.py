"""Shell interpreter resolution.

Maps a ShellKind to the executable and the "run one command and exit"
switches used to invoke it. Resolution runs on every invocation, so a
PATH change or a shell-kind switch takes effect for the next command.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cellshell.terminal.session import ShellKind

if TYPE_CHECKING:
    from cellshell.config.schema import ShellConfig

_WINDOWS = sys.platform == "win32"

_POSIX_SHELL = "/bin/sh"
_ALTERNATE_SWITCHES = ("-NoProfile", "-Command")


@dataclass(frozen=True)
class ShellInvocation:
    """Executable plus the switches that precede the command text."""

    executable: str
    switches: tuple[str, ...]

    def argv(self, command_text: str) -> list[str]:
        """Spawn vector; the command text is passed as one untouched argument."""
        return [self.executable, *self.switches, command_text]

    def argument_string(self, command_text: str) -> str:
        """Display form of the argument list (logging only)."""
        return " ".join([*self.switches, command_text])


def find_executable(name: str, path: str | None = None) -> str | None:
    """Search each directory of a PATH-style list for ``name``.

    On Windows ``.exe`` is appended. The first regular, executable file
    wins.

    Args:
        name: Bare executable name (e.g. "pwsh").
        path: PATH-style list; defaults to the PATH environment variable.

    Returns:
        Full path of the executable, or None if no directory has it.
    """
    search = path if path is not None else os.environ.get("PATH", "")
    filename = name + ".exe" if _WINDOWS else name
    for directory in search.split(os.pathsep):
        if not directory:
            continue
        candidate = os.path.join(directory, filename)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return None


def _primary_shell(config: ShellConfig | None) -> ShellInvocation:
    if config is not None and config.primary:
        executable = config.primary
    elif _WINDOWS:
        executable = os.environ.get("COMSPEC") or "cmd.exe"
    else:
        executable = _POSIX_SHELL
    switch = "/c" if _WINDOWS else "-c"
    return ShellInvocation(executable, (switch,))


def _alternate_shell(config: ShellConfig | None) -> ShellInvocation:
    preferred = config.alternate_preferred if config is not None else "pwsh"
    fallback = config.alternate_fallback if config is not None else "powershell"
    # Fallback stays a bare name; the OS search resolves it at spawn time
    executable = find_executable(preferred) or fallback
    return ShellInvocation(executable, _ALTERNATE_SWITCHES)


def resolve_shell(kind: ShellKind, config: ShellConfig | None = None) -> ShellInvocation:
    """Resolve the interpreter for ``kind``.

    Args:
        kind: The session's current shell kind.
        config: Optional overrides for executable names.
    """
    if kind is ShellKind.ALTERNATE:
        return _alternate_shell(config)
    return _primary_shell(config)
