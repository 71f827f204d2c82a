"""The ``cd`` pseudo-command.

``cd`` never reaches a child process: a child's directory change would die
with it. Instead it moves the session's working-directory cursor, which
every later spawn uses as its cwd.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from cellshell.logging import get_logger
from cellshell.terminal.errors import PathNotFoundError
from cellshell.terminal.session import home_directory

if TYPE_CHECKING:
    from cellshell.terminal.session import Session

log = get_logger("terminal.directory")

_DRIVE_FLAG = "/d "


def is_cd_command(command_text: str) -> bool:
    """True for bare ``cd`` or ``cd <target>`` (case-insensitive)."""
    trimmed = command_text.strip().lower()
    return trimmed == "cd" or trimmed.startswith("cd ")


def parse_target(argument_text: str) -> str:
    """Strip the drive-change flag and one pair of surrounding quotes."""
    target = argument_text.strip()
    if target.lower().startswith(_DRIVE_FLAG):
        target = target[len(_DRIVE_FLAG):].strip()
    if len(target) >= 2 and target.startswith('"') and target.endswith('"'):
        target = target[1:-1]
    return target


def change_directory(command_text: str, session: Session) -> str:
    """Apply a ``cd`` command to ``session``.

    Args:
        command_text: The full command, e.g. ``cd ..`` or ``cd /d C:\\``.
        session: Session whose working directory is moved.

    Returns:
        The new working directory.

    Raises:
        PathNotFoundError: If the target is not an existing directory. The
            session is left unchanged.
    """
    trimmed = command_text.strip()
    if trimmed.lower() == "cd":
        session.working_directory = home_directory()
        return session.working_directory

    target = parse_target(trimmed[2:])
    resolved = home_directory() if target == "~" else target
    new_dir = os.path.abspath(os.path.join(session.working_directory, resolved))

    if not os.path.isdir(new_dir):
        raise PathNotFoundError(target)

    log.debug("cd %s -> %s", target, new_dir)
    session.working_directory = new_dir
    return new_dir
