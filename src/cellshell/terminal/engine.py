"""Caller-facing command execution engine."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from cellshell.config.schema import Config
from cellshell.logging import get_logger
from cellshell.terminal.batch import run_batch
from cellshell.terminal.session import Session, ShellKind, home_directory
from cellshell.terminal.streaming import run_streaming

if TYPE_CHECKING:
    from cellshell.terminal.protocol import HandleSink, LineSink

log = get_logger("terminal.engine")


class CommandEngine:
    """Runs shell commands against one session.

    The session (working directory and shell kind) is shared by reference
    with every invocation; a ``cd`` or shell-kind change only affects
    invocations submitted afterwards. Concurrent invocations are allowed
    and are not serialized against each other.

    Example:
        >>> engine = CommandEngine()
        >>> await engine.run_batch("echo hello")
        'hello'
        >>> await engine.run_batch("cd /tmp")
        '/tmp'
    """

    def __init__(self, session: Session | None = None, config: Config | None = None) -> None:
        """Initialize the engine.

        Args:
            session: Session to drive. Defaults to a new one at the home
                directory using the primary shell.
            config: Execution and shell settings. Defaults to built-ins.
        """
        self.session = session or Session()
        self.config = config or Config()

    @classmethod
    def from_config(cls, config: Config) -> CommandEngine:
        """Build an engine whose session starts where the config says."""
        start = config.session.start_directory
        working_directory = os.path.expanduser(start) if start else home_directory()
        session = Session(
            working_directory=working_directory,
            shell_kind=ShellKind.parse(config.shell.kind),
        )
        return cls(session=session, config=config)

    @property
    def current_directory(self) -> str:
        return self.session.working_directory

    @property
    def shell_kind(self) -> ShellKind:
        return self.session.shell_kind

    @shell_kind.setter
    def shell_kind(self, kind: ShellKind | str) -> None:
        new_kind = ShellKind.parse(kind)
        if new_kind is not self.session.shell_kind:
            log.info("Shell kind: %s -> %s", self.session.shell_kind.value, new_kind.value)
        self.session.shell_kind = new_kind

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self.config.execution.default_timeout

    async def run_batch(self, command_text: str, timeout: float | None = None) -> str:
        """Run a command to completion; see :func:`~cellshell.terminal.batch.run_batch`."""
        return await run_batch(
            command_text,
            self.session,
            self._timeout(timeout),
            execution=self.config.execution,
            shell_config=self.config.shell,
        )

    async def run_streaming(
        self,
        command_text: str,
        on_line: LineSink,
        on_handle: HandleSink | None = None,
        timeout: float | None = None,
    ) -> None:
        """Stream a command's output; see :func:`~cellshell.terminal.streaming.run_streaming`."""
        await run_streaming(
            command_text,
            self.session,
            on_line,
            on_handle,
            self._timeout(timeout),
            execution=self.config.execution,
            shell_config=self.config.shell,
        )
