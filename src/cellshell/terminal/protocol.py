"""Callback and runner protocols for shell command execution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from cellshell.terminal.process import ProcessHandle


class LineSink(Protocol):
    """Receives one completed output line (terminator stripped) at a time."""

    def __call__(self, line: str) -> None: ...


class HandleSink(Protocol):
    """Receives the live handle after spawn, then None once it is gone."""

    def __call__(self, handle: ProcessHandle | None) -> None: ...


class CommandRunner(Protocol):
    """Protocol for executing shell commands.

    Implementations:
    - CommandEngine: local subprocess execution with a shared session
    """

    async def run_batch(self, command_text: str, timeout: float | None = None) -> str:
        """Run a command to completion and return its merged output.

        Args:
            command_text: Command line handed verbatim to the interpreter.
            timeout: Seconds before the process tree is killed. None waits
                forever.
        """
        ...

    async def run_streaming(
        self,
        command_text: str,
        on_line: LineSink,
        on_handle: HandleSink | None = None,
        timeout: float | None = None,
    ) -> None:
        """Run a command, delivering each output line as it arrives."""
        ...
