"""Run a command while delivering its output line by line.

The runner is a pass-through pump: lines from both streams go to the sink
in arrival order and nothing is kept. The live process handle is published
once after spawn and withdrawn (None) once the invocation is over, so a
caller can kill the command tree from outside.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from cellshell.config.schema import ExecutionConfig
from cellshell.logging import get_logger
from cellshell.terminal.directory import change_directory, is_cd_command
from cellshell.terminal.errors import PathNotFoundError
from cellshell.terminal.process import InvocationState, drain_readers, open_process
from cellshell.terminal.result import timeout_marker
from cellshell.terminal.shells import resolve_shell

if TYPE_CHECKING:
    from cellshell.config.schema import ShellConfig
    from cellshell.terminal.process import ProcessHandle
    from cellshell.terminal.protocol import HandleSink, LineSink
    from cellshell.terminal.session import Session

log = get_logger("terminal.streaming")


async def _pump_lines(
    stream: asyncio.StreamReader,
    on_line: LineSink,
    handle: ProcessHandle,
    *,
    encoding: str,
    limit: int,
) -> None:
    """Forward each line of ``stream`` to ``on_line`` until EOF.

    A line longer than ``limit`` bytes is forwarded in ``limit``-sized
    pieces. If the sink raises, the process tree is killed so the other
    stream cannot stall on a full pipe, and the error propagates.
    """
    while True:
        try:
            raw = await stream.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            # EOF; the last line may lack a terminator
            raw = e.partial
            if not raw:
                return
        except asyncio.LimitOverrunError:
            raw = await stream.read(limit)

        line = raw.decode(encoding, errors="replace").rstrip("\r\n")
        try:
            on_line(line)
        except Exception:
            handle.terminate()
            raise

        if stream.at_eof() and not raw.endswith(b"\n"):
            return


async def run_streaming(
    command_text: str,
    session: Session,
    on_line: LineSink,
    on_handle: HandleSink | None = None,
    timeout: float | None = None,
    *,
    execution: ExecutionConfig | None = None,
    shell_config: ShellConfig | None = None,
) -> None:
    """Execute ``command_text``, calling ``on_line`` for every output line.

    Completion is gated on the process exit, not on the streams closing.
    After exit (or a kill) the readers get ``execution.drain_timeout``
    seconds to deliver whatever the child flushed last.

    A timeout kills the process tree and delivers the timeout marker as
    the final line. An external terminate() through the published handle
    ends the invocation the same way, without any marker.

    Args:
        command_text: Command line handed verbatim to the interpreter.
        session: Supplies the working directory and shell kind.
        on_line: Line sink; for ``cd`` it receives the single result line.
        on_handle: Called with the live handle after spawn and with None
            exactly once at the end.
        timeout: Seconds of wall-clock time before the tree is killed.
        execution: Drain window, decoding and reader limits.
        shell_config: Interpreter overrides.

    Raises:
        SpawnError: If the interpreter could not be started. ``on_handle``
            is never called in that case.
    """
    execution = execution or ExecutionConfig()

    if is_cd_command(command_text):
        try:
            on_line(change_directory(command_text, session))
        except PathNotFoundError as e:
            on_line(str(e))
        return

    invocation = resolve_shell(session.shell_kind, shell_config)

    async with open_process(
        invocation,
        command_text,
        session.working_directory,
        limit=execution.line_limit,
        reap_timeout=execution.drain_timeout,
    ) as handle:
        readers = [
            asyncio.create_task(
                _pump_lines(
                    stream,
                    on_line,
                    handle,
                    encoding=execution.encoding,
                    limit=execution.line_limit,
                )
            )
            for stream in (handle.stdout, handle.stderr)
        ]
        if on_handle is not None:
            on_handle(handle)
        try:
            try:
                await asyncio.wait_for(handle.wait(), timeout)
            except asyncio.TimeoutError:
                assert timeout is not None
                handle.kill_on_timeout(timeout)
            handle.mark_exited()

            errors = await drain_readers(readers, execution.drain_timeout)
            if errors:
                raise errors[0]

            if handle.state is InvocationState.TIMED_OUT:
                on_line(timeout_marker(timeout))
            elif handle.state is InvocationState.KILLED_EXTERNALLY:
                log.debug("pid %s terminated externally", handle.pid)
        finally:
            for reader in readers:
                reader.cancel()
            if on_handle is not None:
                on_handle(None)
