"""Run a command to completion and return its merged output."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from cellshell.config.schema import ExecutionConfig
from cellshell.logging import get_logger
from cellshell.terminal.directory import change_directory, is_cd_command
from cellshell.terminal.errors import PathNotFoundError
from cellshell.terminal.process import drain_readers, open_process
from cellshell.terminal.result import annotate_timeout, decode_output, merge_output
from cellshell.terminal.shells import resolve_shell

if TYPE_CHECKING:
    from cellshell.config.schema import ShellConfig
    from cellshell.terminal.session import Session

log = get_logger("terminal.batch")

_CHUNK_SIZE = 64 * 1024


async def _collect(stream: asyncio.StreamReader, chunks: list[bytes]) -> None:
    """Read ``stream`` to EOF into ``chunks``.

    Chunks are appended as they arrive so a reader abandoned after a kill
    still leaves behind everything it had read.
    """
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        chunks.append(chunk)


async def run_batch(
    command_text: str,
    session: Session,
    timeout: float | None = None,
    *,
    execution: ExecutionConfig | None = None,
    shell_config: ShellConfig | None = None,
) -> str:
    """Execute ``command_text`` and return stdout+stderr as one text.

    ``cd`` is applied to the session without spawning anything. Both
    streams are drained concurrently with the exit wait, so a child that
    fills one pipe while the other is being read cannot deadlock.

    On timeout the process tree is killed, the readers get a bounded window
    to flush, and the partial output comes back with a timeout marker.
    That path never raises.

    Args:
        command_text: Command line handed verbatim to the interpreter.
        session: Supplies the working directory and shell kind.
        timeout: Seconds of wall-clock time before the tree is killed.
            None waits forever.
        execution: Drain window, decoding and reader limits.
        shell_config: Interpreter overrides.

    Returns:
        Merged output with trailing CR/LF trimmed, the new directory for a
        ``cd``, or the not-found message for a failed ``cd``.

    Raises:
        SpawnError: If the interpreter could not be started.
    """
    execution = execution or ExecutionConfig()

    if is_cd_command(command_text):
        try:
            return change_directory(command_text, session)
        except PathNotFoundError as e:
            return str(e)

    invocation = resolve_shell(session.shell_kind, shell_config)
    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []

    async with open_process(
        invocation,
        command_text,
        session.working_directory,
        limit=execution.line_limit,
        reap_timeout=execution.drain_timeout,
    ) as handle:
        readers = [
            asyncio.create_task(_collect(handle.stdout, stdout_chunks)),
            asyncio.create_task(_collect(handle.stderr, stderr_chunks)),
        ]
        try:
            try:
                await asyncio.wait_for(handle.wait(), timeout)
            except asyncio.TimeoutError:
                assert timeout is not None
                handle.kill_on_timeout(timeout)
                errors = await drain_readers(readers, execution.drain_timeout)
                for error in errors:
                    log.debug("Ignoring stream error after timeout: %r", error)
                partial = merge_output(
                    decode_output(b"".join(stdout_chunks), execution.encoding),
                    decode_output(b"".join(stderr_chunks), execution.encoding),
                )
                return annotate_timeout(partial, timeout)

            handle.mark_exited()
            await asyncio.gather(*readers)
        finally:
            for reader in readers:
                reader.cancel()

    return merge_output(
        decode_output(b"".join(stdout_chunks), execution.encoding),
        decode_output(b"".join(stderr_chunks), execution.encoding),
    )
