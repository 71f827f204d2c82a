"""Child process lifecycle: spawn, handle, process-tree kill.

Every invocation spawns exactly one interpreter process. On POSIX it is
started in its own session so the whole tree shares one process group;
on Windows it gets no console window. Cancellation and timeouts use the
same hard kill of the process and all its descendants.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import sys
from collections.abc import AsyncIterator, Sequence
from enum import Enum
from typing import TYPE_CHECKING

import psutil

from cellshell.logging import VERBOSE, get_logger
from cellshell.terminal.errors import SpawnError

if TYPE_CHECKING:
    from cellshell.terminal.shells import ShellInvocation

log = get_logger("terminal.process")

_WINDOWS = sys.platform == "win32"
_CREATE_NO_WINDOW = 0x08000000 if _WINDOWS else 0


class InvocationState(Enum):
    """Lifecycle of one invocation."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    KILLED_EXTERNALLY = "killed_externally"
    FINALIZED = "finalized"


def kill_process_tree(pid: int, *, leader_reaped: bool = False) -> None:
    """Hard-kill ``pid`` and every descendant.

    Descendants are snapshotted before anything is killed so that children
    reparented by the parent's death are still reached. On POSIX the
    process group is killed too, which catches processes that already
    detached from the tree. Processes that are already gone are ignored.

    Args:
        pid: The interpreter started by :func:`spawn`.
        leader_reaped: The interpreter has exited and been reaped. Its pid
            may have been recycled, so only the process group is signalled;
            the group id stays reserved while any member is alive.
    """
    victims: list[psutil.Process] = []
    if not leader_reaped:
        try:
            parent = psutil.Process(pid)
            victims = parent.children(recursive=True)
            victims.append(parent)
        except psutil.NoSuchProcess:
            pass
    elif _WINDOWS:
        log.debug("pid %s already exited; its descendants cannot be found", pid)

    if not _WINDOWS:
        # start_new_session=True made the child its own group leader
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(pid, signal.SIGKILL)

    for proc in victims:
        with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
            proc.kill()


class ProcessHandle:
    """A live child process, owned by the runner that spawned it.

    The only mutating operation offered to other code is terminate(), which
    kills the process and its descendants.
    """

    def __init__(self, process: asyncio.subprocess.Process, command_text: str) -> None:
        self._process = process
        self.command_text = command_text
        self.state = InvocationState.RUNNING
        # Terminal state (completed, timed out, killed); survives FINALIZED
        self.outcome: InvocationState | None = None

    def __repr__(self) -> str:
        return f"<ProcessHandle pid={self.pid} {self.state.value}>"

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def running(self) -> bool:
        """True until the child has exited and been reaped."""
        return self._process.returncode is None

    @property
    def stdout(self) -> asyncio.StreamReader:
        assert self._process.stdout is not None
        return self._process.stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        assert self._process.stderr is not None
        return self._process.stderr

    async def wait(self) -> None:
        """Wait for the child to exit.

        asyncio may also wait for both pipes to close, so a background
        descendant holding them delays this past the shell's own exit.
        """
        await self._process.wait()

    def terminate(self) -> None:
        """Kill the process and all its descendants.

        Safe to call from any task on the runner's event loop, at any time,
        any number of times. Never raises.
        """
        if self.state is InvocationState.RUNNING:
            self._transition(InvocationState.KILLED_EXTERNALLY)
        self._kill()

    def kill_on_timeout(self, timeout: float | None) -> None:
        log.info("Command timed out after %ss: %s", timeout, self.command_text)
        if self.state is InvocationState.RUNNING:
            self._transition(InvocationState.TIMED_OUT)
        self._kill()

    def mark_exited(self) -> None:
        """Record a natural exit (no-op if a kill already decided the state)."""
        if self.state is InvocationState.RUNNING:
            self._transition(InvocationState.COMPLETED)

    def _kill(self) -> None:
        if self.state is InvocationState.FINALIZED:
            return
        # An exited shell can leave background children holding the pipes
        try:
            kill_process_tree(self.pid, leader_reaped=not self.running)
        except Exception as e:
            log.debug("Ignoring kill failure for pid %s: %s", self.pid, e)

    def _transition(self, state: InvocationState) -> None:
        log.log(VERBOSE, "pid %s: %s -> %s", self.pid, self.state.value, state.value)
        self.state = state
        if state is not InvocationState.FINALIZED:
            self.outcome = state


async def spawn(
    invocation: ShellInvocation,
    command_text: str,
    cwd: str,
    *,
    limit: int,
) -> ProcessHandle:
    """Start the interpreter with both output streams piped.

    Raises:
        SpawnError: If the interpreter could not be launched.
    """
    argv = invocation.argv(command_text)
    log.debug("Spawning %s %s (cwd=%s)", invocation.executable,
              invocation.argument_string(command_text), cwd)

    if _WINDOWS:
        platform_kwargs = {"creationflags": _CREATE_NO_WINDOW}
    else:
        platform_kwargs = {"start_new_session": True}

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            limit=limit,
            **platform_kwargs,  # type: ignore[arg-type]
        )
    except FileNotFoundError as e:
        if not os.path.isdir(cwd):
            raise SpawnError(
                invocation.executable, f"working directory not found: {cwd}"
            ) from e
        raise SpawnError(invocation.executable, "command not found") from e
    except PermissionError as e:
        raise SpawnError(invocation.executable, "permission denied") from e
    except OSError as e:
        raise SpawnError(invocation.executable, str(e)) from e

    return ProcessHandle(process, command_text)


@contextlib.asynccontextmanager
async def open_process(
    invocation: ShellInvocation,
    command_text: str,
    cwd: str,
    *,
    limit: int,
    reap_timeout: float,
) -> AsyncIterator[ProcessHandle]:
    """Spawn a process and guarantee it is gone when the block exits.

    If the block exits before the invocation reached an outcome (runner
    cancelled, sink error) the tree is killed. Cleanup failures are logged
    and swallowed.
    """
    handle = await spawn(invocation, command_text, cwd, limit=limit)
    try:
        yield handle
    finally:
        if handle.state is InvocationState.RUNNING:
            handle._kill()
        if handle.running:
            try:
                await asyncio.wait_for(handle.wait(), reap_timeout)
            except Exception as e:
                log.debug("Ignoring reap failure for pid %s: %r", handle.pid, e)
        handle._transition(InvocationState.FINALIZED)


async def drain_readers(
    readers: Sequence[asyncio.Task[None]], timeout: float
) -> list[BaseException]:
    """Give stream readers ``timeout`` seconds to finish, then cancel them.

    Returns:
        Exceptions raised by readers that finished with an error.
    """
    if not readers:
        return []
    done, pending = await asyncio.wait(readers, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        log.debug("Abandoning %d stream reader(s) after %ss", len(pending), timeout)
        await asyncio.gather(*pending, return_exceptions=True)

    errors: list[BaseException] = []
    for task in done:
        if task.cancelled():
            continue
        error = task.exception()
        if error is not None:
            errors.append(error)
    return errors
