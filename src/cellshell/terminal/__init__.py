"""Command execution engine.

Runs arbitrary shell commands against a shared session (working directory
and shell kind), either to completion (batch) or line by line (streaming)
with timeouts and process-tree cancellation.
"""

from cellshell.terminal.batch import run_batch
from cellshell.terminal.directory import change_directory, is_cd_command
from cellshell.terminal.engine import CommandEngine
from cellshell.terminal.errors import PathNotFoundError, ShellEngineError, SpawnError
from cellshell.terminal.process import InvocationState, ProcessHandle, kill_process_tree
from cellshell.terminal.protocol import CommandRunner, HandleSink, LineSink
from cellshell.terminal.result import timeout_marker
from cellshell.terminal.session import Session, ShellKind
from cellshell.terminal.shells import ShellInvocation, find_executable, resolve_shell
from cellshell.terminal.streaming import run_streaming

__all__ = [
    "CommandEngine",
    "CommandRunner",
    "HandleSink",
    "InvocationState",
    "LineSink",
    "PathNotFoundError",
    "ProcessHandle",
    "Session",
    "ShellEngineError",
    "ShellInvocation",
    "ShellKind",
    "SpawnError",
    "change_directory",
    "find_executable",
    "is_cd_command",
    "kill_process_tree",
    "resolve_shell",
    "run_batch",
    "run_streaming",
    "timeout_marker",
]
