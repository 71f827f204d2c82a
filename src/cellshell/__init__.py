"""cellshell: run shell commands one slot at a time, batch or streaming."""

__version__ = "0.1.0"

from cellshell.config import Config, get_config, load_config
from cellshell.terminal import (
    CommandEngine,
    PathNotFoundError,
    ProcessHandle,
    Session,
    ShellEngineError,
    ShellKind,
    SpawnError,
)

__all__ = [
    "CommandEngine",
    "Config",
    "PathNotFoundError",
    "ProcessHandle",
    "Session",
    "ShellEngineError",
    "ShellKind",
    "SpawnError",
    "get_config",
    "load_config",
]
