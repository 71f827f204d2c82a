"""Configuration schema dataclasses for cellshell.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ShellConfig:
    """Shell selection.

    Example config.yaml:
        shell:
          kind: alternate
          alternate_preferred: pwsh
          alternate_fallback: powershell
    """

    kind: str = "primary"  # primary | alternate (cmd | powershell | pwsh)
    primary: str | None = None  # Override the primary interpreter executable
    alternate_preferred: str = "pwsh"  # Searched on PATH first
    alternate_fallback: str = "powershell"  # Bare name left to the OS search


@dataclass
class ExecutionConfig:
    """Process execution settings shared by both runners."""

    default_timeout: float | None = None  # Seconds; None = wait forever
    drain_timeout: float = 2.0  # Post-kill / post-exit stream drain window
    encoding: str = "utf-8"  # Decoding for child output (errors replaced)
    line_limit: int = 1024 * 1024  # Max bytes per streamed line


@dataclass
class SessionConfig:
    """Session defaults."""

    start_directory: str | None = None  # Default: home directory


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0..4, wins over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    shell: ShellConfig = field(default_factory=ShellConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept here
    extra: dict[str, Any] = field(default_factory=dict)
