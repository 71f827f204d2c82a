"""Configuration management for cellshell.

Hierarchical YAML-based configuration with system, user and project levels
plus environment variable overrides (highest priority).

Example usage:
    from cellshell.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.shell.kind)
    print(config.execution.default_timeout)
"""

from cellshell.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from cellshell.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from cellshell.config.schema import (
    Config,
    ExecutionConfig,
    LoggingConfig,
    SessionConfig,
    ShellConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    "ShellConfig",
    "ExecutionConfig",
    "SessionConfig",
    "LoggingConfig",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
