"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from cellshell.config.merge import merge_configs
from cellshell.config.paths import get_config_paths
from cellshell.config.schema import (
    Config,
    ExecutionConfig,
    LoggingConfig,
    SessionConfig,
    ShellConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("cellshell.config")

_cached_config: Config | None = None

_reload_callbacks: list[Callable[[Config], None]] = []


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    CELLSHELL_LOG sets the log file, CELLSHELL_SHELL the shell kind.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("CELLSHELL_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    shell_kind = os.environ.get("CELLSHELL_SHELL")
    if shell_kind:
        overrides.setdefault("shell", {})["kind"] = shell_kind

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        _log.warning("Config section %r is not a mapping, ignoring", name)
        return {}
    return section


def _as_float(value: Any, default: float | None, key: str) -> float | None:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        _log.warning("Invalid number for %s: %r", key, value)
        return default


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    shell_data = _section(data, "shell")
    shell_defaults = ShellConfig()
    shell = ShellConfig(
        kind=str(shell_data.get("kind", shell_defaults.kind)),
        primary=shell_data.get("primary"),
        alternate_preferred=shell_data.get(
            "alternate_preferred", shell_defaults.alternate_preferred
        ),
        alternate_fallback=shell_data.get(
            "alternate_fallback", shell_defaults.alternate_fallback
        ),
    )

    exec_data = _section(data, "execution")
    exec_defaults = ExecutionConfig()
    execution = ExecutionConfig(
        default_timeout=_as_float(
            exec_data.get("default_timeout"), None, "execution.default_timeout"
        ),
        drain_timeout=_as_float(
            exec_data.get("drain_timeout"),
            exec_defaults.drain_timeout,
            "execution.drain_timeout",
        )
        or exec_defaults.drain_timeout,
        encoding=exec_data.get("encoding", exec_defaults.encoding),
        line_limit=int(exec_data.get("line_limit", exec_defaults.line_limit)),
    )

    session_data = _section(data, "session")
    session = SessionConfig(start_directory=session_data.get("start_directory"))

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"shell", "execution", "session", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        shell=shell,
        execution=execution,
        session=session,
        logging=logging_config,
        extra=extra,
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config (<project_root>/.cellshell/config.yaml)
    3. User config
    4. System config

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Only the global config is cached
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Drop the cached config."""
    global _cached_config
    _cached_config = None


def reload_config(project_root: str | None = None) -> Config:
    """Reload config from files and notify callbacks."""
    config = load_config(project_root=project_root, reload=True)

    for callback in _reload_callbacks:
        try:
            callback(config)
        except Exception as e:
            _log.warning("Config reload callback error: %s", e)

    return config


def on_config_reload(callback: Callable[[Config], None]) -> Callable[[], None]:
    """Register a callback for config reloads.

    Returns:
        A function that unregisters the callback.
    """
    _reload_callbacks.append(callback)

    def unregister() -> None:
        if callback in _reload_callbacks:
            _reload_callbacks.remove(callback)

    return unregister
