"""Tests for the configuration module."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from cellshell.config import (
    Config,
    get_config,
    load_config,
    reload_config,
    reset_config,
)
from cellshell.config.loader import dict_to_config, env_overrides, on_config_reload
from cellshell.config.merge import deep_merge, merge_configs
from cellshell.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_simple_override(self) -> None:
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        """Nested sections merge key by key."""
        base = {"execution": {"drain_timeout": 2.0, "encoding": "utf-8"}}
        override = {"execution": {"drain_timeout": 5.0}}
        result = deep_merge(base, override)
        assert result["execution"] == {"drain_timeout": 5.0, "encoding": "utf-8"}

    def test_none_does_not_override(self) -> None:
        assert deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_list_replaced_not_merged(self) -> None:
        assert deep_merge({"items": [1, 2, 3]}, {"items": [4]}) == {"items": [4]}

    def test_base_not_mutated(self) -> None:
        base = {"shell": {"kind": "primary"}}
        deep_merge(base, {"shell": {"kind": "alternate"}})
        assert base == {"shell": {"kind": "primary"}}

    def test_merge_configs_later_wins(self) -> None:
        result = merge_configs(
            {"shell": {"kind": "primary"}},
            {},
            {"shell": {"kind": "alternate"}, "session": {"start_directory": "/x"}},
        )
        assert result == {
            "shell": {"kind": "alternate"},
            "session": {"start_directory": "/x"},
        }


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_project_path(self, tmp_path: Path) -> None:
        path = get_project_config_path(str(tmp_path))
        assert path == tmp_path / ".cellshell" / "config.yaml"

    @pytest.mark.skipif(sys.platform == "win32", reason="Unix paths")
    def test_system_path_unix(self) -> None:
        assert get_system_config_path() == Path("/etc/cellshell/config.yaml")

    @pytest.mark.skipif(sys.platform == "win32", reason="Unix paths")
    def test_user_path_xdg(self, tmp_path: Path) -> None:
        # XDG_CONFIG_HOME points into tmp_path via the autouse fixture
        assert get_user_config_path() == tmp_path / "xdg" / "cellshell" / "config.yaml"

    @pytest.mark.skipif(sys.platform == "win32", reason="Unix paths")
    def test_user_path_dotdir_fallback(
        self, fake_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME")
        assert get_user_config_path() == fake_home / ".cellshell" / "config.yaml"

    @pytest.mark.skipif(sys.platform == "win32", reason="Unix paths")
    def test_user_path_dot_config(
        self, fake_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME")
        (fake_home / ".config").mkdir()
        expected = fake_home / ".config" / "cellshell" / "config.yaml"
        assert get_user_config_path() == expected

    def test_paths_ordered_lowest_first(self, tmp_path: Path) -> None:
        paths = get_config_paths(str(tmp_path))
        assert paths[-1] == get_project_config_path(str(tmp_path))
        assert len(paths) >= 2


class TestDictToConfig:
    def test_defaults(self) -> None:
        config = dict_to_config({})
        assert config.shell.kind == "primary"
        assert config.shell.primary is None
        assert config.shell.alternate_preferred == "pwsh"
        assert config.shell.alternate_fallback == "powershell"
        assert config.execution.default_timeout is None
        assert config.execution.drain_timeout == 2.0
        assert config.execution.encoding == "utf-8"
        assert config.session.start_directory is None
        assert config.extra == {}

    def test_sections(self) -> None:
        config = dict_to_config(
            {
                "shell": {"kind": "alternate", "primary": "/bin/bash"},
                "execution": {"default_timeout": "30", "line_limit": 4096},
                "session": {"start_directory": "~/src"},
                "logging": {"level": "debug", "file": "/tmp/cellshell.log"},
            }
        )
        assert config.shell.kind == "alternate"
        assert config.shell.primary == "/bin/bash"
        assert config.execution.default_timeout == 30.0
        assert config.execution.line_limit == 4096
        assert config.session.start_directory == "~/src"
        assert config.logging.level == "debug"
        assert config.logging.file == "/tmp/cellshell.log"

    def test_extra_keys_kept(self) -> None:
        config = dict_to_config({"theme": {"prompt": "green"}})
        assert config.extra == {"theme": {"prompt": "green"}}

    def test_invalid_number_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="cellshell.config"):
            config = dict_to_config({"execution": {"default_timeout": "soon"}})
        assert config.execution.default_timeout is None
        assert "execution.default_timeout" in caplog.text

    def test_non_mapping_section_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="cellshell.config"):
            config = dict_to_config({"shell": "pwsh"})
        assert config.shell.kind == "primary"
        assert "'shell'" in caplog.text


class TestEnvOverrides:
    def test_empty(self) -> None:
        assert env_overrides() == {}

    def test_log_and_shell(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CELLSHELL_LOG", "/tmp/x.log")
        monkeypatch.setenv("CELLSHELL_SHELL", "alternate")
        assert env_overrides() == {
            "logging": {"file": "/tmp/x.log"},
            "shell": {"kind": "alternate"},
        }


class TestLoadConfig:
    """Test loading and layering config files."""

    def test_no_files_gives_defaults(self) -> None:
        config = load_config()
        assert isinstance(config, Config)
        assert config.shell.kind == "primary"

    def test_user_file(self, tmp_path: Path) -> None:
        _write(
            tmp_path / "xdg" / "cellshell" / "config.yaml",
            "execution:\n  default_timeout: 12\n",
        )
        assert load_config().execution.default_timeout == 12.0

    def test_project_overrides_user(self, tmp_path: Path) -> None:
        _write(
            tmp_path / "xdg" / "cellshell" / "config.yaml",
            "shell:\n  kind: alternate\nexecution:\n  default_timeout: 12\n",
        )
        project = tmp_path / "proj"
        _write(project / ".cellshell" / "config.yaml", "shell:\n  kind: primary\n")

        config = load_config(project_root=str(project))
        assert config.shell.kind == "primary"
        assert config.execution.default_timeout == 12.0

    def test_env_overrides_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(tmp_path / "xdg" / "cellshell" / "config.yaml", "shell:\n  kind: primary\n")
        monkeypatch.setenv("CELLSHELL_SHELL", "pwsh")
        assert load_config().shell.kind == "pwsh"

    def test_invalid_yaml_gives_defaults(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        _write(tmp_path / "xdg" / "cellshell" / "config.yaml", "shell: [unclosed\n")
        with caplog.at_level(logging.WARNING, logger="cellshell.config"):
            config = load_config()
        assert config.shell.kind == "primary"
        assert "Invalid YAML" in caplog.text

    def test_non_mapping_document_ignored(self, tmp_path: Path) -> None:
        _write(tmp_path / "xdg" / "cellshell" / "config.yaml", "- just\n- a list\n")
        assert load_config().extra == {}

    def test_global_config_cached(self) -> None:
        assert get_config() is get_config()
        assert load_config() is get_config()

    def test_project_config_not_cached(self, tmp_path: Path) -> None:
        global_config = get_config()
        project_config = load_config(project_root=str(tmp_path))
        assert project_config is not global_config
        assert get_config() is global_config

    def test_reset_drops_cache(self) -> None:
        first = get_config()
        reset_config()
        assert get_config() is not first


class TestReload:
    def test_reload_picks_up_changes(self, tmp_path: Path) -> None:
        path = tmp_path / "xdg" / "cellshell" / "config.yaml"
        _write(path, "execution:\n  default_timeout: 1\n")
        assert get_config().execution.default_timeout == 1.0

        _write(path, "execution:\n  default_timeout: 2\n")
        assert get_config().execution.default_timeout == 1.0
        assert reload_config().execution.default_timeout == 2.0
        assert get_config().execution.default_timeout == 2.0

    def test_callbacks_and_unregister(self) -> None:
        seen: list[Config] = []
        unregister = on_config_reload(seen.append)
        try:
            config = reload_config()
            assert seen == [config]
        finally:
            unregister()
        reload_config()
        assert len(seen) == 1

    def test_failing_callback_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        def broken(config: Config) -> None:
            raise RuntimeError("nope")

        unregister = on_config_reload(broken)
        try:
            with caplog.at_level(logging.WARNING, logger="cellshell.config"):
                reload_config()
        finally:
            unregister()
        assert "nope" in caplog.text
