"""Tests for log levels and handler setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

import cellshell.logging as cellshell_logging
from cellshell.config.schema import LoggingConfig
from cellshell.logging import TRACE, VERBOSE, get_logger, resolve_level, setup_logging


class TestResolveLevel:
    def test_default_is_info(self) -> None:
        assert resolve_level(None) == logging.INFO
        assert resolve_level(LoggingConfig()) == logging.INFO

    def test_level_name(self) -> None:
        assert resolve_level(LoggingConfig(level="debug")) == logging.DEBUG
        assert resolve_level(LoggingConfig(level="Verbose")) == VERBOSE
        assert resolve_level(LoggingConfig(level="bogus")) == logging.INFO

    def test_verbose_wins(self) -> None:
        config = LoggingConfig(level="error", verbose=3)
        assert resolve_level(config) == VERBOSE

    def test_verbosity_scale(self) -> None:
        assert resolve_level(LoggingConfig(verbose=0)) == logging.ERROR
        assert resolve_level(LoggingConfig(verbose=4)) == TRACE
        assert resolve_level(LoggingConfig(verbose=9)) == TRACE


class TestGetLogger:
    def test_child_names(self) -> None:
        assert get_logger().name == "cellshell"
        assert get_logger("terminal").name == "cellshell.terminal"
        assert logging.getLevelName(TRACE) == "TRACE"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def fresh_logger(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(cellshell_logging, "_initialized", False)
        handlers = list(cellshell_logging.logger.handlers)
        level = cellshell_logging.logger.level
        yield
        for handler in cellshell_logging.logger.handlers:
            if handler not in handlers:
                handler.close()
        cellshell_logging.logger.handlers = handlers
        cellshell_logging.logger.setLevel(level)

    def test_file_from_config(self, tmp_path: Path) -> None:
        path = tmp_path / "cellshell.log"
        setup_logging(LoggingConfig(verbose=2, file=str(path)))
        get_logger("terminal").info("spawned %s", "sh")
        get_logger("terminal").debug("not written")

        text = path.read_text(encoding="utf-8")
        assert "info cellshell.terminal: spawned sh" in text
        assert "not written" not in text

    def test_file_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "env.log"
        monkeypatch.setenv("CELLSHELL_LOG", str(path))
        setup_logging(None)
        get_logger().warning("hello")
        assert "warning cellshell: hello" in path.read_text(encoding="utf-8")

    def test_second_call_is_ignored(self, tmp_path: Path) -> None:
        setup_logging(LoggingConfig(file=str(tmp_path / "a.log")))
        count = len(cellshell_logging.logger.handlers)
        setup_logging(LoggingConfig(file=str(tmp_path / "b.log")))
        assert len(cellshell_logging.logger.handlers) == count
        assert not (tmp_path / "b.log").exists()
