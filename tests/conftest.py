"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from cellshell.config import reset_config
from cellshell.terminal.engine import CommandEngine
from cellshell.terminal.session import Session


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config files and env overrides out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("CELLSHELL_LOG", raising=False)
    monkeypatch.delenv("CELLSHELL_SHELL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the home directory at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def session(workdir: Path) -> Session:
    return Session(working_directory=str(workdir))


@pytest.fixture
def engine(session: Session) -> CommandEngine:
    return CommandEngine(session=session)
