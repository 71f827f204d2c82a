"""Shared test helpers for cellshell tests."""

from __future__ import annotations

import sys

PYTHON = f'"{sys.executable}"'


def python_command(code: str) -> str:
    """Shell command running ``code`` with the test interpreter.

    ``code`` must not contain double quotes, ``$`` or backticks.
    """
    return f'{PYTHON} -c "{code}"'
