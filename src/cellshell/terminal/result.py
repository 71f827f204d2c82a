"""Composition of the text a command "returns".

Both output streams collapse into one text with no provenance and no exit
code; stderr simply follows stdout.
"""

from __future__ import annotations


def timeout_marker(timeout: float) -> str:
    """The literal line appended to output cut short by a timeout."""
    return f"[Timed out after {timeout:g}s]"


def decode_output(data: bytes, encoding: str = "utf-8") -> str:
    return data.decode(encoding, errors="replace")


def merge_output(stdout: str, stderr: str) -> str:
    """stdout, then stderr on its own line if there is any; trailing CR/LF trimmed."""
    text = stdout
    if stderr:
        text += ("\n" if text else "") + stderr
    return text.rstrip("\r\n")


def annotate_timeout(text: str, timeout: float) -> str:
    """Append the timeout marker to partial output."""
    marker = timeout_marker(timeout)
    return f"{text}\n{marker}" if text else marker
