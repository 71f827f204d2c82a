"""Interactive prompt: one command per line, streamed output, Ctrl+C kills."""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory, InMemoryHistory
from rich.console import Console

from cellshell.logging import get_logger
from cellshell.terminal.errors import SpawnError
from cellshell.terminal.session import ShellKind

if TYPE_CHECKING:
    from pathlib import Path

    from cellshell.terminal.engine import CommandEngine
    from cellshell.terminal.process import ProcessHandle

log = get_logger("repl")

console = Console()

HELP_TEXT = """\
[bold]/shell[/bold] [primary|alternate]  show or switch the shell kind
[bold]/cwd[/bold]                        show the working directory
[bold]/help[/bold]                       this text
[bold]/quit[/bold]                       leave
Anything else runs as a shell command. Ctrl+C kills a running command."""


class InteractiveRepl:
    """Prompt loop driving a CommandEngine in streaming mode."""

    def __init__(
        self,
        engine: CommandEngine,
        timeout: float | None = None,
        history_file: Path | None = None,
        output: Console | None = None,
    ) -> None:
        self.engine = engine
        self.timeout = timeout
        self.console = output or console
        self._running = False
        self._handle: ProcessHandle | None = None
        self._history_file = history_file
        self._prompt: PromptSession[str] | None = None

    @property
    def prompt(self) -> PromptSession[str]:
        # Created on first use; needs a real terminal
        if self._prompt is None:
            history = (
                FileHistory(str(self._history_file)) if self._history_file else InMemoryHistory()
            )
            self._prompt = PromptSession(
                history=history,
                auto_suggest=AutoSuggestFromHistory(),
            )
        return self._prompt

    def prompt_text(self) -> str:
        return f"{self.engine.current_directory}> "

    async def run(self) -> None:
        """Run the prompt loop until /quit or EOF."""
        self._running = True
        self.console.print("Type [bold]/help[/bold] for commands, [bold]/quit[/bold] to exit.\n")

        while self._running:
            try:
                line = await self.prompt.prompt_async(self.prompt_text())
            except KeyboardInterrupt:
                continue
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue
            if line.startswith("/"):
                self.handle_command(line)
            else:
                await self.execute(line)

        self._running = False

    def stop(self) -> None:
        self._running = False

    def handle_command(self, line: str) -> None:
        """Handle a slash command."""
        name, _, argument = line.partition(" ")
        argument = argument.strip()

        if name == "/quit":
            self.stop()
        elif name == "/help":
            self.console.print(HELP_TEXT)
        elif name == "/cwd":
            self.console.print(self.engine.current_directory, markup=False, highlight=False)
        elif name == "/shell":
            if argument:
                try:
                    self.engine.shell_kind = ShellKind.parse(argument)
                except ValueError as e:
                    self.console.print(f"[red]{e}[/red]")
                    return
            self.console.print(f"Shell: [bold]{self.engine.shell_kind.value}[/bold]")
        else:
            self.console.print(f"[dim]Unknown command {name}. Type /help for commands.[/dim]")

    def interrupt(self) -> None:
        """Kill the running command tree, if any."""
        handle = self._handle
        if handle is None:
            return
        handle.terminate()
        self.console.print("^C")

    def _on_line(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    def _on_handle(self, handle: ProcessHandle | None) -> None:
        self._handle = handle

    async def execute(self, command_text: str) -> None:
        """Run one command, streaming its output to the console."""
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.interrupt)
            sigint_installed = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers
            sigint_installed = False

        try:
            await self.engine.run_streaming(
                command_text, self._on_line, self._on_handle, self.timeout
            )
        except SpawnError as e:
            log.debug("Spawn failed: %r", e)
            self.console.print(f"[red]{e}[/red]")
        except KeyboardInterrupt:
            self.interrupt()
        finally:
            if sigint_installed:
                loop.remove_signal_handler(signal.SIGINT)
