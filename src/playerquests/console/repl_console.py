import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Generator, List, Optional, Union

from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory
from prompt_toolkit.shortcuts import PromptSession
from prompt_toolkit.styles import Style
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from playerquests.console.host import ConsoleHost
from playerquests.gui.dispatcher import Interaction
from playerquests.plugin import PlayerQuests
from playerquests.runtime_config import RuntimeConfig, get_data_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlashCommand:
    """Definition of a slash command: name and description."""

    name: str
    description: str


COMMANDS: List[SlashCommand] = [
    SlashCommand("/playerquests", "Open the PlayerQuests main screen"),
    SlashCommand("/click <slot>", "Interact with a slot of the open screen"),
    SlashCommand("/open <screen>", "Open a screen by name, or list the screens"),
    SlashCommand("/close", "Close the open screen"),
    SlashCommand("/screen", "Show the open screen again"),
    SlashCommand("/help", "Show help and available commands"),
    SlashCommand("/exit (quit)", "Exit the REPL"),
]


class SlashCommandHandler:
    """Completion and suggestion for slash commands."""

    style: Style = Style.from_dict(
        {
            "completion-menu": "noinherit",
            "completion-menu.completion": "noinherit",
            "completion-menu.completion.current": "noinherit bold",
            "bottom-toolbar": "noreverse",
        }
    )

    def __init__(self, commands: Optional[List[SlashCommand]] = None) -> None:
        self._commands = commands or COMMANDS

    @property
    def commands(self) -> List[SlashCommand]:
        return list(self._commands)

    @property
    def completer(self) -> Completer:
        handler = self

        class _SlashCompleter(Completer):
            def get_completions(
                self, document: Document, complete_event: CompleteEvent
            ) -> Generator[Completion, None, None]:
                text = document.text
                if document.cursor_position_row != 0 or not text.startswith("/"):
                    return
                for cmd in handler._commands:
                    base = cmd.name.split()[0]
                    if base.lower().startswith(text.lower()):
                        display = f"{cmd.name:<20} {cmd.description}"
                        yield Completion(base, start_position=-len(text), display=display)

        return _SlashCompleter()

    @property
    def auto_suggest(self) -> AutoSuggest:
        handler = self

        class _SlashAutoSuggest(AutoSuggest):
            def get_suggestion(self, buffer: Buffer, document: Document) -> Optional[Suggestion]:
                text = document.text
                if not text.startswith("/") or len(text) <= 1:
                    return None
                for cmd in handler._commands:
                    base = cmd.name.split()[0]
                    if base.lower().startswith(text.lower()) and base.lower() != text.lower():
                        return Suggestion(base[len(text) :])
                return None

        return _SlashAutoSuggest()


class ReplConsole:
    """
    Interactive terminal session playing as one player.

    Lines starting with ``/`` are commands; anything else is chat, which a
    pending prompt may capture before it is broadcast.
    """

    def __init__(self, plugin: PlayerQuests, host: ConsoleHost, config: RuntimeConfig) -> None:
        self.plugin = plugin
        self.host = host
        self.config = config
        self.user = host.get_player(config.player)
        self.prompt_session: Optional[PromptSession[str]] = None
        self._slash_handler = SlashCommandHandler()

    def _print(self, message: Union[str, Text], style: str = "") -> None:
        styled_message = Text(message, style=style) if isinstance(message, str) else message
        self.host.printer(lambda: self.host.target.print(styled_message))

    def _on_interaction_done(self, slot: int) -> Callable[["asyncio.Future[Interaction]"], None]:
        def report(future: "asyncio.Future[Interaction]") -> None:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                self._print(f"error: slot {slot}: {error}", "bold red")
                return
            logger.debug("Slot %d: %s", slot, future.result().value)

        return report

    def _click(self, args: str) -> None:
        try:
            slot = int(args)
        except ValueError:
            self._print("usage: /click <slot>", "yellow")
            return
        if self.host.screen_for(self.user) is None:
            self._print("no screen is open", "yellow")
            return
        future = self.plugin.on_interact(self.user, slot)
        future.add_done_callback(self._on_interaction_done(slot))

    def _open(self, screen: str) -> None:
        if not screen:
            self._print("screens: " + ", ".join(self.plugin.store.names()))
            return
        self.plugin.open(self.user, screen)

    def _help(self) -> None:
        lines = [
            Text.assemble((f"{cmd.name:<16}", "cyan"), " ", cmd.description)
            for cmd in self._slash_handler.commands
        ]
        self._print(Text("\n").join(lines))

    def handle_line(self, line: str) -> bool:
        """Handle one input line; returns False when the session should end."""
        text = line.strip()
        if not text:
            return True
        if text.lower() in ("exit", "quit", "/exit", "/quit") and not self.plugin.bridge.pending(self.user):
            return False
        if not text.startswith("/"):
            if not self.plugin.on_chat_message(self.user, text):
                self.host.broadcast(self.user, text)
            return True

        name, _, args = text.partition(" ")
        name = name.lower()
        if name == "/click":
            self._click(args.strip())
        elif name == "/close":
            self.plugin.close(self.user)
        elif name == "/open":
            self._open(args.strip())
        elif name == "/screen":
            view = self.host.screen_for(self.user)
            if view is None:
                self._print("no screen is open", "yellow")
            else:
                self.host.open_screen(self.user, view)
        elif name == "/help":
            self._help()
        elif not self.host.run_command(self.user, text):
            self._print(f"Unknown command: {name}", "yellow")
        return True

    async def run(self) -> None:
        """Interactive REPL loop for the console interface."""
        self.plugin.enable(asyncio.get_running_loop())
        self.host.printer = lambda draw: run_in_terminal(draw)

        self.host.target.print(
            Panel(
                f"[bold cyan]PlayerQuests[/bold cyan]\n\n"
                f"[dim]Player:[/dim] [dim cyan]{escape(str(self.user))}[/dim cyan]\n"
                f"[dim]Type[/dim] [cyan]/playerquests[/cyan] [dim]to begin,[/dim] "
                f"[cyan]/help[/cyan] [dim]for commands[/dim]",
                expand=False,
            )
        )

        # Store prompt history under the XDG data directory
        history_dir = get_data_dir()
        history_dir.mkdir(parents=True, exist_ok=True)
        history_path = history_dir / "prompt_history"

        self.prompt_session = PromptSession(
            message="› ",
            history=FileHistory(str(history_path)),
            completer=self._slash_handler.completer,
            auto_suggest=self._slash_handler.auto_suggest,
            style=self._slash_handler.style,
            complete_while_typing=True,
        )

        try:
            should_continue = True
            while should_continue:
                user_input = await self.prompt_session.prompt_async()
                should_continue = self.handle_line(user_input)
        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            await self.plugin.on_disconnect(self.user)
            await self.plugin.shutdown()
