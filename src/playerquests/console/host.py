"""
A Host implementation that lives in the terminal.

Screens, chat and effects are printed with rich; commands are dispatched
from the REPL.
"""

import logging
from typing import Callable, Dict, List, Optional

from rich.console import Console

from playerquests.console import rendering
from playerquests.fx import ParticleFX
from playerquests.gui.model import ScreenView
from playerquests.host import CommandHandler, Location, UserHandle

logger = logging.getLogger(__name__)

Printer = Callable[[Callable[[], None]], None]


def _print_now(draw: Callable[[], None]) -> None:
    draw()


class ConsoleHost:
    """
    Terminal stand-in for a game server.

    Args:
        target: Rich console to print to; defaults to the shared console.
        printer: Runs a drawing callback; the REPL routes it through
            prompt_toolkit so output does not corrupt the prompt.
    """

    def __init__(self, target: Optional[Console] = None, printer: Printer = _print_now) -> None:
        self.target = target or rendering.console
        self.printer = printer
        self.players: Dict[str, UserHandle] = {}
        self.commands: Dict[str, CommandHandler] = {}
        self.screens: Dict[str, ScreenView] = {}
        self.chat_log: List[str] = []

    def get_player(self, name: str) -> UserHandle:
        player = self.players.get(name)
        if player is None:
            player = UserHandle(name)
            self.players[name] = player
        return player

    def send_chat(self, user: UserHandle, text: str) -> None:
        self.chat_log.append(text)
        self.printer(lambda: rendering.render_chat(None, text, self.target))

    def broadcast(self, sender: UserHandle, text: str) -> None:
        self.chat_log.append(f"<{sender}> {text}")
        self.printer(lambda: rendering.render_chat(sender.name, text, self.target))

    def play_effect(self, kind: ParticleFX, location: Location) -> None:
        self.printer(lambda: rendering.render_effect(kind, location, self.target))

    def register_command(self, name: str, handler: CommandHandler) -> None:
        logger.info("Registered /%s", name)
        self.commands[name.lower()] = handler

    def run_command(self, user: UserHandle, line: str) -> bool:
        """Run ``/name args``; returns False when no such command is registered."""
        name, _, args = line.lstrip("/").partition(" ")
        handler = self.commands.get(name.lower())
        if handler is None:
            return False
        return handler(user, args.strip())

    def open_screen(self, user: UserHandle, view: ScreenView) -> None:
        self.screens[user.name] = view
        self.printer(lambda: rendering.render_screen(view, self.target))

    def close_screen(self, user: UserHandle) -> None:
        if self.screens.pop(user.name, None) is not None:
            self.printer(lambda: rendering.render_closed(self.target))

    def screen_for(self, user: UserHandle) -> Optional[ScreenView]:
        return self.screens.get(user.name)
