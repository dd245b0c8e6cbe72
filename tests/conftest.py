import asyncio
from typing import Callable, Dict, List, Tuple

import pytest

from playerquests.chat.prompt_bridge import ChatPromptBridge
from playerquests.fx import ParticleFX
from playerquests.gui.model import ScreenView
from playerquests.host import CommandHandler, Location, UserHandle
from playerquests.plugin import PlayerQuests
from playerquests.quests.provider import InMemoryQuestProvider, QuestRecord


class FakeHost:
    """Host double that records everything the engine asks for."""

    def __init__(self) -> None:
        self.players: Dict[str, UserHandle] = {}
        self.chats: List[Tuple[str, str]] = []
        self.effects: List[Tuple[ParticleFX, Location]] = []
        self.commands: Dict[str, CommandHandler] = {}
        self.screens: Dict[str, ScreenView] = {}
        self.closed: List[str] = []

    def get_player(self, name: str) -> UserHandle:
        return self.players.setdefault(name, UserHandle(name, (1.0, 64.0, -3.0)))

    def send_chat(self, user: UserHandle, text: str) -> None:
        self.chats.append((user.name, text))

    def play_effect(self, kind: ParticleFX, location: Location) -> None:
        self.effects.append((kind, location))

    def register_command(self, name: str, handler: CommandHandler) -> None:
        self.commands[name] = handler

    def open_screen(self, user: UserHandle, view: ScreenView) -> None:
        self.screens[user.name] = view

    def close_screen(self, user: UserHandle) -> None:
        self.screens.pop(user.name, None)
        self.closed.append(user.name)

    def messages_for(self, name: str) -> List[str]:
        return [text for who, text in self.chats if who == name]


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def user(host: FakeHost) -> UserHandle:
    return host.get_player("alice")


@pytest.fixture
def provider() -> InMemoryQuestProvider:
    return InMemoryQuestProvider(
        [
            QuestRecord("quest-1", "Find the Sword", owner="alice"),
            QuestRecord("quest-2", "Deliver Letter", owner="alice"),
        ]
    )


@pytest.fixture
def plugin(host: FakeHost, provider: InMemoryQuestProvider) -> PlayerQuests:
    quests = PlayerQuests(host, provider=provider)
    quests.enable()
    return quests


@pytest.fixture
def bridge(host: FakeHost) -> ChatPromptBridge:
    return ChatPromptBridge(host.send_chat)


async def wait_until(condition: Callable[[], bool], attempts: int = 200) -> None:
    """Let the event loop run until condition holds."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition was never met")
