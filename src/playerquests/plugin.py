"""
Plugin entry point.

PlayerQuests wires the template store, loader, action registry, chat bridge
and dispatcher together and exposes the hooks a host calls.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from playerquests.chat.prompt_bridge import ChatPromptBridge
from playerquests.client.director import ClientDirector, ValueHook
from playerquests.errors import ActionFailed
from playerquests.gui.dispatcher import Interaction, InteractionDispatcher
from playerquests.gui.functions import Action, ActionRegistry, FunctionState, create_action_registry
from playerquests.gui.loader import GUILoader
from playerquests.gui.model import GUIModel
from playerquests.gui.templates import TemplateStore
from playerquests.host import Host, UserHandle
from playerquests.quests.provider import InMemoryQuestProvider, QuestDataProvider

logger = logging.getLogger(__name__)

COMMAND = "playerquests"
MAIN_SCREEN = "main"


def _rename_selected_quest(director: ClientDirector, title: Any) -> None:
    quest_id = director.values.get("quest.id")
    if quest_id is None:
        raise KeyError("no quest selected")
    director.provider.rename(quest_id, str(title))


DEFAULT_VALUE_HOOKS: Dict[str, ValueHook] = {
    "quest.title": _rename_selected_quest,
}


class PlayerQuests:
    """
    The GUI engine as seen by a host.

    Args:
        host: The game server the engine runs inside.
        provider: Source of quest data for dynamic screens.
        store: Template store; defaults to the bundled screens.
        actions: Action registry; defaults to the built-in actions.
    """

    def __init__(
        self,
        host: Host,
        provider: Optional[QuestDataProvider] = None,
        store: Optional[TemplateStore] = None,
        actions: Optional[ActionRegistry] = None,
    ) -> None:
        self.host = host
        self.provider = provider if provider is not None else InMemoryQuestProvider()
        self.store = store or TemplateStore()
        self.actions = actions or create_action_registry()
        self.loader = GUILoader(self.store, self.actions)
        self.bridge = ChatPromptBridge(host.send_chat)
        self.dispatcher = InteractionDispatcher(self._run_action, self._report_failure)
        self.value_hooks: Dict[str, ValueHook] = dict(DEFAULT_VALUE_HOOKS)
        self._directors: Dict[str, ClientDirector] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def enable(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Register the command with the host and remember the engine loop."""
        self._loop = loop
        self.host.register_command(COMMAND, self._on_command)
        logger.info("PlayerQuests enabled")

    def director(self, user: UserHandle) -> ClientDirector:
        director = self._directors.get(user.name)
        if director is None:
            director = ClientDirector(
                user=user,
                host=self.host,
                loader=self.loader,
                actions=self.actions,
                bridge=self.bridge,
                provider=self.provider,
                value_hooks=self.value_hooks,
            )
            self._directors[user.name] = director
        return director

    def _on_command(self, user: UserHandle, args: str) -> bool:
        self.display(user)
        return True

    def display(self, user: UserHandle) -> Optional[GUIModel]:
        """Open the main screen for the user."""
        return self.director(user).open_template(MAIN_SCREEN)

    def on_interact(self, user: UserHandle, slot: int) -> "asyncio.Future[Interaction]":
        """Queue a slot interaction on the user's open screen."""
        model = self.director(user).model
        if model is None:
            future: asyncio.Future[Interaction] = asyncio.get_running_loop().create_future()
            future.set_result(Interaction.IGNORED)
            return future
        return self.dispatcher.on_interact(model, slot)

    def on_chat_message(self, user: UserHandle, text: str) -> bool:
        """Returns True when the line was consumed by a prompt and must not be broadcast."""
        return self.bridge.on_chat_message(user, text)

    def open(self, user: UserHandle, screen: str) -> Optional[GUIModel]:
        """Open a template or dynamic screen by name."""
        return self.director(user).navigate(screen)

    def close(self, user: UserHandle) -> None:
        """The user asked to close the screen; this also ends a pending prompt."""
        self.director(user).close()

    def on_close(self, user: UserHandle) -> None:
        """
        The host closed the user's screen.

        Ignored while a prompt has the screen minimised, since the prompt
        closed it itself.
        """
        director = self._directors.get(user.name)
        if director is None or director.minimised:
            return
        director.close(notify_host=False)

    async def on_disconnect(self, user: UserHandle) -> None:
        director = self._directors.pop(user.name, None)
        if director is not None:
            director.close(notify_host=False)
        else:
            self.bridge.cancel(user, "disconnected")
        await self.dispatcher.shutdown(user)

    def call_threadsafe(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule a hook from a host thread onto the engine loop."""
        if self._loop is None:
            raise RuntimeError("PlayerQuests is not enabled on an event loop")
        self._loop.call_soon_threadsafe(callback, *args)

    async def shutdown(self) -> None:
        self.bridge.cancel_all("shutting down")
        for director in list(self._directors.values()):
            director.close(notify_host=False)
        self._directors.clear()
        await self.dispatcher.close()
        logger.info("PlayerQuests shut down")

    async def _run_action(self, model: GUIModel, slot: int, action: Action) -> FunctionState:
        return await self.director(model.user).run_action(model, slot, action)

    def _report_failure(self, user: UserHandle, failure: ActionFailed) -> None:
        self.host.send_chat(user, f"Something went wrong: {failure}")
