"""
Per-user session controller.

A ClientDirector owns the screen currently open for one user, handles
navigation between templates and dynamic screens, keeps the values captured
by chat prompts and commits the result of function chains.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from playerquests.chat.prompt_bridge import ChatPromptBridge
from playerquests.errors import (
    BindingError,
    NoDataAvailable,
    TemplateMalformed,
    TemplateNotFound,
)
from playerquests.fx import EffectRequest, ParticleFX
from playerquests.gui.dynamic import DynamicSource, create_dynamic
from playerquests.gui.functions import Action, ActionContext, ActionRegistry, FunctionState
from playerquests.gui.loader import GUILoader
from playerquests.gui.model import GUIModel
from playerquests.host import Host, UserHandle
from playerquests.quests.provider import QuestDataProvider

logger = logging.getLogger(__name__)

ValueHook = Callable[["ClientDirector", Any], None]


class ClientDirector:
    """Owns the open GUI of one user."""

    def __init__(
        self,
        user: UserHandle,
        host: Host,
        loader: GUILoader,
        actions: ActionRegistry,
        bridge: ChatPromptBridge,
        provider: QuestDataProvider,
        value_hooks: Optional[Mapping[str, ValueHook]] = None,
    ) -> None:
        self.user = user
        self.host = host
        self.loader = loader
        self.actions = actions
        self.bridge = bridge
        self.provider = provider
        self.value_hooks: Dict[str, ValueHook] = dict(value_hooks or {})
        self.values: Dict[str, Any] = {}
        self.model: Optional[GUIModel] = None
        self.minimised = False

    @property
    def screen_name(self) -> Optional[str]:
        return self.model.screen_name if self.model is not None else None

    def _show(self, model: GUIModel) -> GUIModel:
        self.bridge.cancel(self.user, "another screen was opened")
        if self.model is not None and self.model is not model:
            self.model.dispose()
        self.model = model
        self.minimised = False
        self.host.open_screen(self.user, model.render())
        logger.info("Opened %s for %s", model.screen_name, self.user)
        return model

    def open_template(self, name: str) -> Optional[GUIModel]:
        """Load and show a template. Returns None when the screen cannot be built."""
        try:
            model = self.loader.load(name, self.user, self.values)
        except (TemplateNotFound, TemplateMalformed, BindingError) as e:
            logger.error("Cannot open %s for %s: %s", name, self.user, e, exc_info=True)
            self.message(f"Could not open '{name}': {e}")
            return None
        return self._show(model)

    def open_dynamic(self, source: DynamicSource) -> Optional[GUIModel]:
        """Resolve and show a dynamic screen, or its fallback template."""
        try:
            model = source.resolve(self.user, self.provider)
        except NoDataAvailable as e:
            logger.info("%s; opening %s for %s", e, source.fallback, self.user)
            return self.open_template(source.fallback)
        self.values.update(source.selection)
        return self._show(model)

    def navigate(
        self,
        screen: str,
        argument: Optional[Any] = None,
        previous_screen: Optional[str] = None,
    ) -> Optional[GUIModel]:
        """Open a dynamic screen when one has this name, otherwise a template."""
        previous = previous_screen or self.screen_name or "main"
        source = create_dynamic(screen, self.actions, previous_screen=previous, argument=argument)
        if source is not None:
            return self.open_dynamic(source)
        return self.open_template(screen)

    def close(self, notify_host: bool = True) -> None:
        """Close the GUI entirely, cancelling any pending prompt."""
        self.bridge.cancel(self.user, "screen closed")
        if self.model is not None:
            logger.info("Closed %s for %s", self.model.screen_name, self.user)
            self.model.dispose()
            self.model = None
        self.minimised = False
        if notify_host:
            self.host.close_screen(self.user)

    def minimise(self) -> None:
        """Hide the GUI while the user types in chat."""
        if self.model is None or self.minimised:
            return
        self.minimised = True
        self.host.close_screen(self.user)

    def unminimise(self) -> None:
        if not self.minimised:
            return
        self.minimised = False
        self.refresh()

    def refresh(self) -> None:
        if self.model is not None and not self.minimised:
            self.host.open_screen(self.user, self.model.render())

    def message(self, text: str) -> None:
        self.host.send_chat(self.user, text)

    def play_effect(self, kind: ParticleFX) -> EffectRequest:
        location = self.host.get_player(self.user.name).location
        request = EffectRequest(kind=kind, location=location)
        self.host.play_effect(request.kind, request.location)
        return request

    def set_value(self, key: str, value: Any) -> None:
        self.values[key] = value
        hook = self.value_hooks.get(key)
        if hook is not None:
            hook(self, value)

    async def run_action(self, model: GUIModel, slot: int, action: Action) -> FunctionState:
        """Run an action's chain and commit it if every function completed."""
        ctx = ActionContext(user=self.user, model=model, slot=slot, director=self, bridge=self.bridge)
        state = await action.chain().run(ctx)
        if state is not FunctionState.COMPLETED:
            self.refresh()
            return state
        if model.disposed:
            logger.info("Dropping result of %s: screen already closed", action.action_id)
            return FunctionState.CANCELLED

        before = model.snapshot()
        values_before = dict(self.values)
        model.restore(ctx.staged.snapshot())
        try:
            for effect in ctx.effects:
                effect()
        except Exception:
            model.restore(before)
            self.values = values_before
            raise
        # screen changes run only once every effect has succeeded
        for change in ctx.transitions:
            change()
        if self.model is model:
            self.refresh()
        return state
