"""
Built-in GUI functions available to templates and dynamic screens.
"""

import logging
from typing import Any, Optional, Sequence

from playerquests.fx import ParticleFX
from playerquests.gui.functions.base import (
    ActionContext,
    ActionRegistry,
    FunctionRegistry,
    GUIFunction,
)
from playerquests.gui.model import GUIMode, ItemDescriptor
from playerquests.gui.templates import FunctionSpec

logger = logging.getLogger(__name__)

EXIT_WORD = "exit"
CONFIRM_WORD = "confirm"
DISCARD_KEY = "none"
YES_WORDS = frozenset({"yes", "y", "confirm"})


class UpdateScreen(GUIFunction):
    """Switches to another screen: a dynamic screen or a template."""

    name = "UpdateScreen"
    param_types = (str, (str, int))
    optional_params = 1

    async def execute(self, ctx: ActionContext) -> None:
        screen = self.params[0]
        argument: Optional[Any] = self.params[1] if len(self.params) > 1 else None
        previous = ctx.model.screen_name
        ctx.transition(lambda: ctx.director.navigate(screen, argument, previous_screen=previous))


class CloseScreen(GUIFunction):
    """Fully closes the GUI."""

    name = "CloseScreen"

    async def execute(self, ctx: ActionContext) -> None:
        ctx.transition(ctx.director.close)


class ChatPrompt(GUIFunction):
    """
    Asks the user for a value through chat.

    The screen is minimised while waiting. Typing ``exit`` cancels, typing
    ``confirm`` accepts the last value entered (and re-asks when there is none
    yet), anything else becomes the new candidate value. The accepted value is stored under the key given as the
    second param (``none`` discards it).
    """

    name = "ChatPrompt"
    param_types = (str, str)

    async def execute(self, ctx: ActionContext) -> None:
        prompt, key = self.params
        value: Optional[str] = None

        ctx.director.minimise()
        try:
            question = f"{prompt}\nor type {EXIT_WORD}"
            while True:
                response = (await self.ask(ctx, question)).strip()
                if response.lower() == EXIT_WORD:
                    ctx.director.message("exited")
                    self.cancel()
                    return
                if response.lower() == CONFIRM_WORD:
                    if value is not None:
                        break
                    # nothing to confirm yet
                    continue
                if response:
                    value = response
                if value is None:
                    continue
                question = (
                    f"{prompt} Entered: {value}\n"
                    f"enter again, or type {CONFIRM_WORD}, or type {EXIT_WORD}"
                )
        finally:
            ctx.director.unminimise()

        accepted = value
        if key != DISCARD_KEY:
            ctx.defer(lambda: ctx.director.set_value(key, accepted))
        ctx.defer(lambda: ctx.director.message("confirmed"))


class Confirm(GUIFunction):
    """Asks a yes/no question; anything but yes stops the chain."""

    name = "Confirm"
    param_types = (str,)

    async def execute(self, ctx: ActionContext) -> None:
        response = await self.ask(ctx, f"{self.params[0]} (yes/no)")
        if response.strip().lower() not in YES_WORDS:
            ctx.director.message("cancelled")
            self.cancel()


class SwitchMode(GUIFunction):
    """Changes the screen between CLICK and ARRANGE mode."""

    name = "SwitchMode"
    param_types = (str,)
    toggles_mode = True

    @classmethod
    def validate_params(cls, params: Sequence[Any]) -> None:
        super().validate_params(params)
        try:
            GUIMode(params[0].upper())
        except ValueError:
            raise ValueError(f"{cls.name}: unknown mode {params[0]!r}")

    async def execute(self, ctx: ActionContext) -> None:
        ctx.staged.change_mode(GUIMode(self.params[0].upper()))


class SetSlot(GUIFunction):
    """Rewrites one slot of the screen."""

    name = "SetSlot"
    param_types = (int, str, str)
    optional_params = 1

    async def execute(self, ctx: ActionContext) -> None:
        index, item = self.params[0], self.params[1]
        label = self.params[2] if len(self.params) > 2 else " "
        ctx.staged.set_item(index, ItemDescriptor(item=item, label=label))


class PlayEffect(GUIFunction):
    """Plays a particle effect where the user stands."""

    name = "PlayEffect"
    param_types = (str,)

    @classmethod
    def validate_params(cls, params: Sequence[Any]) -> None:
        super().validate_params(params)
        try:
            ParticleFX(params[0].lower())
        except ValueError:
            raise ValueError(f"{cls.name}: unknown effect {params[0]!r}")

    async def execute(self, ctx: ActionContext) -> None:
        kind = ParticleFX(self.params[0].lower())
        ctx.defer(lambda: ctx.director.play_effect(kind))


class Message(GUIFunction):
    """Sends the user a chat notice."""

    name = "Message"
    param_types = (str,)

    async def execute(self, ctx: ActionContext) -> None:
        text = self.params[0]
        ctx.defer(lambda: ctx.director.message(text))


BUILTIN_FUNCTIONS = (
    UpdateScreen,
    CloseScreen,
    ChatPrompt,
    Confirm,
    SwitchMode,
    SetSlot,
    PlayEffect,
    Message,
)


def create_function_registry() -> FunctionRegistry:
    registry = FunctionRegistry()
    for function in BUILTIN_FUNCTIONS:
        registry.register(function)
    return registry


def create_action_registry(functions: Optional[FunctionRegistry] = None) -> ActionRegistry:
    """Registry pre-filled with the actions the bundled screens use."""
    actions = ActionRegistry(functions or create_function_registry())
    actions.register("open-main", FunctionSpec("UpdateScreen", ("main",)))
    actions.register("open-myquests", FunctionSpec("UpdateScreen", ("myquests",)))
    actions.register("close", FunctionSpec("CloseScreen"))
    actions.register(
        "rename-quest",
        FunctionSpec("ChatPrompt", ("Enter a new title for the quest", "quest.title")),
    )
    actions.register("arrange-mode", FunctionSpec("SwitchMode", ("ARRANGE",)))
    actions.register("click-mode", FunctionSpec("SwitchMode", ("CLICK",)))
    actions.register(
        "celebrate",
        FunctionSpec("PlayEffect", ("sparkle",)),
        FunctionSpec("Message", ("Huzzah!",)),
    )
    return actions
