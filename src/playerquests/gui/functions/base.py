"""
GUI functions and the pipeline that runs them.

A GUI function is a small state machine::

    ARMED -> (AWAITING_INPUT)* -> COMPLETED | CANCELLED

Functions bound to a slot form an ordered chain. The chain stops at the
first CANCELLED function. Functions only mutate ``ActionContext.staged`` (a
working copy of the screen), queue side effects with ``ActionContext.defer``
and queue screen changes with ``ActionContext.transition``. The director
commits them only when every function completed, and runs the screen changes
after every other effect succeeded.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    List,
    Sequence,
    Tuple,
    Type,
)

from playerquests.chat.prompt_bridge import ChatPromptBridge
from playerquests.errors import BindingError, PromptCancelled
from playerquests.gui.model import GUIModel
from playerquests.gui.templates import FunctionSpec
from playerquests.host import UserHandle

if TYPE_CHECKING:
    from playerquests.client.director import ClientDirector

logger = logging.getLogger(__name__)


class FunctionState(str, Enum):
    ARMED = "armed"
    AWAITING_INPUT = "awaiting_input"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_TRANSITIONS: Dict[FunctionState, Tuple[FunctionState, ...]] = {
    FunctionState.ARMED: (
        FunctionState.AWAITING_INPUT,
        FunctionState.COMPLETED,
        FunctionState.CANCELLED,
    ),
    FunctionState.AWAITING_INPUT: (
        FunctionState.AWAITING_INPUT,
        FunctionState.COMPLETED,
        FunctionState.CANCELLED,
    ),
    FunctionState.COMPLETED: (),
    FunctionState.CANCELLED: (),
}


@dataclass
class ActionContext:
    """Everything a function may touch while it runs."""

    user: UserHandle
    model: GUIModel
    slot: int
    director: "ClientDirector"
    bridge: ChatPromptBridge
    staged: GUIModel = field(init=False)
    effects: List[Callable[[], None]] = field(default_factory=list)
    transitions: List[Callable[[], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.staged = self.model.copy()

    def defer(self, effect: Callable[[], None]) -> None:
        """Queue a side effect that only runs if the whole chain completes."""
        self.effects.append(effect)

    def transition(self, change: Callable[[], None]) -> None:
        """Queue a screen change (navigate or close). These run after all effects."""
        self.transitions.append(change)


class GUIFunction(ABC):
    """Base class for the pre-defined functions a slot can run."""

    name: ClassVar[str] = ""
    param_types: ClassVar[Tuple[Any, ...]] = ()
    optional_params: ClassVar[int] = 0
    # runs even while the screen is in ARRANGE mode
    toggles_mode: ClassVar[bool] = False

    def __init__(self, params: Sequence[Any] = ()) -> None:
        self.params: Tuple[Any, ...] = tuple(params)
        self.state = FunctionState.ARMED

    @classmethod
    def validate_params(cls, params: Sequence[Any]) -> None:
        """Check that params suit this function. Raises ValueError."""
        required = len(cls.param_types) - cls.optional_params
        if not required <= len(params) <= len(cls.param_types):
            raise ValueError(
                f"{cls.name} expects {required}..{len(cls.param_types)} params, got {len(params)}"
            )
        for index, (value, expected) in enumerate(zip(params, cls.param_types)):
            if isinstance(value, bool) and expected is not bool:
                raise ValueError(f"{cls.name} param {index} does not match the expected type")
            if not isinstance(value, expected):
                raise ValueError(f"{cls.name} param {index} does not match the expected type")

    def _transition(self, new_state: FunctionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"{self.name}: cannot go from {self.state.value} to {new_state.value}")
        self.state = new_state

    def complete(self) -> None:
        self._transition(FunctionState.COMPLETED)

    def cancel(self) -> None:
        self._transition(FunctionState.CANCELLED)

    @property
    def finished(self) -> bool:
        return self.state in (FunctionState.COMPLETED, FunctionState.CANCELLED)

    async def ask(self, ctx: ActionContext, question: str) -> str:
        """Suspend until the user answers through chat."""
        self._transition(FunctionState.AWAITING_INPUT)
        return await ctx.bridge.request(ctx.user, question)

    async def run(self, ctx: ActionContext) -> FunctionState:
        if self.state is not FunctionState.ARMED:
            raise RuntimeError(f"{self.name} has already run")
        try:
            await self.execute(ctx)
        except PromptCancelled as e:
            logger.info("%s cancelled for %s: %s", self.name, ctx.user, e)
            if not self.finished:
                self.cancel()
        except Exception:
            if not self.finished:
                self.cancel()
            raise
        if not self.finished:
            self.complete()
        return self.state

    @abstractmethod
    async def execute(self, ctx: ActionContext) -> None:
        """Do the work. Call ``self.cancel()`` to stop the chain."""


@dataclass(frozen=True)
class BoundFunction:
    """A function class with validated params, ready to be instantiated."""

    function: Type[GUIFunction]
    params: Tuple[Any, ...] = ()

    def create(self) -> GUIFunction:
        return self.function(self.params)


class FunctionChain:
    """Runs functions in order, halting at the first cancellation."""

    def __init__(self, functions: Iterable[GUIFunction]) -> None:
        self.functions = list(functions)

    async def run(self, ctx: ActionContext) -> FunctionState:
        for function in self.functions:
            state = await function.run(ctx)
            if state is FunctionState.CANCELLED:
                logger.info("Chain stopped at %s for %s", function.name, ctx.user)
                return FunctionState.CANCELLED
        return FunctionState.COMPLETED


@dataclass(frozen=True)
class Action:
    """A named, resolved chain of functions a slot can be bound to."""

    action_id: str
    steps: Tuple[BoundFunction, ...]

    def chain(self) -> FunctionChain:
        return FunctionChain(step.create() for step in self.steps)

    @property
    def toggles_mode(self) -> bool:
        return any(step.function.toggles_mode for step in self.steps)


class FunctionRegistry:
    """Maps function names used in templates to implementations."""

    def __init__(self) -> None:
        self._functions: Dict[str, Type[GUIFunction]] = {}

    def register(self, function: Type[GUIFunction]) -> Type[GUIFunction]:
        self._functions[function.name] = function
        return function

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)

    def resolve(self, spec: FunctionSpec) -> BoundFunction:
        function = self._functions.get(spec.name)
        if function is None:
            raise BindingError(f"No GUI function named '{spec.name}'")
        try:
            function.validate_params(spec.params)
        except ValueError as e:
            raise BindingError(str(e)) from e
        return BoundFunction(function, tuple(spec.params))


class ActionRegistry:
    """Maps action ids to resolved function chains."""

    def __init__(self, functions: FunctionRegistry) -> None:
        self.functions = functions
        self._actions: Dict[str, Action] = {}

    def compose(self, action_id: str, *specs: FunctionSpec) -> Action:
        """Resolve specs into an Action without registering it."""
        return Action(action_id, tuple(self.functions.resolve(spec) for spec in specs))

    def register(self, action_id: str, *specs: FunctionSpec) -> Action:
        action = self.compose(action_id, *specs)
        self._actions[action_id] = action
        return action

    def get(self, action_id: str) -> Action:
        action = self._actions.get(action_id)
        if action is None:
            raise BindingError(f"No action registered as '{action_id}'")
        return action

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    def ids(self) -> List[str]:
        return sorted(self._actions)
