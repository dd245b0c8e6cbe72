"""
Interaction dispatcher.

Every slot interaction for a user goes through that user's UserActor, a
queue drained by a single consumer task. Interactions for one user therefore
never overlap, even while a function waits for a chat response.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple

from playerquests.errors import ActionFailed
from playerquests.gui.functions import Action, FunctionState
from playerquests.gui.model import GUIMode, GUIModel
from playerquests.host import UserHandle

logger = logging.getLogger(__name__)

RunAction = Callable[[GUIModel, int, Action], Awaitable[FunctionState]]
ReportFailure = Callable[[UserHandle, ActionFailed], None]


class Interaction(str, Enum):
    """What a single interaction ended up doing."""

    IGNORED = "ignored"
    PICKED_UP = "picked_up"
    RELEASED = "released"
    MOVED = "moved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


Job = Tuple[GUIModel, int, "asyncio.Future[Interaction]"]


class UserActor:
    """Serializes the interactions of one user."""

    def __init__(self, user: UserHandle, handle: Callable[[GUIModel, int], Awaitable[Interaction]]) -> None:
        self.user = user
        self._handle = handle
        self._queue: asyncio.Queue[Job] = asyncio.Queue()
        self._consumer_task: Optional[asyncio.Task[None]] = asyncio.create_task(self._consume())

    def submit(self, model: GUIModel, slot: int) -> "asyncio.Future[Interaction]":
        future: asyncio.Future[Interaction] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((model, slot, future))
        return future

    async def _consume(self) -> None:
        while True:
            model, slot, future = await self._queue.get()
            try:
                if not future.cancelled():
                    future.set_result(await self._handle(model, slot))
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as e:
                logger.exception("Interaction on slot %d for %s crashed", slot, self.user)
                if not future.done():
                    future.set_exception(e)
            finally:
                self._queue.task_done()

    async def stop(self) -> None:
        task, self._consumer_task = self._consumer_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # fail anything still queued
        while not self._queue.empty():
            _, _, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()


class InteractionDispatcher:
    """
    Routes slot interactions to the CLICK or ARRANGE behaviour of the model.

    Args:
        run_action: Runs a bound action against the model and commits it.
        report_failure: Tells the user that an action failed.
    """

    def __init__(self, run_action: RunAction, report_failure: ReportFailure) -> None:
        self._run_action = run_action
        self._report_failure = report_failure
        self._actors: Dict[str, UserActor] = {}

    def on_interact(self, model: GUIModel, slot: int) -> "asyncio.Future[Interaction]":
        """Queue an interaction; the future resolves once it has been handled."""
        actor = self._actors.get(model.user.name)
        if actor is None:
            actor = UserActor(model.user, self._dispatch)
            self._actors[model.user.name] = actor
        return actor.submit(model, slot)

    async def _dispatch(self, model: GUIModel, slot: int) -> Interaction:
        if model.disposed or not 1 <= slot <= model.size:
            logger.debug("Ignoring slot %d on %s for %s", slot, model.screen_name, model.user)
            return Interaction.IGNORED
        if model.mode is GUIMode.ARRANGE:
            action = model.action_for(slot)
            # mode toggles stay clickable so the screen can leave ARRANGE
            if action is None or not action.toggles_mode:
                return self._arrange(model, slot)
        return await self._click(model, slot)

    async def _click(self, model: GUIModel, slot: int) -> Interaction:
        action = model.action_for(slot)
        if action is None:
            return Interaction.IGNORED

        logger.info("%s clicked slot %d on %s (%s)", model.user, slot, model.screen_name, action.action_id)
        try:
            state = await self._run_action(model, slot, action)
        except Exception as e:
            failure = ActionFailed(action.action_id, e)
            logger.error("%s", failure, exc_info=True)
            self._report_failure(model.user, failure)
            return Interaction.FAILED
        if state is FunctionState.COMPLETED:
            return Interaction.COMPLETED
        return Interaction.CANCELLED

    @staticmethod
    def _arrange(model: GUIModel, slot: int) -> Interaction:
        held = model.held
        if held is None:
            if model.get_item(slot) is None:
                return Interaction.IGNORED
            model.held = slot
            return Interaction.PICKED_UP
        model.held = None
        if held == slot:
            return Interaction.RELEASED
        model.move(held, slot)
        return Interaction.MOVED

    async def shutdown(self, user: UserHandle) -> None:
        actor = self._actors.pop(user.name, None)
        if actor is not None:
            await actor.stop()

    async def close(self) -> None:
        actors = list(self._actors.values())
        self._actors.clear()
        for actor in actors:
            await actor.stop()
