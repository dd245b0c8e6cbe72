"""
Chat prompt bridge.

Turns a user's next chat line into the response of a pending request. Each
user is either IDLE or AWAITING_RESPONSE; at most one PromptSession exists
per user. Sessions are resolved through a future exactly once, and delivery
is checked against the session identity so a late answer can never resume a
function that started after a newer prompt was issued.

Chat events may arrive on host threads: the session table is guarded by a
lock and futures are completed on the loop that created them.
"""

import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from playerquests.errors import PromptAlreadyPending, PromptCancelled
from playerquests.host import UserHandle

logger = logging.getLogger(__name__)


class PromptState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass(eq=False)
class PromptSession:
    """One outstanding question for one user."""

    session_id: int
    user: UserHandle
    question: str
    future: "asyncio.Future[str]"
    loop: asyncio.AbstractEventLoop
    resolved: bool = field(default=False, init=False)


def _settle(future: "asyncio.Future[str]", text: Optional[str], error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(text)  # type: ignore[arg-type]


class ChatPromptBridge:
    """Request/response channel layered on top of chat messages."""

    def __init__(self, send_chat: Callable[[UserHandle, str], None]) -> None:
        self._send_chat = send_chat
        self._sessions: Dict[str, PromptSession] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def state(self, user: UserHandle) -> PromptState:
        with self._lock:
            if user.name in self._sessions:
                return PromptState.AWAITING_RESPONSE
        return PromptState.IDLE

    def pending(self, user: UserHandle) -> Optional[PromptSession]:
        with self._lock:
            return self._sessions.get(user.name)

    def open(self, user: UserHandle, question: str) -> PromptSession:
        """Register a pending prompt and ask the question. Must run inside the event loop."""
        loop = asyncio.get_running_loop()
        with self._lock:
            if user.name in self._sessions:
                raise PromptAlreadyPending(user.name)
            session = PromptSession(
                session_id=next(self._ids),
                user=user,
                question=question,
                future=loop.create_future(),
                loop=loop,
            )
            self._sessions[user.name] = session
        logger.info("Prompt %d opened for %s", session.session_id, user)
        try:
            self._send_chat(user, question)
        except Exception:
            self._discard(session)
            raise
        return session

    async def request(self, user: UserHandle, question: str) -> str:
        """Ask a question and wait for the user's next chat line."""
        session = self.open(user, question)
        try:
            return await session.future
        finally:
            self._discard(session)

    def _discard(self, session: PromptSession) -> None:
        with self._lock:
            if self._sessions.get(session.user.name) is session:
                del self._sessions[session.user.name]

    def _finish(
        self,
        session: PromptSession,
        text: Optional[str] = None,
        error: Optional[BaseException] = None,
    ) -> bool:
        with self._lock:
            if session.resolved or self._sessions.get(session.user.name) is not session:
                return False
            session.resolved = True
            del self._sessions[session.user.name]
        session.loop.call_soon_threadsafe(_settle, session.future, text, error)
        return True

    def on_chat_message(self, user: UserHandle, text: str) -> bool:
        """
        Feed a chat line from the host.

        Returns True when the line answered a pending prompt, meaning the host
        must not broadcast it.
        """
        session = self.pending(user)
        if session is None:
            return False
        if self.respond(user, session.session_id, text):
            logger.info("Prompt %d answered by %s", session.session_id, user)
            return True
        return False

    def respond(self, user: UserHandle, session_id: int, text: str) -> bool:
        """Deliver a response to a specific session; stale ids are refused."""
        session = self.pending(user)
        if session is None or session.session_id != session_id:
            logger.warning("Refused stale response for prompt %d from %s", session_id, user)
            return False
        return self._finish(session, text=text)

    def cancel(self, user: UserHandle, reason: str = "prompt cancelled") -> bool:
        """Fail the pending prompt for the user, if any."""
        session = self.pending(user)
        if session is None:
            return False
        cancelled = self._finish(session, error=PromptCancelled(reason))
        if cancelled:
            logger.info("Prompt %d for %s cancelled: %s", session.session_id, user, reason)
        return cancelled

    def cancel_all(self, reason: str = "shutting down") -> None:
        with self._lock:
            sessions = list(self._sessions.values())
        for session in sessions:
            self.cancel(session.user, reason)
