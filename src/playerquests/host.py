"""
Boundary to the hosting game server.

The engine never talks to the server directly; everything it needs is
expressed by the Host protocol below.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, Tuple, runtime_checkable

from playerquests.fx import ParticleFX

if TYPE_CHECKING:
    from playerquests.gui.model import ScreenView

Location = Tuple[float, float, float]

CommandHandler = Callable[["UserHandle", str], bool]


@dataclass(frozen=True)
class UserHandle:
    """A player as seen by the engine."""

    name: str
    location: Location = (0.0, 0.0, 0.0)

    def __str__(self) -> str:
        return self.name


@runtime_checkable
class Host(Protocol):
    """Services consumed from the game server."""

    def get_player(self, name: str) -> UserHandle: ...

    def send_chat(self, user: UserHandle, text: str) -> None: ...

    def play_effect(self, kind: ParticleFX, location: Location) -> None: ...

    def register_command(self, name: str, handler: CommandHandler) -> None: ...

    def open_screen(self, user: UserHandle, view: "ScreenView") -> None: ...

    def close_screen(self, user: UserHandle) -> None: ...
