"""
Runtime representation of one open GUI screen.

Slot indices are 1-based and run from 1 to ``size`` (a multiple of 9, like a
chest inventory).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from playerquests.host import UserHandle

if TYPE_CHECKING:
    from playerquests.gui.functions import Action

logger = logging.getLogger(__name__)

DEFAULT_ITEM = "GRAY_STAINED_GLASS_PANE"
ROW_WIDTH = 9
MAX_SIZE = 54


class GUIMode(str, Enum):
    """How the screen reacts to interactions."""

    CLICK = "CLICK"
    ARRANGE = "ARRANGE"


@dataclass(frozen=True)
class ItemDescriptor:
    """What is shown in a slot."""

    item: str = DEFAULT_ITEM
    label: str = " "
    description: str = ""


@dataclass(frozen=True)
class ScreenView:
    """Immutable rendering of a GUIModel handed to the host."""

    title: str
    size: int
    mode: GUIMode
    cells: Tuple[Optional[ItemDescriptor], ...]
    held: Optional[int] = None

    def rows(self) -> List[Tuple[Optional[ItemDescriptor], ...]]:
        return [
            self.cells[start : start + ROW_WIDTH]
            for start in range(0, self.size, ROW_WIDTH)
        ]


@dataclass(frozen=True)
class GUISnapshot:
    """Captured slot/binding/mode state used to roll back or commit a chain."""

    title: str
    mode: GUIMode
    slots: Dict[int, ItemDescriptor]
    bindings: Dict[int, "Action"]
    held: Optional[int]


@dataclass
class GUIModel:
    """
    A single open screen bound to one user.

    Attributes:
        title: Title shown above the grid.
        size: Number of slots (multiple of 9, up to 54).
        user: Owner of the screen.
        mode: CLICK executes bound actions, ARRANGE moves items.
        screen_name: Template or dynamic screen this model was built from.
    """

    title: str
    size: int
    user: UserHandle
    mode: GUIMode = GUIMode.CLICK
    screen_name: str = ""
    slots: Dict[int, ItemDescriptor] = field(default_factory=dict)
    bindings: Dict[int, "Action"] = field(default_factory=dict)
    held: Optional[int] = None
    disposed: bool = False

    def __post_init__(self) -> None:
        if self.size <= 0 or self.size > MAX_SIZE or self.size % ROW_WIDTH:
            raise ValueError(f"GUI size must be a multiple of 9 up to 54, got {self.size}")

    def _check_index(self, index: int) -> None:
        if not 1 <= index <= self.size:
            raise IndexError(f"Slot {index} is outside 1..{self.size}")

    def set_item(self, index: int, item: ItemDescriptor) -> None:
        self._check_index(index)
        self.slots[index] = item

    def get_item(self, index: int) -> Optional[ItemDescriptor]:
        self._check_index(index)
        return self.slots.get(index)

    def clear(self, index: int) -> None:
        self._check_index(index)
        self.slots.pop(index, None)

    def clear_slots(self) -> None:
        self.slots.clear()
        self.bindings.clear()
        self.held = None

    def bind(self, index: int, action: "Action") -> None:
        self._check_index(index)
        self.bindings[index] = action

    def action_for(self, index: int) -> Optional["Action"]:
        self._check_index(index)
        return self.bindings.get(index)

    @property
    def populated(self) -> List[int]:
        return sorted(self.slots)

    def change_mode(self, mode: GUIMode) -> None:
        if mode != self.mode:
            logger.debug("Screen %s for %s: %s -> %s", self.screen_name, self.user, self.mode, mode)
        self.mode = mode
        self.held = None

    def move(self, source: int, destination: int) -> None:
        """Move the item at source onto destination, overwriting it."""
        self._check_index(source)
        self._check_index(destination)
        item = self.slots.pop(source, None)
        if item is None:
            return
        self.slots[destination] = item

    def snapshot(self) -> GUISnapshot:
        return GUISnapshot(
            title=self.title,
            mode=self.mode,
            slots=dict(self.slots),
            bindings=dict(self.bindings),
            held=self.held,
        )

    def restore(self, snapshot: GUISnapshot) -> None:
        self.title = snapshot.title
        self.mode = snapshot.mode
        self.slots = dict(snapshot.slots)
        self.bindings = dict(snapshot.bindings)
        self.held = snapshot.held

    def copy(self) -> "GUIModel":
        """Detached working copy; actions are shared by reference."""
        clone = GUIModel(
            title=self.title,
            size=self.size,
            user=self.user,
            mode=self.mode,
            screen_name=self.screen_name,
        )
        clone.restore(self.snapshot())
        return clone

    def render(self) -> ScreenView:
        return ScreenView(
            title=self.title,
            size=self.size,
            mode=self.mode,
            cells=tuple(self.slots.get(index) for index in range(1, self.size + 1)),
            held=self.held,
        )

    def dispose(self) -> None:
        self.clear_slots()
        self.disposed = True
