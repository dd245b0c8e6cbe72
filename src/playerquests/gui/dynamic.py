"""
Dynamic screens: GUIs computed from live data when they are opened.

Each screen is a DynamicSource subclass registered by name in
DYNAMIC_SCREENS. A screen either builds a populated GUIModel or raises
NoDataAvailable; the caller then opens the screen's ``fallback`` template.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Type

from playerquests.errors import BindingError, NoDataAvailable
from playerquests.gui.functions import Action, ActionRegistry
from playerquests.gui.model import GUIModel, ItemDescriptor
from playerquests.gui.templates import FunctionSpec
from playerquests.host import UserHandle
from playerquests.quests.provider import QuestDataProvider, QuestRecord, visible_to

logger = logging.getLogger(__name__)


class DynamicSource(ABC):
    """
    Base for dynamic screens.

    Attributes:
        screen: Name the screen is opened by.
        fallback: Template opened instead when there is nothing to show.
        previous_screen: Screen to return to.
        argument: Optional screen argument (page number, quest id, ...).
        selection: Values the director should remember once the screen opens.
    """

    screen: ClassVar[str] = ""
    fallback: ClassVar[str] = "main"

    def __init__(
        self,
        actions: ActionRegistry,
        previous_screen: str = "main",
        argument: Optional[Any] = None,
    ) -> None:
        self.actions = actions
        self.previous_screen = previous_screen
        self.argument = argument
        self.selection: Dict[str, Any] = {}

    def _new_model(self, user: UserHandle, title: str, size: int) -> GUIModel:
        return GUIModel(title=title, size=size, user=user, screen_name=self.screen)

    def _navigate(self, action_id: str, screen: str, argument: Optional[Any] = None) -> Action:
        params = (screen,) if argument is None else (screen, argument)
        return self.actions.compose(action_id, FunctionSpec("UpdateScreen", params))

    @abstractmethod
    def resolve(self, user: UserHandle, data_provider: QuestDataProvider) -> GUIModel:
        """Build the screen for the user or raise NoDataAvailable."""


class MyQuests(DynamicSource):
    """Lists the quests owned by the user or by nobody, paginated."""

    screen = "myquests"
    fallback = "noquests"
    title = "My Quests"
    size = 45
    slots_per_page = 36
    previous_slot = 44
    next_slot = 45

    def _page(self) -> int:
        try:
            return max(1, int(self.argument or 1))
        except (TypeError, ValueError):
            return 1

    def _quest_item(self, user: UserHandle, record: QuestRecord) -> ItemDescriptor:
        if not record.valid:
            return ItemDescriptor(item="RED_STAINED_GLASS_PANE", label=f"{record.title} (Invalid)")
        if record.owner == user.name:
            return ItemDescriptor(item="BOOK", label=record.title)
        return ItemDescriptor(item="ENCHANTED_BOOK", label=f"{record.title} (Shared)")

    def resolve(self, user: UserHandle, data_provider: QuestDataProvider) -> GUIModel:
        records = [r for r in data_provider.quests_for(user) if visible_to(r, user)]
        if not any(r.valid for r in records):
            raise NoDataAvailable(self.screen, f"no quests for {user}")

        pages = (len(records) - 1) // self.slots_per_page + 1
        page = min(self._page(), pages)
        start = (page - 1) * self.slots_per_page
        chunk: List[QuestRecord] = records[start : start + self.slots_per_page]

        title = self.title if page == 1 else f"{self.title} [Page {page}]"
        model = self._new_model(user, title, self.size)

        for index, record in enumerate(chunk, start=1):
            model.set_item(index, self._quest_item(user, record))
            if record.valid:
                model.bind(
                    index,
                    self._navigate(f"myquests:{record.quest_id}", "myquest", record.quest_id),
                )

        if page > 1:
            model.set_item(
                self.previous_slot,
                ItemDescriptor(item="ORANGE_STAINED_GLASS_PANE", label="Previous"),
            )
            model.bind(self.previous_slot, self._navigate("myquests:previous", self.screen, page - 1))
        if page < pages:
            model.set_item(
                self.next_slot,
                ItemDescriptor(item="GREEN_STAINED_GLASS_PANE", label="Next"),
            )
            model.bind(self.next_slot, self._navigate("myquests:next", self.screen, page + 1))

        logger.debug("myquests page %d/%d for %s: %d quests", page, pages, user, len(chunk))
        return model


class MyQuest(DynamicSource):
    """Detail screen for one quest; the argument is the quest id."""

    screen = "myquest"
    fallback = "noquests"
    size = 9

    def resolve(self, user: UserHandle, data_provider: QuestDataProvider) -> GUIModel:
        if self.argument is None:
            raise NoDataAvailable(self.screen, "no quest selected")
        record = data_provider.get(str(self.argument))
        if record is None or not record.valid or not visible_to(record, user):
            raise NoDataAvailable(self.screen, f"quest {self.argument} is not available")

        model = self._new_model(user, record.title, self.size)
        model.set_item(
            1,
            ItemDescriptor(
                item="BOOK" if record.owner == user.name else "ENCHANTED_BOOK",
                label=record.title,
                description=f"Owner: {record.owner or 'everyone'}",
            ),
        )
        model.set_item(3, ItemDescriptor(item="NAME_TAG", label="Rename"))
        rename = self.actions.get("rename-quest")
        reopen = self._navigate("myquest:reopen", self.screen, record.quest_id)
        model.bind(3, Action("myquest:rename", rename.steps + reopen.steps))
        model.set_item(5, ItemDescriptor(item="OAK_DOOR", label="Back"))
        model.bind(5, self._navigate("myquest:back", "myquests"))
        model.set_item(9, ItemDescriptor(item="BARRIER", label="Close"))
        model.bind(9, self.actions.get("close"))

        self.selection = {"quest.id": record.quest_id}
        return model


class ConfirmScreen(DynamicSource):
    """Yes/No screen guarding a registered action; the argument is the action id."""

    screen = "confirm"
    fallback = "main"
    size = 9
    yes_slot = 3
    no_slot = 7

    def resolve(self, user: UserHandle, data_provider: QuestDataProvider) -> GUIModel:
        if not isinstance(self.argument, str):
            raise NoDataAvailable(self.screen, "nothing to confirm")
        try:
            target = self.actions.get(self.argument)
        except BindingError as e:
            raise NoDataAvailable(self.screen, str(e)) from e

        model = self._new_model(user, "Are you sure?", self.size)
        back = self._navigate("confirm:no", self.previous_screen)

        model.set_item(self.yes_slot, ItemDescriptor(item="LIME_STAINED_GLASS_PANE", label="Yes"))
        model.bind(
            self.yes_slot,
            Action(f"confirm:{target.action_id}", back.steps + target.steps),
        )
        model.set_item(self.no_slot, ItemDescriptor(item="RED_STAINED_GLASS_PANE", label="No"))
        model.bind(self.no_slot, back)
        return model


DYNAMIC_SCREENS: Dict[str, Type[DynamicSource]] = {
    MyQuests.screen: MyQuests,
    MyQuest.screen: MyQuest,
    ConfirmScreen.screen: ConfirmScreen,
}


def create_dynamic(
    name: str,
    actions: ActionRegistry,
    previous_screen: str = "main",
    argument: Optional[Any] = None,
) -> Optional[DynamicSource]:
    """Instantiate the dynamic screen called ``name``, or None if there is none."""
    source = DYNAMIC_SCREENS.get(name.lower())
    if source is None:
        return None
    return source(actions, previous_screen=previous_screen, argument=argument)
