import pytest

from playerquests.errors import NoDataAvailable
from playerquests.gui.dynamic import (
    DYNAMIC_SCREENS,
    ConfirmScreen,
    MyQuest,
    MyQuests,
    create_dynamic,
)
from playerquests.gui.functions import ActionRegistry, create_action_registry
from playerquests.host import UserHandle
from playerquests.quests.provider import InMemoryQuestProvider, QuestRecord


@pytest.fixture
def actions() -> ActionRegistry:
    return create_action_registry()


def _targets(action: object) -> list:
    return [step.params for step in action.steps]  # type: ignore[attr-defined]


def test_registry_is_closed_set(actions: ActionRegistry) -> None:
    assert set(DYNAMIC_SCREENS) == {"myquests", "myquest", "confirm"}
    assert isinstance(create_dynamic("MyQuests", actions), MyQuests)
    assert create_dynamic("main", actions) is None


def test_myquests_lists_each_quest(
    actions: ActionRegistry, provider: InMemoryQuestProvider, user: UserHandle
) -> None:
    model = MyQuests(actions).resolve(user, provider)
    assert model.title == "My Quests"
    assert model.size == 45
    assert model.populated == [1, 2]
    assert model.get_item(1).item == "BOOK"  # type: ignore[union-attr]
    assert model.get_item(1).label == "Find the Sword"  # type: ignore[union-attr]
    assert _targets(model.action_for(2)) == [("myquest", "quest-2")]


def test_myquests_marks_shared_and_invalid(actions: ActionRegistry, user: UserHandle) -> None:
    provider = InMemoryQuestProvider(
        [
            QuestRecord("global", "Village Fair"),
            QuestRecord("broken", "Broken", owner="alice", valid=False),
            QuestRecord("bobs", "Bob's Quest", owner="bob"),
        ]
    )
    model = MyQuests(actions).resolve(user, provider)
    assert model.populated == [1, 2]
    shared, invalid = model.get_item(1), model.get_item(2)
    assert shared is not None and shared.item == "ENCHANTED_BOOK"
    assert shared.label == "Village Fair (Shared)"
    assert invalid is not None and invalid.item == "RED_STAINED_GLASS_PANE"
    assert invalid.label == "Broken (Invalid)"
    assert model.action_for(2) is None


@pytest.mark.parametrize(
    "records",
    [
        [],
        [QuestRecord("bobs", "Bob's Quest", owner="bob")],
        [QuestRecord("broken", "Broken", owner="alice", valid=False)],
    ],
)
def test_myquests_without_usable_quests_raises(
    actions: ActionRegistry, user: UserHandle, records: list
) -> None:
    source = MyQuests(actions)
    with pytest.raises(NoDataAvailable):
        source.resolve(user, InMemoryQuestProvider(records))
    assert source.fallback == "noquests"


def test_myquests_paginates(actions: ActionRegistry, user: UserHandle) -> None:
    provider = InMemoryQuestProvider.from_titles((f"Quest {n}" for n in range(1, 41)), owner="alice")

    first = MyQuests(actions).resolve(user, provider)
    assert first.title == "My Quests"
    assert first.populated == list(range(1, 37)) + [45]
    assert first.get_item(45).label == "Next"  # type: ignore[union-attr]
    assert _targets(first.action_for(45)) == [("myquests", 2)]

    second = MyQuests(actions, argument=2).resolve(user, provider)
    assert second.title == "My Quests [Page 2]"
    assert second.populated == [1, 2, 3, 4, 44]
    assert second.get_item(1).label == "Quest 37"  # type: ignore[union-attr]
    assert _targets(second.action_for(44)) == [("myquests", 1)]

    beyond = MyQuests(actions, argument=9).resolve(user, provider)
    assert beyond.title == "My Quests [Page 2]"


def test_myquest_detail(actions: ActionRegistry, provider: InMemoryQuestProvider, user: UserHandle) -> None:
    source = MyQuest(actions, previous_screen="myquests", argument="quest-1")
    model = source.resolve(user, provider)
    assert model.title == "Find the Sword"
    assert model.populated == [1, 3, 5, 9]
    rename = model.action_for(3)
    assert rename is not None
    assert [step.function.name for step in rename.steps] == ["ChatPrompt", "UpdateScreen"]
    assert model.action_for(9).action_id == "close"  # type: ignore[union-attr]
    assert source.selection == {"quest.id": "quest-1"}


@pytest.mark.parametrize("argument", [None, "quest-99"])
def test_myquest_unknown_quest_raises(
    actions: ActionRegistry, provider: InMemoryQuestProvider, user: UserHandle, argument: object
) -> None:
    with pytest.raises(NoDataAvailable):
        MyQuest(actions, argument=argument).resolve(user, provider)


def test_confirm_wraps_registered_action(
    actions: ActionRegistry, provider: InMemoryQuestProvider, user: UserHandle
) -> None:
    model = ConfirmScreen(actions, previous_screen="workshop", argument="celebrate").resolve(user, provider)
    assert model.title == "Are you sure?"
    assert model.populated == [3, 7]
    yes, no = model.action_for(3), model.action_for(7)
    assert yes is not None and no is not None
    assert [step.function.name for step in yes.steps] == ["UpdateScreen", "PlayEffect", "Message"]
    assert _targets(no) == [("workshop",)]


@pytest.mark.parametrize("argument", [None, "no-such-action"])
def test_confirm_without_action_raises(
    actions: ActionRegistry, provider: InMemoryQuestProvider, user: UserHandle, argument: object
) -> None:
    source = ConfirmScreen(actions, argument=argument)
    with pytest.raises(NoDataAvailable):
        source.resolve(user, provider)
    assert source.fallback == "main"
