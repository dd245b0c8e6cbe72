import json
from pathlib import Path
from typing import Any, Dict

import pytest

from playerquests.errors import TemplateMalformed, TemplateNotFound
from playerquests.gui.model import DEFAULT_ITEM, GUIMode
from playerquests.gui.templates import FunctionSpec, TemplateStore, parse_template


def _doc(**overrides: Any) -> str:
    document: Dict[str, Any] = {
        "title": "Test",
        "slots": [{"index": 1, "item": "BOOK", "label": "One", "action": "close"}],
    }
    document.update(overrides)
    return json.dumps(document)


def test_parse_template_defaults() -> None:
    template = parse_template("test", _doc())
    assert template.name == "test"
    assert template.title == "Test"
    assert template.size == 9
    assert template.mode is GUIMode.CLICK
    assert template.indices == (1,)
    slot = template.slots[0]
    assert slot.item.item == "BOOK"
    assert slot.item.label == "One"
    assert slot.action == "close"
    assert slot.functions == ()


def test_parse_template_item_object_and_functions() -> None:
    text = _doc(
        size=18,
        mode="ARRANGE",
        slots=[
            {"index": 2},
            {
                "index": 18,
                "item": {"item": "OAK_DOOR", "label": "Exit", "description": "Leave"},
                "functions": [{"name": "UpdateScreen", "params": ["main"]}],
            },
        ],
    )
    template = parse_template("test", text)
    assert template.size == 18
    assert template.mode is GUIMode.ARRANGE
    assert template.slots[0].item.item == DEFAULT_ITEM
    exit_slot = template.slots[1]
    assert exit_slot.item.label == "Exit"
    assert exit_slot.item.description == "Leave"
    assert exit_slot.functions == (FunctionSpec("UpdateScreen", ("main",)),)


@pytest.mark.parametrize(
    "text,reason",
    [
        ("{not json", "invalid JSON"),
        ("[]", "must be an object"),
        (json.dumps({"slots": []}), "missing title"),
        (_doc(size=10), "multiple of 9"),
        (_doc(size=63), "multiple of 9"),
        (_doc(mode="DRAG"), "unknown mode"),
        (_doc(slots={"index": 1}), "slots must be a list"),
        (_doc(slots=[{"item": "BOOK"}]), "must be an integer"),
        (_doc(slots=[{"index": True}]), "must be an integer"),
        (_doc(slots=[{"index": 10}]), "outside 1..9"),
        (_doc(slots=[{"index": 0}]), "outside 1..9"),
        (_doc(slots=[{"index": 1}, {"index": 1}]), "duplicate slot index 1"),
        (_doc(slots=[{"index": 1, "item": 5}]), "item must be a string or object"),
        (_doc(slots=[{"index": 1, "action": 3}]), "action must be a string"),
        (_doc(slots=[{"index": 1, "functions": [{"params": []}]}]), "function name is missing"),
        (
            _doc(slots=[{"index": 1, "functions": [{"name": "CloseScreen"}]}]),
            "'params' list is missing for the CloseScreen function in slot 1",
        ),
    ],
)
def test_parse_template_rejects_malformed_documents(text: str, reason: str) -> None:
    with pytest.raises(TemplateMalformed) as excinfo:
        parse_template("broken", text)
    assert reason in str(excinfo.value)
    assert excinfo.value.name == "broken"


def test_store_loads_bundled_main_template() -> None:
    template = TemplateStore().load("main")
    assert template.title == "Quests"
    assert len(template.slots) == 1
    assert template.slots[0].index == 1
    assert template.slots[0].action == "open-myquests"


@pytest.mark.parametrize("name", ["nope", "../main", "screens/main", ".hidden", ""])
def test_store_raises_template_not_found(name: str) -> None:
    with pytest.raises(TemplateNotFound):
        TemplateStore().load(name)


def test_store_prefers_screens_dir_and_caches(tmp_path: Path) -> None:
    (tmp_path / "main.json").write_text(_doc(title="Custom"), encoding="utf-8")
    store = TemplateStore(tmp_path)

    first = store.load("main")
    assert first.title == "Custom"
    assert store.load("main") is first

    (tmp_path / "main.json").write_text(_doc(title="Changed"), encoding="utf-8")
    assert store.load("main").title == "Custom"
    store.clear_cache()
    assert store.load("main").title == "Changed"


def test_store_falls_back_to_bundled_screens(tmp_path: Path) -> None:
    store = TemplateStore(tmp_path)
    assert store.load("noquests").title == "No Quests"


def test_store_names(tmp_path: Path) -> None:
    (tmp_path / "extra.json").write_text(_doc(), encoding="utf-8")
    names = TemplateStore(tmp_path).names()
    assert {"main", "noquests", "workshop", "extra"}.issubset(names)
