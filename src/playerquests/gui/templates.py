"""
Template store: loads declarative GUI screen documents.

Templates are JSON files named ``<screen>.json``. They are looked up in a
configurable screens directory first and then in the screens bundled with
the package. Parsed templates are immutable and cached by name.

Template layout::

    {
      "title": "Quests",
      "size": 9,
      "mode": "CLICK",
      "slots": [
        {"index": 1, "item": "BOOK", "label": "My Quests", "action": "open-myquests"},
        {"index": 9, "item": {"item": "OAK_DOOR", "label": "Exit"},
         "functions": [{"name": "CloseScreen", "params": []}]}
      ]
    }
"""

import json
import logging
import threading
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from playerquests.errors import TemplateMalformed, TemplateNotFound
from playerquests.gui.model import (
    DEFAULT_ITEM,
    MAX_SIZE,
    ROW_WIDTH,
    GUIMode,
    ItemDescriptor,
)

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".json"
DEFAULT_SIZE = ROW_WIDTH


@dataclass(frozen=True)
class FunctionSpec:
    """A GUI function reference: registered name plus its params."""

    name: str
    params: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class SlotDefinition:
    index: int
    item: ItemDescriptor
    action: Optional[str] = None
    functions: Tuple[FunctionSpec, ...] = ()


@dataclass(frozen=True)
class Template:
    name: str
    title: str
    size: int
    mode: GUIMode
    slots: Tuple[SlotDefinition, ...]

    @property
    def indices(self) -> Tuple[int, ...]:
        return tuple(slot.index for slot in self.slots)


def _parse_item(name: str, raw: Dict[str, Any]) -> ItemDescriptor:
    item = raw.get("item", DEFAULT_ITEM)
    label = raw.get("label")
    description = raw.get("description")
    if isinstance(item, dict):
        label = item.get("label", label)
        description = item.get("description", description)
        item = item.get("item", DEFAULT_ITEM)
    if not isinstance(item, str):
        raise TemplateMalformed(name, f"slot {raw.get('index')} item must be a string or object")
    for field_name, value in (("label", label), ("description", description)):
        if value is not None and not isinstance(value, str):
            raise TemplateMalformed(name, f"slot {raw.get('index')} {field_name} must be a string")
    return ItemDescriptor(item=item, label=label or " ", description=description or "")


def _parse_functions(name: str, index: int, raw: Any) -> Tuple[FunctionSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise TemplateMalformed(name, f"slot {index} functions must be a list")
    specs: List[FunctionSpec] = []
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise TemplateMalformed(name, f"a function name is missing in an entry for slot {index}")
        params = entry.get("params")
        if not isinstance(params, list):
            raise TemplateMalformed(
                name,
                f"the 'params' list is missing for the {entry['name']} function in slot {index}",
            )
        specs.append(FunctionSpec(name=entry["name"], params=tuple(params)))
    return tuple(specs)


def parse_template(name: str, text: str) -> Template:
    """Parse a template document. Pure; raises TemplateMalformed."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise TemplateMalformed(name, f"invalid JSON ({e})") from e

    if not isinstance(document, dict):
        raise TemplateMalformed(name, "document must be an object")

    title = document.get("title")
    if not isinstance(title, str):
        raise TemplateMalformed(name, "missing title")

    size = document.get("size", DEFAULT_SIZE)
    if not isinstance(size, int) or isinstance(size, bool) or not (
        0 < size <= MAX_SIZE and size % ROW_WIDTH == 0
    ):
        raise TemplateMalformed(name, f"size must be a multiple of 9 up to 54, got {size!r}")

    try:
        mode = GUIMode(document.get("mode", GUIMode.CLICK.value))
    except ValueError:
        raise TemplateMalformed(name, f"unknown mode {document.get('mode')!r}")

    raw_slots = document.get("slots", [])
    if not isinstance(raw_slots, list):
        raise TemplateMalformed(name, "slots must be a list")

    seen: set[int] = set()
    slots: List[SlotDefinition] = []
    for raw in raw_slots:
        if not isinstance(raw, dict):
            raise TemplateMalformed(name, "each slot must be an object")
        index = raw.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            raise TemplateMalformed(name, f"slot index must be an integer, got {index!r}")
        if not 1 <= index <= size:
            raise TemplateMalformed(name, f"slot index {index} is outside 1..{size}")
        if index in seen:
            raise TemplateMalformed(name, f"duplicate slot index {index}")
        seen.add(index)

        action = raw.get("action")
        if action is not None and not isinstance(action, str):
            raise TemplateMalformed(name, f"slot {index} action must be a string")

        slots.append(
            SlotDefinition(
                index=index,
                item=_parse_item(name, raw),
                action=action,
                functions=_parse_functions(name, index, raw.get("functions")),
            )
        )

    return Template(name=name, title=title, size=size, mode=mode, slots=tuple(slots))


class TemplateStore:
    """Finds, parses and caches GUI templates by name."""

    def __init__(self, screens_dir: Optional[Path] = None) -> None:
        self.screens_dir = screens_dir
        self._cache: Dict[str, Template] = {}
        self._lock = threading.Lock()

    def _read(self, name: str) -> str:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise TemplateNotFound(name)

        filename = name + TEMPLATE_SUFFIX
        if self.screens_dir is not None:
            path = self.screens_dir / filename
            if path.is_file():
                return path.read_text(encoding="utf-8")

        bundled = resources.files("playerquests").joinpath("screens").joinpath(filename)
        if bundled.is_file():
            return bundled.read_text(encoding="utf-8")

        raise TemplateNotFound(name)

    def load(self, name: str) -> Template:
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached

        template = parse_template(name, self._read(name))
        logger.debug("Loaded template %s with %d slots", name, len(template.slots))
        with self._lock:
            self._cache.setdefault(name, template)
            return self._cache[name]

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def names(self) -> List[str]:
        found = set()
        bundled = resources.files("playerquests").joinpath("screens")
        for entry in bundled.iterdir():
            if entry.name.endswith(TEMPLATE_SUFFIX):
                found.add(entry.name[: -len(TEMPLATE_SUFFIX)])
        if self.screens_dir is not None and self.screens_dir.is_dir():
            found.update(path.stem for path in self.screens_dir.glob("*" + TEMPLATE_SUFFIX))
        return sorted(found)
