"""
Quest data providers.

The quest domain model lives elsewhere; dynamic screens only need a list of
records to display. Providers answer "which quests can this user see".
"""

import json
import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from playerquests.host import UserHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestRecord:
    """What a screen needs to know about a quest."""

    quest_id: str
    title: str
    owner: Optional[str] = None
    valid: bool = True


@runtime_checkable
class QuestDataProvider(Protocol):
    def quests_for(self, user: UserHandle) -> List[QuestRecord]: ...

    def get(self, quest_id: str) -> Optional[QuestRecord]: ...

    def rename(self, quest_id: str, title: str) -> None: ...


def visible_to(record: QuestRecord, user: UserHandle) -> bool:
    """Quests owned by nobody are global and visible to everyone."""
    return record.owner is None or record.owner == user.name


class InMemoryQuestProvider:
    """Holds quest records in memory."""

    def __init__(self, records: Iterable[QuestRecord] = ()) -> None:
        self._records: Dict[str, QuestRecord] = {}
        self._lock = threading.Lock()
        for record in records:
            self._records[record.quest_id] = record

    @classmethod
    def from_titles(cls, titles: Iterable[str], owner: Optional[str] = None) -> "InMemoryQuestProvider":
        return cls(
            QuestRecord(quest_id=f"quest-{index}", title=title, owner=owner)
            for index, title in enumerate(titles, start=1)
        )

    def add(self, record: QuestRecord) -> None:
        with self._lock:
            self._records[record.quest_id] = record

    def quests_for(self, user: UserHandle) -> List[QuestRecord]:
        with self._lock:
            return [r for r in self._records.values() if visible_to(r, user)]

    def get(self, quest_id: str) -> Optional[QuestRecord]:
        with self._lock:
            return self._records.get(quest_id)

    def rename(self, quest_id: str, title: str) -> None:
        with self._lock:
            record = self._records.get(quest_id)
            if record is None:
                raise KeyError(quest_id)
            self._records[quest_id] = replace(record, title=title)


class JsonQuestProvider(InMemoryQuestProvider):
    """
    Reads quest templates from a directory of JSON files.

    Files are named ``<title>.json`` for global quests or
    ``<title>_<owner>.json`` for quests owned by a player. Unreadable files
    are kept as invalid records so screens can flag them.
    """

    def __init__(self, quests_dir: Path) -> None:
        super().__init__()
        self.quests_dir = quests_dir
        self.reload()

    def reload(self) -> None:
        records: List[QuestRecord] = []
        if not self.quests_dir.is_dir():
            logger.warning("Quest directory %s does not exist", self.quests_dir)
        else:
            for path in sorted(self.quests_dir.glob("*.json")):
                records.append(self._read(path))
        with self._lock:
            self._records = {record.quest_id: record for record in records}

    @staticmethod
    def _read(path: Path) -> QuestRecord:
        fragments = path.stem.split("_")
        owner = fragments[1] if len(fragments) == 2 else None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            title = data.get("title") if isinstance(data, dict) else None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable quest %s: %s", path, e)
            return QuestRecord(quest_id=path.stem, title=fragments[0], owner=owner, valid=False)
        if not isinstance(title, str):
            return QuestRecord(quest_id=path.stem, title=fragments[0], owner=owner, valid=False)
        return QuestRecord(quest_id=path.stem, title=title, owner=owner)
