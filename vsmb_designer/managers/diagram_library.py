# vsmb_designer/managers/diagram_library.py
"""
Recently edited diagrams and user-saved templates, persisted in a
KeyValueStore as JSON lists.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..core.machine_model import StateMachineModel
from ..core.model_parser import parse_model_dict, model_to_dict
from ..utils.config import (
    DIAGRAM_HISTORY_STORAGE_KEY, USER_TEMPLATES_STORAGE_KEY, MAX_DIAGRAM_HISTORY,
)
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

# Two saves of the same name closer than this replace each other
DEDUPE_WINDOW_MS = 1000
UNTITLED_NAME = "Untitled"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _entry_id(prefix: str, timestamp: int) -> str:
    return f"{prefix}-{timestamp}-{uuid.uuid4().hex[:7]}"


def _stored_model(data: Dict[str, Any]) -> StateMachineModel:
    raw = data["model"]
    if not isinstance(raw, dict):
        raise TypeError(f"stored model is a {type(raw).__name__}, not an object")
    return parse_model_dict(raw)


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    name: str
    model: StateMachineModel
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "model": model_to_dict(self.model), "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        return cls(data["id"], data["name"], _stored_model(data), int(data["updatedAt"]))


@dataclass(frozen=True)
class UserTemplate:
    id: str
    name: str
    model: StateMachineModel
    created_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "model": model_to_dict(self.model), "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserTemplate':
        return cls(data["id"], data["name"], _stored_model(data), int(data["createdAt"]))


def _load_list(store: KeyValueStore, key: str, factory) -> List:
    raw = store.get(key, [])
    if not isinstance(raw, list):
        logger.warning(f"Stored value under '{key}' is not a list, ignoring it.")
        return []
    items = []
    for data in raw:
        try:
            items.append(factory(data))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping corrupt entry under '{key}': {e}")
    return items


class DiagramHistory:
    """Most recently saved diagrams, newest first, capped at `max_entries`."""

    def __init__(self, store: KeyValueStore, max_entries: int = MAX_DIAGRAM_HISTORY,
                 clock: Callable[[], int] = _now_ms, storage_key: str = DIAGRAM_HISTORY_STORAGE_KEY):
        self.store = store
        self.max_entries = max_entries
        self.clock = clock
        self.storage_key = storage_key

    @classmethod
    def from_settings(cls, settings, store: KeyValueStore, **kwargs) -> 'DiagramHistory':
        return cls(store, max_entries=settings.get("diagram_history_limit"), **kwargs)

    def _save(self, entries: List[HistoryEntry]):
        self.store.set(self.storage_key, [e.to_dict() for e in entries[:self.max_entries]])

    def entries(self) -> List[HistoryEntry]:
        return sorted(_load_list(self.store, self.storage_key, HistoryEntry.from_dict),
                      key=lambda e: e.updated_at, reverse=True)

    def add(self, model: StateMachineModel) -> HistoryEntry:
        """
        Records a snapshot. An entry with the same name saved within the
        dedupe window is replaced instead of kept alongside.
        """
        now = self.clock()
        name = (model.name or '').strip() or UNTITLED_NAME
        entry = HistoryEntry(_entry_id("h", now), name, model, now)
        kept = [e for e in self.entries()
                if e.name != name or abs(e.updated_at - now) > DEDUPE_WINDOW_MS]
        self._save([entry] + kept)
        logger.debug(f"Diagram history: recorded '{name}' ({len(kept) + 1} entries before cap).")
        return entry

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in self.entries() if e.id == entry_id), None)

    def remove(self, entry_id: str):
        self._save([e for e in self.entries() if e.id != entry_id])

    def clear(self):
        self.store.remove(self.storage_key)


class UserTemplateLibrary:
    """Templates saved by the user, in insertion order."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = _now_ms,
                 storage_key: str = USER_TEMPLATES_STORAGE_KEY):
        self.store = store
        self.clock = clock
        self.storage_key = storage_key

    def templates(self) -> List[UserTemplate]:
        return _load_list(self.store, self.storage_key, UserTemplate.from_dict)

    def save(self, name: str, model: StateMachineModel) -> UserTemplate:
        now = self.clock()
        template = UserTemplate(_entry_id("user", now), name, model, now)
        items = self.templates() + [template]
        self.store.set(self.storage_key, [t.to_dict() for t in items])
        logger.info(f"Saved user template '{name}'.")
        return template

    def get(self, template_id: str) -> Optional[UserTemplate]:
        return next((t for t in self.templates() if t.id == template_id), None)

    def remove(self, template_id: str):
        items = [t for t in self.templates() if t.id != template_id]
        self.store.set(self.storage_key, [t.to_dict() for t in items])
