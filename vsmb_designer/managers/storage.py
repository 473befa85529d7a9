# vsmb_designer/managers/storage.py
"""
Key/value persistence handed to the editor, the settings manager and the
diagram library. Values are JSON-compatible.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal persistence capability. Implementations decide where data lives."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass

    def contains(self, key: str) -> bool:
        return key in self.keys()


class InMemoryStore(KeyValueStore):
    """Process-local store. Values are copied through JSON like a real backend would."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        return default if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileStore(KeyValueStore):
    """
    Keeps every key in a single JSON object on disk.

    The file is read once, lazily, and rewritten on each change. A missing or
    corrupt file is treated as empty.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        self._data = {}
        if not os.path.exists(self.file_path):
            logger.info(f"Store file '{self.file_path}' does not exist yet, starting empty.")
            return self._data
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                self._data = loaded
            else:
                logger.warning(f"Store file '{self.file_path}' does not hold a JSON object, ignoring it.")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read store file '{self.file_path}': {e}")
        return self._data

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.file_path))
        os.makedirs(directory, exist_ok=True)
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Store synced to disk: {self.file_path}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._load():
            del self._data[key]
            self._flush()

    def keys(self) -> List[str]:
        return list(self._load().keys())
