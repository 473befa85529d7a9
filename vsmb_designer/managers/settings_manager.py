# vsmb_designer/managers/settings_manager.py
import json
import logging
from typing import Any, Dict, List, Optional, Union, Callable
from dataclasses import dataclass
from enum import Enum

from ..core.machine_model import OutputFormat, OutputLanguage
from ..utils.config import (
    SETTINGS_STORAGE_KEY, MAX_HISTORY, MAX_DIAGRAM_HISTORY, DEFAULT_LAYOUT_TIMEOUT_S,
    DEFAULT_SHARE_BASE_URL, DEFAULT_MACHINE_NAME,
)
from .storage import KeyValueStore, InMemoryStore

logger = logging.getLogger(__name__)

SettingListener = Callable[[str, Any], None]


class SettingCategory(Enum):
    """Enumeration of setting categories for better organization."""
    DEFAULTS = "defaults"
    EDITOR = "editor"
    LAYOUT = "layout"
    SHARING = "sharing"
    LOGGING = "logging"


@dataclass
class SettingDefinition:
    """Definition of a setting with metadata."""
    key: str
    default_value: Any
    category: SettingCategory
    description: str = ""
    validator: Optional[Callable[[Any], bool]] = None
    min_value: Optional[Union[int, float]] = None
    max_value: Optional[Union[int, float]] = None
    allowed_values: Optional[List[Any]] = None

    def validate(self, value: Any) -> bool:
        """Validate a value against this setting's constraints."""
        # Custom validator takes precedence
        if self.validator:
            return self.validator(value)

        # bool is an int subclass; keep the two apart
        if isinstance(self.default_value, bool) != isinstance(value, bool):
            return False
        if isinstance(self.default_value, float) and isinstance(value, int):
            value = float(value)
        elif not isinstance(value, type(self.default_value)):
            return False

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if self.min_value is not None and value < self.min_value:
                return False
            if self.max_value is not None and value > self.max_value:
                return False

        if self.allowed_values and value not in self.allowed_values:
            return False

        return True


class SettingsManager:
    """
    Runtime configuration with validation and categorization, persisted as a
    single JSON object in a KeyValueStore.
    """

    SETTING_DEFINITIONS = {
        "default_output_format": SettingDefinition(
            "default_output_format", OutputFormat.USE_REDUCER.value, SettingCategory.DEFAULTS,
            "Output format of new machines", allowed_values=[f.value for f in OutputFormat]
        ),
        "default_output_language": SettingDefinition(
            "default_output_language", OutputLanguage.TS.value, SettingCategory.DEFAULTS,
            "Output language of new machines", allowed_values=[l.value for l in OutputLanguage]
        ),
        "default_machine_name": SettingDefinition(
            "default_machine_name", DEFAULT_MACHINE_NAME, SettingCategory.DEFAULTS,
            "Name given to new machines", validator=lambda v: isinstance(v, str) and bool(v.strip())
        ),
        "history_capacity": SettingDefinition(
            "history_capacity", MAX_HISTORY, SettingCategory.EDITOR,
            "Number of undo snapshots kept by the editor", min_value=1, max_value=500
        ),
        "autosave_enabled": SettingDefinition(
            "autosave_enabled", True, SettingCategory.EDITOR,
            "Save the current machine to the store after every edit"
        ),
        "diagram_history_limit": SettingDefinition(
            "diagram_history_limit", MAX_DIAGRAM_HISTORY, SettingCategory.EDITOR,
            "Number of recent diagrams remembered", min_value=1, max_value=200
        ),
        "layout_timeout_seconds": SettingDefinition(
            "layout_timeout_seconds", DEFAULT_LAYOUT_TIMEOUT_S, SettingCategory.LAYOUT,
            "Time allowed for the graph layout engine before falling back",
            min_value=0.1, max_value=60.0
        ),
        "layout_use_graphviz": SettingDefinition(
            "layout_use_graphviz", True, SettingCategory.LAYOUT,
            "Try the Graphviz layout engine before the built-in level layout"
        ),
        "share_base_url": SettingDefinition(
            "share_base_url", DEFAULT_SHARE_BASE_URL, SettingCategory.SHARING,
            "Base URL of generated share links",
            validator=lambda v: isinstance(v, str) and v.startswith(("http://", "https://"))
        ),
        "log_level": SettingDefinition(
            "log_level", "WARNING", SettingCategory.LOGGING,
            "Console log level", allowed_values=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        ),
    }

    def __init__(self, store: Optional[KeyValueStore] = None, storage_key: str = SETTINGS_STORAGE_KEY):
        self.store = store if store is not None else InMemoryStore()
        self.storage_key = storage_key
        self._values: Dict[str, Any] = {}
        self._listeners: List[SettingListener] = []

        # Batch update support
        self._batch_mode = False
        self._batch_changes: Dict[str, Any] = {}

        self._load()

    def _load(self):
        stored = self.store.get(self.storage_key, {})
        if not isinstance(stored, dict):
            logger.warning(f"Stored settings under '{self.storage_key}' are not an object. Using defaults.")
            stored = {}
        for key, definition in self.SETTING_DEFINITIONS.items():
            if key not in stored:
                logger.debug(f"Setting '{key}' not found, initializing with default: {definition.default_value}")
                self._values[key] = definition.default_value
            elif not definition.validate(stored[key]):
                logger.warning(f"Setting '{key}' value '{stored[key]}' failed validation. Using default.")
                self._values[key] = definition.default_value
            else:
                self._values[key] = stored[key]

    def _persist(self):
        self.store.set(self.storage_key, dict(self._values))
        logger.debug("Settings synced to store.")

    def add_listener(self, listener: SettingListener):
        """Registers `listener(key, value)`, called after each change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SettingListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, key: str, value: Any):
        for listener in list(self._listeners):
            listener(key, value)

    def get(self, key: str, default_override=None) -> Any:
        """Get a setting value; unknown keys return `default_override`."""
        if key not in self.SETTING_DEFINITIONS:
            logger.warning(f"Unknown setting key: '{key}'")
            return default_override
        return self._values[key]

    def set(self, key: str, value: Any, save_immediately: bool = True) -> bool:
        """Set a setting value with validation and batching support."""
        definition = self.SETTING_DEFINITIONS.get(key)
        if not definition:
            logger.warning(f"Unknown setting key: '{key}'. Not setting.")
            return False
        if not definition.validate(value):
            logger.error(f"Setting '{key}' value '{value}' failed validation. Not setting.")
            return False

        if self._values.get(key) == value:
            logger.debug(f"Setting '{key}' set to same value: {value}. No change.")
            return True

        self._values[key] = value

        if self._batch_mode:
            self._batch_changes[key] = value
        else:
            if save_immediately:
                self._persist()
            self._notify(key, value)
            logger.info(f"Setting '{key}' changed to: {value}")

        return True

    def get_by_category(self, category: SettingCategory) -> Dict[str, Any]:
        """Get all settings in a specific category."""
        return {key: self.get(key)
                for key, definition in self.SETTING_DEFINITIONS.items()
                if definition.category == category}

    def reset_category(self, category: SettingCategory):
        """Reset all settings in a category to defaults."""
        logger.info(f"Resetting category '{category.value}' to defaults.")
        self.begin_batch_update()
        try:
            for key, definition in self.SETTING_DEFINITIONS.items():
                if definition.category == category:
                    self.set(key, definition.default_value)
        finally:
            self.end_batch_update()

    def begin_batch_update(self):
        """Begin a batch update to avoid multiple store writes."""
        self._batch_mode = True
        self._batch_changes.clear()

    def end_batch_update(self, save_immediately: bool = True):
        """End batch update and apply all changes."""
        if not self._batch_mode:
            return

        self._batch_mode = False
        if save_immediately:
            self._persist()

        for key, value in self._batch_changes.items():
            self._notify(key, value)
            logger.info(f"Batch setting '{key}' changed to: {value}")

        self._batch_changes.clear()

    def reset_to_defaults(self):
        """Reset all settings to their defaults."""
        logger.info("Resetting all settings to defaults.")
        self.begin_batch_update()
        try:
            for key, definition in self.SETTING_DEFINITIONS.items():
                self.set(key, definition.default_value)
        finally:
            self.end_batch_update(save_immediately=True)
        logger.info("Settings have been reset to default values.")

    def export_settings(self, filepath: str) -> bool:
        """Export settings to a JSON file."""
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(dict(self._values), f, indent=2, default=str)
            logger.info(f"Settings exported to: {filepath}")
            return True
        except OSError as e:
            logger.error(f"Failed to export settings: {e}")
            return False

    def import_settings(self, filepath: str) -> bool:
        """Import settings from a JSON file. Unknown or invalid entries are skipped."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                settings_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to import settings: {e}")
            return False
        if not isinstance(settings_data, dict):
            logger.error(f"Failed to import settings: '{filepath}' does not hold a JSON object.")
            return False

        self.begin_batch_update()
        try:
            for key, value in settings_data.items():
                if key in self.SETTING_DEFINITIONS:
                    self.set(key, value)
        finally:
            self.end_batch_update(save_immediately=True)

        logger.info(f"Settings imported from: {filepath}")
        return True

    def get_setting_info(self, key: str) -> Optional[SettingDefinition]:
        """Get metadata about a setting."""
        return self.SETTING_DEFINITIONS.get(key)

    def get_all_setting_keys(self) -> List[str]:
        """Get all available setting keys."""
        return list(self.SETTING_DEFINITIONS.keys())

    def is_default_value(self, key: str) -> bool:
        """Check if a setting has its default value."""
        definition = self.SETTING_DEFINITIONS.get(key)
        if not definition:
            return False
        return self.get(key) == definition.default_value
