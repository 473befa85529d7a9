# vsmb_designer/managers/plugin_manager.py
import os
import importlib
import inspect
import logging
from typing import List, Optional

from ..plugins.api import VsmbExporterPlugin, VsmbImporterPlugin

logger = logging.getLogger(__name__)
PLUGIN_SUBDIR = "plugins"
PLUGIN_PACKAGE = __name__.rsplit(".", 2)[0] + "." + PLUGIN_SUBDIR


class PluginManager:
    def __init__(self, plugin_package: str = PLUGIN_PACKAGE):
        self.plugin_package = plugin_package
        self.exporter_plugins: List[VsmbExporterPlugin] = []
        self.importer_plugins: List[VsmbImporterPlugin] = []
        self._discover_plugins()

    def _plugins_path(self) -> Optional[str]:
        try:
            package = importlib.import_module(self.plugin_package)
        except ImportError as e:
            logger.warning(f"Plugin package '{self.plugin_package}' could not be imported: {e}")
            return None
        return os.path.dirname(package.__file__)

    def _instantiate(self, cls, kind: str, target: list):
        try:
            plugin_instance = cls()
            plugin_instance.setup()
            target.append(plugin_instance)
            logger.info(f"Successfully loaded {kind} plugin: '{plugin_instance.name}'")
        except Exception as e:
            logger.error(f"Failed to instantiate {kind} plugin '{cls.__name__}': {e}", exc_info=True)

    def _discover_plugins(self):
        """Dynamically discovers and loads all plugins."""
        self.exporter_plugins.clear()
        self.importer_plugins.clear()

        plugins_path = self._plugins_path()
        if not plugins_path or not os.path.isdir(plugins_path):
            logger.warning(f"Plugin directory not found at '{plugins_path}'. No plugins will be loaded.")
            return

        for filename in sorted(os.listdir(plugins_path)):
            if not filename.endswith(".py") or filename.startswith("_") or filename == "api.py":
                continue
            module_name = filename[:-3]
            try:
                module = importlib.import_module(f"{self.plugin_package}.{module_name}")
            except ImportError as e:
                logger.error(f"Failed to import plugin module '{module_name}': {e}", exc_info=True)
                continue

            for name, obj in inspect.getmembers(module, inspect.isclass):
                # Only classes defined in this module; imported ones are found in their own
                if obj.__module__ != module.__name__ or inspect.isabstract(obj):
                    continue
                if issubclass(obj, VsmbExporterPlugin):
                    self._instantiate(obj, "exporter", self.exporter_plugins)
                elif issubclass(obj, VsmbImporterPlugin):
                    self._instantiate(obj, "importer", self.importer_plugins)

        self.exporter_plugins.sort(key=lambda p: p.name)
        self.importer_plugins.sort(key=lambda p: p.name)

    def get_exporter(self, name: str) -> Optional[VsmbExporterPlugin]:
        return next((p for p in self.exporter_plugins if p.name == name), None)

    def get_importer(self, name: str) -> Optional[VsmbImporterPlugin]:
        return next((p for p in self.importer_plugins if p.name == name), None)

    def teardown(self):
        for plugin in self.exporter_plugins + self.importer_plugins:
            try:
                plugin.teardown()
            except Exception as e:
                logger.error(f"Plugin '{plugin.name}' failed during teardown: {e}", exc_info=True)
