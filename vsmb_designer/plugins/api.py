# vsmb_designer/plugins/api.py
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..core.machine_model import StateMachineModel


class VsmbPluginBase(ABC):
    """
    A common base for all plugins, providing metadata and optional
    lifecycle hooks.
    """

    @property
    def version(self) -> str:
        """
        The version of the plugin, e.g., "1.0.0".

        Returns:
            A version string. Defaults to "1.0.0".
        """
        return "1.0.0"

    def setup(self):
        """Optional method called once when the plugin is loaded by the PluginManager."""
        pass

    def teardown(self):
        """Optional method called once when the PluginManager shuts down."""
        pass


class VsmbExporterPlugin(VsmbPluginBase):
    """
    Abstract Base Class for all exporter plugins.

    To create a new exporter, add a module to the 'plugins' package and
    define a class that inherits from this one. The PluginManager
    discovers and loads it automatically.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        The user-friendly name of the exporter.
        Example: "Mermaid Markdown"
        """
        pass

    @property
    @abstractmethod
    def file_filter(self) -> str:
        """
        The file types this exporter creates.
        Example: "Markdown Files (*.md)"
        """
        pass

    @abstractmethod
    def export(self, model: StateMachineModel, **kwargs) -> Dict[str, str]:
        """
        The core export logic.

        Args:
            model: The machine to export.
            **kwargs: Additional, exporter-specific arguments. A common one is
                      'base_filename', which replaces the name derived from
                      the machine.

        Returns:
            A dictionary where keys are suggested filenames (e.g., "Fetch.ts")
            and values are the file contents as strings.
        """
        pass


class VsmbImporterPlugin(VsmbPluginBase):
    """
    Abstract Base Class for all importer plugins.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        The user-friendly name of the importer.
        Example: 'React Component'
        """
        pass

    @property
    @abstractmethod
    def file_filter(self) -> str:
        """
        The file extensions this importer understands.
        Example: 'React Files (*.tsx *.jsx)'
        """
        pass

    @abstractmethod
    def import_data(self, file_content: str) -> Optional[StateMachineModel]:
        """
        The core import logic. Takes the file content and returns a model,
        or None if parsing fails. The model is not validated here.
        """
        pass
