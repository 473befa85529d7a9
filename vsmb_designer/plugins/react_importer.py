# vsmb_designer/plugins/react_importer.py
from typing import Optional
from .api import VsmbImporterPlugin
from ..core.machine_model import StateMachineModel
from ..core.source_importer import parse_react_component


class ReactComponentImporter(VsmbImporterPlugin):
    @property
    def name(self) -> str:
        return "React Component"

    @property
    def file_filter(self) -> str:
        return "React Files (*.tsx *.jsx *.ts *.js)"

    def import_data(self, file_content: str) -> Optional[StateMachineModel]:
        return parse_react_component(file_content)
