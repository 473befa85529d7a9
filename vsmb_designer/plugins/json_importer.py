# vsmb_designer/plugins/json_importer.py
import json
import logging
from typing import Optional
from .api import VsmbImporterPlugin
from ..core.machine_model import StateMachineModel
from ..services.serialization import parse_file_payload

logger = logging.getLogger(__name__)


class JsonImporter(VsmbImporterPlugin):
    @property
    def name(self) -> str:
        return "Diagram JSON"

    @property
    def file_filter(self) -> str:
        return "JSON Files (*.json)"

    def import_data(self, file_content: str) -> Optional[StateMachineModel]:
        try:
            data = json.loads(file_content)
        except json.JSONDecodeError as e:
            logger.error(f"JSON import failed: {e}")
            return None
        return parse_file_payload(data)
