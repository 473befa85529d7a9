# vsmb_designer/plugins/json_exporter.py
from typing import Dict
from .api import VsmbExporterPlugin
from ..codegen.common import machine_name
from ..services.serialization import dump_file_payload


class JsonExporter(VsmbExporterPlugin):
    @property
    def name(self) -> str:
        return "Diagram JSON"

    @property
    def file_filter(self) -> str:
        return "JSON Files (*.json)"

    def export(self, model, **kwargs) -> Dict[str, str]:
        # Always the versioned envelope; the legacy shape is read-only.
        base_filename = kwargs.get("base_filename") or machine_name(model)
        return {f"{base_filename}.json": dump_file_payload(model)}
