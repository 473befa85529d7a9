# vsmb_designer/plugins/code_exporter.py
from typing import Dict
from .api import VsmbExporterPlugin
from ..codegen.code_generator import generate_code, code_filename


class SourceCodeExporter(VsmbExporterPlugin):
    @property
    def name(self) -> str:
        return "Source Code"

    @property
    def file_filter(self) -> str:
        return "TypeScript Files (*.ts);;JavaScript Files (*.js)"

    def export(self, model, **kwargs) -> Dict[str, str]:
        filename = code_filename(model)
        base_filename = kwargs.get("base_filename")
        if base_filename:
            filename = f"{base_filename}.{model.output_language.value}"
        return {filename: generate_code(model)}
