# vsmb_designer/plugins/mermaid_exporter.py
from typing import Dict
from .api import VsmbExporterPlugin
from ..export_utils import mermaid_markdown, mermaid_filename


class MermaidExporter(VsmbExporterPlugin):
    @property
    def name(self) -> str:
        return "Mermaid"

    @property
    def file_filter(self) -> str:
        return "Markdown Files (*.md)"

    def export(self, model, **kwargs) -> Dict[str, str]:
        base_filename = kwargs.get("base_filename")
        filename = f"{base_filename}.md" if base_filename else mermaid_filename(model)
        return {filename: mermaid_markdown(model)}
