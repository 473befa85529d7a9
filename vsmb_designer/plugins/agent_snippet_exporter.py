# vsmb_designer/plugins/agent_snippet_exporter.py
from typing import Dict
from .api import VsmbExporterPlugin
from ..codegen.common import machine_name
from ..export_utils import generate_snippet_for_agent


class AgentSnippetExporter(VsmbExporterPlugin):
    @property
    def name(self) -> str:
        return "Agent Snippet"

    @property
    def file_filter(self) -> str:
        return "Markdown Files (*.md)"

    def export(self, model, **kwargs) -> Dict[str, str]:
        base_filename = kwargs.get("base_filename") or f"{machine_name(model)}.agent"
        return {f"{base_filename}.md": generate_snippet_for_agent(model)}
